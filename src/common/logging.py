"""
Logging setup for the MCP server, built on structlog.

Every log line is either compact JSON or, with ``enable_pretty_print``, a
readable block of ``key: value`` lines. Logs go to stderr (and optionally a
rotating file), never stdout, which carries the stdio protocol stream.
"""

import logging
import logging.handlers
import sys
import time
from typing import Any, List, Optional, TextIO

import structlog

from common.config import Config

# Fields the pretty layout leaves out
_PRETTY_SKIPPED = ("timestamp", "level", "logger")


class EventRenderer:
    """Final structlog processor: renders an event dict as JSON or as a pretty block."""

    def __init__(self, pretty: bool = False):
        self.pretty = pretty
        self._json = structlog.processors.JSONRenderer()

    def __call__(self, logger: Any, method_name: str, event_dict: dict) -> str:
        if not self.pretty:
            return str(self._json(logger, method_name, event_dict))

        fields = {k: v for k, v in event_dict.items() if k not in _PRETTY_SKIPPED}
        lines = [f"EVENT: {fields.pop('event', 'unknown_event')}"]
        for key, value in fields.items():
            if isinstance(value, (dict, list)):
                value = str(value).replace(", ", ",\n    ")
            lines.append(f"{key}: {value}")
        lines.append("-" * 50)
        return "\n".join(lines)


def _build_handlers(config: Config, stream: TextIO) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(stream)]

    if config.save_to_file:
        handlers.append(
            logging.handlers.RotatingFileHandler(
                filename=config.log_file_path,
                maxBytes=config.max_log_file_size,
                backupCount=config.backup_count,
                encoding="utf-8",
            )
        )

    for handler in handlers:
        handler.setFormatter(logging.Formatter("%(message)s"))
    return handlers


def setup_logging(config: Config, stream: Optional[TextIO] = None) -> None:
    """
    Route structlog through the standard library root logger.

    Args:
        config: Application configuration (level, layout, file rotation)
        stream: Console stream, stderr unless given
    """
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            EventRenderer(pretty=config.enable_pretty_print),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper()),
        handlers=_build_handlers(config, stream if stream is not None else sys.stderr),
        force=True,
    )

    # uvicorn's own request lines would duplicate ours
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


class TimedLogger:
    """
    Context manager that logs one debug event with the time spent inside it.

    The event carries ``elapsed_ms`` and, when an exception escapes the
    block, ``failed=True``. The exception itself is not suppressed.
    """

    def __init__(self, logger: Any, event: str, **context: Any):
        self.logger = logger
        self.event = event
        self.context = context
        self._started = 0.0

    def __enter__(self) -> "TimedLogger":
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        fields = dict(self.context)
        if exc_type is not None:
            fields["failed"] = True
        fields["elapsed_ms"] = round((time.perf_counter() - self._started) * 1000, 2)
        self.logger.debug(self.event, **fields)


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name)
