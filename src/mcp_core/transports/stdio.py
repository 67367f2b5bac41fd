"""
Standard I/O Transport for MCP

Enables MCP clients to spawn the server as a subprocess and talk to it over
stdin/stdout. Input is newline-delimited, but a request may also span
several physical lines: lines are accumulated until the buffer decodes as a
single request or as a batch. Every response is written as one line of
compact JSON.

Reference: https://modelcontextprotocol.io/specification/2024-11-05/basic/transports
"""

import asyncio
import io
import json
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Optional, TextIO

from common.logging import get_logger
from ..dispatcher import MCPDispatcher
from ..jsonrpc import JSONRPCHandler, JSONRPCPayload, JSONRPCResult, PARSE_ERROR

logger = get_logger(__name__)

INCOMPLETE_REQUEST_MESSAGE = "Incomplete JSON-RPC request"


def clean_text(line: str) -> str:
    """
    Return ``line`` as valid UTF-8 text.

    Undecodable input bytes that a reader passed through as surrogate escapes
    become U+FFFD, so the JSON decoder sees well-formed text.
    """
    try:
        return line.encode("utf-8", errors="surrogateescape").decode("utf-8", errors="replace")
    except UnicodeEncodeError:
        return line.encode("utf-8", errors="replace").decode("utf-8")


def stdin_reader() -> TextIO:
    """Read stdin as UTF-8, replacing invalid bytes instead of failing."""
    return io.TextIOWrapper(sys.stdin.buffer, encoding="utf-8", errors="replace")


class MessageBuffer:
    """
    Accumulates input lines until they form a complete JSON-RPC payload.

    A malformed single-line request cannot be told apart from the first line
    of a multi-line one, so it stays buffered until either later lines
    complete it or the input ends.
    """

    def __init__(self):
        self._buffer = ""

    @property
    def pending(self) -> bool:
        return bool(self._buffer.strip())

    def feed(self, line: str) -> Optional[JSONRPCPayload]:
        """
        Append one input line.

        Returns the decoded request or batch once the buffer holds one, and
        clears the buffer; returns None while the payload is incomplete.
        """
        self._buffer += clean_text(line.rstrip("\r\n")) + "\n"

        content = self._buffer.strip()
        if not content:
            self._buffer = ""
            return None

        payload = JSONRPCHandler.decode_payload(content)
        if payload is not None:
            self._buffer = ""
        return payload

    def drain(self) -> str:
        """Return and clear whatever is left over, stripped of whitespace."""
        remaining = self._buffer.strip()
        self._buffer = ""
        return remaining


class StdioTransport:
    """
    Standard I/O transport for MCP communication.

    Lines are processed strictly one after another: each line's responses are
    written before the next line is read.
    """

    def __init__(
        self,
        dispatcher: MCPDispatcher,
        reader: Optional[TextIO] = None,
        writer: Optional[TextIO] = None,
    ):
        """Initialize stdio transport."""
        self.dispatcher = dispatcher
        self.reader = reader if reader is not None else stdin_reader()
        self.writer = writer if writer is not None else sys.stdout
        self.buffer = MessageBuffer()
        self.executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="stdio")
        self.running = False

    async def run(self) -> None:
        """Serve requests until the input stream ends."""
        if self.running:
            return

        self.running = True
        logger.info(event="stdio_transport_started", message="MCP stdio transport started")
        loop = asyncio.get_running_loop()

        try:
            while True:
                line = await loop.run_in_executor(self.executor, self.reader.readline)
                if not line:  # EOF
                    break
                await self._handle_line(line)

            remaining = self.buffer.drain()
            if remaining:
                logger.warning(event="incomplete_request_at_eof", buffered_chars=len(remaining))
                await self._write_response(
                    JSONRPCHandler.create_error_response(
                        None, PARSE_ERROR, INCOMPLETE_REQUEST_MESSAGE
                    )
                )
        finally:
            self.running = False
            self.executor.shutdown(wait=False)
            logger.info(event="stdio_transport_stopped")

    async def _handle_line(self, line: str) -> None:
        payload = self.buffer.feed(line)
        if payload is None:
            return

        if JSONRPCHandler.is_batch(payload):
            responses = await self.dispatcher.handle_batch(payload)
            for response in responses:
                await self._write_response(response)
        else:
            await self._write_response(await self.dispatcher.handle_one(payload))

    async def _write_response(self, response: JSONRPCResult) -> None:
        await self._write_stdout(response.model_dump())

    async def _write_stdout(self, data: Dict[str, Any]) -> None:
        """Write one JSON-RPC message to the output stream as a single line."""
        try:
            message = json.dumps(data, separators=(",", ":"), allow_nan=False)
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(self.executor, self._write_line, message)
        except (OSError, TypeError, ValueError) as e:
            logger.error(event="stdout_write_error", error=str(e))

    def _write_line(self, message: str) -> None:
        self.writer.write(message + "\n")
        self.writer.flush()
