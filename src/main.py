"""
Main entry point for the MCP server.

Serves one MCPDispatcher over either transport:
    python src/main.py --transport stdio
    python src/main.py --transport http --port 8080
"""

# Standard library imports
import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

# Third-party imports
import uvicorn
from dotenv import load_dotenv

# Local imports
from common.config import Config, load_config
from common.logging import get_logger, setup_logging
from mcp_core.dispatcher import MCPDispatcher
from mcp_core.jsonrpc import MCPImplementation, MCP_PROTOCOL_VERSION
from mcp_core.transports import StdioTransport, create_http_app

logger = get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Minimal MCP server")
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="Transport to serve the MCP protocol over",
    )
    parser.add_argument("--port", type=int, help="Override the HTTP port")
    parser.add_argument("--host", type=str, help="Override the HTTP host")
    parser.add_argument("--config", type=Path, help="Path to config.yaml")
    return parser.parse_args(argv)


def build_dispatcher(config: Config) -> MCPDispatcher:
    """Create the process-wide dispatcher."""
    return MCPDispatcher(
        server_info=MCPImplementation(name=config.server.name, version=config.server.version)
    )


async def run_stdio(dispatcher: MCPDispatcher) -> None:
    """Serve stdin/stdout until EOF."""
    await StdioTransport(dispatcher).run()


def run_http(dispatcher: MCPDispatcher, config: Config, host: str, port: int) -> None:
    """Serve the HTTP transport with uvicorn."""
    app = create_http_app(dispatcher, config)

    logger.info(event="starting_server", host=host, port=port)

    # Run uvicorn synchronously (it creates its own event loop)
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_config=None,  # Use our custom logging setup
        access_log=False,  # Disable default access logs
    )


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    load_dotenv()

    try:
        args = parse_args(argv)
        config = load_config(args.config)
        setup_logging(config)

        logger.info(
            event="application_starting",
            transport=args.transport,
            server=config.server.name,
            version=config.server.version,
            protocol_version=MCP_PROTOCOL_VERSION,
        )

        dispatcher = build_dispatcher(config)

        if args.transport == "http":
            run_http(
                dispatcher,
                config,
                host=args.host or config.http.host,
                port=args.port or config.http.port,
            )
        else:
            asyncio.run(run_stdio(dispatcher))

        logger.info(event="application_shutdown", reason="Server stopped")

    except KeyboardInterrupt:
        logger.info(event="application_shutdown", reason="Keyboard interrupt")
    except Exception as e:
        logger.critical(event="application_crashed", error=str(e), error_type=type(e).__name__)
        sys.exit(1)


if __name__ == "__main__":
    main()
