"""
HTTP Transport for MCP

Exposes the dispatcher over four fixed routes:
- POST /mcp - JSON-RPC endpoint (single request or batch)
- GET /health - Health check
- GET /info - Server information
- GET / - Server metadata and usage

Every response carries the same permissive CORS headers, and an OPTIONS
request to any path is answered immediately with an empty 200.
"""

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.requests import ClientDisconnect

from common.config import Config
from common.logging import get_logger
from ..dispatcher import MCPDispatcher
from ..jsonrpc import JSONRPCHandler, MCP_PROTOCOL_VERSION, PARSE_ERROR

logger = get_logger(__name__)

INVALID_REQUEST_MESSAGE = "Invalid JSON-RPC request"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


class HTTPMCPServer:
    """Wraps an MCPDispatcher in a FastAPI application."""

    def __init__(self, dispatcher: MCPDispatcher, config: Optional[Config] = None):
        self.dispatcher = dispatcher
        self.config = config or Config()
        self.app = FastAPI(title="MCP HTTP Server", version=self.config.server.version)

        self._setup_middleware()
        self._setup_routes()

    def _setup_middleware(self) -> None:
        @self.app.middleware("http")
        async def apply_cors(request: Request, call_next) -> Response:
            # Preflight requests never reach the routes
            if request.method == "OPTIONS":
                return Response(status_code=200, headers=CORS_HEADERS)

            response = await call_next(request)
            response.headers.update(CORS_HEADERS)
            return response

    def _setup_routes(self) -> None:
        @self.app.post("/mcp")
        async def handle_mcp(request: Request) -> Response:
            """
            Main JSON-RPC endpoint for MCP protocol.

            The response mirrors the request shape: an object for a single
            request, an array for a batch. Protocol-level failures are
            reported inside the JSON-RPC envelope with HTTP 200.
            """
            try:
                body = await request.body()
            except ClientDisconnect as e:
                logger.warning(event="request_body_read_failed", error=str(e))
                return JSONResponse({"error": "Failed to read request body"}, status_code=400)

            content = await self._dispatch_body(body)

            try:
                return JSONResponse(content=content)
            except (TypeError, ValueError) as e:
                logger.error(event="response_encode_failed", error=str(e))
                return JSONResponse({"error": "Failed to encode response"}, status_code=500)

        @self.app.get("/health")
        async def health_check() -> JSONResponse:
            """Health check endpoint."""
            return JSONResponse({"status": "healthy", "server": "mcp-http-server"})

        @self.app.get("/info")
        async def server_info() -> JSONResponse:
            """Server information endpoint."""
            return JSONResponse(
                {
                    "name": self.dispatcher.server_info.name,
                    "version": self.dispatcher.server_info.version,
                    "protocol": MCP_PROTOCOL_VERSION,
                    "transport": "http",
                    "description": "HTTP-based MCP server",
                }
            )

        @self.app.get("/")
        async def root() -> JSONResponse:
            """Basic information about the server."""
            return JSONResponse(
                {
                    "name": "MCP HTTP Server",
                    "version": self.dispatcher.server_info.version,
                    "protocol": MCP_PROTOCOL_VERSION,
                    "transport": "http",
                    "description": "HTTP-based Model Context Protocol server",
                    "endpoints": {
                        "mcp": "/mcp - Main MCP protocol endpoint",
                        "health": "/health - Health check",
                        "info": "/info - Server information",
                    },
                    "usage": "Send POST requests to /mcp with JSON-RPC 2.0 formatted MCP requests",
                }
            )

    async def _dispatch_body(self, body: bytes) -> Any:
        # Invalid UTF-8 inside a string value becomes U+FFFD
        payload = JSONRPCHandler.decode_payload(body.decode("utf-8", errors="replace"))

        if payload is None:
            logger.info(event="invalid_request_body", body_size=len(body))
            return JSONRPCHandler.create_error_response(
                None, PARSE_ERROR, INVALID_REQUEST_MESSAGE
            ).model_dump()

        if JSONRPCHandler.is_batch(payload):
            responses = await self.dispatcher.handle_batch(payload)
            return [response.model_dump() for response in responses]

        response = await self.dispatcher.handle_one(payload)
        return response.model_dump()


def create_http_app(dispatcher: MCPDispatcher, config: Optional[Config] = None) -> FastAPI:
    """Create the FastAPI application serving ``dispatcher``."""
    return HTTPMCPServer(dispatcher, config).app
