"""
HTTP client for the MCP server.

Sends JSON-RPC requests and batches to the ``/mcp`` endpoint of a server
started with the HTTP transport.

Usage:
    async with HTTPMCPClient("http://localhost:8080") as client:
        await client.initialize("my-client", "1.0.0")
        result = await client.call_tool("echo", {"text": "hello"})
"""

from typing import Any, Dict, List, Optional

import httpx

from common.logging import get_logger
from .jsonrpc import (
    JSONRPCErrorResponse,
    JSONRPCHandler,
    JSONRPCRequest,
    JSONRPCResult,
    MCPMethods,
    MCP_PROTOCOL_VERSION,
)

logger = get_logger(__name__)


class MCPClientError(Exception):
    """Raised when a request fails at the HTTP level or returns a JSON-RPC error."""


class HTTPMCPClient:
    """Async client for the MCP HTTP transport."""

    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.mcp_url = f"{self.base_url}/mcp"
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self.request_id_counter = 0

    async def __aenter__(self) -> "HTTPMCPClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self.client.aclose()

    def _next_request_id(self) -> int:
        self.request_id_counter += 1
        return self.request_id_counter

    def build_request(self, method: str, params: Optional[Any] = None) -> JSONRPCRequest:
        """Create a request with the next request id."""
        return JSONRPCHandler.create_request(
            id=self._next_request_id(), method=method, params=params
        )

    async def _post(self, payload: Any) -> Any:
        try:
            response = await self.client.post(self.mcp_url, json=payload)
        except httpx.HTTPError as e:
            raise MCPClientError(f"failed to send HTTP request: {e}") from e

        if response.status_code != 200:
            raise MCPClientError(f"HTTP error: {response.status_code} - {response.text}")

        try:
            return response.json()
        except ValueError as e:
            raise MCPClientError(f"failed to decode response: {e}") from e

    async def send_request(self, request: JSONRPCRequest) -> JSONRPCResult:
        """Send one request and return its response."""
        data = await self._post(request.model_dump(exclude_none=True))
        try:
            return JSONRPCHandler.parse_response(data)
        except ValueError as e:
            raise MCPClientError(f"failed to unmarshal response: {e}") from e

    async def send_batch(self, requests: List[JSONRPCRequest]) -> List[JSONRPCResult]:
        """Send a batch; responses come back in request order."""
        data = await self._post([request.model_dump(exclude_none=True) for request in requests])
        if not isinstance(data, list):
            raise MCPClientError(f"failed to unmarshal batch response: {data!r}")
        try:
            return [JSONRPCHandler.parse_response(item) for item in data]
        except ValueError as e:
            raise MCPClientError(f"failed to unmarshal batch response: {e}") from e

    async def call(self, method: str, params: Optional[Any] = None) -> Any:
        """Send ``method`` and return its result, raising on a JSON-RPC error."""
        response = await self.send_request(self.build_request(method, params))
        if isinstance(response, JSONRPCErrorResponse):
            logger.info(event="mcp_request_failed", method=method, error=response.error.message)
            raise MCPClientError(f"{method} error: {response.error.message}")
        return response.result

    async def initialize(self, client_name: str, client_version: str) -> Dict[str, Any]:
        return await self.call(
            MCPMethods.INITIALIZE,
            {
                "protocolVersion": MCP_PROTOCOL_VERSION,
                "capabilities": {},
                "clientInfo": {"name": client_name, "version": client_version},
            },
        )

    async def list_tools(self) -> List[Dict[str, Any]]:
        result = await self.call(MCPMethods.TOOLS_LIST, {})
        return result["tools"]

    async def list_resources(self) -> List[Dict[str, Any]]:
        result = await self.call(MCPMethods.RESOURCES_LIST, {})
        return result["resources"]

    async def read_resource(self, uri: str) -> List[Dict[str, Any]]:
        result = await self.call(MCPMethods.RESOURCES_READ, {"uri": uri})
        return result["contents"]

    async def call_tool(self, name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        return await self.call(MCPMethods.TOOLS_CALL, {"name": name, "arguments": arguments})
