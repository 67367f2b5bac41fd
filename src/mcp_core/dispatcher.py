"""
MCP Request Dispatcher

Holds the session state and the catalog, routes a decoded request to its
handler and wraps the outcome into a JSON-RPC response. One dispatcher is
constructed per process and handed to whichever transport serves it; the
transports never touch session state themselves.

Session lifecycle:
- Uninitialized: only ``initialize`` succeeds, every other method fails
  with "server not initialized"
- Initialized: reached by a successful ``initialize``, never left
"""

import threading
from typing import Any, Awaitable, Callable, Dict, List, Optional

from common.logging import TimedLogger, get_logger
from .catalog import Catalog, StaticCatalog
from .errors import InvalidParamsError, MCPError, MethodNotFoundError, NotInitializedError
from .jsonrpc import (
    JSONRPCHandler,
    JSONRPCRequest,
    JSONRPCResult,
    MCPCapabilities,
    MCPImplementation,
    MCPInitializeResult,
    MCPMethods,
    MCPResourcesListResult,
    MCPResourcesReadResult,
    MCPToolsListResult,
    MCP_PROTOCOL_VERSION,
    METHOD_NOT_FOUND,
    SERVER_NAME,
    SERVER_VERSION,
)

logger = get_logger(__name__)

MethodHandler = Callable[[Any], Awaitable[Dict[str, Any]]]


class SessionState:
    """
    Initialization flag shared by every request the dispatcher serves.

    HTTP requests are handled concurrently (on the event loop or in worker
    threads), so reads and the single write go through a lock.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._initialized = False

    @property
    def initialized(self) -> bool:
        with self._lock:
            return self._initialized

    def mark_initialized(self) -> None:
        with self._lock:
            self._initialized = True


class MCPDispatcher:
    """
    Routes JSON-RPC requests to the MCP method handlers.

    Every handler failure becomes an error response with code
    METHOD_NOT_FOUND and the failure's description as message; no failure
    escapes ``handle_one``.
    """

    def __init__(
        self,
        catalog: Optional[Catalog] = None,
        server_info: Optional[MCPImplementation] = None,
    ):
        self.catalog = catalog if catalog is not None else StaticCatalog()
        self.state = SessionState()
        self.server_info = server_info or MCPImplementation(
            name=SERVER_NAME, version=SERVER_VERSION
        )
        self.capabilities = MCPCapabilities(
            resources={"subscribe": True, "listChanged": True},
            tools={"listChanged": True},
        )

        self._handlers: Dict[str, MethodHandler] = {
            MCPMethods.INITIALIZE: self._handle_initialize,
            MCPMethods.RESOURCES_LIST: self._handle_resources_list,
            MCPMethods.RESOURCES_READ: self._handle_resources_read,
            MCPMethods.TOOLS_LIST: self._handle_tools_list,
            MCPMethods.TOOLS_CALL: self._handle_tools_call,
        }

    @property
    def initialized(self) -> bool:
        return self.state.initialized

    async def handle_one(self, request: JSONRPCRequest) -> JSONRPCResult:
        """Answer one request; the response echoes ``request.id`` unchanged."""
        with TimedLogger(logger, "request_handled", method=request.method):
            try:
                handler = self._handlers.get(request.method)
                if handler is None:
                    raise MethodNotFoundError(request.method)
                result = await handler(request.params)
            except MCPError as e:
                logger.info(event="request_failed", method=request.method, error=str(e))
                return JSONRPCHandler.create_error_response(request.id, METHOD_NOT_FOUND, str(e))
            except Exception as e:
                logger.error(
                    event="handler_error",
                    method=request.method,
                    error=str(e),
                    error_type=type(e).__name__,
                    exc_info=True,
                )
                return JSONRPCHandler.create_error_response(request.id, METHOD_NOT_FOUND, str(e))

        return JSONRPCHandler.create_response(request.id, result)

    async def handle_batch(self, requests: List[JSONRPCRequest]) -> List[JSONRPCResult]:
        """Answer a batch; response[i] answers requests[i]."""
        responses = []
        for request in requests:
            responses.append(await self.handle_one(request))
        return responses

    def _require_initialized(self) -> None:
        if not self.state.initialized:
            raise NotInitializedError()

    async def _handle_initialize(self, params: Any) -> Dict[str, Any]:
        self.state.mark_initialized()

        if isinstance(params, dict):
            client_version = params.get("protocolVersion")
            if client_version is not None and client_version != MCP_PROTOCOL_VERSION:
                logger.warning(
                    event="protocol_version_mismatch",
                    client_version=client_version,
                    server_version=MCP_PROTOCOL_VERSION,
                )
            logger.info(event="client_initialized", client_info=params.get("clientInfo"))
        else:
            logger.info(event="client_initialized")

        result = MCPInitializeResult(
            protocolVersion=MCP_PROTOCOL_VERSION,
            capabilities=self.capabilities,
            serverInfo=self.server_info,
        )
        return result.model_dump(exclude_none=True)

    async def _handle_resources_list(self, params: Any) -> Dict[str, Any]:
        self._require_initialized()
        resources = await self.catalog.list_resources()
        return MCPResourcesListResult(resources=resources).model_dump(exclude_none=True)

    async def _handle_resources_read(self, params: Any) -> Dict[str, Any]:
        self._require_initialized()
        uri = params.get("uri") if isinstance(params, dict) else None
        contents = await self.catalog.read_resource(uri)
        return MCPResourcesReadResult(contents=contents).model_dump(exclude_none=True)

    async def _handle_tools_list(self, params: Any) -> Dict[str, Any]:
        self._require_initialized()
        tools = await self.catalog.list_tools()
        return MCPToolsListResult(tools=tools).model_dump(exclude_none=True)

    async def _handle_tools_call(self, params: Any) -> Dict[str, Any]:
        self._require_initialized()

        if not isinstance(params, dict):
            raise InvalidParamsError("invalid params")

        name = params.get("name")
        if not isinstance(name, str):
            raise InvalidParamsError("tool name required")

        result = await self.catalog.call_tool(name, params.get("arguments"))
        logger.info(event="tool_called", tool_name=name)
        return result.model_dump(exclude_none=True)
