"""
JSON-RPC 2.0 Protocol Implementation for MCP

This module holds the JSON-RPC envelope and the MCP payload shapes exchanged
by the server. Both transports (stdio and HTTP) decode incoming payloads with
the same rules defined here, so a payload that is a single request on one
transport is a single request on the other.

Reference: https://www.jsonrpc.org/specification
MCP Spec: https://spec.modelcontextprotocol.io/specification/2024-11-05/basic/
"""

from typing import Any, Dict, List, Optional, Union, Literal

from pydantic import (
    BaseModel,
    Field,
    SerializerFunctionWrapHandler,
    TypeAdapter,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_serializer,
)

# JSON-RPC version constant
JSONRPC_VERSION = "2.0"

# MCP protocol revision spoken by this server
MCP_PROTOCOL_VERSION = "2024-11-05"

SERVER_NAME = "simple-mcp-server"
SERVER_VERSION = "1.0.0"

# Standard JSON-RPC error codes. Every handler-level failure is reported
# with METHOD_NOT_FOUND, including argument and precondition failures.
PARSE_ERROR = -32700
METHOD_NOT_FOUND = -32601


class JSONRPCError(BaseModel):
    """JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Optional[Any] = None

    @model_serializer(mode="wrap")
    def omit_empty_data(self, handler: SerializerFunctionWrapHandler) -> Dict[str, Any]:
        serialized = handler(self)
        if self.data is None:
            serialized.pop("data", None)
        return serialized


class JSONRPCRequest(BaseModel):
    """
    JSON-RPC 2.0 request message.

    The id is opaque: whatever JSON value the client sent is echoed back
    unchanged. A missing or null id decodes as None. A missing or null method
    decodes as the empty string, which then fails routing like any unknown
    method.
    """

    jsonrpc: str = JSONRPC_VERSION
    id: Any = None
    method: str = ""
    params: Any = None

    @field_validator("jsonrpc", "method", mode="before")
    @classmethod
    def null_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        # An explicit null reads the same as an absent member
        if value is None:
            return cls.model_fields[info.field_name].default
        return value


class JSONRPCResponse(BaseModel):
    """JSON-RPC 2.0 response message (success)."""

    jsonrpc: Literal["2.0"] = "2.0"
    id: Any = None
    result: Any


class JSONRPCErrorResponse(BaseModel):
    """JSON-RPC 2.0 response message (error)."""

    jsonrpc: Literal["2.0"] = "2.0"
    id: Any = None
    error: JSONRPCError


# A response is one of the two shapes, never a mix of both
JSONRPCResult = Union[JSONRPCResponse, JSONRPCErrorResponse]

# Batch support (array of JSON-RPC requests)
JSONRPCBatch = List[JSONRPCRequest]

# What a raw payload decodes to: one request, or a batch of them
JSONRPCPayload = Union[JSONRPCRequest, JSONRPCBatch]

_batch_adapter: TypeAdapter = TypeAdapter(JSONRPCBatch)


class MCPMethods:
    """MCP method names served by this server."""

    INITIALIZE = "initialize"

    RESOURCES_LIST = "resources/list"
    RESOURCES_READ = "resources/read"

    TOOLS_LIST = "tools/list"
    TOOLS_CALL = "tools/call"


class MCPCapabilities(BaseModel):
    """MCP server capabilities."""

    resources: Optional[Dict[str, Any]] = None
    tools: Optional[Dict[str, Any]] = None


class MCPImplementation(BaseModel):
    """MCP implementation info."""

    name: str
    version: str


class MCPInitializeResult(BaseModel):
    """Result for initialize response."""

    protocolVersion: str
    capabilities: MCPCapabilities
    serverInfo: MCPImplementation


class Resource(BaseModel):
    """A resource the server can list and read."""

    uri: str
    name: str
    description: Optional[str] = None
    mimeType: Optional[str] = None


class Tool(BaseModel):
    """A tool the server can call; inputSchema is a JSON Schema object."""

    name: str
    description: Optional[str] = None
    inputSchema: Dict[str, Any] = Field(default_factory=dict)


class MCPResourceContents(BaseModel):
    """Text contents of a resource."""

    uri: str
    mimeType: Optional[str] = None
    text: str


class MCPResourcesListResult(BaseModel):
    """Result for resources/list response."""

    resources: List[Resource]


class MCPResourcesReadResult(BaseModel):
    """Result for resources/read response."""

    contents: List[MCPResourceContents]


class MCPToolsListResult(BaseModel):
    """Result for tools/list response."""

    tools: List[Tool]


class MCPContentTypes:
    """Standard MCP content types."""

    TEXT = "text"


class MCPTextContent(BaseModel):
    """Text content for tool results."""

    type: str = MCPContentTypes.TEXT
    text: str


class MCPToolsCallResult(BaseModel):
    """Result for tools/call response."""

    content: List[MCPTextContent]
    isError: Optional[bool] = None


class JSONRPCHandler:
    """Handler for JSON-RPC message processing."""

    @staticmethod
    def create_request(id: Any, method: str, params: Optional[Any] = None) -> JSONRPCRequest:
        """Create a JSON-RPC request."""
        return JSONRPCRequest(id=id, method=method, params=params)

    @staticmethod
    def create_response(id: Any, result: Any) -> JSONRPCResponse:
        """Create a JSON-RPC success response."""
        return JSONRPCResponse(id=id, result=result)

    @staticmethod
    def create_error_response(
        id: Any, code: int, message: str, data: Optional[Any] = None
    ) -> JSONRPCErrorResponse:
        """Create a JSON-RPC error response."""
        error = JSONRPCError(code=code, message=message, data=data)
        return JSONRPCErrorResponse(id=id, error=error)

    @staticmethod
    def decode_single(raw: Union[str, bytes]) -> Optional[JSONRPCRequest]:
        """Decode raw text as one request object, or None if it is not one."""
        try:
            return JSONRPCRequest.model_validate_json(raw)
        except ValidationError:
            return None

    @staticmethod
    def decode_batch(raw: Union[str, bytes]) -> Optional[JSONRPCBatch]:
        """Decode raw text as an array of request objects, or None if it is not one."""
        try:
            return _batch_adapter.validate_json(raw)
        except ValidationError:
            return None

    @staticmethod
    def decode_payload(raw: Union[str, bytes]) -> Optional[JSONRPCPayload]:
        """
        Decode a raw payload as a single request, falling back to a batch.

        Returns None when the payload is neither. An empty array is a valid
        (empty) batch, so callers must test the result against None rather
        than for truthiness.
        """
        request = JSONRPCHandler.decode_single(raw)
        if request is not None:
            return request
        return JSONRPCHandler.decode_batch(raw)

    @staticmethod
    def is_batch(payload: Any) -> bool:
        """Check if a decoded payload is a batch."""
        return isinstance(payload, list)

    @staticmethod
    def parse_response(data: Any) -> JSONRPCResult:
        """Parse a raw JSON object into a success or error response."""
        if not isinstance(data, dict):
            raise ValueError(f"Invalid JSON-RPC response: {data!r}")
        if "error" in data:
            return JSONRPCErrorResponse.model_validate(data)
        if "result" in data:
            return JSONRPCResponse.model_validate(data)
        raise ValueError(f"Invalid JSON-RPC response: {data!r}")
