"""Dispatch error definitions.

Every error here is reported to the client inside a JSON-RPC error envelope
whose message is ``str(error)``.
"""

from __future__ import annotations


class MCPError(RuntimeError):
    """Base class for failures reported back to the client."""


class NotInitializedError(MCPError):
    """Raised when a method other than initialize arrives before initialize."""

    def __init__(self) -> None:
        super().__init__("server not initialized")


class InvalidParamsError(MCPError):
    """Raised when request params do not have the shape a method needs."""


class ToolArgumentError(InvalidParamsError):
    """Raised by a tool when its arguments are missing or mistyped."""


class UnknownToolError(MCPError):
    """Raised when tools/call names a tool the catalog does not have."""

    def __init__(self, name: str) -> None:
        super().__init__(f"unknown tool: {name}")
        self.name = name


class MethodNotFoundError(MCPError):
    """Raised when a request names a method the server does not serve."""

    def __init__(self, method: str) -> None:
        super().__init__(f"method not found: {method}")
        self.method = method
