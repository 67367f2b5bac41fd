"""
MCP transports.

Both transports are thin front ends over one MCPDispatcher.
"""

from .http import HTTPMCPServer, create_http_app
from .stdio import MessageBuffer, StdioTransport

__all__ = [
    "HTTPMCPServer",
    "create_http_app",
    "MessageBuffer",
    "StdioTransport",
]
