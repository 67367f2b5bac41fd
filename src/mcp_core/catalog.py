"""
Tool and Resource Catalog for MCP Server

The dispatcher only talks to a catalog through the ``Catalog`` interface:
list resources, list tools, read a resource, call a tool. The shipped
``StaticCatalog`` holds one resource and the ``echo`` tool; a real registry
plugs in behind the same interface without touching the dispatcher.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional

from common.logging import get_logger
from .errors import ToolArgumentError, UnknownToolError
from .jsonrpc import MCPResourceContents, MCPTextContent, MCPToolsCallResult, Resource, Tool

logger = get_logger(__name__)

DEFAULT_RESOURCE = Resource(
    uri="example://test",
    name="Test Resource",
    description="A simple test resource",
    mimeType="text/plain",
)

DEFAULT_RESOURCE_TEXT = "This is a test content from the MCP server"


class ToolHandler(ABC):
    """Abstract base class for tool handlers."""

    @abstractmethod
    async def execute(self, arguments: Any) -> MCPToolsCallResult:
        """Execute the tool with the raw ``arguments`` value from the request."""

    @abstractmethod
    def get_tool_definition(self) -> Tool:
        """Get the tool definition for this handler."""


class EchoTool(ToolHandler):
    """Echo back the ``text`` argument."""

    def get_tool_definition(self) -> Tool:
        return Tool(
            name="echo",
            description="Echo back the input text",
            inputSchema={
                "type": "object",
                "properties": {
                    "text": {
                        "type": "string",
                        "description": "Text to echo back",
                    },
                },
                "required": ["text"],
            },
        )

    async def execute(self, arguments: Any) -> MCPToolsCallResult:
        if not isinstance(arguments, dict):
            raise ToolArgumentError("arguments required")

        text = arguments.get("text")
        if not isinstance(text, str):
            raise ToolArgumentError("text argument required")

        return MCPToolsCallResult(content=[MCPTextContent(text=f"Echo: {text}")])


class Catalog(ABC):
    """Read-only view of the tools and resources a server exposes."""

    @abstractmethod
    async def list_resources(self) -> List[Resource]:
        """Resources in insertion order."""

    @abstractmethod
    async def list_tools(self) -> List[Tool]:
        """Tools in insertion order."""

    @abstractmethod
    async def read_resource(self, uri: Optional[str]) -> List[MCPResourceContents]:
        """Contents for ``uri``."""

    @abstractmethod
    async def call_tool(self, name: str, arguments: Any) -> MCPToolsCallResult:
        """Run tool ``name``; raises ``UnknownToolError`` or ``ToolArgumentError``."""


class StaticCatalog(Catalog):
    """
    Catalog fixed at construction time.

    Resources and tool handlers are loaded once and never change afterwards,
    so concurrent readers need no locking.
    """

    def __init__(
        self,
        resources: Optional[Iterable[Resource]] = None,
        handlers: Optional[Iterable[ToolHandler]] = None,
    ):
        self._resources: List[Resource] = list(
            resources if resources is not None else [DEFAULT_RESOURCE]
        )
        self._handlers: Dict[str, ToolHandler] = {}
        self._tools: Dict[str, Tool] = {}

        for handler in handlers if handlers is not None else [EchoTool()]:
            tool = handler.get_tool_definition()
            if tool.name in self._tools:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            self._tools[tool.name] = tool
            self._handlers[tool.name] = handler

        logger.info(
            event="catalog_loaded",
            resources=[r.uri for r in self._resources],
            tools=list(self._tools),
        )

    async def list_resources(self) -> List[Resource]:
        return list(self._resources)

    async def list_tools(self) -> List[Tool]:
        return list(self._tools.values())

    async def read_resource(self, uri: Optional[str]) -> List[MCPResourceContents]:
        # Resolution by URI belongs to a real registry; every read returns
        # the fixed test content.
        return [
            MCPResourceContents(
                uri=DEFAULT_RESOURCE.uri,
                mimeType=DEFAULT_RESOURCE.mimeType,
                text=DEFAULT_RESOURCE_TEXT,
            )
        ]

    async def call_tool(self, name: str, arguments: Any) -> MCPToolsCallResult:
        handler = self._handlers.get(name)
        if handler is None:
            raise UnknownToolError(name)
        return await handler.execute(arguments)
