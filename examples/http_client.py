#!/usr/bin/env python3
"""
HTTP MCP Client Example

Walks through a session against a server started with the HTTP transport:
initialize, list tools, call the echo tool, then send a batch.

Usage:
    python src/main.py --transport http &
    python examples/http_client.py [base_url]
"""

import asyncio
import sys
from pathlib import Path

# Add src to Python path for local testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from mcp_core.http_client import HTTPMCPClient, MCPClientError
from mcp_core.jsonrpc import MCPMethods


async def main(base_url: str) -> None:
    print("=== HTTP MCP Client Example ===")

    async with HTTPMCPClient(base_url) as client:
        try:
            print("\n1. Initializing MCP connection...")
            result = await client.initialize("http-client-example", "1.0.0")
            print(f"Initialized MCP connection: {result}")

            print("\n2. Listing available tools...")
            tools = await client.list_tools()
            print(f"Available tools: {tools}")

            print("\n3. Calling echo tool...")
            result = await client.call_tool("echo", {"text": "Hello from Python HTTP client!"})
            print(f"Tool result: {result}")

            print("\n4. Making batch request...")
            responses = await client.send_batch(
                [
                    client.build_request(MCPMethods.TOOLS_LIST, {}),
                    client.build_request(MCPMethods.RESOURCES_LIST, {}),
                ]
            )
            for response in responses:
                print(f"Batch response: {response.model_dump()}")

        except MCPClientError as e:
            print(f"Error: {e}")
            return

    print("\n=== Example completed ===")


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8080"))
