"""Tests for the HTTP client, run against the app in-process."""

import httpx
import pytest

from mcp_core.dispatcher import MCPDispatcher
from mcp_core.http_client import HTTPMCPClient, MCPClientError
from mcp_core.jsonrpc import JSONRPCErrorResponse, JSONRPCResponse, MCPMethods
from mcp_core.transports.http import create_http_app


def make_client(app=None) -> HTTPMCPClient:
    app = app or create_http_app(MCPDispatcher())
    return HTTPMCPClient("http://testserver", transport=httpx.ASGITransport(app=app))


@pytest.mark.asyncio
async def test_full_session():
    async with make_client() as client:
        init = await client.initialize("test-client", "1.0.0")
        tools = await client.list_tools()
        resources = await client.list_resources()
        contents = await client.read_resource("example://test")
        result = await client.call_tool("echo", {"text": "Hello from the HTTP client!"})

    assert init["protocolVersion"] == "2024-11-05"
    assert [tool["name"] for tool in tools] == ["echo"]
    assert resources[0]["uri"] == "example://test"
    assert contents[0]["mimeType"] == "text/plain"
    assert result["content"][0]["text"] == "Echo: Hello from the HTTP client!"


@pytest.mark.asyncio
async def test_request_ids_increment():
    async with make_client() as client:
        first = client.build_request(MCPMethods.INITIALIZE)
        second = client.build_request(MCPMethods.TOOLS_LIST)

    assert (first.id, second.id) == (1, 2)


@pytest.mark.asyncio
async def test_error_raises():
    async with make_client() as client:
        with pytest.raises(MCPClientError, match="server not initialized"):
            await client.list_tools()


@pytest.mark.asyncio
async def test_send_request_returns_error_response():
    async with make_client() as client:
        response = await client.send_request(client.build_request("nope"))

    assert isinstance(response, JSONRPCErrorResponse)
    assert response.error.message == "method not found: nope"


@pytest.mark.asyncio
async def test_send_batch():
    async with make_client() as client:
        responses = await client.send_batch(
            [
                client.build_request(MCPMethods.INITIALIZE, {}),
                client.build_request(MCPMethods.TOOLS_LIST, {}),
                client.build_request(MCPMethods.RESOURCES_LIST, {}),
            ]
        )

    assert [r.id for r in responses] == [1, 2, 3]
    assert all(isinstance(r, JSONRPCResponse) for r in responses)


@pytest.mark.asyncio
async def test_http_error_status():
    def reject(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="Failed to encode response")

    client = HTTPMCPClient("http://testserver", transport=httpx.MockTransport(reject))
    try:
        with pytest.raises(MCPClientError, match="HTTP error: 500"):
            await client.initialize("test-client", "1.0.0")
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_connection_failure():
    def fail(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = HTTPMCPClient("http://testserver", transport=httpx.MockTransport(fail))
    try:
        with pytest.raises(MCPClientError, match="failed to send HTTP request"):
            await client.send_request(client.build_request(MCPMethods.INITIALIZE))
    finally:
        await client.close()
