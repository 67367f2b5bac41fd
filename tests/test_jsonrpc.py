"""
Tests for the JSON-RPC protocol layer.

Covers envelope construction, the single/batch decoding rules shared by both
transports, and wire serialization of responses.
"""

import json

import pytest

from mcp_core.jsonrpc import (
    JSONRPCErrorResponse,
    JSONRPCHandler,
    JSONRPCRequest,
    JSONRPCResponse,
    PARSE_ERROR,
    Resource,
)


class TestJSONRPCProtocol:
    """Test JSON-RPC 2.0 envelope construction."""

    def test_create_request(self):
        """Test JSON-RPC request creation."""
        request = JSONRPCHandler.create_request(
            id="test-123", method="tools/list", params={"param1": "value1"}
        )

        assert request.jsonrpc == "2.0"
        assert request.id == "test-123"
        assert request.method == "tools/list"
        assert request.params == {"param1": "value1"}

    def test_create_response(self):
        """Test JSON-RPC response creation."""
        response = JSONRPCHandler.create_response(id="test-123", result={"success": True})

        assert response.jsonrpc == "2.0"
        assert response.id == "test-123"
        assert response.result == {"success": True}

    def test_create_error_response(self):
        """Test JSON-RPC error response creation."""
        error_response = JSONRPCHandler.create_error_response(
            id="test-123", code=-32601, message="method not found: nope"
        )

        assert error_response.jsonrpc == "2.0"
        assert error_response.id == "test-123"
        assert error_response.error.code == -32601
        assert error_response.error.message == "method not found: nope"

    def test_error_response_omits_missing_data(self):
        """Error data is left off the wire when there is none."""
        error_response = JSONRPCHandler.create_error_response(None, PARSE_ERROR, "Parse error")

        assert error_response.model_dump() == {
            "jsonrpc": "2.0",
            "id": None,
            "error": {"code": -32700, "message": "Parse error"},
        }

    def test_error_response_keeps_data(self):
        error_response = JSONRPCHandler.create_error_response(1, PARSE_ERROR, "bad", data={"x": 1})

        assert error_response.model_dump()["error"]["data"] == {"x": 1}

    def test_success_and_error_are_exclusive(self):
        """Each response shape carries exactly one of result/error."""
        success = JSONRPCHandler.create_response(1, {}).model_dump()
        failure = JSONRPCHandler.create_error_response(1, -32601, "x").model_dump()

        assert "result" in success and "error" not in success
        assert "error" in failure and "result" not in failure

    def test_resource_omits_optional_fields(self):
        resource = Resource(uri="example://a", name="A")

        assert resource.model_dump(exclude_none=True) == {"uri": "example://a", "name": "A"}


class TestDecoding:
    """Test single/batch payload decoding."""

    def test_decode_single(self):
        payload = JSONRPCHandler.decode_payload(
            '{"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {}}'
        )

        assert isinstance(payload, JSONRPCRequest)
        assert payload.method == "initialize"
        assert payload.params == {}

    def test_decode_batch(self):
        payload = JSONRPCHandler.decode_payload(
            '[{"jsonrpc": "2.0", "id": 1, "method": "a"}, {"jsonrpc": "2.0", "id": 2, "method": "b"}]'
        )

        assert JSONRPCHandler.is_batch(payload)
        assert [request.method for request in payload] == ["a", "b"]

    def test_decode_empty_batch(self):
        """An empty array is a batch, not a decode failure."""
        payload = JSONRPCHandler.decode_payload("[]")

        assert payload == []
        assert payload is not None

    def test_decode_bytes(self):
        payload = JSONRPCHandler.decode_payload(b'{"id": "x", "method": "tools/list"}')

        assert isinstance(payload, JSONRPCRequest)
        assert payload.id == "x"

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "not json",
            '{"jsonrpc": "2.0", "id": 1, "method": "initialize"',
            '{"method": 42}',
            '[{"method": "a"}, 5]',
            '"just a string"',
            '{"id": 1} trailing',
        ],
    )
    def test_decode_failure(self, raw):
        assert JSONRPCHandler.decode_payload(raw) is None

    def test_multiline_payload(self):
        raw = '{\n  "jsonrpc": "2.0",\n  "id": 7,\n  "method": "tools/list"\n}\n'

        payload = JSONRPCHandler.decode_payload(raw)

        assert isinstance(payload, JSONRPCRequest)
        assert payload.id == 7

    def test_missing_method_decodes_as_empty(self):
        payload = JSONRPCHandler.decode_single('{"id": 3}')

        assert payload is not None
        assert payload.method == ""

    def test_null_members_decode_as_defaults(self):
        payload = JSONRPCHandler.decode_payload('{"jsonrpc": null, "id": 7, "method": null}')

        assert isinstance(payload, JSONRPCRequest)
        assert payload.jsonrpc == "2.0"
        assert payload.method == ""
        assert payload.id == 7

    def test_null_method_in_batch(self):
        payload = JSONRPCHandler.decode_payload('[{"id": 1, "method": null}]')

        assert isinstance(payload, list)
        assert payload[0].method == ""

    @pytest.mark.parametrize("request_id", [1, "1", 2.5, None, "req-abc", 0])
    def test_id_kept_verbatim(self, request_id):
        """The id keeps its JSON type through decode and encode."""
        raw = json.dumps({"jsonrpc": "2.0", "id": request_id, "method": "x"})

        request = JSONRPCHandler.decode_single(raw)
        response = JSONRPCHandler.create_response(request.id, {})
        echoed = json.loads(json.dumps(response.model_dump()))["id"]

        assert echoed == request_id
        assert type(echoed) is type(request_id)

    def test_unknown_fields_ignored(self):
        payload = JSONRPCHandler.decode_single('{"id": 1, "method": "x", "extra": true}')

        assert payload is not None


class TestParseResponse:
    """Test response parsing used by the HTTP client."""

    def test_parse_success(self):
        response = JSONRPCHandler.parse_response({"jsonrpc": "2.0", "id": 1, "result": {"a": 1}})

        assert isinstance(response, JSONRPCResponse)
        assert response.result == {"a": 1}

    def test_parse_error(self):
        response = JSONRPCHandler.parse_response(
            {"jsonrpc": "2.0", "id": None, "error": {"code": -32700, "message": "bad"}}
        )

        assert isinstance(response, JSONRPCErrorResponse)
        assert response.error.code == -32700

    @pytest.mark.parametrize("data", [[], "x", {"jsonrpc": "2.0", "id": 1}])
    def test_parse_invalid(self, data):
        with pytest.raises(ValueError):
            JSONRPCHandler.parse_response(data)
