"""
Unit tests for wire models.

Tests cover:
- Descriptor aliases
- ToolResult constructors and wire shape
- ResourceReadResult constructors
- JSON-RPC request parsing
"""

import json

import pytest
from pydantic import ValidationError

from toolhost.errors import ToolExecutionError
from toolhost.schema import (
    JSON_MIME,
    TEXT_MIME,
    CallToolParams,
    ResourceContent,
    ResourceDescriptor,
    ResourceReadResult,
    RpcRequest,
    TextContent,
    ToolDescriptor,
    ToolResult,
    rpc_error,
    rpc_result,
)


class TestDescriptors:
    """Tests for tool and resource descriptors."""

    def test_tool_descriptor_wire_names(self) -> None:
        """input_schema is serialized as inputSchema."""
        descriptor = ToolDescriptor(name="ping", description="Ping", input_schema={"type": "object"})
        assert descriptor.model_dump(by_alias=True) == {
            "name": "ping",
            "description": "Ping",
            "inputSchema": {"type": "object"},
        }

    def test_tool_descriptor_default_schema(self) -> None:
        """A descriptor without a contract accepts an empty object."""
        assert ToolDescriptor(name="x").input_schema == {"type": "object", "properties": {}}

    def test_resource_descriptor_wire_names(self) -> None:
        """mime_type is serialized as mimeType and defaults to JSON."""
        descriptor = ResourceDescriptor(uri="db://schema", name="Schema")
        assert descriptor.model_dump(by_alias=True)["mimeType"] == JSON_MIME

    def test_descriptor_name_required(self) -> None:
        """Empty names are rejected."""
        with pytest.raises(ValidationError):
            ToolDescriptor(name="")


class TestToolResult:
    """Tests for the ToolResult envelope."""

    def test_ok_summary_only(self) -> None:
        """ok() without a payload yields a single text part."""
        result = ToolResult.ok("done")
        assert result.is_error is False
        assert len(result.content) == 1
        assert result.summary == "done"

    def test_ok_json_payload(self) -> None:
        """Non-string payloads become a JSON resource part after the summary."""
        result = ToolResult.ok("2 rows", {"rowCount": 2}, uri="result://query")
        assert isinstance(result.content[0], TextContent)
        part = result.content[1]
        assert isinstance(part, ResourceContent)
        assert part.resource.uri == "result://query"
        assert part.resource.mime_type == JSON_MIME
        assert json.loads(part.resource.text) == {"rowCount": 2}

    def test_ok_text_payload(self) -> None:
        """String payloads are attached as text/plain."""
        result = ToolResult.ok("Logs", "line 1\nline 2", uri="result://logs")
        assert result.content[1].resource.mime_type == TEXT_MIME
        assert result.content[1].resource.text == "line 1\nline 2"

    def test_fail(self) -> None:
        """fail() marks the envelope as an error."""
        result = ToolResult.fail("Tests failed (exit code 1)", "FAIL src/a.test.js", uri="result://test-error")
        assert result.is_error is True
        assert result.summary == "Tests failed (exit code 1)"
        assert result.content[1].resource.uri == "result://test-error"

    def test_from_exception_uses_message(self) -> None:
        """Exceptions become exactly one text part."""
        result = ToolResult.from_exception(RuntimeError("connection refused"))
        assert result.is_error is True
        assert len(result.content) == 1
        assert result.summary == "connection refused"

    def test_from_exception_toolhost_error(self) -> None:
        """toolhost errors contribute their plain message."""
        err = ToolExecutionError(tool="t", underlying_error="boom")
        assert ToolResult.from_exception(err).summary == "Tool t failed: boom"

    def test_from_exception_without_message(self) -> None:
        """A message-less exception falls back to its type name."""
        assert ToolResult.from_exception(KeyError()).summary == "KeyError"

    def test_wire_shape(self) -> None:
        """to_wire() uses isError and nested mimeType."""
        wire = ToolResult.ok("ok", {"a": 1}).to_wire()
        assert wire["isError"] is False
        assert wire["content"][0] == {"type": "text", "text": "ok"}
        assert wire["content"][1]["type"] == "resource"
        assert wire["content"][1]["resource"]["mimeType"] == JSON_MIME

    def test_content_cannot_be_empty(self) -> None:
        """An envelope always has at least one part."""
        with pytest.raises(ValidationError):
            ToolResult(content=[])


class TestResourceReadResult:
    """Tests for resource read results."""

    def test_json_document(self) -> None:
        """json_document() renders the payload as indented JSON."""
        result = ResourceReadResult.json_document("db://schema", {"users": []})
        assert result.contents[0].uri == "db://schema"
        assert json.loads(result.contents[0].text) == {"users": []}

    def test_error_text(self) -> None:
        """error() produces plain text prefixed with Error:."""
        result = ResourceReadResult.error("docker://info", "daemon unreachable")
        wire = result.to_wire()
        assert wire["contents"] == [
            {"uri": "docker://info", "mimeType": TEXT_MIME, "text": "Error: daemon unreachable"},
        ]


class TestRpcModels:
    """Tests for JSON-RPC message parsing."""

    def test_request_with_id(self) -> None:
        """A message with an id is a request."""
        request = RpcRequest.model_validate({"jsonrpc": "2.0", "id": 1, "method": "tools/list"})
        assert request.is_notification is False
        assert request.params == {}

    def test_notification(self) -> None:
        """A message without an id is a notification."""
        request = RpcRequest.model_validate({"jsonrpc": "2.0", "method": "notifications/initialized"})
        assert request.is_notification is True

    def test_null_id_is_not_notification(self) -> None:
        """An explicit null id still expects a response."""
        request = RpcRequest.model_validate({"jsonrpc": "2.0", "id": None, "method": "ping"})
        assert request.is_notification is False

    def test_null_params(self) -> None:
        """Explicit null params are treated as empty."""
        request = RpcRequest.model_validate({"id": 1, "method": "ping", "params": None})
        assert request.params == {}

    def test_method_required(self) -> None:
        """A message without a method is rejected."""
        with pytest.raises(ValidationError):
            RpcRequest.model_validate({"id": 1})

    def test_call_tool_params(self) -> None:
        """Null arguments are treated as empty."""
        params = CallToolParams.model_validate({"name": "run_tests", "arguments": None})
        assert params.arguments == {}

    def test_response_builders(self) -> None:
        """Responses echo the request id."""
        assert rpc_result(7, {}) == {"jsonrpc": "2.0", "id": 7, "result": {}}
        assert rpc_error("a", {"code": -1}) == {"jsonrpc": "2.0", "id": "a", "error": {"code": -1}}
