"""
Unit tests for error hierarchy.

Tests cover:
- Base ToolHostError behavior
- Protocol errors and their JSON-RPC rendering
- Tool, registry and handle errors with context
- Error serialization
"""

import pytest

from toolhost.errors import (
    ERROR_CONFIGURATION_MISSING,
    ERROR_DUPLICATE_NAME,
    ERROR_TOOL_INVALID_ARGS,
    ERROR_TOOL_NOT_FOUND,
    RPC_INVALID_PARAMS,
    RPC_METHOD_NOT_FOUND,
    RPC_PARSE_ERROR,
    RPC_RESOURCE_NOT_FOUND,
    ConfigurationMissingError,
    DuplicateNameError,
    HandleError,
    HostNotFoundError,
    MethodNotFoundError,
    ParseError,
    ProtocolError,
    ResourceNotFoundError,
    ToolError,
    ToolExecutionError,
    ToolHostError,
    ToolInvalidArgsError,
    ToolNotFoundError,
    ToolTimeoutError,
)


class TestToolHostError:
    """Tests for base ToolHostError."""

    def test_basic_error(self) -> None:
        """Create a basic error with message."""
        err = ToolHostError(message="Something went wrong", code=9999)
        assert err.message == "Something went wrong"
        assert err.code == 9999
        assert err.suggestion is None
        assert err.context == {}

    def test_str_includes_code_and_suggestion(self) -> None:
        """str() shows the code and the suggestion on its own line."""
        err = ToolHostError(message="Failed", code=1, suggestion="Try again")
        assert str(err) == "[E1] Failed\nSuggestion: Try again"

    def test_to_dict(self) -> None:
        """Errors serialize to a plain dict."""
        err = ToolHostError(message="Failed", code=7, context={"key": "value"})
        assert err.to_dict() == {
            "error_type": "ToolHostError",
            "message": "Failed",
            "code": 7,
            "suggestion": None,
            "context": {"key": "value"},
        }

    def test_is_exception(self) -> None:
        """Errors can be raised and caught as ToolHostError."""
        with pytest.raises(ToolHostError):
            raise ToolExecutionError(tool="x", underlying_error="boom")


class TestProtocolErrors:
    """Tests for protocol faults."""

    def test_parse_error_code(self) -> None:
        """Parse errors render as -32700."""
        err = ParseError(detail="Expecting value")
        assert err.to_rpc_error()["code"] == RPC_PARSE_ERROR
        assert "Expecting value" in err.message

    def test_method_not_found(self) -> None:
        """Unknown methods render as -32601 and name the method."""
        err = MethodNotFoundError(method="tools/destroy")
        rpc = err.to_rpc_error()
        assert rpc["code"] == RPC_METHOD_NOT_FOUND
        assert rpc["message"] == "Method not found: tools/destroy"
        assert rpc["data"]["context"]["method"] == "tools/destroy"

    def test_tool_not_found_lists_available(self) -> None:
        """Unknown tools render as -32602 with the available names."""
        err = ToolNotFoundError(tool="nope", available=["a", "b"])
        assert err.code == ERROR_TOOL_NOT_FOUND
        assert err.rpc_code == RPC_INVALID_PARAMS
        assert err.suggestion == "Available tools: a, b"

    def test_invalid_args_names_field_and_rule(self) -> None:
        """Argument violations carry the field and the rule."""
        err = ToolInvalidArgsError(argument="url", rule="required", detail="missing required field")
        assert err.code == ERROR_TOOL_INVALID_ARGS
        assert err.rpc_code == RPC_INVALID_PARAMS
        assert err.message == "Invalid argument 'url': missing required field"
        assert err.context["argument"] == "url"
        assert err.context["rule"] == "required"

    def test_invalid_args_for_tool(self) -> None:
        """for_tool() attaches the tool name after the fact."""
        err = ToolInvalidArgsError(argument="url", rule="type", detail="x").for_tool("check_api_health")
        assert err.tool == "check_api_health"
        assert err.to_rpc_error()["data"]["context"]["tool"] == "check_api_health"

    def test_resource_not_found_code(self) -> None:
        """Unknown resources render as -32002."""
        err = ResourceNotFoundError(uri="db://nothing")
        assert err.to_rpc_error()["code"] == RPC_RESOURCE_NOT_FOUND
        assert err.message == "Unknown resource: db://nothing"

    def test_all_are_protocol_errors(self) -> None:
        """Every routing fault shares the ProtocolError base."""
        for err in (
            ParseError(),
            MethodNotFoundError(),
            ToolNotFoundError(),
            ToolInvalidArgsError(),
            ResourceNotFoundError(),
        ):
            assert isinstance(err, ProtocolError)


class TestToolErrors:
    """Tests for tool execution errors."""

    def test_execution_error(self) -> None:
        """Execution errors keep the underlying message."""
        err = ToolExecutionError(tool="run_tests", underlying_error="Executable not found: npm")
        assert isinstance(err, ToolError)
        assert err.message == "Tool run_tests failed: Executable not found: npm"
        assert err.context == {"tool": "run_tests", "underlying_error": "Executable not found: npm"}

    def test_timeout_error(self) -> None:
        """Timeout errors report the bound."""
        err = ToolTimeoutError(tool="run_tests", timeout_seconds=60)
        assert err.message == "Tool run_tests timed out after 60s"
        assert err.context["timeout_seconds"] == 60


class TestRegistryAndHandleErrors:
    """Tests for registry, handle and host errors."""

    def test_duplicate_name(self) -> None:
        """Duplicate registrations name the key."""
        err = DuplicateNameError(name="query_database")
        assert err.code == ERROR_DUPLICATE_NAME
        assert err.message == "Already registered: query_database"

    def test_configuration_missing_names_variables(self) -> None:
        """Missing configuration names every accepted variable."""
        err = ConfigurationMissingError(kind="primary-store", variables=["DATABASE_URL", "POSTGRES_URL"])
        assert isinstance(err, HandleError)
        assert err.code == ERROR_CONFIGURATION_MISSING
        assert err.message == "DATABASE_URL or POSTGRES_URL environment variable required for primary-store"
        assert err.context["kind"] == "primary-store"

    def test_host_not_found(self) -> None:
        """Unknown hosts suggest the shipped ones."""
        err = HostNotFoundError(host="frontend", available=["backend", "database"])
        assert err.message == "Unknown host: frontend"
        assert err.suggestion == "Available hosts: backend, database"
