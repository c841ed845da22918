"""
Exception hierarchy for toolhost.

All toolhost exceptions inherit from ToolHostError, allowing callers to catch
every toolhost-specific exception with a single except clause.

Exception Categories:
    - ProtocolError: The request itself is wrong (unknown method, unknown
      tool or resource, arguments that fail the input contract). Reported
      to the client as a JSON-RPC error object.
    - RegistryError: A tool or resource could not be registered at startup.
    - HandleError: An external handle (connection pool, client) could not
      be acquired.
    - ToolError: A tool failed while running. Reported to the client as an
      isError envelope, never as a protocol error.
    - HostNotFoundError: The requested host bundle does not exist.

Design Principles:
    - All errors have error codes for programmatic handling
    - All errors include context (tool, field, kind where applicable)
    - Protocol errors carry the JSON-RPC code they are reported with
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar


# =============================================================================
# Error Codes
# =============================================================================

# Protocol errors: 1xxx
ERROR_PARSE = 1001
ERROR_INVALID_REQUEST = 1002
ERROR_METHOD_NOT_FOUND = 1003
ERROR_INVALID_PARAMS = 1004
ERROR_TOOL_NOT_FOUND = 1005
ERROR_TOOL_INVALID_ARGS = 1006
ERROR_RESOURCE_NOT_FOUND = 1007

# Tool errors: 2xxx
ERROR_TOOL_EXECUTION_FAILED = 2001
ERROR_TOOL_TIMEOUT = 2002

# Registry errors: 3xxx
ERROR_DUPLICATE_NAME = 3001
ERROR_REGISTRY_FROZEN = 3002

# Handle errors: 4xxx
ERROR_CONFIGURATION_MISSING = 4001
ERROR_UNKNOWN_HANDLE_KIND = 4002

# Host errors: 5xxx
ERROR_HOST_NOT_FOUND = 5001

# JSON-RPC 2.0 error codes
RPC_PARSE_ERROR = -32700
RPC_INVALID_REQUEST = -32600
RPC_METHOD_NOT_FOUND = -32601
RPC_INVALID_PARAMS = -32602
RPC_INTERNAL_ERROR = -32603
RPC_RESOURCE_NOT_FOUND = -32002


# =============================================================================
# Base Exception
# =============================================================================


@dataclass
class ToolHostError(Exception):
    """
    Base exception for all toolhost errors.

    Attributes:
        message: Human-readable error description
        code: Numeric error code for programmatic handling
        suggestion: Optional hint for how to resolve the error
        context: Optional dict with additional debugging info
    """

    message: str = ""
    code: int = 0
    suggestion: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Format error for display."""
        parts = [f"[E{self.code}] {self.message}"]
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    def __repr__(self) -> str:
        """Format error for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "suggestion": self.suggestion,
            "context": self.context,
        }


# =============================================================================
# Protocol Errors
# =============================================================================


@dataclass
class ProtocolError(ToolHostError):
    """
    Base class for faults in routing and validation.

    A protocol error terminates only the offending request. It is reported
    as a JSON-RPC error object and is never folded into a tool envelope.
    """

    rpc_code: ClassVar[int] = RPC_INVALID_REQUEST

    def to_rpc_error(self) -> dict[str, Any]:
        """Render as a JSON-RPC error object."""
        return {
            "code": self.rpc_code,
            "message": self.message,
            "data": self.to_dict(),
        }


@dataclass
class ParseError(ProtocolError):
    """Raised when an inbound line is not valid UTF-8 or not valid JSON."""

    rpc_code: ClassVar[int] = RPC_PARSE_ERROR

    detail: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Parse error: {self.detail}"
        if self.code == 0:
            self.code = ERROR_PARSE


@dataclass
class InvalidRequestError(ProtocolError):
    """Raised when a message is JSON but not a valid JSON-RPC request."""

    rpc_code: ClassVar[int] = RPC_INVALID_REQUEST

    detail: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid request: {self.detail}"
        if self.code == 0:
            self.code = ERROR_INVALID_REQUEST


@dataclass
class MethodNotFoundError(ProtocolError):
    """Raised when the request method is not one the host serves."""

    rpc_code: ClassVar[int] = RPC_METHOD_NOT_FOUND

    method: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Method not found: {self.method}"
        if self.code == 0:
            self.code = ERROR_METHOD_NOT_FOUND
        self.context["method"] = self.method


@dataclass
class InvalidParamsError(ProtocolError):
    """Raised when request params have the wrong shape."""

    rpc_code: ClassVar[int] = RPC_INVALID_PARAMS

    method: str = ""
    detail: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid params for {self.method}: {self.detail}"
        if self.code == 0:
            self.code = ERROR_INVALID_PARAMS
        self.context.update({"method": self.method, "detail": self.detail})


@dataclass
class ToolNotFoundError(ProtocolError):
    """Raised when a tool name is not registered."""

    rpc_code: ClassVar[int] = RPC_INVALID_PARAMS

    tool: str = ""
    available: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Unknown tool: {self.tool}"
        if self.code == 0:
            self.code = ERROR_TOOL_NOT_FOUND
        if not self.suggestion and self.available:
            self.suggestion = f"Available tools: {', '.join(self.available)}"
        self.context["tool"] = self.tool


@dataclass
class ToolInvalidArgsError(ProtocolError):
    """
    Raised when tool arguments fail the tool's input contract.

    Attributes:
        tool: Name of the tool being called (filled in by the dispatcher)
        argument: Dotted path of the first offending field
        rule: The violated rule ("type", "enum" or "required")
        detail: Human-readable description of the violation
    """

    rpc_code: ClassVar[int] = RPC_INVALID_PARAMS

    tool: str = ""
    argument: str = ""
    rule: str = ""
    detail: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid argument '{self.argument}': {self.detail}"
        if self.code == 0:
            self.code = ERROR_TOOL_INVALID_ARGS
        self.context.update({
            "tool": self.tool,
            "argument": self.argument,
            "rule": self.rule,
        })

    def for_tool(self, tool: str) -> "ToolInvalidArgsError":
        """Attach the tool name once it is known."""
        self.tool = tool
        self.context["tool"] = tool
        return self


@dataclass
class ResourceNotFoundError(ProtocolError):
    """Raised when a resource uri is not registered."""

    rpc_code: ClassVar[int] = RPC_RESOURCE_NOT_FOUND

    uri: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Unknown resource: {self.uri}"
        if self.code == 0:
            self.code = ERROR_RESOURCE_NOT_FOUND
        self.context["uri"] = self.uri


# =============================================================================
# Tool Errors
# =============================================================================


@dataclass
class ToolError(ToolHostError):
    """
    Base class for tool execution errors.

    These are domain failures. The dispatcher turns them into an isError
    envelope like any other exception raised by a tool.

    Attributes:
        tool: Name of the tool that failed
    """

    tool: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        self.context["tool"] = self.tool


@dataclass
class ToolExecutionError(ToolError):
    """Raised when a tool fails during execution."""

    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Tool {self.tool} failed: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_TOOL_EXECUTION_FAILED
        super().__post_init__()
        self.context["underlying_error"] = self.underlying_error


@dataclass
class ToolTimeoutError(ToolError):
    """Raised when a tool exceeds its own time bound."""

    timeout_seconds: float = 0

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Tool {self.tool} timed out after {self.timeout_seconds:g}s"
        if self.code == 0:
            self.code = ERROR_TOOL_TIMEOUT
        super().__post_init__()
        self.context["timeout_seconds"] = self.timeout_seconds


# =============================================================================
# Registry Errors
# =============================================================================


@dataclass
class RegistryError(ToolHostError):
    """Base class for registration errors raised while a host is built."""

    name: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        self.context["name"] = self.name


@dataclass
class DuplicateNameError(RegistryError):
    """Raised when a tool name or resource uri is registered twice."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Already registered: {self.name}"
        if self.code == 0:
            self.code = ERROR_DUPLICATE_NAME
        super().__post_init__()


@dataclass
class RegistryFrozenError(RegistryError):
    """Raised when registering after the registry has been frozen."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Registry is frozen, cannot register: {self.name}"
        if self.code == 0:
            self.code = ERROR_REGISTRY_FROZEN
        super().__post_init__()


# =============================================================================
# Handle Errors
# =============================================================================


@dataclass
class HandleError(ToolHostError):
    """
    Base class for external handle errors.

    Attributes:
        kind: The handle kind being acquired (e.g. "primary-store")
    """

    kind: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        self.context["kind"] = self.kind


@dataclass
class ConfigurationMissingError(HandleError):
    """Raised when mandatory configuration for a handle kind is absent."""

    variables: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            names = " or ".join(self.variables) or "configuration"
            self.message = f"{names} environment variable required for {self.kind}"
        if self.code == 0:
            self.code = ERROR_CONFIGURATION_MISSING
        if not self.suggestion:
            self.suggestion = "Set the variable in the host's environment and restart it"
        super().__post_init__()
        self.context["variables"] = self.variables


@dataclass
class UnknownHandleKindError(HandleError):
    """Raised when acquiring a kind that has no factory."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"No handle factory for kind: {self.kind}"
        if self.code == 0:
            self.code = ERROR_UNKNOWN_HANDLE_KIND
        super().__post_init__()


# =============================================================================
# Host Errors
# =============================================================================


@dataclass
class HostNotFoundError(ToolHostError):
    """Raised when a host name does not match any shipped host."""

    host: str = ""
    available: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Unknown host: {self.host}"
        if self.code == 0:
            self.code = ERROR_HOST_NOT_FOUND
        if not self.suggestion and self.available:
            self.suggestion = f"Available hosts: {', '.join(self.available)}"
        self.context["host"] = self.host
