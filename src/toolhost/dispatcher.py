"""
Request dispatcher for toolhost.

The Dispatcher routes one decoded JSON-RPC message to the host's tools and
resources and builds the response. It is the single place where protocol
faults and domain faults are told apart:

    Protocol faults (ProtocolError): unknown method, unknown tool or
        resource, malformed params, arguments failing the input contract.
        Rendered as JSON-RPC error objects.
    Domain faults: anything a tool or resource raises while running.
        Folded into the result (an isError ToolResult, or a resource read
        whose text is "Error: <message>").

Call Flow (tools/call):
    1. Resolve the tool by name (unknown -> ToolNotFoundError)
    2. Validate the arguments against its input contract, filling defaults
       (violation -> ToolInvalidArgsError; the tool is never invoked)
    3. Execute with a ToolContext carrying the host's HandleManager
    4. Wrap any exception into a single-part isError envelope

The dispatcher holds no per-request state, so handle_message() may be
called from many worker threads at once.
"""

import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from toolhost.errors import (
    RPC_INTERNAL_ERROR,
    InvalidParamsError,
    InvalidRequestError,
    MethodNotFoundError,
    ProtocolError,
    ToolHostError,
    ToolInvalidArgsError,
)
from toolhost.handles import HandleManager
from toolhost.schema import (
    CallToolParams,
    ReadResourceParams,
    ResourceReadResult,
    RpcRequest,
    ToolResult,
    rpc_error,
    rpc_result,
)
from toolhost.tools.base import ToolContext
from toolhost.validation import validate_arguments

if TYPE_CHECKING:
    from toolhost.hosts import Host

logger = structlog.get_logger(__name__)

PROTOCOL_VERSION = "2024-11-05"

# Notifications a client is expected to send; others are logged and dropped
KNOWN_NOTIFICATIONS = frozenset({"notifications/initialized", "notifications/cancelled"})


def _error_message(e: BaseException) -> str:
    if isinstance(e, ToolHostError):
        return e.message
    return str(e) or type(e).__name__


def response_id(message: Any) -> int | str | None:
    """The id to answer with, or None when it is absent or unusable."""
    if isinstance(message, dict):
        request_id = message.get("id")
        if isinstance(request_id, (int, str)) and not isinstance(request_id, bool):
            return request_id
    return None


def _params_fault(method: str, e: ValidationError) -> InvalidParamsError:
    first = e.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "params"
    return InvalidParamsError(method=method, detail=f"{location}: {first['msg']}")


class Dispatcher:
    """
    Routes JSON-RPC messages for one host.

    Args:
        host: The host bundle (name, version, frozen registries)
        handles: The host's external handle manager
        working_dir: Directory tools resolve relative paths against
    """

    def __init__(self, host: "Host", handles: HandleManager, working_dir: str = ".") -> None:
        self.host = host
        self.handles = handles
        self.working_dir = working_dir
        self._methods: dict[str, Callable[[RpcRequest], Any]] = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
            "resources/list": self._resources_list,
            "resources/read": self._resources_read,
        }

    # -------------------------------------------------------------------------
    # Message entry point
    # -------------------------------------------------------------------------

    def handle_message(self, message: Any) -> dict[str, Any] | None:
        """
        Handle one decoded message.

        Returns:
            The JSON-RPC response, or None for a notification
        """
        try:
            request = self._parse(message)
        except ProtocolError as e:
            logger.info("request.invalid", error=e.message)
            return rpc_error(response_id(message), e.to_rpc_error())

        log = logger.bind(request_id=request.id, method=request.method)

        if request.is_notification:
            if request.method not in KNOWN_NOTIFICATIONS:
                log.debug("notification.ignored")
            return None

        started = time.monotonic()
        try:
            handler = self._methods.get(request.method)
            if handler is None:
                raise MethodNotFoundError(method=request.method)
            result = handler(request)
        except ProtocolError as e:
            log.info("request.rejected", rpc_code=e.rpc_code, error=e.message)
            return rpc_error(request.id, e.to_rpc_error())
        except Exception as e:
            log.exception("request.internal_error")
            return rpc_error(request.id, {"code": RPC_INTERNAL_ERROR, "message": f"Internal error: {e}"})

        log.debug("request.completed", duration_ms=int((time.monotonic() - started) * 1000))
        return rpc_result(request.id, result)

    def _parse(self, message: Any) -> RpcRequest:
        if not isinstance(message, dict):
            raise InvalidRequestError(detail="message must be a JSON object")
        try:
            return RpcRequest.model_validate(message)
        except ValidationError as e:
            if any(err["loc"] and err["loc"][0] == "params" for err in e.errors()):
                raise _params_fault(str(message.get("method", "")), e) from e
            raise InvalidRequestError(detail=str(e.errors()[0]["msg"])) from e

    # -------------------------------------------------------------------------
    # Method handlers
    # -------------------------------------------------------------------------

    def _initialize(self, request: RpcRequest) -> dict[str, Any]:
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {"tools": {}, "resources": {}},
            "serverInfo": {"name": self.host.name, "version": self.host.version},
        }

    def _ping(self, request: RpcRequest) -> dict[str, Any]:
        return {}

    def _tools_list(self, request: RpcRequest) -> dict[str, Any]:
        return {"tools": self.list_tools()}

    def _tools_call(self, request: RpcRequest) -> dict[str, Any]:
        try:
            params = CallToolParams.model_validate(request.params)
        except ValidationError as e:
            raise _params_fault(request.method, e) from e
        return self.call_tool(params.name, params.arguments, request_id=request.id).to_wire()

    def _resources_list(self, request: RpcRequest) -> dict[str, Any]:
        return {"resources": self.list_resources()}

    def _resources_read(self, request: RpcRequest) -> dict[str, Any]:
        try:
            params = ReadResourceParams.model_validate(request.params)
        except ValidationError as e:
            raise _params_fault(request.method, e) from e
        return self.read_resource(params.uri, request_id=request.id).to_wire()

    # -------------------------------------------------------------------------
    # Direct operations
    # -------------------------------------------------------------------------

    def list_tools(self) -> list[dict[str, Any]]:
        """Descriptors of every registered tool, in registration order."""
        return [d.model_dump(by_alias=True) for d in self.host.tools.list_descriptors()]

    def list_resources(self) -> list[dict[str, Any]]:
        """Descriptors of every registered resource, in registration order."""
        return [d.model_dump(by_alias=True) for d in self.host.resources.list_descriptors()]

    def call_tool(
        self,
        name: str,
        arguments: dict[str, Any] | None = None,
        request_id: int | str | None = None,
    ) -> ToolResult:
        """
        Resolve, validate, execute and wrap one tool call.

        Raises:
            ToolNotFoundError: If no tool has this name
            ToolInvalidArgsError: If the arguments fail the input contract
        """
        tool = self.host.tools.get(name)
        contract = self.host.tools.descriptor(name).input_schema

        try:
            args = validate_arguments(arguments or {}, contract)
        except ToolInvalidArgsError as e:
            raise e.for_tool(name) from None

        log = logger.bind(request_id=request_id, tool=name)
        context = ToolContext(
            handles=self.handles,
            host=self.host.name,
            working_dir=self.working_dir,
            request_id=request_id,
        )

        started = time.monotonic()
        try:
            result = tool.execute(args, context)
            if not isinstance(result, ToolResult):
                raise TypeError(f"Tool {name} returned {type(result).__name__}, not ToolResult")
        except Exception as e:
            log.warning("tool.raised", error=_error_message(e), exc_info=True)
            result = ToolResult.from_exception(e)

        log.info(
            "tool.completed",
            is_error=result.is_error,
            duration_ms=int((time.monotonic() - started) * 1000),
        )
        return result

    def read_resource(self, uri: str, request_id: int | str | None = None) -> ResourceReadResult:
        """
        Resolve and read one resource.

        A failing read is downgraded to a normal result whose text is
        "Error: <message>".

        Raises:
            ResourceNotFoundError: If no resource has this uri
        """
        resource = self.host.resources.get(uri)
        context = ToolContext(
            handles=self.handles,
            host=self.host.name,
            working_dir=self.working_dir,
            request_id=request_id,
        )

        try:
            return resource.read(context)
        except Exception as e:
            logger.warning("resource.read_failed", uri=uri, request_id=request_id, exc_info=True)
            return ResourceReadResult.error(uri, _error_message(e))

    def __repr__(self) -> str:
        return f"<Dispatcher: {self.host.name} ({len(self.host.tools)} tools)>"
