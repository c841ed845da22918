"""
Base classes for the tool interface.

This module defines the core abstractions for tools in toolhost:
- Tool: Abstract base class that all tools must implement
- ToolContext: Runtime context passed to tools during execution

Design Principles:
    - Tools are stateless - long-lived state lives in the HandleManager
      reached through ToolContext
    - Tools receive validated arguments - the dispatcher checks them against
      input_schema (and fills defaults) before execute() runs
    - Tools return ToolResult - expected failures use ToolResult.fail()
    - Unexpected exceptions may propagate; the dispatcher turns them into an
      isError envelope
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from toolhost.schema import ToolDescriptor, ToolResult

if TYPE_CHECKING:
    from toolhost.handles import HandleManager


@dataclass
class ToolContext:
    """
    Runtime context passed to tools during execution.

    Attributes:
        handles: The host's external handle manager
        host: Name of the host serving the call
        working_dir: Directory that relative paths and commands resolve against
        request_id: JSON-RPC id of the request being served
    """

    handles: "HandleManager"
    host: str = ""
    working_dir: str = "."
    request_id: int | str | None = None

    @property
    def logger(self) -> Any:
        """A structlog logger bound to this call."""
        return structlog.get_logger("toolhost.tools").bind(host=self.host, request_id=self.request_id)


class Tool(ABC):
    """
    Abstract base class for all tools.

    Each tool:
    - Has a unique name (e.g., "query_database", "view_logs")
    - Declares its input contract
    - Implements the execute() method
    - Returns a ToolResult

    Example:
        class EchoTool(Tool):
            @property
            def name(self) -> str:
                return "echo"

            @property
            def input_schema(self) -> dict[str, Any]:
                return {
                    "type": "object",
                    "properties": {"message": {"type": "string"}},
                    "required": ["message"],
                }

            def execute(self, args: dict[str, Any], context: ToolContext) -> ToolResult:
                return ToolResult.ok(args["message"])
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """
        The unique identifier for this tool.

        Returns:
            The tool's unique name
        """
        ...

    @property
    def description(self) -> str:
        """Human-readable description of what the tool does."""
        return f"Tool: {self.name}"

    @property
    def input_schema(self) -> dict[str, Any]:
        """
        The input contract for this tool's arguments.

        Override in subclasses. The default accepts any object.
        """
        return {"type": "object", "properties": {}}

    def descriptor(self) -> ToolDescriptor:
        """Return the public descriptor advertised by tools/list."""
        return ToolDescriptor(
            name=self.name,
            description=self.description,
            input_schema=self.input_schema,
        )

    @abstractmethod
    def execute(self, args: dict[str, Any], context: ToolContext) -> ToolResult:
        """
        Execute the tool with validated arguments.

        Args:
            args: Arguments already checked against input_schema, with
                declared defaults filled in
            context: Runtime context with the handle manager

        Returns:
            ToolResult, summary text first

        Note:
            - Use ToolResult.fail() for expected failures
            - Anything raised is reported as an isError envelope carrying
              the exception message
        """
        ...

    def __repr__(self) -> str:
        """String representation of the tool."""
        return f"<Tool: {self.name}>"
