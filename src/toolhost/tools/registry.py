"""
Tool registry for toolhost.

The registry maps tool names to tool instances for one host. It is filled
once while the host is built, then frozen; after that it is read-only and
safe to share across worker threads without locking.

Usage:
    registry = ToolRegistry()
    registry.register(QueryDatabaseTool())
    registry.freeze()

    tool = registry.get("query_database")
"""

from typing import Iterator

from toolhost.errors import DuplicateNameError, RegistryFrozenError, ToolNotFoundError
from toolhost.schema import ToolDescriptor
from toolhost.tools.base import Tool


class ToolRegistry:
    """
    Registry for looking up tools by name.

    Registration order is preserved for listings.

    Attributes:
        _tools: Internal mapping of tool names to tool instances
        _descriptors: Descriptors captured at registration
        _frozen: Whether registration is closed
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._tools: dict[str, Tool] = {}
        self._descriptors: dict[str, ToolDescriptor] = {}
        self._frozen = False

    def register(self, tool: Tool) -> None:
        """
        Register a tool in the registry.

        Args:
            tool: The tool instance to register

        Raises:
            ValueError: If tool is None or has an empty name
            DuplicateNameError: If a tool with the same name is registered
            RegistryFrozenError: If the registry has been frozen
        """
        if tool is None:
            msg = "Cannot register None as a tool"
            raise ValueError(msg)

        name = tool.name
        if not name:
            msg = "Tool must have a non-empty name"
            raise ValueError(msg)

        if self._frozen:
            raise RegistryFrozenError(name=name)
        if name in self._tools:
            raise DuplicateNameError(name=name)

        self._tools[name] = tool
        self._descriptors[name] = tool.descriptor()

    def freeze(self) -> None:
        """Close the registry to further registration."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        """Whether registration is closed."""
        return self._frozen

    def get(self, name: str) -> Tool:
        """
        Look up a tool by name.

        Raises:
            ToolNotFoundError: If no tool with that name is registered
        """
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(tool=name, available=self.names())
        return tool

    def descriptor(self, name: str) -> ToolDescriptor:
        """
        Return the descriptor captured when the tool was registered.

        Raises:
            ToolNotFoundError: If no tool with that name is registered
        """
        descriptor = self._descriptors.get(name)
        if descriptor is None:
            raise ToolNotFoundError(tool=name, available=self.names())
        return descriptor

    def has(self, name: str) -> bool:
        """Check if a tool is registered."""
        return name in self._tools

    def names(self) -> list[str]:
        """List registered tool names in registration order."""
        return list(self._tools)

    def list_descriptors(self) -> list[ToolDescriptor]:
        """Return the descriptors of all tools in registration order."""
        return list(self._descriptors.values())

    def __len__(self) -> int:
        """Return the number of registered tools."""
        return len(self._tools)

    def __iter__(self) -> Iterator[Tool]:
        """Iterate over all registered tools."""
        return iter(self._tools.values())

    def __contains__(self, name: str) -> bool:
        """Check if a tool is registered using 'in' operator."""
        return name in self._tools

    def __repr__(self) -> str:
        """String representation of the registry."""
        return f"<ToolRegistry: [{', '.join(self.names())}]>"
