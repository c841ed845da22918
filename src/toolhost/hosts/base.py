"""The Host bundle: a named, versioned pair of frozen registries."""

from dataclasses import dataclass

from toolhost.resources import Resource, ResourceRegistry
from toolhost.tools.base import Tool
from toolhost.tools.registry import ToolRegistry


@dataclass
class Host:
    """
    One tool host as served over the transport.

    Attributes:
        name: Host name, reported as serverInfo.name
        version: Host version, reported as serverInfo.version
        tools: Frozen tool registry
        resources: Frozen resource registry
    """

    name: str
    version: str
    tools: ToolRegistry
    resources: ResourceRegistry

    @classmethod
    def create(
        cls,
        name: str,
        version: str,
        tools: list[Tool],
        resources: list[Resource] | None = None,
    ) -> "Host":
        """
        Register everything in order, then freeze both registries.

        Raises:
            DuplicateNameError: If two tools or two resources share a key
        """
        tool_registry = ToolRegistry()
        for tool in tools:
            tool_registry.register(tool)
        tool_registry.freeze()

        resource_registry = ResourceRegistry()
        for resource in resources or []:
            resource_registry.register(resource)
        resource_registry.freeze()

        return cls(name=name, version=version, tools=tool_registry, resources=resource_registry)
