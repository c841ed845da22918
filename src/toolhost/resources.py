"""
Readable resources and their registry.

A resource is a named, read-only piece of introspectable state that a host
exposes next to its tools (a database schema, daemon info, a config file).
It is addressed by a uri that acts purely as a lookup key.

Reads are best-effort: a resource that cannot be probed reports the failure
as content of a normal ResourceReadResult (see Dispatcher.read_resource).
"""

from abc import ABC, abstractmethod
from typing import Iterator

from toolhost.errors import DuplicateNameError, RegistryFrozenError, ResourceNotFoundError
from toolhost.schema import JSON_MIME, ResourceDescriptor, ResourceReadResult
from toolhost.tools.base import ToolContext


class Resource(ABC):
    """
    Abstract base class for readable resources.

    Subclasses must implement:
    - uri and name properties
    - read(): Produce the current contents
    """

    @property
    @abstractmethod
    def uri(self) -> str:
        """The unique lookup key for this resource (e.g. "db://schema")."""
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name."""
        ...

    @property
    def description(self) -> str:
        """Human-readable description."""
        return ""

    @property
    def mime_type(self) -> str:
        """Mime type of the successful read."""
        return JSON_MIME

    def descriptor(self) -> ResourceDescriptor:
        """Return the public descriptor advertised by resources/list."""
        return ResourceDescriptor(
            uri=self.uri,
            name=self.name,
            description=self.description,
            mime_type=self.mime_type,
        )

    @abstractmethod
    def read(self, context: ToolContext) -> ResourceReadResult:
        """
        Read the resource.

        Raising is allowed: the dispatcher reports the message as content.
        """
        ...

    def __repr__(self) -> str:
        """String representation of the resource."""
        return f"<Resource: {self.uri}>"


class ResourceRegistry:
    """
    Registry for looking up resources by uri.

    Filled while a host is built, then frozen. Registration order is
    preserved for listings.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._resources: dict[str, Resource] = {}
        self._descriptors: dict[str, ResourceDescriptor] = {}
        self._frozen = False

    def register(self, resource: Resource) -> None:
        """
        Register a resource.

        Raises:
            ValueError: If resource is None or has an empty uri
            DuplicateNameError: If the uri is already registered
            RegistryFrozenError: If the registry has been frozen
        """
        if resource is None:
            msg = "Cannot register None as a resource"
            raise ValueError(msg)

        uri = resource.uri
        if not uri:
            msg = "Resource must have a non-empty uri"
            raise ValueError(msg)

        if self._frozen:
            raise RegistryFrozenError(name=uri)
        if uri in self._resources:
            raise DuplicateNameError(name=uri)

        self._resources[uri] = resource
        self._descriptors[uri] = resource.descriptor()

    def freeze(self) -> None:
        """Close the registry to further registration."""
        self._frozen = True

    def get(self, uri: str) -> Resource:
        """
        Look up a resource by uri.

        Raises:
            ResourceNotFoundError: If the uri is not registered
        """
        resource = self._resources.get(uri)
        if resource is None:
            raise ResourceNotFoundError(uri=uri)
        return resource

    def uris(self) -> list[str]:
        """List registered uris in registration order."""
        return list(self._resources)

    def list_descriptors(self) -> list[ResourceDescriptor]:
        """Return the descriptors of all resources in registration order."""
        return list(self._descriptors.values())

    def __len__(self) -> int:
        return len(self._resources)

    def __iter__(self) -> Iterator[Resource]:
        return iter(self._resources.values())

    def __contains__(self, uri: str) -> bool:
        return uri in self._resources
