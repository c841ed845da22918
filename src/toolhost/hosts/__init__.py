"""
Shipped tool hosts.

Each host module exposes build() -> Host. A host is built once at startup
and its registries are frozen before the transport starts.

There is no frontend (browser automation) or infrastructure (cloud SDK)
host. Either would be another module here whose build() registers its
tools, plus an entry in HOST_BUILDERS.
"""

from collections.abc import Callable

from toolhost.errors import HostNotFoundError
from toolhost.hosts import backend, database, devops
from toolhost.hosts.base import Host

HOST_BUILDERS: dict[str, Callable[[], Host]] = {
    backend.NAME: backend.build,
    database.NAME: database.build,
    devops.NAME: devops.build,
}


def build_host(name: str) -> Host:
    """
    Build a host by name.

    Raises:
        HostNotFoundError: If no host has this name
    """
    builder = HOST_BUILDERS.get(name)
    if builder is None:
        raise HostNotFoundError(host=name, available=sorted(HOST_BUILDERS))
    return builder()


__all__ = ["HOST_BUILDERS", "Host", "build_host"]
