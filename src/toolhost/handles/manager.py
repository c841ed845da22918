"""
Lazily built, process-lifetime handles to external systems.

A handle is a long-lived object that talks to something outside the
process: a SQL connection pool, the shared HTTP client, the container
daemon, the command runner. Each handle has a kind, and each kind has a
factory that reads its configuration from the environment and builds it.

Lifecycle:
    1. The first acquire(kind) calls the factory. A factory raises
       ConfigurationMissingError when mandatory settings are absent; that
       reaches the client as an isError envelope for the calling tool.
    2. The built handle is cached. Later acquire(kind) calls return it
       without re-reading configuration or reconnecting.
    3. close() releases everything at shutdown, best-effort.

There is no invalidation: a handle that breaks stays cached until the
process restarts.

Only construction is serialized. Using a cached handle from several worker
threads relies on the handle itself being thread-safe (SQLAlchemy engines
and httpx clients are).
"""

import threading
from collections.abc import Callable, Mapping
from typing import Any

import structlog

from toolhost.errors import UnknownHandleKindError

logger = structlog.get_logger(__name__)

# Handle kinds
PRIMARY_STORE = "primary-store"
SECONDARY_STORE = "secondary-store"
SQL_STORE = "sql-store"
HTTP_CLIENT = "http-client"
CONTAINER_RUNTIME = "container-runtime"
TASK_RUNNER = "task-runner"

HandleFactory = Callable[[], Any]


def default_factories() -> dict[str, HandleFactory]:
    """Return the factories for every kind shipped with toolhost."""
    # Imported here: the factories pull in the tool modules that use handles
    from toolhost.handles import factories

    return {
        PRIMARY_STORE: factories.create_primary_store,
        SECONDARY_STORE: factories.create_secondary_store,
        SQL_STORE: factories.create_selected_store,
        HTTP_CLIENT: factories.create_http_client,
        CONTAINER_RUNTIME: factories.create_container_runtime,
        TASK_RUNNER: factories.create_task_runner,
    }


class HandleManager:
    """
    Creates each kind of handle at most once and hands out the cached copy.

    Args:
        factories: Mapping of kind to a zero-argument factory. Defaults to
            default_factories(). Tests pass fakes here.
    """

    def __init__(self, factories: Mapping[str, HandleFactory] | None = None) -> None:
        self._factories: dict[str, HandleFactory] = dict(
            default_factories() if factories is None else factories
        )
        self._handles: dict[str, Any] = {}
        self._lock = threading.Lock()

    def acquire(self, kind: str) -> Any:
        """
        Return the handle for a kind, building it on first use.

        Raises:
            UnknownHandleKindError: If no factory exists for the kind
            ConfigurationMissingError: If the factory lacks mandatory settings
        """
        handle = self._handles.get(kind)
        if handle is not None:
            return handle

        factory = self._factories.get(kind)
        if factory is None:
            raise UnknownHandleKindError(kind=kind)

        with self._lock:
            if kind not in self._handles:
                self._handles[kind] = factory()
                logger.info("handle.created", kind=kind)
            return self._handles[kind]

    def has(self, kind: str) -> bool:
        """Whether a handle of this kind has already been built."""
        return kind in self._handles

    def kinds(self) -> list[str]:
        """Kinds this manager can build."""
        return list(self._factories)

    def close(self) -> None:
        """Release every built handle. Failures are logged, not raised."""
        with self._lock:
            handles = list(self._handles.items())
            self._handles.clear()

        for kind, handle in handles:
            release = getattr(handle, "dispose", None) or getattr(handle, "close", None)
            if release is None:
                continue
            try:
                release()
                logger.debug("handle.closed", kind=kind)
            except Exception:
                logger.warning("handle.close_failed", kind=kind, exc_info=True)

    def __repr__(self) -> str:
        return f"<HandleManager: built={list(self._handles)}>"
