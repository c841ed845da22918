"""
External handle management for toolhost.

Architecture:
    - HandleManager: builds each kind of handle once and caches it
    - factories: one function per kind, reading its settings from the
      environment (see toolhost.config)

Kinds:
    - primary-store: SQLAlchemy engine for DATABASE_URL / POSTGRES_URL
    - secondary-store: SQLAlchemy engine for MYSQL_URL
    - sql-store: whichever of the two DATABASE_TYPE selects
    - http-client: shared httpx.Client
    - container-runtime: docker CLI wrapper
    - task-runner: runner for the configured test/migration/deploy commands
"""

from toolhost.handles.manager import (
    CONTAINER_RUNTIME,
    HTTP_CLIENT,
    PRIMARY_STORE,
    SECONDARY_STORE,
    SQL_STORE,
    TASK_RUNNER,
    HandleFactory,
    HandleManager,
    default_factories,
)

__all__ = [
    "CONTAINER_RUNTIME",
    "HTTP_CLIENT",
    "PRIMARY_STORE",
    "SECONDARY_STORE",
    "SQL_STORE",
    "TASK_RUNNER",
    "HandleFactory",
    "HandleManager",
    "default_factories",
]
