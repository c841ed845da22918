"""
Handle factories, one per kind.

Each factory reads its settings model from the environment, checks the
mandatory values, and builds the handle. They are only called by
HandleManager.acquire(), so each runs at most once per process.
"""

import shutil

import httpx
from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url

from toolhost.config import (
    ContainerRuntimeSettings,
    DatabaseSelection,
    HttpClientSettings,
    PrimaryStoreSettings,
    SecondaryStoreSettings,
    TaskRunnerSettings,
)
from toolhost.errors import ConfigurationMissingError
from toolhost.handles.manager import (
    CONTAINER_RUNTIME,
    PRIMARY_STORE,
    SECONDARY_STORE,
)
from toolhost.tools.containers import ContainerRuntime
from toolhost.tools.shell import TaskRunner

# URL schemes as commonly written, mapped to the SQLAlchemy driver
DRIVER_SCHEMES = {
    "postgres": "postgresql+psycopg2",
    "postgresql": "postgresql+psycopg2",
    "mysql": "mysql+pymysql",
}


def normalize_database_url(url: str) -> str:
    """
    Map a plain database URL onto a SQLAlchemy driver URL.

    postgres://... and postgresql://... use psycopg2; mysql://... uses
    PyMySQL. URLs that already name a driver are left alone.
    """
    scheme, sep, rest = url.partition("://")
    if not sep:
        return url
    return f"{DRIVER_SCHEMES.get(scheme, scheme)}://{rest}"


def create_store_engine(url: str, pool_size: int) -> Engine:
    """Build a pooled engine; SQLite URLs keep SQLAlchemy's default pool."""
    url = normalize_database_url(url)
    kwargs = {"pool_pre_ping": True}
    if make_url(url).get_backend_name() != "sqlite":
        kwargs["pool_size"] = pool_size
    return create_engine(url, **kwargs)


def create_primary_store() -> Engine:
    settings = PrimaryStoreSettings()
    if not settings.database_url:
        raise ConfigurationMissingError(kind=PRIMARY_STORE, variables=["DATABASE_URL", "POSTGRES_URL"])
    return create_store_engine(settings.database_url, settings.pool_size)


def create_secondary_store() -> Engine:
    settings = SecondaryStoreSettings()
    if not settings.mysql_url:
        raise ConfigurationMissingError(kind=SECONDARY_STORE, variables=["MYSQL_URL"])
    return create_store_engine(settings.mysql_url, settings.pool_size)


def create_selected_store() -> Engine:
    """The store DATABASE_TYPE selects (postgres unless set to mysql)."""
    if DatabaseSelection().database_type == "mysql":
        return create_secondary_store()
    return create_primary_store()


def create_http_client() -> httpx.Client:
    settings = HttpClientSettings()
    limits = httpx.Limits(
        max_connections=settings.max_connections,
        max_keepalive_connections=settings.max_keepalive_connections,
    )
    return httpx.Client(limits=limits, follow_redirects=True)


def create_container_runtime() -> ContainerRuntime:
    settings = ContainerRuntimeSettings()
    binary = shutil.which(settings.docker_binary)
    if binary is None:
        raise ConfigurationMissingError(
            kind=CONTAINER_RUNTIME,
            variables=["TOOLHOST_DOCKER_BINARY"],
            message=f"docker executable not found: {settings.docker_binary}",
        )
    return ContainerRuntime(settings, binary)


def create_task_runner() -> TaskRunner:
    return TaskRunner(TaskRunnerSettings())
