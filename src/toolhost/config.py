"""
Configuration settings for toolhost.

Everything is read from the process environment with pydantic-settings:

- HostSettings (TOOLHOST_ prefix) is read once at startup by the CLI
- The per-kind settings are read by the HandleManager the first time a
  handle of that kind is acquired, and never again for the life of the
  process (hosts do not hot-reload credentials)

Connection settings are all optional here; whether a missing value is fatal
is decided by the handle factory that needs it.
"""

from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class HostSettings(BaseSettings):
    """Process-wide settings for a running host."""

    model_config = SettingsConfigDict(env_prefix="TOOLHOST_", extra="ignore")

    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"
    max_workers: int = Field(default=8, ge=1)
    working_dir: str = "."


class PrimaryStoreSettings(BaseSettings):
    """Connection settings for the primary SQL store (PostgreSQL)."""

    model_config = SettingsConfigDict(extra="ignore")

    database_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("DATABASE_URL", "POSTGRES_URL"),
    )
    pool_size: int = Field(default=5, ge=1, validation_alias="TOOLHOST_DB_POOL_SIZE")


class SecondaryStoreSettings(BaseSettings):
    """Connection settings for the secondary SQL store (MySQL)."""

    model_config = SettingsConfigDict(extra="ignore")

    mysql_url: str | None = None
    pool_size: int = Field(default=5, ge=1, validation_alias="TOOLHOST_DB_POOL_SIZE")


class DatabaseSelection(BaseSettings):
    """Which SQL store the database host works against."""

    model_config = SettingsConfigDict(extra="ignore")

    database_type: Literal["postgres", "mysql"] = "postgres"


class HttpClientSettings(BaseSettings):
    """Limits for the shared outbound HTTP connection pool."""

    model_config = SettingsConfigDict(env_prefix="TOOLHOST_HTTP_", extra="ignore")

    max_connections: int = Field(default=100, ge=1)
    max_keepalive_connections: int = Field(default=20, ge=0)


class ContainerRuntimeSettings(BaseSettings):
    """Settings for reaching the container daemon through its CLI."""

    model_config = SettingsConfigDict(extra="ignore")

    docker_host: str | None = None
    docker_binary: str = Field(default="docker", validation_alias="TOOLHOST_DOCKER_BINARY")
    compose_file: str = "docker-compose.yml"
    secrets_path: str = "/run/secrets"


class TaskRunnerSettings(BaseSettings):
    """Commands run by the test, migration and deployment tools."""

    model_config = SettingsConfigDict(extra="ignore")

    test_command: str = "npm test"
    migration_command: str = "npm run migrate"
    deploy_command: str = "docker compose up -d"
