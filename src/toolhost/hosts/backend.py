"""
The backend host: API testing, database queries, tests and migrations.

Queries go to the primary store (DATABASE_URL / POSTGRES_URL).
"""

from toolhost.errors import ConfigurationMissingError
from toolhost.handles import PRIMARY_STORE
from toolhost.hosts.base import Host
from toolhost.resources import Resource
from toolhost.schema import ResourceReadResult
from toolhost.tools.base import ToolContext
from toolhost.tools.http import CheckApiHealthTool, TestApiEndpointTool
from toolhost.tools.sql import QueryDatabaseTool, describe_schema
from toolhost.tools.tasks import RunMigrationTool, RunTestsTool

NAME = "backend"
VERSION = "1.0.0"


class DatabaseSchemaResource(Resource):
    """Tables and their columns in the primary store."""

    @property
    def uri(self) -> str:
        return "database://schema"

    @property
    def name(self) -> str:
        return "Database Schema"

    @property
    def description(self) -> str:
        return "Current database schema structure"

    def read(self, context: ToolContext) -> ResourceReadResult:
        try:
            engine = context.handles.acquire(PRIMARY_STORE)
        except ConfigurationMissingError:
            return ResourceReadResult.text_document(self.uri, "Database not configured (DATABASE_URL missing)")
        return ResourceReadResult.json_document(self.uri, describe_schema(engine))


def build() -> Host:
    return Host.create(
        NAME,
        VERSION,
        tools=[
            QueryDatabaseTool(store_kind=PRIMARY_STORE),
            TestApiEndpointTool(),
            RunTestsTool(),
            RunMigrationTool(),
            CheckApiHealthTool(),
        ],
        resources=[DatabaseSchemaResource()],
    )
