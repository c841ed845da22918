"""
The database host: schema inspection, query analysis, migrations, indexes
and maintenance.

Works against the store DATABASE_TYPE selects (the sql-store kind).
"""

from toolhost.handles import SQL_STORE
from toolhost.hosts.base import Host
from toolhost.resources import Resource
from toolhost.schema import ResourceReadResult
from toolhost.tools.base import ToolContext
from toolhost.tools.sql import (
    AnalyzeQueryTool,
    CheckDbHealthTool,
    CreateMigrationTool,
    InspectSchemaTool,
    ManageIndexesTool,
    OptimizeTableTool,
    describe_schema,
    describe_table,
    health_snapshot,
)

NAME = "database"
VERSION = "1.0.0"


class SchemaResource(Resource):
    """Every table with its columns, indexes and constraints."""

    @property
    def uri(self) -> str:
        return "db://schema"

    @property
    def name(self) -> str:
        return "Database Schema"

    @property
    def description(self) -> str:
        return "Complete database schema information"

    def read(self, context: ToolContext) -> ResourceReadResult:
        engine = context.handles.acquire(SQL_STORE)
        tables = {table_name: describe_table(engine, table_name) for table_name in describe_schema(engine)}
        return ResourceReadResult.json_document(self.uri, tables)


class HealthResource(Resource):
    """Connectivity, connection counts, size and cache statistics."""

    @property
    def uri(self) -> str:
        return "db://health"

    @property
    def name(self) -> str:
        return "Database Health"

    @property
    def description(self) -> str:
        return "Current database health metrics"

    def read(self, context: ToolContext) -> ResourceReadResult:
        return ResourceReadResult.json_document(self.uri, health_snapshot(context.handles.acquire(SQL_STORE)))


def build() -> Host:
    return Host.create(
        NAME,
        VERSION,
        tools=[
            InspectSchemaTool(),
            AnalyzeQueryTool(),
            CreateMigrationTool(),
            ManageIndexesTool(),
            CheckDbHealthTool(),
            OptimizeTableTool(),
        ],
        resources=[SchemaResource(), HealthResource()],
    )
