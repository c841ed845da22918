"""
SQL store tools for toolhost.

All of them run on a SQLAlchemy Engine acquired from the handle manager:
- query: query_database, analyze_query
- introspection: inspect_schema
- maintenance: manage_indexes, check_db_health, optimize_table
- migrations: create_migration (filesystem only)
- plan: dialect-neutral plan trees and optimization suggestions
"""

from toolhost.tools.sql.introspection import InspectSchemaTool, describe_schema, describe_table
from toolhost.tools.sql.maintenance import (
    CheckDbHealthTool,
    ManageIndexesTool,
    OptimizeTableTool,
    health_snapshot,
)
from toolhost.tools.sql.migrations import CreateMigrationTool
from toolhost.tools.sql.plan import Suggestion, analyze_plan
from toolhost.tools.sql.query import AnalyzeQueryTool, QueryDatabaseTool

__all__ = [
    "AnalyzeQueryTool",
    "CheckDbHealthTool",
    "CreateMigrationTool",
    "InspectSchemaTool",
    "ManageIndexesTool",
    "OptimizeTableTool",
    "QueryDatabaseTool",
    "Suggestion",
    "analyze_plan",
    "describe_schema",
    "describe_table",
    "health_snapshot",
]
