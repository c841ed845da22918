"""
Database maintenance tools.

- manage_indexes: Create, drop, list and analyze indexes
- check_db_health: Connections, size and performance statistics
- optimize_table: VACUUM / ANALYZE / REINDEX a table

Identifiers supplied by the caller are always quoted for the store's
dialect before they reach a DDL statement.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Index, MetaData, Table, inspect, text
from sqlalchemy.exc import SQLAlchemyError

from toolhost.handles import SQL_STORE
from toolhost.schema import ToolResult
from toolhost.tools.base import Tool, ToolContext
from toolhost.tools.sql.store import (
    MYSQL,
    POSTGRES,
    SQLITE,
    dialect_of,
    error_text,
    get_engine,
    quote,
    rows_as_dicts,
)

INDEX_ACTIONS = ["create", "drop", "analyze", "list"]
INDEX_TYPES = ["btree", "hash", "gin", "gist", "brin"]
OPTIMIZE_OPERATIONS = ["vacuum", "analyze", "reindex", "all"]

PG_INDEX_USAGE = """
SELECT schemaname, relname AS tablename, indexrelname AS indexname,
       idx_scan AS scans, idx_tup_read AS tuples_read, idx_tup_fetch AS tuples_fetched
FROM pg_stat_user_indexes
WHERE relname = :table_name
ORDER BY idx_scan DESC
"""

PG_CONNECTIONS = """
SELECT count(*) AS total_connections,
       count(*) FILTER (WHERE state = 'active') AS active_connections,
       count(*) FILTER (WHERE state = 'idle') AS idle_connections
FROM pg_stat_activity
"""

PG_SIZE = """
SELECT pg_database_size(current_database()) AS size_bytes,
       pg_size_pretty(pg_database_size(current_database())) AS size_pretty
"""

PG_PERFORMANCE = """
SELECT sum(heap_blks_read) AS heap_read,
       sum(heap_blks_hit) AS heap_hit,
       sum(heap_blks_hit) / nullif(sum(heap_blks_hit) + sum(heap_blks_read), 0) AS cache_hit_ratio
FROM pg_statio_user_tables
"""

MYSQL_SIZE = """
SELECT sum(data_length + index_length) AS size_bytes
FROM information_schema.tables
WHERE table_schema = DATABASE()
"""


class IndexRequestError(ValueError):
    """A manage_indexes call is missing what its action needs."""


def _create_index(conn: Any, args: dict[str, Any]) -> dict[str, Any]:
    table_name, index_name, columns = args.get("tableName"), args.get("indexName"), args.get("columns")
    if not (table_name and index_name and columns):
        raise IndexRequestError("tableName, indexName, and columns required for create action")

    table = Table(table_name, MetaData(), autoload_with=conn)
    missing = [c for c in columns if c not in table.c]
    if missing:
        raise IndexRequestError(f"Unknown columns on {table_name}: {', '.join(missing)}")

    dialect = dialect_of(conn)
    kwargs: dict[str, Any] = {}
    if dialect == POSTGRES:
        kwargs["postgresql_using"] = args["indexType"]
    elif dialect == MYSQL and args["indexType"] in ("btree", "hash"):
        kwargs["mysql_using"] = args["indexType"]

    index = Index(index_name, *(table.c[c] for c in columns), unique=args["unique"], **kwargs)
    index.create(conn)
    return {"message": f"Index {index_name} created successfully", "table": table_name, "columns": columns}


def _drop_index(conn: Any, args: dict[str, Any]) -> dict[str, Any]:
    index_name, table_name = args.get("indexName"), args.get("tableName")
    if not index_name:
        raise IndexRequestError("indexName required for drop action")

    if dialect_of(conn) == MYSQL:
        if not table_name:
            raise IndexRequestError("tableName required to drop an index on MySQL")
        conn.execute(text(f"DROP INDEX {quote(conn, index_name)} ON {quote(conn, table_name)}"))
    else:
        conn.execute(text(f"DROP INDEX {quote(conn, index_name)}"))
    return {"message": f"Index {index_name} dropped successfully"}


def _list_indexes(conn: Any, args: dict[str, Any]) -> list[dict[str, Any]]:
    inspector = inspect(conn)
    tables = [args["tableName"]] if args.get("tableName") else inspector.get_table_names()
    return [
        {
            "table": table_name,
            "name": index["name"],
            "columns": [c for c in index["column_names"] if c is not None],
            "unique": bool(index.get("unique")),
        }
        for table_name in tables
        for index in inspector.get_indexes(table_name)
    ]


def _analyze_indexes(conn: Any, args: dict[str, Any]) -> Any:
    table_name = args.get("tableName")
    if not table_name:
        raise IndexRequestError("tableName required for analyze action")

    dialect = dialect_of(conn)
    if dialect != POSTGRES:
        return {"message": f"Index usage statistics are not available for {dialect}"}
    return rows_as_dicts(conn.execute(text(PG_INDEX_USAGE), {"table_name": table_name}))


INDEX_HANDLERS = {
    "create": _create_index,
    "drop": _drop_index,
    "list": _list_indexes,
    "analyze": _analyze_indexes,
}


class ManageIndexesTool(Tool):
    """
    Create, drop, list or analyze database indexes.

    Arguments:
        action (str): create, drop, analyze or list (required)
        tableName (str): Table name (create, analyze; drop on MySQL)
        indexName (str): Index name (create, drop)
        columns (list[str]): Columns to index (create)
        indexType (str): btree, hash, gin, gist or brin (default btree;
            honored by PostgreSQL, and by MySQL for btree/hash)
        unique (bool): Create a unique index (default False)
    """

    def __init__(self, store_kind: str = SQL_STORE) -> None:
        self.store_kind = store_kind

    @property
    def name(self) -> str:
        return "manage_indexes"

    @property
    def description(self) -> str:
        return "Create, drop, or analyze database indexes"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "action": {"type": "string", "enum": INDEX_ACTIONS, "description": "Action to perform"},
                "tableName": {"type": "string", "description": "Table name"},
                "indexName": {"type": "string", "description": "Index name"},
                "columns": {"type": "array", "items": {"type": "string"}, "description": "Columns to index"},
                "indexType": {"type": "string", "enum": INDEX_TYPES, "description": "Index type", "default": "btree"},
                "unique": {"type": "boolean", "description": "Create unique index", "default": False},
            },
            "required": ["action"],
        }

    def execute(self, args: dict[str, Any], context: ToolContext) -> ToolResult:
        engine = get_engine(context, self.store_kind)
        action = args["action"]

        try:
            with engine.connect() as conn:
                outcome = INDEX_HANDLERS[action](conn, args)
                conn.commit()
        except IndexRequestError as e:
            return ToolResult.fail(str(e))
        except SQLAlchemyError as e:
            return ToolResult.fail(f"Failed to {action} index: {error_text(e)}")

        if isinstance(outcome, list):
            summary = f"{len(outcome)} indexes"
        else:
            summary = outcome.get("message", f"Index {action} completed")
        return ToolResult.ok(summary, outcome, uri="result://indexes")


def health_snapshot(
    engine: Any,
    include_connections: bool = True,
    include_size: bool = True,
    include_performance: bool = True,
) -> dict[str, Any]:
    """
    Collect health statistics for the store.

    Reaching this far means the store answered, so healthy is True; any
    failure propagates as a SQLAlchemyError.
    """
    dialect = dialect_of(engine)
    health: dict[str, Any] = {
        "healthy": True,
        "dialect": dialect,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))

        if dialect == POSTGRES:
            if include_connections:
                health["connections"] = rows_as_dicts(conn.execute(text(PG_CONNECTIONS)))[0]
            if include_size:
                health["size"] = rows_as_dicts(conn.execute(text(PG_SIZE)))[0]
            if include_performance:
                health["performance"] = rows_as_dicts(conn.execute(text(PG_PERFORMANCE)))[0]
        elif dialect == MYSQL:
            if include_connections:
                status = rows_as_dicts(conn.execute(text("SHOW STATUS LIKE 'Threads_connected'")))
                health["connections"] = {row["Variable_name"]: row["Value"] for row in status}
            if include_size:
                health["size"] = rows_as_dicts(conn.execute(text(MYSQL_SIZE)))[0]
        elif dialect == SQLITE and include_size:
            page_count = conn.execute(text("PRAGMA page_count")).scalar() or 0
            page_size = conn.execute(text("PRAGMA page_size")).scalar() or 0
            health["size"] = {"size_bytes": page_count * page_size}

    return health


class CheckDbHealthTool(Tool):
    """
    Check database health: connectivity, connections, size, performance.

    Arguments:
        includeConnections (bool): Include connection stats (default True)
        includeSize (bool): Include database size (default True)
        includePerformance (bool): Include cache statistics (default True)
    """

    def __init__(self, store_kind: str = SQL_STORE) -> None:
        self.store_kind = store_kind

    @property
    def name(self) -> str:
        return "check_db_health"

    @property
    def description(self) -> str:
        return "Check database health, connections, and performance metrics"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "includeConnections": {"type": "boolean", "description": "Include connection stats", "default": True},
                "includeSize": {"type": "boolean", "description": "Include database size", "default": True},
                "includePerformance": {"type": "boolean", "description": "Include performance metrics", "default": True},
            },
        }

    def execute(self, args: dict[str, Any], context: ToolContext) -> ToolResult:
        engine = get_engine(context, self.store_kind)
        try:
            health = health_snapshot(
                engine,
                include_connections=args["includeConnections"],
                include_size=args["includeSize"],
                include_performance=args["includePerformance"],
            )
        except SQLAlchemyError as e:
            return ToolResult.fail(f"Health check failed: {error_text(e)}")

        return ToolResult.ok(f"Database healthy ({health['dialect']})", health, uri="result://db-health")


def _optimize_statements(dialect: str, table: str, operation: str, full: bool) -> list[str]:
    """SQL for each step of an optimize_table operation, in order."""
    if dialect == MYSQL:
        steps = {
            "vacuum": [f"OPTIMIZE TABLE {table}"],
            "analyze": [f"ANALYZE TABLE {table}"],
            "reindex": [],
        }
    elif dialect == SQLITE:
        # SQLite vacuums the whole database file
        steps = {
            "vacuum": ["VACUUM"],
            "analyze": [f"ANALYZE {table}"],
            "reindex": [f"REINDEX {table}"],
        }
    else:
        steps = {
            "vacuum": [f"VACUUM {'FULL ' if full else ''}{table}"],
            "analyze": [f"ANALYZE {table}"],
            "reindex": [f"REINDEX TABLE {table}"],
        }

    if operation == "all":
        return [*steps["vacuum"], *steps["analyze"], *steps["reindex"]]
    return steps[operation]


class OptimizeTableTool(Tool):
    """
    Run VACUUM, ANALYZE or REINDEX on a table.

    The statements run outside a transaction (AUTOCOMMIT), which VACUUM
    requires. On MySQL, vacuum maps to OPTIMIZE TABLE and reindex has no
    equivalent.

    Arguments:
        tableName (str): Table to optimize (required)
        operation (str): vacuum, analyze, reindex or all (default analyze)
        full (bool): VACUUM FULL on PostgreSQL (default False)
    """

    def __init__(self, store_kind: str = SQL_STORE) -> None:
        self.store_kind = store_kind

    @property
    def name(self) -> str:
        return "optimize_table"

    @property
    def description(self) -> str:
        return "Optimize table with VACUUM, ANALYZE, or REINDEX"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "tableName": {"type": "string", "description": "Table to optimize"},
                "operation": {
                    "type": "string",
                    "enum": OPTIMIZE_OPERATIONS,
                    "description": "Optimization operation",
                    "default": "analyze",
                },
                "full": {"type": "boolean", "description": "Full vacuum (PostgreSQL)", "default": False},
            },
            "required": ["tableName"],
        }

    def execute(self, args: dict[str, Any], context: ToolContext) -> ToolResult:
        engine = get_engine(context, self.store_kind)
        table_name, operation = args["tableName"], args["operation"]
        statements = _optimize_statements(
            dialect_of(engine), quote(engine, table_name), operation, args["full"]
        )

        try:
            with engine.connect().execution_options(isolation_level="AUTOCOMMIT") as conn:
                for statement in statements:
                    conn.execute(text(statement))
        except SQLAlchemyError as e:
            return ToolResult.fail(f"Optimization failed: {error_text(e)}")

        return ToolResult.ok(
            f"Table {table_name} optimized: {operation}",
            {"message": f"Table {table_name} optimized", "operation": operation, "statements": statements},
            uri="result://optimize",
        )
