"""
Query tools: running SQL and explaining it.

- query_database: Execute a statement and return its rows
- analyze_query: Run EXPLAIN and derive optimization suggestions

Statements run on a pooled connection from the store's engine, bounded by
a per-call statement timeout where the dialect supports one.
"""

import json
import time
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from toolhost.handles import SQL_STORE
from toolhost.schema import ToolResult
from toolhost.tools.base import Tool, ToolContext
from toolhost.tools.sql.plan import (
    analyze_plan,
    normalize_mysql_plan,
    normalize_postgres_plan,
    normalize_sqlite_plan,
)
from toolhost.tools.sql.store import (
    MYSQL,
    POSTGRES,
    SQLITE,
    apply_statement_timeout,
    dialect_of,
    error_text,
    get_engine,
    rows_as_dicts,
)

EXPLAIN_OPTIONS = ["ANALYZE", "BUFFERS", "VERBOSE", "ALL"]


class QueryDatabaseTool(Tool):
    """
    Execute a SQL statement against the store.

    Row-returning statements report their rows and column names; other
    statements report the affected row count and are committed.

    Arguments:
        query (str): SQL to execute (required)
        database (str): Accepted for compatibility; the configured store
            is always used
        timeout (number): Statement timeout in milliseconds (default 5000)

    Example:
        args = {"query": "SELECT id, email FROM users LIMIT 2"}
        result = tool.execute(args, context)
        # result.summary == "2 rows in 3ms"
    """

    def __init__(self, store_kind: str = SQL_STORE) -> None:
        self.store_kind = store_kind

    @property
    def name(self) -> str:
        return "query_database"

    @property
    def description(self) -> str:
        return "Execute SQL query on database (writes are committed)"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "SQL query to execute"},
                "database": {"type": "string", "description": "Database name (optional)"},
                "timeout": {"type": "number", "description": "Query timeout in ms", "default": 5000},
            },
            "required": ["query"],
        }

    def execute(self, args: dict[str, Any], context: ToolContext) -> ToolResult:
        engine = get_engine(context, self.store_kind)
        started = time.monotonic()

        try:
            with engine.connect() as conn:
                apply_statement_timeout(conn, args["timeout"])
                result = conn.execute(text(args["query"]))
                if result.returns_rows:
                    fields = list(result.keys())
                    rows = rows_as_dicts(result)
                    row_count = len(rows)
                else:
                    fields, rows = [], []
                    row_count = result.rowcount
                conn.commit()
        except SQLAlchemyError as e:
            return ToolResult.fail(f"Database error: {error_text(e)}")

        duration_ms = int((time.monotonic() - started) * 1000)
        return ToolResult.ok(
            f"{row_count} rows in {duration_ms}ms",
            {
                "rows": rows,
                "rowCount": row_count,
                "fields": fields,
                "duration": duration_ms,
            },
            uri="result://query",
        )


def _explain_postgres(conn: Any, query: str, option: str | None) -> dict[str, Any]:
    options = ["ANALYZE", "BUFFERS", "VERBOSE"] if option == "ALL" else ([option] if option else [])
    explain = f"EXPLAIN ({', '.join([*options, 'FORMAT JSON'])}) {query}"
    document = conn.execute(text(explain)).scalar()
    if isinstance(document, str):
        document = json.loads(document)
    plan = document[0]
    return {
        "executionTime": plan.get("Execution Time"),
        "planningTime": plan.get("Planning Time"),
        "plan": plan["Plan"],
        "normalized": normalize_postgres_plan(plan["Plan"]),
    }


def _explain_mysql(conn: Any, query: str) -> dict[str, Any]:
    rows = rows_as_dicts(conn.execute(text(f"EXPLAIN {query}")))
    return {"plan": rows, "normalized": normalize_mysql_plan(rows)}


def _explain_sqlite(conn: Any, query: str) -> dict[str, Any]:
    rows = rows_as_dicts(conn.execute(text(f"EXPLAIN QUERY PLAN {query}")))
    return {"plan": rows, "normalized": normalize_sqlite_plan(rows)}


class AnalyzeQueryTool(Tool):
    """
    Analyze a query's execution plan and suggest optimizations.

    EXPLAIN ANALYZE executes the statement; the connection is rolled back
    afterwards so data-modifying statements leave no trace.

    Arguments:
        query (str): SQL query to analyze (required)
        explainOptions (str): ANALYZE, BUFFERS, VERBOSE or ALL
            (PostgreSQL only, default ANALYZE)
    """

    def __init__(self, store_kind: str = SQL_STORE) -> None:
        self.store_kind = store_kind

    @property
    def name(self) -> str:
        return "analyze_query"

    @property
    def description(self) -> str:
        return "Analyze query performance with EXPLAIN and provide optimization suggestions"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "SQL query to analyze"},
                "explainOptions": {
                    "type": "string",
                    "enum": EXPLAIN_OPTIONS,
                    "description": "EXPLAIN options (PostgreSQL)",
                    "default": "ANALYZE",
                },
            },
            "required": ["query"],
        }

    def execute(self, args: dict[str, Any], context: ToolContext) -> ToolResult:
        engine = get_engine(context, self.store_kind)
        dialect = dialect_of(engine)
        query = args["query"]

        try:
            with engine.connect() as conn:
                if dialect == POSTGRES:
                    analysis = _explain_postgres(conn, query, args.get("explainOptions"))
                elif dialect == MYSQL:
                    analysis = _explain_mysql(conn, query)
                elif dialect == SQLITE:
                    analysis = _explain_sqlite(conn, query)
                else:
                    return ToolResult.fail(f"Query analysis is not supported for {dialect}")
                conn.rollback()
        except SQLAlchemyError as e:
            return ToolResult.fail(f"Query analysis failed: {error_text(e)}")

        suggestions = [s.to_dict() for s in analyze_plan(analysis.pop("normalized"))]
        analysis["suggestions"] = suggestions
        return ToolResult.ok(
            f"Query analyzed: {len(suggestions)} suggestions",
            analysis,
            uri="result://query-analysis",
        )
