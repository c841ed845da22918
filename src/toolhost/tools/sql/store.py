"""
Helpers shared by the SQL tools.

The SQL tools work against a SQLAlchemy Engine acquired from the handle
manager. Which kind they acquire is a constructor argument: the backend
host queries the primary store, the database host uses whichever store
DATABASE_TYPE selects (the sql-store kind).
"""

from typing import Any

from sqlalchemy import Connection, CursorResult, Engine, text

from toolhost.tools.base import ToolContext

POSTGRES = "postgresql"
MYSQL = "mysql"
SQLITE = "sqlite"


def get_engine(context: ToolContext, kind: str) -> Engine:
    """Acquire the engine for a store kind."""
    return context.handles.acquire(kind)


def dialect_of(engine: Engine | Connection) -> str:
    """Dialect name: "postgresql", "mysql", "sqlite", ..."""
    return engine.dialect.name


def quote(engine: Engine | Connection, identifier: str) -> str:
    """Quote an identifier for the engine's dialect."""
    return engine.dialect.identifier_preparer.quote(identifier)


def rows_as_dicts(result: CursorResult[Any]) -> list[dict[str, Any]]:
    """Materialize a result as a list of column -> value dicts."""
    return [dict(row._mapping) for row in result]


def apply_statement_timeout(conn: Connection, timeout_ms: float) -> None:
    """
    Bound statements on this connection to timeout_ms where supported.

    PostgreSQL scopes the setting to the current transaction; MySQL applies
    it to read statements for the session. Other dialects are left as is.
    """
    dialect = dialect_of(conn)
    millis = int(timeout_ms)
    if millis <= 0:
        return
    # SET does not take bind parameters; millis is an int
    if dialect == POSTGRES:
        conn.execute(text(f"SET LOCAL statement_timeout = {millis}"))
    elif dialect == MYSQL:
        conn.execute(text(f"SET SESSION MAX_EXECUTION_TIME = {millis}"))


def error_text(e: Exception) -> str:
    """The driver's message for a SQLAlchemy error, without the SQL echo."""
    orig = getattr(e, "orig", None)
    return str(orig if orig is not None else e).strip()
