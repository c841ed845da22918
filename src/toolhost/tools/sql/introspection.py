"""
Schema introspection for the SQL stores.

Uses SQLAlchemy's Inspector so the same code reads PostgreSQL, MySQL and
SQLite catalogs. Shared by the inspect_schema tool and the schema
resources.
"""

from typing import Any

from sqlalchemy import Engine, inspect
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError

from toolhost.handles import SQL_STORE
from toolhost.schema import ToolResult
from toolhost.tools.base import Tool, ToolContext
from toolhost.tools.sql.store import error_text, get_engine


def _column(column: dict[str, Any]) -> dict[str, Any]:
    default = column.get("default")
    return {
        "name": column["name"],
        "type": str(column["type"]),
        "nullable": column.get("nullable", True),
        "default": None if default is None else str(default),
    }


def _constraints(inspector: Any, table_name: str) -> list[dict[str, Any]]:
    constraints: list[dict[str, Any]] = []

    pk = inspector.get_pk_constraint(table_name)
    if pk and pk.get("constrained_columns"):
        constraints.append({
            "name": pk.get("name"),
            "type": "PRIMARY KEY",
            "columns": pk["constrained_columns"],
        })

    for unique in inspector.get_unique_constraints(table_name):
        constraints.append({
            "name": unique.get("name"),
            "type": "UNIQUE",
            "columns": unique["column_names"],
        })

    for fk in inspector.get_foreign_keys(table_name):
        constraints.append({
            "name": fk.get("name"),
            "type": "FOREIGN KEY",
            "columns": fk["constrained_columns"],
            "references": {
                "table": fk["referred_table"],
                "columns": fk["referred_columns"],
            },
        })

    return constraints


def _indexes(inspector: Any, table_name: str) -> list[dict[str, Any]]:
    return [
        {
            "name": index["name"],
            "columns": [c for c in index["column_names"] if c is not None],
            "unique": bool(index.get("unique")),
        }
        for index in inspector.get_indexes(table_name)
    ]


def describe_table(
    engine: Engine,
    table_name: str,
    include_indexes: bool = True,
    include_constraints: bool = True,
) -> dict[str, Any]:
    """
    Columns, and optionally indexes and constraints, of one table.

    Raises:
        NoSuchTableError: If the table does not exist
    """
    inspector = inspect(engine)
    description: dict[str, Any] = {
        "table": table_name,
        "columns": [_column(c) for c in inspector.get_columns(table_name)],
    }
    if include_indexes:
        description["indexes"] = _indexes(inspector, table_name)
    if include_constraints:
        description["constraints"] = _constraints(inspector, table_name)
    return description


def describe_schema(engine: Engine) -> dict[str, list[dict[str, Any]]]:
    """Columns of every table, keyed by table name."""
    inspector = inspect(engine)
    return {
        table_name: [_column(c) for c in inspector.get_columns(table_name)]
        for table_name in inspector.get_table_names()
    }


class InspectSchemaTool(Tool):
    """
    Inspect the database schema.

    With tableName, returns that table's columns and (by default) its
    indexes and constraints. Without it, returns the columns of every
    table.

    Arguments:
        tableName (str): Table to inspect; omit for all tables
        includeIndexes (bool): Include index information (default True)
        includeConstraints (bool): Include constraints (default True)
    """

    def __init__(self, store_kind: str = SQL_STORE) -> None:
        self.store_kind = store_kind

    @property
    def name(self) -> str:
        return "inspect_schema"

    @property
    def description(self) -> str:
        return "Inspect database schema including tables, columns, indexes, and constraints"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "tableName": {"type": "string", "description": "Specific table to inspect (optional)"},
                "includeIndexes": {"type": "boolean", "description": "Include index information", "default": True},
                "includeConstraints": {"type": "boolean", "description": "Include constraints", "default": True},
            },
        }

    def execute(self, args: dict[str, Any], context: ToolContext) -> ToolResult:
        engine = get_engine(context, self.store_kind)
        table_name = args.get("tableName")

        try:
            if table_name:
                payload: Any = describe_table(
                    engine,
                    table_name,
                    include_indexes=args["includeIndexes"],
                    include_constraints=args["includeConstraints"],
                )
                summary = f"Table {table_name}: {len(payload['columns'])} columns"
            else:
                payload = describe_schema(engine)
                summary = f"{len(payload)} tables"
        except NoSuchTableError:
            return ToolResult.fail(f"Table not found: {table_name}")
        except SQLAlchemyError as e:
            return ToolResult.fail(f"Schema inspection failed: {error_text(e)}")

        return ToolResult.ok(summary, payload, uri="result://schema")
