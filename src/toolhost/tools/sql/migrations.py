"""Migration file scaffolding."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from toolhost.schema import ToolResult
from toolhost.tools.base import Tool, ToolContext

MIGRATION_TEMPLATE = """-- Migration: {name}
-- Created: {created}

-- UP Migration
{up}

-- DOWN Migration
-- {down}
"""


def migration_filename(name: str, now: datetime | None = None) -> str:
    """{YYYYMMDDHHMMSS}_{name}.sql, stamped in UTC."""
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%d%H%M%S")
    return f"{stamp}_{name}.sql"


def render_migration(name: str, up_sql: str, down_sql: str, created: datetime) -> str:
    return MIGRATION_TEMPLATE.format(
        name=name,
        created=created.isoformat(),
        up=up_sql,
        down=down_sql.replace("\n", "\n-- "),
    )


class CreateMigrationTool(Tool):
    """
    Write a new migration file with UP and DOWN sections.

    The file lands in migrationsPath, resolved against the host's working
    directory; the directory is created if needed. The DOWN section is
    written commented out so that applying the file runs only the UP part.

    Arguments:
        migrationName (str): Migration name, used in the filename (required)
        upSQL (str): SQL for the up migration (required)
        downSQL (str): SQL for the down migration (required)
        migrationsPath (str): Directory for migration files
            (default "./migrations")
    """

    @property
    def name(self) -> str:
        return "create_migration"

    @property
    def description(self) -> str:
        return "Generate a new database migration file"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "migrationName": {"type": "string", "description": "Name of the migration"},
                "upSQL": {"type": "string", "description": "SQL for up migration"},
                "downSQL": {"type": "string", "description": "SQL for down migration"},
                "migrationsPath": {
                    "type": "string",
                    "description": "Path to migrations directory",
                    "default": "./migrations",
                },
            },
            "required": ["migrationName", "upSQL", "downSQL"],
        }

    def execute(self, args: dict[str, Any], context: ToolContext) -> ToolResult:
        name = args["migrationName"]
        if not name or any(sep in name for sep in ("/", "\\")) or name.startswith("."):
            return ToolResult.fail(f"Invalid migration name: {name!r}")

        created = datetime.now(timezone.utc)
        directory = Path(context.working_dir) / args["migrationsPath"]
        path = directory / migration_filename(name, created)

        try:
            directory.mkdir(parents=True, exist_ok=True)
            path.write_text(render_migration(name, args["upSQL"], args["downSQL"], created), encoding="utf-8")
        except OSError as e:
            return ToolResult.fail(f"Failed to create migration: {e}")

        context.logger.info("migration.created", path=str(path))
        return ToolResult.ok(
            f"Migration created: {path.name}",
            {"message": "Migration created successfully", "filename": path.name, "path": str(path)},
            uri="result://migration",
        )
