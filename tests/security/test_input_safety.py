"""
Security tests for caller-supplied values.

These tests verify that tool arguments:
1. Reach subprocesses as single argv entries, never through a shell
2. Reach SQL DDL only as quoted identifiers
3. Cannot move file writes or reads outside their directory

These are security-critical tests - failures here indicate
potential vulnerabilities in the tools.
"""

import shlex
import sys
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy import inspect

from toolhost.config import ContainerRuntimeSettings, TaskRunnerSettings
from toolhost.tools.base import Tool, ToolContext
from toolhost.tools.containers import ContainerRuntime, ReadSecretTool
from toolhost.tools.shell import TaskRunner
from toolhost.tools.sql import CreateMigrationTool, ManageIndexesTool, OptimizeTableTool
from toolhost.tools.tasks import RunTestsTool
from toolhost.validation import validate_arguments

ECHO_ARGV = f"{shlex.quote(sys.executable)} -c \"import sys; print(repr(sys.argv[1:]))\""


def call(tool: Tool, args: dict[str, Any], context: ToolContext):
    return tool.execute(validate_arguments(args, tool.input_schema), context)


class TestShellInjectionPrevention:
    """Tests for shell injection through tool arguments."""

    @pytest.mark.parametrize("pattern", ["login; rm -rf /", "$(whoami)", "`id`", "a && b | c > d"])
    def test_pattern_is_one_argument(self, make_context, temp_dir: Path, pattern: str) -> None:
        """Shell metacharacters in a test pattern arrive verbatim."""
        runner = TaskRunner(TaskRunnerSettings(test_command=ECHO_ARGV))
        result = call(RunTestsTool(), {"pattern": pattern}, make_context(task_runner=runner))

        assert result.is_error is False
        assert result.content[1].resource.text.strip() == repr(["-t", pattern])

    def test_no_file_side_effects(self, make_context, temp_dir: Path) -> None:
        """A redirect in an argument does not create a file."""
        runner = TaskRunner(TaskRunnerSettings(test_command=ECHO_ARGV))
        call(RunTestsTool(), {"testPath": f"x > {temp_dir / 'pwned'}"}, make_context(task_runner=runner))
        assert not (temp_dir / "pwned").exists()


class TestSqlIdentifierQuoting:
    """Tests for identifiers reaching DDL."""

    def test_hostile_index_name(self, make_context, sqlite_engine) -> None:
        """An index name carrying SQL is created as a literal name."""
        context = make_context(sql_store=sqlite_engine)
        hostile = 'idx"; DROP TABLE users; --'

        call(
            ManageIndexesTool(),
            {"action": "create", "tableName": "posts", "indexName": hostile, "columns": ["title"]},
            context,
        )
        assert "users" in inspect(sqlite_engine).get_table_names()

        result = call(ManageIndexesTool(), {"action": "drop", "indexName": hostile}, context)
        assert result.is_error is False
        assert "users" in inspect(sqlite_engine).get_table_names()

    def test_hostile_table_name(self, make_context, sqlite_engine) -> None:
        """A table name carrying SQL never runs as SQL."""
        context = make_context(sql_store=sqlite_engine)
        call(OptimizeTableTool(), {"tableName": "users; DROP TABLE posts", "operation": "reindex"}, context)
        assert "posts" in inspect(sqlite_engine).get_table_names()

    def test_unknown_index_column(self, make_context, sqlite_engine) -> None:
        """Index columns must be real columns of the table."""
        result = call(
            ManageIndexesTool(),
            {"action": "create", "tableName": "users", "indexName": "idx_x", "columns": ["email); DROP TABLE users; --"]},
            make_context(sql_store=sqlite_engine),
        )
        assert result.is_error is True
        assert "users" in inspect(sqlite_engine).get_table_names()


class TestPathEscapes:
    """Tests for file paths built from arguments."""

    @pytest.mark.parametrize("name", ["../../etc/passwd", "/etc/passwd", "..", "nested/secret"])
    def test_secret_file_names(self, make_context, temp_dir: Path, name: str) -> None:
        """Secret names cannot leave the secrets directory."""
        runtime = ContainerRuntime(ContainerRuntimeSettings(docker_host=None, secrets_path=str(temp_dir)), "docker")
        result = call(ReadSecretTool(), {"secretName": name, "source": "file"}, make_context(container_runtime=runtime))
        assert result.is_error is True

    @pytest.mark.parametrize("name", ["../outside", "..\\outside", "/abs", ".env"])
    def test_migration_names(self, make_context, temp_dir: Path, name: str) -> None:
        """Migration names cannot place files outside the migrations directory."""
        result = call(
            CreateMigrationTool(),
            {"migrationName": name, "upSQL": "SELECT 1;", "downSQL": "SELECT 1;"},
            make_context(),
        )
        assert result.is_error is True
        assert list(temp_dir.rglob("*.sql")) == []
