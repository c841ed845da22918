"""
Project task tools: running the test suite and database migrations.

Both run the commands configured on the task-runner handle
(TEST_COMMAND, MIGRATION_COMMAND) in the host's working directory, under a
fixed timeout. A non-zero exit status is reported as an isError envelope
whose second part carries the command output.
"""

from typing import Any

from toolhost.handles import TASK_RUNNER
from toolhost.schema import ToolResult
from toolhost.tools.base import Tool, ToolContext
from toolhost.tools.shell import MIGRATION_TIMEOUT, TESTS_TIMEOUT, TaskRunner


class RunTestsTool(Tool):
    """
    Execute the project's test suite.

    Arguments:
        testPath (str): Specific test file or directory
        pattern (str): Test name pattern to match
        coverage (bool): Run with coverage (default False)
    """

    @property
    def name(self) -> str:
        return "run_tests"

    @property
    def description(self) -> str:
        return "Execute backend test suite"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "testPath": {"type": "string", "description": "Specific test file or directory"},
                "pattern": {"type": "string", "description": "Test name pattern to match"},
                "coverage": {"type": "boolean", "description": "Run with coverage", "default": False},
            },
        }

    def execute(self, args: dict[str, Any], context: ToolContext) -> ToolResult:
        runner: TaskRunner = context.handles.acquire(TASK_RUNNER)
        cmd = runner.test_command(args.get("testPath"), args.get("pattern"), args["coverage"])

        result = runner.run(
            cmd,
            timeout=TESTS_TIMEOUT,
            cwd=context.working_dir,
            env={"CI": "true"},
            tool=self.name,
        )

        if not result.succeeded:
            return ToolResult.fail(
                f"Tests failed (exit code {result.return_code})",
                result.output or f"exit code {result.return_code}",
                uri="result://test-error",
            )
        return ToolResult.ok(
            f"Tests passed in {result.duration_ms}ms",
            result.output,
            uri="result://tests",
        )


class RunMigrationTool(Tool):
    """
    Run database migrations up or down.

    Arguments:
        direction (str): "up" or "down" (default "up")
        steps (int): Number of migrations to run (default 1), exported to
            the migration command as MIGRATION_STEPS
    """

    @property
    def name(self) -> str:
        return "run_migration"

    @property
    def description(self) -> str:
        return "Execute database migration (up or down)"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "direction": {
                    "type": "string",
                    "enum": ["up", "down"],
                    "description": "Migration direction",
                    "default": "up",
                },
                "steps": {
                    "type": "number",
                    "description": "Number of migrations to run",
                    "default": 1,
                },
            },
        }

    def execute(self, args: dict[str, Any], context: ToolContext) -> ToolResult:
        runner: TaskRunner = context.handles.acquire(TASK_RUNNER)
        direction = args["direction"]

        result = runner.run(
            runner.migration_command(direction),
            timeout=MIGRATION_TIMEOUT,
            cwd=context.working_dir,
            env={"MIGRATION_STEPS": str(int(args["steps"]))},
            tool=self.name,
        )

        if not result.succeeded:
            return ToolResult.fail(
                f"Migration {direction} failed (exit code {result.return_code})",
                result.output or f"exit code {result.return_code}",
                uri="result://migration-error",
            )
        return ToolResult.ok(
            f"Migration {direction} executed successfully",
            result.output,
            uri="result://migration",
        )
