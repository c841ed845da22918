"""
Integration tests for the CLI.

Uses typer's CliRunner. Tests cover:
- --version and the host listing
- Tool and resource listings per host
- One-shot tool calls (success, rejection, bad input)
- Serving stdio until EOF
"""

import json

import pytest
from typer.testing import CliRunner

from toolhost import __version__
from toolhost.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def quiet_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the caller's environment out of host configuration."""
    for name in ("DATABASE_URL", "POSTGRES_URL", "MYSQL_URL", "DATABASE_TYPE", "TOOLHOST_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("TOOLHOST_LOG_LEVEL", "WARNING")


class TestInfoCommands:
    """Tests for --version, hosts, tools and resources."""

    def test_version(self) -> None:
        """--version prints the package version."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_hosts(self) -> None:
        """hosts lists every shipped host."""
        result = runner.invoke(app, ["hosts"])
        assert result.exit_code == 0
        for name in ("backend", "database", "devops"):
            assert name in result.stdout

    def test_tools(self) -> None:
        """tools lists a host's tools with their required arguments."""
        result = runner.invoke(app, ["tools", "database"])
        assert result.exit_code == 0
        for name in ("inspect_schema", "analyze_query", "create_migration", "manage_indexes"):
            assert name in result.stdout

    def test_resources(self) -> None:
        """resources lists a host's resource uris."""
        result = runner.invoke(app, ["resources", "devops"])
        assert result.exit_code == 0
        assert "docker://info" in result.stdout
        assert "docker://compose" in result.stdout

    def test_unknown_host(self) -> None:
        """An unknown host exits 1."""
        result = runner.invoke(app, ["tools", "frontend"])
        assert result.exit_code == 1


class TestCallCommand:
    """Tests for the one-shot call command."""

    def test_call_success(self, tmp_path) -> None:
        """A successful call prints its summary and exits 0."""
        result = runner.invoke(
            app,
            [
                "call",
                "database",
                "create_migration",
                "-C",
                str(tmp_path),
                "--args",
                json.dumps({"migrationName": "init", "upSQL": "SELECT 1;", "downSQL": "SELECT 1;"}),
            ],
        )
        assert result.exit_code == 0
        assert "Migration created:" in result.stdout
        assert len(list((tmp_path / "migrations").glob("*_init.sql"))) == 1

    def test_call_json_output(self, tmp_path) -> None:
        """--json prints the raw envelope."""
        result = runner.invoke(
            app,
            [
                "call",
                "database",
                "create_migration",
                "-C",
                str(tmp_path),
                "--json",
                "-a",
                json.dumps({"migrationName": "init", "upSQL": "SELECT 1;", "downSQL": "SELECT 1;"}),
            ],
        )
        assert result.exit_code == 0
        envelope = json.loads(result.stdout)
        assert envelope["isError"] is False
        assert envelope["content"][0]["type"] == "text"

    def test_call_tool_error_exits_1(self) -> None:
        """An isError result exits 1."""
        result = runner.invoke(
            app,
            ["call", "devops", "run_health_check", "--args", "{}"],
        )
        assert result.exit_code == 1

    def test_call_rejected_arguments(self) -> None:
        """Arguments failing the contract exit 1."""
        result = runner.invoke(app, ["call", "backend", "check_api_health", "--args", "{}"])
        assert result.exit_code == 1

    def test_call_unknown_tool(self) -> None:
        """Unknown tools exit 1."""
        result = runner.invoke(app, ["call", "backend", "nope"])
        assert result.exit_code == 1

    def test_call_invalid_json(self) -> None:
        """--args must be valid JSON."""
        result = runner.invoke(app, ["call", "backend", "run_tests", "--args", "{nope"])
        assert result.exit_code == 1

    def test_call_args_must_be_object(self) -> None:
        """--args must be a JSON object."""
        result = runner.invoke(app, ["call", "backend", "run_tests", "--args", "[1, 2]"])
        assert result.exit_code == 1


class TestServeCommand:
    """Tests for serve."""

    def test_serve_until_eof(self) -> None:
        """serve answers requests from stdin and exits 0 at EOF."""
        stdin = "\n".join([
            json.dumps({"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {}}),
            json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"}),
            json.dumps({"jsonrpc": "2.0", "id": 2, "method": "resources/list"}),
        ]) + "\n"

        result = runner.invoke(app, ["serve", "devops"], input=stdin)

        assert result.exit_code == 0
        responses = [json.loads(line) for line in result.stdout.splitlines() if line.startswith("{")]
        assert sorted(r["id"] for r in responses) == [1, 2]

    def test_serve_empty_input(self) -> None:
        """Empty stdin is a clean shutdown."""
        result = runner.invoke(app, ["serve", "backend"], input="")
        assert result.exit_code == 0

    def test_serve_unknown_host(self) -> None:
        """serve refuses unknown hosts."""
        result = runner.invoke(app, ["serve", "frontend"], input="")
        assert result.exit_code == 1
