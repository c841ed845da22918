"""
Integration tests for the stdio transport.

Tests cover:
- One response line per request
- Parse errors (bad JSON or bad UTF-8) answered with a null id
- Blank lines and notifications
- Responses matched to requests by id when served concurrently
- Slow calls not holding back later requests
- Dispatch failures still answered
- Log output kept off the protocol stream
"""

import io
import json
import time
from typing import Any

import pytest
import structlog

from toolhost.dispatcher import Dispatcher
from toolhost.errors import RPC_INTERNAL_ERROR, RPC_PARSE_ERROR
from toolhost.hosts import build_host
from toolhost.hosts.base import Host
from toolhost.schema import ToolResult
from toolhost.tools.base import Tool, ToolContext
from toolhost.transport import StdioTransport


def serve(dispatcher: Dispatcher, *lines: str, max_workers: int = 4) -> list[dict[str, Any]]:
    """Feed lines through a transport and return the decoded responses."""
    reader = io.StringIO("".join(line + "\n" for line in lines))
    return serve_bytes(dispatcher, reader, max_workers=max_workers)


def serve_bytes(dispatcher: Dispatcher, reader: Any, max_workers: int = 4) -> list[dict[str, Any]]:
    """Serve from an arbitrary reader and return the decoded responses in output order."""
    writer = io.StringIO()
    StdioTransport(dispatcher, reader=reader, writer=writer, max_workers=max_workers).serve()
    return [json.loads(line) for line in writer.getvalue().splitlines()]


def ping(request_id: int) -> str:
    return json.dumps({"jsonrpc": "2.0", "id": request_id, "method": "ping"})


class SlowTool(Tool):
    """Takes half a second to answer."""

    @property
    def name(self) -> str:
        return "slow"

    def execute(self, args: dict[str, Any], context: ToolContext) -> ToolResult:
        time.sleep(0.5)
        return ToolResult.ok("done")


@pytest.fixture
def dispatcher(make_handles, temp_dir) -> Dispatcher:
    return Dispatcher(build_host("backend"), make_handles(), str(temp_dir))


class TestStdioTransport:
    """Tests for StdioTransport.serve()."""

    def test_initialize_round_trip(self, dispatcher: Dispatcher) -> None:
        """A request line produces exactly one response line."""
        responses = serve(
            dispatcher,
            json.dumps({"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {}}),
        )
        assert len(responses) == 1
        assert responses[0]["result"]["serverInfo"] == {"name": "backend", "version": "1.0.0"}

    def test_parse_error(self, dispatcher: Dispatcher) -> None:
        """Undecodable lines are answered with -32700 and a null id."""
        responses = serve(dispatcher, "{not json")
        assert len(responses) == 1
        assert responses[0]["id"] is None
        assert responses[0]["error"]["code"] == RPC_PARSE_ERROR

    def test_parse_error_does_not_stop_serving(self, dispatcher: Dispatcher) -> None:
        """Lines after a bad one are still served."""
        responses = serve(
            dispatcher,
            "garbage",
            json.dumps({"jsonrpc": "2.0", "id": 2, "method": "ping"}),
        )
        assert sorted(r["id"] or 0 for r in responses) == [0, 2]

    def test_blank_lines_and_notifications(self, dispatcher: Dispatcher) -> None:
        """Blank lines are skipped and notifications produce no output."""
        responses = serve(
            dispatcher,
            "",
            "   ",
            json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"}),
            json.dumps({"jsonrpc": "2.0", "id": 3, "method": "ping"}),
        )
        assert responses == [{"jsonrpc": "2.0", "id": 3, "result": {}}]

    def test_responses_match_requests(self, dispatcher: Dispatcher) -> None:
        """Every id gets its own response, whatever order they come back in."""
        lines = [json.dumps({"jsonrpc": "2.0", "id": i, "method": "tools/list"}) for i in range(20)]
        responses = serve(dispatcher, *lines, max_workers=8)

        assert sorted(r["id"] for r in responses) == list(range(20))
        names = {tuple(t["name"] for t in r["result"]["tools"]) for r in responses}
        assert names == {
            ("query_database", "test_api_endpoint", "run_tests", "run_migration", "check_api_health"),
        }

    def test_tool_error_over_the_wire(self, dispatcher: Dispatcher) -> None:
        """Handle failures surface as isError results, not transport failures."""
        responses = serve(
            dispatcher,
            json.dumps({
                "jsonrpc": "2.0",
                "id": 9,
                "method": "tools/call",
                "params": {"name": "query_database", "arguments": {"query": "SELECT 1"}},
            }),
        )
        result = responses[0]["result"]
        assert result["isError"] is True
        assert len(result["content"]) == 1

    def test_invalid_utf8_line(self, dispatcher: Dispatcher) -> None:
        """A line of invalid UTF-8 is a parse error; later lines are still served."""
        raw = b"\xff\xfe garbage\n" + ping(1).encode() + b"\n"
        responses = serve_bytes(dispatcher, io.BytesIO(raw))

        errors = [r for r in responses if "error" in r]
        assert len(errors) == 1
        assert errors[0]["id"] is None
        assert errors[0]["error"]["code"] == RPC_PARSE_ERROR
        assert "UTF-8" in errors[0]["error"]["message"]
        assert [r["id"] for r in responses if "result" in r] == [1]

    def test_binary_reader(self, dispatcher: Dispatcher) -> None:
        """Byte lines are decoded as UTF-8, including non-ASCII text."""
        request = {"jsonrpc": "2.0", "id": "é", "method": "ping"}
        responses = serve_bytes(dispatcher, io.BytesIO(json.dumps(request, ensure_ascii=False).encode() + b"\n"))
        assert responses == [{"jsonrpc": "2.0", "id": "é", "result": {}}]

    def test_slow_call_does_not_block_later_requests(self, make_handles, temp_dir) -> None:
        """A ping sent after a slow call is answered first."""
        host = Host.create("slow-host", "1.0.0", [SlowTool()])
        dispatcher = Dispatcher(host, make_handles(), str(temp_dir))

        responses = serve(
            dispatcher,
            json.dumps({"jsonrpc": "2.0", "id": 1, "method": "tools/call", "params": {"name": "slow"}}),
            ping(2),
        )

        assert [r["id"] for r in responses] == [2, 1]
        assert responses[1]["result"]["isError"] is False

    def test_dispatch_failure_is_answered(self, dispatcher: Dispatcher, monkeypatch: pytest.MonkeyPatch) -> None:
        """If dispatching raises, the request still gets an internal error."""

        def broken(message: Any) -> None:
            raise RuntimeError("dispatcher broke")

        monkeypatch.setattr(dispatcher, "handle_message", broken)
        responses = serve(
            dispatcher,
            ping(7),
            json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"}),
        )

        assert len(responses) == 1
        assert responses[0]["id"] == 7
        assert responses[0]["error"]["code"] == RPC_INTERNAL_ERROR
        assert "dispatcher broke" in responses[0]["error"]["message"]

    def test_logs_stay_off_stdout(self, dispatcher: Dispatcher, capsys: pytest.CaptureFixture[str]) -> None:
        """Without configure_logging() nothing is logged to stdout."""
        structlog.reset_defaults()

        responses = serve(dispatcher, ping(1), "{bad")

        assert structlog.is_configured()
        assert len(responses) == 2
        assert capsys.readouterr().out == ""
