"""
CLI entry point for toolhost.

This module provides the Typer-based command-line interface for toolhost.

Commands:
    serve       Serve a host over stdio (JSON-RPC, one message per line)
    tools       List a host's tools
    resources   List a host's resources
    call        Invoke one tool once and print its result
    hosts       List the shipped hosts

Architecture Note:
    The CLI is intentionally thin - it builds the host, the handle manager
    and the dispatcher, and hands them to the transport. While serving,
    stdout belongs to the protocol, so everything else goes to stderr.
"""

import json
import traceback
from pathlib import Path
from typing import Annotated, Optional

import structlog
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from toolhost import __version__
from toolhost.config import HostSettings
from toolhost.dispatcher import Dispatcher
from toolhost.errors import ProtocolError, ToolHostError
from toolhost.handles import HandleManager
from toolhost.hosts import HOST_BUILDERS, Host, build_host
from toolhost.logging import configure_logging
from toolhost.schema import ResourceContent, ToolResult
from toolhost.transport import StdioTransport

logger = structlog.get_logger(__name__)

# Initialize Typer app with metadata
app = typer.Typer(
    name="toolhost",
    help="Serve development tools to agents over stdio JSON-RPC.",
    add_completion=False,
    no_args_is_help=True,
)

# Rich consoles for formatted output
console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]toolhost[/bold] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    toolhost - stdio tool hosts for development workflows.

    Each host exposes a fixed set of tools and resources (backend, database,
    devops) to an agent speaking JSON-RPC 2.0 on stdin/stdout.
    """
    pass


HostArgument = Annotated[str, typer.Argument(help="Host name (see `toolhost hosts`).")]

WorkingDirOption = Annotated[
    Optional[Path],
    typer.Option(
        "--working-dir",
        "-C",
        help="Directory tools resolve relative paths against. Defaults to TOOLHOST_WORKING_DIR.",
        resolve_path=True,
    ),
]


def _load_settings() -> HostSettings:
    try:
        settings = HostSettings()
    except ValidationError as e:
        err_console.print(f"Invalid settings: {e}", style="red", markup=False)
        raise typer.Exit(code=1)
    configure_logging(settings.log_level, settings.log_format)
    return settings


def _build_host(name: str) -> Host:
    try:
        return build_host(name)
    except ToolHostError as e:
        logger.error("host.build_failed", host=name, error=e.message)
        err_console.print(str(e), style="red", markup=False)
        raise typer.Exit(code=1)


@app.command()
def serve(
    host_name: HostArgument,
    working_dir: WorkingDirOption = None,
    debug: Annotated[
        bool,
        typer.Option(
            "--debug",
            help="Print full tracebacks for startup errors.",
        ),
    ] = False,
) -> None:
    """
    Serve a host over stdin/stdout until EOF.

    Example:
        $ toolhost serve backend
    """
    settings = _load_settings()
    host = _build_host(host_name)
    handles = HandleManager()
    dispatcher = Dispatcher(host, handles, str(working_dir or settings.working_dir))

    logger.info("host.starting", host=host.name, version=host.version, tools=len(host.tools))
    try:
        StdioTransport(dispatcher, max_workers=settings.max_workers).serve()
    except Exception as e:
        logger.error("host.crashed", host=host.name, error=str(e))
        if debug:
            err_console.print(traceback.format_exc(), style="dim", markup=False)
        raise typer.Exit(code=1)
    finally:
        handles.close()

    logger.info("host.stopped", host=host.name)


@app.command()
def tools(host_name: HostArgument) -> None:
    """
    List a host's tools.

    Example:
        $ toolhost tools database
    """
    _load_settings()
    host = _build_host(host_name)

    table = Table(show_header=True, header_style="bold")
    table.add_column("Tool", style="cyan")
    table.add_column("Description")
    table.add_column("Required")

    for descriptor in host.tools.list_descriptors():
        required = descriptor.input_schema.get("required", [])
        table.add_row(descriptor.name, descriptor.description, ", ".join(required) or "-")

    console.print(table)


@app.command()
def resources(host_name: HostArgument) -> None:
    """
    List a host's resources.

    Example:
        $ toolhost resources devops
    """
    _load_settings()
    host = _build_host(host_name)

    if not len(host.resources):
        console.print("[dim]No resources.[/dim]")
        raise typer.Exit(code=0)

    table = Table(show_header=True, header_style="bold")
    table.add_column("URI", style="cyan")
    table.add_column("Name")
    table.add_column("MIME type")
    table.add_column("Description")

    for descriptor in host.resources.list_descriptors():
        table.add_row(descriptor.uri, descriptor.name, descriptor.mime_type, descriptor.description)

    console.print(table)


@app.command()
def call(
    host_name: HostArgument,
    tool_name: Annotated[str, typer.Argument(help="Tool to invoke.")],
    args_json: Annotated[
        str,
        typer.Option(
            "--args",
            "-a",
            help="Tool arguments as a JSON object.",
        ),
    ] = "{}",
    working_dir: WorkingDirOption = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Print the raw result envelope as JSON.",
        ),
    ] = False,
) -> None:
    """
    Invoke one tool and print its result.

    Exits 1 when the tool reports an error or the call is rejected.

    Example:
        $ toolhost call backend query_database --args '{"query": "SELECT 1"}'
    """
    settings = _load_settings()

    try:
        arguments = json.loads(args_json)
    except json.JSONDecodeError as e:
        err_console.print(f"[red]--args is not valid JSON: {e.msg}[/red]")
        raise typer.Exit(code=1)
    if not isinstance(arguments, dict):
        err_console.print("[red]--args must be a JSON object[/red]")
        raise typer.Exit(code=1)

    host = _build_host(host_name)
    handles = HandleManager()
    dispatcher = Dispatcher(host, handles, str(working_dir or settings.working_dir))

    try:
        result = dispatcher.call_tool(tool_name, arguments)
    except ProtocolError as e:
        if json_output:
            print(json.dumps(e.to_rpc_error(), indent=2, default=str))
        else:
            err_console.print(str(e), style="red", markup=False)
        raise typer.Exit(code=1)
    finally:
        handles.close()

    if json_output:
        print(json.dumps(result.to_wire(), indent=2, default=str))
    else:
        _display_result(result)

    raise typer.Exit(code=1 if result.is_error else 0)


def _display_result(result: ToolResult) -> None:
    """Print each content part: summary text, then any attached payload."""
    style = "red" if result.is_error else "green"
    for part in result.content:
        if isinstance(part, ResourceContent):
            console.print(f"[dim]{part.resource.uri} ({part.resource.mime_type})[/dim]")
            console.print(part.resource.text, markup=False, highlight=False)
        else:
            console.print(part.text, style=style, markup=False, highlight=False)


@app.command()
def hosts() -> None:
    """
    List the shipped hosts.

    Example:
        $ toolhost hosts
    """
    table = Table(show_header=True, header_style="bold")
    table.add_column("Host", style="cyan")
    table.add_column("Version")
    table.add_column("Tools", justify="right")
    table.add_column("Resources", justify="right")

    for name in HOST_BUILDERS:
        host = build_host(name)
        table.add_row(host.name, host.version, str(len(host.tools)), str(len(host.resources)))

    console.print(table)


if __name__ == "__main__":
    app()
