"""
Subprocess execution for toolhost.

This module provides the command machinery shared by the tools that run
external programs (test suites, migrations, deployments, the docker CLI):
- run_command: Run one argv list with a hard timeout and output limits
- TaskRunner: The task-runner handle, holding the configured commands

Security Note:
    Commands are always executed as argv lists (NO shell=True). Configured
    command strings such as "npm run migrate" are split with shlex, and
    caller-supplied values (test paths, patterns, service names) are
    appended as separate arguments, never interpolated into a shell line.

    Additional protections:
    - Timeout enforcement to prevent runaway processes
    - Output size limits to prevent memory exhaustion
"""

import os
import shlex
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

from toolhost.config import TaskRunnerSettings
from toolhost.errors import ToolExecutionError, ToolTimeoutError

DEFAULT_MAX_OUTPUT_BYTES = 1024 * 1024  # 1 MB

# Fixed upper bounds, in seconds
TESTS_TIMEOUT = 60
MIGRATION_TIMEOUT = 30
DEPLOY_TIMEOUT = 300


@dataclass(frozen=True)
class CommandResult:
    """
    Outcome of a finished command.

    Attributes:
        cmd: The argv that was run
        return_code: Process exit status
        stdout: Decoded standard output (possibly truncated)
        stderr: Decoded standard error (possibly truncated)
        duration_ms: Wall time in milliseconds
    """

    cmd: list[str]
    return_code: int
    stdout: str
    stderr: str
    duration_ms: int

    @property
    def succeeded(self) -> bool:
        return self.return_code == 0

    @property
    def output(self) -> str:
        """Stdout if there is any, otherwise stderr."""
        return self.stdout or self.stderr


def _decode(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data.decode("utf-8", errors="replace")


def _truncate(stdout: bytes, stderr: bytes, max_output_bytes: int) -> tuple[bytes, bytes]:
    if len(stdout) + len(stderr) <= max_output_bytes:
        return stdout, stderr

    truncate_bytes = f"\n... [truncated, exceeded {max_output_bytes} bytes]".encode()
    half = max_output_bytes // 2
    # Split the limit between stdout and stderr
    if len(stdout) > half:
        stdout = stdout[: half - len(truncate_bytes)] + truncate_bytes
    if len(stderr) > half:
        stderr = stderr[: half - len(truncate_bytes)] + truncate_bytes
    return stdout, stderr


def run_command(
    cmd: list[str],
    *,
    timeout: float,
    cwd: str | Path = ".",
    env: dict[str, str] | None = None,
    max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
    tool: str = "",
) -> CommandResult:
    """
    Run a command and capture its output.

    A non-zero exit status is NOT an error here; callers decide what it
    means through CommandResult.succeeded.

    Args:
        cmd: Argv list, executable first
        timeout: Hard upper bound in seconds
        cwd: Working directory
        env: Variables layered over the current environment
        max_output_bytes: Combined stdout/stderr limit before truncation
        tool: Name of the calling tool, for error context

    Raises:
        ToolTimeoutError: If the command outlives the timeout
        ToolExecutionError: If the executable cannot be started
    """
    if not cmd:
        raise ToolExecutionError(tool=tool, underlying_error="empty command")

    full_env = os.environ.copy()
    if env:
        full_env.update(env)

    started = time.monotonic()
    try:
        result = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=full_env,
            capture_output=True,
            timeout=timeout,
            shell=False,
        )
    except subprocess.TimeoutExpired as e:
        raise ToolTimeoutError(
            tool=tool,
            timeout_seconds=timeout,
            message=f"Command timed out after {timeout:g} seconds: {shlex.join(cmd)}",
        ) from e
    except FileNotFoundError as e:
        raise ToolExecutionError(
            tool=tool,
            underlying_error=f"Executable not found: {cmd[0]}",
        ) from e
    except PermissionError as e:
        raise ToolExecutionError(
            tool=tool,
            underlying_error=f"Permission denied executing: {cmd[0]}",
        ) from e

    duration_ms = int((time.monotonic() - started) * 1000)
    stdout, stderr = _truncate(result.stdout, result.stderr, max_output_bytes)

    return CommandResult(
        cmd=list(cmd),
        return_code=result.returncode,
        stdout=_decode(stdout),
        stderr=_decode(stderr),
        duration_ms=duration_ms,
    )


class TaskRunner:
    """
    The task-runner handle.

    Holds the configured test, migration and deployment commands and
    builds the argv for each invocation.
    """

    def __init__(self, settings: TaskRunnerSettings) -> None:
        self.settings = settings

    def test_command(
        self,
        test_path: str | None = None,
        pattern: str | None = None,
        coverage: bool = False,
    ) -> list[str]:
        """Argv for running the test suite."""
        cmd = shlex.split(self.settings.test_command)
        if test_path:
            cmd.append(test_path)
        if pattern:
            cmd.extend(["-t", pattern])
        if coverage:
            cmd.append("--coverage")
        return cmd

    def migration_command(self, direction: str) -> list[str]:
        """Argv for running migrations in one direction."""
        return [*shlex.split(self.settings.migration_command), direction]

    def deploy_commands(
        self,
        service_name: str | None = None,
        command: str | None = None,
        build_first: bool = True,
    ) -> list[list[str]]:
        """Argv list for each deployment step, in order."""
        steps: list[list[str]] = []
        if build_first:
            steps.append(["docker", "compose", "build"])
        deploy = shlex.split(command or self.settings.deploy_command)
        if service_name:
            deploy.append(service_name)
        steps.append(deploy)
        return steps

    def run(
        self,
        cmd: list[str],
        *,
        timeout: float,
        cwd: str | Path = ".",
        env: dict[str, str] | None = None,
        tool: str = "",
    ) -> CommandResult:
        """Run one of the built commands."""
        return run_command(cmd, timeout=timeout, cwd=cwd, env=env, tool=tool)

    def __repr__(self) -> str:
        return f"<TaskRunner: test={self.settings.test_command!r}>"
