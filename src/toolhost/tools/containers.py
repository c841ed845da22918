"""
Container tools for toolhost.

This module provides the devops tools, all built on the container-runtime
handle (a thin wrapper over the docker CLI):
- check_container_status: Inspect one container or list them all
- view_logs: Fetch the tail of a container's logs
- restart_service: Stop/start or restart a container
- run_health_check: Probe a service URL or a container's health status
- read_secret: Confirm a secret exists and return a masked preview
- deploy_service: Build and bring up services with the deploy command

Security Note:
    The docker CLI is invoked with argv lists (see toolhost.tools.shell);
    container and secret names are passed as single arguments. Secret
    values never leave the process unmasked.
"""

import json
import os
from pathlib import Path
from typing import Any

import httpx

from toolhost.config import ContainerRuntimeSettings
from toolhost.errors import ToolError, ToolExecutionError
from toolhost.handles import CONTAINER_RUNTIME, HTTP_CLIENT, TASK_RUNNER
from toolhost.schema import ToolResult
from toolhost.tools.base import Tool, ToolContext
from toolhost.tools.http import send_request
from toolhost.tools.shell import DEPLOY_TIMEOUT, CommandResult, TaskRunner, run_command

DOCKER_TIMEOUT = 30
HEALTH_CHECK_TIMEOUT_MS = 5000
SECRET_SOURCES = ["docker", "env", "file"]


def _json_lines(output: str) -> list[dict[str, Any]]:
    return [json.loads(line) for line in output.splitlines() if line.strip()]


def _error_detail(e: ToolError) -> str:
    return getattr(e, "underlying_error", "") or e.message


class ContainerRuntime:
    """
    The container-runtime handle.

    Runs docker CLI subcommands against the daemon named by DOCKER_HOST (a
    bare socket path is turned into a unix:// address). A non-zero exit
    raises ToolExecutionError carrying docker's stderr.

    Args:
        settings: Container runtime settings
        binary: Resolved path of the docker executable
    """

    def __init__(self, settings: ContainerRuntimeSettings, binary: str) -> None:
        self.settings = settings
        self.binary = binary
        self.env: dict[str, str] = {}
        if settings.docker_host:
            host = settings.docker_host
            if host.startswith("/"):
                host = f"unix://{host}"
            self.env["DOCKER_HOST"] = host

    def run(self, *args: str, timeout: float = DOCKER_TIMEOUT) -> CommandResult:
        """Run `docker <args>` and return the finished command."""
        result = run_command([self.binary, *args], timeout=timeout, env=self.env, tool="docker")
        if not result.succeeded:
            raise ToolExecutionError(
                tool="docker",
                underlying_error=result.stderr.strip() or f"docker {args[0]} exited with {result.return_code}",
            )
        return result

    def inspect(self, container: str) -> dict[str, Any]:
        """Low-level details of one container."""
        documents = json.loads(self.run("inspect", "--type", "container", container).stdout)
        return documents[0]

    def list_containers(self) -> list[dict[str, Any]]:
        """Every container, running or not, as `docker ps` rows."""
        return _json_lines(self.run("ps", "--all", "--no-trunc", "--format", "{{json .}}").stdout)

    def logs(self, container: str, tail: int) -> str:
        """The last `tail` log lines, stdout and stderr, with timestamps."""
        result = self.run("logs", "--tail", str(tail), "--timestamps", container)
        return result.stdout + result.stderr

    def stop(self, container: str) -> None:
        self.run("stop", container)

    def start(self, container: str) -> None:
        self.run("start", container)

    def restart(self, container: str) -> None:
        self.run("restart", container)

    def info(self) -> dict[str, Any]:
        """Daemon-wide system information."""
        return json.loads(self.run("info", "--format", "{{json .}}").stdout)

    def list_secrets(self) -> list[dict[str, Any]]:
        """Swarm secrets known to the daemon (names only; values are never exposed)."""
        return _json_lines(self.run("secret", "ls", "--format", "{{json .}}").stdout)

    def __repr__(self) -> str:
        return f"<ContainerRuntime: {self.binary} host={self.env.get('DOCKER_HOST', 'default')}>"


def container_summary(row: dict[str, Any]) -> dict[str, Any]:
    """Condense a `docker ps` row."""
    state = row.get("State", "")
    return {
        "name": str(row.get("Names", "")).split(",")[0].lstrip("/"),
        "status": state,
        "running": state == "running",
        "image": row.get("Image"),
        "ports": row.get("Ports", ""),
    }


def mask_secret(value: str, keep_tail: bool = True) -> str:
    """
    First four characters, then ****, then (optionally) the last four.

    Values too short to mask that way are hidden entirely.
    """
    if len(value) <= 8:
        return "****"
    return value[:4] + "****" + (value[-4:] if keep_tail else "")


class CheckContainerStatusTool(Tool):
    """
    Check one container's status, or list every container.

    Arguments:
        containerName (str): Container name or ID; omit to list all
    """

    @property
    def name(self) -> str:
        return "check_container_status"

    @property
    def description(self) -> str:
        return "Check Docker container status"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "containerName": {
                    "type": "string",
                    "description": "Container name or ID (optional, lists all if not provided)",
                },
            },
        }

    def execute(self, args: dict[str, Any], context: ToolContext) -> ToolResult:
        runtime: ContainerRuntime = context.handles.acquire(CONTAINER_RUNTIME)
        container_name = args.get("containerName")

        try:
            if container_name:
                info = runtime.inspect(container_name)
                state = info.get("State", {})
                return ToolResult.ok(
                    f"Container {container_name}: {state.get('Status')} ({'running' if state.get('Running') else 'not running'})",
                    {
                        "name": info.get("Name", "").lstrip("/"),
                        "status": state.get("Status"),
                        "running": state.get("Running", False),
                        "startedAt": state.get("StartedAt"),
                        "health": (state.get("Health") or {}).get("Status"),
                        "ports": (info.get("NetworkSettings") or {}).get("Ports"),
                    },
                    uri="result://container-status",
                )

            containers = [container_summary(row) for row in runtime.list_containers()]
        except ToolError as e:
            return ToolResult.fail(f"Docker error: {_error_detail(e)}")

        running = sum(1 for c in containers if c["running"])
        return ToolResult.ok(
            f"Found {len(containers)} containers ({running} running)",
            containers,
            uri="result://containers",
        )


class ViewLogsTool(Tool):
    """
    View the tail of a container's logs.

    Logs are a bounded snapshot; follow is accepted but never streams.

    Arguments:
        containerName (str): Container name or ID (required)
        tail (int): Number of lines to show (default 100)
        follow (bool): Accepted for compatibility (default False)
    """

    @property
    def name(self) -> str:
        return "view_logs"

    @property
    def description(self) -> str:
        return "View container logs"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "containerName": {"type": "string", "description": "Container name or ID"},
                "tail": {"type": "number", "description": "Number of lines to show", "default": 100},
                "follow": {"type": "boolean", "description": "Follow log output", "default": False},
            },
            "required": ["containerName"],
        }

    def execute(self, args: dict[str, Any], context: ToolContext) -> ToolResult:
        runtime: ContainerRuntime = context.handles.acquire(CONTAINER_RUNTIME)
        container_name, tail = args["containerName"], int(args["tail"])

        try:
            logs = runtime.logs(container_name, tail)
        except ToolError as e:
            return ToolResult.fail(f"Failed to get logs: {_error_detail(e)}")

        return ToolResult.ok(f"Logs for {container_name} (last {tail} lines):", logs, uri="result://logs")


class RestartServiceTool(Tool):
    """
    Restart a container.

    Graceful restarts stop the container and start it again; otherwise
    docker restart is used.

    Arguments:
        containerName (str): Container to restart (required)
        graceful (bool): Stop then start (default True)
    """

    @property
    def name(self) -> str:
        return "restart_service"

    @property
    def description(self) -> str:
        return "Restart Docker container"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "containerName": {"type": "string", "description": "Container name or ID"},
                "graceful": {"type": "boolean", "description": "Graceful restart", "default": True},
            },
            "required": ["containerName"],
        }

    def execute(self, args: dict[str, Any], context: ToolContext) -> ToolResult:
        runtime: ContainerRuntime = context.handles.acquire(CONTAINER_RUNTIME)
        container_name = args["containerName"]

        try:
            if args["graceful"]:
                runtime.stop(container_name)
                runtime.start(container_name)
            else:
                runtime.restart(container_name)
        except ToolError as e:
            return ToolResult.fail(f"Restart failed: {_error_detail(e)}")

        context.logger.info("container.restarted", container=container_name, graceful=args["graceful"])
        return ToolResult.ok(f"Container {container_name} restarted successfully")


class RunHealthCheckTool(Tool):
    """
    Run a health check against a service URL or a container.

    A serviceUrl is probed with GET (5 s timeout) and is healthy on any 2xx.
    Otherwise the container's own HEALTHCHECK status is read.

    Arguments:
        serviceUrl (str): URL to probe
        containerName (str): Container whose health status to read
    """

    @property
    def name(self) -> str:
        return "run_health_check"

    @property
    def description(self) -> str:
        return "Run health check on service"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "serviceUrl": {"type": "string", "description": "Service URL to check"},
                "containerName": {"type": "string", "description": "Container name"},
            },
        }

    def execute(self, args: dict[str, Any], context: ToolContext) -> ToolResult:
        if args.get("serviceUrl"):
            return self._check_url(args["serviceUrl"], context)
        if args.get("containerName"):
            return self._check_container(args["containerName"], context)
        return ToolResult.fail("Health check failed: Either serviceUrl or containerName must be provided")

    def _check_url(self, url: str, context: ToolContext) -> ToolResult:
        client: httpx.Client = context.handles.acquire(HTTP_CLIENT)
        try:
            probe = send_request(client, "GET", url, timeout_ms=HEALTH_CHECK_TIMEOUT_MS)
        except httpx.TimeoutException:
            return ToolResult.fail(f"Service unhealthy (timed out after {HEALTH_CHECK_TIMEOUT_MS}ms)")
        except httpx.HTTPError as e:
            return ToolResult.fail(f"Service unhealthy ({e})")

        if not probe.success:
            return ToolResult.fail(f"Service unhealthy (status {probe.status_code})")
        return ToolResult.ok(
            f"Service healthy ({probe.status_code} in {probe.duration_ms}ms)",
            {
                "healthy": True,
                "status": probe.status_code,
                "responseTime": probe.duration_ms,
                "data": probe.data,
            },
            uri="result://health",
        )

    def _check_container(self, container_name: str, context: ToolContext) -> ToolResult:
        runtime: ContainerRuntime = context.handles.acquire(CONTAINER_RUNTIME)
        try:
            info = runtime.inspect(container_name)
        except ToolError as e:
            return ToolResult.fail(f"Health check failed: {_error_detail(e)}")

        health = info.get("State", {}).get("Health") or {}
        healthy = health.get("Status") == "healthy"
        log = health.get("Log") or []
        return ToolResult.ok(
            f"Container {'healthy' if healthy else 'unhealthy'}",
            {
                "healthy": healthy,
                "status": health.get("Status") or "no health check",
                "lastCheck": log[0] if log else None,
            },
            uri="result://health",
        )


class ReadSecretTool(Tool):
    """
    Read a secret and return a masked preview.

    Sources:
        docker: Confirms the secret exists on the daemon; docker never
            exposes secret values, so the preview is a placeholder
        env: Reads an environment variable (first and last four shown)
        file: Reads SECRETS_PATH/<secretName> (first four shown)

    Arguments:
        secretName (str): Secret name (required)
        source (str): docker, env or file (default docker)
    """

    @property
    def name(self) -> str:
        return "read_secret"

    @property
    def description(self) -> str:
        return "Read secret value (Docker secrets or environment)"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "secretName": {"type": "string", "description": "Secret name"},
                "source": {
                    "type": "string",
                    "enum": SECRET_SOURCES,
                    "description": "Secret source",
                    "default": "docker",
                },
            },
            "required": ["secretName"],
        }

    def execute(self, args: dict[str, Any], context: ToolContext) -> ToolResult:
        secret_name, source = args["secretName"], args["source"]

        try:
            preview = self._preview(secret_name, source, context)
        except (LookupError, OSError) as e:
            return ToolResult.fail(f"Failed to read secret: {e}")
        except ToolError as e:
            return ToolResult.fail(f"Failed to read secret: {_error_detail(e)}")

        return ToolResult.ok(
            f"Secret {secret_name} retrieved from {source}",
            {
                "secretName": secret_name,
                "source": source,
                "valuePreview": preview,
                "note": "Full value available in secure context only",
            },
            uri="result://secret",
        )

    def _preview(self, secret_name: str, source: str, context: ToolContext) -> str:
        if source == "env":
            value = os.environ.get(secret_name)
            if not value:
                raise LookupError(f"Environment variable {secret_name} not set")
            return mask_secret(value)

        runtime: ContainerRuntime = context.handles.acquire(CONTAINER_RUNTIME)
        if source == "docker":
            if not any(s.get("Name") == secret_name for s in runtime.list_secrets()):
                raise LookupError(f"Secret {secret_name} not found")
            return "[SECRET VALUE HIDDEN - Available in containers only]"

        if secret_name in ("", ".", "..") or Path(secret_name).name != secret_name:
            raise LookupError(f"Invalid secret name: {secret_name}")
        value = (Path(runtime.settings.secrets_path) / secret_name).read_text(encoding="utf-8")
        return mask_secret(value, keep_tail=False)


class DeployServiceTool(Tool):
    """
    Deploy services with the configured deploy command.

    With buildFirst, `docker compose build` runs first; a failing step stops
    the deployment. Output on stderr mentioning errors downgrades a
    successful deployment to "completed with warnings".

    Arguments:
        serviceName (str): Service to deploy; omit for all services
        command (str): Deploy command overriding DEPLOY_COMMAND
        buildFirst (bool): Build images before deploying (default True)
    """

    @property
    def name(self) -> str:
        return "deploy_service"

    @property
    def description(self) -> str:
        return "Deploy service (custom deployment script)"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "serviceName": {"type": "string", "description": "Service to deploy"},
                "command": {"type": "string", "description": "Deployment command (overrides default)"},
                "buildFirst": {"type": "boolean", "description": "Build before deploy", "default": True},
            },
        }

    def execute(self, args: dict[str, Any], context: ToolContext) -> ToolResult:
        runner: TaskRunner = context.handles.acquire(TASK_RUNNER)
        steps = runner.deploy_commands(args.get("serviceName"), args.get("command"), args["buildFirst"])

        outputs: list[str] = []
        warnings = False
        for cmd in steps:
            result = runner.run(cmd, timeout=DEPLOY_TIMEOUT, cwd=context.working_dir, tool=self.name)
            if not result.succeeded:
                return ToolResult.fail(
                    f"Deployment failed: exit code {result.return_code}",
                    result.output or f"exit code {result.return_code}",
                    uri="result://deployment-error",
                )
            outputs.append(result.output)
            warnings = warnings or "ERROR" in result.stderr or "error:" in result.stderr

        verdict = "completed with warnings" if warnings else "completed successfully"
        return ToolResult.ok(f"Deployment {verdict}", "\n".join(outputs), uri="result://deployment")
