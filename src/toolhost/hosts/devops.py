"""
The devops host: container status, logs, restarts, health checks, secrets
and deployments, over the docker CLI.
"""

from pathlib import Path

import yaml

from toolhost.handles import CONTAINER_RUNTIME
from toolhost.hosts.base import Host
from toolhost.resources import Resource
from toolhost.schema import ResourceReadResult
from toolhost.tools.base import ToolContext
from toolhost.tools.containers import (
    CheckContainerStatusTool,
    ContainerRuntime,
    DeployServiceTool,
    ReadSecretTool,
    RestartServiceTool,
    RunHealthCheckTool,
    ViewLogsTool,
)

NAME = "devops"
VERSION = "1.0.0"


class DockerInfoResource(Resource):
    """Daemon and system information."""

    @property
    def uri(self) -> str:
        return "docker://info"

    @property
    def name(self) -> str:
        return "Docker System Info"

    @property
    def description(self) -> str:
        return "Docker daemon and system information"

    def read(self, context: ToolContext) -> ResourceReadResult:
        runtime: ContainerRuntime = context.handles.acquire(CONTAINER_RUNTIME)
        info = runtime.info()
        return ResourceReadResult.json_document(
            self.uri,
            {
                "containers": info.get("Containers"),
                "containersRunning": info.get("ContainersRunning"),
                "images": info.get("Images"),
                "serverVersion": info.get("ServerVersion"),
                "operatingSystem": info.get("OperatingSystem"),
                "architecture": info.get("Architecture"),
            },
        )


class ComposeResource(Resource):
    """
    The compose file named by COMPOSE_FILE, parsed.

    Reports the file, its service names and the parsed configuration. A
    missing file is reported as text rather than as an error.
    """

    @property
    def uri(self) -> str:
        return "docker://compose"

    @property
    def name(self) -> str:
        return "Docker Compose Configuration"

    @property
    def description(self) -> str:
        return "Current docker-compose.yml configuration"

    def read(self, context: ToolContext) -> ResourceReadResult:
        runtime: ContainerRuntime = context.handles.acquire(CONTAINER_RUNTIME)
        path = Path(context.working_dir) / runtime.settings.compose_file
        if not path.is_file():
            return ResourceReadResult.text_document(self.uri, f"Compose file not found: {path}")

        config = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        services = config.get("services") or {}
        return ResourceReadResult.json_document(
            self.uri,
            {"file": str(path), "services": list(services), "config": config},
        )


def build() -> Host:
    return Host.create(
        NAME,
        VERSION,
        tools=[
            CheckContainerStatusTool(),
            ViewLogsTool(),
            RestartServiceTool(),
            RunHealthCheckTool(),
            ReadSecretTool(),
            DeployServiceTool(),
        ],
        resources=[DockerInfoResource(), ComposeResource()],
    )
