from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping

DEFAULT_STOP_TIMEOUT_SECONDS = 0
LOG_CHUNK_BYTES = 64 * 1024
MANAGED_LABEL_VALUE = "true"
MANAGED_LABELS_BASE = {
    "docker_exec.managed": MANAGED_LABEL_VALUE,
    "docker_exec.engine": "docker",
    "docker_exec.project": "docker-exec",
}


@dataclass(frozen=True, slots=True)
class DockerConnectionSettings:
    """How the Docker CLI reaches its daemon, plus per-container defaults.

    Example:
        ```python
        settings = DockerConnectionSettings(ssh_host="build-box", ssh_user="ci", ssh_port=2222)
        ```
    """

    docker_host: str | None = None
    docker_context: str | None = None
    ssh_host: str | None = None
    ssh_user: str | None = None
    ssh_port: int | None = None
    ssh_key_path: str | None = None
    stop_timeout_seconds: int | None = DEFAULT_STOP_TIMEOUT_SECONDS
    labels: Mapping[str, str] = field(default_factory=lambda: dict(MANAGED_LABELS_BASE))

    def __post_init__(self) -> None:
        """Validate mutually exclusive Docker connection settings.

        Example:
            ```python
            DockerConnectionSettings(docker_context="remote")
            ```
        """
        if self.docker_context and (self.docker_host or self.ssh_host):
            raise ValueError("Use either docker_context or docker_host/ssh settings, not both")
        if self.docker_host and self.ssh_host:
            raise ValueError("Use either docker_host or ssh_host, not both")
        if self.ssh_user and not self.ssh_host:
            raise ValueError("ssh_user requires ssh_host")
        if self.ssh_port and not self.ssh_host:
            raise ValueError("ssh_port requires ssh_host")
        if self.ssh_key_path and not self.ssh_host:
            raise ValueError("ssh_key_path requires ssh_host")
        if self.stop_timeout_seconds is not None and self.stop_timeout_seconds < 0:
            raise ValueError("stop_timeout_seconds must be zero or positive")

    def docker_env(self, base_env: Mapping[str, str] | None = None) -> dict[str, str]:
        """Build environment variables for Docker CLI targeting.

        Example:
            ```python
            env = settings.docker_env()
            ```
        """
        env = dict(os.environ if base_env is None else base_env)
        docker_host = self.docker_host
        if self.ssh_host:
            user = f"{self.ssh_user}@" if self.ssh_user else ""
            docker_host = f"ssh://{user}{self.ssh_host}"
        if docker_host:
            env["DOCKER_HOST"] = docker_host
        if self.ssh_host:
            parts = ["ssh"]
            if self.ssh_port:
                parts.extend(["-p", str(self.ssh_port)])
            if self.ssh_key_path:
                parts.extend(["-i", self.ssh_key_path])
            env["DOCKER_SSH_COMMAND"] = " ".join(parts)
        return env

    def docker_cmd(self, args: list[str]) -> list[str]:
        """Build a Docker CLI argv with optional context.

        Example:
            ```python
            cmd = settings.docker_cmd(["ps"])
            ```
        """
        cmd = ["docker"]
        if self.docker_context:
            cmd.extend(["--context", self.docker_context])
        cmd.extend(args)
        return cmd
