from __future__ import annotations

import asyncio
import contextlib
import logging
import shutil
import subprocess
from typing import AsyncIterator, Mapping, Sequence

from .config import (
    DEFAULT_STOP_TIMEOUT_SECONDS,
    LOG_CHUNK_BYTES,
    MANAGED_LABELS_BASE,
    DockerConnectionSettings,
)
from .errors import EngineError
from .types import LogsOptions, RemoveOptions, StopOptions

logger = logging.getLogger(__name__)

_DOCKER_MISSING = "Docker CLI was not found. Install Docker and ensure it is on PATH."


def docker_is_available(settings: DockerConnectionSettings | None = None) -> tuple[bool, str | None]:
    """Check Docker CLI and daemon accessibility for the selected target.

    Example:
        ```python
        ok, reason = docker_is_available(DockerConnectionSettings(docker_context="remote"))
        ```
    """
    settings = settings or DockerConnectionSettings()
    if shutil.which("docker") is None:
        return False, _DOCKER_MISSING
    probe = subprocess.run(
        settings.docker_cmd(["info"]),
        capture_output=True,
        text=True,
        check=False,
        env=settings.docker_env(),
    )
    if probe.returncode != 0:
        return False, "Docker is installed but the daemon is not running or not accessible."
    return True, None


def _utf8_boundary(data: bytes) -> int:
    """Return how much of ``data`` ends on a complete UTF-8 character.

    Only an incomplete trailing sequence (at most three bytes) is held back;
    invalid bytes are passed through for the decoder to reject.

    Example:
        ```python
        cut = _utf8_boundary("ok ✓".encode()[:-1])  # 3
        ```
    """
    for back in range(1, min(4, len(data)) + 1):
        byte = data[-back]
        if byte & 0xC0 == 0x80:
            continue
        if byte >= 0xF0:
            need = 4
        elif byte >= 0xE0:
            need = 3
        elif byte >= 0xC0:
            need = 2
        else:
            need = 1
        return len(data) - back if need > back else len(data)
    return len(data)


async def _terminate(process: asyncio.subprocess.Process) -> None:
    """Kill and reap a docker CLI child that is no longer awaited.

    Example:
        ```python
        await _terminate(process)
        ```
    """
    if process.returncode is None:
        with contextlib.suppress(ProcessLookupError):
            process.kill()
    await process.wait()


class DockerEngine:
    """Container engine backed by the ``docker`` CLI.

    Each call spawns one short-lived CLI process, so one instance can serve
    any number of concurrent executions.

    Example:
        ```python
        engine = DockerEngine(docker_host="tcp://127.0.0.1:2375")
        ```
    """

    def __init__(
        self,
        *,
        docker_host: str | None = None,
        docker_context: str | None = None,
        ssh_host: str | None = None,
        ssh_user: str | None = None,
        ssh_port: int | None = None,
        ssh_key_path: str | None = None,
        stop_timeout_seconds: int | None = DEFAULT_STOP_TIMEOUT_SECONDS,
        labels: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize Docker connection strategy and container defaults.

        Example:
            ```python
            engine = DockerEngine(ssh_host="server", ssh_user="ubuntu", ssh_port=22)
            ```
        """
        self._settings = DockerConnectionSettings(
            docker_host=docker_host,
            docker_context=docker_context,
            ssh_host=ssh_host,
            ssh_user=ssh_user,
            ssh_port=ssh_port,
            ssh_key_path=ssh_key_path,
            stop_timeout_seconds=stop_timeout_seconds,
            labels={**MANAGED_LABELS_BASE, **(labels or {})},
        )

    @property
    def settings(self) -> DockerConnectionSettings:
        """Return the connection settings this engine targets.

        Example:
            ```python
            host = engine.settings.docker_host
            ```
        """
        return self._settings

    async def create(self, image: str, command: Sequence[str]) -> str:
        """Create a labelled container for ``image`` running ``command``.

        Example:
            ```python
            container_id = await engine.create("alpine", ["echo", "Hello"])
            ```
        """
        args = ["create"]
        for key, value in self._settings.labels.items():
            args.extend(["--label", f"{key}={value}"])
        args.append(image)
        args.extend(command)
        out = await self._run_docker("create", args)
        lines = out.strip().splitlines()
        if not lines:
            raise EngineError("create", "docker create returned no container id")
        return lines[-1].strip()

    async def start(self, container_id: str) -> None:
        """Start a created container.

        Example:
            ```python
            await engine.start(container_id)
            ```
        """
        await self._run_docker("start", ["start", container_id])

    async def wait(self, container_id: str) -> int:
        """Block on ``docker wait`` and return the container exit code.

        Example:
            ```python
            code = await engine.wait(container_id)
            ```
        """
        out = (await self._run_docker("wait", ["wait", container_id])).strip()
        try:
            return int(out.splitlines()[-1])
        except (IndexError, ValueError) as exc:
            raise EngineError("wait", f"Unexpected docker wait output: {out!r}") from exc

    async def logs(self, container_id: str, options: LogsOptions) -> AsyncIterator[bytes]:
        """Stream ``docker logs`` output as blocks ending on whole characters.

        Requesting both streams merges stderr into the stdout pipe so chunks
        keep the order the CLI writes them. A stdout-only fetch keeps the CLI's
        own stderr on a separate pipe for error reporting.

        Example:
            ```python
            async for chunk in engine.logs(container_id, LogsOptions(stdout=True, stderr=True)):
                ...
            ```
        """
        if not options.stdout and not options.stderr:
            return
        if options.stdout:
            stdout = asyncio.subprocess.PIPE
            stderr = asyncio.subprocess.STDOUT if options.stderr else asyncio.subprocess.PIPE
        else:
            stdout = asyncio.subprocess.DEVNULL
            stderr = asyncio.subprocess.PIPE
        process = await self._spawn(
            "logs",
            ["logs", container_id],
            stdout=stdout,
            stderr=stderr,
        )
        stream = process.stdout if options.stdout else process.stderr
        assert stream is not None
        cli_stderr: asyncio.Task[bytes] | None = None
        if options.stdout and not options.stderr:
            assert process.stderr is not None
            cli_stderr = asyncio.create_task(process.stderr.read())
        try:
            pending = b""
            while True:
                block = await stream.read(LOG_CHUNK_BYTES)
                if not block:
                    break
                pending += block
                cut = _utf8_boundary(pending)
                if cut:
                    yield pending[:cut]
                    pending = pending[cut:]
            if pending:
                yield pending
            returncode = await process.wait()
            if returncode != 0:
                err = ""
                if cli_stderr is not None:
                    err = (await cli_stderr).decode("utf-8", errors="replace").strip()
                raise EngineError(
                    "logs",
                    err or f"docker logs exited with status {returncode}",
                    stderr=err,
                )
        finally:
            if cli_stderr is not None and not cli_stderr.done():
                cli_stderr.cancel()
            await _terminate(process)

    async def stop(self, container_id: str, options: StopOptions) -> None:
        """Stop a container, falling back to the engine's stop timeout.

        Example:
            ```python
            await engine.stop(container_id, StopOptions(timeout_seconds=2))
            ```
        """
        timeout = options.timeout_seconds
        if timeout is None:
            timeout = self._settings.stop_timeout_seconds
        args = ["stop"]
        if timeout is not None:
            args.extend(["-t", str(timeout)])
        args.append(container_id)
        await self._run_docker("stop", args)

    async def remove(self, container_id: str, options: RemoveOptions) -> None:
        """Remove a container, forcibly when requested.

        Example:
            ```python
            await engine.remove(container_id, RemoveOptions(force=True))
            ```
        """
        args = ["rm"]
        if options.force:
            args.append("-f")
        args.append(container_id)
        await self._run_docker("remove", args)

    async def _spawn(
        self,
        operation: str,
        args: list[str],
        *,
        stdout: int,
        stderr: int,
    ) -> asyncio.subprocess.Process:
        """Start a Docker CLI process against the configured target.

        Example:
            ```python
            process = await engine._spawn("ps", ["ps"], stdout=PIPE, stderr=PIPE)
            ```
        """
        cmd = self._settings.docker_cmd(args)
        logger.debug("Running %s", " ".join(cmd))
        try:
            return await asyncio.create_subprocess_exec(
                *cmd,
                stdout=stdout,
                stderr=stderr,
                env=self._settings.docker_env(),
            )
        except FileNotFoundError as exc:
            raise EngineError(operation, _DOCKER_MISSING) from exc
        except OSError as exc:
            raise EngineError(operation, f"Failed to run docker CLI: {exc}") from exc

    async def _run_docker(self, operation: str, args: list[str]) -> str:
        """Run a Docker CLI command to completion and return its stdout.

        Example:
            ```python
            out = await engine._run_docker("start", ["start", container_id])
            ```
        """
        process = await self._spawn(
            operation,
            args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await process.communicate()
        except asyncio.CancelledError:
            await _terminate(process)
            raise
        if process.returncode != 0:
            err = stderr.decode("utf-8", errors="replace").strip()
            raise EngineError(
                operation,
                err or f"docker exited with status {process.returncode}",
                stderr=err,
            )
        return stdout.decode("utf-8", errors="replace")
