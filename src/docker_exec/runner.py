from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from .execution.engine import ContainerEngine
from .execution.errors import CleanupError
from .execution.lifecycle import run_container
from .execution.timeout import run_with_optional_timeout
from .execution.types import ExecutionRequest, RemoveOptions, StopOptions

logger = logging.getLogger(__name__)


class DockerExec:
    """Run one command in a fresh container and always remove the container.

    Example:
        ```python
        from docker_exec import DockerEngine, DockerExec
        exec_ = DockerExec(DockerEngine(), "alpine", ["echo", "Hello"], timeout_seconds=10)
        output = await exec_.execute()
        ```
    """

    def __init__(
        self,
        engine: ContainerEngine,
        image: str,
        command: Sequence[str],
        timeout_seconds: float | None = None,
    ) -> None:
        """Capture the engine and an immutable request; performs no I/O.

        Example:
            ```python
            exec_ = DockerExec(engine, "alpine", ["sleep", "5"], timeout_seconds=3)
            ```
        """
        self._engine = engine
        self._request = ExecutionRequest.build(image, command, timeout_seconds)

    @property
    def request(self) -> ExecutionRequest:
        """Return the immutable request this executor runs.

        Example:
            ```python
            image = exec_.request.image
            ```
        """
        return self._request

    async def execute(self) -> str:
        """Create, run, and clean up a container, returning its trimmed stdout.

        A failure while creating the container is raised immediately. Once a
        container exists it is stopped and removed on every path. A run-phase
        error always wins; a removal failure is raised as ``CleanupError`` only
        when the run itself succeeded.

        Example:
            ```python
            output = await DockerExec(engine, "alpine", ["echo", "Hello"]).execute()
            ```
        """
        request = self._request
        container_id = await self._engine.create(request.image, request.command)
        logger.debug("Created container %s from image %s", container_id, request.image)
        run_succeeded = False
        try:
            output = await run_with_optional_timeout(
                run_container(self._engine, container_id),
                request.timeout_seconds,
            )
            run_succeeded = True
        finally:
            await self._cleanup(container_id, surface_errors=run_succeeded)
        return output

    async def _cleanup(self, container_id: str, *, surface_errors: bool) -> None:
        """Stop (best effort) then force-remove a container.

        Example:
            ```python
            await exec_._cleanup(container_id, surface_errors=True)
            ```
        """
        try:
            await self._engine.stop(container_id, StopOptions())
        except Exception as exc:
            logger.debug("Ignoring stop failure for container %s: %s", container_id, exc)
        try:
            await self._engine.remove(container_id, RemoveOptions(force=True))
        except Exception as exc:
            if surface_errors:
                raise CleanupError(container_id, str(exc)) from exc
            logger.warning("Failed to remove container %s after failed run: %s", container_id, exc)
            return
        logger.debug("Removed container %s", container_id)


async def run_command(
    engine: ContainerEngine,
    image: str,
    command: Sequence[str],
    timeout_seconds: float | None = None,
) -> str:
    """Execute ``command`` in an ephemeral ``image`` container.

    Example:
        ```python
        from docker_exec import DockerEngine, run_command
        output = await run_command(DockerEngine(), "alpine", ["echo", "Hello"])
        ```
    """
    return await DockerExec(engine, image, command, timeout_seconds).execute()


def run_command_sync(
    engine: ContainerEngine,
    image: str,
    command: Sequence[str],
    timeout_seconds: float | None = None,
) -> str:
    """Blocking variant of ``run_command`` for callers without an event loop.

    Example:
        ```python
        output = run_command_sync(DockerEngine(), "alpine", ["uname", "-a"], timeout_seconds=30)
        ```
    """
    return asyncio.run(run_command(engine, image, command, timeout_seconds))
