from __future__ import annotations

from typing import AsyncIterator, Protocol, Sequence

from .types import LogsOptions, RemoveOptions, StopOptions


class ContainerEngine(Protocol):
    """Capability surface a container engine must provide to DockerExec.

    Every method may raise ``EngineError``. Implementations must tolerate
    concurrent calls for different containers.
    """

    async def create(self, image: str, command: Sequence[str]) -> str:
        """Create (but do not start) a container and return its id.

        Example:
            ```python
            container_id = await engine.create("alpine", ["echo", "Hello"])
            ```
        """
        ...

    async def start(self, container_id: str) -> None:
        """Start a created container.

        Example:
            ```python
            await engine.start(container_id)
            ```
        """
        ...

    async def wait(self, container_id: str) -> int:
        """Suspend until the container process exits and return its exit code.

        Example:
            ```python
            code = await engine.wait(container_id)
            ```
        """
        ...

    def logs(self, container_id: str, options: LogsOptions) -> AsyncIterator[bytes]:
        """Stream the container output as ordered byte chunks.

        Example:
            ```python
            async for chunk in engine.logs(container_id, LogsOptions(stdout=True)):
                ...
            ```
        """
        ...

    async def stop(self, container_id: str, options: StopOptions) -> None:
        """Stop a running container.

        Example:
            ```python
            await engine.stop(container_id, StopOptions(timeout_seconds=5))
            ```
        """
        ...

    async def remove(self, container_id: str, options: RemoveOptions) -> None:
        """Remove a container.

        Example:
            ```python
            await engine.remove(container_id, RemoveOptions(force=True))
            ```
        """
        ...
