from __future__ import annotations

import logging

from .engine import ContainerEngine
from .errors import NonZeroExit
from .logs import collect_logs
from .types import LogsOptions

logger = logging.getLogger(__name__)


async def fetch_logs(engine: ContainerEngine, container_id: str, include_stderr: bool) -> str:
    """Fetch container output, optionally merged with stderr.

    Example:
        ```python
        combined = await fetch_logs(engine, container_id, include_stderr=True)
        ```
    """
    stream = engine.logs(container_id, LogsOptions(stdout=True, stderr=include_stderr))
    try:
        return await collect_logs(stream)
    finally:
        # Release the engine's log transport even when collection stops early.
        aclose = getattr(stream, "aclose", None)
        if aclose is not None:
            await aclose()


async def run_container(engine: ContainerEngine, container_id: str) -> str:
    """Start a created container, wait for exit, and return its stdout.

    A zero exit code returns the trimmed stdout only. Any other exit code
    raises ``NonZeroExit`` carrying the combined stdout and stderr.

    Example:
        ```python
        output = await run_container(engine, container_id)
        ```
    """
    await engine.start(container_id)
    logger.debug("Started container %s", container_id)
    code = await engine.wait(container_id)
    logger.debug("Container %s exited with status %d", container_id, code)
    if code != 0:
        output = await fetch_logs(engine, container_id, include_stderr=True)
        raise NonZeroExit(code, output)
    return await fetch_logs(engine, container_id, include_stderr=False)
