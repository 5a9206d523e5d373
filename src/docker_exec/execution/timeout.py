from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, TypeVar

from .errors import ExecutionTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_with_optional_timeout(phase: Awaitable[T], timeout_seconds: float | None) -> T:
    """Await ``phase``, racing it against a timer when a deadline is set.

    When the timer wins, the phase is cancelled locally and
    ``ExecutionTimeout`` is raised. Nothing is sent to the engine here; the
    container keeps running until the caller cleans it up.

    Example:
        ```python
        output = await run_with_optional_timeout(run_container(engine, cid), 10)
        ```
    """
    if timeout_seconds is None:
        return await phase
    try:
        return await asyncio.wait_for(phase, timeout=timeout_seconds)
    except asyncio.TimeoutError as exc:
        logger.warning("Run phase exceeded deadline of %ss", timeout_seconds)
        raise ExecutionTimeout(timeout_seconds) from exc
