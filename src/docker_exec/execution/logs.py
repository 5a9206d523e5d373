from __future__ import annotations

import logging
from typing import AsyncIterable

from .errors import DecodeError

logger = logging.getLogger(__name__)


async def collect_logs(chunks: AsyncIterable[bytes]) -> str:
    """Drain a log chunk stream into one decoded, trimmed string.

    Chunks are pulled one at a time in stream order. Each chunk must be valid
    UTF-8 on its own; the first invalid chunk fails the whole collection.
    Whitespace is trimmed once, from the joined text.

    Example:
        ```python
        text = await collect_logs(engine.logs(container_id, LogsOptions(stdout=True)))
        ```
    """
    parts: list[str] = []
    index = 0
    async for chunk in chunks:
        try:
            parts.append(bytes(chunk).decode("utf-8"))
        except UnicodeDecodeError as exc:
            raise DecodeError(index) from exc
        index += 1
    logger.debug("Collected %d log chunks", index)
    return "".join(parts).strip()
