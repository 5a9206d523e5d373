from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True, slots=True)
class ExecutionRequest:
    """Immutable description of one command run in an ephemeral container.

    Example:
        ```python
        req = ExecutionRequest.build("alpine", ["echo", "Hello"], timeout_seconds=10)
        ```
    """

    image: str
    command: tuple[str, ...]
    timeout_seconds: float | None = None

    @classmethod
    def build(
        cls,
        image: str,
        command: Sequence[str],
        timeout_seconds: float | None = None,
    ) -> ExecutionRequest:
        """Validate caller input and return a frozen request.

        Example:
            ```python
            req = ExecutionRequest.build("alpine", ["sh", "-c", "exit 1"])
            ```
        """
        if not isinstance(image, str) or not image.strip():
            raise ValueError("ExecutionRequest requires a non-empty 'image'")
        if isinstance(command, str):
            raise ValueError("'command' must be a sequence of strings, not a single string")
        items = tuple(command)
        if not items:
            raise ValueError("ExecutionRequest requires a non-empty 'command'")
        for item in items:
            if not isinstance(item, str):
                raise ValueError("'command' must contain only strings")
        if timeout_seconds is not None and timeout_seconds <= 0:
            raise ValueError("'timeout_seconds' must be positive when provided")
        return cls(image=image, command=items, timeout_seconds=timeout_seconds)


@dataclass(frozen=True, slots=True)
class LogsOptions:
    """Which output streams a log fetch should include.

    Example:
        ```python
        opts = LogsOptions(stdout=True, stderr=True)
        ```
    """

    stdout: bool = True
    stderr: bool = False


@dataclass(frozen=True, slots=True)
class StopOptions:
    """Options for a best-effort container stop.

    Example:
        ```python
        opts = StopOptions(timeout_seconds=5)
        ```
    """

    timeout_seconds: int | None = None


@dataclass(frozen=True, slots=True)
class RemoveOptions:
    """Options for container removal.

    Example:
        ```python
        opts = RemoveOptions(force=True)
        ```
    """

    force: bool = False
