from .engine import ContainerEngine
from .errors import (
    CleanupError,
    DecodeError,
    EngineError,
    ExecutionError,
    ExecutionTimeout,
    NonZeroExit,
)
from .types import ExecutionRequest, LogsOptions, RemoveOptions, StopOptions

__all__ = [
    "CleanupError",
    "ContainerEngine",
    "DecodeError",
    "EngineError",
    "ExecutionError",
    "ExecutionRequest",
    "ExecutionTimeout",
    "LogsOptions",
    "NonZeroExit",
    "RemoveOptions",
    "StopOptions",
]
