from .runner import DockerExec, run_command, run_command_sync
from .execution.config import DockerConnectionSettings
from .execution.docker_engine import DockerEngine, docker_is_available
from .execution.errors import (
    CleanupError,
    DecodeError,
    EngineError,
    ExecutionError,
    ExecutionTimeout,
    NonZeroExit,
)

__all__ = [
    "DockerExec",
    "run_command",
    "run_command_sync",
    "DockerEngine",
    "DockerConnectionSettings",
    "docker_is_available",
    "ExecutionError",
    "EngineError",
    "NonZeroExit",
    "ExecutionTimeout",
    "DecodeError",
    "CleanupError",
]
