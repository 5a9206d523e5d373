from __future__ import annotations


class ExecutionError(Exception):
    """Base class for every failure raised by a container execution.

    Example:
        ```python
        try:
            await DockerExec(engine, "alpine", ["false"]).execute()
        except ExecutionError as exc:
            print(exc)
        ```
    """


class EngineError(ExecutionError):
    """A container engine call failed.

    Example:
        ```python
        raise EngineError("start", "No such container: abc", stderr="Error: No such container: abc")
        ```
    """

    def __init__(self, operation: str, message: str, *, stderr: str = "") -> None:
        """Store the failed operation name and any captured engine stderr.

        Example:
            ```python
            err = EngineError("create", "Failed to create container")
            ```
        """
        super().__init__(f"Engine '{operation}' failed: {message}")
        self.operation = operation
        self.stderr = stderr


class NonZeroExit(ExecutionError):
    """The command ran and exited with a non-zero status code.

    Example:
        ```python
        err = NonZeroExit(1, "sh: oops")
        assert "status code: 1" in str(err)
        ```
    """

    def __init__(self, code: int, output: str) -> None:
        """Store the exit code and combined stdout/stderr output.

        Example:
            ```python
            err = NonZeroExit(2, "usage: ...")
            ```
        """
        super().__init__(f"Command failed with status code: {code}\n{output}")
        self.code = code
        self.output = output


class ExecutionTimeout(ExecutionError, TimeoutError):
    """The run phase did not finish before the deadline.

    Example:
        ```python
        err = ExecutionTimeout(3)
        ```
    """

    def __init__(self, timeout_seconds: float) -> None:
        """Store the deadline that was exceeded.

        Example:
            ```python
            err = ExecutionTimeout(timeout_seconds=1.5)
            ```
        """
        super().__init__("Execution timed out")
        self.timeout_seconds = timeout_seconds


class DecodeError(ExecutionError):
    """A log chunk was not valid UTF-8.

    Example:
        ```python
        err = DecodeError(chunk_index=4)
        ```
    """

    def __init__(self, chunk_index: int) -> None:
        """Store the zero-based index of the undecodable chunk.

        Example:
            ```python
            err = DecodeError(0)
            ```
        """
        super().__init__(f"Failed to decode log chunk {chunk_index} as UTF-8")
        self.chunk_index = chunk_index


class CleanupError(ExecutionError):
    """The container could not be removed after a successful run.

    Example:
        ```python
        err = CleanupError("3f2a9c", "Engine 'remove' failed: device busy")
        ```
    """

    def __init__(self, container_id: str, message: str) -> None:
        """Store the container that was left behind.

        Example:
            ```python
            err = CleanupError("3f2a9c", "removal refused")
            ```
        """
        super().__init__(f"Failed to remove container {container_id}: {message}")
        self.container_id = container_id
