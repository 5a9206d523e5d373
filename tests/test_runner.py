import asyncio
import time

import pytest

from docker_exec import (
    CleanupError,
    DecodeError,
    DockerExec,
    EngineError,
    ExecutionError,
    ExecutionTimeout,
    NonZeroExit,
    run_command,
    run_command_sync,
)
from fakes import FakeEngine, Script


def _hello() -> Script:
    return Script(output=[("stdout", b"Hello\n")])


@pytest.mark.asyncio
async def test_echo_hello_without_deadline() -> None:
    engine = FakeEngine(_hello())
    output = await DockerExec(engine, "alpine", ["echo", "Hello"]).execute()
    assert output == "Hello"


@pytest.mark.asyncio
async def test_success_excludes_stderr() -> None:
    engine = FakeEngine(
        Script(output=[("stdout", b"  out\n"), ("stderr", b"noise\n"), ("stdout", b"more\n")])
    )
    output = await DockerExec(engine, "alpine", ["sh", "-c", "x"], timeout_seconds=10).execute()
    assert output == "out\nmore"
    assert engine.logs_options[0].stdout is True
    assert engine.logs_options[0].stderr is False


@pytest.mark.asyncio
async def test_non_zero_exit_carries_code_and_combined_output() -> None:
    engine = FakeEngine(
        Script(exit_code=1, output=[("stdout", b"partial\n"), ("stderr", b"boom\n")])
    )
    with pytest.raises(NonZeroExit) as info:
        await DockerExec(engine, "alpine", ["sh", "-c", "exit 1"], timeout_seconds=10).execute()
    assert info.value.code == 1
    assert info.value.output == "partial\nboom"
    assert str(info.value) == "Command failed with status code: 1\npartial\nboom"
    assert "status code: 1" in str(info.value)
    assert engine.logs_options[0].stderr is True
    assert engine.count("stop") == 1
    assert engine.count("remove") == 1


@pytest.mark.asyncio
async def test_steps_run_in_order_and_cleanup_runs_last() -> None:
    engine = FakeEngine(Script(output=[("stdout", b"a\n"), ("stdout", b"b\n")]))
    await DockerExec(engine, "alpine", ["echo"]).execute()
    assert engine.operations() == ["create", "start", "wait", "logs", "chunk", "chunk", "stop", "remove"]
    assert engine.remove_options[0].force is True


@pytest.mark.asyncio
async def test_create_failure_skips_cleanup() -> None:
    engine = FakeEngine(Script(fail_on={"create"}))
    with pytest.raises(EngineError) as info:
        await DockerExec(engine, "alpine", ["echo"]).execute()
    assert info.value.operation == "create"
    assert engine.count("stop") == 0
    assert engine.count("remove") == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("script", "expected"),
    [
        (Script(output=[("stdout", b"ok")]), None),
        (Script(exit_code=3), NonZeroExit),
        (Script(fail_on={"start"}), EngineError),
        (Script(fail_on={"wait"}), EngineError),
        (Script(fail_on={"logs"}), EngineError),
        (Script(output=[("stdout", b"\xff")]), DecodeError),
        (Script(wait_forever=True), ExecutionTimeout),
    ],
)
async def test_cleanup_attempted_exactly_once(script: Script, expected: type[Exception] | None) -> None:
    engine = FakeEngine(script)
    exec_ = DockerExec(engine, "alpine", ["cmd"], timeout_seconds=0.05)
    if expected is None:
        await exec_.execute()
    else:
        with pytest.raises(expected):
            await exec_.execute()
    assert engine.count("create") == 1
    assert engine.count("stop") == 1
    assert engine.count("remove") == 1


@pytest.mark.asyncio
async def test_timeout_returns_promptly_and_abandons_wait() -> None:
    engine = FakeEngine(Script(wait_forever=True))
    started = time.monotonic()
    with pytest.raises(ExecutionTimeout) as info:
        await DockerExec(engine, "alpine", ["sleep", "5"], timeout_seconds=0.1).execute()
    assert time.monotonic() - started < 1.0
    assert info.value.timeout_seconds == 0.1
    assert isinstance(info.value, TimeoutError)
    ops = engine.operations()
    assert ops.index("wait_cancelled") < ops.index("stop") < ops.index("remove")


@pytest.mark.asyncio
async def test_no_deadline_waits_for_completion() -> None:
    engine = FakeEngine(Script(wait_delay=0.2, output=[("stdout", b"done\n")]))
    assert await DockerExec(engine, "alpine", ["slow"]).execute() == "done"


@pytest.mark.asyncio
async def test_phase_finishing_before_deadline_wins() -> None:
    engine = FakeEngine(Script(wait_delay=0.01, output=[("stdout", b"fast")]))
    assert await DockerExec(engine, "alpine", ["fast"], timeout_seconds=5).execute() == "fast"


@pytest.mark.asyncio
async def test_stop_failure_is_swallowed() -> None:
    engine = FakeEngine(Script(output=[("stdout", b"fine")], fail_on={"stop"}))
    assert await DockerExec(engine, "alpine", ["echo"]).execute() == "fine"
    assert engine.count("remove") == 1


@pytest.mark.asyncio
async def test_remove_failure_after_success_raises_cleanup_error() -> None:
    engine = FakeEngine(Script(output=[("stdout", b"fine")], fail_on={"remove"}))
    with pytest.raises(CleanupError) as info:
        await DockerExec(engine, "alpine", ["echo"]).execute()
    assert info.value.container_id == "fake-1"
    assert isinstance(info.value.__cause__, EngineError)


@pytest.mark.asyncio
async def test_remove_failure_does_not_mask_non_zero_exit() -> None:
    engine = FakeEngine(Script(exit_code=2, output=[("stderr", b"bad")], fail_on={"remove"}))
    with pytest.raises(NonZeroExit) as info:
        await DockerExec(engine, "alpine", ["false"]).execute()
    assert info.value.code == 2
    assert info.value.output == "bad"


@pytest.mark.asyncio
async def test_remove_failure_does_not_mask_timeout() -> None:
    engine = FakeEngine(Script(wait_forever=True, fail_on={"stop", "remove"}))
    with pytest.raises(ExecutionTimeout):
        await DockerExec(engine, "alpine", ["sleep", "5"], timeout_seconds=0.05).execute()
    assert engine.count("remove") == 1


@pytest.mark.asyncio
async def test_decode_error_fails_whole_run() -> None:
    engine = FakeEngine(Script(output=[("stdout", b"ok\n"), ("stdout", b"\xc3\x28"), ("stdout", b"never")]))
    with pytest.raises(DecodeError) as info:
        await DockerExec(engine, "alpine", ["cat"]).execute()
    assert info.value.chunk_index == 1
    assert engine.count("chunk") == 2


@pytest.mark.asyncio
async def test_concurrent_executions_share_engine_without_mixing_output() -> None:
    engine = FakeEngine(
        scripts={
            ("echo", "test1"): Script(wait_delay=0.05, output=[("stdout", b"test1\n")]),
            ("echo", "test2"): Script(wait_delay=0.01, output=[("stdout", b"test2\n")]),
        }
    )
    first, second = await asyncio.gather(
        DockerExec(engine, "alpine", ["echo", "test1"], timeout_seconds=10).execute(),
        DockerExec(engine, "alpine", ["echo", "test2"], timeout_seconds=10).execute(),
    )
    assert (first, second) == ("test1", "test2")
    assert engine.count("create") == 2
    assert engine.count("remove") == 2


@pytest.mark.asyncio
async def test_caller_cancellation_still_cleans_up() -> None:
    engine = FakeEngine(Script(wait_forever=True))
    task = asyncio.create_task(DockerExec(engine, "alpine", ["sleep", "99"]).execute())
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert engine.count("remove") == 1


@pytest.mark.asyncio
async def test_each_execute_call_creates_its_own_container() -> None:
    engine = FakeEngine(_hello())
    exec_ = DockerExec(engine, "alpine", ["echo", "Hello"])
    await exec_.execute()
    await exec_.execute()
    created = [cid for op, cid in engine.calls if op == "start"]
    assert created == ["fake-1", "fake-2"]


def test_constructor_performs_no_engine_calls() -> None:
    engine = FakeEngine()
    exec_ = DockerExec(engine, "alpine", ["echo", "Hello"], timeout_seconds=3)
    assert engine.calls == []
    assert exec_.request.command == ("echo", "Hello")
    assert exec_.request.timeout_seconds == 3


@pytest.mark.parametrize(
    ("image", "command", "timeout", "match"),
    [
        ("", ["echo"], None, "image"),
        ("alpine", [], None, "command"),
        ("alpine", "echo Hello", None, "sequence of strings"),
        ("alpine", ["echo", 1], None, "only strings"),
        ("alpine", ["echo"], 0, "positive"),
        ("alpine", ["echo"], -1.5, "positive"),
    ],
)
def test_constructor_rejects_invalid_requests(image, command, timeout, match) -> None:
    with pytest.raises(ValueError, match=match):
        DockerExec(FakeEngine(), image, command, timeout_seconds=timeout)


def test_all_failures_share_one_base_class() -> None:
    for error_type in (EngineError, NonZeroExit, ExecutionTimeout, DecodeError, CleanupError):
        assert issubclass(error_type, ExecutionError)


@pytest.mark.asyncio
async def test_run_command_helper() -> None:
    assert await run_command(FakeEngine(_hello()), "alpine", ["echo", "Hello"]) == "Hello"


def test_run_command_sync_helper() -> None:
    assert run_command_sync(FakeEngine(_hello()), "alpine", ["echo", "Hello"], timeout_seconds=5) == "Hello"
