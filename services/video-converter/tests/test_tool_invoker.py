"""Tests for ExternalToolInvoker against real child processes."""

import asyncio
import sys
import time

import pytest

from infrastructure.tool_invoker import ExternalToolInvoker

PYTHON = sys.executable


def _run(coro):
    return asyncio.run(coro)


# ---------------------------------------------------------------
# run
# ---------------------------------------------------------------

def test_successful_run_captures_output() -> None:
    invoker = ExternalToolInvoker()
    result = _run(
        invoker.run(
            PYTHON,
            ["-c", "import sys; print('out'); print('err', file=sys.stderr)"],
        )
    )

    assert result.succeeded
    assert result.exit_code == 0
    assert result.stdout.strip() == "out"
    assert result.stderr.strip() == "err"
    assert not result.timed_out


def test_non_zero_exit_is_a_failed_result() -> None:
    invoker = ExternalToolInvoker()
    result = _run(invoker.run(PYTHON, ["-c", "import sys; sys.exit(3)"]))

    assert not result.succeeded
    assert result.exit_code == 3


def test_large_output_does_not_deadlock() -> None:
    invoker = ExternalToolInvoker()
    script = "import sys; sys.stderr.write('x' * 1_000_000); sys.stdout.write('y' * 1_000_000)"
    result = _run(invoker.run(PYTHON, ["-c", script], timeout=30))

    assert result.succeeded
    assert len(result.stderr) == 1_000_000
    assert len(result.stdout) == 1_000_000


def test_missing_binary_returns_failure_instead_of_raising() -> None:
    invoker = ExternalToolInvoker()
    result = _run(invoker.run("definitely-not-a-real-tool-xyz", ["-version"]))

    assert not result.succeeded
    assert result.exit_code is None
    assert "definitely-not-a-real-tool-xyz" in result.error


def test_timeout_kills_process() -> None:
    invoker = ExternalToolInvoker()
    started = time.monotonic()
    result = _run(
        invoker.run(PYTHON, ["-c", "import time; time.sleep(30)"], timeout=0.5)
    )

    assert time.monotonic() - started < 10
    assert not result.succeeded
    assert result.timed_out
    assert result.exit_code is not None


def test_cancellation_kills_process_and_propagates() -> None:
    invoker = ExternalToolInvoker()

    async def scenario():
        task = asyncio.create_task(
            invoker.run(PYTHON, ["-c", "import time; time.sleep(30)"])
        )
        await asyncio.sleep(0.5)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    started = time.monotonic()
    _run(scenario())
    assert time.monotonic() - started < 10


# ---------------------------------------------------------------
# probe
# ---------------------------------------------------------------

def test_probe_true_for_working_tool() -> None:
    invoker = ExternalToolInvoker()
    assert _run(invoker.probe(PYTHON, "--version")) is True


def test_probe_false_for_missing_tool() -> None:
    invoker = ExternalToolInvoker()
    assert _run(invoker.probe("definitely-not-a-real-tool-xyz")) is False


def test_probe_false_when_tool_hangs() -> None:
    invoker = ExternalToolInvoker(probe_timeout=0.5)
    script = "import time; time.sleep(30)"
    # the version flag is the script here, so the probe hangs
    assert _run(invoker.probe(PYTHON, "-c" + script)) is False
