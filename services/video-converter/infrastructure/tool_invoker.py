"""Runs external command-line tools as child processes."""

import asyncio
from collections.abc import Sequence

from converter_common import setup_logging

from domain.models import ToolInvocationResult

logger = setup_logging()

DEFAULT_PROBE_TIMEOUT_SECONDS = 5.0


class ExternalToolInvoker:
    """
    Single-attempt execution of an external tool.

    Processes are started without a shell and both output streams are
    drained until exit. Expected failures (non-zero exit, missing binary,
    timeout) come back as a ToolInvocationResult; only cancellation
    propagates, after the child process has been killed.
    """

    def __init__(self, probe_timeout: float = DEFAULT_PROBE_TIMEOUT_SECONDS):
        self._probe_timeout = probe_timeout

    async def run(
        self,
        tool: str,
        args: Sequence[str],
        timeout: float | None = None,
    ) -> ToolInvocationResult:
        """
        Runs `tool` with `args` and waits for it to exit.

        Args:
            tool: Executable name or path.
            args: Arguments, passed verbatim.
            timeout: Seconds to wait before killing the process.

        Returns:
            ToolInvocationResult with exit code and captured output.
        """
        try:
            process = await asyncio.create_subprocess_exec(
                tool,
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.error(
                "External tool could not be started",
                extra={"tool": tool, "error": str(e)},
            )
            return ToolInvocationResult(
                exit_code=None,
                succeeded=False,
                error=f"Failed to start '{tool}': {e}",
            )

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout)
        except asyncio.TimeoutError:
            await self._kill(process)
            logger.error(
                "External tool timed out",
                extra={"tool": tool, "timeout": timeout, "pid": process.pid},
            )
            return ToolInvocationResult(
                exit_code=process.returncode,
                succeeded=False,
                timed_out=True,
                error=f"'{tool}' did not finish within {timeout} seconds",
            )
        except asyncio.CancelledError:
            await self._kill(process)
            logger.warning(
                "External tool cancelled", extra={"tool": tool, "pid": process.pid}
            )
            raise

        result = ToolInvocationResult(
            exit_code=process.returncode,
            stdout=_decode(stdout),
            stderr=_decode(stderr),
            succeeded=process.returncode == 0,
        )
        if not result.succeeded:
            logger.warning(
                "External tool exited with an error",
                extra={"tool": tool, "exit_code": result.exit_code},
            )
        return result

    async def probe(self, tool: str, version_flag: str = "-version") -> bool:
        """Returns True when `tool <version_flag>` exits with status 0."""
        result = await self.run(tool, [version_flag], timeout=self._probe_timeout)
        return result.succeeded

    @staticmethod
    async def _kill(process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
        # shield so the child is reaped even while the caller is being cancelled
        await asyncio.shield(process.wait())


def _decode(data: bytes | None) -> str:
    return data.decode("utf-8", errors="replace") if data else ""
