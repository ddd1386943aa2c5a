"""Process-wide, one-time acquisition of large external dependencies."""

import asyncio
import threading
from collections.abc import Iterable
from enum import Enum
from pathlib import Path

from converter_common import setup_logging
from pydantic import BaseModel, ConfigDict

from config import BootstrapConfig
from exceptions import DependencyAcquisitionError, UnknownDependencyError

from .interfaces import DependencySource

logger = setup_logging()

SPEECH_MODEL = "speech-model"
TRANSCODER = "ffmpeg"


class BootstrapState(str, Enum):
    UNINITIALIZED = "uninitialized"
    ACQUIRING = "acquiring"
    READY = "ready"
    FAILED = "failed"


class Dependency(BaseModel):
    """A large file the service needs on disk before first use."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    target_path: Path
    source: DependencySource
    skip_when_local: bool = False


class _Slot:
    def __init__(self, dependency: Dependency, state: BootstrapState):
        self.dependency = dependency
        self.state = state
        self.task: asyncio.Task | None = None
        self.attempts = 0


class DependencyBootstrapper:
    """
    Makes sure each registered dependency is installed exactly once.

    Each dependency moves through
    UNINITIALIZED -> ACQUIRING -> READY | FAILED. The first caller (or the
    background trigger at startup) starts a single acquisition task; later
    callers either join it or get the settled state back immediately.
    FAILED is sticky until `reset` is called, so an unreachable download
    server does not stall every following request.

    The lock only guards state transitions and is never held while
    downloading or sleeping between attempts.
    """

    def __init__(self, dependencies: Iterable[Dependency], config: BootstrapConfig):
        self._config = config
        self._lock = threading.Lock()
        self._slots: dict[str, _Slot] = {}
        for dependency in dependencies:
            skipped = dependency.skip_when_local and not config.cloud
            state = BootstrapState.READY if skipped else BootstrapState.UNINITIALIZED
            if skipped:
                logger.info(
                    "Local environment detected, marking dependency as ready",
                    extra={"dependency": dependency.name},
                )
            self._slots[dependency.name] = _Slot(dependency, state)

    def state(self, name: str) -> BootstrapState:
        with self._lock:
            return self._slot(name).state

    def is_ready(self, name: str) -> bool:
        return self.state(name) is BootstrapState.READY

    def attempts(self, name: str) -> int:
        """Number of fetch attempts made for a dependency in this process."""
        with self._lock:
            return self._slot(name).attempts

    def start(self) -> None:
        """Schedules background acquisition of every registered dependency."""
        for name in list(self._slots):
            self.trigger(name)

    def trigger(self, name: str) -> None:
        """Starts acquisition in the background unless it already ran or is running."""
        with self._lock:
            slot = self._slot(name)
            if slot.state is BootstrapState.ACQUIRING:
                logger.info(
                    "Dependency setup already in progress", extra={"dependency": name}
                )
                return
            if slot.state is not BootstrapState.UNINITIALIZED:
                return
            self._begin(slot)

    async def ensure_ready(self, name: str) -> BootstrapState:
        """
        Waits until the dependency has settled and returns its final state.

        Returns immediately once READY or FAILED. Concurrent callers share
        the one in-flight acquisition; a caller being cancelled does not
        cancel it for the others.
        """
        with self._lock:
            slot = self._slot(name)
            if slot.state in (BootstrapState.READY, BootstrapState.FAILED):
                return slot.state
            if slot.task is None:
                self._begin(slot)
            task = slot.task
        return await asyncio.shield(task)

    def reset(self, name: str) -> None:
        """Moves a FAILED dependency back to UNINITIALIZED so it can be retried."""
        with self._lock:
            slot = self._slot(name)
            if slot.state is BootstrapState.FAILED:
                slot.state = BootstrapState.UNINITIALIZED
                slot.task = None
                slot.attempts = 0
                logger.info("Dependency state reset", extra={"dependency": name})

    async def shutdown(self) -> None:
        """Cancels in-flight acquisitions, including pending retry delays."""
        with self._lock:
            tasks = [s.task for s in self._slots.values() if s.task and not s.task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _slot(self, name: str) -> _Slot:
        try:
            return self._slots[name]
        except KeyError:
            raise UnknownDependencyError(name) from None

    def _begin(self, slot: _Slot) -> None:
        # caller holds self._lock
        slot.state = BootstrapState.ACQUIRING
        slot.task = asyncio.get_running_loop().create_task(
            self._acquire(slot), name=f"bootstrap-{slot.dependency.name}"
        )

    def _settle(self, slot: _Slot, state: BootstrapState) -> BootstrapState:
        with self._lock:
            slot.state = state
        return state

    async def _acquire(self, slot: _Slot) -> BootstrapState:
        dependency = slot.dependency
        target = dependency.target_path

        if _is_installed(target):
            logger.info(
                "Dependency already present",
                extra={"dependency": dependency.name, "path": str(target)},
            )
            return self._settle(slot, BootstrapState.READY)

        max_attempts = self._config.max_attempts
        logger.info(
            "Starting dependency setup",
            extra={"dependency": dependency.name, "path": str(target)},
        )
        try:
            for attempt in range(1, max_attempts + 1):
                with self._lock:
                    slot.attempts += 1
                try:
                    await asyncio.to_thread(dependency.source.fetch, target)
                    if not _is_installed(target):
                        raise DependencyAcquisitionError(dependency.name, str(target))
                except Exception as e:
                    logger.warning(
                        "Dependency download attempt failed",
                        extra={
                            "dependency": dependency.name,
                            "attempt": attempt,
                            "max_attempts": max_attempts,
                            "error": str(e),
                        },
                    )
                    if attempt < max_attempts:
                        logger.info(
                            "Retrying dependency download",
                            extra={
                                "dependency": dependency.name,
                                "delay_seconds": self._config.retry_delay_seconds,
                                "next_attempt": attempt + 1,
                            },
                        )
                        await asyncio.sleep(self._config.retry_delay_seconds)
                    continue

                logger.info(
                    "Dependency setup completed",
                    extra={"dependency": dependency.name, "attempts": attempt},
                )
                return self._settle(slot, BootstrapState.READY)
        except asyncio.CancelledError:
            logger.warning(
                "Dependency setup cancelled", extra={"dependency": dependency.name}
            )
            self._settle(slot, BootstrapState.FAILED)
            raise

        logger.error(
            "Dependency setup failed",
            extra={"dependency": dependency.name, "attempts": max_attempts},
        )
        return self._settle(slot, BootstrapState.FAILED)


def _is_installed(path: Path) -> bool:
    try:
        return path.is_file() and path.stat().st_size > 0
    except OSError:
        return False
