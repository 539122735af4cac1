"""Stop Soundpad, edit its soundlist, relaunch it and wait until it answers.

Soundpad keeps the soundlist in memory and rewrites it on exit, so an edit
made while it runs is lost. Every change therefore goes through one cycle:

    IDLE -> STOPPING -> EDITING -> RELAUNCHING -> WAITING_READY -> IDLE

Relaunching happens whatever the edit did. Only one cycle runs at a time.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from enum import StrEnum

from loguru import logger

from soundpad_bridge.config import DEFAULT_TIMINGS, Timings
from soundpad_bridge.core.control.health import ConnectionHealthMonitor
from soundpad_bridge.errors import CoordinatorBusyError, PreconditionError
from soundpad_bridge.models.soundlist import LifecycleOutcome, MutationResult
from soundpad_bridge.protocols import ProcessControllerProtocol, SoundlistStoreProtocol

Mutation = Callable[[str], MutationResult]
Sleep = Callable[[float], Awaitable[None]]


class LifecycleState(StrEnum):
    IDLE = "idle"
    STOPPING = "stopping"
    EDITING = "editing"
    RELAUNCHING = "relaunching"
    WAITING_READY = "waiting_ready"


class LifecycleCoordinator:
    """Serialize soundlist edits around a stop/relaunch of Soundpad."""

    def __init__(
        self,
        store: SoundlistStoreProtocol,
        process: ProcessControllerProtocol,
        monitor: ConnectionHealthMonitor,
        *,
        timings: Timings = DEFAULT_TIMINGS,
        reject_when_busy: bool = False,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.process = process
        self.monitor = monitor
        self.timings = timings
        self.reject_when_busy = reject_when_busy
        self._sleep = sleep
        self._clock = clock
        self._lock = asyncio.Lock()
        self.state = LifecycleState.IDLE
        # States entered during the latest cycle, in order.
        self.history: list[LifecycleState] = []

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def _enter(self, state: LifecycleState) -> None:
        self.state = state
        self.history.append(state)
        logger.debug("Lifecycle -> {}", state)

    def check_preconditions(self, *, need_document: bool = True) -> None:
        """Raise PreconditionError unless the soundlist and executable both exist."""
        if need_document and not self.store.exists():
            msg = f"Soundlist file not found: {getattr(self.store, 'path', '?')}"
            raise PreconditionError(msg)
        if not self.process.executable_exists():
            msg = f"Soundpad executable not found: {getattr(self.process, 'executable', '?')}"
            raise PreconditionError(msg)

    def _claim(self) -> None:
        if self.reject_when_busy and self._lock.locked():
            msg = "Another soundlist change is in progress"
            raise CoordinatorBusyError(msg)

    async def run(self, mutation: Mutation, *, description: str = "edit") -> LifecycleOutcome:
        """Run one mutation through the full stop/edit/relaunch cycle.

        Raises:
            PreconditionError: soundlist or executable missing; nothing was touched.
            CoordinatorBusyError: another cycle is running and rejection is enabled.
        """
        self.check_preconditions()
        self._claim()
        async with self._lock:
            self.history = []
            stopped_cleanly = False
            ready = False
            try:
                stopped_cleanly = await self._stop()
                self.monitor.invalidate()
                result = await self._edit(mutation, description)
            finally:
                ready = await self._relaunch()
                self._enter(LifecycleState.IDLE)

        return LifecycleOutcome(
            success=result.success,
            message=result.message,
            error=result.error,
            data=dict(result.data),
            stopped_cleanly=stopped_cleanly,
            ready=ready,
        )

    async def restart(self) -> LifecycleOutcome:
        """Stop and relaunch Soundpad without editing anything."""
        self.check_preconditions(need_document=False)
        self._claim()
        async with self._lock:
            self.history = []
            stopped_cleanly = False
            try:
                stopped_cleanly = await self._stop()
                self.monitor.invalidate()
            finally:
                ready = await self._relaunch()
                self._enter(LifecycleState.IDLE)
        if not ready:
            return LifecycleOutcome(
                success=False,
                error="Soundpad was relaunched but did not become ready in time",
                stopped_cleanly=stopped_cleanly,
                ready=False,
            )
        return LifecycleOutcome(
            success=True, message="Soundpad restarted", stopped_cleanly=stopped_cleanly
        )

    async def launch(self) -> LifecycleOutcome:
        """Start Soundpad unless it already answers on the control channel."""
        if await self.monitor.check_now():
            self.monitor.mark_connected()
            return LifecycleOutcome(
                success=True, message="Soundpad is already running", data={"launched": False}
            )
        self.check_preconditions(need_document=False)
        self._claim()
        async with self._lock:
            self.history = []
            ready = await self._relaunch()
            self._enter(LifecycleState.IDLE)
        if not ready:
            return LifecycleOutcome(
                success=False,
                error="Soundpad was launched but did not become ready in time",
                data={"launched": True},
                ready=False,
            )
        return LifecycleOutcome(success=True, message="Soundpad launched", data={"launched": True})

    # --- phases ---

    async def _wait_until_gone(self, budget: float) -> bool:
        deadline = self._clock() + budget
        while self._clock() < deadline:
            await self._sleep(self.timings.stop_poll_interval)
            if not await self.process.is_running():
                return True
        return False

    async def _stop(self) -> bool:
        """Stop Soundpad. Returns False if it may still be running afterwards."""
        self._enter(LifecycleState.STOPPING)
        if not await self.process.is_running():
            logger.debug("Soundpad is not running, nothing to stop")
            return True

        await self.process.request_graceful_stop()
        if await self._wait_until_gone(self.timings.graceful_stop_timeout):
            logger.info("Soundpad exited")
            return True

        logger.warning(
            "Soundpad did not exit within {}s, forcing it", self.timings.graceful_stop_timeout
        )
        await self.process.force_stop()
        if await self._wait_until_gone(self.timings.forced_stop_timeout):
            logger.info("Soundpad killed")
            return True

        logger.warning("Soundpad may still be running after forced stop; editing anyway")
        return False

    async def _edit(self, mutation: Mutation, description: str) -> MutationResult:
        self._enter(LifecycleState.EDITING)
        try:
            text = await self.store.read()
        except OSError as e:
            logger.error("Could not read soundlist: {}", e)
            return MutationResult.fail("", f"Failed to read soundlist: {e}")

        result = mutation(text)
        if not result.success:
            logger.warning("{} failed: {}", description, result.error)
            return result
        if result.content == text:
            logger.info("{}: no change to write", description)
            return result

        try:
            await self.store.write(result.content)
        except OSError as e:
            logger.error("Could not write soundlist: {}", e)
            return MutationResult.fail(text, f"Failed to write soundlist: {e}")
        logger.info("{}: {}", description, result.message)
        return result

    async def _relaunch(self) -> bool:
        self._enter(LifecycleState.RELAUNCHING)
        try:
            await self.process.launch()
        except OSError as e:
            logger.error("Could not launch Soundpad: {}", e)
            return False
        self._enter(LifecycleState.WAITING_READY)
        return await self._wait_ready()

    async def _wait_ready(self) -> bool:
        started = self._clock()
        while self._clock() - started < self.timings.ready_timeout:
            if await self.monitor.check_now():
                self.monitor.mark_connected()
                logger.info("Soundpad ready after {:.1f}s", self._clock() - started)
                return True
            await self._sleep(self.timings.ready_poll_interval)
        logger.warning("Soundpad did not answer within {}s", self.timings.ready_timeout)
        return False
