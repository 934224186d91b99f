"""Refresh scheduler driving periodic validation cycles.

State machine:
- IDLE → VALIDATING: timer fires or a manual trigger arrives
- VALIDATING → IDLE: every probe of the cycle has settled; the next timer is
  armed ``interval_seconds`` after completion, so slow cycles never overlap
- any → STOPPED: ``stop()``; pending timer cancelled, nothing rescheduled

A trigger while VALIDATING is coalesced into the in-flight cycle.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from enum import Enum

logger = logging.getLogger(__name__)


class SchedulerState(str, Enum):
    """Refresh scheduler states."""

    IDLE = "idle"
    VALIDATING = "validating"
    STOPPED = "stopped"


class RefreshScheduler:
    """Runs ``run_cycle`` on a fixed interval measured from cycle completion.

    Parameters
    ----------
    run_cycle:
        Coroutine function performing one validation cycle.
    interval_seconds:
        Idle time between the end of one cycle and the start of the next.
    """

    def __init__(
        self,
        run_cycle: Callable[[], Awaitable[None]],
        interval_seconds: float = 10.0,
    ) -> None:
        self._run_cycle = run_cycle
        self._interval_seconds = interval_seconds
        self._state = SchedulerState.IDLE
        self._cycle_task: asyncio.Task[None] | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._cycles_completed = 0
        self._last_cycle_ms: float | None = None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def cycles_completed(self) -> int:
        return self._cycles_completed

    @property
    def timer_armed(self) -> bool:
        return self._timer is not None

    def get_stats(self) -> dict:
        return {
            "state": self._state.value,
            "interval_seconds": self._interval_seconds,
            "cycles_completed": self._cycles_completed,
            "last_cycle_ms": self._last_cycle_ms,
        }

    # ------------------------------------------------------------------
    # Triggering
    # ------------------------------------------------------------------

    def trigger(self) -> asyncio.Task[None] | None:
        """Start a cycle, or return the in-flight one.

        Returns None once the scheduler is stopped and nothing is in flight.
        Must be called from within the running event loop.
        """
        if self._cycle_task is not None and not self._cycle_task.done():
            return self._cycle_task
        if self._state is SchedulerState.STOPPED:
            return None

        self._cancel_timer()
        self._state = SchedulerState.VALIDATING
        self._cycle_task = asyncio.get_running_loop().create_task(self._cycle())
        return self._cycle_task

    async def run_once(self) -> None:
        """Wait for the in-flight cycle, or a freshly started one, to settle."""
        task = self.trigger()
        if task is not None:
            # Shielded: a cancelled waiter must not cancel the shared cycle.
            await asyncio.shield(task)

    async def wait_idle(self) -> None:
        """Wait for the in-flight cycle, if any, without starting a new one."""
        task = self._cycle_task
        if task is not None and not task.done():
            await asyncio.shield(task)

    async def _cycle(self) -> None:
        start = time.perf_counter()
        try:
            await self._run_cycle()
        except Exception:
            logger.exception("Validation cycle failed")
        finally:
            self._last_cycle_ms = (time.perf_counter() - start) * 1000.0
            self._cycles_completed += 1
            if self._state is not SchedulerState.STOPPED:
                self._state = SchedulerState.IDLE
                self._arm_timer()

    # ------------------------------------------------------------------
    # Timer
    # ------------------------------------------------------------------

    def _arm_timer(self) -> None:
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._interval_seconds, self._on_timer)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        self._timer = None
        if self._state is SchedulerState.IDLE:
            self.trigger()

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    def stop(self) -> None:
        """Cancel the pending timer and refuse new cycles. Idempotent."""
        if self._state is SchedulerState.STOPPED:
            return
        self._state = SchedulerState.STOPPED
        self._cancel_timer()
        logger.info("Refresh scheduler stopped")
