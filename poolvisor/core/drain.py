"""
Graceful worker stop with forced-termination fallback.
"""

from __future__ import annotations

import logging

from ..exceptions import WorkerError
from ..worker import Phase, WorkerHandle
from .events import Event, EventKind
from .state import PoolState
from .timers import TimerScheduler


class DrainController:
    """
    Stops workers one drain call at a time.

    `drain()` sends exactly one graceful-stop request and arms exactly one
    grace timer per worker; repeated calls while the worker is draining are
    no-ops. When the grace timer expires before the worker has exited, the
    worker gets a single forced termination.
    """

    def __init__(
        self,
        lg: logging.Logger,
        state: PoolState,
        timers: TimerScheduler,
        grace_period: float,
    ) -> None:
        self._lg = lg
        self._state = state
        self._timers = timers
        self._grace_period = grace_period

    @property
    def grace_period(self) -> float:
        return self._grace_period

    def drain(self, wid: int) -> bool:
        """
        Ask worker `wid` to stop accepting work and arm its grace timer.

        Returns:
            True if a drain was started, False if the worker is gone or
            already draining
        """
        handle = self._state.workers.get(wid)
        if handle is None:
            self._lg.debug("worker already gone, nothing to drain", extra={"worker": wid})
            return False
        if not handle.mark_draining():
            return False

        self._lg.info("stopping worker", extra={"worker": wid, "pid": handle.pid})
        try:
            handle.process.disconnect()
        except WorkerError as e:
            # Channel is gone; the worker is on its way out or will be killed
            self._lg.debug("graceful stop not delivered", extra={"exception": e})

        handle.grace_timer = self._timers.call_later(
            self._grace_period, Event(EventKind.GRACE_EXPIRED, worker=wid)
        )
        return True

    def expire(self, wid: int) -> bool:
        """
        Grace period of `wid` ran out: force-terminate it once.

        Returns:
            True if a kill was sent
        """
        handle = self._state.workers.get(wid)
        if handle is None or handle.phase is not Phase.DRAINING or handle.killed:
            return False
        handle.grace_timer = None
        handle.killed = True
        self._lg.warning(
            "grace period expired, killing worker",
            extra={"worker": wid, "pid": handle.pid, "grace": self._grace_period},
        )
        handle.process.kill()
        return True

    def on_exit(self, handle: WorkerHandle) -> None:
        """Cancel the grace timer of a worker that exited on its own."""
        if handle.grace_timer is not None:
            self._timers.cancel(handle.grace_timer)
            handle.grace_timer = None
