"""
Translates lifecycle events into supervisor operations.

    SIGHUP            -> RELOAD    -> rolling restart
    SIGTERM, SIGINT   -> SHUTDOWN  -> drain everything, spawn nothing
    worker ready      -> READY     -> phase Ready, restart sequencer feedback
    worker exited     -> EXITED    -> forget worker, refill capacity
    grace timer       -> GRACE_EXPIRED  -> forced termination
    capacity timer    -> CAPACITY_CHECK -> refill capacity

OS signal handlers only enqueue; all state changes happen in dispatch().
"""

from __future__ import annotations

import logging
import signal
from collections.abc import Callable
from types import FrameType
from typing import Any

from .drain import DrainController
from .events import Event, EventKind, EventQueue
from .sequencer import RestartSequencer
from .spawner import Spawner
from .state import PoolState
from .timers import TimerScheduler


class SignalRouter:
    """Entry point for external lifecycle signals and worker notifications."""

    SIGNALS: dict[signal.Signals, EventKind] = {
        signal.SIGHUP: EventKind.RELOAD,
        signal.SIGTERM: EventKind.SHUTDOWN,
        signal.SIGINT: EventKind.SHUTDOWN,
    }

    def __init__(
        self,
        lg: logging.Logger,
        state: PoolState,
        queue: EventQueue,
        timers: TimerScheduler,
        spawner: Spawner,
        drainer: DrainController,
        sequencer: RestartSequencer,
        capacity_check_interval: float = 0.0,
    ) -> None:
        self._lg = lg
        self._state = state
        self._queue = queue
        self._timers = timers
        self._spawner = spawner
        self._drainer = drainer
        self._sequencer = sequencer
        self._capacity_check_interval = capacity_check_interval
        self._original_handlers: dict[signal.Signals, Any] = {}
        self._handlers: dict[EventKind, Callable[[Event], None]] = {
            EventKind.RELOAD: lambda event: self.reload(),
            EventKind.SHUTDOWN: lambda event: self.shutdown(),
            EventKind.READY: self._on_ready,
            EventKind.EXITED: self._on_exit,
            EventKind.GRACE_EXPIRED: self._on_grace_expired,
            EventKind.CAPACITY_CHECK: self._on_capacity_check,
        }

    def install(self) -> None:
        """Route SIGHUP/SIGTERM/SIGINT into the event queue."""
        for signum in self.SIGNALS:
            self._original_handlers[signum] = signal.signal(signum, self._handle_signal)

    def restore(self) -> None:
        """Put back the handlers that were active before install()."""
        for signum, handler in self._original_handlers.items():
            signal.signal(signum, handler)
        self._original_handlers.clear()

    def _handle_signal(self, signum: int, frame: FrameType | None) -> None:
        self._queue.put(Event(self.SIGNALS[signal.Signals(signum)]))

    def dispatch(self, event: Event) -> None:
        self._handlers[event.kind](event)

    def reload(self) -> None:
        """Rolling restart of every current worker."""
        if self._state.stopping:
            self._lg.info("shutting down, ignoring reload")
            return
        self._sequencer.begin()

    def shutdown(self) -> None:
        """Stop spawning and drain every worker concurrently."""
        if not self._state.stopping:
            self._state.stopping = True
            self._lg.info(
                "stopping all workers", extra={"workers": len(self._state.workers)}
            )
        self._sequencer.cancel()
        for wid in self._state.workers.identities():
            self._drainer.drain(wid)

    def schedule_capacity_check(self) -> None:
        if self._capacity_check_interval > 0 and not self._state.stopping:
            self._timers.call_later(
                self._capacity_check_interval, Event(EventKind.CAPACITY_CHECK)
            )

    def _on_ready(self, event: Event) -> None:
        assert event.worker is not None
        handle = self._state.workers.get(event.worker)
        if handle is None or not handle.mark_ready():
            return
        self._lg.info("worker ready", extra={"worker": handle.wid, "pid": handle.pid})
        self._sequencer.on_ready(handle.wid)

    def _on_exit(self, event: Event) -> None:
        assert event.worker is not None
        handle = self._state.workers.remove(event.worker)
        if handle is None:
            return
        handle.mark_exited(event.exitcode)
        self._drainer.on_exit(handle)
        self._lg.info(
            "worker exited",
            extra={"worker": handle.wid, "pid": handle.pid, "code": event.exitcode},
        )
        self._spawner.ensure_capacity()

    def _on_grace_expired(self, event: Event) -> None:
        assert event.worker is not None
        self._drainer.expire(event.worker)

    def _on_capacity_check(self, event: Event) -> None:
        self._spawner.ensure_capacity()
        self.schedule_capacity_check()
