"""
Deferred events.

Timers never run supervisor code directly: when one expires it enqueues
its event, so timeouts go through the same queue and dispatch path as
everything else. Pending timers do not keep the reactor running.
"""

from __future__ import annotations

import sched
import time
from collections.abc import Callable
from typing import Any

from .events import Event, EventQueue


class Timer:
    """Handle for a scheduled event."""

    def __init__(self, event: Event, deadline: float) -> None:
        self.event = event
        self.deadline = deadline
        self.fired = False
        self.cancelled = False
        self._entry: Any = None

    @property
    def pending(self) -> bool:
        return not (self.fired or self.cancelled)

    def __repr__(self) -> str:
        state = "fired" if self.fired else "cancelled" if self.cancelled else "pending"
        return f"Timer({self.event.kind.value}, worker={self.event.worker}, {state})"


class TimerScheduler:
    """
    Non-blocking wrapper around sched.scheduler that posts events to a queue.

    Example:
        timers = TimerScheduler(queue)
        timer = timers.call_later(60.0, Event(EventKind.GRACE_EXPIRED, worker=3))
        ...
        timers.run_due()        # enqueues the event once 60s have passed
        timers.cancel(timer)    # no-op if already fired
    """

    def __init__(
        self, queue: EventQueue, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self._queue = queue
        self._clock = clock
        self._sched = sched.scheduler(clock, time.sleep)

    def __len__(self) -> int:
        return len(self._sched.queue)

    def call_later(self, delay: float, event: Event) -> Timer:
        timer = Timer(event, self._clock() + delay)
        timer._entry = self._sched.enter(delay, 0, self._fire, (timer,))
        return timer

    def cancel(self, timer: Timer) -> bool:
        """Cancel a pending timer. Returns False if it already fired or was cancelled."""
        if not timer.pending:
            return False
        try:
            self._sched.cancel(timer._entry)
        except ValueError:
            return False
        timer.cancelled = True
        return True

    def run_due(self) -> float | None:
        """Fire due timers; return seconds until the next one, or None."""
        delay = self._sched.run(blocking=False)
        return None if delay is None else max(0.0, delay)

    def next_delay(self) -> float | None:
        entries = self._sched.queue
        if not entries:
            return None
        return max(0.0, entries[0].time - self._clock())

    def _fire(self, timer: Timer) -> None:
        timer.fired = True
        self._queue.put(timer.event)
