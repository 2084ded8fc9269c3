"""
Event channel between the outside world and the supervisor.

Everything that can change supervisor state arrives as an Event on one
EventQueue: OS signals, worker readiness and exit notifications, timer
expiry, file-watch triggers. Producers only append; the supervising thread
drains the queue and applies events one at a time, in arrival order.
"""

from __future__ import annotations

import os
from collections import deque
from dataclasses import dataclass
from enum import Enum


class EventKind(Enum):
    RELOAD = "reload"
    SHUTDOWN = "shutdown"
    READY = "ready"
    EXITED = "exited"
    GRACE_EXPIRED = "grace_expired"
    CAPACITY_CHECK = "capacity_check"


@dataclass(frozen=True)
class Event:
    """A queued lifecycle event."""

    kind: EventKind
    worker: int | None = None
    exitcode: int | None = None


class EventQueue:
    """
    FIFO of pending events with an optional self-pipe for waking a reactor.

    `put()` is safe to call from signal handlers and other threads: it only
    appends to a deque and writes one byte to a non-blocking pipe.

    Example:
        queue = EventQueue()
        signal.signal(signal.SIGHUP, lambda *_: queue.put(Event(EventKind.RELOAD)))
        ...
        for event in queue.drain():
            router.dispatch(event)
    """

    def __init__(self, wakeup: bool = True) -> None:
        self._events: deque[Event] = deque()
        self._rfd: int | None = None
        self._wfd: int | None = None
        if wakeup:
            self._rfd, self._wfd = os.pipe()
            os.set_blocking(self._rfd, False)
            os.set_blocking(self._wfd, False)

    def __len__(self) -> int:
        return len(self._events)

    def fileno(self) -> int:
        """Read end of the wakeup pipe."""
        if self._rfd is None:
            raise ValueError("event queue has no wakeup pipe")
        return self._rfd

    def put(self, event: Event) -> None:
        self._events.append(event)
        if self._wfd is not None:
            try:
                os.write(self._wfd, b"\0")
            except (BlockingIOError, InterruptedError):
                pass  # pipe full: a wakeup is already pending

    def drain(self) -> list[Event]:
        """Pop every pending event in arrival order."""
        events = []
        while True:
            try:
                events.append(self._events.popleft())
            except IndexError:
                return events

    def clear_wakeup(self) -> None:
        """Consume pending wakeup bytes."""
        if self._rfd is None:
            return
        while True:
            try:
                if not os.read(self._rfd, 4096):
                    return
            except (BlockingIOError, InterruptedError):
                return

    def close(self) -> None:
        for fd in (self._rfd, self._wfd):
            if fd is not None:
                os.close(fd)
        self._rfd = self._wfd = None
