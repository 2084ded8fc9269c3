"""
Reactor loop running a Supervisor over real multiprocessing workers.

One thread waits on the event queue's wakeup pipe plus every worker's
message channel and process sentinel, turns what it sees into events, and
lets the supervisor dispatch them. Nothing blocks except that wait.
"""

from __future__ import annotations

import logging
from multiprocessing.connection import Connection, wait

from ..worker import MultiprocessingWorker, WorkerHandle
from ..worker.process import READY
from .events import Event, EventKind
from .supervisor import Supervisor


class Reactor:
    """
    Runs the supervisor until shutdown has completed.

    Example:
        supervisor = Supervisor(lg, config, MultiprocessingBackend(lg, "app:serve"))
        Reactor(lg, supervisor).run()   # returns after SIGTERM once all workers exited
    """

    def __init__(
        self,
        lg: logging.Logger,
        supervisor: Supervisor,
        install_signals: bool = True,
    ) -> None:
        self._lg = lg
        self._sup = supervisor
        self._install_signals = install_signals

    def run(self) -> None:
        """
        Start workers and process events until the pool has shut down.

        Pending grace timers do not keep the loop alive: it returns as soon as
        shutdown was requested and every worker has exited.

        Raises:
            SpawnError: If the initial workers cannot be spawned
        """
        sup = self._sup
        if self._install_signals:
            sup.router.install()
        try:
            sup.start()
            while True:
                sup.pump()
                if sup.finished:
                    break
                self.poll(sup.timers.next_delay())
        finally:
            if self._install_signals:
                sup.router.restore()
        self._lg.info("all workers stopped")

    def poll(self, timeout: float | None) -> None:
        """Wait for activity and translate it into queued events."""
        sup = self._sup
        channels: dict[Connection, WorkerHandle] = {}
        sentinels: dict[int, WorkerHandle] = {}
        for handle in sup.workers:
            process = handle.process
            if not isinstance(process, MultiprocessingWorker) or process.reaped:
                continue
            sentinels[process.sentinel] = handle
            if process.conn is not None:
                channels[process.conn] = handle

        waitables: list[object] = [sup.queue.fileno(), *channels, *sentinels]
        ready = wait(waitables, timeout)  # type: ignore[arg-type]

        # Messages first, so a worker's "ready" is queued before its exit
        for obj in ready:
            if isinstance(obj, Connection) and obj in channels:
                self._on_channel(channels[obj])
        for obj in ready:
            if isinstance(obj, int) and obj in sentinels:
                self._on_sentinel(sentinels[obj])
            elif obj == sup.queue.fileno():
                sup.queue.clear_wakeup()

    def _on_channel(self, handle: WorkerHandle) -> None:
        process = handle.process
        assert isinstance(process, MultiprocessingWorker)
        for tag in process.receive():
            if tag == READY:
                self._sup.queue.put(Event(EventKind.READY, worker=handle.wid))
            else:
                self._lg.debug(
                    "unknown worker message", extra={"worker": handle.wid, "tag": tag}
                )

    def _on_sentinel(self, handle: WorkerHandle) -> None:
        process = handle.process
        assert isinstance(process, MultiprocessingWorker)
        if process.reaped:
            return
        # Pick up a "ready" sent right before exiting
        self._on_channel(handle)
        exitcode = process.reap()
        self._sup.queue.put(Event(EventKind.EXITED, worker=handle.wid, exitcode=exitcode))
