"""
The supervisor context object.

Owns all mutable supervisor state (worker set, stopping flag, restart
queue, timers, event queue) so several independent supervisors can live in
one process, e.g. in tests.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable

from ..config import SupervisorConfig
from ..exceptions import SpawnError
from ..log import LoggerFactory
from ..worker import ProcessBackend, WorkerSet
from .drain import DrainController
from .events import Event, EventKind, EventQueue
from .router import SignalRouter
from .sequencer import AdvancePolicy, RestartSequencer
from .spawner import Spawner
from .state import PoolState
from .timers import TimerScheduler


class Supervisor:
    """
    Worker pool supervisor.

    Drive it with a Reactor in production, or step it with pump() in tests:

        sup = Supervisor(lg, SupervisorConfig(workers=2), FakeBackend(), clock=clock)
        sup.start()
        sup.queue.put(Event(EventKind.READY, worker=1))
        sup.pump()
    """

    def __init__(
        self,
        lg: logging.Logger,
        config: SupervisorConfig,
        backend: ProcessBackend,
        clock: Callable[[], float] = time.monotonic,
        wakeup: bool = True,
    ) -> None:
        """
        Args:
            lg: Supervisor logger
            config: Supervisor configuration
            backend: Creates worker processes
            clock: Monotonic clock for grace and capacity timers
            wakeup: Give the event queue a wakeup pipe (needed by the Reactor)
        """
        self._lg = lg
        self._config = config
        self.queue = EventQueue(wakeup=wakeup)
        self.timers = TimerScheduler(self.queue, clock)
        self.state = PoolState(
            workers=WorkerSet(LoggerFactory.derive(lg, "/worker"), backend),
            target=config.workers,
        )
        self.spawner = Spawner(lg, self.state)
        self.drainer = DrainController(lg, self.state, self.timers, config.grace_period)
        self.sequencer = RestartSequencer(
            lg, self.state, self.drainer, AdvancePolicy(config.advance_on)
        )
        self.router = SignalRouter(
            lg,
            self.state,
            self.queue,
            self.timers,
            self.spawner,
            self.drainer,
            self.sequencer,
            config.capacity_check_interval,
        )

    @property
    def config(self) -> SupervisorConfig:
        return self._config

    @property
    def workers(self) -> WorkerSet:
        return self.state.workers

    @property
    def stopping(self) -> bool:
        return self.state.stopping

    @property
    def finished(self) -> bool:
        """True once shutdown was requested and every worker has exited."""
        return self.state.stopping and len(self.state.workers) == 0

    def start(self) -> None:
        """
        Spawn the initial workers.

        Raises:
            SpawnError: If any initial worker cannot be created; workers that
                did start are killed first
        """
        try:
            self.spawner.ensure_capacity(strict=True)
        except SpawnError:
            self.abort()
            raise
        self.router.schedule_capacity_check()
        self._lg.info(
            "app master booted",
            extra={"pid": os.getpid(), "workers": self.state.workers.count()},
        )

    def abort(self) -> None:
        """Force-kill every worker without draining."""
        for handle in self.state.workers:
            handle.process.kill()

    def reload(self) -> None:
        """Request a rolling restart."""
        self.queue.put(Event(EventKind.RELOAD))

    def shutdown(self) -> None:
        """Request a graceful shutdown."""
        self.queue.put(Event(EventKind.SHUTDOWN))

    def pump(self) -> int:
        """
        Fire due timers and dispatch every pending event.

        Returns:
            Number of events dispatched
        """
        dispatched = 0
        self.timers.run_due()
        while True:
            events = self.queue.drain()
            if not events:
                return dispatched
            for event in events:
                self.router.dispatch(event)
                dispatched += 1

    def close(self) -> None:
        self.queue.close()
