"""
Rolling restart: replace every worker, one at a time.
"""

from __future__ import annotations

import logging
from collections import deque
from enum import Enum

from ..worker import Phase
from .drain import DrainController
from .state import PoolState


class SequencerState(Enum):
    IDLE = "idle"
    DRAINING_ONE = "draining_one"


class AdvancePolicy(Enum):
    """Which readiness events move a rolling restart forward."""

    # Any worker becoming ready while a restart drain is in flight
    READY = "ready"
    # Only workers spawned after the in-flight drain started
    REPLACEMENT = "replacement"


class RestartSequencer:
    """
    Drains the workers of a snapshot one by one.

    Each drain is released by the next readiness event, so a replacement is
    serving before the next worker stops taking traffic:

        drain(w1) -> w1 exits -> spawner starts w3 -> w3 ready -> drain(w2) -> ...

    At most one drain of the restart is in flight at any time.
    """

    def __init__(
        self,
        lg: logging.Logger,
        state: PoolState,
        drainer: DrainController,
        policy: AdvancePolicy = AdvancePolicy.READY,
    ) -> None:
        self._lg = lg
        self._state = state
        self._drainer = drainer
        self._policy = policy
        self._queue: deque[int] = deque()
        self._status = SequencerState.IDLE
        self._current: int | None = None
        self._mark = 0  # last identity allocated when the current drain began

    @property
    def status(self) -> SequencerState:
        return self._status

    @property
    def policy(self) -> AdvancePolicy:
        return self._policy

    @property
    def pending(self) -> tuple[int, ...]:
        """Identities still waiting to be drained, in order."""
        return tuple(self._queue)

    @property
    def current(self) -> int | None:
        """Identity drained by the in-flight step, if any."""
        return self._current

    def begin(self) -> None:
        """
        Start (or restart) a rolling restart over the current workers.

        The snapshot keeps enumeration order and skips workers that are
        already draining. It replaces any pending queue. If a drain from an
        earlier restart is still in flight, the new queue waits for the next
        readiness event; otherwise the first worker is drained right away.
        """
        snapshot = [
            h.wid for h in self._state.workers if h.phase is not Phase.DRAINING
        ]
        self._lg.info("restarting all workers", extra={"workers": len(snapshot)})

        replaced = len(self._queue)
        self._queue = deque(snapshot)
        if self._status is SequencerState.DRAINING_ONE:
            self._lg.info(
                "rolling restart in progress, pending queue replaced",
                extra={"replaced": replaced, "queued": len(snapshot)},
            )
            return
        self.advance()

    def advance(self) -> None:
        """Drain the next queued worker, or go idle when none is left."""
        while self._queue:
            wid = self._queue.popleft()
            if self._drainer.drain(wid):
                self._status = SequencerState.DRAINING_ONE
                self._current = wid
                self._mark = self._state.workers.last_id
                return

        if self._status is SequencerState.DRAINING_ONE:
            self._lg.info("rolling restart complete")
        self._status = SequencerState.IDLE
        self._current = None

    def on_ready(self, wid: int) -> bool:
        """
        Readiness feedback. Advances the restart when a drain is in flight.

        Returns:
            True if the restart advanced
        """
        if self._status is not SequencerState.DRAINING_ONE:
            return False
        if self._policy is AdvancePolicy.REPLACEMENT and wid <= self._mark:
            self._lg.debug(
                "readiness of a pre-existing worker, not advancing",
                extra={"worker": wid, "draining": self._current},
            )
            return False
        self.advance()
        return True

    def cancel(self) -> None:
        """Abandon the rolling restart (used by shutdown)."""
        self._queue.clear()
        self._status = SequencerState.IDLE
        self._current = None
