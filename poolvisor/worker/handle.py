r"""
Worker handle: one supervised subprocess and its lifecycle phase.

    STARTING --ready--> READY --drain--> DRAINING --exit--> EXITED
        \______________________drain______/^    ^
         \____________________________exit______/
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.timers import Timer
    from .process import WorkerProcess


class Phase(Enum):
    """Lifecycle phase of a worker."""

    STARTING = "starting"
    READY = "ready"
    DRAINING = "draining"
    EXITED = "exited"


class WorkerHandle:
    """
    Wraps one worker subprocess.

    The handle exclusively owns its process reference. Transitions are
    one-way; each mark_* method returns whether the transition happened so
    callers can make repeated notifications no-ops.
    """

    def __init__(self, wid: int, process: WorkerProcess) -> None:
        self._wid = wid
        self._process = process
        self._phase = Phase.STARTING
        self.grace_timer: Timer | None = None
        self.killed = False
        self.exitcode: int | None = None

    def __repr__(self) -> str:
        return f"WorkerHandle(wid={self._wid}, pid={self.pid}, phase={self._phase.value})"

    @property
    def wid(self) -> int:
        return self._wid

    @property
    def process(self) -> WorkerProcess:
        return self._process

    @property
    def pid(self) -> int | None:
        return self._process.pid

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def alive(self) -> bool:
        """True until the exit has been observed."""
        return self._phase is not Phase.EXITED

    def mark_ready(self) -> bool:
        """Starting -> Ready. A late readiness signal from a draining worker is ignored."""
        if self._phase is not Phase.STARTING:
            return False
        self._phase = Phase.READY
        return True

    def mark_draining(self) -> bool:
        """Starting/Ready -> Draining."""
        if self._phase in (Phase.DRAINING, Phase.EXITED):
            return False
        self._phase = Phase.DRAINING
        return True

    def mark_exited(self, exitcode: int | None = None) -> bool:
        """Any phase -> Exited, once."""
        if self._phase is Phase.EXITED:
            return False
        self._phase = Phase.EXITED
        self.exitcode = exitcode
        return True
