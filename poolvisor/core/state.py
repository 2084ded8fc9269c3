"""
Shared supervisor state.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..worker import WorkerSet


@dataclass
class PoolState:
    """
    State shared by the spawner, drain controller, sequencer and router.

    Owned by one Supervisor and mutated only while dispatching events.

    Attributes:
        workers: Live worker set
        target: Target Count, read-only after startup
        stopping: Set once by shutdown; no worker is spawned afterwards
    """

    workers: WorkerSet
    target: int
    stopping: bool = False
