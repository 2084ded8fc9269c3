"""
Supervisor core: the worker lifecycle state machine and its event loop.
"""

from .drain import DrainController
from .events import Event, EventKind, EventQueue
from .reactor import Reactor
from .router import SignalRouter
from .sequencer import AdvancePolicy, RestartSequencer, SequencerState
from .spawner import Spawner
from .state import PoolState
from .supervisor import Supervisor
from .timers import Timer, TimerScheduler

__all__ = [
    "AdvancePolicy",
    "DrainController",
    "Event",
    "EventKind",
    "EventQueue",
    "PoolState",
    "Reactor",
    "RestartSequencer",
    "SequencerState",
    "SignalRouter",
    "Spawner",
    "Supervisor",
    "Timer",
    "TimerScheduler",
]
