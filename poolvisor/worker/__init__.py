"""
Worker processes: handles, the live worker set and the process protocol.
"""

from .context import WorkerContext
from .handle import Phase, WorkerHandle
from .process import (
    MultiprocessingBackend,
    MultiprocessingWorker,
    ProcessBackend,
    WorkerProcess,
    resolve_target,
)
from .set import WorkerSet

__all__ = [
    "MultiprocessingBackend",
    "MultiprocessingWorker",
    "Phase",
    "ProcessBackend",
    "WorkerContext",
    "WorkerHandle",
    "WorkerProcess",
    "WorkerSet",
    "resolve_target",
]
