"""
poolvisor - a worker pool supervisor with rolling restarts.

A single supervisor process keeps a target number of worker processes
running, replaces them one at a time on SIGHUP, and drains them all on
SIGTERM, force-killing any worker that outlives its grace period.
"""

from .config import RestartWatcher, SupervisorConfig
from .core import Event, EventKind, Reactor, Supervisor
from .exceptions import ConfigError, PoolvisorError, SpawnError, WorkerError
from .log import LogConfig, LoggerFactory
from .version import get_version
from .worker import MultiprocessingBackend, Phase, WorkerContext
from .worker.asgi import serve_asgi

__version__ = get_version()

__all__ = [
    "__version__",
    "ConfigError",
    "Event",
    "EventKind",
    "LogConfig",
    "LoggerFactory",
    "MultiprocessingBackend",
    "Phase",
    "PoolvisorError",
    "Reactor",
    "RestartWatcher",
    "SpawnError",
    "Supervisor",
    "SupervisorConfig",
    "WorkerContext",
    "WorkerError",
    "serve_asgi",
]
