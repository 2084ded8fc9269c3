"""
Configuration loading and file watching.
"""

from .config import (
    SupervisorConfig,
    env_overrides,
    load_yaml,
    resolve_signal,
)
from .constants import ENV_PREFIX, MAX_CONFIG_SIZE_BYTES
from .watcher import RestartWatcher

__all__ = [
    "ENV_PREFIX",
    "MAX_CONFIG_SIZE_BYTES",
    "RestartWatcher",
    "SupervisorConfig",
    "env_overrides",
    "load_yaml",
    "resolve_signal",
]
