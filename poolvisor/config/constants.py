"""
Configuration defaults and resource limits.
"""

# Maximum config file size (10MB)
MAX_CONFIG_SIZE_BYTES = 10 * 1024 * 1024

ENV_PREFIX = "POOLVISOR_"

# Honored for compatibility with cluster-style launchers
LEGACY_WORKER_COUNT_ENV = "WORKER_COUNT"

DEFAULT_WORKERS = 2
DEFAULT_GRACE_PERIOD = 60.0
DEFAULT_CAPACITY_CHECK_INTERVAL = 5.0
DEFAULT_BACKLOG = 2048
DEFAULT_KILL_SIGNAL = "SIGKILL"

ADVANCE_POLICIES = ("ready", "replacement")
