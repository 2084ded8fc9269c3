"""
Exception hierarchy for the supervisor.

Every error raised by poolvisor derives from PoolvisorError so callers can
catch framework failures with a single except clause.
"""

from typing import Any


class PoolvisorError(Exception):
    """
    Base exception for all poolvisor errors.

    Example:
        try:
            supervisor.start()
        except PoolvisorError as e:
            lg.error("supervisor failed", extra={"exception": e})
    """

    def __init__(self, message: str, **context: Any) -> None:
        """
        Initialize the exception with a message and optional context.

        Args:
            message: Human-readable error message
            **context: Additional context information (stored in self.context)
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """String representation with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class ConfigError(PoolvisorError):
    """
    Configuration-related errors.

    Examples:
        - Config file not found or not a mapping
        - Negative worker count
        - Unknown kill signal name
        - Malformed bind address
    """

    pass


class SpawnError(PoolvisorError):
    """
    Raised when a worker subprocess cannot be created.

    Fatal at startup, transient at runtime.
    """

    pass


class WorkerError(PoolvisorError):
    """
    Raised when an operation on a live worker fails.

    Examples:
        - Graceful-stop message could not be delivered (pipe closed)
        - Worker target could not be imported in the child
    """

    pass
