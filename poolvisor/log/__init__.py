"""
Logging for the supervisor and its workers.

Builds on the standard logging module with:
- Structured `extra` fields rendered as `[key:value]` blocks
- Colored console output
- A TRACE level below DEBUG
- Derived topic loggers ("/supervisor", "/worker") sharing one handler
"""

from .config import LogConfig
from .constants import LogConstants
from .factory import LoggerFactory
from .formatters import LogFormatter
from .logger import Logger

__all__ = [
    "LogConfig",
    "LogConstants",
    "LogFormatter",
    "Logger",
    "LoggerFactory",
]
