"""
Configuration classes for the logging system.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..exceptions import ConfigError
from .constants import LogConstants


@dataclass(frozen=True)
class LogConfig:
    """
    Immutable configuration for root loggers.

    Derived loggers share the root handler and therefore its display settings;
    only their level can differ.
    """

    level: int | bool = logging.INFO  # False disables logging
    location: int = 0
    micros: bool = False
    colors: bool = True

    @staticmethod
    def _resolve_level(level: str | int | bool) -> int | bool:
        """Resolve level parameter to int or False."""
        if isinstance(level, bool):
            return False if not level else logging.INFO
        if isinstance(level, str):
            name = level.lower()
            if name.isnumeric():
                return int(name)
            if name in LogConstants.LEVEL_NAMES:
                return LogConstants.LEVEL_NAMES[name]
            raise ConfigError("invalid log level", level=level)
        return level

    @classmethod
    def from_params(
        cls,
        level: str | int | bool = "info",
        location: bool | int = 0,
        micros: bool = False,
        colors: bool = True,
    ) -> LogConfig:
        """
        Create LogConfig from individual parameters.

        Args:
            level: Log level (name, numeric value, or False to disable logging)
            location: Location display level (bool or int)
            micros: Whether to show microsecond precision
            colors: Whether to enable colored output

        Returns:
            LogConfig instance
        """
        resolved_location = (
            1 if location is True else (0 if location is False else int(location))
        )
        return cls(
            level=cls._resolve_level(level),
            location=resolved_location,
            micros=bool(micros),
            colors=bool(colors),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> LogConfig:
        """Create LogConfig from a `log:` config section."""
        data = data or {}
        unknown = set(data) - {"level", "location", "micros", "colors"}
        if unknown:
            raise ConfigError("unknown log settings", keys=",".join(sorted(unknown)))
        return cls.from_params(
            level=data.get("level", "info"),
            location=data.get("location", 0),
            micros=data.get("micros", False),
            colors=data.get("colors", True),
        )
