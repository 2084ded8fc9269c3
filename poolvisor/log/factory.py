"""
Factory for creating and configuring loggers.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

from .config import LogConfig
from .formatters import LogFormatter
from .logger import Logger


class LoggerFactory:
    """Factory for creating and configuring loggers."""

    @staticmethod
    def create_root(config: LogConfig, stream: TextIO | None = None) -> Logger:
        """
        Create the root "/" logger with a console handler.

        Example:
            >>> lg = LoggerFactory.create_root(LogConfig.from_params("info"))
            >>> lg.info("app master booted", extra={"pid": 4200})
            [12:34:56,789] [I] app master booted        [pid:4200] [4200] [/]
        """
        return LoggerFactory.create("/", config, stream)

    @staticmethod
    def create(
        name: str, config: LogConfig, stream: TextIO | None = None
    ) -> Logger:
        """
        Create a standalone logger writing to `stream` (stdout by default).

        Loggers are not registered with the logging manager, so several
        supervisors in one process each get their own.
        """
        lg = Logger(name)
        if config.level is False:
            lg.setLevel(logging.CRITICAL + 1)
            lg.disabled = True
        else:
            lg.setLevel(config.level)

        handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
        handler.setFormatter(LogFormatter(config))
        lg.addHandler(handler)
        lg.propagate = False
        return lg

    @staticmethod
    def derive(parent: logging.Logger, name: str) -> logging.Logger:
        """Derive a topic logger, falling back to stdlib children for plain loggers."""
        if isinstance(parent, Logger):
            return parent.derive(name)
        return parent.getChild(name.strip("/").replace("/", "."))
