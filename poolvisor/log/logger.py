"""
Logger class with structured extra fields.

Extends the standard logger so that the `extra` mapping given to a logging
call is kept as one structured value on the record instead of being spread
over record attributes. The formatter renders it as `[key:value]` blocks.
"""

from __future__ import annotations

import logging
from typing import Any

from .constants import LogConstants
from .formatters import EXTRA_ATTR


class Logger(logging.Logger):
    """
    Enhanced logger with pre-populated extra fields and a trace level.

    Example:
        lg = LoggerFactory.create_root(LogConfig.from_params("debug"))
        wlg = lg.derive("/worker", extra={"worker": 3})
        wlg.info("worker ready", extra={"pid": 1234})
    """

    def __init__(
        self,
        name: str,
        level: int = logging.INFO,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(name, level)
        self._extra = dict(extra or {})

    @property
    def extra(self) -> dict[str, Any]:
        return dict(self._extra)

    def makeRecord(
        self,
        name: str,
        level: int,
        fn: str,
        lno: int,
        msg: object,
        args: Any,
        exc_info: Any,
        func: str | None = None,
        extra: dict[str, Any] | None = None,
        sinfo: str | None = None,
    ) -> logging.LogRecord:
        merged = dict(self._extra)
        if extra:
            merged.update(extra)
        record = super().makeRecord(
            name, level, fn, lno, msg, args, exc_info, func, None, sinfo
        )
        # setattr avoids name mangling of the double-underscore attribute
        setattr(record, EXTRA_ATTR, merged)
        return record

    def trace(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log at TRACE level (below DEBUG)."""
        if self.isEnabledFor(LogConstants.TRACE):
            kwargs.setdefault("stacklevel", 2)
            self._log(LogConstants.TRACE, msg, args, **kwargs)

    def derive(self, name: str, extra: dict[str, Any] | None = None) -> Logger:
        """
        Create a view logger sharing this logger's handlers.

        Args:
            name: Topic name, appended to this logger's name (e.g. "/worker")
            extra: Fields added to every record of the derived logger

        Returns:
            Logger writing through this logger's handlers
        """
        full = name if self.name == "/" else self.name + name
        merged = dict(self._extra)
        if extra:
            merged.update(extra)
        child = Logger(full, self.level, merged)
        child.parent = self
        child.propagate = True
        child.disabled = self.disabled
        return child
