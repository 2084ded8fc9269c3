"""
Log formatters for the logging system.

Renders records as:

    [12:34:56,789] [I] stopping worker          [pid:4242] [worker:1] [4200] [/supervisor]

Structured fields passed through `extra` are appended as `[key:value]`
blocks after a fixed rule column, followed by process id and logger name.
"""

from __future__ import annotations

import logging
import traceback
from typing import Any

from .config import LogConfig
from .constants import LogConstants

EXTRA_ATTR = "__pv__extra"


def _render_value(value: Any) -> str:
    if isinstance(value, BaseException):
        return value.__class__.__name__
    if isinstance(value, (list, tuple, set)):
        return ",".join(str(v) for v in value)
    return str(value)


def _render_exception(exc: BaseException) -> str:
    lines = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return "".join(lines).rstrip()


class LogFormatter(logging.Formatter):
    """Formatter producing the bracketed, optionally colored line format."""

    def __init__(self, config: LogConfig) -> None:
        super().__init__(LogConstants.DEFAULT_FORMAT)
        self._config = config

    @property
    def config(self) -> LogConfig:
        return self._config

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        s = self.converter(record.created)
        text = f"{s.tm_hour:02d}:{s.tm_min:02d}:{s.tm_sec:02d},{int(record.msecs):03d}"
        if self._config.micros:
            micros = int((record.created % 1) * 1000000) % 1000
            text += f".{micros:03d}"
        return text

    def _fields(self, record: logging.LogRecord) -> tuple[list[tuple[str, str]], Any]:
        extra = getattr(record, EXTRA_ATTR, None) or {}
        exc = None
        fields = []
        for key in sorted(extra):
            value = extra[key]
            if key == "exception" and isinstance(value, BaseException):
                exc = value
            fields.append((key, _render_value(value)))
        fields.append(("", str(record.process)))
        fields.append(("", record.name))
        return fields, exc

    def _location(self, record: logging.LogRecord) -> str:
        if self._config.location <= 0:
            return ""
        return f" [{record.filename}:{record.lineno}]"

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        head = f"[{self.formatTime(record)}] [{record.levelname[:1]}] {record.message}"
        rule = (
            LogConstants.MICRO_RULE_WIDTH
            if self._config.micros
            else LogConstants.DEFAULT_RULE_WIDTH
        )
        pad = " " * max(1, rule - len(head))
        fields, exc = self._fields(record)

        if self._config.colors:
            line = self._colored(record, head, pad, fields)
        else:
            blocks = " ".join(f"[{k}:{v}]" if k else f"[{v}]" for k, v in fields)
            line = head + pad + blocks + self._location(record)

        if exc is not None:
            line += "\n" + _render_exception(exc)
        elif record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line

    def _colored(
        self,
        record: logging.LogRecord,
        head: str,
        pad: str,
        fields: list[tuple[str, str]],
    ) -> str:
        col = LogConstants.COLORS.get(record.levelno, LogConstants.DEFAULT_COLOR)
        reset = LogConstants.RESET
        bold = col + ";1m"
        meta = LogConstants.META_COLOR + "m"
        parts = []
        for key, value in fields:
            if key:
                parts.append(f"{col}m{key}[{bold}{value}{reset}{col}m]")
            else:
                parts.append(f"{meta}[{value}]")
        return col + "m" + head + pad + " ".join(parts) + self._location(record) + reset
