"""
Output abstraction for the CLI.

Lets commands be tested without capturing stdout.
"""

import sys
from typing import Protocol, TextIO


class OutputWriter(Protocol):
    """Protocol for CLI output writing."""

    def write(self, text: str = "") -> None:
        """Write text with trailing newline."""
        ...


class ConsoleOutput:
    """
    Writes to a stream (stdout by default).

    Example:
        out = ConsoleOutput(sys.stderr)
        out.write("no running supervisor")
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdout

    def write(self, text: str = "") -> None:
        print(text, file=self._stream)


class BufferedOutput:
    """
    Captures output lines, for tests.

    Example:
        out = BufferedOutput()
        main(["reload", "--pidfile", "missing.pid"], out=out)
        assert "no running supervisor" in out.text
    """

    def __init__(self) -> None:
        self._lines: list[str] = []

    def write(self, text: str = "") -> None:
        self._lines.append(text)

    @property
    def lines(self) -> list[str]:
        return self._lines.copy()

    @property
    def text(self) -> str:
        return "\n".join(self._lines) + ("\n" if self._lines else "")
