"""
Pidfile helpers used by `poolvisor run/reload/stop`.
"""

from __future__ import annotations

import os
from pathlib import Path


def write_pidfile(path: str | Path, pid: int | None = None) -> Path:
    """Write `pid` (default: current process) atomically to `path`."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    tmp = p.with_name(p.name + ".tmp")
    tmp.write_text(f"{pid if pid is not None else os.getpid()}\n")
    os.replace(tmp, p)
    return p


def read_pidfile(path: str | Path) -> int | None:
    """
    Return the pid stored in `path` if that process is still running.

    Returns:
        The pid, or None when the file is missing, malformed or stale
    """
    try:
        text = Path(path).read_text().strip()
        pid = int(text)
    except (OSError, ValueError):
        return None
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return None
    except PermissionError:
        pass  # exists, owned by someone else
    return pid


def remove_pidfile(path: str | Path, pid: int | None = None) -> None:
    """Remove `path` if it still holds `pid` (default: current process)."""
    p = Path(path)
    expected = pid if pid is not None else os.getpid()
    try:
        if int(p.read_text().strip()) == expected:
            p.unlink()
    except (OSError, ValueError):
        pass
