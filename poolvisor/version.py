"""
Version and build information.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version
from typing import Any


def get_version() -> str:
    """Version from package metadata, or a development fallback when not installed."""
    try:
        return version("poolvisor")
    except PackageNotFoundError:
        return "0.1.0-dev"


def get_build_info() -> dict[str, Any]:
    """Commit details written into _build_info.py at build time, if any."""
    try:
        from poolvisor import _build_info  # type: ignore[attr-defined]
    except ImportError:
        return {"commit": None, "message": None, "time": None, "modified": None}
    return {
        "commit": getattr(_build_info, "COMMIT_SHORT", "") or None,
        "message": getattr(_build_info, "COMMIT_MESSAGE", "") or None,
        "time": getattr(_build_info, "BUILD_TIME", "") or None,
        "modified": getattr(_build_info, "MODIFIED", None),
    }


def version_string() -> str:
    info = get_build_info()
    text = f"poolvisor {get_version()}"
    if info["commit"]:
        text += f" ({info['commit']}{'-modified' if info['modified'] else ''})"
    return text
