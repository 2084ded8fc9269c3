"""Custom setup.py that writes poolvisor/_build_info.py during build.

Packaging metadata lives in pyproject.toml; this script only hooks build_py
so `poolvisor --version` can report the commit a build came from.
"""

import subprocess
import sys
from datetime import UTC, datetime
from pathlib import Path

from setuptools import setup
from setuptools.command.build_py import build_py

_BUILD_INFO_TEMPLATE = '''\
"""Build information - auto-generated during install, do not edit."""

COMMIT_HASH = "{commit_full}"
COMMIT_SHORT = "{commit_short}"
COMMIT_MESSAGE = "{commit_message}"
BUILD_TIME = "{build_time}"
MODIFIED = {modified}
'''


def _git(*args: str) -> str | None:
    """Run git in the source tree; None if git or the repo is unavailable."""
    try:
        result = subprocess.run(
            ["git", *args],
            capture_output=True,
            text=True,
            timeout=5,
            cwd=Path(__file__).parent,
        )
    except (subprocess.SubprocessError, OSError):
        return None
    return result.stdout.strip() if result.returncode == 0 else None


def _write_build_info(package_dir: Path) -> None:
    commit = _git("rev-parse", "HEAD")
    if not commit:
        print("poolvisor: no git checkout, skipping _build_info.py", file=sys.stderr)
        return

    message = (_git("log", "-1", "--format=%s") or "").replace("\\", "\\\\")
    status = _git("status", "--porcelain")
    (package_dir / "_build_info.py").write_text(
        _BUILD_INFO_TEMPLATE.format(
            commit_full=commit,
            commit_short=commit[:7],
            commit_message=message.replace('"', '\\"'),
            build_time=datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ"),
            modified=bool(status),
        )
    )
    print(f"poolvisor: generated _build_info.py ({commit[:7]})", file=sys.stderr)


class BuildPyWithBuildInfo(build_py):
    """build_py that drops _build_info.py into the built package, not the sources."""

    def run(self):
        super().run()
        if self.build_lib:
            package_dir = Path(self.build_lib) / "poolvisor"
            if package_dir.is_dir():
                _write_build_info(package_dir)


setup(cmdclass={"build_py": BuildPyWithBuildInfo})
