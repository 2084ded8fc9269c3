"""Tests for pidfile helpers."""

import os
from unittest.mock import patch

import pytest

from poolvisor.pidfile import read_pidfile, remove_pidfile, write_pidfile


@pytest.mark.unit
class TestPidfile:
    def test_write_and_read_current_pid(self, tmp_path):
        path = write_pidfile(tmp_path / "run" / "app.pid")

        assert path.read_text() == f"{os.getpid()}\n"
        assert read_pidfile(path) == os.getpid()

    def test_read_missing_file(self, tmp_path):
        assert read_pidfile(tmp_path / "missing.pid") is None

    def test_read_malformed_file(self, tmp_path):
        path = tmp_path / "app.pid"
        path.write_text("not-a-pid\n")
        assert read_pidfile(path) is None

    def test_read_stale_pid(self, tmp_path):
        path = write_pidfile(tmp_path / "app.pid", pid=424242)
        with patch("os.kill", side_effect=ProcessLookupError):
            assert read_pidfile(path) is None

    def test_read_pid_of_other_user(self, tmp_path):
        path = write_pidfile(tmp_path / "app.pid", pid=1)
        with patch("os.kill", side_effect=PermissionError):
            assert read_pidfile(path) == 1

    def test_remove_only_own_pid(self, tmp_path):
        path = write_pidfile(tmp_path / "app.pid", pid=424242)

        remove_pidfile(path)
        assert path.exists()

        remove_pidfile(path, pid=424242)
        assert not path.exists()

    def test_remove_missing_file_is_noop(self, tmp_path):
        remove_pidfile(tmp_path / "missing.pid")
