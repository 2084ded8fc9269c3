"""Tests for the poolvisor CLI."""

import builtins
import runpy
import signal
import sys
from unittest.mock import patch

import pytest

from poolvisor.cli import BufferedOutput, main
from poolvisor.pidfile import write_pidfile


@pytest.fixture
def out():
    return BufferedOutput()


@pytest.mark.unit
class TestMain:
    def test_version(self, out):
        assert main(["--version"], out=out) == 0
        assert out.lines[0].startswith("poolvisor ")

    def test_no_command(self, out, capsys):
        assert main([], out=out) == 2
        assert "usage:" in capsys.readouterr().out

    def test_usage_error(self, out, capsys):
        assert main(["run", "--workers", "many"], out=out) == 2
        assert "invalid int value" in capsys.readouterr().err

    def test_help(self, out, capsys):
        assert main(["--help"], out=out) == 0
        assert "reload" in capsys.readouterr().out

    def test_module_entry_point_exits_with_status(self, monkeypatch, capsys):
        monkeypatch.delattr(builtins, "exit", raising=False)
        monkeypatch.setattr(sys, "argv", ["poolvisor", "--version"])

        with pytest.raises(SystemExit) as exc_info:
            runpy.run_module("poolvisor.cli.cli", run_name="__main__")

        assert exc_info.value.code == 0
        assert capsys.readouterr().out.startswith("poolvisor ")


@pytest.mark.unit
class TestSignalCommands:
    @pytest.mark.parametrize(
        "command,sig", [("reload", signal.SIGHUP), ("stop", signal.SIGTERM)]
    )
    def test_sends_signal(self, tmp_path, out, command, sig):
        pidfile = write_pidfile(tmp_path / "app.pid", pid=4242)

        with patch("os.kill") as mock_kill:
            assert main([command, "--pidfile", str(pidfile)], out=out) == 0

        assert mock_kill.call_args_list[-1].args == (4242, sig)
        assert out.lines == [f"sent {sig.name} to 4242"]

    def test_missing_pidfile(self, tmp_path, out):
        assert main(["reload", "--pidfile", str(tmp_path / "missing.pid")], out=out) == 1
        assert "no running supervisor" in out.text

    def test_process_vanished(self, tmp_path, out):
        pidfile = write_pidfile(tmp_path / "app.pid", pid=4242)

        with patch("os.kill", side_effect=[None, ProcessLookupError()]):
            assert main(["stop", "--pidfile", str(pidfile)], out=out) == 1
        assert "is gone" in out.text

    def test_pidfile_required(self, out):
        assert main(["stop"], out=out) == 2


@pytest.mark.unit
class TestRunCommand:
    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        monkeypatch.delenv("WORKER_COUNT", raising=False)
        monkeypatch.delenv("POOLVISOR_WORKERS", raising=False)

    def test_invalid_target(self, out):
        assert main(["run", "not-a-target"], out=out) == 1
        assert "module:attr" in out.text

    def test_invalid_config_file(self, tmp_path, out):
        path = tmp_path / "poolvisor.yaml"
        path.write_text("workers: -3\n")
        assert main(["run", "app:serve", "--config", str(path)], out=out) == 1
        assert "must be >= 0" in out.text

    def test_flags_reach_runner(self, tmp_path, out):
        path = tmp_path / "poolvisor.yaml"
        path.write_text("workers: 2\ngrace_period: 30\n")

        with patch("poolvisor.runner.run", return_value=0) as mock_run:
            code = main(
                [
                    "run",
                    "app:serve",
                    "--config",
                    str(path),
                    "-w",
                    "4",
                    "--bind",
                    ":8000",
                    "--watch",
                    "app",
                    "--watch",
                    "conf",
                    "--advance-on",
                    "replacement",
                    "--log-level",
                    "false",
                ],
                out=out,
            )

        assert code == 0
        config = mock_run.call_args.args[0]
        assert config.target == "app:serve"
        assert config.workers == 4
        assert config.grace_period == 30.0
        assert config.bind == ":8000"
        assert config.watch == ("app", "conf")
        assert config.advance_on == "replacement"
        assert config.log.level is False

    def test_missing_target_fails(self, out):
        with patch("poolvisor.cli.cli.LoggerFactory.create_root") as create_root:
            assert main(["run", "--log-level", "false"], out=out) == 1
        create_root.return_value.error.assert_called_once()

    def test_runner_exit_code_propagates(self, out):
        with patch("poolvisor.runner.run", return_value=1):
            assert main(["run", "app:serve", "--log-level", "false"], out=out) == 1
