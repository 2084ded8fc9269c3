#!/usr/bin/env python3
"""
Poolvisor CLI.

Usage:
    poolvisor run myapp.server:serve --bind :8000 -w 4 --pidfile /tmp/app.pid
    poolvisor reload --pidfile /tmp/app.pid
    poolvisor stop --pidfile /tmp/app.pid
    poolvisor --version
"""

from __future__ import annotations

import argparse
import os
import signal
from collections.abc import Sequence
from typing import Any

from ..config import SupervisorConfig
from ..exceptions import ConfigError
from ..log import LoggerFactory
from ..pidfile import read_pidfile
from ..version import version_string
from .output import ConsoleOutput, OutputWriter

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="poolvisor",
        description="Supervise a pool of worker processes with rolling restarts",
    )
    parser.add_argument(
        "--version", action="store_true", help="print version and exit"
    )
    sub = parser.add_subparsers(dest="command")

    run = sub.add_parser("run", help="run the supervisor in the foreground")
    run.add_argument("target", nargs="?", help="worker entry point, module:attr")
    run.add_argument("-c", "--config", help="YAML configuration file")
    run.add_argument("-w", "--workers", type=int, help="number of workers")
    run.add_argument(
        "--grace-period", type=float, help="seconds before a draining worker is killed"
    )
    run.add_argument("--bind", help="shared listener address, host:port")
    run.add_argument("--pidfile", help="write the supervisor pid here")
    run.add_argument(
        "--watch",
        action="append",
        metavar="PATH",
        help="restart workers when PATH changes (repeatable)",
    )
    run.add_argument(
        "--advance-on",
        choices=("ready", "replacement"),
        help="which readiness advances a rolling restart",
    )
    run.add_argument("--log-level", help="log level (trace, debug, info, ...)")

    for name, help_text in (
        ("reload", "rolling-restart a running supervisor"),
        ("stop", "gracefully stop a running supervisor"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("--pidfile", required=True, help="supervisor pidfile")
    return parser


def _run_overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {
        "target": args.target,
        "workers": args.workers,
        "grace_period": args.grace_period,
        "bind": args.bind,
        "pidfile": args.pidfile,
        "watch": args.watch,
        "advance_on": args.advance_on,
    }
    if args.log_level is not None:
        overrides["log"] = {"level": args.log_level}
    return overrides


def _cmd_run(args: argparse.Namespace, out: OutputWriter) -> int:
    from ..runner import run

    try:
        config = SupervisorConfig.load(args.config, overrides=_run_overrides(args))
    except ConfigError as e:
        out.write(f"poolvisor: {e}")
        return EXIT_FAILURE

    lg = LoggerFactory.create_root(config.log)
    try:
        return run(config, lg)
    except (ConfigError, OSError) as e:
        lg.error("cannot start supervisor", extra={"exception": e})
        return EXIT_FAILURE


def _cmd_signal(args: argparse.Namespace, sig: signal.Signals, out: OutputWriter) -> int:
    pid = read_pidfile(args.pidfile)
    if pid is None:
        out.write(f"poolvisor: no running supervisor for pidfile {args.pidfile}")
        return EXIT_FAILURE
    try:
        os.kill(pid, sig)
    except ProcessLookupError:
        out.write(f"poolvisor: supervisor {pid} is gone")
        return EXIT_FAILURE
    except PermissionError:
        out.write(f"poolvisor: not permitted to signal {pid}")
        return EXIT_FAILURE
    out.write(f"sent {sig.name} to {pid}")
    return EXIT_OK


def main(argv: Sequence[str] | None = None, out: OutputWriter | None = None) -> int:
    """Main entry point for the poolvisor CLI."""
    out = out if out is not None else ConsoleOutput()
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else EXIT_USAGE

    if args.version:
        out.write(version_string())
        return EXIT_OK
    if args.command == "run":
        return _cmd_run(args, out)
    if args.command == "reload":
        return _cmd_signal(args, signal.SIGHUP, out)
    if args.command == "stop":
        return _cmd_signal(args, signal.SIGTERM, out)

    parser.print_usage()
    return EXIT_USAGE


if __name__ == "__main__":
    raise SystemExit(main())
