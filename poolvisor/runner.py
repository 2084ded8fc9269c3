"""
Wires config, listener, backend, supervisor, watcher and pidfile together
for `poolvisor run`.
"""

from __future__ import annotations

import logging
import socket

from .config import RestartWatcher, SupervisorConfig
from .core import Reactor, Supervisor
from .exceptions import ConfigError, SpawnError
from .log import LoggerFactory
from .net import create_listener
from .pidfile import remove_pidfile, write_pidfile
from .worker import MultiprocessingBackend


def run(config: SupervisorConfig, lg: logging.Logger) -> int:
    """
    Run a supervised pool until it has shut down.

    Args:
        config: Validated configuration; `target` is required
        lg: Root logger

    Returns:
        Process exit code: 0 after a clean shutdown, 1 when workers could
        not be started

    Raises:
        ConfigError: If no target is configured
        OSError: If the listener cannot be bound
    """
    if config.target is None:
        raise ConfigError("no worker target configured")

    listener: socket.socket | None = None
    if config.bind is not None:
        listener = create_listener(config.bind, config.backlog)
        lg.info("listening", extra={"bind": config.bind})

    backend = MultiprocessingBackend(
        LoggerFactory.derive(lg, "/backend"),
        config.target,
        listener=listener,
        start_method=config.start_method,
        kill_signal=config.kill_signal,
    )
    supervisor = Supervisor(LoggerFactory.derive(lg, "/supervisor"), config, backend)

    watcher: RestartWatcher | None = None
    if config.watch:
        watcher = RestartWatcher(
            LoggerFactory.derive(lg, "/watch"), config.watch, supervisor.reload
        )

    try:
        if config.pidfile:
            write_pidfile(config.pidfile)
        if watcher is not None:
            watcher.start()
        Reactor(lg, supervisor).run()
    except SpawnError as e:
        lg.error("failed to start workers", extra={"exception": e})
        return 1
    finally:
        if watcher is not None:
            watcher.stop()
        if listener is not None:
            listener.close()
        if config.pidfile:
            remove_pidfile(config.pidfile)
        supervisor.close()
    return 0
