#!/usr/bin/env python3
"""
Echo server pool supervised by poolvisor.

This example demonstrates:
- A loop-based worker sharing the supervisor's listening socket
- Reporting readiness with ctx.ready()
- Leaving the accept loop once the supervisor asks the worker to drain
- Driving the supervisor programmatically instead of through the CLI

Usage:
    python echo_pool.py                  # 2 workers on 127.0.0.1:8400
    kill -HUP <pid>                      # rolling restart, one worker at a time
    kill -TERM <pid>                     # graceful shutdown
    printf hello | nc 127.0.0.1 8400     # answered by "<worker id>: hello"

Or through the CLI:
    poolvisor run echo_pool:serve --bind 127.0.0.1:8400 -w 4
"""

import pathlib
import sys

# Add the project root to the path
project_root = str(pathlib.Path(__file__).resolve().parents[2])
sys.path.append(project_root) if project_root not in sys.path else None

from poolvisor import LogConfig, LoggerFactory, MultiprocessingBackend, Reactor, Supervisor
from poolvisor.config import SupervisorConfig
from poolvisor.net import create_listener


def serve(ctx):
    """Answer each connection with the worker id and the first chunk received."""
    sock = ctx.sock
    sock.settimeout(0.2)
    ctx.ready()
    while ctx.accepting:
        try:
            conn, _ = sock.accept()
        except TimeoutError:
            continue
        with conn:
            data = conn.recv(4096)
            conn.sendall(f"{ctx.worker_id}: ".encode() + data)


def main() -> int:
    config = SupervisorConfig(workers=2, grace_period=10.0, bind="127.0.0.1:8400")
    lg = LoggerFactory.create_root(LogConfig.from_params("debug"))

    listener = create_listener(config.bind, config.backlog)
    backend = MultiprocessingBackend(lg, serve, listener=listener)
    supervisor = Supervisor(lg, config, backend)
    try:
        Reactor(lg, supervisor).run()
    finally:
        listener.close()
        supervisor.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
