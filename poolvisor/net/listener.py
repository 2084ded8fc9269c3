"""
Shared listening socket.

The supervisor binds once and hands the socket to every worker; the kernel
spreads incoming connections over the workers that are accepting. A worker
that was asked to drain stops accepting and the others pick up the slack.
"""

from __future__ import annotations

import socket

from ..exceptions import ConfigError


def parse_bind(bind: str) -> tuple[str, int]:
    """
    Parse "host:port", ":port" or "[v6addr]:port".

    Raises:
        ConfigError: If the address is malformed
    """
    text = bind.strip()
    if text.startswith("["):
        host, sep, rest = text[1:].partition("]")
        if not sep or not rest.startswith(":"):
            raise ConfigError("invalid bind address", bind=bind)
        port_text = rest[1:]
    else:
        host, sep, port_text = text.rpartition(":")
        if not sep:
            raise ConfigError("invalid bind address", bind=bind)
    try:
        port = int(port_text)
    except ValueError:
        raise ConfigError("invalid bind port", bind=bind) from None
    if not 0 <= port <= 65535:
        raise ConfigError("bind port out of range", bind=bind)
    return host or "0.0.0.0", port


def create_listener(bind: str, backlog: int = 2048) -> socket.socket:
    """
    Create an inheritable listening TCP socket.

    Args:
        bind: Address as accepted by parse_bind()
        backlog: listen() backlog

    Returns:
        Bound, listening socket
    """
    host, port = parse_bind(bind)
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen(backlog)
    except OSError:
        sock.close()
        raise
    sock.set_inheritable(True)
    return sock
