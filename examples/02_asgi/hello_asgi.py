#!/usr/bin/env python3
"""
ASGI application served by a pool of uvicorn workers.

Each worker runs uvicorn on the supervisor's shared socket, reports
readiness once uvicorn has started and shuts uvicorn down gracefully when
the supervisor drains it.

Usage:
    poolvisor run hello_asgi:serve --config poolvisor.yaml
    poolvisor reload --pidfile /tmp/hello_asgi.pid
    poolvisor stop --pidfile /tmp/hello_asgi.pid
"""

import os

from poolvisor import serve_asgi


async def app(scope, receive, send):
    if scope["type"] != "http":
        return
    body = f"hello from pid {os.getpid()}\n".encode()
    await send(
        {
            "type": "http.response.start",
            "status": 200,
            "headers": [(b"content-type", b"text/plain")],
        }
    )
    await send({"type": "http.response.body", "body": body})


def serve(ctx):
    serve_asgi(ctx, app, log_level="warning")
