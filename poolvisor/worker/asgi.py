"""
Run an ASGI application as a pool worker under uvicorn.

Readiness is reported once uvicorn has started serving; a graceful-stop
request sets `should_exit`, which makes uvicorn close its listeners, finish
in-flight requests and return.
"""

from __future__ import annotations

from typing import Any

import uvicorn

from .context import WorkerContext


class PoolServer(uvicorn.Server):
    """uvicorn server wired to a WorkerContext."""

    def __init__(self, config: uvicorn.Config, ctx: WorkerContext) -> None:
        super().__init__(config)
        self._ctx = ctx
        ctx.on_disconnect(self.request_exit)

    def request_exit(self) -> None:
        self.should_exit = True

    async def startup(self, sockets: list[Any] | None = None) -> None:
        await super().startup(sockets=sockets)
        if self.started:
            self._ctx.ready()


def serve_asgi(ctx: WorkerContext, app: Any, **uvicorn_kwargs: Any) -> None:
    """
    Serve `app` until the supervisor asks this worker to stop.

    Uses the shared listener when the supervisor provides one; otherwise
    uvicorn binds `host`/`port` from `uvicorn_kwargs` itself.

    Example:
        async def app(scope, receive, send): ...

        def serve(ctx):
            serve_asgi(ctx, app, log_level="warning")
    """
    config = uvicorn.Config(app, **uvicorn_kwargs)
    server = PoolServer(config, ctx)
    sockets = [ctx.sock] if ctx.sock is not None else None
    server.run(sockets=sockets)
