"""
Worker-side helper for the supervisor protocol.

Runs inside each worker process. It reports readiness to the supervisor and
turns the supervisor's graceful-stop request into a local flag plus
callbacks the worker's server can hook into.
"""

from __future__ import annotations

import logging
import signal
import socket
import threading
from collections.abc import Callable
from multiprocessing.connection import Connection
from types import FrameType

from .process import DISCONNECT, READY

logger = logging.getLogger("poolvisor.worker")


class WorkerContext:
    """
    Context manager wrapping a worker's connection to the supervisor.

    Loop-based worker:
        def serve(ctx):
            server = make_server(sock=ctx.sock)
            ctx.ready()
            while ctx.accepting:
                server.handle_request()

    Callback-based worker:
        def serve(ctx):
            server = make_server(sock=ctx.sock)
            ctx.on_disconnect(server.shutdown)
            ctx.ready()
            server.serve_forever()

    Args:
        conn: Child end of the supervisor pipe
        sock: Shared listening socket, or None when workers bind themselves
        worker_id: Identity the supervisor assigned to this worker
        handle_signals: Ignore SIGINT/SIGHUP (the supervisor coordinates them)
            and treat SIGTERM as a graceful-stop request
    """

    def __init__(
        self,
        conn: Connection,
        sock: socket.socket | None = None,
        worker_id: int | None = None,
        handle_signals: bool = True,
    ) -> None:
        self._conn = conn
        self._sock = sock
        self._wid = worker_id
        self._handle_signals = handle_signals
        self._stopped = threading.Event()
        self._lock = threading.RLock()
        self._callbacks: list[Callable[[], None]] = []
        self._ready_sent = False
        self._listener: threading.Thread | None = None

    @property
    def sock(self) -> socket.socket | None:
        return self._sock

    @property
    def worker_id(self) -> int | None:
        return self._wid

    @property
    def accepting(self) -> bool:
        """False once the supervisor asked this worker to stop taking new work."""
        return not self._stopped.is_set()

    def wait_stopped(self, timeout: float | None = None) -> bool:
        """Block until a graceful-stop request arrives; True if it did."""
        return self._stopped.wait(timeout)

    def ready(self) -> None:
        """Tell the supervisor this worker accepts connections. Only the first call sends."""
        with self._lock:
            if self._ready_sent or self._stopped.is_set():
                return
            self._ready_sent = True
        try:
            self._conn.send((READY,))
        except (OSError, ValueError):
            logger.warning("supervisor channel closed, stopping")
            self._stop()

    def on_disconnect(self, callback: Callable[[], None]) -> None:
        """Register a callback run once when a graceful stop is requested."""
        with self._lock:
            if not self._stopped.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def __enter__(self) -> WorkerContext:
        if self._handle_signals:
            signal.signal(signal.SIGINT, signal.SIG_IGN)
            signal.signal(signal.SIGHUP, signal.SIG_IGN)
            signal.signal(signal.SIGTERM, self._handle_stop_signal)

        self._listener = threading.Thread(
            target=self._listen, daemon=True, name="poolvisor-channel"
        )
        self._listener.start()
        return self

    def __exit__(self, *args: object) -> None:
        self._conn.close()

    def _listen(self) -> None:
        """Wait for the disconnect message; EOF means the supervisor is gone."""
        while True:
            try:
                msg = self._conn.recv()
            except (EOFError, OSError):
                break
            if isinstance(msg, tuple) and msg and msg[0] == DISCONNECT:
                break
        self._stop()

    def _stop(self) -> None:
        with self._lock:
            if self._stopped.is_set():
                return
            self._stopped.set()
            callbacks = list(self._callbacks)
            self._callbacks.clear()
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("disconnect callback failed")

    def _handle_stop_signal(self, signum: int, frame: FrameType | None) -> None:
        logger.debug(f"received {signal.Signals(signum).name}, stopping")
        self._stop()
