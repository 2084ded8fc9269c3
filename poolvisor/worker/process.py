"""
Process operations behind the worker set.

The supervisor core only needs three things from a worker process: spawn
it, ask it to stop accepting work, and force-kill it. ProcessBackend and
WorkerProcess capture that contract so the lifecycle state machine can be
driven by fakes in tests. MultiprocessingBackend is the real implementation.

Wire protocol over the per-worker duplex pipe:
    child -> supervisor   ("ready",)        worker accepts connections
    supervisor -> child   ("disconnect",)   stop accepting, finish, exit
"""

from __future__ import annotations

import importlib
import logging
import multiprocessing as mp
import os
import pickle
import signal
import socket
from collections.abc import Callable
from multiprocessing.connection import Connection
from typing import Any, Protocol

from ..exceptions import SpawnError, WorkerError

READY = "ready"
DISCONNECT = "disconnect"

WorkerTarget = Callable[..., Any] | str


class WorkerProcess(Protocol):
    """Operations the supervisor performs on one worker process."""

    @property
    def pid(self) -> int | None: ...

    def disconnect(self) -> None:
        """Ask the worker to stop accepting new work and exit when idle."""
        ...

    def kill(self) -> None:
        """Forcibly terminate the worker."""
        ...


class ProcessBackend(Protocol):
    """Creates worker processes."""

    def spawn(self, wid: int) -> WorkerProcess:
        """
        Start worker `wid`.

        Raises:
            SpawnError: If the process could not be created
        """
        ...


def resolve_target(target: WorkerTarget) -> Callable[..., Any]:
    """
    Resolve a worker target to a callable.

    Args:
        target: A callable, or an import string "package.module:attr"

    Raises:
        WorkerError: If the import string is malformed or cannot be resolved
    """
    if callable(target):
        return target
    module_name, sep, attr = str(target).partition(":")
    if not sep or not module_name or not attr:
        raise WorkerError("worker target must look like 'module:attr'", target=target)
    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise WorkerError("cannot import worker module", target=target) from e
    for part in attr.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError:
            raise WorkerError("worker target not found", target=target) from None
    if not callable(obj):
        raise WorkerError("worker target is not callable", target=target)
    return obj


def _worker_main(
    target: WorkerTarget,
    conn: Connection,
    sock: socket.socket | None,
    wid: int,
    handle_signals: bool,
    inherited: tuple[Connection, ...] = (),
) -> None:
    """
    Entry point of every worker process.

    `inherited` holds supervisor-side pipe ends copied into a forked child.
    They are closed first so the child sees EOF once the supervisor is gone.
    """
    from .context import WorkerContext

    for end in inherited:
        end.close()
    fn = resolve_target(target)
    with WorkerContext(
        conn, sock=sock, worker_id=wid, handle_signals=handle_signals
    ) as ctx:
        fn(ctx)


class MultiprocessingWorker:
    """
    A worker running under multiprocessing.

    Exposes `sentinel` and `conn` so the reactor can wait on exits and
    messages from every worker at once.
    """

    def __init__(
        self,
        wid: int,
        process: Any,
        conn: Connection,
        kill_signal: signal.Signals = signal.SIGKILL,
    ) -> None:
        self._wid = wid
        self._process = process
        self._conn: Connection | None = conn
        self._kill_signal = kill_signal
        self._pid: int | None = process.pid
        self._sentinel: int = process.sentinel
        self._reaped = False
        self._exitcode: int | None = None

    @property
    def wid(self) -> int:
        return self._wid

    @property
    def pid(self) -> int | None:
        return self._pid

    @property
    def sentinel(self) -> int:
        return self._sentinel

    @property
    def conn(self) -> Connection | None:
        """Message channel, None once closed."""
        return self._conn

    @property
    def reaped(self) -> bool:
        return self._reaped

    @property
    def exitcode(self) -> int | None:
        return self._exitcode

    def disconnect(self) -> None:
        """
        Send the graceful-stop message.

        Raises:
            WorkerError: If the channel is already closed or broken
        """
        if self._conn is None:
            raise WorkerError("worker channel closed", worker=self._wid)
        try:
            self._conn.send((DISCONNECT,))
        except (OSError, ValueError) as e:
            raise WorkerError(
                "failed to send disconnect", worker=self._wid, error=str(e)
            ) from e

    def kill(self) -> None:
        """Send the configured kill signal; a process that is already gone is ignored."""
        pid = self._pid
        if pid is None or self._reaped:
            return
        try:
            os.kill(pid, self._kill_signal)
        except ProcessLookupError:
            pass

    def receive(self) -> list[str]:
        """
        Read every pending message tag. Closes the channel on EOF.

        Returns:
            Message tags in arrival order (e.g. ["ready"])
        """
        tags: list[str] = []
        conn = self._conn
        while conn is not None:
            try:
                if not conn.poll():
                    break
                msg = conn.recv()
            except (EOFError, OSError):
                self.close_channel()
                break
            if isinstance(msg, tuple) and msg:
                tags.append(str(msg[0]))
        return tags

    def reap(self) -> int | None:
        """Collect the exit status of a process whose sentinel fired."""
        if not self._reaped:
            self._process.join(timeout=0)
            self._exitcode = self._process.exitcode
            self._reaped = True
            self.close_channel()
            try:
                self._process.close()
            except ValueError:
                pass  # still running; close() refuses
        return self._exitcode

    def close_channel(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None


class MultiprocessingBackend:
    """
    Spawns workers as multiprocessing processes.

    Example:
        backend = MultiprocessingBackend(lg, "myapp.server:serve", listener=sock)
        worker = backend.spawn(1)
    """

    def __init__(
        self,
        lg: logging.Logger,
        target: WorkerTarget,
        listener: socket.socket | None = None,
        start_method: str | None = None,
        kill_signal: signal.Signals = signal.SIGKILL,
        handle_signals: bool = True,
    ) -> None:
        """
        Args:
            lg: Logger
            target: Callable taking a WorkerContext, or "module:attr" import string
            listener: Shared listening socket handed to every worker
            start_method: multiprocessing start method (None = platform default)
            kill_signal: Signal used for forced termination
            handle_signals: Whether workers install WorkerContext signal handlers
        """
        self._lg = lg
        self._target = target
        self._listener = listener
        self._ctx = mp.get_context(start_method)
        self._kill_signal = kill_signal
        self._handle_signals = handle_signals
        self._parent_ends: list[Connection] = []

    def _inherited_ends(self, own: Connection) -> tuple[Connection, ...]:
        """Supervisor-side pipe ends a forked child must close on startup."""
        self._parent_ends = [c for c in self._parent_ends if not c.closed]
        if self._ctx.get_start_method() != "fork":
            return ()
        return (*self._parent_ends, own)

    def spawn(self, wid: int) -> MultiprocessingWorker:
        try:
            parent_conn, child_conn = self._ctx.Pipe(duplex=True)
        except OSError as e:
            raise SpawnError(
                "failed to create worker channel", worker=wid, error=str(e)
            ) from e
        try:
            proc = self._ctx.Process(
                target=_worker_main,
                args=(
                    self._target,
                    child_conn,
                    self._listener,
                    wid,
                    self._handle_signals,
                    self._inherited_ends(parent_conn),
                ),
                name=f"poolvisor-worker-{wid}",
            )
            proc.start()
        except (OSError, ValueError, TypeError, AttributeError, pickle.PicklingError) as e:
            parent_conn.close()
            raise SpawnError(
                "failed to start worker process", worker=wid, error=str(e)
            ) from e
        finally:
            child_conn.close()

        self._parent_ends.append(parent_conn)
        self._lg.debug("worker process started", extra={"worker": wid, "pid": proc.pid})
        return MultiprocessingWorker(wid, proc, parent_conn, self._kill_signal)
