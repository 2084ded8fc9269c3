"""Tests for WorkerContext, the worker side of the supervisor protocol."""

import multiprocessing
import signal
from unittest.mock import MagicMock

import pytest

from poolvisor.worker import WorkerContext
from poolvisor.worker.process import DISCONNECT, READY


@pytest.fixture
def pipe():
    parent, child = multiprocessing.Pipe(duplex=True)
    yield parent, child
    parent.close()
    child.close()


@pytest.mark.integration
class TestWorkerContext:
    def test_ready_sent_once(self, pipe):
        parent, child = pipe
        with WorkerContext(child, worker_id=1, handle_signals=False) as ctx:
            ctx.ready()
            ctx.ready()
            assert parent.recv() == (READY,)
            assert not parent.poll(0.1)
            parent.send((DISCONNECT,))
            assert ctx.wait_stopped(5.0)

    def test_disconnect_runs_callbacks_once(self, pipe):
        parent, child = pipe
        callback = MagicMock()
        with WorkerContext(child, handle_signals=False) as ctx:
            ctx.on_disconnect(callback)
            assert ctx.accepting

            parent.send((DISCONNECT,))
            assert ctx.wait_stopped(5.0)
            assert not ctx.accepting
            ctx._listener.join(5.0)
            ctx._stop()

        callback.assert_called_once_with()

    def test_callback_registered_after_stop_runs_immediately(self, pipe):
        parent, child = pipe
        with WorkerContext(child, handle_signals=False) as ctx:
            parent.send((DISCONNECT,))
            assert ctx.wait_stopped(5.0)
            callback = MagicMock()
            ctx.on_disconnect(callback)
            callback.assert_called_once_with()

    def test_supervisor_gone_stops_worker(self, pipe):
        parent, child = pipe
        with WorkerContext(child, handle_signals=False) as ctx:
            parent.close()
            assert ctx.wait_stopped(5.0)

    def test_failing_callback_does_not_block_others(self, pipe):
        parent, child = pipe
        second = MagicMock()
        with WorkerContext(child, handle_signals=False) as ctx:
            ctx.on_disconnect(MagicMock(side_effect=RuntimeError("boom")))
            ctx.on_disconnect(second)
            parent.send((DISCONNECT,))
            assert ctx.wait_stopped(5.0)
            ctx._listener.join(5.0)
        second.assert_called_once_with()

    def test_ready_after_stop_is_not_sent(self, pipe):
        parent, child = pipe
        with WorkerContext(child, handle_signals=False) as ctx:
            parent.send((DISCONNECT,))
            assert ctx.wait_stopped(5.0)
            ctx.ready()
        assert not parent.poll(0.1)

    def test_exit_closes_channel(self, pipe):
        parent, child = pipe
        with WorkerContext(child, handle_signals=False) as ctx:
            parent.send((DISCONNECT,))
            assert ctx.wait_stopped(5.0)
        assert child.closed

    def test_properties(self, pipe):
        parent, child = pipe
        sock = MagicMock()
        with WorkerContext(child, sock=sock, worker_id=7, handle_signals=False) as ctx:
            assert ctx.sock is sock
            assert ctx.worker_id == 7
            parent.send((DISCONNECT,))
            assert ctx.wait_stopped(5.0)


@pytest.mark.integration
class TestWorkerContextSignals:
    @pytest.fixture(autouse=True)
    def restore_handlers(self):
        saved = {s: signal.getsignal(s) for s in (signal.SIGINT, signal.SIGHUP, signal.SIGTERM)}
        yield
        for signum, handler in saved.items():
            signal.signal(signum, handler)

    def test_installs_handlers(self, pipe):
        parent, child = pipe
        with WorkerContext(child, handle_signals=True) as ctx:
            assert signal.getsignal(signal.SIGINT) is signal.SIG_IGN
            assert signal.getsignal(signal.SIGHUP) is signal.SIG_IGN
            assert signal.getsignal(signal.SIGTERM) == ctx._handle_stop_signal
            parent.send((DISCONNECT,))
            assert ctx.wait_stopped(5.0)

    def test_sigterm_handler_stops(self, pipe):
        parent, child = pipe
        with WorkerContext(child, handle_signals=True) as ctx:
            ctx._handle_stop_signal(signal.SIGTERM, None)
            assert not ctx.accepting
            parent.send((DISCONNECT,))
            ctx._listener.join(5.0)
