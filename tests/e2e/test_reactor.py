"""
End-to-end tests: the reactor supervising real forked worker processes.
"""

import signal
import socket
import sys
import threading
import time
from multiprocessing.connection import wait

import pytest

from poolvisor.config import SupervisorConfig
from poolvisor.core import Reactor, SequencerState, Supervisor
from poolvisor.net import create_listener
from poolvisor.worker import MultiprocessingBackend, Phase
from tests.e2e import workers

pytestmark = [
    pytest.mark.e2e,
    pytest.mark.slow,
    pytest.mark.skipif(sys.platform != "linux", reason="uses the fork start method"),
]


@pytest.fixture
def supervise(lg):
    created = []

    def _supervise(target, listener=None, **config):
        config.setdefault("capacity_check_interval", 0)
        cfg = SupervisorConfig(start_method="fork", **config)
        backend = MultiprocessingBackend(
            lg, target, listener=listener, start_method="fork", kill_signal=cfg.kill_signal
        )
        sup = Supervisor(lg, cfg, backend)
        created.append(sup)
        return sup, Reactor(lg, sup, install_signals=False)

    yield _supervise
    for sup in created:
        sup.abort()
        sup.close()


def drive(reactor, sup, predicate, timeout=10.0):
    """Run reactor iterations until `predicate()` holds."""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError(f"timed out; workers={list(sup.workers)}")
        sup.pump()
        if predicate():
            break
        delay = sup.timers.next_delay()
        reactor.poll(0.1 if delay is None else min(0.1, delay))
    sup.pump()


def all_ready(sup, n):
    return lambda: sup.workers.count_in(Phase.READY) == n and len(sup.workers) == n


class TestReactor:
    def test_rolling_restart_and_shutdown(self, supervise):
        sup, reactor = supervise(workers.polite, workers=2, grace_period=5.0)
        sup.start()
        drive(reactor, sup, all_ready(sup, 2))
        originals = [h.pid for h in sup.workers]

        sup.reload()
        drive(
            reactor,
            sup,
            lambda: sup.sequencer.status is SequencerState.IDLE
            and sup.workers.identities() == [3, 4]
            and sup.workers.count_in(Phase.READY) == 2,
        )
        assert not set(originals) & {h.pid for h in sup.workers}

        handles = list(sup.workers)
        sup.shutdown()
        drive(reactor, sup, lambda: sup.finished)
        assert [h.exitcode for h in handles] == [0, 0]
        assert not any(h.killed for h in handles)

    def test_stubborn_worker_is_killed(self, supervise):
        sup, reactor = supervise(workers.stubborn, workers=2, grace_period=0.3)
        sup.start()
        drive(reactor, sup, all_ready(sup, 2))
        handles = list(sup.workers)

        sup.shutdown()
        drive(reactor, sup, lambda: sup.finished)

        assert all(h.killed for h in handles)
        assert [h.exitcode for h in handles] == [-signal.SIGKILL, -signal.SIGKILL]

    def test_crashed_worker_is_replaced(self, supervise):
        sup, reactor = supervise(workers.stubborn, workers=2, grace_period=0.3)
        sup.start()
        drive(reactor, sup, all_ready(sup, 2))

        sup.workers.get(1).process.kill()
        drive(reactor, sup, lambda: sup.workers.identities() == [2, 3])
        drive(reactor, sup, all_ready(sup, 2))

        sup.shutdown()
        drive(reactor, sup, lambda: sup.finished)

    def test_shared_listener(self, supervise):
        listener = create_listener("127.0.0.1:0")
        try:
            sup, reactor = supervise(
                workers.echo, listener=listener, workers=2, grace_period=2.0
            )
            sup.start()
            drive(reactor, sup, all_ready(sup, 2))

            with socket.create_connection(listener.getsockname(), timeout=5) as client:
                client.sendall(b"hello")
                reply = client.recv(1024)
            wid, _, payload = reply.partition(b":")
            assert int(wid) in (1, 2)
            assert payload == b"hello"

            sup.shutdown()
            drive(reactor, sup, lambda: sup.finished)
        finally:
            listener.close()

    def test_run_returns_after_shutdown(self, supervise):
        sup, reactor = supervise(workers.polite, workers=2, grace_period=5.0)
        timer = threading.Timer(0.5, sup.shutdown)
        timer.start()
        try:
            reactor.run()
        finally:
            timer.cancel()
        assert sup.finished


class TestOrphanedWorkers:
    def test_workers_stop_when_supervisor_channel_closes(self, lg):
        backend = MultiprocessingBackend(lg, workers.polite, start_method="fork")
        procs = [backend.spawn(1), backend.spawn(2)]
        try:
            for proc in procs:
                proc.close_channel()

            deadline = time.monotonic() + 5.0
            pending = {proc.sentinel: proc for proc in procs}
            while pending and time.monotonic() < deadline:
                for sentinel in wait(list(pending), timeout=0.1):
                    pending.pop(sentinel).reap()

            assert not pending, "workers kept running without a supervisor"
            assert [proc.exitcode for proc in procs] == [0, 0]
        finally:
            for proc in procs:
                if not proc.reaped:
                    proc.kill()
                    wait([proc.sentinel], timeout=5.0)
                    proc.reap()
