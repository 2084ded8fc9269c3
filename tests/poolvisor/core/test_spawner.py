"""Tests for Spawner.ensure_capacity()."""

import pytest

from poolvisor.exceptions import SpawnError
from tests.helpers.fakes import report_exit


@pytest.mark.unit
class TestEnsureCapacity:
    def test_fills_to_target(self, make_supervisor, backend):
        sup = make_supervisor(workers=3)

        assert sup.spawner.ensure_capacity() == 3
        assert sup.workers.identities() == [1, 2, 3]
        assert backend.spawn_calls == 3

    def test_idempotent(self, make_supervisor, backend):
        sup = make_supervisor(workers=2)
        sup.spawner.ensure_capacity()

        assert sup.spawner.ensure_capacity() == 0
        assert backend.spawn_calls == 2

    def test_zero_target(self, make_supervisor, backend):
        sup = make_supervisor(workers=0)
        assert sup.spawner.ensure_capacity() == 0
        assert backend.spawn_calls == 0

    def test_draining_workers_count_towards_capacity(self, make_supervisor):
        sup = make_supervisor(workers=2)
        sup.spawner.ensure_capacity()
        sup.drainer.drain(1)

        assert sup.spawner.ensure_capacity() == 0

    def test_nothing_spawned_when_stopping(self, make_supervisor, backend):
        sup = make_supervisor(workers=2)
        sup.state.stopping = True

        assert sup.spawner.ensure_capacity() == 0
        assert backend.spawn_calls == 0

    def test_runtime_failure_is_logged(self, make_supervisor, backend, log_stream):
        sup = make_supervisor(workers=2)
        backend.fail_next = 1

        assert sup.spawner.ensure_capacity() == 0
        assert len(sup.workers) == 0
        assert "failed to spawn worker" in log_stream.getvalue()
        assert "[exception:SpawnError]" in log_stream.getvalue()

    def test_strict_failure_raises(self, make_supervisor, backend):
        sup = make_supervisor(workers=2)
        backend.fail_next = 1

        with pytest.raises(SpawnError):
            sup.spawner.ensure_capacity(strict=True)

    def test_retried_on_next_exit(self, make_supervisor, backend):
        sup = make_supervisor(workers=2)
        sup.spawner.ensure_capacity()
        backend.fail_next = 1

        report_exit(sup, 1)
        assert sup.workers.identities() == [2]

        report_exit(sup, 2)
        assert sup.workers.identities() == [3, 4]
