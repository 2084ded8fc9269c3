"""Tests for WorkerSet."""

from unittest.mock import MagicMock

import pytest

from poolvisor.exceptions import SpawnError
from poolvisor.worker import Phase, WorkerSet
from tests.helpers.fakes import FakeBackend


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def workers(backend):
    return WorkerSet(MagicMock(), backend)


@pytest.mark.unit
class TestWorkerSet:
    def test_empty(self, workers):
        assert len(workers) == 0
        assert workers.count() == 0
        assert workers.last_id == 0
        assert workers.identities() == []

    def test_spawn_allocates_increasing_ids(self, workers, backend):
        assert workers.spawn() == 1
        assert workers.spawn() == 2

        assert workers.identities() == [1, 2]
        assert workers.last_id == 2
        assert 1 in workers
        assert workers.get(1).process is backend.processes[1]
        assert workers.get(1).phase is Phase.STARTING

    def test_failed_spawn_consumes_no_id(self, workers, backend):
        backend.fail_next = 1
        with pytest.raises(SpawnError):
            workers.spawn()

        assert len(workers) == 0
        assert workers.spawn() == 1

    def test_ids_not_reused_after_remove(self, workers):
        workers.spawn()
        workers.spawn()
        workers.remove(2)

        assert workers.spawn() == 3

    def test_remove_once(self, workers):
        wid = workers.spawn()
        handle = workers.get(wid)

        assert workers.remove(wid) is handle
        assert workers.remove(wid) is None
        assert workers.get(wid) is None
        assert wid not in workers

    def test_count_excludes_exited(self, workers):
        workers.spawn()
        workers.spawn()
        workers.get(1).mark_exited(0)

        assert len(workers) == 2
        assert workers.count() == 1

    def test_count_in(self, workers):
        for _ in range(3):
            workers.spawn()
        workers.get(1).mark_ready()
        workers.get(2).mark_draining()

        assert workers.count_in(Phase.READY) == 1
        assert workers.count_in(Phase.STARTING, Phase.DRAINING) == 2

    def test_iteration_order_and_snapshot(self, workers):
        for _ in range(3):
            workers.spawn()

        seen = []
        for handle in workers:
            seen.append(handle.wid)
            workers.remove(handle.wid)

        assert seen == [1, 2, 3]
        assert len(workers) == 0
