"""
The live set of workers.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from .handle import Phase, WorkerHandle
from .process import ProcessBackend


class WorkerSet:
    """
    Mapping of worker identity to WorkerHandle.

    Identities are small integers allocated in spawn order, starting at 1,
    and never reused within one set. Iteration follows insertion order, which
    is the order a rolling restart replaces workers in.

    Every identity present belongs to a process whose exit has not yet been
    processed; `remove()` is the only way out and succeeds once per identity.
    """

    def __init__(self, lg: logging.Logger, backend: ProcessBackend) -> None:
        self._lg = lg
        self._backend = backend
        self._workers: dict[int, WorkerHandle] = {}
        self._last_id = 0

    def __len__(self) -> int:
        return len(self._workers)

    def __iter__(self) -> Iterator[WorkerHandle]:
        return iter(list(self._workers.values()))

    def __contains__(self, wid: object) -> bool:
        return wid in self._workers

    @property
    def last_id(self) -> int:
        """Most recently allocated identity (0 before the first spawn)."""
        return self._last_id

    def spawn(self) -> int:
        """
        Start a new worker and track it in Starting phase.

        Returns:
            The new worker's identity

        Raises:
            SpawnError: If the process could not be created. No identity is
                consumed by a failed spawn.
        """
        wid = self._last_id + 1
        process = self._backend.spawn(wid)
        self._last_id = wid
        handle = WorkerHandle(wid, process)
        self._workers[wid] = handle
        self._lg.debug("spawned worker", extra={"worker": wid, "pid": handle.pid})
        return wid

    def count(self) -> int:
        """Number of workers not yet exited (Starting, Ready or Draining)."""
        return sum(1 for h in self._workers.values() if h.alive)

    def count_in(self, *phases: Phase) -> int:
        return sum(1 for h in self._workers.values() if h.phase in phases)

    def get(self, wid: int) -> WorkerHandle | None:
        """Return the handle for `wid`, or None if it is not (or no longer) tracked."""
        return self._workers.get(wid)

    def identities(self) -> list[int]:
        """Snapshot of tracked identities in insertion order."""
        return list(self._workers)

    def remove(self, wid: int) -> WorkerHandle | None:
        """Forget a worker whose exit has been observed; None if already removed."""
        return self._workers.pop(wid, None)
