"""
Keeps the pool at its target size.
"""

from __future__ import annotations

import logging

from ..exceptions import SpawnError
from .state import PoolState


class Spawner:
    """Spawns workers until the live count reaches the target, unless stopping."""

    def __init__(self, lg: logging.Logger, state: PoolState) -> None:
        self._lg = lg
        self._state = state

    def ensure_capacity(self, strict: bool = False) -> int:
        """
        Spawn workers while not stopping and count() < target.

        Idempotent: a no-op when capacity is already met.

        Args:
            strict: Propagate spawn failures (startup) instead of logging them
                and leaving the retry to the next exit or capacity check

        Returns:
            Number of workers spawned

        Raises:
            SpawnError: Only when `strict` is set
        """
        state = self._state
        spawned = 0
        while not state.stopping and state.workers.count() < state.target:
            try:
                state.workers.spawn()
            except SpawnError as e:
                if strict:
                    raise
                self._lg.error(
                    "failed to spawn worker",
                    extra={
                        "running": state.workers.count(),
                        "target": state.target,
                        "exception": e,
                    },
                )
                break
            spawned += 1
        return spawned
