# terrain_generator/history.py

"""
Undo history of terrain parameter snapshots.

A plain last-in-first-out stack. Snapshots are immutable TerrainParameters,
so the pushed value itself is the snapshot. Depth is unbounded.
"""

import logging
import threading
from typing import Optional

from .parameters import TerrainParameters


class ParameterHistory:
    """LIFO stack of the parameter sets that preceded each regeneration."""

    def __init__(self, logger: logging.Logger = None):
        self.logger = logger or logging.getLogger(__name__)
        self._snapshots = []
        # Serializes push/pop when several callers can request regeneration.
        self._lock = threading.Lock()

    def push(self, params: TerrainParameters) -> None:
        with self._lock:
            self._snapshots.append(params)
            depth = len(self._snapshots)
        self.logger.debug(f"Pushed parameter snapshot (depth {depth}).")

    def pop(self) -> Optional[TerrainParameters]:
        """Removes and returns the most recent snapshot, or None if there is nothing to revert."""
        with self._lock:
            if not self._snapshots:
                snapshot = None
            else:
                snapshot = self._snapshots.pop()
        if snapshot is None:
            self.logger.info("Undo requested but the history is empty; nothing to revert.")
        return snapshot

    def peek(self) -> Optional[TerrainParameters]:
        with self._lock:
            return self._snapshots[-1] if self._snapshots else None

    def clear(self) -> None:
        with self._lock:
            self._snapshots.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._snapshots)

    def __bool__(self) -> bool:
        return len(self) > 0
