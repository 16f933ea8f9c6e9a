"""Deduplicated beacons in the global frame."""

from __future__ import annotations

from typing import Iterable, Iterator, Sequence, Set

import numpy as np

from .rotations import Beacon


class GlobalBeaconSet:
    """Set of distinct global beacons. Insertion is idempotent."""

    def __init__(self, beacons: Iterable[Sequence[int]] = ()):
        self._beacons: Set[Beacon] = set()
        self.insert_many(beacons)

    def insert(self, point: Sequence[int]) -> None:
        self._beacons.add((int(point[0]), int(point[1]), int(point[2])))

    def insert_many(self, points: Iterable[Sequence[int]]) -> int:
        """Insert points; returns how many of them were new."""
        if isinstance(points, np.ndarray):
            points = points.reshape(-1, 3).tolist()
        before = len(self._beacons)
        for point in points:
            self.insert(point)
        return len(self._beacons) - before

    def size(self) -> int:
        return len(self._beacons)

    def __len__(self) -> int:
        return len(self._beacons)

    def __contains__(self, point) -> bool:
        try:
            key = (int(point[0]), int(point[1]), int(point[2]))
        except (TypeError, ValueError, IndexError):
            return False
        return key in self._beacons

    def __iter__(self) -> Iterator[Beacon]:
        return iter(self._beacons)

    def to_array(self) -> np.ndarray:
        """Beacons as a lexicographically sorted (N, 3) int64 array."""
        if not self._beacons:
            return np.empty((0, 3), dtype=np.int64)
        return np.array(sorted(self._beacons), dtype=np.int64)
