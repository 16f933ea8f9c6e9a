"""
Translation-invariant point offsets.

Two clouds that share physical beacons agree on the offsets between those
beacons, whatever translation separates their frames. Comparing offset sets
taken relative to one anchor in each cloud therefore tells whether the two
anchors can be the same beacon.
"""

from __future__ import annotations

from typing import FrozenSet, Iterator, List, Tuple

import numpy as np

Offset = Tuple[int, int, int]


def relative_offsets(points: np.ndarray, anchor: np.ndarray) -> FrozenSet[Offset]:
    """
    Compute the set of offsets ``point - anchor`` for every point in the cloud.

    The anchor itself contributes the zero offset when it belongs to the cloud.

    Args:
        points: (N, 3) integer array
        anchor: length-3 integer array

    Returns:
        Frozen set of offset tuples
    """
    diff = np.asarray(points, dtype=np.int64).reshape(-1, 3) - np.asarray(anchor, dtype=np.int64)
    return frozenset(map(tuple, diff.tolist()))


class PointOffsetIndex:
    """
    Offset sets of a cloud relative to each of its own points.

    Entry ``i`` holds ``relative_offsets(points, points[i])``. Building the
    index once per cloud lets the same reference cloud be compared against
    all 24 rotations of a candidate without recomputation.
    """

    def __init__(self, points: np.ndarray):
        self.points = np.asarray(points, dtype=np.int64).reshape(-1, 3)
        self._offsets: List[FrozenSet[Offset]] = [
            relative_offsets(self.points, anchor) for anchor in self.points
        ]

    def __len__(self) -> int:
        return len(self._offsets)

    def anchor(self, i: int) -> Tuple[int, int, int]:
        return tuple(int(v) for v in self.points[i])

    def offsets_from(self, i: int) -> FrozenSet[Offset]:
        return self._offsets[i]

    def items(self) -> Iterator[Tuple[int, FrozenSet[Offset]]]:
        return enumerate(self._offsets)

    def overlap(self, i: int, other: "PointOffsetIndex", j: int) -> int:
        """Number of offsets shared by anchor ``i`` here and anchor ``j`` in ``other``."""
        return len(self._offsets[i] & other._offsets[j])
