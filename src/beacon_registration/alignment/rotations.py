"""
Axis-aligned Rotations

The 24 proper rotations of 3-D space that map coordinate axes onto
coordinate axes (the rotation group of the cube). Each rotation is a
permutation of the axes combined with a sign per axis:

    out[i] = signs[i] * point[axes[i]]

Of the 48 signed permutations, only those with determinant +1 are kept;
the other 24 are reflections.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import permutations, product
from typing import Iterator, List, Sequence, Tuple

import numpy as np

Beacon = Tuple[int, int, int]


@dataclass(frozen=True)
class Rotation:
    """A single signed axis permutation.

    Attributes:
        index: Position of the rotation within its RotationSet
        axes: Source axis for each output axis
        signs: Sign (+1 or -1) applied to each output axis
    """

    index: int
    axes: Tuple[int, int, int]
    signs: Tuple[int, int, int]

    @property
    def matrix(self) -> np.ndarray:
        """3x3 integer matrix M such that M @ p equals apply(p)."""
        m = np.zeros((3, 3), dtype=np.int64)
        for row, (axis, sign) in enumerate(zip(self.axes, self.signs)):
            m[row, axis] = sign
        return m

    @property
    def is_identity(self) -> bool:
        return self.axes == (0, 1, 2) and self.signs == (1, 1, 1)

    def apply(self, point: Sequence[int]) -> Beacon:
        return (
            self.signs[0] * int(point[self.axes[0]]),
            self.signs[1] * int(point[self.axes[1]]),
            self.signs[2] * int(point[self.axes[2]]),
        )

    def apply_many(self, points: np.ndarray) -> np.ndarray:
        """Rotate an (N, 3) array of points. Returns a new int64 array."""
        pts = np.asarray(points, dtype=np.int64).reshape(-1, 3)
        return pts[:, list(self.axes)] * np.asarray(self.signs, dtype=np.int64)


def _enumerate_rotations() -> List[Rotation]:
    rotations: List[Rotation] = []
    for axes in permutations(range(3)):
        for signs in product((1, -1), repeat=3):
            candidate = Rotation(index=len(rotations), axes=tuple(axes), signs=tuple(signs))
            if round(np.linalg.det(candidate.matrix)) == 1:
                rotations.append(candidate)
    return rotations


class RotationSet:
    """
    Fixed, ordered family of the 24 axis-aligned proper rotations.

    Enumeration order is stable: axis permutations in lexicographic order,
    and for each permutation sign vectors with +1 before -1. The identity
    is always index 0.
    """

    def __init__(self):
        self._rotations: Tuple[Rotation, ...] = tuple(_enumerate_rotations())

    def __len__(self) -> int:
        return len(self._rotations)

    def __iter__(self) -> Iterator[Rotation]:
        return iter(self._rotations)

    def __getitem__(self, index: int) -> Rotation:
        if not 0 <= index < len(self._rotations):
            raise IndexError(f"Rotation index out of range: {index}")
        return self._rotations[index]

    @property
    def identity(self) -> Rotation:
        return self._rotations[0]

    def apply(self, rotation_index: int, point: Sequence[int]) -> Beacon:
        return self[rotation_index].apply(point)

    def apply_many(self, rotation_index: int, points: np.ndarray) -> np.ndarray:
        return self[rotation_index].apply_many(points)


ROTATIONS = RotationSet()
