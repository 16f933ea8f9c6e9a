"""
Scanner model.

A scanner holds the beacons it observed in its own local frame. Once
registered it also carries its position and rotation in the global frame,
from which its global-frame beacons are derived.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

import numpy as np

from .rotations import Beacon, Rotation


def _as_beacon_array(beacons) -> np.ndarray:
    arr = np.asarray(beacons, dtype=np.int64)
    if arr.size == 0:
        arr = np.empty((0, 3), dtype=np.int64)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ValueError(f"Expected Nx3 beacon array, got shape {arr.shape}")
    arr = arr.copy()
    arr.setflags(write=False)
    return arr


@dataclass(eq=False)
class Scanner:
    """
    A sensor and the beacons it reported.

    Attributes:
        scanner_id: Identifier from the scanner report header
        beacons: Read-only (N, 3) int64 array of local-frame beacons
        position: Global position of the scanner, set on registration
        rotation: Rotation from local to global frame, set on registration
    """

    scanner_id: int
    beacons: np.ndarray
    position: Optional[Beacon] = field(default=None)
    rotation: Optional[Rotation] = field(default=None)
    _global_beacons: Optional[np.ndarray] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        self.beacons = _as_beacon_array(self.beacons)
        if (self.position is None) != (self.rotation is None):
            raise ValueError("Scanner position and rotation must be given together")
        if self.position is not None:
            position, rotation = self.position, self.rotation
            self.position, self.rotation = None, None
            self.register(rotation, position)

    @classmethod
    def from_record(cls, scanner_id: int, beacons: Sequence[Sequence[int]]) -> "Scanner":
        return cls(scanner_id=int(scanner_id), beacons=beacons)

    @property
    def is_registered(self) -> bool:
        return self.position is not None

    @property
    def global_beacons(self) -> np.ndarray:
        """Beacons in the global frame (rotated, then translated)."""
        if self._global_beacons is None:
            raise RuntimeError(f"Scanner {self.scanner_id} is not registered")
        return self._global_beacons

    def register(self, rotation: Rotation, position: Sequence[int]) -> None:
        """
        Fix the scanner's pose in the global frame. May only happen once.

        Raises:
            RuntimeError: If the scanner is already registered
        """
        if self.is_registered:
            raise RuntimeError(f"Scanner {self.scanner_id} is already registered")
        pos: Tuple[int, int, int] = (int(position[0]), int(position[1]), int(position[2]))
        transformed = rotation.apply_many(self.beacons) + np.asarray(pos, dtype=np.int64)
        transformed.setflags(write=False)
        self.rotation = rotation
        self.position = pos
        self._global_beacons = transformed

    def __repr__(self) -> str:
        state = f"position={self.position}, rotation={self.rotation.index}" if self.is_registered else "unregistered"
        return f"Scanner(id={self.scanner_id}, beacons={len(self.beacons)}, {state})"
