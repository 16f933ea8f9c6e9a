"""
Scanner Alignment Module

This module provides the rotation family, translation-invariant offset
indexing, pairwise scanner alignment and the registration engine that
places all scanners in one global frame.
"""

from .rotations import Rotation, RotationSet, ROTATIONS
from .point_offsets import PointOffsetIndex, relative_offsets
from .scanner import Scanner
from .pair_aligner import PairAligner, OverlapMatch, DEFAULT_OVERLAP_THRESHOLD
from .beacon_set import GlobalBeaconSet
from .registration_engine import (
    RegistrationEngine,
    RegistrationResult,
    RegistrationStallError,
    max_manhattan_distance,
)

__all__ = [
    "Rotation",
    "RotationSet",
    "ROTATIONS",
    "PointOffsetIndex",
    "relative_offsets",
    "Scanner",
    "PairAligner",
    "OverlapMatch",
    "DEFAULT_OVERLAP_THRESHOLD",
    "GlobalBeaconSet",
    "RegistrationEngine",
    "RegistrationResult",
    "RegistrationStallError",
    "max_manhattan_distance",
]
