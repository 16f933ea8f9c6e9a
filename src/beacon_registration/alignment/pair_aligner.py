"""
Pairwise Scanner Alignment

Finds the rotation and translation that place a candidate scanner's beacons
onto a registered reference scanner's global beacons.

The search:
1. For every rotation (outer loop) the candidate's local beacons are rotated.
2. Every reference beacon r and every rotated candidate beacon b is tried as
   the same physical beacon. The offset sets of both clouds, taken relative
   to r and b, are intersected; the zero offset of the anchors themselves is
   part of the intersection.
3. The first combination whose intersection reaches the overlap threshold
   is accepted, with translation t = r - b.

There is no search for the best match: with exact integer data every
accepted match is the true transform.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np

from .point_offsets import PointOffsetIndex
from .rotations import ROTATIONS, Beacon, Rotation, RotationSet
from .scanner import Scanner
from ..utils.logging import setup_logger

logger = setup_logger(__name__)

DEFAULT_OVERLAP_THRESHOLD = 12


@dataclass(frozen=True)
class OverlapMatch:
    """Rotation and translation mapping a candidate's local frame onto a reference frame."""

    rotation: Rotation
    translation: Beacon
    matched_count: int

    def apply(self, points: np.ndarray) -> np.ndarray:
        return self.rotation.apply_many(points) + np.asarray(self.translation, dtype=np.int64)


class PairAligner:
    """
    Rotation x anchor-pair search between two scanners.

    Offset indexes of reference scanners are cached by scanner id, since a
    registered scanner's global beacons never change. Each entry keeps the
    scanner it was built from; a different scanner reusing the id replaces it.
    """

    def __init__(
        self,
        overlap_threshold: int = DEFAULT_OVERLAP_THRESHOLD,
        rotations: RotationSet = ROTATIONS,
    ):
        """
        Args:
            overlap_threshold: Minimum number of coinciding beacons to accept a match.
            rotations: Candidate rotations, tried in enumeration order.
        """
        if overlap_threshold < 1:
            raise ValueError(f"overlap_threshold must be >= 1, got {overlap_threshold}")
        self.overlap_threshold = int(overlap_threshold)
        self.rotations = rotations
        self._reference_indexes: Dict[int, Tuple[Scanner, PointOffsetIndex]] = {}

    def align(self, reference: Scanner, candidate: Scanner) -> Optional[OverlapMatch]:
        """
        Search for a transform placing ``candidate`` in the frame of ``reference``.

        Args:
            reference: Registered scanner, beacons known in the global frame.
            candidate: Scanner to align, beacons in its local frame.

        Returns:
            The first OverlapMatch that reaches the threshold, or None.

        Raises:
            ValueError: If the reference scanner is not registered.
        """
        if not reference.is_registered:
            raise ValueError(f"Reference scanner {reference.scanner_id} is not registered")

        if len(reference.beacons) < self.overlap_threshold or len(candidate.beacons) < self.overlap_threshold:
            logger.debug(
                "Scanner %s vs %s: too few beacons for threshold %d",
                candidate.scanner_id, reference.scanner_id, self.overlap_threshold,
            )
            return None

        ref_index = self._reference_index(reference)

        for rotation in self.rotations:
            cand_index = PointOffsetIndex(rotation.apply_many(candidate.beacons))
            found = self._find_anchor_pair(ref_index, cand_index)
            if found is None:
                continue
            i, j, count = found
            r = ref_index.points[i]
            b = cand_index.points[j]
            translation = tuple(int(v) for v in (r - b))
            logger.debug(
                "Scanner %s aligned against %s: rotation=%d translation=%s overlap=%d",
                candidate.scanner_id, reference.scanner_id, rotation.index, translation, count,
            )
            return OverlapMatch(rotation=rotation, translation=translation, matched_count=count)

        return None

    def _find_anchor_pair(
        self, ref_index: PointOffsetIndex, cand_index: PointOffsetIndex
    ) -> Optional[Tuple[int, int, int]]:
        for i, ref_offsets in ref_index.items():
            for j, cand_offsets in cand_index.items():
                count = len(ref_offsets & cand_offsets)
                if count >= self.overlap_threshold:
                    return i, j, count
        return None

    def _reference_index(self, reference: Scanner) -> PointOffsetIndex:
        cached = self._reference_indexes.get(reference.scanner_id)
        if cached is not None and cached[0] is reference:
            return cached[1]
        index = PointOffsetIndex(reference.global_beacons)
        self._reference_indexes[reference.scanner_id] = (reference, index)
        return index
