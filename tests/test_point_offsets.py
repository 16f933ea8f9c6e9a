"""
Tests for translation-invariant offset indexing.
"""

from pathlib import Path
import sys

import numpy as np

sys.path.append(str(Path(__file__).parent.parent / "src"))

from beacon_registration.alignment.point_offsets import PointOffsetIndex, relative_offsets


def test_relative_offsets_direction_and_zero():
    points = np.array([[3, 3, 3], [2, 1, 0], [1, 2, 0]])
    offsets = relative_offsets(points, points[1])

    assert offsets == {(1, 2, 3), (0, 0, 0), (-1, 1, 0)}


def test_offsets_are_translation_invariant():
    points = np.array([[0, 0, 0], [5, -2, 7], [-3, 4, 1], [10, 10, 10]])
    shifted = points + np.array([100, -50, 25])

    a = PointOffsetIndex(points)
    b = PointOffsetIndex(shifted)
    for i in range(len(points)):
        assert a.offsets_from(i) == b.offsets_from(i)
        assert a.overlap(i, b, i) == len(points)


def test_partial_overlap_counts_shared_points_including_anchor():
    """Two clouds sharing two points overlap by 2 when anchored on a shared point."""
    reference = PointOffsetIndex(np.array([[3, 3, 3], [2, 1, 0], [1, 2, 0]]))
    candidate = PointOffsetIndex(np.array([[1, 4, 0], [7, 6, 5], [2, 3, 0]]))

    assert reference.overlap(1, candidate, 2) == 2
    assert reference.overlap(0, candidate, 0) == 1


def test_index_anchor_and_items():
    points = np.array([[1, 2, 3], [4, 5, 6]])
    index = PointOffsetIndex(points)

    assert len(index) == 2
    assert index.anchor(1) == (4, 5, 6)
    assert [i for i, _ in index.items()] == [0, 1]
    assert index.offsets_from(0) == {(0, 0, 0), (3, 3, 3)}


def test_empty_cloud():
    index = PointOffsetIndex(np.empty((0, 3), dtype=np.int64))
    assert len(index) == 0
