"""
Tests for the scanner model and its one-time registration.
"""

from pathlib import Path
import sys

import numpy as np
import pytest

sys.path.append(str(Path(__file__).parent.parent / "src"))

from beacon_registration.alignment.rotations import ROTATIONS
from beacon_registration.alignment.scanner import Scanner


def test_new_scanner_is_unregistered():
    scanner = Scanner.from_record(3, [(1, 2, 3), (4, 5, 6)])

    assert scanner.scanner_id == 3
    assert not scanner.is_registered
    assert scanner.position is None
    assert scanner.rotation is None
    with pytest.raises(RuntimeError):
        scanner.global_beacons


def test_local_beacons_are_read_only():
    scanner = Scanner(0, [[1, 2, 3]])
    with pytest.raises(ValueError):
        scanner.beacons[0, 0] = 99


def test_register_derives_global_beacons_without_touching_local():
    scanner = Scanner(0, [[1, 2, 3], [-4, 0, 6]])
    rotation = ROTATIONS[5]

    scanner.register(rotation, (10, 20, 30))

    assert scanner.position == (10, 20, 30)
    assert scanner.rotation is rotation
    assert scanner.beacons.tolist() == [[1, 2, 3], [-4, 0, 6]]
    expected = [
        [a + b for a, b in zip(rotation.apply(p), (10, 20, 30))]
        for p in [(1, 2, 3), (-4, 0, 6)]
    ]
    assert scanner.global_beacons.tolist() == expected


def test_register_only_once():
    scanner = Scanner(0, [[1, 2, 3]])
    scanner.register(ROTATIONS.identity, (0, 0, 0))
    with pytest.raises(RuntimeError):
        scanner.register(ROTATIONS.identity, (1, 1, 1))
    assert scanner.position == (0, 0, 0)


def test_registered_at_construction():
    scanner = Scanner(0, [[1, 2, 3]], position=(1, 1, 1), rotation=ROTATIONS.identity)
    assert scanner.is_registered
    assert scanner.global_beacons.tolist() == [[2, 3, 4]]


def test_bad_shape_rejected():
    with pytest.raises(ValueError):
        Scanner(0, [[1, 2]])
    with pytest.raises(ValueError):
        Scanner(0, [[1, 2, 3]], position=(0, 0, 0))


def test_empty_scanner():
    scanner = Scanner(0, [])
    assert scanner.beacons.shape == (0, 3)
    assert isinstance(scanner.beacons, np.ndarray)
