"""
Tests for the registration engine.

These tests cover end-to-end reconstruction of the canonical five-scanner
example, the minimal synthetic pair, determinism, explicit failure on a
disconnected overlap graph and the parallel deferred-commit mode.
"""

from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).parent.parent / "src"))

from beacon_registration.acceleration import PairParallelExecutor
from beacon_registration.alignment.registration_engine import (
    RegistrationEngine,
    RegistrationStallError,
    align_candidate,
    manhattan_distance,
    max_manhattan_distance,
)
from beacon_registration.alignment.rotations import ROTATIONS
from beacon_registration.alignment.scanner import Scanner
from beacon_registration.preprocessing.loader import load_scanner_reports

SAMPLE_FILE = Path(__file__).parent / "sample_data" / "five_scanners.txt"

EXPECTED_POSITIONS = {
    0: (0, 0, 0),
    1: (68, -1246, -43),
    2: (1105, -1205, 1229),
    3: (-92, -2380, -20),
    4: (-20, -1133, 1061),
}


def _records():
    return load_scanner_reports(SAMPLE_FILE)


def _scattered_record(scanner_id: int, n: int = 20):
    beacons = [(i * 37 % 101, i * i % 89 - 40, i * 53 % 97 + 3 * i) for i in range(n)]
    return scanner_id, beacons


class TestCanonicalExample:
    """Reconstruction of the five-scanner, 25-beacon example."""

    def test_beacon_count(self):
        result = RegistrationEngine.from_records(_records()).reconstruct()
        assert result.beacon_count == 79

    def test_scanner_positions(self):
        result = RegistrationEngine.from_records(_records()).reconstruct()
        assert result.scanner_positions == EXPECTED_POSITIONS
        assert set(result.scanner_rotations) == set(EXPECTED_POSITIONS)
        assert result.scanner_rotations[0] == 0

    def test_max_manhattan_distance(self):
        result = RegistrationEngine.from_records(_records()).reconstruct()
        assert result.max_manhattan_distance() == 3621

    def test_deterministic(self):
        first = RegistrationEngine.from_records(_records()).reconstruct()
        second = RegistrationEngine.from_records(_records()).reconstruct()

        assert first.beacon_count == second.beacon_count
        assert first.scanner_positions == second.scanner_positions
        assert set(first.beacons) == set(second.beacons)

    def test_other_reference_scanner(self):
        """Choosing another reference moves the frame but not the answers."""
        result = RegistrationEngine.from_records(_records(), reference_id=1).reconstruct()

        assert result.scanner_positions[1] == (0, 0, 0)
        assert result.beacon_count == 79
        assert result.max_manhattan_distance() == 3621

    def test_without_skipping_failed_pairs(self):
        result = RegistrationEngine.from_records(_records(), skip_failed_pairs=False).reconstruct()
        assert result.scanner_positions == EXPECTED_POSITIONS
        assert result.beacon_count == 79

    def test_partition_after_reconstruction(self):
        engine = RegistrationEngine.from_records(_records())
        assert [s.scanner_id for s in engine.registered] == [0]
        assert [s.scanner_id for s in engine.unregistered] == [1, 2, 3, 4]
        assert len(engine.beacons) == 25

        engine.reconstruct()

        assert engine.is_complete
        assert engine.unregistered == []
        assert sorted(s.scanner_id for s in engine.registered) == [0, 1, 2, 3, 4]
        assert all(s.is_registered for s in engine.registered)


class TestParallelMode:
    """Deferred-commit passes evaluated by the parallel executor."""

    def test_parallel_matches_sequential(self):
        executor = PairParallelExecutor(n_workers=2)
        result = RegistrationEngine.from_records(_records(), executor=executor).reconstruct()

        assert result.scanner_positions == EXPECTED_POSITIONS
        assert result.beacon_count == 79

    def test_single_worker_executor(self):
        executor = PairParallelExecutor(n_workers=1)
        result = RegistrationEngine.from_records(_records(), executor=executor).reconstruct()

        assert result.scanner_positions == EXPECTED_POSITIONS

    def test_parallel_stall_raises(self):
        records = list(_records())[:2] + [_scattered_record(7)]
        executor = PairParallelExecutor(n_workers=2)
        engine = RegistrationEngine.from_records(records, executor=executor)

        with pytest.raises(RegistrationStallError) as excinfo:
            engine.reconstruct()
        assert excinfo.value.unregistered_ids == [7]


def test_minimal_synthetic_pair():
    engine = RegistrationEngine.from_records(
        [
            (1, [(3, 3, 3), (2, 1, 0), (1, 2, 0)]),
            (2, [(1, 4, 0), (7, 6, 5), (2, 3, 0)]),
        ],
        overlap_threshold=2,
    )
    result = engine.reconstruct()

    assert result.scanner_positions == {1: (0, 0, 0), 2: (0, -2, 0)}
    s2 = next(s for s in engine.registered if s.scanner_id == 2)
    assert s2.global_beacons.tolist() == [[1, 2, 0], [7, 4, 5], [2, 1, 0]]
    assert result.beacon_count == 4


def test_disconnected_overlap_graph_raises():
    records = list(_records()) + [_scattered_record(7)]
    engine = RegistrationEngine.from_records(records)

    with pytest.raises(RegistrationStallError) as excinfo:
        engine.reconstruct()

    assert excinfo.value.unregistered_ids == [7]
    assert sorted(excinfo.value.registered_ids) == [0, 1, 2, 3, 4]
    with pytest.raises(RuntimeError):
        engine.result()


def test_single_scanner_is_trivially_complete():
    result = RegistrationEngine.from_records([(0, [(1, 2, 3), (1, 2, 3)])]).reconstruct()

    assert result.scanner_positions == {0: (0, 0, 0)}
    assert result.beacon_count == 1
    assert result.max_manhattan_distance() == 0


def test_invalid_construction():
    with pytest.raises(ValueError):
        RegistrationEngine([])
    with pytest.raises(ValueError):
        RegistrationEngine([Scanner(0, [[1, 2, 3]]), Scanner(0, [[4, 5, 6]])])
    with pytest.raises(ValueError):
        RegistrationEngine([Scanner(0, [[1, 2, 3]])], reference_id=5)

    placed = Scanner(1, [[1, 2, 3]])
    placed.register(ROTATIONS.identity, (0, 0, 0))
    with pytest.raises(ValueError):
        RegistrationEngine([Scanner(0, [[1, 2, 3]]), placed])


def test_align_candidate_worker():
    s1 = Scanner(1, [[3, 3, 3], [2, 1, 0], [1, 2, 0]])
    s1.register(ROTATIONS.identity, (0, 0, 0))
    s2 = Scanner(2, [[1, 4, 0], [7, 6, 5], [2, 3, 0]])
    far = Scanner(3, [[1000, 1000, 1000]])
    far.register(ROTATIONS.identity, (0, 0, 0))

    reference_id, match = align_candidate((s2, [far, s1]), overlap_threshold=2)

    assert reference_id == 1
    assert match.translation == (0, -2, 0)
    assert align_candidate((s2, [far]), overlap_threshold=2) is None


def test_manhattan_helpers():
    assert manhattan_distance((1105, -1205, 1229), (-92, -2380, -20)) == 3621
    assert max_manhattan_distance([(0, 0, 0), (1, -1, 1), (-2, 0, 0)]) == 5
    assert max_manhattan_distance([(0, 0, 0), (1, -1, 1)]) == 3
    assert max_manhattan_distance([]) == 0
