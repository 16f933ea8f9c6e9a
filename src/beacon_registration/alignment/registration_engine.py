"""
Scanner Registration Engine

Places every scanner in one global frame. The reference scanner defines the
frame (position (0, 0, 0), identity rotation). Unregistered scanners are then
aligned against registered ones until every scanner is registered:

- Sequential mode tries unregistered scanners in input order against
  registered scanners in registration order, and restarts the pass after
  every successful registration.
- Parallel mode evaluates every unregistered scanner of a pass against the
  pass-start snapshot of registered scanners in worker processes, then
  commits all matches at the end of the pass in input order.

A pass that registers nothing means the overlap graph is disconnected; this
raises RegistrationStallError instead of looping.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import combinations
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .beacon_set import GlobalBeaconSet
from .pair_aligner import DEFAULT_OVERLAP_THRESHOLD, OverlapMatch, PairAligner
from .rotations import ROTATIONS, Beacon
from .scanner import Scanner
from ..acceleration.parallel_executor import PairParallelExecutor
from ..utils.logging import setup_logger

logger = setup_logger(__name__)


class RegistrationStallError(RuntimeError):
    """A full pass over the unregistered scanners registered none of them."""

    def __init__(self, unregistered_ids: Sequence[int], registered_ids: Sequence[int]):
        self.unregistered_ids = list(unregistered_ids)
        self.registered_ids = list(registered_ids)
        super().__init__(
            f"Registration stalled: scanners {self.unregistered_ids} do not overlap "
            f"sufficiently with registered scanners {self.registered_ids}"
        )


def manhattan_distance(a: Sequence[int], b: Sequence[int]) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1]) + abs(a[2] - b[2])


def max_manhattan_distance(positions: Iterable[Sequence[int]]) -> int:
    """Largest Manhattan distance between any two positions (0 for fewer than two)."""
    return max((manhattan_distance(a, b) for a, b in combinations(list(positions), 2)), default=0)


@dataclass
class RegistrationResult:
    """
    Outcome of a completed reconstruction.

    Attributes:
        beacons: Distinct beacons in the global frame
        scanner_positions: Global position of each scanner, by scanner id
        scanner_rotations: Rotation index of each scanner, by scanner id
    """

    beacons: GlobalBeaconSet
    scanner_positions: Dict[int, Beacon] = field(default_factory=dict)
    scanner_rotations: Dict[int, int] = field(default_factory=dict)

    @property
    def beacon_count(self) -> int:
        return len(self.beacons)

    def max_manhattan_distance(self) -> int:
        return max_manhattan_distance(self.scanner_positions.values())


def align_candidate(
    job: Tuple[Scanner, Sequence[Scanner]],
    overlap_threshold: int = DEFAULT_OVERLAP_THRESHOLD,
) -> Optional[Tuple[int, OverlapMatch]]:
    """
    Align one candidate against a list of registered references, in order.

    Module-level so it can be shipped to worker processes.

    Returns:
        (reference_id, match) for the first reference that aligns, or None
    """
    candidate, references = job
    aligner = PairAligner(overlap_threshold)
    for reference in references:
        match = aligner.align(reference, candidate)
        if match is not None:
            return reference.scanner_id, match
    return None


class RegistrationEngine:
    """
    Drives registration of a scanner collection to convergence.

    The engine owns two collections: ``registered`` (in registration order)
    and ``unregistered`` (in input order). A scanner moves from the second to
    the first exactly once and is never modified afterwards.
    """

    def __init__(
        self,
        scanners: Sequence[Scanner],
        overlap_threshold: int = DEFAULT_OVERLAP_THRESHOLD,
        reference_id: Optional[int] = None,
        skip_failed_pairs: bool = True,
        executor: Optional[PairParallelExecutor] = None,
    ):
        """
        Initialize the engine and register the reference scanner.

        Args:
            scanners: Scanners in input order.
            overlap_threshold: Minimum coinciding beacons for a pair to register.
            reference_id: Scanner defining the global frame. Defaults to the first scanner.
            skip_failed_pairs: If True, a (candidate, reference) pair that failed
                to align is not attempted again.
            executor: Optional parallel executor; enables deferred-commit passes.

        Raises:
            ValueError: On empty input, duplicate ids, an unknown reference id,
                or a non-reference scanner that is already registered.
        """
        if not scanners:
            raise ValueError("At least one scanner is required")

        ids = [s.scanner_id for s in scanners]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ValueError(f"Duplicate scanner ids: {duplicates}")

        if reference_id is None:
            reference_id = ids[0]
        if reference_id not in ids:
            raise ValueError(f"Reference scanner {reference_id} not found (available: {ids})")

        self.aligner = PairAligner(overlap_threshold)
        self.overlap_threshold = self.aligner.overlap_threshold
        self.skip_failed_pairs = skip_failed_pairs
        self.executor = executor
        self.reference_id = reference_id

        self.registered: List[Scanner] = []
        self.unregistered: List[Scanner] = []
        self.beacons = GlobalBeaconSet()
        self._failed_pairs: Set[Tuple[int, int]] = set()

        for scanner in scanners:
            if scanner.scanner_id == reference_id:
                continue
            if scanner.is_registered:
                raise ValueError(f"Scanner {scanner.scanner_id} is already registered")
            self.unregistered.append(scanner)

        reference = next(s for s in scanners if s.scanner_id == reference_id)
        if not reference.is_registered:
            reference.register(ROTATIONS.identity, (0, 0, 0))
        self.registered.append(reference)
        self.beacons.insert_many(reference.global_beacons)

    @classmethod
    def from_records(cls, records: Iterable[Tuple[int, Sequence[Sequence[int]]]], **kwargs) -> "RegistrationEngine":
        """Build an engine from (scanner_id, beacons) records."""
        scanners = [Scanner.from_record(scanner_id, beacons) for scanner_id, beacons in records]
        return cls(scanners, **kwargs)

    @property
    def is_complete(self) -> bool:
        return not self.unregistered

    def reconstruct(self) -> RegistrationResult:
        """
        Register every scanner and return the reconstruction.

        Raises:
            RegistrationStallError: If a full pass registers no scanner.
        """
        logger.info(
            "Registering %d scanners against reference scanner %s (threshold=%d, mode=%s)",
            len(self.registered) + len(self.unregistered),
            self.reference_id,
            self.overlap_threshold,
            "parallel" if self.executor is not None else "sequential",
        )
        while self.unregistered:
            if self.executor is not None:
                progressed = self._parallel_pass()
            else:
                progressed = self._sequential_pass()
            if not progressed:
                raise RegistrationStallError(
                    [s.scanner_id for s in self.unregistered],
                    [s.scanner_id for s in self.registered],
                )

        logger.info(
            "Registration complete: %d scanners, %d distinct beacons",
            len(self.registered), len(self.beacons),
        )
        return self.result()

    def result(self) -> RegistrationResult:
        if not self.is_complete:
            raise RuntimeError(
                f"Registration incomplete: {[s.scanner_id for s in self.unregistered]} unregistered"
            )
        return RegistrationResult(
            beacons=self.beacons,
            scanner_positions={s.scanner_id: s.position for s in self.registered},
            scanner_rotations={s.scanner_id: s.rotation.index for s in self.registered},
        )

    # ------------------------ Passes ------------------------
    def _sequential_pass(self) -> bool:
        for candidate in self.unregistered:
            logger.debug("Attempting to match scanner %s", candidate.scanner_id)
            for reference in self._untried_references(candidate, self.registered):
                match = self.aligner.align(reference, candidate)
                if match is None:
                    self._failed_pairs.add((candidate.scanner_id, reference.scanner_id))
                    continue
                self._commit(candidate, reference.scanner_id, match)
                return True
        return False

    def _parallel_pass(self) -> bool:
        snapshot = list(self.registered)
        jobs = []
        for candidate in self.unregistered:
            references = self._untried_references(candidate, snapshot)
            if references:
                jobs.append((candidate, references))
        if not jobs:
            return False

        results = self.executor.map_jobs(
            jobs=jobs,
            worker_fn=align_candidate,
            worker_kwargs={"overlap_threshold": self.overlap_threshold},
        )

        progressed = False
        for (candidate, references), found in zip(jobs, results):
            tried = references
            if found is not None:
                reference_id, match = found
                tried = references[: [r.scanner_id for r in references].index(reference_id)]
            for reference in tried:
                self._failed_pairs.add((candidate.scanner_id, reference.scanner_id))
            if found is not None:
                self._commit(candidate, reference_id, match)
                progressed = True
        return progressed

    # ------------------------ Helpers ------------------------
    def _untried_references(self, candidate: Scanner, references: Sequence[Scanner]) -> List[Scanner]:
        if not self.skip_failed_pairs:
            return list(references)
        return [
            r for r in references
            if (candidate.scanner_id, r.scanner_id) not in self._failed_pairs
        ]

    def _commit(self, scanner: Scanner, reference_id: int, match: OverlapMatch) -> None:
        scanner.register(match.rotation, match.translation)
        self.unregistered.remove(scanner)
        self.registered.append(scanner)
        added = self.beacons.insert_many(scanner.global_beacons)
        logger.info(
            "Matched scanner %s against %s: position=%s rotation=%d (%d new beacons, %d total)",
            scanner.scanner_id, reference_id, scanner.position, match.rotation.index, added, len(self.beacons),
        )
