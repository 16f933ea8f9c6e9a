"""
Scanner Report Loader

This module reads scanner reports: records separated by a blank line, each
starting with a ``--- scanner N ---`` header followed by one ``x,y,z``
beacon per line. Malformed input is rejected here so the registration code
only ever sees well-formed (scanner id, beacons) records.
"""

import re
from pathlib import Path
from typing import List, NamedTuple, Tuple, Union

from ..utils.logging import setup_logger

logger = setup_logger(__name__)

_HEADER_RE = re.compile(r"^---\s*scanner\s+(-?\d+)\s*---$")
# Coordinates are held as int64; offsets and translations are differences and
# sums of two coordinates, so inputs must stay well inside that range.
MAX_ABS_COORDINATE = 2 ** 61


class ScannerReportError(ValueError):
    """Raised when a scanner report cannot be parsed."""

    def __init__(self, message: str, line_number: int = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class ScannerRecord(NamedTuple):
    scanner_id: int
    beacons: List[Tuple[int, int, int]]


def _parse_beacon(line: str, line_number: int) -> Tuple[int, int, int]:
    parts = line.split(",")
    if len(parts) != 3:
        raise ScannerReportError(f"expected three comma-separated integers, got {line!r}", line_number)
    try:
        x, y, z = (int(p.strip()) for p in parts)
    except ValueError:
        raise ScannerReportError(f"invalid beacon coordinates {line!r}", line_number) from None
    for value in (x, y, z):
        if abs(value) >= MAX_ABS_COORDINATE:
            raise ScannerReportError(
                f"beacon coordinate {value} out of range (|value| must be below 2**61)", line_number
            )
    return x, y, z


def parse_scanner_reports(text: str) -> List[ScannerRecord]:
    """
    Parse scanner reports from text.

    Args:
        text: Full report text

    Returns:
        List of ScannerRecord in input order

    Raises:
        ScannerReportError: On a missing/malformed header, an unparsable
            beacon line, a duplicate scanner id, or input without records
    """
    records: List[ScannerRecord] = []
    seen = set()
    current: ScannerRecord = None

    for line_number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line:
            current = None
            continue

        if current is None:
            match = _HEADER_RE.match(line)
            if match is None:
                raise ScannerReportError(f"expected scanner header, got {line!r}", line_number)
            scanner_id = int(match.group(1))
            if scanner_id in seen:
                raise ScannerReportError(f"duplicate scanner id {scanner_id}", line_number)
            seen.add(scanner_id)
            current = ScannerRecord(scanner_id, [])
            records.append(current)
            continue

        current.beacons.append(_parse_beacon(line, line_number))

    if not records:
        raise ScannerReportError("no scanner records found")

    for record in records:
        if not record.beacons:
            logger.warning(f"Scanner {record.scanner_id} reports no beacons")

    logger.debug(f"Parsed {len(records)} scanner records")
    return records


def load_scanner_reports(file_path: Union[str, Path]) -> List[ScannerRecord]:
    """
    Load scanner reports from a text file.

    Raises:
        FileNotFoundError: If the file does not exist
        ScannerReportError: If the content is malformed
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    logger.info(f"Loading scanner reports from {file_path}")
    records = parse_scanner_reports(file_path.read_text(encoding="utf-8"))
    logger.info(
        f"Loaded {len(records)} scanners with {sum(len(r.beacons) for r in records)} beacons"
    )
    return records
