"""
Export utilities for reconstruction results.

Writes the global beacon set as CSV and the resolved scanner poses as JSON.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Union

import numpy as np

from .logging import setup_logger

logger = setup_logger(__name__)


def export_beacons_to_csv(beacons, output_path: Union[str, Path]) -> Path:
    """
    Export global beacons to a CSV file with an ``x,y,z`` header.

    Args:
        beacons: GlobalBeaconSet or (N, 3) integer array
        output_path: Output CSV path

    Returns:
        Path of the written file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if hasattr(beacons, "to_array"):
        points = beacons.to_array()
    else:
        points = np.asarray(beacons, dtype=np.int64).reshape(-1, 3)

    np.savetxt(output_path, points, fmt="%d", delimiter=",", header="x,y,z", comments="")
    logger.info(f"Exported {len(points)} beacons to {output_path}")
    return output_path


def export_scanner_positions(result, output_path: Union[str, Path]) -> Path:
    """
    Export scanner positions and rotations of a RegistrationResult to JSON.

    Args:
        result: RegistrationResult
        output_path: Output JSON path

    Returns:
        Path of the written file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    document = {
        "beacon_count": result.beacon_count,
        "max_manhattan_distance": result.max_manhattan_distance(),
        "scanners": [
            {
                "id": scanner_id,
                "position": list(position),
                "rotation": result.scanner_rotations[scanner_id],
            }
            for scanner_id, position in sorted(result.scanner_positions.items())
        ],
    }
    with output_path.open("w", encoding="utf-8") as f:
        json.dump(document, f, indent=2)

    logger.info(f"Exported {len(document['scanners'])} scanner positions to {output_path}")
    return output_path
