"""
Register scanner reports into one global frame.

Reads a scanner report file, registers every scanner against the reference
scanner and reports scanner positions, the number of distinct beacons and
the largest Manhattan distance between two scanners.
"""

import sys
import argparse
import logging
from pathlib import Path

# Add the src to the path to import modules
sys.path.append(str(Path(__file__).parent.parent / "src"))

from beacon_registration.preprocessing.loader import load_scanner_reports, ScannerReportError
from beacon_registration.alignment import RegistrationEngine, RegistrationStallError
from beacon_registration.acceleration import PairParallelExecutor
from beacon_registration.utils.config import load_config, AppConfig
from beacon_registration.utils.export import export_beacons_to_csv, export_scanner_positions
from beacon_registration.utils.logging import setup_logger


def main() -> int:
    parser = argparse.ArgumentParser(description="Scanner Beacon Registration")
    parser.add_argument(
        "--input",
        type=str,
        default=None,
        help="Scanner report file (overrides paths.input_file)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file (defaults to config/default.yaml)",
    )
    parser.add_argument(
        "--threshold",
        type=int,
        default=None,
        help="Override registration.overlap_threshold",
    )
    parser.add_argument(
        "--reference",
        type=int,
        default=None,
        help="Scanner id defining the global frame (default: first scanner)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Enable parallel passes with this many worker processes",
    )
    parser.add_argument(
        "--export-dir",
        type=str,
        default=None,
        help="Export beacons and scanner positions to this directory",
    )
    args = parser.parse_args()

    try:
        cfg: AppConfig = load_config(args.config, allow_missing=args.config is None)
    except (FileNotFoundError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    if args.input:
        cfg.paths.input_file = args.input
    if args.threshold is not None:
        cfg.registration.overlap_threshold = args.threshold
    if args.reference is not None:
        cfg.registration.reference_scanner = args.reference
    if args.workers is not None:
        cfg.parallel.enabled = True
        cfg.parallel.n_workers = args.workers
    if args.export_dir:
        cfg.export.enabled = True
        cfg.paths.output_dir = args.export_dir

    log_level = getattr(logging, cfg.logging.level.upper(), logging.INFO)
    logger = setup_logger(__name__, level=log_level, log_file=cfg.logging.file)

    logger.info("Scanner Beacon Registration")
    logger.info("===========================")

    try:
        records = load_scanner_reports(cfg.paths.input_file)
    except (FileNotFoundError, ScannerReportError) as e:
        logger.error(f"Cannot read scanner reports: {e}")
        return 1

    executor = None
    if cfg.parallel.enabled:
        executor = PairParallelExecutor(n_workers=cfg.parallel.n_workers)

    try:
        engine = RegistrationEngine.from_records(
            records,
            overlap_threshold=cfg.registration.overlap_threshold,
            reference_id=cfg.registration.reference_scanner,
            skip_failed_pairs=cfg.registration.skip_failed_pairs,
            executor=executor,
        )
        result = engine.reconstruct()
    except RegistrationStallError as e:
        logger.error(str(e))
        return 1
    except ValueError as e:
        logger.error(f"Invalid registration input: {e}")
        return 1

    logger.info("Scanner positions:")
    for scanner_id, position in sorted(result.scanner_positions.items()):
        logger.info(f"  scanner {scanner_id}: {position[0]},{position[1]},{position[2]}")
    logger.info(f"Number of beacons = {result.beacon_count}")
    logger.info(f"Maximum Manhattan distance between scanners = {result.max_manhattan_distance()}")

    if cfg.export.enabled:
        output_dir = Path(cfg.paths.output_dir or Path(cfg.paths.input_file).parent / "output")
        export_beacons_to_csv(result.beacons, output_dir / cfg.export.beacons_file)
        export_scanner_positions(result, output_dir / cfg.export.positions_file)

    return 0


if __name__ == "__main__":
    sys.exit(main())
