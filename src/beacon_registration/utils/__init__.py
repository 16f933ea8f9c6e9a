"""
Utility Functions Module

This module provides common utility functions used across the project.
- Logging setup
- Configuration loading
- Export of reconstruction results
"""

from .logging import setup_logger
from .config import load_config, AppConfig
from .export import export_beacons_to_csv, export_scanner_positions

__all__ = [
    "setup_logger",
    "load_config",
    "AppConfig",
    "export_beacons_to_csv",
    "export_scanner_positions",
]
