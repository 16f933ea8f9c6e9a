"""
Scanner Report Preprocessing Module

Reading and validation of scanner reports before registration.
"""

from .loader import (
    ScannerRecord,
    ScannerReportError,
    parse_scanner_reports,
    load_scanner_reports,
)

__all__ = [
    "ScannerRecord",
    "ScannerReportError",
    "parse_scanner_reports",
    "load_scanner_reports",
]
