"""
Configuration management for beacon-registration.

Provides a typed pydantic model and YAML loader with sensible defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Literal, Any, Dict

from pydantic import BaseModel, Field, ValidationError
import yaml


# -----------------------
# Typed config structures
# -----------------------


class PathsConfig(BaseModel):
    input_file: str = Field(default="data/scanners.txt")
    output_dir: Optional[str] = Field(default=None, description="Directory for exported results (auto if None)")


class RegistrationConfig(BaseModel):
    overlap_threshold: int = Field(
        default=12,
        ge=1,
        description="Minimum number of coinciding beacons for two scanners to be registered",
    )
    # None means: the first scanner record in the input defines the global frame
    reference_scanner: Optional[int] = Field(default=None)
    skip_failed_pairs: bool = Field(
        default=True,
        description="Do not retry scanner pairs that already failed to align",
    )


class ParallelConfig(BaseModel):
    enabled: bool = Field(default=False, description="Evaluate candidate scanners of a pass in worker processes")
    n_workers: Optional[int] = Field(default=None, description="Number of worker processes (None = auto-detect: cpu_count - 1)")


class ExportConfig(BaseModel):
    enabled: bool = Field(default=False)
    beacons_file: str = Field(default="beacons.csv")
    positions_file: str = Field(default="scanner_positions.json")


class LoggingConfig(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    file: Optional[str] = Field(default=None)


class AppConfig(BaseModel):
    paths: PathsConfig = Field(default_factory=PathsConfig)
    registration: RegistrationConfig = Field(default_factory=RegistrationConfig)
    parallel: ParallelConfig = Field(default_factory=ParallelConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# -----------------------
# Loader
# -----------------------


def _project_root() -> Path:
    """
    Resolve the repository root directory.

    File is at: repo_root/src/beacon_registration/utils/config.py
    parents sequence:
      0 -> .../src/beacon_registration/utils
      1 -> .../src/beacon_registration
      2 -> .../src
      3 -> repo_root
    """
    return Path(__file__).resolve().parents[3]


def load_config(path: Optional[str | Path] = None, *, allow_missing: bool = True) -> AppConfig:
    """
    Load configuration from YAML into a typed AppConfig.

    Search order when path is None:
    1) repo_root/config/default.yaml
    2) if missing and allow_missing=True: return default AppConfig()

    Args:
        path: Explicit YAML file path.
        allow_missing: If True, returns defaults when file missing; otherwise raises.

    Returns:
        AppConfig instance
    """
    cfg_path: Path
    if path is None:
        cfg_path = _project_root() / "config" / "default.yaml"
    else:
        cfg_path = Path(path)

    if not cfg_path.exists():
        if allow_missing:
            return AppConfig()
        raise FileNotFoundError(f"Config file not found: {cfg_path}")

    with cfg_path.open("r", encoding="utf-8") as f:
        raw: Dict[str, Any] = yaml.safe_load(f) or {}

    try:
        return AppConfig.model_validate(raw)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration in {cfg_path}: {e}")
