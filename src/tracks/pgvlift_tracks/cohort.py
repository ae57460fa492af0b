"""Cohort manifest and per-row dispatch shared by the lift drivers."""

from __future__ import annotations

import math
import multiprocessing as mp
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import pandas as pd
from pgvlift_core.consts import (
    ALLELE_COLOR_FIELD,
    COUNT,
    DEFAULT_COVERAGE_BIN_WIDTH,
    DEFAULT_COVERAGE_FIELD,
    DEFAULT_HETSNPS_BIN_WIDTH,
    DEFAULT_MAX_NORMAL_FREQ,
    DEFAULT_MIN_NORMAL_FREQ,
    DEFAULT_REFERENCE,
    DEFAULT_SUBSAMPLE_SIZE,
    FileExtension,
)
from pgvlift_core.errors import ConfigError
from pgvlift_core.logger import logger

PAIR = "pair"

# per-track parameters filled in when the manifest does not carry them
COHORT_DEFAULTS: dict[str, Any] = {
    "denoised_coverage_field": DEFAULT_COVERAGE_FIELD,
    "denoised_coverage_color_field": None,
    "denoised_coverage_bin_width": DEFAULT_COVERAGE_BIN_WIDTH,
    "denoised_coverage_apply_mask": True,
    "hetsnps_mask": None,
    "hetsnps_subsample_size": DEFAULT_SUBSAMPLE_SIZE,
    "hetsnps_min_normal_freq": DEFAULT_MIN_NORMAL_FREQ,
    "hetsnps_max_normal_freq": DEFAULT_MAX_NORMAL_FREQ,
    "hetsnps_field": COUNT,
    "hetsnps_color_field": ALLELE_COLOR_FIELD,
    "hetsnps_bin_width": DEFAULT_HETSNPS_BIN_WIDTH,
}

_TRUE_STRINGS = {"true", "t", "yes", "y", "1"}
_FALSE_STRINGS = {"false", "f", "no", "n", "0"}


@dataclass
class Cohort:
    """Samples of a cohort, one row per pair, with the name of their reference"""

    inputs: pd.DataFrame
    reference_name: str = DEFAULT_REFERENCE
    fill_defaults: bool = field(default=True, repr=False)

    def __post_init__(self):
        self.inputs = self.inputs.copy()
        if self.fill_defaults:
            for column, default in COHORT_DEFAULTS.items():
                if column not in self.inputs.columns:
                    self.inputs[column] = [default] * len(self.inputs)

    @classmethod
    def from_file(cls, manifest_path: str | Path, reference_name: str = DEFAULT_REFERENCE) -> Cohort:
        """Read a cohort manifest (tab separated, or comma separated if the file ends with .csv)"""
        if not Path(manifest_path).is_file():
            raise ConfigError(f"Cohort manifest {manifest_path} does not exist")
        sep = "," if str(manifest_path).endswith(FileExtension.CSV.value) else "\t"
        try:
            inputs = pd.read_csv(manifest_path, sep=sep)
        except (OSError, ValueError) as e:
            raise ConfigError(f"Could not read cohort manifest {manifest_path}: {e}") from e
        return cls(inputs=inputs, reference_name=reference_name)

    def rows(self) -> list[dict[str, Any]]:
        return self.inputs.to_dict(orient="records")

    def __len__(self):
        return len(self.inputs)


def validate_cohort_columns(cohort: Cohort, required_cols: Sequence[str]) -> None:
    missing_cols = [c for c in required_cols if c not in cohort.inputs.columns]
    if missing_cols:
        raise ConfigError(f"Missing required columns in cohort: {', '.join(missing_cols)}")


def validate_cores(cores: int) -> int:
    if isinstance(cores, bool) or not isinstance(cores, int) or cores < 1:
        raise ConfigError(f"cores must be an integer >= 1, got {cores!r}")
    return cores


def row_value(row: dict[str, Any], key: str) -> Any:
    """Value of a manifest cell, None when missing or NA"""
    value = row.get(key)
    if value is None:
        return None
    if not isinstance(value, str) and pd.isna(value):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return value


def as_bool(value: Any, default: bool = True) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
        raise ConfigError(f"Could not interpret {value!r} as a boolean")
    return bool(value)


def as_int(value: Any) -> int | None:
    return None if value is None else int(value)


class RowStatus(Enum):
    WRITTEN = "written"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class RowResult:
    """Outcome of the pipeline of a single manifest row"""

    pair: str
    status: RowStatus
    output_file: str | None = None
    message: str = ""


def map_rows(
    func: Callable[[dict[str, Any]], RowResult], rows: list[dict[str, Any]], cores: int = 1
) -> list[RowResult]:
    """Run func over the rows, on a pool of `cores` processes with rows pre-assigned to workers"""
    if cores == 1 or len(rows) <= 1:
        return [func(row) for row in rows]
    chunksize = math.ceil(len(rows) / cores)
    with mp.Pool(processes=cores) as pool:
        return pool.map(func, rows, chunksize=chunksize)


def log_summary(results: list[RowResult], track: str) -> None:
    counts = {status: sum(r.status == status for r in results) for status in RowStatus}
    logger.info(
        f"{track}: {counts[RowStatus.WRITTEN]} written, {counts[RowStatus.SKIPPED]} skipped, "
        f"{counts[RowStatus.FAILED]} failed"
    )
    for result in results:
        if result.status != RowStatus.WRITTEN:
            logger.info(f"{track}: {result.pair} {result.status.value}: {result.message}")
