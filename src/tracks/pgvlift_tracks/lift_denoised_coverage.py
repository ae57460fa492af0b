# Copyright 2022 Ultima Genomics Inc.
#
#    Licensed under the Apache License, Version 2.0 (the "License");
#    you may not use this file except in compliance with the License.
#    You may obtain a copy of the License at
#
#        http://www.apache.org/licenses/LICENSE-2.0
#
#    Unless required by applicable law or agreed to in writing, software
#    distributed under the License is distributed on an "AS IS" BASIS,
#    WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#    See the License for the specific language governing permissions and
#    limitations under the License.
# DESCRIPTION
#    Create denoised coverage arrow files (PGV scatterplot) for all samples in a cohort.
# CHANGELOG in reverse chronological order

import argparse
import logging
import sys
from functools import partial
from pathlib import Path

from pgvlift_core.consts import COVERAGE_ARROW, DEFAULT_REFERENCE
from pgvlift_core.errors import ConfigError
from pgvlift_core.interval_utils import read_intervals
from pgvlift_core.logger import logger
from pgvlift_core.reference_metadata import ReferenceMetadata, default_settings_path, load_reference
from pgvlift_tracks.cohort import (
    Cohort,
    RowResult,
    RowStatus,
    as_bool,
    as_int,
    log_summary,
    map_rows,
    row_value,
    validate_cohort_columns,
    validate_cores,
)
from pgvlift_tracks.scatterplot import granges_to_arrow_scatterplot, normalize_coverage, write_scatterplot_arrow

REQUIRED_COLUMNS = [
    "pair",
    "tumor_coverage",
    "denoised_coverage_field",
    "denoised_coverage_color_field",
    "denoised_coverage_bin_width",
    "denoised_coverage_apply_mask",
]


def lift_denoised_coverage_row(
    row: dict, output_data_dir: str, reference: ReferenceMetadata, ref_seqinfo_json: str
) -> RowResult:
    """Write <output_data_dir>/<pair>/coverage.arrow for a single manifest row, never raises"""
    pair = str(row["pair"])
    try:
        pair_dir = Path(output_data_dir) / pair
        pair_dir.mkdir(parents=True, exist_ok=True)
        out_file = pair_dir / COVERAGE_ARROW

        tumor_coverage = row_value(row, "tumor_coverage")
        if tumor_coverage is None or not Path(tumor_coverage).is_file():
            logger.warning(f"Tumor coverage file missing for {pair}")
            return RowResult(pair, RowStatus.SKIPPED, message="Tumor coverage file missing")

        field = row_value(row, "denoised_coverage_field")
        cov = normalize_coverage(read_intervals(tumor_coverage), field)

        arrow_table = granges_to_arrow_scatterplot(
            cov,
            field=field,
            ref=reference.name,
            cov_color_field=row_value(row, "denoised_coverage_color_field"),
            ref_seqinfo_json=ref_seqinfo_json,
            bin_width=as_int(row_value(row, "denoised_coverage_bin_width")),
            mask=as_bool(row_value(row, "denoised_coverage_apply_mask")),
            reference=reference,
        )

        logger.info(f"Writing coverage arrow file for {pair}")
        write_scatterplot_arrow(arrow_table, out_file)
        return RowResult(pair, RowStatus.WRITTEN, output_file=str(out_file))
    except Exception as e:  # noqa: BLE001
        logger.error(f"Error processing {pair}: {e}")
        return RowResult(pair, RowStatus.FAILED, message=str(e))


def lift_denoised_coverage(
    cohort: Cohort, output_data_dir: str, cores: int = 1, ref_seqinfo_json: str | None = None
) -> list[RowResult]:
    """Create denoised coverage arrow files for all samples in a cohort

    Parameters
    ----------
    cohort : Cohort
        Cohort with pair, tumor_coverage and the denoised_coverage_* columns
    output_data_dir : str
        Base directory for output files, one sub-directory per pair
    cores : int
        Number of processes (default: 1)
    ref_seqinfo_json : str, optional
        PGV settings file, the bundled settings are used if not given

    Returns
    -------
    list[RowResult]
        One result per manifest row

    Raises
    ------
    ConfigError
        If the cohort, the reference or the output directory are not usable
    """
    if not isinstance(cohort, Cohort):
        raise ConfigError("Input must be a Cohort object")
    validate_cores(cores)
    validate_cohort_columns(cohort, REQUIRED_COLUMNS)

    ref_seqinfo_json = ref_seqinfo_json or default_settings_path()
    reference = load_reference(ref_seqinfo_json, cohort.reference_name)

    try:
        Path(output_data_dir).mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigError(f"Could not create output directory {output_data_dir}: {e}") from e

    worker = partial(
        lift_denoised_coverage_row,
        output_data_dir=str(output_data_dir),
        reference=reference,
        ref_seqinfo_json=ref_seqinfo_json,
    )
    results = map_rows(worker, cohort.rows(), cores=cores)
    log_summary(results, "coverage")
    return results


def get_parser():
    parser = argparse.ArgumentParser(
        prog="lift_denoised_coverage",
        description="Create denoised coverage arrow files for all samples in a cohort",
    )
    parser.add_argument("--cohort", help="cohort manifest (tsv, or csv with .csv suffix)", required=True, type=str)
    parser.add_argument("--output_data_dir", help="base directory for output files", required=True, type=str)
    parser.add_argument(
        "--reference_name", help="reference name in the settings file", required=False, default=DEFAULT_REFERENCE
    )
    parser.add_argument("--cores", help="number of processes (default: 1)", required=False, type=int, default=1)
    parser.add_argument(
        "--ref_seqinfo_json",
        help="PGV settings.json with the reference chromosome lengths and colors (default: bundled)",
        required=False,
        type=str,
    )
    parser.add_argument(
        "--verbosity",
        help="Verbosity: ERROR, WARNING, INFO, DEBUG",
        required=False,
        default="INFO",
        choices=["ERROR", "WARNING", "INFO", "DEBUG"],
    )
    return parser


def run(argv):
    parser = get_parser()
    args = parser.parse_args(argv[1:])
    logger.setLevel(getattr(logging, args.verbosity))

    cohort = Cohort.from_file(args.cohort, reference_name=args.reference_name)
    lift_denoised_coverage(cohort, args.output_data_dir, cores=args.cores, ref_seqinfo_json=args.ref_seqinfo_json)
    return 0


def main():
    return run(sys.argv)


if __name__ == "__main__":
    sys.exit(main())
