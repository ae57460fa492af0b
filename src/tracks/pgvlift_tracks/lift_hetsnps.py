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
#    Create hetsnps (major/minor allele counts) arrow files (PGV scatterplot) for all samples in a cohort.
# CHANGELOG in reverse chronological order

import argparse
import logging
import sys
from functools import partial
from pathlib import Path

from pgvlift_core.color_utils import color_names_to_hex
from pgvlift_core.consts import (
    ALLELE_COLOR_FIELD,
    DEFAULT_MAX_NORMAL_FREQ,
    DEFAULT_MIN_NORMAL_FREQ,
    DEFAULT_REFERENCE,
    HETSNPS_ARROW,
)
from pgvlift_core.errors import ConfigError
from pgvlift_core.logger import logger
from pgvlift_core.reference_metadata import ReferenceMetadata, default_settings_path, load_reference
from pgvlift_tracks.cohort import (
    Cohort,
    RowResult,
    RowStatus,
    as_int,
    log_summary,
    map_rows,
    row_value,
    validate_cohort_columns,
    validate_cores,
)
from pgvlift_tracks.hetsnps import subsample_hetsnps
from pgvlift_tracks.scatterplot import granges_to_arrow_scatterplot, write_scatterplot_arrow

REQUIRED_COLUMNS = [
    "pair",
    "het_pileups",
    "hetsnps_mask",
    "hetsnps_subsample_size",
    "hetsnps_min_normal_freq",
    "hetsnps_max_normal_freq",
    "hetsnps_field",
    "hetsnps_color_field",
    "hetsnps_bin_width",
]


def lift_hetsnps_row(row: dict, output_data_dir: str, reference: ReferenceMetadata, ref_seqinfo_json: str) -> RowResult:
    """Write <output_data_dir>/<pair>/hetsnps.arrow for a single manifest row, never raises"""
    pair = str(row["pair"])
    try:
        pair_dir = Path(output_data_dir) / pair
        pair_dir.mkdir(parents=True, exist_ok=True)
        out_file = pair_dir / HETSNPS_ARROW

        het_pileups = row_value(row, "het_pileups")
        if het_pileups is None or not Path(het_pileups).is_file():
            logger.warning(f"Het pileups file missing for {pair}")
            return RowResult(pair, RowStatus.SKIPPED, message="Het pileups file missing")

        min_normal_freq = row_value(row, "hetsnps_min_normal_freq")
        max_normal_freq = row_value(row, "hetsnps_max_normal_freq")
        hetsnps_df = subsample_hetsnps(
            het_pileups=het_pileups,
            mask=row_value(row, "hetsnps_mask"),
            sample_size=as_int(row_value(row, "hetsnps_subsample_size")),
            min_normal_freq=DEFAULT_MIN_NORMAL_FREQ if min_normal_freq is None else float(min_normal_freq),
            max_normal_freq=DEFAULT_MAX_NORMAL_FREQ if max_normal_freq is None else float(max_normal_freq),
        )

        # the scatterplot expects hexadecimal colors, not names
        hetsnps_df[ALLELE_COLOR_FIELD] = color_names_to_hex(hetsnps_df[ALLELE_COLOR_FIELD])

        # second pass with the bundled mask, on top of the mask of the row
        arrow_table = granges_to_arrow_scatterplot(
            hetsnps_df,
            field=row_value(row, "hetsnps_field"),
            ref=reference.name,
            cov_color_field=row_value(row, "hetsnps_color_field"),
            ref_seqinfo_json=ref_seqinfo_json,
            bin_width=as_int(row_value(row, "hetsnps_bin_width")),
            reference=reference,
        )

        logger.info(f"Writing hetsnps arrow file for {pair}")
        write_scatterplot_arrow(arrow_table, out_file)
        return RowResult(pair, RowStatus.WRITTEN, output_file=str(out_file))
    except Exception as e:  # noqa: BLE001
        logger.error(f"Error processing {pair}: {e}")
        return RowResult(pair, RowStatus.FAILED, message=str(e))


def lift_hetsnps(
    cohort: Cohort, output_data_dir: str, cores: int = 1, ref_seqinfo_json: str | None = None
) -> list[RowResult]:
    """Create hetsnps arrow files for all samples in a cohort

    Rows without a het pileups file are skipped and a failing row does not stop the others.
    Returns one RowResult per manifest row.
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
        lift_hetsnps_row,
        output_data_dir=str(output_data_dir),
        reference=reference,
        ref_seqinfo_json=ref_seqinfo_json,
    )
    results = map_rows(worker, cohort.rows(), cores=cores)
    log_summary(results, "hetsnps")
    return results


def get_parser():
    parser = argparse.ArgumentParser(
        prog="lift_hetsnps",
        description="Create hetsnps arrow files for all samples in a cohort",
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
    lift_hetsnps(cohort, args.output_data_dir, cores=args.cores, ref_seqinfo_json=args.ref_seqinfo_json)
    return 0


def main():
    return run(sys.argv)


if __name__ == "__main__":
    sys.exit(main())
