"""Conversion of interval tables into the (x, y, color) arrow files drawn by the PGV scatterplot."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd
import pyarrow as pa
from pgvlift_core.color_utils import colors_to_numeric
from pgvlift_core.consts import (
    COLOR,
    DEFAULT_COLOR_NUMERIC,
    DEFAULT_COVERAGE_BIN_WIDTH,
    DEFAULT_COVERAGE_FIELD,
    DEFAULT_REFERENCE,
    END,
    NEW_START,
    PLOIDY,
    READ_LENGTH,
    SEQNAMES,
    START,
    X,
    Y,
)
from pgvlift_core.errors import InputError
from pgvlift_core.interval_utils import apply_mask, harmonize_chromosome_names, read_intervals, read_mask
from pgvlift_core.logger import logger
from pgvlift_core.reference_metadata import ReferenceMetadata, default_settings_path, load_reference
from pyarrow import feather

SCATTERPLOT_SCHEMA = pa.schema([(X, pa.float32()), (Y, pa.float32()), (COLOR, pa.float32())])

_WEIGHTED_VALUE = "_weighted_value"
_WEIGHT = "_weight"


def normalize_coverage(
    intervals: pd.DataFrame, field: str, read_length: int = READ_LENGTH, ploidy: int = PLOIDY
) -> pd.DataFrame:
    """Per-base read-length/ploidy correction of a coverage field: value * ploidy * read_length / width"""
    if field not in intervals.columns:
        raise InputError(f"Coverage field {field} not found in intervals")
    widths = intervals[END] - intervals[START] + 1
    out = intervals.copy()
    out[field] = pd.to_numeric(out[field], errors="coerce") * ploidy * read_length / widths
    return out


def _is_missing(value) -> bool:
    return value is None or (not isinstance(value, str) and pd.isna(value))


def rebin_to_global_coordinates(
    intervals: pd.DataFrame,
    field: str,
    reference: ReferenceMetadata,
    bin_width: int | None = DEFAULT_COVERAGE_BIN_WIDTH,
    color_field: str | None = None,
) -> pd.DataFrame:
    """Place intervals on the concatenated genome axis of a reference and aggregate them into bins

    Parameters
    ----------
    intervals : pd.DataFrame
        Interval table (seqnames, start, end, ...)
    field : str
        Value column to aggregate
    reference : ReferenceMetadata
        Reference defining chromosome order and offsets
    bin_width : int, optional
        Bin width in bases. Missing or <= 1 keeps one point per interval at offset + start.
        Otherwise every interval falls in the tile holding its midpoint, the point is placed at
        offset + tile start and values are averaged weighted by interval width.
    color_field : str, optional
        Color column, kept in the output and part of the bin key so that differently colored
        series are aggregated separately

    Returns
    -------
    pd.DataFrame
        Columns seqnames, new_start, <field> and <color_field> if given
    """
    for col in [field] + ([color_field] if color_field is not None else []):
        if col not in intervals.columns:
            raise InputError(f"Column {col} not found in intervals")

    seqnames = harmonize_chromosome_names(intervals[SEQNAMES], reference.chromosomes)
    offsets = seqnames.map(reference.offsets)
    unknown = offsets.isna()
    if unknown.any():
        logger.warning(
            f"Dropping {int(unknown.sum())} intervals on chromosomes missing from reference {reference.name}: "
            f"{', '.join(sorted(seqnames[unknown].unique()))}"
        )
    known = ~unknown.to_numpy()
    df = intervals.loc[known]
    seqnames = seqnames[known]
    offsets = offsets[known].astype("int64")
    values = pd.to_numeric(df[field], errors="coerce")
    keys = [SEQNAMES, NEW_START] + ([color_field] if color_field is not None else [])

    if _is_missing(bin_width) or bin_width <= 1:
        out = pd.DataFrame(
            {SEQNAMES: seqnames.to_numpy(), NEW_START: (offsets + df[START]).to_numpy(), field: values.to_numpy()}
        )
        if color_field is not None:
            out[color_field] = df[color_field].to_numpy()
        return out[keys + [field]]

    width = int(bin_width)
    midpoints = (df[START] + df[END]) // 2
    tile_starts = ((midpoints - 1) // width) * width + 1
    weights = (df[END] - df[START] + 1).clip(lower=1).astype(float)
    binned = pd.DataFrame(
        {
            SEQNAMES: seqnames.to_numpy(),
            NEW_START: (offsets + tile_starts).to_numpy(),
            _WEIGHTED_VALUE: (values * weights).to_numpy(),
            _WEIGHT: weights.where(values.notna(), 0.0).to_numpy(),
        }
    )
    if color_field is not None:
        binned[color_field] = df[color_field].to_numpy()

    grouped = binned.groupby(keys, sort=False, dropna=False)[[_WEIGHTED_VALUE, _WEIGHT]].sum().reset_index()
    grouped[field] = grouped[_WEIGHTED_VALUE] / grouped[_WEIGHT].where(grouped[_WEIGHT] > 0)
    return grouped[keys + [field]]


def scatterplot_table(points: pd.DataFrame) -> pa.Table:
    """Finalize x/y/color points into the arrow table expected by the front end

    Missing colors are set to black (0), points without y are removed and points are sorted by x.
    """
    outdt = points[[X, Y, COLOR]].copy()
    outdt[COLOR] = outdt[COLOR].fillna(DEFAULT_COLOR_NUMERIC)
    outdt = outdt[outdt[Y].notna()]
    outdt = outdt.sort_values(X, kind="mergesort").reset_index(drop=True)
    return pa.Table.from_pandas(outdt.astype(np.float32), schema=SCATTERPLOT_SCHEMA, preserve_index=False)


def granges_to_arrow_scatterplot(  # noqa: PLR0913
    gr_path: str | Path | pd.DataFrame,
    field: str = DEFAULT_COVERAGE_FIELD,
    ref: str | None = DEFAULT_REFERENCE,
    cov_color_field: str | None = None,
    ref_seqinfo_json: str | None = default_settings_path(),
    bin_width: int | None = DEFAULT_COVERAGE_BIN_WIDTH,
    *,
    mask: bool = True,
    mask_path: str | None = None,
    reference: ReferenceMetadata | None = None,
) -> pa.Table:
    """Convert an interval table into an arrow scatterplot table

    Parameters
    ----------
    gr_path : str, Path or pd.DataFrame
        Interval file (see read_intervals) or an in-memory interval table
    field : str
        Column used as the y axis
    ref : str, optional
        Reference name in ref_seqinfo_json
    cov_color_field : str, optional
        Column holding the hexadecimal color of each point. If not given, points are colored by
        the chromosome color of the reference
    ref_seqinfo_json : str, optional
        PGV settings file with the reference chromosome lengths and colors. If None, the bundled
        settings are used for the coordinates and all points are colored black
    bin_width : int, optional
        Bin width for rebinning (default: 10000)
    mask : bool
        Whether to remove intervals overlapping the mask (default: True)
    mask_path : str, optional
        Mask file, the bundled mask is used if not given
    reference : ReferenceMetadata, optional
        Already resolved reference, takes precedence over ref/ref_seqinfo_json for the coordinates

    Returns
    -------
    pa.Table
        Table with float32 columns x, y and color sorted by x

    Raises
    ------
    InputError
        If gr_path is neither an existing interval file nor an interval table
    """
    intervals = read_intervals(gr_path)

    if mask:
        intervals = apply_mask(intervals, read_mask(mask_path))

    if reference is None:
        reference = load_reference(ref_seqinfo_json, ref)

    logger.info("Preparing intervals for conversion to arrow format")
    dat = rebin_to_global_coordinates(intervals, field, reference, bin_width=bin_width, color_field=cov_color_field)

    if cov_color_field is not None:
        color = colors_to_numeric(dat[cov_color_field])
    elif ref_seqinfo_json is not None:
        color = colors_to_numeric(dat[SEQNAMES].map(reference.colors))
    else:
        color = np.full(len(dat), DEFAULT_COLOR_NUMERIC)

    points = pd.DataFrame({X: dat[NEW_START].to_numpy(), Y: dat[field].to_numpy(), COLOR: color})
    return scatterplot_table(points)


def write_scatterplot_arrow(table: pa.Table | pd.DataFrame, output_path: str | Path) -> str:
    """Write a scatterplot table as an uncompressed arrow (feather v2) file, overwriting existing files"""
    if isinstance(table, pd.DataFrame):
        table = scatterplot_table(table)
    feather.write_feather(table, str(output_path), compression="uncompressed")
    return str(output_path)


def read_scatterplot_arrow(path: str | Path) -> pa.Table:
    return feather.read_table(str(path))
