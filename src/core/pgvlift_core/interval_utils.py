"""Reading interval tables and excluding masked regions.

Interval tables are pandas DataFrames in the GRanges convention: ``seqnames``,
``start`` and ``end`` columns, 1-based and closed, plus any number of value columns.
BED files are converted from their 0-based half-open convention on read.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

import numpy as np
import pandas as pd
import pyranges as pr
from pgvlift_core.consts import (
    COLUMN_ALIASES,
    END,
    INTERVAL_COLUMNS,
    MASK_ANNOTATION,
    SEQNAMES,
    START,
    UCSC_PREFIX,
    FileExtension,
)
from pgvlift_core.errors import InputError
from pgvlift_core.logger import logger

BASE_PATH = Path(__file__).parent  # should be: src/core/pgvlift_core
ROW_ID = "_row_id"
MITOCHONDRIA_ENSEMBL = "MT"


def default_mask_path() -> str:
    """Path of the default mask bundled with the package (hg19 centromeres)"""
    return str(BASE_PATH / "data" / "mask_hg19.bed")


def _read_bed(path: str) -> pd.DataFrame:
    df = pd.read_csv(path, sep="\t", header=None, comment="#")
    if df.shape[1] < len(INTERVAL_COLUMNS):
        raise InputError(f"BED file {path} has fewer than 3 columns")
    df.columns = INTERVAL_COLUMNS + [f"V{i}" for i in range(len(INTERVAL_COLUMNS) + 1, df.shape[1] + 1)]
    df[START] = df[START] + 1
    return df


def _read_table(path: str) -> pd.DataFrame:
    suffixes = [s.lower() for s in Path(path).suffixes]
    if suffixes and suffixes[-1] == FileExtension.GZ.value:
        suffixes = suffixes[:-1]
    suffix = suffixes[-1] if suffixes else ""

    if suffix == FileExtension.PARQUET.value:
        return pd.read_parquet(path)
    if suffix in (FileExtension.FEATHER.value, FileExtension.ARROW.value):
        return pd.read_feather(path)
    if suffix == FileExtension.CSV.value:
        return pd.read_csv(path)
    if suffix in (FileExtension.TSV.value, FileExtension.TXT.value):
        return pd.read_csv(path, sep="\t")
    if suffix == FileExtension.BED.value:
        return _read_bed(path)
    if suffix == FileExtension.PKL.value:
        df = pd.read_pickle(path)  # noqa: S301
        if not isinstance(df, pd.DataFrame):
            raise InputError(f"{path} does not hold an interval table")
        return df
    raise InputError(f"Unsupported interval file format: {path}")


def normalize_interval_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Rename common aliases (chrom, Start, ...) to seqnames/start/end and check they are present"""
    df = df.rename(columns={k: v for k, v in COLUMN_ALIASES.items() if k in df.columns and v not in df.columns})
    missing = [c for c in INTERVAL_COLUMNS if c not in df.columns]
    if missing:
        raise InputError(f"Interval table is missing columns: {', '.join(missing)}")
    df[SEQNAMES] = df[SEQNAMES].astype(str)
    return df


def read_intervals(intervals: str | Path | pd.DataFrame) -> pd.DataFrame:
    """Load an interval table from a supported file, or validate an in-memory one

    Parameters
    ----------
    intervals : str, Path or pd.DataFrame
        Path to a .parquet, .feather/.arrow, .csv, .tsv/.txt (optionally gzipped), .bed or .pkl file,
        or a DataFrame with seqnames/start/end columns

    Returns
    -------
    pd.DataFrame
        A copy of the table with normalized interval columns

    Raises
    ------
    InputError
        If the path does not exist, the format is not supported or interval columns are missing
    """
    if isinstance(intervals, pd.DataFrame):
        df = intervals.copy()
    elif isinstance(intervals, (str, Path)):
        path = str(intervals)
        if not Path(path).is_file():
            raise InputError(f"Please provide a valid path to an interval file: {path} does not exist")
        try:
            df = _read_table(path)
        except InputError:
            raise
        except (OSError, ValueError) as e:
            raise InputError(f"Could not read interval file {path}: {e}") from e
    else:
        raise InputError(f"Please provide a valid interval table or path, got {type(intervals).__name__}")
    return normalize_interval_columns(df)


def detect_contig_style(contigs: Iterable[str]) -> str:
    """Naming style of a set of chromosomes, ucsc when at least half carry the chr prefix, else ensembl"""
    names = [str(c) for c in contigs if c]
    if not names:
        return "unknown"
    n_prefixed = sum(name.startswith(UCSC_PREFIX) for name in names)
    return "ucsc" if n_prefixed >= max(1, len(names) // 2) else "ensembl"


def remap_contig(contig: str, style: str) -> str:
    """Rename one chromosome to the ucsc (chr1, chrM) or ensembl (1, MT) naming, other styles are left as is"""
    bare = contig[len(UCSC_PREFIX) :] if contig.startswith(UCSC_PREFIX) else contig
    if style == "ensembl":
        return MITOCHONDRIA_ENSEMBL if bare == "M" else bare
    if style == "ucsc":
        return f"{UCSC_PREFIX}M" if bare == MITOCHONDRIA_ENSEMBL else f"{UCSC_PREFIX}{bare}"
    return contig


def harmonize_chromosome_names(seqnames: pd.Series, target_names: Iterable[str]) -> pd.Series:
    """Rename chromosomes to the naming style (chr1 vs 1) used by target_names"""
    style = detect_contig_style(list(target_names))
    if style == "unknown" or detect_contig_style(seqnames.unique()) == style:
        return seqnames.astype(str)
    mapping = {c: remap_contig(c, style) for c in seqnames.unique()}
    return seqnames.map(mapping).astype(str)


def read_mask(mask_path: str | None = None) -> pd.DataFrame:
    """Read the mask intervals, defaulting to the bundled mask"""
    if mask_path is None:
        mask_path = default_mask_path()
    return read_intervals(mask_path)


def _to_pyranges(seqnames: pd.Series, df: pd.DataFrame, **extra_columns) -> pr.PyRanges:
    return pr.PyRanges(
        pd.DataFrame(
            {
                "Chromosome": seqnames.to_numpy(),
                "Start": df[START].to_numpy().astype("int64") - 1,
                "End": df[END].to_numpy().astype("int64"),
                **extra_columns,
            }
        )
    )


def annotate_mask(intervals: pd.DataFrame, mask: pd.DataFrame) -> pd.Series:
    """Number of mask intervals overlapping each interval, aligned to the rows of intervals"""
    counts = pd.Series(0, index=intervals.index, name=MASK_ANNOTATION, dtype="int64")
    if intervals.empty or mask.empty:
        return counts
    seqnames = harmonize_chromosome_names(intervals[SEQNAMES], mask[SEQNAMES].unique())
    gr = _to_pyranges(seqnames, intervals, **{ROW_ID: np.arange(len(intervals))})
    mask_gr = _to_pyranges(mask[SEQNAMES].astype(str), mask)
    annotated = gr.count_overlaps(mask_gr, overlap_col=MASK_ANNOTATION).df
    if annotated.empty:
        return counts
    per_row = np.zeros(len(intervals), dtype="int64")
    per_row[annotated[ROW_ID].to_numpy()] = annotated[MASK_ANNOTATION].to_numpy()
    counts[:] = per_row
    return counts


def apply_mask(intervals: pd.DataFrame, mask: pd.DataFrame) -> pd.DataFrame:
    """Remove every interval overlapping at least one mask interval

    Whole intervals are removed, partially overlapping intervals are not trimmed.
    Row order and columns of the input are kept.
    """
    annotated = intervals.assign(**{MASK_ANNOTATION: annotate_mask(intervals, mask)})
    kept = annotated[annotated[MASK_ANNOTATION] == 0].drop(columns=MASK_ANNOTATION)
    logger.debug(f"mask removed {len(intervals) - len(kept)} of {len(intervals)} intervals")
    return kept.reset_index(drop=True)
