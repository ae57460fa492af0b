"""Allelic (major/minor) read counts of heterozygous SNPs and their subsampling for display."""

from __future__ import annotations

import csv
from pathlib import Path

import numpy as np
import pandas as pd
from pgvlift_core.consts import (
    ALLELE,
    ALLELE_COLOR_FIELD,
    ALLELE_COLORS,
    ALT_COUNT_TUMOR,
    ALT_FRAC_NORMAL,
    ALT_FRAC_TUMOR,
    COUNT,
    DEFAULT_MAX_NORMAL_FREQ,
    DEFAULT_MIN_NORMAL_FREQ,
    DEFAULT_SUBSAMPLE_SIZE,
    INTERVAL_COLUMNS,
    MAJOR,
    MAJOR_COUNT,
    MINOR,
    MINOR_COUNT,
    REF_COUNT_TUMOR,
    SUBSAMPLE_SEED,
    WHICH_MAJOR,
)
from pgvlift_core.errors import InputError
from pgvlift_core.interval_utils import apply_mask, normalize_interval_columns, read_intervals, read_mask
from pgvlift_core.logger import logger


def read_het_pileups(het_pileups: str | Path) -> pd.DataFrame:
    """Read a delimited het pileups (sites.txt) table, possibly compressed, sniffing its separator"""
    if het_pileups is None or not Path(het_pileups).is_file():
        raise InputError("Please provide a valid path to a hetsnps file.")
    try:
        hetsnps_df = pd.read_csv(het_pileups, sep=None, engine="python")
    except (OSError, ValueError, csv.Error) as e:
        raise InputError(f"Could not read hetsnps file {het_pileups}: {e}") from e
    hetsnps_df = normalize_interval_columns(hetsnps_df)
    missing = [c for c in (REF_COUNT_TUMOR, ALT_COUNT_TUMOR) if c not in hetsnps_df.columns]
    if missing:
        raise InputError(f"hetsnps file {het_pileups} is missing columns: {', '.join(missing)}")
    return hetsnps_df


def add_allele_counts(hetsnps_df: pd.DataFrame) -> pd.DataFrame:
    """Add which.major, major.count and minor.count columns from the tumor ref/alt counts

    The alt allele is major only when its count is strictly larger, ties go to ref.
    """
    alt_is_major = hetsnps_df[ALT_COUNT_TUMOR] > hetsnps_df[REF_COUNT_TUMOR]
    out = hetsnps_df.copy()
    out[WHICH_MAJOR] = np.where(alt_is_major, "alt", "ref")
    out[MAJOR_COUNT] = np.where(alt_is_major, out[ALT_COUNT_TUMOR], out[REF_COUNT_TUMOR])
    out[MINOR_COUNT] = np.where(alt_is_major, out[REF_COUNT_TUMOR], out[ALT_COUNT_TUMOR])
    return out


def make_allelic_hetsnps(
    het_pileups: str | Path,
    min_normal_freq: float = DEFAULT_MIN_NORMAL_FREQ,
    max_normal_freq: float = DEFAULT_MAX_NORMAL_FREQ,
) -> pd.DataFrame:
    """Melted hetsnps table with allelic (major/minor) counts

    Parameters
    ----------
    het_pileups : str
        Path to sites.txt with hetsnps (seqnames, start, end, ref.count.t, alt.count.t, alt.frac.n, ...)
    min_normal_freq : float
        In [0, 1], min alt frequency in normal to count as het site
    max_normal_freq : float
        In [0, 1], max alt frequency in normal to count as het site

    Returns
    -------
    pd.DataFrame
        Two rows per site, all major rows followed by all minor rows:
        seqnames, start, end, count, allele ("major"/"minor")
    """
    hetsnps_df = read_het_pileups(het_pileups)

    if ALT_FRAC_NORMAL in hetsnps_df.columns and ALT_FRAC_TUMOR in hetsnps_df.columns:
        hetsnps_df = hetsnps_df[
            (hetsnps_df[ALT_FRAC_NORMAL] > min_normal_freq) & (hetsnps_df[ALT_FRAC_NORMAL] < max_normal_freq)
        ]
    else:
        logger.warning(
            f"{ALT_FRAC_NORMAL}/{ALT_FRAC_TUMOR} not found in {het_pileups}, sites are not filtered for heterozygosity"
        )

    hetsnps_df = add_allele_counts(hetsnps_df)

    sites = hetsnps_df[INTERVAL_COLUMNS]
    hetsnps_melted = pd.concat(
        (
            sites.assign(**{COUNT: hetsnps_df[MAJOR_COUNT], ALLELE: MAJOR}),
            sites.assign(**{COUNT: hetsnps_df[MINOR_COUNT], ALLELE: MINOR}),
        ),
        ignore_index=True,
    )
    return hetsnps_melted


def subsample_hetsnps(  # noqa: PLR0913
    het_pileups: str | Path,
    mask: str | Path | pd.DataFrame | None = None,
    sample_size: int | None = DEFAULT_SUBSAMPLE_SIZE,
    min_normal_freq: float = DEFAULT_MIN_NORMAL_FREQ,
    max_normal_freq: float = DEFAULT_MAX_NORMAL_FREQ,
    seed: int = SUBSAMPLE_SEED,
) -> pd.DataFrame:
    """Subset the hetsnps to masked unique sites and color them by major/minor allele

    Parameters
    ----------
    het_pileups : str
        sites.txt from het pileups
    mask : str or pd.DataFrame, optional
        Masked regions, the bundled mask is used if not given
    sample_size : int, optional
        Number of sites to randomly sample, all sites are kept if None
    min_normal_freq, max_normal_freq : float
        Heterozygosity bounds passed to make_allelic_hetsnps
    seed : int
        Seed of the site sampling

    Returns
    -------
    pd.DataFrame
        Melted allelic rows (both alleles) of the sampled sites, with a color name column "col"
    """
    if het_pileups is None:
        raise InputError("Please provide a valid path to a hetsnps file.")

    if mask is None:
        logger.warning("No mask provided, using default mask.")
        mask_df = read_mask()
    else:
        mask_df = read_intervals(mask)

    allelic_hetsnps = make_allelic_hetsnps(
        het_pileups,
        min_normal_freq=min_normal_freq,
        max_normal_freq=max_normal_freq,
    )
    allelic_hetsnps = apply_mask(allelic_hetsnps, mask_df)

    allelic_hetsnps[ALLELE_COLOR_FIELD] = np.where(
        allelic_hetsnps[ALLELE] == MAJOR, ALLELE_COLORS[MAJOR], ALLELE_COLORS[MINOR]
    )

    unique_snps = allelic_hetsnps[INTERVAL_COLUMNS].drop_duplicates().reset_index(drop=True)
    n_snps = len(unique_snps)
    logger.info(f"{n_snps} snps found")

    # fewer points for the front-end scatterplot
    if sample_size is not None and not pd.isna(sample_size) and n_snps > sample_size:
        sample_size = int(sample_size)
        logger.info(f"subsampling {sample_size} points...")
        rng = np.random.default_rng(seed)
        snps_to_include = unique_snps.iloc[np.sort(rng.choice(n_snps, size=sample_size, replace=False))]
    else:
        snps_to_include = unique_snps

    return allelic_hetsnps.merge(snps_to_include, on=INTERVAL_COLUMNS, how="inner")
