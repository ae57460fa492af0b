"""Reference (coordinate system) metadata as consumed by the PGV front end.

The metadata document is the ``settings.json`` shipped with PGV::

    {"coordinates": {"default": "hg19",
                     "sets": {"hg19": [{"chromosome": "1", "length": 249250621, "color": "#8DD3C7"}, ...]}}}

The order of the records in a set defines the order of the chromosomes on the
concatenated (global) axis.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd
from pgvlift_core.consts import CHROMOSOME, COLOR, LENGTH
from pgvlift_core.errors import ConfigError
from pgvlift_core.logger import logger

BASE_PATH = Path(__file__).parent  # should be: src/core/pgvlift_core


def default_settings_path() -> str:
    """Path of the settings.json bundled with the package"""
    return str(BASE_PATH / "data" / "settings.json")


def get_ref_metadata(ref_seqinfo_json: str, ref: str | None = None) -> pd.DataFrame:
    """Read the chromosome records of one reference from a PGV settings file

    Parameters
    ----------
    ref_seqinfo_json : str
        Path to the JSON settings file
    ref : str, optional
        Reference name, if not given the default reference of the file is used

    Returns
    -------
    pd.DataFrame
        One row per chromosome (chromosome, length, color, ...) in declaration order

    Raises
    ------
    ConfigError
        If the document is not a settings file or the reference cannot be resolved
    """
    try:
        with open(ref_seqinfo_json, encoding="utf-8") as f:
            meta = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Could not read reference metadata {ref_seqinfo_json}: {e}") from e

    if not isinstance(meta, dict) or "coordinates" not in meta:
        raise ConfigError("Input meta file is not a proper settings.json format.")
    coord = meta["coordinates"]

    if ref is None:
        if "default" not in coord:
            raise ConfigError(f"{ref_seqinfo_json} is missing a default coordinates attribute")
        ref = coord["default"]
        logger.info(f'No reference name provided so using default: "{ref}".')

    if "sets" not in coord:
        raise ConfigError(f"Could not find reference sets in {ref_seqinfo_json} in attribute 'sets'.")
    sets = coord["sets"]

    if ref not in sets:
        raise ConfigError(f"{ref} does not appear in set of references in {ref_seqinfo_json}")

    seq_info = pd.DataFrame.from_records(sets[ref])
    missing = [c for c in (CHROMOSOME, LENGTH) if c not in seq_info.columns]
    if missing:
        raise ConfigError(f"Reference {ref} in {ref_seqinfo_json} has records without: {', '.join(missing)}")
    seq_info[CHROMOSOME] = seq_info[CHROMOSOME].astype(str)
    seq_info.attrs["reference"] = ref
    return seq_info


@dataclass(frozen=True, eq=False)
class ReferenceMetadata:
    """Ordered chromosome records of a reference with the derived lookups

    Built once per run and passed to the transforms that need it.
    """

    name: str | None
    seqinfo: pd.DataFrame = field(repr=False)
    offsets: dict[str, int] = field(init=False, repr=False)
    colors: dict[str, str] = field(init=False, repr=False)

    def __post_init__(self):
        lengths = self.seqinfo[LENGTH].astype("int64")
        starts = lengths.cumsum() - lengths
        object.__setattr__(self, "offsets", dict(zip(self.seqinfo[CHROMOSOME], starts.astype(int), strict=True)))
        colors = {}
        if COLOR in self.seqinfo.columns:
            colors = {
                chrom: color
                for chrom, color in zip(self.seqinfo[CHROMOSOME], self.seqinfo[COLOR], strict=True)
                if pd.notna(color)
            }
        object.__setattr__(self, "colors", colors)

    @property
    def chromosomes(self) -> list[str]:
        return list(self.seqinfo[CHROMOSOME])

    @property
    def genome_length(self) -> int:
        return int(self.seqinfo[LENGTH].sum())


def load_reference(ref_seqinfo_json: str | None = None, ref: str | None = None) -> ReferenceMetadata:
    """Resolve a reference into a ReferenceMetadata, falling back to the bundled settings file"""
    if ref_seqinfo_json is None:
        ref_seqinfo_json = default_settings_path()
    seq_info = get_ref_metadata(ref_seqinfo_json, ref)
    return ReferenceMetadata(name=seq_info.attrs.get("reference", ref), seqinfo=seq_info)
