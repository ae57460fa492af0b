"""Color conversions so that colors can be stored in a numeric (float32) column."""

from __future__ import annotations

from collections.abc import Iterable

import numpy as np
import pandas as pd
from matplotlib import colors as mcolors
from pgvlift_core.errors import FormatError


def hex_to_numeric(color: str) -> float:
    """Convert a hexadecimal color ("#FF0000" or "FF0000") to its integer value as a float

    Raises
    ------
    FormatError
        If the color is not a hexadecimal string
    """
    if not isinstance(color, str):
        raise FormatError(f"Color must be a hexadecimal string, got {color!r}")
    digits = color.replace("#", "").strip()
    try:
        return float(int(digits, 16))
    except ValueError as e:
        raise FormatError(f"Could not parse {color!r} as a hexadecimal color") from e


def numeric_to_hex(value: float) -> str:
    """Inverse of hex_to_numeric for 24-bit colors"""
    return f"#{int(value):06X}"


def colors_to_numeric(colors: Iterable) -> np.ndarray:
    """Bulk, lenient version of hex_to_numeric: missing or malformed colors become NaN"""
    out = []
    for color in colors:
        if color is None or (not isinstance(color, str) and pd.isna(color)):
            out.append(np.nan)
            continue
        try:
            out.append(hex_to_numeric(color))
        except FormatError:
            out.append(np.nan)
    return np.array(out, dtype=float)


def color_name_to_hex(name: str) -> str:
    """Resolve a named color (e.g. "red") to its #RRGGBB representation"""
    try:
        return mcolors.to_hex(name, keep_alpha=False).upper()
    except ValueError as e:
        raise FormatError(f"Unknown color name: {name!r}") from e


def color_names_to_hex(names: Iterable[str]) -> list[str]:
    # few distinct names (major/minor) over many rows
    cache: dict[str, str] = {}
    out = []
    for name in names:
        if name not in cache:
            cache[name] = color_name_to_hex(name)
        out.append(cache[name])
    return out
