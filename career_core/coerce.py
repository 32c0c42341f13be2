from __future__ import annotations

import math
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

import numpy as np
import pandas as pd

from career_core.headers import normalize_header

NA_LABEL = "NA"

_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_NOT_PLACED = re.compile(r"\b(non|not|un)[\s\-]*placed\b")


def is_blank(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if value is pd.NA or value is pd.NaT:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def as_text(value: object) -> str:
    """String form of a raw cell: blanks become "", whole floats lose their ".0"."""
    if is_blank(value):
        return ""
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        return str(int(value))
    if isinstance(value, pd.Timestamp):
        return value.isoformat()
    return str(value).strip()


def parse_number(value: object) -> float:
    """Strip everything except digits, '.' and '-', then parse; nan when nothing parses."""
    if isinstance(value, bool):
        return float("nan")
    if isinstance(value, (int, float, np.integer, np.floating)):
        out = float(value)
        return out if math.isfinite(out) else float("nan")
    if is_blank(value):
        return float("nan")
    s = _NON_NUMERIC.sub("", str(value))
    try:
        out = float(s)
    except ValueError:
        return float("nan")
    return out if math.isfinite(out) else float("nan")


def to_number(value: object) -> float:
    """Forgiving numeric coercion: anything that does not parse to a finite number is 0."""
    out = parse_number(value)
    return out if math.isfinite(out) else 0.0


def numeric_series(series: pd.Series, *, strict: bool = False) -> pd.Series:
    fn = parse_number if strict else to_number
    return series.map(fn).astype(float)


def category_label(value: object) -> str:
    label = normalize_header(as_text(value))
    return label or NA_LABEL


def category_key(value: object) -> str:
    return category_label(value).casefold()


def is_placed(value: object) -> bool:
    """True for "Placed"-style status text; "Not Placed", "Non Placed", "Unplaced" are False."""
    s = normalize_header(as_text(value)).lower()
    if "placed" not in s:
        return False
    return _NOT_PLACED.search(s) is None


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def safe_ratio(numerator: float, denominator: float, *, scale: float = 100.0, ndigits: Optional[int] = 0) -> float:
    if not denominator:
        return 0.0
    out = numerator / denominator * scale
    if ndigits is None:
        return float(out)
    return round_half_up(out, ndigits) or 0.0


def first_non_blank(values: Iterable[object]) -> object:
    for v in values:
        if not is_blank(v):
            return v
    return ""
