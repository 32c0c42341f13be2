from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Union

import pandas as pd

from career_core.aggregate import column_as_series, grouped_count, numbers, placement_flags
from career_core.coerce import NA_LABEL, as_text, category_key, is_placed, to_number
from career_core.headers import normalize_header
from career_core.schema import ViewSchema

ALL = "all"
PLACEMENT_CHOICES = (ALL, "placed", "not")


def _is_unset(value: object) -> bool:
    return value is None or str(value).strip().lower() in ("", ALL)


@dataclass(frozen=True)
class SubstringPredicate:
    query: str
    field: Optional[str] = None

    def mask(self, df: pd.DataFrame) -> pd.Series:
        q = self.query.lower()
        cols = [self.field] if self.field else list(df.columns)
        out = pd.Series(False, index=df.index)
        for col in cols:
            text = column_as_series(df, col).map(as_text).str.lower()
            out |= text.str.contains(q, regex=False)
        return out


@dataclass(frozen=True)
class EqualsPredicate:
    field: str
    value: str

    def mask(self, df: pd.DataFrame) -> pd.Series:
        return column_as_series(df, self.field).map(category_key) == category_key(self.value)


@dataclass(frozen=True)
class RangePredicate:
    field: str
    minimum: Optional[float] = None
    maximum: Optional[float] = None

    def mask(self, df: pd.DataFrame) -> pd.Series:
        # malformed cells coerce to 0 and are compared like any other value
        vals = numbers(df, self.field)
        out = pd.Series(True, index=df.index)
        if self.minimum is not None:
            out &= vals >= self.minimum
        if self.maximum is not None:
            out &= vals <= self.maximum
        return out


@dataclass(frozen=True)
class StatusPredicate:
    field: str
    placed: bool = True
    mode: str = "label"

    def mask(self, df: pd.DataFrame) -> pd.Series:
        flags = placement_flags(df, self.field, mode=self.mode)
        return flags if self.placed else ~flags


FilterPredicate = Union[SubstringPredicate, EqualsPredicate, RangePredicate, StatusPredicate]


@dataclass(frozen=True)
class ViewFilters:
    search: str = ""
    equals: Dict[str, str] = field(default_factory=dict)
    value_min: str = ""
    value_max: str = ""
    placed: str = ALL
    top_n: int = 10
    page: int = 1


def _as_int(value: object, default: int) -> int:
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default


def _placement_choice(value: object) -> str:
    # status wording such as "Not Placed" or "Unplaced" is read like a status cell
    s = normalize_header(as_text(value)).lower()
    if s in PLACEMENT_CHOICES:
        return s
    if "placed" not in s:
        return ALL
    return "placed" if is_placed(s) else "not"


def normalize_filters(raw: Optional[dict], *, default_top_n: int = 10, max_top_n: int = 200) -> ViewFilters:
    raw = raw or {}

    equals = {
        normalize_header(k): str(v).strip()
        for k, v in (raw.get("equals") or {}).items()
        if normalize_header(k) and not _is_unset(v)
    }
    placed = _placement_choice(raw.get("placed"))

    top_n = max(1, min(max_top_n, _as_int(raw.get("top_n", default_top_n), default_top_n)))
    page = max(1, _as_int(raw.get("page", 1), 1))

    return ViewFilters(
        search=str(raw.get("search") or "").strip(),
        equals=equals,
        value_min=str(raw.get("value_min") or "").strip(),
        value_max=str(raw.get("value_max") or "").strip(),
        placed=placed,
        top_n=top_n,
        page=page,
    )


def build_predicates(filters: ViewFilters, view: ViewSchema) -> List[FilterPredicate]:
    preds: List[FilterPredicate] = []
    if filters.search:
        preds.append(SubstringPredicate(filters.search))
    for col, value in filters.equals.items():
        preds.append(EqualsPredicate(col, value))
    if view.range_field and (filters.value_min or filters.value_max):
        preds.append(
            RangePredicate(
                view.range_field,
                minimum=to_number(filters.value_min) if filters.value_min else None,
                maximum=to_number(filters.value_max) if filters.value_max else None,
            )
        )
    if view.status_field and filters.placed != ALL:
        preds.append(StatusPredicate(view.status_field, placed=filters.placed == "placed", mode=view.status_mode))
    return preds


def apply_filters(df: pd.DataFrame, predicates: Sequence[FilterPredicate]) -> pd.DataFrame:
    """Rows for which every predicate holds; the input frame is left untouched."""
    if df.empty or not predicates:
        return df.copy()
    mask = pd.Series(True, index=df.index)
    for pred in predicates:
        mask &= pred.mask(df)
    return df[mask].copy()


def filter_options(df: pd.DataFrame, view: ViewSchema) -> Dict[str, List[str]]:
    options: Dict[str, List[str]] = {}
    for col in view.category_filters:
        if col not in df.columns:
            continue
        options[col] = [r["category"] for r in grouped_count(df, col) if r["category"] != NA_LABEL]
    return options
