"""Aggregation primitives shared by every analysis view.

Each helper is a pure function of a (filtered) frame and returns plain lists of
dicts ready for JSON. Grouping always goes through `category_key`, so values
that differ only by case or whitespace land in the same group, blanks group as
"NA", and a column missing from the upload behaves like an all-blank column.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from career_core.coerce import (
    NA_LABEL,
    category_key,
    category_label,
    first_non_blank,
    is_placed,
    numeric_series,
    round_half_up,
    safe_ratio,
)

Record = Dict[str, Any]


# ---------------- Column access ----------------
def column_as_series(df: pd.DataFrame, col: str) -> pd.Series:
    if col not in df.columns:
        return pd.Series([""] * len(df), index=df.index, dtype=object)
    val = df[col]
    if isinstance(val, pd.DataFrame):
        return val.iloc[:, 0]
    return val


def first_present(df: pd.DataFrame, cols: Sequence[str]) -> pd.Series:
    """Per row, the first non-blank value among `cols`."""
    present = [c for c in cols if c in df.columns]
    if not present:
        return column_as_series(df, cols[0] if cols else "")
    if len(present) == 1:
        return column_as_series(df, present[0])
    if df.empty:
        return pd.Series([], index=df.index, dtype=object)
    return df[present].apply(lambda r: first_non_blank(r.tolist()), axis=1).astype(object)


def numbers(df: pd.DataFrame, col: str, *, strict: bool = False) -> pd.Series:
    return numeric_series(column_as_series(df, col), strict=strict)


def placement_flags(df: pd.DataFrame, col: str, *, mode: str = "label") -> pd.Series:
    """Placed flag per row: status text for student sheets, placed count > 0 for summaries."""
    if mode == "count":
        return numbers(df, col) > 0
    return column_as_series(df, col).map(is_placed).astype(bool)


def _as_series(df: pd.DataFrame, by: Any) -> pd.Series:
    if isinstance(by, pd.Series):
        return by.reindex(df.index)
    return column_as_series(df, by)


def _groups(df: pd.DataFrame, by: Any) -> Tuple[pd.Series, Dict[str, str]]:
    values = _as_series(df, by)
    keys = values.map(category_key)
    labels: Dict[str, str] = {}
    for key, raw in zip(keys, values):
        if key not in labels:
            labels[key] = category_label(raw)
    return keys, labels


def _natural_key(label: str) -> Tuple[int, float, str]:
    try:
        return (0, float(label), label)
    except ValueError:
        return (1, math.inf, label.casefold())


def _ordered(records: List[Record], order: str, key: str = "category") -> List[Record]:
    if order == "natural":
        return sorted(records, key=lambda r: _natural_key(str(r[key])))
    return records


def _num(value: float, ndigits: Optional[int]) -> float:
    if ndigits is None:
        return float(value)
    return round_half_up(value, ndigits) or 0.0


# ---------------- Grouped metrics ----------------
def grouped_count(df: pd.DataFrame, by: Any, *, order: str = "first_seen", skip_blank: bool = False) -> List[Record]:
    if df.empty:
        return []
    keys, labels = _groups(df, by)
    counts = keys.value_counts(sort=False)
    out = [
        {"category": labels[k], "value": int(counts[k])}
        for k in labels
        if not (skip_blank and labels[k] == NA_LABEL)
    ]
    return _ordered(out, order)


def grouped_sum(df: pd.DataFrame, by: Any, value_col: str, *, order: str = "first_seen") -> List[Record]:
    if df.empty:
        return []
    keys, labels = _groups(df, by)
    sums = numbers(df, value_col).groupby(keys, sort=False).sum()
    return _ordered([{"category": labels[k], "value": float(sums[k])} for k in labels], order)


def grouped_mean(
    df: pd.DataFrame,
    by: Any,
    value_col: str,
    *,
    positive_only: bool = False,
    ndigits: Optional[int] = 0,
    order: str = "first_seen",
) -> List[Record]:
    """Mean of a numeric column per group; a group with no usable values reports 0."""
    if df.empty:
        return []
    keys, labels = _groups(df, by)
    vals = numbers(df, value_col)
    if positive_only:
        vals = vals.where(vals > 0)
    stats = vals.groupby(keys, sort=False).agg(["sum", "count"])
    out = []
    for k in labels:
        total, count = float(stats.loc[k, "sum"]), int(stats.loc[k, "count"])
        out.append({"category": labels[k], "value": _num(total / count, ndigits) if count else 0.0})
    return _ordered(out, order)


def grouped_max(df: pd.DataFrame, by: Any, value_col: str, *, order: str = "first_seen") -> List[Record]:
    if df.empty:
        return []
    keys, labels = _groups(df, by)
    maxes = numbers(df, value_col).groupby(keys, sort=False).max()
    return _ordered([{"category": labels[k], "value": float(maxes[k])} for k in labels], order)


def grouped_percentage(
    df: pd.DataFrame,
    by: Any,
    flags: pd.Series,
    *,
    ndigits: Optional[int] = 0,
    order: str = "first_seen",
) -> List[Record]:
    """Share of flagged rows within each group (denominator is the group's own row count)."""
    if df.empty:
        return []
    keys, labels = _groups(df, by)
    flags = flags.reindex(df.index).fillna(False).astype(bool)
    stats = flags.groupby(keys, sort=False).agg(["sum", "count"])
    out = []
    for k in labels:
        count, total = int(stats.loc[k, "sum"]), int(stats.loc[k, "count"])
        out.append({"category": labels[k], "count": count, "total": total, "value": safe_ratio(count, total, ndigits=ndigits)})
    return _ordered(out, order)


def grouped_ratio(
    df: pd.DataFrame,
    by: Any,
    numerator_col: str,
    denominator_col: str,
    *,
    ndigits: Optional[int] = 0,
    order: str = "first_seen",
) -> List[Record]:
    """Per group: sum(numerator) / sum(denominator) as a percentage."""
    if df.empty:
        return []
    keys, labels = _groups(df, by)
    frame = pd.DataFrame({"num": numbers(df, numerator_col), "den": numbers(df, denominator_col)})
    sums = frame.groupby(keys, sort=False).sum()
    out = []
    for k in labels:
        num, den = float(sums.loc[k, "num"]), float(sums.loc[k, "den"])
        out.append({"category": labels[k], "count": num, "total": den, "value": safe_ratio(num, den, ndigits=ndigits)})
    return _ordered(out, order)


def grouped_stack(df: pd.DataFrame, by: Any, value_cols: Dict[str, str], *, order: str = "first_seen") -> List[Record]:
    """Several numeric columns summed per group, one record per group: {category, <name>: sum, ...}."""
    if df.empty:
        return []
    keys, labels = _groups(df, by)
    frame = pd.DataFrame({name: numbers(df, col) for name, col in value_cols.items()}, index=df.index)
    sums = frame.groupby(keys, sort=False).sum()
    out = [{"category": labels[k], **{name: float(sums.loc[k, name]) for name in value_cols}} for k in labels]
    return _ordered(out, order)


# ---------------- Distributions ----------------
def _fmt_edge(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


def histogram(values: pd.Series, width: float, *, positive_only: bool = False) -> List[Record]:
    """Bucket finite values into [floor(v/w)*w, +w); ascending, empty buckets omitted."""
    if width <= 0:
        return []
    vals = numeric_series(values, strict=True).dropna()
    if positive_only:
        vals = vals[vals > 0]
    if vals.empty:
        return []
    starts = (vals // width) * width
    counts = starts.value_counts().sort_index()
    return [
        {"range": f"{_fmt_edge(start)}-{_fmt_edge(start + width)}", "start": float(start), "end": float(start + width), "value": int(n)}
        for start, n in counts.items()
    ]


def column_histogram(df: pd.DataFrame, col: str, width: float, *, positive_only: bool = False) -> List[Record]:
    return histogram(column_as_series(df, col), width, positive_only=positive_only)


def paired(
    df: pd.DataFrame,
    x: str,
    y: str,
    z: Optional[str] = None,
    *,
    label: Optional[str] = None,
) -> List[Record]:
    """One {x, y[, z]} point per row; rows where any coordinate is not a finite number are dropped."""
    if df.empty:
        return []
    frame = pd.DataFrame({"x": numbers(df, x, strict=True), "y": numbers(df, y, strict=True)}, index=df.index)
    if z is not None:
        frame["z"] = numbers(df, z, strict=True)
    if label is not None:
        frame["label"] = column_as_series(df, label).map(category_label)
    frame = frame.dropna(subset=[c for c in ("x", "y", "z") if c in frame.columns])
    return frame.to_dict(orient="records")


# ---------------- Rankings ----------------
def top_n(df: pd.DataFrame, value_col: str, n: int, *, columns: Sequence[str] = (), value_name: str = "value") -> List[Record]:
    """The n rows with the largest coerced `value_col`; ties keep upload order."""
    if df.empty or n <= 0:
        return []
    ranked = pd.DataFrame({value_name: numbers(df, value_col), "_pos": range(len(df))}, index=df.index)
    ranked = ranked.sort_values([value_name, "_pos"], ascending=[False, True]).head(n)
    out = []
    for rank, (idx, row) in enumerate(ranked.iterrows(), start=1):
        rec: Record = {"rank": rank}
        for col in columns:
            rec[col] = category_label(df.at[idx, col]) if col in df.columns else NA_LABEL
        rec[value_name] = float(row[value_name])
        out.append(rec)
    return out


def rank_records(records: Iterable[Record], key: str, n: Optional[int] = None) -> List[Record]:
    """Stable descending sort of already-aggregated records, truncated to n."""
    ordered = sorted(records, key=lambda r: -float(r.get(key) or 0))
    return ordered if n is None else ordered[: max(0, n)]


def cumulative(records: Iterable[Record], key: str = "value", *, label: str = "category") -> List[Record]:
    """Running total by rank after sorting entities descending by `key`."""
    ordered = rank_records(records, key)
    grand = sum(float(r.get(key) or 0) for r in ordered)
    out: List[Record] = []
    running = 0.0
    for rank, rec in enumerate(ordered, start=1):
        running += float(rec.get(key) or 0)
        out.append(
            {
                "rank": rank,
                label: rec.get(label),
                "value": float(rec.get(key) or 0),
                "cumulative": running,
                "share": safe_ratio(running, grand, ndigits=2),
            }
        )
    return out


# ---------------- Cross tabulation ----------------
def cross_tab(
    df: pd.DataFrame,
    entity: Any,
    category: Any,
    *,
    value_col: Optional[str] = None,
    entity_name: str = "entity",
    limit: Optional[int] = None,
) -> Tuple[List[Record], List[str]]:
    """Entity x category counts (or sums of `value_col`), zero-filled, first-seen order.

    Returns the records plus the ordered category labels that appear as columns.
    """
    if df.empty:
        return [], []
    ent_keys, ent_labels = _groups(df, entity)
    cat_keys, cat_labels = _groups(df, category)
    vals = numbers(df, value_col) if value_col else pd.Series(1.0, index=df.index)
    table = vals.groupby([ent_keys, cat_keys], sort=False).sum()
    categories = [cat_labels[k] for k in cat_labels]
    out: List[Record] = []
    for ek in ent_labels:
        rec: Record = {entity_name: ent_labels[ek]}
        for ck in cat_labels:
            v = table.get((ek, ck), 0.0)
            rec[cat_labels[ck]] = int(v) if value_col is None else float(v)
        out.append(rec)
    if limit is not None:
        out = out[:limit]
    return out, categories


def wide_entity_table(
    df: pd.DataFrame,
    entity_col: str,
    category_cols: Sequence[str],
    *,
    entity_name: str = "entity",
) -> List[Record]:
    """Cross-tab for uploads that already carry one numeric column per category."""
    if df.empty:
        return []
    names = column_as_series(df, entity_col).map(category_label)
    values = {col: numbers(df, col) for col in category_cols}
    return [{entity_name: names[idx], **{col: float(values[col][idx]) for col in category_cols}} for idx in df.index]


# ---------------- Slot entities ----------------
def entity_average(
    long_df: pd.DataFrame,
    entity_col: str,
    value_col: str,
    *,
    positive_only: bool = True,
    ndigits: Optional[int] = 0,
) -> List[Record]:
    """Per entity: occurrence count plus mean of `value_col` (0 when no value qualifies)."""
    if long_df.empty:
        return []
    keys, labels = _groups(long_df, entity_col)
    vals = numbers(long_df, value_col)
    usable = vals.where(vals > 0) if positive_only else vals
    stats = pd.DataFrame({"n": 1, "v": usable}, index=long_df.index).groupby(keys, sort=False).agg(
        count=("n", "sum"), total=("v", "sum"), valued=("v", "count"), highest=("v", "max")
    )
    out = []
    for k in labels:
        row = stats.loc[k]
        valued = int(row["valued"])
        out.append(
            {
                "category": labels[k],
                "count": int(row["count"]),
                "value": _num(float(row["total"]) / valued, ndigits) if valued else 0.0,
                "max": float(row["highest"]) if valued else 0.0,
            }
        )
    return out

