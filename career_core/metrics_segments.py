"""Segment summary sheets (gender, quota, hosteller/day scholar).

Each sheet carries one row per department with a total and a placed count per
segment. The three views share one computation, parameterised by a
`SegmentLayout` that names the per-segment columns and the row-level label
column used to attribute packages to a segment.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from career_core.aggregate import column_as_series, grouped_mean, grouped_stack, numbers, rank_records
from career_core.charts import bar_chart, compact, donut_chart, stacked_bar_chart
from career_core.coerce import as_text, category_key, category_label, safe_ratio
from career_core.filters import ViewFilters


@dataclass(frozen=True)
class Segment:
    key: str
    label: str
    total_col: Optional[str]
    placed_col: str
    # substrings matched against the row label column, lower-cased
    match: Tuple[str, ...] = ()
    exact: bool = True


@dataclass(frozen=True)
class SegmentLayout:
    view: str
    segments: Tuple[Segment, ...]
    label_column: str
    # remainder segment total = Total - sum of the named totals, floored at 0
    remainder_of: str = "Total"


GENDER_LAYOUT = SegmentLayout(
    view="gender",
    segments=(
        Segment("male", "Male", "Total Male", "Placed Male", match=("male",)),
        Segment("female", "Female", "Total Female", "Placed Female", match=("female",)),
    ),
    label_column="Gender",
)

QUOTA_LAYOUT = SegmentLayout(
    view="quota",
    segments=(
        Segment("mq", "MQ", "Total MQ", "Placed MQ", match=("mq",)),
        Segment("gq", "GQ", "Total GQ", "Placed GQ", match=("gq",)),
        Segment("international", "International", "Total International", "Placed International", match=("international",)),
    ),
    label_column="Quota",
)

HOSTEL_LAYOUT = SegmentLayout(
    view="hostel",
    segments=(
        Segment("hosteller", "Hosteller", "Total Hostl", "Placed Hostl", match=("hostel",), exact=False),
        Segment("day_scholar", "Day Scholar", None, "Placed Days", match=("day",), exact=False),
    ),
    label_column="Hosteller/Day Scholar",
)


def segment_totals(df: pd.DataFrame, layout: SegmentLayout) -> Dict[str, pd.Series]:
    named = [s for s in layout.segments if s.total_col]
    out = {s.key: numbers(df, s.total_col) for s in named}
    for s in layout.segments:
        if s.total_col is None:
            rest = numbers(df, layout.remainder_of)
            for n in named:
                rest = rest - out[n.key]
            out[s.key] = rest.clip(lower=0)
    return out


def segment_of_label(value: object, layout: SegmentLayout) -> Optional[str]:
    """First segment whose match list fits the row label; None when nothing fits."""
    text = as_text(value).lower()
    if not text:
        return None
    for s in layout.segments:
        if s.exact and text in s.match:
            return s.key
        if not s.exact and any(m in text for m in s.match):
            return s.key
    return None


def _with_segment_columns(df: pd.DataFrame, layout: SegmentLayout) -> pd.DataFrame:
    work = df.copy()
    for key, series in segment_totals(df, layout).items():
        work[f"_{key}_total"] = series
    for s in layout.segments:
        work[f"_{s.key}_placed"] = numbers(df, s.placed_col)
    return work


def _pct_rows(totals: List[Dict[str, Any]], placed: List[Dict[str, Any]], layout: SegmentLayout) -> List[Dict[str, Any]]:
    out = []
    for t, p in zip(totals, placed):
        out.append({"category": t["category"], **{s.key: safe_ratio(p[s.key], t[s.key]) for s in layout.segments}})
    return out


def _avg_package_by_dept(df: pd.DataFrame, layout: SegmentLayout) -> List[Dict[str, Any]]:
    seg = column_as_series(df, layout.label_column).map(lambda v: segment_of_label(v, layout))
    depts: Dict[str, Dict[str, Any]] = {}
    for key, label in zip(column_as_series(df, "Dept").map(category_key), column_as_series(df, "Dept")):
        depts.setdefault(key, {"category": category_label(label), **{s.key: 0.0 for s in layout.segments}})
    for s in layout.segments:
        sub = df[seg == s.key]
        for rec in grouped_mean(sub, "Dept", "Package", positive_only=True):
            depts[category_key(rec["category"])][s.key] = rec["value"]
    return list(depts.values())


def compute_segments(filters: ViewFilters, ctx: Dict[str, Any], layout: SegmentLayout) -> Dict[str, Any]:
    df: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    work = _with_segment_columns(df, layout)
    total_cols = {s.key: f"_{s.key}_total" for s in layout.segments}
    placed_cols = {s.key: f"_{s.key}_placed" for s in layout.segments}

    dept_totals = grouped_stack(work, "Dept", total_cols)
    dept_placed = grouped_stack(work, "Dept", placed_cols)
    dept_pct = _pct_rows(dept_totals, dept_placed, layout)
    batch_totals = grouped_stack(work, "Batch", total_cols, order="natural")
    batch_placed = grouped_stack(work, "Batch", placed_cols, order="natural")

    overall = []
    for s in layout.segments:
        total = float(work[total_cols[s.key]].sum()) if len(work) else 0.0
        placed = float(work[placed_cols[s.key]].sum()) if len(work) else 0.0
        overall.append({"category": s.label, "key": s.key, "total": total, "placed": placed, "pct": safe_ratio(placed, total)})
    grand_total = sum(r["total"] for r in overall)
    grand_placed = sum(r["placed"] for r in overall)

    contribution = []
    for t, p in zip(batch_totals, batch_placed):
        batch_total = sum(t[s.key] for s in layout.segments)
        contribution.append({"category": t["category"], **{s.key: safe_ratio(p[s.key], batch_total) for s in layout.segments}})

    seg = column_as_series(df, layout.label_column).map(lambda v: segment_of_label(v, layout))
    avg_package = []
    for s in layout.segments:
        pkgs = numbers(df[seg == s.key], "Package")
        pkgs = pkgs[pkgs > 0]
        avg_package.append({"category": s.label, "value": safe_ratio(float(pkgs.sum()), len(pkgs), scale=1)})

    metrics: Dict[str, Any] = {
        "segments": [{"key": s.key, "label": s.label} for s in layout.segments],
        "dept_strength": dept_totals,
        "dept_placed": dept_placed,
        "dept_percentage": dept_pct,
        "pi_strength": grouped_stack(work, "PI", total_cols),
        "batch_distribution": batch_totals,
        "batch_growth": batch_placed,
        "batch_contribution": contribution,
        "total_vs_placed": [{"category": r["category"], "total": r["total"], "placed": r["placed"]} for r in overall],
        "segment_ratio": [{"category": r["category"], "value": r["total"]} for r in overall],
        "segment_placed_pct": [{"category": r["category"], "value": r["pct"]} for r in overall],
        "avg_package": avg_package,
        "avg_package_by_dept": _avg_package_by_dept(df, layout),
        "top_departments": {
            s.key: rank_records([{"category": r["category"], "value": r[s.key]} for r in dept_pct], "value", 5)
            for s in layout.segments
        },
    }

    kpis: Dict[str, Any] = {
        "total": grand_total,
        "placed": grand_placed,
        "placement_pct": safe_ratio(grand_placed, grand_total),
    }
    for r in overall:
        kpis[f"{r['key']}_total"] = r["total"]
        kpis[f"{r['key']}_placed"] = r["placed"]
        kpis[f"{r['key']}_pct"] = r["pct"]

    keys = [s.key for s in layout.segments]
    charts = compact(
        {
            "dept_strength": stacked_bar_chart(dept_totals, keys, title="Department Strength", x_title="Dept"),
            "dept_placed": stacked_bar_chart(dept_placed, keys, title="Placed by Department", x_title="Dept"),
            "segment_ratio": donut_chart(metrics["segment_ratio"], title="Overall Ratio"),
            "segment_placed_pct": bar_chart(metrics["segment_placed_pct"], title="Placement %", y_title="%"),
            "batch_growth": stacked_bar_chart(batch_placed, keys, title="Placed by Batch", x_title="Batch"),
        }
    )

    return {
        "view": layout.view,
        "filters": asdict(filters),
        "row_count": len(df),
        "kpis": kpis,
        "metrics": metrics,
        "charts": charts,
    }


def compute_gender(filters: ViewFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    return compute_segments(filters, ctx, GENDER_LAYOUT)


def compute_quota(filters: ViewFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    return compute_segments(filters, ctx, QUOTA_LAYOUT)


def compute_hostel(filters: ViewFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    return compute_segments(filters, ctx, HOSTEL_LAYOUT)
