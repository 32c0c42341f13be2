from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from career_core.aggregate import (
    column_as_series,
    entity_average,
    first_present,
    grouped_count,
    grouped_percentage,
    numbers,
    placement_flags,
    rank_records,
)
from career_core.charts import bar_chart, compact, donut_chart, line_chart, stacked_bar_chart
from career_core.coerce import as_text, is_blank, safe_ratio
from career_core.filters import ViewFilters
from career_core.headers import normalize_header
from career_core.slots import COMPANY_OFFERS_BRIEF, explode_slots
from career_core.views import HOSTEL_STUDENT

STATUS = "Placed or Non Placed"
SALARY = "Maximum Salary"
JOINED = "Company Joined"
HOSTEL = "_hostel"
CARRY = ("Dept", "Gender", "Quota", "Training Batch", HOSTEL)


def offer_packages(df: pd.DataFrame) -> pd.DataFrame:
    """One row per package a student holds: the joined company with Maximum Salary, then each slot.

    Columns: `_row` (position in `df`), `company`, `salary`, `organized_by` and the carried category columns.
    """
    base = pd.DataFrame(
        {
            "_row": range(len(df)),
            "company": column_as_series(df, JOINED).map(lambda v: normalize_header(as_text(v))).tolist(),
            "salary": numbers(df, SALARY).tolist(),
        }
    )
    base["organized_by"] = ""
    for col in CARRY:
        base[col] = column_as_series(df, col).tolist()
    slots = explode_slots(df, COMPANY_OFFERS_BRIEF, carry=CARRY)
    slots = slots.rename(columns={COMPANY_OFFERS_BRIEF.name: "company"})
    return pd.concat([base, slots[base.columns]], ignore_index=True)


def offers_per_student(packages: pd.DataFrame, n_rows: int) -> pd.Series:
    """Named offers per student position, zero for students with none."""
    named = packages[~packages["company"].map(is_blank).astype(bool)]
    return named.groupby("_row").size().reindex(range(n_rows), fill_value=0).astype(int)


def compute_main_dashboard(filters: ViewFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    df: pd.DataFrame = ctx.get("filtered", pd.DataFrame()).copy()
    df[HOSTEL] = first_present(df, HOSTEL_STUDENT)
    total = len(df)
    flags = placement_flags(df, STATUS)
    placed = int(flags.sum())

    packages = offer_packages(df)
    offers = packages[~packages["company"].map(is_blank).astype(bool)]
    multi = pd.Series((offers_per_student(packages, total) > 1).to_numpy(), index=df.index)

    dept_pct = grouped_percentage(df, "Dept", flags)
    dept_pkg = entity_average(packages, "Dept", "salary")
    batch_pkg = entity_average(packages, "Training Batch", "salary")
    recruiters = entity_average(offers, "company", "salary")

    metrics: Dict[str, Any] = {
        "placement_split": [
            {"category": "Placed", "value": placed},
            {"category": "Not Placed", "value": max(total - placed, 0)},
        ],
        "dept_strength_vs_placed": dept_pct,
        "gender_placement": grouped_percentage(df, "Gender", flags),
        "quota_placement": grouped_percentage(df, "Quota", flags),
        "hostel_placement": grouped_percentage(df, HOSTEL, flags),
        "top_recruiters": rank_records([{"category": r["category"], "value": r["count"]} for r in recruiters], "value", 10),
        "avg_package_by_company": [{"category": r["category"], "value": r["value"]} for r in recruiters[:20]],
        "dept_max_package": [{"category": r["category"], "value": r["max"]} for r in dept_pkg],
        "dept_avg_package": [{"category": r["category"], "value": r["value"]} for r in dept_pkg],
        "dept_multi_offers": grouped_count(df[multi], "Dept"),
        "top_departments": rank_records(dept_pct, "value", 5),
        "dept_share": grouped_count(df, "Dept"),
        "batch_placement_pct": grouped_percentage(df, "Training Batch", flags, order="natural"),
        "batch_salary_trend": [
            {"category": r["category"], "high": r["max"], "avg": r["value"]}
            for r in sorted(batch_pkg, key=lambda r: str(r["category"]))
        ],
        "organizer_counts": grouped_count(offers, "organized_by", skip_blank=True),
    }

    kpis = {
        "total_students": total,
        "placed": placed,
        "not_placed": total - placed,
        "placement_pct": safe_ratio(placed, total),
        "total_offers": int(len(offers)),
        "multi_offer_students": int(multi.sum()),
        "highest_package": max((r["max"] for r in dept_pkg), default=0.0),
    }

    charts = compact(
        {
            "placement_split": donut_chart(metrics["placement_split"], title="Overall Placement"),
            "dept_strength_vs_placed": stacked_bar_chart(
                [{"category": r["category"], "placed": r["count"], "not_placed": r["total"] - r["count"]} for r in dept_pct],
                ["placed", "not_placed"],
                title="Department Strength vs Placed",
                x_title="Dept",
            ),
            "top_recruiters": bar_chart(metrics["top_recruiters"], title="Top Recruiters", x_title="Company", y_title="Offers", horizontal=True),
            "batch_placement_pct": line_chart(metrics["batch_placement_pct"], x="category", y="value", title="Placement % by Batch"),
        }
    )

    return {
        "view": "main_dashboard",
        "filters": asdict(filters),
        "row_count": total,
        "kpis": kpis,
        "metrics": metrics,
        "charts": charts,
    }
