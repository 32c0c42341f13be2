from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from career_core.aggregate import (
    column_as_series,
    grouped_mean,
    grouped_ratio,
    grouped_stack,
    grouped_sum,
    numbers,
    rank_records,
    top_n,
)
from career_core.charts import bar_chart, compact, line_chart, scatter_chart, stacked_bar_chart
from career_core.coerce import category_label, safe_ratio
from career_core.filters import ViewFilters

TOTAL = "Total"
PLACED = "No Of Student Placed"
BALANCE = "Balance"
NOT_IN_BATCH = "Not in Batch"
PACKAGE = "Package"

# percentage column carried by each department-summary sheet
PERCENT_COLUMNS = {
    "all_analysis": "Percentage",
    "batch": "Placed Percentage",
    "placement_offer": "OverAll Percentage",
}


def compute_summary(filters: ViewFilters, ctx: Dict[str, Any], *, view: str, percent_col: str) -> Dict[str, Any]:
    """Department-summary sheets: one row per department/batch with totals and placed counts."""
    df: pd.DataFrame = ctx.get("filtered", pd.DataFrame())

    total_students = float(numbers(df, TOTAL).sum())
    total_placed = float(numbers(df, PLACED).sum())
    kpis = {
        "total_students": total_students,
        "total_placed": total_placed,
        "total_balance": float(numbers(df, BALANCE).sum()),
        "total_not_in_batch": float(numbers(df, NOT_IN_BATCH).sum()),
        "placement_pct": safe_ratio(total_placed, total_students),
        "avg_percentage": safe_ratio(float(numbers(df, percent_col).sum()), len(df), scale=1),
        "max_package": float(numbers(df, PACKAGE).max()) if len(df) else 0.0,
    }

    batch_stack = grouped_stack(df, "Batch", {"total": TOTAL, "placed": PLACED}, order="natural")
    dept_pct = grouped_mean(df, "Dept", percent_col)
    package_points = [
        {"x": pos + 1, "y": float(pkg), "label": category_label(dept)}
        for pos, (dept, pkg) in enumerate(zip(column_as_series(df, "Dept"), numbers(df, PACKAGE)))
    ]

    metrics: Dict[str, Any] = {
        "dept_totals": grouped_sum(df, "Dept", TOTAL),
        "dept_placed": grouped_sum(df, "Dept", PLACED),
        "dept_balance": grouped_sum(df, "Dept", BALANCE),
        "dept_percentage": dept_pct,
        "dept_placement_ratio": grouped_ratio(df, "Dept", PLACED, TOTAL),
        "avg_package_by_dept": grouped_mean(df, "Dept", PACKAGE),
        "dept_package_points": package_points,
        "top_packages": top_n(df, PACKAGE, 5, columns=("Dept",), value_name="package"),
        "top_departments": rank_records(dept_pct, "value", 5),
        "batch_strength": grouped_sum(df, "Batch", TOTAL, order="natural"),
        "batch_stack": batch_stack,
        "batch_percentage": grouped_mean(df, "Batch", percent_col, order="natural"),
        "incharge_placement": grouped_sum(df, "Incharge", PLACED),
        "pi_percentage": grouped_mean(df, "PI", percent_col),
    }

    charts = compact(
        {
            "dept_totals_vs_placed": stacked_bar_chart(
                grouped_stack(df, "Dept", {"placed": PLACED, "balance": BALANCE}),
                ["placed", "balance"],
                title="Department Placed vs Balance",
                x_title="Dept",
            ),
            "dept_percentage": bar_chart(dept_pct, title="Placement % by Department", x_title="Dept", y_title="%"),
            "batch_percentage": line_chart(metrics["batch_percentage"], x="category", y="value", title="Placement % by Batch"),
            "dept_package_points": scatter_chart(package_points, title="Package by Department", x_title="Row", y_title="Package"),
            "incharge_placement": bar_chart(metrics["incharge_placement"], title="Placed by Incharge", x_title="Incharge", y_title="Placed"),
        }
    )

    return {
        "view": view,
        "filters": asdict(filters),
        "row_count": len(df),
        "kpis": kpis,
        "metrics": metrics,
        "charts": charts,
    }


def compute_all_analysis(filters: ViewFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    return compute_summary(filters, ctx, view="all_analysis", percent_col=PERCENT_COLUMNS["all_analysis"])


def compute_batch(filters: ViewFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    return compute_summary(filters, ctx, view="batch", percent_col=PERCENT_COLUMNS["batch"])


def compute_placement_offer(filters: ViewFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    return compute_summary(filters, ctx, view="placement_offer", percent_col=PERCENT_COLUMNS["placement_offer"])
