from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from career_core.aggregate import (
    column_as_series,
    column_histogram,
    cumulative,
    grouped_count,
    grouped_mean,
    numbers,
    top_n,
    wide_entity_table,
)
from career_core.charts import bar_chart, compact, donut_chart, histogram_chart, line_chart, stacked_bar_chart
from career_core.coerce import category_label, is_blank, safe_ratio
from career_core.filters import ViewFilters
from career_core.views import COMPANY

COMPANY_NAME = "Company Name"
PACKAGE = "Package"
ORGANIZED = "Organized"
TOTAL = "Total"

TOP_COMPANIES = 15
PER_COMPANY_LIMIT = 10
PACKAGE_BUCKET = 1


def department_columns(columns: Sequence[str]) -> List[str]:
    """Every header outside the fixed company fields is a department hire count."""
    return COMPANY.extra_columns([str(c) for c in columns])


def department_sum(df: pd.DataFrame, departments: Sequence[str]) -> pd.Series:
    return sum((numbers(df, d) for d in departments), pd.Series(0.0, index=df.index))


def company_hires(df: pd.DataFrame, departments: Sequence[str]) -> pd.Series:
    """Declared Total where it is a positive number, otherwise the department sum."""
    declared = numbers(df, TOTAL)
    return declared.where(declared > 0, department_sum(df, departments))


def total_check(df: pd.DataFrame, departments: Sequence[str]) -> List[Dict[str, Any]]:
    """Per company: declared Total against the sum of its department counts.

    `matches` is None when the row declares no Total.
    """
    names = column_as_series(df, COMPANY_NAME).map(category_label)
    declared_raw = column_as_series(df, TOTAL)
    declared = numbers(df, TOTAL)
    computed_sum = department_sum(df, departments)
    out = []
    for idx in df.index:
        computed = float(computed_sum[idx])
        has_total = not is_blank(declared_raw[idx])
        out.append(
            {
                "company": names[idx],
                "declared": float(declared[idx]) if has_total else None,
                "computed": computed,
                "matches": (float(declared[idx]) == computed) if has_total else None,
            }
        )
    return out


def _top_department(row: Dict[str, Any], departments: Sequence[str]) -> Dict[str, Any]:
    best: Optional[str] = None
    hires = 0.0
    for d in departments:
        if best is None or row[d] > hires:
            best, hires = d, row[d]
    return {"company": row["company"], "dept": best or "NA", "hires": hires}


def compute_company(filters: ViewFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    df: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    departments = department_columns(df.columns)

    work = df.copy()
    work["company"] = column_as_series(df, COMPANY_NAME).map(category_label)
    work["_hires"] = company_hires(df, departments)
    hires_by_company = [{"category": c, "value": float(h)} for c, h in zip(work["company"], work["_hires"])]

    per_company = wide_entity_table(df, COMPANY_NAME, departments, entity_name="company")
    head = per_company[:PER_COMPANY_LIMIT]
    share = []
    for row, total in zip(head, work["_hires"].tolist()[:PER_COMPANY_LIMIT]):
        share.append({"company": row["company"], **{d: safe_ratio(row[d], total) for d in departments}})

    checks = total_check(df, departments)

    metrics: Dict[str, Any] = {
        "departments": departments,
        "top_companies": top_n(work, "_hires", TOP_COMPANIES, columns=("company",), value_name="hires"),
        "package_distribution": column_histogram(df, PACKAGE, PACKAGE_BUCKET),
        "organizer_split": grouped_count(df, ORGANIZED),
        "department_totals": [{"category": d, "value": float(numbers(df, d).sum())} for d in departments],
        "company_department": head,
        "department_share": share,
        "cumulative_hires": cumulative(hires_by_company),
        "top_department": [_top_department(row, departments) for row in head],
        "avg_package_by_organizer": grouped_mean(df, ORGANIZED, PACKAGE),
        "total_check": checks,
    }

    total_hires = float(work["_hires"].sum())
    kpis = {
        "companies": len(df),
        "total_hires": total_hires,
        "department_count": len(departments),
        "max_package": float(numbers(df, PACKAGE).max()) if len(df) else 0.0,
        "avg_package": safe_ratio(float(numbers(df, PACKAGE).sum()), len(df), scale=1, ndigits=2),
        "total_mismatches": sum(1 for c in checks if c["matches"] is False),
    }

    charts = compact(
        {
            "top_companies": bar_chart(metrics["top_companies"], x="company", y="hires", title="Top Companies by Hires", horizontal=True),
            "package_distribution": histogram_chart(metrics["package_distribution"], title="Package Distribution", x_title="Package (LPA)"),
            "organizer_split": donut_chart(metrics["organizer_split"], title="Organized By"),
            "department_totals": bar_chart(metrics["department_totals"], title="Hires by Department", x_title="Dept", y_title="Hires"),
            "company_department": stacked_bar_chart(head, departments, x="company", title="Company x Department"),
            "cumulative_hires": line_chart(metrics["cumulative_hires"], x="rank", y="cumulative", title="Cumulative Hires", x_type="Q"),
        }
    )

    return {
        "view": "company",
        "filters": asdict(filters),
        "row_count": len(df),
        "kpis": kpis,
        "metrics": metrics,
        "charts": charts,
    }
