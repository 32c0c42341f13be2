from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

import pandas as pd

from career_core.aggregate import (
    column_histogram,
    cross_tab,
    cumulative,
    entity_average,
    first_present,
    grouped_count,
    grouped_max,
    grouped_mean,
    grouped_percentage,
    numbers,
    paired,
    placement_flags,
    rank_records,
    top_n,
)
from career_core.charts import bar_chart, compact, donut_chart, histogram_chart, scatter_chart, stacked_bar_chart
from career_core.coerce import is_blank, safe_ratio
from career_core.filters import ViewFilters
from career_core.slots import COMPANY_OFFERS, explode_slots
from career_core.views import HOSTEL_STUDENT, JOB_VERTICAL

STATUS = "Placed or Non Placed"
SALARY = "Maximum Salary"
OFFERS = "Number Of Company Placed"

# (metric name, column, bucket width)
MARK_HISTOGRAMS = (
    ("cgpa_histogram", "CGPA", 1),
    ("tenth_histogram", "10th", 5),
    ("twelfth_histogram", "12th", 5),
    ("diploma_histogram", "Diploma", 5),
)
SALARY_BUCKET = 2
OFFER_THRESHOLDS = (2, 3, 5)


def _split(placed: int, total: int) -> List[Dict[str, Any]]:
    return [{"category": "Placed", "value": placed}, {"category": "Not Placed", "value": max(total - placed, 0)}]


def _letter_counts(long_df: pd.DataFrame) -> List[Dict[str, Any]]:
    out = []
    for attr, label in (("offer_letter", "Offer Letters"), ("join_letter", "Join Letters")):
        n = int((~long_df[attr].map(is_blank).astype(bool)).sum()) if attr in long_df.columns else 0
        out.append({"category": label, "value": n})
    return out


def _marks_vs_placed(df: pd.DataFrame, flags: pd.Series) -> List[Dict[str, Any]]:
    out = []
    for col in ("10th", "12th"):
        vals = numbers(df, col)
        out.append({"category": col, "placed": float(vals[flags].sum()), "not": float(vals[~flags].sum())})
    return out


def compute_students(filters: ViewFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    df: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    total = len(df)
    flags = placement_flags(df, STATUS)
    placed = int(flags.sum())

    hostel = first_present(df, HOSTEL_STUDENT)
    offers = numbers(df, OFFERS)
    salary = numbers(df, SALARY)
    positive_salary = salary[salary > 0]

    long_df = explode_slots(df, COMPANY_OFFERS, carry=("Dept",))
    company_counts = grouped_count(long_df, COMPANY_OFFERS.name)
    company_salary = entity_average(long_df, COMPANY_OFFERS.name, "salary")
    company_dept, company_dept_columns = cross_tab(long_df, COMPANY_OFFERS.name, "Dept", entity_name="company", limit=10)
    status_label = flags.map({True: "Placed", False: "Not Placed"})

    metrics: Dict[str, Any] = {
        "placement_split": _split(placed, total),
        "single_vs_multiple": [
            {"category": "Single Offer", "value": int((offers == 1).sum())},
            {"category": "Multiple Offers", "value": int((offers > 1).sum())},
        ],
        "offers_distribution": grouped_count(df, offers, order="natural"),
        "offer_thresholds": [{"category": f"{t}+", "value": int((offers >= t).sum())} for t in OFFER_THRESHOLDS],
        "salary_histogram": column_histogram(df, SALARY, SALARY_BUCKET, positive_only=True),
        "gender_counts": grouped_count(df, "Gender"),
        "job_vertical_counts": grouped_count(df, first_present(df, JOB_VERTICAL)),
        "section_counts": grouped_count(df, "Section"),
        "pi_counts": grouped_count(df, "PI"),
        "batch_counts": grouped_count(df, "Training Batch"),
        "quota_counts": grouped_count(df, "Quota"),
        "hostel_counts": grouped_count(df, hostel),
        "dept_placement_pct": grouped_percentage(df, "Dept", flags),
        "batch_placement_pct": grouped_percentage(df, "Training Batch", flags),
        "hostel_placement_pct": grouped_percentage(df, hostel, flags),
        "section_placement": grouped_percentage(df, "Section", flags),
        "placed_by_gender": grouped_count(df[flags], "Gender"),
        "placed_by_quota": grouped_count(df[flags], "Quota"),
        "cutoff_by_status": cross_tab(df, "CutOff", status_label, entity_name="cutoff")[0],
        "marks_vs_placed": _marks_vs_placed(df, flags),
        "dept_avg_salary": grouped_mean(df, "Dept", SALARY, positive_only=True),
        "dept_max_salary": grouped_max(df, "Dept", SALARY),
        "section_avg_salary": grouped_mean(df, "Section", SALARY, positive_only=True),
        "hostel_avg_salary": grouped_mean(df, hostel, SALARY, positive_only=True),
        "quota_max_salary": grouped_max(df, "Quota", SALARY),
        "avg_salary_by_offers": grouped_mean(df, offers, SALARY, order="natural"),
        "organizer_counts": grouped_count(long_df, "organized_by", skip_blank=True),
        "letter_counts": _letter_counts(long_df),
        "top_recruiters": rank_records(company_counts, "value", 20),
        "top_companies_by_avg_salary": rank_records(company_salary, "value", 5),
        "company_salary": company_salary,
        "company_highest_salary": [
            {"category": r["category"], "max": r["max"], "count": r["count"]} for r in company_salary[:20]
        ],
        "company_dept": {"columns": company_dept_columns, "rows": company_dept},
        "company_concentration": cumulative(company_counts),
        "top_students": top_n(df, SALARY, filters.top_n, columns=("Name", "Dept"), value_name="salary"),
        "cgpa_vs_salary": paired(df, "CGPA", SALARY, label="Name"),
        "cutoff_vs_offers": paired(df, "CutOff", OFFERS),
    }
    for name, col, width in MARK_HISTOGRAMS:
        metrics[name] = column_histogram(df, col, width)

    kpis = {
        "total_students": total,
        "placed": placed,
        "not_placed": total - placed,
        "placement_pct": safe_ratio(placed, total),
        "max_salary": float(salary.max()) if total else 0.0,
        "min_salary": float(positive_salary.min()) if not positive_salary.empty else 0.0,
        "avg_salary": safe_ratio(float(positive_salary.sum()), len(positive_salary), scale=1, ndigits=2),
        "total_offers": int(len(long_df)),
        "companies": len(company_counts),
        "offer_letters": metrics["letter_counts"][0]["value"],
        "join_letters": metrics["letter_counts"][1]["value"],
    }

    charts = compact(
        {
            "placement_split": donut_chart(metrics["placement_split"], title="Placed vs Not Placed"),
            "dept_placement_pct": bar_chart(metrics["dept_placement_pct"], title="Placement % by Department", x_title="Dept", y_title="%"),
            "salary_histogram": histogram_chart(metrics["salary_histogram"], title="Salary Distribution (LPA)", x_title="Salary"),
            "cgpa_histogram": histogram_chart(metrics["cgpa_histogram"], title="CGPA Distribution", x_title="CGPA"),
            "top_recruiters": bar_chart(metrics["top_recruiters"], title="Top Recruiters", x_title="Company", y_title="Offers", horizontal=True),
            "cgpa_vs_salary": scatter_chart(metrics["cgpa_vs_salary"], title="CGPA vs Salary", x_title="CGPA", y_title="Salary"),
            "company_dept": stacked_bar_chart(company_dept, company_dept_columns, x="company", title="Company x Department"),
        }
    )

    return {
        "view": "students",
        "filters": asdict(filters),
        "row_count": total,
        "kpis": kpis,
        "metrics": metrics,
        "charts": charts,
    }

