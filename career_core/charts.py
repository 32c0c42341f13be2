from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def bar_chart(
    records: List[Dict[str, Any]],
    *,
    x: str = "category",
    y: str = "value",
    title: str = "",
    x_title: Optional[str] = None,
    y_title: Optional[str] = None,
    sort: Optional[str] = None,
    horizontal: bool = False,
) -> Optional[Dict[str, Any]]:
    if not records:
        return None
    df = pd.DataFrame(records)
    cat = alt.X(f"{x}:N", title=x_title or x, sort=sort or None)
    val = alt.Y(f"{y}:Q", title=y_title or y, axis=alt.Axis(gridDash=[4, 4], domain=False, ticks=False))
    if horizontal:
        cat = alt.Y(f"{x}:N", title=x_title or x, sort=sort or "-x")
        val = alt.X(f"{y}:Q", title=y_title or y, axis=alt.Axis(gridDash=[4, 4], domain=False, ticks=False))
        enc = {"y": cat, "x": val}
    else:
        enc = {"x": cat, "y": val}
    chart = (
        alt.Chart(df, title=title)
        .mark_bar(cornerRadiusEnd=3)
        .encode(**enc, tooltip=[alt.Tooltip(f"{x}:N"), alt.Tooltip(f"{y}:Q", format=",")])
        .properties(height=260)
    )
    return to_vega_spec(chart)


def histogram_chart(buckets: List[Dict[str, Any]], *, title: str = "", x_title: str = "Range") -> Optional[Dict[str, Any]]:
    if not buckets:
        return None
    df = pd.DataFrame(buckets)
    chart = (
        alt.Chart(df, title=title)
        .mark_bar()
        .encode(
            x=alt.X("range:N", title=x_title, sort=alt.EncodingSortField(field="start", order="ascending")),
            y=alt.Y("value:Q", title="Count", axis=alt.Axis(gridDash=[4, 4], domain=False, ticks=False)),
            tooltip=["range", alt.Tooltip("value:Q", title="Count")],
        )
        .properties(height=240)
    )
    return to_vega_spec(chart)


def stacked_bar_chart(
    records: List[Dict[str, Any]],
    series: Sequence[str],
    *,
    x: str = "category",
    title: str = "",
    x_title: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """Wide records ({x, s1, s2, ...}) melted into one stacked bar per x value."""
    if not records or not series:
        return None
    df = pd.DataFrame(records)
    long_df = df.melt(id_vars=[x], value_vars=[s for s in series if s in df.columns], var_name="series", value_name="amount")
    hover = alt.selection_point(fields=["series"], on="mouseover", empty="all")
    chart = (
        alt.Chart(long_df, title=title)
        .mark_bar()
        .encode(
            x=alt.X(f"{x}:N", title=x_title or x, sort=None),
            y=alt.Y("amount:Q", stack="zero", axis=alt.Axis(gridDash=[4, 4], domain=False, ticks=False)),
            color=alt.Color("series:N", title="Series"),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.3)),
            tooltip=[alt.Tooltip(f"{x}:N"), "series:N", alt.Tooltip("amount:Q", format=",")],
        )
        .add_params(hover)
        .properties(height=260)
    )
    return to_vega_spec(chart)


def line_chart(
    records: List[Dict[str, Any]],
    *,
    x: str,
    y: str,
    title: str = "",
    x_type: str = "O",
) -> Optional[Dict[str, Any]]:
    if not records:
        return None
    df = pd.DataFrame(records)
    chart = (
        alt.Chart(df, title=title)
        .mark_line(point={"filled": True, "size": 60})
        .encode(
            x=alt.X(f"{x}:{x_type}", title=x, axis=alt.Axis(grid=False)),
            y=alt.Y(f"{y}:Q", title=y, axis=alt.Axis(gridDash=[4, 4], domain=False, ticks=False)),
            tooltip=[alt.Tooltip(f"{x}:{x_type}"), alt.Tooltip(f"{y}:Q", format=",")],
        )
        .properties(height=260)
    )
    return to_vega_spec(chart)


def scatter_chart(
    points: List[Dict[str, Any]],
    *,
    title: str = "",
    x_title: str = "x",
    y_title: str = "y",
) -> Optional[Dict[str, Any]]:
    if not points:
        return None
    df = pd.DataFrame(points)
    tooltip = [alt.Tooltip("x:Q", title=x_title), alt.Tooltip("y:Q", title=y_title)]
    if "label" in df.columns:
        tooltip.insert(0, alt.Tooltip("label:N", title="Name"))
    chart = (
        alt.Chart(df, title=title)
        .mark_circle(size=60, opacity=0.7)
        .encode(
            x=alt.X("x:Q", title=x_title, scale=alt.Scale(zero=False)),
            y=alt.Y("y:Q", title=y_title),
            size=alt.Size("z:Q", legend=None) if "z" in df.columns else alt.value(60),
            tooltip=tooltip,
        )
        .properties(height=260)
    )
    return to_vega_spec(chart)


def donut_chart(records: List[Dict[str, Any]], *, title: str = "") -> Optional[Dict[str, Any]]:
    if not records:
        return None
    df = pd.DataFrame(records)
    chart = (
        alt.Chart(df, title=title)
        .mark_arc(innerRadius=60)
        .encode(
            theta=alt.Theta("value:Q"),
            color=alt.Color("category:N", title=None),
            tooltip=["category", alt.Tooltip("value:Q", format=",")],
        )
    )
    return to_vega_spec(chart)


def compact(charts: Dict[str, Optional[Dict[str, Any]]]) -> Dict[str, Dict[str, Any]]:
    return {k: v for k, v in charts.items() if v is not None}
