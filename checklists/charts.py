from __future__ import annotations

from typing import Any, Dict, List, Optional

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()

EMPTY_LABEL = "<empty>"
STATUS_COLORS: List[str] = ["#72bf44", "#1A383B", "#4F748B", "#006C5C"]
COMPLETE_COLORS: List[str] = ["#72bf44", "#4F748B"]


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Altair chart -> Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def display_labels(values: pd.Series) -> pd.Series:
    return values.astype(str).where(values.astype(str).ne(""), EMPTY_LABEL)


def status_donut(dist: pd.DataFrame, title: str = "Status") -> alt.Chart:
    data = dist.assign(label=display_labels(dist["value"]))
    return (
        alt.Chart(data)
        .mark_arc(innerRadius=60)
        .encode(
            theta=alt.Theta("count:Q"),
            color=alt.Color(
                "label:N",
                title=title,
                sort=data["label"].tolist(),
                scale=alt.Scale(range=STATUS_COLORS),
            ),
            tooltip=[alt.Tooltip("label:N", title=title), alt.Tooltip("count:Q", format=",")],
        )
        .properties(height=260)
    )


def stacked_completion_bar(stacked: pd.DataFrame, title: str) -> alt.Chart:
    data = stacked.assign(label=display_labels(stacked["value"]))
    order = data["label"].tolist()
    long = data.melt(
        id_vars=["label", "total"],
        value_vars=["complete", "incomplete"],
        var_name="state",
        value_name="count",
    )
    long["state"] = long["state"].map({"complete": "Complete", "incomplete": "Incomplete"})
    return (
        alt.Chart(long)
        .mark_bar()
        .encode(
            x=alt.X("label:N", title=title, sort=order, axis=alt.Axis(labelAngle=-30)),
            y=alt.Y("count:Q", title="Count", stack="zero", axis=alt.Axis(format="d", gridDash=[4, 4])),
            color=alt.Color(
                "state:N",
                title="",
                scale=alt.Scale(domain=["Complete", "Incomplete"], range=COMPLETE_COLORS),
            ),
            tooltip=[
                alt.Tooltip("label:N", title=title),
                alt.Tooltip("state:N", title="State"),
                alt.Tooltip("count:Q", format=","),
                alt.Tooltip("total:Q", title="Total", format=","),
            ],
        )
        .properties(height=260)
    )


def count_line(series: pd.DataFrame, y: str = "count", title: Optional[str] = None) -> alt.Chart:
    return (
        alt.Chart(series)
        .mark_line(point={"filled": True, "size": 50})
        .encode(
            x=alt.X("label:O", title="", sort=series["label"].tolist(), axis=alt.Axis(labelAngle=-45, grid=False)),
            y=alt.Y(f"{y}:Q", title=title or "Count", axis=alt.Axis(format="d", gridDash=[4, 4], domain=False, ticks=False)),
            tooltip=[alt.Tooltip("label:O", title="Bucket"), alt.Tooltip(f"{y}:Q", format=",")],
        )
        .properties(height=260)
    )
