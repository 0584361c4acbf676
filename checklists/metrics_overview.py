from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from checklists.aggregation import (
    build_cumulative_series,
    build_time_series,
    group_counts,
    group_counts_stacked,
    top_n,
)
from checklists.charts import count_line, stacked_completion_bar, status_donut, to_vega_spec
from checklists.filters import ChecklistFilters
from checklists.headers import ACTUAL, CERT_DISC, RESP_ID, STATUS

GRAIN_TITLES = {"daily": "Daily", "weekly": "Weekly", "monthly": "Monthly", "yearly": "Yearly"}


def actual_title(grain: str) -> str:
    return f"{ACTUAL} - {GRAIN_TITLES.get(grain, 'Daily')} Count"


def range_caption(series: pd.DataFrame, value_col: str = "count") -> str:
    if series.empty:
        return ""
    first, last = series["label"].iloc[0], series["label"].iloc[-1]
    total = int(series[value_col].sum()) if value_col == "count" else int(series[value_col].iloc[-1])
    return f"{first} → {last} • {total} total"


def _stack_caption(stacked: pd.DataFrame) -> str:
    return f"{len(stacked)} bucket(s) • stacked Complete / Incomplete" if not stacked.empty else ""


def compute_overview(filters: ChecklistFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    rows: pd.DataFrame = ctx.get("filtered_rows", pd.DataFrame())
    all_rows: pd.DataFrame = ctx.get("all_rows", pd.DataFrame())

    status = group_counts(rows, STATUS)
    disc = group_counts_stacked(rows, CERT_DISC)
    resp = top_n(group_counts_stacked(rows, RESP_ID), filters.top_n)
    actual = build_time_series(rows, ACTUAL, filters.grain)
    cumulative = build_cumulative_series(rows, ACTUAL)

    charts: Dict[str, Any] = {}
    if not rows.empty:
        charts = {
            "status": to_vega_spec(status_donut(status)),
            "disc": to_vega_spec(stacked_completion_bar(disc, "Cert Disc")),
            "resp": to_vega_spec(stacked_completion_bar(resp, "RespID")),
            "actual": to_vega_spec(count_line(actual, title=f"Count ({GRAIN_TITLES[filters.grain]})")),
            "actual_cumulative": to_vega_spec(count_line(cumulative, y="cumulative", title="Cumulative")),
        }

    return {
        "filters": asdict(filters),
        "row_counts": {"all": int(len(all_rows)), "filtered": int(len(rows))},
        "status": status.to_dict(orient="records"),
        "disc": disc.to_dict(orient="records"),
        "resp": resp.to_dict(orient="records"),
        "actual": {
            "title": actual_title(filters.grain),
            "grain": filters.grain,
            "series": actual.to_dict(orient="records"),
            "caption": range_caption(actual),
        },
        "actual_cumulative": {
            "series": cumulative.to_dict(orient="records"),
            "caption": range_caption(cumulative, "cumulative"),
        },
        "captions": {
            "status": f"{len(rows)} row(s)" if len(rows) else "",
            "disc": _stack_caption(disc),
            "resp": _stack_caption(resp),
        },
        "charts": charts,
    }
