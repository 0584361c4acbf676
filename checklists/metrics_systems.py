from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

import pandas as pd

from checklists.data import round_half_up
from checklists.filters import ChecklistFilters
from checklists.matrix import build_completion_matrix


def percent_text(value: float) -> str:
    rounded = round_half_up(value)
    return f"{int(rounded)}%" if rounded is not None else "0%"


def compute_systems_matrix(filters: ChecklistFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    rows: pd.DataFrame = ctx.get("filtered_rows", pd.DataFrame())
    matrix = build_completion_matrix(rows)

    records: List[Dict[str, Any]] = []
    for rec in matrix.records:
        payload = asdict(rec)
        payload["percent_text"] = percent_text(rec.PercentComplete)
        records.append(payload)

    table = matrix.to_frame()
    if not table.empty:
        table["% Complete"] = table["% Complete"].apply(percent_text)

    return {
        "filters": asdict(filters),
        "headers": matrix.headers,
        "events": matrix.events,
        "records": records,
        "table": table.to_dict(orient="records"),
        "empty_message": "" if records else "No data to display.",
    }
