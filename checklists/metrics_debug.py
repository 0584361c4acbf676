from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from checklists.dates import normalize_to_iso_date
from checklists.headers import ACTUAL, CANONICAL_FIELDS, SYSTEM, SYSTEM_DESCRIPTION, column_values
from checklists.filters import ChecklistFilters


def compute_debug(filters: ChecklistFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    all_rows: pd.DataFrame = ctx.get("all_rows", pd.DataFrame())
    filtered: pd.DataFrame = ctx.get("filtered_rows", pd.DataFrame())
    facets: Dict[str, Any] = ctx.get("facets", {}) or {}

    payload: Dict[str, Any] = {
        "filters": asdict(filters),
        "files": ctx.get("files", []),
        "row_counts": {
            "primary_rows": int(len(ctx.get("primary_rows", pd.DataFrame()))),
            "systems_rows": int(len(ctx.get("systems_rows", pd.DataFrame()))),
            "merged_rows": int(len(all_rows)),
            "filtered_rows": int(len(filtered)),
        },
        "date_checks": {"blank_actual": 0, "unparseable_actual": 0},
        "unparseable_samples": [],
        "facet_sizes": {f: len(v) for f, v in facets.items()},
        "extra_columns": [],
        "unmatched_systems": [],
    }
    if all_rows.empty:
        return payload

    raw_actual = column_values(all_rows, ACTUAL)
    parsed = raw_actual.map(normalize_to_iso_date)
    bad = raw_actual.ne("") & parsed.isna()
    payload["date_checks"] = {
        "blank_actual": int(raw_actual.eq("").sum()),
        "unparseable_actual": int(bad.sum()),
    }
    payload["unparseable_samples"] = raw_actual[bad].drop_duplicates().head(20).tolist()
    payload["extra_columns"] = [str(c) for c in all_rows.columns if c not in CANONICAL_FIELDS]

    systems = column_values(all_rows, SYSTEM).str.strip()
    unmatched = systems[systems.ne("") & column_values(all_rows, SYSTEM_DESCRIPTION).eq("")]
    if not unmatched.empty:
        top = unmatched.value_counts().head(20)
        payload["unmatched_systems"] = [{"System": str(k), "rows": int(v)} for k, v in top.items()]
    return payload
