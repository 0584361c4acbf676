"""Per-system completion matrix.

One record per System code: counts of each EventDescription, how many rows
carry an Actual date, the expected sheet total and the completion percentage.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

import pandas as pd

from checklists.aggregation import has_actual
from checklists.filters import natural_sort_key
from checklists.headers import (
    EVENT_DESCRIPTION,
    SYSTEM,
    SYSTEM_DESCRIPTION,
    Rows,
    as_frame,
    column_values,
)

EVENT_PRIORITY: List[str] = [
    "CONSTRUCTION (CC)",
    "PRE-COMMISSIONING (MC)",
    "COMMISSIONING (MC)",
]
TOTAL_SHEETS_KEYS = {"totalsheets", "sheetstotal", "sheets"}


@dataclass(frozen=True)
class MatrixRecord:
    System: str
    Description: str
    counts: Dict[str, int] = field(default_factory=dict)
    ActualCount: int = 0
    TotalSheets: Union[int, float] = 0
    PercentComplete: float = 0.0


@dataclass(frozen=True)
class CompletionMatrix:
    events: List[str]
    records: List[MatrixRecord]

    @property
    def headers(self) -> List[str]:
        return ["System", "Description", *self.events, "Actual Count", "Total Sheets", "% Complete"]

    def to_frame(self) -> pd.DataFrame:
        rows: List[Dict[str, Any]] = []
        for rec in self.records:
            row: Dict[str, Any] = {"System": rec.System, "Description": rec.Description}
            for ev in self.events:
                row[ev] = rec.counts.get(ev, 0)
            row["Actual Count"] = rec.ActualCount
            row["Total Sheets"] = rec.TotalSheets
            row["% Complete"] = rec.PercentComplete
            rows.append(row)
        return pd.DataFrame(rows, columns=self.headers)


def ordered_event_descriptions(rows: Rows) -> List[str]:
    df = as_frame(rows)
    values = column_values(df, EVENT_DESCRIPTION).str.strip() if len(df.index) else pd.Series(dtype=object)
    distinct = {v for v in values.tolist() if v}
    known = [ev for ev in EVENT_PRIORITY if ev in distinct]
    return known + sorted(distinct.difference(EVENT_PRIORITY))


def _total_sheets_key(header: object) -> str:
    return re.sub(r"[\s_]+", "", str(header)).lower()


def _as_positive_number(value: object) -> float:
    try:
        num = float(re.sub(r"[,\s]", "", str(value)))
    except ValueError:
        return 0.0
    if math.isnan(num) or math.isinf(num) or num <= 0:
        return 0.0
    return num


def infer_total_sheets(group: pd.DataFrame) -> Union[int, float]:
    """Largest positive "Total Sheets" value in the group, else its row count."""
    cols = [c for c in group.columns if _total_sheets_key(c) in TOTAL_SHEETS_KEYS]
    best = 0.0
    for col in cols:
        for v in group[col].tolist():
            best = max(best, _as_positive_number(v))
    if best <= 0:
        return int(len(group.index))
    return int(best) if best.is_integer() else best


def build_completion_matrix(rows: Rows) -> CompletionMatrix:
    df = as_frame(rows)
    events = ordered_event_descriptions(df)
    if len(df.index) == 0:
        return CompletionMatrix(events=events, records=[])

    work = df.copy()
    work["__system"] = column_values(work, SYSTEM).str.strip()
    work["__event"] = column_values(work, EVENT_DESCRIPTION).str.strip()
    work["__desc"] = column_values(work, SYSTEM_DESCRIPTION).str.strip()
    work["__actual"] = has_actual(work)
    work = work[work["__system"].ne("")]

    records: List[MatrixRecord] = []
    for system, group in work.groupby("__system", sort=False):
        descs = group.loc[group["__desc"].ne(""), "__desc"]
        ev_counts = group["__event"].value_counts()
        counts = {ev: int(ev_counts.get(ev, 0)) for ev in events}
        actual_count = int(group["__actual"].sum())
        total_sheets = infer_total_sheets(group.drop(columns=["__system", "__event", "__desc", "__actual"]))
        pct = (actual_count / total_sheets) * 100 if total_sheets > 0 else 0.0
        records.append(
            MatrixRecord(
                System=str(system),
                Description=str(descs.iloc[0]) if not descs.empty else "",
                counts=counts,
                ActualCount=actual_count,
                TotalSheets=total_sheets,
                PercentComplete=float(pct),
            )
        )

    records.sort(key=lambda r: natural_sort_key(r.System))
    return CompletionMatrix(events=events, records=records)
