from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import pandas as pd

from checklists.dates import GRAINS
from checklists.headers import (
    AREA,
    CERT_DISC,
    CERT_ID,
    EVENT_DESCRIPTION,
    RESP_ID,
    STATUS,
    SUBSYSTEM,
    SYSTEM,
    SYSTEM_DESCRIPTION,
    TAG_NO,
    Rows,
    as_frame,
    column_values,
)

FILTER_FIELDS: List[str] = [
    STATUS,
    RESP_ID,
    CERT_ID,
    EVENT_DESCRIPTION,
    TAG_NO,
    SYSTEM,
    SUBSYSTEM,
    CERT_DISC,
    AREA,
    SYSTEM_DESCRIPTION,
]

RESP_TOP_N = 5
TOP_N_MAX = 50


@dataclass(frozen=True)
class ChecklistFilters:
    selections: Dict[str, List[str]] = field(default_factory=dict)
    grain: str = "daily"
    top_n: int = RESP_TOP_N

    def active(self) -> Dict[str, List[str]]:
        return {f: vals for f, vals in self.selections.items() if vals}


def _as_str_list(values: Optional[Iterable[object]]) -> List[str]:
    if values is None:
        return []
    if isinstance(values, str):
        values = [values]
    out: List[str] = []
    for v in values:
        s = "" if v is None else str(v)
        if s not in out:
            out.append(s)
    return out


def normalize_filters(raw: Mapping[str, object], *, available_fields: Optional[Iterable[str]] = None) -> ChecklistFilters:
    fields = list(available_fields) if available_fields is not None else FILTER_FIELDS
    raw_sel = raw.get("selections") or {}
    selections: Dict[str, List[str]] = {}
    if isinstance(raw_sel, Mapping):
        for f in fields:
            vals = _as_str_list(raw_sel.get(f))  # type: ignore[arg-type]
            if vals:
                selections[f] = vals

    grain = str(raw.get("grain") or "daily").strip().lower()
    if grain not in GRAINS:
        grain = "daily"

    top_n = raw.get("top_n", RESP_TOP_N)
    try:
        top_n = int(top_n)  # type: ignore[arg-type]
    except Exception:
        top_n = RESP_TOP_N
    top_n = max(1, min(TOP_N_MAX, top_n))

    return ChecklistFilters(selections=selections, grain=grain, top_n=top_n)


def natural_sort_key(value: object) -> Tuple[Tuple[Tuple[int, object], ...], str]:
    """Numeric-aware key: "S2" sorts before "S10"."""
    parts = re.split(r"(\d+)", str(value))
    return tuple((0, int(p)) if p.isdecimal() else (1, p.casefold()) for p in parts), str(value)


def sorted_facet_values(values: Iterable[str]) -> List[str]:
    return sorted(values, key=natural_sort_key)


def build_facets(rows: Rows, fields: Iterable[str] = FILTER_FIELDS) -> Dict[str, List[str]]:
    """Distinct raw values per field in first-seen order, "" included."""
    df = as_frame(rows)
    facets: Dict[str, List[str]] = {}
    for f in fields:
        facets[f] = column_values(df, f).unique().tolist() if len(df.index) else []
    return facets


def apply_filters(rows: Rows, selections: Mapping[str, Iterable[str]]) -> pd.DataFrame:
    """AND across fields, OR within one field; empty selections leave rows untouched."""
    df = as_frame(rows)
    active = {f: set(_as_str_list(v)) for f, v in (selections or {}).items()}
    active = {f: v for f, v in active.items() if v}
    if not active:
        return df
    mask = pd.Series(True, index=df.index)
    for f, allowed in active.items():
        mask &= column_values(df, f).isin(allowed)
    return df[mask]
