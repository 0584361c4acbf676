from __future__ import annotations

import re
from typing import Dict, Iterable, List, Mapping, Sequence, Set, Union

import pandas as pd


STATUS = "Status"
RESP_ID = "RespID"
CERT_ID = "CertID"
EVENT_DESCRIPTION = "EventDescription"
TAG_NO = "TagNo"
SYSTEM = "System"
SUBSYSTEM = "SubSystem"
CERT_DISC = "Cert Disc"
AREA = "Area"
ACTUAL = "Actual (UTC +8)"
DESCRIPTION = "Description"
SYSTEM_DESCRIPTION = "System Description"

PRIMARY_REQUIRED: List[str] = [
    STATUS,
    RESP_ID,
    CERT_ID,
    EVENT_DESCRIPTION,
    TAG_NO,
    SYSTEM,
    SUBSYSTEM,
    CERT_DISC,
    AREA,
    ACTUAL,
]
CANONICAL_FIELDS: List[str] = PRIMARY_REQUIRED + [SYSTEM_DESCRIPTION]
SYSTEMS_DESCRIPTION_REQUIREMENT = f"{DESCRIPTION}/{SYSTEM_DESCRIPTION}"

HEADER_SAMPLE_SIZE = 50

HEADER_ALIASES: Dict[str, str] = {
    "status": STATUS,
    "resp id": RESP_ID,
    "respid": RESP_ID,
    "cert id": CERT_ID,
    "certid": CERT_ID,
    "event description": EVENT_DESCRIPTION,
    "eventdescription": EVENT_DESCRIPTION,
    "tag no": TAG_NO,
    "tagno": TAG_NO,
    "system": SYSTEM,
    "subsystem": SUBSYSTEM,
    "sub system": SUBSYSTEM,
    "cert disc": CERT_DISC,
    "certdisc": CERT_DISC,
    "area": AREA,
    "actual (utc +8)": ACTUAL,
}

Rows = Union[pd.DataFrame, Sequence[Mapping[str, object]]]


def normalize_key(text: object) -> str:
    return re.sub(r"\s+", " ", str("" if text is None else text).strip().lower())


def normalize_value(value: object) -> str:
    if value is None:
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    return str(value).strip()


def canonical_header(raw: object) -> str:
    return HEADER_ALIASES.get(normalize_key(raw), str(raw))


def as_frame(rows: Rows) -> pd.DataFrame:
    """Accept a DataFrame or a sequence of row mappings; always return a DataFrame."""
    if isinstance(rows, pd.DataFrame):
        return rows
    records = [dict(r) for r in (rows or [])]
    if not records:
        return pd.DataFrame()
    return pd.DataFrame.from_records(records)


def drop_duplicate_columns(df: pd.DataFrame) -> pd.DataFrame:
    # a later header that maps to the same canonical name wins
    return df.loc[:, ~df.columns.duplicated(keep="last")]


def normalize_rows(rows: Rows) -> pd.DataFrame:
    """Rename headers through HEADER_ALIASES and coerce every cell to a trimmed string."""
    df = as_frame(rows)
    if df.empty and len(df.columns) == 0:
        return pd.DataFrame()
    df = df.copy()
    df.columns = [canonical_header(c) for c in df.columns]
    df = drop_duplicate_columns(df)
    for col in df.columns:
        df[col] = df[col].map(normalize_value).astype(object)
    return df.reset_index(drop=True)


def collect_seen_headers(rows: Rows, sample_size: int = HEADER_SAMPLE_SIZE) -> Set[str]:
    if isinstance(rows, pd.DataFrame):
        return {str(c) for c in rows.columns}
    seen: Set[str] = set()
    for row in list(rows or [])[:sample_size]:
        seen.update(str(k) for k in row.keys())
    return seen


def missing_required_headers(rows: Rows, required: Iterable[str] = PRIMARY_REQUIRED) -> List[str]:
    seen = collect_seen_headers(rows)
    return [r for r in required if r not in seen]


def missing_systems_headers(rows: Rows) -> List[str]:
    seen = collect_seen_headers(rows)
    missing: List[str] = []
    if SYSTEM not in seen:
        missing.append(SYSTEM)
    if DESCRIPTION not in seen and SYSTEM_DESCRIPTION not in seen:
        missing.append(SYSTEMS_DESCRIPTION_REQUIREMENT)
    return missing


def column_values(df: pd.DataFrame, col: str) -> pd.Series:
    """Column as trimmed strings; a missing column reads as all-empty."""
    if col not in df.columns:
        return pd.Series([""] * len(df), index=df.index, dtype=object)
    return df[col].map(normalize_value)
