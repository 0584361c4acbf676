from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal

from checklists.errors import MissingColumnsError
from checklists.headers import (
    ACTUAL,
    CERT_ID,
    DESCRIPTION,
    RESP_ID,
    STATUS,
    SYSTEM,
    TAG_NO,
    Rows,
    as_frame,
    column_values,
    missing_required_headers,
    missing_systems_headers,
)

Role = Literal["primary", "systems"]
DecisionKind = Literal["primary", "systems", "ambiguous"]

PRIMARY_FLAG_FIELDS = [STATUS, RESP_ID, CERT_ID, TAG_NO, ACTUAL]


@dataclass(frozen=True)
class RoleDecision:
    kind: DecisionKind
    missing_primary: List[str] = field(default_factory=list)
    missing_systems: List[str] = field(default_factory=list)


def _any_non_empty(rows: Rows, col: str) -> bool:
    df = as_frame(rows)
    if df.empty or col not in df.columns:
        return False
    return bool(column_values(df, col).ne("").any())


def looks_like_primary(rows: Rows) -> bool:
    return any(_any_non_empty(rows, f) for f in PRIMARY_FLAG_FIELDS)


def looks_like_systems(rows: Rows) -> bool:
    df = as_frame(rows)
    if df.empty:
        return False
    return _any_non_empty(df, SYSTEM) and DESCRIPTION in df.columns and not looks_like_primary(df)


def classify_rows(rows: Rows) -> RoleDecision:
    """Decide which dataset a parsed sheet is; no I/O, no raising."""
    df = as_frame(rows)
    missing_primary = missing_required_headers(df)
    missing_systems = missing_systems_headers(df)
    if looks_like_systems(df):
        kind: DecisionKind = "systems"
    elif looks_like_primary(df):
        kind = "primary"
    else:
        kind = "ambiguous"
    return RoleDecision(kind=kind, missing_primary=missing_primary, missing_systems=missing_systems)


def resolve_role(decision: RoleDecision) -> Role:
    """Turn a decision into a role, raising MissingColumnsError when neither fits."""
    if decision.kind == "systems":
        if decision.missing_systems:
            raise MissingColumnsError(decision.missing_systems, role="systems")
        return "systems"
    if decision.kind == "primary":
        if decision.missing_primary:
            raise MissingColumnsError(decision.missing_primary, role="primary")
        return "primary"

    if not decision.missing_systems:
        return "systems"
    if not decision.missing_primary:
        return "primary"
    if len(decision.missing_primary) <= len(decision.missing_systems):
        raise MissingColumnsError(decision.missing_primary)
    raise MissingColumnsError(decision.missing_systems)
