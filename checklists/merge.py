from __future__ import annotations

from typing import Dict

import pandas as pd

from checklists.headers import (
    CANONICAL_FIELDS,
    DESCRIPTION,
    SYSTEM,
    SYSTEM_DESCRIPTION,
    Rows,
    as_frame,
    column_values,
)

_KEY = "__system_key"
_DESC = "__system_desc"


def _system_dim(systems_rows: Rows) -> pd.DataFrame:
    df = as_frame(systems_rows)
    if df.empty:
        return pd.DataFrame({_KEY: pd.Series(dtype=object), _DESC: pd.Series(dtype=object)})
    desc_col = DESCRIPTION if DESCRIPTION in df.columns else SYSTEM_DESCRIPTION
    dim = pd.DataFrame(
        {
            _KEY: column_values(df, SYSTEM).str.strip(),
            _DESC: column_values(df, desc_col).str.strip(),
        }
    )
    dim = dim[dim[_KEY].ne("")]
    return dim.drop_duplicates(subset=[_KEY], keep="first").reset_index(drop=True)


def index_system_descriptions(systems_rows: Rows) -> Dict[str, str]:
    """System code -> Description; the first row seen for a code wins."""
    dim = _system_dim(systems_rows)
    return dict(zip(dim[_KEY].tolist(), dim[_DESC].tolist()))


def ensure_canonical_fields(df: pd.DataFrame) -> pd.DataFrame:
    for col in CANONICAL_FIELDS:
        if col not in df.columns:
            df[col] = ""
    return df


def build_merged_rows(primary_rows: Rows, systems_rows: Rows) -> pd.DataFrame:
    """Left-join primary rows to the systems registry, adding "System Description"."""
    primary = as_frame(primary_rows)
    if len(primary.index) == 0:
        return ensure_canonical_fields(pd.DataFrame(columns=list(primary.columns)))

    left = primary.drop(columns=[SYSTEM_DESCRIPTION], errors="ignore").reset_index(drop=True).copy()
    left[_KEY] = column_values(left, SYSTEM).str.strip()
    merged = left.merge(_system_dim(systems_rows), on=_KEY, how="left", validate="many_to_one")
    merged[SYSTEM_DESCRIPTION] = merged[_DESC].fillna("").astype(object)
    merged = merged.drop(columns=[_KEY, _DESC])
    return ensure_canonical_fields(merged)
