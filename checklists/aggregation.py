from __future__ import annotations

from typing import Iterable, Union

import pandas as pd

from checklists.dates import GRAINS, bucket_key, normalize_to_iso_date
from checklists.headers import ACTUAL, Rows, as_frame, column_values


def has_actual(df: pd.DataFrame, date_field: str = ACTUAL) -> pd.Series:
    """True where the date field normalizes to a calendar date."""
    if date_field not in df.columns:
        return pd.Series(False, index=df.index)
    return df[date_field].map(normalize_to_iso_date).notna()


def _sort_entries(df: pd.DataFrame, by: str) -> pd.DataFrame:
    return df.sort_values([by, "value"], ascending=[False, True], kind="mergesort").reset_index(drop=True)


def group_counts(rows: Rows, field: str) -> pd.DataFrame:
    """Tally each raw value of `field` (including ""); count desc, value asc."""
    df = as_frame(rows)
    if len(df.index) == 0:
        return pd.DataFrame({"value": pd.Series(dtype=object), "count": pd.Series(dtype="int64")})
    counts = column_values(df, field).value_counts(sort=False)
    out = pd.DataFrame({"value": counts.index.astype(str), "count": counts.to_numpy(dtype="int64")})
    return _sort_entries(out, "count")


def group_counts_stacked(rows: Rows, field: str, date_field: str = ACTUAL) -> pd.DataFrame:
    """Complete/incomplete tallies per non-empty value of `field`, sorted by total."""
    df = as_frame(rows)
    empty = pd.DataFrame(
        {
            "value": pd.Series(dtype=object),
            "complete": pd.Series(dtype="int64"),
            "incomplete": pd.Series(dtype="int64"),
            "total": pd.Series(dtype="int64"),
        }
    )
    if len(df.index) == 0:
        return empty
    keys = column_values(df, field)
    base = pd.DataFrame({"value": keys, "complete": has_actual(df, date_field)})
    base = base[base["value"].ne("")]
    if base.empty:
        return empty
    grouped = (
        base.groupby("value", sort=False)["complete"]
        .agg(complete="sum", total="size")
        .reset_index()
    )
    grouped["complete"] = grouped["complete"].astype("int64")
    grouped["total"] = grouped["total"].astype("int64")
    grouped["incomplete"] = grouped["total"] - grouped["complete"]
    return _sort_entries(grouped[["value", "complete", "incomplete", "total"]], "total")


def top_n(entries: pd.DataFrame, n: int) -> pd.DataFrame:
    return entries.head(max(0, int(n))).reset_index(drop=True)


def build_time_series(rows: Rows, date_field: str = ACTUAL, grain: str = "daily") -> pd.DataFrame:
    """Count rows per time bucket; rows without a usable date are skipped."""
    if grain not in GRAINS:
        raise ValueError(f"Unknown grain: {grain!r}")
    df = as_frame(rows)
    empty = pd.DataFrame(
        {"bucket": pd.Series(dtype=object), "label": pd.Series(dtype=object), "count": pd.Series(dtype="int64")}
    )
    if len(df.index) == 0 or date_field not in df.columns:
        return empty
    dates = df[date_field].map(normalize_to_iso_date).dropna()
    if dates.empty:
        return empty
    buckets = dates.map(lambda ymd: bucket_key(ymd, grain))
    counts = buckets.value_counts(sort=False).sort_index()
    return pd.DataFrame(
        {
            "bucket": counts.index.astype(str),
            "label": counts.index.astype(str),
            "count": counts.to_numpy(dtype="int64"),
        }
    )


def to_cumulative(counts: Union[pd.Series, Iterable[float]]) -> pd.Series:
    """Running total in the given order."""
    series = counts if isinstance(counts, pd.Series) else pd.Series(list(counts), dtype="float64")
    out = series.reset_index(drop=True).cumsum()
    if len(out) and (out % 1 == 0).all():
        out = out.astype("int64")
    return out


def build_cumulative_series(rows: Rows, date_field: str = ACTUAL) -> pd.DataFrame:
    daily = build_time_series(rows, date_field, "daily")
    daily["cumulative"] = to_cumulative(daily["count"]).to_numpy(dtype="int64")
    return daily
