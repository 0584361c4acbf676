from __future__ import annotations

import math
import re
from typing import Optional

import numpy as np
import pandas as pd


EXCEL_EPOCH = np.datetime64("1899-12-30", "ms")
GRAINS = ("daily", "weekly", "monthly", "yearly")
# keeps the millisecond offset well inside int64
MAX_SERIAL_MILLIS = 8_640_000_000_000_000
FIRST_DAY = np.datetime64("0001-01-01", "D")
LAST_DAY = np.datetime64("9999-12-31", "D")
_A_MONDAY = np.datetime64("1970-01-05", "D")

_SERIAL_RE = re.compile(r"^\d+(\.\d+)?$", re.ASCII)
_TZ_PAREN_RE = re.compile(r"\([^)]*?\bUTC\b[^)]*\)", re.IGNORECASE | re.ASCII)
_TZ_BARE_RE = re.compile(r"\bUTC\s*[+-]?\s*\d{1,2}(?::?\d{2})?\b", re.IGNORECASE | re.ASCII)
_TIME_SUFFIX = r"(?:[ T]+\d{1,2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:\s*[AaPp][Mm])?)?"
_ISO_RE = re.compile(r"^(\d{4})([-/.])(\d{1,2})\2(\d{1,2})" + _TIME_SUFFIX + r"$", re.ASCII)
_DMY_RE = re.compile(r"^(\d{1,2})([-/.])(\d{1,2})\2(\d{4})" + _TIME_SUFFIX + r"$", re.ASCII)
# the generic parser fills a missing date part from the clock
_YEAR_RE = re.compile(r"(?<!\d)\d{4}(?!\d)", re.ASCII)


def _is_missing(value: object) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _fmt_ymd(ts: pd.Timestamp) -> str:
    return f"{ts.year:04d}-{ts.month:02d}-{ts.day:02d}"


def _valid_ymd(year: str, month: str, day: str) -> Optional[str]:
    ymd = f"{int(year):04d}-{int(month):02d}-{int(day):02d}"
    try:
        day_value = np.datetime64(ymd, "D")
    except ValueError:
        return None
    return ymd if FIRST_DAY <= day_value <= LAST_DAY else None


def excel_serial_to_iso_date(n: object) -> Optional[str]:
    """Excel serial day count (day 0 = 1899-12-30) -> "YYYY-MM-DD"."""
    try:
        days = float(n)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        days = 0.0
    if math.isnan(days) or math.isinf(days):
        days = 0.0
    millis = math.floor(days * 86400000 + 0.5)
    if abs(millis) > MAX_SERIAL_MILLIS:
        return None
    day = (EXCEL_EPOCH + np.timedelta64(millis, "ms")).astype("datetime64[D]")
    if day < FIRST_DAY or day > LAST_DAY:
        return None
    return str(day)


def strip_utc_annotation(text: str) -> str:
    s = _TZ_PAREN_RE.sub("", text)
    s = _TZ_BARE_RE.sub("", s)
    return s.strip()


def normalize_to_iso_date(value: object) -> Optional[str]:
    """Normalize a raw cell to "YYYY-MM-DD", or None when it is not a date."""
    if _is_missing(value):
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return excel_serial_to_iso_date(value)
    if isinstance(value, pd.Timestamp):
        ts = value.tz_convert("UTC") if value.tzinfo is not None else value
        return _fmt_ymd(ts)

    raw = str(value).strip()
    if not raw:
        return None
    if _SERIAL_RE.match(raw):
        return excel_serial_to_iso_date(float(raw))

    s = strip_utc_annotation(raw)
    if not s:
        return None

    m = _ISO_RE.match(s)
    if m:
        ymd = _valid_ymd(m.group(1), m.group(3), m.group(4))
        if ymd:
            return ymd
    m = _DMY_RE.match(s)
    if m:
        ymd = _valid_ymd(m.group(4), m.group(3), m.group(1))
        if ymd:
            return ymd

    if not _YEAR_RE.search(s):
        return None
    parsed = pd.to_datetime(s, errors="coerce")
    if parsed is None or pd.isna(parsed):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.tz_convert("UTC")
    return _fmt_ymd(parsed)


def parse_ymd(ymd: str) -> pd.Timestamp:
    y, m, d = (ymd.split("-") + ["1", "1"])[:3]
    return pd.Timestamp(year=int(y), month=int(m or 1), day=int(d or 1))


def start_of_iso_week(ymd: str) -> str:
    """Monday that starts the week containing `ymd`."""
    day = np.datetime64(ymd, "D")
    # days since the most recent Monday
    since_monday = int((day - _A_MONDAY).astype("int64")) % 7
    return str(day - np.timedelta64(since_monday, "D"))


def end_of_month(ymd: str) -> str:
    d = parse_ymd(ymd)
    return _fmt_ymd(d + pd.offsets.MonthEnd(0))


def month_key(ymd: str) -> str:
    return ymd[:7]


def year_key(ymd: str) -> str:
    return ymd[:4]


def bucket_key(ymd: str, grain: str) -> str:
    if grain == "daily":
        return ymd
    if grain == "weekly":
        return start_of_iso_week(ymd)
    if grain == "monthly":
        return month_key(ymd)
    if grain == "yearly":
        return year_key(ymd)
    raise ValueError(f"Unknown grain: {grain!r} (expected one of {', '.join(GRAINS)})")
