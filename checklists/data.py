from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd

from checklists.errors import UnparseableFileError
from checklists.filters import FILTER_FIELDS, ChecklistFilters, apply_filters, normalize_filters
from checklists.headers import normalize_rows

logger = logging.getLogger(__name__)

EXCEL_EXTENSIONS = (".xlsx", ".xls")
PREVIEW_ROW_LIMIT = 200


@dataclass(frozen=True)
class ParsedFile:
    name: str
    rows: pd.DataFrame
    size: int = 0


def is_excel(filename: Optional[str]) -> bool:
    return (filename or "").lower().endswith(EXCEL_EXTENSIONS)


def format_bytes(size: int) -> str:
    if not size or size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB", "TB"]
    value = float(size)
    idx = 0
    while value >= 1024 and idx < len(units) - 1:
        value /= 1024
        idx += 1
    return f"{value:.1f} {units[idx]}" if idx else f"{value:.0f} {units[idx]}"


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def read_excel_rows(source: Union[str, Path, io.BytesIO], name: Optional[str] = None) -> pd.DataFrame:
    """First sheet, first row as headers, every cell as display text ("" when blank)."""
    label = name or str(source)
    try:
        raw = pd.read_excel(source, sheet_name=0, header=0, dtype=str, keep_default_na=False)
    except Exception as exc:
        raise UnparseableFileError(label, str(exc)) from exc
    rows = normalize_rows(raw)
    logger.debug("read %s: %d row(s), columns=%s", label, len(rows), list(rows.columns))
    return rows


def parse_upload(name: str, content: bytes) -> ParsedFile:
    return ParsedFile(name=name, rows=read_excel_rows(io.BytesIO(content), name), size=len(content))


def prepare_context(filters: dict | ChecklistFilters, data_ctx: Dict[str, object]) -> Dict[str, object]:
    all_rows: pd.DataFrame = data_ctx.get("all_rows", pd.DataFrame())  # type: ignore[assignment]
    filt = filters if isinstance(filters, ChecklistFilters) else normalize_filters(filters, available_fields=FILTER_FIELDS)

    filtered_rows = apply_filters(all_rows, filt.selections) if not all_rows.empty else all_rows
    preview_cols: List[str] = [c for c in FILTER_FIELDS if c in filtered_rows.columns]
    preview = filtered_rows[preview_cols].head(PREVIEW_ROW_LIMIT) if preview_cols else pd.DataFrame()

    return {
        "filters": filt,
        "files": data_ctx.get("files", []),
        "all_rows": all_rows,
        "filtered_rows": filtered_rows,
        "primary_rows": data_ctx.get("primary_rows", pd.DataFrame()),
        "systems_rows": data_ctx.get("systems_rows", pd.DataFrame()),
        "facets": data_ctx.get("facets", {}),
        "preview": preview,
    }
