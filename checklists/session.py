"""Owner of the uploaded datasets and the active filter selection.

A session holds at most one checklist (primary) dataset and one systems
registry. Every derived view (merged rows, facets, filtered rows) is rebuilt
from those two frames; nothing else in the package keeps state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Literal, Optional, Sequence, Tuple

import pandas as pd

from checklists.data import ParsedFile, format_bytes, is_excel, parse_upload
from checklists.dates import GRAINS
from checklists.errors import ChecklistError, NoDataAfterMergeError, TooManyFilesError
from checklists.filters import FILTER_FIELDS, ChecklistFilters, apply_filters, build_facets, normalize_filters
from checklists.merge import build_merged_rows
from checklists.roles import Role, classify_rows, resolve_role

logger = logging.getLogger(__name__)

MAX_FILES = 2

Tone = Literal["info", "success", "error"]


@dataclass(frozen=True)
class StatusMessage:
    text: str
    tone: Tone = "info"


@dataclass(frozen=True)
class LoadedFile:
    role: Role
    name: str
    size: int = 0

    @property
    def label(self) -> str:
        return "Data file" if self.role == "primary" else "Systems list"


class ChecklistSession:
    def __init__(self) -> None:
        self.primary_file: Optional[LoadedFile] = None
        self.systems_file: Optional[LoadedFile] = None
        self.primary_rows: pd.DataFrame = pd.DataFrame()
        self.systems_rows: pd.DataFrame = pd.DataFrame()
        self.filters = ChecklistFilters()
        self.status = StatusMessage("Upload a data file and a systems list to begin.")
        self._all_rows: pd.DataFrame = pd.DataFrame()
        self._facets: Dict[str, List[str]] = {}

    # ---------------- datasets ----------------
    @property
    def file_count(self) -> int:
        return int(self.primary_file is not None) + int(self.systems_file is not None)

    @property
    def has_primary(self) -> bool:
        return self.primary_file is not None and len(self.primary_rows.index) > 0

    @property
    def has_systems(self) -> bool:
        return self.systems_file is not None and len(self.systems_rows.index) > 0

    @property
    def ready(self) -> bool:
        return self.has_primary and self.has_systems and not self._all_rows.empty

    def file_items(self) -> List[Dict[str, object]]:
        items: List[Dict[str, object]] = []
        for f in (self.primary_file, self.systems_file):
            if f is not None:
                items.append({"role": f.role, "name": f.name, "label": f.label, "size": format_bytes(f.size)})
        return items

    def _commit(self, role: Role, parsed: ParsedFile) -> None:
        loaded = LoadedFile(role=role, name=parsed.name, size=parsed.size)
        if role == "primary":
            self.primary_file, self.primary_rows = loaded, parsed.rows
        else:
            self.systems_file, self.systems_rows = loaded, parsed.rows
        logger.info("%s assigned to %s role (%d row(s))", parsed.name, role, len(parsed.rows))

    def _reset_derived(self) -> None:
        self._all_rows = pd.DataFrame()
        self._facets = {}
        self.filters = ChecklistFilters(grain="daily", top_n=self.filters.top_n)

    def _rebuild(self) -> None:
        merged = build_merged_rows(self.primary_rows, self.systems_rows)
        if merged.empty:
            self._reset_derived()
            raise NoDataAfterMergeError()
        self._all_rows = merged
        self._facets = build_facets(merged, FILTER_FIELDS)
        self.filters = ChecklistFilters(grain=self.filters.grain, top_n=self.filters.top_n)

    def _set_status(self, text: str, tone: Tone) -> StatusMessage:
        self.status = StatusMessage(text, tone)
        if tone == "error":
            logger.warning(text)
        return self.status

    def ingest_uploads(self, uploads: Iterable[Tuple[str, bytes]]) -> StatusMessage:
        """Parse raw uploads (name, bytes) and feed them to ingest_batch."""
        excel = [(name, content) for name, content in uploads if is_excel(name)]
        if not excel:
            return self._set_status("Only .xlsx / .xls files are supported.", "error")
        if self.file_count + len(excel) > MAX_FILES:
            return self._set_status(str(TooManyFilesError(MAX_FILES)), "error")
        try:
            parsed = [parse_upload(name, content) for name, content in excel]
        except ChecklistError as exc:
            return self._set_status(str(exc), "error")
        return self.ingest_batch(parsed)

    def ingest_batch(self, files: Sequence[ParsedFile]) -> StatusMessage:
        """Assign roles in input order; stop at the first file that fails validation."""
        if self.file_count + len(files) > MAX_FILES:
            return self._set_status(str(TooManyFilesError(MAX_FILES)), "error")
        try:
            for parsed in files:
                role = resolve_role(classify_rows(parsed.rows))
                self._commit(role, parsed)
        except ChecklistError as exc:
            return self._set_status(str(exc), "error")

        if not (self.has_primary and self.has_systems):
            self._reset_derived()
            missing = " and ".join(
                part
                for part in (
                    None if self.has_primary else "data file (with required columns)",
                    None if self.has_systems else "systems list (System + Description)",
                )
                if part
            )
            return self._set_status(f"Both files are required. Missing: {missing}.", "error")

        try:
            self._rebuild()
        except ChecklistError as exc:
            return self._set_status(str(exc), "error")

        parts = []
        if self.primary_file:
            parts.append(f'data: "{self.primary_file.name}"')
        if self.systems_file:
            parts.append(f'systems: "{self.systems_file.name}"')
        return self._set_status(
            f"Parsed {' + '.join(parts)} • {len(self._all_rows)} row(s) after enrichment.", "success"
        )

    def remove(self, role: Role) -> StatusMessage:
        if role == "primary":
            self.primary_file, self.primary_rows = None, pd.DataFrame()
        elif role == "systems":
            self.systems_file, self.systems_rows = None, pd.DataFrame()
        else:
            raise ValueError(f"Unknown role: {role!r}")
        logger.info("removed %s file", role)

        if not (self.has_primary and self.has_systems):
            self._reset_derived()
            return self._set_status("Both files are required. Please attach a data file and a systems list.", "error")
        try:
            self._rebuild()
        except ChecklistError as exc:
            return self._set_status(str(exc), "error")
        return self._set_status(f"{len(self._all_rows)} row(s) after enrichment.", "success")

    # ---------------- derived views ----------------
    @property
    def all_rows(self) -> pd.DataFrame:
        return self._all_rows

    @property
    def facets(self) -> Dict[str, List[str]]:
        return self._facets

    def filtered_rows(self) -> pd.DataFrame:
        return apply_filters(self._all_rows, self.filters.selections)

    # ---------------- filter selection ----------------
    def set_filters(self, raw: dict | ChecklistFilters) -> ChecklistFilters:
        self.filters = raw if isinstance(raw, ChecklistFilters) else normalize_filters(raw, available_fields=FILTER_FIELDS)
        return self.filters

    def set_selection(self, field: str, values: Iterable[str]) -> ChecklistFilters:
        selections = dict(self.filters.selections)
        vals = list(dict.fromkeys(str(v) for v in values))
        if vals:
            selections[field] = vals
        else:
            selections.pop(field, None)
        self.filters = replace(self.filters, selections=selections)
        return self.filters

    def clear_filters(self) -> ChecklistFilters:
        self.filters = replace(self.filters, selections={})
        return self.filters

    def set_grain(self, grain: str) -> ChecklistFilters:
        if grain not in GRAINS:
            raise ValueError(f"Unknown grain: {grain!r}")
        self.filters = replace(self.filters, grain=grain)
        return self.filters

    def data_context(self) -> Dict[str, object]:
        return {
            "files": self.file_items(),
            "all_rows": self._all_rows,
            "primary_rows": self.primary_rows,
            "systems_rows": self.systems_rows,
            "facets": self._facets,
        }
