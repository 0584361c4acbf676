from __future__ import annotations

from typing import List, Optional, Sequence


class ChecklistError(Exception):
    """Base class for errors surfaced to the user as a status message."""


class MissingColumnsError(ChecklistError):
    def __init__(self, missing: Sequence[str], role: Optional[str] = None) -> None:
        self.missing: List[str] = list(missing)
        self.role = role
        super().__init__(self.status_text())

    def status_text(self) -> str:
        cols = ", ".join(self.missing)
        if self.role == "systems":
            return f"Systems File: Missing Columns: {cols}"
        if self.role == "primary":
            return f"Checklists File: Missing Columns: {cols}"
        return f"Missing columns: {cols}"


class NoDataAfterMergeError(ChecklistError):
    def __init__(self) -> None:
        super().__init__("No data rows found after enrichment.")


class UnparseableFileError(ChecklistError):
    def __init__(self, filename: str, reason: str = "") -> None:
        self.filename = filename
        self.reason = reason
        detail = f" ({reason})" if reason else ""
        super().__init__(f'Failed to parse "{filename}"{detail}. Please check the format and try again.')


class TooManyFilesError(ChecklistError):
    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Max {limit} Excel files total. Drop your data file and a systems list.")
