from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, Field


class ChecklistFiltersModel(BaseModel):
    selections: Dict[str, List[str]] = Field(default_factory=dict)
    grain: str = "daily"
    top_n: int = 5


class StatusModel(BaseModel):
    text: str
    tone: str = "info"


class FileItemModel(BaseModel):
    role: str
    name: str
    label: str
    size: str


class UploadResponse(BaseModel):
    status: StatusModel
    files: List[FileItemModel] = Field(default_factory=list)
    rows: int = 0


class FacetsResponse(BaseModel):
    facets: Dict[str, List[str]]
