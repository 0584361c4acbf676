from __future__ import annotations

from dataclasses import asdict
import logging
import math
from typing import List, Literal

import numpy as np
import pandas as pd
from fastapi import APIRouter, Depends, FastAPI, File, Request, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import ChecklistFiltersModel, FacetsResponse, UploadResponse
from checklists.data import prepare_context
from checklists.filters import FILTER_FIELDS, ChecklistFilters, normalize_filters, sorted_facet_values
from checklists.matrix import build_completion_matrix
from checklists.metrics_debug import compute_debug
from checklists.metrics_overview import compute_overview
from checklists.metrics_systems import compute_systems_matrix
from checklists.session import ChecklistSession

logger = logging.getLogger(__name__)
router = APIRouter()

EXPORT_PAGES = {
    "rows": "rows.csv",
    "preview": "rows.csv",
    "systems": "systems-matrix.csv",
    "systems-matrix": "systems-matrix.csv",
}


def get_session(request: Request) -> ChecklistSession:
    return request.app.state.session


def _filters_from_model(model: ChecklistFiltersModel) -> ChecklistFilters:
    raw = model.model_dump()
    return normalize_filters(raw, available_fields=FILTER_FIELDS)


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        ),
    )


def _error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


def _upload_payload(session: ChecklistSession) -> dict:
    return UploadResponse(
        status=asdict(session.status),
        files=session.file_items(),
        rows=int(len(session.all_rows)),
    ).model_dump()


@router.post("/upload")
def upload(files: List[UploadFile] = File(...), session: ChecklistSession = Depends(get_session)):
    try:
        uploads = [(f.filename or "", f.file.read()) for f in files]
        status = session.ingest_uploads(uploads)
        return _json(_upload_payload(session), status_code=400 if status.tone == "error" else 200)
    except Exception as exc:
        logger.exception("upload failed")
        return _error(exc)


@router.delete("/files/{role}")
def remove_file(role: Literal["primary", "systems"], session: ChecklistSession = Depends(get_session)):
    try:
        session.remove(role)
        return _json(_upload_payload(session))
    except Exception as exc:
        logger.exception("remove_file failed")
        return _error(exc)


@router.get("/meta/files")
def meta_files(session: ChecklistSession = Depends(get_session)):
    return _json(_upload_payload(session))


@router.get("/meta/facets")
def meta_facets(session: ChecklistSession = Depends(get_session)):
    try:
        facets = {f: sorted_facet_values(v) for f, v in session.facets.items()}
        return _json(FacetsResponse(facets=facets).model_dump())
    except Exception as exc:
        logger.exception("meta_facets failed")
        return _error(exc)


@router.post("/preview")
def preview(filters: ChecklistFiltersModel, session: ChecklistSession = Depends(get_session)):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, session.data_context())
        rows: pd.DataFrame = ctx["preview"]  # type: ignore[assignment]
        return _json(
            {
                "filters": asdict(f),
                "rows_count": int(len(session.all_rows)),
                "filtered_count": int(len(ctx["filtered_rows"])),  # type: ignore[arg-type]
                "columns": list(rows.columns),
                "rows": rows.to_dict(orient="records"),
            }
        )
    except Exception as exc:
        logger.exception("preview failed")
        return _error(exc)


@router.post("/overview")
def overview(filters: ChecklistFiltersModel, session: ChecklistSession = Depends(get_session)):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, session.data_context())
        return _json(compute_overview(f, ctx))
    except Exception as exc:
        logger.exception("overview failed")
        return _error(exc)


@router.post("/systems-matrix")
def systems_matrix(filters: ChecklistFiltersModel, session: ChecklistSession = Depends(get_session)):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, session.data_context())
        return _json(compute_systems_matrix(f, ctx))
    except Exception as exc:
        logger.exception("systems_matrix failed")
        return _error(exc)


@router.post("/debug")
def debug(filters: ChecklistFiltersModel, session: ChecklistSession = Depends(get_session)):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, session.data_context())
        return _json(compute_debug(f, ctx))
    except Exception as exc:
        logger.exception("debug failed")
        return _error(exc)


@router.post("/export/{page}")
def export_page(page: str, filters: ChecklistFiltersModel, session: ChecklistSession = Depends(get_session)):
    if page not in EXPORT_PAGES:
        return JSONResponse(status_code=404, content={"error": "Unknown export page", "pages": sorted(EXPORT_PAGES)})
    f = _filters_from_model(filters)
    ctx = prepare_context(f, session.data_context())

    filename = EXPORT_PAGES[page]
    if filename == "rows.csv":
        export_df = ctx.get("filtered_rows")
    else:
        export_df = build_completion_matrix(ctx.get("filtered_rows", pd.DataFrame())).to_frame()  # type: ignore[arg-type]

    if export_df is None or not hasattr(export_df, "to_csv"):
        export_df = pd.DataFrame()
    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})


def create_app() -> FastAPI:
    app = FastAPI(title="Checklist Dashboard API", version="0.1.0")
    app.state.session = ChecklistSession()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app


app = create_app()
