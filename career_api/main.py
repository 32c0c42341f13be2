from __future__ import annotations

import logging
import math

import numpy as np
import pandas as pd
from fastapi import FastAPI, File, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from career_api.schemas import (
    MetaViewsResponse,
    OptionsResponse,
    TemplateResponse,
    UploadResponse,
    ViewFiltersModel,
    ViewInfo,
)
from career_core.config import load_settings
from career_core.data import DatasetStore, RowSet, compute_view, export_csv, filters_for, ingest, page_rows, prepare_context
from career_core.errors import CareerDataError, DecodeError, NoDatasetError, UnknownViewError, ValidationError
from career_core.filters import ViewFilters, filter_options
from career_core.views import VIEWS, get_view

settings = load_settings()
for _name in ("career_core", "career_api"):
    logging.getLogger(_name).setLevel(settings.log_level)

app = FastAPI(title="Career Analysis API", version="0.1.0")
logger = logging.getLogger(__name__)
store = DatasetStore()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _filters_from_model(view: str, model: ViewFiltersModel) -> ViewFilters:
    raw = model.model_dump()
    return filters_for(view, raw, default_top_n=settings.default_top_n, max_top_n=settings.max_top_n)


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
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
        )
    )


def _failure(exc: Exception, action: str) -> JSONResponse:
    content = {"error": str(exc), "type": type(exc).__name__}
    if isinstance(exc, (UnknownViewError, NoDatasetError)):
        return JSONResponse(status_code=404, content=content)
    if isinstance(exc, ValidationError):
        return JSONResponse(status_code=422, content={**content, "missing": list(exc.missing)})
    if isinstance(exc, CareerDataError):
        return JSONResponse(status_code=400, content=content)
    logger.exception("%s failed", action)
    return JSONResponse(status_code=500, content=content)


def _require(view: str) -> RowSet:
    get_view(view)
    rowset = store.get(view)
    if rowset is None:
        raise NoDatasetError(view)
    return rowset


@app.get("/meta/views")
def meta_views():
    try:
        loaded = set(store.views())
        views = [
            ViewInfo(
                name=v.name,
                title=v.title,
                required=[r.label for r in v.spec.requirements],
                filters=list(v.category_filters),
                template_name=v.template_name,
                loaded=v.name in loaded,
            )
            for v in VIEWS.values()
        ]
        return _json(MetaViewsResponse(views=views).model_dump())
    except Exception as exc:
        return _failure(exc, "meta_views")


@app.get("/templates/{view}.csv")
def template_csv(view: str):
    try:
        schema = get_view(view)
        csv_bytes = pd.DataFrame(columns=list(schema.template)).to_csv(index=False).encode("utf-8")
        return Response(
            content=csv_bytes,
            media_type="text/csv",
            headers={"Content-Disposition": f"attachment; filename={schema.template_name}"},
        )
    except Exception as exc:
        return _failure(exc, "template_csv")


@app.get("/templates/{view}")
def template(view: str):
    try:
        schema = get_view(view)
        return _json(TemplateResponse(view=schema.name, filename=schema.template_name, headers=list(schema.template)).model_dump())
    except Exception as exc:
        return _failure(exc, "template")


@app.post("/upload/{view}")
def upload(view: str, file: UploadFile = File(...)):
    try:
        get_view(view)
        file_bytes = file.file.read(settings.max_upload_bytes + 1)
        if len(file_bytes) > settings.max_upload_bytes:
            raise DecodeError(f"File is larger than {settings.max_upload_bytes} bytes")
        rowset = ingest(store, view, file_bytes, file.filename or "")
        if rowset is None:
            return JSONResponse(
                status_code=409,
                content={"error": "A newer upload for this view replaced this one", "type": "Superseded"},
            )
        return _json(UploadResponse(**rowset.summary()).model_dump())
    except Exception as exc:
        return _failure(exc, "upload")


@app.post("/analysis/{view}")
def analysis(view: str, filters: ViewFiltersModel):
    try:
        rowset = _require(view)
        f = _filters_from_model(view, filters)
        return _json(compute_view(view, f, rowset))
    except Exception as exc:
        return _failure(exc, "analysis")


@app.post("/rows/{view}")
def rows(view: str, filters: ViewFiltersModel):
    try:
        rowset = _require(view)
        f = _filters_from_model(view, filters)
        ctx = prepare_context(get_view(view), f, rowset)
        return _json({"view": view, **page_rows(ctx["filtered"], f.page, settings.page_size)})
    except Exception as exc:
        return _failure(exc, "rows")


@app.get("/meta/options/{view}")
def meta_options(view: str):
    try:
        rowset = _require(view)
        options = filter_options(rowset.frame, get_view(view))
        return _json(OptionsResponse(view=view, options=options).model_dump())
    except Exception as exc:
        return _failure(exc, "meta_options")


@app.post("/export/{view}")
def export_view(view: str, filters: ViewFiltersModel):
    try:
        rowset = _require(view)
        f = _filters_from_model(view, filters)
        ctx = prepare_context(get_view(view), f, rowset)
        csv_bytes = export_csv(ctx["filtered"])
        filename = f"{view}_filtered.csv"
        return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})
    except Exception as exc:
        return _failure(exc, "export")


@app.delete("/datasets/{view}")
def clear_dataset(view: str):
    try:
        get_view(view)
        cleared = store.clear(view)
        if cleared:
            logger.info("Cleared dataset for %s", view)
        return _json({"view": view, "cleared": cleared})
    except Exception as exc:
        return _failure(exc, "clear_dataset")
