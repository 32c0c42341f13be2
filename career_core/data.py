from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import pandas as pd

from career_core.decode import decode_upload, rows_as_records
from career_core.errors import DecodeError, ValidationError
from career_core.filters import ViewFilters, apply_filters, build_predicates, normalize_filters
from career_core.metrics_company import compute_company
from career_core.metrics_main import compute_main_dashboard
from career_core.metrics_segments import compute_gender, compute_hostel, compute_quota
from career_core.metrics_students import compute_students
from career_core.metrics_summary import compute_all_analysis, compute_batch, compute_placement_offer
from career_core.schema import ViewSchema
from career_core.views import get_view

logger = logging.getLogger(__name__)

ComputeFn = Callable[[ViewFilters, Dict[str, Any]], Dict[str, Any]]

COMPUTE: Dict[str, ComputeFn] = {
    "students": compute_students,
    "main_dashboard": compute_main_dashboard,
    "company": compute_company,
    "all_analysis": compute_all_analysis,
    "batch": compute_batch,
    "placement_offer": compute_placement_offer,
    "gender": compute_gender,
    "quota": compute_quota,
    "hostel": compute_hostel,
}


@dataclass(frozen=True)
class RowSet:
    """A validated upload adopted for one view. The frame is never modified after adoption."""

    view: str
    frame: pd.DataFrame
    filename: str
    generation: int
    adopted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def columns(self) -> List[str]:
        return [str(c) for c in self.frame.columns]

    def summary(self) -> Dict[str, Any]:
        return {
            "view": self.view,
            "filename": self.filename,
            "generation": self.generation,
            "rows": len(self.frame),
            "columns": self.columns,
            "adopted_at": self.adopted_at.isoformat(),
        }


class DatasetStore:
    """Active row set per view.

    `begin` hands out a generation number per upload; `commit` adopts a row set
    only when its generation is newer than the last one adopted or cleared for
    that view, so a slow upload finishing after a newer one never replaces it
    and an attempt that fails before committing supersedes nothing.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._issued: Dict[str, int] = {}
        self._floor: Dict[str, int] = {}
        self._active: Dict[str, RowSet] = {}

    def begin(self, view: str) -> int:
        with self._lock:
            gen = self._issued.get(view, 0) + 1
            self._issued[view] = gen
            return gen

    def commit(self, view: str, generation: int, frame: pd.DataFrame, filename: str = "") -> Optional[RowSet]:
        with self._lock:
            if generation <= self._floor.get(view, 0):
                return None
            self._floor[view] = generation
            rowset = RowSet(view=view, frame=frame, filename=filename, generation=generation)
            self._active[view] = rowset
            return rowset

    def get(self, view: str) -> Optional[RowSet]:
        with self._lock:
            return self._active.get(view)

    def clear(self, view: str) -> bool:
        with self._lock:
            # uploads begun before a clear are never adopted
            self._floor[view] = self._issued.get(view, 0)
            return self._active.pop(view, None) is not None

    def views(self) -> List[str]:
        with self._lock:
            return sorted(self._active)


def ingest(store: DatasetStore, view_name: str, file_bytes: bytes, filename: str) -> Optional[RowSet]:
    """Decode, validate and adopt an upload.

    Raises DecodeError / ValidationError and leaves the previous row set active on
    failure. Returns None when a newer upload for the same view started meanwhile.
    """
    view = get_view(view_name)
    generation = store.begin(view.name)
    try:
        frame = decode_upload(file_bytes, filename)
    except DecodeError:
        logger.warning("Upload %r for %s could not be decoded", filename, view.name)
        raise

    renames = view.alias_renames(frame.columns)
    if renames:
        logger.info("Upload %r for %s: renamed aliased headers %s", filename, view.name, renames)
        frame = frame.rename(columns=renames)

    result = view.validate(frame)
    if not result.ok:
        logger.warning("Upload %r for %s is missing columns: %s", filename, view.name, ", ".join(result.missing))
        raise ValidationError(result.missing)

    rowset = store.commit(view.name, generation, frame, filename)
    if rowset is None:
        logger.warning("Upload %r for %s superseded by a newer upload; discarded", filename, view.name)
        return None
    logger.info("Adopted %d rows from %r for %s (generation %d)", len(frame), filename, view.name, generation)
    return rowset


def prepare_context(view: ViewSchema, filters: ViewFilters, rowset: Optional[RowSet]) -> Dict[str, Any]:
    rows = rowset.frame if rowset is not None else pd.DataFrame(columns=list(view.template))
    predicates = build_predicates(filters, view)
    filtered = apply_filters(rows, predicates)
    return {
        "view": view,
        "rows": rows,
        "filtered": filtered,
        "predicates": predicates,
        "rowset": rowset,
    }


def compute_view(view_name: str, filters: ViewFilters, rowset: Optional[RowSet]) -> Dict[str, Any]:
    view = get_view(view_name)
    ctx = prepare_context(view, filters, rowset)
    return COMPUTE[view.name](filters, ctx)


def filters_for(view_name: str, raw: Optional[dict], *, default_top_n: int = 10, max_top_n: int = 200) -> ViewFilters:
    """Normalized filters for a view; equality axes the view does not offer are dropped."""
    view = get_view(view_name)
    filters = normalize_filters(raw, default_top_n=default_top_n, max_top_n=max_top_n)
    allowed = set(view.category_filters)
    if any(k not in allowed for k in filters.equals):
        filters = replace(filters, equals={k: v for k, v in filters.equals.items() if k in allowed})
    return filters


def page_rows(frame: pd.DataFrame, page: int, page_size: int) -> Dict[str, Any]:
    page_size = max(1, int(page_size))
    total_pages = max(1, math.ceil(len(frame) / page_size))
    page = max(1, min(int(page), total_pages))
    start = (page - 1) * page_size
    return {
        "page": page,
        "page_size": page_size,
        "total_rows": len(frame),
        "total_pages": total_pages,
        "columns": [str(c) for c in frame.columns],
        "rows": rows_as_records(frame.iloc[start : start + page_size]),
    }


def export_csv(frame: pd.DataFrame) -> bytes:
    return frame.to_csv(index=False).encode("utf-8")
