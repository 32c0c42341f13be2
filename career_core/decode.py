from __future__ import annotations

import csv
import io
import logging
import zipfile
from pathlib import PurePath
from typing import Dict, List

import pandas as pd

from career_core.coerce import as_text, is_blank
from career_core.errors import DecodeError
from career_core.headers import normalize_headers

logger = logging.getLogger(__name__)

DELIMITED_TEXT = "delimited-text"
SPREADSHEET_BINARY = "spreadsheet-binary"

EXTENSION_FORMATS = {
    ".csv": DELIMITED_TEXT,
    ".xlsx": SPREADSHEET_BINARY,
}

EMPTY_UPLOAD = "The file appears to be empty"


def format_from_filename(filename: str) -> str:
    ext = PurePath(filename or "").suffix.lower()
    fmt = EXTENSION_FORMATS.get(ext)
    if fmt is None:
        raise DecodeError("Please upload a .xlsx or .csv file")
    return fmt


def drop_duplicate_columns(df: pd.DataFrame) -> pd.DataFrame:
    # later columns win when two headers normalize to the same name
    return df.loc[:, ~df.columns.duplicated(keep="last")]


def _header_width(text: str) -> int:
    for fields in csv.reader(io.StringIO(text)):
        if any(f.strip() for f in fields):
            return len(fields)
    return 0


def _read_delimited(file_bytes: bytes) -> pd.DataFrame:
    text = file_bytes.decode("utf-8-sig", errors="replace")
    width = _header_width(text)
    if not width:
        raise DecodeError(EMPTY_UPLOAD)
    try:
        return pd.read_csv(
            io.StringIO(text),
            header=None,
            # width comes from the header line, not from leading separator-only rows
            names=list(range(width)),
            index_col=False,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            engine="python",
            on_bad_lines=lambda fields: fields[:width],
        )
    except pd.errors.EmptyDataError as exc:
        raise DecodeError(EMPTY_UPLOAD) from exc
    except (pd.errors.ParserError, csv.Error) as exc:
        raise DecodeError(f"Could not parse delimited text: {exc}") from exc


def _read_spreadsheet(file_bytes: bytes) -> pd.DataFrame:
    try:
        return pd.read_excel(io.BytesIO(file_bytes), sheet_name=0, header=None, dtype=object, engine="openpyxl")
    except (zipfile.BadZipFile, ValueError, KeyError, OSError) as exc:
        raise DecodeError(f"Could not read spreadsheet: {exc}") from exc


def _frame_from_grid(raw: pd.DataFrame) -> pd.DataFrame:
    if raw.empty:
        raise DecodeError(EMPTY_UPLOAD)
    grid = raw.astype(object).where(raw.notna(), "")
    blank = grid.apply(lambda col: col.map(is_blank))
    grid = grid[~blank.all(axis=1)]
    if len(grid) < 2:
        raise DecodeError(EMPTY_UPLOAD)

    headers = normalize_headers(as_text(h) for h in grid.iloc[0])
    body = grid.iloc[1:].reset_index(drop=True)

    keep: List[int] = []
    names: List[str] = []
    for pos, name in enumerate(headers):
        if not name:
            if body.iloc[:, pos].map(is_blank).all():
                continue
            name = f"Unnamed {pos + 1}"
        keep.append(pos)
        names.append(name)
    if not keep:
        raise DecodeError(EMPTY_UPLOAD)

    frame = body.iloc[:, keep].copy()
    frame.columns = names
    return drop_duplicate_columns(frame).reset_index(drop=True)


def decode(file_bytes: bytes, declared_format: str) -> pd.DataFrame:
    """Decode an upload into a row set: one row per non-blank data line, canonical headers."""
    if declared_format == DELIMITED_TEXT:
        raw = _read_delimited(file_bytes)
    elif declared_format == SPREADSHEET_BINARY:
        raw = _read_spreadsheet(file_bytes)
    else:
        raise DecodeError(f"Unsupported file format: {declared_format}")
    frame = _frame_from_grid(raw)
    logger.debug("decoded %s upload: %d rows x %d columns", declared_format, len(frame), len(frame.columns))
    return frame


def decode_upload(file_bytes: bytes, filename: str) -> pd.DataFrame:
    return decode(file_bytes, format_from_filename(filename))


def rows_as_records(frame: pd.DataFrame) -> List[Dict[str, object]]:
    return frame.to_dict(orient="records")
