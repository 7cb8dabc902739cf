"""
incentives/workbook.py

Reads the first worksheet of an uploaded workbook into a cell matrix.

Entirely-blank rows are dropped while reading, so the configured header
row number counts non-blank rows only.
"""

from __future__ import annotations

import csv
import io
import zipfile
from typing import Any

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from incentives.cells import is_blank
from incentives.errors import StructuralError

CSV_EXTENSIONS = (".csv",)
EXCEL_EXTENSIONS = (".xlsx", ".xlsm")
SUPPORTED_EXTENSIONS = EXCEL_EXTENSIONS + CSV_EXTENSIONS


def is_csv_filename(filename: str | None) -> bool:
    return (filename or "").strip().lower().endswith(CSV_EXTENSIONS)


def load_first_sheet(content: bytes, *, filename: str | None = None) -> list[list[Any]]:
    """
    Return the non-blank rows of the first sheet as lists of raw cell values.
    """

    if not content:
        raise StructuralError("The uploaded file is empty.")

    if is_csv_filename(filename):
        return _read_csv(content)
    return frame_to_rows(_read_excel(content))


def frame_to_rows(frame: pd.DataFrame) -> list[list[Any]]:
    """
    Convert a headerless frame to row lists with ``None`` for missing cells.
    """

    if frame.empty:
        return []
    cleaned = frame.astype(object).where(frame.notna(), None)
    return [
        list(row)
        for row in cleaned.itertuples(index=False, name=None)
        if not all(is_blank(cell) for cell in row)
    ]


def _read_excel(content: bytes) -> pd.DataFrame:
    try:
        with pd.ExcelFile(io.BytesIO(content), engine="openpyxl") as workbook:
            if not workbook.sheet_names:
                raise StructuralError("The workbook does not contain any sheets.")
            return workbook.parse(workbook.sheet_names[0], header=None, dtype=object)
    except StructuralError:
        raise
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError) as exc:
        raise StructuralError("Unable to read the first worksheet of the workbook.") from exc


def _read_csv(content: bytes) -> list[list[Any]]:
    try:
        text = content.decode("utf-8-sig")
        reader = csv.reader(io.StringIO(text, newline=""))
        return [[cell.strip() for cell in row] for row in reader if not all(is_blank(cell) for cell in row)]
    except UnicodeDecodeError as exc:
        raise StructuralError("CSV must be UTF-8 encoded.") from exc
    except csv.Error as exc:
        raise StructuralError(f"Invalid CSV format: {exc}") from exc
