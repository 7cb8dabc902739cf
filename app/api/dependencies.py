"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation.
"""

from __future__ import annotations

from collections.abc import Generator

from fastapi import File, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session

from db.session import get_db
from incentives.workbook import SUPPORTED_EXTENSIONS

WORKBOOK_CONTENT_TYPES = {
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-excel.sheet.macroenabled.12",
    "text/csv",
    "application/csv",
}


def get_workbook_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Validate that the upload is an .xlsx/.xlsm workbook or a .csv export.

    The extension decides how the file is read, so a known MIME type alone
    is not enough when the filename carries an unsupported extension.
    """

    filename = (file.filename or "").strip().lower()
    content_type = (file.content_type or "").strip().lower()

    has_supported_extension = filename.endswith(SUPPORTED_EXTENSIONS)
    has_extension = "." in filename.rsplit("/", 1)[-1]
    is_workbook_content_type = content_type in WORKBOOK_CONTENT_TYPES

    if not has_supported_extension and (has_extension or not is_workbook_content_type):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only .xlsx, .xlsm or .csv files are allowed.",
        )

    return file


def get_optional_db(
    persist: bool = Query(default=True, description="Store visits after parsing"),
) -> Generator[Session | None, None, None]:
    """
    Yield a session only when the request asks for persistence.
    """

    if not persist:
        yield None
        return
    yield from get_db()
