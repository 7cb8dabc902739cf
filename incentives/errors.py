"""
incentives/errors.py

Fatal ingestion errors raised by the incentive engine.

Cell-level anomalies never surface here; they degrade to sentinel values
and are reported through ``IngestionDiagnostics`` instead.
"""

from __future__ import annotations

from typing import Any, Sequence


class IncentiveIngestionError(ValueError):
    """
    Base class for errors that abort a parse pass.
    """

    code = "ingestion_failed"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}


class StructuralError(IncentiveIngestionError):
    """
    Raised when the workbook has no usable sheet, header row, or data rows.
    """

    code = "structural"


class MissingColumnsError(IncentiveIngestionError):
    """
    Raised when required logical columns cannot be found in the header row.
    """

    code = "missing_columns"

    def __init__(self, *, missing_fields: Sequence[str], found_headers: Sequence[str]) -> None:
        self.missing_fields = tuple(missing_fields)
        self.found_headers = tuple(found_headers)
        found = ", ".join(f'"{header}"' for header in self.found_headers) or "none"
        super().__init__(
            "Failed to detect required columns: "
            f"{', '.join(self.missing_fields)}. Headers found: {found}."
        )

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["missing_fields"] = list(self.missing_fields)
        payload["found_headers"] = list(self.found_headers)
        return payload


class NoDataExtractedError(IncentiveIngestionError):
    """
    Raised when every row was read but none produced a countable department.
    """

    code = "no_data_extracted"

    def __init__(
        self,
        *,
        rows_processed: int,
        rows_skipped: dict[str, int],
        unmatched_departments: Sequence[str],
    ) -> None:
        self.rows_processed = rows_processed
        self.rows_skipped = dict(rows_skipped)
        self.unmatched_departments = tuple(unmatched_departments)
        skipped_total = sum(self.rows_skipped.values())
        message = (
            "No incentive-eligible visits were found "
            f"({rows_processed} rows processed, {skipped_total} skipped)."
        )
        if self.unmatched_departments:
            preview = ", ".join(self.unmatched_departments[:10])
            message += f" Unmatched departments: {preview}."
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["rows_processed"] = self.rows_processed
        payload["rows_skipped"] = dict(self.rows_skipped)
        payload["unmatched_departments"] = list(self.unmatched_departments)
        return payload
