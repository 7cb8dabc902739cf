"""
app/services/workbook_ingestion_service.py

Service layer for workbook uploads: parse, log diagnostics, persist.

Engine errors (``IncentiveIngestionError`` subclasses) propagate unchanged so
the router can return their structured detail. Storage failures are rolled
back and re-raised as ``WorkbookPersistenceError``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache

from fastapi import UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_incentive_engine_settings, get_workbook_upload_settings
from app.repositories.visit_repository import VisitPersistenceStats, VisitRepository
from incentives.engine import IncentiveEngine, IncentiveParseResult

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class WorkbookUploadError(ValueError):
    """
    Raised when the uploaded file cannot be accepted before parsing.
    """


class WorkbookPersistenceError(RuntimeError):
    """
    Raised when parsed visits cannot be persisted.
    """


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WorkbookIngestionOutcome:
    filename: str | None
    result: IncentiveParseResult
    persistence: VisitPersistenceStats | None = None


class WorkbookIngestionService:
    """
    Coordinates workbook reading, incentive parsing and visit persistence.
    """

    def __init__(
        self,
        *,
        engine: IncentiveEngine,
        max_upload_bytes: int,
        log_diagnostics: bool,
    ) -> None:
        self._engine = engine
        self._max_upload_bytes = max(1, max_upload_bytes)
        self._log_diagnostics = log_diagnostics

    @property
    def engine(self) -> IncentiveEngine:
        return self._engine

    def ingest_workbook(
        self,
        *,
        upload_file: UploadFile,
        db: Session | None,
        persist: bool = True,
    ) -> WorkbookIngestionOutcome:
        """
        Parse one uploaded workbook and optionally upsert its visits.

        Args:
            upload_file: File to ingest.
            db:          Active SQLAlchemy session (caller owns lifecycle).
                         May be ``None`` when ``persist`` is false.
            persist:     Store visits and transactions after parsing.
        """

        content = self._read_upload(upload_file)
        result = self._engine.parse_workbook(content, filename=upload_file.filename)
        self._log_result(upload_file.filename, result)

        persistence: VisitPersistenceStats | None = None
        if persist:
            if db is None:
                raise WorkbookPersistenceError("No database session available for persistence.")
            persistence = self._persist(db=db, result=result)

        return WorkbookIngestionOutcome(
            filename=upload_file.filename,
            result=result,
            persistence=persistence,
        )

    def _read_upload(self, upload_file: UploadFile) -> bytes:
        raw_file = upload_file.file
        raw_file.seek(0)
        content = raw_file.read(self._max_upload_bytes + 1)
        if len(content) > self._max_upload_bytes:
            raise WorkbookUploadError(
                f"Workbook exceeds the {self._max_upload_bytes} byte upload limit."
            )
        if not content:
            raise WorkbookUploadError("The uploaded file is empty.")
        return content

    def _persist(self, *, db: Session, result: IncentiveParseResult) -> VisitPersistenceStats:
        repository = VisitRepository(db)
        try:
            stats = repository.save_visits(
                result.visits,
                result.interactions,
                total_departments=len(result.master_departments),
            )
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise WorkbookPersistenceError("Failed to persist customer visits.") from exc

        logger.info(
            "Visits persisted customers=%s created=%s updated=%s transactions=%s",
            stats.customers_upserted,
            stats.visits_created,
            stats.visits_updated,
            stats.transactions_written,
        )
        return stats

    def _log_result(self, filename: str | None, result: IncentiveParseResult) -> None:
        if not self._log_diagnostics:
            return

        diagnostics = result.diagnostics
        logger.info(
            "Workbook parsed filename=%r header_row=%s columns=%s",
            filename,
            diagnostics.header_row_number,
            diagnostics.columns,
        )
        if diagnostics.unmatched_departments:
            logger.warning(
                "Workbook departments not in master list filename=%r departments=%s",
                filename,
                sorted(diagnostics.unmatched_departments),
            )


@lru_cache(maxsize=1)
def get_workbook_ingestion_service() -> WorkbookIngestionService:
    """
    Build and cache the ingestion service with env-driven settings.
    """

    engine_settings = get_incentive_engine_settings()
    upload_settings = get_workbook_upload_settings()
    return WorkbookIngestionService(
        engine=IncentiveEngine(engine_settings.to_engine_config()),
        max_upload_bytes=upload_settings.max_upload_bytes,
        log_diagnostics=upload_settings.log_diagnostics,
    )
