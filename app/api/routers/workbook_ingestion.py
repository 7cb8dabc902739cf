"""
app/api/routers/workbook_ingestion.py

Workbook upload HTTP endpoint.
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_optional_db, get_workbook_upload
from app.api.responses import dashboard_fields, diagnostics_response, persistence_response
from app.schemas.incentives import WorkbookUploadResponse
from app.services.dashboard_service import build_dashboard_view
from app.services.workbook_ingestion_service import (
    WorkbookIngestionService,
    WorkbookPersistenceError,
    WorkbookUploadError,
    get_workbook_ingestion_service,
)
from incentives.errors import IncentiveIngestionError
from incentives.timeframe import Timeframe

router = APIRouter(tags=["incentives"])


@router.post("/upload-workbook", response_model=WorkbookUploadResponse)
def upload_workbook(
    file: UploadFile = Depends(get_workbook_upload),
    timeframe: Timeframe = Query(default=Timeframe.ALL, description="all, day or week"),
    anchor_date: date | None = Query(default=None, description="Day or week start; defaults to latest date"),
    db: Session | None = Depends(get_optional_db),
    ingestion_service: WorkbookIngestionService = Depends(get_workbook_ingestion_service),
) -> WorkbookUploadResponse:
    """
    Compute salesperson incentives for one uploaded workbook.
    """

    try:
        outcome = ingestion_service.ingest_workbook(upload_file=file, db=db, persist=db is not None)
    except IncentiveIngestionError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.to_dict(),
        ) from exc
    except WorkbookUploadError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except WorkbookPersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to persist customer visits.",
        ) from exc
    finally:
        file.file.close()

    result = outcome.result
    view = build_dashboard_view(
        metrics=result.metrics,
        available_dates=result.available_dates,
        date_labels=result.date_labels,
        master_departments=result.master_departments,
        timeframe=timeframe,
        anchor=anchor_date,
    )
    return WorkbookUploadResponse(
        **dashboard_fields(view),
        filename=outcome.filename,
        diagnostics=diagnostics_response(result.diagnostics),
        visits_count=len(result.visits),
        persistence=persistence_response(outcome.persistence),
    )
