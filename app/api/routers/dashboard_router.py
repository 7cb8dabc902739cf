"""
app/api/routers/dashboard_router.py

Read endpoints over persisted visits.
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.responses import dashboard_response, visit_response
from app.schemas.incentives import CustomerVisitListResponse, IncentiveDashboardResponse
from app.services.dashboard_service import DashboardService, build_dashboard_view, get_dashboard_service
from db.session import get_db
from incentives.timeframe import Timeframe

router = APIRouter(tags=["incentives"])


@router.get("/dashboard", response_model=IncentiveDashboardResponse)
def get_dashboard(
    timeframe: Timeframe = Query(default=Timeframe.ALL, description="all, day or week"),
    anchor_date: date | None = Query(default=None, description="Day or week start; defaults to latest date"),
    db: Session = Depends(get_db),
    dashboard_service: DashboardService = Depends(get_dashboard_service),
) -> IncentiveDashboardResponse:
    """
    Salesperson incentives rebuilt from every stored visit.
    """

    try:
        persisted = dashboard_service.load_metrics(db=db)
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to load stored visits.",
        ) from exc

    view = build_dashboard_view(
        metrics=persisted.metrics,
        available_dates=persisted.available_dates,
        date_labels=persisted.date_labels,
        master_departments=dashboard_service.master_departments,
        timeframe=timeframe,
        anchor=anchor_date,
    )
    return dashboard_response(view)


@router.get("/visits", response_model=CustomerVisitListResponse)
def list_visits(
    date_from: date | None = Query(default=None),
    date_to: date | None = Query(default=None),
    customer_id: str | None = Query(default=None),
    salesperson: str | None = Query(default=None),
    department: str | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1, le=5000),
    db: Session = Depends(get_db),
    dashboard_service: DashboardService = Depends(get_dashboard_service),
) -> CustomerVisitListResponse:
    """
    Stored customer visits, newest first.
    """

    if date_from is not None and date_to is not None and date_from > date_to:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="date_from must not be after date_to.",
        )

    try:
        visits = dashboard_service.list_visits(
            db=db,
            date_from=date_from,
            date_to=date_to,
            customer_id=customer_id,
            salesperson=salesperson,
            department=department,
            limit=limit,
        )
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to load stored visits.",
        ) from exc

    return CustomerVisitListResponse(
        count=len(visits),
        visits=[visit_response(visit) for visit in visits],
    )
