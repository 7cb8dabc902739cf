"""
app/api/routers/customer_router.py

Read endpoints over stored customers.
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.responses import customer_detail_response, customer_summary_response
from app.schemas.incentives import CustomerDetailResponse, CustomerListResponse
from app.services.dashboard_service import DashboardService, get_dashboard_service
from db.session import get_db

router = APIRouter(prefix="/customers", tags=["customers"])


@router.get("", response_model=CustomerListResponse)
def list_customers(
    date_from: date | None = Query(default=None),
    date_to: date | None = Query(default=None),
    salesperson: str | None = Query(default=None),
    department: str | None = Query(default=None),
    min_visits: int | None = Query(default=None, ge=1),
    search: str | None = Query(default=None, description="Matches customer id or name"),
    limit: int | None = Query(default=None, ge=1, le=5000),
    db: Session = Depends(get_db),
    dashboard_service: DashboardService = Depends(get_dashboard_service),
) -> CustomerListResponse:
    """
    Stored customers, most recently seen first.

    Date, salesperson and department filters keep a customer when a single
    stored visit satisfies all of them.
    """

    if date_from is not None and date_to is not None and date_from > date_to:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="date_from must not be after date_to.",
        )

    try:
        overviews = dashboard_service.list_customers(
            db=db,
            date_from=date_from,
            date_to=date_to,
            salesperson=salesperson,
            department=department,
            min_visits=min_visits,
            search=search,
            limit=limit,
        )
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to load stored customers.",
        ) from exc

    return CustomerListResponse(
        count=len(overviews),
        customers=[customer_summary_response(overview) for overview in overviews],
    )


@router.get("/{customer_ref}", response_model=CustomerDetailResponse)
def get_customer(
    customer_ref: str,
    db: Session = Depends(get_db),
    dashboard_service: DashboardService = Depends(get_dashboard_service),
) -> CustomerDetailResponse:
    """
    One customer by stored UUID or customer id, with every visit.

    Raises HTTP 404 if no such customer is stored.
    """

    try:
        detail = dashboard_service.get_customer(db=db, customer_ref=customer_ref)
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to load the customer.",
        ) from exc

    if detail is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Customer not found.",
        )
    return customer_detail_response(detail)
