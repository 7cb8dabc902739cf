"""
app/schemas/incentives.py

Response schemas for workbook upload, dashboard, visit and customer endpoints.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Literal

from pydantic import BaseModel, Field


class BreakdownEntryResponse(BaseModel):
    """
    API response model for one credited visit line.
    """

    customer_id: str
    customer_name: str | None = None
    amount: int = Field(..., ge=0)
    departments_visited: int = Field(..., ge=0)
    visited_departments: list[str] = Field(default_factory=list)
    handled_departments: list[str] = Field(default_factory=list)
    handled_labels: list[str] = Field(default_factory=list)
    visit_key: str
    date_key: str
    date_iso: date | None = None
    display_date: str | None = None


class SalespersonMetricResponse(BaseModel):
    """
    API response model for one salesperson within the active timeframe.
    """

    name: str
    departments: list[str] = Field(default_factory=list)
    total_incentive: int = Field(..., ge=0)
    filtered_total: int = Field(..., ge=0)
    customers_count: int = Field(..., ge=0)
    breakdown: list[BreakdownEntryResponse] = Field(default_factory=list)


class TimeframeSummaryResponse(BaseModel):
    total_incentive: int = Field(..., ge=0)
    total_salespeople: int = Field(..., ge=0)
    customers_covered: int = Field(..., ge=0)
    highest_individual: int = Field(..., ge=0)
    average_payout: float = Field(..., ge=0)


class DateOptionResponse(BaseModel):
    iso: date
    label: str


class IngestionDiagnosticsResponse(BaseModel):
    """
    API response model for how the workbook rows were interpreted.
    """

    header_row_number: int = Field(..., ge=0)
    columns: dict[str, str] = Field(default_factory=dict)
    rows_read: int = Field(..., ge=0)
    rows_processed: int = Field(..., ge=0)
    rows_skipped: dict[str, int] = Field(default_factory=dict)
    unmatched_departments: list[str] = Field(default_factory=list)


class PersistenceStatsResponse(BaseModel):
    customers_upserted: int = Field(..., ge=0)
    visits_created: int = Field(..., ge=0)
    visits_updated: int = Field(..., ge=0)
    transactions_written: int = Field(..., ge=0)


class IncentiveDashboardResponse(BaseModel):
    """
    API response model shared by the upload and dashboard endpoints.
    """

    timeframe: Literal["all", "day", "week"]
    anchor_date: date | None = None
    window_start: date | None = None
    window_end: date | None = None
    summary: TimeframeSummaryResponse
    metrics: list[SalespersonMetricResponse] = Field(default_factory=list)
    available_dates: list[DateOptionResponse] = Field(default_factory=list)
    master_departments: list[str] = Field(default_factory=list)


class WorkbookUploadResponse(IncentiveDashboardResponse):
    """
    Dashboard view of one uploaded workbook plus ingestion details.
    """

    filename: str | None = None
    diagnostics: IngestionDiagnosticsResponse
    visits_count: int = Field(..., ge=0)
    persistence: PersistenceStatsResponse | None = None


class VisitTransactionResponse(BaseModel):
    voucher_no: str | None = None
    voucher_date: date | None = None
    department: str | None = None
    counter: str | None = None
    department_label: str | None = None
    salesperson: str


class CustomerVisitResponse(BaseModel):
    """
    API response model for one persisted customer visit.
    """

    visit_key: str
    customer_id: str
    customer_name: str | None = None
    visit_date: date | None = None
    display_date: str | None = None
    departments_visited: list[str] = Field(default_factory=list)
    departments_not_visited: list[str] = Field(default_factory=list)
    department_labels: list[str] = Field(default_factory=list)
    departments_count: int = Field(..., ge=0)
    total_departments_available: int = Field(..., ge=0)
    incentive_amount: int = Field(..., ge=0)
    salespersons: list[str] = Field(default_factory=list)
    voucher_nos: list[str] = Field(default_factory=list)
    transactions: list[VisitTransactionResponse] = Field(default_factory=list)


class CustomerVisitListResponse(BaseModel):
    count: int = Field(..., ge=0)
    visits: list[CustomerVisitResponse] = Field(default_factory=list)


class CustomerLastVisitResponse(BaseModel):
    visit_key: str
    visit_date: date | None = None
    display_date: str | None = None
    departments_visited: list[str] = Field(default_factory=list)
    departments_not_visited: list[str] = Field(default_factory=list)
    departments_count: int = Field(..., ge=0)
    total_departments_available: int = Field(..., ge=0)
    incentive_amount: int = Field(..., ge=0)


class CustomerSummaryResponse(BaseModel):
    """
    API response model for one stored customer and their lifetime counters.
    """

    id: uuid.UUID
    customer_id: str
    customer_name: str | None = None
    visit_count: int = Field(..., ge=0)
    total_incentive_amount: int = Field(..., ge=0)
    first_visit_date: date | None = None
    last_visit_date: date | None = None
    last_visit: CustomerLastVisitResponse | None = None


class CustomerListResponse(BaseModel):
    count: int = Field(..., ge=0)
    customers: list[CustomerSummaryResponse] = Field(default_factory=list)


class CustomerDetailResponse(CustomerSummaryResponse):
    """
    One customer with every stored visit, newest first.
    """

    preferred_departments: list[str] = Field(default_factory=list)
    preferred_salespersons: list[str] = Field(default_factory=list)
    visits: list[CustomerVisitResponse] = Field(default_factory=list)
