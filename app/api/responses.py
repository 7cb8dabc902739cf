"""
app/api/responses.py

Conversions from service results to API response models.
"""

from __future__ import annotations

from app.repositories.visit_repository import VisitPersistenceStats
from app.schemas.incentives import (
    BreakdownEntryResponse,
    CustomerDetailResponse,
    CustomerLastVisitResponse,
    CustomerSummaryResponse,
    CustomerVisitResponse,
    DateOptionResponse,
    IncentiveDashboardResponse,
    IngestionDiagnosticsResponse,
    PersistenceStatsResponse,
    SalespersonMetricResponse,
    TimeframeSummaryResponse,
    VisitTransactionResponse,
)
from app.services.dashboard_service import CustomerDetail, CustomerOverview, DashboardView
from db.models.customer import Customer
from db.models.customer_visit import CustomerVisit
from incentives.calculator import BreakdownEntry
from incentives.rows import IngestionDiagnostics
from incentives.timeframe import FilteredMetric


def breakdown_response(entry: BreakdownEntry) -> BreakdownEntryResponse:
    return BreakdownEntryResponse(
        customer_id=entry.customer_id,
        customer_name=entry.customer_name,
        amount=entry.amount,
        departments_visited=entry.departments_visited,
        visited_departments=list(entry.visited_departments),
        handled_departments=list(entry.handled_departments),
        handled_labels=list(entry.handled_labels),
        visit_key=entry.visit_key,
        date_key=entry.date_key,
        date_iso=entry.date_iso,
        display_date=entry.display_date,
    )


def metric_response(item: FilteredMetric) -> SalespersonMetricResponse:
    return SalespersonMetricResponse(
        name=item.name,
        departments=list(item.metric.departments),
        total_incentive=item.metric.total_incentive,
        filtered_total=item.filtered_total,
        customers_count=item.customers_count,
        breakdown=[breakdown_response(entry) for entry in item.filtered_breakdown],
    )


def dashboard_fields(view: DashboardView) -> dict[str, object]:
    """
    Response fields shared by the upload and dashboard endpoints.
    """

    window_start, window_end = view.window if view.window is not None else (None, None)
    return {
        "timeframe": view.timeframe.value,
        "anchor_date": view.anchor,
        "window_start": window_start,
        "window_end": window_end,
        "summary": TimeframeSummaryResponse(
            total_incentive=view.summary.total_incentive,
            total_salespeople=view.summary.total_salespeople,
            customers_covered=view.summary.customers_covered,
            highest_individual=view.summary.highest_individual,
            average_payout=round(view.summary.average_payout, 2),
        ),
        "metrics": [metric_response(item) for item in view.metrics],
        "available_dates": [
            DateOptionResponse(iso=iso, label=view.date_labels.get(iso, iso.isoformat()))
            for iso in view.available_dates
        ],
        "master_departments": list(view.master_departments),
    }


def dashboard_response(view: DashboardView) -> IncentiveDashboardResponse:
    return IncentiveDashboardResponse(**dashboard_fields(view))


def diagnostics_response(diagnostics: IngestionDiagnostics) -> IngestionDiagnosticsResponse:
    return IngestionDiagnosticsResponse(**diagnostics.to_dict())


def persistence_response(stats: VisitPersistenceStats | None) -> PersistenceStatsResponse | None:
    if stats is None:
        return None
    return PersistenceStatsResponse(
        customers_upserted=stats.customers_upserted,
        visits_created=stats.visits_created,
        visits_updated=stats.visits_updated,
        transactions_written=stats.transactions_written,
    )


def visit_response(visit: CustomerVisit) -> CustomerVisitResponse:
    customer = visit.customer
    return CustomerVisitResponse(
        visit_key=visit.visit_key,
        customer_id=customer.customer_id if customer is not None else visit.visit_key.split("__", 1)[0],
        customer_name=customer.customer_name if customer is not None else None,
        visit_date=visit.visit_date,
        display_date=visit.display_date,
        departments_visited=list(visit.departments_visited or []),
        departments_not_visited=list(visit.departments_not_visited or []),
        department_labels=list(visit.department_labels or []),
        departments_count=visit.departments_count,
        total_departments_available=visit.total_departments_available,
        incentive_amount=visit.incentive_amount,
        salespersons=list(visit.salespersons or []),
        voucher_nos=list(visit.voucher_nos or []),
        transactions=[
            VisitTransactionResponse(
                voucher_no=transaction.voucher_no,
                voucher_date=transaction.voucher_date,
                department=transaction.department,
                counter=transaction.counter,
                department_label=transaction.department_label,
                salesperson=transaction.salesperson,
            )
            for transaction in visit.transactions
        ],
    )


def last_visit_response(visit: CustomerVisit | None) -> CustomerLastVisitResponse | None:
    if visit is None:
        return None
    return CustomerLastVisitResponse(
        visit_key=visit.visit_key,
        visit_date=visit.visit_date,
        display_date=visit.display_date,
        departments_visited=list(visit.departments_visited or []),
        departments_not_visited=list(visit.departments_not_visited or []),
        departments_count=visit.departments_count,
        total_departments_available=visit.total_departments_available,
        incentive_amount=visit.incentive_amount,
    )


def _customer_fields(customer: Customer) -> dict[str, object]:
    return {
        "id": customer.id,
        "customer_id": customer.customer_id,
        "customer_name": customer.customer_name,
        "visit_count": customer.visit_count or 0,
        "total_incentive_amount": customer.total_incentive_amount or 0,
        "first_visit_date": customer.first_visit_date,
        "last_visit_date": customer.last_visit_date,
    }


def customer_summary_response(overview: CustomerOverview) -> CustomerSummaryResponse:
    return CustomerSummaryResponse(
        **_customer_fields(overview.customer),
        last_visit=last_visit_response(overview.last_visit),
    )


def customer_detail_response(detail: CustomerDetail) -> CustomerDetailResponse:
    return CustomerDetailResponse(
        **_customer_fields(detail.customer),
        last_visit=last_visit_response(detail.visits[0] if detail.visits else None),
        preferred_departments=detail.preferred_departments,
        preferred_salespersons=detail.preferred_salespersons,
        visits=[visit_response(visit) for visit in detail.visits],
    )
