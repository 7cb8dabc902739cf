"""
app/services/dashboard_service.py

Timeframe views over incentive metrics, fresh or rebuilt from storage.

Persisted visits already carry their tier amount and salesperson list, so
the dashboard never re-reads a workbook. Handled departments per
salesperson come from the stored transactions of each visit.
"""

from __future__ import annotations

import logging
import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from functools import lru_cache
from typing import Iterable, Sequence

from sqlalchemy.orm import Session

from app.config import get_incentive_engine_settings
from app.repositories.visit_repository import CustomerFilters, VisitFilters, VisitRepository
from db.models.customer import Customer
from db.models.customer_visit import CustomerVisit
from incentives.calculator import BreakdownEntry
from incentives.cells import UNKNOWN_DATE_KEY, format_display_date, normalize_key
from incentives.departments import DepartmentCatalog
from incentives.metrics import SalespersonMetric, sort_breakdown, sort_metrics
from incentives.timeframe import (
    FilteredMetric,
    Timeframe,
    TimeframeFilter,
    TimeframeSummary,
    default_anchor,
    summarize,
)

logger = logging.getLogger(__name__)

PREFERRED_LIMIT = 5


@dataclass(frozen=True)
class DashboardView:
    """
    One rendered timeframe over a metric set.
    """

    timeframe: Timeframe
    anchor: date | None
    window: tuple[date, date] | None
    metrics: list[FilteredMetric]
    summary: TimeframeSummary
    available_dates: list[date]
    date_labels: dict[date, str]
    master_departments: tuple[str, ...] = ()


@dataclass(frozen=True)
class PersistedMetrics:
    metrics: list[SalespersonMetric]
    available_dates: list[date]
    date_labels: dict[date, str] = field(default_factory=dict)


@dataclass(frozen=True)
class CustomerOverview:
    customer: Customer
    last_visit: CustomerVisit | None = None


@dataclass(frozen=True)
class CustomerDetail:
    """
    One customer with visits newest first and their most frequent
    departments and salespeople.
    """

    customer: Customer
    visits: list[CustomerVisit]
    preferred_departments: list[str]
    preferred_salespersons: list[str]


def build_dashboard_view(
    *,
    metrics: Sequence[SalespersonMetric],
    available_dates: Sequence[date],
    date_labels: dict[date, str],
    master_departments: Sequence[str] = (),
    timeframe: Timeframe | str = Timeframe.ALL,
    anchor: date | None = None,
) -> DashboardView:
    """
    Filter ``metrics`` to ``timeframe``; day/week default to the latest date.
    """

    mode = Timeframe(timeframe)
    if anchor is None and mode is not Timeframe.ALL:
        anchor = default_anchor(available_dates)

    view_filter = TimeframeFilter(mode, anchor)
    filtered = view_filter.apply(metrics)
    return DashboardView(
        timeframe=mode,
        anchor=anchor,
        window=view_filter.window,
        metrics=filtered,
        summary=summarize(filtered),
        available_dates=sorted(available_dates),
        date_labels=dict(date_labels),
        master_departments=tuple(master_departments),
    )


class DashboardService:
    """
    Reads persisted visits back into salesperson metrics and visit listings.
    """

    def __init__(self, *, catalog: DepartmentCatalog) -> None:
        self._catalog = catalog

    @property
    def master_departments(self) -> tuple[str, ...]:
        return self._catalog.departments

    def load_metrics(self, *, db: Session) -> PersistedMetrics:
        visits = VisitRepository(db).list_visits()
        metrics, available_dates, date_labels = self._rebuild(visits)
        logger.info(
            "Dashboard metrics rebuilt visits=%s salespeople=%s dates=%s",
            len(visits),
            len(metrics),
            len(available_dates),
        )
        return PersistedMetrics(
            metrics=metrics,
            available_dates=available_dates,
            date_labels=date_labels,
        )

    def list_visits(
        self,
        *,
        db: Session,
        date_from: date | None = None,
        date_to: date | None = None,
        customer_id: str | None = None,
        salesperson: str | None = None,
        department: str | None = None,
        limit: int | None = None,
    ) -> list[CustomerVisit]:
        """
        Persisted visits, newest first, with free-text filters normalized.
        """

        filters = VisitFilters(
            date_from=date_from,
            date_to=date_to,
            customer_key=normalize_key(customer_id) or None,
            salesperson=(salesperson or "").strip() or None,
            department=self._department_filter(department),
            limit=limit,
        )
        return VisitRepository(db).list_visits(filters)

    def list_customers(
        self,
        *,
        db: Session,
        date_from: date | None = None,
        date_to: date | None = None,
        salesperson: str | None = None,
        department: str | None = None,
        min_visits: int | None = None,
        search: str | None = None,
        limit: int | None = None,
    ) -> list[CustomerOverview]:
        """
        Stored customers, most recently seen first, each with its latest visit.
        """

        filters = CustomerFilters(
            date_from=date_from,
            date_to=date_to,
            salesperson=(salesperson or "").strip() or None,
            department=self._department_filter(department),
            min_visits=min_visits,
            search=(search or "").strip() or None,
            limit=limit,
        )
        repository = VisitRepository(db)
        customers = repository.list_customers(filters)
        latest = repository.latest_visits([customer.id for customer in customers])
        return [
            CustomerOverview(customer=customer, last_visit=latest.get(customer.id))
            for customer in customers
        ]

    def get_customer(self, *, db: Session, customer_ref: str) -> CustomerDetail | None:
        """
        Look a customer up by stored UUID, else by customer id.
        """

        repository = VisitRepository(db)
        try:
            customer_uuid = uuid.UUID(customer_ref.strip())
        except ValueError:
            customer = repository.get_customer(customer_key=normalize_key(customer_ref))
        else:
            customer = repository.get_customer(customer_uuid=customer_uuid)
        if customer is None:
            return None

        visits = sorted(customer.visits, key=_visit_recency_key)

        departments: Counter[str] = Counter()
        salespersons: Counter[str] = Counter()
        for visit in visits:
            departments.update(visit.departments_visited or [])
            salespersons.update(visit.salespersons or [])

        return CustomerDetail(
            customer=customer,
            visits=visits,
            preferred_departments=[name for name, _ in departments.most_common(PREFERRED_LIMIT)],
            preferred_salespersons=[name for name, _ in salespersons.most_common(PREFERRED_LIMIT)],
        )

    def _department_filter(self, department: str | None) -> str | None:
        if not department or not department.strip():
            return None
        # Unknown department names can never match a stored visit.
        return self._catalog.canonicalize(department) or department.strip()

    def _rebuild(
        self,
        visits: Iterable[CustomerVisit],
    ) -> tuple[list[SalespersonMetric], list[date], dict[date, str]]:
        names: dict[str, str] = {}
        lifetime: dict[str, set[str]] = {}
        breakdowns: dict[str, list[BreakdownEntry]] = {}
        date_labels: dict[date, str] = {}

        for visit in visits:
            if visit.visit_date is not None and visit.visit_date not in date_labels:
                date_labels[visit.visit_date] = visit.display_date or format_display_date(visit.visit_date)

            handled: dict[str, tuple[set[str], set[str]]] = {}
            for transaction in visit.transactions:
                key = normalize_key(transaction.salesperson)
                if not key:
                    continue
                names.setdefault(key, transaction.salesperson)
                departments, labels = handled.setdefault(key, (set(), set()))
                canonical = self._catalog.canonicalize(transaction.department)
                if canonical:
                    departments.add(canonical)
                if transaction.department_label:
                    labels.add(transaction.department_label)
                    lifetime.setdefault(key, set()).add(transaction.department_label)

            for salesperson in visit.salespersons or []:
                key = normalize_key(salesperson)
                if not key:
                    continue
                names.setdefault(key, salesperson)
                lifetime.setdefault(key, set())
                if visit.incentive_amount <= 0:
                    continue
                departments, labels = handled.get(key, (set(), set()))
                breakdowns.setdefault(key, []).append(
                    BreakdownEntry(
                        salesperson=names[key],
                        customer_id=visit.customer.customer_id if visit.customer else visit.visit_key,
                        customer_name=visit.customer.customer_name if visit.customer else None,
                        amount=visit.incentive_amount,
                        departments_visited=visit.departments_count,
                        visited_departments=tuple(visit.departments_visited or ()),
                        handled_departments=tuple(sorted(departments)),
                        handled_labels=tuple(sorted(labels)),
                        visit_key=visit.visit_key,
                        date_key=visit.date_key or UNKNOWN_DATE_KEY,
                        date_iso=visit.visit_date,
                        display_date=visit.display_date,
                    )
                )

        metrics = [
            SalespersonMetric(
                name=names[key],
                departments=tuple(sorted(lifetime.get(key, ()))),
                breakdown=tuple(sort_breakdown(breakdowns.get(key, ()))),
            )
            for key in names
        ]
        return sort_metrics(metrics), sorted(date_labels), date_labels


def _visit_recency_key(visit: CustomerVisit) -> tuple:
    if visit.visit_date is not None:
        return (0, -visit.visit_date.toordinal(), visit.visit_key)
    return (1, 0, visit.visit_key)


@lru_cache(maxsize=1)
def get_dashboard_service() -> DashboardService:
    """
    Build and cache the dashboard service with env-driven settings.
    """

    settings = get_incentive_engine_settings()
    return DashboardService(
        catalog=DepartmentCatalog(
            departments=settings.master_departments,
            variants=settings.department_variants,
        )
    )
