"""
tests/test_dashboard_service.py

Metrics and customer lookups rebuilt from stored rows, with the repository
stubbed out.
"""

from __future__ import annotations

import uuid
from datetime import date
from types import SimpleNamespace

import pytest

from app.services import dashboard_service as service_module
from app.services.dashboard_service import DashboardService, build_dashboard_view
from incentives.departments import DepartmentCatalog
from incentives.timeframe import Timeframe


def _transaction(salesperson: str, department: str, label: str | None = None) -> SimpleNamespace:
    return SimpleNamespace(
        salesperson=salesperson,
        department=department,
        department_label=label or department.lower(),
    )


def _visit(
    key: str,
    *,
    customer_id: str,
    visit_date: date | None,
    amount: int,
    salespersons: list[str],
    departments: list[str],
    transactions: list[SimpleNamespace],
) -> SimpleNamespace:
    return SimpleNamespace(
        visit_key=key,
        date_key=visit_date.isoformat() if visit_date else "__unknown__",
        visit_date=visit_date,
        display_date=visit_date.strftime("%d %b %Y") if visit_date else None,
        departments_visited=departments,
        departments_count=len(departments),
        incentive_amount=amount,
        salespersons=salespersons,
        transactions=transactions,
        customer=SimpleNamespace(customer_id=customer_id, customer_name=None),
    )


STORED_VISITS = [
    _visit(
        "111__2024-01-02",
        customer_id="111",
        visit_date=date(2024, 1, 2),
        amount=40,
        salespersons=["X", "Y"],
        departments=["kurta", "men's ethnic", "sarees"],
        transactions=[
            _transaction("X", "Kurta", "kurta (C1)"),
            _transaction("X", "Sarees"),
            _transaction("Y", "Mens Ethnic", "men's ethnic"),
        ],
    ),
    _visit(
        "222__2024-01-05",
        customer_id="222",
        visit_date=date(2024, 1, 5),
        amount=0,
        salespersons=["Z"],
        departments=["kurta"],
        transactions=[_transaction("Z", "Kurta")],
    ),
    _visit(
        "333__2024-01-09",
        customer_id="333",
        visit_date=date(2024, 1, 9),
        amount=20,
        salespersons=["X"],
        departments=["kurta", "sarees"],
        transactions=[_transaction("X", "Kurta"), _transaction("X", "Saree", "sarees")],
    ),
]


STORED_CUSTOMER = SimpleNamespace(
    id=uuid.UUID("5d0c2e34-8b7a-4f19-a6e2-1c3b5d7f9a11"),
    customer_id="ABC-1",
    normalized_customer_id="abc-1",
    customer_name="Meena",
    visits=[
        _visit(
            "abc-1__undated",
            customer_id="ABC-1",
            visit_date=None,
            amount=0,
            salespersons=["Y"],
            departments=["sarees"],
            transactions=[_transaction("Y", "Sarees")],
        ),
        _visit(
            "abc-1__2024-01-02",
            customer_id="ABC-1",
            visit_date=date(2024, 1, 2),
            amount=20,
            salespersons=["X", "Y"],
            departments=["kurta", "sarees"],
            transactions=[_transaction("X", "Kurta"), _transaction("Y", "Sarees")],
        ),
        _visit(
            "abc-1__2024-01-09",
            customer_id="ABC-1",
            visit_date=date(2024, 1, 9),
            amount=20,
            salespersons=["Y"],
            departments=["kurta", "sarees"],
            transactions=[_transaction("Y", "Kurta"), _transaction("Y", "Sarees")],
        ),
    ],
)


class FakeRepository:
    last_filters = None
    last_lookup = None

    def __init__(self, session) -> None:
        self.session = session

    def list_visits(self, filters=None):
        FakeRepository.last_filters = filters
        return STORED_VISITS

    def list_customers(self, filters):
        FakeRepository.last_filters = filters
        return [STORED_CUSTOMER]

    def latest_visits(self, customer_ids):
        return {customer_id: STORED_VISITS[2] for customer_id in customer_ids}

    def get_customer(self, *, customer_uuid=None, customer_key=None):
        FakeRepository.last_lookup = {"customer_uuid": customer_uuid, "customer_key": customer_key}
        if customer_uuid == STORED_CUSTOMER.id or customer_key == STORED_CUSTOMER.normalized_customer_id:
            return STORED_CUSTOMER
        return None


@pytest.fixture()
def service(monkeypatch: pytest.MonkeyPatch) -> DashboardService:
    monkeypatch.setattr(service_module, "VisitRepository", FakeRepository)
    return DashboardService(catalog=DepartmentCatalog())


def test_metrics_rebuilt_from_stored_visits(service: DashboardService) -> None:
    persisted = service.load_metrics(db=object())

    assert [(metric.name, metric.total_incentive) for metric in persisted.metrics] == [
        ("X", 60),
        ("Y", 40),
        ("Z", 0),
    ]
    x = persisted.metrics[0]
    assert [entry.visit_key for entry in x.breakdown] == ["333__2024-01-09", "111__2024-01-02"]
    assert x.breakdown[1].handled_departments == ("kurta", "sarees")
    assert x.breakdown[1].handled_labels == ("kurta (C1)", "sarees")
    assert x.departments == ("kurta", "kurta (C1)", "sarees")
    assert persisted.available_dates == [date(2024, 1, 2), date(2024, 1, 5), date(2024, 1, 9)]
    assert persisted.date_labels[date(2024, 1, 5)] == "05 Jan 2024"


def test_week_view_over_stored_metrics(service: DashboardService) -> None:
    persisted = service.load_metrics(db=object())

    view = build_dashboard_view(
        metrics=persisted.metrics,
        available_dates=persisted.available_dates,
        date_labels=persisted.date_labels,
        timeframe=Timeframe.WEEK,
        anchor=date(2024, 1, 2),
    )

    assert view.window == (date(2024, 1, 2), date(2024, 1, 8))
    assert [(item.name, item.filtered_total) for item in view.metrics] == [("X", 40), ("Y", 40), ("Z", 0)]
    assert view.summary.total_incentive == 80
    assert view.summary.customers_covered == 1


def test_day_view_defaults_to_latest_date(service: DashboardService) -> None:
    persisted = service.load_metrics(db=object())

    view = build_dashboard_view(
        metrics=persisted.metrics,
        available_dates=persisted.available_dates,
        date_labels=persisted.date_labels,
        timeframe="day",
    )

    assert view.anchor == date(2024, 1, 9)
    assert view.summary.total_incentive == 20


def test_visit_filters_are_normalized(service: DashboardService) -> None:
    service.list_visits(
        db=object(),
        customer_id="  ABC-1 ",
        salesperson=" Ravi ",
        department="Saree",
        limit=10,
    )

    filters = FakeRepository.last_filters
    assert filters.customer_key == "abc-1"
    assert filters.salesperson == "Ravi"
    assert filters.department == "sarees"
    assert filters.limit == 10


def test_blank_visit_filters_are_dropped(service: DashboardService) -> None:
    service.list_visits(db=object(), customer_id="", salesperson="  ", department="")

    filters = FakeRepository.last_filters
    assert filters.customer_key is None
    assert filters.salesperson is None
    assert filters.department is None


def test_customer_filters_are_normalized(service: DashboardService) -> None:
    overviews = service.list_customers(
        db=object(),
        date_from=date(2024, 1, 1),
        salesperson=" Ravi ",
        department="Saree",
        min_visits=2,
        search="  mee ",
        limit=25,
    )

    filters = FakeRepository.last_filters
    assert filters.date_from == date(2024, 1, 1)
    assert filters.salesperson == "Ravi"
    assert filters.department == "sarees"
    assert filters.min_visits == 2
    assert filters.search == "mee"
    assert filters.limit == 25
    assert filters.has_visit_conditions()
    assert [overview.customer.customer_id for overview in overviews] == ["ABC-1"]
    assert overviews[0].last_visit.visit_key == "333__2024-01-09"


def test_blank_search_dropped_and_unknown_department_kept(service: DashboardService) -> None:
    service.list_customers(db=object(), search="  ", department=" Electronics ")

    filters = FakeRepository.last_filters
    assert filters.search is None
    assert filters.department == "Electronics"


def test_customer_lookup_by_uuid(service: DashboardService) -> None:
    detail = service.get_customer(db=object(), customer_ref=f" {STORED_CUSTOMER.id} ")

    assert detail is not None
    assert FakeRepository.last_lookup == {"customer_uuid": STORED_CUSTOMER.id, "customer_key": None}


def test_customer_lookup_by_customer_id(service: DashboardService) -> None:
    detail = service.get_customer(db=object(), customer_ref=" ABC-1 ")

    assert detail is not None
    assert FakeRepository.last_lookup == {"customer_uuid": None, "customer_key": "abc-1"}


def test_unknown_customer_is_none(service: DashboardService) -> None:
    assert service.get_customer(db=object(), customer_ref="nobody") is None


def test_customer_detail_orders_visits_and_preferences(service: DashboardService) -> None:
    detail = service.get_customer(db=object(), customer_ref="ABC-1")

    assert [visit.visit_key for visit in detail.visits] == [
        "abc-1__2024-01-09",
        "abc-1__2024-01-02",
        "abc-1__undated",
    ]
    assert detail.preferred_departments == ["sarees", "kurta"]
    assert detail.preferred_salespersons == ["Y", "X"]
