"""
tests/test_visit_repository.py

SQL emitted by the visit repository, compiled for PostgreSQL against a mocked
session. No database connection is opened.
"""

from __future__ import annotations

from datetime import date
from unittest.mock import MagicMock

from sqlalchemy.dialects import postgresql

from app.repositories.visit_repository import CustomerFilters, VisitRepository
from incentives.engine import VisitSummary


def _summary(customer_name: str | None) -> VisitSummary:
    return VisitSummary(
        visit_key="111__2024-01-02",
        customer_id="111",
        normalized_customer_id="111",
        customer_name=customer_name,
        date_key="2024-01-02",
        date_iso=date(2024, 1, 2),
        display_date="02 Jan 2024",
        departments_visited=("kurta", "sarees"),
        departments_not_visited=(),
        department_labels=("kurta", "sarees"),
        incentive_amount=20,
        salespeople=("X",),
        voucher_nos=("V1",),
    )


def _compiled(stmt) -> str:
    return str(stmt.compile(dialect=postgresql.dialect()))


def test_customer_upsert_keeps_first_stored_name() -> None:
    session = MagicMock()
    session.execute.return_value.all.return_value = []

    VisitRepository(session)._upsert_customers([_summary("Meena"), _summary(None)], batch_size=10)

    stmt = session.execute.call_args.args[0]
    sql = _compiled(stmt)
    assert "ON CONFLICT (normalized_customer_id) DO UPDATE" in sql
    assert "coalesce(nullif(customers.customer_name" in sql
    assert sql.index("customers.customer_name") < sql.index("excluded.customer_name")


def test_customer_listing_matches_one_visit_for_all_conditions() -> None:
    session = MagicMock()
    session.scalars.return_value.all.return_value = []

    customers = VisitRepository(session).list_customers(
        CustomerFilters(
            date_from=date(2024, 1, 1),
            salesperson="X",
            department="sarees",
            min_visits=2,
            limit=50,
        )
    )

    assert customers == []
    sql = _compiled(session.scalars.call_args.args[0])
    assert sql.count("FROM customer_visits") == 1
    assert "customers.visit_count >=" in sql
    assert "customer_visits.salespersons @>" in sql
    assert "customer_visits.departments_visited @>" in sql
    assert "LIMIT" in sql


def test_customer_listing_without_visit_conditions_skips_subquery() -> None:
    session = MagicMock()
    session.scalars.return_value.all.return_value = []

    VisitRepository(session).list_customers(CustomerFilters(search="mee"))

    sql = _compiled(session.scalars.call_args.args[0])
    assert "customer_visits" not in sql


def test_latest_visits_uses_distinct_on() -> None:
    session = MagicMock()
    session.scalars.return_value.all.return_value = []

    assert VisitRepository(session).latest_visits([]) == {}
    session.scalars.assert_not_called()

    VisitRepository(session).latest_visits(["6a1f9a52-3c1e-4d4e-9a57-0d8c1b2f7e10"])
    sql = _compiled(session.scalars.call_args.args[0])
    assert "DISTINCT ON (customer_visits.customer_uuid)" in sql


def test_customer_lookup_without_reference_skips_query() -> None:
    session = MagicMock()

    assert VisitRepository(session).get_customer() is None
    session.scalars.assert_not_called()
