"""
app/repositories/visit_repository.py

Persistence layer for customers, visits and their sale transactions.

The repository never commits. Callers own the transaction boundary.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from typing import Any

from sqlalchemy import delete, func, or_, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session, selectinload

from db.models.customer import Customer
from db.models.customer_visit import CustomerVisit
from db.models.visit_transaction import VisitTransaction
from incentives.engine import VisitSummary
from incentives.visits import CustomerInteraction

_DEFAULT_BATCH_SIZE = 500

# Columns refreshed when an already stored visit is ingested again.
_VISIT_UPDATE_COLUMNS = (
    "display_date",
    "departments_visited",
    "departments_not_visited",
    "department_labels",
    "departments_count",
    "total_departments_available",
    "incentive_amount",
    "salespersons",
    "voucher_nos",
)


@dataclass(frozen=True)
class VisitPersistenceStats:
    customers_upserted: int = 0
    visits_created: int = 0
    visits_updated: int = 0
    transactions_written: int = 0


@dataclass(frozen=True)
class VisitFilters:
    """
    Optional narrowing for visit listings; ``None`` means unfiltered.
    """

    date_from: date | None = None
    date_to: date | None = None
    customer_key: str | None = None
    salesperson: str | None = None
    department: str | None = None
    limit: int | None = None


@dataclass(frozen=True)
class CustomerFilters:
    """
    Customer listing filters. Date, salesperson and department conditions
    must all hold for one and the same stored visit.
    """

    date_from: date | None = None
    date_to: date | None = None
    salesperson: str | None = None
    department: str | None = None
    min_visits: int | None = None
    search: str | None = None
    limit: int | None = None

    def has_visit_conditions(self) -> bool:
        return any(
            value is not None
            for value in (self.date_from, self.date_to, self.salesperson, self.department)
        )


class VisitRepository:
    """
    Upserts parse results and reads persisted visits back.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def save_visits(
        self,
        visits: Sequence[VisitSummary],
        interactions: Sequence[CustomerInteraction],
        *,
        total_departments: int,
        batch_size: int = _DEFAULT_BATCH_SIZE,
    ) -> VisitPersistenceStats:
        """
        Upsert customers by normalized id and visits by visit key.

        Transactions of re-ingested visits are replaced. Customer lifetime
        counters advance only for visits stored for the first time.
        """

        if not visits:
            return VisitPersistenceStats()

        size = max(1, batch_size)
        customer_ids = self._upsert_customers(visits, batch_size=size)
        existing_keys = self._existing_visit_keys([visit.visit_key for visit in visits])
        visit_ids = self._upsert_visits(
            visits,
            customer_ids=customer_ids,
            total_departments=total_departments,
            batch_size=size,
        )

        replaced_ids = [visit_ids[key] for key in existing_keys if key in visit_ids]
        if replaced_ids:
            self._session.execute(
                delete(VisitTransaction).where(VisitTransaction.visit_id.in_(replaced_ids))
            )
        written = self._insert_transactions(
            interactions,
            visit_ids=visit_ids,
            customer_ids=customer_ids,
            batch_size=size,
        )

        new_visits = [visit for visit in visits if visit.visit_key not in existing_keys]
        self._advance_customer_stats(new_visits, customer_ids=customer_ids)

        return VisitPersistenceStats(
            customers_upserted=len(customer_ids),
            visits_created=len(new_visits),
            visits_updated=len(visits) - len(new_visits),
            transactions_written=written,
        )

    def list_visits(self, filters: VisitFilters | None = None) -> list[CustomerVisit]:
        """
        Persisted visits matching ``filters``, newest first.
        """

        filters = filters or VisitFilters()
        stmt = (
            select(CustomerVisit)
            .options(
                selectinload(CustomerVisit.customer),
                selectinload(CustomerVisit.transactions),
            )
            .order_by(
                CustomerVisit.visit_date.desc().nulls_last(),
                CustomerVisit.visit_key,
            )
        )
        if filters.date_from is not None:
            stmt = stmt.where(CustomerVisit.visit_date >= filters.date_from)
        if filters.date_to is not None:
            stmt = stmt.where(CustomerVisit.visit_date <= filters.date_to)
        if filters.customer_key:
            stmt = stmt.join(Customer, CustomerVisit.customer_uuid == Customer.id).where(
                Customer.normalized_customer_id == filters.customer_key
            )
        if filters.salesperson:
            stmt = stmt.where(CustomerVisit.salespersons.contains([filters.salesperson]))
        if filters.department:
            stmt = stmt.where(CustomerVisit.departments_visited.contains([filters.department]))
        if filters.limit is not None:
            stmt = stmt.limit(max(1, filters.limit))
        return list(self._session.scalars(stmt).all())

    def list_customers(self, filters: CustomerFilters | None = None) -> list[Customer]:
        """
        Customers matching ``filters``, most recently seen first.
        """

        filters = filters or CustomerFilters()
        stmt = select(Customer).order_by(
            Customer.last_visit_date.desc().nulls_last(),
            Customer.normalized_customer_id,
        )
        if filters.min_visits is not None:
            stmt = stmt.where(Customer.visit_count >= filters.min_visits)
        if filters.search:
            stmt = stmt.where(
                or_(
                    Customer.customer_id.icontains(filters.search, autoescape=True),
                    Customer.normalized_customer_id.icontains(filters.search, autoescape=True),
                    Customer.customer_name.icontains(filters.search, autoescape=True),
                )
            )
        if filters.has_visit_conditions():
            matching = select(CustomerVisit.customer_uuid)
            if filters.date_from is not None:
                matching = matching.where(CustomerVisit.visit_date >= filters.date_from)
            if filters.date_to is not None:
                matching = matching.where(CustomerVisit.visit_date <= filters.date_to)
            if filters.salesperson:
                matching = matching.where(CustomerVisit.salespersons.contains([filters.salesperson]))
            if filters.department:
                matching = matching.where(
                    CustomerVisit.departments_visited.contains([filters.department])
                )
            stmt = stmt.where(Customer.id.in_(matching))
        if filters.limit is not None:
            stmt = stmt.limit(max(1, filters.limit))
        return list(self._session.scalars(stmt).all())

    def latest_visits(self, customer_ids: Sequence[uuid.UUID]) -> dict[uuid.UUID, CustomerVisit]:
        """
        Newest stored visit per customer; undated visits rank last.
        """

        if not customer_ids:
            return {}
        stmt = (
            select(CustomerVisit)
            .where(CustomerVisit.customer_uuid.in_(customer_ids))
            .distinct(CustomerVisit.customer_uuid)
            .order_by(
                CustomerVisit.customer_uuid,
                CustomerVisit.visit_date.desc().nulls_last(),
                CustomerVisit.visit_key.desc(),
            )
        )
        return {visit.customer_uuid: visit for visit in self._session.scalars(stmt).all()}

    def get_customer(
        self,
        *,
        customer_uuid: uuid.UUID | None = None,
        customer_key: str | None = None,
    ) -> Customer | None:
        """
        One customer by primary key or normalized id, with visits and transactions loaded.
        """

        if customer_uuid is None and not customer_key:
            return None
        stmt = select(Customer).options(
            selectinload(Customer.visits).selectinload(CustomerVisit.transactions)
        )
        if customer_uuid is not None:
            stmt = stmt.where(Customer.id == customer_uuid)
        else:
            stmt = stmt.where(Customer.normalized_customer_id == customer_key)
        return self._session.scalars(stmt).one_or_none()

    def _upsert_customers(
        self,
        visits: Sequence[VisitSummary],
        *,
        batch_size: int,
    ) -> dict[str, uuid.UUID]:
        payloads: dict[str, dict[str, Any]] = {}
        for visit in visits:
            payload = payloads.get(visit.normalized_customer_id)
            if payload is None:
                payloads[visit.normalized_customer_id] = {
                    "id": uuid.uuid4(),
                    "customer_id": visit.customer_id,
                    "normalized_customer_id": visit.normalized_customer_id,
                    "customer_name": visit.customer_name,
                    "visit_count": 0,
                    "total_incentive_amount": 0,
                }
            elif not payload["customer_name"] and visit.customer_name:
                payload["customer_name"] = visit.customer_name

        customer_ids: dict[str, uuid.UUID] = {}
        rows = list(payloads.values())
        for start in range(0, len(rows), batch_size):
            stmt = insert(Customer).values(rows[start : start + batch_size])
            stmt = stmt.on_conflict_do_update(
                index_elements=[Customer.normalized_customer_id],
                set_={
                    "customer_name": func.coalesce(
                        func.nullif(Customer.customer_name, ""),
                        stmt.excluded.customer_name,
                    ),
                    "updated_at": func.now(),
                },
            ).returning(Customer.normalized_customer_id, Customer.id)
            for normalized_id, customer_uuid in self._session.execute(stmt).all():
                customer_ids[normalized_id] = customer_uuid
        return customer_ids

    def _existing_visit_keys(self, keys: Sequence[str]) -> set[str]:
        if not keys:
            return set()
        stmt = select(CustomerVisit.visit_key).where(CustomerVisit.visit_key.in_(keys))
        return set(self._session.scalars(stmt).all())

    def _upsert_visits(
        self,
        visits: Sequence[VisitSummary],
        *,
        customer_ids: dict[str, uuid.UUID],
        total_departments: int,
        batch_size: int,
    ) -> dict[str, uuid.UUID]:
        rows = [
            {
                "id": uuid.uuid4(),
                "customer_uuid": customer_ids[visit.normalized_customer_id],
                "visit_key": visit.visit_key,
                "date_key": visit.date_key,
                "visit_date": visit.date_iso,
                "display_date": visit.display_date,
                "departments_visited": list(visit.departments_visited),
                "departments_not_visited": list(visit.departments_not_visited),
                "department_labels": list(visit.department_labels),
                "departments_count": visit.departments_count,
                "total_departments_available": total_departments,
                "incentive_amount": visit.incentive_amount,
                "salespersons": list(visit.salespeople),
                "voucher_nos": list(visit.voucher_nos),
            }
            for visit in visits
        ]

        visit_ids: dict[str, uuid.UUID] = {}
        for start in range(0, len(rows), batch_size):
            stmt = insert(CustomerVisit).values(rows[start : start + batch_size])
            set_: dict[str, Any] = {name: stmt.excluded[name] for name in _VISIT_UPDATE_COLUMNS}
            set_["updated_at"] = func.now()
            stmt = stmt.on_conflict_do_update(
                index_elements=[CustomerVisit.visit_key],
                set_=set_,
            ).returning(CustomerVisit.visit_key, CustomerVisit.id)
            for key, visit_uuid in self._session.execute(stmt).all():
                visit_ids[key] = visit_uuid
        return visit_ids

    def _insert_transactions(
        self,
        interactions: Sequence[CustomerInteraction],
        *,
        visit_ids: dict[str, uuid.UUID],
        customer_ids: dict[str, uuid.UUID],
        batch_size: int,
    ) -> int:
        rows: list[dict[str, Any]] = []
        for interaction in interactions:
            visit_uuid = visit_ids.get(interaction.visit_key)
            customer_uuid = customer_ids.get(interaction.normalized_customer_id)
            if visit_uuid is None or customer_uuid is None:
                continue
            rows.append(
                {
                    "id": uuid.uuid4(),
                    "visit_id": visit_uuid,
                    "customer_uuid": customer_uuid,
                    "voucher_no": interaction.voucher_no,
                    "voucher_date": interaction.voucher_date_iso,
                    "department": interaction.department,
                    "counter": interaction.counter,
                    "department_label": interaction.department_label,
                    "salesperson": interaction.salesperson,
                }
            )

        for start in range(0, len(rows), batch_size):
            self._session.execute(insert(VisitTransaction).values(rows[start : start + batch_size]))
        return len(rows)

    def _advance_customer_stats(
        self,
        new_visits: Sequence[VisitSummary],
        *,
        customer_ids: dict[str, uuid.UUID],
    ) -> None:
        if not new_visits:
            return

        grouped: dict[str, list[VisitSummary]] = {}
        for visit in new_visits:
            grouped.setdefault(visit.normalized_customer_id, []).append(visit)

        customers = self._session.scalars(
            select(Customer).where(Customer.id.in_([customer_ids[key] for key in grouped]))
        ).all()
        by_id = {customer.id: customer for customer in customers}

        for normalized_id, customer_visits in grouped.items():
            customer = by_id.get(customer_ids[normalized_id])
            if customer is None:
                continue
            customer.visit_count = (customer.visit_count or 0) + len(customer_visits)
            customer.total_incentive_amount = (customer.total_incentive_amount or 0) + sum(
                visit.incentive_amount for visit in customer_visits
            )
            dates = [visit.date_iso for visit in customer_visits if visit.date_iso is not None]
            if dates:
                earliest, latest = min(dates), max(dates)
                if customer.first_visit_date is None or earliest < customer.first_visit_date:
                    customer.first_visit_date = earliest
                if customer.last_visit_date is None or latest > customer.last_visit_date:
                    customer.last_visit_date = latest
        self._session.flush()
