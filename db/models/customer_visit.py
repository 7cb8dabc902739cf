"""
db/models/customer_visit.py

Persisted (customer, calendar day) visits with their department coverage.
"""

from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import Date, ForeignKey, Index, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class CustomerVisit(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """
    One visit per ``visit_key`` (``<customer key>__<date key>``).

    ``visit_date`` is NULL when the source date cell could not be parsed;
    ``date_key`` still keeps such visits apart.
    """

    __tablename__ = "customer_visits"

    customer_uuid: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
    )
    visit_key: Mapped[str] = mapped_column(String(400), nullable=False, unique=True)
    date_key: Mapped[str] = mapped_column(String(120), nullable=False)
    visit_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    display_date: Mapped[str | None] = mapped_column(String(120), nullable=True)
    departments_visited: Mapped[list[str]] = mapped_column(nullable=False, default=list)
    departments_not_visited: Mapped[list[str]] = mapped_column(nullable=False, default=list)
    department_labels: Mapped[list[str]] = mapped_column(nullable=False, default=list)
    departments_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_departments_available: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    incentive_amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    salespersons: Mapped[list[str]] = mapped_column(nullable=False, default=list)
    voucher_nos: Mapped[list[str]] = mapped_column(nullable=False, default=list)

    customer: Mapped["Customer"] = relationship(back_populates="visits")
    transactions: Mapped[list["VisitTransaction"]] = relationship(
        back_populates="visit",
        order_by="VisitTransaction.voucher_date",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_customer_visits_customer_uuid", "customer_uuid"),
        Index("ix_customer_visits_visit_date", "visit_date"),
        Index("ix_customer_visits_salespersons", "salespersons", postgresql_using="gin"),
    )
