"""
db/models/customer.py

One row per distinct customer seen across all ingested workbooks.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import Date, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Customer(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """
    Customer identity keyed by the normalized customer id.

    ``visit_count`` and ``total_incentive_amount`` are lifetime counters. They
    only move when a visit is stored for the first time, so re-uploading the
    same workbook leaves them unchanged.
    """

    __tablename__ = "customers"

    customer_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Customer identifier as it appeared in the first workbook",
    )
    normalized_customer_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="Lower-cased, whitespace-collapsed customer id",
    )
    customer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    visit_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_incentive_amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    first_visit_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    last_visit_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    visits: Mapped[list["CustomerVisit"]] = relationship(
        back_populates="customer",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
