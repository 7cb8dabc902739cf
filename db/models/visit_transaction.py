"""
db/models/visit_transaction.py

Flat per-row sale records behind each persisted visit.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime

from sqlalchemy import Date, DateTime, ForeignKey, Index, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, UUIDPrimaryKeyMixin


class VisitTransaction(Base, UUIDPrimaryKeyMixin):
    __tablename__ = "visit_transactions"

    visit_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("customer_visits.id", ondelete="CASCADE"),
        nullable=False,
    )
    customer_uuid: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
    )
    voucher_no: Mapped[str | None] = mapped_column(String(120), nullable=True)
    voucher_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    department: Mapped[str | None] = mapped_column(String(255), nullable=True)
    counter: Mapped[str | None] = mapped_column(String(120), nullable=True)
    department_label: Mapped[str | None] = mapped_column(String(400), nullable=True)
    salesperson: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    visit: Mapped["CustomerVisit"] = relationship(back_populates="transactions")

    __table_args__ = (
        Index("ix_visit_transactions_visit_id", "visit_id"),
        Index("ix_visit_transactions_salesperson", "salesperson"),
    )
