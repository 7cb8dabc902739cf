"""create customers, customer_visits and visit_transactions tables

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 09:30:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def _jsonb_list(name: str) -> sa.Column:
    return sa.Column(
        name,
        postgresql.JSONB(astext_type=sa.Text()),
        server_default=sa.text("'[]'::jsonb"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "customers",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("customer_id", sa.String(length=255), nullable=False),
        sa.Column("normalized_customer_id", sa.String(length=255), nullable=False),
        sa.Column("customer_name", sa.String(length=255), nullable=True),
        sa.Column("visit_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("total_incentive_amount", sa.Integer(), server_default="0", nullable=False),
        sa.Column("first_visit_date", sa.Date(), nullable=True),
        sa.Column("last_visit_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_customers"),
        sa.UniqueConstraint("normalized_customer_id", name="uq_customers_normalized_customer_id"),
    )

    op.create_table(
        "customer_visits",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("customer_uuid", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("visit_key", sa.String(length=400), nullable=False),
        sa.Column("date_key", sa.String(length=120), nullable=False),
        sa.Column("visit_date", sa.Date(), nullable=True),
        sa.Column("display_date", sa.String(length=120), nullable=True),
        _jsonb_list("departments_visited"),
        _jsonb_list("departments_not_visited"),
        _jsonb_list("department_labels"),
        sa.Column("departments_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("total_departments_available", sa.Integer(), server_default="0", nullable=False),
        sa.Column("incentive_amount", sa.Integer(), server_default="0", nullable=False),
        _jsonb_list("salespersons"),
        _jsonb_list("voucher_nos"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(
            ["customer_uuid"],
            ["customers.id"],
            name="fk_customer_visits_customer_uuid_customers",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_customer_visits"),
        sa.UniqueConstraint("visit_key", name="uq_customer_visits_visit_key"),
    )
    op.create_index("ix_customer_visits_customer_uuid", "customer_visits", ["customer_uuid"], unique=False)
    op.create_index("ix_customer_visits_visit_date", "customer_visits", ["visit_date"], unique=False)
    op.create_index(
        "ix_customer_visits_salespersons",
        "customer_visits",
        ["salespersons"],
        unique=False,
        postgresql_using="gin",
    )

    op.create_table(
        "visit_transactions",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("visit_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("customer_uuid", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("voucher_no", sa.String(length=120), nullable=True),
        sa.Column("voucher_date", sa.Date(), nullable=True),
        sa.Column("department", sa.String(length=255), nullable=True),
        sa.Column("counter", sa.String(length=120), nullable=True),
        sa.Column("department_label", sa.String(length=400), nullable=True),
        sa.Column("salesperson", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(
            ["visit_id"],
            ["customer_visits.id"],
            name="fk_visit_transactions_visit_id_customer_visits",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["customer_uuid"],
            ["customers.id"],
            name="fk_visit_transactions_customer_uuid_customers",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_visit_transactions"),
    )
    op.create_index("ix_visit_transactions_visit_id", "visit_transactions", ["visit_id"], unique=False)
    op.create_index("ix_visit_transactions_salesperson", "visit_transactions", ["salesperson"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_visit_transactions_salesperson", table_name="visit_transactions")
    op.drop_index("ix_visit_transactions_visit_id", table_name="visit_transactions")
    op.drop_table("visit_transactions")
    op.drop_index("ix_customer_visits_salespersons", table_name="customer_visits")
    op.drop_index("ix_customer_visits_visit_date", table_name="customer_visits")
    op.drop_index("ix_customer_visits_customer_uuid", table_name="customer_visits")
    op.drop_table("customer_visits")
    op.drop_table("customers")
