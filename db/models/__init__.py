"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.customer import Customer
from db.models.customer_visit import CustomerVisit
from db.models.visit_transaction import VisitTransaction

__all__ = [
    "Customer",
    "CustomerVisit",
    "VisitTransaction",
]
