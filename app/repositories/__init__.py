"""
app/repositories package marker.
"""

from app.repositories.visit_repository import (
    CustomerFilters,
    VisitFilters,
    VisitPersistenceStats,
    VisitRepository,
)

__all__ = [
    "CustomerFilters",
    "VisitFilters",
    "VisitPersistenceStats",
    "VisitRepository",
]
