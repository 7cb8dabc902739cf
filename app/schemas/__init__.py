"""
app/schemas package marker.
"""

from app.schemas.incentives import (
    CustomerDetailResponse,
    CustomerListResponse,
    CustomerVisitListResponse,
    IncentiveDashboardResponse,
    WorkbookUploadResponse,
)

__all__ = [
    "CustomerDetailResponse",
    "CustomerListResponse",
    "CustomerVisitListResponse",
    "IncentiveDashboardResponse",
    "WorkbookUploadResponse",
]
