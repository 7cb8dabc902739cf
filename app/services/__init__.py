"""
app/services package marker.
"""

from app.services.dashboard_service import DashboardService, get_dashboard_service
from app.services.workbook_ingestion_service import (
    WorkbookIngestionService,
    WorkbookPersistenceError,
    WorkbookUploadError,
    get_workbook_ingestion_service,
)

__all__ = [
    "DashboardService",
    "get_dashboard_service",
    "WorkbookIngestionService",
    "WorkbookPersistenceError",
    "WorkbookUploadError",
    "get_workbook_ingestion_service",
]
