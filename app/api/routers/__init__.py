"""
app/api/routers package marker.
"""

from app.api.routers.customer_router import router as customer_router
from app.api.routers.dashboard_router import router as dashboard_router
from app.api.routers.workbook_ingestion import router as workbook_ingestion_router

__all__ = [
    "customer_router",
    "dashboard_router",
    "workbook_ingestion_router",
]
