"""
app/api/routers package marker.
"""

from app.api.routers.ingestion import router as ingestion_router
from app.api.routers.records import router as records_router

__all__ = [
    "ingestion_router",
    "records_router",
]
