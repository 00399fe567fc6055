"""
app/schemas package marker.
"""

from app.schemas.ingestion import ImportSummaryResponse, RowErrorResponse, UploadErrorResponse
from app.schemas.records import (
    PaginationResponse,
    RecordBulkUpdateResponse,
    RecordDeleteResponse,
    RecordListResponse,
    RecordUploadRequest,
    RecordUploadResponse,
)

__all__ = [
    "ImportSummaryResponse",
    "PaginationResponse",
    "RecordBulkUpdateResponse",
    "RecordDeleteResponse",
    "RecordListResponse",
    "RecordUploadRequest",
    "RecordUploadResponse",
    "RowErrorResponse",
    "UploadErrorResponse",
]
