"""
app/domain package marker.
"""

from app.domain.errors import (
    DecodeError,
    IngestionError,
    InvalidIndexError,
    MissingIdentifierError,
    OperationInProgressError,
    ReconciliationError,
    ReservedFieldError,
    UploadError,
)
from app.domain.records import (
    RESERVED_FIELDS,
    CellKind,
    CellValue,
    IngestionResult,
    Page,
    Record,
    RecordUpdate,
    RowBatch,
    RowError,
    cell_kind,
    is_reserved_field,
)

__all__ = [
    "RESERVED_FIELDS",
    "CellKind",
    "CellValue",
    "DecodeError",
    "IngestionError",
    "IngestionResult",
    "InvalidIndexError",
    "MissingIdentifierError",
    "OperationInProgressError",
    "Page",
    "Record",
    "RecordUpdate",
    "ReconciliationError",
    "ReservedFieldError",
    "RowBatch",
    "RowError",
    "UploadError",
    "cell_kind",
    "is_reserved_field",
]
