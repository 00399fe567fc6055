"""
Service layer exports.
"""

from app.services.ingestion_pipeline import (
    BatchMessage,
    CompletedMessage,
    DecodeWorker,
    FailedMessage,
    IngestionPipeline,
    IngestionReport,
    build_ingestion_pipeline,
)
from app.services.reconciliation_store import (
    DeleteResult,
    RowReconciliationStore,
    SaveResult,
    TableState,
    build_reconciliation_store,
)
from app.services.upload_relay import UploadOutcome, UploadRelay

__all__ = [
    "BatchMessage",
    "CompletedMessage",
    "FailedMessage",
    "DecodeWorker",
    "IngestionPipeline",
    "IngestionReport",
    "build_ingestion_pipeline",
    "UploadRelay",
    "UploadOutcome",
    "RowReconciliationStore",
    "TableState",
    "SaveResult",
    "DeleteResult",
    "build_reconciliation_store",
]
