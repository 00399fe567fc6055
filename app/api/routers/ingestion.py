"""
app/api/routers/ingestion.py

Server-side import: decode an uploaded file and persist it batch by batch.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, UploadFile, status

from app.api.dependencies import get_record_store, get_tabular_upload
from app.config import IngestionSettings, get_ingestion_settings
from app.decoders import decoder_for_filename
from app.domain.errors import DecodeError
from app.schemas.ingestion import ImportSummaryResponse, RowErrorResponse, UploadErrorResponse
from app.services.ingestion_pipeline import build_ingestion_pipeline
from db.repositories.record_store import RecordStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/records", tags=["ingestion"])


@router.post("/import", response_model=ImportSummaryResponse)
def import_records(
    file: UploadFile = Depends(get_tabular_upload),
    batch_size: int | None = Query(default=None, ge=1, le=10000),
    store: RecordStore = Depends(get_record_store),
    settings: IngestionSettings = Depends(get_ingestion_settings),
) -> ImportSummaryResponse:
    """
    Ingest one CSV/TSV or workbook file into the record store.

    Row errors and failed batches are reported in the body; only a file
    that cannot be decoded at all is rejected.
    """

    try:
        decoder = decoder_for_filename(file.filename or "", settings=settings, batch_size=batch_size)
        report = build_ingestion_pipeline(store, settings).run(decoder, file.file)
    except DecodeError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    finally:
        file.file.close()

    assert report.result is not None
    logger.info(
        "Import finished filename=%s rows=%s inserted=%s",
        file.filename,
        report.total_rows,
        report.inserted_count,
    )
    return ImportSummaryResponse(
        success=not report.upload_errors,
        total_rows=report.total_rows,
        inserted_count=report.inserted_count,
        batches=report.batches,
        columns=list(report.columns),
        row_errors=[
            RowErrorResponse(row_index=error.row_index, message=error.message)
            for error in report.result.errors
        ],
        upload_errors=[
            UploadErrorResponse(batch_number=error.batch_number, message=str(error))
            for error in report.upload_errors
        ],
    )
