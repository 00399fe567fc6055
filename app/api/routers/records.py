"""
app/api/routers/records.py

Record listing, bulk upload and edit endpoints.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from app.api.dependencies import get_record_store
from app.config import RecordsAPISettings, get_records_api_settings
from app.domain.records import Record, RecordUpdate
from app.schemas.records import (
    PaginationResponse,
    RecordBulkUpdateResponse,
    RecordDeleteResponse,
    RecordListResponse,
    RecordUploadRequest,
    RecordUploadResponse,
)
from db.repositories.errors import (
    InvalidRecordIdError,
    RecordNotFoundError,
    RecordStoreError,
)
from db.repositories.identifiers import RecordId
from db.repositories.record_store import RecordStore, parse_sort

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/records", tags=["records"])


def _http_error(exc: RecordStoreError) -> HTTPException:
    if isinstance(exc, InvalidRecordIdError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, RecordNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Record not found.")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error.",
    )


def _parse_record(payload: Any) -> Record:
    if not isinstance(payload, dict):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Each record must be a JSON object.",
        )
    try:
        return Record.from_mapping(payload)
    except TypeError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


def _parse_id(raw: str) -> str:
    try:
        return str(RecordId.parse(raw))
    except InvalidRecordIdError as exc:
        raise _http_error(exc) from exc


@router.get("", response_model=RecordListResponse)
def list_records(
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    sort: str | None = Query(default=None, description="Field name; prefix with '-' for descending"),
    store: RecordStore = Depends(get_record_store),
    settings: RecordsAPISettings = Depends(get_records_api_settings),
) -> RecordListResponse:
    page_size = min(limit or settings.default_page_size, settings.max_page_size)
    sort_field, descending = parse_sort(sort, settings.default_sort)

    try:
        fetched = store.find_page(page, page_size, sort_field, descending)
    except RecordStoreError as exc:
        raise _http_error(exc) from exc

    logger.info(
        "Records listed page=%s limit=%s sort=%s returned=%s total=%s",
        page,
        page_size,
        sort or settings.default_sort,
        len(fetched.records),
        fetched.total,
    )
    return RecordListResponse(
        data=[record.to_mapping() for record in fetched.records],
        pagination=PaginationResponse(
            total=fetched.total,
            page=fetched.page,
            limit=fetched.page_size,
            pages=fetched.pages,
        ),
    )


@router.put("", response_model=RecordBulkUpdateResponse)
def update_records(
    payload: list[Any] = Body(...),
    store: RecordStore = Depends(get_record_store),
) -> RecordBulkUpdateResponse:
    """
    Apply one update per record; each record must carry its id.
    """

    records = [_parse_record(item) for item in payload]
    missing = [index for index, record in enumerate(records) if not record.id]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Records at positions {missing} are missing an id.",
        )
    if not records:
        return RecordBulkUpdateResponse(modified_count=0)

    updates = [RecordUpdate(id=str(record.id), fields=record.fields) for record in records]
    try:
        modified = store.update_many(updates)
    except RecordStoreError as exc:
        raise _http_error(exc) from exc
    return RecordBulkUpdateResponse(modified_count=modified)


@router.post("/upload", response_model=RecordUploadResponse)
def upload_records(
    body: RecordUploadRequest,
    store: RecordStore = Depends(get_record_store),
    settings: RecordsAPISettings = Depends(get_records_api_settings),
) -> RecordUploadResponse:
    """
    Insert one batch of decoded records atomically.
    """

    if not body.records:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or empty records array.",
        )
    if len(body.records) > settings.max_upload_records:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"At most {settings.max_upload_records} records may be uploaded per request.",
        )

    records = [_parse_record(item) for item in body.records]
    try:
        inserted = store.insert_many(records)
    except RecordStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to process upload: {exc}",
        ) from exc

    logger.info("Upload processed count=%s inserted=%s", len(records), inserted)
    return RecordUploadResponse(count=len(records), inserted_count=inserted)


@router.get("/{record_id}")
def get_record(
    record_id: str,
    store: RecordStore = Depends(get_record_store),
) -> dict[str, Any]:
    parsed = _parse_id(record_id)
    try:
        record = store.find_one(parsed)
    except RecordStoreError as exc:
        raise _http_error(exc) from exc
    if record is None:
        raise _http_error(RecordNotFoundError(parsed))
    return record.to_mapping()


@router.put("/{record_id}")
def update_record(
    record_id: str,
    payload: dict[str, Any] = Body(...),
    store: RecordStore = Depends(get_record_store),
) -> dict[str, Any]:
    parsed = _parse_id(record_id)
    body_id = payload.get("id") or payload.get("_id")
    if body_id and str(body_id).strip().lower() != parsed:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Record id in the URL does not match the id in the request body.",
        )

    record = _parse_record(payload)
    try:
        matched = store.update_many([RecordUpdate(id=parsed, fields=record.fields)])
        if matched == 0:
            raise RecordNotFoundError(parsed)
        updated = store.find_one(parsed)
    except RecordStoreError as exc:
        raise _http_error(exc) from exc
    if updated is None:
        raise _http_error(RecordNotFoundError(parsed))
    return updated.to_mapping()


@router.delete("/{record_id}", response_model=RecordDeleteResponse)
def delete_record(
    record_id: str,
    store: RecordStore = Depends(get_record_store),
) -> RecordDeleteResponse:
    parsed = _parse_id(record_id)
    try:
        deleted = store.delete_one(parsed)
    except RecordStoreError as exc:
        raise _http_error(exc) from exc
    if deleted == 0:
        raise _http_error(RecordNotFoundError(parsed))
    return RecordDeleteResponse()
