"""
Persistence boundary for tabular records.

``RecordStore`` is the contract the pipeline and the reconciliation store
depend on. ``SQLRecordStore`` implements it on PostgreSQL; tests use an
in-memory fake.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError

from app.domain.records import Page, Record, RecordUpdate, is_reserved_field
from app.repositories.record_repository import RecordRepository
from db.base import utc_now
from db.models.tabular_record import TabularRecord
from db.repositories.codec import decode_fields, encode_fields
from db.repositories.errors import RecordPersistenceError
from db.repositories.identifiers import RecordId
from db.session import Database

logger = logging.getLogger(__name__)

DEFAULT_SORT_FIELD = "createdAt"


def parse_sort(sort: str | None, default: str = DEFAULT_SORT_FIELD) -> tuple[str, bool]:
    """
    Split ``"-field"`` into ``("field", True)``; a bare name sorts ascending.
    """

    raw = (sort or "").strip() or default
    if raw.startswith("-"):
        return raw[1:].strip() or default, True
    return raw, False


class RecordStore(Protocol):
    def insert_many(self, records: Sequence[Record]) -> int:
        ...

    def find_page(
        self,
        page: int,
        page_size: int,
        sort_field: str = DEFAULT_SORT_FIELD,
        descending: bool = False,
    ) -> Page:
        ...

    def update_many(self, updates: Sequence[RecordUpdate]) -> int:
        ...

    def delete_one(self, record_id: str) -> int:
        ...

    def find_one(self, record_id: str) -> Record | None:
        ...


def _to_record(row: TabularRecord) -> Record:
    return Record(
        fields=decode_fields(row.data),
        id=row.id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _data_fields(fields: dict) -> dict:
    return {key: value for key, value in fields.items() if not is_reserved_field(key)}


class SQLRecordStore:
    """
    RecordStore on the tabular_records table.

    Every call runs in its own transaction; SQLAlchemy failures are rolled
    back and re-raised as RecordPersistenceError.
    """

    def __init__(self, database: Database) -> None:
        self._database = database

    def insert_many(self, records: Sequence[Record]) -> int:
        if not records:
            return 0
        rows = [
            {"id": str(RecordId.generate()), "data": encode_fields(_data_fields(record.fields))}
            for record in records
        ]
        try:
            with self._database.session() as session:
                inserted = RecordRepository(session).insert_documents(rows)
        except SQLAlchemyError as exc:
            logger.exception("Record insert failed count=%s", len(rows))
            raise RecordPersistenceError(f"Failed to insert records: {exc}") from exc
        logger.info("Records inserted count=%s", inserted)
        return inserted

    def find_page(
        self,
        page: int,
        page_size: int,
        sort_field: str = DEFAULT_SORT_FIELD,
        descending: bool = False,
    ) -> Page:
        page = max(1, page)
        page_size = max(1, page_size)
        try:
            with self._database.session() as session:
                repository = RecordRepository(session)
                total = repository.count()
                rows = repository.list_page(
                    offset=(page - 1) * page_size,
                    limit=page_size,
                    sort_field=sort_field,
                    descending=descending,
                )
                records = [_to_record(row) for row in rows]
        except SQLAlchemyError as exc:
            raise RecordPersistenceError(f"Failed to fetch records: {exc}") from exc
        return Page(records=records, total=total, page=page, page_size=page_size)

    def update_many(self, updates: Sequence[RecordUpdate]) -> int:
        if not updates:
            return 0
        parsed = [(RecordId.parse(item.id), item) for item in updates]
        stamped_at = utc_now()
        modified = 0
        try:
            with self._database.session() as session:
                repository = RecordRepository(session)
                for record_id, item in parsed:
                    modified += repository.merge_data(
                        str(record_id),
                        encode_fields(_data_fields(item.fields)),
                        stamped_at=stamped_at,
                    )
        except SQLAlchemyError as exc:
            logger.exception("Record update failed count=%s", len(parsed))
            raise RecordPersistenceError(f"Failed to update records: {exc}") from exc
        logger.info("Records updated requested=%s modified=%s", len(parsed), modified)
        return modified

    def delete_one(self, record_id: str) -> int:
        parsed = RecordId.parse(record_id)
        try:
            with self._database.session() as session:
                deleted = RecordRepository(session).delete(str(parsed))
        except SQLAlchemyError as exc:
            raise RecordPersistenceError(f"Failed to delete record {parsed}: {exc}") from exc
        logger.info("Record delete id=%s deleted=%s", parsed, deleted)
        return deleted

    def find_one(self, record_id: str) -> Record | None:
        parsed = RecordId.parse(record_id)
        try:
            with self._database.session() as session:
                row = RecordRepository(session).get(str(parsed))
                return _to_record(row) if row is not None else None
        except SQLAlchemyError as exc:
            raise RecordPersistenceError(f"Failed to fetch record {parsed}: {exc}") from exc
