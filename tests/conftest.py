"""
tests/conftest.py

Shared fixtures: an in-memory RecordStore fake.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone

import pytest

from app.domain.records import Page, Record, RecordUpdate, is_reserved_field
from db.repositories.errors import RecordPersistenceError
from db.repositories.identifiers import RecordId
from db.repositories.record_store import DEFAULT_SORT_FIELD

_COLUMN_FIELDS = {"id": "id", "createdAt": "created_at", "updatedAt": "updated_at"}


class InMemoryRecordStore:
    """
    RecordStore fake with the same id and timestamp rules as SQLRecordStore.

    ``fail_insert_when`` and ``fail_delete_ids`` inject failures.
    """

    def __init__(self) -> None:
        self._rows: dict[str, Record] = {}
        self._lock = threading.Lock()
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)
        self.fail_insert_when = None
        self.fail_update = False
        self.fail_delete_ids: set[str] = set()
        self.insert_calls: list[int] = []
        self.update_calls: list[list[RecordUpdate]] = []
        self.delete_calls: list[str] = []

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def seed(self, *field_sets: dict) -> list[Record]:
        self.insert_many([Record(fields=dict(fields)) for fields in field_sets])
        return self.all()

    def all(self) -> list[Record]:
        with self._lock:
            return [record.clone() for record in self._rows.values()]

    def insert_many(self, records: Sequence[Record]) -> int:
        with self._lock:
            self.insert_calls.append(len(records))
            if self.fail_insert_when is not None and self.fail_insert_when(records):
                raise RecordPersistenceError("insert rejected by fake store")
            for record in records:
                record_id = str(RecordId.generate())
                stamp = self._tick()
                self._rows[record_id] = Record(
                    fields={k: v for k, v in record.fields.items() if not is_reserved_field(k)},
                    id=record_id,
                    created_at=stamp,
                    updated_at=stamp,
                )
            return len(records)

    def find_page(
        self,
        page: int,
        page_size: int,
        sort_field: str = DEFAULT_SORT_FIELD,
        descending: bool = False,
    ) -> Page:
        with self._lock:
            rows = [record.clone() for record in self._rows.values()]
        attribute = _COLUMN_FIELDS.get(sort_field)

        def key(record: Record) -> tuple:
            value = getattr(record, attribute) if attribute else record.fields.get(sort_field)
            return (value is None, str(value) if value is not None else "")

        rows.sort(key=key, reverse=descending)
        start = (max(1, page) - 1) * page_size
        return Page(records=rows[start : start + page_size], total=len(rows), page=page, page_size=page_size)

    def update_many(self, updates: Sequence[RecordUpdate]) -> int:
        parsed = [(str(RecordId.parse(item.id)), item) for item in updates]
        with self._lock:
            self.update_calls.append(list(updates))
            if self.fail_update:
                raise RecordPersistenceError("update rejected by fake store")
            matched = 0
            for record_id, item in parsed:
                current = self._rows.get(record_id)
                if current is None:
                    continue
                current.fields.update(item.fields)
                current.updated_at = self._tick()
                matched += 1
            return matched

    def delete_one(self, record_id: str) -> int:
        parsed = str(RecordId.parse(record_id))
        with self._lock:
            self.delete_calls.append(parsed)
            if parsed in self.fail_delete_ids:
                raise RecordPersistenceError(f"delete rejected for {parsed}")
            return 1 if self._rows.pop(parsed, None) is not None else 0

    def find_one(self, record_id: str) -> Record | None:
        parsed = str(RecordId.parse(record_id))
        with self._lock:
            record = self._rows.get(parsed)
            return record.clone() if record is not None else None


@pytest.fixture()
def memory_store() -> InMemoryRecordStore:
    return InMemoryRecordStore()
