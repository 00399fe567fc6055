"""
app/repositories/record_repository.py

Session-scoped SQL helpers for the tabular_records table.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import delete, func, literal, select, update
from sqlalchemy.dialects.postgresql import JSONB, insert
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from db.models.tabular_record import TabularRecord

COLUMN_SORT_FIELDS: dict[str, Any] = {
    "id": TabularRecord.id,
    "createdAt": TabularRecord.created_at,
    "updatedAt": TabularRecord.updated_at,
}


def sort_expression(field_name: str, *, descending: bool) -> ColumnElement[Any]:
    """
    Order by a real column for reserved fields, otherwise by the JSONB key.
    """

    column = COLUMN_SORT_FIELDS.get(field_name)
    expression = column if column is not None else TabularRecord.data[field_name]
    if descending:
        return expression.desc().nulls_last()
    return expression.asc().nulls_last()


class RecordRepository:
    """
    Thin wrapper around one Session; the caller owns the transaction.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def insert_documents(self, rows: Sequence[dict[str, Any]], *, chunk_size: int = 500) -> int:
        """
        Insert pre-encoded rows (each with ``id`` and ``data``) in chunks.
        """

        if not rows:
            return 0
        for chunk_start in range(0, len(rows), chunk_size):
            chunk = rows[chunk_start : chunk_start + chunk_size]
            self._session.execute(insert(TabularRecord), list(chunk))
        return len(rows)

    def count(self) -> int:
        return int(self._session.scalar(select(func.count()).select_from(TabularRecord)) or 0)

    def list_page(
        self,
        *,
        offset: int,
        limit: int,
        sort_field: str,
        descending: bool,
    ) -> list[TabularRecord]:
        stmt = (
            select(TabularRecord)
            .order_by(sort_expression(sort_field, descending=descending), TabularRecord.id.asc())
            .offset(offset)
            .limit(limit)
        )
        return list(self._session.scalars(stmt).all())

    def get(self, record_id: str) -> TabularRecord | None:
        return self._session.get(TabularRecord, record_id)

    def merge_data(self, record_id: str, patch: dict[str, Any], *, stamped_at: datetime) -> int:
        """
        Overwrite the named keys of ``data``; keys not in ``patch`` are kept.

        Returns the number of matched rows (0 or 1).
        """

        stmt = (
            update(TabularRecord)
            .where(TabularRecord.id == record_id)
            .values(
                data=TabularRecord.data.op("||")(literal(patch, type_=JSONB)),
                updated_at=stamped_at,
            )
            .execution_options(synchronize_session=False)
        )
        result = self._session.execute(stmt)
        return int(result.rowcount or 0)

    def delete(self, record_id: str) -> int:
        result = self._session.execute(delete(TabularRecord).where(TabularRecord.id == record_id))
        return int(result.rowcount or 0)
