"""
db/models/tabular_record.py

Schemaless record row: one JSONB document per ingested or edited record.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import CHAR, Index
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin
from db.repositories.identifiers import RECORD_ID_LENGTH, generate_record_id


class TabularRecord(TimestampMixin, Base):
    __tablename__ = "tabular_records"

    id: Mapped[str] = mapped_column(
        CHAR(RECORD_ID_LENGTH),
        primary_key=True,
        default=generate_record_id,
        comment="24 hex character opaque identifier",
    )
    data: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        comment="Record fields; dates encoded as {\"$date\": iso}",
    )

    __table_args__ = (
        Index("ix_tabular_records_created_at", "created_at"),
        Index("ix_tabular_records_updated_at", "updated_at"),
    )
