"""
app/domain/records.py

Domain models shared by the ingestion pipeline and the reconciliation store.
"""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Mapping, Union

RESERVED_FIELDS: tuple[str, ...] = ("id", "createdAt", "updatedAt")

CellValue = Union[str, int, float, bool, datetime, None]


class CellKind(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    NULL = "null"


def cell_kind(value: Any) -> CellKind:
    """
    Classify a value into the closed set of cell variants.

    Raises TypeError for anything outside the set so stray objects never
    reach a Record.
    """

    if value is None:
        return CellKind.NULL
    # bool before int: bool is an int subclass.
    if isinstance(value, bool):
        return CellKind.BOOLEAN
    if isinstance(value, (int, float)):
        return CellKind.NUMBER
    if isinstance(value, datetime):
        return CellKind.DATE
    if isinstance(value, str):
        return CellKind.TEXT
    raise TypeError(f"Unsupported cell value type: {type(value).__name__}")


def is_reserved_field(name: str) -> bool:
    return name in RESERVED_FIELDS


@dataclass
class Record:
    """
    One tabular record.

    ``fields`` never contains reserved keys; the identifier and the two
    timestamps are owned by the persistence boundary.
    """

    fields: dict[str, CellValue] = field(default_factory=dict)
    id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> Record:
        """
        Build a Record from the flat wire shape (reserved keys beside data keys).
        """

        fields: dict[str, CellValue] = {}
        for key, value in payload.items():
            if is_reserved_field(key) or key == "_id":
                continue
            cell_kind(value)
            fields[key] = value

        raw_id = payload.get("id", payload.get("_id"))
        return cls(
            fields=fields,
            id=str(raw_id) if raw_id not in (None, "") else None,
            created_at=_coerce_timestamp(payload.get("createdAt")),
            updated_at=_coerce_timestamp(payload.get("updatedAt")),
        )

    def to_mapping(self) -> dict[str, Any]:
        payload: dict[str, Any] = dict(self.fields)
        if self.id is not None:
            payload["id"] = self.id
        if self.created_at is not None:
            payload["createdAt"] = self.created_at
        if self.updated_at is not None:
            payload["updatedAt"] = self.updated_at
        return payload

    def clone(self) -> Record:
        return copy.deepcopy(self)

    def same_fields(self, other: Record) -> bool:
        """
        Compare non-reserved fields only.

        An absent field and a null field are equal. NaN is treated as equal
        to NaN so a float cell never makes a row permanently dirty.
        """

        for key in self.fields.keys() | other.fields.keys():
            value = self.fields.get(key)
            other_value = other.fields.get(key)
            if _both_nan(value, other_value):
                continue
            if type(value) is not type(other_value) or value != other_value:
                return False
        return True


@dataclass(frozen=True)
class RowError:
    """
    One recoverable row-level decode error.
    """

    row_index: int
    message: str


@dataclass(frozen=True)
class RowBatch:
    """
    Records emitted together plus the cumulative column snapshot.
    """

    records: tuple[Record, ...]
    columns: tuple[str, ...]
    errors: tuple[RowError, ...] = ()
    sequence: int = 0

    def __len__(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class IngestionResult:
    """
    Terminal decode summary.
    """

    total_rows: int
    columns: tuple[str, ...]
    errors: tuple[RowError, ...] = ()


@dataclass(frozen=True)
class RecordUpdate:
    """
    One full-replace update operation for the persistence boundary.
    """

    id: str
    fields: dict[str, CellValue]


@dataclass(frozen=True)
class Page:
    records: list[Record]
    total: int
    page: int
    page_size: int

    @property
    def pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total / self.page_size)


def _coerce_timestamp(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    raw = str(value).strip()
    normalized = raw[:-1] + "+00:00" if raw.endswith("Z") else raw
    try:
        return datetime.fromisoformat(normalized)
    except ValueError:
        return None


def _both_nan(left: Any, right: Any) -> bool:
    return (
        isinstance(left, float)
        and isinstance(right, float)
        and math.isnan(left)
        and math.isnan(right)
    )
