"""
JSONB encoding for record cells.

JSON has no date type, so datetime cells are stored as ``{"$date": iso}``
and decoded back on read.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Mapping

from app.domain.records import CellKind, CellValue, cell_kind

DATE_TAG = "$date"


def encode_cell(value: CellValue) -> Any:
    kind = cell_kind(value)
    if kind is CellKind.DATE:
        assert isinstance(value, datetime)
        return {DATE_TAG: value.isoformat()}
    if kind is CellKind.NUMBER and isinstance(value, float) and not math.isfinite(value):
        # NaN / inf are not valid JSON.
        return None
    return value


def decode_cell(value: Any) -> CellValue:
    if isinstance(value, dict):
        raw = value.get(DATE_TAG)
        if isinstance(raw, str) and len(value) == 1:
            try:
                return datetime.fromisoformat(raw)
            except ValueError:
                return raw
        return str(value)
    if isinstance(value, list):
        return str(value)
    return value


def encode_fields(fields: Mapping[str, CellValue]) -> dict[str, Any]:
    return {key: encode_cell(value) for key, value in fields.items()}


def decode_fields(payload: Mapping[str, Any] | None) -> dict[str, CellValue]:
    if not payload:
        return {}
    return {key: decode_cell(value) for key, value in payload.items()}
