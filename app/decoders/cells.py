"""
app/decoders/cells.py

Best-effort cell typing applied once at decode time.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from app.domain.records import CellValue

TIMESTAMP_FORMATS: tuple[str, ...] = (
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%Y/%m/%d %H:%M:%S",
    "%m/%d/%Y %H:%M:%S",
)

# Cheap pre-checks so plain text never goes through every parser.
_NUMBER_PATTERN = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
_DATE_PATTERN = re.compile(r"^\d{1,4}[-/]\d{1,2}[-/]\d{1,4}([ T].*)?$")


class CellCoercer:
    """
    Turns raw cell contents into the closed set of cell values.
    """

    def is_blank(self, value: Any) -> bool:
        if value is None:
            return True
        if isinstance(value, str):
            return value.strip() == ""
        return False

    def coerce_text(self, raw: str) -> CellValue:
        """
        Type one delimited-text cell: booleans, numbers, dates, else text.

        Text is returned unchanged (no trimming) so the stored value matches
        what the file contained.
        """

        if self.is_blank(raw):
            return None

        stripped = raw.strip()
        lowered = stripped.lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False

        number = self._parse_number(stripped)
        if number is not None:
            return number

        moment = self._parse_datetime(stripped)
        if moment is not None:
            return moment

        return raw

    def coerce_native(self, value: Any) -> CellValue:
        """
        Normalize one workbook cell that already carries a native type.
        """

        if self.is_blank(value):
            return None
        if isinstance(value, (bool, int, float, str, datetime)):
            return value
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day)
        if isinstance(value, time):
            return value.isoformat()
        if isinstance(value, timedelta):
            return str(value)
        if isinstance(value, Decimal):
            return float(value)
        return str(value)

    def _parse_number(self, raw: str) -> int | float | None:
        if not _NUMBER_PATTERN.match(raw):
            return None
        try:
            return int(raw)
        except ValueError:
            pass
        try:
            return float(Decimal(raw))
        except (InvalidOperation, ValueError):
            return None

    def _parse_datetime(self, raw: str) -> datetime | None:
        if not _DATE_PATTERN.match(raw):
            return None

        normalized = raw[:-1] + "+00:00" if raw.endswith("Z") else raw
        try:
            parsed = datetime.fromisoformat(normalized)
            if parsed.tzinfo is not None:
                parsed = parsed.astimezone(timezone.utc)
            return parsed
        except ValueError:
            pass

        for fmt in TIMESTAMP_FORMATS:
            try:
                return datetime.strptime(raw, fmt)
            except ValueError:
                continue
        return None
