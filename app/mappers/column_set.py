"""
app/mappers/column_set.py

Progressive column-set inference and display labels for field names.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from app.domain.records import Record, is_reserved_field

# Lower/digit followed by upper ("firstName" -> "first Name") and an acronym
# followed by a word ("HTTPStatus" -> "HTTP Status").
_CASE_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_SEPARATORS = re.compile(r"[\s_]+")


def merge_columns(current: Sequence[str], incoming: Iterable[str]) -> tuple[str, ...]:
    """
    Return ``current`` followed by every name in ``incoming`` not yet seen.

    Pure: neither argument is modified. Earlier names keep their relative
    order; new names are appended in first-seen order.
    """

    merged = list(current)
    seen = set(merged)
    for name in incoming:
        if name in seen:
            continue
        seen.add(name)
        merged.append(name)
    return tuple(merged)


def display_columns(columns: Iterable[str]) -> tuple[str, ...]:
    """
    Drop reserved fields from a column set.
    """

    return tuple(name for name in columns if not is_reserved_field(name))


def columns_from_records(records: Iterable[Record]) -> tuple[str, ...]:
    """
    Derive a displayable column set from already-fetched records.
    """

    columns: tuple[str, ...] = ()
    for record in records:
        columns = merge_columns(columns, record.fields.keys())
    return display_columns(columns)


def humanize_field_name(name: str) -> str:
    """
    Build a display label: ``first_name`` / ``firstName`` -> ``First Name``.

    Cosmetic only; the stored key is never changed.
    """

    spaced = _CASE_BOUNDARY.sub(" ", name)
    tokens = [token for token in _SEPARATORS.split(spaced) if token]
    return " ".join(token[:1].upper() + token[1:].lower() for token in tokens)
