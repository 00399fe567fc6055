"""
app/mappers package marker.
"""

from app.mappers.column_set import (
    columns_from_records,
    display_columns,
    humanize_field_name,
    merge_columns,
)

__all__ = [
    "columns_from_records",
    "display_columns",
    "humanize_field_name",
    "merge_columns",
]
