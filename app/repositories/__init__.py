"""
app/repositories package marker.
"""

from app.repositories.record_repository import RecordRepository, sort_expression

__all__ = [
    "RecordRepository",
    "sort_expression",
]
