"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.tabular_record import TabularRecord

__all__ = [
    "TabularRecord",
]
