"""
Repository-layer exceptions for the record store boundary.
"""

from __future__ import annotations


class RecordStoreError(Exception):
    """Base exception for record store failures."""


class InvalidRecordIdError(RecordStoreError, ValueError):
    """Raised when an identifier token is malformed (client error)."""

    def __init__(self, raw: object) -> None:
        super().__init__(f"Invalid record identifier: {raw!r}")
        self.raw = raw


class RecordNotFoundError(RecordStoreError):
    """Raised when no record matches an identifier."""

    def __init__(self, record_id: str) -> None:
        super().__init__(f"Record not found: {record_id}")
        self.record_id = record_id


class RecordPersistenceError(RecordStoreError):
    """Raised when a read or write against the database fails."""


class StoreConnectionError(RecordStoreError):
    """Raised when the database cannot be reached at startup."""
