"""
app/domain/errors.py

Exceptions raised by the ingestion pipeline and the reconciliation store.

Row-level decode problems are not exceptions; they travel as RowError
values inside each RowBatch.
"""

from __future__ import annotations


class IngestionError(Exception):
    """Base exception for ingestion failures."""


class DecodeError(IngestionError):
    """
    Raised when the input stream cannot be decoded at all.

    Fatal: the batch sequence ends when this is raised.
    """


class UploadError(IngestionError):
    """
    Raised when one batch could not be persisted.
    """

    DEFAULT_MESSAGE = "Failed to upload batch."

    def __init__(self, message: str | None = None, *, batch_number: int | None = None) -> None:
        super().__init__(message or self.DEFAULT_MESSAGE)
        self.batch_number = batch_number


class ReconciliationError(Exception):
    """Base exception for working-table precondition violations."""


class InvalidIndexError(ReconciliationError, IndexError):
    """Raised when a row index is outside the working copy."""

    def __init__(self, row_index: int, row_count: int) -> None:
        super().__init__(f"Row index {row_index} is out of range (rows={row_count}).")
        self.row_index = row_index
        self.row_count = row_count


class MissingIdentifierError(ReconciliationError):
    """Raised when a row that must be persisted has no identifier."""

    def __init__(self, row_indexes: list[int], operation: str) -> None:
        rows = ", ".join(str(index) for index in row_indexes)
        super().__init__(f"Cannot {operation} rows without an identifier: {rows}.")
        self.row_indexes = tuple(row_indexes)
        self.operation = operation


class ReservedFieldError(ReconciliationError, ValueError):
    """Raised when an edit targets id, createdAt or updatedAt."""

    def __init__(self, field_name: str) -> None:
        super().__init__(f"Field '{field_name}' is managed by the store and cannot be edited.")
        self.field_name = field_name


class OperationInProgressError(ReconciliationError):
    """Raised when a save or delete is started while one is outstanding."""
