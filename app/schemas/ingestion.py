"""
app/schemas/ingestion.py

Response schemas for server-side file imports.
"""

from __future__ import annotations

from pydantic import Field

from app.schemas.records import CamelModel


class RowErrorResponse(CamelModel):
    """
    One recoverable row-level decode error.
    """

    row_index: int = Field(..., ge=0)
    message: str


class UploadErrorResponse(CamelModel):
    batch_number: int | None = None
    message: str


class ImportSummaryResponse(CamelModel):
    """
    Totals for one import: decoded rows, persisted rows and both error kinds.
    """

    success: bool
    total_rows: int = Field(..., ge=0)
    inserted_count: int = Field(..., ge=0)
    batches: int = Field(..., ge=0)
    columns: list[str] = Field(default_factory=list)
    row_errors: list[RowErrorResponse] = Field(default_factory=list)
    upload_errors: list[UploadErrorResponse] = Field(default_factory=list)
