"""
app/schemas/records.py

Request and response schemas for the records endpoints.

Field names on the wire are camelCase; Python attributes stay snake_case.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PaginationResponse(CamelModel):
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    pages: int = Field(..., ge=0)


class RecordListResponse(CamelModel):
    """
    One page of records in the flat wire shape (``id``, ``createdAt`` and
    ``updatedAt`` beside the data fields).
    """

    data: list[dict[str, Any]] = Field(default_factory=list)
    pagination: PaginationResponse


class RecordUploadRequest(CamelModel):
    records: list[dict[str, Any]] = Field(default_factory=list)


class RecordUploadResponse(CamelModel):
    success: bool = True
    count: int = Field(..., ge=0)
    inserted_count: int = Field(..., ge=0)


class RecordBulkUpdateResponse(CamelModel):
    success: bool = True
    modified_count: int = Field(..., ge=0)


class RecordDeleteResponse(CamelModel):
    success: bool = True
