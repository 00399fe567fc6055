"""
app/api/dependencies.py

Shared FastAPI dependencies: upload validation and store access.
"""

from __future__ import annotations

from pathlib import PurePath

from fastapi import Depends, File, HTTPException, Request, UploadFile, status

from app.decoders import SUPPORTED_EXTENSIONS
from db.repositories.record_store import RecordStore, SQLRecordStore
from db.session import Database


def get_tabular_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Validate that the uploaded file is a delimited text file or a workbook.
    """

    extension = PurePath((file.filename or "").strip()).suffix.lower()
    if extension not in SUPPORTED_EXTENSIONS:
        allowed = ", ".join(sorted(SUPPORTED_EXTENSIONS))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported file type. Allowed: {allowed}.",
        )
    return file


def get_database(request: Request) -> Database:
    """
    Return the Database handle created by the application lifespan.
    """

    database = getattr(request.app.state, "database", None)
    if database is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database is not initialised.",
        )
    return database


def get_record_store(database: Database = Depends(get_database)) -> RecordStore:
    return SQLRecordStore(database)
