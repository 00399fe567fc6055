"""
Repository layer exports.

The SQL-backed store lives in ``db.repositories.record_store`` and is not
re-exported here, so importing the model package does not pull in the
session layer.
"""

from db.repositories.codec import decode_cell, decode_fields, encode_cell, encode_fields
from db.repositories.errors import (
    InvalidRecordIdError,
    RecordNotFoundError,
    RecordPersistenceError,
    RecordStoreError,
    StoreConnectionError,
)
from db.repositories.identifiers import RECORD_ID_LENGTH, RecordId, generate_record_id

__all__ = [
    "RecordId",
    "RECORD_ID_LENGTH",
    "generate_record_id",
    "encode_cell",
    "decode_cell",
    "encode_fields",
    "decode_fields",
    "RecordStoreError",
    "RecordNotFoundError",
    "InvalidRecordIdError",
    "RecordPersistenceError",
    "StoreConnectionError",
]
