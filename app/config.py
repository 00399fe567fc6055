"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files

_ALLOWED_DELIMITERS = {",", ";", "\t", "|"}


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.

    Only surrounding newlines/spaces are stripped so a literal tab survives.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip(" \r\n")
    return stripped if stripped else default


def _get_delimiter_env(name: str, default: str) -> str:
    raw = _get_str_env(name, default)
    if raw.lower() in {"tab", "\\t"}:
        return "\t"
    return raw if raw in _ALLOWED_DELIMITERS else default


@dataclass(frozen=True)
class IngestionSettings:
    """
    Runtime settings for tabular file ingestion.
    """

    batch_size: int = 100
    max_row_errors: int = 500
    log_row_errors: bool = True
    channel_capacity: int = 4
    upload_concurrency: int = 4
    delimiter: str = ","


@dataclass(frozen=True)
class ReconciliationSettings:
    """
    Runtime settings for the working-table reconciliation store.
    """

    delete_concurrency: int = 8


@dataclass(frozen=True)
class RecordsAPISettings:
    """
    Paging and payload limits for the records HTTP adapter.
    """

    default_page_size: int = 50
    max_page_size: int = 1000
    default_sort: str = "createdAt"
    max_upload_records: int = 10000


@lru_cache(maxsize=1)
def get_ingestion_settings() -> IngestionSettings:
    """
    Return cached ingestion settings from environment variables.
    """

    return IngestionSettings(
        batch_size=max(1, _get_int_env("INGEST_BATCH_SIZE", 100)),
        max_row_errors=max(1, _get_int_env("INGEST_MAX_ROW_ERRORS", 500)),
        log_row_errors=_get_bool_env("INGEST_LOG_ROW_ERRORS", True),
        channel_capacity=max(1, _get_int_env("INGEST_CHANNEL_CAPACITY", 4)),
        upload_concurrency=max(1, _get_int_env("INGEST_UPLOAD_CONCURRENCY", 4)),
        delimiter=_get_delimiter_env("INGEST_CSV_DELIMITER", ","),
    )


@lru_cache(maxsize=1)
def get_reconciliation_settings() -> ReconciliationSettings:
    """
    Return cached reconciliation settings from environment variables.
    """

    return ReconciliationSettings(
        delete_concurrency=max(1, _get_int_env("RECONCILE_DELETE_CONCURRENCY", 8)),
    )


@lru_cache(maxsize=1)
def get_records_api_settings() -> RecordsAPISettings:
    """
    Return cached records API settings from environment variables.
    """

    max_page_size = max(1, _get_int_env("RECORDS_MAX_PAGE_SIZE", 1000))
    return RecordsAPISettings(
        default_page_size=min(max_page_size, max(1, _get_int_env("RECORDS_PAGE_SIZE", 50))),
        max_page_size=max_page_size,
        default_sort=_get_str_env("RECORDS_DEFAULT_SORT", "createdAt"),
        max_upload_records=max(1, _get_int_env("RECORDS_MAX_UPLOAD", 10000)),
    )
