"""
app/services/reconciliation_store.py

Working copy of a record table with dirty-row tracking.

The store keeps three things: the editable working rows, a deep snapshot of
what was last loaded or saved, and the set of row indexes whose fields
differ from that snapshot. Only dirty rows are sent on save; deletions go
to the backing store immediately and are independent of edits.
"""

from __future__ import annotations

import logging
import threading
from bisect import bisect_left
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from app.config import ReconciliationSettings, get_reconciliation_settings
from app.domain.errors import (
    InvalidIndexError,
    MissingIdentifierError,
    OperationInProgressError,
    ReservedFieldError,
)
from app.domain.records import CellValue, Page, Record, RecordUpdate, cell_kind, is_reserved_field
from app.mappers.column_set import columns_from_records, display_columns, humanize_field_name
from db.repositories.record_store import DEFAULT_SORT_FIELD, RecordStore, parse_sort

logger = logging.getLogger(__name__)


class TableState(str, Enum):
    CLEAN = "clean"
    DIRTY = "dirty"
    SAVING = "saving"
    DELETING = "deleting"


@dataclass(frozen=True)
class SaveResult:
    modified_count: int
    saved_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class DeleteResult:
    deleted_ids: tuple[str, ...] = ()
    failed_ids: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failed_ids


class RowReconciliationStore:
    """
    Reconciles client-side edits against a RecordStore.

    Precondition failures raise before any state changes. Only one save or
    delete may be outstanding at a time.
    """

    def __init__(self, store: RecordStore, *, delete_concurrency: int = 8) -> None:
        self._store = store
        self._delete_concurrency = max(1, delete_concurrency)
        self._lock = threading.RLock()
        self._working: list[Record] = []
        self._original: list[Record] = []
        self._dirty: set[int] = set()
        self._columns: tuple[str, ...] = ()
        self._pending: TableState | None = None

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def state(self) -> TableState:
        with self._lock:
            if self._pending is not None:
                return self._pending
            return TableState.DIRTY if self._dirty else TableState.CLEAN

    @property
    def records(self) -> list[Record]:
        with self._lock:
            return [record.clone() for record in self._working]

    @property
    def original(self) -> list[Record]:
        with self._lock:
            return [record.clone() for record in self._original]

    @property
    def dirty_rows(self) -> frozenset[int]:
        with self._lock:
            return frozenset(self._dirty)

    @property
    def columns(self) -> tuple[str, ...]:
        return self._columns

    @property
    def column_labels(self) -> dict[str, str]:
        return {name: humanize_field_name(name) for name in self._columns}

    def __len__(self) -> int:
        return len(self._working)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def load(self, records: Sequence[Record], columns: Sequence[str] | None = None) -> None:
        """
        Replace working copy and snapshot; the table becomes clean.
        """

        with self._lock:
            self._ensure_idle()
            self._working = [record.clone() for record in records]
            self._original = [record.clone() for record in records]
            self._dirty = set()
            source = tuple(columns) if columns else columns_from_records(self._working)
            self._columns = display_columns(source)
        logger.info("Table loaded rows=%s columns=%s", len(records), len(self._columns))

    def edit(self, row_index: int, field_name: str, value: CellValue) -> None:
        """
        Set one cell and recompute the row's dirtiness against the snapshot.
        """

        with self._lock:
            if self._pending is TableState.SAVING:
                raise OperationInProgressError("Edits are not accepted while a save is outstanding.")
            if is_reserved_field(field_name):
                raise ReservedFieldError(field_name)
            self._check_index(row_index)
            cell_kind(value)

            row = self._working[row_index]
            row.fields[field_name] = value
            if row.same_fields(self._original[row_index]):
                self._dirty.discard(row_index)
            else:
                self._dirty.add(row_index)

    def save(self) -> SaveResult:
        """
        Send one bulk update carrying every field of each dirty row.

        On failure the exception propagates and nothing changes.
        """

        with self._lock:
            self._ensure_idle()
            if not self._dirty:
                return SaveResult(modified_count=0)
            dirty = sorted(self._dirty)
            missing = [index for index in dirty if not self._working[index].id]
            if missing:
                raise MissingIdentifierError(missing, "save")
            updates = [
                RecordUpdate(id=str(self._working[index].id), fields=dict(self._working[index].fields))
                for index in dirty
            ]
            self._pending = TableState.SAVING

        try:
            modified = self._store.update_many(updates)
        except Exception:
            with self._lock:
                self._pending = None
            logger.warning("Save failed rows=%s", len(updates))
            raise

        with self._lock:
            self._original = [record.clone() for record in self._working]
            self._dirty = set()
            self._pending = None
        logger.info("Save finished rows=%s modified=%s", len(updates), modified)
        return SaveResult(modified_count=modified, saved_ids=tuple(item.id for item in updates))

    def revert(self) -> None:
        with self._lock:
            self._ensure_idle()
            if not self._dirty:
                return
            self._working = [record.clone() for record in self._original]
            self._dirty = set()

    def delete_rows(self, row_indexes: Sequence[int]) -> DeleteResult:
        """
        Delete rows from the backing store, one request per distinct id,
        concurrently.

        Rows whose delete succeeded are removed from the working copy, the
        snapshot and the dirty set; rows sharing an id share its outcome.
        Failed ids are reported and their rows stay in place.
        """

        with self._lock:
            self._ensure_idle()
            indexes = sorted(set(row_indexes))
            for index in indexes:
                self._check_index(index)
            missing = [index for index in indexes if not self._working[index].id]
            if missing:
                raise MissingIdentifierError(missing, "delete")
            if not indexes:
                return DeleteResult()
            targets = {index: str(self._working[index].id) for index in indexes}
            self._pending = TableState.DELETING

        outcomes: dict[str, bool] = {}
        try:
            outcomes = self._delete_all(list(dict.fromkeys(targets.values())))
        finally:
            deleted_indexes = {
                index for index, record_id in targets.items() if outcomes.get(record_id)
            }
            with self._lock:
                self._remove_rows(deleted_indexes)
                self._pending = None

        result = DeleteResult(
            deleted_ids=tuple(
                dict.fromkeys(targets[index] for index in sorted(deleted_indexes))
            ),
            failed_ids=tuple(
                dict.fromkeys(
                    record_id
                    for index, record_id in targets.items()
                    if index not in deleted_indexes
                )
            ),
        )
        logger.info(
            "Delete finished requested=%s deleted=%s failed=%s",
            len(set(targets.values())),
            len(result.deleted_ids),
            len(result.failed_ids),
        )
        return result

    def refresh(self, page: int = 1, page_size: int = 50, sort: str | None = None) -> Page:
        """
        Refetch one page from the store and load it.
        """

        sort_field, descending = parse_sort(sort, DEFAULT_SORT_FIELD)
        fetched = self._store.find_page(page, page_size, sort_field, descending)
        self.load(fetched.records)
        return fetched

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_idle(self) -> None:
        if self._pending is not None:
            raise OperationInProgressError(f"A {self._pending.value} operation is outstanding.")

    def _check_index(self, row_index: int) -> None:
        if not isinstance(row_index, int) or isinstance(row_index, bool):
            raise InvalidIndexError(row_index, len(self._working))
        if row_index < 0 or row_index >= len(self._working):
            raise InvalidIndexError(row_index, len(self._working))

    def _delete_all(self, record_ids: list[str]) -> dict[str, bool]:
        workers = min(self._delete_concurrency, len(record_ids))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="row-delete") as executor:
            results = executor.map(self._delete_one, record_ids)
            return dict(zip(record_ids, results))

    def _delete_one(self, record_id: str) -> bool:
        try:
            deleted = self._store.delete_one(record_id)
        except Exception as exc:
            logger.warning("Row delete failed id=%s error=%s", record_id, exc)
            return False
        if deleted < 1:
            logger.warning("Row delete found nothing id=%s", record_id)
            return False
        return True

    def _remove_rows(self, removed: set[int]) -> None:
        if not removed:
            return
        self._working = [row for index, row in enumerate(self._working) if index not in removed]
        self._original = [row for index, row in enumerate(self._original) if index not in removed]
        ordered = sorted(removed)
        self._dirty = {
            index - bisect_left(ordered, index) for index in self._dirty if index not in removed
        }


def build_reconciliation_store(
    store: RecordStore,
    settings: ReconciliationSettings | None = None,
) -> RowReconciliationStore:
    settings = settings or get_reconciliation_settings()
    return RowReconciliationStore(store, delete_concurrency=settings.delete_concurrency)
