"""
app/services/upload_relay.py

Forwards decoded row batches to the record store, one insert-many per batch.

Batches are independent: a failed batch is reported through its
UploadOutcome and never stops the others.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass

from app.domain.errors import UploadError
from app.domain.records import RowBatch
from db.repositories.errors import RecordStoreError
from db.repositories.record_store import RecordStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadOutcome:
    batch_number: int
    inserted_count: int = 0
    error: UploadError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class UploadRelay:
    """
    Submits batches to a bounded thread pool so several can be in flight.
    """

    def __init__(self, store: RecordStore, *, max_workers: int = 4) -> None:
        self._store = store
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, max_workers),
            thread_name_prefix="upload-relay",
        )

    def relay_batch(self, batch: RowBatch, *, batch_number: int | None = None) -> int:
        """
        Persist one batch atomically and return the inserted count.

        An empty batch is a no-op. Store failures are re-raised as
        UploadError carrying the store's message.
        """

        number = batch_number if batch_number is not None else batch.sequence
        if not batch.records:
            return 0

        try:
            inserted = self._store.insert_many(list(batch.records))
        except RecordStoreError as exc:
            raise UploadError(str(exc) or None, batch_number=number) from exc
        except Exception as exc:
            logger.exception("Unexpected upload failure batch=%s", number)
            raise UploadError(batch_number=number) from exc

        logger.info("Batch uploaded batch=%s inserted=%s", number, inserted)
        return inserted

    def submit(self, batch: RowBatch, *, batch_number: int | None = None) -> Future[UploadOutcome]:
        number = batch_number if batch_number is not None else batch.sequence
        return self._executor.submit(self._run, batch, number)

    def shutdown(self, *, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> UploadRelay:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown(wait=True)

    def _run(self, batch: RowBatch, batch_number: int) -> UploadOutcome:
        try:
            inserted = self.relay_batch(batch, batch_number=batch_number)
        except UploadError as exc:
            logger.warning("Batch upload failed batch=%s error=%s", batch_number, exc)
            return UploadOutcome(batch_number=batch_number, error=exc)
        return UploadOutcome(batch_number=batch_number, inserted_count=inserted)
