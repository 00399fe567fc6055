"""
app/services/ingestion_pipeline.py

Runs a decoder in a worker thread and relays its batches to the store.

The worker owns the decode state and talks to the consumer only through a
bounded queue of immutable messages. The consumer uploads a batch while the
next one is decoded; uploads may finish out of order.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable, Iterator
from contextlib import closing
from concurrent.futures import Future, wait
from dataclasses import dataclass, field
from typing import IO, Union

from app.config import IngestionSettings, get_ingestion_settings
from app.decoders.base import TabularDecoder
from app.domain.errors import DecodeError, UploadError
from app.domain.records import IngestionResult, RowBatch
from app.mappers.column_set import merge_columns
from app.services.upload_relay import UploadOutcome, UploadRelay
from db.repositories.record_store import RecordStore

logger = logging.getLogger(__name__)

_POLL_SECONDS = 0.1


# ---------------------------------------------------------------------------
# Worker messages
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BatchMessage:
    batch: RowBatch


@dataclass(frozen=True)
class CompletedMessage:
    result: IngestionResult


@dataclass(frozen=True)
class FailedMessage:
    error: DecodeError


WorkerMessage = Union[BatchMessage, CompletedMessage, FailedMessage]


# ---------------------------------------------------------------------------
# Decode worker
# ---------------------------------------------------------------------------


class DecodeWorker:
    """
    Decodes one stream on a daemon thread.

    ``messages()`` yields every batch followed by exactly one terminal
    message, unless ``terminate()`` is called first; after termination no
    further message is delivered.
    """

    def __init__(self, decoder: TabularDecoder, stream: IO[bytes], *, capacity: int = 4) -> None:
        self._decoder = decoder
        self._stream = stream
        self._channel: queue.Queue[WorkerMessage] = queue.Queue(maxsize=max(1, capacity))
        self._terminated = threading.Event()
        self._thread = threading.Thread(target=self._run, name="decode-worker", daemon=True)

    @property
    def terminated(self) -> bool:
        return self._terminated.is_set()

    def start(self) -> DecodeWorker:
        self._thread.start()
        return self

    def terminate(self) -> None:
        self._terminated.set()

    def join(self, timeout: float | None = None) -> None:
        self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def messages(self) -> Iterator[WorkerMessage]:
        while not self._terminated.is_set():
            try:
                message = self._channel.get(timeout=_POLL_SECONDS)
            except queue.Empty:
                if not self._thread.is_alive() and self._channel.empty():
                    return
                continue
            if self._terminated.is_set():
                return
            yield message
            if not isinstance(message, BatchMessage):
                return

    def _run(self) -> None:
        try:
            with closing(self._decoder.iter_batches(self._stream)) as batches:
                for batch in batches:
                    if not self._put(BatchMessage(batch)):
                        logger.info("Decode worker terminated after batch=%s", batch.sequence)
                        return
            result = self._decoder.last_result
            if result is not None:
                self._put(CompletedMessage(result))
        except DecodeError as exc:
            self._put(FailedMessage(exc))
        except Exception as exc:
            logger.exception("Decode worker crashed")
            self._put(FailedMessage(DecodeError(f"Decoding failed unexpectedly: {exc}")))

    def _put(self, message: WorkerMessage) -> bool:
        while not self._terminated.is_set():
            try:
                self._channel.put(message, timeout=_POLL_SECONDS)
                return True
            except queue.Full:
                continue
        return False


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class IngestionReport:
    """
    Outcome of one ingestion run.

    ``result`` is None when the run was cancelled before decoding finished.
    """

    result: IngestionResult | None
    columns: tuple[str, ...]
    batches: int = 0
    inserted_count: int = 0
    upload_errors: tuple[UploadError, ...] = field(default_factory=tuple)
    cancelled: bool = False

    @property
    def total_rows(self) -> int:
        return self.result.total_rows if self.result is not None else 0


BatchCallback = Callable[[RowBatch, tuple[str, ...]], None]


class IngestionPipeline:
    """
    decoder -> worker channel -> column accumulation + upload relay.
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        channel_capacity: int = 4,
        upload_concurrency: int = 4,
    ) -> None:
        self._store = store
        self._channel_capacity = channel_capacity
        self._upload_concurrency = upload_concurrency

    def run(
        self,
        decoder: TabularDecoder,
        stream: IO[bytes],
        *,
        on_batch: BatchCallback | None = None,
        cancel_event: threading.Event | None = None,
    ) -> IngestionReport:
        """
        Decode ``stream`` and persist each batch as it arrives.

        Raises DecodeError on a fatal decode failure, after batches already
        submitted have finished uploading. Setting ``cancel_event`` stops
        the worker; uploads still in flight complete but are not reported.
        """

        worker = DecodeWorker(decoder, stream, capacity=self._channel_capacity).start()
        relay = UploadRelay(self._store, max_workers=self._upload_concurrency)
        futures: list[Future[UploadOutcome]] = []
        columns: tuple[str, ...] = ()
        result: IngestionResult | None = None
        failure: DecodeError | None = None
        cancelled = False

        try:
            for message in worker.messages():
                if cancel_event is not None and cancel_event.is_set():
                    cancelled = True
                    break
                if isinstance(message, BatchMessage):
                    batch = message.batch
                    columns = merge_columns(columns, batch.columns)
                    futures.append(relay.submit(batch))
                    if on_batch is not None:
                        on_batch(batch, columns)
                elif isinstance(message, CompletedMessage):
                    result = message.result
                    columns = merge_columns(columns, result.columns)
                else:
                    failure = message.error
            if result is None and failure is None and not cancelled:
                failure = DecodeError("Decode worker stopped without a result.")
        finally:
            worker.terminate()
            relay.shutdown(wait=not cancelled)

        if cancelled:
            logger.info("Ingestion cancelled batches_submitted=%s", len(futures))
            return IngestionReport(result=None, columns=columns, batches=len(futures), cancelled=True)

        wait(futures)
        outcomes = sorted((future.result() for future in futures), key=lambda item: item.batch_number)
        inserted = sum(outcome.inserted_count for outcome in outcomes)
        upload_errors = tuple(outcome.error for outcome in outcomes if outcome.error is not None)

        if failure is not None:
            logger.warning(
                "Ingestion aborted by decode error batches=%s inserted=%s error=%s",
                len(outcomes),
                inserted,
                failure,
            )
            raise failure

        assert result is not None
        logger.info(
            "Ingestion finished rows=%s batches=%s inserted=%s upload_errors=%s row_errors=%s",
            result.total_rows,
            len(outcomes),
            inserted,
            len(upload_errors),
            len(result.errors),
        )
        return IngestionReport(
            result=result,
            columns=columns,
            batches=len(outcomes),
            inserted_count=inserted,
            upload_errors=upload_errors,
        )


def build_ingestion_pipeline(
    store: RecordStore,
    settings: IngestionSettings | None = None,
) -> IngestionPipeline:
    settings = settings or get_ingestion_settings()
    return IngestionPipeline(
        store,
        channel_capacity=settings.channel_capacity,
        upload_concurrency=settings.upload_concurrency,
    )
