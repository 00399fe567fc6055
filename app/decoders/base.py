"""
app/decoders/base.py

Shared decoder plumbing: header synthesis and the batch emitter.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Sequence
from typing import IO, Any

from app.decoders.cells import CellCoercer
from app.domain.records import CellValue, IngestionResult, Record, RowBatch, RowError
from app.mappers.column_set import merge_columns

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100


def synthesize_header(raw_headers: Sequence[Any]) -> list[str]:
    """
    Turn a raw header row into field names.

    Blank cell at 0-based index ``i`` becomes ``Column{i+1}``. Duplicate
    names get a ``_2``, ``_3`` ... suffix so positional mapping never
    overwrites an earlier column.
    """

    names: list[str] = []
    seen: set[str] = set()
    for index, raw in enumerate(raw_headers):
        text = "" if raw is None else str(raw).strip()
        name = text or f"Column{index + 1}"
        if name in seen:
            suffix = 2
            while f"{name}_{suffix}" in seen:
                suffix += 1
            name = f"{name}_{suffix}"
        seen.add(name)
        names.append(name)
    return names


class BatchEmitter:
    """
    Buffers decoded rows into fixed-size RowBatch values.

    Holds only the current batch, the running column set and the error
    tally; emitted batches are handed off and forgotten.
    """

    def __init__(
        self,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_row_errors: int = 500,
        log_row_errors: bool = True,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1.")
        self._batch_size = batch_size
        self._max_row_errors = max(1, max_row_errors)
        self._log_row_errors = log_row_errors

        self._columns: tuple[str, ...] = ()
        self._records: list[Record] = []
        self._errors: list[RowError] = []
        self._all_errors: list[RowError] = []
        self._total_rows = 0
        self._batches_emitted = 0

    @property
    def total_rows(self) -> int:
        return self._total_rows

    @property
    def columns(self) -> tuple[str, ...]:
        return self._columns

    def declare_columns(self, names: Iterable[str]) -> None:
        """
        Register header names so empty columns still appear in the column set.
        """

        self._columns = merge_columns(self._columns, names)

    def add_row(self, fields: dict[str, CellValue]) -> RowBatch | None:
        """
        Buffer one record; return a full batch when ``batch_size`` is reached.
        """

        if fields:
            self._columns = merge_columns(self._columns, fields.keys())
        self._records.append(Record(fields=fields))
        self._total_rows += 1
        if len(self._records) >= self._batch_size:
            return self._emit()
        return None

    def add_error(self, row_index: int, message: str) -> None:
        error = RowError(row_index=row_index, message=message)
        if self._log_row_errors:
            logger.warning("Row decode error row=%s message=%s", row_index, message)
        self._errors.append(error)
        if len(self._all_errors) < self._max_row_errors:
            self._all_errors.append(error)

    def flush(self) -> RowBatch | None:
        """
        Emit the final partial batch, if any rows or errors are pending.
        """

        if not self._records and not self._errors:
            return None
        return self._emit()

    def result(self) -> IngestionResult:
        return IngestionResult(
            total_rows=self._total_rows,
            columns=self._columns,
            errors=tuple(self._all_errors),
        )

    def _emit(self) -> RowBatch:
        self._batches_emitted += 1
        batch = RowBatch(
            records=tuple(self._records),
            columns=self._columns,
            errors=tuple(self._errors),
            sequence=self._batches_emitted,
        )
        self._records = []
        self._errors = []
        return batch


class TabularDecoder(ABC):
    """
    Base class for decoders producing a lazy sequence of RowBatch values.
    """

    def __init__(
        self,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_row_errors: int = 500,
        log_row_errors: bool = True,
        coercer: CellCoercer | None = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1.")
        self._batch_size = batch_size
        self._max_row_errors = max_row_errors
        self._log_row_errors = log_row_errors
        self._coercer = coercer or CellCoercer()
        self._last_result: IngestionResult | None = None

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @property
    def last_result(self) -> IngestionResult | None:
        """
        Summary of the most recent fully consumed run, or None.
        """

        return self._last_result

    def iter_batches(self, stream: IO[bytes]) -> Iterator[RowBatch]:
        """
        Decode ``stream`` lazily, one batch per iteration step.

        The stream is read forward only; to decode again, pass a fresh stream.
        """

        self._last_result = None
        emitter = BatchEmitter(
            batch_size=self._batch_size,
            max_row_errors=self._max_row_errors,
            log_row_errors=self._log_row_errors,
        )
        for batch in self._decode(stream, emitter):
            yield batch
        final = emitter.flush()
        if final is not None:
            yield final
        self._last_result = emitter.result()
        logger.info(
            "Decode finished decoder=%s rows=%s columns=%s errors=%s",
            type(self).__name__,
            self._last_result.total_rows,
            len(self._last_result.columns),
            len(self._last_result.errors),
        )

    def decode(self, stream: IO[bytes]) -> tuple[list[RowBatch], IngestionResult]:
        """
        Eagerly decode a small input. Intended for tests and previews.
        """

        batches = list(self.iter_batches(stream))
        assert self._last_result is not None
        return batches, self._last_result

    @abstractmethod
    def _decode(self, stream: IO[bytes], emitter: BatchEmitter) -> Iterable[RowBatch]:
        """
        Feed rows into ``emitter`` and yield every batch it returns.
        """

    def _map_row(
        self,
        *,
        header: Sequence[str],
        cells: Sequence[Any],
        native: bool,
    ) -> dict[str, CellValue]:
        """
        Map cells positionally onto ``header``, skipping blank cells.

        Cells past the header width are ignored here; callers decide whether
        that is reported.
        """

        fields: dict[str, CellValue] = {}
        for name, raw in zip(header, cells):
            value = self._coercer.coerce_native(raw) if native else self._coercer.coerce_text(raw)
            if value is None:
                continue
            fields[name] = value
        return fields

    def _is_blank_row(self, cells: Sequence[Any]) -> bool:
        return all(self._coercer.is_blank(cell) for cell in cells)
