"""
app/decoders/delimited.py

Streaming decoder for delimited text (CSV/TSV).
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Iterator
from typing import IO

from app.decoders.base import BatchEmitter, TabularDecoder, synthesize_header
from app.decoders.cells import CellCoercer
from app.domain.errors import DecodeError
from app.domain.records import RowBatch

logger = logging.getLogger(__name__)


class DelimitedDecoder(TabularDecoder):
    """
    Decodes delimited text row by row without materializing the file.

    The first non-empty row is the header. Rows whose width differs from
    the header are still emitted (extra cells dropped, missing cells
    absent) and reported as row errors.
    """

    def __init__(
        self,
        *,
        batch_size: int = 100,
        delimiter: str = ",",
        encoding: str = "utf-8-sig",
        max_row_errors: int = 500,
        log_row_errors: bool = True,
        coercer: CellCoercer | None = None,
    ) -> None:
        super().__init__(
            batch_size=batch_size,
            max_row_errors=max_row_errors,
            log_row_errors=log_row_errors,
            coercer=coercer,
        )
        self._delimiter = delimiter
        self._encoding = encoding

    def _decode(self, stream: IO[bytes], emitter: BatchEmitter) -> Iterator[RowBatch]:
        text_stream = self._open_text(stream)
        try:
            reader = csv.reader(text_stream, delimiter=self._delimiter)
            header: list[str] | None = None
            row_index = 0

            while True:
                try:
                    cells = next(reader)
                except StopIteration:
                    break
                except UnicodeDecodeError as exc:
                    raise DecodeError(
                        f"Input is not valid {self._encoding} text (line {reader.line_num})."
                    ) from exc
                except OSError as exc:
                    raise DecodeError("Input stream could not be read.") from exc
                except csv.Error as exc:
                    if header is None:
                        raise DecodeError(f"Invalid delimited header: {exc}") from exc
                    emitter.add_error(row_index, f"Row could not be parsed: {exc}")
                    row_index += 1
                    continue

                if self._is_blank_row(cells):
                    continue

                if header is None:
                    header = synthesize_header(cells)
                    emitter.declare_columns(header)
                    continue

                if len(cells) != len(header):
                    emitter.add_error(
                        row_index,
                        f"Expected {len(header)} fields but found {len(cells)}.",
                    )

                fields = self._map_row(header=header, cells=cells, native=False)
                row_index += 1
                if not fields:
                    continue

                batch = emitter.add_row(fields)
                if batch is not None:
                    yield batch
        finally:
            try:
                text_stream.detach()
            except ValueError:
                pass

    def _open_text(self, stream: IO[bytes]) -> io.TextIOWrapper:
        try:
            return io.TextIOWrapper(stream, encoding=self._encoding, newline="")
        except LookupError as exc:
            raise DecodeError(f"Unsupported encoding: {self._encoding}") from exc
        except (AttributeError, OSError) as exc:
            raise DecodeError("Input stream is not readable.") from exc
