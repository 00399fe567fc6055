"""
app/decoders/workbook.py

Streaming decoder for spreadsheet workbooks (.xlsx/.xlsm) via openpyxl.
"""

from __future__ import annotations

import logging
import zipfile
from collections.abc import Iterator, Sequence
from typing import IO, Any

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from app.decoders.base import BatchEmitter, TabularDecoder, synthesize_header
from app.domain.errors import DecodeError
from app.domain.records import RowBatch

logger = logging.getLogger(__name__)


class WorkbookDecoder(TabularDecoder):
    """
    Decodes the first worksheet of a workbook, top to bottom.

    Row 1 is always the header. Date cells keep their datetime value; other
    cells pass through as their native scalar.
    """

    def _decode(self, stream: IO[bytes], emitter: BatchEmitter) -> Iterator[RowBatch]:
        try:
            workbook = load_workbook(stream, read_only=True, data_only=True)
        except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
            raise DecodeError(f"Unreadable workbook: {exc}") from exc

        try:
            if not workbook.worksheets:
                raise DecodeError("No worksheets found in the workbook.")
            sheet = workbook.worksheets[0]
            logger.info(
                "Decoding workbook sheet=%r sheets_total=%s",
                sheet.title,
                len(workbook.worksheets),
            )

            rows = sheet.iter_rows(min_row=1, values_only=True)
            header = self._read_header(next(rows, ()))
            headerless = not header
            emitter.declare_columns(header)

            row_index = 0
            for cells in rows:
                cells = tuple(cells)
                if self._is_blank_row(cells):
                    continue

                if headerless:
                    width = self._populated_width(cells)
                    if width > len(header):
                        header = synthesize_header([None] * width)
                        emitter.declare_columns(header)

                overflow = self._count_populated(cells[len(header):])
                if overflow:
                    emitter.add_error(
                        row_index,
                        f"Dropped {overflow} populated cell(s) beyond the {len(header)} header columns.",
                    )

                fields = self._map_row(header=header, cells=cells, native=True)
                row_index += 1
                if not fields:
                    continue

                batch = emitter.add_row(fields)
                if batch is not None:
                    yield batch
        finally:
            workbook.close()

    def _read_header(self, cells: Sequence[Any]) -> list[str]:
        """
        Header names from row 1, trimmed to its last populated cell.

        A blank row 1 yields no names; data rows then get ``Column{i+1}``
        names as wide as the widest row seen so far.
        """

        width = self._populated_width(cells)
        return synthesize_header(cells[:width]) if width else []

    def _populated_width(self, cells: Sequence[Any]) -> int:
        width = 0
        for index, cell in enumerate(cells):
            if not self._coercer.is_blank(cell):
                width = index + 1
        return width

    def _count_populated(self, cells: Sequence[Any]) -> int:
        return sum(1 for cell in cells if not self._coercer.is_blank(cell))
