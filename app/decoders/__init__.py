"""
app/decoders package: tabular decoders and decoder selection.
"""

from __future__ import annotations

from pathlib import PurePath

from app.config import IngestionSettings, get_ingestion_settings
from app.decoders.base import BatchEmitter, TabularDecoder, synthesize_header
from app.decoders.cells import CellCoercer
from app.decoders.delimited import DelimitedDecoder
from app.decoders.workbook import WorkbookDecoder
from app.domain.errors import DecodeError

DELIMITED_EXTENSIONS = {".csv", ".tsv", ".txt"}
WORKBOOK_EXTENSIONS = {".xlsx", ".xlsm"}
SUPPORTED_EXTENSIONS = DELIMITED_EXTENSIONS | WORKBOOK_EXTENSIONS


def decoder_for_filename(
    filename: str,
    *,
    settings: IngestionSettings | None = None,
    batch_size: int | None = None,
) -> TabularDecoder:
    """
    Pick a decoder from the file extension.

    Raises DecodeError for formats neither decoder understands (including
    legacy .xls).
    """

    settings = settings or get_ingestion_settings()
    size = batch_size or settings.batch_size
    extension = PurePath(filename or "").suffix.lower()

    if extension in DELIMITED_EXTENSIONS:
        delimiter = "\t" if extension == ".tsv" else settings.delimiter
        return DelimitedDecoder(
            batch_size=size,
            delimiter=delimiter,
            max_row_errors=settings.max_row_errors,
            log_row_errors=settings.log_row_errors,
        )
    if extension in WORKBOOK_EXTENSIONS:
        return WorkbookDecoder(
            batch_size=size,
            max_row_errors=settings.max_row_errors,
            log_row_errors=settings.log_row_errors,
        )

    allowed = ", ".join(sorted(SUPPORTED_EXTENSIONS))
    raise DecodeError(f"Unsupported file type '{extension or filename}'. Allowed: {allowed}.")


__all__ = [
    "BatchEmitter",
    "CellCoercer",
    "DELIMITED_EXTENSIONS",
    "DecodeError",
    "DelimitedDecoder",
    "SUPPORTED_EXTENSIONS",
    "TabularDecoder",
    "WORKBOOK_EXTENSIONS",
    "WorkbookDecoder",
    "decoder_for_filename",
    "synthesize_header",
]
