"""
tests/test_delimited_decoder.py

Streaming CSV/TSV decoding into row batches.
"""

from __future__ import annotations

import io
from datetime import datetime

import pytest

from app.decoders import DelimitedDecoder, WorkbookDecoder, decoder_for_filename
from app.decoders.base import BatchEmitter, synthesize_header
from app.domain.errors import DecodeError


def _stream(text: str) -> io.BytesIO:
    return io.BytesIO(text.encode("utf-8"))


PEOPLE_CSV = (
    "firstName,lastName,email\n"
    "John,Doe,john@example.com\n"
    "Jane,Smith,jane@example.com\n"
    "Ann,Lee,ann@example.com\n"
)


class TestBatching:
    def test_three_rows_batch_size_two(self) -> None:
        batches, result = DelimitedDecoder(batch_size=2).decode(_stream(PEOPLE_CSV))

        assert [len(batch) for batch in batches] == [2, 1]
        assert result.total_rows == 3
        assert result.columns == ("firstName", "lastName", "email")
        assert batches[0].records[0].fields == {
            "firstName": "John",
            "lastName": "Doe",
            "email": "john@example.com",
        }
        assert batches[1].records[0].fields["firstName"] == "Ann"

    def test_all_batches_full_except_last(self) -> None:
        rows = "".join(f"{i},{i * 2}\n" for i in range(23))
        batches, result = DelimitedDecoder(batch_size=5).decode(_stream("n,double\n" + rows))

        sizes = [len(batch) for batch in batches]
        assert sizes == [5, 5, 5, 5, 3]
        assert sum(sizes) == result.total_rows == 23
        assert [batch.sequence for batch in batches] == [1, 2, 3, 4, 5]
        assert [record.fields["n"] for batch in batches for record in batch.records] == list(range(23))

    def test_header_only_file_yields_no_batches(self) -> None:
        batches, result = DelimitedDecoder().decode(_stream("a,b\n"))

        assert batches == []
        assert result.total_rows == 0
        assert result.columns == ("a", "b")

    def test_iteration_is_lazy(self) -> None:
        decoder = DelimitedDecoder(batch_size=1)
        iterator = decoder.iter_batches(_stream(PEOPLE_CSV))

        first = next(iterator)
        assert len(first) == 1
        assert decoder.last_result is None

        remaining = list(iterator)
        assert len(remaining) == 2
        assert decoder.last_result is not None
        assert decoder.last_result.total_rows == 3

    def test_column_set_is_stable_across_reruns(self) -> None:
        decoder = DelimitedDecoder(batch_size=2)
        _, first = decoder.decode(_stream(PEOPLE_CSV))
        _, second = decoder.decode(_stream(PEOPLE_CSV))
        assert first.columns == second.columns


class TestCells:
    def test_typed_cells(self) -> None:
        text = "name,age,active,joined\nJo,31,true,2024-02-29\n"
        batches, _ = DelimitedDecoder().decode(_stream(text))

        fields = batches[0].records[0].fields
        assert fields == {"name": "Jo", "age": 31, "active": True, "joined": datetime(2024, 2, 29)}

    def test_empty_cells_and_rows_are_skipped(self) -> None:
        text = "a,b,c\n\n1,,3\n,,\n   \n4,5,\n"
        batches, result = DelimitedDecoder().decode(_stream(text))

        records = [record.fields for record in batches[0].records]
        assert records == [{"a": 1, "c": 3}, {"a": 4, "b": 5}]
        assert result.total_rows == 2

    def test_blank_header_cell_is_synthesized(self) -> None:
        batches, result = DelimitedDecoder().decode(_stream("id,,name\n1,x,Jo\n"))

        assert result.columns == ("id", "Column2", "name")
        assert batches[0].records[0].fields["Column2"] == "x"

    def test_utf8_bom_is_stripped(self) -> None:
        stream = io.BytesIO(b"\xef\xbb\xbfname\nJo\n")
        _, result = DelimitedDecoder().decode(stream)
        assert result.columns == ("name",)

    def test_custom_delimiter(self) -> None:
        batches, _ = DelimitedDecoder(delimiter=";").decode(_stream("a;b\n1;2\n"))
        assert batches[0].records[0].fields == {"a": 1, "b": 2}

    def test_decoded_records_carry_no_identifier(self) -> None:
        batches, _ = DelimitedDecoder().decode(_stream(PEOPLE_CSV))
        assert all(record.id is None and record.created_at is None for record in batches[0].records)


class TestRowErrors:
    def test_width_mismatch_is_reported_and_row_kept(self) -> None:
        text = "a,b\n1,2,3\n4\n5,6\n"
        batches, result = DelimitedDecoder().decode(_stream(text))

        assert [record.fields for record in batches[0].records] == [{"a": 1, "b": 2}, {"a": 4}, {"a": 5, "b": 6}]
        assert [(error.row_index, error.message) for error in result.errors] == [
            (0, "Expected 2 fields but found 3."),
            (1, "Expected 2 fields but found 1."),
        ]

    def test_errors_are_scoped_to_their_batch(self) -> None:
        text = "a,b\n1,2\n3,4\n5\n6,7\n"
        batches, result = DelimitedDecoder(batch_size=2).decode(_stream(text))

        assert batches[0].errors == ()
        assert [error.row_index for error in batches[1].errors] == [2]
        assert len(result.errors) == 1

    def test_accumulated_errors_are_capped(self) -> None:
        rows = "".join("1,2,3\n" for _ in range(10))
        batches, result = DelimitedDecoder(max_row_errors=3, log_row_errors=False).decode(_stream("a,b\n" + rows))

        assert len(result.errors) == 3
        assert sum(len(batch.errors) for batch in batches) == 10


class TestFatalErrors:
    def test_invalid_utf8_is_fatal(self) -> None:
        stream = io.BytesIO(b"a,b\n\xff\xfe,1\n")
        with pytest.raises(DecodeError):
            DelimitedDecoder().decode(stream)

    def test_unknown_encoding_is_fatal(self) -> None:
        with pytest.raises(DecodeError):
            DelimitedDecoder(encoding="no-such-codec").decode(_stream("a\n1\n"))


class TestDecoderSelection:
    def test_csv_and_tsv(self) -> None:
        assert isinstance(decoder_for_filename("people.CSV"), DelimitedDecoder)
        batches, _ = decoder_for_filename("people.tsv").decode(_stream("a\tb\n1\t2\n"))
        assert batches[0].records[0].fields == {"a": 1, "b": 2}

    def test_workbook(self) -> None:
        assert isinstance(decoder_for_filename("book.xlsx"), WorkbookDecoder)

    @pytest.mark.parametrize("filename", ["legacy.xls", "notes.pdf", "noextension"])
    def test_unsupported_types_are_rejected(self, filename: str) -> None:
        with pytest.raises(DecodeError):
            decoder_for_filename(filename)

    def test_batch_size_override(self) -> None:
        assert decoder_for_filename("a.csv", batch_size=7).batch_size == 7


class TestHeaderAndEmitter:
    def test_synthesize_header(self) -> None:
        assert synthesize_header(["a", "", None, "a"]) == ["a", "Column2", "Column3", "a_2"]

    def test_emitter_flushes_partial_batch(self) -> None:
        emitter = BatchEmitter(batch_size=3, log_row_errors=False)
        emitter.declare_columns(["x"])
        assert emitter.add_row({"x": 1}) is None
        final = emitter.flush()

        assert final is not None
        assert len(final) == 1
        assert emitter.flush() is None
        assert emitter.result().total_rows == 1

    def test_emitter_rejects_bad_batch_size(self) -> None:
        with pytest.raises(ValueError):
            BatchEmitter(batch_size=0)
