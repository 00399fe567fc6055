"""
tests/test_cell_coercion.py

Best-effort cell typing for delimited text and workbook cells.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

import pytest

from app.decoders.cells import CellCoercer
from app.domain.records import CellKind, cell_kind


@pytest.fixture()
def coercer() -> CellCoercer:
    return CellCoercer()


class TestCoerceText:
    @pytest.mark.parametrize("raw", ["", "   ", "\t"])
    def test_blank_is_none(self, coercer: CellCoercer, raw: str) -> None:
        assert coercer.coerce_text(raw) is None

    def test_integers_stay_int(self, coercer: CellCoercer) -> None:
        value = coercer.coerce_text("42")
        assert value == 42
        assert isinstance(value, int)

    def test_decimals_become_float(self, coercer: CellCoercer) -> None:
        assert coercer.coerce_text("-3.5") == -3.5
        assert coercer.coerce_text("1e3") == 1000.0

    @pytest.mark.parametrize("raw,expected", [("true", True), ("FALSE", False), (" True ", True)])
    def test_booleans(self, coercer: CellCoercer, raw: str, expected: bool) -> None:
        assert coercer.coerce_text(raw) is expected

    def test_iso_date(self, coercer: CellCoercer) -> None:
        assert coercer.coerce_text("2024-03-01") == datetime(2024, 3, 1)

    def test_iso_datetime_with_zulu_is_utc(self, coercer: CellCoercer) -> None:
        assert coercer.coerce_text("2024-03-01T10:30:00Z") == datetime(2024, 3, 1, 10, 30, tzinfo=timezone.utc)

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("2024/03/01", datetime(2024, 3, 1)),
            ("03/01/2024", datetime(2024, 3, 1)),
            ("2024-03-01 08:15:00", datetime(2024, 3, 1, 8, 15)),
        ],
    )
    def test_common_date_layouts(self, coercer: CellCoercer, raw: str, expected: datetime) -> None:
        assert coercer.coerce_text(raw) == expected

    def test_text_is_returned_unchanged(self, coercer: CellCoercer) -> None:
        assert coercer.coerce_text(" John ") == " John "
        assert coercer.coerce_text("john@example.com") == "john@example.com"

    def test_number_like_text_that_is_not_a_number(self, coercer: CellCoercer) -> None:
        assert coercer.coerce_text("555-1234") == "555-1234"
        assert coercer.coerce_text("13/45/2024") == "13/45/2024"


class TestCoerceNative:
    def test_scalars_pass_through(self, coercer: CellCoercer) -> None:
        assert coercer.coerce_native(7) == 7
        assert coercer.coerce_native(2.5) == 2.5
        assert coercer.coerce_native(True) is True
        assert coercer.coerce_native("x") == "x"

    def test_date_becomes_datetime(self, coercer: CellCoercer) -> None:
        assert coercer.coerce_native(date(2024, 1, 2)) == datetime(2024, 1, 2)

    def test_time_and_duration_become_text(self, coercer: CellCoercer) -> None:
        assert coercer.coerce_native(time(9, 30)) == "09:30:00"
        assert coercer.coerce_native(timedelta(hours=1)) == "1:00:00"

    def test_decimal_becomes_float(self, coercer: CellCoercer) -> None:
        assert coercer.coerce_native(Decimal("1.25")) == 1.25

    def test_blank_string_is_none(self, coercer: CellCoercer) -> None:
        assert coercer.coerce_native("  ") is None


class TestCellKind:
    @pytest.mark.parametrize(
        "value,kind",
        [
            (None, CellKind.NULL),
            (True, CellKind.BOOLEAN),
            (3, CellKind.NUMBER),
            (3.0, CellKind.NUMBER),
            ("a", CellKind.TEXT),
            (datetime(2024, 1, 1), CellKind.DATE),
        ],
    )
    def test_classifies_closed_set(self, value: object, kind: CellKind) -> None:
        assert cell_kind(value) is kind

    def test_rejects_other_types(self) -> None:
        with pytest.raises(TypeError):
            cell_kind(["nested"])
