"""
Tests for the line parser, two-column splitting, row grouping, and parse_document.
All dates are November 2025 (30 days) unless a test overrides them.
"""

from __future__ import annotations

import pytest

from core.models import RawLine
from extraction.layout import group_rows, split_two_columns
from extraction.line_parser import detect_off, match_line, parse_line
from extraction.parser import parse_document
from utils.config import ParserConfig

YEAR, MONTH = 2025, 11


def _box(x: float, y: float, w: float = 40, h: float = 10) -> tuple:
    return ((x, y), (x + w, y), (x + w, y + h), (x, y + h))


# ---------------------------------------------------------------------------
# parse_line: grammars
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "line, day, clock_in, clock_out",
    [
        ("5 0700 1900", 5, "07:00", "19:00"),
        ("5 Wed 0730|1930", 5, "07:30", "19:30"),
        ("12 07:00 - 19:30", 12, "07:00", "19:30"),
        ("12 7.00 19.00", 12, "07:00", "19:00"),
        ("507:00 - 19:00", 5, "07:00", "19:00"),
        ("1507 - 1900", 15, "07:00", "19:00"),
        ("2025-11-03 0700 1900", 3, "07:00", "19:00"),
        ("03/11/2025 7:00 19:00", 3, "07:00", "19:00"),
        ("3/11 08:00 17:30", 3, "08:00", "17:30"),
    ],
)
def test_parse_line_grammars(line: str, day: int, clock_in: str, clock_out: str) -> None:
    row, entry = parse_line(line, YEAR, MONTH)
    assert row is not None and entry is not None
    assert entry.date == f"2025-11-{day:02d}"
    assert row.date == entry.date
    assert entry.clock_in == clock_in
    assert entry.clock_out == clock_out
    assert entry.day_type == "normal"
    assert entry.break_minutes == 60
    assert entry.extra_ot_hours is None


def test_compact_row_keeps_raw_times() -> None:
    row, _ = parse_line("5 0700 1900", YEAR, MONTH)
    assert row.time_in_raw == "0700"
    assert row.time_out_raw == "1900"
    assert row.is_off is False


def test_single_time_defaults_clock_out() -> None:
    row, entry = parse_line("2025-11-04 08:00", YEAR, MONTH)
    assert entry.clock_in == "08:00"
    assert entry.clock_out == "17:00"
    assert row.time_out_raw == ""


def test_merged_hour_needs_two_digit_day_from_ten() -> None:
    # "09" could be a day or an hour; the grammar refuses it
    assert match_line("0907 - 1900", YEAR, MONTH) is None
    assert parse_line("0907 - 1900", YEAR, MONTH) == (None, None)


def test_plus_one_sets_extra_ot() -> None:
    row, entry = parse_line("5 0700 1900 +1", YEAR, MONTH)
    assert row.plus_one is True
    assert entry.extra_ot_hours == 1.0


def test_custom_break_from_options() -> None:
    _, entry = parse_line("5 0700 1900", YEAR, MONTH, ParserConfig(default_break_minutes=30))
    assert entry.break_minutes == 30


# ---------------------------------------------------------------------------
# parse_line: off days and failures
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("line", ["7 OFF", "7 off", "7 REST", "7 SUN", "7 Ahad", "2025-11-07 MINGGU"])
def test_off_lines_give_row_without_entry(line: str) -> None:
    row, entry = parse_line(line, YEAR, MONTH)
    assert entry is None
    assert row is not None
    assert row.date == "2025-11-07"
    assert row.is_off is True
    assert row.time_in_raw == "" and row.time_out_raw == ""


def test_worked_sunday_is_not_off() -> None:
    assert detect_off("9 SUN 0700 1900", YEAR) is False
    _, entry = parse_line("9 SUN 0700 1900", YEAR, MONTH)
    assert entry is not None and entry.clock_in == "07:00"


def test_day_past_month_end_is_dropped() -> None:
    assert parse_line("31 0700 1900", YEAR, MONTH) == (None, None)


def test_invalid_time_keeps_loose_row() -> None:
    row, entry = parse_line("5 2500 1900", YEAR, MONTH)
    assert entry is None
    assert row is not None
    assert row.date == "2025-11-05"
    assert (row.time_in_raw, row.time_out_raw) == ("2500", "1900")


def test_dated_line_skips_other_year_token() -> None:
    row, entry = parse_line("05/11 2024 07:00", YEAR, MONTH)
    assert entry is not None
    assert entry.date == "2025-11-05"
    assert (entry.clock_in, entry.clock_out) == ("07:00", "17:00")
    assert (row.time_in_raw, row.time_out_raw) == ("0700", "")


def test_header_date_is_not_a_loose_row() -> None:
    assert parse_line("1 Nov 2025", YEAR, MONTH) == (None, None)
    assert parse_line("3 Nov 2019", YEAR, MONTH) == (None, None)


@pytest.mark.parametrize("line", ["", "   ", "hello world", "Name: Ali", "Total hours 96"])
def test_unparsable_lines(line: str) -> None:
    assert parse_line(line, YEAR, MONTH) == (None, None)


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------


def test_split_two_columns() -> None:
    assert split_two_columns("5 0700 1900 20 0700 1900") == ["5 0700 1900", "20 0700 1900"]


@pytest.mark.parametrize("line", ["20 0700 1900", "5 0700 1900", "5 0700 1900 20"])
def test_split_two_columns_leaves_single_column(line: str) -> None:
    assert split_two_columns(line) == [line]


def test_group_rows_by_vertical_center() -> None:
    lines = [
        RawLine("0700 1800", 0.9, _box(60, 141)),
        RawLine("5", 0.9, _box(10, 100)),
        RawLine("6", 0.9, _box(10, 140)),
        RawLine("0700 1900", 0.9, _box(60, 102)),
    ]
    assert group_rows(lines, threshold_px=15) == ["5 0700 1900", "6 0700 1800"]


def test_group_rows_without_boxes_keeps_reading_order() -> None:
    lines = [RawLine("5 0700 1900"), RawLine("6 0700 1800")]
    assert group_rows(lines) == ["5 0700 1900", "6 0700 1800"]


def test_group_rows_too_few_boxes_falls_back() -> None:
    lines = [RawLine("b", 0.9, _box(10, 100)), RawLine("a"), RawLine("c")]
    assert group_rows(lines, min_box_ratio=0.8) == ["b", "a", "c"]


# ---------------------------------------------------------------------------
# parse_document
# ---------------------------------------------------------------------------

TIMECARD_TEXT = """Timecard November 2025
1 0700 1900
2 0700 1900 +1
3 OFF
5 0700 1900 20 0800 1700
"""


def test_parse_document_text() -> None:
    result = parse_document(TIMECARD_TEXT)
    assert (result.year, result.month) == (2025, 11)
    assert len(result.rows) == 30
    assert [e.date for e in result.entries] == ["2025-11-01", "2025-11-02", "2025-11-05", "2025-11-20"]
    by_date = {r.date: r for r in result.rows}
    assert by_date["2025-11-03"].is_off is True
    assert by_date["2025-11-04"].time_in_raw == ""
    assert result.entries[1].extra_ot_hours == 1.0
    assert result.entries[3].clock_in == "08:00"


def test_parse_document_overrides_and_no_fill() -> None:
    result = parse_document(TIMECARD_TEXT, 2024, 2, fill_missing=False)
    assert (result.year, result.month) == (2024, 2)
    assert [r.date for r in result.rows] == [
        "2024-02-01", "2024-02-02", "2024-02-03", "2024-02-05", "2024-02-20",
    ]


def test_parse_document_fills_leap_february() -> None:
    result = parse_document("1 0700 1900", 2024, 2)
    assert len(result.rows) == 29


def test_parse_document_last_write_wins() -> None:
    result = parse_document("Nov 2025\n5 0700 1900\n5 0800 1800")
    assert len(result.entries) == 1
    assert result.entries[0].clock_in == "08:00"

    result = parse_document("Nov 2025\n5 0700 1900\n5 OFF")
    assert result.entries == []
    assert {r.date: r for r in result.rows}["2025-11-05"].is_off is True


def test_parse_document_corrects_ocr_noise() -> None:
    result = parse_document("November 2025\n4 D70 19/0\n6 0701900")
    assert [(e.date, e.clock_in, e.clock_out) for e in result.entries] == [
        ("2025-11-04", "07:00", "19:00"),
        ("2025-11-06", "07:00", "19:00"),
    ]


def test_parse_document_from_raw_lines() -> None:
    lines = [
        RawLine("TIMECARD NOVEMBER 2025", 0.9, _box(10, 20, w=200)),
        RawLine("1", 0.9, _box(10, 100)),
        RawLine("0700 1900", 0.8, _box(60, 101)),
        RawLine("2", 0.9, _box(10, 130)),
        RawLine("0730 1930", 0.8, _box(60, 129)),
    ]
    result = parse_document(lines)
    assert (result.year, result.month) == (2025, 11)
    assert [(e.date, e.clock_in) for e in result.entries] == [("2025-11-01", "07:00"), ("2025-11-02", "07:30")]


def test_parse_document_to_dict_is_plain_data() -> None:
    data = parse_document(TIMECARD_TEXT).to_dict()
    assert data["year"] == 2025
    assert data["entries"][0] == {
        "date": "2025-11-01",
        "day_type": "normal",
        "clock_in": "07:00",
        "clock_out": "19:00",
        "break_minutes": 60,
        "extra_ot_hours": None,
    }
    assert data["rows"][0]["time_in_raw"] == "0700"
