"""
Timecard document parser: OCR text (or OCR lines with boxes) -> ParseResult.

Rows are rebuilt from the layout, each row is corrected, split into columns
and parsed; results are merged by date with the last write winning.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Sequence

from core.models import ParseResult, PreviewRow, RawLine
from core.schema import DayEntry
from extraction.corrector import correct
from extraction.header import extract_year_month
from extraction.layout import group_rows, split_two_columns
from extraction.line_parser import parse_line
from extraction.preview import fill_missing_days
from utils.config import ParserConfig

logger = logging.getLogger(__name__)


def source_rows(source: str | Sequence[RawLine], options: ParserConfig | None = None) -> list[str]:
    """Text rows of a document: split text on newlines, or group OCR lines by position."""
    options = options or ParserConfig()
    if isinstance(source, str):
        return [ln for ln in source.splitlines() if ln.strip()]
    return group_rows(list(source), options.row_threshold_px, options.min_box_ratio)


def resolve_year_month(
    header_text: str,
    override_year: int | None = None,
    override_month: int | None = None,
    today: date | None = None,
) -> tuple[int, int]:
    """Header guess with caller overrides applied per part."""
    year, month = extract_year_month(header_text, today=today)
    if override_year:
        year = override_year
    if override_month and 1 <= override_month <= 12:
        month = override_month
    return year, month


def merge_parsed(
    rows: dict[str, PreviewRow],
    entries: dict[str, DayEntry],
    row: PreviewRow,
    entry: DayEntry | None,
) -> None:
    """Date-keyed merge: a newer row replaces the older row and entry for that date."""
    rows[row.date] = row
    if entry is not None:
        entries[row.date] = entry
    else:
        entries.pop(row.date, None)


def parse_rows(
    rows: Iterable[str],
    year: int,
    month: int,
    options: ParserConfig | None = None,
    fill_missing: bool = True,
) -> ParseResult:
    """Parse already-grouped text rows for a known (year, month)."""
    options = options or ParserConfig()
    by_date_rows: dict[str, PreviewRow] = {}
    by_date_entries: dict[str, DayEntry] = {}
    for raw in rows:
        corrected = correct(raw)
        parts = split_two_columns(corrected) if options.split_two_columns else [corrected]
        for part in parts:
            row, entry = parse_line(part, year, month, options)
            if row is None:
                continue
            merge_parsed(by_date_rows, by_date_entries, row, entry)

    preview = list(by_date_rows.values())
    preview = fill_missing_days(preview, year, month) if fill_missing else sorted(preview, key=lambda r: r.date)
    entries = [by_date_entries[d] for d in sorted(by_date_entries)]
    return ParseResult(entries=entries, rows=preview, year=year, month=month)


def parse_document(
    source: str | Sequence[RawLine],
    override_year: int | None = None,
    override_month: int | None = None,
    *,
    options: ParserConfig | None = None,
    fill_missing: bool = True,
    today: date | None = None,
) -> ParseResult:
    """
    Parse one timecard. The header (year, month) is read from the uncorrected text
    so month names and "YYYY/MM" survive; overrides win over the guess.
    Never raises for unreadable content: unparsable lines are dropped.
    """
    options = options or ParserConfig()
    rows = source_rows(source, options)
    year, month = resolve_year_month("\n".join(rows), override_year, override_month, today)
    result = parse_rows(rows, year, month, options, fill_missing)
    logger.info(
        "Parsed timecard %04d-%02d: %s text rows, %s entries",
        year,
        month,
        len(rows),
        len(result.entries),
    )
    return result
