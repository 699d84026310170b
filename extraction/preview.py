"""
Preview table builder: guarantee one row per calendar day of the target month,
and move an existing parse to a different year/month.
"""
from __future__ import annotations

import calendar
import logging
from dataclasses import replace

from core.models import PreviewRow
from core.schema import DayEntry

logger = logging.getLogger(__name__)


def days_in_month(year: int, month: int) -> int:
    """Number of days in the month (leap-year aware)."""
    return calendar.monthrange(year, month)[1]


def format_date(year: int, month: int, day: int) -> str:
    return f"{year:04d}-{month:02d}-{day:02d}"


def fill_missing_days(rows: list[PreviewRow], year: int, month: int) -> list[PreviewRow]:
    """
    Insert an empty row for every day of (year, month) that has none.
    Duplicate dates keep the last row; rows dated outside (year, month) are dropped.
    Result is sorted ascending by date.
    """
    prefix = f"{year:04d}-{month:02d}-"
    by_date: dict[str, PreviewRow] = {r.date: r for r in rows if r.date.startswith(prefix)}
    for day in range(1, days_in_month(year, month) + 1):
        d = format_date(year, month, day)
        if d not in by_date:
            by_date[d] = PreviewRow(date=d)
    return [by_date[d] for d in sorted(by_date)]


def _remap_date(date_str: str, year: int, month: int, last_day: int) -> str | None:
    try:
        day = int(date_str[8:10])
    except ValueError:
        return None
    if not 1 <= day <= last_day:
        return None
    return format_date(year, month, day)


def remap_year_month(
    rows: list[PreviewRow],
    entries: list[DayEntry],
    year: int,
    month: int,
) -> tuple[list[PreviewRow], list[DayEntry]]:
    """
    Replace the YYYY-MM part of every date, keeping day-of-month. Rows/entries whose
    day does not exist in the new month are dropped; the table is then re-filled.
    """
    last_day = days_in_month(year, month)
    new_rows: list[PreviewRow] = []
    for row in rows:
        d = _remap_date(row.date, year, month, last_day)
        if d is not None:
            new_rows.append(replace(row, date=d))
    new_entries: list[DayEntry] = []
    for entry in entries:
        d = _remap_date(entry.date, year, month, last_day)
        if d is not None:
            new_entries.append(entry.model_copy(update={"date": d}))
    dropped = (len(rows) - len(new_rows)) + (len(entries) - len(new_entries))
    if dropped:
        logger.debug("Remap to %04d-%02d dropped %s rows/entries past day %s", year, month, dropped, last_day)
    new_entries.sort(key=lambda e: e.date)
    return fill_missing_days(new_rows, year, month), new_entries
