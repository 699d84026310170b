"""
Review step: turn parsed preview rows into editable rows for a human check,
apply edits, and convert the accepted rows back into day entries.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from datetime import date

from pydantic import ValidationError

from core.exceptions import PayslipInputError
from core.models import PreviewRow
from core.schema import DAY_TYPE_NORMAL, DAY_TYPE_REST, DAY_TYPES, DayEntry
from payroll.constants import auto_day_type, public_holidays

logger = logging.getLogger(__name__)

DEFAULT_CLOCK_IN = "07:00"
DEFAULT_CLOCK_OUT = "19:00"
DEFAULT_BREAK_MINUTES = 60

_RAW_FOUR = re.compile(r"^\d{4}$")


@dataclass(frozen=True)
class EditableRow:
    """One calendar day as shown to the reviewer. ocr_raw_* keep what OCR read."""

    date: str
    clock_in: str = ""
    clock_out: str = ""
    is_off: bool = False
    day_type: str = DAY_TYPE_NORMAL
    plus_one: bool = False
    ocr_plus_one: bool = False
    ocr_raw_in: str = ""
    ocr_raw_out: str = ""
    break_minutes: int = DEFAULT_BREAK_MINUTES
    extra_ot_hours: float | None = None


def format_raw_time(raw: str) -> str:
    """'0730' -> '07:30'; anything else is returned unchanged."""
    if _RAW_FOUR.match(raw or ""):
        return f"{raw[:2]}:{raw[2:]}"
    return raw or ""


def derive_plus_one(clock_in: str, clock_out: str) -> bool:
    """Overnight shift: clock-out earlier than clock-in."""
    return bool(clock_in) and bool(clock_out) and clock_out < clock_in


def build_editable_rows(
    entries: list[DayEntry],
    rows: list[PreviewRow],
    year: int | None = None,
    holidays: frozenset[str] | set[str] | None = None,
) -> list[EditableRow]:
    """One editable row per preview row. Parsed entry times win over raw OCR times."""
    if holidays is None:
        holidays = public_holidays(year if year is not None else date.today().year)
    by_date = {e.date: e for e in entries}
    out: list[EditableRow] = []
    for pr in rows:
        entry = by_date.get(pr.date)
        clock_in = entry.clock_in if entry else format_raw_time(pr.time_in_raw)
        clock_out = entry.clock_out if entry else format_raw_time(pr.time_out_raw)
        extra = entry.extra_ot_hours if entry else None
        out.append(
            EditableRow(
                date=pr.date,
                clock_in="" if pr.is_off else clock_in,
                clock_out="" if pr.is_off else clock_out,
                is_off=pr.is_off,
                day_type=DAY_TYPE_REST if pr.is_off else auto_day_type(pr.date, holidays),
                plus_one=pr.plus_one or derive_plus_one(clock_in, clock_out),
                ocr_plus_one=pr.plus_one or (extra is not None and extra > 0),
                ocr_raw_in=pr.time_in_raw,
                ocr_raw_out=pr.time_out_raw,
                break_minutes=entry.break_minutes if entry else DEFAULT_BREAK_MINUTES,
                extra_ot_hours=extra,
            )
        )
    return out


def toggle_off(row: EditableRow) -> EditableRow:
    """Off -> worked restores the OCR times (or defaults); worked -> off clears times and extra OT."""
    if row.is_off:
        clock_in = format_raw_time(row.ocr_raw_in) or DEFAULT_CLOCK_IN
        clock_out = format_raw_time(row.ocr_raw_out) or DEFAULT_CLOCK_OUT
        return replace(
            row,
            is_off=False,
            day_type=DAY_TYPE_NORMAL,
            clock_in=clock_in,
            clock_out=clock_out,
            plus_one=derive_plus_one(clock_in, clock_out),
        )
    return replace(
        row,
        is_off=True,
        day_type=DAY_TYPE_REST,
        clock_in="",
        clock_out="",
        plus_one=False,
        extra_ot_hours=None,
    )


def update_time(row: EditableRow, field: str, value: str) -> EditableRow:
    """Set clock_in or clock_out and re-derive the overnight flag."""
    if field not in ("clock_in", "clock_out"):
        raise ValueError(f"field must be clock_in or clock_out, got {field!r}")
    updated = replace(row, **{field: value})
    return replace(updated, plus_one=derive_plus_one(updated.clock_in, updated.clock_out))


def set_day_type(row: EditableRow, day_type: str) -> EditableRow:
    if day_type not in DAY_TYPES:
        raise ValueError(f"day_type must be one of {DAY_TYPES}")
    return replace(row, day_type=day_type)


def rows_to_entries(rows: list[EditableRow]) -> list[DayEntry]:
    """
    Worked rows with both times become entries; the row's day_type is kept as set.
    Raises PayslipInputError when an edited row does not form a valid entry.
    """
    entries: list[DayEntry] = []
    for r in rows:
        if r.is_off or not r.clock_in or not r.clock_out:
            continue
        try:
            entries.append(
                DayEntry(
                    date=r.date,
                    day_type=r.day_type,
                    clock_in=r.clock_in,
                    clock_out=r.clock_out,
                    break_minutes=r.break_minutes,
                    extra_ot_hours=r.extra_ot_hours,
                )
            )
        except ValidationError as e:
            raise PayslipInputError(f"Invalid row {r.date}: {e.errors()[0].get('msg', e)}") from e
    logger.debug("Accepted %s of %s reviewed rows as entries", len(entries), len(rows))
    return entries
