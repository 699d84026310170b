"""Input checks before a payslip is computed. Return error lists (message keys for i18n); never raise."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from core.schema import is_valid_clock


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str  # i18n key, e.g. "validation.salaryRequired"


def _get(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def validate_salary(monthly_salary: float | None) -> list[FieldError]:
    if not monthly_salary or monthly_salary <= 0:
        return [FieldError("monthly_salary", "validation.salaryRequired")]
    return []


def validate_entry(entry: Any) -> list[FieldError]:
    """
    entry: DayEntry, EditableRow or a dict with date, clock_in, clock_out, break_minutes.
    The break must be shorter than the shift; overnight shifts wrap past midnight.
    """
    errors: list[FieldError] = []
    date_str = _get(entry, "date", "")
    clock_in = _get(entry, "clock_in", "")
    clock_out = _get(entry, "clock_out", "")
    break_minutes = _get(entry, "break_minutes", 0) or 0

    if not date_str:
        errors.append(FieldError("date", "validation.dateRequired"))
    if not clock_in:
        errors.append(FieldError("clock_in", "validation.clockInRequired"))
    if not clock_out:
        errors.append(FieldError("clock_out", "validation.clockOutRequired"))
    if break_minutes < 0:
        errors.append(FieldError("break_minutes", "validation.breakNegative"))

    if is_valid_clock(clock_in) and is_valid_clock(clock_out):
        in_h, in_m = (int(x) for x in clock_in.split(":"))
        out_h, out_m = (int(x) for x in clock_out.split(":"))
        total = (out_h * 60 + out_m) - (in_h * 60 + in_m)
        if total < 0:
            total += 24 * 60
        if break_minutes >= total:
            errors.append(FieldError("break_minutes", "validation.breakExceedsWork"))
    return errors


def validate_entries(entries: list[Any] | None) -> list[FieldError]:
    if not entries:
        return [FieldError("entries", "validation.atLeastOneDay")]
    return []
