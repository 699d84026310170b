"""
Statutory payroll constants (Singapore Employment Act, Part IV) and the
public-holiday calendar used to pre-classify days for review.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from core.schema import DAY_TYPE_NORMAL, DAY_TYPE_PUBLIC_HOLIDAY, DAY_TYPE_REST


@dataclass(frozen=True)
class PayrollRules:
    """Wage-engine constants. Override via config for other jurisdictions."""

    hourly_divisor: float = 2288.0  # 52 weeks x 44 hours
    daily_divisor: float = 21.67  # ~260 working days / 12
    normal_hours_per_day: float = 8.0
    max_hours_per_day: float = 12.0
    max_ot_hours_per_month: float = 72.0
    rest_day_half_threshold: float = 4.0
    ot_multiplier: float = 1.5
    rest_day_multiplier: float = 2.0
    max_accommodation_pct: float = 0.25
    max_total_deduction_pct: float = 0.50
    currency: str = "SGD"


DEFAULT_RULES = PayrollRules()

SG_PUBLIC_HOLIDAYS: dict[int, frozenset[str]] = {
    2025: frozenset({
        "2025-01-01",  # New Year's Day
        "2025-01-29",  # Chinese New Year
        "2025-01-30",
        "2025-03-31",  # Hari Raya Puasa
        "2025-04-18",  # Good Friday
        "2025-05-01",  # Labour Day
        "2025-05-12",  # Vesak Day
        "2025-06-07",  # Hari Raya Haji
        "2025-08-09",  # National Day
        "2025-10-20",  # Deepavali
        "2025-12-25",  # Christmas Day
    }),
    2026: frozenset({
        "2026-01-01",
        "2026-02-17",
        "2026-02-18",
        "2026-04-03",
        "2026-05-01",
        "2026-06-01",
        "2026-08-10",
        "2026-11-09",
        "2026-12-25",
    }),
}


def public_holidays(year: int) -> frozenset[str]:
    """Built-in public holidays for a year; empty when the year is not covered."""
    return SG_PUBLIC_HOLIDAYS.get(year, frozenset())


def is_sunday(date_str: str) -> bool:
    try:
        return datetime.strptime(date_str, "%Y-%m-%d").weekday() == 6
    except ValueError:
        return False


def auto_day_type(date_str: str, holidays: frozenset[str] | set[str] | None = None) -> str:
    """publicHoliday if listed, rest on Sunday, else normal."""
    if holidays is None:
        holidays = public_holidays(int(date_str[:4])) if date_str[:4].isdigit() else frozenset()
    if date_str in holidays:
        return DAY_TYPE_PUBLIC_HOLIDAY
    if is_sunday(date_str):
        return DAY_TYPE_REST
    return DAY_TYPE_NORMAL
