"""
Pydantic schemas for attendance entries and payslips. Used by extraction/, payroll/, pipeline.
"""
from __future__ import annotations

import re
from datetime import datetime

from pydantic import BaseModel, Field, field_validator


# ---------------------------------------------------------------------------
# Day entry (authoritative attendance record)
# ---------------------------------------------------------------------------

DAY_TYPE_NORMAL = "normal"
DAY_TYPE_REST = "rest"
DAY_TYPE_PUBLIC_HOLIDAY = "publicHoliday"
DAY_TYPES = (DAY_TYPE_NORMAL, DAY_TYPE_REST, DAY_TYPE_PUBLIC_HOLIDAY)

_CLOCK_PATTERN = re.compile(r"^(\d{2}):(\d{2})$")


def is_valid_clock(value: str) -> bool:
    """True for HH:MM with hour 00-23 and minute 00-59."""
    m = _CLOCK_PATTERN.match(value or "")
    if not m:
        return False
    return int(m.group(1)) <= 23 and int(m.group(2)) <= 59


class DayEntry(BaseModel):
    """One worked day. Days off and unparsable days have no entry."""

    date: str
    day_type: str = DAY_TYPE_NORMAL
    clock_in: str
    clock_out: str
    break_minutes: int = 60
    extra_ot_hours: float | None = None

    @field_validator("date")
    @classmethod
    def date_is_iso(cls, v: str) -> str:
        v = (v or "").strip()
        try:
            datetime.strptime(v, "%Y-%m-%d")
        except ValueError as e:
            raise ValueError(f"date must be YYYY-MM-DD, got {v!r}") from e
        return v

    @field_validator("day_type")
    @classmethod
    def day_type_known(cls, v: str) -> str:
        if v not in DAY_TYPES:
            raise ValueError(f"day_type must be one of {DAY_TYPES}")
        return v

    @field_validator("clock_in", "clock_out")
    @classmethod
    def clock_is_valid(cls, v: str) -> str:
        v = (v or "").strip()
        if not is_valid_clock(v):
            raise ValueError(f"clock time must be HH:MM (00:00-23:59), got {v!r}")
        return v

    @field_validator("break_minutes")
    @classmethod
    def break_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("break_minutes must be >= 0")
        return v

    @field_validator("extra_ot_hours")
    @classmethod
    def extra_non_negative(cls, v: float | None) -> float | None:
        if v is not None and v < 0:
            raise ValueError("extra_ot_hours must be >= 0")
        return v


# ---------------------------------------------------------------------------
# Payslip input
# ---------------------------------------------------------------------------


class Deductions(BaseModel):
    """Requested deductions; caps are applied by the wage engine."""

    accommodation: float = 0.0
    meals: float = 0.0
    advances: float = 0.0
    other: float = 0.0

    @field_validator("accommodation", "meals", "advances", "other")
    @classmethod
    def amount_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("amount must be >= 0")
        return v


class Allowances(BaseModel):
    """Fixed monthly allowances added to gross pay."""

    transport: float = 0.0
    food: float = 0.0
    other: float = 0.0

    @field_validator("transport", "food", "other")
    @classmethod
    def amount_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("amount must be >= 0")
        return v


class PayslipInput(BaseModel):
    """Salary parameters plus the reviewed day entries for one pay period."""

    monthly_salary: float
    entries: list[DayEntry] = Field(default_factory=list)
    deductions: Deductions = Field(default_factory=Deductions)
    allowances: Allowances = Field(default_factory=Allowances)
    hourly_rate_override: float | None = None
    ot_rate_override: float | None = None
    employee_name: str = ""
    employer_name: str = ""
    payment_period_start: str = ""
    payment_period_end: str = ""

    @field_validator("monthly_salary")
    @classmethod
    def salary_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("monthly_salary must be >= 0")
        return v

    @field_validator("hourly_rate_override", "ot_rate_override")
    @classmethod
    def override_positive(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            return None
        return v


# ---------------------------------------------------------------------------
# Payslip result
# ---------------------------------------------------------------------------


class DayPayResult(BaseModel):
    """Computed pay for one day. Money values are rounded to 2 decimals."""

    date: str
    day_type: str
    worked_hours: float
    regular_hours: float
    ot_hours: float
    basic_pay: float
    ot_pay: float
    total_day_pay: float
    description: str = ""


class BreakdownItem(BaseModel):
    """Labelled amount in the deduction/allowance breakdown."""

    label: str
    amount: float


class PayslipResult(BaseModel):
    """Itemized payslip. Plain data only so it serializes to JSON as-is."""

    basic_pay: float
    regular_ot_pay: float
    rest_day_pay: float
    public_holiday_pay: float
    total_allowances: float
    gross_pay: float
    total_deductions: float
    net_pay: float
    total_ot_hours: float
    total_worked_hours: float
    day_breakdown: list[DayPayResult] = Field(default_factory=list)
    deduction_breakdown: list[BreakdownItem] = Field(default_factory=list)
    allowance_breakdown: list[BreakdownItem] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
