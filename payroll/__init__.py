"""Payroll: statutory constants, wage engine, input validation."""

from payroll.constants import (
    DEFAULT_RULES,
    PayrollRules,
    SG_PUBLIC_HOLIDAYS,
    auto_day_type,
    is_sunday,
    public_holidays,
)
from payroll.calculator import (
    calc_daily_rate,
    calc_day_pay,
    calc_hourly_rate,
    calc_payslip,
    calc_worked_hours,
    round_money,
)
from payroll.validation import (
    FieldError,
    validate_entries,
    validate_entry,
    validate_salary,
)

__all__ = [
    "DEFAULT_RULES",
    "PayrollRules",
    "SG_PUBLIC_HOLIDAYS",
    "auto_day_type",
    "is_sunday",
    "public_holidays",
    "calc_daily_rate",
    "calc_day_pay",
    "calc_hourly_rate",
    "calc_payslip",
    "calc_worked_hours",
    "round_money",
    "FieldError",
    "validate_entries",
    "validate_entry",
    "validate_salary",
]
