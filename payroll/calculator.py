"""
Wage engine: reviewed day entries + salary parameters -> itemized payslip.

Total over valid PayslipInput: rule breaches (daily/monthly hour caps, deduction
caps) are reported as warnings and the capped values are used.
"""
from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from core.schema import (
    DAY_TYPE_NORMAL,
    DAY_TYPE_PUBLIC_HOLIDAY,
    DAY_TYPE_REST,
    BreakdownItem,
    DayEntry,
    DayPayResult,
    PayslipInput,
    PayslipResult,
)
from payroll.constants import DEFAULT_RULES, PayrollRules

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")


def round_money(value: float) -> float:
    """Round half-up to 2 decimals."""
    return float(Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


def calc_hourly_rate(monthly_salary: float, rules: PayrollRules = DEFAULT_RULES) -> float:
    """12 x salary / (52 weeks x 44 hours)."""
    return 12 * monthly_salary / rules.hourly_divisor


def calc_daily_rate(monthly_salary: float, rules: PayrollRules = DEFAULT_RULES) -> float:
    return monthly_salary / rules.daily_divisor


def _minutes(clock: str) -> int:
    hh, mm = clock.split(":")
    return int(hh) * 60 + int(mm)


def calc_worked_hours(clock_in: str, clock_out: str, break_minutes: int) -> float:
    """Shift length minus break, floored at 0. Clock-out before clock-in is an overnight shift."""
    span = _minutes(clock_out) - _minutes(clock_in)
    if span < 0:
        span += 24 * 60
    return max(0.0, (span - break_minutes) / 60)


def _describe(day_type: str, ot_hours: float) -> str:
    if day_type == DAY_TYPE_REST:
        return f"Rest day + {ot_hours:.1f}h OT" if ot_hours > 0 else "Rest day work"
    if day_type == DAY_TYPE_PUBLIC_HOLIDAY:
        return f"Public holiday + {ot_hours:.1f}h OT" if ot_hours > 0 else "Public holiday work"
    return f"Normal day + {ot_hours:.1f}h OT" if ot_hours > 0 else "Normal day"


def calc_day_pay(
    entry: DayEntry,
    hourly_rate: float,
    daily_rate: float,
    ot_rate: float,
    rules: PayrollRules = DEFAULT_RULES,
) -> DayPayResult:
    """
    Pay for one worked day by day type.
    normal: regular hours at the hourly rate, hours past the normal day as OT.
    rest: 1 day's pay up to half a day, 2 days' pay beyond; OT only past the normal day.
    publicHoliday: 1 extra day's pay plus OT past the normal day.
    Extra OT hours (the "+1" marker) are added to OT in every case.
    """
    base = calc_worked_hours(entry.clock_in, entry.clock_out, entry.break_minutes)
    extra = entry.extra_ot_hours or 0.0
    normal = rules.normal_hours_per_day

    if entry.day_type == DAY_TYPE_REST:
        regular = min(base, normal)
        if base <= rules.rest_day_half_threshold:
            basic = daily_rate
            ot = extra
        elif base <= normal:
            basic = daily_rate * rules.rest_day_multiplier
            ot = extra
        else:
            basic = daily_rate * rules.rest_day_multiplier
            ot = base - normal + extra
    elif entry.day_type == DAY_TYPE_PUBLIC_HOLIDAY:
        regular = min(base, normal)
        basic = daily_rate
        ot = max(0.0, base - normal) + extra
    else:
        regular = min(base, normal)
        basic = regular * hourly_rate
        ot = max(0.0, base - normal) + extra

    basic_pay = round_money(basic)
    ot_pay = round_money(ot * ot_rate)
    return DayPayResult(
        date=entry.date,
        day_type=entry.day_type,
        worked_hours=round_money(base + extra),
        regular_hours=round_money(regular),
        ot_hours=round_money(ot),
        basic_pay=basic_pay,
        ot_pay=ot_pay,
        total_day_pay=round_money(basic_pay + ot_pay),
        description=_describe(entry.day_type, ot),
    )


def _allowance_items(payslip_input: PayslipInput) -> list[BreakdownItem]:
    a = payslip_input.allowances
    items = [("Transport", a.transport), ("Food", a.food), ("Other", a.other)]
    return [BreakdownItem(label=label, amount=round_money(amount)) for label, amount in items if amount > 0]


def _deduction_items(
    payslip_input: PayslipInput,
    rules: PayrollRules,
    warnings: list[str],
) -> tuple[list[BreakdownItem], float]:
    salary = payslip_input.monthly_salary
    d = payslip_input.deductions
    accommodation = d.accommodation
    max_accommodation = round_money(salary * rules.max_accommodation_pct)
    if accommodation > max_accommodation:
        accommodation = max_accommodation
        warnings.append(
            f"Accommodation deduction capped at {rules.max_accommodation_pct * 100:.0f}% of salary "
            f"({rules.currency} {max_accommodation:.2f})"
        )
    items = [
        ("Accommodation", accommodation),
        ("Meals", d.meals),
        ("Salary Advance", d.advances),
        ("Other", d.other),
    ]
    breakdown = [BreakdownItem(label=label, amount=round_money(amount)) for label, amount in items if amount > 0]
    total = round_money(sum(item.amount for item in breakdown))
    max_total = round_money(salary * rules.max_total_deduction_pct)
    if total > max_total:
        total = max_total
        warnings.append(
            f"Total deductions capped at {rules.max_total_deduction_pct * 100:.0f}% of salary "
            f"({rules.currency} {max_total:.2f})"
        )
    return breakdown, total


def calc_payslip(payslip_input: PayslipInput, rules: PayrollRules | None = None) -> PayslipResult:
    """Compute the full payslip. Never raises for rule breaches; see PayslipResult.warnings."""
    rules = rules or DEFAULT_RULES
    salary = payslip_input.monthly_salary
    hourly_rate = payslip_input.hourly_rate_override or calc_hourly_rate(salary, rules)
    daily_rate = calc_daily_rate(salary, rules)
    ot_rate = payslip_input.ot_rate_override or hourly_rate * rules.ot_multiplier
    warnings: list[str] = []

    days = [calc_day_pay(e, hourly_rate, daily_rate, ot_rate, rules) for e in payslip_input.entries]

    regular_ot_pay = rest_day_pay = public_holiday_pay = 0.0
    total_ot_hours = total_worked_hours = 0.0
    for day in days:
        total_ot_hours += day.ot_hours
        total_worked_hours += day.worked_hours
        if day.worked_hours > rules.max_hours_per_day:
            warnings.append(
                f"{day.date}: Daily hours ({day.worked_hours:.1f}) exceed {rules.max_hours_per_day:g}-hour limit"
            )
        if day.day_type == DAY_TYPE_NORMAL:
            regular_ot_pay += day.ot_pay
        elif day.day_type == DAY_TYPE_REST:
            rest_day_pay += day.basic_pay + day.ot_pay
        elif day.day_type == DAY_TYPE_PUBLIC_HOLIDAY:
            public_holiday_pay += day.basic_pay + day.ot_pay

    total_ot_hours = round_money(total_ot_hours)
    if total_ot_hours > rules.max_ot_hours_per_month:
        warnings.append(
            f"Monthly OT ({total_ot_hours:.1f}h) exceeds {rules.max_ot_hours_per_month:g}-hour limit"
        )

    allowance_breakdown = _allowance_items(payslip_input)
    total_allowances = round_money(sum(item.amount for item in allowance_breakdown))
    deduction_breakdown, total_deductions = _deduction_items(payslip_input, rules, warnings)

    basic_pay = round_money(salary)
    regular_ot_pay = round_money(regular_ot_pay)
    rest_day_pay = round_money(rest_day_pay)
    public_holiday_pay = round_money(public_holiday_pay)
    gross_pay = round_money(basic_pay + regular_ot_pay + rest_day_pay + public_holiday_pay + total_allowances)
    net_pay = round_money(gross_pay - total_deductions)

    if warnings:
        logger.warning("Payslip computed with %s warning(s): %s", len(warnings), "; ".join(warnings))
    logger.debug("Payslip gross=%.2f deductions=%.2f net=%.2f over %s days", gross_pay, total_deductions, net_pay, len(days))

    return PayslipResult(
        basic_pay=basic_pay,
        regular_ot_pay=regular_ot_pay,
        rest_day_pay=rest_day_pay,
        public_holiday_pay=public_holiday_pay,
        total_allowances=total_allowances,
        gross_pay=gross_pay,
        total_deductions=total_deductions,
        net_pay=net_pay,
        total_ot_hours=total_ot_hours,
        total_worked_hours=round_money(total_worked_hours),
        day_breakdown=days,
        deduction_breakdown=deduction_breakdown,
        allowance_breakdown=allowance_breakdown,
        warnings=warnings,
    )
