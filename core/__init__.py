"""Core layer: interfaces, models, schemas, exceptions."""

from core.interfaces import IOCREngine
from core.models import (
    RawLine,
    PreviewRow,
    ParseResult,
    BatchMetrics,
)
from core.schema import (
    DAY_TYPES,
    DayEntry,
    Deductions,
    Allowances,
    PayslipInput,
    DayPayResult,
    BreakdownItem,
    PayslipResult,
)
from core.exceptions import (
    TimecardProcessingError,
    OCRError,
    ConfigError,
    PayslipInputError,
)

__all__ = [
    "IOCREngine",
    "RawLine",
    "PreviewRow",
    "ParseResult",
    "BatchMetrics",
    "DAY_TYPES",
    "DayEntry",
    "Deductions",
    "Allowances",
    "PayslipInput",
    "DayPayResult",
    "BreakdownItem",
    "PayslipResult",
    "TimecardProcessingError",
    "OCRError",
    "ConfigError",
    "PayslipInputError",
]
