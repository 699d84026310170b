"""Custom exceptions for the timecard pipeline. The parsing and wage core never raises these."""

from __future__ import annotations


class TimecardProcessingError(Exception):
    """Base exception for pipeline failures."""

    def __init__(self, message: str, trace_id: str | None = None) -> None:
        self.trace_id = trace_id or ""
        super().__init__(message)


class OCRError(TimecardProcessingError):
    """OCR engine call failed or returned unusable output."""

    pass


class ConfigError(TimecardProcessingError):
    """Invalid or missing configuration."""

    pass


class PayslipInputError(TimecardProcessingError):
    """Payslip input could not be loaded or failed validation."""

    pass
