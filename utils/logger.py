"""Logging setup for the CLI and pipeline. Logs go to stderr; stdout carries JSON output."""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# OCR backends and Pillow are chatty at INFO/DEBUG
NOISY_LOGGERS = ("PIL", "easyocr", "pytesseract")


def setup_logging(
    level: str = "INFO",
    format_string: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """Configure the root logger. Calling again replaces the previous handler (CLI and tests)."""
    numeric = logging.getLevelName((level or "INFO").upper())
    if not isinstance(numeric, int):
        numeric = logging.INFO
    logging.basicConfig(
        level=numeric,
        format=format_string or DEFAULT_FORMAT,
        datefmt=DATE_FORMAT,
        stream=stream or sys.stderr,
        force=True,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric, logging.WARNING))


def _format_field(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.3f}"
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value) or "-"
    return str(value)


def log_structured(logger: logging.Logger, level: int, msg: str, **fields: Any) -> None:
    """
    Log msg with key=value pairs appended. The raw values are attached as
    record.fields for handlers that ship structured logs.
    """
    if not logger.isEnabledFor(level):
        return
    suffix = " ".join(f"{k}={_format_field(v)}" for k, v in fields.items())
    logger.log(level, f"{msg} {suffix}" if suffix else msg, extra={"fields": fields})
