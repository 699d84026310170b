"""Extraction: OCR engines, text correction, header/line parsing, preview and review."""

from extraction.corrector import correct, is_valid_time4
from extraction.header import extract_year_month
from extraction.layout import group_rows, split_two_columns
from extraction.line_parser import parse_line
from extraction.ocr import (
    EasyOCREngine,
    TesseractEngine,
    create_ocr_engine,
    load_image,
)
from extraction.parser import parse_document, parse_rows
from extraction.preview import days_in_month, fill_missing_days, remap_year_month
from extraction.review import (
    EditableRow,
    build_editable_rows,
    rows_to_entries,
    toggle_off,
)

__all__ = [
    "correct",
    "is_valid_time4",
    "extract_year_month",
    "group_rows",
    "split_two_columns",
    "parse_line",
    "EasyOCREngine",
    "TesseractEngine",
    "create_ocr_engine",
    "load_image",
    "parse_document",
    "parse_rows",
    "days_in_month",
    "fill_missing_days",
    "remap_year_month",
    "EditableRow",
    "build_editable_rows",
    "rows_to_entries",
    "toggle_off",
]
