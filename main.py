"""
Timecard OCR -> payslip pipeline: entry point.

Three subcommands:
  1. parse-text: OCR text file (or stdin) -> attendance table JSON
  2. parse: timecard images -> OCR -> merged attendance table JSON
  3. payslip: payslip input JSON (salary, entries, deductions, allowances) -> itemized payslip JSON

Usage:
  python main.py parse-text scan.txt [--year 2025 --month 11] [--no-fill]
  python main.py parse page1.jpg page2.jpg [--engine easyocr] [--review] [-o out.json]
  python main.py payslip input.json [-o payslip.json]

- Config from config.yaml (or --config), .env and env vars; see utils/config.py.
- JSON goes to stdout (or --output); logs go to stderr.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from core.exceptions import ConfigError, PayslipInputError, TimecardProcessingError
from core.models import ParseResult
from core.schema import PayslipInput
from extraction.ocr import create_ocr_engine
from extraction.parser import parse_document
from extraction.review import build_editable_rows
from payroll.calculator import calc_payslip
from payroll.validation import FieldError, validate_entries, validate_entry, validate_salary
from pipeline.timecard_pipeline import TimecardPipeline
from utils.config import AppConfig, load_config
from utils.logger import setup_logging
from utils.retry import RetryPolicy

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def write_json(data: Any, path: Path | None) -> None:
    """Write JSON to path (parents created) or to stdout."""
    text = json.dumps(data, indent=2, ensure_ascii=False)
    if path is None:
        print(text)
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(text + "\n")
    logger.info("Saved output to %s", path)


def _parse_output(result: ParseResult, review: bool) -> dict[str, Any]:
    out = result.to_dict()
    if review:
        rows = build_editable_rows(result.entries, result.rows, result.year)
        out["editable_rows"] = [asdict(row) for row in rows]
    return out


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


def run_parse_text(args: argparse.Namespace, config: AppConfig) -> int:
    if args.text_file == "-":
        text = sys.stdin.read()
    else:
        path = Path(args.text_file)
        if not path.exists():
            logger.error("Text file not found: %s", path)
            return 1
        text = path.read_text(encoding="utf-8")
    result = parse_document(
        text,
        args.year,
        args.month,
        options=config.parser,
        fill_missing=not args.no_fill,
    )
    write_json(_parse_output(result, args.review), args.output)
    return 0


def run_parse_images(args: argparse.Namespace, config: AppConfig) -> int:
    engine_name = args.engine or config.ocr.engine
    try:
        engine = create_ocr_engine(engine_name, languages=config.ocr.languages, gpu=config.ocr.gpu)
    except (RuntimeError, ValueError) as e:
        logger.error("Cannot create OCR engine %r: %s", engine_name, e)
        return 1
    retry = RetryPolicy.from_ocr_config(config.ocr)
    pipeline = TimecardPipeline(
        engine,
        config.parser,
        max_attempts=retry.max_attempts,
        retry_delay_sec=retry.delay_sec,
        stop_on_first_error=args.stop_on_first_error or config.stop_on_first_error,
    )
    result, metrics = pipeline.process(args.images, args.year, args.month)
    out = _parse_output(result, args.review)
    out["metrics"] = metrics.to_dict()
    write_json(out, args.output)
    if metrics.images_processed == 0:
        logger.error("No image could be read (%s failed)", metrics.images_failed)
        return 1
    return 0


def load_payslip_input(path: Path) -> PayslipInput:
    """Load and schema-validate a payslip input JSON file. Raises PayslipInputError."""
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise PayslipInputError(f"Payslip input not found: {path}") from e
    except (json.JSONDecodeError, OSError) as e:
        raise PayslipInputError(f"Failed to read payslip input {path}: {e}") from e
    if not isinstance(data, dict):
        raise PayslipInputError(f"Invalid payslip input {path}: not a JSON object")
    try:
        return PayslipInput.model_validate(data)
    except ValidationError as e:
        raise PayslipInputError(f"Invalid payslip input {path}: {e}") from e


def check_payslip_input(payslip_input: PayslipInput) -> list[FieldError]:
    errors = validate_salary(payslip_input.monthly_salary)
    errors.extend(validate_entries(payslip_input.entries))
    for entry in payslip_input.entries:
        errors.extend(validate_entry(entry))
    return errors


def run_payslip(args: argparse.Namespace, config: AppConfig) -> int:
    payslip_input = load_payslip_input(Path(args.input_json))
    if args.salary is not None:
        payslip_input = payslip_input.model_copy(update={"monthly_salary": args.salary})
    errors = check_payslip_input(payslip_input)
    if errors:
        for err in errors:
            logger.error("Invalid input: field=%s error=%s", err.field, err.message)
        write_json({"errors": [asdict(err) for err in errors]}, args.output)
        return 1
    result = calc_payslip(payslip_input, config.payroll)
    write_json(result.model_dump(mode="json"), args.output)
    return 0


# ---------------------------------------------------------------------------
# main
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Timecard OCR: parse handwritten/printed timecards and compute payslips",
    )
    parser.add_argument("--config", "-c", default=None, help="YAML config path (default: config.yaml if present)")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: LOG_LEVEL or config)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def add_parse_options(p: argparse.ArgumentParser) -> None:
        p.add_argument("--year", type=int, default=None, help="Override the year read from the header")
        p.add_argument("--month", type=int, default=None, choices=range(1, 13), metavar="1-12",
                       help="Override the month read from the header")
        p.add_argument("--review", action="store_true", help="Include editable review rows in the output")
        p.add_argument("--output", "-o", type=Path, default=None, help="Write JSON here instead of stdout")

    p_text = sub.add_parser("parse-text", help="Parse OCR text (file or '-' for stdin)")
    p_text.add_argument("text_file", help="Text file with one OCR line per line, or '-'")
    p_text.add_argument("--no-fill", action="store_true", help="Do not insert empty rows for missing days")
    add_parse_options(p_text)
    p_text.set_defaults(func=run_parse_text)

    p_img = sub.add_parser("parse", help="OCR and parse one or more timecard images")
    p_img.add_argument("images", nargs="+", help="Image files, processed in order (later pages win)")
    p_img.add_argument("--engine", default=None, choices=["tesseract", "easyocr"], help="OCR engine")
    p_img.add_argument("--stop-on-first-error", action="store_true", help="Abort on the first unreadable image")
    add_parse_options(p_img)
    p_img.set_defaults(func=run_parse_images)

    p_pay = sub.add_parser("payslip", help="Compute a payslip from a JSON input file")
    p_pay.add_argument("input_json", help="PayslipInput JSON (monthly_salary, entries, deductions, allowances)")
    p_pay.add_argument("--salary", type=float, default=None, help="Override monthly_salary")
    p_pay.add_argument("--output", "-o", type=Path, default=None, help="Write JSON here instead of stdout")
    p_pay.set_defaults(func=run_payslip)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args.config)
    except ConfigError as e:
        setup_logging(args.log_level or "INFO")
        logger.error("Configuration error: %s", e)
        return 1
    if args.log_level:
        config = config.with_overrides(log_level=args.log_level)
    setup_logging(config.log_level)

    try:
        return args.func(args, config)
    except TimecardProcessingError as e:
        logger.error("%s failed: %s", args.command, e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
