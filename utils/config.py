"""
Configuration loader: YAML + .env + env overrides.
No hardcoded engine or payroll values outside the dataclass defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from core.exceptions import ConfigError
from payroll.constants import PayrollRules

try:
    import yaml
    YAML_AVAILABLE = True
except ImportError:
    YAML_AVAILABLE = False

try:
    from dotenv import load_dotenv
    DOTENV_AVAILABLE = True
except ImportError:
    DOTENV_AVAILABLE = False


def _coerce_bool(s: Any) -> bool:
    if isinstance(s, bool):
        return s
    return (str(s).strip().lower() in ("1", "true", "yes")) if s else False


def _coerce_float(s: Any, default: float = 0.0) -> float:
    if s is None or s == "":
        return default
    try:
        return float(s)
    except (TypeError, ValueError):
        return default


def _coerce_int(s: Any, default: int = 0) -> int:
    if s is None or s == "":
        return default
    try:
        return int(s)
    except (TypeError, ValueError):
        return default


def _coerce_list(s: Any, default: tuple[str, ...]) -> tuple[str, ...]:
    if s is None or s == "":
        return default
    if isinstance(s, (list, tuple)):
        items = [str(x).strip() for x in s]
    else:
        items = [x.strip() for x in str(s).split(",")]
    return tuple(x for x in items if x) or default


@dataclass(frozen=True)
class OCRConfig:
    """OCR engine selection and retry policy."""

    engine: str = "easyocr"  # tesseract | easyocr
    languages: tuple[str, ...] = ("en",)
    gpu: bool = False
    max_retries: int = 2
    retry_delay_sec: float = 1.0


@dataclass(frozen=True)
class ParserConfig:
    """Line parser and row grouping settings."""

    row_threshold_px: float = 15.0
    min_box_ratio: float = 0.8
    default_break_minutes: int = 60
    default_clock_out: str = "17:00"
    split_two_columns: bool = True


@dataclass(frozen=True)
class AppConfig:
    """Immutable application configuration. Built from YAML + env."""

    log_level: str = "INFO"
    stop_on_first_error: bool = False
    ocr: OCRConfig = field(default_factory=OCRConfig)
    parser: ParserConfig = field(default_factory=ParserConfig)
    payroll: PayrollRules = field(default_factory=PayrollRules)

    def with_overrides(self, **overrides: Any) -> AppConfig:
        """Return new config with replaced keys (only top-level; nested replaced whole)."""
        known = {k: v for k, v in overrides.items() if v is not None and hasattr(self, k)}
        return replace(self, **known)


def _env_override(key: str, default: Any, coerce: type | Any = str) -> Any:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    if coerce is bool:
        return _coerce_bool(raw)
    if coerce is float:
        return _coerce_float(raw, default)
    if coerce is int:
        return _coerce_int(raw, default)
    if coerce is tuple:
        return _coerce_list(raw, default)
    return str(raw).strip()


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    if not YAML_AVAILABLE:
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    return data if isinstance(data, dict) else {}


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"Config section '{key}' must be a mapping, got {type(value).__name__}")
    return value


def _config_from_dict(data: dict[str, Any]) -> AppConfig:
    """Build AppConfig from nested dict. Env overrides applied in load_config."""
    ocr_data = _section(data, "ocr")
    parser_data = _section(data, "parser")
    pay_data = _section(data, "payroll")
    ocr_defaults, parser_defaults, pay_defaults = OCRConfig(), ParserConfig(), PayrollRules()
    return AppConfig(
        log_level=str(data.get("log_level", "INFO")),
        stop_on_first_error=_coerce_bool(data.get("stop_on_first_error", False)),
        ocr=OCRConfig(
            engine=str(ocr_data.get("engine", ocr_defaults.engine)).strip().lower(),
            languages=_coerce_list(ocr_data.get("languages"), ocr_defaults.languages),
            gpu=_coerce_bool(ocr_data.get("gpu", ocr_defaults.gpu)),
            max_retries=_coerce_int(ocr_data.get("max_retries"), ocr_defaults.max_retries),
            retry_delay_sec=_coerce_float(ocr_data.get("retry_delay_sec"), ocr_defaults.retry_delay_sec),
        ),
        parser=ParserConfig(
            row_threshold_px=_coerce_float(parser_data.get("row_threshold_px"), parser_defaults.row_threshold_px),
            min_box_ratio=_coerce_float(parser_data.get("min_box_ratio"), parser_defaults.min_box_ratio),
            default_break_minutes=_coerce_int(
                parser_data.get("default_break_minutes"), parser_defaults.default_break_minutes
            ),
            default_clock_out=str(parser_data.get("default_clock_out", parser_defaults.default_clock_out)),
            split_two_columns=_coerce_bool(parser_data.get("split_two_columns", parser_defaults.split_two_columns)),
        ),
        payroll=PayrollRules(
            hourly_divisor=_coerce_float(pay_data.get("hourly_divisor"), pay_defaults.hourly_divisor),
            daily_divisor=_coerce_float(pay_data.get("daily_divisor"), pay_defaults.daily_divisor),
            normal_hours_per_day=_coerce_float(
                pay_data.get("normal_hours_per_day"), pay_defaults.normal_hours_per_day
            ),
            max_hours_per_day=_coerce_float(pay_data.get("max_hours_per_day"), pay_defaults.max_hours_per_day),
            max_ot_hours_per_month=_coerce_float(
                pay_data.get("max_ot_hours_per_month"), pay_defaults.max_ot_hours_per_month
            ),
            rest_day_half_threshold=_coerce_float(
                pay_data.get("rest_day_half_threshold"), pay_defaults.rest_day_half_threshold
            ),
            ot_multiplier=_coerce_float(pay_data.get("ot_multiplier"), pay_defaults.ot_multiplier),
            rest_day_multiplier=_coerce_float(pay_data.get("rest_day_multiplier"), pay_defaults.rest_day_multiplier),
            max_accommodation_pct=_coerce_float(
                pay_data.get("max_accommodation_pct"), pay_defaults.max_accommodation_pct
            ),
            max_total_deduction_pct=_coerce_float(
                pay_data.get("max_total_deduction_pct"), pay_defaults.max_total_deduction_pct
            ),
            currency=str(pay_data.get("currency", pay_defaults.currency)),
        ),
    )


def load_config(config_path: str | Path | None = None, load_env_file: bool = True) -> AppConfig:
    """
    Load config from YAML file, then apply env overrides.
    Env vars: LOG_LEVEL, OCR_ENGINE, OCR_LANGUAGES, OCR_MAX_RETRIES, ROW_THRESHOLD_PX,
    DEFAULT_BREAK_MINUTES, PAYROLL_CURRENCY. A .env file in the working directory is read first.
    """
    if load_env_file and DOTENV_AVAILABLE:
        load_dotenv()
    path = Path(config_path) if config_path else Path("config.yaml")
    if config_path and not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    cfg = _config_from_dict(_load_yaml(path))

    # Env overrides (single source for deployment)
    overrides: dict[str, Any] = {}
    if os.getenv("LOG_LEVEL"):
        overrides["log_level"] = os.getenv("LOG_LEVEL", "").strip().upper()
    if os.getenv("OCR_ENGINE") or os.getenv("OCR_LANGUAGES") or os.getenv("OCR_MAX_RETRIES"):
        ocr = cfg.ocr
        overrides["ocr"] = replace(
            ocr,
            engine=_env_override("OCR_ENGINE", ocr.engine).lower(),
            languages=_env_override("OCR_LANGUAGES", ocr.languages, tuple),
            max_retries=_env_override("OCR_MAX_RETRIES", ocr.max_retries, int),
        )
    if os.getenv("ROW_THRESHOLD_PX") or os.getenv("DEFAULT_BREAK_MINUTES"):
        parser = cfg.parser
        overrides["parser"] = replace(
            parser,
            row_threshold_px=_env_override("ROW_THRESHOLD_PX", parser.row_threshold_px, float),
            default_break_minutes=_env_override("DEFAULT_BREAK_MINUTES", parser.default_break_minutes, int),
        )
    if os.getenv("PAYROLL_CURRENCY"):
        overrides["payroll"] = replace(cfg.payroll, currency=_env_override("PAYROLL_CURRENCY", cfg.payroll.currency))
    cfg = cfg.with_overrides(**overrides) if overrides else cfg
    _validate(cfg)
    return cfg


def _validate(cfg: AppConfig) -> None:
    if cfg.ocr.engine not in ("tesseract", "easyocr"):
        raise ConfigError(f"Unknown OCR engine: {cfg.ocr.engine!r} (expected tesseract or easyocr)")
    if cfg.parser.default_break_minutes < 0:
        raise ConfigError("parser.default_break_minutes must be >= 0")
    if cfg.parser.row_threshold_px <= 0:
        raise ConfigError("parser.row_threshold_px must be > 0")
    if cfg.payroll.hourly_divisor <= 0 or cfg.payroll.daily_divisor <= 0:
        raise ConfigError("payroll divisors must be > 0")
