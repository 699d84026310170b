"""Config loading: YAML values, env overrides, validation errors."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.exceptions import ConfigError
from utils.config import AppConfig, load_config

ENV_KEYS = (
    "LOG_LEVEL",
    "OCR_ENGINE",
    "OCR_LANGUAGES",
    "OCR_MAX_RETRIES",
    "ROW_THRESHOLD_PX",
    "DEFAULT_BREAK_MINUTES",
    "PAYROLL_CURRENCY",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def _write(tmp_path: Path, text: str) -> Path:
    p = tmp_path / "config.yaml"
    p.write_text(text, encoding="utf-8")
    return p


def test_yaml_values(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        """
log_level: DEBUG
stop_on_first_error: true
ocr:
  engine: Tesseract
  languages: [en, ms]
  max_retries: 4
parser:
  default_break_minutes: 30
  split_two_columns: false
payroll:
  currency: MYR
  max_ot_hours_per_month: 104
""",
    )
    cfg = load_config(path, load_env_file=False)
    assert cfg.log_level == "DEBUG"
    assert cfg.stop_on_first_error is True
    assert cfg.ocr.engine == "tesseract"
    assert cfg.ocr.languages == ("en", "ms")
    assert cfg.ocr.max_retries == 4
    assert cfg.parser.default_break_minutes == 30
    assert cfg.parser.split_two_columns is False
    assert cfg.parser.row_threshold_px == 15.0
    assert cfg.payroll.currency == "MYR"
    assert cfg.payroll.max_ot_hours_per_month == 104
    assert cfg.payroll.hourly_divisor == 2288


def test_empty_yaml_gives_defaults(tmp_path: Path) -> None:
    cfg = load_config(_write(tmp_path, ""), load_env_file=False)
    assert cfg == AppConfig()


def test_env_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "warning")
    monkeypatch.setenv("OCR_ENGINE", "TESSERACT")
    monkeypatch.setenv("OCR_LANGUAGES", "en, ch_sim")
    monkeypatch.setenv("DEFAULT_BREAK_MINUTES", "45")
    monkeypatch.setenv("PAYROLL_CURRENCY", "SGD")
    cfg = load_config(_write(tmp_path, "ocr:\n  engine: easyocr\n"), load_env_file=False)
    assert cfg.log_level == "WARNING"
    assert cfg.ocr.engine == "tesseract"
    assert cfg.ocr.languages == ("en", "ch_sim")
    assert cfg.parser.default_break_minutes == 45
    assert cfg.payroll.currency == "SGD"


def test_with_overrides_ignores_none() -> None:
    cfg = AppConfig().with_overrides(log_level="DEBUG", stop_on_first_error=None, unknown=1)
    assert cfg.log_level == "DEBUG"
    assert cfg.stop_on_first_error is False


def test_unknown_engine_rejected(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Unknown OCR engine"):
        load_config(_write(tmp_path, "ocr:\n  engine: paddle\n"), load_env_file=False)


def test_negative_break_rejected(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_config(_write(tmp_path, "parser:\n  default_break_minutes: -5\n"), load_env_file=False)


def test_section_must_be_mapping(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="must be a mapping"):
        load_config(_write(tmp_path, "ocr: easyocr\n"), load_env_file=False)


def test_invalid_yaml(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_config(_write(tmp_path, "ocr: [unclosed\n"), load_env_file=False)


def test_missing_explicit_path(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "absent.yaml", load_env_file=False)
