"""End-to-end CLI tests through main.main(argv); OCR engine replaced by a fake."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from PIL import Image

import main
from core.interfaces import IOCREngine
from core.models import RawLine

TIMECARD_TEXT = "Timecard November 2025\n1 0700 1900\n2 0700 1900 +1\n3 OFF\n"


class FakeOCREngine(IOCREngine):
    def __init__(self, texts: list[str]) -> None:
        self.texts = texts

    def detect(self, image: Any) -> list[RawLine]:
        return [RawLine(t, 0.9) for t in self.texts]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("LOG_LEVEL", "OCR_ENGINE", "OCR_LANGUAGES", "OCR_MAX_RETRIES",
                "ROW_THRESHOLD_PX", "DEFAULT_BREAK_MINUTES", "PAYROLL_CURRENCY"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    p = tmp_path / "config.yaml"
    p.write_text("log_level: WARNING\nocr:\n  engine: easyocr\n  retry_delay_sec: 0\n", encoding="utf-8")
    return p


@pytest.fixture
def payslip_json(tmp_path: Path) -> Path:
    data = {
        "monthly_salary": 800,
        "entries": [
            {"date": f"2025-10-0{d}", "clock_in": "08:00", "clock_out": "18:00", "break_minutes": 60}
            for d in range(1, 6)
        ],
        "allowances": {"transport": 50},
    }
    p = tmp_path / "input.json"
    p.write_text(json.dumps(data), encoding="utf-8")
    return p


# ---------------------------------------------------------------------------
# parse-text
# ---------------------------------------------------------------------------


def test_parse_text_to_file(tmp_path: Path, config_path: Path) -> None:
    src = tmp_path / "scan.txt"
    src.write_text(TIMECARD_TEXT, encoding="utf-8")
    out = tmp_path / "out" / "table.json"
    assert main.main(["--config", str(config_path), "parse-text", str(src), "-o", str(out)]) == 0
    data = json.loads(out.read_text(encoding="utf-8"))
    assert (data["year"], data["month"]) == (2025, 11)
    assert len(data["rows"]) == 30
    assert [e["date"] for e in data["entries"]] == ["2025-11-01", "2025-11-02"]
    assert "editable_rows" not in data


def test_parse_text_review_to_stdout(tmp_path: Path, config_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    src = tmp_path / "scan.txt"
    src.write_text(TIMECARD_TEXT, encoding="utf-8")
    code = main.main(["--config", str(config_path), "parse-text", str(src), "--review", "--no-fill"])
    assert code == 0
    data = json.loads(capsys.readouterr().out)
    assert len(data["rows"]) == 3
    assert [r["is_off"] for r in data["editable_rows"]] == [False, False, True]
    assert data["editable_rows"][1]["ocr_plus_one"] is True


def test_parse_text_missing_file(tmp_path: Path, config_path: Path) -> None:
    assert main.main(["--config", str(config_path), "parse-text", str(tmp_path / "none.txt")]) == 1


def test_bad_config_returns_error(tmp_path: Path) -> None:
    src = tmp_path / "scan.txt"
    src.write_text(TIMECARD_TEXT, encoding="utf-8")
    assert main.main(["--config", str(tmp_path / "absent.yaml"), "parse-text", str(src)]) == 1


# ---------------------------------------------------------------------------
# parse (images)
# ---------------------------------------------------------------------------


def test_parse_images_with_fake_engine(tmp_path: Path, config_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    engine = FakeOCREngine(["Nov 2025", "4 0700 1900", "5 OFF"])
    monkeypatch.setattr(main, "create_ocr_engine", lambda *args, **kwargs: engine)
    img = tmp_path / "card.png"
    Image.new("RGB", (10, 10), color="white").save(img)
    out = tmp_path / "table.json"
    code = main.main(["--config", str(config_path), "parse", str(img), "--year", "2025", "-o", str(out)])
    assert code == 0
    data = json.loads(out.read_text(encoding="utf-8"))
    assert [e["date"] for e in data["entries"]] == ["2025-11-04"]
    assert data["metrics"]["images_processed"] == 1


def test_parse_images_engine_unavailable(tmp_path: Path, config_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def unavailable(*args: Any, **kwargs: Any) -> IOCREngine:
        raise RuntimeError("easyocr is not installed")

    monkeypatch.setattr(main, "create_ocr_engine", unavailable)
    assert main.main(["--config", str(config_path), "parse", str(tmp_path / "card.png")]) == 1


def test_parse_images_none_readable(tmp_path: Path, config_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(main, "create_ocr_engine", lambda *args, **kwargs: FakeOCREngine([]))
    out = tmp_path / "table.json"
    code = main.main(["--config", str(config_path), "parse", str(tmp_path / "missing.png"), "-o", str(out)])
    assert code == 1
    assert json.loads(out.read_text(encoding="utf-8"))["metrics"]["images_failed"] == 1


# ---------------------------------------------------------------------------
# payslip
# ---------------------------------------------------------------------------


def test_payslip(tmp_path: Path, config_path: Path, payslip_json: Path) -> None:
    out = tmp_path / "payslip.json"
    assert main.main(["--config", str(config_path), "payslip", str(payslip_json), "-o", str(out)]) == 0
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["basic_pay"] == 800.0
    assert data["total_ot_hours"] == 5
    assert data["total_allowances"] == 50.0
    assert data["net_pay"] == data["gross_pay"]


def test_payslip_salary_override_zero_is_rejected(tmp_path: Path, config_path: Path, payslip_json: Path) -> None:
    out = tmp_path / "payslip.json"
    code = main.main(["--config", str(config_path), "payslip", str(payslip_json), "--salary", "0", "-o", str(out)])
    assert code == 1
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["errors"] == [{"field": "monthly_salary", "message": "validation.salaryRequired"}]


def test_payslip_invalid_json(tmp_path: Path, config_path: Path) -> None:
    bad = tmp_path / "input.json"
    bad.write_text("{not json", encoding="utf-8")
    assert main.main(["--config", str(config_path), "payslip", str(bad)]) == 1


def test_payslip_schema_error(tmp_path: Path, config_path: Path) -> None:
    bad = tmp_path / "input.json"
    bad.write_text(json.dumps({"monthly_salary": 800, "entries": [{"date": "2025-10-01"}]}), encoding="utf-8")
    assert main.main(["--config", str(config_path), "payslip", str(bad)]) == 1
