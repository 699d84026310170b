"""OCR adapter tests that need no OCR backend: image loading, Tesseract line grouping, factory."""

from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from core.exceptions import OCRError
from extraction.ocr import _tesseract_lines, create_ocr_engine, load_image


def test_load_image_converts_to_rgb(tmp_path: Path) -> None:
    p = tmp_path / "card.png"
    Image.new("RGBA", (8, 6), color=(255, 255, 255, 0)).save(p)
    image = load_image(p)
    assert image.mode == "RGB"
    assert image.size == (8, 6)


def test_load_image_missing(tmp_path: Path) -> None:
    with pytest.raises(OCRError, match="not found"):
        load_image(tmp_path / "nope.jpg")


def test_load_image_not_an_image(tmp_path: Path) -> None:
    p = tmp_path / "card.jpg"
    p.write_bytes(b"plain text")
    with pytest.raises(OCRError, match="Cannot read image"):
        load_image(p)


def test_tesseract_words_grouped_per_line() -> None:
    data = {
        "text": ["", "5", "0700", "1900", "6", "OFF"],
        "conf": [-1, 90, 80, 70, 95, 85],
        "block_num": [1, 1, 1, 1, 1, 1],
        "par_num": [1, 1, 1, 1, 1, 1],
        "line_num": [0, 1, 1, 1, 2, 2],
        "left": [0, 10, 40, 90, 10, 40],
        "top": [0, 100, 101, 99, 130, 130],
        "width": [0, 10, 40, 40, 10, 30],
        "height": [0, 12, 12, 12, 12, 12],
    }
    lines = _tesseract_lines(data)
    assert [line.text for line in lines] == ["5 0700 1900", "6 OFF"]
    assert lines[0].confidence == pytest.approx(0.8)
    assert lines[0].box == ((10, 99), (130, 99), (130, 113), (10, 113))
    assert lines[0].left_x == 10


def test_create_ocr_engine_unknown() -> None:
    with pytest.raises(ValueError, match="Unknown OCR engine"):
        create_ocr_engine("paddle")
