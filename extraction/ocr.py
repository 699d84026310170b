"""
OCR engine adapters (Tesseract, EasyOCR) behind IOCREngine: PIL Image -> list[RawLine].
Engines are built once by create_ocr_engine() and injected into the pipeline.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from PIL import Image, UnidentifiedImageError

from core.exceptions import OCRError
from core.interfaces import IOCREngine
from core.models import RawLine

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Optional dependencies
# ---------------------------------------------------------------------------

try:
    import pytesseract
    TESSERACT_AVAILABLE = True
except ImportError:
    TESSERACT_AVAILABLE = False
    pytesseract = None  # type: ignore

try:
    import easyocr
    import numpy as np
    EASYOCR_AVAILABLE = True
except ImportError:
    EASYOCR_AVAILABLE = False
    easyocr = None  # type: ignore
    np = None  # type: ignore

# psm 6: a single uniform block of text, keeps table rows together
TESSERACT_CONFIG = "--psm 6 --oem 3"
SUPPORTED_ENGINES = ("tesseract", "easyocr")


def load_image(path: str | Path) -> Image.Image:
    """Open an image file as RGB. Raises OCRError when the file is missing or not an image."""
    p = Path(path)
    try:
        with Image.open(p) as img:
            return img.convert("RGB")
    except FileNotFoundError as e:
        raise OCRError(f"Image not found: {p}") from e
    except (UnidentifiedImageError, OSError) as e:
        raise OCRError(f"Cannot read image {p}: {e}") from e


def _rect_box(left: float, top: float, width: float, height: float) -> tuple:
    right, bottom = left + width, top + height
    return ((left, top), (right, top), (right, bottom), (left, bottom))


# ---------------------------------------------------------------------------
# Engines
# ---------------------------------------------------------------------------


class TesseractEngine(IOCREngine):
    """Tesseract OCR. Words are joined per Tesseract line; the line box is the union of word boxes."""

    def __init__(self, languages: tuple[str, ...] = ("eng",), config: str = TESSERACT_CONFIG) -> None:
        if not TESSERACT_AVAILABLE or pytesseract is None:
            raise RuntimeError("pytesseract is not installed; pip install pytesseract or .[ocr]")
        self._lang = "+".join(_tesseract_lang(x) for x in languages) or "eng"
        self._config = config

    @property
    def name(self) -> str:
        return "tesseract"

    def detect(self, image: Image.Image) -> list[RawLine]:
        try:
            data = pytesseract.image_to_data(
                image.convert("RGB"),
                lang=self._lang,
                config=self._config,
                output_type=pytesseract.Output.DICT,
            )
        except pytesseract.TesseractError as e:
            raise OCRError(f"Tesseract failed: {e}") from e
        return _tesseract_lines(data)


def _tesseract_lang(code: str) -> str:
    # EasyOCR-style codes in config map to Tesseract traineddata names
    return {"en": "eng", "ms": "msa", "ch_sim": "chi_sim", "ta": "tam"}.get(code, code)


def _tesseract_lines(data: dict[str, list[Any]]) -> list[RawLine]:
    lines: dict[tuple[int, int, int], list[int]] = {}
    for i, word in enumerate(data.get("text", [])):
        if not str(word).strip():
            continue
        key = (int(data["block_num"][i]), int(data["par_num"][i]), int(data["line_num"][i]))
        lines.setdefault(key, []).append(i)

    out: list[RawLine] = []
    for key in sorted(lines):
        idx = lines[key]
        text = " ".join(str(data["text"][i]).strip() for i in idx)
        confs = [float(data["conf"][i]) for i in idx if float(data["conf"][i]) >= 0]
        left = min(int(data["left"][i]) for i in idx)
        top = min(int(data["top"][i]) for i in idx)
        right = max(int(data["left"][i]) + int(data["width"][i]) for i in idx)
        bottom = max(int(data["top"][i]) + int(data["height"][i]) for i in idx)
        out.append(
            RawLine(
                text=text,
                confidence=(sum(confs) / len(confs) / 100.0) if confs else 0.0,
                box=_rect_box(left, top, right - left, bottom - top),
            )
        )
    return out


class EasyOCREngine(IOCREngine):
    """EasyOCR. Each detected text region becomes one RawLine with its 4-point box."""

    def __init__(self, languages: tuple[str, ...] = ("en",), gpu: bool = False) -> None:
        if not EASYOCR_AVAILABLE or easyocr is None:
            raise RuntimeError("easyocr is not installed; pip install easyocr or .[ocr]")
        self._languages = list(languages) or ["en"]
        self._gpu = gpu
        self._reader: Any = None

    @property
    def name(self) -> str:
        return "easyocr"

    def _get_reader(self) -> Any:
        if self._reader is None:
            logger.info("Loading EasyOCR model (languages=%s, gpu=%s)", self._languages, self._gpu)
            self._reader = easyocr.Reader(self._languages, gpu=self._gpu, verbose=False)
        return self._reader

    def detect(self, image: Image.Image) -> list[RawLine]:
        arr = np.array(image.convert("RGB"))
        try:
            result = self._get_reader().readtext(arr)
        except (RuntimeError, ValueError) as e:
            raise OCRError(f"EasyOCR failed: {e}") from e
        lines: list[RawLine] = []
        for bbox, text, conf in result or []:
            points = tuple((float(x), float(y)) for x, y in bbox)
            lines.append(
                RawLine(
                    text=str(text),
                    confidence=min(1.0, max(0.0, float(conf))),
                    box=points if len(points) == 4 else None,
                )
            )
        return lines


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_ocr_engine(
    engine: str = "easyocr",
    *,
    languages: tuple[str, ...] = ("en",),
    gpu: bool = False,
) -> IOCREngine:
    """Create OCR engine by name ('tesseract' | 'easyocr')."""
    e = (engine or "easyocr").strip().lower()
    if e not in SUPPORTED_ENGINES:
        raise ValueError(f"Unknown OCR engine {engine!r}; expected one of {SUPPORTED_ENGINES}")
    if e == "tesseract":
        eng: IOCREngine = TesseractEngine(languages=languages)
    else:
        eng = EasyOCREngine(languages=languages, gpu=gpu)
    logger.info("OCR: engine=%s languages=%s", eng.name, ",".join(languages))
    return eng
