"""
Abstract interfaces for the timecard pipeline.
The OCR engine is an external collaborator; the pipeline depends only on this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from core.models import RawLine


class IOCREngine(ABC):
    """Abstract OCR engine: image -> text lines with confidence and optional box."""

    @property
    def name(self) -> str:
        return "base"

    @abstractmethod
    def detect(self, image: Any) -> list[RawLine]:
        """
        Detect text lines in one image (PIL Image).
        Raises OCRError when the engine fails; returns [] when nothing is read.
        """
        ...
