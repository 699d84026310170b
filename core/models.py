"""
Data models for the timecard pipeline.
Uses dataclasses for parser DTOs; Pydantic schemas (DayEntry, PayslipInput, ...) in core.schema.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from core.schema import DayEntry

Point = tuple[float, float]
FourPoints = tuple[Point, Point, Point, Point]


@dataclass(frozen=True)
class RawLine:
    """One text line from the OCR engine. confidence/box are only used for row grouping."""

    text: str
    confidence: float = 0.0
    box: FourPoints | None = None

    @property
    def center_y(self) -> float:
        if not self.box:
            return 0.0
        return sum(p[1] for p in self.box) / len(self.box)

    @property
    def left_x(self) -> float:
        if not self.box:
            return 0.0
        return min(p[0] for p in self.box)


@dataclass(frozen=True)
class PreviewRow:
    """Calendar-day placeholder shown for review. Raw times are 4 digits or empty, as read."""

    date: str
    time_in_raw: str = ""
    time_out_raw: str = ""
    is_off: bool = False
    plus_one: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ParseResult:
    """Result of parsing one document (or a merged batch of documents)."""

    entries: list[DayEntry]
    rows: list[PreviewRow]
    year: int
    month: int

    def to_dict(self) -> dict[str, Any]:
        """Export for JSON output."""
        return {
            "year": self.year,
            "month": self.month,
            "rows": [r.to_dict() for r in self.rows],
            "entries": [e.model_dump(mode="json") for e in self.entries],
        }


@dataclass
class BatchMetrics:
    """Metrics collected while processing a batch of timecard images."""

    images_processed: int = 0
    images_failed: int = 0
    rows_parsed: int = 0
    entries_parsed: int = 0
    total_time_sec: float = 0.0
    failed_images: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Export for logging/serialization."""
        return {
            "images_processed": self.images_processed,
            "images_failed": self.images_failed,
            "rows_parsed": self.rows_parsed,
            "entries_parsed": self.entries_parsed,
            "total_time_sec": round(self.total_time_sec, 4),
            "failed_images": list(self.failed_images),
        }
