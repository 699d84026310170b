"""
Timecard pipeline: one or more timecard images -> merged ParseResult + BatchMetrics.
The OCR engine is injected; images are processed one at a time to bound memory.
Flow: load -> OCR (with retry) -> header over all images -> parse per image -> date-keyed merge -> fill.
"""

from __future__ import annotations

import logging
import time
import uuid
from pathlib import Path
from typing import Any, Sequence

from core.exceptions import OCRError, TimecardProcessingError
from core.interfaces import IOCREngine
from core.models import BatchMetrics, ParseResult, PreviewRow, RawLine
from core.schema import DayEntry
from extraction.ocr import load_image
from extraction.parser import merge_parsed, parse_rows, resolve_year_month, source_rows
from extraction.preview import fill_missing_days
from utils.config import ParserConfig
from utils.logger import log_structured
from utils.retry import RetryPolicy, with_retry

logger = logging.getLogger(__name__)


class TimecardPipeline:
    """
    Production pipeline: process(image_paths) -> (ParseResult, BatchMetrics).
    No global state; the OCR engine is constructed once by the caller and injected.
    """

    def __init__(
        self,
        engine: IOCREngine,
        parser_options: ParserConfig | None = None,
        *,
        max_attempts: int = 2,
        retry_delay_sec: float = 1.0,
        stop_on_first_error: bool = False,
    ) -> None:
        self._engine = engine
        self._options = parser_options or ParserConfig()
        self._retry = RetryPolicy(max_attempts=max(1, int(max_attempts)), delay_sec=retry_delay_sec)
        self._stop_on_first_error = stop_on_first_error

    def detect_lines(self, image: Any, label: str = "image") -> list[RawLine]:
        """Run the engine on one image, retrying on OCRError."""
        return with_retry(
            lambda: self._engine.detect(image),
            self._retry,
            retry_on=(OCRError,),
            label=f"OCR {self._engine.name} {label}",
        )

    def _ocr_image(self, path: Path) -> list[str]:
        image = load_image(path)
        try:
            lines = self.detect_lines(image, path.name)
        finally:
            image.close()
        rows = source_rows(lines, self._options)
        logger.info("OCR %s: engine=%s lines=%s rows=%s", path.name, self._engine.name, len(lines), len(rows))
        return rows

    def process(
        self,
        image_paths: Sequence[str | Path],
        override_year: int | None = None,
        override_month: int | None = None,
    ) -> tuple[ParseResult, BatchMetrics]:
        """
        OCR every image in order, then parse and merge. A later image's row for a date
        replaces the earlier row and entry. A failing image is logged and skipped unless
        stop_on_first_error, in which case the error is re-raised.
        """
        trace_id = str(uuid.uuid4())
        metrics = BatchMetrics()
        start = time.perf_counter()

        per_image: list[list[str]] = []
        for path in (Path(p) for p in image_paths):
            try:
                per_image.append(self._ocr_image(path))
                metrics.images_processed += 1
            except Exception as e:
                metrics.images_failed += 1
                metrics.failed_images.append(str(path))
                if isinstance(e, TimecardProcessingError) and not e.trace_id:
                    e.trace_id = trace_id
                logger.exception("Timecard image failed trace_id=%s file=%s: %s", trace_id, path.name, e)
                if self._stop_on_first_error:
                    raise

        header_text = "\n".join(row for rows in per_image for row in rows)
        year, month = resolve_year_month(header_text, override_year, override_month)

        rows_by_date: dict[str, PreviewRow] = {}
        entries_by_date: dict[str, DayEntry] = {}
        for rows in per_image:
            result = parse_rows(rows, year, month, self._options, fill_missing=False)
            metrics.rows_parsed += len(result.rows)
            image_entries = {e.date: e for e in result.entries}
            for row in result.rows:
                merge_parsed(rows_by_date, entries_by_date, row, image_entries.get(row.date))

        merged = ParseResult(
            entries=[entries_by_date[d] for d in sorted(entries_by_date)],
            rows=fill_missing_days(list(rows_by_date.values()), year, month),
            year=year,
            month=month,
        )
        metrics.entries_parsed = len(merged.entries)
        metrics.total_time_sec = time.perf_counter() - start
        log_structured(
            logger,
            logging.INFO,
            f"Timecard batch done {year:04d}-{month:02d}",
            trace_id=trace_id,
            **metrics.to_dict(),
        )
        return merged, metrics
