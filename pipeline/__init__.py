"""Pipeline: batch timecard processing over an injected OCR engine."""

from pipeline.timecard_pipeline import TimecardPipeline

__all__ = [
    "TimecardPipeline",
]
