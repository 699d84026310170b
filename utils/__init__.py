"""Shared utilities: config, logging, retry."""

from utils.config import AppConfig, OCRConfig, ParserConfig, load_config
from utils.logger import log_structured, setup_logging
from utils.retry import RetryPolicy, with_retry

__all__ = [
    "AppConfig",
    "OCRConfig",
    "ParserConfig",
    "load_config",
    "log_structured",
    "setup_logging",
    "RetryPolicy",
    "with_retry",
]
