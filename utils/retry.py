"""Bounded retry for OCR engine calls, with exponential backoff. No global state."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

from core.exceptions import OCRError
from utils.config import OCRConfig

logger = logging.getLogger(__name__)
T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How many times a failing engine call is attempted and how long to wait in between."""

    max_attempts: int = 2
    delay_sec: float = 1.0
    backoff: bool = True

    @classmethod
    def from_ocr_config(cls, ocr: OCRConfig) -> RetryPolicy:
        # max_retries counts retries, not attempts
        return cls(max_attempts=max(0, ocr.max_retries) + 1, delay_sec=ocr.retry_delay_sec)

    def wait_before(self, retry_number: int) -> float:
        """Delay before the given retry (1-based)."""
        if not self.backoff:
            return self.delay_sec
        return self.delay_sec * (2 ** (retry_number - 1))


def with_retry(
    fn: Callable[[], T],
    policy: RetryPolicy | None = None,
    *,
    retry_on: tuple[type[Exception], ...] = (OCRError,),
    label: str = "call",
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call fn until it succeeds or the policy's attempts are used up.
    Only retry_on exceptions are retried; the last one is re-raised.
    """
    policy = policy or RetryPolicy()
    attempts = max(1, policy.max_attempts)
    attempt = 1
    while True:
        try:
            return fn()
        except retry_on as e:
            if attempt >= attempts:
                logger.error("%s failed after %s attempt(s): %s", label, attempts, e)
                raise
            wait = policy.wait_before(attempt)
            logger.warning("%s failed (attempt %s/%s), retrying in %.2fs: %s", label, attempt, attempts, wait, e)
            sleep(wait)
            attempt += 1
