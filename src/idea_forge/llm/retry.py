"""Bounded retries with linear backoff for non-streaming generation."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, TypeVar

from .types import ConfigurationError, TransportError, UnsupportedModelError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RetryCallback = Callable[[int, BaseException, float], None]

CREDENTIAL_FAILURE_MARKERS = (
    "api key",
    "api_key",
    "unauthorized",
    "authentication",
    "permission denied",
)


def is_retryable(error: BaseException) -> bool:
    if isinstance(error, (UnsupportedModelError, ConfigurationError)):
        return False
    if isinstance(error, TransportError) and error.http_status in (401, 403):
        return False
    text = str(error).lower()
    return not any(marker in text for marker in CREDENTIAL_FAILURE_MARKERS)


def backoff_delay(attempt: int, backoff_seconds: float = 1.0) -> float:
    """Delay after failed attempt N (1-based): 1s, 2s, 3s, ..."""
    return backoff_seconds * attempt


def _check_attempts(max_attempts: int) -> None:
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")


def _after_failure(
    error: Exception,
    attempt: int,
    max_attempts: int,
    backoff_seconds: float,
    on_retry: Optional[RetryCallback],
) -> Optional[float]:
    """Delay before the next attempt, or None when the error must propagate."""
    logger.warning("Generation attempt %d/%d failed: %s", attempt, max_attempts, error)
    if not is_retryable(error) or attempt >= max_attempts:
        return None
    delay = backoff_delay(attempt, backoff_seconds)
    if on_retry is not None:
        on_retry(attempt, error, delay)
    return delay


def run_with_retry(
    operation: Callable[[], T],
    *,
    max_attempts: int = 3,
    backoff_seconds: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
    on_retry: Optional[RetryCallback] = None,
) -> T:
    _check_attempts(max_attempts)
    attempt = 0
    while True:
        attempt += 1
        try:
            return operation()
        except Exception as exc:
            delay = _after_failure(exc, attempt, max_attempts, backoff_seconds, on_retry)
            if delay is None:
                raise
        sleep(delay)


async def arun_with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 3,
    backoff_seconds: float = 1.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    on_retry: Optional[RetryCallback] = None,
) -> T:
    _check_attempts(max_attempts)
    attempt = 0
    while True:
        attempt += 1
        try:
            return await operation()
        except Exception as exc:
            delay = _after_failure(exc, attempt, max_attempts, backoff_seconds, on_retry)
            if delay is None:
                raise
        await sleep(delay)
