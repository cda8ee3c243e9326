"""Retry decorator for outbound API calls.

BaseClient already retries on HTTP status (429/5xx). This layer covers
transport failures raised outside that loop, e.g. a dropped connection
while the body is being read.
"""
from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Callable, TypeVar

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

log = logging.getLogger("utils.retry")

F = TypeVar("F", bound=Callable[..., Any])

TRANSIENT_ERRORS = (httpx.TransportError, ConnectionError, TimeoutError)


def with_retry(func: F) -> F:
    """Retry an async call up to 3 times, backing off 1s..10s."""
    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        before_sleep=before_sleep_log(log, logging.WARNING),
        reraise=True,
    )
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        return await func(*args, **kwargs)

    return wrapper  # type: ignore
