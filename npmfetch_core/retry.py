"""Bounded immediate re-invocation of async operations."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, TypeVar

T = TypeVar("T")


async def retry(
    operation: Callable[[], Awaitable[T]],
    retries: int,
    *,
    label: str | None = None,
    logger: logging.Logger | None = None,
) -> T:
    """Await ``operation()`` up to ``retries + 1`` times.

    There is no backoff between attempts. The error of the last attempt is
    re-raised unchanged; cancellation is never retried. Retried failures are
    logged at DEBUG through ``logger`` (the module logger by default).
    """

    log = logger or logging.getLogger(__name__)
    name = label or getattr(operation, "__name__", "operation")
    remaining = max(int(retries), 0)
    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as exc:
            if remaining <= 0:
                raise
            log.debug("%s attempt=%s failed, retrying (%s left): %s", name, attempt, remaining, exc)
            remaining -= 1
            attempt += 1
