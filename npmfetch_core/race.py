"""First-success race over concurrent async operations."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Mapping, Optional, TypeVar

from .errors import RaceExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def first_success(operations: Mapping[str, Callable[[], Awaitable[T]]]) -> T:
    """Run every operation concurrently and return the first successful result.

    Losing operations are cancelled once a winner is known. When every
    operation fails a :class:`RaceExhaustedError` carrying each failure,
    keyed by label in submission order, is raised.
    """

    if not operations:
        raise RaceExhaustedError({})

    labels: dict[asyncio.Future[T], str] = {}
    for label, factory in operations.items():
        labels[asyncio.ensure_future(factory())] = label

    failures: dict[str, BaseException] = {}
    pending = set(labels)
    try:
        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            winner: Optional[asyncio.Future[T]] = None
            # submission order, so simultaneous winners resolve deterministically
            for task in [t for t in labels if t in done]:
                label = labels[task]
                if task.cancelled():
                    failures[label] = asyncio.CancelledError(f"{label} was cancelled")
                    continue
                exc = task.exception()
                if exc is not None:
                    logger.debug("race entrant %s failed: %s", label, exc)
                    failures[label] = exc
                elif winner is None:
                    winner = task
            if winner is not None:
                logger.debug("race won by %s (%s other(s) pending)", labels[winner], len(pending))
                return winner.result()
        raise RaceExhaustedError({label: failures[label] for label in labels.values()})
    finally:
        for task in pending:
            task.cancel()
