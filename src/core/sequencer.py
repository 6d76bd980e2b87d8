"""
Strict one-at-a-time execution of async producers.

Several producers hit the same rate-limited provider, so results are gathered serially
rather than with ``asyncio.gather``.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Iterable, List, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

Producer = Callable[[], Awaitable[T]]


async def serialize(producers: Iterable[Producer[T]]) -> List[T]:
    """
    Await each producer in turn and return their results in input order.

    A producer starts only after the previous one resolved. Empty or falsy results are kept.
    The first exception propagates unchanged and no later producer is invoked.
    """
    results: List[T] = []
    for index, producer in enumerate(producers):
        try:
            results.append(await producer())
        except Exception:
            LOGGER.debug("Producer %s failed; abandoning sequence after %s results.", index, len(results))
            raise
    return results
