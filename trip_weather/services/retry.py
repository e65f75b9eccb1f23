from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Tuple, Type, TypeVar

import httpx
import structlog

logger = structlog.get_logger()

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    attempts: int = 3
    base_delay_s: float = 1.0

    def delay_for(self, attempt: int) -> float:
        """Backoff before the attempt following ``attempt`` (1-based): 1s, 2s, 4s..."""
        return self.base_delay_s * (2 ** (attempt - 1))


async def retry_async(
    call: Callable[[], Awaitable[T]],
    policy: RetryPolicy = RetryPolicy(),
    retry_on: Tuple[Type[BaseException], ...] = (httpx.TransportError,),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Await ``call`` until it succeeds or ``policy.attempts`` is exhausted.

    Only exceptions listed in ``retry_on`` (transport failures by default) are
    retried; anything else propagates immediately. The last retryable error is
    re-raised once attempts run out.
    """
    attempts = max(1, policy.attempts)
    for attempt in range(1, attempts + 1):
        try:
            return await call()
        except retry_on as e:
            if attempt >= attempts:
                raise
            delay = policy.delay_for(attempt)
            logger.warning("http_retry", attempt=attempt, delay_s=delay, error=str(e))
            await sleep(delay)
    raise RuntimeError("unreachable")  # pragma: no cover
