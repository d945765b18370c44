"""
retry.py — Exponential-backoff retry for async operations.

with_retries() holds no state between calls, so independent tool calls
can each run their own retry loop concurrently.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, TypeVar

from .errors import NetworkError

if TYPE_CHECKING:
    from .config import AgentSettings

logger = logging.getLogger("x402_agent.retry")

T = TypeVar("T")


@dataclass(frozen=True)
class RetryOptions:
    """Backoff knobs. Delays are in seconds."""
    max_retries: int = 3
    initial_delay: float = 0.1
    max_delay: float = 5.0
    backoff_multiplier: float = 2.0

    @classmethod
    def from_settings(cls, settings: "AgentSettings") -> "RetryOptions":
        return cls(
            max_retries=settings.max_retries,
            initial_delay=settings.initial_delay,
            max_delay=settings.max_delay,
            backoff_multiplier=settings.backoff_multiplier,
        )


async def with_retries(
    fn: Callable[[], Awaitable[T]],
    *,
    max_retries: int = 3,
    initial_delay: float = 0.1,
    max_delay: float = 5.0,
    backoff_multiplier: float = 2.0,
    label: str = "",
) -> T:
    """
    Await fn(), retrying up to `max_retries` more times with exponential
    backoff. Raises NetworkError once every attempt has failed.

    Not retried: errors whose `retryable` attribute is False, i.e. 4xx
    NetworkErrors (other than 408/429), payment, validation and trust
    errors. Those propagate unchanged after the first attempt.
    """
    delay = initial_delay
    attempts = max_retries + 1
    last_exc: Optional[BaseException] = None

    for attempt in range(1, attempts + 1):
        try:
            return await fn()
        except Exception as exc:
            if not getattr(exc, "retryable", True):
                raise
            last_exc = exc
            if attempt == attempts:
                break
            logger.debug(
                "%s: attempt %d/%d failed, retrying in %.2fs: %s",
                label or "request", attempt, attempts, delay, exc,
            )
            await asyncio.sleep(delay)
            delay = min(delay * backoff_multiplier, max_delay)

    raise NetworkError(
        f"{label or 'request'} failed after {attempts} attempts: {last_exc}",
        status_code=getattr(last_exc, "status_code", None),
        url=getattr(last_exc, "url", None),
    ) from last_exc


async def with_retry_options(
    fn: Callable[[], Awaitable[T]],
    options: RetryOptions,
    label: str = "",
) -> T:
    return await with_retries(
        fn,
        max_retries=options.max_retries,
        initial_delay=options.initial_delay,
        max_delay=options.max_delay,
        backoff_multiplier=options.backoff_multiplier,
        label=label,
    )
