"""Rate-limit detection and exponential backoff."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

RATE_LIMIT_STATUS = 429

SleepFunc = Callable[[float], Awaitable[None]]


def _status_of(exc: BaseException) -> Optional[int]:
    status = getattr(exc, "status_code", None)
    if status is None:
        response = getattr(exc, "response", None)
        status = getattr(response, "status_code", None)
    return status if isinstance(status, int) else None


def is_rate_limit_error(exc: Optional[BaseException]) -> bool:
    """
    Return True if exc, or anything in its cause chain, signals HTTP 429.

    Follows explicit `.cause` attributes as well as `__cause__` and `__context__`.
    """
    seen: set[int] = set()
    pending = [exc]
    while pending:
        current = pending.pop()
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        if _status_of(current) == RATE_LIMIT_STATUS:
            return True
        explicit = getattr(current, "cause", None)
        if isinstance(explicit, BaseException):
            pending.append(explicit)
        pending.append(current.__cause__)
        pending.append(current.__context__)
    return False


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int,
    initial_delay: float,
    should_retry: Callable[[BaseException], bool] = is_rate_limit_error,
    sleep: SleepFunc = asyncio.sleep,
    description: str = "operation",
) -> T:
    """
    Run operation, retrying with doubling delays while should_retry(exc) holds.

    The last exception is re-raised once max_attempts is exhausted or when the
    failure is not retryable.
    """
    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as exc:
            if attempt >= max_attempts or not should_retry(exc):
                raise
            delay = initial_delay * (2 ** (attempt - 1))
            logger.warning(
                "%s rate limited (attempt %d/%d), retrying in %.1fs",
                description,
                attempt,
                max_attempts,
                delay,
            )
            await sleep(delay)
            attempt += 1
