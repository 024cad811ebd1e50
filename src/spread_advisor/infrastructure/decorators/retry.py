"""
Retry Decorators for REST requests

Public market-data endpoints are retried on connection failures, 5xx
responses and rate limiting. Business errors (bad market, bad parameters)
propagate immediately.
"""

import asyncio
import logging
from functools import wraps
from typing import Tuple, Type, Callable, Any, Optional

import aiohttp

from ..exceptions.exchange import (
    RateLimitErrorRest, ExchangeConnectionRestError, ExchangeServerError, ExchangeTimeoutError
)

DEFAULT_RETRY_EXCEPTIONS: Tuple[Type[Exception], ...] = (
    aiohttp.ClientConnectionError,
    asyncio.TimeoutError,
    ExchangeConnectionRestError,
    ExchangeServerError,
    ExchangeTimeoutError,
)


def compute_delay(backoff: str, attempt: int, base_delay: float, max_delay: float) -> float:
    """Delay before retry number ``attempt`` (1-based)."""
    if backoff == "exponential":
        return min(base_delay * (2 ** (attempt - 1)), max_delay)
    if backoff == "linear":
        return min(base_delay * attempt, max_delay)
    return base_delay


def retry_decorator(
    max_attempts: int = 3,
    backoff: str = "fixed",
    base_delay: float = 5.0,
    max_delay: float = 30.0,
    exceptions: Optional[Tuple[Type[Exception], ...]] = None,
    rate_limit_exceptions: Tuple[Type[Exception], ...] = (RateLimitErrorRest,),
    logger: Optional[Any] = None,
):
    """
    Configurable retry decorator for async REST requests.

    Args:
        max_attempts: Total attempts including the first call
        backoff: "exponential", "linear" or "fixed"
        base_delay: Base delay in seconds
        max_delay: Maximum delay cap in seconds
        exceptions: Network/server exceptions to retry
        rate_limit_exceptions: Rate limit exceptions; ``retry_after`` wins over the backoff
        logger: Logger for retry notices (stdlib module logger by default)

    Returns:
        Decorated async function with retry logic
    """
    if exceptions is None:
        exceptions = DEFAULT_RETRY_EXCEPTIONS
    log = logger or logging.getLogger(__name__)

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except rate_limit_exceptions as e:
                    if attempt == max_attempts:
                        raise
                    retry_after = getattr(e, "retry_after", None)
                    delay = float(retry_after) if retry_after else compute_delay(backoff, attempt, base_delay, max_delay)
                    log.warning(f"Rate limit hit on attempt {attempt}, waiting {delay}s")
                    await asyncio.sleep(delay)
                except exceptions as e:
                    if attempt == max_attempts:
                        raise
                    delay = compute_delay(backoff, attempt, base_delay, max_delay)
                    log.warning(f"Request failed on attempt {attempt}, retrying in {delay}s: {e}")
                    await asyncio.sleep(delay)
            raise RuntimeError("retry_decorator requires max_attempts >= 1")

        return wrapper
    return decorator
