"""
Retry mechanism for resilient operations.
"""

import asyncio
import random
from typing import Any, Optional, Callable, Awaitable, Tuple, Type

from shared.logging import get_logger


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(self,
                 max_attempts: int = 3,
                 base_delay: float = 1.0,
                 max_delay: float = 60.0,
                 exponential_base: float = 2.0,
                 jitter: bool = True,
                 backoff_strategy: str = "exponential"):
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter
        self.backoff_strategy = backoff_strategy


async def call_with_retry(func: Callable[..., Awaitable[Any]],
                          *args,
                          exceptions: Tuple[Type[BaseException], ...] = (Exception,),
                          config: Optional[RetryConfig] = None,
                          should_retry: Optional[Callable[[BaseException], bool]] = None,
                          **kwargs) -> Any:
    """Await ``func`` until it succeeds or the attempts are used up.

    Only exceptions matching ``exceptions`` (and accepted by ``should_retry``,
    when given) are retried. The last exception is re-raised unchanged so
    callers keep its type and classification.
    """
    if config is None:
        config = RetryConfig()

    name = getattr(func, "__name__", "call")
    logger = get_logger(f"retry.{name}")

    for attempt in range(1, config.max_attempts + 1):
        try:
            result = await func(*args, **kwargs)
            if attempt > 1:
                logger.info("Retry succeeded", attempt=attempt, function=name)
            return result

        except exceptions as e:
            retryable = should_retry(e) if should_retry else True
            if not retryable or attempt == config.max_attempts:
                if retryable and config.max_attempts > 1:
                    logger.error(
                        "All retry attempts exhausted",
                        attempt=attempt,
                        max_attempts=config.max_attempts,
                        function=name,
                        error=str(e)
                    )
                raise

            delay = _calculate_delay(attempt, config)
            logger.warning(
                "Retry attempt failed, waiting before next attempt",
                attempt=attempt,
                delay=delay,
                function=name,
                error=str(e)
            )
            await asyncio.sleep(delay)

    raise ValueError("max_attempts must be at least 1")


def _calculate_delay(attempt: int, config: RetryConfig) -> float:
    """Calculate delay between retry attempts."""
    if config.backoff_strategy == "exponential":
        delay = config.base_delay * (config.exponential_base ** (attempt - 1))
    elif config.backoff_strategy == "linear":
        delay = config.base_delay * attempt
    else:
        delay = config.base_delay

    delay = min(delay, config.max_delay)

    if config.jitter:
        jitter_amount = delay * 0.1  # 10% jitter
        delay += random.uniform(-jitter_amount, jitter_amount)

    return max(0.0, delay)
