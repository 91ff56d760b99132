"""
Retry utilities for handling transient failures.

The distribution core fails fast on every external call; retrying belongs
to the invocation trigger. This module gives triggers (the CLI, schedulers)
a single way to re-run a whole period with backoff.

Exception Handling:
- By default, retries on RetryableException and its subclasses
- NonRetryableException is never retried (propagates immediately)
- Can customize retryable_exceptions per operation
"""

import asyncio
import logging
from typing import Any, Callable, Optional, Tuple, Type, TypeVar

import httpx
from web3.exceptions import TransactionNotFound, Web3Exception

from bribe_distributor.shared.exceptions import RetryableException

T = TypeVar("T")

logger = logging.getLogger(__name__)

# Default retryable exceptions (network/RPC related + RetryableException hierarchy)
DEFAULT_RETRYABLE_EXCEPTIONS: Tuple[Type[Exception], ...] = (
    RetryableException,  # Includes SubgraphException, BribeApiException, ChainException
    httpx.TransportError,
    ConnectionError,
    TimeoutError,
    Web3Exception,
    TransactionNotFound,
)


def _compute_delay(
    attempt: int, base_delay: float, max_delay: float, exponential: bool
) -> float:
    if exponential:
        return min(base_delay * (2**attempt), max_delay)
    return base_delay


async def retry_async_operation(
    operation: Callable[..., T],
    *args: Any,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    exponential: bool = True,
    retryable_exceptions: Optional[Tuple[Type[Exception], ...]] = None,
    operation_name: Optional[str] = None,
    **kwargs: Any,
) -> T:
    """
    Retry an async operation with configurable backoff.

    Args:
        operation: Async function to call
        *args: Positional arguments for the operation
        max_attempts: Maximum retry attempts
        base_delay: Initial delay between retries
        max_delay: Maximum delay between retries
        exponential: Use exponential backoff
        retryable_exceptions: Exception types to retry on
        operation_name: Optional name for logging
        **kwargs: Keyword arguments for the operation

    Returns:
        Result of the operation

    Example:
        outcome = await retry_async_operation(
            controller.process,
            deadline,
            max_attempts=3,
            operation_name="process_celo",
        )
    """
    if retryable_exceptions is None:
        retryable_exceptions = DEFAULT_RETRYABLE_EXCEPTIONS

    name = operation_name or getattr(operation, "__name__", "operation")
    last_exception: Optional[Exception] = None

    for attempt in range(max_attempts):
        try:
            return await operation(*args, **kwargs)
        except retryable_exceptions as e:
            last_exception = e

            if attempt < max_attempts - 1:
                delay = _compute_delay(
                    attempt, base_delay, max_delay, exponential
                )
                logger.warning(
                    f"Attempt {attempt + 1}/{max_attempts} failed for "
                    f"{name}: {e}. Retrying in {delay:.1f}s..."
                )
                await asyncio.sleep(delay)

    if last_exception:
        raise last_exception
    raise RuntimeError(
        "Unexpected state: no exception but all attempts exhausted"
    )


class RetryConfig:
    """
    Configuration class for retry behavior.

    Can be used to share retry settings across multiple triggers.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        exponential: bool = True,
        retryable_exceptions: Optional[Tuple[Type[Exception], ...]] = None,
    ):
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential = exponential
        self.retryable_exceptions = (
            retryable_exceptions or DEFAULT_RETRYABLE_EXCEPTIONS
        )

    async def run(
        self,
        operation: Callable[..., T],
        *args: Any,
        operation_name: Optional[str] = None,
        **kwargs: Any,
    ) -> T:
        """Run ``operation`` with this config's retry settings."""
        return await retry_async_operation(
            operation,
            *args,
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            max_delay=self.max_delay,
            exponential=self.exponential,
            retryable_exceptions=self.retryable_exceptions,
            operation_name=operation_name,
            **kwargs,
        )


# Pre-configured retry config for period triggers
TRIGGER_RETRY_CONFIG = RetryConfig(
    max_attempts=3,
    base_delay=5.0,
    max_delay=60.0,
    exponential=True,
)
