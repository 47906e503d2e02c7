"""
Retry utilities for handling transient failures.

This module provides utilities for retrying operations
with configurable backoff strategies. Only the chain data source uses
them; the conformance checks themselves never retry.

Exception Handling:
- By default, retries on RetryableException and network/RPC errors
- NonRetryableException is never retried (propagates immediately)
- Exceptions listed in giveup_exceptions propagate immediately even if
  they subclass a retryable type (e.g. BlockNotFound is a Web3Exception)
"""

import logging
import time
from typing import Any, Callable, Optional, Tuple, Type, TypeVar

from web3.exceptions import (
    BlockNotFound,
    TransactionNotFound,
    Web3Exception,
)

from opstack_conformance.shared.constants import GlobalConstants
from opstack_conformance.shared.exceptions import RetryableException

T = TypeVar("T")

logger = logging.getLogger(__name__)

# Network/RPC related exceptions plus the RetryableException hierarchy
DEFAULT_RETRYABLE_EXCEPTIONS: Tuple[Type[Exception], ...] = (
    RetryableException,
    ConnectionError,
    TimeoutError,
    OSError,  # requests exceptions derive from IOError
    Web3Exception,
)

# Unknown heights/hashes won't appear by asking again
DEFAULT_GIVEUP_EXCEPTIONS: Tuple[Type[Exception], ...] = (
    BlockNotFound,
    TransactionNotFound,
)


def _compute_delay(
    attempt: int, base_delay: float, max_delay: float, exponential: bool
) -> float:
    if exponential:
        return min(base_delay * (2**attempt), max_delay)
    return base_delay


def retry_sync_operation(
    operation: Callable[..., T],
    *args: Any,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    exponential: bool = True,
    retryable_exceptions: Optional[Tuple[Type[Exception], ...]] = None,
    giveup_exceptions: Optional[Tuple[Type[Exception], ...]] = None,
    on_retry: Optional[Callable[[Exception, int], None]] = None,
    operation_name: Optional[str] = None,
    **kwargs: Any,
) -> T:
    """
    Retry a synchronous operation with configurable backoff.

    Example:
        retry_sync_operation(w3.eth.get_block, 42, max_attempts=3)

    Args:
        operation: Function to call
        *args: Positional arguments for the operation
        max_attempts: Maximum attempts
        base_delay: Initial delay between retries
        max_delay: Maximum delay between retries
        exponential: Use exponential backoff
        retryable_exceptions: Exception types to retry on
        giveup_exceptions: Exception types that propagate immediately
        on_retry: Optional callback called on each retry with (exception, attempt)
        operation_name: Optional name for logging
        **kwargs: Keyword arguments for the operation

    Returns:
        Result of the operation
    """
    if retryable_exceptions is None:
        retryable_exceptions = DEFAULT_RETRYABLE_EXCEPTIONS
    if giveup_exceptions is None:
        giveup_exceptions = DEFAULT_GIVEUP_EXCEPTIONS

    name = operation_name or getattr(operation, "__name__", "operation")
    last_exception: Optional[Exception] = None

    for attempt in range(max_attempts):
        try:
            return operation(*args, **kwargs)
        except giveup_exceptions:
            raise
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

                if on_retry:
                    on_retry(e, attempt + 1)

                time.sleep(delay)

    if last_exception:
        raise last_exception
    raise RuntimeError(
        "Unexpected state: no exception but all attempts exhausted"
    )


class RetryConfig:
    """
    Configuration class for retry behavior.

    Can be used to share retry settings across multiple operations.
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

    def call(self, operation: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run a single operation under this config."""
        return retry_sync_operation(
            operation,
            *args,
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            max_delay=self.max_delay,
            exponential=self.exponential,
            retryable_exceptions=self.retryable_exceptions,
            **kwargs,
        )


# Dial backoff for the chain data source
RPC_RETRY_CONFIG = RetryConfig(
    max_attempts=GlobalConstants.RPC_MAX_ATTEMPTS,
    base_delay=0.5,
    max_delay=10.0,
    exponential=True,
)
