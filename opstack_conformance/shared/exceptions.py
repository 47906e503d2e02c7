"""
Exception hierarchy for the OP Stack conformance checker.

Exception Categories:
- RetryableException: Transient failures that may succeed on retry (RPC, network)
- NonRetryableException: Permanent failures that won't benefit from retry
- ConfigurationException: Startup/config errors that prevent operation

Concrete exceptions:
- DataUnavailableException -> RetryableException (chain data source failures)
- ConformanceMismatchException -> NonRetryableException (computed != observed)
"""

from typing import Any, Optional


class RetryableException(Exception):
    """
    Base class for exceptions that may succeed on retry.

    Use for transient failures like:
    - RPC timeouts
    - Rate limiting
    - Temporary network issues
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NonRetryableException(Exception):
    """
    Base class for exceptions that won't benefit from retry.

    Use for permanent failures like:
    - Invalid input data
    - A node producing values that don't match a rule variant
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationException(NonRetryableException):
    """
    Exception for configuration/startup errors.

    Use when:
    - The RPC endpoint is missing or malformed
    - Invalid elasticity or block number settings
    """

    pass


class DataUnavailableException(RetryableException):
    """
    Exception for chain data source failures.

    Raised when a block or its receipts cannot be fetched. A check that
    hits this is inconclusive, never a conformance failure.
    """

    def __init__(self, message: str, height: Optional[int] = None):
        super().__init__(message)
        self.height = height


class ConformanceMismatchException(NonRetryableException):
    """
    Exception for a computed value that differs from what the chain produced.

    Attributes:
        check: Property that was checked ("receipts_root" or "base_fee")
        variant: Rule variant the expected value was computed under
        expected: Value computed locally
        observed: Value reported by the chain
    """

    def __init__(
        self,
        check: str,
        variant: Any,
        expected: Any,
        observed: Any,
        height: Optional[int] = None,
    ):
        self.check = check
        self.variant = variant
        self.expected = expected
        self.observed = observed
        self.height = height
        variant_name = getattr(variant, "label", variant)
        at = f" at block {height}" if height is not None else ""
        super().__init__(
            f"{check} does not look correct as {variant_name}{at}. "
            f"have: {_display(observed)}, want: {_display(expected)}"
        )


def _display(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    return str(value)
