"""
Retry utilities for handling oracle throttling.

Retries are transport-level only: throttling and timeout errors from
AWS Bedrock are retried with exponential backoff, everything else
propagates on the first failure.
"""
import asyncio
import functools
import logging
import random
from typing import Callable, Optional, Set, TypeVar

from app.core.extraction.llm_config import LLM_SETTINGS

logger = logging.getLogger(__name__)

T = TypeVar("T")


# Throttling and timeout errors from AWS Bedrock / botocore
BEDROCK_RETRYABLE_ERRORS = {
    "ThrottlingException",
    "ServiceUnavailableException",
    "ModelTimeoutException",
    "ProvisionedThroughputExceededException",
    "ReadTimeoutError",  # botocore timeout
    "ConnectTimeoutError",  # botocore timeout
}

THROTTLE_INDICATORS = ("throttl", "rate limit", "too many requests")


def is_retryable_error(error: Exception, retryable_types: Optional[Set[str]] = None) -> bool:
    """
    Check if an error is a throttling-type error worth retrying.

    Args:
        error: The exception to check
        retryable_types: Set of error type names to retry (defaults to BEDROCK_RETRYABLE_ERRORS)

    Returns:
        True if error should be retried
    """
    if retryable_types is None:
        retryable_types = BEDROCK_RETRYABLE_ERRORS

    if type(error).__name__ in retryable_types:
        return True

    error_str = str(error).lower()
    if any(indicator in error_str for indicator in THROTTLE_INDICATORS):
        return True

    # botocore ClientError carries the service error code
    response = getattr(error, "response", None)
    if isinstance(response, dict):
        error_code = response.get("Error", {}).get("Code", "")
        if error_code in retryable_types:
            return True

    # Adapters wrap provider errors in LLMError
    cause = error.__cause__
    if cause is not None and cause is not error:
        return is_retryable_error(cause, retryable_types)

    return False


async def retry_with_backoff(
    func: Callable[..., T],
    *args,
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True,
    retryable_check: Optional[Callable[[Exception], bool]] = None,
    **kwargs
) -> T:
    """
    Execute function with exponential backoff retry.

    Args:
        func: Async or sync function to execute
        *args: Positional arguments for func
        max_retries: Maximum number of retry attempts
        base_delay: Initial delay in seconds
        max_delay: Maximum delay between retries
        exponential_base: Base for exponential backoff calculation
        jitter: Add random jitter to the delay
        retryable_check: Custom function to check if error is retryable
        **kwargs: Keyword arguments for func

    Returns:
        Result of func

    Raises:
        Last exception if all retries exhausted or the error is not retryable
    """
    if retryable_check is None:
        retryable_check = is_retryable_error

    for attempt in range(max_retries + 1):
        try:
            if asyncio.iscoroutinefunction(func):
                return await func(*args, **kwargs)
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(
                None, functools.partial(func, *args, **kwargs)
            )

        except Exception as e:
            if not retryable_check(e):
                raise
            if attempt >= max_retries:
                logger.error(f"Retry exhausted after {attempt + 1} attempts: {e}")
                raise

            delay = min(base_delay * (exponential_base ** attempt), max_delay)
            if jitter:
                delay = delay * (1 + random.random() * 0.5)

            logger.warning(
                f"Retry attempt {attempt + 1}/{max_retries} after {delay:.1f}s: {e}"
            )
            await asyncio.sleep(delay)


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        exponential_base: float = 2.0,
        jitter: bool = True,
    ):
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter

    @classmethod
    def for_bedrock(cls) -> "RetryConfig":
        """Standard retry config for AWS Bedrock API calls."""
        return cls(
            max_retries=LLM_SETTINGS.max_retries,
            base_delay=LLM_SETTINGS.base_delay,
            max_delay=LLM_SETTINGS.max_delay,
            exponential_base=2.0,
            jitter=True,
        )

    @classmethod
    def disabled(cls) -> "RetryConfig":
        """No retries; used by tests and offline tools."""
        return cls(max_retries=0, base_delay=0.0, max_delay=0.0, jitter=False)
