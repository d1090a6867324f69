"""
Retry strategies for fallible external collaborators.

Implements exponential backoff via tenacity for the cross-validation backends.
"""

import logging
from typing import Optional

from tenacity import (
    after_log,
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from metaengine.errors import ExternalValidationError
from metaengine.models import ValidationConfig

logger = logging.getLogger(__name__)


class RetryConfig:
    """Configuration for retry strategies."""

    def __init__(
        self,
        max_attempts: int = 3,
        initial_delay: float = 0.5,
        max_delay: float = 10.0,
        retryable_exceptions: tuple = (ExternalValidationError,),
    ):
        """
        Initialize retry configuration.

        Args:
            max_attempts: Maximum number of attempts, including the first
            initial_delay: Initial delay in seconds
            max_delay: Maximum delay in seconds
            retryable_exceptions: Tuple of exceptions that should trigger retry
        """
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.retryable_exceptions = retryable_exceptions

    @classmethod
    def from_validation_config(cls, config: ValidationConfig) -> "RetryConfig":
        return cls(
            max_attempts=config.max_attempts,
            initial_delay=config.initial_delay,
            max_delay=config.max_delay,
        )


def create_retry_decorator(config: Optional[RetryConfig] = None):
    """
    Create a tenacity retry decorator from a RetryConfig.

    Args:
        config: Retry configuration (uses defaults if None)

    Returns:
        Retry decorator that re-raises the last exception
    """
    if config is None:
        config = RetryConfig()

    return retry(
        stop=stop_after_attempt(config.max_attempts),
        wait=wait_exponential(
            multiplier=config.initial_delay,
            min=config.initial_delay,
            max=config.max_delay,
        ),
        retry=retry_if_exception_type(config.retryable_exceptions),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        after=after_log(logger, logging.INFO),
        reraise=True,
    )


VALIDATOR_RETRY_CONFIG = RetryConfig(
    max_attempts=3,
    initial_delay=0.5,
    max_delay=10.0,
    retryable_exceptions=(ExternalValidationError,),
)
