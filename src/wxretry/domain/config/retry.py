"""Retry configuration model."""

from pydantic import BaseModel, Field


class RetrySettings(BaseModel):
    """Configuration for retry logic.

    Attributes:
        max_attempts: Number of attempts, including the first one
        backoff: Base delay between attempts in seconds
        max_jitter: Upper bound of the random delay added to backoff (0 disables)
    """

    max_attempts: int = Field(3, gt=0)
    backoff: float = Field(1.0, ge=0.0)  # Allow 0 for tests
    max_jitter: float = Field(1.0, ge=0.0)
