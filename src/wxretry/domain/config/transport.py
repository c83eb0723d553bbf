"""HTTP transport configuration model."""

from pydantic import BaseModel, Field


class HttpSettings(BaseModel):
    """Configuration for the underlying HTTP session.

    Attributes:
        timeout: Per-attempt request timeout in seconds
    """

    timeout: float = Field(60.0, gt=0.0)
