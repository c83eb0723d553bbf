"""Main application configuration model."""

from pydantic import BaseModel, ConfigDict, Field

from wxretry.domain.config.retry import RetrySettings
from wxretry.domain.config.transport import HttpSettings


class AppConfig(BaseModel):
    """Main application configuration.

    Validation is performed at load time to fail fast on configuration errors.

    Attributes:
        retry: Retry logic configuration
        http: HTTP transport configuration
    """

    retry: RetrySettings = Field(default_factory=RetrySettings)
    http: HttpSettings = Field(default_factory=HttpSettings)

    model_config = ConfigDict(
        validate_assignment=True,  # Validate on attribute assignment
        extra="forbid",  # Reject unknown fields
        json_schema_extra={
            "example": {
                "retry": {
                    "max_attempts": 3,
                    "backoff": 1.0,
                    "max_jitter": 1.0,
                },
                "http": {
                    "timeout": 60.0,
                },
            }
        },
    )
