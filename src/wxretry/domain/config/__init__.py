"""Configuration models with Pydantic validation."""

from wxretry.domain.config.app import AppConfig
from wxretry.domain.config.retry import RetrySettings
from wxretry.domain.config.transport import HttpSettings

__all__ = [
    "AppConfig",
    "HttpSettings",
    "RetrySettings",
]
