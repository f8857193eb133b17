"""Configuration models with Pydantic validation."""

from expobackoff.domain.config.app import AppConfig
from expobackoff.domain.config.backoff import BackoffConfig

__all__ = [
    "AppConfig",
    "BackoffConfig",
]
