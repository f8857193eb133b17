"""Exponential backoff delay calculator."""

from expobackoff.domain.backoff import (
    DEFAULT_FACTOR,
    DEFAULT_INTERVAL,
    DEFAULT_JITTER,
    DEFAULT_MAX,
    MAX_DELAY,
    Exponential,
    ExponentialBackoffBuilder,
    InvalidArgumentError,
)

__version__ = "0.1.0"
__all__ = [
    "DEFAULT_FACTOR",
    "DEFAULT_INTERVAL",
    "DEFAULT_JITTER",
    "DEFAULT_MAX",
    "MAX_DELAY",
    "Exponential",
    "ExponentialBackoffBuilder",
    "InvalidArgumentError",
]
