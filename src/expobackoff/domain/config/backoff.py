"""Backoff configuration model."""

from datetime import timedelta
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BackoffConfig(BaseModel):
    """Configuration for exponential backoff delays.

    Spans accept seconds (int/float) or ISO 8601 durations such as "PT0.5S".

    Attributes:
        factor: Growth multiplier applied per attempt
        interval: Base delay for the first attempt
        jitter: Maximum random delay added (0 disables jitter)
        max: Ceiling on the computed delay (None = no ceiling)
        jitter_within_max: Clamp to max after adding jitter
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    factor: float = Field(1.75, allow_inf_nan=False)
    interval: timedelta = timedelta(milliseconds=500)
    jitter: timedelta = timedelta(milliseconds=150)
    max: Optional[timedelta] = timedelta(seconds=60)
    jitter_within_max: bool = False

    @field_validator("interval", "jitter", "max")
    @classmethod
    def _non_negative(cls, value: Optional[timedelta]) -> Optional[timedelta]:
        if value is not None and value < timedelta(0):
            raise ValueError("must be a non-negative duration")
        return value
