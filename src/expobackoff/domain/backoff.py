"""Exponential backoff calculator.

Configure once with ExponentialBackoffBuilder, then ask the resulting
Exponential instance how long to wait before each attempt:

    bo = (
        ExponentialBackoffBuilder()
        .factor(1.75)
        .interval(timedelta(milliseconds=500))
        .jitter(timedelta(milliseconds=150))
        .max(timedelta(seconds=5))
        .build()
    )
    for attempt in range(6):
        print(bo.duration(attempt))

Jitter is added after the ceiling is applied, so a delay may exceed max by up
to jitter. Call jitter_within_max() on the builder to clamp after jitter
instead.
"""

from __future__ import annotations

import logging
import math
import operator
import random
from dataclasses import dataclass
from datetime import timedelta
from numbers import Real
from typing import TYPE_CHECKING, List, Optional, Protocol, Union

if TYPE_CHECKING:
    from expobackoff.domain.config.backoff import BackoffConfig

logger = logging.getLogger(__name__)

DEFAULT_FACTOR = 1.75
DEFAULT_INTERVAL = timedelta(milliseconds=500)
DEFAULT_JITTER = timedelta(milliseconds=150)
DEFAULT_MAX = timedelta(seconds=60)

# Largest whole-day timedelta; float seconds above it cannot be converted back.
MAX_DELAY = timedelta(days=timedelta.max.days)
_MAX_SECONDS = MAX_DELAY.total_seconds()

Span = Union[timedelta, float, int]


class InvalidArgumentError(ValueError):
    """Raised when an attempt index is negative."""

    pass


class RandomSource(Protocol):
    def uniform(self, a: float, b: float) -> float: ...


def _span_to_seconds(name: str, value: Span) -> float:
    """Convert a timedelta or a real number of seconds to float seconds."""
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, Real) and not isinstance(value, bool):
        return _to_float(value)
    raise TypeError(f"{name} must be a timedelta or a number of seconds, got {type(value).__name__}")


def _to_float(value: Real) -> float:
    try:
        return float(value)
    except OverflowError:
        # integers beyond float range
        return math.inf if value > 0 else -math.inf


def _normalize_span(name: str, seconds: float) -> float:
    if math.isnan(seconds) or seconds < 0:
        logger.warning(f"Backoff {name} {seconds!r} is negative or NaN, using 0")
        return 0.0
    if seconds > _MAX_SECONDS:
        logger.warning(f"Backoff {name} {seconds!r}s exceeds the largest representable delay, saturating")
        return _MAX_SECONDS
    return seconds


class ExponentialBackoffBuilder:
    """Collects backoff settings and builds an immutable Exponential.

    Every setter returns the builder so calls can be chained. Unset values
    fall back to DEFAULT_FACTOR, DEFAULT_INTERVAL, DEFAULT_JITTER and
    DEFAULT_MAX. build() never fails: degenerate values are normalized
    (negative spans become zero, a non-finite factor falls back to the
    default) and a warning is logged.
    """

    def __init__(self) -> None:
        self._factor: float = DEFAULT_FACTOR
        self._interval: float = DEFAULT_INTERVAL.total_seconds()
        self._jitter: float = DEFAULT_JITTER.total_seconds()
        self._max: Optional[float] = DEFAULT_MAX.total_seconds()
        self._jitter_within_max = False
        self._rng: Optional[RandomSource] = None

    @classmethod
    def from_config(cls, config: "BackoffConfig") -> "ExponentialBackoffBuilder":
        """Create a builder seeded from a validated BackoffConfig."""
        builder = (
            cls()
            .factor(config.factor)
            .interval(config.interval)
            .jitter(config.jitter)
            .max(config.max)
        )
        return builder.jitter_within_max(config.jitter_within_max)

    def factor(self, factor: float) -> "ExponentialBackoffBuilder":
        """Set the growth factor applied per attempt."""
        if not isinstance(factor, Real) or isinstance(factor, bool):
            raise TypeError(f"factor must be a number, got {type(factor).__name__}")
        self._factor = _to_float(factor)
        return self

    def interval(self, interval: Span) -> "ExponentialBackoffBuilder":
        """Set the base delay used for attempt 0."""
        self._interval = _span_to_seconds("interval", interval)
        return self

    def jitter(self, jitter: Span) -> "ExponentialBackoffBuilder":
        """Set the maximum random delay added on top of the computed one."""
        self._jitter = _span_to_seconds("jitter", jitter)
        return self

    def max(self, max: Optional[Span]) -> "ExponentialBackoffBuilder":
        """Set the ceiling on the computed delay. None removes the ceiling."""
        self._max = None if max is None else _span_to_seconds("max", max)
        return self

    def jitter_within_max(self, enabled: bool = True) -> "ExponentialBackoffBuilder":
        """Clamp to max after adding jitter, so delays never exceed max."""
        self._jitter_within_max = bool(enabled)
        return self

    def rng(self, rng: Optional[RandomSource]) -> "ExponentialBackoffBuilder":
        """Use a specific random source for jitter (None for the random module)."""
        self._rng = rng
        return self

    def build(self) -> "Exponential":
        """Finalize the configuration.

        Returns:
            Exponential instance ready for duration() queries
        """
        return Exponential(
            factor=self._factor,
            interval=self._interval,
            jitter=self._jitter,
            max=self._max,
            jitter_within_max=self._jitter_within_max,
            rng=self._rng,
        )


@dataclass(frozen=True)
class Exponential:
    """Exponential backoff delays: interval * factor ** attempt, capped at max.

    Spans are stored as float seconds. Instances hold no mutable state and can
    be shared between threads. When rng is None jitter is drawn from the
    process-wide random module generator. Degenerate values are normalized on
    construction: negative or NaN spans become 0, spans above MAX_DELAY
    saturate and a non-finite factor falls back to DEFAULT_FACTOR.

    Attributes:
        factor: Growth multiplier per attempt
        interval: Delay for attempt 0 in seconds
        jitter: Upper bound of the uniform random delay added, in seconds
        max: Ceiling in seconds, or None for no ceiling below MAX_DELAY
        jitter_within_max: Clamp to max after adding jitter
        rng: Random source for jitter
    """

    factor: float = DEFAULT_FACTOR
    interval: float = DEFAULT_INTERVAL.total_seconds()
    jitter: float = DEFAULT_JITTER.total_seconds()
    max: Optional[float] = DEFAULT_MAX.total_seconds()
    jitter_within_max: bool = False
    rng: Optional[RandomSource] = None

    def __post_init__(self) -> None:
        factor = _to_float(self.factor)
        if not math.isfinite(factor):
            logger.warning(f"Backoff factor {factor!r} is not finite, using {DEFAULT_FACTOR}")
            factor = DEFAULT_FACTOR
        object.__setattr__(self, "factor", float(factor))
        object.__setattr__(self, "interval", _normalize_span("interval", _to_float(self.interval)))
        object.__setattr__(self, "jitter", _normalize_span("jitter", _to_float(self.jitter)))
        if self.max is not None:
            object.__setattr__(self, "max", _normalize_span("max", _to_float(self.max)))

    @property
    def ceiling(self) -> float:
        """Effective ceiling in seconds."""
        if self.max is None:
            return _MAX_SECONDS
        return min(self.max, _MAX_SECONDS)

    def _scale(self, attempt: int) -> float:
        try:
            return self.factor**attempt
        except OverflowError:
            # attempt too large for float, or the power itself overflowed
            base = abs(self.factor)
            magnitude = math.inf if base > 1 else (1.0 if base == 1 else 0.0)
            return -magnitude if self.factor < 0 and attempt % 2 else magnitude

    def _nominal_seconds(self, attempt: int) -> float:
        if isinstance(attempt, bool):
            raise TypeError("attempt must be an integer, got bool")
        attempt = operator.index(attempt)
        if attempt < 0:
            raise InvalidArgumentError(f"attempt must be >= 0, got {attempt}")

        scale = self._scale(attempt)
        if self.interval == 0 or scale == 0:
            return 0.0
        return min(max(self.interval * scale, 0.0), self.ceiling)

    def seconds(self, attempt: int) -> float:
        """Delay before the given attempt, in seconds.

        Args:
            attempt: Zero-based attempt index

        Returns:
            Delay in seconds, including jitter

        Raises:
            InvalidArgumentError: If attempt is negative
            TypeError: If attempt is not an integer
        """
        delay = self._nominal_seconds(attempt)
        if self.jitter > 0:
            rng = self.rng if self.rng is not None else random
            delay += rng.uniform(0.0, self.jitter)

        limit = self.ceiling if self.jitter_within_max else _MAX_SECONDS
        return min(delay, limit)

    def duration(self, attempt: int) -> timedelta:
        """Delay before the given attempt as a timedelta."""
        return timedelta(seconds=self.seconds(attempt))

    def nominal(self, attempt: int) -> timedelta:
        """Clamped delay before the given attempt, without jitter."""
        return timedelta(seconds=self._nominal_seconds(attempt))

    def schedule(self, attempts: int) -> List[timedelta]:
        """Delays for attempts 0 .. attempts - 1."""
        return [self.duration(attempt) for attempt in range(attempts)]
