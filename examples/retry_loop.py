"""Sample retry loop driven by an Exponential backoff."""

import logging
import random
import time
from datetime import timedelta

from expobackoff import ExponentialBackoffBuilder

logger = logging.getLogger(__name__)


def unreliable() -> str:
    if random.random() < 0.7:
        raise ConnectionError("service unavailable")
    return "ok"


def main(max_attempts: int = 6) -> str:
    backoff = (
        ExponentialBackoffBuilder()
        .factor(1.75)
        .interval(timedelta(milliseconds=500))
        .jitter(timedelta(milliseconds=150))
        .max(timedelta(seconds=5))
        .build()
    )
    for attempt in range(max_attempts):
        try:
            return unreliable()
        except ConnectionError as e:
            if attempt == max_attempts - 1:
                raise
            delay = backoff.seconds(attempt)
            logger.warning(f"Attempt {attempt + 1} failed: {e}. Retrying in {delay:.2f}s")
            time.sleep(delay)
    raise RuntimeError("unreachable")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    print(main())
