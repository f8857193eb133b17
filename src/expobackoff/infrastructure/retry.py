"""tenacity integration for backoff calculators.

Lets an Exponential drive the waits of a tenacity retry loop:

    @retry(wait=wait_exponential_backoff(backoff), stop=stop_after_attempt(5))
    def call():
        ...

tenacity still owns the loop (sleeping, stopping, retry conditions); this
module only answers how long to sleep.
"""

from __future__ import annotations

import logging

from tenacity import RetryCallState
from tenacity.wait import wait_base

from expobackoff.domain.backoff import Exponential

logger = logging.getLogger(__name__)


class wait_exponential_backoff(wait_base):
    """Wait strategy delegating to Exponential.seconds().

    tenacity numbers attempts from 1, so the wait after the first failed call
    uses attempt index 0 (the base interval).
    """

    def __init__(self, backoff: Exponential) -> None:
        self.backoff = backoff

    def __call__(self, retry_state: RetryCallState) -> float:
        attempt = max(retry_state.attempt_number - 1, 0)
        delay = self.backoff.seconds(attempt)
        logger.debug(f"Backoff before retry {retry_state.attempt_number + 1}: {delay:.3f}s")
        return delay
