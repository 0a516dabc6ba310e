"""
Retry policies for failed publishes.
"""

import math
from dataclasses import dataclass
from typing import Optional

from .config import KafkaClientConfig


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """
    Decides whether a failed publish is retried and how long to wait first.

    The default retries forever at a fixed interval. ``max_attempts`` bounds
    the number of publish attempts and ``backoff_multiplier`` grows the wait
    after every failure up to ``max_interval``.
    """

    interval: float
    max_attempts: Optional[int] = None
    backoff_multiplier: float = 1.0
    max_interval: float = 30.0

    @classmethod
    def from_config(cls, config: KafkaClientConfig) -> "RetryPolicy":
        return cls(
            interval=config.publish_retry_interval_sec,
            max_attempts=config.retry_max_attempts,
            backoff_multiplier=config.retry_backoff_multiplier,
            max_interval=config.retry_max_interval_sec,
        )

    def should_retry(self, attempt: int) -> bool:
        """``attempt`` is the number of publish attempts already made."""
        return self.max_attempts is None or attempt < self.max_attempts

    def delay(self, attempt: int) -> float:
        """Seconds to sleep before the next attempt after ``attempt`` failures."""
        if self.backoff_multiplier <= 1.0:
            return self.interval
        cap = max(self.max_interval, self.interval)
        exponent = max(attempt - 1, 0)
        # stop growing once the cap is reached, large powers overflow
        if exponent >= math.log(cap / self.interval, self.backoff_multiplier):
            return cap
        return min(self.interval * self.backoff_multiplier ** exponent, cap)
