"""
Backoff - Capped exponential delays between read attempts.
"""

from dataclasses import dataclass
from typing import Iterator


@dataclass(frozen=True)
class BackoffPolicy:
    """Delay schedule for one resource kind."""

    initial_delay: float = 1.0  # seconds
    max_delay: float = 10.0  # seconds
    settle_delay: float = 0.0  # one-time wait before the first attempt

    def __post_init__(self):
        if self.initial_delay < 0 or self.max_delay < 0 or self.settle_delay < 0:
            raise ValueError("Backoff delays must not be negative")

    def initial(self) -> float:
        """First delay, clamped to the cap."""
        return min(self.initial_delay, self.max_delay)

    def next_delay(self, current: float) -> float:
        """Double the current delay, clamped to the cap."""
        return min(current * 2, self.max_delay)

    def delays(self, max_attempts: int) -> Iterator[float]:
        """
        Yield the sleeps taken between max_attempts attempts.

        There is no sleep after the final attempt, so exactly
        max_attempts - 1 values are produced.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        delay = self.initial()
        for _ in range(max_attempts - 1):
            yield delay
            delay = self.next_delay(delay)

    def worst_case(self, max_attempts: int) -> float:
        """Total time spent sleeping if every attempt fails."""
        return self.settle_delay + sum(self.delays(max_attempts))
