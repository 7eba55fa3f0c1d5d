"""Exponential backoff with jitter for poll loops.

Two parameter sets share one algorithm: the generic policy used between
status probes and a more patient network policy used when the last failure
looked like a connectivity problem.

    wait = min_wait * 2**attempt, clamped to max_wait, then +/- 10% jitter
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass

JITTER_COEFFICIENT = 0.1


@dataclass(frozen=True, slots=True)
class BackoffPolicy:
    """Immutable backoff parameters. Durations are seconds."""

    min_wait: float
    max_wait: float
    jitter_coefficient: float = JITTER_COEFFICIENT

    def __post_init__(self) -> None:
        if self.min_wait < 0:
            raise ValueError('min_wait must be >= 0')
        if self.max_wait < self.min_wait:
            raise ValueError('max_wait must be >= min_wait')
        if not 0 <= self.jitter_coefficient < 1:
            raise ValueError('jitter_coefficient must be in [0, 1)')

    def base_delay(self, attempt: int) -> float:
        """Un-jittered delay for ``attempt``, clamped to ``max_wait``."""
        exponent = max(attempt, 0)
        try:
            wait = self.min_wait * math.pow(2, exponent)
        except OverflowError:
            return self.max_wait
        return min(wait, self.max_wait)

    def delay(self, attempt: int, *, rng: random.Random | None = None) -> float:
        """Jittered delay in seconds before the attempt after ``attempt``.

        The clamp is applied before jitter, so the result never exceeds
        ``max_wait * (1 + jitter_coefficient)`` and is never negative.
        """
        wait = self.base_delay(attempt)
        jitter = self.jitter_coefficient * wait
        if 0 < jitter < math.inf:
            draw = rng.uniform if rng is not None else random.uniform
            wait += draw(-jitter, jitter)
        return max(wait, 0.0)

    @property
    def ceiling(self) -> float:
        """Largest value ``delay`` can return."""
        return self.max_wait * (1 + self.jitter_coefficient)


DEFAULT_BACKOFF = BackoffPolicy(min_wait=0.5, max_wait=10.0)
NETWORK_BACKOFF = BackoffPolicy(min_wait=2.0, max_wait=120.0)


def backoff(attempt: int) -> float:
    """Generic backoff delay (0.5s doubling up to 10s)."""
    return DEFAULT_BACKOFF.delay(attempt)


def network_backoff(attempt: int) -> float:
    """Backoff delay for connectivity failures (2s doubling up to 2min)."""
    return NETWORK_BACKOFF.delay(attempt)
