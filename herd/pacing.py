"""Utilities for applying fixed pauses and backoff delays to collaborator calls."""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Iterator

Sleeper = Callable[[float], None]


@dataclass
class DelayPolicy:
    """Fixed pause applied between sequential calls, such as import batches."""

    delay_seconds: float = 0.0

    def pause(self, sleep: Sleeper = time.sleep) -> None:
        if self.delay_seconds > 0:
            sleep(self.delay_seconds)


@dataclass
class ExponentialBackoff:
    """Delay schedule that starts at ``initial_seconds`` and grows by ``multiplier``."""

    initial_seconds: float = 2.0
    multiplier: float = 2.0

    def delay_for(self, failed_attempt: int) -> float:
        """Return the wait after the ``failed_attempt``-th attempt (1-based)."""

        if failed_attempt < 1:
            raise ValueError("failed_attempt is 1-based")
        return self.initial_seconds * self.multiplier ** (failed_attempt - 1)

    def schedule(self, attempts: int) -> Iterator[float]:
        """Yield the waits between ``attempts`` consecutive attempts."""

        for failed_attempt in range(1, attempts):
            yield self.delay_for(failed_attempt)
