"""Bounded retry of completion calls, modelled as an explicit state machine.

States move ``IDLE -> ATTEMPTING -> SUCCEEDED`` on success, or
``ATTEMPTING -> BACKOFF -> ATTEMPTING`` after an overloaded failure, ending in
``EXHAUSTED`` once every attempt has failed that way. Any other failure is
re-raised immediately.
"""
from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Generic, List, Optional, Tuple, TypeVar

from ..config import OVERLOADED_STATUS
from ..pacing import ExponentialBackoff, Sleeper
from .completion import CompletionServiceError

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class RetryState(enum.Enum):
    IDLE = "idle"
    ATTEMPTING = "attempting"
    BACKOFF = "backoff"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class RetryPolicy:
    """How many attempts to make, how long to wait, and which status is retryable."""

    max_attempts: int = 3
    backoff: ExponentialBackoff = field(default_factory=ExponentialBackoff)
    retryable_status: int = OVERLOADED_STATUS

    def is_retryable(self, error: CompletionServiceError) -> bool:
        return error.status == self.retryable_status


@dataclass
class RetryOutcome(Generic[T]):
    """Final state of a retried call and the path that led there."""

    state: RetryState
    value: Optional[T] = None
    attempts: int = 0
    waits: List[float] = field(default_factory=list)
    last_error: Optional[CompletionServiceError] = None
    transitions: List[Tuple[RetryState, int]] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state is RetryState.SUCCEEDED

    @property
    def total_wait(self) -> float:
        return sum(self.waits)


class RetryingCall(Generic[T]):
    """Runs ``call`` under ``policy``, sleeping through ``sleep`` between attempts."""

    def __init__(
        self,
        call: Callable[[], T],
        policy: Optional[RetryPolicy] = None,
        *,
        sleep: Sleeper = time.sleep,
    ) -> None:
        self._call = call
        self._policy = policy or RetryPolicy()
        self._sleep = sleep

    def run(self) -> RetryOutcome[T]:
        outcome: RetryOutcome[T] = RetryOutcome(state=RetryState.IDLE)
        self._enter(outcome, RetryState.ATTEMPTING, 1)

        while True:
            if outcome.state is RetryState.ATTEMPTING:
                outcome.attempts += 1
                try:
                    outcome.value = self._call()
                except CompletionServiceError as exc:
                    outcome.last_error = exc
                    LOGGER.warning("Completion attempt %s failed with status %s", outcome.attempts, exc.status)
                    if not self._policy.is_retryable(exc):
                        raise
                    if outcome.attempts >= self._policy.max_attempts:
                        self._enter(outcome, RetryState.EXHAUSTED, outcome.attempts)
                    else:
                        self._enter(outcome, RetryState.BACKOFF, outcome.attempts)
                else:
                    self._enter(outcome, RetryState.SUCCEEDED, outcome.attempts)
            elif outcome.state is RetryState.BACKOFF:
                wait = self._policy.backoff.delay_for(outcome.attempts)
                LOGGER.info("Completion service overloaded; retrying in %.1fs", wait)
                outcome.waits.append(wait)
                self._sleep(wait)
                self._enter(outcome, RetryState.ATTEMPTING, outcome.attempts + 1)
            else:
                return outcome

    @staticmethod
    def _enter(outcome: RetryOutcome, state: RetryState, attempt: int) -> None:
        outcome.state = state
        outcome.transitions.append((state, attempt))


__all__ = ["RetryOutcome", "RetryPolicy", "RetryState", "RetryingCall"]
