"""
Retry with backoff and circuit breaker for record store calls
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from enum import Enum
from typing import Awaitable, Callable, Optional, TypeVar

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, stop_after_attempt

from app.core.errors import AppError, CircuitOpenError, ErrorType

logger = logging.getLogger(__name__)

T = TypeVar("T")

JITTER_RATIO = 0.3
RATE_LIMIT_MIN_DELAY = 5.0
MAX_DELAY = 30.0


class CircuitState(str, Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


class CircuitBreaker:
    """Failure-count circuit breaker with timed recovery.

    Closed lets everything through. After ``failure_threshold`` consecutive
    failures it opens and fails fast for ``recovery_timeout`` seconds, then
    admits a single trial call (half-open). The trial's outcome closes or
    re-opens the circuit.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.clock = clock
        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.last_failure_time: Optional[float] = None
        self._trial_in_flight = False

    def before_call(self) -> None:
        """Raise :class:`CircuitOpenError` if the call must not reach the network."""
        if self.state is CircuitState.OPEN:
            if self.clock() - self.last_failure_time >= self.recovery_timeout:
                self.state = CircuitState.HALF_OPEN
                logger.info("Circuit breaker moving to HALF_OPEN state")
            else:
                raise CircuitOpenError()

        if self.state is CircuitState.HALF_OPEN:
            if self._trial_in_flight:
                raise CircuitOpenError()
            self._trial_in_flight = True

    def record_success(self) -> None:
        self._trial_in_flight = False
        if self.state is CircuitState.HALF_OPEN:
            self.state = CircuitState.CLOSED
            self.failure_count = 0
            logger.info("Circuit breaker reset to CLOSED state")
        elif self.failure_count > 0:
            self.failure_count = 0

    def release_trial(self) -> None:
        """Free the half-open slot of a call that ended without an outcome."""
        self._trial_in_flight = False

    def record_failure(self) -> None:
        self._trial_in_flight = False
        self.failure_count += 1
        self.last_failure_time = self.clock()

        if self.state is CircuitState.HALF_OPEN or self.failure_count >= self.failure_threshold:
            if self.state is not CircuitState.OPEN:
                logger.warning(f"Circuit breaker opened after {self.failure_count} failures")
            self.state = CircuitState.OPEN


def is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, CircuitOpenError) or not isinstance(exc, AppError):
        return False
    if exc.error_type is ErrorType.RATE_LIMIT_ERROR:
        return True
    if exc.error_type is ErrorType.NETWORK_ERROR:
        return exc.status_code is None or exc.status_code >= 500
    return False


def backoff_delay(
    error: Optional[BaseException],
    attempt: int,
    base_delay: float = 1.0,
    rng: Optional[random.Random] = None,
) -> float:
    """Seconds to wait before retry number ``attempt`` (0 for the first retry)."""
    rng = rng or random
    delay = base_delay * (2 ** attempt)
    delay += delay * rng.uniform(-JITTER_RATIO, JITTER_RATIO)

    if isinstance(error, AppError) and error.error_type is ErrorType.RATE_LIMIT_ERROR:
        delay = max(delay, RATE_LIMIT_MIN_DELAY)

    return min(delay, MAX_DELAY)


class ResilientCaller:
    """Runs store operations through the circuit breaker with retries."""

    def __init__(
        self,
        breaker: Optional[CircuitBreaker] = None,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ):
        self.breaker = breaker or CircuitBreaker()
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.sleep = sleep
        self.rng = rng or random.Random()

    def _wait(self, retry_state: RetryCallState) -> float:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        return backoff_delay(error, retry_state.attempt_number - 1, self.base_delay, self.rng)

    async def _attempt(self, operation: Callable[[], Awaitable[T]]) -> T:
        self.breaker.before_call()
        try:
            result = await operation()
        except asyncio.CancelledError:
            # cancelled calls say nothing about the store's health
            self.breaker.release_trial()
            raise
        except Exception:
            self.breaker.record_failure()
            raise
        self.breaker.record_success()
        return result

    async def call(self, operation: Callable[[], Awaitable[T]], description: str = "store operation") -> T:
        def log_retry(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception()
            remaining = self.max_attempts - retry_state.attempt_number
            logger.warning(
                f"Retrying {description} in {retry_state.next_action.sleep:.2f}s "
                f"after {error!r}. Attempts remaining: {remaining}"
            )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self._wait,
            retry=retry_if_exception(is_retryable),
            sleep=self.sleep,
            before_sleep=log_retry,
            reraise=True,
        )
        return await retrying(self._attempt, operation)
