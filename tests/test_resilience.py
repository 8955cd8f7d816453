"""
Tests for retry/backoff and the circuit breaker
"""

import asyncio
import random

import pytest

from app.core.errors import AppError, CircuitOpenError, ErrorType
from app.services.resilience import (
    CircuitBreaker,
    CircuitState,
    ResilientCaller,
    backoff_delay,
    is_retryable,
)

from conftest import FakeClock


class Flaky:
    """Async operation failing with the given errors before succeeding"""

    def __init__(self, *errors, result="ok"):
        self.errors = list(errors)
        self.calls = 0
        self.result = result

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


def server_error():
    return AppError(ErrorType.NETWORK_ERROR, "Server error", 503)


def make_caller(clock, sleeps, max_attempts=3):
    async def fake_sleep(seconds):
        sleeps.append(seconds)
    return ResilientCaller(CircuitBreaker(clock=clock), max_attempts=max_attempts,
                           sleep=fake_sleep, rng=random.Random(42))


@pytest.mark.parametrize("error, expected", [
    (AppError(ErrorType.RATE_LIMIT_ERROR, "slow down", 429), True),
    (AppError(ErrorType.NETWORK_ERROR, "timeout"), True),
    (AppError(ErrorType.NETWORK_ERROR, "bad gateway", 502), True),
    (AppError(ErrorType.NETWORK_ERROR, "auth failed", 401), False),
    (AppError(ErrorType.VALIDATION_ERROR, "bad", 422), False),
    (AppError(ErrorType.NOT_FOUND_ERROR, "gone", 404), False),
    (CircuitOpenError(), False),
    (ValueError("bug"), False),
])
def test_is_retryable(error, expected):
    assert is_retryable(error) is expected

def test_backoff_is_exponential_within_jitter():
    rng = random.Random(1)
    error = server_error()
    for attempt, base in enumerate([1.0, 2.0, 4.0]):
        for _ in range(50):
            delay = backoff_delay(error, attempt, 1.0, rng)
            assert base * 0.7 <= delay <= base * 1.3

def test_backoff_rate_limit_floor_and_ceiling():
    rng = random.Random(2)
    rate_limited = AppError(ErrorType.RATE_LIMIT_ERROR, "slow down", 429)
    for _ in range(50):
        assert backoff_delay(rate_limited, 0, 1.0, rng) >= 5.0
        assert backoff_delay(server_error(), 10, 1.0, rng) <= 30.0
        assert backoff_delay(rate_limited, 10, 1.0, rng) <= 30.0

@pytest.mark.asyncio
async def test_retries_retryable_errors_until_success():
    sleeps = []
    caller = make_caller(FakeClock(), sleeps)
    operation = Flaky(server_error(), server_error())

    assert await caller.call(operation) == "ok"
    assert operation.calls == 3
    assert len(sleeps) == 2
    assert caller.breaker.failure_count == 0

@pytest.mark.asyncio
async def test_gives_up_after_three_attempts():
    sleeps = []
    caller = make_caller(FakeClock(), sleeps)
    operation = Flaky(server_error(), server_error(), server_error(), server_error())

    with pytest.raises(AppError) as exc_info:
        await caller.call(operation)

    assert exc_info.value.status_code == 503
    assert operation.calls == 3
    assert caller.breaker.failure_count == 3

@pytest.mark.asyncio
async def test_validation_errors_are_not_retried():
    sleeps = []
    caller = make_caller(FakeClock(), sleeps)
    operation = Flaky(AppError(ErrorType.VALIDATION_ERROR, "bad", 422))

    with pytest.raises(AppError) as exc_info:
        await caller.call(operation)

    assert exc_info.value.error_type is ErrorType.VALIDATION_ERROR
    assert operation.calls == 1
    assert sleeps == []

@pytest.mark.asyncio
async def test_rate_limit_waits_at_least_five_seconds():
    sleeps = []
    caller = make_caller(FakeClock(), sleeps)
    operation = Flaky(AppError(ErrorType.RATE_LIMIT_ERROR, "slow down", 429))

    assert await caller.call(operation) == "ok"
    assert sleeps[0] >= 5.0

def test_breaker_opens_after_threshold():
    clock = FakeClock()
    breaker = CircuitBreaker(failure_threshold=5, recovery_timeout=60, clock=clock)
    for _ in range(4):
        breaker.before_call()
        breaker.record_failure()
    assert breaker.state is CircuitState.CLOSED

    breaker.before_call()
    breaker.record_failure()
    assert breaker.state is CircuitState.OPEN

    clock.advance(59)
    with pytest.raises(CircuitOpenError):
        breaker.before_call()

def test_breaker_half_open_admits_single_trial():
    clock = FakeClock()
    breaker = CircuitBreaker(failure_threshold=1, recovery_timeout=60, clock=clock)
    breaker.record_failure()
    clock.advance(60)

    breaker.before_call()
    assert breaker.state is CircuitState.HALF_OPEN
    with pytest.raises(CircuitOpenError):
        breaker.before_call()

    breaker.record_success()
    assert breaker.state is CircuitState.CLOSED
    assert breaker.failure_count == 0

def test_breaker_failed_trial_reopens():
    clock = FakeClock()
    breaker = CircuitBreaker(failure_threshold=5, recovery_timeout=60, clock=clock)
    for _ in range(5):
        breaker.record_failure()
    clock.advance(61)

    breaker.before_call()
    breaker.record_failure()
    assert breaker.state is CircuitState.OPEN
    with pytest.raises(CircuitOpenError):
        breaker.before_call()

def test_success_while_closed_resets_counter():
    breaker = CircuitBreaker(clock=FakeClock())
    breaker.record_failure()
    breaker.record_failure()
    breaker.record_success()
    assert breaker.failure_count == 0
    assert breaker.state is CircuitState.CLOSED

@pytest.mark.asyncio
async def test_open_circuit_fails_fast_without_calling_operation():
    clock = FakeClock()
    caller = make_caller(clock, [], max_attempts=1)
    for _ in range(5):
        with pytest.raises(AppError):
            await caller.call(Flaky(server_error()))
    assert caller.breaker.state is CircuitState.OPEN

    operation = Flaky()
    with pytest.raises(CircuitOpenError):
        await caller.call(operation)
    assert operation.calls == 0

    clock.advance(60)
    assert await caller.call(operation) == "ok"
    assert operation.calls == 1
    assert caller.breaker.state is CircuitState.CLOSED

@pytest.mark.asyncio
async def test_cancelled_trial_frees_half_open_slot():
    clock = FakeClock()
    caller = make_caller(clock, [])
    for _ in range(5):
        caller.breaker.record_failure()
    clock.advance(60)

    started = asyncio.Event()

    async def hang():
        started.set()
        await asyncio.Event().wait()

    task = asyncio.ensure_future(caller.call(hang))
    await started.wait()
    assert caller.breaker.state is CircuitState.HALF_OPEN

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert await caller.call(Flaky()) == "ok"
    assert caller.breaker.state is CircuitState.CLOSED
