"""
Tests for the offline operation queue
"""

import asyncio

import pytest

from app.core.errors import AppError, ErrorType
from app.services.offline_queue import OFFLINE_MESSAGE, OfflineQueue


class Operation:
    """Async operation failing ``failures`` times before returning ``result``"""

    def __init__(self, failures=0, result="done"):
        self.failures = failures
        self.calls = 0
        self.result = result

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise AppError(ErrorType.NETWORK_ERROR, "Server error", 503)
        return self.result


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def queue(sleeps):
    async def fake_sleep(seconds):
        sleeps.append(seconds)
        await asyncio.sleep(0)
    return OfflineQueue(sleep=fake_sleep)


@pytest.mark.asyncio
async def test_online_operations_run_immediately(queue):
    operation = Operation()

    assert await queue.with_offline_support(operation) == "done"
    assert operation.calls == 1
    assert queue.status()["queue_length"] == 0

@pytest.mark.asyncio
async def test_offline_operations_are_queued_and_replayed(queue):
    queue.set_online(False)
    operation = Operation()

    with pytest.raises(AppError) as exc_info:
        await queue.with_offline_support(operation)

    assert exc_info.value.error_type is ErrorType.NETWORK_ERROR
    assert exc_info.value.message == OFFLINE_MESSAGE
    assert operation.calls == 0
    assert queue.status()["queue_length"] == 1

    queue.set_online(True)
    await queue._drain_task

    assert operation.calls == 1
    assert queue.status()["queue_length"] == 0

@pytest.mark.asyncio
async def test_network_failure_while_going_offline_is_queued(queue):
    async def operation():
        queue.set_online(False)
        raise AppError(ErrorType.NETWORK_ERROR, "Unable to connect to the server.")

    with pytest.raises(AppError) as exc_info:
        await queue.with_offline_support(operation)

    assert exc_info.value.message == OFFLINE_MESSAGE
    assert len(queue.queue) == 1
    queue.clear()

@pytest.mark.asyncio
async def test_other_failures_propagate(queue):
    async def operation():
        raise AppError(ErrorType.CAPACITY_EXCEEDED, "full")

    with pytest.raises(AppError) as exc_info:
        await queue.with_offline_support(operation)

    assert exc_info.value.error_type is ErrorType.CAPACITY_EXCEEDED
    assert queue.queue == []

@pytest.mark.asyncio
async def test_queued_operation_retried_until_success(queue, sleeps):
    operation = Operation(failures=2)

    result = await queue.queue_operation(operation)

    assert result == "done"
    assert operation.calls == 3
    assert sleeps == [5.0, 5.0]

@pytest.mark.asyncio
async def test_queued_operation_gives_up_after_max_retries(queue):
    operation = Operation(failures=10)

    with pytest.raises(AppError):
        await queue.queue_operation(operation)

    assert operation.calls == 3
    assert queue.queue == []

@pytest.mark.asyncio
async def test_queue_drains_in_order(queue):
    calls = []

    def make(name):
        async def operation():
            calls.append(name)
            return name
        return operation

    queue.set_online(False)
    futures = [queue.queue_operation(make(name)) for name in ["a", "b", "c"]]
    queue.set_online(True)

    assert [await f for f in futures] == ["a", "b", "c"]
    assert calls == ["a", "b", "c"]

@pytest.mark.asyncio
async def test_status_and_clear(queue):
    queue.set_online(False)
    queue.queue_operation(Operation())
    queue.queue_operation(Operation())

    status = queue.status()
    assert status["queue_length"] == 2
    assert status["is_processing"] is False
    assert status["oldest_item"] is not None

    queue.clear()
    assert queue.status() == {"queue_length": 0, "is_processing": False, "oldest_item": None}

@pytest.mark.asyncio
async def test_offline_queue_retries_oldest_item_until_reachable(queue, sleeps):
    queue.set_online(False)
    first = Operation(failures=2, result="first")
    second = Operation(result="second")
    queue.queue_operation(first)
    later = queue.queue_operation(second)

    await queue._reconnect_task

    assert first.calls == 3
    assert sleeps[:3] == [5.0, 5.0, 5.0]
    assert queue.is_online is True

    # the rest of the queue drains once the store answers again
    assert await later == "second"
    assert queue.queue == []

@pytest.mark.asyncio
async def test_offline_write_is_replayed_without_other_traffic(queue):
    queue.set_online(False)
    operation = Operation()

    with pytest.raises(AppError):
        await queue.with_offline_support(operation)
    await queue._reconnect_task

    assert operation.calls == 1
    assert queue.status()["queue_length"] == 0
    assert queue.is_online is True
