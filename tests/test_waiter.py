# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_ingest

import asyncio
from typing import Any
from unittest.mock import AsyncMock

import pytest
from coreason_ingest.exceptions import ActivationFailed, ActivationTimedOut, ResourceNotFound
from coreason_ingest.models import FileState, UploadHandle
from coreason_ingest.waiter import ActivationState, ActivationWaiter

PENDING = UploadHandle(id="files/f1", uri="https://store/files/f1", mime_type="video/mp4")


def _answer(state: FileState) -> UploadHandle:
    return PENDING.model_copy(update={"state": state})


class FakeClock:
    """Monotonic clock advanced only by the fake sleep."""

    def __init__(self) -> None:
        self.now = 100.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def store() -> Any:
    return AsyncMock()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def _waiter(store: Any, clock: FakeClock, **kwargs: Any) -> ActivationWaiter:
    kwargs.setdefault("poll_interval", 2.0)
    kwargs.setdefault("max_attempts", 5)
    return ActivationWaiter(store, sleep=clock.sleep, clock=clock, **kwargs)


@pytest.mark.asyncio
async def test_becomes_active_after_polling(store: Any, clock: FakeClock) -> None:
    store.get.side_effect = [_answer(FileState.PROCESSING), _answer(FileState.PROCESSING), _answer(FileState.ACTIVE)]

    active = await _waiter(store, clock).await_active(PENDING)

    assert active.state is FileState.ACTIVE
    assert store.get.await_count == 3
    assert clock.sleeps == [2.0, 2.0]


@pytest.mark.asyncio
async def test_first_poll_happens_without_waiting(store: Any, clock: FakeClock) -> None:
    store.get.return_value = _answer(FileState.ACTIVE)
    await _waiter(store, clock).await_active(PENDING)
    assert clock.sleeps == []


@pytest.mark.asyncio
async def test_already_active_handle_is_not_polled(store: Any, clock: FakeClock) -> None:
    active = await _waiter(store, clock).await_active(_answer(FileState.ACTIVE))
    assert active.state is FileState.ACTIVE
    store.get.assert_not_called()


@pytest.mark.asyncio
async def test_remote_failure(store: Any, clock: FakeClock) -> None:
    store.get.side_effect = [_answer(FileState.PROCESSING), _answer(FileState.FAILED)]

    with pytest.raises(ActivationFailed, match="failed to process"):
        await _waiter(store, clock).await_active(PENDING)
    assert store.get.await_count == 2


@pytest.mark.asyncio
async def test_failed_handle_fails_without_polling(store: Any, clock: FakeClock) -> None:
    with pytest.raises(ActivationFailed):
        await _waiter(store, clock).await_active(_answer(FileState.FAILED))
    store.get.assert_not_called()


@pytest.mark.asyncio
async def test_budget_exhausted_times_out(store: Any, clock: FakeClock) -> None:
    store.get.return_value = _answer(FileState.PROCESSING)

    with pytest.raises(ActivationTimedOut, match="after 5 attempts") as exc_info:
        await _waiter(store, clock).await_active(PENDING)

    assert store.get.await_count == 5
    assert len(clock.sleeps) == 4
    assert exc_info.value.locator == PENDING.uri


@pytest.mark.asyncio
async def test_transient_errors_spend_the_same_budget(store: Any, clock: FakeClock) -> None:
    store.get.side_effect = [ConnectionError("blip"), RuntimeError("503"), _answer(FileState.ACTIVE)]

    active = await _waiter(store, clock).await_active(PENDING)

    assert active.state is FileState.ACTIVE
    assert store.get.await_count == 3


@pytest.mark.asyncio
async def test_transient_errors_until_budget_runs_out(store: Any, clock: FakeClock) -> None:
    store.get.side_effect = ConnectionError("down")
    with pytest.raises(ActivationTimedOut):
        await _waiter(store, clock, max_attempts=3).await_active(PENDING)
    assert store.get.await_count == 3


@pytest.mark.asyncio
async def test_not_found_escalates_immediately(store: Any, clock: FakeClock) -> None:
    store.get.side_effect = [_answer(FileState.PROCESSING), ResourceNotFound("files/f1")]

    with pytest.raises(ActivationFailed, match="no longer exists") as exc_info:
        await _waiter(store, clock).await_active(PENDING)

    assert store.get.await_count == 2
    assert isinstance(exc_info.value.__cause__, ResourceNotFound)


@pytest.mark.asyncio
async def test_deadline_stops_polling(store: Any, clock: FakeClock) -> None:
    store.get.return_value = _answer(FileState.PROCESSING)
    waiter = _waiter(store, clock, max_attempts=100)

    with pytest.raises(ActivationTimedOut, match="deadline"):
        await waiter.await_active(PENDING, deadline=waiter.deadline_after(5.0))

    # polls at t=0, 2, 4, then a shortened 1s pause reaches the deadline
    assert store.get.await_count == 3
    assert clock.sleeps == [2.0, 2.0, 1.0]


@pytest.mark.asyncio
async def test_deadline_already_passed(store: Any, clock: FakeClock) -> None:
    with pytest.raises(ActivationTimedOut):
        await _waiter(store, clock).await_active(PENDING, deadline=clock() - 1)
    store.get.assert_not_called()


@pytest.mark.asyncio
async def test_deadline_abandons_outstanding_poll(store: Any) -> None:
    async def hang(handle_id: str) -> UploadHandle:
        await asyncio.sleep(10)
        return _answer(FileState.ACTIVE)

    store.get.side_effect = hang
    waiter = ActivationWaiter(store, poll_interval=0.01, max_attempts=3)

    with pytest.raises(ActivationTimedOut, match="while polling"):
        await waiter.await_active(PENDING, deadline=waiter.deadline_after(0.05))


def test_deadline_after(clock: FakeClock) -> None:
    waiter = _waiter(AsyncMock(), clock)
    assert waiter.deadline_after(None) is None
    assert waiter.deadline_after(3.0) == 103.0


@pytest.mark.parametrize("kwargs", [{"max_attempts": 0}, {"poll_interval": -1.0}])
def test_invalid_parameters(kwargs: dict[str, Any]) -> None:
    with pytest.raises(ValueError):
        ActivationWaiter(AsyncMock(), **kwargs)


def test_terminal_states() -> None:
    assert not ActivationState.PROCESSING.is_terminal
    assert all(
        state.is_terminal
        for state in (ActivationState.ACTIVE, ActivationState.FAILED, ActivationState.TIMED_OUT)
    )
