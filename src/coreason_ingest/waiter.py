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
import time
from enum import Enum
from typing import Awaitable, Callable

from loguru import logger

from coreason_ingest.exceptions import ActivationFailed, ActivationTimedOut, ResourceNotFound
from coreason_ingest.models import FileState, UploadHandle
from coreason_ingest.store import RemoteStore


class ActivationState(str, Enum):
    """States of one handle's activation, as tracked by the waiter."""

    PROCESSING = "processing"
    ACTIVE = "active"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        return self is not ActivationState.PROCESSING


_OBSERVED = {
    FileState.PROCESSING: ActivationState.PROCESSING,
    FileState.ACTIVE: ActivationState.ACTIVE,
    FileState.FAILED: ActivationState.FAILED,
}


class _DeadlineReached(Exception):
    pass


class ActivationWaiter:
    """Polls the remote store until a handle becomes usable.

    Processing moves to Active or Failed as reported by the store, or to
    TimedOut when the attempt budget or the caller's deadline runs out.
    Transient poll errors spend an attempt and polling continues; a
    not-found answer fails the handle immediately.
    """

    def __init__(
        self,
        store: RemoteStore,
        poll_interval: float = 2.5,
        max_attempts: int = 20,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initializes the ActivationWaiter.

        Args:
            store: The remote store to poll.
            poll_interval: Seconds between polls.
            max_attempts: Maximum number of status lookups per handle.
            sleep: Awaitable used between polls (replaceable in tests).
            clock: Monotonic clock used to evaluate deadlines.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if poll_interval < 0:
            raise ValueError("poll_interval must not be negative")
        self.store = store
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self._sleep = sleep
        self._clock = clock

    def deadline_after(self, seconds: float | None) -> float | None:
        """Convert a relative timeout into an absolute deadline on this waiter's clock."""
        if seconds is None:
            return None
        return self._clock() + seconds

    async def await_active(self, handle: UploadHandle, deadline: float | None = None) -> UploadHandle:
        """Wait for a handle to become Active.

        Args:
            handle: The handle returned by the upload (or a status lookup).
            deadline: Optional absolute deadline on the waiter's clock.

        Returns:
            UploadHandle: The handle in state Active.

        Raises:
            ActivationFailed: If the store reports failure or the handle vanished.
            ActivationTimedOut: If the attempt budget or deadline is exhausted.
        """
        current = handle
        state = _OBSERVED[handle.state]
        attempts = 0
        reason = ""

        while not state.is_terminal:
            if attempts >= self.max_attempts:
                state = ActivationState.TIMED_OUT
                reason = f"still processing after {attempts} attempts"
                break
            if attempts:
                await self._pause(deadline)

            remaining = self._remaining(deadline)
            if remaining is not None and remaining <= 0:
                state = ActivationState.TIMED_OUT
                reason = "deadline reached"
                break

            attempts += 1
            try:
                current = await self._poll(current.id, remaining)
            except ResourceNotFound as e:
                raise ActivationFailed(f"File no longer exists: {current.id}", current.uri) from e
            except _DeadlineReached:
                state = ActivationState.TIMED_OUT
                reason = "deadline reached while polling"
                break
            except Exception as e:
                logger.warning(
                    f"Error polling file {current.id} (attempt {attempts}/{self.max_attempts}): {e}"
                )
                continue

            state = _OBSERVED[current.state]
            logger.debug(f"File {current.id} state after attempt {attempts}: {state.value}")

        if state is ActivationState.ACTIVE:
            logger.info(f"File {current.id} is active")
            return current
        if state is ActivationState.FAILED:
            raise ActivationFailed(f"Remote store failed to process file: {current.id}", current.uri)
        raise ActivationTimedOut(f"File {current.id} not active: {reason}", current.uri)

    def _remaining(self, deadline: float | None) -> float | None:
        if deadline is None:
            return None
        return deadline - self._clock()

    async def _pause(self, deadline: float | None) -> None:
        delay = self.poll_interval
        remaining = self._remaining(deadline)
        if remaining is not None:
            delay = min(delay, max(remaining, 0.0))
        await self._sleep(delay)

    async def _poll(self, handle_id: str, remaining: float | None) -> UploadHandle:
        if remaining is None:
            return await self.store.get(handle_id)
        try:
            return await asyncio.wait_for(self.store.get(handle_id), timeout=remaining)
        except TimeoutError as e:
            raise _DeadlineReached() from e
