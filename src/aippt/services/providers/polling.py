# src/aippt/services/providers/polling.py
from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, Tuple

from aippt.core.logging import get_logger
from aippt.kernel.errors import ProviderHTTPError, TaskFailedError, TaskTimeoutError

log = get_logger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


class TaskState(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


CheckFn = Callable[[], Awaitable[Tuple[TaskState, Any]]]


async def poll_task(
    check: CheckFn,
    *,
    interval: float,
    max_attempts: int,
    sleep: Sleep = asyncio.sleep,
    label: str = "task",
) -> Any:
    """
    Drive an async provider task: PENDING -> SUCCEEDED | FAILED | TIMED_OUT.

    Sleeps `interval` before every check. `check()` returns (state, payload):
    on SUCCEEDED the payload is returned, on FAILED it is the failure message.
    A poll that fails at the HTTP level counts as still pending.
    """
    state = TaskState.PENDING
    for attempt in range(1, max_attempts + 1):
        await sleep(interval)
        try:
            state, payload = await check()
        except ProviderHTTPError as e:
            log.warning("%s poll failed (%s), retrying (%d/%d)", label, e.provider_status, attempt, max_attempts)
            continue

        if state is TaskState.SUCCEEDED:
            return payload
        if state is TaskState.FAILED:
            raise TaskFailedError(detail=f"{label} failed: {payload or 'unknown reason'}")
        log.info("%s still running (%d/%d)", label, attempt, max_attempts)

    state = TaskState.TIMED_OUT
    raise TaskTimeoutError(
        detail=f"{label} did not finish after {max_attempts} polls",
        meta={"state": state.value, "attempts": max_attempts},
    )
