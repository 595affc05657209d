"""Test utilities for protoframe tests."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable


async def retry_until(
    condition: Callable[[], bool | Awaitable[bool]],
    *,
    timeout: float = 2.0,
    interval: float = 0.005,
    message: str = "Condition not met within timeout",
) -> None:
    """Wait until a condition is met, with timeout.

    Raises:
        TimeoutError: If condition is not met within timeout
    """
    start = time.monotonic()
    while time.monotonic() - start < timeout:
        result = condition()

        if asyncio.iscoroutine(result):
            result = await result

        if result:
            return

        await asyncio.sleep(interval)
    raise TimeoutError(message)


async def drain(ticks: int = 5) -> None:
    """Let already scheduled callbacks (in-memory deliveries) run."""
    for _ in range(ticks):
        await asyncio.sleep(0)
