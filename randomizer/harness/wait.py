"""
Wait utilities for harness tests
================================

  • `sleep_ms(ms)`: suspend the calling coroutine for a fixed duration
  • `wait_for_first(fut, timeout, ...)`: race an awaited event against a timer

Both suspend only the current task; subscription callbacks keep running on the
event loop meanwhile.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Optional, TypeVar

from ..errors import EventTimeout

T = TypeVar("T")


async def sleep_ms(ms: float) -> None:
    """Complete after `ms` milliseconds. Negative durations behave as zero."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + max(float(ms), 0.0) / 1000.0
    # the loop may wake a timer up to one clock tick early
    while True:
        remaining = deadline - loop.time()
        if remaining <= 0:
            return
        await asyncio.sleep(remaining)


async def wait_for_first(
    fut: Awaitable[T],
    timeout: float,
    *,
    event: str = "event",
    address: Optional[str] = None,
) -> T:
    """
    Await `fut`, giving up after `timeout` seconds.

    Raises EventTimeout when the timer wins; `fut` is cancelled in that case.
    """
    try:
        return await asyncio.wait_for(fut, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise EventTimeout(event=event, timeout_s=timeout, address=address) from e


__all__ = ["sleep_ms", "wait_for_first"]
