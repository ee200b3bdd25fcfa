"""Timers owned by a flow: the resend cooldown and the delayed redirect.

Both hold at most one pending callback. Starting again cancels the previous
one, and `cancel()` (or leaving the `async with` block) guarantees nothing
fires after the owning flow is torn down.
"""

import asyncio
from typing import Callable, Optional


class Countdown:
    """Counts `remaining` down by one every `tick` seconds until it reaches 0."""

    def __init__(self, tick: float = 1.0):
        self.tick = tick
        self.remaining = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        return self.remaining > 0

    def start(self, seconds: int) -> None:
        self.cancel()
        self.remaining = max(0, int(seconds))
        if self.remaining:
            self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while self.remaining > 0:
            await asyncio.sleep(self.tick)
            self.remaining -= 1

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def __aenter__(self) -> "Countdown":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.cancel()


class DelayedAction:
    """One-shot timer; `schedule` replaces whatever was pending."""

    def __init__(self) -> None:
        self._handle: Optional[asyncio.TimerHandle] = None
        self.fired = False

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, delay: float, callback: Callable[[], None]) -> None:
        self.cancel()
        self._handle = asyncio.get_running_loop().call_later(delay, self._fire, callback)

    def _fire(self, callback: Callable[[], None]) -> None:
        self._handle = None
        self.fired = True
        callback()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    async def __aenter__(self) -> "DelayedAction":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.cancel()
