"""Scheduled one-second ticks for a round timer."""

from __future__ import annotations

import asyncio
import contextlib
from typing import Callable, Optional


class RoundTicker:
    """Invoke `on_tick` every `interval` seconds until it returns False or the ticker is cancelled.

    Sleeps target absolute deadlines so slow callbacks do not make the timer drift.
    """

    def __init__(self, interval: float, on_tick: Callable[[], bool]) -> None:
        if interval <= 0:
            raise ValueError("Tick interval must be positive.")
        self.interval = interval
        self.on_tick = on_tick
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the ticker on the running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time()
        while True:
            deadline += self.interval
            await asyncio.sleep(max(0.0, deadline - loop.time()))
            if not self.on_tick():
                return

    def cancel(self) -> None:
        task = self._task
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        # The ticker's own callback stops it by returning False.
        if task is not current:
            task.cancel()

    async def aclose(self) -> None:
        """Cancel and wait for the ticker task to finish."""
        self.cancel()
        task = self._task
        if task is not None and task is not asyncio.current_task():
            with contextlib.suppress(asyncio.CancelledError):
                await task
