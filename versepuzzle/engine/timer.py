"""Countdown — the single asynchronous trigger in the engine.

An asyncio task that awaits ``on_tick`` once per interval until the
callback returns False or the countdown is cancelled. Cancelling is
idempotent and safe from inside the callback itself (the task then just
ends after the callback returns), so every exit path can call it
without checking who is running.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

TickCallback = Callable[[], Awaitable[bool]]


class Countdown:
    """Periodic tick driver for one round.

    Args:
        on_tick: Awaited every interval. Return False to stop.
        interval: Seconds between ticks.
        name: Label for the task and log lines.
    """

    def __init__(self, on_tick: TickCallback, interval: float = 1.0, name: str = "countdown") -> None:
        self._on_tick = on_tick
        self._interval = interval
        self._name = name
        self._task: asyncio.Task[None] | None = None
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done() and not self._stopped

    def start(self) -> None:
        """Starts ticking. Must be called from a running event loop."""
        if self._task is not None:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self._name)

    def cancel(self) -> None:
        """Stops the countdown. Safe to call repeatedly and from on_tick."""
        self._stopped = True
        task = self._task
        if task is None or task.done():
            return
        if task is asyncio.current_task():
            # Called from inside on_tick: the loop checks _stopped next.
            return
        task.cancel()

    async def _run(self) -> None:
        while not self._stopped:
            await asyncio.sleep(self._interval)
            if self._stopped:
                break
            try:
                keep_going = await self._on_tick()
            except Exception:
                logger.exception("Tick failed for %s; stopping countdown", self._name)
                break
            if not keep_going:
                break
        self._stopped = True
