"""
Cooperative task queue on the running asyncio loop.

Three priorities exist: timers (``call_later``), frame work
(``request_frame``, run at the next opportunity) and idle work
(``request_idle``, run only once no frame work is waiting). Nothing here
uses threads; every callback runs to completion on the loop.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Any, Callable, Coroutine, Deque, Set

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


class TaskQueue:
    def __init__(self) -> None:
        self._frames: Deque[Callback] = deque()
        self._idle: Deque[Callback] = deque()
        self._timers: Set[asyncio.TimerHandle] = set()
        self._tasks: Set[asyncio.Task[Any]] = set()
        self._pump_scheduled = False

    @staticmethod
    def _loop() -> asyncio.AbstractEventLoop:
        return asyncio.get_running_loop()

    # -- timers ----------------------------------------------------------

    def call_later(self, delay_ms: float, callback: Callback) -> asyncio.TimerHandle:
        """Run callback after delay_ms; the returned handle can be cancelled."""
        handle: asyncio.TimerHandle

        def fire() -> None:
            self._timers.discard(handle)
            callback()

        handle = self._loop().call_later(max(0.0, delay_ms) / 1000.0, fire)
        self._timers.add(handle)
        return handle

    def cancel(self, handle: asyncio.TimerHandle | None) -> None:
        if handle is None:
            return
        handle.cancel()
        self._timers.discard(handle)

    # -- frame / idle work ------------------------------------------------

    def request_frame(self, callback: Callback) -> None:
        self._frames.append(callback)
        self._schedule_pump()

    def request_idle(self, callback: Callback) -> None:
        self._idle.append(callback)
        self._schedule_pump()

    def _schedule_pump(self) -> None:
        if self._pump_scheduled:
            return
        self._pump_scheduled = True
        self._loop().call_soon(self._pump)

    def _pump(self) -> None:
        self._pump_scheduled = False
        if self._frames:
            # frame callbacks queued while draining wait for the next pump
            for _ in range(len(self._frames)):
                self._run(self._frames.popleft())
        elif self._idle:
            self._run(self._idle.popleft())
        if self._frames or self._idle:
            self._schedule_pump()

    @staticmethod
    def _run(callback: Callback) -> None:
        try:
            callback()
        except Exception:
            logger.exception("Scheduled callback %r failed", callback)

    # -- async work --------------------------------------------------------

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        """Start coro as a tracked task on the running loop."""
        task = self._loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> bool:
        return bool(self._frames or self._idle or self._timers or self._tasks)

    def cancel_all(self) -> None:
        """Drop queued work and timers; in-flight tasks are left to finish."""
        for handle in list(self._timers):
            handle.cancel()
        self._timers.clear()
        self._frames.clear()
        self._idle.clear()

    async def drain(self) -> None:
        """Wait until no timers, queued callbacks or tasks remain."""
        while True:
            # two loop turns so call_soon work queued by callbacks gets to run
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            if not self.pending:
                return
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
            elif self._timers:
                await asyncio.sleep(0.005)
