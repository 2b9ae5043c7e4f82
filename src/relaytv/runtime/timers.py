"""
Periodic timer handles.

The orchestrator owns exactly one fallback ticker and one poll timer. A handle
is stopped before a replacement is created, so a mode switch never leaves a
stale timer running.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Protocol, Union

logger = logging.getLogger(__name__)

TimerCallback = Callable[[], Union[Awaitable[Any], None]]


class Timer(Protocol):
    """Handle for a repeating callback."""

    @property
    def running(self) -> bool: ...

    def start(self) -> None: ...

    def stop(self) -> None: ...


TimerFactory = Callable[..., Timer]


class PeriodicTimer:
    """
    Runs ``callback`` every ``interval_sec`` on the running event loop.

    Async callbacks are awaited before the next sleep, so invocations never
    overlap. An exception from one invocation is logged and does not stop the
    timer.
    """

    def __init__(
        self,
        name: str,
        interval_sec: float,
        callback: TimerCallback,
        *,
        run_immediately: bool = False,
    ):
        if interval_sec <= 0:
            raise ValueError("interval_sec must be greater than zero")
        self.name = name
        self.interval_sec = interval_sec
        self.callback = callback
        self.run_immediately = run_immediately
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the timer, stopping any previous run of this handle first."""
        self.stop()
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(), name=f"timer:{self.name}")

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self) -> None:
        if self.run_immediately:
            await self._invoke()
        while True:
            await asyncio.sleep(self.interval_sec)
            await self._invoke()

    async def _invoke(self) -> None:
        try:
            result = self.callback()
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Timer %s callback failed", self.name)
