from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 5 * 60

Sleep = Callable[[float], Awaitable[Any]]


class SchedulerState(str, Enum):
    DISABLED = "disabled"
    ENABLED = "enabled"


class RefreshScheduler:
    """Calls `tick` every `interval_seconds` while enabled.

    Must be started from inside a running event loop. `stop()` cancels the
    pending wait immediately, so no tick fires after it returns. `close()`
    does the same unconditionally and leaves the scheduler unusable.
    """

    def __init__(
        self,
        tick: Callable[[], Awaitable[Any]],
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        *,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self._tick = tick
        self._interval = float(interval_seconds)
        self._sleep = sleep
        self._task: Optional[asyncio.Task[None]] = None
        self._closed = False

    @property
    def state(self) -> SchedulerState:
        return SchedulerState.ENABLED if self._task is not None else SchedulerState.DISABLED

    @property
    def enabled(self) -> bool:
        return self.state == SchedulerState.ENABLED

    @property
    def interval_seconds(self) -> float:
        return self._interval

    def start(self) -> None:
        if self._closed:
            raise RuntimeError("scheduler is closed")
        if self._task is not None:
            return
        self._task = asyncio.get_running_loop().create_task(self._loop())
        logger.info("Auto-refresh enabled (every %gs)", self._interval)

    def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        logger.info("Auto-refresh disabled")

    def set_enabled(self, enabled: bool) -> None:
        if enabled:
            self.start()
        else:
            self.stop()

    def close(self) -> None:
        self.stop()
        self._closed = True

    async def _loop(self) -> None:
        # a fresh task per start(), so re-enabling restarts the interval from zero
        while True:
            await self._sleep(self._interval)
            try:
                # stop() must not abort a fetch that is already on the wire
                await asyncio.shield(self._tick())
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Scheduled refresh failed")
