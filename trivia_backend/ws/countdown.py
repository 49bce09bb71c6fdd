"""Cancellable per-round countdown."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class CountdownState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class Countdown:
    """Counts ``seconds`` down to zero, one tick every ``tick_interval``.

    ``on_tick(remaining)`` runs after every tick (including the final 0) and
    ``on_expire()`` once the count reaches zero. ``cancel()`` stops the
    underlying task; after expiry it is a no-op.
    """

    def __init__(
        self,
        seconds: int,
        on_tick: Callable[[int], Awaitable[None]],
        on_expire: Callable[[], Awaitable[None]],
        tick_interval: float = 1.0,
        name: str = "countdown",
    ) -> None:
        self.seconds = seconds
        self.remaining = seconds
        self.tick_interval = tick_interval
        self.name = name
        self.state = CountdownState.IDLE
        self._on_tick = on_tick
        self._on_expire = on_expire
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self.state is CountdownState.RUNNING

    def start(self) -> None:
        if self.state is not CountdownState.IDLE:
            raise RuntimeError(f"{self.name} already {self.state.value}")
        self.state = CountdownState.RUNNING
        self._task = asyncio.create_task(self._run(), name=self.name)
        logger.debug("[timer-set] %s seconds=%d tick=%.3fs", self.name, self.seconds, self.tick_interval)

    def cancel(self) -> bool:
        """Stop the countdown; returns False when it had already finished."""
        if self.state is not CountdownState.RUNNING:
            return False
        self.state = CountdownState.CANCELLED
        if self._task is not None and self._task is not asyncio.current_task():
            self._task.cancel()
        logger.debug("[timer-cancel] %s remaining=%d", self.name, self.remaining)
        return True

    async def _run(self) -> None:
        while self.remaining > 0:
            await asyncio.sleep(self.tick_interval)
            if self.state is not CountdownState.RUNNING:
                return
            self.remaining -= 1
            await self._on_tick(self.remaining)
        if self.state is not CountdownState.RUNNING:
            return
        self.state = CountdownState.EXPIRED
        logger.debug("[timer-fire] %s", self.name)
        await self._on_expire()

    async def wait(self) -> None:
        """Wait for the countdown task to finish, swallowing its cancellation."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            if not self._task.cancelled():
                raise
