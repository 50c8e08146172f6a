"""
Countdown - The per-item bidding clock.

Owned by the AuctionEngine. Steps down once per tick interval while
running; reaching zero stops it. It never finalizes a sale by itself.
"""

import asyncio
from typing import Callable, Optional

from cricauction.utils.logger import get_logger

logger = get_logger("timer")


class CountdownTimer:
    """
    Single countdown value with start/stop/reset.

    When an asyncio loop is running, start() schedules the tick task and
    stop() cancels it. Without a loop the timer is driven by calling
    tick() directly.
    """

    def __init__(
        self,
        value: int = 0,
        interval: float = 1.0,
        on_tick: Optional[Callable[[], None]] = None,
    ):
        self.value = value
        self.running = False
        self.interval = interval
        self._on_tick = on_tick
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        """Start counting down (no-op if already running)."""
        self.running = True
        self._schedule()

    def stop(self) -> None:
        """Stop counting down and cancel the pending tick."""
        self.running = False
        self._cancel()

    def reset(self, value: int) -> None:
        """Set the remaining seconds without changing running state."""
        self.value = value

    def load(self, value: int, running: bool) -> None:
        """
        Overwrite value and running flag without scheduling ticks.

        Used when state arrives wholesale from a snapshot.
        """
        self._cancel()
        self.value = value
        self.running = running

    def detach(self) -> None:
        """Cancel the pending tick but keep value and running flag."""
        self._cancel()

    def tick(self) -> bool:
        """
        Advance one step.

        Returns:
            True if the value changed or the timer stopped
        """
        if not self.running:
            return False
        if self.value > 0:
            self.value -= 1
        if self.value <= 0:
            self.value = 0
            self.running = False
            self._task = None
            logger.info("Countdown expired")
        return True

    @property
    def is_scheduled(self) -> bool:
        return self._task is not None and not self._task.done()

    # =========================================================================
    # Scheduling
    # =========================================================================

    def _schedule(self) -> None:
        if self.is_scheduled:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._task = loop.create_task(self._run())

    def _cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self) -> None:
        while self.running:
            await asyncio.sleep(self.interval)
            if self.tick() and self._on_tick:
                self._on_tick()
