# scheduler.py (deferred callbacks on the engine tick clock)
import heapq
import itertools
import logging
from typing import Callable, List

logger = logging.getLogger(__name__)


class Timer:
    """Handle for one scheduled callback."""

    __slots__ = ("fire_at", "callback", "cancelled")

    def __init__(self, fire_at: float, callback: Callable[[], None]):
        self.fire_at = fire_at
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class Scheduler:
    """
    Deferred callbacks keyed to a clock that only moves when `advance` is
    called, so a paused game (no updates) also freezes its timers.
    Callbacks due at the same time fire in the order they were scheduled.
    """

    def __init__(self):
        self.now = 0.0
        self._queue: List[tuple] = []
        self._seq = itertools.count()

    def schedule(self, delay_ms: float, callback: Callable[[], None]) -> Timer:
        timer = Timer(self.now + max(0.0, delay_ms), callback)
        heapq.heappush(self._queue, (timer.fire_at, next(self._seq), timer))
        return timer

    def advance(self, dt_ms: float) -> int:
        """Move the clock forward and run every callback that came due. Returns how many ran."""
        self.now += dt_ms
        fired = 0
        while self._queue and self._queue[0][0] <= self.now:
            _, _, timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            timer.cancelled = True
            timer.callback()
            fired += 1
        return fired

    def cancel_all(self):
        for _, _, timer in self._queue:
            timer.cancel()
        if self._queue:
            logger.debug("cancelled %d pending timers", len(self._queue))
        self._queue.clear()

    def pending(self) -> int:
        return sum(1 for _, _, timer in self._queue if not timer.cancelled)
