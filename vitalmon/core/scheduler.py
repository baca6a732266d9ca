"""
Virtual-clock scheduler.

Every delayed or recurring action in the monitor (waveform ticks, heartbeat
polling, NIBP transitions, alarm silence expiry) is a timer on this clock.
The owner advances the clock explicitly with `advance()`, which makes timing
behaviour testable without a live event loop. A UI drives it from a QTimer.
"""

import heapq
import itertools
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class TimerHandle:
    """A one-shot timer; cancel() prevents it from firing."""
    __slots__ = ("when", "callback", "args", "cancelled", "_seq")

    def __init__(self, when: float, callback: Callable, args: tuple, seq: int):
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False
        self._seq = seq

    def cancel(self):
        self.cancelled = True

    def __lt__(self, other):
        return (self.when, self._seq) < (other.when, other._seq)

    def __repr__(self):
        state = "cancelled" if self.cancelled else "pending"
        return f"TimerHandle(t={self.when:.1f}ms, {state})"


class RepeatingTask:
    """
    A recurring timer. The callback runs first, then the task reschedules
    itself one interval after the time it was due, so ticks do not drift.
    """
    def __init__(self, scheduler: "Scheduler", interval_ms: float, callback: Callable):
        if interval_ms <= 0:
            raise ValueError("Repeating interval must be positive")
        self.scheduler = scheduler
        self.interval = interval_ms
        self.callback = callback
        self.cancelled = False
        self._handle: Optional[TimerHandle] = None

    def _schedule(self, delay_ms: float):
        self._handle = self.scheduler.call_later(delay_ms, self._run)

    def _run(self):
        if self.cancelled:
            return
        self.callback()
        if not self.cancelled:
            self._schedule(self.interval)

    def set_interval(self, interval_ms: float, restart: bool = False):
        """Change the cadence; with restart=True the next run is one new interval from now."""
        if interval_ms <= 0:
            raise ValueError("Repeating interval must be positive")
        self.interval = interval_ms
        if restart and not self.cancelled:
            if self._handle:
                self._handle.cancel()
            self._schedule(interval_ms)

    @property
    def next_run(self) -> Optional[float]:
        if self.cancelled or self._handle is None:
            return None
        return self._handle.when

    def cancel(self):
        self.cancelled = True
        if self._handle:
            self._handle.cancel()


class Scheduler:
    """Millisecond clock with a heap of pending timers."""
    def __init__(self, start_ms: float = 0.0):
        self._now = float(start_ms)
        self._queue = []
        self._counter = itertools.count()

    @property
    def now(self) -> float:
        return self._now

    def call_later(self, delay_ms: float, callback: Callable, *args) -> TimerHandle:
        handle = TimerHandle(self._now + max(0.0, delay_ms), callback, args, next(self._counter))
        heapq.heappush(self._queue, handle)
        return handle

    def call_every(self, interval_ms: float, callback: Callable, first_delay_ms: float = None) -> RepeatingTask:
        task = RepeatingTask(self, interval_ms, callback)
        task._schedule(interval_ms if first_delay_ms is None else first_delay_ms)
        return task

    def pending(self) -> int:
        """Number of timers that are still due to fire."""
        return sum(1 for h in self._queue if not h.cancelled)

    def advance(self, dt_ms: float) -> int:
        """Advance the clock by dt_ms, firing due timers in time order."""
        return self.advance_to(self._now + max(0.0, dt_ms))

    def advance_to(self, target_ms: float) -> int:
        fired = 0
        while self._queue and self._queue[0].when <= target_ms:
            handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._now = max(self._now, handle.when)
            handle.callback(*handle.args)
            fired += 1
        self._now = max(self._now, target_ms)
        if fired:
            logger.debug("Fired %d timers, clock at %.1f ms", fired, self._now)
        return fired
