import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from vitalmon.core.enums import NIBPStatus
from vitalmon.core.events import NIBPUpdate
from vitalmon.core.constants import (
    NIBP_DEFAULT_INTERVAL_MIN,
    NIBP_DEFLATE_MS,
    NIBP_INFLATE_MS,
)

logger = logging.getLogger(__name__)


@dataclass
class NIBPReading:
    systolic: float = 120.0
    diastolic: float = 80.0
    map: float = 93.3
    timestamp: float = 0.0

    @classmethod
    def from_pressures(cls, systolic: float, diastolic: float, timestamp: float) -> "NIBPReading":
        # MAP = (SBP + 2*DBP) / 3
        mean = (systolic + 2.0 * diastolic) / 3.0
        return cls(systolic, diastolic, mean, timestamp)

    def __str__(self):
        return f"{self.systolic:.0f}/{self.diastolic:.0f} ({self.map:.0f})"


class NIBPCycle:
    """
    Simulates an NIBP cuff cycle.

    idle/complete/stopped -> measuring (3 s) -> deflating (2 s) -> complete,
    then an automatic restart after `interval_minutes` when that is > 0.
    At most one transition or restart is pending at any time.
    """
    def __init__(self, scheduler, interval_minutes: int = NIBP_DEFAULT_INTERVAL_MIN,
                 pressure_source: Callable[[], tuple] = None):
        self.scheduler = scheduler
        self.interval_minutes = interval_minutes
        self.pressure_source = pressure_source
        self.status = NIBPStatus.IDLE
        self.latest_reading: Optional[NIBPReading] = None
        self.listeners: List[Callable[[NIBPUpdate], None]] = []
        self._pending = None

    @property
    def in_progress(self) -> bool:
        return self.status in (NIBPStatus.MEASURING, NIBPStatus.DEFLATING)

    @property
    def next_transition_at(self) -> Optional[float]:
        if self._pending is None or self._pending.cancelled:
            return None
        return self._pending.when

    def start(self):
        """Start a measurement manually. Ignored while a cycle is running."""
        if self.in_progress:
            return
        self._cancel_pending()
        self._enter(NIBPStatus.MEASURING)
        self._pending = self.scheduler.call_later(NIBP_INFLATE_MS, self._deflate)

    def stop(self):
        self._cancel_pending()
        self._enter(NIBPStatus.STOPPED)

    def set_interval(self, minutes: int):
        # Read when the next cycle completes; an already scheduled restart keeps its time.
        self.interval_minutes = minutes

    def _deflate(self):
        self._enter(NIBPStatus.DEFLATING)
        self._pending = self.scheduler.call_later(NIBP_DEFLATE_MS, self._complete)

    def _complete(self):
        self._pending = None
        if self.pressure_source is not None:
            systolic, diastolic = self.pressure_source()
            self.latest_reading = NIBPReading.from_pressures(systolic, diastolic, self.scheduler.now)
        self._enter(NIBPStatus.COMPLETE)
        if self.interval_minutes > 0:
            self._pending = self.scheduler.call_later(self.interval_minutes * 60000.0, self.start)

    def _cancel_pending(self):
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _enter(self, status: NIBPStatus):
        self.status = status
        logger.info("NIBP %s", status.value)
        update = NIBPUpdate(status, self.latest_reading, self.scheduler.now)
        for listener in self.listeners:
            listener(update)
