import logging
from dataclasses import dataclass
from typing import Callable, FrozenSet, List, Optional

from vitalmon.core.enums import AlarmPriority, RhythmType, ToneProfile, VitalKind
from vitalmon.core.events import AlarmEvent
from vitalmon.core.constants import (
    ABNORMAL_RHYTHMS,
    ALARM_SILENCE_MS,
    QT_PROLONGED_MS,
    ST_DEPRESSION_LIMIT,
    ST_ELEVATION_LIMIT,
    TEST_ALARM_MESSAGE,
)

logger = logging.getLogger(__name__)

# Systolic and diastolic pressure share the BP overlay.
OVERLAY_FOR_VITAL = {
    VitalKind.HEART_RATE: "hr",
    VitalKind.SPO2: "spo2",
    VitalKind.RESPIRATORY_RATE: "rr",
    VitalKind.SYSTOLIC_BP: "bp",
    VitalKind.DIASTOLIC_BP: "bp",
    VitalKind.TEMPERATURE: "temp",
}
VITAL_OVERLAYS = ("hr", "spo2", "rr", "bp", "temp")
ECG_OVERLAYS = ("arrhythmia", "st")


def format_number(value) -> str:
    """Integral values print without decimals (36.0 -> '36')."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def breach_message(kind: VitalKind, value, limit) -> str:
    return (f"{kind.value}: {format_number(value)} "
            f"(Normal: {format_number(limit.low)}-{format_number(limit.high)})")


@dataclass(frozen=True)
class AlarmEvaluation:
    alarms: List[str]
    breached: FrozenSet[VitalKind]


class AlarmEngine:
    """
    Limit alarms with silence handling, plus independent ECG checks
    (arrhythmia, ST segment, QT prolongation).

    Overlay flags are plain data in `self.overlays`; a renderer reflects them.
    Every state change is published as an AlarmEvent to `self.listeners`.
    """
    def __init__(self, scheduler, tone_requester: Callable[[ToneProfile], None] = None,
                 priority: AlarmPriority = AlarmPriority.CRITICAL):
        self.scheduler = scheduler
        self.tone_requester = tone_requester
        self.priority = priority

        self.enabled = True
        self.active = False
        self.silenced = False
        self.message = ""
        self.breached: FrozenSet[VitalKind] = frozenset()
        self.overlays = {key: False for key in VITAL_OVERLAYS + ECG_OVERLAYS}
        self.qt_prolonged = False

        self.listeners: List[Callable[[AlarmEvent], None]] = []
        self._silence_handle = None

    @property
    def silence_expires_at(self) -> Optional[float]:
        if self._silence_handle is None or self._silence_handle.cancelled:
            return None
        return self._silence_handle.when

    # --- Limit alarms ---

    def evaluate(self, vitals, limits) -> Optional[AlarmEvaluation]:
        """
        Check every vital against its limits. Returns None (and changes
        nothing) while alarms are disabled or silenced.
        """
        if not self.enabled or self.silenced:
            return None

        alarms = []
        breached = set()
        vital_flags = {key: False for key in VITAL_OVERLAYS}

        for kind, value in vitals.items():
            limit = limits[kind]
            if limit.breached(value):
                alarms.append(breach_message(kind, value, limit))
                breached.add(kind)
                vital_flags[OVERLAY_FOR_VITAL[kind]] = True

        self.overlays.update(vital_flags)
        result = AlarmEvaluation(alarms, frozenset(breached))

        if alarms:
            self.trigger(alarms, result.breached)
        else:
            self.clear()
        return result

    def trigger(self, alarms: List[str], breached: FrozenSet[VitalKind] = frozenset()):
        self.active = True
        self.message = ", ".join(alarms)
        self.breached = frozenset(breached)
        logger.info("ALARM (%s): %s", self.priority.value, self.message)
        self._emit()
        if self.tone_requester:
            self.tone_requester(ToneProfile.ALARM)

    def clear(self):
        if self.active:
            logger.info("Alarm cleared")
        self.active = False
        self.message = ""
        self.breached = frozenset()
        for key in VITAL_OVERLAYS:
            self.overlays[key] = False
        self._emit()

    def test_alarm(self):
        self.trigger([TEST_ALARM_MESSAGE])

    def silence(self):
        """Silence for ALARM_SILENCE_MS. Silencing again restarts the countdown."""
        self.silenced = True
        self.clear()
        if self._silence_handle is not None:
            self._silence_handle.cancel()
        self._silence_handle = self.scheduler.call_later(ALARM_SILENCE_MS, self._unsilence)
        logger.info("Alarms silenced until %.0f ms", self._silence_handle.when)

    def _unsilence(self):
        self.silenced = False
        self._silence_handle = None
        logger.info("Alarm silence expired")
        self._emit()

    def reset(self):
        self.clear()
        self.silenced = False
        if self._silence_handle is not None:
            self._silence_handle.cancel()
            self._silence_handle = None
        logger.info("All alarms reset")

    def set_enabled(self, enabled: bool):
        self.enabled = bool(enabled)
        if not self.enabled:
            self.clear()

    def set_priority(self, priority):
        self.priority = AlarmPriority.parse(priority)

    # --- ECG analysis checks (independent of limit alarms) ---

    def check_rhythm(self, rhythm) -> bool:
        abnormal = RhythmType.parse(rhythm) in ABNORMAL_RHYTHMS
        self._set_overlay("arrhythmia", abnormal)
        return abnormal

    def check_st(self, st_elevation: float) -> bool:
        abnormal = st_elevation > ST_ELEVATION_LIMIT or st_elevation < ST_DEPRESSION_LIMIT
        self._set_overlay("st", abnormal)
        return abnormal

    def check_qt(self, qt_interval: float) -> bool:
        self.qt_prolonged = qt_interval > QT_PROLONGED_MS
        if self.qt_prolonged:
            logger.warning("QT prolongation: %s ms", format_number(qt_interval))
        return self.qt_prolonged

    def _set_overlay(self, key: str, value: bool):
        if self.overlays[key] != value:
            self.overlays[key] = value
            self._emit()

    def _emit(self):
        event = AlarmEvent(
            active=self.active,
            message=self.message,
            breached=self.breached,
            overlays=dict(self.overlays),
            priority=self.priority,
            time_ms=self.scheduler.now,
        )
        for listener in self.listeners:
            listener(event)
