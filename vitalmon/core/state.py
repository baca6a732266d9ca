from dataclasses import dataclass, field, fields, replace
from typing import Dict, Optional, Any

from vitalmon.core.enums import VitalKind, AlarmPriority, NIBPStatus
from vitalmon.core.constants import (
    DEFAULT_CANVAS_WIDTH,
    SWEEP_WINDOW_S,
    NIBP_DEFAULT_INTERVAL_MIN,
    DEFAULT_ECG_LEAD,
)


@dataclass
class VitalSigns:
    """Current vital-sign values. No range checking is applied."""
    heart_rate: int = 72           # bpm
    spo2: int = 98                 # %
    respiratory_rate: int = 16     # breaths/min
    systolic_bp: int = 120         # mmHg
    diastolic_bp: int = 80         # mmHg
    temperature: float = 36.5      # degC

    def get(self, kind: VitalKind):
        return getattr(self, kind.field_name)

    def set(self, kind: VitalKind, value):
        setattr(self, kind.field_name, value)

    def items(self):
        """(VitalKind, value) pairs in display order."""
        return [(kind, self.get(kind)) for kind in VitalKind]


@dataclass(frozen=True)
class Limit:
    low: float
    high: float

    def breached(self, value) -> bool:
        # Strict comparisons: values sitting on a limit are normal.
        return value < self.low or value > self.high


DEFAULT_LIMITS = {
    VitalKind.HEART_RATE: Limit(60, 100),
    VitalKind.SPO2: Limit(95, 100),
    VitalKind.RESPIRATORY_RATE: Limit(12, 20),
    VitalKind.SYSTOLIC_BP: Limit(90, 140),
    VitalKind.DIASTOLIC_BP: Limit(60, 90),
    VitalKind.TEMPERATURE: Limit(36.0, 37.5),
}


class AlarmLimits:
    """Per-vital alarm bounds, fixed once the engine is built."""
    def __init__(self, limits: Dict[Any, Any] = None):
        merged = dict(DEFAULT_LIMITS)
        for kind, bounds in (limits or {}).items():
            kind = VitalKind.parse(kind)
            if isinstance(bounds, Limit):
                merged[kind] = bounds
            elif isinstance(bounds, dict):
                merged[kind] = Limit(bounds["low"], bounds["high"])
            else:
                low, high = bounds
                merged[kind] = Limit(low, high)
        self._limits = merged

    def __getitem__(self, kind) -> Limit:
        return self._limits[VitalKind.parse(kind)]

    def items(self):
        return [(kind, self._limits[kind]) for kind in VitalKind]


@dataclass
class ArtifactFlags:
    motion: bool = False
    poor_contact: bool = False
    muscle_tremor: bool = False
    baseline_drift: bool = False

    _ALIASES = {
        "poorContact": "poor_contact",
        "muscleTremor": "muscle_tremor",
        "baselineDrift": "baseline_drift",
    }

    def set(self, flag: str, enabled: bool):
        name = self._ALIASES.get(flag, flag)
        if name not in {f.name for f in fields(self)}:
            raise ValueError(f"Unknown artifact: {flag!r}")
        setattr(self, name, bool(enabled))

    def any(self) -> bool:
        return self.motion or self.poor_contact or self.muscle_tremor or self.baseline_drift


class VitalsStore:
    """
    Leaf state container for vital values and their alarm limits.
    Mutated only through the engine command surface.
    """
    def __init__(self, vitals: VitalSigns = None, limits: AlarmLimits = None):
        self.vitals = vitals or VitalSigns()
        self.limits = limits or AlarmLimits()

    def set(self, kind, value):
        kind = VitalKind.parse(kind)
        self.vitals.set(kind, value)
        return kind

    def get(self, kind):
        return self.vitals.get(VitalKind.parse(kind))

    def snapshot(self) -> VitalSigns:
        return replace(self.vitals)


@dataclass
class MonitorConfig:
    """Configuration for the monitor engine."""
    rng_seed: Optional[int] = None

    # Waveform sweep.
    canvas_width: int = DEFAULT_CANVAS_WIDTH  # samples per frame
    sweep_window_s: float = SWEEP_WINDOW_S    # seconds of signal per frame

    # PVC ectopy drawn once per beat (True) or per sample (False).
    ectopy_per_beat: bool = True

    # Environment capabilities.
    audio_available: bool = True

    # Patient/alarm setup.
    initial_vitals: Dict[str, float] = field(default_factory=dict)
    alarm_limits: Dict[str, Any] = field(default_factory=dict)
    alarm_priority: str = "critical"
    nibp_interval_min: int = NIBP_DEFAULT_INTERVAL_MIN

    # Runtime settings.
    volume: float = 0.5
    waveform_speed: int = 50  # mm/s, display only
    ecg_lead: str = DEFAULT_ECG_LEAD
    big_numbers: bool = False


@dataclass(slots=True)
class MonitorState:
    """Snapshot of the monitor at a specific time."""
    time_ms: float = 0.0
    vitals: VitalSigns = field(default_factory=VitalSigns)
    rhythm_label: str = "NSR"
    ecg_lead: str = DEFAULT_ECG_LEAD
    st_elevation: float = 0.0
    qt_interval: float = 400.0
    artifacts: ArtifactFlags = field(default_factory=ArtifactFlags)

    # Alarms.
    alarm_enabled: bool = True
    alarm_active: bool = False
    alarm_silenced: bool = False
    silence_expires_at: Optional[float] = None
    alarm_priority: AlarmPriority = AlarmPriority.CRITICAL
    alarm_message: str = ""
    overlays: Dict[str, bool] = field(default_factory=dict)
    qt_prolonged: bool = False

    # NIBP.
    nibp_status: NIBPStatus = NIBPStatus.IDLE
    nibp_interval_min: int = NIBP_DEFAULT_INTERVAL_MIN
    nibp_sys: Optional[float] = None
    nibp_dia: Optional[float] = None
    nibp_map: Optional[float] = None
    nibp_timestamp: Optional[float] = None

    # Display/audio settings.
    frozen: bool = False
    audio_enabled: bool = True
    volume: float = 0.5
    waveform_speed: int = 50
    big_numbers: bool = False
