from enum import Enum
from typing import Optional


class RhythmType(Enum):
    """Cardiac Rhythm Types"""
    NSR = "Normal sinus rhythm"
    AF = "Atrial fibrillation"
    AFL = "Atrial flutter"
    VT = "Ventricular tachycardia"
    VF = "Ventricular fibrillation"
    PVC = "Premature ventricular contractions"
    PAC = "Premature atrial contractions"

    @classmethod
    def parse(cls, label) -> Optional["RhythmType"]:
        """Resolve a rhythm by name ("VT") or value; None if unrecognized."""
        if isinstance(label, cls):
            return label
        if not label:
            return None
        text = str(label).strip()
        for r in cls:
            if r.name == text.upper() or r.value.lower() == text.lower():
                return r
        return None


class VitalKind(Enum):
    """Vital signs tracked by the monitor. Values are the alarm display names."""
    HEART_RATE = "heartRate"
    SPO2 = "spo2"
    RESPIRATORY_RATE = "respiratoryRate"
    SYSTOLIC_BP = "systolicBP"
    DIASTOLIC_BP = "diastolicBP"
    TEMPERATURE = "temperature"

    @property
    def field_name(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, kind) -> "VitalKind":
        if isinstance(kind, cls):
            return kind
        text = str(kind).strip()
        for k in cls:
            if text in (k.value, k.name, k.field_name):
                return k
        raise ValueError(f"Unknown vital sign: {kind!r}")


class AlarmPriority(Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    ADVISORY = "advisory"

    @classmethod
    def parse(cls, priority) -> "AlarmPriority":
        if isinstance(priority, cls):
            return priority
        try:
            return cls(str(priority).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown alarm priority: {priority!r}") from None


class NIBPStatus(Enum):
    """NIBP cycle states. Values are the status strings shown to the user."""
    IDLE = "Ready"
    MEASURING = "Measuring..."
    DEFLATING = "Deflating..."
    COMPLETE = "Complete"
    STOPPED = "Stopped"


class ToneProfile(Enum):
    HEARTBEAT = "heartbeat"
    ALARM = "alarm"
