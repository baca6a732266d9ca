"""
Event records emitted by the engine to its collaborators (renderer, audio sink).
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional, TYPE_CHECKING

from vitalmon.core.enums import AlarmPriority, NIBPStatus, ToneProfile, VitalKind

if TYPE_CHECKING:
    from vitalmon.monitors.tones import ToneEnvelope
    from vitalmon.monitors.nibp import NIBPReading


@dataclass(frozen=True)
class WaveformSample:
    x: int
    amplitude: float


@dataclass(frozen=True)
class AlarmEvent:
    active: bool
    message: str
    breached: FrozenSet[VitalKind] = frozenset()
    overlays: Dict[str, bool] = field(default_factory=dict)
    priority: AlarmPriority = AlarmPriority.CRITICAL
    time_ms: float = 0.0


@dataclass(frozen=True)
class ToneRequest:
    profile: ToneProfile
    volume: float
    envelope: "ToneEnvelope"
    time_ms: float = 0.0


@dataclass(frozen=True)
class NIBPUpdate:
    status: NIBPStatus
    reading: Optional["NIBPReading"] = None
    time_ms: float = 0.0

    @property
    def text(self) -> str:
        return self.status.value
