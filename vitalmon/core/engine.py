import copy
import logging
from typing import Optional

import numpy as np

from vitalmon.core.enums import AlarmPriority, RhythmType, ToneProfile
from vitalmon.core.events import ToneRequest
from vitalmon.core.scheduler import Scheduler
from vitalmon.core.state import (
    AlarmLimits,
    ArtifactFlags,
    MonitorConfig,
    MonitorState,
    VitalSigns,
    VitalsStore,
)
from vitalmon.core.constants import ECG_LEADS, FRAME_INTERVAL_MS, FROZEN_FRAME_INTERVAL_MS
from vitalmon.monitors.alarms import AlarmEngine
from vitalmon.monitors.ecg import ArtifactInjector, RhythmModel, beat_position
from vitalmon.monitors.nibp import NIBPCycle
from vitalmon.monitors.spo2 import PlethModel
from vitalmon.monitors.tones import HeartbeatClock, ToneSynthesizer
from vitalmon.monitors.waveforms import WaveformFrame

logger = logging.getLogger(__name__)


def parse_lead(lead) -> str:
    """Canonical lead name for a case-insensitive label; ValueError if unknown."""
    for name in ECG_LEADS:
        if name.lower() == str(lead).strip().lower():
            return name
    raise ValueError(f"Unknown ECG lead: {lead!r}")


class MonitorEngine:
    """
    Bedside monitor orchestrator.

    Holds the vitals store, alarm limits, artifact flags and every component
    explicitly; there is no process-wide state. All input enters through the
    command methods below and is processed synchronously. Time advances only
    through `step()`, which drives the scheduler that owns the waveform
    ticks, heartbeat polling, NIBP transitions and alarm silence expiry.

    Outputs go to listener lists:
    - ecg_listeners / pleth_listeners: WaveformFrame per tick
    - alarm_listeners: AlarmEvent
    - tone_listeners: ToneRequest
    - nibp_listeners: NIBPUpdate
    """
    def __init__(self, config: MonitorConfig = None, scheduler: Scheduler = None):
        self.config = config or MonitorConfig()
        self.scheduler = scheduler or Scheduler()

        # Random number generator shared by all stochastic models.
        self.rng = np.random.default_rng(self.config.rng_seed)

        self.store = VitalsStore(VitalSigns(), AlarmLimits(self.config.alarm_limits))
        for kind, value in self.config.initial_vitals.items():
            self.store.set(kind, value)
        self.artifacts = ArtifactFlags()

        # ECG analysis settings.
        self.rhythm_label = "NSR"
        self.rhythm: Optional[RhythmType] = RhythmType.NSR
        self.ecg_lead = parse_lead(self.config.ecg_lead)
        self.st_elevation = 0.0
        self.qt_interval = 400.0

        # Display/audio settings.
        self.frozen = False
        self._frozen_time_s = 0.0
        self.waveform_speed = self.config.waveform_speed
        self.big_numbers = bool(self.config.big_numbers)
        self.volume = min(1.0, max(0.0, self.config.volume))
        self.audio_available = self.config.audio_available
        self.audio_enabled = self.audio_available
        if not self.audio_available:
            logger.warning("Audio output not available - audio features disabled")

        # Listeners.
        self.ecg_listeners = []
        self.pleth_listeners = []
        self.tone_listeners = []

        # Models.
        self.rhythm_model = RhythmModel(self.rng, ectopy_per_beat=self.config.ectopy_per_beat)
        self.artifact_injector = ArtifactInjector(self.rng)
        self.pleth_model = PlethModel(self.rng)
        self.tones = ToneSynthesizer()

        # State machines.
        self.alarms = AlarmEngine(
            self.scheduler,
            tone_requester=self.request_tone,
            priority=AlarmPriority.parse(self.config.alarm_priority),
        )
        self.nibp = NIBPCycle(
            self.scheduler,
            interval_minutes=self.config.nibp_interval_min,
            pressure_source=lambda: (self.store.vitals.systolic_bp, self.store.vitals.diastolic_bp),
        )
        self.heartbeat = HeartbeatClock(
            self.scheduler,
            rate_source=lambda: self.store.vitals.heart_rate,
            on_beat=self._on_heartbeat,
            rng=self.rng,
        )

        self.last_ecg_frame: Optional[WaveformFrame] = None
        self.last_pleth_frame: Optional[WaveformFrame] = None
        self._ecg_task = None
        self._pleth_task = None
        self.running = False

    # --- Listener shortcuts ---

    @property
    def alarm_listeners(self):
        return self.alarms.listeners

    @property
    def nibp_listeners(self):
        return self.nibp.listeners

    @property
    def now_ms(self) -> float:
        return self.scheduler.now

    # --- Lifecycle ---

    def start(self):
        """Install the waveform ticks and heartbeat clock."""
        if self.running:
            return
        self.running = True
        interval = self._frame_interval()
        self._ecg_task = self.scheduler.call_every(interval, self._ecg_tick, first_delay_ms=0.0)
        self._pleth_task = self.scheduler.call_every(interval, self._pleth_tick, first_delay_ms=0.0)
        self.heartbeat.start()
        logger.info("Monitor started")

    def stop(self):
        self.running = False
        for task in (self._ecg_task, self._pleth_task):
            if task is not None:
                task.cancel()
        self._ecg_task = None
        self._pleth_task = None
        self.heartbeat.stop()
        logger.info("Monitor stopped")

    def step(self, dt_ms: float):
        """Advance monitor time by dt_ms milliseconds."""
        if dt_ms <= 0:
            return
        self.scheduler.advance(dt_ms)

    # --- Vitals and ECG settings ---

    def set_vital(self, kind, value):
        self.store.set(kind, value)
        self.check_alarms()

    def set_rhythm(self, label):
        self.rhythm_label = label.name if isinstance(label, RhythmType) else str(label)
        self.rhythm = RhythmType.parse(label)
        if self.rhythm is None:
            logger.info("Unknown rhythm %r, displaying sinus morphology", label)
        self.alarms.check_rhythm(self.rhythm)

    def set_lead(self, lead):
        """Select the displayed ECG lead. The waveform itself is lead-independent."""
        self.ecg_lead = parse_lead(lead)
        logger.info("Switched to ECG lead %s", self.ecg_lead)

    def set_artifact(self, flag: str, enabled: bool):
        self.artifacts.set(flag, enabled)

    def set_st_elevation(self, mm: float):
        self.st_elevation = float(mm)
        self.alarms.check_st(self.st_elevation)

    def set_qt_interval(self, ms: float):
        self.qt_interval = ms
        self.alarms.check_qt(ms)

    # --- Alarm commands ---

    def check_alarms(self):
        """
        Re-evaluate the vitals against their limits.

        Returns the AlarmEvaluation, or None when evaluation was skipped
        because alarms are disabled or silenced. Callers must handle None.
        """
        return self.alarms.evaluate(self.store.vitals, self.store.limits)

    def set_alarm_enabled(self, enabled: bool):
        self.alarms.set_enabled(enabled)

    def set_alarm_priority(self, priority):
        self.alarms.set_priority(priority)

    def test_alarm(self):
        self.alarms.test_alarm()

    def silence_alarm(self):
        self.alarms.silence()

    def reset_alarms(self):
        self.alarms.reset()

    # --- Audio ---

    def set_audio_enabled(self, enabled: bool):
        if enabled and not self.audio_available:
            logger.warning("Audio output not available - cannot enable audio")
            return
        self.audio_enabled = bool(enabled)

    def set_volume(self, volume: float):
        self.volume = min(1.0, max(0.0, float(volume)))

    def request_tone(self, profile: ToneProfile) -> Optional[ToneRequest]:
        """Publish a tone request if audio is on; returns it (or None)."""
        if not (self.audio_enabled and self.audio_available):
            return None
        envelope = self.tones.synthesize(profile, self.volume)
        request = ToneRequest(profile, self.volume, envelope, self.scheduler.now)
        for listener in self.tone_listeners:
            listener(request)
        return request

    def _on_heartbeat(self):
        self.request_tone(ToneProfile.HEARTBEAT)

    # --- NIBP ---

    def start_nibp(self):
        self.nibp.start()

    def stop_nibp(self):
        self.nibp.stop()

    def set_nibp_interval(self, minutes: int):
        self.nibp.set_interval(minutes)

    # --- Display ---

    def set_waveform_speed(self, mm_per_s: int):
        # Display only; the waveform math does not use it.
        self.waveform_speed = mm_per_s

    def set_frozen(self, frozen: bool):
        frozen = bool(frozen)
        if frozen == self.frozen:
            return
        if frozen:
            self._frozen_time_s = self.scheduler.now / 1000.0
        self.frozen = frozen
        interval = self._frame_interval()
        for task in (self._ecg_task, self._pleth_task):
            if task is not None:
                task.set_interval(interval)

    def set_big_numbers(self, enabled: bool):
        # Display only.
        self.big_numbers = bool(enabled)

    def _frame_interval(self) -> float:
        return FROZEN_FRAME_INTERVAL_MS if self.frozen else FRAME_INTERVAL_MS

    def sample_time(self) -> float:
        """Waveform time in seconds; held constant while frozen."""
        return self._frozen_time_s if self.frozen else self.scheduler.now / 1000.0

    # --- Waveforms ---

    # Synthesizers bind the settings in force when the frame is built, so a
    # frame keeps its rhythm and rate after later commands.

    def _ecg_synthesizer(self):
        heart_rate = self.store.vitals.heart_rate
        rhythm = self.rhythm
        st_elevation = self.st_elevation
        artifacts = copy.copy(self.artifacts)

        def synthesize(times: np.ndarray) -> np.ndarray:
            index, phase = beat_position(times, heart_rate)
            amplitude = self.rhythm_model.generate_ecg(
                rhythm, phase, times, st_elevation=st_elevation, beat_index=index
            )
            return self.artifact_injector.apply(amplitude, times, artifacts)
        return synthesize

    def _pleth_synthesizer(self):
        heart_rate = self.store.vitals.heart_rate
        spo2 = self.store.vitals.spo2

        def synthesize(times: np.ndarray) -> np.ndarray:
            _index, phase = beat_position(times, heart_rate)
            return self.pleth_model.generate_pleth(heart_rate, spo2, phase, times)
        return synthesize

    def ecg_frame(self) -> WaveformFrame:
        return WaveformFrame(self.sample_time(), self.config.canvas_width,
                             self.config.sweep_window_s, self._ecg_synthesizer())

    def pleth_frame(self) -> WaveformFrame:
        return WaveformFrame(self.sample_time(), self.config.canvas_width,
                             self.config.sweep_window_s, self._pleth_synthesizer())

    def _ecg_tick(self):
        frame = self.ecg_frame()
        self.last_ecg_frame = frame
        for listener in self.ecg_listeners:
            listener(frame)

    def _pleth_tick(self):
        frame = self.pleth_frame()
        self.last_pleth_frame = frame
        for listener in self.pleth_listeners:
            listener(frame)

    # --- Snapshot ---

    def get_latest_state(self) -> MonitorState:
        """Return a snapshot of the current monitor state."""
        reading = self.nibp.latest_reading
        return MonitorState(
            time_ms=self.scheduler.now,
            vitals=self.store.snapshot(),
            rhythm_label=self.rhythm_label,
            ecg_lead=self.ecg_lead,
            st_elevation=self.st_elevation,
            qt_interval=self.qt_interval,
            artifacts=copy.copy(self.artifacts),
            alarm_enabled=self.alarms.enabled,
            alarm_active=self.alarms.active,
            alarm_silenced=self.alarms.silenced,
            silence_expires_at=self.alarms.silence_expires_at,
            alarm_priority=self.alarms.priority,
            alarm_message=self.alarms.message,
            overlays=dict(self.alarms.overlays),
            qt_prolonged=self.alarms.qt_prolonged,
            nibp_status=self.nibp.status,
            nibp_interval_min=self.nibp.interval_minutes,
            nibp_sys=reading.systolic if reading else None,
            nibp_dia=reading.diastolic if reading else None,
            nibp_map=reading.map if reading else None,
            nibp_timestamp=reading.timestamp if reading else None,
            frozen=self.frozen,
            audio_enabled=self.audio_enabled,
            volume=self.volume,
            waveform_speed=self.waveform_speed,
            big_numbers=self.big_numbers,
        )
