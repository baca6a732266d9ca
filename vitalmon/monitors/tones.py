"""
Audio cue parameterization.

ToneSynthesizer turns a cue profile and a volume into a ToneEnvelope: the
oscillators, filters, gain breakpoints and dynamics settings an audio
backend needs to play the cue. No samples are produced here.

HeartbeatClock decides when heartbeat cues fire, with beat-to-beat
variability that depends on the rate band.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Callable, Optional, Tuple

import numpy as np

from vitalmon.core.enums import ToneProfile
from vitalmon.core.constants import (
    BRADY_THRESHOLD_BPM,
    HEARTBEAT_POLL_MS,
    HR_VARIATION_BRADY,
    HR_VARIATION_NORMAL,
    HR_VARIATION_TACHY,
    TACHY_THRESHOLD_BPM,
    TONE_SILENCE_FLOOR,
)
from vitalmon.monitors.ecg import effective_rate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Breakpoint:
    """Gain target reached at `time` (s from cue start) via the given ramp."""
    time: float
    value: float
    ramp: str = "set"  # 'set', 'linear' or 'exponential'


@dataclass(frozen=True)
class FilterSpec:
    kind: str  # 'lowpass' or 'bandpass'
    frequency: float
    q: float
    frequency_end: Optional[float] = None  # exponential sweep target at cue end


@dataclass(frozen=True)
class Tremolo:
    rate_hz: float
    depth: float
    waveform: str = "sine"


@dataclass(frozen=True)
class CompressorSpec:
    threshold_db: float
    knee_db: float
    ratio: float
    attack_s: float
    release_s: float


@dataclass(frozen=True)
class Voice:
    frequency: float
    waveform: str
    start: float
    stop: float
    gain: Tuple[Breakpoint, ...]
    filter: Optional[FilterSpec] = None
    tremolo: Optional[Tremolo] = None

    @property
    def peak_gain(self) -> float:
        return max(bp.value for bp in self.gain)

    def gain_at(self, times) -> np.ndarray:
        """
        Evaluate the gain envelope at `times` (s) with Web Audio ramp rules:
        a ramp runs from the previous breakpoint to its own, exponential ramps
        hold their start value when either end is not positive, and the
        tremolo adds to the gain. Zero outside [start, stop).
        """
        t = np.asarray(times, dtype=float)
        first = self.gain[0]
        out = np.where(t >= first.time, first.value, 0.0)
        prev_t, prev_v = first.time, first.value

        for bp in self.gain[1:]:
            span = bp.time - prev_t
            if span > 0:
                frac = np.clip((t - prev_t) / span, 0.0, 1.0)
            else:
                frac = np.ones_like(t)
            if bp.ramp == "linear":
                vals = prev_v + (bp.value - prev_v) * frac
            elif bp.ramp == "exponential" and prev_v > 0 and bp.value > 0:
                vals = prev_v * (bp.value / prev_v) ** frac
            else:
                vals = np.full_like(t, prev_v)
            in_ramp = (t >= prev_t) & (t < bp.time)
            out = np.where(in_ramp, vals, out)
            out = np.where(t >= bp.time, bp.value, out)
            prev_t, prev_v = bp.time, bp.value

        if self.tremolo is not None:
            out = out + self.tremolo.depth * np.sin(2 * np.pi * self.tremolo.rate_hz * t)

        active = (t >= self.start) & (t < self.stop)
        return np.where(active, out, 0.0)


@dataclass(frozen=True)
class ToneEnvelope:
    profile: ToneProfile
    volume: float
    duration: float
    voices: Tuple[Voice, ...]
    compressor: Optional[CompressorSpec] = None

    def as_dict(self) -> dict:
        data = asdict(self)
        data["profile"] = self.profile.value
        return data


class ToneSynthesizer:
    """Stateless generator of tone envelopes. Amplitudes scale linearly with volume."""

    HEARTBEAT_DURATION = 0.15
    CLICK_DURATION = 0.01
    ALARM_DURATION = 0.4

    def synthesize(self, profile, volume: float) -> ToneEnvelope:
        profile = ToneProfile(profile)
        if profile == ToneProfile.HEARTBEAT:
            return self.heartbeat(volume)
        return self.alarm(volume)

    def heartbeat(self, volume: float) -> ToneEnvelope:
        d = self.HEARTBEAT_DURATION
        beep = Voice(
            frequency=1000.0,
            waveform="sine",
            start=0.0,
            stop=d,
            # Fast attack, two-stage decay
            gain=(
                Breakpoint(0.0, 0.0),
                Breakpoint(0.005, 0.3 * volume, "linear"),
                Breakpoint(0.03, 0.1 * volume, "exponential"),
                Breakpoint(d, TONE_SILENCE_FLOOR, "exponential"),
            ),
            filter=FilterSpec("lowpass", 2000.0, 1.0, frequency_end=1500.0),
        )
        click = Voice(
            frequency=2000.0,
            waveform="square",
            start=0.0,
            stop=self.CLICK_DURATION,
            gain=(
                Breakpoint(0.0, 0.0),
                Breakpoint(0.001, 0.1 * volume, "linear"),
                Breakpoint(self.CLICK_DURATION, TONE_SILENCE_FLOOR, "exponential"),
            ),
        )
        return ToneEnvelope(ToneProfile.HEARTBEAT, volume, d, (beep, click))

    def alarm(self, volume: float) -> ToneEnvelope:
        d = self.ALARM_DURATION
        primary = Voice(
            frequency=1200.0,
            waveform="sine",
            start=0.0,
            stop=d,
            gain=(
                Breakpoint(0.0, 0.0),
                Breakpoint(0.01, 0.4 * volume, "linear"),
                Breakpoint(d * 0.7, 0.2 * volume, "exponential"),
                Breakpoint(d, TONE_SILENCE_FLOOR, "exponential"),
            ),
            filter=FilterSpec("bandpass", 1200.0, 2.0),
            tremolo=Tremolo(6.0, 0.1 * volume),
        )
        secondary = Voice(
            frequency=800.0,
            waveform="triangle",
            start=0.0,
            stop=d,
            gain=(
                Breakpoint(0.0, 0.0),
                Breakpoint(0.01, 0.3 * volume, "linear"),
                Breakpoint(d * 0.7, 0.15 * volume, "exponential"),
                Breakpoint(d, TONE_SILENCE_FLOOR, "exponential"),
            ),
            filter=FilterSpec("bandpass", 800.0, 1.5),
        )
        compressor = CompressorSpec(threshold_db=-20.0, knee_db=30.0, ratio=12.0,
                                    attack_s=0.003, release_s=0.1)
        return ToneEnvelope(ToneProfile.ALARM, volume, d, (primary, secondary), compressor)


def variation_width(heart_rate: float) -> float:
    """Full width of the uniform beat-to-beat variation for a rate band."""
    if heart_rate < BRADY_THRESHOLD_BPM:
        return HR_VARIATION_BRADY
    if heart_rate > TACHY_THRESHOLD_BPM:
        return HR_VARIATION_TACHY
    return HR_VARIATION_NORMAL


def base_interval_ms(heart_rate: float) -> float:
    return 60000.0 / effective_rate(heart_rate)


class HeartbeatClock:
    """
    Polls every HEARTBEAT_POLL_MS and fires `on_beat` once the time since
    the last beat reaches the current jittered interval. The variation is
    drawn once per beat; the base interval follows the live heart rate.
    """
    def __init__(self, scheduler, rate_source: Callable[[], float], on_beat: Callable[[], None],
                 rng: np.random.Generator = None):
        self.scheduler = scheduler
        self.rate_source = rate_source
        self.on_beat = on_beat
        self.rng = rng if rng is not None else np.random.default_rng()
        self.last_beat_ms: Optional[float] = None
        self.beats = 0
        self._variation = self._draw_variation()
        self._task = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.cancelled

    def current_interval_ms(self) -> float:
        return base_interval_ms(self.rate_source()) * (1.0 + self._variation)

    def _draw_variation(self) -> float:
        width = variation_width(self.rate_source())
        return (self.rng.random() - 0.5) * width

    def start(self):
        if self.running:
            return
        self._task = self.scheduler.call_every(HEARTBEAT_POLL_MS, self.poll, first_delay_ms=0.0)

    def stop(self):
        if self._task is not None:
            self._task.cancel()
            self._task = None

    def poll(self):
        now = self.scheduler.now
        if self.last_beat_ms is not None and now - self.last_beat_ms < self.current_interval_ms():
            return
        self.last_beat_ms = now
        self.beats += 1
        self._variation = self._draw_variation()
        logger.debug("Heartbeat %d at %.0f ms", self.beats, now)
        self.on_beat()
