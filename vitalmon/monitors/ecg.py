import numpy as np

from vitalmon.core.enums import RhythmType
from vitalmon.core.constants import HR_FLOOR_BPM, PVC_PROBABILITY


def effective_rate(heart_rate: float) -> float:
    """Heart rate used for timing math; never below HR_FLOOR_BPM."""
    return max(HR_FLOOR_BPM, float(heart_rate))


def beat_position(time, heart_rate: float):
    """
    Return (beat_index, beat_phase) for time in seconds.
    beat_phase = (time * hr / 60) mod 1, beat_index counts whole cycles.
    """
    beats = np.asarray(time, dtype=float) * effective_rate(heart_rate) / 60.0
    index = np.floor(beats)
    phase = beats - index
    if np.ndim(beats) == 0:
        return int(index), float(phase)
    return index.astype(np.int64), phase


def beat_phase(time, heart_rate: float):
    return beat_position(time, heart_rate)[1]


def _sinus_shape(phase: np.ndarray, p_scale=0.2) -> np.ndarray:
    # P wave, QRS complex, T wave
    return np.select(
        [phase < 0.1, phase < 0.15, phase < 0.3],
        [
            np.sin(phase * np.pi * 10) * p_scale,
            np.sin((phase - 0.1) * np.pi * 20) * 1.0,
            np.sin((phase - 0.15) * np.pi * 6.67) * 0.3,
        ],
        default=0.0,
    )


def _vt_shape(phase: np.ndarray) -> np.ndarray:
    # Wide QRS
    return np.select(
        [phase < 0.1, phase < 0.2, phase < 0.4],
        [
            np.sin(phase * np.pi * 10) * 0.1,
            np.sin((phase - 0.1) * np.pi * 10) * 1.2,
            np.sin((phase - 0.2) * np.pi * 5) * 0.4,
        ],
        default=0.0,
    )


def _pvc_shape(phase: np.ndarray) -> np.ndarray:
    # Premature ectopic beat: tall wide complex, no P wave
    return np.select(
        [phase < 0.15, phase < 0.3],
        [
            np.sin(phase * np.pi * 13.3) * 1.5,
            np.sin((phase - 0.15) * np.pi * 6.67) * 0.5,
        ],
        default=0.0,
    )


def _restore(values: np.ndarray, scalar: bool):
    return float(values[0]) if scalar else values


class RhythmModel:
    """
    Piecewise ECG synthesis for the supported rhythms.

    Accepts scalar or array phases so a whole sweep can be computed in one
    call. Randomness (AF baseline, VF, PVC ectopy, baseline noise) is drawn
    from the injected generator so runs are reproducible with a seed.

    PVC ectopy is decided per beat when a beat index is supplied and
    `ectopy_per_beat` is set: the draw is keyed on the beat number, so an
    ectopic beat keeps its shape while it scrolls across successive frames.
    Otherwise every sample draws independently.
    """
    def __init__(self, rng: np.random.Generator = None, ectopy_per_beat: bool = True):
        self.rng = rng if rng is not None else np.random.default_rng()
        self.ectopy_per_beat = ectopy_per_beat
        self._beat_seed = int(self.rng.integers(0, 2**32))

    def ectopic_beats(self, beat_index) -> np.ndarray:
        """Boolean mask: which beat numbers are premature ventricular beats."""
        idx = np.asarray(beat_index, dtype=np.int64)
        flat = idx.reshape(-1)
        unique, inverse = np.unique(flat, return_inverse=True)
        draws = np.array([
            np.random.default_rng([self._beat_seed, int(b) % 2**63]).random()
            for b in unique
        ])
        return (draws < PVC_PROBABILITY)[inverse.reshape(-1)].reshape(idx.shape)

    def _ectopic_mask(self, shape, beat_index) -> np.ndarray:
        if self.ectopy_per_beat and beat_index is not None:
            return self.ectopic_beats(np.broadcast_to(beat_index, shape))
        return self.rng.random(shape) < PVC_PROBABILITY

    def _base(self, rhythm, phase: np.ndarray, beat_index=None) -> np.ndarray:
        rhythm = RhythmType.parse(rhythm)

        if rhythm == RhythmType.VF:
            # Chaotic, ignores phase entirely
            return (self.rng.random(phase.shape) - 0.5) * 2.0

        if rhythm == RhythmType.AF:
            # Irregular atrial baseline in place of a clean P wave
            irregularity = (self.rng.random(phase.shape) - 0.5) * 0.3
            return _sinus_shape(phase, p_scale=0.1 + irregularity)

        if rhythm == RhythmType.VT:
            return _vt_shape(phase)

        if rhythm == RhythmType.PVC:
            ectopic = self._ectopic_mask(phase.shape, beat_index)
            return np.where(ectopic, _pvc_shape(phase), _sinus_shape(phase))

        # NSR, AFL, PAC and unrecognized rhythms share the sinus shape.
        return _sinus_shape(phase)

    def base_amplitude(self, rhythm, beat_phase, time=0.0, beat_index=None):
        """Rhythm waveform before ST overlay and baseline noise."""
        scalar = np.ndim(beat_phase) == 0
        phase = np.atleast_1d(np.asarray(beat_phase, dtype=float))
        return _restore(self._base(rhythm, phase, beat_index), scalar)

    def generate_ecg(self, rhythm, beat_phase, time=0.0, st_elevation: float = 0.0, beat_index=None):
        """
        ECG amplitude for a rhythm at the given cardiac phase.
        Adds the ST-segment overlay and baseline noise. Output is not clamped.
        """
        scalar = np.ndim(beat_phase) == 0
        phase = np.atleast_1d(np.asarray(beat_phase, dtype=float))
        amp = self._base(rhythm, phase, beat_index)

        st_window = (phase >= 0.15) & (phase < 0.25)
        amp = amp + np.where(st_window, st_elevation * 0.3, 0.0)

        amp = amp + (self.rng.random(phase.shape) - 0.5) * 0.05
        return _restore(amp, scalar)


class ArtifactInjector:
    """Additive signal artifacts. Each term is gated by its flag; terms simply sum."""
    def __init__(self, rng: np.random.Generator = None):
        self.rng = rng if rng is not None else np.random.default_rng()

    def apply(self, amplitude, time, flags):
        scalar = np.ndim(amplitude) == 0 and np.ndim(time) == 0
        amp = np.atleast_1d(np.asarray(amplitude, dtype=float))
        t = np.atleast_1d(np.asarray(time, dtype=float))
        out, t = np.broadcast_arrays(amp, t)
        out = out.copy()

        if flags.motion:
            out += np.sin(t * 2) * 0.3
        if flags.poor_contact:
            out += (self.rng.random(out.shape) - 0.5) * 0.4
        if flags.muscle_tremor:
            out += np.sin(t * 8) * 0.2
        if flags.baseline_drift:
            out += np.sin(t * 0.1) * 0.5

        return _restore(out, scalar)
