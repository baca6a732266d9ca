import numpy as np


class PlethModel:
    """
    Plethysmograph synthesis.
    A raised sine per cardiac cycle scaled by the SpO2 fraction, plus a
    little sensor noise. Artifacts are not applied to the pleth trace.
    """
    def __init__(self, rng: np.random.Generator = None):
        self.rng = rng if rng is not None else np.random.default_rng()

    def generate_pleth(self, heart_rate: float, spo2: float, beat_phase, time=0.0):
        """Return pleth amplitude for scalar or array beat phase."""
        scalar = np.ndim(beat_phase) == 0
        phase = np.atleast_1d(np.asarray(beat_phase, dtype=float))

        amplitude = 0.3 + 0.7 * np.sin(phase * np.pi * 2)
        amplitude *= spo2 / 100.0
        amplitude += (self.rng.random(phase.shape) - 0.5) * 0.1

        return float(amplitude[0]) if scalar else amplitude
