"""
Per-tick waveform frames.

A frame covers one canvas width of columns spanning `window_s` seconds of
signal starting at the tick time. Nothing is buffered between frames: each
iteration recomputes the samples from the frame's start time.
"""

from typing import Callable, Iterator

import numpy as np

from vitalmon.core.events import WaveformSample


def sweep_times(start_s: float, width: int, window_s: float) -> np.ndarray:
    """Sample time for each column: t_x = t0 + (x / width) * window."""
    return start_s + (np.arange(width) / float(width)) * window_s


class WaveformFrame:
    """
    Finite, restartable lazy sequence of WaveformSample(x, amplitude).

    `synthesize` maps an array of sample times to amplitudes using the
    settings captured when the frame was built. It is called again on every
    iteration, so stochastic rhythms give fresh noise each pass while
    deterministic ones repeat exactly.
    """
    def __init__(self, start_s: float, width: int, window_s: float,
                 synthesize: Callable[[np.ndarray], np.ndarray]):
        self.start_s = start_s
        self.width = int(width)
        self.window_s = window_s
        self._synthesize = synthesize

    def times(self) -> np.ndarray:
        return sweep_times(self.start_s, self.width, self.window_s)

    def amplitudes(self) -> np.ndarray:
        return np.asarray(self._synthesize(self.times()), dtype=float)

    def __len__(self) -> int:
        return self.width

    def __iter__(self) -> Iterator[WaveformSample]:
        for x, amplitude in enumerate(self.amplitudes()):
            yield WaveformSample(x, float(amplitude))

    def __repr__(self):
        return f"WaveformFrame(t0={self.start_s:.3f}s, width={self.width}, window={self.window_s}s)"
