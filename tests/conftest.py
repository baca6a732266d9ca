from pathlib import Path
import sys

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import numpy as np
import pytest

from vitalmon.core.engine import MonitorEngine
from vitalmon.core.scheduler import Scheduler
from vitalmon.core.state import MonitorConfig


@pytest.fixture
def rng():
    """Seeded generator so stochastic waveforms are reproducible."""
    return np.random.default_rng(1234)


@pytest.fixture
def scheduler():
    return Scheduler()


@pytest.fixture
def engine_factory():
    """Factory for monitor engines with overrides applied to MonitorConfig."""
    def _create(config=None, start=False, **config_overrides):
        if config is None:
            config_overrides.setdefault("rng_seed", 42)
            config = MonitorConfig(**config_overrides)
        engine = MonitorEngine(config)
        if start:
            engine.start()
        return engine

    return _create


@pytest.fixture
def advance_time():
    """Helper to advance engines or schedulers using consistent step handling (ms)."""
    def _advance(target, ms, dt=10.0):
        if ms <= 0:
            return
        step = target.step if hasattr(target, "step") else target.advance
        steps = int(ms / dt)
        for _ in range(steps):
            step(dt)
        remainder = ms - steps * dt
        if remainder > 1e-9:
            step(remainder)

    return _advance
