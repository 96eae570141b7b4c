import numpy as np
import pytest

from simulation import Simulation


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def small_sim():
    """Factory for a small, seeded arena that ticks quickly."""
    def _make(**kwargs):
        params = dict(width=160, height=160, border_width=16, seed=42)
        params.update(kwargs)
        return Simulation(**params)
    return _make
