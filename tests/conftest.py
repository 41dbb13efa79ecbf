import jax.numpy as jnp
import pytest

from propjax.config import set_dtype
from propjax.constants import DEG2RAD
from propjax.orbits import Orbit, PositionAngleType


@pytest.fixture(autouse=True)
def _ensure_float64():
    """Set float64 precision before every test.

    With pytest-xdist, each worker process starts fresh; test_config.py
    switches to float32 in some tests, so every test resets it here.
    """
    set_dtype(jnp.float64)


@pytest.fixture
def leo_orbit():
    """Near-circular, sun-synchronous-like low Earth orbit (Keplerian, mean anomaly)."""
    return Orbit.from_keplerian(
        7.0e6,
        1.0e-3,
        98.0 * DEG2RAD,
        20.0 * DEG2RAD,
        90.0 * DEG2RAD,
        10.0 * DEG2RAD,
        PositionAngleType.MEAN,
        epoch=0.0,
    )


@pytest.fixture
def eccentric_orbit():
    """Moderately eccentric inclined orbit."""
    return Orbit.from_keplerian(
        8.0e6,
        0.05,
        50.0 * DEG2RAD,
        30.0 * DEG2RAD,
        40.0 * DEG2RAD,
        60.0 * DEG2RAD,
        PositionAngleType.MEAN,
        epoch=0.0,
    )
