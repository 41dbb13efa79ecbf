"""Tests for the propjax.config module."""

import jax.numpy as jnp
import pytest

from propjax.config import get_dtype, get_epoch_tolerance, set_dtype
from propjax.orbits import keplerian_to_cartesian


@pytest.fixture(autouse=True)
def reset_dtype():
    """Restore float64 after each test."""
    yield
    set_dtype(jnp.float64)


class TestGetSetDtype:
    def test_default_dtype(self):
        assert get_dtype() == jnp.float64

    def test_x64_enabled(self):
        assert jnp.array(1.0).dtype == jnp.float64

    def test_set_float32(self):
        set_dtype(jnp.float32)
        assert get_dtype() == jnp.float32

    def test_roundtrip(self):
        for dtype in (jnp.float32, jnp.float64):
            set_dtype(dtype)
            assert get_dtype() == dtype

    def test_invalid_dtype_raises(self):
        with pytest.raises(ValueError, match="Unsupported dtype"):
            set_dtype(jnp.int32)

    def test_half_precision_rejected(self):
        with pytest.raises(ValueError, match="Unsupported dtype"):
            set_dtype(jnp.float16)

    def test_invalid_dtype_string_raises(self):
        with pytest.raises(ValueError, match="Unsupported dtype"):
            set_dtype("float32")


class TestDtypeEffect:
    def test_conversion_follows_dtype(self):
        """Conversions coerce their inputs to the configured dtype."""
        set_dtype(jnp.float32)
        state = keplerian_to_cartesian(jnp.array([7.0e6, 0.001, 1.0, 0.0, 0.0, 0.0]))
        assert state.dtype == jnp.float32

    def test_conversion_float64(self):
        state = keplerian_to_cartesian(jnp.array([7.0e6, 0.001, 1.0, 0.0, 0.0, 0.0]))
        assert state.dtype == jnp.float64


class TestEpochTolerance:
    def test_float64_tolerance(self):
        assert get_epoch_tolerance() == 1e-9

    def test_float32_tolerance(self):
        set_dtype(jnp.float32)
        assert get_epoch_tolerance() == 1e-3
