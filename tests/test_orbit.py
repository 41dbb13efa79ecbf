"""Tests for the Orbit value type."""

import jax.numpy as jnp
import pytest

from propjax.constants import GM_EARTH
from propjax.orbits import Orbit, OrbitType, PositionAngleType, keplerian_to_cartesian


class TestConstruction:
    def test_from_keplerian(self, leo_orbit):
        assert leo_orbit.orbit_type is OrbitType.KEPLERIAN
        assert float(leo_orbit.a) == pytest.approx(7.0e6)
        assert float(leo_orbit.e) == pytest.approx(1.0e-3)
        assert leo_orbit.mu == GM_EARTH
        assert leo_orbit.frame == "GCRF"

    def test_from_cartesian(self, leo_orbit):
        orbit = Orbit.from_cartesian(leo_orbit.position, leo_orbit.velocity, epoch=10.0)
        assert orbit.orbit_type is OrbitType.CARTESIAN
        assert orbit.epoch == 10.0
        assert float(orbit.a) == pytest.approx(7.0e6, rel=1e-10)

    def test_from_circular_and_equinoctial(self, leo_orbit):
        circ = leo_orbit.convert(OrbitType.CIRCULAR)
        eq = leo_orbit.convert(OrbitType.EQUINOCTIAL)
        rebuilt_circ = Orbit.from_circular(*[float(x) for x in circ.elements])
        rebuilt_eq = Orbit.from_equinoctial(*[float(x) for x in eq.elements])
        assert jnp.allclose(rebuilt_circ.position, leo_orbit.position, atol=1e-6)
        assert jnp.allclose(rebuilt_eq.position, leo_orbit.position, atol=1e-6)

    def test_wrong_number_of_elements(self):
        with pytest.raises(ValueError, match="6 elements"):
            Orbit(jnp.zeros(5), OrbitType.KEPLERIAN)

    def test_inconsistent_conic(self):
        """A positive semi-major axis with e > 1 is not a conic."""
        with pytest.raises(ValueError, match="valid conic"):
            Orbit.from_keplerian(7.0e6, 1.5, 1.0, 0.0, 0.0, 0.0)

    def test_frozen(self, leo_orbit):
        with pytest.raises(AttributeError):
            leo_orbit.epoch = 5.0


class TestRepresentations:
    def test_cartesian_matches_conversion(self, leo_orbit):
        expected = keplerian_to_cartesian(leo_orbit.elements, PositionAngleType.MEAN, GM_EARTH)
        assert jnp.allclose(leo_orbit.cartesian, expected)

    def test_position_velocity_split(self, leo_orbit):
        assert jnp.array_equal(leo_orbit.position, leo_orbit.cartesian[:3])
        assert jnp.array_equal(leo_orbit.velocity, leo_orbit.cartesian[3:])

    def test_convert_same_type_returns_self(self, leo_orbit):
        assert leo_orbit.convert(OrbitType.KEPLERIAN, PositionAngleType.MEAN) is leo_orbit

    @pytest.mark.parametrize("orbit_type", list(OrbitType))
    def test_convert_preserves_state(self, eccentric_orbit, orbit_type):
        converted = eccentric_orbit.convert(orbit_type, PositionAngleType.TRUE)
        assert converted.epoch == eccentric_orbit.epoch
        assert jnp.allclose(converted.cartesian, eccentric_orbit.cartesian, rtol=1e-11, atol=1e-6)

    def test_inclination_of_every_type(self, eccentric_orbit):
        for orbit_type in OrbitType:
            assert float(eccentric_orbit.convert(orbit_type).i) == pytest.approx(
                float(eccentric_orbit.i), rel=1e-11
            )


class TestShift:
    def test_full_period(self, eccentric_orbit):
        """Shifting by one Keplerian period gives the same position."""
        T = float(eccentric_orbit.keplerian_period)
        shifted = eccentric_orbit.shifted_by(T)
        assert shifted.epoch == pytest.approx(T)
        assert jnp.allclose(shifted.position, eccentric_orbit.position, atol=1e-4)

    def test_shift_keeps_type(self, eccentric_orbit):
        shifted = eccentric_orbit.shifted_by(100.0)
        assert shifted.orbit_type is OrbitType.KEPLERIAN
        assert float(shifted.a) == pytest.approx(float(eccentric_orbit.a), rel=1e-12)

    def test_mean_motion(self, leo_orbit):
        assert float(leo_orbit.mean_motion * leo_orbit.keplerian_period) == pytest.approx(2.0 * jnp.pi)

    def test_repr(self, leo_orbit):
        assert "keplerian" in repr(leo_orbit).lower()
