"""Tests for the two-body theory and its propagator."""

import jax.numpy as jnp
import pytest

from propjax.constants import GM_EARTH
from propjax.errors import EccentricityTooLargeError
from propjax.orbits import Orbit, OrbitType
from propjax.propagation import AnalyticalPropagator, PropagationType, create_keplerian_propagator
from propjax.theories import MU_PARAMETER, KeplerianTheory, mean_from_osculating


class TestKeplerianTheory:
    def test_metadata(self):
        theory = KeplerianTheory(GM_EARTH)
        assert theory.orbit_type is OrbitType.EQUINOCTIAL
        assert [driver.name for driver in theory.parameter_drivers()] == [MU_PARAMETER]
        assert theory.mu({MU_PARAMETER: 1.0}) == 1.0

    def test_mean_equals_osculating(self, eccentric_orbit):
        theory = KeplerianTheory(GM_EARTH)
        mean = mean_from_osculating(theory, eccentric_orbit)
        expected = eccentric_orbit.elements_as(OrbitType.EQUINOCTIAL)
        assert jnp.allclose(mean, expected, rtol=1e-13, atol=1e-15)

    def test_longitude_advances_at_mean_motion(self, eccentric_orbit):
        theory = KeplerianTheory(GM_EARTH)
        mean = eccentric_orbit.elements_as(OrbitType.EQUINOCTIAL)
        osc = theory.osculating_from_mean(mean, 60.0, {MU_PARAMETER: GM_EARTH})
        assert jnp.allclose(osc[:5], mean[:5])
        assert float(osc[5] - mean[5]) == pytest.approx(float(eccentric_orbit.mean_motion) * 60.0, rel=1e-12)

    def test_hyperbolic_rejected(self):
        orbit = Orbit.from_keplerian(-7.0e6, 1.5, 1.0, 0.0, 0.0, 0.0)
        with pytest.raises(EccentricityTooLargeError):
            create_keplerian_propagator(orbit)


class TestKeplerianPropagator:
    def test_full_period(self, eccentric_orbit):
        propagator = create_keplerian_propagator(eccentric_orbit)
        T = float(eccentric_orbit.keplerian_period)
        state = propagator.propagate(T)
        assert state.epoch == pytest.approx(T)
        assert jnp.allclose(state.position, eccentric_orbit.position, atol=1e-4)
        assert jnp.allclose(state.velocity, eccentric_orbit.velocity, atol=1e-7)

    def test_matches_orbit_shift(self, eccentric_orbit):
        propagator = create_keplerian_propagator(eccentric_orbit)
        state = propagator.propagate(1234.5)
        assert jnp.allclose(state.position, eccentric_orbit.shifted_by(1234.5).position, atol=1e-5)

    def test_mu_defaults_to_orbit(self, eccentric_orbit):
        propagator = create_keplerian_propagator(eccentric_orbit)
        assert propagator.get_parameter_drivers()[0].value == eccentric_orbit.mu

    def test_mu_driver_read_at_evaluation(self, eccentric_orbit):
        """Changing the GM driver changes the next propagation."""
        propagator = create_keplerian_propagator(eccentric_orbit)
        before = propagator.propagate_orbit(3000.0).position
        propagator.get_parameter_drivers()[0].value = 1.01 * GM_EARTH
        after = propagator.propagate_orbit(3000.0).position
        assert float(jnp.linalg.norm(after - before)) > 1.0

    def test_mean_propagation_type(self, eccentric_orbit):
        """Mean and osculating initial orbits coincide for two-body motion."""
        theory = KeplerianTheory(GM_EARTH)
        osc = AnalyticalPropagator(theory, eccentric_orbit)
        mean = AnalyticalPropagator(theory, eccentric_orbit, propagation_type=PropagationType.MEAN)
        assert jnp.allclose(osc.propagate(500.0).position, mean.propagate(500.0).position, atol=1e-6)
