"""Tests for the Eckstein-Hechler theory and propagator."""

import logging

import jax.numpy as jnp
import numpy as np
import pytest

from propjax.constants import DEG2RAD, GM_EARTH
from propjax.errors import (
    CriticalInclinationError,
    EccentricityTooLargeError,
    EquatorialOrbitError,
    InsideBrillouinSphereError,
)
from propjax.gravity import ZonalHarmonics
from propjax.orbits import Orbit, OrbitType
from propjax.propagation import (
    PropagationType,
    compute_mean_orbit,
    create_brouwer_lyddane_propagator,
    create_eckstein_hechler_propagator,
    create_keplerian_propagator,
)
from propjax.theories import EcksteinHechlerTheory, mean_from_osculating
from propjax.theories.eckstein_hechler import CRITICAL_INCLINATIONS

_ALMOST_SPHERICAL = ZonalHarmonics(6.378137e6, GM_EARTH, -1.0e-11)


def _circular(a=7.0e6, ex=1e-4, ey=-2e-4, i=98.0 * DEG2RAD, raan=0.4, alpha=1.2):
    return Orbit.from_circular(a, ex, ey, i, raan, alpha)


class TestEcksteinHechlerTheory:
    def test_metadata(self):
        theory = EcksteinHechlerTheory("EGM96")
        assert theory.orbit_type is OrbitType.CIRCULAR
        assert theory.output_orbit_type is OrbitType.CARTESIAN
        assert theory.parameter_drivers() == []
        assert theory.default_config.max_iterations == 100

    def test_round_trip(self):
        theory = EcksteinHechlerTheory("EGM96")
        orbit = _circular()
        mean = mean_from_osculating(theory, orbit)
        osc = np.asarray(theory.osculating_from_mean(mean, 0.0, {}))
        target = np.asarray(orbit.elements)
        assert osc[0] == pytest.approx(target[0], rel=1e-12)
        assert np.allclose(osc[1:4], target[1:4], atol=1e-12)
        diff = np.arctan2(np.sin(osc[4:] - target[4:]), np.cos(osc[4:] - target[4:]))
        assert np.all(np.abs(diff) < 1e-10)

    def test_velocity_is_position_derivative(self):
        """The Cartesian velocity is the time derivative of the position series."""
        theory = EcksteinHechlerTheory("EGM96")
        mean = mean_from_osculating(theory, _circular())
        h = 1e-2
        before = theory.cartesian_from_mean(mean, 100.0 - h, {})[:3]
        after = theory.cartesian_from_mean(mean, 100.0 + h, {})[:3]
        velocity = theory.cartesian_from_mean(mean, 100.0, {})[3:]
        assert jnp.allclose(velocity, (after - before) / (2 * h), atol=1e-5)


class TestEcksteinHechlerPropagator:
    def test_same_date_position(self):
        orbit = _circular()
        propagator = create_eckstein_hechler_propagator(orbit, "EGM96")
        state = propagator.propagate(orbit.epoch)
        assert state.orbit.orbit_type is OrbitType.CARTESIAN
        assert jnp.allclose(state.position, orbit.position, atol=1e-4)

    def test_almost_spherical_matches_keplerian(self):
        orbit = _circular()
        eckstein = create_eckstein_hechler_propagator(orbit, _ALMOST_SPHERICAL)
        kepler = create_keplerian_propagator(orbit)
        d = jnp.linalg.norm(eckstein.propagate(100.0).position - kepler.propagate(100.0).position)
        assert float(d) < 1e-2

    def test_close_to_brouwer_lyddane(self):
        """Both zonal theories agree to within a kilometer over one orbit."""
        orbit = _circular()
        eckstein = create_eckstein_hechler_propagator(orbit, "EGM96")
        brouwer = create_brouwer_lyddane_propagator(orbit, "EGM96")
        T = float(orbit.keplerian_period)
        d = jnp.linalg.norm(eckstein.propagate(T).position - brouwer.propagate(T).position)
        assert float(d) < 1000.0

    def test_mean_orbit_is_circular(self):
        theory = EcksteinHechlerTheory("EGM96")
        mean = compute_mean_orbit(_circular(), theory)
        assert mean.orbit_type is OrbitType.CIRCULAR
        assert float(mean.e) < 5e-3


class TestValidity:
    def test_perigee_inside_earth(self):
        with pytest.raises(InsideBrillouinSphereError):
            create_eckstein_hechler_propagator(_circular(a=6.5e6, ex=0.05, ey=0.0), "EGM96")

    def test_equatorial_rejected_before_solve(self):
        with pytest.raises(EquatorialOrbitError):
            create_eckstein_hechler_propagator(_circular(i=0.0), "EGM96")

    def test_eccentricity_ceiling(self):
        orbit = _circular(a=8.0e6, ex=0.15, ey=0.0)
        with pytest.raises(EccentricityTooLargeError) as info:
            create_eckstein_hechler_propagator(orbit, "EGM96", propagation_type=PropagationType.MEAN)
        assert info.value.limit == pytest.approx(0.1)

    def test_poor_accuracy_warning(self, caplog):
        orbit = _circular(a=8.0e6, ex=0.02, ey=0.0)
        with caplog.at_level(logging.WARNING, logger="propjax.theories.eckstein_hechler"):
            create_eckstein_hechler_propagator(orbit, "EGM96", propagation_type=PropagationType.MEAN)
        assert "accuracy is poor" in caplog.text

    @pytest.mark.parametrize("critical", CRITICAL_INCLINATIONS)
    def test_critical_inclination_rejected(self, critical):
        orbit = _circular(i=critical + 2e-4)
        with pytest.raises(CriticalInclinationError):
            create_eckstein_hechler_propagator(orbit, "EGM96", propagation_type=PropagationType.MEAN)

    def test_critical_inclination_accepted_by_brouwer(self):
        orbit = _circular(i=CRITICAL_INCLINATIONS[0])
        propagator = create_brouwer_lyddane_propagator(orbit, "EGM96")
        assert bool(jnp.all(jnp.isfinite(propagator.propagate(600.0).position)))
