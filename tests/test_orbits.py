"""Tests for the orbit conversion functions of propjax.orbits."""

import jax
import jax.numpy as jnp
import pytest

from propjax.constants import GM_EARTH, R_EARTH
from propjax.orbits import (
    OrbitType,
    PositionAngleType,
    anomaly_eccentric_to_mean,
    anomaly_eccentric_to_true,
    anomaly_mean_to_eccentric,
    anomaly_mean_to_true,
    anomaly_true_to_eccentric,
    anomaly_true_to_mean,
    cartesian_to_elements,
    cartesian_to_equinoctial,
    cartesian_to_keplerian,
    circular_to_equinoctial,
    circular_to_keplerian,
    convert_elements,
    convert_position_angle,
    elements_to_cartesian,
    equinoctial_to_cartesian,
    equinoctial_to_circular,
    keplerian_to_cartesian,
    keplerian_to_circular,
    longitude_eccentric_to_mean,
    longitude_mean_to_eccentric,
    mean_motion,
    orbital_period,
)

_SMA_500 = R_EARTH + 500e3

# Keplerian test orbit [a, e, i, raan, omega, M]
_KEP = jnp.array([7.2e6, 0.05, 1.0, 0.7, 2.1, 0.4])


def _angle_diff(a, b):
    return jnp.abs(jnp.arctan2(jnp.sin(a - b), jnp.cos(a - b)))


# ──────────────────────────────────────────────
# Period and mean motion
# ──────────────────────────────────────────────


class TestPeriod:
    def test_orbital_period_500km(self):
        """Period of a 500 km LEO orbit matches reference value."""
        assert float(orbital_period(_SMA_500)) == pytest.approx(5676.977, abs=1.0)

    def test_mean_motion_consistent_with_period(self):
        n = mean_motion(_SMA_500)
        T = orbital_period(_SMA_500)
        assert float(n * T) == pytest.approx(2.0 * jnp.pi, rel=1e-12)

    def test_mean_motion_degrees(self):
        n_rad = mean_motion(_SMA_500)
        n_deg = mean_motion(_SMA_500, use_degrees=True)
        assert float(n_deg) == pytest.approx(float(jnp.rad2deg(n_rad)), rel=1e-12)

    def test_custom_gm(self):
        assert float(orbital_period(1.0, gm=4.0 * jnp.pi**2)) == pytest.approx(1.0)


# ──────────────────────────────────────────────
# Anomalies
# ──────────────────────────────────────────────


class TestAnomalies:
    def test_circular_orbit_identity(self):
        """All anomalies coincide on a circular orbit."""
        M = 1.234
        assert float(anomaly_mean_to_eccentric(M, 0.0)) == pytest.approx(M, abs=1e-12)
        assert float(anomaly_mean_to_true(M, 0.0)) == pytest.approx(M, abs=1e-12)

    @pytest.mark.parametrize("e", [0.0, 0.1, 0.3, 0.5, 0.7])
    @pytest.mark.parametrize("M", [0.1, 1.0, 2.5, 4.0, 6.0])
    def test_kepler_equation(self, e, M):
        """Eccentric anomaly satisfies Kepler's equation."""
        E = anomaly_mean_to_eccentric(M, e)
        assert float(_angle_diff(E - e * jnp.sin(E), M)) < 1e-12

    @pytest.mark.parametrize("e", [0.01, 0.2, 0.6])
    def test_true_mean_roundtrip(self, e):
        nu = 2.0
        M = anomaly_true_to_mean(nu, e)
        assert float(_angle_diff(anomaly_mean_to_true(M, e), nu)) < 1e-11

    def test_eccentric_true_roundtrip(self):
        E = 0.8
        nu = anomaly_eccentric_to_true(E, 0.3)
        assert float(_angle_diff(anomaly_true_to_eccentric(nu, 0.3), E)) < 1e-12

    def test_degrees(self):
        M_deg = anomaly_eccentric_to_mean(90.0, 0.1, use_degrees=True)
        expected = jnp.rad2deg(jnp.pi / 2 - 0.1)
        assert float(M_deg) == pytest.approx(float(expected), rel=1e-12)

    def test_longitude_roundtrip(self):
        ex, ey = 0.01, -0.02
        lM = 2.3
        lE = longitude_mean_to_eccentric(lM, ex, ey)
        assert float(_angle_diff(longitude_eccentric_to_mean(lE, ex, ey), lM)) < 1e-12

    def test_kepler_solver_differentiable(self):
        """dE/dM = 1 / (1 - e cos E)."""
        e = 0.2
        M = 1.0
        E = anomaly_mean_to_eccentric(M, e)
        dE = jax.grad(lambda m: anomaly_mean_to_eccentric(m, e))(M)
        assert float(dE) == pytest.approx(float(1.0 / (1.0 - e * jnp.cos(E))), rel=1e-9)


# ──────────────────────────────────────────────
# Element conversions
# ──────────────────────────────────────────────


class TestKeplerianCartesian:
    def test_circular_equatorial(self):
        """Circular equatorial orbit at zero anomaly lies on the x axis."""
        state = keplerian_to_cartesian(jnp.array([_SMA_500, 0.0, 0.0, 0.0, 0.0, 0.0]))
        v = jnp.sqrt(GM_EARTH / _SMA_500)
        assert jnp.allclose(state, jnp.array([_SMA_500, 0.0, 0.0, 0.0, v, 0.0]), atol=1e-6)

    def test_roundtrip(self):
        back = cartesian_to_keplerian(keplerian_to_cartesian(_KEP))
        assert jnp.allclose(back[:3], _KEP[:3], rtol=1e-12)
        assert float(jnp.max(_angle_diff(back[3:], _KEP[3:]))) < 1e-10

    def test_true_anomaly_roundtrip(self):
        state = keplerian_to_cartesian(_KEP, PositionAngleType.TRUE)
        back = cartesian_to_keplerian(state, PositionAngleType.TRUE)
        assert float(_angle_diff(back[5], _KEP[5])) < 1e-10

    def test_energy(self):
        """Vis-viva holds for the converted state."""
        state = keplerian_to_cartesian(_KEP)
        r = jnp.linalg.norm(state[:3])
        v = jnp.linalg.norm(state[3:])
        assert float(v**2 / 2 - GM_EARTH / r) == pytest.approx(float(-GM_EARTH / (2 * _KEP[0])), rel=1e-12)


class TestEquinoctialCircular:
    def test_equinoctial_roundtrip(self):
        state = keplerian_to_cartesian(_KEP)
        eq = cartesian_to_equinoctial(state)
        assert jnp.allclose(equinoctial_to_cartesian(eq), state, rtol=1e-11, atol=1e-6)

    def test_equatorial_orbit_regular(self):
        """Equinoctial elements stay finite for a circular equatorial orbit."""
        state = keplerian_to_cartesian(jnp.array([_SMA_500, 0.0, 0.0, 0.0, 0.0, 0.3]))
        eq = cartesian_to_equinoctial(state)
        assert bool(jnp.all(jnp.isfinite(eq)))
        assert float(eq[5]) == pytest.approx(0.3, abs=1e-12)

    def test_circular_equinoctial_roundtrip(self):
        circ = keplerian_to_circular(_KEP)
        back = equinoctial_to_circular(circular_to_equinoctial(circ))
        assert jnp.allclose(back[:4], circ[:4], rtol=1e-12, atol=1e-14)
        assert float(jnp.max(_angle_diff(back[4:], circ[4:]))) < 1e-12

    def test_circular_keplerian_roundtrip(self):
        back = circular_to_keplerian(keplerian_to_circular(_KEP))
        assert jnp.allclose(back[:4], _KEP[:4], rtol=1e-12)
        assert float(jnp.max(_angle_diff(back[4:], _KEP[4:]))) < 1e-12


class TestGenericConversions:
    @pytest.mark.parametrize("orbit_type", [OrbitType.KEPLERIAN, OrbitType.CIRCULAR, OrbitType.EQUINOCTIAL])
    def test_same_cartesian_state(self, orbit_type):
        """Every parameterization describes the same Cartesian state."""
        state = keplerian_to_cartesian(_KEP)
        elements = cartesian_to_elements(state, orbit_type, PositionAngleType.TRUE)
        back = elements_to_cartesian(elements, orbit_type, PositionAngleType.TRUE)
        assert jnp.allclose(back, state, rtol=1e-11, atol=1e-6)

    def test_cartesian_passthrough(self):
        state = keplerian_to_cartesian(_KEP)
        assert jnp.array_equal(cartesian_to_elements(state, OrbitType.CARTESIAN), state)

    def test_convert_elements_without_cartesian(self):
        circ = convert_elements(_KEP, OrbitType.KEPLERIAN, OrbitType.CIRCULAR)
        assert float(circ[1]) == pytest.approx(0.05 * float(jnp.cos(2.1)), rel=1e-12)
        assert float(circ[2]) == pytest.approx(0.05 * float(jnp.sin(2.1)), rel=1e-12)

    def test_convert_position_angle(self):
        true = convert_position_angle(_KEP, OrbitType.KEPLERIAN, PositionAngleType.MEAN, PositionAngleType.TRUE)
        assert float(true[5]) == pytest.approx(float(anomaly_mean_to_true(_KEP[5], _KEP[1])), rel=1e-12)
        assert jnp.array_equal(true[:5], _KEP[:5])

    def test_jacobian_of_roundtrip_is_identity(self):
        """Conversions compose with jax.jacfwd."""
        state = keplerian_to_cartesian(_KEP)

        def roundtrip(x):
            return equinoctial_to_cartesian(cartesian_to_equinoctial(x))

        J = jax.jacfwd(roundtrip)(state)
        assert jnp.allclose(J, jnp.eye(6), atol=1e-8)
