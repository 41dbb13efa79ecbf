"""Tests for the attitude collaborators."""

import jax.numpy as jnp
import pytest

from propjax.attitudes import FrameAlignedProvider, LocalOrbitalFrameProvider, rotation_matrix_to_quaternion
from propjax.orbits import Orbit


class TestRotationMatrixToQuaternion:
    def test_identity(self):
        assert jnp.allclose(rotation_matrix_to_quaternion(jnp.eye(3)), jnp.array([1.0, 0.0, 0.0, 0.0]))

    def test_quarter_turn_about_z(self):
        R = jnp.array([[0.0, 1.0, 0.0], [-1.0, 0.0, 0.0], [0.0, 0.0, 1.0]])
        s = jnp.sqrt(0.5)
        assert jnp.allclose(rotation_matrix_to_quaternion(R), jnp.array([s, 0.0, 0.0, s]))

    def test_half_turn_about_x(self):
        """Zero scalar part goes through the non-scalar branches."""
        R = jnp.diag(jnp.array([1.0, -1.0, -1.0]))
        q = rotation_matrix_to_quaternion(R)
        assert jnp.allclose(jnp.abs(q), jnp.array([0.0, 1.0, 0.0, 0.0]))


class TestProviders:
    def test_frame_aligned(self, leo_orbit):
        attitude = FrameAlignedProvider().get_attitude(leo_orbit, 5.0, "EME2000")
        assert attitude.epoch == 5.0
        assert attitude.frame == "EME2000"
        assert jnp.array_equal(attitude.quaternion, jnp.array([1.0, 0.0, 0.0, 0.0]))
        assert jnp.array_equal(attitude.spin, jnp.zeros(3))

    def test_frame_aligned_fixed_frame(self, leo_orbit):
        attitude = FrameAlignedProvider("ITRF").get_attitude(leo_orbit, 0.0, "GCRF")
        assert attitude.frame == "ITRF"

    def test_local_orbital_frame_aligned_case(self):
        """In-plane orbit on the x axis: RTN coincides with the reference frame."""
        orbit = Orbit.from_cartesian([7.0e6, 0.0, 0.0], [0.0, 7.5e3, 0.0])
        attitude = LocalOrbitalFrameProvider().get_attitude(orbit, 0.0, "GCRF")
        assert jnp.allclose(attitude.quaternion, jnp.array([1.0, 0.0, 0.0, 0.0]), atol=1e-12)
        assert float(attitude.spin[2]) == pytest.approx(7.5e3 / 7.0e6)

    def test_local_orbital_frame_unit_quaternion(self, eccentric_orbit):
        attitude = LocalOrbitalFrameProvider().get_attitude(eccentric_orbit, 0.0, "GCRF")
        assert float(jnp.linalg.norm(attitude.quaternion)) == pytest.approx(1.0, abs=1e-12)
        assert float(attitude.quaternion[0]) >= 0.0
