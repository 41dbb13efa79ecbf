"""Tests for ephemeris generation."""

import jax.numpy as jnp
import pytest

from propjax.errors import NonResettableError, OutOfRangeError, PropagationError
from propjax.propagation import (
    BoundedEphemeris,
    FunctionStateProvider,
    SpacecraftState,
    create_brouwer_lyddane_propagator,
    create_keplerian_propagator,
)


@pytest.fixture
def recorded(eccentric_orbit):
    """Keplerian propagator and ephemeris recorded over [0, 3000]."""
    propagator = create_keplerian_propagator(eccentric_orbit)
    generator = propagator.ephemeris_generator()
    propagator.propagate(3000.0)
    return propagator, generator.get_generated_ephemeris()


class TestGeneration:
    def test_bounds(self, recorded):
        _, ephemeris = recorded
        assert ephemeris.min_epoch == 0.0
        assert ephemeris.max_epoch == 3000.0

    def test_matches_propagator(self, recorded):
        propagator, ephemeris = recorded
        for epoch in (0.0, 1234.5, 3000.0):
            assert jnp.allclose(
                ephemeris.propagate(epoch).position, propagator.basic_propagate(epoch).position
            )

    def test_matches_brouwer_lyddane(self, leo_orbit):
        propagator = create_brouwer_lyddane_propagator(leo_orbit)
        generator = propagator.ephemeris_generator()
        propagator.propagate(5400.0)
        ephemeris = generator.get_generated_ephemeris()
        assert jnp.allclose(
            ephemeris.propagate(2700.0).position, propagator.propagate(2700.0).position, atol=1e-9
        )

    def test_backward_recording_sorted(self, eccentric_orbit):
        propagator = create_keplerian_propagator(eccentric_orbit)
        generator = propagator.ephemeris_generator()
        propagator.propagate(-2000.0)
        ephemeris = generator.get_generated_ephemeris()
        assert (ephemeris.min_epoch, ephemeris.max_epoch) == (-2000.0, 0.0)

    def test_span_grows_with_propagations(self, eccentric_orbit):
        propagator = create_keplerian_propagator(eccentric_orbit)
        generator = propagator.ephemeris_generator()
        propagator.propagate(1000.0)
        propagator.propagate(-500.0, start=0.0)
        ephemeris = generator.get_generated_ephemeris()
        assert (ephemeris.min_epoch, ephemeris.max_epoch) == (-500.0, 1000.0)

    def test_nothing_recorded(self, eccentric_orbit):
        generator = create_keplerian_propagator(eccentric_orbit).ephemeris_generator()
        with pytest.raises(PropagationError, match="No propagation"):
            generator.get_generated_ephemeris()

    def test_initial_state_at_min_epoch(self, recorded):
        _, ephemeris = recorded
        assert ephemeris.get_initial_state().epoch == 0.0

    def test_carries_additional_states(self, eccentric_orbit):
        propagator = create_keplerian_propagator(eccentric_orbit)
        propagator.add_additional_state_provider(
            FunctionStateProvider("radius", lambda s: [jnp.linalg.norm(s.position)])
        )
        generator = propagator.ephemeris_generator()
        propagator.propagate(600.0)
        state = generator.get_generated_ephemeris().propagate(300.0)
        assert float(state.get_additional_state("radius")[0]) == pytest.approx(
            float(jnp.linalg.norm(state.position))
        )


class TestBounds:
    def test_within_threshold(self, recorded):
        _, ephemeris = recorded
        assert ephemeris.propagate(3000.0 + 5.0e-4).epoch == pytest.approx(3000.0005)
        assert ephemeris.propagate(-5.0e-4).epoch == pytest.approx(-5.0e-4)

    @pytest.mark.parametrize("epoch", [-1.0, 3000.1, 1.0e6])
    def test_out_of_range(self, recorded, epoch):
        _, ephemeris = recorded
        with pytest.raises(OutOfRangeError, match="out of range"):
            ephemeris.propagate(epoch)

    def test_custom_threshold(self, eccentric_orbit):
        propagator = create_keplerian_propagator(eccentric_orbit)
        generator = propagator.ephemeris_generator(10.0)
        propagator.propagate(100.0)
        ephemeris = generator.get_generated_ephemeris()
        assert ephemeris.extrapolation_threshold == 10.0
        assert ephemeris.propagate(109.0).epoch == 109.0
        with pytest.raises(OutOfRangeError):
            ephemeris.propagate(111.0)

    def test_negative_threshold(self, eccentric_orbit):
        propagator = create_keplerian_propagator(eccentric_orbit)
        with pytest.raises(ValueError, match="non-negative"):
            propagator.ephemeris_generator(-1.0)
        with pytest.raises(ValueError, match="non-negative"):
            BoundedEphemeris(propagator, 0.0, 10.0, -1.0)


class TestFrozen:
    def test_not_resettable(self, recorded):
        propagator, ephemeris = recorded
        state = propagator.get_initial_state()
        with pytest.raises(NonResettableError):
            ephemeris.reset_initial_state(state)
        with pytest.raises(NonResettableError):
            ephemeris.reset_intermediate_state(state, True)

    def test_independent_of_later_resets(self, recorded, leo_orbit):
        propagator, ephemeris = recorded
        before = ephemeris.propagate(1500.0).position
        propagator.reset_initial_state(SpacecraftState(leo_orbit))
        assert jnp.array_equal(ephemeris.propagate(1500.0).position, before)
        assert not jnp.allclose(propagator.propagate(1500.0).position, before)

    def test_independent_of_later_intermediate_resets(self, recorded, leo_orbit):
        propagator, ephemeris = recorded
        before = ephemeris.propagate(2500.0).position
        state = propagator.propagate(2000.0, start=0.0)
        moved = SpacecraftState(leo_orbit.shifted_by(2000.0))
        assert state.epoch == moved.epoch
        propagator.reset_intermediate_state(moved, forward=True)
        assert jnp.array_equal(ephemeris.propagate(2500.0).position, before)

    def test_repr(self, recorded):
        _, ephemeris = recorded
        assert "BoundedEphemeris([0.0, 3000.0]" in repr(ephemeris)
