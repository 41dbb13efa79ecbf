"""Tests for the additional-state scheduler."""

import logging

import pytest

from propjax.errors import CollaboratorError, OutOfRangeError
from propjax.propagation import FunctionStateProvider, SpacecraftState, resolve_additional_states


def _chained(name, dependency):
    """Provider whose value is one more than its dependency."""

    def compute(state):
        if dependency is None:
            return [0.0]
        return state.get_additional_state(dependency) + 1.0

    return FunctionStateProvider(name, compute, dependency)


class TestFunctionStateProvider:
    def test_empty_name(self):
        with pytest.raises(ValueError, match="must not be empty"):
            FunctionStateProvider("", lambda state: [0.0])

    def test_compute(self, leo_orbit):
        provider = FunctionStateProvider("two", lambda state: [2.0])
        assert provider.compute(SpacecraftState(leo_orbit)) == [2.0]
        assert provider.dependency_name is None


class TestResolveAdditionalStates:
    def test_no_providers(self, leo_orbit):
        state = SpacecraftState(leo_orbit)
        assert len(resolve_additional_states([], state).additional_states) == 0

    def test_chain_registered_out_of_order(self, leo_orbit):
        """A <- B <- C <- D <- E <- F resolves whatever the registration order."""
        providers = [
            _chained("D", "C"),
            _chained("F", "E"),
            _chained("A", None),
            _chained("E", "D"),
            _chained("C", "B"),
            _chained("B", "A"),
        ]
        state = resolve_additional_states(providers, SpacecraftState(leo_orbit))
        for k, name in enumerate("ABCDEF"):
            assert float(state.get_additional_state(name)[0]) == pytest.approx(k)

    def test_cycle_dropped(self, leo_orbit, caplog):
        """D -> F -> E -> D never resolves; independent providers still do."""
        providers = [
            _chained("A", None),
            _chained("D", "F"),
            _chained("B", "A"),
            _chained("E", "D"),
            _chained("F", "E"),
        ]
        with caplog.at_level(logging.DEBUG, logger="propjax.propagation.additional_states"):
            state = resolve_additional_states(providers, SpacecraftState(leo_orbit))
        assert state.has_additional_state("A")
        assert state.has_additional_state("B")
        for name in "DEF":
            assert not state.has_additional_state(name)
        assert "Dropping unresolved" in caplog.text

    def test_missing_dependency_dropped(self, leo_orbit):
        state = resolve_additional_states([_chained("X", "nowhere")], SpacecraftState(leo_orbit))
        assert not state.has_additional_state("X")

    def test_existing_states_count_as_resolved(self, leo_orbit):
        """States already on the input are kept and satisfy dependencies."""
        initial = SpacecraftState(leo_orbit, additional_states={"A": [10.0]})
        state = resolve_additional_states([_chained("B", "A")], initial)
        assert float(state.get_additional_state("A")[0]) == 10.0
        assert float(state.get_additional_state("B")[0]) == 11.0

    def test_managed_states_recomputed(self, leo_orbit):
        """A stale value of a provider-managed state is replaced."""
        initial = SpacecraftState(leo_orbit, additional_states={"A": [10.0]})
        state = resolve_additional_states([_chained("A", None)], initial)
        assert float(state.get_additional_state("A")[0]) == 0.0

    def test_provider_error_wrapped(self, leo_orbit):
        def broken(state):
            raise RuntimeError("sensor offline")

        with pytest.raises(CollaboratorError, match="sensor offline") as info:
            resolve_additional_states([FunctionStateProvider("broken", broken)], SpacecraftState(leo_orbit))
        assert isinstance(info.value.__cause__, RuntimeError)
        assert "broken" in info.value.collaborator

    def test_propagation_errors_not_wrapped(self, leo_orbit):
        """A provider reading an ephemeris out of its range reports that error as is."""

        def out_of_range(state):
            raise OutOfRangeError(5000.0, 0.0, 3000.0)

        with pytest.raises(OutOfRangeError) as info:
            resolve_additional_states([FunctionStateProvider("lookup", out_of_range)], SpacecraftState(leo_orbit))
        assert not isinstance(info.value, CollaboratorError)
        assert info.value.epoch == 5000.0
