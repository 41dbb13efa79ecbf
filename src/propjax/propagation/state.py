"""Spacecraft state produced by the propagators.

A :class:`SpacecraftState` bundles an :class:`~propjax.orbits.Orbit`, the
attitude sampled at the same epoch, a mass and a mapping of named
additional states (one-dimensional arrays).  States are immutable:
adding an additional state returns a new instance.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from propjax.attitudes import Attitude, FrameAlignedProvider
from propjax.config import get_dtype, get_epoch_tolerance
from propjax.constants import DEFAULT_MASS
from propjax.orbits import Orbit


@dataclass(frozen=True, eq=False)
class SpacecraftState:
    """Orbit, attitude, mass and additional states at one epoch.

    Args:
        orbit: Orbit of the spacecraft.
        attitude: Attitude at the orbit epoch.  Defaults to an attitude
            aligned with the orbit frame.
        mass: Spacecraft mass. Units: *kg*
        additional_states: Named additional states.

    Raises:
        ValueError: If the attitude epoch differs from the orbit epoch.

    Examples:
        ```python
        from propjax.propagation import SpacecraftState
        state = SpacecraftState(orbit).add_additional_state("battery", [0.8])
        state.get_additional_state("battery")
        ```
    """

    orbit: Orbit
    attitude: Attitude | None = None
    mass: float = DEFAULT_MASS
    additional_states: Mapping[str, Array] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.attitude is None:
            attitude = FrameAlignedProvider().get_attitude(self.orbit, self.orbit.epoch, self.orbit.frame)
            object.__setattr__(self, "attitude", attitude)
        elif abs(self.attitude.epoch - self.orbit.epoch) > get_epoch_tolerance():
            raise ValueError(
                f"Attitude epoch {self.attitude.epoch} does not match orbit epoch {self.orbit.epoch}"
            )
        states = {
            name: jnp.atleast_1d(jnp.asarray(value, dtype=get_dtype()))
            for name, value in self.additional_states.items()
        }
        object.__setattr__(self, "additional_states", MappingProxyType(states))
        object.__setattr__(self, "mass", float(self.mass))

    @property
    def epoch(self) -> float:
        """Epoch of the state in seconds."""
        return self.orbit.epoch

    @property
    def frame(self) -> str:
        """Label of the orbit reference frame."""
        return self.orbit.frame

    @property
    def position(self) -> Array:
        return self.orbit.position

    @property
    def velocity(self) -> Array:
        return self.orbit.velocity

    def add_additional_state(self, name: str, value: ArrayLike) -> SpacecraftState:
        """Return a copy of the state with one more additional state.

        Raises:
            ValueError: If ``name`` is already present.
        """
        if name in self.additional_states:
            raise ValueError(f"Additional state {name!r} is already present")
        return self.with_additional_states({**self.additional_states, name: value})

    def with_additional_states(self, states: Mapping[str, ArrayLike]) -> SpacecraftState:
        """Return a copy of the state whose additional states are ``states``."""
        return SpacecraftState(self.orbit, self.attitude, self.mass, dict(states))

    def get_additional_state(self, name: str) -> Array:
        """Return the additional state called ``name``.

        Raises:
            KeyError: If the state has no such additional state.
        """
        try:
            return self.additional_states[name]
        except KeyError:
            raise KeyError(f"Unknown additional state {name!r}") from None

    def has_additional_state(self, name: str) -> bool:
        return name in self.additional_states

    def __repr__(self) -> str:
        names = ", ".join(self.additional_states)
        return f"SpacecraftState(epoch={self.epoch}, mass={self.mass}, orbit={self.orbit!r}, additional=[{names}])"
