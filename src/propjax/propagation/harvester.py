"""State transition matrix and parameters Jacobian of analytical propagations.

A :class:`MatricesHarvester` is attached to a propagator with
``propagator.setup_matrices_computation(name)``.  Every state produced
afterwards carries, as additional states,

- ``name``: the 6x6 state transition matrix ``dY(t) / dY(t0)`` flattened
  row-major,
- ``name + column``: one 6-vector ``dY(t) / dp`` per selected parameter,

where ``Y`` is the state in the harvester parameterization (Cartesian by
default) and ``t0`` the epoch of the model covering ``t``.

Two methods are available:

``"autodiff"``
    Implicit differentiation through the mean-element solve.  With ``g``
    mapping mean elements to the initial state and ``h`` mapping them to
    the state at ``t``, both differentiated with ``jax.jacfwd``::

        dY/dY0 = dh/dm (dg/dm)^-1
        dY/dp  = dh/dp - dY/dY0 dg/dp

``"finite_difference"``
    Eighth-order central differences, one freshly built propagator per
    shifted initial state or parameter value.  Slow, meant as a reference.

An initial matrix ``Phi0`` and initial Jacobian columns ``J0`` are composed
as ``Phi = Phi_raw Phi0`` and ``J = Phi_raw J0 + J_raw``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING

import jax
import jax.numpy as jnp
import numpy as np
from jax import Array
from jax.typing import ArrayLike

from propjax.config import get_dtype
from propjax.orbits import Orbit, OrbitType, PositionAngleType, cartesian_to_elements, elements_to_cartesian
from propjax.propagation._types import PropagationType
from propjax.propagation.state import SpacecraftState
from propjax.utils import normalize_angle

if TYPE_CHECKING:
    from propjax.propagation.analytical import AnalyticalPropagator

logger = logging.getLogger(__name__)

METHODS = ("autodiff", "finite_difference")

# Position step of the finite differences. Units: *m*
POSITION_STEP = 1.0

# (shift, weight) pairs of the 8-point central stencil, to divide by 840 h
_STENCIL = ((1, 672.0), (2, -168.0), (3, 32.0), (4, -3.0))

# (shift, weight) pairs of the fourth-order forward stencil, to divide by 12 h
_FORWARD_STENCIL = ((1, 48.0), (2, -36.0), (3, 16.0), (4, -3.0))

_ANGLE_ROWS = {
    OrbitType.CARTESIAN: (),
    OrbitType.KEPLERIAN: (3, 4, 5),
    OrbitType.CIRCULAR: (4, 5),
    OrbitType.EQUINOCTIAL: (5,),
}


class MatricesHarvester:
    """Computes and extracts the matrices attached to propagated states.

    Built by :meth:`AnalyticalPropagator.setup_matrices_computation`.

    Args:
        propagator: Owning propagator.
        stm_name: Name of the state transition matrix additional state.
        initial_stm: Initial state transition matrix, identity if ``None``.
        initial_jacobian_columns: Initial Jacobian column per parameter.
        method: ``"autodiff"`` or ``"finite_difference"``.
        orbit_type: Parameterization of the matrices.
        angle_type: Position angle of the matrices.

    Raises:
        ValueError: If the name is empty, the method unknown or the
            initial matrices have the wrong shape.
    """

    def __init__(
        self,
        propagator: AnalyticalPropagator,
        stm_name: str,
        initial_stm: ArrayLike | None = None,
        initial_jacobian_columns: Mapping[str, ArrayLike] | None = None,
        method: str = "autodiff",
        orbit_type: OrbitType = OrbitType.CARTESIAN,
        angle_type: PositionAngleType = PositionAngleType.MEAN,
    ) -> None:
        if not stm_name:
            raise ValueError("State transition matrix name must not be empty")
        if method not in METHODS:
            raise ValueError(f"Unknown matrices computation method {method!r}, expected one of {METHODS}")

        if initial_stm is None:
            initial_stm = jnp.eye(6, dtype=get_dtype())
        initial_stm = jnp.asarray(initial_stm, dtype=get_dtype())
        if initial_stm.shape != (6, 6):
            raise ValueError(f"Initial state transition matrix must be 6x6, got shape {initial_stm.shape}")

        columns = {}
        for name, column in (initial_jacobian_columns or {}).items():
            column = jnp.asarray(column, dtype=get_dtype())
            if column.shape != (6,):
                raise ValueError(f"Initial Jacobian column {name!r} must have 6 rows, got shape {column.shape}")
            columns[name] = column

        self._propagator = propagator
        self._stm_name = stm_name
        self._initial_stm = initial_stm
        self._initial_columns = columns
        self._method = method
        self._orbit_type = orbit_type
        self._angle_type = angle_type
        self._frozen_names: list[str] | None = None

    # ------------------------------------------------------------------
    # Description
    # ------------------------------------------------------------------

    @property
    def stm_name(self) -> str:
        return self._stm_name

    @property
    def method(self) -> str:
        return self._method

    def get_orbit_type(self) -> OrbitType:
        return self._orbit_type

    def get_position_angle_type(self) -> PositionAngleType:
        return self._angle_type

    def get_jacobians_columns_names(self) -> list[str]:
        """Names of the selected parameters, in driver order.

        Once frozen (explicitly or by the first propagation), later
        selection changes are ignored.
        """
        if self._frozen_names is not None:
            return list(self._frozen_names)
        return [driver.name for driver in self._propagator.get_parameter_drivers() if driver.selected]

    def freeze_columns_names(self) -> None:
        """Lock the Jacobian columns to the currently selected parameters."""
        if self._frozen_names is None:
            self._frozen_names = self.get_jacobians_columns_names()
            logger.debug("Frozen Jacobian columns of %r: %s", self._stm_name, self._frozen_names)

    def managed_names(self) -> set[str]:
        """Additional-state names written by this harvester."""
        return {self._stm_name} | {self._stm_name + name for name in self.get_jacobians_columns_names()}

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    def get_state_transition_matrix(self, state: SpacecraftState) -> Array | None:
        """6x6 state transition matrix carried by ``state``, or ``None``."""
        if not state.has_additional_state(self._stm_name):
            return None
        return state.get_additional_state(self._stm_name).reshape(6, 6)

    def get_parameters_jacobian(self, state: SpacecraftState) -> Array | None:
        """6xp parameters Jacobian carried by ``state``.

        Returns:
            ``None`` when no parameter is selected or the state does not
            carry the columns.
        """
        names = self.get_jacobians_columns_names()
        if not names:
            return None
        keys = [self._stm_name + name for name in names]
        if not all(state.has_additional_state(key) for key in keys):
            return None
        return jnp.stack([state.get_additional_state(key) for key in keys], axis=1)

    # ------------------------------------------------------------------
    # Computation
    # ------------------------------------------------------------------

    def compute_states(self, epoch: float) -> dict[str, Array]:
        """Additional states holding the matrices at ``epoch``."""
        names = self.get_jacobians_columns_names()
        stm, jacobian = self.compute_matrices(epoch)
        states = {self._stm_name: stm.reshape(-1)}
        for k, name in enumerate(names):
            states[self._stm_name + name] = jacobian[:, k]
        return states

    def compute_matrices(self, epoch: float) -> tuple[Array, Array | None]:
        """State transition matrix and parameters Jacobian at ``epoch``.

        Returns:
            ``(stm, jacobian)``, ``jacobian`` being ``None`` when no
            parameter is selected.
        """
        names = self.get_jacobians_columns_names()
        if self._method == "autodiff":
            stm_raw, jacobian_raw = self._autodiff(float(epoch), names)
        else:
            stm_raw, jacobian_raw = self._finite_differences(float(epoch), names)

        stm = stm_raw @ self._initial_stm
        if not names:
            return stm, None
        zero = jnp.zeros(6, dtype=get_dtype())
        initial_jacobian = jnp.stack([self._initial_columns.get(name, zero) for name in names], axis=1)
        return stm, stm_raw @ initial_jacobian + jacobian_raw

    def _to_harvester(self, cartesian, mu):
        return cartesian_to_elements(cartesian, self._orbit_type, self._angle_type, mu)

    def _autodiff(self, epoch: float, names: list[str]) -> tuple[Array, Array]:
        propagator = self._propagator
        theory = propagator.theory
        model = propagator._model_at(epoch)
        params = propagator._parameter_values()
        dt = epoch - model.epoch
        mean = jnp.asarray(model.mean, dtype=get_dtype())
        p0 = jnp.asarray([params[name] for name in names], dtype=get_dtype())

        def values(p):
            return {**params, **{name: p[k] for k, name in enumerate(names)}}

        def final(m, p):
            v = values(p)
            return self._to_harvester(theory.cartesian_from_mean(m, dt, v), theory.mu(v))

        def initial(m, p):
            v = values(p)
            mu = theory.mu(v)
            if model.propagation_type is PropagationType.OSCULATING:
                elements = theory.osculating_from_mean(m, 0.0, v)
            else:
                elements = m
            cartesian = elements_to_cartesian(elements, theory.orbit_type, PositionAngleType.MEAN, mu)
            return self._to_harvester(cartesian, mu)

        if not names:
            final_m = jax.jacfwd(final)(mean, p0)
            initial_m = jax.jacfwd(initial)(mean, p0)
            stm = jnp.linalg.solve(initial_m.T, final_m.T).T
            return stm, jnp.zeros((6, 0), dtype=get_dtype())

        final_m, final_p = jax.jacfwd(final, argnums=(0, 1))(mean, p0)
        initial_m, initial_p = jax.jacfwd(initial, argnums=(0, 1))(mean, p0)

        # final_m @ inv(initial_m)
        stm = jnp.linalg.solve(initial_m.T, final_m.T).T
        return stm, final_p - stm @ initial_p

    def _state_steps(self, reference: Orbit, mu: float) -> np.ndarray:
        if self._orbit_type is OrbitType.CARTESIAN:
            r = float(jnp.linalg.norm(reference.position))
            v = float(jnp.linalg.norm(reference.velocity))
            dv = POSITION_STEP * mu / (r * r * v)
            return np.array([POSITION_STEP] * 3 + [dv] * 3)
        a = float(reference.a)
        return np.array([POSITION_STEP] + [POSITION_STEP / a] * 5)

    def _finite_differences(self, epoch: float, names: list[str]) -> tuple[Array, Array]:
        propagator = self._propagator
        theory = propagator.theory
        model = propagator._model_at(epoch)
        params = propagator._parameter_values()
        reference = model.orbit
        mu = float(theory.mu(params))
        y0 = np.asarray(self._to_harvester(reference.cartesian, mu), dtype=float)
        angle_rows = list(_ANGLE_ROWS[self._orbit_type])

        def evaluate(y: np.ndarray, values: dict[str, float]) -> np.ndarray:
            shifted_mu = float(theory.mu(values))
            orbit = Orbit(y, self._orbit_type, self._angle_type, reference.epoch, reference.frame, shifted_mu)
            shifted = propagator.copy_with(orbit, values, model.propagation_type)
            return np.asarray(self._to_harvester(shifted.propagate_orbit(epoch).cartesian, shifted_mu), dtype=float)

        def derivative(shift, h: float, forward: bool = False) -> np.ndarray:
            total = np.zeros(6)
            if forward:
                base = shift(0)
                for k, weight in _FORWARD_STENCIL:
                    difference = shift(k) - base
                    difference[angle_rows] = np.asarray(normalize_angle(difference[angle_rows]))
                    total += weight * difference
                return total / (12.0 * h)
            for k, weight in _STENCIL:
                difference = shift(k) - shift(-k)
                difference[angle_rows] = np.asarray(normalize_angle(difference[angle_rows]))
                total += weight * difference
            return total / (840.0 * h)

        steps = self._state_steps(reference, mu)
        stm_columns = []
        for j in range(6):

            def shift_state(k, j=j):
                y = y0.copy()
                y[j] += k * steps[j]
                return evaluate(y, params)

            # Keplerian eccentricity must stay non-negative
            forward = self._orbit_type is OrbitType.KEPLERIAN and j == 1 and y0[1] < 4.0 * steps[1]
            if forward:
                logger.debug("Forward differences on the eccentricity of %r (e = %g)", self._stm_name, y0[1])
            stm_columns.append(derivative(shift_state, steps[j], forward))

        drivers = {driver.name: driver for driver in propagator.get_parameter_drivers()}
        jacobian_columns = []
        for name in names:
            scale = drivers[name].scale

            def shift_parameter(k, name=name, scale=scale):
                return evaluate(y0, {**params, name: params[name] + k * scale})

            jacobian_columns.append(derivative(shift_parameter, scale))

        stm = jnp.asarray(np.column_stack(stm_columns), dtype=get_dtype())
        jacobian = jnp.asarray(np.column_stack(jacobian_columns) if names else np.zeros((6, 0)), dtype=get_dtype())
        return stm, jacobian

    def __repr__(self) -> str:
        return (
            f"MatricesHarvester({self._stm_name!r}, method={self._method!r}, "
            f"orbit_type={self._orbit_type.value}, columns={self.get_jacobians_columns_names()})"
        )
