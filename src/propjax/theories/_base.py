"""Capability interface shared by the closed-form orbit theories.

The analytical propagator never depends on a concrete theory class.  It
uses the :class:`AnalyticalTheory` protocol, whose implementations are
pure functions of

- the **mean elements** of the theory (a fixed element set, mean position
  angle),
- the time offset ``dt`` from the epoch of those mean elements,
- a mapping of parameter name to value (``{"M2": ...}``, ``{"GM": ...}``).

Because the evaluation functions are plain ``jax.numpy`` expressions, the
matrices harvester can differentiate them with ``jax.jacfwd``.

This module also hosts the generic osculating-to-mean fixed point solver
(:func:`mean_from_osculating`) and the conic sanity checks every theory
shares.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

import numpy as np
from jax import Array
from jax.typing import ArrayLike

from propjax.errors import (
    EccentricityTooLargeError,
    InsideBrillouinSphereError,
    MeanElementsConvergenceError,
    ModelValidityError,
)
from propjax.orbits import Orbit, OrbitType, PositionAngleType
from propjax.parameters import ParameterDriver
from propjax.utils import normalize_angle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MeanElementsConfig:
    """Convergence settings of the osculating-to-mean solver.

    Args:
        epsilon: Relative convergence threshold.  Element residuals must
            fall below ``epsilon * (1 + |a|)`` for the semi-major axis,
            ``epsilon * (1 + e)`` for eccentricity-like elements and
            ``epsilon * pi`` for angles.
        max_iterations: Iteration cap.  Reaching it is a hard failure.

    Raises:
        ValueError: If ``epsilon`` is not strictly positive or
            ``max_iterations`` is lower than one.
    """

    epsilon: float = 1.0e-13
    max_iterations: int = 200

    def __post_init__(self) -> None:
        if not self.epsilon > 0.0:
            raise ValueError(f"epsilon must be strictly positive, got {self.epsilon}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got {self.max_iterations}")


class AnalyticalTheory(Protocol):
    """Closed-form orbit theory usable by the analytical propagator.

    Attributes:
        name: Human readable theory name, used in messages.
        orbit_type: Element set of the mean and osculating elements the
            theory works with (position angle is always ``MEAN``).
        output_orbit_type: Element set of the orbits produced by the
            propagator: ``orbit_type``, or ``CARTESIAN`` when the produced
            velocity is not Keplerian-consistent.
        default_config: Solver settings used when the caller gives none.
    """

    name: str
    orbit_type: OrbitType
    output_orbit_type: OrbitType
    default_config: MeanElementsConfig

    def parameter_drivers(self) -> list[ParameterDriver]:
        """Drivers of the theory parameters, in a fixed order."""
        ...

    def mu(self, params: Mapping[str, ArrayLike]) -> ArrayLike:
        """Central attraction coefficient used for produced orbits."""
        ...

    def check_osculating(self, orbit: Orbit) -> ModelValidityError | None:
        """Validity checks on the orbit given by the caller."""
        ...

    def check_mean(self, mean: ArrayLike, params: Mapping[str, ArrayLike]) -> ModelValidityError | None:
        """Validity checks on converged (or caller supplied) mean elements."""
        ...

    def osculating_from_mean(self, mean: ArrayLike, dt: ArrayLike, params: Mapping[str, ArrayLike]) -> Array:
        """Osculating elements ``dt`` seconds after the mean elements epoch."""
        ...

    def cartesian_from_mean(self, mean: ArrayLike, dt: ArrayLike, params: Mapping[str, ArrayLike]) -> Array:
        """Cartesian state ``dt`` seconds after the mean elements epoch."""
        ...


def parameter_values(theory: AnalyticalTheory) -> dict[str, float]:
    """Current value of every parameter driver of ``theory``."""
    return {driver.name: driver.value for driver in theory.parameter_drivers()}


def check_conic(orbit: Orbit, reference_radius: float) -> ModelValidityError | None:
    """Checks shared by every zonal theory.

    In order: eccentricity at least 1, semi-major axis below the reference
    radius, perigee radius below the reference radius.

    Args:
        orbit: Orbit to check.
        reference_radius: Reference radius of the central body. Units: *m*

    Returns:
        The first violation found, or ``None``.
    """
    e = float(orbit.e)
    if e >= 1.0:
        return EccentricityTooLargeError(e, 1.0)
    a = float(orbit.a)
    if a < reference_radius:
        return InsideBrillouinSphereError(a)
    perigee = a * (1.0 - e)
    if perigee < reference_radius:
        return InsideBrillouinSphereError(perigee)
    return None


# Residual kinds, per element, for each supported element set
_A, _E, _ANGLE = 0, 1, 2
_RESIDUAL_KINDS = {
    OrbitType.KEPLERIAN: (_A, _E, _ANGLE, _ANGLE, _ANGLE, _ANGLE),
    OrbitType.CIRCULAR: (_A, _E, _E, _ANGLE, _ANGLE, _ANGLE),
    OrbitType.EQUINOCTIAL: (_A, _E, _E, _E, _E, _ANGLE),
}


def _keplerian_to_nonsingular(elements: np.ndarray) -> np.ndarray:
    a, e, i, raan, omega, anomaly = elements
    return np.array([a, e * np.cos(omega), e * np.sin(omega), i, raan, omega + anomaly])


def _nonsingular_to_keplerian(elements: np.ndarray) -> np.ndarray:
    a, ex, ey, i, raan, alpha = elements
    omega = float(np.arctan2(ey, ex))
    anomaly = float(normalize_angle(alpha - omega))
    return np.array([a, float(np.hypot(ex, ey)), i, raan, omega, anomaly])


def mean_from_osculating(
    theory: AnalyticalTheory,
    orbit: Orbit,
    params: Mapping[str, float] | None = None,
    config: MeanElementsConfig | None = None,
) -> Array:
    """Compute the mean elements that reproduce an osculating orbit.

    Fixed point iteration: starting from the osculating elements, rebuild
    the osculating elements from the current mean estimate at the same
    epoch and move the estimate by the residual, until every residual is
    below its threshold.  Keplerian elements are compared through their
    eccentricity vector and argument of latitude, which stay defined for
    circular orbits.

    Validity checks run once before the iteration (on the osculating
    orbit) and once after convergence (on the mean elements).

    Args:
        theory: Theory defining the mean-to-osculating mapping.
        orbit: Osculating orbit, in any parameterization.
        params: Parameter values; defaults to the theory drivers values.
        config: Solver settings; defaults to ``theory.default_config``.

    Returns:
        Mean elements of type ``theory.orbit_type`` with mean position
        angle, as a float64 numpy array.

    Raises:
        ModelValidityError: If the orbit or the converged mean elements
            are outside the validity domain of the theory.
        MeanElementsConvergenceError: If the iteration cap is reached.

    Examples:
        ```python
        from propjax.theories import BrouwerLyddaneTheory, mean_from_osculating
        theory = BrouwerLyddaneTheory("EGM96")
        mean = mean_from_osculating(theory, orbit)
        ```
    """
    config = config or theory.default_config
    params = dict(parameter_values(theory) if params is None else params)

    # Hold the Cartesian state fixed when the theory uses another central attraction
    mu = float(theory.mu(params))
    if orbit.mu != mu:
        orbit = Orbit(orbit.cartesian, OrbitType.CARTESIAN, PositionAngleType.MEAN, orbit.epoch, orbit.frame, mu)

    error = theory.check_osculating(orbit)
    if error is not None:
        raise error

    # Keplerian theories iterate on (a, e cos w, e sin w, i, raan, w + M):
    # perigee and anomaly are undefined for circular orbits
    if theory.orbit_type is OrbitType.KEPLERIAN:
        forward, backward = _keplerian_to_nonsingular, _nonsingular_to_keplerian
        kinds = _RESIDUAL_KINDS[OrbitType.CIRCULAR]
    else:
        forward = backward = np.asarray
        kinds = _RESIDUAL_KINDS[theory.orbit_type]
    angles = np.array([k == _ANGLE for k in kinds])

    target = forward(np.asarray(orbit.elements_as(theory.orbit_type, PositionAngleType.MEAN), dtype=float))

    # Thresholds are scaled by the initial (osculating) guess
    current = target.copy()
    e0 = float(np.hypot(current[1], current[2]))
    scale = {_A: 1.0 + abs(current[0]), _E: 1.0 + e0, _ANGLE: np.pi}
    thresholds = config.epsilon * np.array([scale[k] for k in kinds])

    mean = backward(current)
    for iteration in range(1, config.max_iterations + 1):
        rebuilt = forward(np.asarray(theory.osculating_from_mean(mean, 0.0, params), dtype=float))

        delta = target - rebuilt
        delta[angles] = np.asarray(normalize_angle(delta[angles]))

        if not np.all(np.isfinite(delta)):
            error = theory.check_mean(mean, params)
            if error is not None:
                raise error
            logger.debug("%s mean elements diverged at iteration %d", theory.name, iteration)
            raise MeanElementsConvergenceError(iteration, theory.name)

        current = current + delta
        mean = backward(current)

        if np.all(np.abs(delta) < thresholds):
            logger.debug("%s mean elements converged after %d iterations", theory.name, iteration)
            error = theory.check_mean(mean, params)
            if error is not None:
                raise error
            return mean

    # Validity errors take precedence over the iteration cap
    error = theory.check_mean(mean, params)
    if error is not None:
        raise error
    raise MeanElementsConvergenceError(config.max_iterations, theory.name)
