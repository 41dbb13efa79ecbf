"""Propagator factories.

Build an :class:`AnalyticalPropagator` around one of the packaged theories
in a single call, and compute the mean orbit of an osculating orbit
without keeping a propagator around.
"""

from __future__ import annotations

from propjax.attitudes import AttitudeProvider
from propjax.constants import DEFAULT_MASS
from propjax.orbits import Orbit, PositionAngleType
from propjax.propagation._types import PropagationType
from propjax.propagation.analytical import AnalyticalPropagator
from propjax.theories import (
    AnalyticalTheory,
    BrouwerLyddaneTheory,
    EcksteinHechlerTheory,
    KeplerianTheory,
    MeanElementsConfig,
    mean_from_osculating,
    parameter_values,
)


def create_brouwer_lyddane_propagator(
    orbit: Orbit,
    gravity="EGM96",
    m2: float = 0.0,
    attitude_provider: AttitudeProvider | None = None,
    mass: float = DEFAULT_MASS,
    propagation_type: PropagationType = PropagationType.OSCULATING,
    config: MeanElementsConfig | None = None,
) -> AnalyticalPropagator:
    """Create a Brouwer-Lyddane propagator.

    Args:
        orbit: Initial orbit.
        gravity: Zonal harmonics, a gravity field or a packaged model name.
            Time-dependent fields are sampled at ``orbit.epoch``.
        m2: Value of the ``M2`` drag parameter. Units: *rad/s^2*
        attitude_provider: Attitude law (frame-aligned if ``None``).
        mass: Spacecraft mass. Units: *kg*
        propagation_type: Whether ``orbit`` is osculating or mean.
        config: Mean-element solver settings.

    Returns:
        AnalyticalPropagator: Propagator positioned at ``orbit``.

    Examples:
        ```python
        from propjax.orbits import Orbit
        from propjax.propagation import create_brouwer_lyddane_propagator
        orbit = Orbit.from_keplerian(7.2e6, 1e-3, 1.7, 2.9, 2.1, 6.2)
        propagator = create_brouwer_lyddane_propagator(orbit, "EGM96", m2=1e-12)
        propagator.propagate(orbit.epoch + 86400.0).position
        ```
    """
    theory = BrouwerLyddaneTheory(gravity, m2, orbit.epoch)
    return AnalyticalPropagator(theory, orbit, attitude_provider, mass, propagation_type, config)


def create_eckstein_hechler_propagator(
    orbit: Orbit,
    gravity="EGM96",
    attitude_provider: AttitudeProvider | None = None,
    mass: float = DEFAULT_MASS,
    propagation_type: PropagationType = PropagationType.OSCULATING,
    config: MeanElementsConfig | None = None,
) -> AnalyticalPropagator:
    """Create an Eckstein-Hechler propagator for near-circular orbits.

    Arguments are those of :func:`create_brouwer_lyddane_propagator`
    without the drag parameter.
    """
    theory = EcksteinHechlerTheory(gravity, orbit.epoch)
    return AnalyticalPropagator(theory, orbit, attitude_provider, mass, propagation_type, config)


def create_keplerian_propagator(
    orbit: Orbit,
    mu: float | None = None,
    attitude_provider: AttitudeProvider | None = None,
    mass: float = DEFAULT_MASS,
) -> AnalyticalPropagator:
    """Create a two-body propagator.

    Args:
        orbit: Initial orbit.
        mu: Gravitational parameter, ``orbit.mu`` if ``None``.
            Units: *m^3/s^2*
        attitude_provider: Attitude law (frame-aligned if ``None``).
        mass: Spacecraft mass. Units: *kg*
    """
    theory = KeplerianTheory(orbit.mu if mu is None else mu)
    return AnalyticalPropagator(theory, orbit, attitude_provider, mass)


def compute_mean_orbit(
    osculating: Orbit,
    theory: AnalyticalTheory,
    config: MeanElementsConfig | None = None,
) -> Orbit:
    """Mean orbit of ``theory`` matching an osculating orbit.

    Args:
        osculating: Osculating orbit.
        theory: Theory defining the mean elements.
        config: Solver settings, the theory defaults if ``None``.

    Returns:
        Orbit: Mean elements of type ``theory.orbit_type`` with mean
        position angle, at the epoch and in the frame of ``osculating``.

    Raises:
        ModelValidityError: If the orbit is outside the theory domain.
        MeanElementsConvergenceError: If the solver does not converge.
    """
    params = parameter_values(theory)
    mean = mean_from_osculating(theory, osculating, params, config)
    return Orbit(
        mean,
        theory.orbit_type,
        PositionAngleType.MEAN,
        osculating.epoch,
        osculating.frame,
        float(theory.mu(params)),
    )
