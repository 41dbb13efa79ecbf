"""Two-body (Keplerian) theory.

Mean and osculating elements coincide: the only motion is the equinoctial
mean longitude advancing at the Keplerian mean motion.  Elements are
equinoctial so the theory stays regular for circular and equatorial
orbits.
"""

from __future__ import annotations

from collections.abc import Mapping

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from propjax.config import get_dtype
from propjax.errors import EccentricityTooLargeError, ModelValidityError
from propjax.orbits import Orbit, OrbitType, PositionAngleType, elements_to_cartesian
from propjax.parameters import ParameterDriver
from propjax.theories._base import MeanElementsConfig

MU_PARAMETER = "GM"
MU_SCALE = 2.0**32


class KeplerianTheory:
    """Pure Keplerian motion with an estimable central attraction.

    Args:
        mu: Central attraction coefficient. Units: *m^3/s^2*

    Examples:
        ```python
        from propjax.theories import KeplerianTheory
        theory = KeplerianTheory(orbit.mu)
        osc = theory.osculating_from_mean(mean, 60.0, {"GM": orbit.mu})
        ```
    """

    name = "Keplerian"
    orbit_type = OrbitType.EQUINOCTIAL
    output_orbit_type = OrbitType.EQUINOCTIAL
    default_config = MeanElementsConfig(1.0e-13, 200)

    def __init__(self, mu: float) -> None:
        self._mu_driver = ParameterDriver(MU_PARAMETER, mu, MU_SCALE, 0.0)

    def parameter_drivers(self) -> list[ParameterDriver]:
        return [self._mu_driver]

    def mu(self, params: Mapping[str, ArrayLike]) -> ArrayLike:
        return params[MU_PARAMETER]

    def check_osculating(self, orbit: Orbit) -> ModelValidityError | None:
        e = float(orbit.e)
        if e >= 1.0:
            return EccentricityTooLargeError(e, 1.0)
        return None

    def check_mean(self, mean: ArrayLike, params: Mapping[str, ArrayLike]) -> ModelValidityError | None:
        e = float(jnp.hypot(mean[1], mean[2]))
        if e >= 1.0:
            return EccentricityTooLargeError(e, 1.0)
        return None

    def osculating_from_mean(self, mean: ArrayLike, dt: ArrayLike, params: Mapping[str, ArrayLike]) -> Array:
        mean = jnp.asarray(mean, dtype=get_dtype())
        n = jnp.sqrt(params[MU_PARAMETER] / mean[0] ** 3)
        return mean.at[5].add(n * dt)

    def cartesian_from_mean(self, mean: ArrayLike, dt: ArrayLike, params: Mapping[str, ArrayLike]) -> Array:
        return elements_to_cartesian(
            self.osculating_from_mean(mean, dt, params),
            self.orbit_type,
            PositionAngleType.MEAN,
            params[MU_PARAMETER],
        )
