"""Eckstein-Hechler zonal theory.

First-order closed-form theory for near circular orbits under zonal
harmonics ``J2`` to ``J6``, working on circular elements
``[a, ex, ey, i, raan, alpha_M]`` (mean argument of latitude).  It is
accurate for eccentricities below 0.005, usable with degraded accuracy up
to 0.1, and singular for equatorial and critically inclined orbits, which
are rejected.

The osculating velocity produced by the series is not consistent with the
Keplerian velocity of the osculating elements, so produced orbits are
Cartesian with the velocity taken as the time derivative of the position.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from propjax.config import get_dtype
from propjax.errors import (
    CriticalInclinationError,
    EccentricityTooLargeError,
    EquatorialOrbitError,
    ModelValidityError,
)
from propjax.gravity import ZonalHarmonics, resolve_harmonics
from propjax.orbits import Orbit, OrbitType, PositionAngleType, elements_to_cartesian
from propjax.parameters import ParameterDriver
from propjax.theories._base import MeanElementsConfig, check_conic
from propjax.utils import normalize_angle

logger = logging.getLogger(__name__)

MAX_ECCENTRICITY = 0.1
ACCURATE_ECCENTRICITY = 0.005
CRITICAL_INCLINATIONS = (1.1071487, 2.0344439)
CRITICAL_INCLINATION_TOLERANCE = 1.0e-3

_EQUATORIAL_SINE = 1.0e-10


def eckstein_hechler(mean: ArrayLike, dt: ArrayLike, harmonics: ZonalHarmonics) -> Array:
    """Osculating circular elements from Eckstein-Hechler mean elements.

    Args:
        mean: Mean circular elements ``[a, ex, ey, i, raan, alpha_M]``.
        dt: Time since the mean elements epoch. Units: *s*
        harmonics: Un-normalized zonal coefficients.

    Returns:
        Osculating circular elements with mean argument of latitude,
        angles in ``[0, 2 pi)``.
    """
    mean = jnp.asarray(mean, dtype=get_dtype())
    a_m, ex_m, ey_m, i_m, raan_m, alpha_m = mean

    q = harmonics.reference_radius / a_m
    g2 = harmonics.c20 * q**2
    g3 = harmonics.c30 * q**3
    g4 = harmonics.c40 * q**4
    g5 = harmonics.c50 * q**5
    g6 = harmonics.c60 * q**6

    cos_i1 = jnp.cos(i_m)
    sin_i1 = jnp.sin(i_m)
    sin_i2 = sin_i1 * sin_i1
    sin_i4 = sin_i2 * sin_i2
    sin_i6 = sin_i2 * sin_i4

    xnot = dt * jnp.sqrt(harmonics.mu / a_m) / a_m

    # ──────────────────────────────────────────────
    # Secular effects
    # ──────────────────────────────────────────────

    # eccentricity vector rotation
    rdpom = -0.75 * g2 * (4.0 - 5.0 * sin_i2)
    rdpomp = 7.5 * g4 * (1.0 - 31.0 / 8.0 * sin_i2 + 49.0 / 16.0 * sin_i4) - 13.125 * g6 * (
        1.0 - 8.0 * sin_i2 + 129.0 / 8.0 * sin_i4 - 297.0 / 32.0 * sin_i6
    )
    x = (rdpom + rdpomp) * xnot
    cx = jnp.cos(x)
    sx = jnp.sin(x)
    q = 3.0 / (32.0 * rdpom)
    eps1 = q * g4 * sin_i2 * (30.0 - 35.0 * sin_i2) - 175.0 * q * g6 * sin_i2 * (1.0 - 3.0 * sin_i2 + 2.0625 * sin_i4)
    q = 3.0 * sin_i1 / (8.0 * rdpom)
    eps2 = q * g3 * (4.0 - 5.0 * sin_i2) - q * g5 * (10.0 - 35.0 * sin_i2 + 26.25 * sin_i4)
    exm = ex_m * cx - (1.0 - eps1) * ey_m * sx + eps2 * sx
    eym = (1.0 + eps1) * ex_m * sx + (ey_m - eps2) * cx + eps2

    # right ascension of ascending node
    q = (
        1.5 * g2
        - 2.25 * g2 * g2 * (2.5 - 19.0 / 6.0 * sin_i2)
        + 0.9375 * g4 * (7.0 * sin_i2 - 4.0)
        + 3.28125 * g6 * (2.0 - 9.0 * sin_i2 + 8.25 * sin_i4)
    )
    omm = normalize_angle(raan_m + q * cos_i1 * xnot, jnp.pi)

    # argument of latitude
    rdl = 1.0 - 1.5 * g2 * (3.0 - 4.0 * sin_i2)
    q = (
        rdl
        + 2.25 * g2 * g2 * (9.0 - 263.0 / 12.0 * sin_i2 + 341.0 / 24.0 * sin_i4)
        + 15.0 / 16.0 * g4 * (8.0 - 31.0 * sin_i2 + 24.5 * sin_i4)
        + 105.0 / 32.0 * g6 * (-10.0 / 3.0 + 25.0 * sin_i2 - 48.75 * sin_i4 + 27.5 * sin_i6)
    )
    xlm = normalize_angle(alpha_m + q * xnot, jnp.pi)

    # ──────────────────────────────────────────────
    # Periodic terms
    # ──────────────────────────────────────────────

    cl1 = jnp.cos(xlm)
    sl1 = jnp.sin(xlm)
    cl2 = cl1 * cl1 - sl1 * sl1
    sl2 = 2.0 * cl1 * sl1
    cl3 = cl2 * cl1 - sl2 * sl1
    sl3 = cl2 * sl1 + sl2 * cl1
    cl4 = cl3 * cl1 - sl3 * sl1
    sl4 = cl3 * sl1 + sl3 * cl1
    cl5 = cl4 * cl1 - sl4 * sl1
    sl5 = cl4 * sl1 + sl4 * cl1
    cl6 = cl5 * cl1 - sl5 * sl1

    qq = -1.5 * g2 / rdl
    qh = 0.375 * (eym - eps2) / rdpom
    ql = 0.375 * exm / (sin_i1 * rdpom)

    # semi-major axis
    rda = qq * (
        (2.0 - 3.5 * sin_i2) * exm * cl1
        + (2.0 - 2.5 * sin_i2) * eym * sl1
        + sin_i2 * cl2
        + 3.5 * sin_i2 * (exm * cl3 + eym * sl3)
    )
    rda += 0.75 * g2 * g2 * sin_i2 * (7.0 * (2.0 - 3.0 * sin_i2) * cl2 + sin_i2 * cl4)
    rda += -0.75 * g3 * sin_i1 * ((4.0 - 5.0 * sin_i2) * sl1 + 5.0 / 3.0 * sin_i2 * sl3)
    rda += 0.25 * g4 * sin_i2 * ((15.0 - 17.5 * sin_i2) * cl2 + 4.375 * sin_i2 * cl4)
    rda += 3.75 * g5 * sin_i1 * (
        (2.625 * sin_i4 - 3.5 * sin_i2 + 1.0) * sl1
        + 7.0 / 6.0 * sin_i2 * (1.0 - 1.125 * sin_i2) * sl3
        + 21.0 / 80.0 * sin_i4 * sl5
    )
    rda += 105.0 / 16.0 * g6 * sin_i2 * (
        (3.0 * sin_i2 - 1.0 - 33.0 / 16.0 * sin_i4) * cl2
        + 0.75 * (1.1 * sin_i4 - sin_i2) * cl4
        - 11.0 / 80.0 * sin_i4 * cl6
    )

    # eccentricity vector
    rdex = qq * (
        (1.0 - 1.25 * sin_i2) * cl1
        + 0.5 * (3.0 - 5.0 * sin_i2) * exm * cl2
        + (2.0 - 1.5 * sin_i2) * eym * sl2
        + 7.0 / 12.0 * sin_i2 * cl3
        + 17.0 / 8.0 * sin_i2 * (exm * cl4 + eym * sl4)
    )
    rdey = qq * (
        (1.0 - 1.75 * sin_i2) * sl1
        + (1.0 - 3.0 * sin_i2) * exm * sl2
        + (2.0 * sin_i2 - 1.5) * eym * cl2
        + 7.0 / 12.0 * sin_i2 * sl3
        + 17.0 / 8.0 * sin_i2 * (exm * sl4 - eym * cl4)
    )

    # ascending node
    rdom = -qq * cos_i1 * (3.5 * exm * sl1 - 2.5 * eym * cl1 - 0.5 * sl2 + 7.0 / 6.0 * (eym * cl3 - exm * sl3))
    rdom += ql * g3 * cos_i1 * (4.0 - 15.0 * sin_i2)
    rdom -= ql * 2.5 * g5 * cos_i1 * (4.0 - 42.0 * sin_i2 + 52.5 * sin_i4)

    # inclination
    rdxi = 0.5 * qq * sin_i1 * cos_i1 * (eym * sl1 - exm * cl1 + cl2 + 7.0 / 3.0 * (exm * cl3 + eym * sl3))
    rdxi -= qh * g3 * cos_i1 * (4.0 - 5.0 * sin_i2)
    rdxi += qh * 2.5 * g5 * cos_i1 * (4.0 - 14.0 * sin_i2 + 10.5 * sin_i4)

    # argument of latitude
    rdxl = qq * (
        (7.0 - 77.0 / 8.0 * sin_i2) * exm * sl1
        + (55.0 / 8.0 * sin_i2 - 7.5) * eym * cl1
        + (1.25 * sin_i2 - 0.5) * sl2
        + (77.0 / 24.0 * sin_i2 - 7.0 / 6.0) * (exm * sl3 - eym * cl3)
    )
    rdxl += ql * g3 * (53.0 * sin_i2 - 4.0 - 57.5 * sin_i4)
    rdxl += ql * 2.5 * g5 * (4.0 - 96.0 * sin_i2 + 269.5 * sin_i4 - 183.75 * sin_i6)

    return jnp.stack(
        [
            a_m * (1.0 + rda),
            exm + rdex,
            eym + rdey,
            i_m + rdxi,
            normalize_angle(omm + rdom, jnp.pi),
            normalize_angle(xlm + rdxl, jnp.pi),
        ]
    )


class EcksteinHechlerTheory:
    """Eckstein-Hechler theory bound to a zonal gravity field.

    Args:
        gravity: Zonal coefficients: a :class:`ZonalHarmonics`, a provider
            with ``on_date`` or a packaged model name.
        epoch: Epoch at which time-dependent providers are sampled.

    Examples:
        ```python
        from propjax.gravity import ZonalHarmonics
        from propjax.theories import EcksteinHechlerTheory
        theory = EcksteinHechlerTheory(
            ZonalHarmonics(6.378137e6, 3.9860047e14, -1.08263e-3, 2.54e-6, 1.62e-6, 2.3e-7, -5.5e-7)
        )
        ```
    """

    name = "Eckstein-Hechler"
    orbit_type = OrbitType.CIRCULAR
    output_orbit_type = OrbitType.CARTESIAN
    default_config = MeanElementsConfig(1.0e-13, 100)

    def __init__(self, gravity, epoch: float = 0.0) -> None:
        self.harmonics = resolve_harmonics(gravity, epoch)
        self._evaluate = jax.jit(self._osculating)

    def parameter_drivers(self) -> list[ParameterDriver]:
        return []

    def mu(self, params: Mapping[str, ArrayLike]) -> ArrayLike:
        return self.harmonics.mu

    def check_osculating(self, orbit: Orbit) -> ModelValidityError | None:
        error = check_conic(orbit, self.harmonics.reference_radius)
        if error is not None:
            return error
        # The series divide by sin(i): equatorial orbits cannot even start the solve
        i = float(orbit.i)
        if abs(math.sin(i)) < _EQUATORIAL_SINE:
            return EquatorialOrbitError(i)
        return None

    def check_mean(self, mean: ArrayLike, params: Mapping[str, ArrayLike]) -> ModelValidityError | None:
        e = math.hypot(float(mean[1]), float(mean[2]))
        if e > MAX_ECCENTRICITY:
            return EccentricityTooLargeError(e, MAX_ECCENTRICITY)
        if e > ACCURATE_ECCENTRICITY:
            logger.warning("Eckstein-Hechler accuracy is poor for mean eccentricity %.4g", e)

        i = float(mean[3])
        if i < 0.0 or i > math.pi or abs(math.sin(i)) < _EQUATORIAL_SINE:
            return EquatorialOrbitError(i)
        for critical in CRITICAL_INCLINATIONS:
            if abs(i - critical) < CRITICAL_INCLINATION_TOLERANCE:
                return CriticalInclinationError(i)
        return None

    def _osculating(self, mean, dt):
        return eckstein_hechler(mean, dt, self.harmonics)

    def osculating_from_mean(self, mean: ArrayLike, dt: ArrayLike, params: Mapping[str, ArrayLike]) -> Array:
        return self._evaluate(mean, dt)

    def cartesian_from_mean(self, mean: ArrayLike, dt: ArrayLike, params: Mapping[str, ArrayLike]) -> Array:
        """Cartesian state whose velocity is the time derivative of the position."""
        dt = jnp.asarray(dt, dtype=get_dtype())

        def position(t):
            elements = self._evaluate(mean, t)
            return elements_to_cartesian(elements, self.orbit_type, PositionAngleType.MEAN, self.harmonics.mu)[:3]

        r, v = jax.jvp(position, (dt,), (jnp.ones_like(dt),))
        return jnp.concatenate([r, v])

    def __repr__(self) -> str:
        return f"EcksteinHechlerTheory(c20={self.harmonics.c20}, mu={self.harmonics.mu})"
