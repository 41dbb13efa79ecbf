"""Keplerian orbital mechanics functions.

This module provides the two-body helpers the analytical theories build
on: orbital period and mean motion for an arbitrary gravitational
parameter, and anomaly conversions between mean, eccentric and true
anomaly, both for the classical anomaly and for the longitude arguments
of circular/equinoctial elements (where the eccentricity vector is split
in two components).

All functions use JAX operations and are compatible with ``jax.jit``,
``jax.vmap`` and ``jax.jacfwd``.  The Kepler equation solvers use
Newton-Raphson iterations implemented with ``jax.lax.fori_loop``.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from propjax.config import get_dtype
from propjax.constants import GM_EARTH
from propjax.utils import from_radians, to_radians

_KEPLER_ITERATIONS = 12

# ──────────────────────────────────────────────
# Orbital period and mean motion
# ──────────────────────────────────────────────


def orbital_period(a: ArrayLike, gm: ArrayLike = GM_EARTH) -> Array:
    """Compute the orbital period of an object around a central body.

    Args:
        a: Semi-major axis. Units: *m*
        gm: Gravitational parameter of the central body. Units: *m^3/s^2*

    Returns:
        Orbital period. Units: *s*

    Examples:
        ```python
        from propjax.constants import R_EARTH
        from propjax.orbits import orbital_period
        T = orbital_period(R_EARTH + 500e3)
        ```
    """
    a = jnp.asarray(a, dtype=get_dtype())
    return 2.0 * jnp.pi * jnp.sqrt(a**3 / gm)


def mean_motion(a: ArrayLike, gm: ArrayLike = GM_EARTH, use_degrees: bool = False) -> Array:
    """Compute the Keplerian mean motion.

    Args:
        a: Semi-major axis. Units: *m*
        gm: Gravitational parameter of the central body. Units: *m^3/s^2*
        use_degrees: If ``True``, return mean motion in degrees per second.

    Returns:
        Mean motion. Units: *rad/s* or *deg/s*
    """
    a = jnp.asarray(a, dtype=get_dtype())
    n = jnp.sqrt(gm / jnp.abs(a) ** 3)
    return from_radians(n, use_degrees)


# ──────────────────────────────────────────────
# Anomaly conversions
# ──────────────────────────────────────────────


def anomaly_eccentric_to_mean(anm_ecc: ArrayLike, e: ArrayLike, use_degrees: bool = False) -> Array:
    """Convert eccentric anomaly to mean anomaly.

    Applies Kepler's equation: ``M = E - e * sin(E)``.

    Args:
        anm_ecc: Eccentric anomaly. Units: *rad* or *deg*
        e: Eccentricity. Dimensionless.
        use_degrees: If ``True``, input and output are in degrees.

    Returns:
        Mean anomaly. Units: *rad* or *deg*
    """
    E = to_radians(jnp.asarray(anm_ecc, dtype=get_dtype()), use_degrees)
    M = E - e * jnp.sin(E)
    return from_radians(M, use_degrees)


def anomaly_mean_to_eccentric(anm_mean: ArrayLike, e: ArrayLike, use_degrees: bool = False) -> Array:
    """Convert mean anomaly to eccentric anomaly.

    Solves Kepler's equation ``M = E - e * sin(E)`` for ``E`` using
    Newton-Raphson iteration implemented with ``jax.lax.fori_loop``.  The
    result lies in the same ``2 pi`` revolution as ``M``, so the output is
    continuous (and differentiable) in ``M``.

    Args:
        anm_mean: Mean anomaly. Units: *rad* or *deg*
        e: Eccentricity. Dimensionless.
        use_degrees: If ``True``, input and output are in degrees.

    Returns:
        Eccentric anomaly. Units: *rad* or *deg*

    Examples:
        ```python
        from propjax.orbits import anomaly_mean_to_eccentric
        E = anomaly_mean_to_eccentric(84.27, 0.1, use_degrees=True)
        ```
    """
    M = to_radians(jnp.asarray(anm_mean, dtype=get_dtype()), use_degrees)

    # Solve on the reduced anomaly, then restore the revolution count
    two_pi = 2.0 * jnp.pi
    offset = two_pi * jnp.floor(M / two_pi)
    M_red = M - offset

    # Initial guess: M for low eccentricity, pi for high eccentricity
    E0 = jnp.where(e < 0.8, M_red, jnp.pi)

    def newton_step(_, E):
        f = E - e * jnp.sin(E) - M_red
        return E - f / (1.0 - e * jnp.cos(E))

    E = jax.lax.fori_loop(0, _KEPLER_ITERATIONS, newton_step, E0)
    return from_radians(E + offset, use_degrees)


def anomaly_true_to_eccentric(anm_true: ArrayLike, e: ArrayLike, use_degrees: bool = False) -> Array:
    """Convert true anomaly to eccentric anomaly.

    Uses the half-angle form so the result stays in the same revolution
    as the input.

    Args:
        anm_true: True anomaly. Units: *rad* or *deg*
        e: Eccentricity. Dimensionless.
        use_degrees: If ``True``, input and output are in degrees.

    Returns:
        Eccentric anomaly. Units: *rad* or *deg*

    References:
        D. Vallado, *Fundamentals of Astrodynamics and Applications
        (4th Ed.)*, pp. 47, eq. 2-9, 2010.
    """
    nu = to_radians(jnp.asarray(anm_true, dtype=get_dtype()), use_degrees)
    beta = e / (1.0 + jnp.sqrt((1.0 - e) * (1.0 + e)))
    E = nu - 2.0 * jnp.arctan(beta * jnp.sin(nu) / (1.0 + beta * jnp.cos(nu)))
    return from_radians(E, use_degrees)


def anomaly_eccentric_to_true(anm_ecc: ArrayLike, e: ArrayLike, use_degrees: bool = False) -> Array:
    """Convert eccentric anomaly to true anomaly.

    Args:
        anm_ecc: Eccentric anomaly. Units: *rad* or *deg*
        e: Eccentricity. Dimensionless.
        use_degrees: If ``True``, input and output are in degrees.

    Returns:
        True anomaly. Units: *rad* or *deg*
    """
    E = to_radians(jnp.asarray(anm_ecc, dtype=get_dtype()), use_degrees)
    beta = e / (1.0 + jnp.sqrt((1.0 - e) * (1.0 + e)))
    nu = E + 2.0 * jnp.arctan(beta * jnp.sin(E) / (1.0 - beta * jnp.cos(E)))
    return from_radians(nu, use_degrees)


def anomaly_true_to_mean(anm_true: ArrayLike, e: ArrayLike, use_degrees: bool = False) -> Array:
    """Convert true anomaly to mean anomaly.

    Composite conversion: true -> eccentric -> mean.
    """
    return anomaly_eccentric_to_mean(
        anomaly_true_to_eccentric(anm_true, e, use_degrees),
        e,
        use_degrees,
    )


def anomaly_mean_to_true(anm_mean: ArrayLike, e: ArrayLike, use_degrees: bool = False) -> Array:
    """Convert mean anomaly to true anomaly.

    Composite conversion: mean -> eccentric -> true.
    """
    return anomaly_eccentric_to_true(
        anomaly_mean_to_eccentric(anm_mean, e, use_degrees),
        e,
        use_degrees,
    )


# ──────────────────────────────────────────────
# Longitude argument conversions
# ──────────────────────────────────────────────
#
# For circular (alpha) and equinoctial (L) elements the anomaly is measured
# from a fixed direction, with the eccentricity vector (ex, ey) expressed in
# the same basis.  Kepler's equation becomes
#     l_M = l_E - ex sin(l_E) + ey cos(l_E)


def longitude_eccentric_to_mean(l_ecc: ArrayLike, ex: ArrayLike, ey: ArrayLike) -> Array:
    """Convert an eccentric longitude argument to the mean one."""
    return l_ecc - ex * jnp.sin(l_ecc) + ey * jnp.cos(l_ecc)


def longitude_mean_to_eccentric(l_mean: ArrayLike, ex: ArrayLike, ey: ArrayLike) -> Array:
    """Convert a mean longitude argument to the eccentric one.

    Newton-Raphson on the generalized Kepler equation, started from the
    mean longitude.  The result is continuous in ``l_mean``.

    Args:
        l_mean: Mean longitude argument. Units: *rad*
        ex: First eccentricity vector component.
        ey: Second eccentricity vector component.

    Returns:
        Eccentric longitude argument. Units: *rad*
    """
    l_mean = jnp.asarray(l_mean, dtype=get_dtype())

    def newton_step(_, lE):
        f = lE - ex * jnp.sin(lE) + ey * jnp.cos(lE) - l_mean
        fd = 1.0 - ex * jnp.cos(lE) - ey * jnp.sin(lE)
        return lE - f / fd

    return jax.lax.fori_loop(0, _KEPLER_ITERATIONS, newton_step, l_mean)


def longitude_eccentric_to_true(l_ecc: ArrayLike, ex: ArrayLike, ey: ArrayLike) -> Array:
    """Convert an eccentric longitude argument to the true one."""
    epsilon = jnp.sqrt(1.0 - ex * ex - ey * ey)
    cos_le = jnp.cos(l_ecc)
    sin_le = jnp.sin(l_ecc)
    num = ex * sin_le - ey * cos_le
    den = epsilon + 1.0 - ex * cos_le - ey * sin_le
    return l_ecc + 2.0 * jnp.arctan(num / den)


def longitude_true_to_eccentric(l_true: ArrayLike, ex: ArrayLike, ey: ArrayLike) -> Array:
    """Convert a true longitude argument to the eccentric one."""
    epsilon = jnp.sqrt(1.0 - ex * ex - ey * ey)
    cos_lv = jnp.cos(l_true)
    sin_lv = jnp.sin(l_true)
    num = ey * cos_lv - ex * sin_lv
    den = epsilon + 1.0 + ex * cos_lv + ey * sin_lv
    return l_true + 2.0 * jnp.arctan(num / den)
