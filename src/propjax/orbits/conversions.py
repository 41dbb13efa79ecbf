"""Conversions between orbit parameterizations.

Converts six-element arrays between Cartesian, Keplerian, circular and
equinoctial parameterizations (see :mod:`propjax.orbits._types` for the
layouts) and between mean, eccentric and true position angles.

Every function is a pure ``jax.numpy`` expression of its inputs, so the
conversions compose with ``jax.jacfwd``: the matrices harvester relies on
this to express state transition matrices in any orbit type.

Keplerian ↔ Cartesian follows Montenbruck & Gill; equinoctial ↔ Cartesian
uses the non-singular formulation (valid for circular and equatorial
orbits); circular and equinoctial sets are related by a rotation of the
eccentricity vector by the right ascension of the ascending node.

References:
    1. O. Montenbruck and E. Gill, *Satellite Orbits: Models, Methods
       and Applications*, Springer, 2012, Sec. 2.2.
    2. R. A. Broucke and P. J. Cefola, "On the Equinoctial Orbit
       Elements", *Celestial Mechanics* 5, 1972.
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from propjax.config import get_dtype
from propjax.constants import GM_EARTH
from propjax.orbits._types import OrbitType, PositionAngleType
from propjax.orbits.keplerian import (
    anomaly_eccentric_to_mean,
    anomaly_eccentric_to_true,
    anomaly_mean_to_eccentric,
    anomaly_true_to_eccentric,
    longitude_eccentric_to_mean,
    longitude_eccentric_to_true,
    longitude_mean_to_eccentric,
    longitude_true_to_eccentric,
)

_MEAN = PositionAngleType.MEAN
_ECCENTRIC = PositionAngleType.ECCENTRIC
_TRUE = PositionAngleType.TRUE


# ──────────────────────────────────────────────
# Position angle conversions
# ──────────────────────────────────────────────


def _anomaly_to_eccentric(anomaly, e, angle_type: PositionAngleType):
    if angle_type is _MEAN:
        return anomaly_mean_to_eccentric(anomaly, e)
    if angle_type is _TRUE:
        return anomaly_true_to_eccentric(anomaly, e)
    return anomaly


def _anomaly_from_eccentric(E, e, angle_type: PositionAngleType):
    if angle_type is _MEAN:
        return anomaly_eccentric_to_mean(E, e)
    if angle_type is _TRUE:
        return anomaly_eccentric_to_true(E, e)
    return E


def _longitude_to_eccentric(lon, ex, ey, angle_type: PositionAngleType):
    if angle_type is _MEAN:
        return longitude_mean_to_eccentric(lon, ex, ey)
    if angle_type is _TRUE:
        return longitude_true_to_eccentric(lon, ex, ey)
    return lon


def _longitude_from_eccentric(lE, ex, ey, angle_type: PositionAngleType):
    if angle_type is _MEAN:
        return longitude_eccentric_to_mean(lE, ex, ey)
    if angle_type is _TRUE:
        return longitude_eccentric_to_true(lE, ex, ey)
    return lE


def convert_position_angle(
    elements: ArrayLike,
    orbit_type: OrbitType,
    from_angle: PositionAngleType,
    to_angle: PositionAngleType,
) -> Array:
    """Change the kind of position angle stored in an element set.

    Args:
        elements: Six orbital elements of type ``orbit_type``.
        orbit_type: Element set (Cartesian sets are returned unchanged).
        from_angle: Kind of the position angle in ``elements``.
        to_angle: Requested kind of position angle.

    Returns:
        Element array with the last element converted.
    """
    elements = jnp.asarray(elements, dtype=get_dtype())
    if orbit_type is OrbitType.CARTESIAN or from_angle is to_angle:
        return elements

    if orbit_type is OrbitType.KEPLERIAN:
        e = elements[1]
        E = _anomaly_to_eccentric(elements[5], e, from_angle)
        angle = _anomaly_from_eccentric(E, e, to_angle)
    else:
        ex = elements[1]
        ey = elements[2]
        lE = _longitude_to_eccentric(elements[5], ex, ey, from_angle)
        angle = _longitude_from_eccentric(lE, ex, ey, to_angle)

    return elements.at[5].set(angle)


# ──────────────────────────────────────────────
# Keplerian <-> Cartesian
# ──────────────────────────────────────────────


def keplerian_to_cartesian(
    x_oe: ArrayLike,
    angle_type: PositionAngleType = _MEAN,
    gm: ArrayLike = GM_EARTH,
) -> Array:
    """Convert Keplerian orbital elements to a Cartesian state vector.

    Obtains the eccentric anomaly, then constructs position and velocity
    via the perifocal P and Q vectors (Montenbruck & Gill Eq. 2.43–2.44).

    Args:
        x_oe: Orbital elements ``[a, e, i, RAAN, omega, anomaly]``.
        angle_type: Kind of anomaly stored in ``x_oe[5]``.
        gm: Gravitational parameter. Units: *m^3/s^2*

    Returns:
        Cartesian state ``[x, y, z, vx, vy, vz]`` in *m* and *m/s*.

    Examples:
        ```python
        import jax.numpy as jnp
        from propjax.constants import R_EARTH
        from propjax.orbits import keplerian_to_cartesian
        oe = jnp.array([R_EARTH + 500e3, 0.001, 1.0, 0.0, 0.0, 0.0])
        state = keplerian_to_cartesian(oe)
        ```
    """
    x_oe = jnp.asarray(x_oe, dtype=get_dtype())

    a = x_oe[0]
    e = x_oe[1]
    i = x_oe[2]
    raan = x_oe[3]
    omega = x_oe[4]
    E = _anomaly_to_eccentric(x_oe[5], e, angle_type)

    # Perifocal unit vectors (Montenbruck & Gill Eq. 2.43)
    cos_o = jnp.cos(omega)
    sin_o = jnp.sin(omega)
    cos_R = jnp.cos(raan)
    sin_R = jnp.sin(raan)
    cos_i = jnp.cos(i)
    sin_i = jnp.sin(i)

    P = jnp.array(
        [
            cos_o * cos_R - sin_o * cos_i * sin_R,
            cos_o * sin_R + sin_o * cos_i * cos_R,
            sin_o * sin_i,
        ]
    )

    Q = jnp.array(
        [
            -sin_o * cos_R - cos_o * cos_i * sin_R,
            -sin_o * sin_R + cos_o * cos_i * cos_R,
            cos_o * sin_i,
        ]
    )

    cos_E = jnp.cos(E)
    sin_E = jnp.sin(E)
    sqrt_1me2 = jnp.sqrt(1.0 - e * e)

    r_vec = a * (cos_E - e) * P + a * sqrt_1me2 * sin_E * Q
    r_mag = a * (1.0 - e * cos_E)
    v_vec = (jnp.sqrt(gm * a) / r_mag) * (-sin_E * P + sqrt_1me2 * cos_E * Q)

    return jnp.concatenate([r_vec, v_vec])


def cartesian_to_keplerian(
    x_cart: ArrayLike,
    angle_type: PositionAngleType = _MEAN,
    gm: ArrayLike = GM_EARTH,
) -> Array:
    """Convert a Cartesian state vector to Keplerian orbital elements.

    Derives the osculating elements from position and velocity using
    angular momentum, vis-viva, and the node/eccentricity vectors
    (Montenbruck & Gill Eq. 2.56–2.68).  Angles are returned in
    ``[0, 2 pi)``.

    Args:
        x_cart: State ``[x, y, z, vx, vy, vz]`` in *m* and *m/s*.
        angle_type: Kind of anomaly to return in the last element.
        gm: Gravitational parameter. Units: *m^3/s^2*

    Returns:
        Orbital elements ``[a, e, i, RAAN, omega, anomaly]``.
    """
    x_cart = jnp.asarray(x_cart, dtype=get_dtype())

    r = x_cart[:3]
    v = x_cart[3:6]

    r_mag = jnp.linalg.norm(r)
    v_mag = jnp.linalg.norm(v)

    # Angular momentum
    h = jnp.cross(r, v)
    h_mag = jnp.linalg.norm(h)
    W = h / h_mag

    i = jnp.arctan2(jnp.sqrt(W[0] * W[0] + W[1] * W[1]), W[2])
    raan = jnp.arctan2(W[0], -W[1])

    # Semi-latus rectum and semi-major axis (vis-viva)
    p = h_mag * h_mag / gm
    a = 1.0 / (2.0 / r_mag - v_mag * v_mag / gm)
    n = jnp.sqrt(gm / jnp.abs(a) ** 3)

    ecc = jnp.sqrt(jnp.maximum(1.0 - p / a, 0.0))

    E = jnp.arctan2(jnp.dot(r, v) / (n * a * a), 1.0 - r_mag / a)

    # Argument of latitude and true anomaly
    u = jnp.arctan2(r[2], -r[0] * W[1] + r[1] * W[0])
    sqrt_1me2 = jnp.sqrt(1.0 - ecc * ecc)
    nu = jnp.arctan2(sqrt_1me2 * jnp.sin(E), jnp.cos(E) - ecc)
    omega = u - nu

    anomaly = _anomaly_from_eccentric(E, ecc, angle_type)

    two_pi = 2.0 * jnp.pi
    raan = jnp.mod(raan + two_pi, two_pi)
    omega = jnp.mod(omega + two_pi, two_pi)
    anomaly = jnp.mod(anomaly + two_pi, two_pi)

    return jnp.array([a, ecc, i, raan, omega, anomaly])


# ──────────────────────────────────────────────
# Equinoctial <-> Cartesian
# ──────────────────────────────────────────────


def equinoctial_to_cartesian(
    x_eq: ArrayLike,
    angle_type: PositionAngleType = _MEAN,
    gm: ArrayLike = GM_EARTH,
) -> Array:
    """Convert equinoctial elements ``[a, ex, ey, hx, hy, L]`` to Cartesian.

    Non-singular for circular and equatorial orbits.

    Args:
        x_eq: Equinoctial elements.
        angle_type: Kind of longitude argument stored in ``x_eq[5]``.
        gm: Gravitational parameter. Units: *m^3/s^2*

    Returns:
        Cartesian state ``[x, y, z, vx, vy, vz]``.
    """
    x_eq = jnp.asarray(x_eq, dtype=get_dtype())
    a, ex, ey, hx, hy = x_eq[0], x_eq[1], x_eq[2], x_eq[3], x_eq[4]
    lE = _longitude_to_eccentric(x_eq[5], ex, ey, angle_type)

    # Equinoctial frame unit vectors
    hx2 = hx * hx
    hy2 = hy * hy
    fact_h = 1.0 / (1.0 + hx2 + hy2)
    f_vec = jnp.array([(1.0 + hx2 - hy2) * fact_h, 2.0 * hx * hy * fact_h, -2.0 * hy * fact_h])
    g_vec = jnp.array([2.0 * hx * hy * fact_h, (1.0 - hx2 + hy2) * fact_h, 2.0 * hx * fact_h])

    # In-plane coordinates
    ex2 = ex * ex
    ey2 = ey * ey
    exey = ex * ey
    beta = 1.0 / (1.0 + jnp.sqrt(1.0 - ex2 - ey2))

    cos_le = jnp.cos(lE)
    sin_le = jnp.sin(lE)
    ex_ce_ey_s = ex * cos_le + ey * sin_le

    x = a * ((1.0 - beta * ey2) * cos_le + beta * exey * sin_le - ex)
    y = a * ((1.0 - beta * ex2) * sin_le + beta * exey * cos_le - ey)

    factor = jnp.sqrt(gm / a) / (1.0 - ex_ce_ey_s)
    x_dot = factor * (-sin_le + beta * ey * ex_ce_ey_s)
    y_dot = factor * (cos_le - beta * ex * ex_ce_ey_s)

    r_vec = x * f_vec + y * g_vec
    v_vec = x_dot * f_vec + y_dot * g_vec
    return jnp.concatenate([r_vec, v_vec])


def cartesian_to_equinoctial(
    x_cart: ArrayLike,
    angle_type: PositionAngleType = _MEAN,
    gm: ArrayLike = GM_EARTH,
) -> Array:
    """Convert a Cartesian state to equinoctial elements ``[a, ex, ey, hx, hy, L]``.

    Singular only for retrograde equatorial orbits (``i = pi``).

    Args:
        x_cart: State ``[x, y, z, vx, vy, vz]`` in *m* and *m/s*.
        angle_type: Kind of longitude argument to return.
        gm: Gravitational parameter. Units: *m^3/s^2*

    Returns:
        Equinoctial elements.
    """
    x_cart = jnp.asarray(x_cart, dtype=get_dtype())
    pos = x_cart[:3]
    vel = x_cart[3:6]

    r = jnp.linalg.norm(pos)
    r_v2_on_mu = r * jnp.dot(vel, vel) / gm
    a = r / (2.0 - r_v2_on_mu)

    # Inclination vector from the normalized angular momentum
    w = jnp.cross(pos, vel)
    w = w / jnp.linalg.norm(w)
    d = 1.0 / (1.0 + w[2])
    hx = -d * w[1]
    hy = d * w[0]

    # True longitude argument
    cos_lv = (pos[0] - d * pos[2] * w[0]) / r
    sin_lv = (pos[1] - d * pos[2] * w[1]) / r
    lv = jnp.arctan2(sin_lv, cos_lv)

    # Eccentricity vector
    e_se = jnp.dot(pos, vel) / jnp.sqrt(gm * a)
    e_ce = r_v2_on_mu - 1.0
    e2 = e_ce * e_ce + e_se * e_se
    f = e_ce - e2
    g = jnp.sqrt(1.0 - e2) * e_se
    ex = a * (f * cos_lv + g * sin_lv) / r
    ey = a * (f * sin_lv - g * cos_lv) / r

    lon = _longitude_from_eccentric(longitude_true_to_eccentric(lv, ex, ey), ex, ey, angle_type)
    return jnp.array([a, ex, ey, hx, hy, lon])


# ──────────────────────────────────────────────
# Element set rotations (angle kind preserved)
# ──────────────────────────────────────────────


def keplerian_to_circular(x_oe: ArrayLike) -> Array:
    """Convert ``[a, e, i, RAAN, omega, v]`` to ``[a, ex, ey, i, RAAN, alpha]``."""
    x_oe = jnp.asarray(x_oe, dtype=get_dtype())
    e, omega = x_oe[1], x_oe[4]
    return jnp.array(
        [x_oe[0], e * jnp.cos(omega), e * jnp.sin(omega), x_oe[2], x_oe[3], omega + x_oe[5]]
    )


def circular_to_keplerian(x_circ: ArrayLike) -> Array:
    """Convert ``[a, ex, ey, i, RAAN, alpha]`` to ``[a, e, i, RAAN, omega, v]``."""
    x_circ = jnp.asarray(x_circ, dtype=get_dtype())
    ex, ey = x_circ[1], x_circ[2]
    omega = jnp.arctan2(ey, ex)
    return jnp.array(
        [x_circ[0], jnp.sqrt(ex * ex + ey * ey), x_circ[3], x_circ[4], omega, x_circ[5] - omega]
    )


def circular_to_equinoctial(x_circ: ArrayLike) -> Array:
    """Convert ``[a, ex, ey, i, RAAN, alpha]`` to ``[a, ex, ey, hx, hy, L]``."""
    x_circ = jnp.asarray(x_circ, dtype=get_dtype())
    a, cx, cy, i, raan, alpha = (x_circ[k] for k in range(6))
    cos_r = jnp.cos(raan)
    sin_r = jnp.sin(raan)
    t = jnp.tan(0.5 * i)
    return jnp.array(
        [a, cx * cos_r - cy * sin_r, cx * sin_r + cy * cos_r, t * cos_r, t * sin_r, alpha + raan]
    )


def equinoctial_to_circular(x_eq: ArrayLike) -> Array:
    """Convert ``[a, ex, ey, hx, hy, L]`` to ``[a, ex, ey, i, RAAN, alpha]``."""
    x_eq = jnp.asarray(x_eq, dtype=get_dtype())
    a, ex, ey, hx, hy, lon = (x_eq[k] for k in range(6))
    raan = jnp.arctan2(hy, hx)
    cos_r = jnp.cos(raan)
    sin_r = jnp.sin(raan)
    i = 2.0 * jnp.arctan(jnp.sqrt(hx * hx + hy * hy))
    return jnp.array(
        [a, ex * cos_r + ey * sin_r, -ex * sin_r + ey * cos_r, i, raan, lon - raan]
    )


def _to_circular(elements, orbit_type: OrbitType):
    if orbit_type is OrbitType.KEPLERIAN:
        return keplerian_to_circular(elements)
    if orbit_type is OrbitType.EQUINOCTIAL:
        return equinoctial_to_circular(elements)
    return elements


def _from_circular(elements, orbit_type: OrbitType):
    if orbit_type is OrbitType.KEPLERIAN:
        return circular_to_keplerian(elements)
    if orbit_type is OrbitType.EQUINOCTIAL:
        return circular_to_equinoctial(elements)
    return elements


# ──────────────────────────────────────────────
# Generic entry points
# ──────────────────────────────────────────────


def elements_to_cartesian(
    elements: ArrayLike,
    orbit_type: OrbitType,
    angle_type: PositionAngleType = _MEAN,
    gm: ArrayLike = GM_EARTH,
) -> Array:
    """Convert any element set to a Cartesian state vector.

    Args:
        elements: Six orbital elements of type ``orbit_type``.
        orbit_type: Element set of ``elements``.
        angle_type: Kind of position angle stored in ``elements``.
        gm: Gravitational parameter. Units: *m^3/s^2*

    Returns:
        Cartesian state ``[x, y, z, vx, vy, vz]``.
    """
    if orbit_type is OrbitType.CARTESIAN:
        return jnp.asarray(elements, dtype=get_dtype())
    if orbit_type is OrbitType.KEPLERIAN:
        return keplerian_to_cartesian(elements, angle_type, gm)
    if orbit_type is OrbitType.CIRCULAR:
        elements = circular_to_equinoctial(elements)
    return equinoctial_to_cartesian(elements, angle_type, gm)


def cartesian_to_elements(
    x_cart: ArrayLike,
    orbit_type: OrbitType,
    angle_type: PositionAngleType = _MEAN,
    gm: ArrayLike = GM_EARTH,
) -> Array:
    """Convert a Cartesian state vector to any element set.

    Args:
        x_cart: State ``[x, y, z, vx, vy, vz]``.
        orbit_type: Requested element set.
        angle_type: Requested kind of position angle.
        gm: Gravitational parameter. Units: *m^3/s^2*

    Returns:
        Six orbital elements of type ``orbit_type``.
    """
    if orbit_type is OrbitType.CARTESIAN:
        return jnp.asarray(x_cart, dtype=get_dtype())
    if orbit_type is OrbitType.KEPLERIAN:
        return cartesian_to_keplerian(x_cart, angle_type, gm)
    equinoctial = cartesian_to_equinoctial(x_cart, angle_type, gm)
    if orbit_type is OrbitType.EQUINOCTIAL:
        return equinoctial
    return equinoctial_to_circular(equinoctial)


def convert_elements(
    elements: ArrayLike,
    from_type: OrbitType,
    to_type: OrbitType,
    from_angle: PositionAngleType = _MEAN,
    to_angle: PositionAngleType = _MEAN,
    gm: ArrayLike = GM_EARTH,
) -> Array:
    """Convert an element set to another parameterization.

    Conversions between two non-Cartesian sets do not go through
    Cartesian coordinates and therefore do not depend on ``gm``.

    Args:
        elements: Six orbital elements of type ``from_type``.
        from_type: Element set of ``elements``.
        to_type: Requested element set.
        from_angle: Kind of position angle stored in ``elements``.
        to_angle: Requested kind of position angle.
        gm: Gravitational parameter. Units: *m^3/s^2*

    Returns:
        Six orbital elements of type ``to_type``.

    Examples:
        ```python
        from propjax.orbits import OrbitType, PositionAngleType, convert_elements
        kep = [7e6, 0.01, 1.0, 0.5, 0.3, 0.2]
        circ = convert_elements(kep, OrbitType.KEPLERIAN, OrbitType.CIRCULAR,
                                PositionAngleType.TRUE, PositionAngleType.MEAN)
        ```
    """
    if from_type is to_type:
        return convert_position_angle(elements, from_type, from_angle, to_angle)
    if from_type is OrbitType.CARTESIAN:
        return cartesian_to_elements(elements, to_type, to_angle, gm)
    if to_type is OrbitType.CARTESIAN:
        return elements_to_cartesian(elements, from_type, from_angle, gm)
    converted = _from_circular(_to_circular(elements, from_type), to_type)
    return convert_position_angle(converted, to_type, from_angle, to_angle)
