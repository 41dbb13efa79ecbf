"""Brouwer-Lyddane zonal theory with an empirical drag term.

Semi-analytical mean-to-osculating mapping of Brouwer (1959) with the
Lyddane (1963) modification for small eccentricities and inclinations,
for zonal harmonics ``J2`` to ``J5``.  Atmospheric drag is modelled by
the single empirical coefficient ``M2`` of Phipps' thesis, entering the
mean anomaly quadratically and the semi-major axis and eccentricity
linearly in time.

The critical inclination singularity ``1 / (1 - 5 cos^2 i)`` is replaced
by the smooth approximation :func:`critical_inclination_factor`, so the
theory remains usable (with degraded accuracy) at ``i = 63.4 deg``.

Mean elements are Keplerian ``[a, e, i, raan, omega, M]`` with mean
anomaly.  Eccentricities must be below 1 and the orbit must not be
equatorial.

References:
    1. D. Brouwer, "Solution of the problem of artificial satellite theory
       without drag", *Astronomical Journal* 64, 1959.
    2. R. H. Lyddane, "Small eccentricities or inclinations in the Brouwer
       theory of the artificial satellite", *Astronomical Journal* 68, 1963.
    3. W. E. Phipps Jr., "Parallelization of the Navy Space Surveillance
       Center (NAVSPASUR) Satellite Model", Naval Postgraduate School, 1992.
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
from propjax.errors import EccentricityTooLargeError, EquatorialOrbitError, ModelValidityError
from propjax.gravity import ZonalHarmonics, resolve_harmonics
from propjax.orbits import Orbit, OrbitType, PositionAngleType, anomaly_mean_to_eccentric, keplerian_to_cartesian
from propjax.parameters import ParameterDriver
from propjax.theories._base import MeanElementsConfig, check_conic
from propjax.utils import normalize_angle

logger = logging.getLogger(__name__)

M2_PARAMETER = "M2"
M2_SCALE = 2.0**-32

# Smoothing constant of the critical inclination approximation
BETA = 100.0 * 2.0**-11

_EQUATORIAL_SINE = 1.0e-10


def critical_inclination_factor(cos_i: ArrayLike) -> Array:
    """Smooth approximation of ``1 / (1 - 5 cos^2 i)``.

    Equations 2.47 and 2.48 of Phipps' thesis: a truncated series times a
    product of exponentials that tends to ``1 / x`` away from ``x = 0``
    and to ``0`` at the critical inclination.

    Args:
        cos_i: Cosine of the mean inclination.

    Returns:
        Approximated factor.
    """
    x = 1.0 - 5.0 * cos_i * cos_i
    x2 = x * x
    total = 0.0
    for k in range(13):
        sign = 1.0 if k % 2 == 0 else -1.0
        total = total + sign * BETA**k * x2**k / math.factorial(k + 1)
    product = 1.0
    for k in range(11):
        product = product * (1.0 + jnp.exp(-(2.0**k) * BETA * x2))
    return BETA * x * total * product


def brouwer_lyddane(
    mean: ArrayLike,
    dt: ArrayLike,
    m2: ArrayLike,
    harmonics: ZonalHarmonics,
) -> Array:
    """Osculating Keplerian elements from Brouwer-Lyddane mean elements.

    Args:
        mean: Mean elements ``[a, e, i, raan, omega, M]``.
        dt: Time since the mean elements epoch. Units: *s*
        m2: Empirical drag coefficient. Units: *rad/s^2*
        harmonics: Un-normalized zonal coefficients (``c20`` must be
            non-zero).

    Returns:
        Osculating elements ``[a, e, i, raan, omega, M]`` with mean anomaly.
    """
    mean = jnp.asarray(mean, dtype=get_dtype())
    app, epp, inc, raan, omega, anomaly = mean
    ck0 = harmonics.ck0

    # ──────────────────────────────────────────────
    # Model coefficients
    # ──────────────────────────────────────────────

    xnot_dot = jnp.sqrt(harmonics.mu / app) / app
    q = harmonics.reference_radius / app
    y2 = -0.5 * ck0[2] * q**2
    n = jnp.sqrt(1.0 - epp * epp)
    n2 = n * n
    n3 = n2 * n
    n4 = n2 * n2
    n6 = n4 * n2
    n8 = n4 * n4
    n10 = n8 * n2
    yp2 = y2 / n4
    yp3 = ck0[3] * q**3 / n6
    yp4 = 0.375 * ck0[4] * q**4 / n8
    yp5 = ck0[5] * q**5 / n10

    sin_i1 = jnp.sin(inc)
    sin_i2 = sin_i1 * sin_i1
    cos_i1 = jnp.cos(inc)
    cos_i2 = cos_i1 * cos_i1
    cos_i3 = cos_i2 * cos_i1
    cos_i4 = cos_i2 * cos_i2
    cos_i6 = cos_i4 * cos_i2
    c5c2 = 1.0 / critical_inclination_factor(cos_i1)
    c3c2 = 3.0 * cos_i2 - 1.0

    epp2 = epp * epp
    epp3 = epp2 * epp
    epp4 = epp2 * epp2

    # Secular multipliers of the mean motion
    lt = (
        1.0
        + 1.5 * yp2 * n * c3c2
        + 0.09375 * yp2 * yp2 * n
        * (-15.0 + 16.0 * n + 25.0 * n2 + (30.0 - 96.0 * n - 90.0 * n2) * cos_i2 + (105.0 + 144.0 * n + 25.0 * n2) * cos_i4)
        + 0.9375 * yp4 * n * epp2 * (3.0 - 30.0 * cos_i2 + 35.0 * cos_i4)
    )
    gt = (
        -1.5 * yp2 * c5c2
        + 0.09375 * yp2 * yp2
        * (-35.0 + 24.0 * n + 25.0 * n2 + (90.0 - 192.0 * n - 126.0 * n2) * cos_i2 + (385.0 + 360.0 * n + 45.0 * n2) * cos_i4)
        + 0.3125 * yp4 * (21.0 - 9.0 * n2 + (-270.0 + 126.0 * n2) * cos_i2 + (385.0 - 189.0 * n2) * cos_i4)
    )
    ht = (
        -3.0 * yp2 * cos_i1
        + 0.375 * yp2 * yp2 * ((-5.0 + 12.0 * n + 9.0 * n2) * cos_i1 + (-35.0 - 36.0 * n - 5.0 * n2) * cos_i3)
        + 1.25 * yp4 * (5.0 - 3.0 * n2) * cos_i1 * (3.0 - 7.0 * cos_i2)
    )

    c_a = 1.0 - 11.0 * cos_i2 - 40.0 * cos_i4 / c5c2
    c_b = 1.0 - 3.0 * cos_i2 - 8.0 * cos_i4 / c5c2
    c_c = 1.0 - 9.0 * cos_i2 - 24.0 * cos_i4 / c5c2
    c_d = 1.0 - 5.0 * cos_i2 - 16.0 * cos_i4 / c5c2

    qyp2_4 = 3.0 * yp2 * yp2 * c_a - 10.0 * yp4 * c_b
    qyp52 = epp3 * cos_i1 * (0.5 * c_d / sin_i1 + sin_i1 * (5.0 + 32.0 * cos_i2 / c5c2 + 80.0 * cos_i4 / c5c2 / c5c2))
    qyp22 = (
        2.0
        + epp2
        - 11.0 * (2.0 + 3.0 * epp2) * cos_i2
        - 40.0 * (2.0 + 5.0 * epp2) * cos_i4 / c5c2
        - 400.0 * epp2 * cos_i6 / c5c2 / c5c2
    )
    qyp42 = (qyp22 + 4.0 * (2.0 + epp2 - (2.0 + 3.0 * epp2) * cos_i2)) / 5.0
    qyp52bis = epp * cos_i1 * sin_i1 * (4.0 + 3.0 * epp2) * (3.0 + 16.0 * cos_i2 / c5c2 + 40.0 * cos_i4 / c5c2 / c5c2)

    # Long periodic terms
    dei3sg = 35.0 / 96.0 * yp5 / yp2 * epp2 * n2 * c_d * sin_i1
    de2sg = -1.0 / 12.0 * epp * n2 / yp2 * qyp2_4
    deisg = (
        -35.0 / 128.0 * yp5 / yp2 * epp2 * n2 * c_d
        + 0.25 * n2 / yp2 * (yp3 + 5.0 / 16.0 * yp5 * (4.0 + 3.0 * epp2) * c_c)
    ) * sin_i1
    de = epp2 * n2 / 24.0 / yp2 * qyp2_4

    qyp52quotient = epp * (-32.0 + 81.0 * epp4) / (4.0 + 3.0 * epp2 + n * (4.0 + 9.0 * epp2))
    dlgs2g = 1.0 / 48.0 / yp2 * (-3.0 * yp2 * yp2 * qyp22 + 10.0 * yp4 * qyp42) + n3 / yp2 * qyp2_4 / 24.0
    dlgc3g = 35.0 / 384.0 * yp5 / yp2 * n3 * epp * c_d * sin_i1 + 35.0 / 1152.0 * yp5 / yp2 * (
        2.0 * qyp52 * cos_i1 - epp * c_d * sin_i1 * (3.0 + 2.0 * epp2)
    )
    dlgcg = (
        -yp3 * epp * cos_i2 / (4.0 * yp2 * sin_i1)
        + 0.078125 * yp5 / yp2 * (-epp * cos_i2 / sin_i1 * (4.0 + 3.0 * epp2) + epp2 * sin_i1 * (26.0 + 9.0 * epp2)) * c_c
        - 0.46875 * yp5 / yp2 * qyp52bis * cos_i1
        + 0.25 * yp3 / yp2 * sin_i1 * epp / (1.0 + n3) * (3.0 - epp2 * (3.0 - epp2))
        + 0.078125 * yp5 / yp2 * n2 * c_c * qyp52quotient * sin_i1
    )

    qyp24 = 3.0 * yp2 * yp2 * (11.0 + 80.0 * cos_i2 / sin_i1 + 200.0 * cos_i4 / sin_i2) - 10.0 * yp4 * (
        3.0 + 16.0 * cos_i2 / sin_i1 + 40.0 * cos_i4 / sin_i2
    )
    dh2sgcg = 35.0 / 144.0 * yp5 / yp2 * qyp52
    dhsgcg = -epp2 * cos_i1 / (12.0 * yp2) * qyp24
    dhcg = (
        -35.0 / 576.0 * yp5 / yp2 * qyp52
        + epp * cos_i1 / (4.0 * yp2 * sin_i1) * (yp3 + 0.3125 * yp5 * (4.0 + 3.0 * epp2) * c_c)
        + 1.875 / (4.0 * yp2) * yp5 * qyp52bis
    )

    # Short periodic terms: semi-major axis
    a_c = -yp2 * c3c2 * app / n3
    a_cbis = y2 * app * c3c2
    ac2g2f = y2 * app * 3.0 * sin_i2

    # eccentricity
    qe = 0.5 * n2 * y2 * c3c2 / n6
    e_c = qe * epp / (1.0 + n3) * (3.0 - epp2 * (3.0 - epp2))
    ecf = 3.0 * qe
    e2cf = 3.0 * epp * qe
    e3cf = epp2 * qe
    qe = 0.5 * n2 * y2 * 3.0 * (1.0 - cos_i2) / n6
    ec2f2g = qe * epp
    ecfc2f2g = 3.0 * qe
    e2cfc2f2g = 3.0 * epp * qe
    e3cfc2f2g = epp2 * qe
    qe = -0.5 * yp2 * n2 * (1.0 - cos_i2)
    ec2gf = 3.0 * qe
    ec2g3f = qe

    # inclination
    qi = epp * yp2 * cos_i1 * sin_i1
    ide = -epp * cos_i1 / (n2 * sin_i1)
    isfs2f2g = qi
    icfc2f2g = 2.0 * qi
    ic2f2g = 1.5 * yp2 * cos_i1 * sin_i1

    # mean anomaly + argument of perigee
    qgl1 = 0.25 * yp2
    qgl2 = 0.25 * yp2 * epp * n2 / (1.0 + n)
    glf = qgl1 * -6.0 * c5c2
    gll = qgl1 * 6.0 * c5c2
    glsf = qgl1 * -6.0 * c5c2 * epp + qgl2 * 2.0 * c3c2
    glosf = qgl2 * 2.0 * c3c2
    qgl1 = qgl1 * (3.0 - 5.0 * cos_i2)
    qgl2 = qgl2 * 3.0 * (1.0 - cos_i2)
    gls2f2g = 3.0 * qgl1
    gls2gf = 3.0 * epp * qgl1 + qgl2
    glos2gf = -qgl2
    gls2g3f = qgl1 * epp + qgl2 / 3.0
    glos2g3f = qgl2

    # ascending node
    qh = 3.0 * yp2 * cos_i1
    hf = -qh
    hl = qh
    hsf = -epp * qh
    hcfs2g2f = 2.0 * epp * yp2 * cos_i1
    hs2g2f = 1.5 * yp2 * cos_i1
    hsfc2g2f = -epp * yp2 * cos_i1

    # e * delta l
    qedl = -0.25 * yp2 * n3
    edls2g = 1.0 / 24.0 * epp * n3 / yp2 * qyp2_4
    edlcg = -0.25 * yp3 / yp2 * n3 * sin_i1 - 0.078125 * yp5 / yp2 * n3 * sin_i1 * (4.0 + 9.0 * epp2) * c_c
    edlc3g = 35.0 / 384.0 * yp5 / yp2 * n3 * epp2 * c_d * sin_i1
    edlsf = 2.0 * qedl * c3c2
    edls2gf = 3.0 * qedl * (1.0 - cos_i2)
    edls2g3f = qedl / 3.0

    # Drag secular rates
    a_rate = -4.0 * app / (3.0 * xnot_dot)
    e_rate = -4.0 * epp * n * n / (3.0 * xnot_dot)

    # ──────────────────────────────────────────────
    # Secular evolution
    # ──────────────────────────────────────────────

    xnot = dt * xnot_dot
    lpp = normalize_angle(anomaly + lt * xnot + m2 * dt * dt)
    gpp = normalize_angle(omega + gt * xnot)
    hpp = normalize_angle(raan + ht * xnot)

    app_drag = dt * a_rate * m2
    epp_drag = dt * e_rate * m2

    # ──────────────────────────────────────────────
    # Long periodic corrections
    # ──────────────────────────────────────────────

    cg1 = jnp.cos(gpp)
    sg1 = jnp.sin(gpp)
    c2g = cg1 * cg1 - sg1 * sg1
    s2g = 2.0 * cg1 * sg1
    c3g = c2g * cg1 - s2g * sg1
    sg2 = sg1 * sg1
    sg3 = sg1 * sg2

    d1e = sg3 * dei3sg + sg1 * deisg + sg2 * de2sg + de
    lp_p_gp = s2g * dlgs2g + c3g * dlgc3g + cg1 * dlgcg + lpp + gpp
    hp = sg2 * cg1 * dh2sgcg + sg1 * cg1 * dhsgcg + cg1 * dhcg + hpp

    # ──────────────────────────────────────────────
    # Short periodic corrections
    # ──────────────────────────────────────────────

    ep = anomaly_mean_to_eccentric(lpp, epp)
    cos_e = jnp.cos(ep)
    denominator = 1.0 - epp * cos_e
    cf1 = (cos_e - epp) / denominator
    sf1 = n * jnp.sin(ep) / denominator
    f = jnp.arctan2(sf1, cf1)

    c2f = cf1 * cf1 - sf1 * sf1
    s2f = 2.0 * cf1 * sf1
    c3f = c2f * cf1 - s2f * sf1
    s3f = c2f * sf1 + s2f * cf1
    cf2 = cf1 * cf1
    cf3 = cf1 * cf2

    c2g1f = cf1 * c2g - sf1 * s2g
    c2g2f = c2f * c2g - s2f * s2g
    c2g3f = c3f * c2g - s3f * s2g
    s2g1f = cf1 * s2g + c2g * sf1
    s2g2f = c2f * s2g + c2g * s2f
    s2g3f = c3f * s2g + c2g * s3f

    e_e = 1.0 / denominator
    e_e3 = e_e * e_e * e_e
    sigma = e_e * e_e * n2 + e_e

    a = e_e3 * a_cbis + app + app_drag + a_c + e_e3 * c2g2f * ac2g2f

    e = (
        d1e
        + epp
        + epp_drag
        + e_c
        + cf1 * ecf
        + cf2 * e2cf
        + cf3 * e3cf
        + c2g2f * ec2f2g
        + c2g2f * cf1 * ecfc2f2g
        + c2g2f * cf2 * e2cfc2f2g
        + c2g2f * cf3 * e3cfc2f2g
        + c2g1f * ec2gf
        + c2g3f * ec2g3f
    )

    i = d1e * ide + inc + sf1 * s2g2f * isfs2f2g + cf1 * c2g2f * icfc2f2g + c2g2f * ic2f2g

    g_p_l = (
        lp_p_gp
        + f * glf
        + lpp * gll
        + sf1 * glsf
        + sigma * sf1 * glosf
        + s2g2f * gls2f2g
        + s2g1f * gls2gf
        + sigma * s2g1f * glos2gf
        + s2g3f * gls2g3f
        + sigma * s2g3f * glos2g3f
    )

    h = hp + f * hf + lpp * hl + sf1 * hsf + cf1 * s2g2f * hcfs2g2f + s2g2f * hs2g2f + c2g2f * sf1 * hsfc2g2f

    edl = (
        s2g * edls2g
        + cg1 * edlcg
        + c3g * edlc3g
        + sf1 * edlsf
        + s2g1f * edls2gf
        + s2g3f * edls2g3f
        + sf1 * sigma * edlsf
        - s2g1f * sigma * edls2gf
        + 3.0 * s2g3f * sigma * edls2g3f
    )

    # Lyddane recombination of the mean anomaly
    big_a = e * jnp.cos(lpp) - edl * jnp.sin(lpp)
    big_b = e * jnp.sin(lpp) + edl * jnp.cos(lpp)
    ell = jnp.arctan2(big_b, big_a)
    g = g_p_l - ell

    # (-e, g, l) and (e, g + pi, l + pi) are the same orbit
    flip = e < 0.0
    e = jnp.abs(e)
    g = jnp.where(flip, g + jnp.pi, g)
    ell = jnp.where(flip, ell + jnp.pi, ell)

    return jnp.stack([a, e, i, h, g, ell])


class BrouwerLyddaneTheory:
    """Brouwer-Lyddane theory bound to a zonal gravity field.

    Args:
        gravity: Zonal coefficients: a :class:`ZonalHarmonics`, a provider
            with ``on_date`` or a packaged model name (``"EGM96"``).
        m2: Reference value of the empirical drag coefficient. Units:
            *rad/s^2*
        epoch: Epoch at which time-dependent providers are sampled.

    Raises:
        ValueError: If the ``c20`` coefficient is zero.

    Examples:
        ```python
        from propjax.theories import BrouwerLyddaneTheory
        theory = BrouwerLyddaneTheory("EGM96", m2=0.0)
        osc = theory.osculating_from_mean(mean, 600.0, {"M2": 0.0})
        ```
    """

    name = "Brouwer-Lyddane"
    orbit_type = OrbitType.KEPLERIAN
    output_orbit_type = OrbitType.KEPLERIAN
    default_config = MeanElementsConfig(1.0e-13, 200)

    def __init__(self, gravity, m2: float = 0.0, epoch: float = 0.0) -> None:
        self.harmonics = resolve_harmonics(gravity, epoch)
        if self.harmonics.c20 == 0.0:
            raise ValueError("Brouwer-Lyddane theory needs a non-zero c20 coefficient")
        self._m2_driver = ParameterDriver(M2_PARAMETER, m2, M2_SCALE)
        self._evaluate = jax.jit(self._osculating)

    def parameter_drivers(self) -> list[ParameterDriver]:
        return [self._m2_driver]

    def mu(self, params: Mapping[str, ArrayLike]) -> ArrayLike:
        return self.harmonics.mu

    def check_osculating(self, orbit: Orbit) -> ModelValidityError | None:
        return check_conic(orbit, self.harmonics.reference_radius)

    def check_mean(self, mean: ArrayLike, params: Mapping[str, ArrayLike]) -> ModelValidityError | None:
        e = float(mean[1])
        if not e < 1.0:
            return EccentricityTooLargeError(e, 1.0)
        i = float(mean[2])
        if abs(math.sin(i)) < _EQUATORIAL_SINE:
            return EquatorialOrbitError(i)
        return None

    def _osculating(self, mean, dt, m2):
        return brouwer_lyddane(mean, dt, m2, self.harmonics)

    def osculating_from_mean(self, mean: ArrayLike, dt: ArrayLike, params: Mapping[str, ArrayLike]) -> Array:
        """Osculating Keplerian elements (mean anomaly) ``dt`` seconds after the mean epoch."""
        return self._evaluate(mean, dt, params[M2_PARAMETER])

    def cartesian_from_mean(self, mean: ArrayLike, dt: ArrayLike, params: Mapping[str, ArrayLike]) -> Array:
        """Osculating Cartesian state ``dt`` seconds after the mean epoch."""
        return keplerian_to_cartesian(
            self.osculating_from_mean(mean, dt, params), PositionAngleType.MEAN, self.harmonics.mu
        )

    def __repr__(self) -> str:
        return f"BrouwerLyddaneTheory(c20={self.harmonics.c20}, m2={self._m2_driver.value})"
