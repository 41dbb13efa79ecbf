"""Enumerations describing orbit parameterizations.

- :class:`OrbitType`: which element set an array of six numbers holds.
- :class:`PositionAngleType`: which anomaly (or longitude argument) the
  last element of a non-Cartesian set holds.

Element layouts:

| Type          | Elements                                  |
|---------------|-------------------------------------------|
| CARTESIAN     | ``[x, y, z, vx, vy, vz]`` (m, m/s)        |
| KEPLERIAN     | ``[a, e, i, raan, omega, anomaly]``       |
| CIRCULAR      | ``[a, ex, ey, i, raan, alpha]``           |
| EQUINOCTIAL   | ``[a, ex, ey, hx, hy, L]``                |

with ``ex = e cos(omega)``, ``ey = e sin(omega)`` and
``alpha = omega + anomaly`` for circular elements, and
``ex = e cos(omega + raan)``, ``hx = tan(i/2) cos(raan)``,
``L = omega + raan + anomaly`` for equinoctial elements.
"""

from __future__ import annotations

import enum


class OrbitType(enum.Enum):
    """Orbit parameterization."""

    CARTESIAN = "cartesian"
    KEPLERIAN = "keplerian"
    CIRCULAR = "circular"
    EQUINOCTIAL = "equinoctial"


class PositionAngleType(enum.Enum):
    """Kind of position angle stored in the last orbital element."""

    MEAN = "mean"
    ECCENTRIC = "eccentric"
    TRUE = "true"
