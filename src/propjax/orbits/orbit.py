"""Immutable orbit value type.

An :class:`Orbit` couples six orbital elements with the parameterization
they are expressed in, the epoch, an opaque reference frame label and the
gravitational parameter used to interpret them.  Exactly one
representation is authoritative; other representations are derived on
demand through :mod:`propjax.orbits.conversions` and cached.

Epochs are plain seconds relative to a reference instant chosen by the
caller; frames are labels only (frame transformations are outside the
scope of this package).
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from propjax.config import get_dtype
from propjax.constants import GM_EARTH
from propjax.orbits._types import OrbitType, PositionAngleType
from propjax.orbits.conversions import (
    cartesian_to_elements,
    convert_elements,
    elements_to_cartesian,
)
from propjax.orbits.keplerian import mean_motion, orbital_period

DEFAULT_FRAME = "GCRF"


@dataclass(frozen=True, eq=False)
class Orbit:
    """Orbit state at a single epoch.

    Prefer the ``from_*`` constructors, which accept individual elements.

    Args:
        elements: Six orbital elements, layout given by ``orbit_type``.
        orbit_type: Parameterization of ``elements``.
        angle_type: Kind of position angle in ``elements[5]`` (ignored for
            Cartesian orbits).
        epoch: Epoch in seconds from the caller's reference instant.
        frame: Label of the inertial reference frame.
        mu: Gravitational parameter. Units: *m^3/s^2*

    Raises:
        ValueError: If the elements do not have six entries or if the
            semi-major axis and eccentricity describe inconsistent conics
            (``a (1 - e) < 0``).

    Examples:
        ```python
        from propjax.orbits import Orbit, PositionAngleType
        orbit = Orbit.from_keplerian(7.2e6, 1e-3, 1.7, 2.9, 2.1, 6.2,
                                     angle_type=PositionAngleType.TRUE)
        orbit.position
        ```
    """

    elements: Array
    orbit_type: OrbitType = OrbitType.CARTESIAN
    angle_type: PositionAngleType = PositionAngleType.MEAN
    epoch: float = 0.0
    frame: str = DEFAULT_FRAME
    mu: float = GM_EARTH

    def __post_init__(self) -> None:
        elements = jnp.asarray(self.elements, dtype=get_dtype())
        if elements.shape != (6,):
            raise ValueError(f"An orbit needs exactly 6 elements, got shape {elements.shape}")
        object.__setattr__(self, "elements", elements)
        object.__setattr__(self, "epoch", float(self.epoch))
        object.__setattr__(self, "mu", float(self.mu))

        if self.orbit_type is not OrbitType.CARTESIAN:
            a = float(elements[0])
            e = float(self.e)
            if a * (1.0 - e) < 0.0:
                raise ValueError(
                    f"Semi-major axis {a} and eccentricity {e} do not describe a valid conic"
                )

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_cartesian(
        cls,
        position: ArrayLike,
        velocity: ArrayLike,
        epoch: float = 0.0,
        mu: float = GM_EARTH,
        frame: str = DEFAULT_FRAME,
    ) -> Orbit:
        """Build an orbit from position *m* and velocity *m/s* vectors."""
        elements = jnp.concatenate(
            [jnp.asarray(position, dtype=get_dtype()), jnp.asarray(velocity, dtype=get_dtype())]
        )
        return cls(elements, OrbitType.CARTESIAN, PositionAngleType.MEAN, epoch, frame, mu)

    @classmethod
    def from_keplerian(
        cls,
        a: float,
        e: float,
        i: float,
        raan: float,
        omega: float,
        anomaly: float,
        angle_type: PositionAngleType = PositionAngleType.MEAN,
        epoch: float = 0.0,
        mu: float = GM_EARTH,
        frame: str = DEFAULT_FRAME,
    ) -> Orbit:
        """Build an orbit from Keplerian elements (angles in *rad*)."""
        return cls(
            jnp.array([a, e, i, raan, omega, anomaly], dtype=get_dtype()),
            OrbitType.KEPLERIAN,
            angle_type,
            epoch,
            frame,
            mu,
        )

    @classmethod
    def from_circular(
        cls,
        a: float,
        ex: float,
        ey: float,
        i: float,
        raan: float,
        alpha: float,
        angle_type: PositionAngleType = PositionAngleType.MEAN,
        epoch: float = 0.0,
        mu: float = GM_EARTH,
        frame: str = DEFAULT_FRAME,
    ) -> Orbit:
        """Build an orbit from circular elements (angles in *rad*)."""
        return cls(
            jnp.array([a, ex, ey, i, raan, alpha], dtype=get_dtype()),
            OrbitType.CIRCULAR,
            angle_type,
            epoch,
            frame,
            mu,
        )

    @classmethod
    def from_equinoctial(
        cls,
        a: float,
        ex: float,
        ey: float,
        hx: float,
        hy: float,
        lon: float,
        angle_type: PositionAngleType = PositionAngleType.MEAN,
        epoch: float = 0.0,
        mu: float = GM_EARTH,
        frame: str = DEFAULT_FRAME,
    ) -> Orbit:
        """Build an orbit from equinoctial elements (angles in *rad*)."""
        return cls(
            jnp.array([a, ex, ey, hx, hy, lon], dtype=get_dtype()),
            OrbitType.EQUINOCTIAL,
            angle_type,
            epoch,
            frame,
            mu,
        )

    # ------------------------------------------------------------------
    # Derived representations
    # ------------------------------------------------------------------

    @cached_property
    def cartesian(self) -> Array:
        """Cartesian state ``[x, y, z, vx, vy, vz]`` in *m* and *m/s*."""
        return elements_to_cartesian(self.elements, self.orbit_type, self.angle_type, self.mu)

    @property
    def position(self) -> Array:
        """Position vector. Units: *m*"""
        return self.cartesian[:3]

    @property
    def velocity(self) -> Array:
        """Velocity vector. Units: *m/s*"""
        return self.cartesian[3:6]

    @cached_property
    def keplerian(self) -> Array:
        """Keplerian elements ``[a, e, i, raan, omega, M]`` with mean anomaly."""
        return self.elements_as(OrbitType.KEPLERIAN, PositionAngleType.MEAN)

    def elements_as(
        self,
        orbit_type: OrbitType,
        angle_type: PositionAngleType = PositionAngleType.MEAN,
    ) -> Array:
        """Return the elements expressed in another parameterization."""
        if self.orbit_type is OrbitType.CARTESIAN:
            return cartesian_to_elements(self.elements, orbit_type, angle_type, self.mu)
        return convert_elements(
            self.elements, self.orbit_type, orbit_type, self.angle_type, angle_type, self.mu
        )

    def convert(
        self,
        orbit_type: OrbitType,
        angle_type: PositionAngleType = PositionAngleType.MEAN,
    ) -> Orbit:
        """Return the same orbit expressed in another parameterization."""
        if orbit_type is self.orbit_type and (
            angle_type is self.angle_type or orbit_type is OrbitType.CARTESIAN
        ):
            return self
        return Orbit(
            self.elements_as(orbit_type, angle_type),
            orbit_type,
            angle_type,
            self.epoch,
            self.frame,
            self.mu,
        )

    # ------------------------------------------------------------------
    # Scalar accessors
    # ------------------------------------------------------------------

    @property
    def a(self) -> Array:
        """Semi-major axis. Units: *m*"""
        if self.orbit_type is OrbitType.CARTESIAN:
            return self.keplerian[0]
        return self.elements[0]

    @property
    def e(self) -> Array:
        """Eccentricity."""
        if self.orbit_type is OrbitType.KEPLERIAN:
            return self.elements[1]
        if self.orbit_type is OrbitType.CARTESIAN:
            return self.keplerian[1]
        return jnp.sqrt(self.elements[1] ** 2 + self.elements[2] ** 2)

    @property
    def i(self) -> Array:
        """Inclination. Units: *rad*"""
        if self.orbit_type is OrbitType.KEPLERIAN:
            return self.elements[2]
        if self.orbit_type is OrbitType.CIRCULAR:
            return self.elements[3]
        return self.keplerian[2]

    @property
    def mean_motion(self) -> Array:
        """Keplerian mean motion. Units: *rad/s*"""
        return mean_motion(self.a, self.mu)

    @property
    def keplerian_period(self) -> Array:
        """Keplerian period. Units: *s*"""
        return orbital_period(self.a, self.mu)

    def shifted_by(self, dt: float) -> Orbit:
        """Return the orbit propagated by ``dt`` seconds on a Keplerian motion.

        Args:
            dt: Time shift. Units: *s*

        Returns:
            Shifted orbit in the same parameterization.
        """
        equinoctial = self.elements_as(OrbitType.EQUINOCTIAL, PositionAngleType.MEAN)
        shifted = equinoctial.at[5].add(self.mean_motion * dt)
        moved = Orbit(
            shifted,
            OrbitType.EQUINOCTIAL,
            PositionAngleType.MEAN,
            self.epoch + dt,
            self.frame,
            self.mu,
        )
        return moved.convert(self.orbit_type, self.angle_type)

    def __repr__(self) -> str:
        values = ", ".join(f"{float(v):.6g}" for v in self.elements)
        return (
            f"Orbit({self.orbit_type.value}, [{values}], "
            f"angle={self.angle_type.value}, epoch={self.epoch}, frame={self.frame!r})"
        )
