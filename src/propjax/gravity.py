"""Zonal gravity coefficient providers for the analytical theories.

The closed-form theories only use the central attraction coefficient, the
reference radius and the low-degree zonal coefficients ``C20 .. C60`` of
the gravity field.  This module exposes them through:

- :class:`ZonalHarmonics`: immutable snapshot of the un-normalized
  coefficients at one epoch, as consumed by the theories.
- :class:`UnnormalizedZonalProvider`: protocol of external gravity field
  sources (``on_date(epoch) -> ZonalHarmonics``).
- :class:`ZonalGravityField`: constant-in-time provider holding degree
  indexed coefficients, normalized or not, with packaged presets.

Loading full gravity field files is outside the scope of this package;
callers with their own field implementation only need to satisfy the
provider protocol.
"""

from __future__ import annotations

import math
from typing import NamedTuple, Protocol

import numpy as np

from propjax.constants import (
    EGM96_EARTH_C20,
    EGM96_EARTH_C30,
    EGM96_EARTH_C40,
    EGM96_EARTH_C50,
    EGM96_EARTH_C60,
    EGM96_EARTH_EQUATORIAL_RADIUS,
    EGM96_EARTH_MU,
    EIGEN5C_EARTH_C20,
    EIGEN5C_EARTH_C30,
    EIGEN5C_EARTH_C40,
    EIGEN5C_EARTH_C50,
    EIGEN5C_EARTH_C60,
    EIGEN5C_EARTH_EQUATORIAL_RADIUS,
    EIGEN5C_EARTH_MU,
)

MAX_ZONAL_DEGREE = 6


class ZonalHarmonics(NamedTuple):
    """Un-normalized zonal gravity coefficients at one epoch.

    Attributes:
        reference_radius: Equatorial radius of the field. Units: *m*
        mu: Central attraction coefficient. Units: *m^3/s^2*
        c20: Un-normalized zonal coefficient of degree 2 (``-J2``).
        c30: Un-normalized zonal coefficient of degree 3.
        c40: Un-normalized zonal coefficient of degree 4.
        c50: Un-normalized zonal coefficient of degree 5.
        c60: Un-normalized zonal coefficient of degree 6.
    """

    reference_radius: float
    mu: float
    c20: float
    c30: float = 0.0
    c40: float = 0.0
    c50: float = 0.0
    c60: float = 0.0

    @property
    def ck0(self) -> tuple[float, ...]:
        """Coefficients indexed by degree, ``ck0[n] = C_n0`` for ``n <= 6``."""
        return (0.0, 0.0, self.c20, self.c30, self.c40, self.c50, self.c60)


class UnnormalizedZonalProvider(Protocol):
    """External source of un-normalized zonal coefficients."""

    def on_date(self, epoch: float) -> ZonalHarmonics: ...


def _normalization_factor(n: int) -> float:
    """Ratio between un-normalized and fully normalized ``C_n0``."""
    return math.sqrt(2.0 * n + 1.0)


class ZonalGravityField:
    """Constant zonal gravity field.

    Stores the zonal coefficients ``C_n0`` indexed by degree.  Fully
    normalized coefficients are un-normalized on access, so the theories
    always receive un-normalized values.

    Args:
        model_name: Human-readable name of the gravity model.
        gm: Gravitational parameter [m^3/s^2].
        radius: Reference radius [m].
        coefficients: Zonal coefficients indexed by degree; entries 0 and 1
            are ignored.  Degrees above 6 are ignored by the theories.
        normalization: ``"unnormalized"`` or ``"fully_normalized"``.

    Raises:
        ValueError: If the radius or gm are not positive, or the
            normalization is unknown.

    Examples:
        ```python
        from propjax.gravity import ZonalGravityField
        field = ZonalGravityField.from_type("EGM96")
        field.on_date(0.0).c20
        ```
    """

    def __init__(
        self,
        model_name: str,
        gm: float,
        radius: float,
        coefficients,
        normalization: str = "unnormalized",
    ):
        if gm <= 0.0:
            raise ValueError(f"Gravitational parameter must be positive, got {gm}")
        if radius <= 0.0:
            raise ValueError(f"Reference radius must be positive, got {radius}")
        if normalization not in ("unnormalized", "fully_normalized"):
            raise ValueError(f"Unknown normalization convention: {normalization}")
        self.model_name = model_name
        self.gm = float(gm)
        self.radius = float(radius)
        self.data = np.zeros(MAX_ZONAL_DEGREE + 1)
        values = np.asarray(coefficients, dtype=float)
        n = min(values.shape[0], MAX_ZONAL_DEGREE + 1)
        self.data[2:n] = values[2:n]
        self.normalization = normalization

    @property
    def is_normalized(self) -> bool:
        """Whether the stored coefficients are fully normalized."""
        return self.normalization == "fully_normalized"

    # ------------------------------------------------------------------
    # Factory methods
    # ------------------------------------------------------------------

    @classmethod
    def from_type(cls, model_type: str) -> ZonalGravityField:
        """Build a packaged zonal field by name.

        Available models:

        - ``"EGM96"``
        - ``"EIGEN5C"``

        Args:
            model_type: Model name (case-insensitive).

        Returns:
            ZonalGravityField: Packaged field.

        Raises:
            ValueError: If the model name is unknown.
        """
        key = model_type.upper().replace("-", "")
        if key not in _PRESETS:
            raise ValueError(
                f"Unknown gravity model type: {model_type}. Available: {sorted(_PRESETS)}"
            )
        gm, radius, coefficients = _PRESETS[key]
        return cls(key, gm, radius, (0.0, 0.0) + coefficients)

    @classmethod
    def from_harmonics(cls, harmonics: ZonalHarmonics, model_name: str = "custom") -> ZonalGravityField:
        """Wrap a :class:`ZonalHarmonics` snapshot as a constant provider."""
        return cls(model_name, harmonics.mu, harmonics.reference_radius, harmonics.ck0)

    @classmethod
    def from_j_coefficients(
        cls,
        gm: float,
        radius: float,
        j2: float,
        j3: float = 0.0,
        j4: float = 0.0,
        j5: float = 0.0,
        j6: float = 0.0,
    ) -> ZonalGravityField:
        """Build a field from classical ``J_n = -C_n0`` coefficients."""
        return cls("custom", gm, radius, (0.0, 0.0, -j2, -j3, -j4, -j5, -j6))

    # ------------------------------------------------------------------
    # Coefficient access
    # ------------------------------------------------------------------

    def unnormalized(self, n: int) -> float:
        """Return the un-normalized zonal coefficient of degree ``n``.

        Args:
            n: Degree, ``2 <= n <= 6``.

        Raises:
            ValueError: If ``n`` is outside the supported range.
        """
        if n < 2 or n > MAX_ZONAL_DEGREE:
            raise ValueError(f"Zonal degree must be in [2, {MAX_ZONAL_DEGREE}], got {n}")
        value = float(self.data[n])
        if self.is_normalized:
            value *= _normalization_factor(n)
        return value

    def on_date(self, epoch: float) -> ZonalHarmonics:
        """Return the un-normalized coefficients (constant in time)."""
        return ZonalHarmonics(
            reference_radius=self.radius,
            mu=self.gm,
            c20=self.unnormalized(2),
            c30=self.unnormalized(3),
            c40=self.unnormalized(4),
            c50=self.unnormalized(5),
            c60=self.unnormalized(6),
        )

    def __repr__(self) -> str:
        return (
            f"ZonalGravityField({self.model_name!r}, gm={self.gm}, radius={self.radius}, "
            f"normalization={self.normalization!r})"
        )


_PRESETS: dict[str, tuple[float, float, tuple[float, ...]]] = {
    "EGM96": (
        EGM96_EARTH_MU,
        EGM96_EARTH_EQUATORIAL_RADIUS,
        (EGM96_EARTH_C20, EGM96_EARTH_C30, EGM96_EARTH_C40, EGM96_EARTH_C50, EGM96_EARTH_C60),
    ),
    "EIGEN5C": (
        EIGEN5C_EARTH_MU,
        EIGEN5C_EARTH_EQUATORIAL_RADIUS,
        (EIGEN5C_EARTH_C20, EIGEN5C_EARTH_C30, EIGEN5C_EARTH_C40, EIGEN5C_EARTH_C50, EIGEN5C_EARTH_C60),
    ),
}


def resolve_harmonics(gravity, epoch: float = 0.0) -> ZonalHarmonics:
    """Return a :class:`ZonalHarmonics` snapshot from any supported source.

    Args:
        gravity: A :class:`ZonalHarmonics`, anything with ``on_date``, or a
            packaged model name.
        epoch: Epoch at which time-dependent providers are sampled.

    Returns:
        ZonalHarmonics: Un-normalized coefficients.
    """
    if isinstance(gravity, ZonalHarmonics):
        return gravity
    if isinstance(gravity, str):
        return ZonalGravityField.from_type(gravity).on_date(epoch)
    return gravity.on_date(epoch)
