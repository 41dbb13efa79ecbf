"""Orbit representations and conversions.

Provides the :class:`Orbit` value type, the parameterization enums and
pure JAX conversion functions between Cartesian, Keplerian, circular and
equinoctial element sets.
"""

from propjax.orbits._types import OrbitType, PositionAngleType
from propjax.orbits.conversions import (
    cartesian_to_elements,
    cartesian_to_equinoctial,
    cartesian_to_keplerian,
    circular_to_equinoctial,
    circular_to_keplerian,
    convert_elements,
    convert_position_angle,
    elements_to_cartesian,
    equinoctial_to_cartesian,
    equinoctial_to_circular,
    keplerian_to_cartesian,
    keplerian_to_circular,
)
from propjax.orbits.keplerian import (
    anomaly_eccentric_to_mean,
    anomaly_eccentric_to_true,
    anomaly_mean_to_eccentric,
    anomaly_mean_to_true,
    anomaly_true_to_eccentric,
    anomaly_true_to_mean,
    longitude_eccentric_to_mean,
    longitude_eccentric_to_true,
    longitude_mean_to_eccentric,
    longitude_true_to_eccentric,
    mean_motion,
    orbital_period,
)
from propjax.orbits.orbit import DEFAULT_FRAME, Orbit

__all__ = [
    "DEFAULT_FRAME",
    "Orbit",
    "OrbitType",
    "PositionAngleType",
    "anomaly_eccentric_to_mean",
    "anomaly_eccentric_to_true",
    "anomaly_mean_to_eccentric",
    "anomaly_mean_to_true",
    "anomaly_true_to_eccentric",
    "anomaly_true_to_mean",
    "cartesian_to_elements",
    "cartesian_to_equinoctial",
    "cartesian_to_keplerian",
    "circular_to_equinoctial",
    "circular_to_keplerian",
    "convert_elements",
    "convert_position_angle",
    "elements_to_cartesian",
    "equinoctial_to_cartesian",
    "equinoctial_to_circular",
    "keplerian_to_cartesian",
    "keplerian_to_circular",
    "longitude_eccentric_to_mean",
    "longitude_eccentric_to_true",
    "longitude_mean_to_eccentric",
    "longitude_true_to_eccentric",
    "mean_motion",
    "orbital_period",
]
