"""Shared utility functions for propjax.

Provides angle conversion and normalization helpers.
"""

from propjax.utils._angle import from_radians, normalize_angle, to_radians

__all__ = [
    "from_radians",
    "normalize_angle",
    "to_radians",
]
