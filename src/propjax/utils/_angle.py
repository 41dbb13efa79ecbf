"""Angle conversion and normalization helpers.

These helpers wrap the ``use_degrees`` convention used throughout
propjax, providing JAX-traceable degree/radian conversion via
``jnp.where``, plus the angle normalization used when differencing
orbital angles across the ``±pi`` wrap-around.
"""

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike


def to_radians(angle: ArrayLike, use_degrees: bool) -> Array:
    """Convert angle to radians if ``use_degrees`` is True.

    Args:
        angle (ArrayLike): Angle value.
        use_degrees (bool): If ``True``, treat ``angle`` as degrees and convert.

    Returns:
        Angle in radians.
    """
    return jnp.where(use_degrees, jnp.deg2rad(angle), angle)


def from_radians(angle: ArrayLike, use_degrees: bool) -> Array:
    """Convert angle from radians to degrees if ``use_degrees`` is True.

    Args:
        angle (ArrayLike): Angle in radians.
        use_degrees (bool): If ``True``, convert to degrees.

    Returns:
        Angle in radians or degrees.
    """
    return jnp.where(use_degrees, jnp.rad2deg(angle), angle)


def normalize_angle(angle: ArrayLike, center: ArrayLike = 0.0) -> Array:
    """Normalize an angle into the ``2 pi`` wide interval around ``center``.

    ``normalize_angle(x, 0.0)`` maps into ``[-pi, pi)`` and
    ``normalize_angle(x, pi)`` into ``[0, 2 pi)``.  The derivative with
    respect to ``angle`` is one everywhere, so the function is safe inside
    ``jax.jacfwd``.

    Args:
        angle (ArrayLike): Angle in radians.
        center (ArrayLike): Center of the target interval in radians.

    Returns:
        Normalized angle in radians.

    Examples:
        ```python
        from propjax.utils import normalize_angle
        normalize_angle(7.0)            # 0.7168...
        normalize_angle(-1.0, 3.14159)  # 5.2831...
        ```
    """
    two_pi = 2.0 * jnp.pi
    return angle - two_pi * jnp.floor((angle + jnp.pi - center) / two_pi)
