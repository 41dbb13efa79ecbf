"""Attitude collaborators of the analytical propagators.

The propagators only need an orientation sampled at each produced orbit,
so attitude modelling is reduced to a small protocol:

- :class:`Attitude`: orientation of the spacecraft body frame with respect
  to a reference frame, as a scalar-first unit quaternion ``[w, x, y, z]``
  (reference-to-body rotation) plus the body rotation rate.
- :class:`AttitudeProvider`: anything with
  ``get_attitude(orbit, epoch, frame) -> Attitude``.
- :class:`FrameAlignedProvider`: body axes aligned with the reference
  frame.
- :class:`LocalOrbitalFrameProvider`: body axes aligned with the radial,
  transverse, normal (RTN) local orbital frame.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple, Protocol

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

if TYPE_CHECKING:
    from propjax.orbits import Orbit


class Attitude(NamedTuple):
    """Spacecraft orientation at one epoch.

    Attributes:
        epoch: Epoch in seconds.
        frame: Label of the reference frame.
        quaternion: Scalar-first unit quaternion ``[w, x, y, z]`` rotating
            reference-frame vectors into the body frame.
        spin: Body rotation rate with respect to the reference frame,
            expressed in the body frame. Units: *rad/s*
    """

    epoch: float
    frame: str
    quaternion: Array
    spin: Array


class AttitudeProvider(Protocol):
    """Attitude law evaluated once per produced state."""

    def get_attitude(self, orbit: Orbit, epoch: float, frame: str) -> Attitude: ...


def rotation_matrix_to_quaternion(R: ArrayLike) -> Array:
    """Convert a 3x3 rotation matrix to a scalar-first unit quaternion.

    Picks the largest of the four quaternion component candidates
    (Shepperd's method) to avoid dividing by a small number.

    Args:
        R: Rotation matrix of shape ``(3, 3)``.

    Returns:
        Quaternion ``[w, x, y, z]`` with a non-negative scalar part.
    """
    R = jnp.asarray(R)
    candidates = jnp.array(
        [
            1.0 + R[0, 0] + R[1, 1] + R[2, 2],
            1.0 + R[0, 0] - R[1, 1] - R[2, 2],
            1.0 - R[0, 0] + R[1, 1] - R[2, 2],
            1.0 - R[0, 0] - R[1, 1] + R[2, 2],
        ]
    )
    k = int(jnp.argmax(candidates))
    s = 0.5 * jnp.sqrt(candidates[k])
    inv = 0.25 / s
    if k == 0:
        q = jnp.array([s, (R[1, 2] - R[2, 1]) * inv, (R[2, 0] - R[0, 2]) * inv, (R[0, 1] - R[1, 0]) * inv])
    elif k == 1:
        q = jnp.array([(R[1, 2] - R[2, 1]) * inv, s, (R[0, 1] + R[1, 0]) * inv, (R[2, 0] + R[0, 2]) * inv])
    elif k == 2:
        q = jnp.array([(R[2, 0] - R[0, 2]) * inv, (R[0, 1] + R[1, 0]) * inv, s, (R[1, 2] + R[2, 1]) * inv])
    else:
        q = jnp.array([(R[0, 1] - R[1, 0]) * inv, (R[2, 0] + R[0, 2]) * inv, (R[1, 2] + R[2, 1]) * inv, s])
    return jnp.where(q[0] < 0.0, -q, q)


class FrameAlignedProvider:
    """Attitude aligned with the reference frame of the orbit.

    Args:
        frame: Optional reference frame label.  When ``None`` the frame
            requested by the propagator is used.
    """

    def __init__(self, frame: str | None = None) -> None:
        self._frame = frame

    def get_attitude(self, orbit: Orbit, epoch: float, frame: str) -> Attitude:
        return Attitude(
            epoch=epoch,
            frame=self._frame or frame,
            quaternion=jnp.array([1.0, 0.0, 0.0, 0.0]),
            spin=jnp.zeros(3),
        )


class LocalOrbitalFrameProvider:
    """Attitude aligned with the RTN local orbital frame.

    Body X points along the radius vector, Z along the orbital angular
    momentum and Y completes the triad.
    """

    def get_attitude(self, orbit: Orbit, epoch: float, frame: str) -> Attitude:
        r = orbit.position
        v = orbit.velocity
        h = jnp.cross(r, v)
        r_hat = r / jnp.linalg.norm(r)
        n_hat = h / jnp.linalg.norm(h)
        t_hat = jnp.cross(n_hat, r_hat)

        # Rows are the body axes expressed in the reference frame
        R_ref_to_body = jnp.vstack([r_hat, t_hat, n_hat])
        rate = jnp.linalg.norm(h) / jnp.dot(r, r)
        return Attitude(
            epoch=epoch,
            frame=frame,
            quaternion=rotation_matrix_to_quaternion(R_ref_to_body),
            spin=jnp.array([0.0, 0.0, rate]),
        )
