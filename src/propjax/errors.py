"""Exception types raised by the analytical propagators.

Every failure carries the value that triggered it as an attribute, so
callers can report the bad eccentricity, iteration count or epoch without
parsing the message:

- :class:`ModelValidityError` and its subclasses: the orbit is outside the
  validity domain of a theory (raised at construction or reset).
- :class:`MeanElementsConvergenceError`: the osculating-to-mean solve hit
  its iteration cap.
- :class:`NonResettableError` / :class:`ResetDirectionError`: reset misuse.
- :class:`OutOfRangeError`: bounded ephemeris queried too far outside its
  span.
- :class:`CollaboratorError`: an attitude provider, event detector, step
  handler or additional-state provider raised.  The original exception is
  chained as ``__cause__``.
"""

from __future__ import annotations

import math


class PropagationError(RuntimeError):
    """Base class for all propagation failures."""


class ModelValidityError(PropagationError, ValueError):
    """The orbit is outside the validity domain of an analytical theory.

    Args:
        message: Human readable description.
        value: Offending value (eccentricity, radius, inclination...).
    """

    def __init__(self, message: str, value: float) -> None:
        super().__init__(message)
        self.value = value


class EccentricityTooLargeError(ModelValidityError):
    """Eccentricity at or above the limit supported by the theory."""

    def __init__(self, eccentricity: float, limit: float = 1.0) -> None:
        super().__init__(
            f"too large eccentricity for propagation model: e = {eccentricity} (limit {limit})",
            eccentricity,
        )
        self.eccentricity = eccentricity
        self.limit = limit


class InsideBrillouinSphereError(ModelValidityError):
    """Trajectory crosses the sphere of the central body reference radius."""

    def __init__(self, radius: float) -> None:
        super().__init__(f"trajectory inside the Brillouin sphere (r = {radius})", radius)
        self.radius = radius


class CriticalInclinationError(ModelValidityError):
    """Inclination too close to ``arccos(±1/sqrt(5))``."""

    def __init__(self, inclination: float) -> None:
        super().__init__(
            f"almost critically inclined orbit (i = {math.degrees(inclination)} degrees)",
            inclination,
        )
        self.inclination = inclination


class EquatorialOrbitError(ModelValidityError):
    """Inclination too close to 0 or pi, or outside ``[0, pi]``."""

    def __init__(self, inclination: float) -> None:
        super().__init__(
            f"almost equatorial orbit (i = {math.degrees(inclination)} degrees)",
            inclination,
        )
        self.inclination = inclination


class MeanElementsConvergenceError(PropagationError):
    """The osculating-to-mean fixed point iteration did not converge."""

    def __init__(self, iterations: int, theory: str = "analytical") -> None:
        super().__init__(
            f"unable to compute {theory} mean parameters after {iterations} iterations"
        )
        self.iterations = iterations
        self.theory = theory


class NonResettableError(PropagationError):
    """The propagator does not support resetting its state."""


class ResetDirectionError(PropagationError):
    """An intermediate reset contradicts the current propagation direction."""

    def __init__(self, forward: bool, epoch: float) -> None:
        direction = "forward" if forward else "backward"
        super().__init__(
            f"cannot reset intermediate state {direction} at t = {epoch} s: "
            f"propagation is running the other way"
        )
        self.forward = forward
        self.epoch = epoch


class OutOfRangeError(PropagationError):
    """Ephemeris queried outside its bounds plus extrapolation threshold."""

    def __init__(self, epoch: float, min_epoch: float, max_epoch: float) -> None:
        super().__init__(
            f"out of range date for ephemerides: t = {epoch} s, "
            f"[{min_epoch} s, {max_epoch} s]"
        )
        self.epoch = epoch
        self.min_epoch = min_epoch
        self.max_epoch = max_epoch


class CollaboratorError(PropagationError):
    """An external collaborator raised during propagation."""

    def __init__(self, collaborator: str, message: str) -> None:
        super().__init__(f"{collaborator}: {message}")
        self.collaborator = collaborator
