"""Bounded ephemerides recorded from analytical propagations.

An :class:`EphemerisGenerator` is attached to a propagator by
``propagator.ephemeris_generator()`` and records the span covered by the
following propagations.  :meth:`EphemerisGenerator.get_generated_ephemeris`
returns a :class:`BoundedEphemeris`: a frozen copy of the propagator
models that can be evaluated anywhere inside the recorded span, and up to
an extrapolation threshold outside of it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from propjax.errors import NonResettableError, OutOfRangeError, PropagationError
from propjax.propagation.state import SpacecraftState

if TYPE_CHECKING:
    from propjax.propagation.analytical import AnalyticalPropagator

logger = logging.getLogger(__name__)

DEFAULT_EXTRAPOLATION_THRESHOLD = 1.0e-3


class BoundedEphemeris:
    """Analytical ephemeris restricted to a time span.

    Args:
        propagator: Frozen propagator snapshot evaluated on queries.
        min_epoch: One bound of the span.
        max_epoch: The other bound (bounds are sorted).
        extrapolation_threshold: Distance outside the span still accepted.
            Units: *s*

    Raises:
        ValueError: If the threshold is negative.
    """

    def __init__(
        self,
        propagator: AnalyticalPropagator,
        min_epoch: float,
        max_epoch: float,
        extrapolation_threshold: float = DEFAULT_EXTRAPOLATION_THRESHOLD,
    ) -> None:
        if extrapolation_threshold < 0.0:
            raise ValueError(f"Extrapolation threshold must be non-negative, got {extrapolation_threshold}")
        self._propagator = propagator
        self._min_epoch = float(min(min_epoch, max_epoch))
        self._max_epoch = float(max(min_epoch, max_epoch))
        self.extrapolation_threshold = float(extrapolation_threshold)

    @property
    def min_epoch(self) -> float:
        return self._min_epoch

    @property
    def max_epoch(self) -> float:
        return self._max_epoch

    def _check(self, epoch: float) -> None:
        if (
            epoch < self._min_epoch - self.extrapolation_threshold
            or epoch > self._max_epoch + self.extrapolation_threshold
        ):
            raise OutOfRangeError(epoch, self._min_epoch, self._max_epoch)

    def propagate(self, epoch: float) -> SpacecraftState:
        """State at ``epoch``.

        Raises:
            OutOfRangeError: If ``epoch`` is further than the threshold
                outside the span.
        """
        epoch = float(epoch)
        self._check(epoch)
        return self._propagator.basic_propagate(epoch)

    def get_initial_state(self) -> SpacecraftState:
        return self.propagate(self._min_epoch)

    def reset_initial_state(self, state: SpacecraftState) -> None:
        raise NonResettableError("A bounded ephemeris cannot be reset")

    def reset_intermediate_state(self, state: SpacecraftState, forward: bool) -> None:
        raise NonResettableError("A bounded ephemeris cannot be reset")

    def __repr__(self) -> str:
        return f"BoundedEphemeris([{self._min_epoch}, {self._max_epoch}], threshold={self.extrapolation_threshold})"


class EphemerisGenerator:
    """Recorder of the span covered by a propagator.

    Args:
        propagator: Propagator being recorded.
        extrapolation_threshold: Threshold given to the generated ephemeris.
            Units: *s*
    """

    def __init__(
        self,
        propagator: AnalyticalPropagator,
        extrapolation_threshold: float = DEFAULT_EXTRAPOLATION_THRESHOLD,
    ) -> None:
        if extrapolation_threshold < 0.0:
            raise ValueError(f"Extrapolation threshold must be non-negative, got {extrapolation_threshold}")
        self._propagator = propagator
        self.extrapolation_threshold = float(extrapolation_threshold)
        self._min_epoch: float | None = None
        self._max_epoch: float | None = None

    def record(self, epoch: float) -> None:
        """Extend the recorded span to include ``epoch``."""
        if self._min_epoch is None:
            self._min_epoch = self._max_epoch = epoch
        else:
            self._min_epoch = min(self._min_epoch, epoch)
            self._max_epoch = max(self._max_epoch, epoch)

    def get_generated_ephemeris(self) -> BoundedEphemeris:
        """Ephemeris over the span recorded so far.

        Raises:
            PropagationError: If nothing has been propagated yet.
        """
        if self._min_epoch is None:
            raise PropagationError("No propagation has been recorded by this ephemeris generator")
        logger.debug("Generated ephemeris over [%s, %s]", self._min_epoch, self._max_epoch)
        return BoundedEphemeris(
            self._propagator.snapshot(),
            self._min_epoch,
            self._max_epoch,
            self.extrapolation_threshold,
        )
