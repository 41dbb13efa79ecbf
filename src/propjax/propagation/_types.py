"""Type definitions shared by the analytical propagators.

- :class:`PropagationType`: whether orbits handed to a propagator (at
  construction or reset) are osculating, or already the mean elements of
  its theory.
"""

from __future__ import annotations

import enum


class PropagationType(enum.Enum):
    """Interpretation of the orbits given to an analytical propagator."""

    MEAN = "mean"
    OSCULATING = "osculating"
