"""Physical model parameters that can be estimated or differentiated.

A :class:`ParameterDriver` wraps one scalar model parameter (the
Brouwer-Lyddane ``M2`` drag term, the Keplerian ``GM``...) together with
the metadata the matrices harvester needs: a reference value, a scale used
both for normalization and as finite-difference step, bounds, and a
selection flag that decides whether the parameter gets a column in the
parameters Jacobian.
"""

from __future__ import annotations

import math


class ParameterDriver:
    """Mutable driver for one scalar model parameter.

    Args:
        name: Parameter name, used as Jacobian column name.
        reference_value: Reference (initial) value.
        scale: Scaling factor, strictly positive.  Also used as the step
            of finite-difference derivatives.
        min_value: Lower bound of the value.
        max_value: Upper bound of the value.

    Raises:
        ValueError: If the name is empty, the scale is not strictly
            positive or the bounds are inverted.

    Examples:
        ```python
        from propjax.parameters import ParameterDriver
        m2 = ParameterDriver("M2", 0.0, 2.0**-32)
        m2.selected = True
        m2.value = 1e-12
        ```
    """

    def __init__(
        self,
        name: str,
        reference_value: float,
        scale: float,
        min_value: float = -math.inf,
        max_value: float = math.inf,
    ) -> None:
        if not name:
            raise ValueError("Parameter driver name must not be empty")
        if not scale > 0.0:
            raise ValueError(f"Parameter driver {name!r} needs a strictly positive scale, got {scale}")
        if min_value > max_value:
            raise ValueError(f"Parameter driver {name!r} has inverted bounds [{min_value}, {max_value}]")
        self.name = name
        self.reference_value = float(reference_value)
        self.scale = float(scale)
        self.min_value = float(min_value)
        self.max_value = float(max_value)
        self.selected = False
        self._value = self._clip(self.reference_value)

    def _clip(self, value: float) -> float:
        return min(max(float(value), self.min_value), self.max_value)

    @property
    def value(self) -> float:
        """Current value, clipped to ``[min_value, max_value]``."""
        return self._value

    @value.setter
    def value(self, value: float) -> None:
        self._value = self._clip(value)

    @property
    def normalized_value(self) -> float:
        """``(value - reference_value) / scale``."""
        return (self._value - self.reference_value) / self.scale

    @normalized_value.setter
    def normalized_value(self, normalized: float) -> None:
        self.value = self.reference_value + self.scale * normalized

    def reset_value(self) -> None:
        """Restore the reference value."""
        self._value = self._clip(self.reference_value)

    def __repr__(self) -> str:
        return (
            f"ParameterDriver({self.name!r}, value={self._value}, scale={self.scale}, "
            f"selected={self.selected})"
        )
