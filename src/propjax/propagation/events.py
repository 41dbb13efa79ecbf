"""Event detectors and step handlers.

The propagators do no root finding.  After every accepted step each
detector's switching function ``g`` is evaluated on the new state; a sign
change with respect to the previous step fires the event *at the end of
the step*, and the detector decides what happens next through an
:class:`Action`.  Use a small fixed step when event timing matters.

Step handlers are called once per accepted step, after event handling.
"""

from __future__ import annotations

import enum
from collections.abc import Callable
from typing import Protocol

import jax.numpy as jnp

from propjax.propagation.state import SpacecraftState


class Action(enum.Enum):
    """What the propagator does after an event fired."""

    CONTINUE = "continue"
    STOP = "stop"
    RESET_STATE = "reset_state"


class EventDetector(Protocol):
    """Switching function watched during propagation."""

    def init(self, state: SpacecraftState, target: float) -> None: ...

    def g(self, state: SpacecraftState) -> float: ...

    def event_occurred(self, state: SpacecraftState, increasing: bool) -> Action: ...

    def reset_state(self, state: SpacecraftState) -> SpacecraftState: ...


class StepHandler(Protocol):
    """Observer of the accepted propagation steps."""

    def init(self, state: SpacecraftState, target: float) -> None: ...

    def handle_step(self, state: SpacecraftState, is_last: bool) -> None: ...

    def finish(self, state: SpacecraftState) -> None: ...


def sign_change(g0: float, g1: float) -> bool:
    """Whether the switching function crossed zero between two steps.

    A step that starts exactly on zero does not count; a step that ends
    exactly on zero does.
    """
    return (g0 < 0.0 <= g1) or (g0 > 0.0 >= g1)


# ──────────────────────────────────────────────
# Detectors
# ──────────────────────────────────────────────


class FunctionDetector:
    """Detector built from a plain switching function.

    Args:
        g: Switching function ``state -> float``.
        action: Action returned when the event fires.
        increasing_only: Ignore decreasing crossings.

    Examples:
        ```python
        from propjax.propagation import Action, FunctionDetector
        low = FunctionDetector(lambda s: float(jnp.linalg.norm(s.position)) - 6.9e6, Action.STOP)
        propagator.add_event_detector(low)
        ```
    """

    def __init__(
        self,
        g: Callable[[SpacecraftState], float],
        action: Action = Action.STOP,
        increasing_only: bool = False,
    ) -> None:
        self._g = g
        self.action = action
        self.increasing_only = increasing_only
        self.events: list[tuple[float, bool]] = []

    def init(self, state: SpacecraftState, target: float) -> None:
        pass

    def g(self, state: SpacecraftState) -> float:
        return float(self._g(state))

    def event_occurred(self, state: SpacecraftState, increasing: bool) -> Action:
        if self.increasing_only and not increasing:
            return Action.CONTINUE
        self.events.append((state.epoch, increasing))
        return self.action

    def reset_state(self, state: SpacecraftState) -> SpacecraftState:
        return state


class DateDetector(FunctionDetector):
    """Fires when the propagation passes a given epoch."""

    def __init__(self, epoch: float, action: Action = Action.STOP) -> None:
        super().__init__(lambda state: state.epoch - epoch, action)
        self.epoch = float(epoch)


class NodeDetector(FunctionDetector):
    """Fires at node crossings (sign change of the inertial ``z``).

    With ``increasing_only`` only ascending nodes stop the propagation.
    """

    def __init__(self, action: Action = Action.STOP, increasing_only: bool = True) -> None:
        super().__init__(lambda state: state.position[2], action, increasing_only)


class ApsideDetector(FunctionDetector):
    """Fires at apsides (sign change of ``r . v``).

    ``r . v`` increases through zero at perigee, so ``increasing_only``
    keeps only perigee passes.
    """

    def __init__(self, action: Action = Action.STOP, increasing_only: bool = True) -> None:
        super().__init__(lambda state: jnp.dot(state.position, state.velocity), action, increasing_only)
