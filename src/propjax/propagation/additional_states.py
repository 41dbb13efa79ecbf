"""Additional-state providers and their dependency scheduler.

An additional-state provider is a named function ``state -> array`` that
may depend on one other additional state.  :func:`resolve_additional_states`
evaluates a set of providers on one state with repeated fixed-point
passes: every pass evaluates, in registration order, each pending provider
whose dependency is already resolved.  Passes stop when everything is
resolved or a pass makes no progress.  Providers left over (unknown
dependency, or dependency cycle) are dropped for this state: their
additional state is simply absent.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Protocol

from jax.typing import ArrayLike

from propjax.errors import CollaboratorError, PropagationError
from propjax.propagation.state import SpacecraftState

logger = logging.getLogger(__name__)


class AdditionalStateProvider(Protocol):
    """Producer of one named additional state.

    Attributes:
        name: Name of the produced additional state.
        dependency_name: Name of the additional state this provider needs
            to be resolved first, or ``None``.
    """

    name: str
    dependency_name: str | None

    def init(self, initial_state: SpacecraftState, target: float) -> None:
        """Called once at the start of each propagation."""
        ...

    def compute(self, state: SpacecraftState) -> ArrayLike:
        """Value of the additional state for ``state``."""
        ...


class FunctionStateProvider:
    """Additional-state provider wrapping a plain function.

    Args:
        name: Name of the produced additional state.
        fn: Function ``state -> array``.
        dependency_name: Optional name of the additional state ``fn`` reads.

    Raises:
        ValueError: If ``name`` is empty.

    Examples:
        ```python
        from propjax.propagation import FunctionStateProvider
        altitude = FunctionStateProvider("altitude", lambda s: [jnp.linalg.norm(s.position) - 6.378e6])
        propagator.add_additional_state_provider(altitude)
        ```
    """

    def __init__(
        self,
        name: str,
        fn: Callable[[SpacecraftState], ArrayLike],
        dependency_name: str | None = None,
    ) -> None:
        if not name:
            raise ValueError("Additional state provider name must not be empty")
        self.name = name
        self.dependency_name = dependency_name
        self._fn = fn

    def init(self, initial_state: SpacecraftState, target: float) -> None:
        pass

    def compute(self, state: SpacecraftState) -> ArrayLike:
        return self._fn(state)

    def __repr__(self) -> str:
        return f"FunctionStateProvider({self.name!r}, dependency={self.dependency_name!r})"


def resolve_additional_states(
    providers: Sequence[AdditionalStateProvider],
    state: SpacecraftState,
) -> SpacecraftState:
    """Evaluate additional-state providers on ``state``.

    Additional states already present on ``state`` and not managed by any
    provider are kept and count as resolved dependencies.

    Args:
        providers: Providers in registration order.
        state: State to complete.

    Returns:
        A new state holding the resolved additional states.

    Raises:
        CollaboratorError: If a provider raises anything but a
            :class:`PropagationError`, which propagates unchanged.
    """
    managed = {provider.name for provider in providers}
    resolved = {name: value for name, value in state.additional_states.items() if name not in managed}
    pending = list(providers)

    while pending:
        remaining = []
        for provider in pending:
            dependency = provider.dependency_name
            if dependency is not None and dependency not in resolved:
                remaining.append(provider)
                continue
            current = state.with_additional_states(resolved)
            try:
                resolved[provider.name] = provider.compute(current)
            except PropagationError:
                raise
            except Exception as exc:
                raise CollaboratorError(f"additional state provider {provider.name!r}", str(exc)) from exc

        if len(remaining) == len(pending):
            logger.debug(
                "Dropping unresolved additional states: %s",
                ", ".join(provider.name for provider in remaining),
            )
            break
        pending = remaining

    return state.with_additional_states(resolved)
