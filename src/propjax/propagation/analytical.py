"""Analytical propagator shared by every closed-form theory.

:class:`AnalyticalPropagator` is a small state machine around an
:class:`~propjax.theories.AnalyticalTheory`:

1. At construction (and at every reset) the given orbit is validated and
   converted once into the *mean elements* of the theory.  Each set of
   mean elements, together with its reference orbit and mass, is a
   *model*; models are stored in a time-span map so intermediate resets
   only replace the model on one side of the reset epoch.
2. ``propagate(target)`` evaluates the theory at the target epoch from the
   model covering it, samples the attitude provider, runs the
   additional-state scheduler and hands the state to event detectors,
   step handlers, ephemeris generators and the matrices harvester.

Propagation is a pure function of the epoch and the stored models: calling
it twice with the same target returns identical states, and targets may be
visited in any order.
"""

from __future__ import annotations

import bisect
import copy
import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import NamedTuple

import numpy as np
from jax.typing import ArrayLike

from propjax.attitudes import AttitudeProvider, FrameAlignedProvider
from propjax.constants import DEFAULT_MASS
from propjax.errors import CollaboratorError, PropagationError, ResetDirectionError
from propjax.orbits import Orbit, OrbitType, PositionAngleType
from propjax.parameters import ParameterDriver
from propjax.propagation._types import PropagationType
from propjax.propagation.additional_states import AdditionalStateProvider, resolve_additional_states
from propjax.propagation.ephemeris import DEFAULT_EXTRAPOLATION_THRESHOLD, EphemerisGenerator
from propjax.propagation.events import Action, EventDetector, StepHandler, sign_change
from propjax.propagation.harvester import MatricesHarvester
from propjax.propagation.state import SpacecraftState
from propjax.theories import AnalyticalTheory, MeanElementsConfig, mean_from_osculating

logger = logging.getLogger(__name__)

# Relative slack when snapping the last fixed step onto the target
_STEP_SNAP = 1.0e-12


class Model(NamedTuple):
    """Mean elements of a theory and the state they were built from.

    Attributes:
        mean: Mean elements of type ``theory.orbit_type`` (mean angle).
        orbit: Reference orbit (osculating or mean, see ``propagation_type``).
        propagation_type: Interpretation of ``orbit``.
        mass: Spacecraft mass. Units: *kg*
    """

    mean: np.ndarray
    orbit: Orbit
    propagation_type: PropagationType
    mass: float

    @property
    def epoch(self) -> float:
        return self.orbit.epoch


class ModelSpans:
    """Piecewise-constant map from epochs to models.

    Model ``k`` is valid on ``[transitions[k-1], transitions[k])``; the
    first model extends to minus infinity and the last one to plus
    infinity.
    """

    def __init__(self, model: Model) -> None:
        self._transitions: list[float] = []
        self._models: list[Model] = [model]

    def get(self, epoch: float) -> Model:
        return self._models[bisect.bisect_right(self._transitions, epoch)]

    def add_valid_after(self, model: Model, epoch: float) -> None:
        """Make ``model`` valid from ``epoch`` to plus infinity."""
        k = bisect.bisect_left(self._transitions, epoch)
        self._transitions = self._transitions[:k] + [epoch]
        self._models = self._models[: k + 1] + [model]

    def add_valid_before(self, model: Model, epoch: float) -> None:
        """Make ``model`` valid from minus infinity up to ``epoch``."""
        k = bisect.bisect_right(self._transitions, epoch)
        self._transitions = [epoch] + self._transitions[k:]
        self._models = [model] + self._models[k:]

    def copy(self) -> ModelSpans:
        spans = copy.copy(self)
        spans._transitions = list(self._transitions)
        spans._models = list(self._models)
        return spans

    def __len__(self) -> int:
        return len(self._models)


@contextmanager
def _collaborator(name: str) -> Iterator[None]:
    """Wrap failures of external collaborators, keeping the cause."""
    try:
        yield
    except PropagationError:
        raise
    except Exception as exc:
        raise CollaboratorError(name, str(exc)) from exc


class AnalyticalPropagator:
    """Closed-form propagator driven by an analytical theory.

    Args:
        theory: Theory providing the mean-to-osculating mapping.
        initial_state: Initial orbit or spacecraft state.
        attitude_provider: Attitude law.  Defaults to an attitude aligned
            with the orbit frame.
        mass: Spacecraft mass, used when ``initial_state`` is an orbit.
            Units: *kg*
        propagation_type: Whether ``initial_state`` holds osculating or
            mean elements.
        config: Mean-element solver settings.  Defaults to the theory's.
        parameter_values: Fixed parameter values used instead of the
            current values of the theory drivers.

    Raises:
        ModelValidityError: If the orbit is outside the validity domain of
            the theory.
        MeanElementsConvergenceError: If the mean elements cannot be
            computed.

    Examples:
        ```python
        from propjax.propagation import AnalyticalPropagator
        from propjax.theories import BrouwerLyddaneTheory
        propagator = AnalyticalPropagator(BrouwerLyddaneTheory("EGM96"), orbit)
        state = propagator.propagate(orbit.epoch + 3600.0)
        ```
    """

    def __init__(
        self,
        theory: AnalyticalTheory,
        initial_state: Orbit | SpacecraftState,
        attitude_provider: AttitudeProvider | None = None,
        mass: float = DEFAULT_MASS,
        propagation_type: PropagationType = PropagationType.OSCULATING,
        config: MeanElementsConfig | None = None,
        parameter_values: Mapping[str, float] | None = None,
    ) -> None:
        self._theory = theory
        self._attitude_provider = attitude_provider or FrameAlignedProvider()
        self._config = config or theory.default_config
        self._parameter_overrides = dict(parameter_values) if parameter_values is not None else None

        self._providers: list[AdditionalStateProvider] = []
        self._detectors: list[EventDetector] = []
        self._handlers: list[StepHandler] = []
        self._generators: list[EphemerisGenerator] = []
        self._harvester: MatricesHarvester | None = None
        self._fixed_step: float | None = None
        self._last_epoch: float | None = None
        self._last_forward: bool | None = None

        if isinstance(initial_state, Orbit):
            initial_state = SpacecraftState(initial_state, self._attitude(initial_state), mass)

        model = self._build_model(initial_state, propagation_type, self._config)
        self._spans = ModelSpans(model)
        self._initial_state = initial_state
        logger.info(
            "Built %s propagator at epoch %s from %s elements",
            theory.name,
            initial_state.epoch,
            propagation_type.value,
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def theory(self) -> AnalyticalTheory:
        return self._theory

    @property
    def config(self) -> MeanElementsConfig:
        return self._config

    @property
    def attitude_provider(self) -> AttitudeProvider:
        return self._attitude_provider

    def get_initial_state(self) -> SpacecraftState:
        return self._initial_state

    def get_frame(self) -> str:
        return self._initial_state.frame

    def get_parameter_drivers(self) -> list[ParameterDriver]:
        return self._theory.parameter_drivers()

    def get_mass(self, epoch: float) -> float:
        """Mass of the model covering ``epoch``. Units: *kg*"""
        return self._spans.get(epoch).mass

    def get_mean_orbit(self, epoch: float | None = None) -> Orbit:
        """Mean orbit of the model covering ``epoch``, at the model epoch.

        Args:
            epoch: Epoch selecting the model; defaults to the initial epoch.

        Returns:
            Orbit of type ``theory.orbit_type`` with mean position angle.
        """
        model = self._spans.get(self._initial_state.epoch if epoch is None else epoch)
        orbit = model.orbit
        return Orbit(
            model.mean,
            self._theory.orbit_type,
            PositionAngleType.MEAN,
            orbit.epoch,
            orbit.frame,
            float(self._theory.mu(self._parameter_values())),
        )

    def _parameter_values(self) -> dict[str, float]:
        values = {driver.name: driver.value for driver in self._theory.parameter_drivers()}
        if self._parameter_overrides is not None:
            values.update(self._parameter_overrides)
        return values

    def _model_at(self, epoch: float) -> Model:
        return self._spans.get(epoch)

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    def add_additional_state_provider(self, provider: AdditionalStateProvider) -> None:
        """Register an additional-state provider.

        Raises:
            ValueError: If a provider with the same name is registered or
                the name is used by the matrices harvester.
        """
        if any(p.name == provider.name for p in self._providers):
            raise ValueError(f"Additional state provider {provider.name!r} is already registered")
        if self._harvester is not None and provider.name in self._harvester.managed_names():
            raise ValueError(f"Additional state {provider.name!r} is managed by the matrices harvester")
        self._providers.append(provider)

    def get_additional_state_providers(self) -> list[AdditionalStateProvider]:
        return list(self._providers)

    def add_event_detector(self, detector: EventDetector) -> None:
        self._detectors.append(detector)

    def get_event_detectors(self) -> list[EventDetector]:
        return list(self._detectors)

    def clear_event_detectors(self) -> None:
        self._detectors.clear()

    def add_step_handler(self, handler: StepHandler) -> None:
        self._handlers.append(handler)

    def clear_step_handlers(self) -> None:
        self._handlers.clear()

    def set_fixed_step(self, step: float | None) -> None:
        """Split propagations into steps of ``step`` seconds (``None``: one step).

        Raises:
            ValueError: If ``step`` is not strictly positive.
        """
        if step is not None and not step > 0.0:
            raise ValueError(f"Fixed step must be strictly positive, got {step}")
        self._fixed_step = None if step is None else float(step)

    # ------------------------------------------------------------------
    # Models and resets
    # ------------------------------------------------------------------

    def _attitude(self, orbit: Orbit):
        with _collaborator("attitude provider"):
            return self._attitude_provider.get_attitude(orbit, orbit.epoch, orbit.frame)

    def _build_model(
        self,
        state: SpacecraftState,
        propagation_type: PropagationType,
        config: MeanElementsConfig,
    ) -> Model:
        params = self._parameter_values()
        orbit = state.orbit
        if propagation_type is PropagationType.OSCULATING:
            mean = mean_from_osculating(self._theory, orbit, params, config)
        else:
            mean = np.asarray(orbit.elements_as(self._theory.orbit_type, PositionAngleType.MEAN), dtype=float)
            error = self._theory.check_osculating(orbit) or self._theory.check_mean(mean, params)
            if error is not None:
                raise error
        return Model(mean, orbit, propagation_type, state.mass)

    def reset_initial_state(
        self,
        state: SpacecraftState,
        propagation_type: PropagationType | None = None,
        config: MeanElementsConfig | None = None,
    ) -> None:
        """Replace the initial state and every stored model.

        Args:
            state: New initial state.
            propagation_type: Interpretation of ``state.orbit``; defaults
                to the type of the current initial model.
            config: Solver settings for this reset.

        Raises:
            ModelValidityError: If the new orbit is outside the validity
                domain of the theory.
            MeanElementsConvergenceError: If the mean solve fails.
        """
        if propagation_type is None:
            propagation_type = self._spans.get(self._initial_state.epoch).propagation_type
        model = self._build_model(state, propagation_type, config or self._config)
        self._spans = ModelSpans(model)
        self._initial_state = state
        self._last_epoch = None
        self._last_forward = None
        logger.info("Reset %s initial state at epoch %s", self._theory.name, state.epoch)

    def reset_intermediate_state(
        self,
        state: SpacecraftState,
        forward: bool,
        config: MeanElementsConfig | None = None,
    ) -> None:
        """Replace the model on one side of ``state.epoch``.

        A forward reset makes the new model valid after the state epoch, a
        backward one before it.

        Args:
            state: State at the reset epoch (osculating).
            forward: Direction of the reset.
            config: Solver settings for this reset.

        Raises:
            ResetDirectionError: If the direction contradicts the direction
                of the last propagation.
        """
        if self._last_forward is not None and forward != self._last_forward:
            raise ResetDirectionError(forward, state.epoch)
        model = self._build_model(state, PropagationType.OSCULATING, config or self._config)
        if forward:
            self._spans.add_valid_after(model, state.epoch)
        else:
            self._spans.add_valid_before(model, state.epoch)
        logger.info(
            "Reset %s %s intermediate state at epoch %s",
            self._theory.name,
            "forward" if forward else "backward",
            state.epoch,
        )

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def propagate_orbit(self, epoch: float) -> Orbit:
        """Osculating orbit at ``epoch``, without attitude or additional states."""
        epoch = float(epoch)
        model = self._spans.get(epoch)
        params = self._parameter_values()
        dt = epoch - model.epoch
        theory = self._theory
        if theory.output_orbit_type is OrbitType.CARTESIAN:
            elements = theory.cartesian_from_mean(model.mean, dt, params)
        else:
            elements = theory.osculating_from_mean(model.mean, dt, params)
        return Orbit(
            elements,
            theory.output_orbit_type,
            PositionAngleType.MEAN,
            epoch,
            model.orbit.frame,
            float(theory.mu(params)),
        )

    def _base_additional_states(self) -> dict[str, ArrayLike]:
        managed = {provider.name for provider in self._providers}
        if self._harvester is not None:
            managed |= self._harvester.managed_names()
        return {
            name: value
            for name, value in self._initial_state.additional_states.items()
            if name not in managed
        }

    def basic_propagate(self, epoch: float) -> SpacecraftState:
        """Complete state at ``epoch``, without events or step handlers."""
        orbit = self.propagate_orbit(epoch)
        states = self._base_additional_states()
        if self._harvester is not None:
            states.update(self._harvester.compute_states(orbit.epoch))
        state = SpacecraftState(orbit, self._attitude(orbit), self.get_mass(orbit.epoch), states)
        return resolve_additional_states(self._providers, state)

    def propagate(self, target: float, start: float | None = None) -> SpacecraftState:
        """Propagate to ``target``, running events and step handlers.

        Args:
            target: Target epoch in seconds.
            start: Start epoch; defaults to the end of the previous
                propagation, or the initial epoch.

        Returns:
            State at ``target``, or at the step where an event stopped the
            propagation.

        Raises:
            CollaboratorError: If an attitude provider, event detector,
                step handler or additional-state provider raises.
        """
        target = float(target)
        if start is None:
            start = self._initial_state.epoch if self._last_epoch is None else self._last_epoch
        start = float(start)
        forward = target >= start
        if target != start:
            self._last_forward = forward
        if self._harvester is not None:
            self._harvester.freeze_columns_names()

        state = self.basic_propagate(start)
        for generator in self._generators:
            generator.record(state.epoch)
        for provider in self._providers:
            with _collaborator(f"additional state provider {provider.name!r}"):
                provider.init(state, target)
        g_values = []
        for detector in self._detectors:
            with _collaborator("event detector"):
                detector.init(state, target)
                g_values.append(detector.g(state))
        for handler in self._handlers:
            with _collaborator("step handler"):
                handler.init(state, target)

        direction = 1.0 if forward else -1.0
        step = self._fixed_step if self._fixed_step is not None else abs(target - start)
        epoch = start
        while True:
            next_epoch = epoch + direction * step
            if step == 0.0 or direction * (target - next_epoch) <= _STEP_SNAP * max(1.0, abs(target)):
                next_epoch = target
            is_last = next_epoch == target
            state = self.basic_propagate(next_epoch)

            stop = False
            for k, detector in enumerate(self._detectors):
                with _collaborator("event detector"):
                    g1 = detector.g(state)
                    if not sign_change(g_values[k], g1):
                        g_values[k] = g1
                        continue
                    action = detector.event_occurred(state, g1 > g_values[k])
                    if action is Action.STOP:
                        stop = True
                    elif action is Action.RESET_STATE:
                        reset = detector.reset_state(state)
                        self.reset_intermediate_state(reset, forward)
                        state = self.basic_propagate(next_epoch)
                        g1 = detector.g(state)
                    g_values[k] = g1

            for generator in self._generators:
                generator.record(state.epoch)
            for handler in self._handlers:
                with _collaborator("step handler"):
                    handler.handle_step(state, is_last or stop)

            epoch = next_epoch
            if stop or is_last:
                break

        for handler in self._handlers:
            with _collaborator("step handler"):
                handler.finish(state)
        self._last_epoch = state.epoch
        return state

    # ------------------------------------------------------------------
    # Companions
    # ------------------------------------------------------------------

    def copy_with(
        self,
        orbit: Orbit,
        parameter_values: Mapping[str, float] | None = None,
        propagation_type: PropagationType | None = None,
    ) -> AnalyticalPropagator:
        """Fresh propagator of the same theory from another orbit.

        Collaborators are not copied.  Parameter values are frozen to the
        current ones, updated with ``parameter_values``.  The propagation
        type defaults to the one of the model covering ``orbit.epoch``.
        """
        model = self._spans.get(orbit.epoch)
        if propagation_type is None:
            propagation_type = model.propagation_type
        overrides = self._parameter_values()
        if parameter_values is not None:
            overrides.update(parameter_values)
        return AnalyticalPropagator(
            self._theory,
            SpacecraftState(orbit, self._attitude(orbit), model.mass),
            self._attitude_provider,
            model.mass,
            propagation_type,
            self._config,
            overrides,
        )

    def snapshot(self) -> AnalyticalPropagator:
        """Copy sharing the theory and providers, with frozen models."""
        clone = copy.copy(self)
        clone._spans = self._spans.copy()
        clone._providers = list(self._providers)
        clone._detectors = []
        clone._handlers = []
        clone._generators = []
        clone._harvester = None
        return clone

    def ephemeris_generator(
        self, extrapolation_threshold: float = DEFAULT_EXTRAPOLATION_THRESHOLD
    ) -> EphemerisGenerator:
        """Start recording an ephemeris of the next propagations."""
        generator = EphemerisGenerator(self, extrapolation_threshold)
        self._generators.append(generator)
        logger.debug("Started ephemeris recording on %s propagator", self._theory.name)
        return generator

    def setup_matrices_computation(
        self,
        stm_name: str,
        initial_stm: ArrayLike | None = None,
        initial_jacobian_columns: Mapping[str, ArrayLike] | None = None,
        method: str = "autodiff",
        orbit_type: OrbitType = OrbitType.CARTESIAN,
        angle_type: PositionAngleType = PositionAngleType.MEAN,
    ) -> MatricesHarvester:
        """Attach a matrices harvester to this propagator.

        Args:
            stm_name: Name of the additional state holding the state
                transition matrix.
            initial_stm: Initial state transition matrix (identity if
                ``None``).
            initial_jacobian_columns: Initial Jacobian columns per
                parameter name (zero if missing).
            method: ``"autodiff"`` or ``"finite_difference"``.
            orbit_type: Parameterization of the matrices rows and columns.
            angle_type: Position angle of the matrices rows and columns.

        Returns:
            MatricesHarvester: The harvester, queried with the states
            returned by :meth:`propagate`.

        Raises:
            ValueError: If ``stm_name`` is empty or collides with an
                additional-state provider.
        """
        harvester = MatricesHarvester(
            self, stm_name, initial_stm, initial_jacobian_columns, method, orbit_type, angle_type
        )
        if any(p.name == stm_name for p in self._providers):
            raise ValueError(f"Additional state {stm_name!r} is already produced by a provider")
        self._harvester = harvester
        return harvester

    def __repr__(self) -> str:
        return (
            f"AnalyticalPropagator({self._theory.name}, epoch={self._initial_state.epoch}, "
            f"models={len(self._spans)})"
        )
