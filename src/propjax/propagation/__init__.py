"""Analytical propagation: states, scheduler, events, propagator, ephemeris and matrices."""

from propjax.propagation._types import PropagationType
from propjax.propagation.additional_states import (
    AdditionalStateProvider,
    FunctionStateProvider,
    resolve_additional_states,
)
from propjax.propagation.analytical import AnalyticalPropagator
from propjax.propagation.ephemeris import (
    DEFAULT_EXTRAPOLATION_THRESHOLD,
    BoundedEphemeris,
    EphemerisGenerator,
)
from propjax.propagation.events import (
    Action,
    ApsideDetector,
    DateDetector,
    EventDetector,
    FunctionDetector,
    NodeDetector,
    StepHandler,
    sign_change,
)
from propjax.propagation.factory import (
    compute_mean_orbit,
    create_brouwer_lyddane_propagator,
    create_eckstein_hechler_propagator,
    create_keplerian_propagator,
)
from propjax.propagation.harvester import MatricesHarvester
from propjax.propagation.state import SpacecraftState

__all__ = [
    "DEFAULT_EXTRAPOLATION_THRESHOLD",
    "Action",
    "AdditionalStateProvider",
    "AnalyticalPropagator",
    "ApsideDetector",
    "BoundedEphemeris",
    "DateDetector",
    "EphemerisGenerator",
    "EventDetector",
    "FunctionDetector",
    "FunctionStateProvider",
    "MatricesHarvester",
    "NodeDetector",
    "PropagationType",
    "SpacecraftState",
    "StepHandler",
    "compute_mean_orbit",
    "create_brouwer_lyddane_propagator",
    "create_eckstein_hechler_propagator",
    "create_keplerian_propagator",
    "resolve_additional_states",
    "sign_change",
]
