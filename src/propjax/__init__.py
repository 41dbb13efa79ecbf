"""
propjax is an analytical orbit propagation library implemented in JAX.
"""

from .config import set_dtype, get_dtype

from .constants import (
    DEG2RAD,
    RAD2DEG,
    R_EARTH,
    GM_EARTH,
    DEFAULT_MASS,
)

from .errors import (
    PropagationError,
    ModelValidityError,
    EccentricityTooLargeError,
    InsideBrillouinSphereError,
    CriticalInclinationError,
    EquatorialOrbitError,
    MeanElementsConvergenceError,
    NonResettableError,
    ResetDirectionError,
    OutOfRangeError,
    CollaboratorError,
)

from .orbits import (
    Orbit,
    OrbitType,
    PositionAngleType,
    elements_to_cartesian,
    cartesian_to_elements,
    convert_elements,
)

from .gravity import ZonalGravityField, ZonalHarmonics
from .parameters import ParameterDriver

from .attitudes import (
    Attitude,
    AttitudeProvider,
    FrameAlignedProvider,
    LocalOrbitalFrameProvider,
)

from .theories import (
    MeanElementsConfig,
    BrouwerLyddaneTheory,
    EcksteinHechlerTheory,
    KeplerianTheory,
    mean_from_osculating,
)

from .propagation import (
    PropagationType,
    SpacecraftState,
    AnalyticalPropagator,
    BoundedEphemeris,
    MatricesHarvester,
    FunctionStateProvider,
    create_brouwer_lyddane_propagator,
    create_eckstein_hechler_propagator,
    create_keplerian_propagator,
    compute_mean_orbit,
)

__all__ = [
    # Configuration
    "set_dtype",
    "get_dtype",
    # Constants
    "DEG2RAD",
    "RAD2DEG",
    "R_EARTH",
    "GM_EARTH",
    "DEFAULT_MASS",
    # Errors
    "PropagationError",
    "ModelValidityError",
    "EccentricityTooLargeError",
    "InsideBrillouinSphereError",
    "CriticalInclinationError",
    "EquatorialOrbitError",
    "MeanElementsConvergenceError",
    "NonResettableError",
    "ResetDirectionError",
    "OutOfRangeError",
    "CollaboratorError",
    # Orbits
    "Orbit",
    "OrbitType",
    "PositionAngleType",
    "elements_to_cartesian",
    "cartesian_to_elements",
    "convert_elements",
    # Models
    "ZonalGravityField",
    "ZonalHarmonics",
    "ParameterDriver",
    "Attitude",
    "AttitudeProvider",
    "FrameAlignedProvider",
    "LocalOrbitalFrameProvider",
    # Theories
    "MeanElementsConfig",
    "BrouwerLyddaneTheory",
    "EcksteinHechlerTheory",
    "KeplerianTheory",
    "mean_from_osculating",
    # Propagation
    "PropagationType",
    "SpacecraftState",
    "AnalyticalPropagator",
    "BoundedEphemeris",
    "MatricesHarvester",
    "FunctionStateProvider",
    "create_brouwer_lyddane_propagator",
    "create_eckstein_hechler_propagator",
    "create_keplerian_propagator",
    "compute_mean_orbit",
]
