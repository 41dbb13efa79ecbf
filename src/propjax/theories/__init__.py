"""Closed-form orbit theories.

Each theory implements the :class:`AnalyticalTheory` capability interface:
pure mean-to-osculating evaluation functions plus validity checks.  The
generic :func:`mean_from_osculating` solver inverts any of them.
"""

from propjax.theories._base import (
    AnalyticalTheory,
    MeanElementsConfig,
    check_conic,
    mean_from_osculating,
    parameter_values,
)
from propjax.theories.brouwer_lyddane import (
    M2_PARAMETER,
    BrouwerLyddaneTheory,
    brouwer_lyddane,
    critical_inclination_factor,
)
from propjax.theories.eckstein_hechler import EcksteinHechlerTheory, eckstein_hechler
from propjax.theories.keplerian import MU_PARAMETER, KeplerianTheory

__all__ = [
    "M2_PARAMETER",
    "MU_PARAMETER",
    "AnalyticalTheory",
    "BrouwerLyddaneTheory",
    "EcksteinHechlerTheory",
    "KeplerianTheory",
    "MeanElementsConfig",
    "brouwer_lyddane",
    "check_conic",
    "critical_inclination_factor",
    "eckstein_hechler",
    "mean_from_osculating",
    "parameter_values",
]
