# /// script
# requires-python = ">=3.11"
# dependencies = ["typer>=0.9.0", "propjax"]
#
# [tool.uv.sources]
# propjax = { path = ".." }
# ///
"""Propagate a low Earth orbit with the packaged analytical theories.

Builds a sample near-circular orbit, propagates it with the Keplerian,
Brouwer-Lyddane and Eckstein-Hechler theories, and prints the final
positions, the mean elements of the Brouwer-Lyddane model and, optionally,
the state transition matrix.

Requires propjax to be installed (``uv pip install -e .`` from the repo root).

Usage:
    uv run examples/propagate_brouwer.py [OPTIONS]

Examples:
    # One day, EGM96 coefficients
    uv run examples/propagate_brouwer.py --duration 1.0

    # With drag and the state transition matrix
    uv run examples/propagate_brouwer.py --m2 1e-12 --stm
"""

import enum
import logging
import math
import time
from typing import Annotated

import jax.numpy as jnp
import typer

from propjax import DEG2RAD, set_dtype
from propjax.orbits import Orbit, PositionAngleType
from propjax.propagation import (
    compute_mean_orbit,
    create_brouwer_lyddane_propagator,
    create_eckstein_hechler_propagator,
    create_keplerian_propagator,
)

set_dtype(jnp.float64)  # Must be before any JIT compilation


class GravityModel(enum.StrEnum):
    """Packaged zonal coefficients."""

    egm96 = "EGM96"
    eigen5c = "EIGEN5C"


def main(
    altitude: Annotated[float, typer.Option(help="Initial altitude in km")] = 700.0,
    eccentricity: Annotated[float, typer.Option(help="Initial eccentricity")] = 1e-3,
    inclination: Annotated[float, typer.Option(help="Inclination in degrees")] = 98.0,
    duration: Annotated[float, typer.Option(help="Propagation duration in days")] = 1.0,
    m2: Annotated[float, typer.Option(help="Brouwer-Lyddane M2 drag parameter [rad/s^2]")] = 0.0,
    gravity: Annotated[GravityModel, typer.Option(help="Zonal gravity model")] = GravityModel.egm96,
    stm: Annotated[bool, typer.Option(help="Print the Brouwer-Lyddane state transition matrix")] = False,
    verbose: Annotated[bool, typer.Option(help="Enable debug logging")] = False,
) -> None:
    """Propagate a sample orbit with each analytical theory."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)

    orbit = Orbit.from_keplerian(
        6378.137e3 + altitude * 1e3,
        eccentricity,
        inclination * DEG2RAD,
        20.0 * DEG2RAD,
        90.0 * DEG2RAD,
        0.0,
        PositionAngleType.MEAN,
    )
    target = orbit.epoch + duration * 86400.0
    print(f"Initial orbit: {orbit}")
    print(f"Target: {duration} days ({target:.0f} s)")

    propagators = {
        "Keplerian": create_keplerian_propagator(orbit),
        "Brouwer-Lyddane": create_brouwer_lyddane_propagator(orbit, gravity.value, m2=m2),
        "Eckstein-Hechler": create_eckstein_hechler_propagator(orbit, gravity.value),
    }

    harvester = None
    if stm:
        harvester = propagators["Brouwer-Lyddane"].setup_matrices_computation("stm")

    print("\n── Final positions ──")
    states = {}
    for name, propagator in propagators.items():
        t0 = time.perf_counter()
        states[name] = propagator.propagate(target)
        position = states[name].position
        print(
            f"  {name:<17s} [{position[0]:15.3f} {position[1]:15.3f} {position[2]:15.3f}] m"
            f"  ({time.perf_counter() - t0:.2f}s)"
        )

    reference = states["Brouwer-Lyddane"].position
    print("\n── Distance to Brouwer-Lyddane ──")
    for name in ("Keplerian", "Eckstein-Hechler"):
        print(f"  {name:<17s} {float(jnp.linalg.norm(states[name].position - reference)):12.3f} m")

    mean = compute_mean_orbit(orbit, propagators["Brouwer-Lyddane"].theory)
    a, e, i, raan, omega, anomaly = (float(x) for x in mean.elements)
    print("\n── Brouwer-Lyddane mean elements ──")
    print(f"  a = {a:.3f} m  e = {e:.6f}  i = {math.degrees(i):.6f} deg")
    print(f"  raan = {math.degrees(raan):.6f} deg  omega = {math.degrees(omega):.6f} deg  M = {math.degrees(anomaly):.6f} deg")

    if harvester is not None:
        print("\n── State transition matrix ──")
        matrix = harvester.get_state_transition_matrix(states["Brouwer-Lyddane"])
        for row in matrix:
            print("  " + " ".join(f"{float(x):12.4e}" for x in row))

    print("\nDone.")


if __name__ == "__main__":
    typer.run(main)
