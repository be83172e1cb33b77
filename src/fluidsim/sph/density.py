from __future__ import annotations

import math

import numpy as np

from fluidsim.core.state import DensityPressure, ParticleState
from fluidsim.neighbors.spatial_hash import SpatialHashGrid
from fluidsim.sph.kernels import poly6_W
from fluidsim.sph.pressure import pressure_state_equation_tait


def density_at(
    position: np.ndarray,
    state: ParticleState,
    grid: SpatialHashGrid,
    mass: float,
    h: float,
) -> float:
    """
    Density reconstruction via SPH summation with uniform particle mass:

        rho_i = m * (W(0) + sum_j W(r_ij))

    The self term W(0) is always added, so an isolated particle still has
    rho_i = m W(0) > 0.
    """
    total = poly6_W(0.0, h)
    for _, _, r2 in grid.query_neighbours(position, state.pos, state.next):
        total += poly6_W(math.sqrt(r2), h)

    return float(mass) * total


def density_pressure_at(
    position: np.ndarray,
    state: ParticleState,
    grid: SpatialHashGrid,
    mass: float,
    h: float,
    rho0: float,
    k: float,
) -> DensityPressure:
    rho = density_at(position, state, grid, mass=mass, h=h)
    return DensityPressure(rho, float(pressure_state_equation_tait(rho, rho0=rho0, k=k)))


def compute_density_pressure(
    state: ParticleState,
    grid: SpatialHashGrid,
    mass: float,
    h: float,
    rho0: float,
    k: float,
) -> None:
    """
    Density/pressure phase: fills state.rho and state.p for every particle.

    Reads only positions and the grid, and each particle writes only its own
    slot, so this loop has no ordering dependence between particles.
    """
    for i in range(state.n):
        state.rho[i], state.p[i] = density_pressure_at(
            state.pos[i], state, grid, mass=mass, h=h, rho0=rho0, k=k
        )
