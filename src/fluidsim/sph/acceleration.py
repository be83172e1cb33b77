from __future__ import annotations

import math

import numpy as np

from fluidsim.core.state import ParticleState
from fluidsim.neighbors.spatial_hash import SpatialHashGrid
from fluidsim.sph.pressure import pressure_force_term
from fluidsim.sph.viscosity import viscosity_force_term


def acceleration_at(
    i: int,
    state: ParticleState,
    grid: SpatialHashGrid,
    mass: float,
    h: float,
    mu: float,
    g: float,
) -> np.ndarray:
    """
    Net acceleration of particle i:

        a_i = ( (0, -g rho_i) + sum_j (f_visc_ij - f_p_ij) ) / rho_i

    Gravity is folded in as the accumulator's start value in the same
    density-weighted units as the neighbor terms, so after the final 1/rho_i
    scaling it contributes exactly (0, -g).

    Requires state.rho and state.p to be current for every particle.
    """
    rho_i = float(state.rho[i])
    p_i = float(state.p[i])
    evel_i = state.evel[i]
    vol_i = float(mass) / rho_i

    acc = np.array([0.0, -float(g) * rho_i], dtype=np.float64)

    for j, offset, r2 in grid.query_neighbours(state.pos[i], state.pos, state.next):
        r = math.sqrt(r2)
        f_p = pressure_force_term(offset, r, vol_i, p_i, float(state.p[j]), h)
        f_v = viscosity_force_term(evel_i, state.evel[j], r, vol_i, mu, h)
        acc += f_v - f_p

    return acc / rho_i


def compute_acceleration(
    state: ParticleState,
    grid: SpatialHashGrid,
    mass: float,
    h: float,
    mu: float,
    g: float,
) -> None:
    """
    Acceleration phase: fills state.acc for every particle.

    Must run after compute_density_pressure has finished for all particles,
    since each particle reads its neighbors' pressures.
    """
    for i in range(state.n):
        state.acc[i] = acceleration_at(i, state, grid, mass=mass, h=h, mu=mu, g=g)
