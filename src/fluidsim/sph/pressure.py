from __future__ import annotations

import numpy as np

from fluidsim.sph.kernels import spiky_gradient


def pressure_state_equation_tait(rho: np.ndarray, rho0: float, k: float) -> np.ndarray:
    """
    Tait-like state equation with exponent 7:

        p_i = k ((rho_i / rho0)^7 - 1)

    Densities below rho0 give negative pressures.
    """
    rho0 = float(rho0)
    k = float(k)
    return k * ((np.asarray(rho, dtype=np.float64) / rho0) ** 7 - 1.0)


def pressure_force_term(
    offset: np.ndarray,
    r: float,
    vol_i: float,
    p_i: float,
    p_j: float,
    h: float,
) -> np.ndarray:
    """
    Symmetric pressure term contributed by neighbor j to particle i:

        offset * (m / rho_i) * (p_i + p_j) * dW_spiky(r) / r

    offset = x_j - x_i and r = |offset| > 0. Swapping i and j flips the
    sign of offset, so the pairwise terms cancel when rho_i == rho_j.
    The caller subtracts this term from its accumulator.
    """
    return offset * (vol_i * (p_i + p_j) * spiky_gradient(r, h) / r)
