from __future__ import annotations

import numpy as np

from fluidsim.sph.kernels import viscosity_laplacian


def viscosity_force_term(
    evel_i: np.ndarray,
    evel_j: np.ndarray,
    r: float,
    vol_i: float,
    mu: float,
    h: float,
) -> np.ndarray:
    """
    Viscous term contributed by neighbor j to particle i:

        (ev_j - ev_i) * (m / rho_i) * mu * lap W_visc(r)

    Uses the smoothed velocities `evel` (see sph.integrator) rather than the
    instantaneous ones, which damps step-to-step velocity noise.
    """
    return (evel_j - evel_i) * (vol_i * float(mu) * viscosity_laplacian(r, h))
