from __future__ import annotations

"""
Per-step diagnostics ("vital signs") for a running particle system.

What this module does:
- Defines a structured `StepDiagnostics` snapshot for one simulation step.
- Computes statistics for velocity, density, pressure and neighbor counts.

How it works:
- Particle data is read through ParticleSystem.iterate() and neighbor counts
  through ParticleSystem.neighbour_counts(); the system is never mutated.
- Density and pressure are the values computed during the last advance(),
  i.e. they describe the positions at the start of that step.
- `finite` is False once any position or velocity has become NaN/Inf. The
  solver itself does not check this.
"""

from dataclasses import dataclass

import numpy as np

from fluidsim.core.simulator import ParticleSystem


@dataclass(frozen=True)
class StepDiagnostics:
    """Structured diagnostics for one simulation step."""

    step: int
    dt: float
    n: int
    finite: bool

    v_max: float

    rho_min: float
    rho_mean: float
    rho_max: float

    rho_rel_err_min: float
    rho_rel_err_mean: float
    rho_rel_err_max: float

    p_min: float
    p_mean: float
    p_max: float

    neigh_min: int
    neigh_mean: float
    neigh_max: int


def compute_step_diagnostics(step: int, dt: float, system: ParticleSystem) -> StepDiagnostics:
    """
    Compute diagnostics for a given step without mutating the system.

    Args:
        step: 1-based step (or frame) index for logging.
        dt: step size used for that step.
        system: particle system after the step.
    """
    n = len(system)
    if n == 0:
        # Degenerate system: avoid reductions on empty arrays.
        return StepDiagnostics(
            step=int(step),
            dt=float(dt),
            n=0,
            finite=True,
            v_max=0.0,
            rho_min=0.0,
            rho_mean=0.0,
            rho_max=0.0,
            rho_rel_err_min=0.0,
            rho_rel_err_mean=0.0,
            rho_rel_err_max=0.0,
            p_min=0.0,
            p_mean=0.0,
            p_max=0.0,
            neigh_min=0,
            neigh_mean=0.0,
            neigh_max=0,
        )

    pos = np.empty((n, 2), dtype=np.float64)
    vel = np.empty((n, 2), dtype=np.float64)
    rho = np.empty((n,), dtype=np.float64)
    p = np.empty((n,), dtype=np.float64)
    for i, (k, dp, _) in enumerate(system.iterate()):
        pos[i] = k.pos
        vel[i] = k.vel
        rho[i] = dp.density
        p[i] = dp.pressure

    finite = bool(np.isfinite(pos).all() and np.isfinite(vel).all())

    v_max = float(np.max(np.linalg.norm(vel, axis=1)))

    rho0 = float(system.config.rest_density)
    rel_err = (rho - rho0) / rho0

    # Neighbor lookups are meaningless once positions are non-finite.
    if finite:
        neigh_counts = system.neighbour_counts()
    else:
        neigh_counts = np.zeros((n,), dtype=np.int64)

    return StepDiagnostics(
        step=int(step),
        dt=float(dt),
        n=n,
        finite=finite,
        v_max=v_max,
        rho_min=float(np.min(rho)),
        rho_mean=float(np.mean(rho)),
        rho_max=float(np.max(rho)),
        rho_rel_err_min=float(np.min(rel_err)),
        rho_rel_err_mean=float(np.mean(rel_err)),
        rho_rel_err_max=float(np.max(rel_err)),
        p_min=float(np.min(p)),
        p_mean=float(np.mean(p)),
        p_max=float(np.max(p)),
        neigh_min=int(np.min(neigh_counts)),
        neigh_mean=float(np.mean(neigh_counts)),
        neigh_max=int(np.max(neigh_counts)),
    )
