from __future__ import annotations

import numpy as np


def advance_kinematics(
    pos: np.ndarray,
    vel: np.ndarray,
    evel: np.ndarray,
    acc: np.ndarray,
    dt: float,
) -> None:
    """
    Advance one particle in place assuming constant acceleration over dt:

        x(t+dt)  = x + v dt + 0.5 a dt^2
        v(t+dt)  = v + a dt
        ev(t+dt) = 0.5 (v(t+dt) + ev)

    `pos`, `vel` and `evel` must be writeable rows of the state arrays.
    `evel` is the XSPH-style smoothed velocity consumed by the next
    viscosity pass.
    """
    dt = float(dt)

    pos += vel * dt + 0.5 * acc * (dt * dt)
    vel += acc * dt
    evel[:] = 0.5 * (vel + evel)
