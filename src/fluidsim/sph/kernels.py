from __future__ import annotations

import numpy as np


def _check_h(h: float) -> float:
    h = float(h)
    if h <= 0.0:
        raise ValueError("h must be > 0")
    return h


def poly6_W(r: float, h: float) -> float:
    """
    Poly6 smoothing kernel used for density summation (2-D form used by the
    simulator, normalization taken from the 3-D Poly6 constant):

        W(r,h) = 315 / (64 pi h^9) * (h^2 - r^2)^3     for 0 <= r < h
        W(r,h) = 0                                     for r >= h

    At r = 0 this evaluates to its maximum 315 / (64 pi h^3), which is the
    value added for every particle's self contribution.
    """
    h = _check_h(h)
    r = float(r)
    if r >= h:
        return 0.0

    d = h * h - r * r
    return 315.0 / (64.0 * np.pi * h ** 9) * d * d * d


def spiky_gradient(r: float, h: float) -> float:
    """
    Magnitude of the Spiky kernel gradient, used for pressure forces:

        dW/dr = -45 / (pi h^6) * (h - r)^2     for 0 <= r < h

    The value is non-positive. It is a scalar; callers turn it into a
    direction by scaling the unit offset vector (offset / r), so r must be
    strictly positive at the call site.
    """
    h = _check_h(h)
    r = float(r)
    if r >= h:
        return 0.0

    return -45.0 / (np.pi * h ** 6) * (h - r) ** 2


def viscosity_laplacian(r: float, h: float) -> float:
    """
    Laplacian of the viscosity kernel:

        lap W(r,h) = 45 / (pi h^6) * (h - r)     for 0 <= r < h
    """
    h = _check_h(h)
    r = float(r)
    if r >= h:
        return 0.0

    return 45.0 / (np.pi * h ** 6) * (h - r)
