from __future__ import annotations

from typing import Sequence

from fluidsim.core.simulator import ParticleTransform
from fluidsim.core.state import ParticleKinematics


def box_reflection(
    lo: Sequence[float] = (-1.0, -1.0),
    hi: Sequence[float] = (1.0, 1.0),
    restitution: float = 0.5,
) -> ParticleTransform:
    """
    Build a constrain() transform keeping particles inside an axis-aligned box.

    Per axis, a particle at or beyond a wall is clamped onto it and that
    velocity component becomes -restitution times itself. Tangential
    components are left untouched.
    """
    lo = tuple(float(v) for v in lo)
    hi = tuple(float(v) for v in hi)
    if len(lo) != 2 or len(hi) != 2:
        raise ValueError("box bounds must have 2 components")
    if not all(a < b for a, b in zip(lo, hi)):
        raise ValueError("lo must be < hi componentwise")

    restitution = float(restitution)

    def reflect(k: ParticleKinematics) -> None:
        pos = k.pos
        vel = k.vel
        for d in range(2):
            if pos[d] <= lo[d]:
                pos[d] = lo[d]
                vel[d] = -restitution * vel[d]
            elif pos[d] >= hi[d]:
                pos[d] = hi[d]
                vel[d] = -restitution * vel[d]

    return reflect
