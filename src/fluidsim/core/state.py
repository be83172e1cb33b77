from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

import numpy as np

from fluidsim.neighbors.spatial_hash import NO_PARTICLE


@dataclass(slots=True)
class ParticleState:
    """
    Struct-of-arrays particle storage for a 2-D fluid.

    Kinematics:       pos, vel, evel (smoothed velocity), next (grid link)
    DensityPressure:  rho, p
    Acceleration:     acc

    `next[i]` is the index of the particle after i in the same grid bucket,
    or NO_PARTICLE. It is rewritten every time the grid is rebuilt.
    """

    pos: np.ndarray   # (N, 2)
    vel: np.ndarray   # (N, 2)
    evel: np.ndarray  # (N, 2)
    next: np.ndarray  # (N,) int64

    rho: np.ndarray   # (N,)
    p: np.ndarray     # (N,)

    acc: np.ndarray   # (N, 2)

    @classmethod
    def zeros(cls, n: int) -> "ParticleState":
        n = int(n)
        if n < 0:
            raise ValueError("particle count must be >= 0")

        return cls(
            pos=np.zeros((n, 2), dtype=np.float64),
            vel=np.zeros((n, 2), dtype=np.float64),
            evel=np.zeros((n, 2), dtype=np.float64),
            next=np.full((n,), NO_PARTICLE, dtype=np.int64),
            rho=np.zeros((n,), dtype=np.float64),
            p=np.zeros((n,), dtype=np.float64),
            acc=np.zeros((n, 2), dtype=np.float64),
        )

    @property
    def n(self) -> int:
        return int(self.pos.shape[0])

    def validate(self) -> None:
        n = self.n
        if self.pos.shape != (n, 2):
            raise ValueError(f"pos shape {self.pos.shape} != (N, 2) = ({n},2)")

        for name, arr, shape in [
            ("vel", self.vel, (n, 2)),
            ("evel", self.evel, (n, 2)),
            ("next", self.next, (n,)),
            ("rho", self.rho, (n,)),
            ("p", self.p, (n,)),
            ("acc", self.acc, (n, 2)),
        ]:
            if arr.shape != shape:
                raise ValueError(f"{name} shape {arr.shape} != {shape}")

        if not np.isfinite(self.pos).all():
            raise ValueError("pos contains NaN/Inf")


class ParticleKinematics:
    """
    Mutable view of one particle's kinematics, handed to constrain()
    transforms.

    `pos`, `vel` and `evel` are row views into the system arrays, so both
    `k.pos[0] = 1.0` and `k.vel = (0.0, 0.0)` write through.
    """

    __slots__ = ("_state", "index")

    def __init__(self, state: ParticleState, index: int):
        self._state = state
        self.index = int(index)

    @property
    def pos(self) -> np.ndarray:
        return self._state.pos[self.index]

    @pos.setter
    def pos(self, value) -> None:
        self._state.pos[self.index] = value

    @property
    def vel(self) -> np.ndarray:
        return self._state.vel[self.index]

    @vel.setter
    def vel(self, value) -> None:
        self._state.vel[self.index] = value

    @property
    def evel(self) -> np.ndarray:
        return self._state.evel[self.index]

    @evel.setter
    def evel(self, value) -> None:
        self._state.evel[self.index] = value


class KinematicsSnapshot(NamedTuple):
    pos: np.ndarray
    vel: np.ndarray
    evel: np.ndarray


class DensityPressure(NamedTuple):
    density: float
    pressure: float


def read_only(arr: np.ndarray) -> np.ndarray:
    """Return a non-writeable view of `arr` (no copy)."""
    view = arr.view()
    view.flags.writeable = False
    return view
