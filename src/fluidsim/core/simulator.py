from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterator, Tuple

import numpy as np

from fluidsim.core.state import (
    DensityPressure,
    KinematicsSnapshot,
    ParticleKinematics,
    ParticleState,
    read_only,
)
from fluidsim.neighbors.spatial_hash import SpatialHashGrid
from fluidsim.sph.acceleration import compute_acceleration
from fluidsim.sph.density import compute_density_pressure
from fluidsim.sph.integrator import advance_kinematics


@dataclass(frozen=True)
class FluidConfig:
    """
    Numerical constants of the 2-D SPH fluid.

    Large steps or extreme stiffness/viscosity make the explicit integrator
    diverge; nothing in the step detects this, so dt and these constants
    have to be tuned together (the defaults are stable at dt = 0.002).
    """

    # Particle / kernel
    mass: float = 0.02
    support_radius: float = 0.04  # h, also the grid cell size

    # State equation: p = k ((rho / rho0)^7 - 1)
    rest_density: float = 1200.0
    stiffness: float = 1000.0

    viscosity: float = 8.0
    gravity: float = 1.8

    # Number of grid buckets; None means one bucket per particle.
    bucket_count: int | None = None

    # Initial placement rectangle for randomized construction.
    spawn_min: Tuple[float, float] = (-1.0, -1.0)
    spawn_max: Tuple[float, float] = (0.0, 1.0)

    def validate(self) -> None:
        for name in ("mass", "support_radius", "rest_density"):
            if not float(getattr(self, name)) > 0.0:
                raise ValueError(f"{name} must be > 0")

        for name in ("stiffness", "viscosity"):
            if float(getattr(self, name)) < 0.0:
                raise ValueError(f"{name} must be >= 0")

        if self.bucket_count is not None and int(self.bucket_count) <= 0:
            raise ValueError("bucket_count must be > 0 (or None)")

        if len(self.spawn_min) != 2 or len(self.spawn_max) != 2:
            raise ValueError("spawn_min/spawn_max must have 2 components")

        if not all(lo < hi for lo, hi in zip(self.spawn_min, self.spawn_max)):
            raise ValueError("spawn_min must be < spawn_max componentwise")

    def buckets_for(self, n: int) -> int:
        return int(n) if self.bucket_count is None else int(self.bucket_count)


ParticleTransform = Callable[[ParticleKinematics], None]


class ParticleSystem:
    """
    Fixed-size 2-D SPH particle system.

    One call to advance(dt) runs, in this order:
      1) density and pressure for every particle,
      2) acceleration for every particle,
      3) grid clear,
      4) per particle: integrate, then reinsert into the grid.

    Phases 1 and 2 always see a grid built from exactly the current
    positions: the grid is filled at construction, refilled during phase 4,
    and re-indexed after constrain().
    """

    def __init__(
        self,
        count: int,
        config: FluidConfig | None = None,
        rng: np.random.Generator | None = None,
    ):
        cfg = config if config is not None else FluidConfig()
        cfg.validate()

        state = ParticleState.zeros(count)
        rng = rng if rng is not None else np.random.default_rng()
        lo = np.asarray(cfg.spawn_min, dtype=np.float64)
        hi = np.asarray(cfg.spawn_max, dtype=np.float64)
        state.pos[:] = rng.uniform(lo, hi, size=(state.n, 2))

        self._attach(state, cfg)

    @classmethod
    def from_positions(
        cls,
        positions,
        velocities=None,
        config: FluidConfig | None = None,
    ) -> "ParticleSystem":
        """
        Build a system with an explicit initial placement (no randomness).

        Smoothed velocities start at zero, as for randomized construction.
        """
        cfg = config if config is not None else FluidConfig()
        cfg.validate()

        pos = np.array(positions, dtype=np.float64)
        if pos.size == 0:
            pos = pos.reshape(0, 2)
        if pos.ndim != 2 or pos.shape[1] != 2:
            raise ValueError(f"positions shape {pos.shape} != (N, 2)")

        state = ParticleState.zeros(pos.shape[0])
        state.pos[:] = pos

        if velocities is not None:
            vel = np.array(velocities, dtype=np.float64).reshape(pos.shape)
            state.vel[:] = vel

        state.validate()

        system = cls.__new__(cls)
        system._attach(state, cfg)
        return system

    def _attach(self, state: ParticleState, cfg: FluidConfig) -> None:
        self._cfg = cfg
        self._state = state
        self._grid = SpatialHashGrid(
            support_radius=cfg.support_radius,
            bucket_count=cfg.buckets_for(state.n),
        )
        self._reindex()

    @property
    def config(self) -> FluidConfig:
        return self._cfg

    def __len__(self) -> int:
        return self._state.n

    def _reindex(self) -> None:
        if self._state.n:
            self._grid.build(self._state.pos, self._state.next)

    def advance(self, dt: float) -> None:
        """
        Advance the simulation by exactly one step of size dt (seconds).

        dt = 0 recomputes density, pressure and acceleration and leaves
        positions and velocities where they are; the smoothed velocity is
        still relaxed towards the velocity.
        """
        dt = float(dt)
        if not dt >= 0.0:
            raise ValueError("dt must be >= 0")

        cfg = self._cfg
        state = self._state
        grid = self._grid
        h = float(cfg.support_radius)

        compute_density_pressure(
            state,
            grid,
            mass=cfg.mass,
            h=h,
            rho0=cfg.rest_density,
            k=cfg.stiffness,
        )

        compute_acceleration(
            state,
            grid,
            mass=cfg.mass,
            h=h,
            mu=cfg.viscosity,
            g=cfg.gravity,
        )

        # Reinsertion mutates shared bucket heads, so this loop stays serial.
        grid.clear()
        for i in range(state.n):
            advance_kinematics(state.pos[i], state.vel[i], state.evel[i], state.acc[i], dt)
            state.next[i] = grid.insert(state.pos[i], i)

    def constrain(self, transform: ParticleTransform) -> None:
        """
        Apply `transform` to every particle's kinematics in index order.

        This is the only way for outside code to mutate particles (e.g. to
        keep them inside a box, see core.boundary). The grid is re-indexed
        afterwards since positions may have moved between cells.
        """
        for i in range(self._state.n):
            transform(ParticleKinematics(self._state, i))

        self._reindex()

    def iterate(self) -> Iterator[Tuple[KinematicsSnapshot, DensityPressure, np.ndarray]]:
        """
        Yield (kinematics, density/pressure, acceleration) per particle in
        index order. Arrays are read-only views; nothing is copied.
        """
        pos = read_only(self._state.pos)
        vel = read_only(self._state.vel)
        evel = read_only(self._state.evel)
        acc = read_only(self._state.acc)

        for i in range(self._state.n):
            yield (
                KinematicsSnapshot(pos[i], vel[i], evel[i]),
                DensityPressure(float(self._state.rho[i]), float(self._state.p[i])),
                acc[i],
            )

    def neighbours(self, index: int) -> Iterator[Tuple[int, np.ndarray, float]]:
        """Lazy neighbor query around particle `index`'s current position."""
        state = self._state
        return self._grid.query_neighbours(state.pos[int(index)], state.pos, state.next)

    def neighbour_counts(self) -> np.ndarray:
        counts = np.zeros((self._state.n,), dtype=np.int64)
        for i in range(self._state.n):
            counts[i] = sum(1 for _ in self.neighbours(i))
        return counts
