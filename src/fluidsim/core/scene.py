from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from fluidsim.core.simulator import FluidConfig, ParticleSystem


@dataclass(frozen=True)
class RunSettings:
    """Driver-side settings: stepping cadence and the reflecting box."""

    step: float = 0.002
    substeps: int = 5
    frames: int = 100
    log_every: int = 10

    domain_min: Tuple[float, float] = (-1.0, -1.0)
    domain_max: Tuple[float, float] = (1.0, 1.0)
    restitution: float = 0.5

    def validate(self) -> None:
        if not float(self.step) > 0.0:
            raise ValueError("time.step must be > 0")
        if int(self.substeps) < 1:
            raise ValueError("time.substeps must be >= 1")
        if int(self.frames) < 0:
            raise ValueError("time.frames must be >= 0")


def _pair(value, name: str) -> Tuple[float, float]:
    arr = np.asarray(value, dtype=np.float64)
    if arr.shape != (2,):
        raise ValueError(f"{name} must have 2 components")
    return float(arr[0]), float(arr[1])


def config_from_scene(scene: dict) -> FluidConfig:
    """
    Read the fluid constants from a scene dict (as loaded from JSON).

    Recognized keys (all optional, defaults from FluidConfig):
      material.mass, material.rest_density, material.stiffness,
      material.viscosity, neighbors.support_radius, neighbors.bucket_count,
      forces.gravity, spawn.min, spawn.max
    """
    defaults = FluidConfig()

    material = scene.get("material", {})
    neighbors = scene.get("neighbors", {})
    forces = scene.get("forces", {})
    spawn = scene.get("spawn", {})

    bucket_count = neighbors.get("bucket_count", defaults.bucket_count)

    cfg = FluidConfig(
        mass=float(material.get("mass", defaults.mass)),
        support_radius=float(neighbors.get("support_radius", defaults.support_radius)),
        rest_density=float(material.get("rest_density", defaults.rest_density)),
        stiffness=float(material.get("stiffness", defaults.stiffness)),
        viscosity=float(material.get("viscosity", defaults.viscosity)),
        gravity=float(forces.get("gravity", defaults.gravity)),
        bucket_count=None if bucket_count is None else int(bucket_count),
        spawn_min=_pair(spawn.get("min", defaults.spawn_min), "spawn.min"),
        spawn_max=_pair(spawn.get("max", defaults.spawn_max), "spawn.max"),
    )
    cfg.validate()
    return cfg


def run_settings_from_scene(scene: dict) -> RunSettings:
    defaults = RunSettings()

    time_cfg = scene.get("time", {})
    domain = scene.get("domain", {})

    domain_type = str(domain.get("type", "box")).lower()
    if domain_type != "box":
        raise ValueError(f"unsupported domain type: {domain_type!r}")

    settings = RunSettings(
        step=float(time_cfg.get("step", defaults.step)),
        substeps=int(time_cfg.get("substeps", defaults.substeps)),
        frames=int(time_cfg.get("frames", defaults.frames)),
        log_every=int(time_cfg.get("log_every", defaults.log_every)),
        domain_min=_pair(domain.get("min", defaults.domain_min), "domain.min"),
        domain_max=_pair(domain.get("max", defaults.domain_max), "domain.max"),
        restitution=float(domain.get("restitution", defaults.restitution)),
    )
    settings.validate()
    return settings


def build_scene_system(scene: dict) -> ParticleSystem:
    """
    Create a randomized particle system from a scene dict.

    spawn.count sets the particle count (default 300); spawn.seed, when
    present, makes the initial placement reproducible.
    """
    cfg = config_from_scene(scene)

    spawn = scene.get("spawn", {})
    count = int(spawn.get("count", 300))
    seed = spawn.get("seed", None)
    rng = np.random.default_rng(None if seed is None else int(seed))

    return ParticleSystem(count, config=cfg, rng=rng)
