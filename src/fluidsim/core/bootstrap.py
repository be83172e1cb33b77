"""
Headless driver for the 2-D SPH fluid.

What this file does:
- Loads an optional JSON scene (fluid constants, spawn, stepping, box).
- Builds a randomized particle system.
- Runs frames of `substeps` x (advance(step); constrain(box reflection)),
  the same cadence an interactive renderer would use.
- Prints per-frame diagnostics (rho/p/v/neighbors) and stops early if the
  explicit integrator has blown up.

Rendering is not part of this package; a renderer would read the same
ParticleSystem.iterate() output that the diagnostics use.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

from fluidsim.core.boundary import box_reflection
from fluidsim.core.diagnostics import compute_step_diagnostics
from fluidsim.core.scene import build_scene_system, run_settings_from_scene


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv

    if len(argv) > 1:
        print("Usage: fluidsim [scene.json]")
        return 2

    scene: dict = {}
    if argv:
        scene_path = Path(argv[0]).resolve()
        if not scene_path.exists():
            print(f"[ERROR] scene file not found: {scene_path}")
            return 1

        with scene_path.open("r", encoding="utf-8") as f:
            scene = json.load(f)

    system = build_scene_system(scene)
    settings = run_settings_from_scene(scene)
    cfg = system.config

    print(
        f"[BOOT] particles={len(system)} h={cfg.support_radius} m={cfg.mass} "
        f"rho0={cfg.rest_density} k={cfg.stiffness} mu={cfg.viscosity} g={cfg.gravity}"
    )
    print(
        f"[BOOT] step={settings.step} substeps={settings.substeps} frames={settings.frames} "
        f"box={settings.domain_min}..{settings.domain_max} restitution={settings.restitution}"
    )

    reflect = box_reflection(settings.domain_min, settings.domain_max, settings.restitution)
    log_every = max(1, settings.log_every)

    for frame in range(settings.frames):
        for _ in range(settings.substeps):
            system.advance(settings.step)
            system.constrain(reflect)

        diag = compute_step_diagnostics(step=frame + 1, dt=settings.step, system=system)

        if not diag.finite:
            print(f"[WARN] frame {diag.step:04d}: non-finite positions/velocities; reduce step or stiffness")
            return 1

        if (frame == 0) or ((frame + 1) % log_every == 0):
            print(
                f"[STEP {diag.step:04d}] dt={diag.dt:.3e} "
                f"|v|max={diag.v_max:.3e} "
                f"rho(min/avg/max)={diag.rho_min:.2f}/{diag.rho_mean:.2f}/{diag.rho_max:.2f} "
                f"err% (avg)={100.0 * diag.rho_rel_err_mean:.2f} "
                f"p(min/avg/max)={diag.p_min:.2f}/{diag.p_mean:.2f}/{diag.p_max:.2f} "
                f"neigh(min/avg/max)={diag.neigh_min}/{diag.neigh_mean:.1f}/{diag.neigh_max}"
            )

    print("[BOOT] done")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
