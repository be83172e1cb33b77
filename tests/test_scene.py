import numpy as np
import pytest

from fluidsim.core.scene import (
    RunSettings,
    build_scene_system,
    config_from_scene,
    run_settings_from_scene,
)
from fluidsim.core.simulator import FluidConfig


def test_empty_scene_uses_defaults():
    assert config_from_scene({}) == FluidConfig()
    assert run_settings_from_scene({}) == RunSettings()


def test_scene_overrides_constants():
    scene = {
        "material": {"mass": 0.05, "rest_density": 1000.0, "stiffness": 500.0, "viscosity": 2.0},
        "neighbors": {"support_radius": 0.1, "bucket_count": 64},
        "forces": {"gravity": 9.81},
        "spawn": {"min": [0.0, 0.0], "max": [0.5, 0.25]},
    }
    cfg = config_from_scene(scene)

    assert cfg.mass == 0.05
    assert cfg.rest_density == 1000.0
    assert cfg.stiffness == 500.0
    assert cfg.viscosity == 2.0
    assert cfg.support_radius == 0.1
    assert cfg.bucket_count == 64
    assert cfg.gravity == 9.81
    assert cfg.spawn_min == (0.0, 0.0)
    assert cfg.spawn_max == (0.5, 0.25)


def test_run_settings_from_scene():
    scene = {
        "time": {"step": 0.001, "substeps": 3, "frames": 7, "log_every": 2},
        "domain": {"type": "box", "min": [-2, -1], "max": [2, 1], "restitution": 0.8},
    }
    settings = run_settings_from_scene(scene)

    assert settings.step == 0.001
    assert settings.substeps == 3
    assert settings.frames == 7
    assert settings.log_every == 2
    assert settings.domain_min == (-2.0, -1.0)
    assert settings.domain_max == (2.0, 1.0)
    assert settings.restitution == 0.8


def test_seeded_scene_builds_reproducible_system():
    scene = {"spawn": {"count": 25, "seed": 42}}
    a = build_scene_system(scene)
    b = build_scene_system(scene)

    pa = np.array([k.pos for k, _, _ in a.iterate()])
    pb = np.array([k.pos for k, _, _ in b.iterate()])
    assert len(a) == 25
    assert np.array_equal(pa, pb)


@pytest.mark.parametrize(
    "scene",
    [
        {"material": {"mass": 0.0}},
        {"material": {"rest_density": -1.0}},
        {"material": {"viscosity": -0.1}},
        {"neighbors": {"support_radius": 0.0}},
        {"neighbors": {"bucket_count": 0}},
        {"spawn": {"min": [0.0, 0.0], "max": [0.0, 1.0]}},
        {"spawn": {"min": [0.0, 0.0, 0.0]}},
    ],
)
def test_invalid_fluid_constants_raise(scene):
    with pytest.raises(ValueError):
        config_from_scene(scene)


@pytest.mark.parametrize(
    "scene",
    [
        {"domain": {"type": "sphere"}},
        {"time": {"step": 0.0}},
        {"time": {"substeps": 0}},
    ],
)
def test_invalid_run_settings_raise(scene):
    with pytest.raises(ValueError):
        run_settings_from_scene(scene)
