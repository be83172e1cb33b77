import numpy as np
import pytest

from fluidsim.core.boundary import box_reflection
from fluidsim.core.simulator import ParticleSystem


def _kinematics(system):
    return [(k.pos.copy(), k.vel.copy()) for k, _, _ in system.iterate()]


def test_particle_past_right_wall_is_clamped_and_reflected():
    system = ParticleSystem.from_positions([[1.05, 0.0]], velocities=[[2.0, 0.0]])
    system.constrain(box_reflection())

    (pos, vel), = _kinematics(system)
    assert np.allclose(pos, [1.0, 0.0])
    assert np.allclose(vel, [-1.0, 0.0])


def test_lower_walls_reflect_each_axis_independently():
    system = ParticleSystem.from_positions([[-1.2, -1.0]], velocities=[[-4.0, -1.0]])
    system.constrain(box_reflection(restitution=0.25))

    (pos, vel), = _kinematics(system)
    assert np.allclose(pos, [-1.0, -1.0])
    assert np.allclose(vel, [1.0, 0.25])


def test_interior_particles_are_untouched():
    system = ParticleSystem.from_positions([[0.2, -0.3]], velocities=[[5.0, -7.0]])
    system.constrain(box_reflection())

    (pos, vel), = _kinematics(system)
    assert np.allclose(pos, [0.2, -0.3])
    assert np.allclose(vel, [5.0, -7.0])


def test_custom_box_bounds():
    reflect = box_reflection(lo=(0.0, 0.0), hi=(2.0, 0.5), restitution=1.0)
    system = ParticleSystem.from_positions([[2.5, 0.7]], velocities=[[1.0, 3.0]])
    system.constrain(reflect)

    (pos, vel), = _kinematics(system)
    assert np.allclose(pos, [2.0, 0.5])
    assert np.allclose(vel, [-1.0, -3.0])


def test_particles_stay_in_box_during_a_run():
    system = ParticleSystem(100, rng=np.random.default_rng(2))
    reflect = box_reflection()

    for _ in range(20):
        system.advance(0.002)
        system.constrain(reflect)

    pos = np.array([k.pos for k, _, _ in system.iterate()])
    assert np.all(np.isfinite(pos))
    assert np.all(pos >= -1.0) and np.all(pos <= 1.0)


def test_degenerate_box_is_rejected():
    with pytest.raises(ValueError):
        box_reflection(lo=(1.0, 0.0), hi=(1.0, 1.0))
    with pytest.raises(ValueError):
        box_reflection(lo=(0.0,), hi=(1.0,))
