"""Tests for the physics world adapter."""

import asyncio
import numpy as np
import pytest

from zonedrive.errors import InvalidHandle, NotInitialized
from zonedrive.physics import BodyHandle, Cuboid, PhysicsConfig, PhysicsWorld
from zonedrive.physics.math3d import quat_from_axis_angle, quat_rotate, yaw_of
from zonedrive.world.scene import VisualNode

CHASSIS = {"width": 1.3, "height": 0.4, "length": 2.0}


def _world(config: PhysicsConfig | None = None) -> PhysicsWorld:
    physics = PhysicsWorld(config)
    asyncio.run(physics.initialize())
    return physics


class TestInitialization:
    """Test the initialization gate."""

    def test_use_before_initialize(self):
        """Every operation fails until initialize() has completed."""
        physics = PhysicsWorld()

        with pytest.raises(NotInitialized):
            physics.create_ground()
        with pytest.raises(NotInitialized):
            physics.step()

    def test_not_initialized_is_runtime_error(self):
        """Callers catching RuntimeError also see the init failure."""
        with pytest.raises(RuntimeError):
            PhysicsWorld().create_dynamic_body(Cuboid(1, 1, 1), 1.0)

    def test_initialize_is_idempotent(self):
        """A second initialize() does nothing."""
        physics = _world()
        physics.create_ground()
        asyncio.run(physics.initialize())

        assert physics.is_initialized
        assert physics.body_count == 1
        assert np.allclose(physics.gravity, [0, -9.81, 0])


class TestHandles:
    """Test handle validation."""

    def test_foreign_handle_rejected(self):
        """A handle from another world is invalid here."""
        first = _world()
        second = _world()
        handle = first.create_dynamic_body(Cuboid(0.5, 0.5, 0.5), 1.0)

        with pytest.raises(InvalidHandle):
            second.get_translation(handle)

    def test_unknown_index_rejected(self):
        """An index outside the arena is invalid."""
        physics = _world()
        handle = physics.create_dynamic_body(Cuboid(0.5, 0.5, 0.5), 1.0)
        bogus = BodyHandle(handle.world_id, 42)

        with pytest.raises(InvalidHandle):
            physics.apply_force(bogus, (1, 0, 0))

    def test_static_body_cannot_be_pushed(self):
        """Forces and velocity writes need a dynamic body."""
        physics = _world()
        ground = physics.create_ground()

        with pytest.raises(InvalidHandle):
            physics.apply_force(ground, (0, 1, 0))
        with pytest.raises(InvalidHandle):
            physics.set_velocity(ground, (0, 1, 0))
        assert np.allclose(physics.get_velocity(ground), 0.0)

    def test_invalid_handle_is_lookup_error(self):
        physics = _world()
        with pytest.raises(LookupError):
            physics.get_rotation(BodyHandle(-1, 0))

    def test_dynamic_body_needs_mass(self):
        physics = _world()
        with pytest.raises(ValueError):
            physics.create_dynamic_body(Cuboid(0.5, 0.5, 0.5), 0.0)


class TestStepping:
    """Test integration, force accumulation and contacts."""

    def test_fixed_timestep(self):
        """Physics time advances by the fixed step regardless of caller."""
        physics = _world(PhysicsConfig(fixed_timestep=0.01))
        for _ in range(3):
            physics.step()

        assert physics.step_count == 3
        assert physics.time == pytest.approx(0.03)

    def test_chassis_settles_on_ground(self):
        """A chassis dropped from 2m comes to rest on the ground slab."""
        physics = _world()
        physics.create_ground(200)
        chassis = physics.create_vehicle_chassis((0, 2, 0), CHASSIS)

        for _ in range(180):
            physics.step()

        position = physics.get_translation(chassis)
        # Ground top at 0.1 plus half the chassis height
        assert position[1] == pytest.approx(0.3, abs=1e-3)
        assert abs(physics.get_velocity(chassis)[1]) < 1e-6

    def test_force_lasts_one_step(self):
        """Applied forces are cleared after the step that used them."""
        physics = _world(PhysicsConfig(gravity=(0, 0, 0)))
        box = physics.create_dynamic_body(Cuboid(0.5, 0.5, 0.5), 2.0, (0, 10, 0))

        physics.apply_force(box, (2, 0, 0))
        physics.step()
        after_push = physics.get_velocity(box)
        physics.step()

        assert after_push[0] == pytest.approx(1.0 / 60.0)
        assert np.allclose(physics.get_velocity(box), after_push)

    def test_forces_accumulate_within_step(self):
        physics = _world(PhysicsConfig(gravity=(0, 0, 0)))
        box = physics.create_dynamic_body(Cuboid(0.5, 0.5, 0.5), 1.0)

        physics.apply_force(box, (1, 0, 0))
        physics.apply_force(box, {"x": 1, "y": 0, "z": 0})
        physics.step()

        assert physics.get_velocity(box)[0] == pytest.approx(2.0 / 60.0)

    def test_yaw_torque(self):
        """Torque about +Y turns the body to the left."""
        physics = _world(PhysicsConfig(gravity=(0, 0, 0)))
        box = physics.create_dynamic_body(Cuboid(0.5, 0.5, 0.5), 2.0)

        physics.apply_torque(box, (0, 1, 0))
        physics.step()

        # I_yy = m/12 * (1^2 + 1^2) = 1/3
        assert physics.get_angular_velocity(box)[1] == pytest.approx(3.0 / 60.0)
        for _ in range(30):
            physics.step()
        assert yaw_of(physics.get_rotation(box)) > 0

    def test_wall_stops_body(self):
        """A box driving into a static wall is pushed back out."""
        physics = _world(PhysicsConfig(gravity=(0, 0, 0)))
        physics.create_static_body(Cuboid(1, 1, 1), (3, 10, 0))
        box = physics.create_dynamic_body(Cuboid(0.5, 0.5, 0.5), 1.0, (0, 10, 0))
        physics.set_velocity(box, (5, 0, 0))

        for _ in range(40):
            physics.step()

        assert physics.get_translation(box)[0] <= 1.5 + 1e-9
        assert physics.get_velocity(box)[0] <= 0.0

    def test_visual_follows_body(self):
        """Attached visuals receive the post-step transform."""
        physics = _world()
        physics.create_ground()
        visual = VisualNode("crate")
        box = physics.create_dynamic_body(Cuboid(0.5, 0.5, 0.5), 1.0, (0, 5, 0), visual=visual)

        physics.step()

        assert np.allclose(visual.position, physics.get_translation(box))
        assert np.allclose(visual.quaternion, physics.get_rotation(box))
        assert physics.get_visual(box) is visual

    def test_detach_visual(self):
        physics = _world()
        visual = VisualNode("crate", (7, 7, 7))
        box = physics.create_dynamic_body(Cuboid(0.5, 0.5, 0.5), 1.0, (0, 5, 0), visual=visual)

        physics.attach_visual(box, None)
        physics.step()

        assert np.allclose(visual.position, [7, 7, 7])


class TestStateAccess:
    """Test direct state reads and writes."""

    def test_set_velocity(self):
        physics = _world()
        box = physics.create_dynamic_body(Cuboid(0.5, 0.5, 0.5), 1.0)
        physics.set_velocity(box, (1, 2, 3))

        assert np.allclose(physics.get_velocity(box), [1, 2, 3])

    def test_returned_arrays_are_copies(self):
        """Mutating a returned vector does not change the body."""
        physics = _world()
        box = physics.create_dynamic_body(Cuboid(0.5, 0.5, 0.5), 1.0, (1, 2, 3))
        position = physics.get_translation(box)
        position[:] = 0.0

        assert np.allclose(physics.get_translation(box), [1, 2, 3])

    def test_set_rotation(self):
        """Rotation writes are normalized and drive the body axes."""
        physics = _world()
        box = physics.create_dynamic_body(Cuboid(0.5, 0.5, 0.5), 1.0)
        q = quat_from_axis_angle(np.array([0.0, 1.0, 0.0]), np.pi / 2)
        physics.set_rotation(box, q * 2.0)

        rotation = physics.get_rotation(box)
        assert np.linalg.norm(rotation) == pytest.approx(1.0)
        assert np.allclose(quat_rotate(rotation, np.array([0.0, 0.0, -1.0])), [-1, 0, 0])

    def test_bad_vector_shape(self):
        physics = _world()
        box = physics.create_dynamic_body(Cuboid(0.5, 0.5, 0.5), 1.0)
        with pytest.raises(ValueError):
            physics.set_velocity(box, (1, 2))

    def test_get_state(self):
        physics = _world()
        physics.create_ground()
        physics.create_vehicle_chassis((0, 2, 0), CHASSIS)
        state = physics.get_state()

        assert state["initialized"]
        assert state["bodies"] == 2
        assert state["dynamic_bodies"] == 1
