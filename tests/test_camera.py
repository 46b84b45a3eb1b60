"""Tests for the perspective camera, orbit controller and transform broadcast."""

import numpy as np
import pytest

from crystalscene.camera import (
    _KEY_ROTATION_STEP,
    _KEY_ZOOM_FACTOR,
    CameraTransform,
    CameraTransformBroadcast,
    OrbitController,
    PerspectiveCamera,
    _inverse_pose,
)
from crystalscene.signal import Signal


class TestPerspectiveCamera:
    def test_resize_sets_aspect(self):
        camera = PerspectiveCamera()
        camera.resize(800, 400)
        assert camera.aspect == pytest.approx(2.0)

    def test_resize_rejects_zero(self):
        with pytest.raises(ValueError, match="positive"):
            PerspectiveCamera().resize(0, 100)

    @pytest.mark.parametrize("kwargs", [
        {"fov": 0}, {"fov": 180}, {"aspect": 0}, {"near": 0}, {"near": 10, "far": 5},
    ])
    def test_invalid_parameters(self, kwargs):
        with pytest.raises(ValueError):
            PerspectiveCamera(**kwargs)

    def test_projection_maps_near_and_far(self):
        camera = PerspectiveCamera(fov=90, near=1.0, far=10.0)
        proj = camera.projection_matrix()
        for z, ndc in [(-1.0, -1.0), (-10.0, 1.0)]:
            clip = proj @ np.array([0.0, 0.0, z, 1.0])
            assert clip[2] / clip[3] == pytest.approx(ndc)

    def test_projection_fov(self):
        """A point on the edge of a 90 degree frustum lands on the NDC edge."""
        proj = PerspectiveCamera(fov=90).projection_matrix()
        clip = proj @ np.array([0.0, 1.0, -1.0, 1.0])
        assert clip[1] / clip[3] == pytest.approx(1.0)


class TestOrbitController:
    def test_initial_position(self):
        controller = OrbitController(position=(0, 0, 5))
        np.testing.assert_allclose(controller.position, [0, 0, 5], atol=1e-12)
        assert controller.radius == pytest.approx(5.0)

    def test_rotation_faces_target(self):
        controller = OrbitController(position=(3, 4, 5), target=(1, 0, 0))
        forward = -controller.rotation[:, 2]
        direction = controller.target - controller.position
        np.testing.assert_allclose(forward, direction / np.linalg.norm(direction))

    def test_rotation_is_orthonormal(self):
        r = OrbitController(position=(1, 2, 3)).rotation
        np.testing.assert_allclose(r.T @ r, np.eye(3), atol=1e-12)
        assert np.linalg.det(r) == pytest.approx(1.0)

    def test_position_equals_target_rejected(self):
        with pytest.raises(ValueError, match="differ"):
            OrbitController(position=(1, 1, 1), target=(1, 1, 1))

    def test_bad_distance_limits(self):
        with pytest.raises(ValueError):
            OrbitController(min_distance=10, max_distance=1)

    def test_every_mutation_notifies(self):
        controller = OrbitController()
        calls = []
        controller.changed.subscribe(lambda: calls.append(1))
        controller.rotate(0.1, 0.0)
        controller.pan(0.1, 0.0)
        controller.zoom(1.5)
        controller.set_position(0, 1, 4)
        controller.look_at((0, 0, 0))
        controller.reset()
        controller.update()
        assert len(calls) == 7

    def test_zoom_clamped(self):
        controller = OrbitController(position=(0, 0, 5), min_distance=1, max_distance=10)
        controller.zoom(100)
        assert controller.radius == pytest.approx(1.0)
        controller.zoom(0.001)
        assert controller.radius == pytest.approx(10.0)

    def test_zoom_rejects_non_positive(self):
        with pytest.raises(ValueError):
            OrbitController().zoom(0)

    def test_rotate_keeps_radius(self):
        controller = OrbitController(position=(0, 0, 5))
        controller.rotate(0.7, -0.3)
        assert np.linalg.norm(controller.position) == pytest.approx(5.0)

    def test_polar_clamped_at_pole(self):
        controller = OrbitController()
        controller.rotate(0.0, -10.0)
        assert controller.polar > 0.0
        assert np.all(np.isfinite(controller.rotation))

    def test_pan_moves_target_and_camera(self):
        controller = OrbitController(position=(0, 0, 5))
        controller.pan(1.0, 0.0)
        np.testing.assert_allclose(controller.target, [1, 0, 0], atol=1e-12)
        np.testing.assert_allclose(controller.position, [1, 0, 5], atol=1e-12)

    def test_reset(self):
        controller = OrbitController(position=(0, 0, 5))
        controller.rotate(1.0, 0.5)
        controller.pan(2.0, 1.0)
        controller.reset()
        np.testing.assert_allclose(controller.position, [0, 0, 5], atol=1e-12)
        np.testing.assert_allclose(controller.target, [0, 0, 0])

    def test_pose_matrix(self):
        controller = OrbitController(position=(1, 2, 3))
        m = controller.pose_matrix()
        np.testing.assert_allclose(m[:3, 3], [1, 2, 3])
        np.testing.assert_allclose(m[:3, :3], controller.rotation)
        np.testing.assert_allclose(m[3], [0, 0, 0, 1])

    def test_scroll_zooms(self):
        controller = OrbitController(position=(0, 0, 5))
        controller.scroll(1)
        assert controller.radius == pytest.approx(5.0 / _KEY_ZOOM_FACTOR)

    def test_drag(self):
        controller = OrbitController()
        azimuth = controller.azimuth
        controller.drag(100, 0, 1000)
        assert controller.azimuth == pytest.approx(azimuth - 2 * np.pi * 0.1)

    def test_drag_rejects_zero_height(self):
        with pytest.raises(ValueError):
            OrbitController().drag(1, 1, 0)

    def test_apply_key(self):
        controller = OrbitController()
        azimuth = controller.azimuth
        assert controller.apply_key("right")
        assert controller.azimuth == pytest.approx(azimuth + _KEY_ROTATION_STEP)
        assert controller.apply_key("+")
        assert not controller.apply_key("q")


class TestInversePose:
    def test_matches_numerical_inverse(self):
        controller = OrbitController(position=(2, -1, 4), target=(0.5, 0.2, 0))
        inv = _inverse_pose(*controller.decompose())
        np.testing.assert_allclose(inv, np.linalg.inv(controller.pose_matrix()), atol=1e-12)

    def test_with_scale(self):
        rotation = np.eye(3)
        inv = _inverse_pose(np.array([1.0, 2.0, 3.0]), rotation, np.array([2.0, 2.0, 2.0]))
        pose = np.eye(4)
        pose[:3, :3] = 2.0 * rotation
        pose[:3, 3] = [1, 2, 3]
        np.testing.assert_allclose(inv @ pose, np.eye(4), atol=1e-12)


class TestCameraTransform:
    def test_default_identity(self):
        np.testing.assert_array_equal(CameraTransform().matrix, np.eye(4))

    def test_read_only(self):
        transform = CameraTransform(np.eye(4))
        with pytest.raises(ValueError):
            transform.matrix[0, 0] = 2.0

    def test_copies_input(self):
        m = np.eye(4)
        transform = CameraTransform(m)
        m[0, 3] = 9.0
        assert transform.matrix[0, 3] == 0.0

    def test_bad_shape(self):
        with pytest.raises(ValueError, match="shape"):
            CameraTransform(np.eye(3))

    def test_equality_and_unhashable(self):
        assert CameraTransform(np.eye(4)) == CameraTransform(np.eye(4))
        with pytest.raises(TypeError):
            hash(CameraTransform())

    def test_apply_and_inverse(self):
        controller = OrbitController(position=(0, 0, 5))
        transform = CameraTransform(_inverse_pose(*controller.decompose()))
        # The target sits straight ahead, 5 units down -z.
        np.testing.assert_allclose(transform.apply([[0, 0, 0]]), [[0, 0, -5]], atol=1e-12)
        np.testing.assert_allclose(transform.inverse(), controller.pose_matrix(), atol=1e-12)

    def test_rotation_strips_scale(self):
        m = np.eye(4)
        m[:3, :3] = np.diag([0.5, 0.5, 0.5])
        np.testing.assert_allclose(CameraTransform(m).rotation, np.eye(3))

    def test_quaternion_identity(self):
        np.testing.assert_allclose(CameraTransform().quaternion, [0, 0, 0, 1], atol=1e-12)


class TestCameraTransformBroadcast:
    def test_publishes_on_first_notification(self):
        controller = OrbitController()
        broadcast = CameraTransformBroadcast(controller)
        received = []
        broadcast.subscribe(received.append)
        controller.update()
        assert len(received) == 1
        assert broadcast.current is received[0]

    def test_unchanged_pose_publishes_nothing(self):
        """A second notification with the same pose is suppressed."""
        controller = OrbitController()
        broadcast = CameraTransformBroadcast(controller)
        received = []
        broadcast.subscribe(received.append)
        controller.update()
        controller.update()
        assert len(received) == 1
        assert broadcast.publish_count == 1

    def test_changed_pose_publishes(self):
        controller = OrbitController()
        broadcast = CameraTransformBroadcast(controller)
        received = []
        broadcast.subscribe(received.append)
        controller.update()
        controller.rotate(0.2, 0.0)
        assert len(received) == 2
        assert received[0] != received[1]

    def test_published_matrix_is_inverse_pose(self):
        controller = OrbitController(position=(1, 2, 3))
        broadcast = CameraTransformBroadcast(controller)
        controller.update()
        np.testing.assert_allclose(
            broadcast.current.matrix @ controller.pose_matrix(), np.eye(4), atol=1e-12,
        )

    def test_snapshots_are_independent(self):
        controller = OrbitController()
        broadcast = CameraTransformBroadcast(controller)
        received = []
        broadcast.subscribe(received.append)
        controller.update()
        first = received[0].matrix.copy()
        controller.rotate(0.5, 0.0)
        np.testing.assert_array_equal(received[0].matrix, first)
        assert not received[0].matrix.flags.writeable

    def test_unsubscribe(self):
        controller = OrbitController()
        broadcast = CameraTransformBroadcast(controller)
        received = []
        broadcast.subscribe(received.append)
        broadcast.unsubscribe(received.append)
        controller.update()
        assert received == []

    def test_disconnect(self):
        controller = OrbitController()
        broadcast = CameraTransformBroadcast(controller)
        broadcast.disconnect()
        controller.update()
        assert broadcast.current is None

    def test_custom_signal(self):
        controller = OrbitController()
        signal = Signal("custom")
        broadcast = CameraTransformBroadcast(controller, signal)
        assert broadcast.transform_changed is signal
