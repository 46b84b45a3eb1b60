"""Camera, orbit controller, and camera-transform broadcast.

The orbit controller owns the camera pose and announces every change
on its :attr:`OrbitController.changed` signal.  A
:class:`CameraTransformBroadcast` listens to that signal, computes the
inverse of the pose (the "world moves, camera stays" transform, i.e.
the view matrix) and republishes it, only when it actually changed,
to overlays such as the lattice-axis gizmo.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np
from scipy.spatial.transform import Rotation

from crystalscene.signal import Handler, Signal

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Orbit controller constants
# ---------------------------------------------------------------------------

_KEY_ROTATION_STEP = 0.05  # radians (~3 degrees) per key press
_KEY_ZOOM_FACTOR = 1.1  # multiplicative zoom per key press / scroll step
_KEY_PAN_FRACTION = 0.05  # fraction of the orbit radius per key press
_POLAR_EPS = 1e-6  # keeps the camera off the poles, where "up" is undefined
_WORLD_UP = np.array([0.0, 1.0, 0.0])


# ---------------------------------------------------------------------------
# Perspective camera
# ---------------------------------------------------------------------------

@dataclass
class PerspectiveCamera:
    """Projection parameters of a perspective camera.

    The pose is owned by :class:`OrbitController`; this class only
    describes the view frustum.

    Attributes:
        fov: Vertical field of view in degrees.
        aspect: Viewport width divided by height.
        near: Near clipping distance.
        far: Far clipping distance.
    """

    fov: float = 75.0
    aspect: float = 1.0
    near: float = 0.1
    far: float = 1000.0

    def __post_init__(self) -> None:
        if not 0 < self.fov < 180:
            raise ValueError(f"fov must be in (0, 180), got {self.fov}")
        if self.aspect <= 0:
            raise ValueError(f"aspect must be positive, got {self.aspect}")
        if not 0 < self.near < self.far:
            raise ValueError(
                f"need 0 < near < far, got near={self.near}, far={self.far}"
            )

    def resize(self, width: float, height: float) -> PerspectiveCamera:
        """Match the aspect ratio to a ``width`` x ``height`` viewport."""
        if width <= 0 or height <= 0:
            raise ValueError(
                f"viewport size must be positive, got {width}x{height}"
            )
        self.aspect = width / height
        return self

    def projection_matrix(self) -> np.ndarray:
        """OpenGL-style ``(4, 4)`` perspective projection matrix."""
        f = 1.0 / np.tan(np.radians(self.fov) / 2.0)
        n, fa = self.near, self.far
        return np.array([
            [f / self.aspect, 0.0, 0.0, 0.0],
            [0.0, f, 0.0, 0.0],
            [0.0, 0.0, (fa + n) / (n - fa), 2.0 * fa * n / (n - fa)],
            [0.0, 0.0, -1.0, 0.0],
        ])


# ---------------------------------------------------------------------------
# Orbit controller
# ---------------------------------------------------------------------------

def _look_at_rotation(position: np.ndarray, target: np.ndarray) -> np.ndarray:
    """Camera-to-world rotation for a camera at *position* facing *target*.

    Columns are the camera's right, up and backward axes; the camera
    looks along its local -z.
    """
    back = position - target
    back = back / np.linalg.norm(back)
    right = np.cross(_WORLD_UP, back)
    right_len = np.linalg.norm(right)
    if right_len < 1e-12:
        # Looking straight up or down; pick any horizontal right axis.
        right = np.array([1.0, 0.0, 0.0])
    else:
        right = right / right_len
    up = np.cross(back, right)
    return np.column_stack([right, up, back])


class OrbitController:
    """Orbit a camera around a target point.

    The pose is stored in spherical coordinates about :attr:`target`
    (y is up): *radius*, *azimuth* about the y axis, and *polar* angle
    from the +y axis.  Every method that changes the pose publishes on
    :attr:`changed`; :meth:`update` publishes unconditionally.

    Args:
        position: Initial camera position.
        target: Point the camera orbits and looks at.
        min_distance: Smallest allowed orbit radius.
        max_distance: Largest allowed orbit radius.
        rotate_speed: Drag sensitivity; a drag across the full viewport
            height turns the camera by ``2 * pi * rotate_speed``.
    """

    def __init__(
        self,
        position: Sequence[float] = (0.0, 0.0, 5.0),
        target: Sequence[float] = (0.0, 0.0, 0.0),
        *,
        min_distance: float = 0.01,
        max_distance: float = 1000.0,
        rotate_speed: float = 1.0,
    ) -> None:
        if not 0 < min_distance <= max_distance:
            raise ValueError(
                "need 0 < min_distance <= max_distance, got "
                f"{min_distance} and {max_distance}"
            )
        self.changed: Signal[None] = Signal("orbit_changed")
        self.min_distance = float(min_distance)
        self.max_distance = float(max_distance)
        self.rotate_speed = float(rotate_speed)
        self.target = np.asarray(target, dtype=float).copy()
        self.radius = 1.0
        self.azimuth = 0.0
        self.polar = np.pi / 2
        self._set_offset(np.asarray(position, dtype=float) - self.target)
        self._initial = (self.target.copy(), self.radius, self.azimuth, self.polar)

    def __repr__(self) -> str:
        return (
            f"OrbitController(position={self.position.tolist()}, "
            f"target={self.target.tolist()})"
        )

    def _set_offset(self, offset: np.ndarray) -> None:
        r = float(np.linalg.norm(offset))
        if r < 1e-12:
            raise ValueError("camera position must differ from the target")
        self.radius = float(np.clip(r, self.min_distance, self.max_distance))
        self.polar = float(np.arccos(np.clip(offset[1] / r, -1.0, 1.0)))
        self.polar = float(np.clip(self.polar, _POLAR_EPS, np.pi - _POLAR_EPS))
        self.azimuth = float(np.arctan2(offset[0], offset[2]))

    def _notify(self) -> None:
        self.changed.publish()

    # -- Pose queries --

    @property
    def position(self) -> np.ndarray:
        """Camera position in world coordinates (a new array)."""
        s = np.sin(self.polar)
        offset = self.radius * np.array([
            s * np.sin(self.azimuth),
            np.cos(self.polar),
            s * np.cos(self.azimuth),
        ])
        return self.target + offset

    @property
    def rotation(self) -> np.ndarray:
        """Camera-to-world rotation matrix, shape ``(3, 3)``."""
        return _look_at_rotation(self.position, self.target)

    @property
    def scale(self) -> np.ndarray:
        """Camera scale; always unit for an orbiting camera."""
        return np.ones(3)

    def decompose(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Return the pose as ``(position, rotation, scale)``."""
        return self.position, self.rotation, self.scale

    def pose_matrix(self) -> np.ndarray:
        """Camera-to-world ``(4, 4)`` matrix, ``T @ R @ S``."""
        position, rotation, scale = self.decompose()
        m = np.eye(4)
        m[:3, :3] = rotation * scale[np.newaxis, :]
        m[:3, 3] = position
        return m

    # -- Pose changes --

    def rotate(self, d_azimuth: float, d_polar: float) -> None:
        """Orbit by the given angle increments (radians)."""
        self.azimuth = float(self.azimuth + d_azimuth)
        self.polar = float(np.clip(self.polar + d_polar, _POLAR_EPS, np.pi - _POLAR_EPS))
        self._notify()

    def pan(self, dx: float, dy: float) -> None:
        """Shift camera and target along the screen right/up axes."""
        rotation = self.rotation
        self.target = self.target + dx * rotation[:, 0] + dy * rotation[:, 1]
        self._notify()

    def zoom(self, factor: float) -> None:
        """Move towards (``factor > 1``) or away from the target."""
        if factor <= 0:
            raise ValueError(f"zoom factor must be positive, got {factor}")
        self.radius = float(
            np.clip(self.radius / factor, self.min_distance, self.max_distance)
        )
        self._notify()

    def set_position(self, x: float, y: float, z: float) -> None:
        """Place the camera at ``(x, y, z)``, still facing the target."""
        self._set_offset(np.array([x, y, z], dtype=float) - self.target)
        self._notify()

    def look_at(self, target: Sequence[float]) -> None:
        """Orbit around a new *target*, keeping the camera where it is."""
        position = self.position
        self.target = np.asarray(target, dtype=float).copy()
        self._set_offset(position - self.target)
        self._notify()

    def reset(self) -> None:
        """Restore the pose given at construction."""
        target, self.radius, self.azimuth, self.polar = self._initial
        self.target = target.copy()
        self._notify()

    def update(self) -> None:
        """Announce the current pose, changed or not."""
        self._notify()

    # -- Input mapping --

    def drag(self, dx: float, dy: float, viewport_height: float) -> None:
        """Rotate for a pointer drag of ``(dx, dy)`` pixels.

        Dragging right swings the camera left round the target, so the
        structure appears to follow the pointer.
        """
        if viewport_height <= 0:
            raise ValueError(
                f"viewport_height must be positive, got {viewport_height}"
            )
        k = 2.0 * np.pi * self.rotate_speed / viewport_height
        self.rotate(-dx * k, dy * k)

    def scroll(self, steps: float) -> None:
        """Zoom by *steps* scroll-wheel notches (positive = closer)."""
        self.zoom(_KEY_ZOOM_FACTOR ** steps)

    def apply_key(self, key: str) -> bool:
        """Apply a keyboard shortcut.

        Arrows rotate, Shift+arrows pan, ``+``/``=``/``-`` zoom and
        ``r`` resets the view.

        Returns:
            ``True`` if *key* was recognised.
        """
        step = _KEY_PAN_FRACTION * self.radius
        actions = {
            "left": lambda: self.rotate(-_KEY_ROTATION_STEP, 0.0),
            "right": lambda: self.rotate(_KEY_ROTATION_STEP, 0.0),
            "up": lambda: self.rotate(0.0, -_KEY_ROTATION_STEP),
            "down": lambda: self.rotate(0.0, _KEY_ROTATION_STEP),
            "shift+left": lambda: self.pan(step, 0.0),
            "shift+right": lambda: self.pan(-step, 0.0),
            "shift+up": lambda: self.pan(0.0, -step),
            "shift+down": lambda: self.pan(0.0, step),
            "+": lambda: self.zoom(_KEY_ZOOM_FACTOR),
            "=": lambda: self.zoom(_KEY_ZOOM_FACTOR),
            "-": lambda: self.zoom(1.0 / _KEY_ZOOM_FACTOR),
            "r": self.reset,
        }
        action = actions.get(key)
        if action is None:
            return False
        action()
        return True


# ---------------------------------------------------------------------------
# Camera transform broadcast
# ---------------------------------------------------------------------------

def _inverse_pose(
    position: np.ndarray, rotation: np.ndarray, scale: np.ndarray,
) -> np.ndarray:
    """Invert ``T @ R @ S`` analytically as ``S^-1 @ R^T @ T^-1``."""
    inv = np.eye(4)
    linear = rotation.T / scale[:, np.newaxis]
    inv[:3, :3] = linear
    inv[:3, 3] = -linear @ position
    return inv


@dataclass(frozen=True, eq=False)
class CameraTransform:
    """Immutable snapshot of the inverse camera pose.

    Applying :attr:`matrix` to world coordinates gives camera-space
    coordinates, which is how a scene must move for the camera to
    appear fixed.

    Attributes:
        matrix: Read-only ``(4, 4)`` homogeneous transform.
    """

    matrix: np.ndarray = field(default_factory=lambda: np.eye(4))

    def __post_init__(self) -> None:
        m = np.array(self.matrix, dtype=float)
        if m.shape != (4, 4):
            raise ValueError(f"matrix must have shape (4, 4), got {m.shape}")
        m.flags.writeable = False
        object.__setattr__(self, "matrix", m)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CameraTransform):
            return NotImplemented
        return bool(np.array_equal(self.matrix, other.matrix))

    __hash__ = None  # type: ignore[assignment]

    @property
    def rotation(self) -> np.ndarray:
        """The rotational part, with any scale divided out."""
        linear = self.matrix[:3, :3]
        norms = np.linalg.norm(linear, axis=1)
        return linear / norms[:, np.newaxis]

    @property
    def translation(self) -> np.ndarray:
        """The translational part, shape ``(3,)``."""
        return self.matrix[:3, 3].copy()

    @property
    def quaternion(self) -> np.ndarray:
        """The rotation as a scalar-last ``(x, y, z, w)`` quaternion."""
        return Rotation.from_matrix(self.rotation).as_quat()

    def apply(self, points: np.ndarray) -> np.ndarray:
        """Transform world points of shape ``(n, 3)`` into camera space."""
        points = np.asarray(points, dtype=float).reshape(-1, 3)
        return points @ self.matrix[:3, :3].T + self.matrix[:3, 3]

    def inverse(self) -> np.ndarray:
        """The camera-to-world pose this snapshot was derived from."""
        return np.linalg.inv(self.matrix)


class CameraTransformBroadcast:
    """Publish the inverse camera pose whenever the orbit changes it.

    On each :attr:`OrbitController.changed` notification the pose is
    decomposed, inverted, and compared with the last published matrix
    by exact equality.  Only a different matrix is published, as a
    fresh read-only :class:`CameraTransform`, synchronously to every
    subscriber.

    Args:
        controller: The orbit controller to observe.  The broadcast
            subscribes to it immediately.
        signal: Optional signal to publish on; a new one is created if
            omitted.
    """

    def __init__(
        self,
        controller: OrbitController,
        signal: Signal[CameraTransform] | None = None,
    ) -> None:
        self.controller = controller
        self.transform_changed: Signal[CameraTransform] = (
            signal if signal is not None else Signal("camera_transform")
        )
        self._last_matrix: np.ndarray | None = None
        self._current: CameraTransform | None = None
        self.publish_count = 0
        controller.changed.subscribe(self._on_pose_changed)

    @property
    def current(self) -> CameraTransform | None:
        """The most recently published snapshot, if any."""
        return self._current

    def subscribe(self, handler: Handler[CameraTransform]) -> None:
        """Register *handler* for future transforms."""
        self.transform_changed.subscribe(handler)

    def unsubscribe(self, handler: Handler[CameraTransform]) -> None:
        """Remove a handler registered with :meth:`subscribe`."""
        self.transform_changed.unsubscribe(handler)

    def disconnect(self) -> None:
        """Stop observing the controller."""
        self.controller.changed.unsubscribe(self._on_pose_changed)

    def _on_pose_changed(self) -> None:
        matrix = _inverse_pose(*self.controller.decompose())
        if self._last_matrix is not None and np.array_equal(matrix, self._last_matrix):
            return
        self._last_matrix = matrix
        self._current = CameraTransform(matrix.copy())
        self.publish_count += 1
        logger.debug("Publishing camera transform #%d", self.publish_count)
        self.transform_changed.publish(self._current)
