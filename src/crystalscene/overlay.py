"""Lattice-axis orientation gizmo."""

from __future__ import annotations

import logging

import numpy as np

from crystalscene.camera import CameraTransform, CameraTransformBroadcast
from crystalscene.model import Colour, LatticeParameters, normalise_colour

logger = logging.getLogger(__name__)


class AxisOverlay:
    """Three arrows along the a, b and c lattice directions.

    The overlay lives in camera space: the composing root attaches it
    to whatever represents camera space in its render graph and feeds
    it camera transforms, typically by
    ``broadcast.subscribe(overlay.on_camera_transform)`` or
    :meth:`connect`.  Each transform's rotation is applied to the lattice
    directions so the arrows always show the current crystallographic
    orientation.

    Args:
        lattice: Lattice whose axis directions are drawn.
        length: Arrow length in scene units.
        labels: Labels for the a, b and c arrows.
        colours: Colours for the a, b and c arrows.
    """

    def __init__(
        self,
        lattice: LatticeParameters,
        length: float = 2.0,
        *,
        labels: tuple[str, str, str] = ("a", "b", "c"),
        colours: tuple[Colour, Colour, Colour] = ("red", "green", "blue"),
    ) -> None:
        if length <= 0:
            raise ValueError(f"length must be positive, got {length}")
        if len(labels) != 3 or len(colours) != 3:
            raise ValueError("labels and colours must each have 3 entries")
        self.length = float(length)
        self.labels = tuple(labels)
        self.colours = tuple(normalise_colour(c) for c in colours)
        self.lattice = lattice
        self._directions = lattice.axis_directions()
        self._orientation = np.eye(3)
        self.updates = 0

    @property
    def directions(self) -> np.ndarray:
        """Unit a, b, c directions in world space (a copy)."""
        return self._directions.copy()

    @property
    def orientation(self) -> np.ndarray:
        """Rotation from the last camera transform (identity initially)."""
        return self._orientation.copy()

    def connect(self, broadcast: CameraTransformBroadcast) -> None:
        """Follow *broadcast*, starting from its current transform."""
        broadcast.subscribe(self.on_camera_transform)
        if broadcast.current is not None:
            self.on_camera_transform(broadcast.current)

    def disconnect(self, broadcast: CameraTransformBroadcast) -> None:
        """Stop following *broadcast*."""
        broadcast.unsubscribe(self.on_camera_transform)

    def on_camera_transform(self, transform: CameraTransform) -> None:
        """Adopt the rotation of *transform*."""
        self._orientation = np.array(transform.rotation)
        self.updates += 1

    def update_lattice(self, lattice: LatticeParameters) -> None:
        """Redraw the arrows for a new lattice."""
        self.lattice = lattice
        self._directions = lattice.axis_directions()
        logger.debug("Axis overlay rebuilt for lattice angles %s", lattice.angles)

    def tips(self) -> np.ndarray:
        """Arrow tips in camera space, shape ``(3, 3)`` (rows a, b, c)."""
        return self._directions @ self._orientation.T * self.length

    def label_positions(self, beyond: float = 1.2) -> np.ndarray:
        """Label anchor points just past each arrow tip."""
        return self.tips() * beyond
