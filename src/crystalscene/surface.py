"""Render surface: mount point contract and a matplotlib drawing backend.

The surface draws an :class:`~crystalscene.instancing.InstanceBuffer`
as depth-sorted discs, projected through the camera transform and the
perspective camera, onto a matplotlib figure sized in pixels.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

import matplotlib.patheffects as path_effects
import numpy as np
from matplotlib.collections import PatchCollection
from matplotlib.figure import Figure
from matplotlib.patches import Circle

from crystalscene.camera import CameraTransform, OrbitController, PerspectiveCamera
from crystalscene.errors import UnmountedSurface
from crystalscene.instancing import InstanceBuffer
from crystalscene.model import Colour, normalise_colour
from crystalscene.overlay import AxisOverlay

logger = logging.getLogger(__name__)

_DEFAULT_DPI = 100
_WIDGET_MARGIN = 0.12  # axes widget origin inset, as a fraction of height
_WIDGET_SIZE = 0.08  # axes widget arrow length, as a fraction of height


@runtime_checkable
class MountPoint(Protocol):
    """Where a render surface is attached.

    A mount point reports its current pixel size on demand and accepts
    the figure the surface draws into.
    """

    @property
    def width(self) -> int: ...

    @property
    def height(self) -> int: ...

    def attach(self, figure: Figure) -> None: ...


class FigureMountPoint:
    """A plain in-memory mount point of a given pixel size.

    Args:
        width: Width in pixels.
        height: Height in pixels.
    """

    def __init__(self, width: int = 640, height: int = 480) -> None:
        self.width = int(width)
        self.height = int(height)
        self.figure: Figure | None = None

    def attach(self, figure: Figure) -> None:
        self.figure = figure

    def set_size(self, width: int, height: int) -> None:
        """Change the reported size (as a window resize would)."""
        self.width = int(width)
        self.height = int(height)


class RenderSurface:
    """Draw instance buffers onto a mounted matplotlib figure.

    :meth:`render` and :meth:`resize` raise :class:`UnmountedSurface`
    until :meth:`mount` has been called; after that they work normally.

    Args:
        camera: The perspective camera supplying the projection.
        background: Background colour.
        dpi: Figure resolution used to convert pixels to inches.
    """

    def __init__(
        self,
        camera: PerspectiveCamera,
        *,
        background: Colour = "white",
        dpi: int = _DEFAULT_DPI,
    ) -> None:
        self.camera = camera
        self.background = normalise_colour(background)
        self.dpi = dpi
        self.mount_point: MountPoint | None = None
        self.figure: Figure | None = None
        self._ax: Any = None
        self.size: tuple[int, int] = (0, 0)
        self.frames_rendered = 0

    @property
    def mounted(self) -> bool:
        return self.mount_point is not None

    def _require_mount(self, action: str) -> None:
        if self.mount_point is None:
            raise UnmountedSurface(f"cannot {action}: render surface is not mounted")

    def mount(self, mount_point: MountPoint) -> None:
        """Create the drawing figure and hand it to *mount_point*."""
        width, height = mount_point.width, mount_point.height
        if width <= 0 or height <= 0:
            raise ValueError(f"mount point size must be positive, got {width}x{height}")
        figure = Figure(figsize=(width / self.dpi, height / self.dpi), dpi=self.dpi)
        figure.set_facecolor(self.background)
        ax = figure.add_axes((0.0, 0.0, 1.0, 1.0))
        # Only record the mount once the host has accepted the figure.
        mount_point.attach(figure)
        self.figure, self._ax = figure, ax
        self.mount_point = mount_point
        self.size = (width, height)
        self.camera.resize(width, height)
        logger.info("Render surface mounted at %dx%d px", width, height)

    def resize(self, width: int, height: int) -> None:
        """Resize the figure and re-project for the new aspect ratio."""
        self._require_mount("resize")
        if width <= 0 or height <= 0:
            raise ValueError(f"viewport size must be positive, got {width}x{height}")
        assert self.figure is not None
        self.figure.set_size_inches(width / self.dpi, height / self.dpi)
        self.camera.resize(width, height)
        self.size = (int(width), int(height))
        logger.debug("Render surface resized to %dx%d px", width, height)

    def sync_size(self) -> None:
        """Resize to whatever the mount point currently reports."""
        self._require_mount("resize")
        assert self.mount_point is not None
        if (self.mount_point.width, self.mount_point.height) != self.size:
            self.resize(self.mount_point.width, self.mount_point.height)

    # ---- Projection ----

    def project(
        self, buffer: InstanceBuffer, view: CameraTransform,
    ) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """Project instances to pixel space.

        Returns:
            Tuple ``(xy, radii, depth, visible)``: pixel centres
            ``(n, 2)``, pixel radii ``(n,)``, camera-space depth
            ``(n,)`` (distance in front of the camera), and a boolean
            mask of instances in front of the near plane.
        """
        width, height = self.size
        cam = view.apply(buffer.positions)
        depth = -cam[:, 2]
        visible = depth > self.camera.near

        proj = self.camera.projection_matrix()
        homo = np.column_stack([cam, np.ones(len(cam))]) @ proj.T
        w = np.where(visible, homo[:, 3], 1.0)
        ndc = homo[:, :2] / w[:, np.newaxis]
        xy = np.column_stack([
            (ndc[:, 0] + 1.0) * 0.5 * width,
            (ndc[:, 1] + 1.0) * 0.5 * height,
        ])
        focal = proj[1, 1] * 0.5 * height
        radii = buffer.scales * focal / np.where(visible, depth, 1.0)
        return xy, radii, depth, visible

    # ---- Drawing ----

    def render(
        self,
        buffer: InstanceBuffer | None,
        view: CameraTransform,
        overlay: AxisOverlay | None = None,
    ) -> int:
        """Draw one frame.

        Instances are painted far to near so nearer atoms overlap
        farther ones.  The buffer is marked as uploaded afterwards.

        Returns:
            Number of instances drawn.
        """
        self._require_mount("render")
        ax = self._ax
        width, height = self.size
        ax.cla()
        ax.set_xlim(0, width)
        ax.set_ylim(0, height)
        ax.set_aspect("equal")
        ax.set_facecolor(self.background)
        ax.set_axis_off()

        drawn = 0
        if buffer is not None and buffer.count:
            xy, radii, depth, visible = self.project(buffer, view)
            order = [i for i in np.argsort(-depth) if visible[i]]
            colours = buffer.colours
            patches = [Circle(tuple(xy[i]), float(radii[i])) for i in order]
            if patches:
                collection = PatchCollection(
                    patches,
                    facecolors=[tuple(colours[i]) for i in order],
                    edgecolors="black",
                    linewidths=0.5,
                )
                ax.add_collection(collection)
            drawn = len(patches)
            buffer.mark_uploaded()

        if overlay is not None:
            self._draw_axes_widget(overlay)

        self.frames_rendered += 1
        return drawn

    def _draw_axes_widget(self, overlay: AxisOverlay) -> None:
        """Draw the lattice-axis gizmo in the bottom-left corner."""
        _, height = self.size
        ox = oy = _WIDGET_MARGIN * height
        scale = _WIDGET_SIZE * height / overlay.length
        tips = overlay.tips() * scale
        labels = overlay.label_positions() * scale
        # Furthest first, so nearer arrows overlap.
        for i in np.argsort(tips[:, 2]):
            colour = overlay.colours[i]
            self._ax.plot(
                [ox, ox + tips[i, 0]], [oy, oy + tips[i, 1]],
                color=colour, linewidth=1.5, solid_capstyle="round", zorder=10,
            )
            self._ax.text(
                ox + labels[i, 0], oy + labels[i, 1], overlay.labels[i],
                color=colour, fontstyle="italic", ha="center", va="center",
                zorder=11,
                path_effects=[path_effects.withStroke(linewidth=2.5, foreground="white")],
            )

    def save(self, path: Any, **kwargs: Any) -> None:
        """Write the current frame to *path* via ``Figure.savefig``."""
        self._require_mount("save")
        assert self.figure is not None
        self.figure.savefig(path, dpi=self.dpi, facecolor=self.background, **kwargs)

    # ---- Interaction ----

    def bind_controls(self, controller: OrbitController) -> list[int]:
        """Route mouse and keyboard events on the figure to *controller*.

        Left-drag rotates, scroll zooms and keys go to
        :meth:`OrbitController.apply_key`.

        Returns:
            The matplotlib connection ids.
        """
        self._require_mount("bind controls")
        assert self.figure is not None
        canvas = self.figure.canvas
        drag: dict = {"last": None}

        def on_press(event):
            if event.button == 1:
                drag["last"] = (event.x, event.y)

        def on_motion(event):
            if drag["last"] is None or event.x is None:
                return
            x0, y0 = drag["last"]
            drag["last"] = (event.x, event.y)
            controller.drag(event.x - x0, event.y - y0, self.size[1])

        def on_release(event):
            drag["last"] = None

        def on_scroll(event):
            controller.scroll(event.step)

        def on_key(event):
            if event.key is not None:
                controller.apply_key(event.key)

        return [
            canvas.mpl_connect("button_press_event", on_press),
            canvas.mpl_connect("motion_notify_event", on_motion),
            canvas.mpl_connect("button_release_event", on_release),
            canvas.mpl_connect("scroll_event", on_scroll),
            canvas.mpl_connect("key_press_event", on_key),
        ]
