"""Composing root: wires resolver, instancing, camera, overlay and surface."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

from crystalscene.camera import (
    CameraTransform,
    CameraTransformBroadcast,
    OrbitController,
    PerspectiveCamera,
)
from crystalscene.instancing import InstanceBuffer, InstanceBufferSync
from crystalscene.loader import read_crystal_json
from crystalscene.model import Colour, CrystalInput, StructureData
from crystalscene.overlay import AxisOverlay
from crystalscene.resolver import StructureResolver
from crystalscene.settings import ViewerSettings
from crystalscene.signal import Signal
from crystalscene.surface import MountPoint, RenderSurface

logger = logging.getLogger(__name__)


class CrystalViewer:
    """Interactive crystal-structure view.

    Every collaborator is built here and passed to the next explicitly;
    there is no module-level application state, so several viewers can
    coexist.  The camera transform broadcast drives the axis overlay,
    which is attached as soon as a structure with a lattice is shown.

    Args:
        mount_point: Where to draw.  If omitted, call :meth:`mount`
            before :meth:`tick`.
        settings: Viewer settings; defaults are used if omitted.
        radii: Optional per-element radius overrides.
        colours: Optional per-element colour overrides.
    """

    def __init__(
        self,
        mount_point: MountPoint | None = None,
        settings: ViewerSettings | None = None,
        *,
        radii: Mapping[str, float] | None = None,
        colours: Mapping[str, Colour] | None = None,
    ) -> None:
        self.settings = settings if settings is not None else ViewerSettings()
        s = self.settings
        self.camera = PerspectiveCamera(fov=s.fov, near=s.near, far=s.far)
        self.controller = OrbitController(position=s.camera_position)
        self.broadcast = CameraTransformBroadcast(self.controller)
        self.resolver = StructureResolver(s.scale, basis=s.basis)
        self.instances = InstanceBufferSync(
            s.instance_scale_factor, radii=radii, colours=colours,
        )
        self.surface = RenderSurface(self.camera, background=s.background)
        self.overlay: AxisOverlay | None = None
        self.structure: StructureData | None = None
        self.structure_changed: Signal[StructureData] = Signal("structure_changed")

        if mount_point is not None:
            self.mount(mount_point)
        # Publish the initial pose so late subscribers see a transform.
        self.controller.update()

    def __repr__(self) -> str:
        n = len(self.structure) if self.structure is not None else 0
        return f"CrystalViewer(atoms={n}, mounted={self.surface.mounted})"

    @property
    def buffer(self) -> InstanceBuffer | None:
        """The current instance buffer, if a structure has been shown."""
        return self.instances.buffer

    @property
    def view(self) -> CameraTransform:
        """The latest camera transform (identity before any publish)."""
        current = self.broadcast.current
        return current if current is not None else CameraTransform()

    def mount(self, mount_point: MountPoint) -> None:
        """Attach the render surface to *mount_point*."""
        self.surface.mount(mount_point)

    def update_structure(
        self, data: Mapping | CrystalInput | StructureData,
    ) -> StructureData:
        """Show new structure data.

        Raw or parsed crystal input is resolved once; the result is
        synced into the instance buffer once.  On a resolve failure the
        exception propagates and the current view is unchanged.

        Returns:
            The structure now shown.
        """
        if isinstance(data, StructureData):
            structure = data
        else:
            structure = self.resolver.resolve(data)
        self.instances.sync(structure)
        self.structure = structure
        self._attach_overlay(structure)
        logger.info("Showing %d atom(s)", len(structure))
        self.structure_changed.publish(structure)
        return structure

    def load(self, source: str | Path) -> StructureData:
        """Read a JSON crystal description and show it."""
        return self.update_structure(read_crystal_json(source))

    def _attach_overlay(self, structure: StructureData) -> None:
        if structure.lattice is None:
            if self.overlay is not None:
                self.overlay.disconnect(self.broadcast)
                self.overlay = None
            return
        if self.overlay is None:
            self.overlay = AxisOverlay(structure.lattice, self.settings.axis_length)
            self.overlay.connect(self.broadcast)
        else:
            self.overlay.update_lattice(structure.lattice)

    def resize(self, width: int, height: int) -> None:
        """Resize the surface and camera aspect."""
        self.surface.resize(width, height)

    def tick(self) -> int:
        """Render one frame and consume the buffer's dirty flags.

        Returns:
            Number of atoms drawn.

        Raises:
            UnmountedSurface: If no mount point has been attached.
        """
        return self.surface.render(self.buffer, self.view, self.overlay)

    def save(self, path: str | Path) -> None:
        """Render a frame and write it to an image file."""
        self.tick()
        self.surface.save(path)
