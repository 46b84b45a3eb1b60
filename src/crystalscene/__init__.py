"""crystalscene: interactive ball-and-stick views of crystal structures.

Crystallographic input (an asymmetric unit with Wyckoff tags, or an
already expanded site list) is resolved into centred Cartesian atoms,
drawn as instanced spheres, and viewed through an orbiting camera whose
pose drives a lattice-axis gizmo.

Example usage::

    from crystalscene import CrystalViewer, FigureMountPoint

    viewer = CrystalViewer(FigureMountPoint(800, 600))
    viewer.load("fe.json")
    viewer.save("fe.png")
"""

from crystalscene.camera import (
    CameraTransform,
    CameraTransformBroadcast,
    OrbitController,
    PerspectiveCamera,
)
from crystalscene.elements import COVALENT_RADII, ELEMENT_COLOURS
from crystalscene.errors import (
    CrystalSceneError,
    InvalidScale,
    MalformedStructureInput,
    UnmountedSurface,
)
from crystalscene.instancing import InstanceBuffer, InstanceBufferSync, sync_instances
from crystalscene.loader import from_pymatgen, load_structure, read_crystal_json
from crystalscene.logging_config import setup_logging
from crystalscene.model import (
    AsymmetricUnitInput,
    AtomData,
    Colour,
    CrystalInput,
    ExpandedSitesInput,
    LatticeParameters,
    PlacedSite,
    Site,
    SiteSchema,
    StructureData,
    normalise_colour,
)
from crystalscene.overlay import AxisOverlay
from crystalscene.resolver import CartesianBasis, StructureResolver, resolve
from crystalscene.settings import ViewerSettings, load_settings, save_settings
from crystalscene.signal import Signal
from crystalscene.surface import FigureMountPoint, MountPoint, RenderSurface
from crystalscene.symmetry import SymmetryOperation, WyckoffTag, expand_site, operations_for
from crystalscene.viewer import CrystalViewer

__all__ = [
    "AsymmetricUnitInput",
    "AtomData",
    "AxisOverlay",
    "COVALENT_RADII",
    "CameraTransform",
    "CameraTransformBroadcast",
    "CartesianBasis",
    "Colour",
    "CrystalInput",
    "CrystalSceneError",
    "CrystalViewer",
    "ELEMENT_COLOURS",
    "ExpandedSitesInput",
    "FigureMountPoint",
    "InstanceBuffer",
    "InstanceBufferSync",
    "InvalidScale",
    "LatticeParameters",
    "MalformedStructureInput",
    "MountPoint",
    "OrbitController",
    "PerspectiveCamera",
    "PlacedSite",
    "RenderSurface",
    "Signal",
    "Site",
    "SiteSchema",
    "StructureData",
    "StructureResolver",
    "SymmetryOperation",
    "UnmountedSurface",
    "ViewerSettings",
    "WyckoffTag",
    "expand_site",
    "from_pymatgen",
    "load_settings",
    "load_structure",
    "normalise_colour",
    "operations_for",
    "read_crystal_json",
    "resolve",
    "save_settings",
    "setup_logging",
    "sync_instances",
]
