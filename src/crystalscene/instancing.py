"""Instanced per-atom transform and colour buffers.

One unit sphere is drawn once per atom; each instance slot carries a
4x4 transform (uniform scale by element radius, then translation to
the atom position) and an RGB colour.  :func:`sync_instances` keeps a
buffer in step with a list of atoms:

- If there is no buffer yet, or the atom count changed, a new buffer
  is allocated and every slot written (rebuild).
- Otherwise every slot of the existing buffer is rewritten in place
  (update).  The result is byte-identical to a rebuild.

Either way the transform and colour arrays are flagged for upload once
per call.  There is no per-slot diffing.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

import numpy as np

from crystalscene.elements import (
    element_colour,
    element_radius,
    normalise_colour_table,
    validate_radius_table,
)
from crystalscene.model import AtomData, Colour, StructureData

logger = logging.getLogger(__name__)

#: Multiplier applied to element radii to get the sphere scale.
SCALE_FACTOR = 0.3

#: dtype of the instance arrays, matching GPU vertex attributes.
INSTANCE_DTYPE = np.float32


def _read_only(arr: np.ndarray) -> np.ndarray:
    view = arr.view()
    view.flags.writeable = False
    return view


class InstanceBuffer:
    """Parallel per-instance transform and colour arrays.

    Slot *i* always describes ``atoms[i]`` of the most recent sync.
    Renderers read :attr:`transforms` and :attr:`colours` (read-only
    views) and call :meth:`mark_uploaded` after consuming them.

    Transforms are row-major 4x4 matrices acting on column vectors:
    the upper-left 3x3 block holds the scale and the last column the
    translation.

    Args:
        count: Number of instance slots.
    """

    def __init__(self, count: int) -> None:
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        self._count = count
        self._transforms = np.zeros((count, 4, 4), dtype=INSTANCE_DTYPE)
        self._colours = np.zeros((count, 3), dtype=INSTANCE_DTYPE)
        self._transform_version = 0
        self._colour_version = 0
        self._uploaded_version = (0, 0)

    def __len__(self) -> int:
        return self._count

    def __repr__(self) -> str:
        return (
            f"InstanceBuffer(count={self._count}, "
            f"transform_version={self._transform_version}, "
            f"needs_upload={self.needs_upload})"
        )

    @property
    def count(self) -> int:
        """Number of instance slots."""
        return self._count

    @property
    def transforms(self) -> np.ndarray:
        """Read-only view of the ``(count, 4, 4)`` transform array."""
        return _read_only(self._transforms)

    @property
    def colours(self) -> np.ndarray:
        """Read-only view of the ``(count, 3)`` RGB array."""
        return _read_only(self._colours)

    @property
    def positions(self) -> np.ndarray:
        """Instance translations, shape ``(count, 3)`` (a copy)."""
        return self._transforms[:, :3, 3].copy()

    @property
    def scales(self) -> np.ndarray:
        """Instance uniform scales, shape ``(count,)`` (a copy)."""
        return self._transforms[:, 0, 0].copy()

    @property
    def transform_version(self) -> int:
        """Incremented once each time transforms are flagged for upload."""
        return self._transform_version

    @property
    def colour_version(self) -> int:
        """Incremented once each time colours are flagged for upload."""
        return self._colour_version

    @property
    def needs_upload(self) -> bool:
        """Whether either array changed since :meth:`mark_uploaded`."""
        return self._uploaded_version != (self._transform_version, self._colour_version)

    def mark_uploaded(self) -> None:
        """Record that the renderer has consumed the current contents."""
        self._uploaded_version = (self._transform_version, self._colour_version)

    def _mark_dirty(self) -> None:
        self._transform_version += 1
        self._colour_version += 1


def _as_atoms(atoms: StructureData | Sequence[AtomData]) -> Sequence[AtomData]:
    if isinstance(atoms, StructureData):
        return atoms.atoms
    return atoms


def _write_slots(
    buffer: InstanceBuffer,
    atoms: Sequence[AtomData],
    scale_factor: float,
    radii: Mapping[str, float] | None,
    colours: Mapping[str, tuple[float, float, float]] | None,
) -> None:
    """Overwrite every slot of *buffer* from *atoms*."""
    n = len(atoms)
    scales = np.array(
        [element_radius(atom.element, radii) * scale_factor for atom in atoms],
        dtype=INSTANCE_DTYPE,
    )
    positions = np.array(
        [atom.position for atom in atoms], dtype=INSTANCE_DTYPE,
    ).reshape(n, 3)
    rgb = np.array(
        [element_colour(atom.element, colours) for atom in atoms],
        dtype=INSTANCE_DTYPE,
    ).reshape(n, 3)

    transforms = buffer._transforms
    transforms.fill(0)
    diag = np.arange(3)
    transforms[:, diag, diag] = scales[:, np.newaxis]
    transforms[:, :3, 3] = positions
    transforms[:, 3, 3] = 1
    buffer._colours[...] = rgb
    buffer._mark_dirty()


def sync_instances(
    existing: InstanceBuffer | None,
    atoms: StructureData | Sequence[AtomData],
    *,
    scale_factor: float = SCALE_FACTOR,
    radii: Mapping[str, float] | None = None,
    colours: Mapping[str, tuple[float, float, float]] | None = None,
) -> InstanceBuffer:
    """Bring an instance buffer in line with *atoms*.

    Args:
        existing: The current buffer, or ``None`` if there is none.
        atoms: Atoms to draw, or a :class:`StructureData`.
        scale_factor: Multiplier applied to element radii.
        radii: Optional per-element radius overrides.
        colours: Optional per-element normalised colour overrides.

    Returns:
        *existing* itself when its count equals ``len(atoms)``;
        otherwise a new buffer of size ``len(atoms)``.
    """
    atoms = _as_atoms(atoms)
    if existing is None or existing.count != len(atoms):
        buffer = InstanceBuffer(len(atoms))
        logger.debug(
            "Rebuilding instance buffer: %s -> %d slot(s)",
            "none" if existing is None else existing.count, len(atoms),
        )
    else:
        buffer = existing
    _write_slots(buffer, atoms, scale_factor, radii, colours)
    return buffer


class InstanceBufferSync:
    """Owner of the instance buffer for one structure view.

    Override tables are validated here, once, so that per-slot lookups
    cannot fail during a sync.

    Args:
        scale_factor: Multiplier applied to element radii.
        radii: Optional per-element radius overrides.
        colours: Optional per-element colour overrides in any format
            accepted by :func:`~crystalscene.model.normalise_colour`.

    Raises:
        ValueError: If *scale_factor* or an override radius is not
            positive, or an override colour cannot be interpreted.
    """

    def __init__(
        self,
        scale_factor: float = SCALE_FACTOR,
        *,
        radii: Mapping[str, float] | None = None,
        colours: Mapping[str, Colour] | None = None,
    ) -> None:
        if scale_factor <= 0:
            raise ValueError(f"scale_factor must be positive, got {scale_factor}")
        self.scale_factor = float(scale_factor)
        self._radii = validate_radius_table(radii) if radii else None
        self._colours = normalise_colour_table(colours) if colours else None
        self._buffer: InstanceBuffer | None = None
        self.rebuilds = 0
        self.updates = 0

    @property
    def buffer(self) -> InstanceBuffer | None:
        """The current buffer, or ``None`` before the first sync."""
        return self._buffer

    def sync(self, atoms: StructureData | Sequence[AtomData]) -> InstanceBuffer:
        """Rebuild or update the owned buffer from *atoms*."""
        previous = self._buffer
        self._buffer = sync_instances(
            previous,
            atoms,
            scale_factor=self.scale_factor,
            radii=self._radii,
            colours=self._colours,
        )
        if self._buffer is previous:
            self.updates += 1
        else:
            self.rebuilds += 1
        return self._buffer
