from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from crystalscene.model._util import _finite_triple
from crystalscene.model.lattice import LatticeParameters


@dataclass(frozen=True)
class AtomData:
    """A named atom at a Cartesian position.

    Attributes:
        name: Display name, element plus index (e.g. ``"Fe_2"``).
        element: Chemical symbol.
        position: Cartesian ``(x, y, z)`` in scene units.
    """

    name: str
    element: str
    position: tuple[float, float, float]

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "position", _finite_triple(self.position, f"{self.name} position"),
        )


@dataclass(frozen=True)
class StructureData:
    """A resolved structure, ready for instancing.

    Attributes:
        atoms: Atoms in a stable order; instance slot *i* draws
            ``atoms[i]``.
        lattice: Lattice parameters in scene units, or ``None`` for
            structures without a cell.
    """

    atoms: tuple[AtomData, ...] = ()
    lattice: LatticeParameters | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "atoms", tuple(self.atoms))

    def __len__(self) -> int:
        return len(self.atoms)

    @property
    def names(self) -> list[str]:
        """Atom names in order."""
        return [atom.name for atom in self.atoms]

    @property
    def elements(self) -> list[str]:
        """Element symbols in order."""
        return [atom.element for atom in self.atoms]

    @property
    def coords(self) -> np.ndarray:
        """Positions as a new array of shape ``(n_atoms, 3)``."""
        if not self.atoms:
            return np.zeros((0, 3), dtype=float)
        return np.array([atom.position for atom in self.atoms], dtype=float)
