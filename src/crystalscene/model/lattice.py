from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

import numpy as np

from crystalscene.errors import MalformedStructureInput
from crystalscene.model._util import _check_scale, _finite_float

_LENGTHS = ("a", "b", "c")
_ANGLES = ("alpha", "beta", "gamma")

# Angles within this many degrees of 90 count as right angles.
_RIGHT_ANGLE_TOL = 1e-9


def _cos_sin(angle: float) -> tuple[float, float]:
    """Cosine and sine of *angle* in degrees, exact for right angles."""
    if abs(angle - 90.0) <= _RIGHT_ANGLE_TOL:
        return 0.0, 1.0
    rad = np.radians(angle)
    return float(np.cos(rad)), float(np.sin(rad))


@dataclass(frozen=True)
class LatticeParameters:
    """The six scalars defining a crystallographic unit cell.

    The basis follows the usual convention: **a** lies along x, **b**
    lies in the xy plane at angle *gamma* from **a**, and **c** completes
    the cell.  The z component of the unit **c** direction is
    ``sqrt(1 - cos(beta)**2 - cy**2)`` with
    ``cy = (cos(alpha) - cos(beta) * cos(gamma)) / sin(gamma)``; the
    term under the square root must be positive for a real cell.

    Attributes:
        a: Length of the first cell edge.
        b: Length of the second cell edge.
        c: Length of the third cell edge.
        alpha: Angle between **b** and **c** in degrees.
        beta: Angle between **a** and **c** in degrees.
        gamma: Angle between **a** and **b** in degrees.

    Raises:
        MalformedStructureInput: If a length is not positive, an angle
            is outside ``(0, 180)``, a value is not a finite number, or
            the angles do not close into a cell of positive volume.
    """

    a: float
    b: float
    c: float
    alpha: float = 90.0
    beta: float = 90.0
    gamma: float = 90.0

    def __post_init__(self) -> None:
        for name in _LENGTHS + _ANGLES:
            value = _finite_float(getattr(self, name), f"lattice {name}")
            object.__setattr__(self, name, value)
        for name in _LENGTHS:
            if getattr(self, name) <= 0:
                raise MalformedStructureInput(
                    f"lattice {name} must be positive, got {getattr(self, name)}"
                )
        for name in _ANGLES:
            angle = getattr(self, name)
            if not 0.0 < angle < 180.0:
                raise MalformedStructureInput(
                    f"lattice {name} must lie strictly between 0 and 180 "
                    f"degrees, got {angle}"
                )
        if self._c_z_squared() <= 0.0:
            raise MalformedStructureInput(
                "lattice angles "
                f"({self.alpha}, {self.beta}, {self.gamma}) "
                "do not form a cell with positive volume"
            )

    def _c_components(self) -> tuple[float, float]:
        """Return ``(cos(beta), cy)`` for the unit c direction."""
        cos_a, _ = _cos_sin(self.alpha)
        cos_b, _ = _cos_sin(self.beta)
        cos_g, sin_g = _cos_sin(self.gamma)
        return cos_b, (cos_a - cos_b * cos_g) / sin_g

    def _c_z_squared(self) -> float:
        cx, cy = self._c_components()
        return 1.0 - cx**2 - cy**2

    @property
    def lengths(self) -> tuple[float, float, float]:
        """The edge lengths ``(a, b, c)``."""
        return (self.a, self.b, self.c)

    @property
    def angles(self) -> tuple[float, float, float]:
        """The angles ``(alpha, beta, gamma)`` in degrees."""
        return (self.alpha, self.beta, self.gamma)

    @property
    def is_orthogonal(self) -> bool:
        """Whether all three angles are right angles."""
        return all(abs(angle - 90.0) <= _RIGHT_ANGLE_TOL for angle in self.angles)

    @property
    def volume(self) -> float:
        """Cell volume from the triclinic formula."""
        ca, cb, cg = (_cos_sin(angle)[0] for angle in self.angles)
        term = 1.0 - ca**2 - cb**2 - cg**2 + 2.0 * ca * cb * cg
        return float(self.a * self.b * self.c * np.sqrt(term))

    def axis_directions(self) -> np.ndarray:
        """Unit vectors along the a, b and c axes.

        Returns:
            Array of shape ``(3, 3)`` whose rows are the a, b and c
            directions in Cartesian space.
        """
        cos_g, sin_g = _cos_sin(self.gamma)
        cx, cy = self._c_components()
        return np.array([
            [1.0, 0.0, 0.0],
            [cos_g, sin_g, 0.0],
            [cx, cy, np.sqrt(self._c_z_squared())],
        ])

    def matrix(self) -> np.ndarray:
        """Lattice matrix with rows as the a, b and c vectors."""
        return self.axis_directions() * np.array(self.lengths)[:, np.newaxis]

    def scaled(self, scale: float) -> LatticeParameters:
        """Return a copy with lengths multiplied by *scale*.

        Angles are unchanged.

        Raises:
            InvalidScale: If *scale* is not a positive finite number.
        """
        s = _check_scale(scale)
        return LatticeParameters(
            a=self.a * s, b=self.b * s, c=self.c * s,
            alpha=self.alpha, beta=self.beta, gamma=self.gamma,
        )

    def to_dict(self) -> dict:
        """Serialise to the ``{a, b, c, alpha, beta, gamma}`` mapping."""
        return {name: getattr(self, name) for name in _LENGTHS + _ANGLES}

    @classmethod
    def from_dict(cls, d: Mapping) -> LatticeParameters:
        """Build from a mapping holding all six lattice fields.

        Extra keys (such as a pymatgen ``matrix``) are ignored.

        Raises:
            MalformedStructureInput: If *d* is not a mapping or a field
                is missing.
        """
        if not isinstance(d, Mapping):
            raise MalformedStructureInput(
                f"lattice must be a mapping, got {type(d).__name__}"
            )
        missing = [name for name in _LENGTHS + _ANGLES if name not in d]
        if missing:
            raise MalformedStructureInput(
                f"lattice is missing field(s): {missing}"
            )
        return cls(**{name: d[name] for name in _LENGTHS + _ANGLES})
