"""Symmetry expansion of asymmetric-unit sites.

Only two orbits are tabulated: the 4-position ``4c`` orbit, which is
also the fallback for unknown tags, and the 8-position ``8d`` orbit.
Each operation maps a fractional coordinate ``p`` to
``rotation @ p + translation``.  This is a fixed lookup table, not a
space-group implementation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum

import numpy as np

from crystalscene.model.site import Site

logger = logging.getLogger(__name__)


class WyckoffTag(StrEnum):
    """Symmetry tags with a tabulated orbit.

    Attributes:
        C4: The 4-position orbit (default).
        D8: The 8-position orbit.
    """

    C4 = "4c"
    D8 = "8d"


#: Tag used when a site has no tag or an unrecognised one.
DEFAULT_TAG = WyckoffTag.C4


@dataclass(frozen=True)
class SymmetryOperation:
    """An affine map over fractional coordinates.

    Attributes:
        rotation: ``(3, 3)`` matrix with entries in ``{-1, 0, 1}``.
        translation: ``(3,)`` vector with entries in ``{0, 0.5}``.
    """

    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))
    translation: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self) -> None:
        rotation = np.array(self.rotation, dtype=float)
        translation = np.array(self.translation, dtype=float)
        if rotation.shape != (3, 3):
            raise ValueError(
                f"rotation must have shape (3, 3), got {rotation.shape}"
            )
        if translation.shape != (3,):
            raise ValueError(
                f"translation must have shape (3,), got {translation.shape}"
            )
        rotation.flags.writeable = False
        translation.flags.writeable = False
        object.__setattr__(self, "rotation", rotation)
        object.__setattr__(self, "translation", translation)

    @classmethod
    def from_signs(
        cls,
        signs: tuple[int, int, int],
        shift: tuple[float, float, float] = (0.0, 0.0, 0.0),
    ) -> SymmetryOperation:
        """Build a diagonal operation ``(sx*x + tx, sy*y + ty, sz*z + tz)``."""
        return cls(rotation=np.diag(np.asarray(signs, dtype=float)), translation=shift)

    def apply(self, coords: np.ndarray) -> np.ndarray:
        """Apply to one ``(3,)`` coordinate or a stack of shape ``(n, 3)``."""
        coords = np.asarray(coords, dtype=float)
        return coords @ self.rotation.T + self.translation


_H = 0.5
_ORBIT_4C: tuple[SymmetryOperation, ...] = (
    SymmetryOperation.from_signs((1, 1, 1)),
    SymmetryOperation.from_signs((-1, -1, 1)),
    SymmetryOperation.from_signs((-1, 1, -1), (_H, _H, _H)),
    SymmetryOperation.from_signs((1, -1, -1), (_H, _H, _H)),
)
_ORBIT_8D: tuple[SymmetryOperation, ...] = _ORBIT_4C + (
    SymmetryOperation.from_signs((-1, 1, -1)),
    SymmetryOperation.from_signs((1, -1, -1)),
    SymmetryOperation.from_signs((1, 1, 1), (_H, _H, _H)),
    SymmetryOperation.from_signs((-1, -1, 1), (_H, _H, _H)),
)

#: Operations for each tabulated tag, in output order.
OPERATION_TABLE: dict[WyckoffTag, tuple[SymmetryOperation, ...]] = {
    WyckoffTag.C4: _ORBIT_4C,
    WyckoffTag.D8: _ORBIT_8D,
}


def operations_for(tag: str | None) -> tuple[SymmetryOperation, ...]:
    """Return the operations for *tag*, falling back to the default orbit.

    An unknown or missing tag is not an error; it selects the
    :data:`DEFAULT_TAG` table.
    """
    if tag is not None:
        try:
            return OPERATION_TABLE[WyckoffTag(tag)]
        except ValueError:
            logger.debug("Unknown symmetry tag %r, using %s", tag, DEFAULT_TAG.value)
    return OPERATION_TABLE[DEFAULT_TAG]


def expand_site(site: Site) -> np.ndarray:
    """Expand one site into its symmetry-equivalent fractional coordinates.

    The result is deterministic: the same site always gives the same
    coordinates in the same (table) order, which keeps atom names
    stable across resolves.  No wrapping into ``[0, 1)`` is applied.

    Args:
        site: The asymmetric-unit site.  It is not modified.

    Returns:
        Array of shape ``(k, 3)`` with ``k`` = 4 or 8.
    """
    p = np.asarray(site.fractional_coordinate, dtype=float)
    return np.array([op.apply(p) for op in operations_for(site.symmetry_tag)])
