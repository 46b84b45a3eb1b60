"""Crystallographic input to scaled, centred Cartesian structures."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import StrEnum

import numpy as np

from crystalscene.errors import MalformedStructureInput
from crystalscene.model import (
    AsymmetricUnitInput,
    AtomData,
    CrystalInput,
    ExpandedSitesInput,
    LatticeParameters,
    SiteSchema,
    StructureData,
)
from crystalscene.model._util import _check_scale
from crystalscene.symmetry import expand_site

logger = logging.getLogger(__name__)

#: Default length scale from source units (angstroms) to scene units.
DEFAULT_SCALE = 0.2


class CartesianBasis(StrEnum):
    """How fractional coordinates become Cartesian positions.

    Attributes:
        ORTHOGONAL: ``(fx * a, fy * b, fz * c)``, ignoring the cell
            angles.  Exact only when all angles are 90 degrees.
        LATTICE: ``frac @ lattice.matrix()``, the full triclinic
            transform.  Opt-in.
    """

    ORTHOGONAL = "orthogonal"
    LATTICE = "lattice"


def parse_crystal_input(raw: Mapping | CrystalInput) -> CrystalInput:
    """Classify a raw mapping as one of the two source schemas.

    The schema is decided once, here: a mapping with an ``"atoms"``
    list is schema A (asymmetric unit), one with a ``"sites"`` list is
    schema B (already expanded).  Already-parsed inputs pass through.

    Raises:
        MalformedStructureInput: If *raw* matches neither schema or a
            required field is missing or invalid.
    """
    if isinstance(raw, (AsymmetricUnitInput, ExpandedSitesInput)):
        return raw
    if not isinstance(raw, Mapping):
        raise MalformedStructureInput(
            f"crystal data must be a mapping, got {type(raw).__name__}"
        )
    if "atoms" in raw:
        return AsymmetricUnitInput.from_dict(raw)
    if "sites" in raw:
        return ExpandedSitesInput.from_dict(raw)
    raise MalformedStructureInput(
        "crystal data has neither an 'atoms' list (asymmetric unit) "
        "nor a 'sites' list (expanded sites)"
    )


def _expanded_positions(
    data: ExpandedSitesInput, scale: float,
) -> tuple[list[str], list[str], np.ndarray]:
    elements = [site.element for site in data.sites]
    names = [f"{element}_{i}" for i, element in enumerate(elements)]
    xyz = np.array([site.xyz for site in data.sites], dtype=float).reshape(-1, 3)
    return names, elements, xyz * scale


def _asymmetric_positions(
    data: AsymmetricUnitInput,
    scale: float,
    basis: CartesianBasis,
    wrap: bool,
) -> tuple[list[str], list[str], np.ndarray]:
    names: list[str] = []
    elements: list[str] = []
    blocks: list[np.ndarray] = []
    for site in data.sites:
        frac = expand_site(site)
        if wrap:
            frac = frac % 1.0
        # Orbit index restarts for every source site; names are labels,
        # not identity keys, so repeats across sites are allowed.
        names.extend(f"{site.element}_{k}" for k in range(len(frac)))
        elements.extend([site.element] * len(frac))
        blocks.append(frac)

    if not blocks:
        return names, elements, np.zeros((0, 3), dtype=float)
    frac = np.vstack(blocks)
    if basis is CartesianBasis.LATTICE:
        return names, elements, frac @ (data.lattice.matrix() * scale)
    return names, elements, frac * (np.array(data.lattice.lengths) * scale)


def _cell_centre(
    lattice: LatticeParameters, scale: float, basis: CartesianBasis,
) -> np.ndarray:
    if basis is CartesianBasis.LATTICE:
        return np.full(3, 0.5) @ (lattice.matrix() * scale)
    return np.array(lattice.lengths) * scale / 2.0


def resolve(
    raw: Mapping | CrystalInput,
    scale: float = DEFAULT_SCALE,
    *,
    basis: CartesianBasis | str = CartesianBasis.ORTHOGONAL,
    wrap: bool = True,
) -> StructureData:
    """Resolve crystallographic input into a centred Cartesian structure.

    Schema A sites are expanded through their symmetry orbit and named
    ``{element}_{k}`` with *k* the position within the orbit.  Schema B
    sites map one-to-one to atoms named ``{element}_{i}`` with *i* the
    output index.  Every position is then shifted by
    ``-(a, b, c) * scale / 2`` so that the cell sits about the origin.

    Args:
        raw: A schema A or B mapping, or an already-parsed input.
        scale: Uniform length scale applied to positions and to the
            returned lattice lengths.
        basis: Fractional-to-Cartesian conversion for schema A.
            The default orthogonal conversion ignores the cell angles.
        wrap: Wrap expanded fractional coordinates into ``[0, 1)``
            before conversion, keeping every schema A atom inside the
            cell.

    Returns:
        A new :class:`StructureData`.  Nothing is returned on failure.

    Raises:
        InvalidScale: If *scale* is not a positive finite number.
        MalformedStructureInput: If *raw* is missing fields or holds
            invalid values.
        ValueError: If *basis* is not a known basis name.
    """
    s = _check_scale(scale)
    basis = CartesianBasis(basis)
    data = parse_crystal_input(raw)

    if data.schema is SiteSchema.EXPANDED:
        names, elements, positions = _expanded_positions(data, s)
    else:
        if basis is CartesianBasis.ORTHOGONAL and not data.lattice.is_orthogonal:
            logger.warning(
                "Cell angles %s are not all 90 degrees; orthogonal "
                "conversion places atoms approximately "
                "(pass basis='lattice' for the exact transform)",
                data.lattice.angles,
            )
        names, elements, positions = _asymmetric_positions(data, s, basis, wrap)

    positions = positions - _cell_centre(data.lattice, s, basis)
    atoms = tuple(
        AtomData(name=name, element=element, position=tuple(pos.tolist()))
        for name, element, pos in zip(names, elements, positions)
    )
    logger.debug(
        "Resolved %d atom(s) from %d %s site(s) at scale %g",
        len(atoms), len(data.sites), data.schema.value, s,
    )
    return StructureData(atoms=atoms, lattice=data.lattice.scaled(s))


class StructureResolver:
    """Resolver with fixed scale and conversion options.

    Args:
        scale: Length scale passed to :func:`resolve`.
        basis: Fractional-to-Cartesian conversion.
        wrap: Whether to wrap expanded coordinates into the cell.

    Raises:
        InvalidScale: If *scale* is not a positive finite number.
    """

    def __init__(
        self,
        scale: float = DEFAULT_SCALE,
        *,
        basis: CartesianBasis | str = CartesianBasis.ORTHOGONAL,
        wrap: bool = True,
    ) -> None:
        self.scale = _check_scale(scale)
        self.basis = CartesianBasis(basis)
        self.wrap = wrap

    def __repr__(self) -> str:
        return (
            f"StructureResolver(scale={self.scale}, "
            f"basis={self.basis.value!r}, wrap={self.wrap})"
        )

    def resolve(self, raw: Mapping | CrystalInput) -> StructureData:
        """Resolve *raw* with this resolver's options."""
        return resolve(raw, self.scale, basis=self.basis, wrap=self.wrap)
