"""Crystallographic input records and the two supported source schemas.

Two historical JSON layouts describe the same thing.  They are parsed
once into a tagged union, :data:`CrystalInput`, and everything
downstream dispatches on :attr:`schema` rather than probing keys.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import ClassVar

from crystalscene.errors import MalformedStructureInput
from crystalscene.model._util import _finite_triple
from crystalscene.model.lattice import LatticeParameters


class SiteSchema(StrEnum):
    """Discriminator for :data:`CrystalInput`.

    Attributes:
        ASYMMETRIC_UNIT: Sites in the asymmetric unit, each tagged with
            a Wyckoff-like label that selects its symmetry orbit.
        EXPANDED: Every site listed explicitly; no expansion needed.
    """

    ASYMMETRIC_UNIT = "asymmetric_unit"
    EXPANDED = "expanded"


def _element(value: object, what: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise MalformedStructureInput(
            f"{what} must be a non-empty element symbol, got {value!r}"
        )
    return value.strip()


def _require(d: Mapping, key: str, what: str) -> object:
    if not isinstance(d, Mapping):
        raise MalformedStructureInput(
            f"{what} must be a mapping, got {type(d).__name__}"
        )
    try:
        return d[key]
    except KeyError:
        raise MalformedStructureInput(f"{what} is missing {key!r}") from None


def _records(value: object, what: str) -> Sequence:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise MalformedStructureInput(
            f"{what} must be a list, got {type(value).__name__}"
        )
    return value


@dataclass(frozen=True)
class Site:
    """One position in the asymmetric unit.

    Attributes:
        element: Chemical symbol, e.g. ``"Fe"``.
        fractional_coordinate: ``(fx, fy, fz)`` in units of the cell
            edges.  Conventionally in ``[0, 1)`` but not wrapped.
        symmetry_tag: Wyckoff-like label selecting the symmetry orbit,
            or ``None`` for the default orbit.
    """

    element: str
    fractional_coordinate: tuple[float, float, float]
    symmetry_tag: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "element", _element(self.element, "site element"))
        object.__setattr__(
            self,
            "fractional_coordinate",
            _finite_triple(self.fractional_coordinate, f"{self.element} position"),
        )
        if self.symmetry_tag is not None and not isinstance(self.symmetry_tag, str):
            object.__setattr__(self, "symmetry_tag", str(self.symmetry_tag))

    @classmethod
    def from_dict(cls, d: Mapping) -> Site:
        """Parse an ``{element, position, wyckoff}`` record."""
        return cls(
            element=_element(_require(d, "element", "atom"), "atom element"),
            fractional_coordinate=_require(d, "position", "atom"),
            symmetry_tag=d.get("wyckoff"),
        )


@dataclass(frozen=True)
class PlacedSite:
    """An explicitly listed site that needs no symmetry expansion.

    Attributes:
        element: Chemical symbol of the first (majority) species.
        xyz: Cartesian position in the source length unit.
        label: Optional site label from the source.
    """

    element: str
    xyz: tuple[float, float, float]
    label: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "element", _element(self.element, "site element"))
        object.__setattr__(self, "xyz", _finite_triple(self.xyz, f"{self.element} xyz"))

    @classmethod
    def from_dict(cls, d: Mapping) -> PlacedSite:
        """Parse a ``{species: [{element, ...}], xyz, label}`` record.

        Only ``species[0].element`` and ``xyz`` are consumed.
        """
        species = _records(_require(d, "species", "site"), "site species")
        if not species:
            raise MalformedStructureInput("site species list is empty")
        element = _require(species[0], "element", "site species")
        label = d.get("label")
        return cls(
            element=_element(element, "site species element"),
            xyz=_require(d, "xyz", "site"),
            label="" if label is None else str(label),
        )


@dataclass(frozen=True)
class AsymmetricUnitInput:
    """Schema A: asymmetric-unit sites plus symmetry tags.

    Source layout::

        {"chemical_formula": ..., "space_group": ...,
         "lattice_parameters": {"a": ..., ..., "gamma": ...},
         "atoms": [{"element": "Fe", "position": [x, y, z],
                    "wyckoff": "4c"}, ...]}
    """

    schema: ClassVar[SiteSchema] = SiteSchema.ASYMMETRIC_UNIT

    lattice: LatticeParameters
    sites: tuple[Site, ...]
    chemical_formula: str = ""
    space_group: str = ""

    @classmethod
    def from_dict(cls, d: Mapping) -> AsymmetricUnitInput:
        """Parse a schema A mapping.

        Raises:
            MalformedStructureInput: If a required field is missing or
                holds an invalid value.
        """
        lattice = LatticeParameters.from_dict(
            _require(d, "lattice_parameters", "crystal data")
        )
        atoms = _records(_require(d, "atoms", "crystal data"), "atoms")
        return cls(
            lattice=lattice,
            sites=tuple(Site.from_dict(atom) for atom in atoms),
            chemical_formula=str(d.get("chemical_formula") or ""),
            space_group=str(d.get("space_group") or ""),
        )


@dataclass(frozen=True)
class ExpandedSitesInput:
    """Schema B: every site listed explicitly.

    This is the layout written by pymatgen's ``Structure.as_dict()``::

        {"lattice": {"a": ..., ..., "gamma": ...},
         "sites": [{"species": [{"element": "Na", "occu": 1}],
                    "abc": [...], "xyz": [x, y, z], "label": "Na"}, ...]}
    """

    schema: ClassVar[SiteSchema] = SiteSchema.EXPANDED

    lattice: LatticeParameters
    sites: tuple[PlacedSite, ...]

    @classmethod
    def from_dict(cls, d: Mapping) -> ExpandedSitesInput:
        """Parse a schema B mapping.

        Raises:
            MalformedStructureInput: If a required field is missing or
                holds an invalid value.
        """
        lattice = LatticeParameters.from_dict(_require(d, "lattice", "structure"))
        sites = _records(_require(d, "sites", "structure"), "sites")
        return cls(
            lattice=lattice,
            sites=tuple(PlacedSite.from_dict(site) for site in sites),
        )


#: Either supported source schema; dispatch on ``.schema``.
CrystalInput = AsymmetricUnitInput | ExpandedSitesInput
