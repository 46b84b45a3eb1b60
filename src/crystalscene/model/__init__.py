"""Core data model for crystalscene.

Everything is re-exported here so that ``from crystalscene.model import
LatticeParameters`` works without knowing the submodule layout.
"""

from crystalscene.model.colour import Colour, normalise_colour
from crystalscene.model.lattice import LatticeParameters
from crystalscene.model.site import (
    AsymmetricUnitInput,
    CrystalInput,
    ExpandedSitesInput,
    PlacedSite,
    Site,
    SiteSchema,
)
from crystalscene.model.structure import AtomData, StructureData

__all__ = [
    "AsymmetricUnitInput",
    "AtomData",
    "Colour",
    "CrystalInput",
    "ExpandedSitesInput",
    "LatticeParameters",
    "PlacedSite",
    "Site",
    "SiteSchema",
    "StructureData",
    "normalise_colour",
]
