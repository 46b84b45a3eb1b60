"""Tests for site records and the two input schemas."""

import pytest

from crystalscene.errors import MalformedStructureInput
from crystalscene.model import (
    AsymmetricUnitInput,
    ExpandedSitesInput,
    PlacedSite,
    Site,
    SiteSchema,
)


class TestSite:
    def test_from_dict(self):
        site = Site.from_dict({"element": "Fe", "position": [0.1, 0.2, 0.3], "wyckoff": "8d"})
        assert site.element == "Fe"
        assert site.fractional_coordinate == (0.1, 0.2, 0.3)
        assert site.symmetry_tag == "8d"

    def test_tag_optional(self):
        site = Site.from_dict({"element": "O", "position": [0, 0, 0]})
        assert site.symmetry_tag is None

    def test_coordinates_not_wrapped(self):
        assert Site("O", (1.5, -0.2, 0.0)).fractional_coordinate == (1.5, -0.2, 0.0)

    def test_blank_element_rejected(self):
        with pytest.raises(MalformedStructureInput, match="element"):
            Site("  ", (0, 0, 0))

    def test_non_numeric_coordinate(self):
        with pytest.raises(MalformedStructureInput, match="number"):
            Site("O", ("x", 0, 0))

    def test_frozen(self):
        site = Site("O", (0, 0, 0))
        with pytest.raises(AttributeError):
            site.element = "N"  # type: ignore[misc]


class TestPlacedSite:
    def test_from_dict_takes_first_species(self):
        site = PlacedSite.from_dict({
            "species": [{"element": "Fe", "occu": 0.5}, {"element": "Co", "occu": 0.5}],
            "abc": [0.5, 0.5, 0.5],
            "xyz": [1.0, 2.0, 3.0],
            "label": "Fe/Co",
        })
        assert site.element == "Fe"
        assert site.xyz == (1.0, 2.0, 3.0)
        assert site.label == "Fe/Co"

    def test_label_optional(self):
        site = PlacedSite.from_dict({"species": [{"element": "Na"}], "xyz": [0, 0, 0]})
        assert site.label == ""

    def test_missing_xyz(self):
        with pytest.raises(MalformedStructureInput, match="xyz"):
            PlacedSite.from_dict({"species": [{"element": "Na"}]})

    def test_species_not_a_list(self):
        with pytest.raises(MalformedStructureInput, match="list"):
            PlacedSite.from_dict({"species": "Na", "xyz": [0, 0, 0]})


class TestSchemas:
    def test_asymmetric_unit(self, fe_raw):
        data = AsymmetricUnitInput.from_dict(fe_raw)
        assert data.schema is SiteSchema.ASYMMETRIC_UNIT
        assert data.lattice.a == 5.0
        assert len(data.sites) == 1

    def test_expanded(self, nacl_raw):
        data = ExpandedSitesInput.from_dict(nacl_raw)
        assert data.schema is SiteSchema.EXPANDED
        assert [s.label for s in data.sites] == ["Na", "Cl"]

    def test_atoms_not_a_list(self, fe_raw):
        fe_raw["atoms"] = {"element": "Fe"}
        with pytest.raises(MalformedStructureInput, match="atoms must be a list"):
            AsymmetricUnitInput.from_dict(fe_raw)

    def test_missing_sites(self, nacl_raw):
        del nacl_raw["sites"]
        with pytest.raises(MalformedStructureInput, match="sites"):
            ExpandedSitesInput.from_dict(nacl_raw)
