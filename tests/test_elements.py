"""Tests for per-element colour and radius tables."""

import pytest

from crystalscene.elements import (
    COVALENT_RADII,
    DEFAULT_RADIUS,
    ELEMENT_COLOURS,
    element_colour,
    element_radius,
    normalise_colour_table,
    validate_radius_table,
)
from crystalscene.model.colour import NEUTRAL_GREY


class TestTables:
    def test_common_elements_present(self):
        for element in ("H", "C", "O", "Na", "Cl", "Fe", "U"):
            assert element in ELEMENT_COLOURS
            assert element in COVALENT_RADII

    def test_colours_normalised(self):
        for rgb in ELEMENT_COLOURS.values():
            assert len(rgb) == 3
            assert all(0.0 <= c <= 1.0 for c in rgb)

    def test_radii_positive(self):
        assert all(r > 0 for r in COVALENT_RADII.values())

    def test_hydrogen_smaller_than_iron(self):
        assert COVALENT_RADII["H"] < COVALENT_RADII["Fe"]


class TestLookups:
    def test_known_colour(self):
        assert element_colour("Fe") == ELEMENT_COLOURS["Fe"]

    def test_unknown_colour_is_grey(self):
        assert element_colour("Xx") == NEUTRAL_GREY

    def test_colour_override(self):
        assert element_colour("Fe", {"Fe": (0.0, 0.0, 1.0)}) == (0.0, 0.0, 1.0)

    def test_known_radius(self):
        assert element_radius("O") == COVALENT_RADII["O"]

    def test_unknown_radius_is_default(self):
        assert element_radius("Xx") == DEFAULT_RADIUS

    def test_radius_override(self):
        assert element_radius("O", {"O": 2.5}) == 2.5


class TestOverrideTables:
    def test_normalise_colour_table(self):
        table = normalise_colour_table({"Fe": "blue", "O": 0.5})
        assert table == {"Fe": (0.0, 0.0, 1.0), "O": (0.5, 0.5, 0.5)}

    def test_bad_colour_raises(self):
        with pytest.raises(ValueError):
            normalise_colour_table({"Fe": "notacolour"})

    def test_validate_radius_table(self):
        assert validate_radius_table({"Fe": 2}) == {"Fe": 2.0}

    def test_non_positive_radius_raises(self):
        with pytest.raises(ValueError, match="positive"):
            validate_radius_table({"Fe": 0})
