"""Per-element display colours and radii.

Colours follow the Jmol palette; radii are Cordero (2008) covalent
radii in angstroms.  Both tables ship as JSON under
``crystalscene/data`` and are loaded once at import.

Lookups never raise: unknown elements get :data:`NEUTRAL_GREY` and
:data:`DEFAULT_RADIUS`.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from importlib import resources

from crystalscene.model.colour import NEUTRAL_GREY, Colour, normalise_colour

#: Radius used for elements missing from the radius table.
DEFAULT_RADIUS = 1.0


def _load_table(filename: str) -> dict:
    text = resources.files("crystalscene").joinpath("data", filename).read_text(
        encoding="utf-8",
    )
    return json.loads(text)


#: Element symbol to normalised ``(r, g, b)``.
ELEMENT_COLOURS: dict[str, tuple[float, float, float]] = {
    element: normalise_colour(spec)
    for element, spec in _load_table("element_colours.json").items()
}

#: Element symbol to covalent radius in angstroms.
COVALENT_RADII: dict[str, float] = {
    element: float(r) for element, r in _load_table("element_radii.json").items()
}


def element_colour(
    element: str,
    overrides: Mapping[str, tuple[float, float, float]] | None = None,
) -> tuple[float, float, float]:
    """Return the display colour of *element*.

    Args:
        element: Chemical symbol.
        overrides: Optional pre-normalised colours consulted first.

    Returns:
        An ``(r, g, b)`` tuple; :data:`NEUTRAL_GREY` when unknown.
    """
    if overrides is not None and element in overrides:
        return overrides[element]
    return ELEMENT_COLOURS.get(element, NEUTRAL_GREY)


def element_radius(
    element: str,
    overrides: Mapping[str, float] | None = None,
) -> float:
    """Return the display radius of *element*.

    Args:
        element: Chemical symbol.
        overrides: Optional radii consulted first.

    Returns:
        The radius; :data:`DEFAULT_RADIUS` when unknown.
    """
    if overrides is not None and element in overrides:
        return overrides[element]
    return COVALENT_RADII.get(element, DEFAULT_RADIUS)


def normalise_colour_table(
    colours: Mapping[str, Colour],
) -> dict[str, tuple[float, float, float]]:
    """Normalise every entry of a user colour table.

    Raises:
        ValueError: If an entry cannot be interpreted as a colour.
    """
    return {element: normalise_colour(spec) for element, spec in colours.items()}


def validate_radius_table(radii: Mapping[str, float]) -> dict[str, float]:
    """Return *radii* as floats, checking that each is positive.

    Raises:
        ValueError: If a radius is not positive.
    """
    checked: dict[str, float] = {}
    for element, r in radii.items():
        r = float(r)
        if r <= 0:
            raise ValueError(f"radius for {element!r} must be positive, got {r}")
        checked[element] = r
    return checked
