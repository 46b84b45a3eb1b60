"""Load crystal data from JSON files, JSON text, or pymatgen objects."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from crystalscene.errors import MalformedStructureInput
from crystalscene.model import CrystalInput, ExpandedSitesInput, StructureData
from crystalscene.resolver import DEFAULT_SCALE, CartesianBasis, parse_crystal_input, resolve

if TYPE_CHECKING:
    from pymatgen.core import Structure

logger = logging.getLogger(__name__)


def _read_source(source: str | Path) -> str:
    """Read file content from a path or return inline JSON text."""
    if isinstance(source, Path):
        return source.read_text(encoding="utf-8")
    # Inline JSON always starts with a brace; anything else is a path.
    if not source.lstrip().startswith(("{", "[")):
        return Path(source).read_text(encoding="utf-8")
    return source


def read_crystal_json(source: str | Path) -> CrystalInput:
    """Parse a JSON crystal description into a :data:`CrystalInput`.

    Args:
        source: Path to a ``.json`` file, or the JSON text itself.

    Returns:
        The parsed input, tagged with its schema.

    Raises:
        FileNotFoundError: If *source* names a file that does not exist.
        MalformedStructureInput: If the file is not UTF-8 text, or the
            text is not valid JSON or does not match either schema.
    """
    try:
        text = _read_source(source)
    except UnicodeDecodeError as exc:
        raise MalformedStructureInput(f"{source} is not valid UTF-8 text: {exc}") from exc
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedStructureInput(f"invalid JSON: {exc}") from exc
    parsed = parse_crystal_input(data)
    origin = "inline JSON" if text is source else str(source)
    logger.info(
        "Read %d %s site(s) from %s",
        len(parsed.sites), parsed.schema.value, origin,
    )
    return parsed


def load_structure(
    source: str | Path,
    scale: float = DEFAULT_SCALE,
    *,
    basis: CartesianBasis | str = CartesianBasis.ORTHOGONAL,
) -> StructureData:
    """Read a JSON crystal description and resolve it.

    Args:
        source: Path to a ``.json`` file, or the JSON text itself.
        scale: Length scale passed to :func:`~crystalscene.resolver.resolve`.
        basis: Fractional-to-Cartesian conversion.

    Returns:
        The resolved structure.
    """
    return resolve(read_crystal_json(source), scale, basis=basis)


def from_pymatgen(structure: Structure) -> ExpandedSitesInput:
    """Convert a pymatgen ``Structure`` into schema B input.

    The conversion goes through ``Structure.as_dict()``, whose layout
    is schema B.

    Raises:
        ImportError: If pymatgen is not installed.
    """
    try:
        from pymatgen.core import Structure
    except ImportError:
        raise ImportError(
            "pymatgen is required for from_pymatgen(). "
            "Install it with: pip install pymatgen"
        )

    if not isinstance(structure, Structure):
        raise TypeError(
            f"expected a pymatgen Structure, got {type(structure).__name__}"
        )
    return ExpandedSitesInput.from_dict(structure.as_dict())
