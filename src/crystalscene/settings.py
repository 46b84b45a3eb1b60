"""Viewer configuration and its JSON persistence."""

from __future__ import annotations

import dataclasses
import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path

from crystalscene.instancing import SCALE_FACTOR
from crystalscene.model import Colour, normalise_colour
from crystalscene.model._util import _check_scale, _field_defaults
from crystalscene.resolver import DEFAULT_SCALE, CartesianBasis

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ViewerSettings:
    """Settings for a :class:`~crystalscene.viewer.CrystalViewer`.

    Attributes:
        scale: Length scale from angstroms to scene units.
        instance_scale_factor: Multiplier applied to element radii.
        background: Background colour (any format accepted by
            :func:`~crystalscene.model.normalise_colour`).
        fov: Vertical camera field of view in degrees.
        near: Near clipping distance.
        far: Far clipping distance.
        camera_position: Initial camera position; the camera orbits the
            origin.
        axis_length: Length of the lattice-axis arrows.
        basis: Fractional-to-Cartesian conversion, ``"orthogonal"`` or
            ``"lattice"``.
    """

    scale: float = DEFAULT_SCALE
    instance_scale_factor: float = SCALE_FACTOR
    background: Colour = "white"
    fov: float = 75.0
    near: float = 0.1
    far: float = 1000.0
    camera_position: tuple[float, float, float] = (0.0, 0.0, 5.0)
    axis_length: float = 2.0
    basis: str = CartesianBasis.ORTHOGONAL.value

    def __post_init__(self) -> None:
        object.__setattr__(self, "scale", _check_scale(self.scale))
        if self.instance_scale_factor <= 0:
            raise ValueError(
                "instance_scale_factor must be positive, "
                f"got {self.instance_scale_factor}"
            )
        normalise_colour(self.background)
        if not 0 < self.fov < 180:
            raise ValueError(f"fov must be in (0, 180), got {self.fov}")
        if not 0 < self.near < self.far:
            raise ValueError(
                f"need 0 < near < far, got near={self.near}, far={self.far}"
            )
        position = tuple(float(v) for v in self.camera_position)
        if len(position) != 3 or not all(math.isfinite(v) for v in position):
            raise ValueError(
                f"camera_position must be 3 finite numbers, got {self.camera_position}"
            )
        if not any(position):
            raise ValueError("camera_position must differ from the origin")
        object.__setattr__(self, "camera_position", position)
        if self.axis_length <= 0:
            raise ValueError(f"axis_length must be positive, got {self.axis_length}")
        object.__setattr__(self, "basis", CartesianBasis(self.basis).value)

    def to_dict(self) -> dict:
        """Serialise to a JSON-compatible dictionary.

        Only fields that differ from the defaults are included.
        """
        defaults = _field_defaults(type(self))
        d: dict = {}
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if value == defaults.get(f.name, dataclasses.MISSING):
                continue
            d[f.name] = list(value) if isinstance(value, tuple) else value
        return d

    @classmethod
    def from_dict(cls, d: dict) -> ViewerSettings:
        """Deserialise from a dictionary.

        Raises:
            ValueError: If *d* contains unknown keys.
        """
        unknown = set(d) - set(_field_defaults(cls))
        if unknown:
            raise ValueError(f"unknown settings keys: {sorted(unknown)}")
        kwargs = dict(d)
        if "camera_position" in kwargs:
            kwargs["camera_position"] = tuple(kwargs["camera_position"])
        if isinstance(kwargs.get("background"), list):
            kwargs["background"] = tuple(kwargs["background"])
        return cls(**kwargs)


def save_settings(path: str | Path, settings: ViewerSettings) -> None:
    """Write *settings* to a JSON file.

    Only non-default values are written, with two-space indentation.
    """
    Path(path).write_text(json.dumps(settings.to_dict(), indent=2) + "\n")
    logger.info("Saved viewer settings to %s", path)


def load_settings(path: str | Path) -> ViewerSettings:
    """Read viewer settings from a JSON file.

    Missing keys take their defaults.

    Raises:
        ValueError: If the file holds unknown keys or invalid values,
            or is not a JSON object.
    """
    data = json.loads(Path(path).read_text())
    if not isinstance(data, dict):
        raise ValueError(
            f"settings file must hold a JSON object, got {type(data).__name__}"
        )
    return ViewerSettings.from_dict(data)
