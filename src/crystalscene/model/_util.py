"""Shared validation and serialisation helpers for model dataclasses."""

from __future__ import annotations

import dataclasses
import math
from collections.abc import Sequence

from crystalscene.errors import InvalidScale, MalformedStructureInput

_field_defaults_cache: dict[type, dict] = {}


def _field_defaults(cls: type) -> dict:
    """Return ``{field_name: default}`` for the simple defaults of *cls*.

    Fields without a default, and fields built by ``default_factory``,
    are left out.  ``to_dict()`` methods compare against this mapping
    so that only non-default values are written.
    """
    if cls not in _field_defaults_cache:
        _field_defaults_cache[cls] = {
            f.name: f.default
            for f in dataclasses.fields(cls)
            if f.default is not dataclasses.MISSING
        }
    return _field_defaults_cache[cls]


def _is_real(value: object) -> bool:
    """True for ints and floats (including numpy scalars), never bools."""
    if isinstance(value, bool):
        return False
    try:
        float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return False
    return not isinstance(value, (str, bytes))


def _finite_float(value: object, what: str) -> float:
    """Coerce *value* to a finite float or raise MalformedStructureInput."""
    if not _is_real(value):
        raise MalformedStructureInput(f"{what} must be a number, got {value!r}")
    f = float(value)  # type: ignore[arg-type]
    if not math.isfinite(f):
        raise MalformedStructureInput(f"{what} must be finite, got {f}")
    return f


def _finite_triple(value: object, what: str) -> tuple[float, float, float]:
    """Coerce a length-3 sequence of numbers to a tuple of finite floats."""
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        try:
            value = list(value)  # type: ignore[call-overload]
        except TypeError:
            raise MalformedStructureInput(
                f"{what} must be a sequence of 3 numbers, got {value!r}"
            ) from None
    if len(value) != 3:
        raise MalformedStructureInput(
            f"{what} must have 3 components, got {len(value)}"
        )
    x, y, z = (_finite_float(v, f"{what}[{i}]") for i, v in enumerate(value))
    return (x, y, z)


def _check_scale(scale: object) -> float:
    """Return *scale* as a float, raising InvalidScale unless it is positive."""
    if not _is_real(scale):
        raise InvalidScale(scale)
    s = float(scale)  # type: ignore[arg-type]
    if not math.isfinite(s) or s <= 0:
        raise InvalidScale(scale)
    return s
