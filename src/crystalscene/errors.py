"""Exception types raised by crystalscene.

All errors are local precondition failures.  They are raised to the
caller and never retried; :class:`InvalidScale` and
:class:`MalformedStructureInput` subclass :class:`ValueError` so that
code catching the usual validation error keeps working.
"""

from __future__ import annotations


class CrystalSceneError(Exception):
    """Base class for all crystalscene errors."""


class InvalidScale(CrystalSceneError, ValueError):
    """A length scale was zero, negative, or not finite."""

    def __init__(self, scale: object) -> None:
        self.scale = scale
        super().__init__(f"scale must be a positive finite number, got {scale!r}")


class MalformedStructureInput(CrystalSceneError, ValueError):
    """Crystallographic input is missing fields or holds invalid values."""


class UnmountedSurface(CrystalSceneError, RuntimeError):
    """A render or resize was requested before a mount point was attached."""
