from __future__ import annotations

#: A colour specification accepted throughout crystalscene.
#:
#: Can be any of:
#:
#: - A CSS colour name or hex string (``"red"``, ``"#ff0000"``, or the
#:   ``"0xff0000"`` form used by some element tables).
#: - A single float for grey (``0.0`` = black, ``1.0`` = white).
#: - An RGB tuple or list with values in ``[0, 1]``.
Colour = str | float | tuple[float, float, float] | list[float]

#: Fallback for elements missing from the colour table.
NEUTRAL_GREY: tuple[float, float, float] = (0.5, 0.5, 0.5)


def normalise_colour(colour: Colour) -> tuple[float, float, float]:
    """Convert a colour specification to a normalised ``(r, g, b)`` tuple.

    Args:
        colour: The colour to normalise.

    Returns:
        A tuple of three floats in ``[0, 1]``.

    Raises:
        ValueError: If the colour cannot be interpreted.
    """
    if isinstance(colour, (int, float)) and not isinstance(colour, bool):
        f = float(colour)
        if not 0.0 <= f <= 1.0:
            raise ValueError(f"Grey value must be in [0, 1], got {f}")
        return (f, f, f)

    if isinstance(colour, (tuple, list)):
        if len(colour) != 3:
            raise ValueError(
                f"RGB sequence must have 3 elements, got {len(colour)}"
            )
        r, g, b = (float(c) for c in colour)
        for name, val in [("r", r), ("g", g), ("b", b)]:
            if not 0.0 <= val <= 1.0:
                raise ValueError(
                    f"RGB component {name} must be in [0, 1], got {val}"
                )
        return (r, g, b)

    if isinstance(colour, str):
        from matplotlib.colors import to_rgb

        spec = colour.strip()
        if spec[:2].lower() == "0x":
            spec = "#" + spec[2:]
        try:
            return tuple(float(c) for c in to_rgb(spec))  # type: ignore[return-value]
        except ValueError:
            raise ValueError(f"Unrecognised colour name: {colour!r}") from None

    raise ValueError(f"Cannot interpret colour: {colour!r}")
