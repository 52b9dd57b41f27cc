"""Wrapped-line cursor placement for the single-line compose box."""

from __future__ import annotations

BORDER_INSET = 1


def wrap_cursor(char_pos: int, width: int) -> tuple[int, int]:
    """Return the 0-based ``(column, row)`` of ``char_pos`` under hard wrap.

    The stored text stays one logical line; wrapping is a projection. A
    cursor that sits exactly on a wrap boundary stays at the end of the
    previous row instead of jumping to column 0 of an empty row.
    """

    if width <= 0:
        raise ValueError("width must be positive")
    if char_pos < 0:
        raise ValueError("char_pos must be non-negative")
    remainder = char_pos % width
    if remainder == 0 and char_pos != 0:
        return width, (char_pos - 1) // width
    return remainder, char_pos // width


def screen_cursor(char_pos: int, x: int, y: int, outer_width: int) -> tuple[int, int]:
    """Map ``char_pos`` to absolute screen cells for a bordered widget.

    ``outer_width`` includes both border columns, so the wrap width is two
    cells narrower.
    """

    column, row = wrap_cursor(char_pos, outer_width - 2 * BORDER_INSET)
    return x + BORDER_INSET + column, y + BORDER_INSET + row
