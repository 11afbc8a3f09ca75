"""Human-readable coordinates: ``1A`` style labels for arbitrarily wide boards."""

from __future__ import annotations

import re

from .geometry import Coordinate

_DISPLAY_RE = re.compile(r"^(\d+)([A-Z]+)$", re.IGNORECASE)

ORTHOGONAL_STEPS: tuple[tuple[int, int], ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))


class CoordinateFormatError(ValueError):
    """Raised when a display coordinate cannot be parsed."""


def index_to_letters(index: int) -> str:
    """Convert a 0-based column index to letters: 0 -> A, 25 -> Z, 26 -> AA."""
    if index < 0:
        raise ValueError(f"Column index must be non-negative, got {index}.")
    letters = ""
    num = index
    while num >= 0:
        letters = chr(ord("A") + num % 26) + letters
        num = num // 26 - 1
    return letters


def letters_to_index(letters: str) -> int:
    """Convert column letters back to a 0-based index: AA -> 26."""
    result = 0
    for char in letters.upper():
        if not "A" <= char <= "Z":
            raise CoordinateFormatError(f"Invalid column label: {letters!r}")
        result = result * 26 + (ord(char) - ord("A") + 1)
    return result - 1


def to_display(coord: Coordinate) -> str:
    """(0, 0) -> "1A", (4, 26) -> "5AA"."""
    return f"{coord.row + 1}{index_to_letters(coord.col)}"


def parse_display(text: str) -> Coordinate:
    """Parse a display coordinate such as ``"10C"`` into a 0-based coordinate."""
    match = _DISPLAY_RE.match(text.strip())
    if not match:
        raise CoordinateFormatError(f"Invalid coordinate format: {text!r}")
    row_number = int(match.group(1))
    if row_number < 1:
        raise CoordinateFormatError(f"Row numbers start at 1: {text!r}")
    return Coordinate(row_number - 1, letters_to_index(match.group(2)))


def column_labels(width: int) -> list[str]:
    return [index_to_letters(col) for col in range(width)]


def row_labels(height: int) -> list[str]:
    return [str(row) for row in range(1, height + 1)]


def adjacent_positions(coord: Coordinate, size: int) -> list[Coordinate]:
    """Return the in-bounds orthogonal neighbours (up, down, left, right)."""
    neighbours = (coord.offset(delta_row, delta_col) for delta_row, delta_col in ORTHOGONAL_STEPS)
    return [neighbour for neighbour in neighbours if neighbour.within(size)]
