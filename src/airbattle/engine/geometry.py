"""Airplane geometry: coordinates, orientations and the fixed cell template."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from types import MappingProxyType


@dataclass(frozen=True, order=True)
class Coordinate:
    """Immutable board coordinate (0-based, row-major)."""

    row: int
    col: int

    @property
    def key(self) -> str:
        """Return the ``"row,col"`` key used in serialized snapshots."""
        return f"{self.row},{self.col}"

    @classmethod
    def from_key(cls, key: str) -> Coordinate:
        row, col = key.split(",")
        return cls(int(row), int(col))

    def offset(self, delta_row: int, delta_col: int) -> Coordinate:
        return Coordinate(self.row + delta_row, self.col + delta_col)

    def within(self, size: int) -> bool:
        """Check whether the coordinate lies inside a ``size``×``size`` grid."""
        return 0 <= self.row < size and 0 <= self.col < size


@dataclass(frozen=True)
class Rotation:
    """Linear transform applied to every template offset."""

    row_mult: int
    col_mult: int
    swap: bool

    def apply(self, delta_row: int, delta_col: int) -> tuple[int, int]:
        if self.swap:
            delta_row, delta_col = delta_col, delta_row
        return delta_row * self.row_mult, delta_col * self.col_mult


class Orientation(Enum):
    """Direction the airplane's head points to."""

    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @property
    def rotation(self) -> Rotation:
        return ROTATIONS[self]


ROTATIONS = MappingProxyType(
    {
        Orientation.UP: Rotation(row_mult=1, col_mult=1, swap=False),
        Orientation.DOWN: Rotation(row_mult=-1, col_mult=-1, swap=False),
        # Head points left, body extends to the right.
        Orientation.LEFT: Rotation(row_mult=-1, col_mult=1, swap=True),
        # Head points right, body extends to the left.
        Orientation.RIGHT: Rotation(row_mult=1, col_mult=-1, swap=True),
    }
)


class CellRole(Enum):
    """Structural role of an airplane cell."""

    HEAD = "head"
    BODY = "body"
    WING = "wing"
    TAIL = "tail"


# Offsets relative to the head for the UP orientation. The wing and tail
# centres coincide with body cells; earlier roles win on deduplication.
AIRPLANE_TEMPLATE: tuple[tuple[CellRole, tuple[tuple[int, int], ...]], ...] = (
    (CellRole.HEAD, ((0, 0),)),
    (CellRole.BODY, ((1, 0), (2, 0), (3, 0))),
    (CellRole.WING, ((1, -2), (1, -1), (1, 0), (1, 1), (1, 2))),
    (CellRole.TAIL, ((3, -1), (3, 0), (3, 1))),
)

AIRPLANE_CELL_COUNT = 10


@dataclass(frozen=True)
class PlacedCell:
    """Absolute airplane cell tagged with its role."""

    coord: Coordinate
    role: CellRole

    @property
    def row(self) -> int:
        return self.coord.row

    @property
    def col(self) -> int:
        return self.coord.col


@lru_cache(maxsize=None)
def oriented_offsets(orientation: Orientation) -> tuple[tuple[int, int, CellRole], ...]:
    """Return the deduplicated ``(d_row, d_col, role)`` offsets for an orientation."""
    rotation = orientation.rotation
    seen: set[tuple[int, int]] = set()
    offsets: list[tuple[int, int, CellRole]] = []
    for role, template in AIRPLANE_TEMPLATE:
        for delta_row, delta_col in template:
            rotated = rotation.apply(delta_row, delta_col)
            if rotated in seen:
                continue
            seen.add(rotated)
            offsets.append((rotated[0], rotated[1], role))
    return tuple(offsets)


def cells_for(head: Coordinate, orientation: Orientation) -> tuple[PlacedCell, ...]:
    """Return the 10 role-tagged cells of an airplane with the given head and orientation."""
    return tuple(
        PlacedCell(head.offset(delta_row, delta_col), role)
        for delta_row, delta_col, role in oriented_offsets(orientation)
    )
