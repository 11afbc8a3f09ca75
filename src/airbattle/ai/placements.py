"""Candidate airplane placements and their occupancy matrices."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable

import numpy as np
import numpy.typing as npt

from airbattle.engine.geometry import CellRole, Coordinate, Orientation, PlacedCell, cells_for

BoolMatrix = npt.NDArray[np.bool_]
IntArray = npt.NDArray[np.int64]


def cell_index(coord: Coordinate, size: int) -> int:
    return coord.row * size + coord.col


def make_mask(coords: Iterable[Coordinate], size: int) -> int:
    """Pack coordinates into an integer bitmask (bit ``row * size + col``)."""
    mask = 0
    for coord in coords:
        mask |= 1 << cell_index(coord, size)
    return mask


@dataclass(frozen=True)
class CandidatePlacement:
    """A hypothetical airplane: head, orientation and its role-tagged cells."""

    index: int
    head: Coordinate
    orientation: Orientation
    cells: tuple[PlacedCell, ...]
    coords: frozenset[Coordinate]
    mask: int

    def covers(self, coord: Coordinate) -> bool:
        return coord in self.coords

    def role_at(self, coord: Coordinate) -> CellRole | None:
        for cell in self.cells:
            if cell.coord == coord:
                return cell.role
        return None


@lru_cache(maxsize=None)
def enumerate_placements(size: int) -> tuple[CandidatePlacement, ...]:
    """Every in-bounds placement, ordered by head row, head column, then orientation."""
    placements: list[CandidatePlacement] = []
    for row in range(size):
        for col in range(size):
            head = Coordinate(row, col)
            for orientation in Orientation:
                cells = cells_for(head, orientation)
                if not all(cell.coord.within(size) for cell in cells):
                    continue
                coords = frozenset(cell.coord for cell in cells)
                placements.append(
                    CandidatePlacement(
                        index=len(placements),
                        head=head,
                        orientation=orientation,
                        cells=cells,
                        coords=coords,
                        mask=make_mask(coords, size),
                    )
                )
    return tuple(placements)


@lru_cache(maxsize=None)
def occupancy_matrix(size: int) -> BoolMatrix:
    """Read-only ``(placements, size * size)`` matrix; True where a placement covers a cell."""
    placements = enumerate_placements(size)
    matrix = np.zeros((len(placements), size * size), dtype=np.bool_)
    for placement in placements:
        for coord in placement.coords:
            matrix[placement.index, cell_index(coord, size)] = True
    matrix.flags.writeable = False
    return matrix


@lru_cache(maxsize=None)
def head_indices(size: int) -> IntArray:
    """Read-only flat head index of every enumerated placement."""
    heads = np.array(
        [cell_index(placement.head, size) for placement in enumerate_placements(size)],
        dtype=np.int64,
    )
    heads.flags.writeable = False
    return heads
