"""Airplane domain model for the Airplane Battle engine."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from .geometry import Coordinate, CellRole, Orientation, PlacedCell, cells_for


class AttackResult(Enum):
    """Outcome of an attack on a single cell."""

    MISS = "miss"
    HIT = "hit"
    KILL = "kill"
    ALREADY_ATTACKED = "already_attacked"
    INVALID = "invalid"

    @property
    def is_hit(self) -> bool:
        return self in (AttackResult.HIT, AttackResult.KILL)


@dataclass(frozen=True)
class HitCheck:
    """Result of checking one attack against one airplane."""

    result: AttackResult
    role: CellRole | None = None
    was_head: bool = False


@dataclass(frozen=True)
class PlacementCheck:
    """Outcome of validating or adding a placement."""

    valid: bool
    reason: str = ""

    def __bool__(self) -> bool:
        return self.valid


OUT_OF_BOUNDS = "Airplane extends outside board boundaries"
OVERLAPPING = "Airplane overlaps with another airplane"

_MISS = HitCheck(AttackResult.MISS)


@dataclass
class Airplane:
    """A single placed airplane: head, orientation and damage state."""

    airplane_id: int
    head: Coordinate
    orientation: Orientation
    hits: set[Coordinate] = field(init=False)
    destroyed: bool = field(init=False, default=False)
    _cells: tuple[PlacedCell, ...] = field(init=False, repr=False)
    _roles: dict[Coordinate, CellRole] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.hits = set()
        self._cells = cells_for(self.head, self.orientation)
        self._roles = {cell.coord: cell.role for cell in self._cells}

    def cells(self) -> list[PlacedCell]:
        """Return the role-tagged cells occupied by this airplane."""
        return list(self._cells)

    def coordinates(self) -> list[Coordinate]:
        return [cell.coord for cell in self._cells]

    def has_cell(self, coord: Coordinate) -> bool:
        return coord in self._roles

    def role_at(self, coord: Coordinate) -> CellRole | None:
        return self._roles.get(coord)

    def is_cell_hit(self, coord: Coordinate) -> bool:
        return coord in self.hits

    def overlaps(self, other: Airplane) -> bool:
        return not self._roles.keys().isdisjoint(other._roles.keys())

    def validate_placement(
        self, board_size: int, existing: Iterable[Airplane] = ()
    ) -> PlacementCheck:
        """Check bounds and overlap against other airplanes (same id is skipped)."""
        if not all(cell.coord.within(board_size) for cell in self._cells):
            return PlacementCheck(False, OUT_OF_BOUNDS)
        for other in existing:
            if other.airplane_id == self.airplane_id:
                continue
            if self.overlaps(other):
                return PlacementCheck(False, OVERLAPPING)
        return PlacementCheck(True)

    def check_hit(self, coord: Coordinate) -> HitCheck:
        """Apply an attack to this airplane and report the outcome."""
        role = self._roles.get(coord)
        if role is None:
            return _MISS
        # A destroyed airplane never reports a second kill.
        if self.destroyed:
            return _MISS
        if coord in self.hits:
            return HitCheck(AttackResult.ALREADY_ATTACKED, role, role is CellRole.HEAD)

        self.hits.add(coord)
        if role is CellRole.HEAD:
            self.destroyed = True
            return HitCheck(AttackResult.KILL, role, True)
        # Losing every non-head cell brings the airplane down as well.
        if all(cell.coord in self.hits for cell in self._cells if cell.role is not CellRole.HEAD):
            self.destroyed = True
            return HitCheck(AttackResult.KILL, role, False)
        return HitCheck(AttackResult.HIT, role, False)

    def reset_damage(self) -> None:
        self.hits.clear()
        self.destroyed = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.airplane_id,
            "head_row": self.head.row,
            "head_col": self.head.col,
            "orientation": self.orientation.value,
            "hits": sorted(coord.key for coord in self.hits),
            "destroyed": self.destroyed,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Airplane:
        airplane = cls(
            airplane_id=int(data["id"]),
            head=Coordinate(int(data["head_row"]), int(data["head_col"])),
            orientation=Orientation(data["orientation"]),
        )
        airplane.hits = {Coordinate.from_key(key) for key in data.get("hits", [])}
        airplane.destroyed = bool(data.get("destroyed", False))
        return airplane

    @classmethod
    def random(
        cls,
        board_size: int,
        existing: Iterable[Airplane],
        airplane_id: int,
        rng: random.Random,
        max_attempts: int = 100,
    ) -> Airplane | None:
        """Sample head/orientation until a valid placement is found or attempts run out."""
        others = list(existing)
        orientations = list(Orientation)
        for _ in range(max_attempts):
            candidate = cls(
                airplane_id,
                Coordinate(rng.randrange(board_size), rng.randrange(board_size)),
                rng.choice(orientations),
            )
            if candidate.validate_placement(board_size, others):
                return candidate
        return None
