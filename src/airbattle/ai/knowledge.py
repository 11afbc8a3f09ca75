"""Public knowledge an opponent may derive from the board it is attacking."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

import numpy as np
import numpy.typing as npt

from airbattle.engine.airplane import AttackResult
from airbattle.engine.board import AttackRecord
from airbattle.engine.geometry import Coordinate

from .placements import cell_index, make_mask


class TargetBoard(Protocol):
    """Read-only surface of a board that opponents are allowed to consult."""

    size: int
    airplane_count: int

    def is_cell_attacked(self, coord: Coordinate) -> bool: ...

    def get_attack_history(self) -> list[AttackRecord]: ...

    def destroyed_airplane_cells(self) -> set[Coordinate]: ...


@dataclass(frozen=True)
class BoardKnowledge:
    """Hits, misses and kills visible in a board's attack history."""

    size: int
    attacked: frozenset[Coordinate]
    misses: frozenset[Coordinate]
    active_hits: tuple[Coordinate, ...]
    destroyed_ids: frozenset[int]
    destroyed_cells: frozenset[Coordinate]
    remaining_airplanes: int
    history_length: int

    @classmethod
    def from_board(cls, board: TargetBoard) -> BoardKnowledge:
        history = board.get_attack_history()
        kills = [record for record in history if record.result is AttackResult.KILL]
        destroyed_ids = frozenset(
            record.airplane_id for record in kills if record.airplane_id is not None
        )
        # Hits on an airplane that was later destroyed no longer constrain the search.
        active_hits = tuple(
            record.coordinate
            for record in history
            if record.result is AttackResult.HIT
            and (record.airplane_id is None or record.airplane_id not in destroyed_ids)
        )
        return cls(
            size=board.size,
            attacked=frozenset(record.coordinate for record in history),
            misses=frozenset(
                record.coordinate for record in history if record.result is AttackResult.MISS
            ),
            active_hits=active_hits,
            destroyed_ids=destroyed_ids,
            destroyed_cells=frozenset(board.destroyed_airplane_cells()),
            remaining_airplanes=max(board.airplane_count - len(kills), 0),
            history_length=len(history),
        )

    def is_attacked(self, coord: Coordinate) -> bool:
        return coord in self.attacked

    def is_open(self, coord: Coordinate) -> bool:
        """In bounds and not yet attacked."""
        return coord.within(self.size) and coord not in self.attacked

    def unattacked(self) -> list[Coordinate]:
        return [
            Coordinate(row, col)
            for row in range(self.size)
            for col in range(self.size)
            if Coordinate(row, col) not in self.attacked
        ]

    def mask(self, coords: Sequence[Coordinate] | frozenset[Coordinate]) -> int:
        return make_mask(coords, self.size)

    def flat_indices(self, coords: Sequence[Coordinate] | frozenset[Coordinate]) -> npt.NDArray[np.int64]:
        return np.array([cell_index(coord, self.size) for coord in coords], dtype=np.int64)

    def attacked_flags(self) -> npt.NDArray[np.bool_]:
        flags = np.zeros(self.size * self.size, dtype=np.bool_)
        flags[self.flat_indices(self.attacked)] = True
        return flags
