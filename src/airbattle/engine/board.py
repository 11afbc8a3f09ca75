"""Single-player board management for the Airplane Battle engine."""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from airbattle.telemetry import get_meter, get_tracer

from .airplane import Airplane, AttackResult, PlacementCheck
from .coordinates import to_display
from .geometry import CellRole, Coordinate
from .rules import GameRules

logger = logging.getLogger(__name__)
tracer = get_tracer("airbattle.engine.board")
meter = get_meter("airbattle.engine.board")

PLACEMENT_COUNTER = meter.create_counter(
    "airbattle_engine_airplane_placements",
    unit="1",
    description="Number of attempted airplane placements",
)

ATTACK_COUNTER = meter.create_counter(
    "airbattle_engine_attacks",
    unit="1",
    description="Attacks received by a board",
)

MAX_AIRPLANES_REACHED = "Maximum number of airplanes reached"


class CellState(Enum):
    """Display state of a board cell."""

    EMPTY = "empty"
    AIRPLANE = "airplane"
    HIT = "hit"
    MISS = "miss"
    KILLED = "killed"


@dataclass(frozen=True)
class AttackOutcome:
    """Result of an attack as reported to callers and opponents."""

    result: AttackResult
    airplane_id: int | None = None
    cell_role: CellRole | None = None
    was_head: bool = False

    @classmethod
    def miss(cls) -> AttackOutcome:
        return cls(AttackResult.MISS)

    @classmethod
    def invalid(cls) -> AttackOutcome:
        return cls(AttackResult.INVALID)

    @classmethod
    def already_attacked(cls) -> AttackOutcome:
        return cls(AttackResult.ALREADY_ATTACKED)


@dataclass(frozen=True)
class AttackRecord:
    """One entry of a board's attack history."""

    coordinate: Coordinate
    display: str
    result: AttackResult
    airplane_id: int | None = None
    cell_role: CellRole | None = None
    was_head: bool = False
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        return {
            "row": self.coordinate.row,
            "col": self.coordinate.col,
            "coordinate": self.display,
            "result": self.result.value,
            "airplane_id": self.airplane_id,
            "cell_role": self.cell_role.value if self.cell_role else None,
            "was_head": self.was_head,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AttackRecord:
        coord = Coordinate(int(data["row"]), int(data["col"]))
        role = data.get("cell_role")
        return cls(
            coordinate=coord,
            display=data.get("coordinate") or to_display(coord),
            result=AttackResult(data["result"]),
            airplane_id=data.get("airplane_id"),
            cell_role=CellRole(role) if role else None,
            was_head=bool(data.get("was_head", False)),
            timestamp=float(data.get("timestamp", 0.0)),
        )


@dataclass(frozen=True)
class BoardStatistics:
    total_airplanes: int
    placed_airplanes: int
    destroyed_airplanes: int
    remaining_airplanes: int
    total_attacks: int
    hits: int
    misses: int
    accuracy: float


@dataclass
class Board:
    """A square grid holding one side's airplanes and the attacks it received."""

    size: int = 10
    airplane_count: int = 3
    airplanes: list[Airplane] = field(default_factory=list)
    attacked_cells: set[Coordinate] = field(default_factory=set)
    history: list[AttackRecord] = field(default_factory=list)
    owner: str = "unknown"
    placement_retries: int = 10
    min_placement_attempts: int = 100

    @classmethod
    def from_rules(cls, rules: GameRules, owner: str = "unknown") -> Board:
        return cls(
            size=rules.board_size,
            airplane_count=rules.airplane_count,
            owner=owner,
            placement_retries=rules.placement_retries,
            min_placement_attempts=rules.min_placement_attempts,
        )

    def is_valid_coordinate(self, coord: Coordinate) -> bool:
        """Check whether a coordinate lies inside the board boundaries."""
        return coord.within(self.size)

    # -- placement -----------------------------------------------------------------

    def add_airplane(self, airplane: Airplane) -> PlacementCheck:
        """Add an airplane if the fleet is not complete and the placement is valid."""
        with tracer.start_as_current_span("board.add_airplane") as span:
            span.set_attribute("airplane.id", airplane.airplane_id)
            span.set_attribute("airplane.orientation", airplane.orientation.value)
            span.set_attribute("airplane.head.row", airplane.head.row)
            span.set_attribute("airplane.head.col", airplane.head.col)
            span.set_attribute("board.owner", self.owner)
            if len(self.airplanes) >= self.airplane_count:
                check = PlacementCheck(False, MAX_AIRPLANES_REACHED)
            else:
                check = airplane.validate_placement(self.size, self.airplanes)

            if check.valid:
                self.airplanes.append(airplane)
                PLACEMENT_COUNTER.add(1, attributes={"result": "success", "owner": self.owner})
                logger.info(
                    "airplane_placed",
                    extra={
                        "owner": self.owner,
            "placement_retries": self.placement_retries,
            "min_placement_attempts": self.min_placement_attempts,
                        "airplane_id": airplane.airplane_id,
                        "orientation": airplane.orientation.value,
                        "row": airplane.head.row,
                        "col": airplane.head.col,
                    },
                )
                return check

            PLACEMENT_COUNTER.add(1, attributes={"result": "failed", "owner": self.owner})
            logger.warning(
                "airplane_placement_failed",
                extra={
                    "owner": self.owner,
                    "airplane_id": airplane.airplane_id,
                    "orientation": airplane.orientation.value,
                    "row": airplane.head.row,
                    "col": airplane.head.col,
                    "reason": check.reason,
                },
            )
            return check

    def remove_airplane(self, airplane_id: int) -> bool:
        for index, airplane in enumerate(self.airplanes):
            if airplane.airplane_id == airplane_id:
                del self.airplanes[index]
                return True
        return False

    def clear_airplanes(self) -> None:
        self.airplanes.clear()

    def is_deployment_complete(self) -> bool:
        return len(self.airplanes) == self.airplane_count

    def place_airplanes_randomly(self, rng: random.Random) -> bool:
        """Randomly place the whole fleet; leaves the board empty and returns False on failure."""
        with tracer.start_as_current_span("board.place_airplanes_randomly") as span:
            span.set_attribute("board.owner", self.owner)
            span.set_attribute("board.size", self.size)
            span.set_attribute("airplane.count", self.airplane_count)
            max_attempts = max(self.min_placement_attempts, self.airplane_count * 100)

            for retry in range(1, self.placement_retries + 1):
                self.clear_airplanes()
                for airplane_id in range(self.airplane_count):
                    airplane = Airplane.random(
                        self.size, self.airplanes, airplane_id, rng, max_attempts
                    )
                    if airplane is None:
                        logger.warning(
                            "random_placement_pass_failed",
                            extra={
                                "owner": self.owner,
                                "airplane_index": airplane_id + 1,
                                "retry": retry,
                                "max_retries": self.placement_retries,
                            },
                        )
                        break
                    self.airplanes.append(airplane)
                else:
                    span.set_attribute("placement.retries", retry)
                    PLACEMENT_COUNTER.add(
                        self.airplane_count, attributes={"result": "success", "owner": self.owner}
                    )
                    logger.info(
                        "random_placement_complete",
                        extra={"owner": self.owner, "size": self.size, "retries": retry},
                    )
                    return True

            self.clear_airplanes()
            span.set_attribute("placement.failed", True)
            PLACEMENT_COUNTER.add(1, attributes={"result": "failed", "owner": self.owner})
            logger.error(
                "random_placement_exhausted",
                extra={
                    "owner": self.owner,
                    "size": self.size,
                    "airplane_count": self.airplane_count,
                    "max_retries": self.placement_retries,
                },
            )
            return False

    # -- attacks ------------------------------------------------------------------

    def process_attack(self, coord: Coordinate) -> AttackOutcome:
        """Resolve an incoming attack and append it to the history."""
        with tracer.start_as_current_span("board.process_attack") as span:
            span.set_attribute("attack.row", coord.row)
            span.set_attribute("attack.col", coord.col)
            span.set_attribute("board.owner", self.owner)
            if not self.is_valid_coordinate(coord):
                logger.warning(
                    "attack_out_of_bounds",
                    extra={"row": coord.row, "col": coord.col, "owner": self.owner},
                )
                span.set_attribute("attack.outcome", AttackResult.INVALID.value)
                return AttackOutcome.invalid()
            if coord in self.attacked_cells:
                logger.warning(
                    "attack_duplicate",
                    extra={"row": coord.row, "col": coord.col, "owner": self.owner},
                )
                span.set_attribute("attack.outcome", AttackResult.ALREADY_ATTACKED.value)
                return AttackOutcome.already_attacked()

            self.attacked_cells.add(coord)
            outcome = AttackOutcome.miss()
            for airplane in self.airplanes:
                check = airplane.check_hit(coord)
                if check.result in (AttackResult.MISS, AttackResult.ALREADY_ATTACKED):
                    continue
                outcome = AttackOutcome(
                    check.result, airplane.airplane_id, check.role, check.was_head
                )
                break

            self._append_history(coord, outcome)
            span.set_attribute("attack.outcome", outcome.result.value)
            ATTACK_COUNTER.add(1, attributes={"outcome": outcome.result.value, "owner": self.owner})
            logger.info(
                "attack_resolved",
                extra={
                    "row": coord.row,
                    "col": coord.col,
                    "outcome": outcome.result.value,
                    "airplane_id": outcome.airplane_id,
                    "owner": self.owner,
                },
            )
            return outcome

    def record_external_attack(
        self,
        coord: Coordinate,
        result: AttackResult,
        airplane_id: int | None = None,
    ) -> AttackOutcome:
        """Absorb a result reported by a remote peer that holds the real placement."""
        if result not in (AttackResult.MISS, AttackResult.HIT, AttackResult.KILL):
            raise ValueError(f"External attacks must be miss, hit or kill, got {result.value}.")
        if not self.is_valid_coordinate(coord):
            return AttackOutcome.invalid()
        if coord in self.attacked_cells:
            return AttackOutcome.already_attacked()

        self.attacked_cells.add(coord)
        outcome = AttackOutcome(
            result,
            airplane_id if result.is_hit else None,
            was_head=result is AttackResult.KILL,
        )
        self._append_history(coord, outcome)
        ATTACK_COUNTER.add(
            1, attributes={"outcome": result.value, "owner": self.owner, "source": "external"}
        )
        logger.info(
            "external_attack_recorded",
            extra={"row": coord.row, "col": coord.col, "outcome": result.value, "owner": self.owner},
        )
        return outcome

    def _append_history(self, coord: Coordinate, outcome: AttackOutcome) -> None:
        self.history.append(
            AttackRecord(
                coordinate=coord,
                display=to_display(coord),
                result=outcome.result,
                airplane_id=outcome.airplane_id,
                cell_role=outcome.cell_role,
                was_head=outcome.was_head,
            )
        )

    # -- queries ------------------------------------------------------------------

    def is_cell_attacked(self, coord: Coordinate) -> bool:
        return coord in self.attacked_cells

    def get_attack_history(self) -> list[AttackRecord]:
        return list(self.history)

    def get_recent_attacks(self, count: int) -> list[AttackRecord]:
        if count <= 0:
            return []
        return self.history[-count:]

    def are_all_airplanes_destroyed(self) -> bool:
        return bool(self.airplanes) and all(airplane.destroyed for airplane in self.airplanes)

    def remaining_airplane_count(self) -> int:
        return sum(1 for airplane in self.airplanes if not airplane.destroyed)

    def has_airplane_at(self, coord: Coordinate) -> bool:
        return self.get_airplane_at(coord) is not None

    def get_airplane_at(self, coord: Coordinate) -> Airplane | None:
        for airplane in self.airplanes:
            if airplane.has_cell(coord):
                return airplane
        return None

    def all_airplane_cells(self) -> list[tuple[int, Coordinate, CellRole]]:
        return [
            (airplane.airplane_id, cell.coord, cell.role)
            for airplane in self.airplanes
            for cell in airplane.cells()
        ]

    def destroyed_airplane_cells(self) -> set[Coordinate]:
        """Cells of destroyed airplanes; a kill reveals the whole airplane."""
        cells: set[Coordinate] = set()
        for airplane in self.airplanes:
            if airplane.destroyed:
                cells.update(airplane.coordinates())
        return cells

    def get_cell_state(self, coord: Coordinate, reveal_airplanes: bool = False) -> CellState:
        """Return the display state of a cell."""
        airplane = self.get_airplane_at(coord)
        if coord in self.attacked_cells:
            if airplane is not None and airplane.is_cell_hit(coord):
                if airplane.destroyed and airplane.role_at(coord) is CellRole.HEAD:
                    return CellState.KILLED
                return CellState.HIT
            record = self._record_for(coord)
            if record is not None and record.result.is_hit:
                return CellState.KILLED if record.result is AttackResult.KILL else CellState.HIT
            return CellState.MISS
        if reveal_airplanes and airplane is not None:
            return CellState.AIRPLANE
        return CellState.EMPTY

    def _record_for(self, coord: Coordinate) -> AttackRecord | None:
        for record in reversed(self.history):
            if record.coordinate == coord:
                return record
        return None

    def get_statistics(self) -> BoardStatistics:
        hits = sum(1 for record in self.history if record.result.is_hit)
        misses = sum(1 for record in self.history if record.result is AttackResult.MISS)
        total = len(self.history)
        destroyed = sum(1 for airplane in self.airplanes if airplane.destroyed)
        return BoardStatistics(
            total_airplanes=self.airplane_count,
            placed_airplanes=len(self.airplanes),
            destroyed_airplanes=destroyed,
            remaining_airplanes=len(self.airplanes) - destroyed,
            total_attacks=total,
            hits=hits,
            misses=misses,
            accuracy=round(hits / total * 100, 1) if total else 0.0,
        )

    # -- lifecycle ----------------------------------------------------------------

    def reset(self) -> None:
        """Clear attack state and damage but keep the placement."""
        self.history.clear()
        self.attacked_cells.clear()
        for airplane in self.airplanes:
            airplane.reset_damage()

    def to_serializable(self) -> dict[str, Any]:
        return {
            "size": self.size,
            "airplane_count": self.airplane_count,
            "owner": self.owner,
            "placement_retries": self.placement_retries,
            "min_placement_attempts": self.min_placement_attempts,
            "airplanes": [airplane.to_dict() for airplane in self.airplanes],
            "attack_history": [record.to_dict() for record in self.history],
            "attacked_cells": sorted(coord.key for coord in self.attacked_cells),
        }

    @classmethod
    def from_serializable(cls, data: dict[str, Any]) -> Board:
        return cls(
            size=int(data["size"]),
            airplane_count=int(data["airplane_count"]),
            airplanes=[Airplane.from_dict(item) for item in data.get("airplanes", [])],
            attacked_cells={Coordinate.from_key(key) for key in data.get("attacked_cells", [])},
            history=[AttackRecord.from_dict(item) for item in data.get("attack_history", [])],
            owner=data.get("owner", "unknown"),
            placement_retries=int(data.get("placement_retries", 10)),
            min_placement_attempts=int(data.get("min_placement_attempts", 100)),
        )
