"""Random and hit-following opponents."""

from __future__ import annotations

import logging
import random
from collections import deque
from typing import Protocol

from airbattle.engine.airplane import AttackResult
from airbattle.engine.board import AttackOutcome
from airbattle.engine.coordinates import adjacent_positions
from airbattle.engine.geometry import Coordinate
from airbattle.engine.rules import GameRules

from .knowledge import TargetBoard

logger = logging.getLogger(__name__)


class OpponentEngine(Protocol):
    """What a game loop needs from a computer opponent."""

    label: str

    def get_next_attack(self, board: TargetBoard) -> Coordinate | None: ...

    def process_attack_result(self, coord: Coordinate, outcome: AttackOutcome) -> None: ...

    def reset(self) -> None: ...


class RandomOpponent:
    """Fires at a uniformly random unattacked cell."""

    label = "easy"

    def __init__(self, rules: GameRules | None = None, rng: random.Random | None = None) -> None:
        self.rules = rules or GameRules()
        self.rng = rng or random.Random()

    @property
    def board_size(self) -> int:
        return self.rules.board_size

    def ensure_board_size(self, board: TargetBoard) -> None:
        if board.size != self.board_size:
            raise ValueError(
                f"Opponent configured for a {self.board_size}x{self.board_size} board, got {board.size}"
            )

    def get_next_attack(self, board: TargetBoard) -> Coordinate | None:
        self.ensure_board_size(board)
        return self.random_attack(board)

    def random_attack(self, board: TargetBoard) -> Coordinate | None:
        available = [
            Coordinate(row, col)
            for row in range(board.size)
            for col in range(board.size)
            if not board.is_cell_attacked(Coordinate(row, col))
        ]
        if not available:
            return None
        return self.rng.choice(available)

    def process_attack_result(self, coord: Coordinate, outcome: AttackOutcome) -> None:
        return None

    def reset(self) -> None:
        return None


class ReactiveOpponent(RandomOpponent):
    """Random search that queues the neighbours of every hit until a kill."""

    label = "medium"

    def __init__(self, rules: GameRules | None = None, rng: random.Random | None = None) -> None:
        super().__init__(rules, rng)
        self.target_queue: deque[Coordinate] = deque()
        self.hit_sequence: list[Coordinate] = []
        self.last_hit: Coordinate | None = None

    def get_next_attack(self, board: TargetBoard) -> Coordinate | None:
        self.ensure_board_size(board)
        return self.follow_up_or_random(board)

    def follow_up_or_random(self, board: TargetBoard) -> Coordinate | None:
        """Pop queued follow-ups (skipping stale ones) before falling back to random fire."""
        while self.target_queue:
            candidate = self.target_queue.popleft()
            if candidate.within(board.size) and not board.is_cell_attacked(candidate):
                return candidate
        return self.random_attack(board)

    def process_attack_result(self, coord: Coordinate, outcome: AttackOutcome) -> None:
        if outcome.result is AttackResult.HIT:
            self.last_hit = coord
            self.hit_sequence.append(coord)
            self._queue_neighbours(coord)
        elif outcome.result is AttackResult.KILL:
            logger.debug("Airplane destroyed at %s; clearing follow-up queue", coord.key)
            self.target_queue.clear()
            self.hit_sequence.clear()
            self.last_hit = None

    def _queue_neighbours(self, coord: Coordinate) -> None:
        horizontal = vertical = False
        if len(self.hit_sequence) > 1:
            previous = self.hit_sequence[-2]
            horizontal = previous.row == coord.row
            vertical = previous.col == coord.col

        for neighbour in adjacent_positions(coord, self.board_size):
            # Cells continuing the line of the last two hits jump the queue.
            if (horizontal and neighbour.row == coord.row) or (vertical and neighbour.col == coord.col):
                if neighbour in self.target_queue:
                    self.target_queue.remove(neighbour)
                self.target_queue.appendleft(neighbour)
            elif neighbour not in self.target_queue:
                self.target_queue.append(neighbour)

    def reset(self) -> None:
        self.target_queue.clear()
        self.hit_sequence.clear()
        self.last_hit = None
