"""Inference opponent: tracks every airplane placement still consistent with the board."""

from __future__ import annotations

import logging
import random
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from itertools import combinations

import numpy as np

from airbattle.engine.coordinates import adjacent_positions
from airbattle.engine.geometry import CellRole, Coordinate
from airbattle.engine.rules import GameRules
from airbattle.telemetry import record_game_metric

from .knowledge import BoardKnowledge, TargetBoard
from .placements import CandidatePlacement, cell_index, enumerate_placements, occupancy_matrix
from .reactive import ReactiveOpponent

logger = logging.getLogger(__name__)

KILL_POOL_THRESHOLD = 5
LOCK_POOL_THRESHOLD = 50
PROBE_POOL_THRESHOLD = 20
DIRECT_TARGET_POOL = 3

SEARCH_HEAD_WEIGHT = 15.0
SEARCH_CORNER_BONUS = 80.0
SEARCH_EDGE_BONUS = 50.0
SEARCH_CENTRE_BONUS = 20.0
SEARCH_CENTRE_RADIUS = 2
SEARCH_HIT_BONUS = 200.0
SEARCH_HIT_RADIUS = 3
SEARCH_MISS_PENALTY = 5.0
SEARCH_MISS_RADIUS = 1
SEARCH_BODY_WEIGHT = 1.0
SEARCH_OTHER_WEIGHT = 0.5

HEAD_FREQUENCY_WEIGHT = 50

ROLE_PRIORITY = {
    CellRole.HEAD: 1000,
    CellRole.BODY: 100,
    CellRole.WING: 10,
    CellRole.TAIL: 10,
}

EXHAUSTION_METRIC = "airbattle_ai_candidate_pool_exhausted_total"


class InferenceState(Enum):
    SEARCH = "search"
    LOCK = "lock"
    KILL = "kill"


@dataclass(frozen=True)
class HeadGuess:
    """A head position inferred from aligned hits, scored by candidate frequency."""

    coord: Coordinate
    score: int


def manhattan(a: Coordinate, b: Coordinate) -> int:
    return abs(a.row - b.row) + abs(a.col - b.col)


class InferenceOpponent(ReactiveOpponent):
    """Maintains the candidate pool and moves SEARCH -> LOCK -> KILL as it shrinks."""

    label = "ultra"

    def __init__(self, rules: GameRules | None = None, rng: random.Random | None = None) -> None:
        super().__init__(rules, rng)
        self.state = InferenceState.SEARCH
        self.candidates: list[CandidatePlacement] = list(enumerate_placements(self.board_size))
        self.exhaustion_count = 0
        self._remaining_airplanes: int | None = None

    def reset(self) -> None:
        super().reset()
        self.state = InferenceState.SEARCH
        self.candidates = list(enumerate_placements(self.board_size))
        self.exhaustion_count = 0
        self._remaining_airplanes = None

    def get_next_attack(self, board: TargetBoard) -> Coordinate | None:
        self.ensure_board_size(board)
        knowledge = BoardKnowledge.from_board(board)
        self.apply_knowledge(knowledge)

        if knowledge.active_hits and len(self.candidates) > PROBE_POOL_THRESHOLD:
            target = self.probe_from_hits(knowledge)
            if target is not None:
                return target

        if self.state is InferenceState.SEARCH:
            target = self.search_shot(knowledge)
        elif self.state is InferenceState.LOCK:
            target = self.lock_shot(knowledge)
        else:
            target = self.kill_shot(knowledge)

        if target is not None:
            return target
        logger.debug("No scored cell in state %s; falling back", self.state.value)
        return self.follow_up_or_random(board)

    # Candidate pool -----------------------------------------------------

    def update_candidate_planes(self, board: TargetBoard) -> None:
        """Filter the pool against the board's public history and refresh the state."""
        self.apply_knowledge(BoardKnowledge.from_board(board))

    def apply_knowledge(self, knowledge: BoardKnowledge) -> None:
        destroyed_mask = knowledge.mask(knowledge.destroyed_cells)
        miss_mask = knowledge.mask(knowledge.misses)
        hit_mask = knowledge.mask(knowledge.active_hits)
        blocked = destroyed_mask | miss_mask

        # A kill ends the hunt the pool was narrowed for; restart from every placement.
        if knowledge.remaining_airplanes != self._remaining_airplanes:
            self._remaining_airplanes = knowledge.remaining_airplanes
            pool: list[CandidatePlacement] | tuple[CandidatePlacement, ...] = enumerate_placements(
                knowledge.size
            )
        else:
            pool = self.candidates

        remaining = [
            candidate
            for candidate in pool
            if not candidate.mask & blocked and candidate.mask & hit_mask == hit_mask
        ]

        if not remaining and knowledge.remaining_airplanes > 0:
            self.exhaustion_count += 1
            logger.warning(
                "Candidate pool exhausted with %d airplane(s) remaining; regenerating",
                knowledge.remaining_airplanes,
            )
            record_game_metric(EXHAUSTION_METRIC, 1, {"active_hits": len(knowledge.active_hits)})
            # Hits may belong to different airplanes, so only destroyed cells and misses filter here.
            remaining = [
                candidate
                for candidate in enumerate_placements(knowledge.size)
                if not candidate.mask & blocked
            ]

        self.candidates = remaining
        self._update_state(len(knowledge.active_hits))

    def _update_state(self, active_hits: int) -> None:
        pool = len(self.candidates)
        if pool < KILL_POOL_THRESHOLD or active_hits >= 2:
            state = InferenceState.KILL
        elif pool < LOCK_POOL_THRESHOLD or active_hits >= 1:
            state = InferenceState.LOCK
        else:
            state = InferenceState.SEARCH
        if state is not self.state:
            logger.info(
                "Inference state %s -> %s (pool=%d, active_hits=%d)",
                self.state.value,
                state.value,
                pool,
                active_hits,
            )
            self.state = state

    # Fast path ------------------------------------------------------------

    def probe_from_hits(self, knowledge: BoardKnowledge) -> Coordinate | None:
        for first, second in combinations(knowledge.active_hits, 2):
            guesses = self.find_head_from_aligned_hits(first, second, knowledge)
            if guesses:
                return guesses[0].coord
        return self.direction_probe(knowledge.active_hits[-1], knowledge)

    def find_head_from_aligned_hits(
        self, first: Coordinate, second: Coordinate, knowledge: BoardKnowledge
    ) -> list[HeadGuess]:
        """Score head positions implied by two hits on one row or column.

        Positions beyond either end of the line come first, then positions
        off the line's centre at wing (1) and tail (3) distance.
        """
        if first.row == second.row:
            row = first.row
            low, high = sorted((first.col, second.col))
            centre = (low + high + 1) // 2
            positions = [
                Coordinate(row, low - 1),
                Coordinate(row, high + 1),
                Coordinate(row, low - 2),
                Coordinate(row, high + 2),
                Coordinate(row - 1, centre),
                Coordinate(row + 1, centre),
                Coordinate(row - 3, centre),
                Coordinate(row + 3, centre),
            ]
        elif first.col == second.col:
            col = first.col
            low, high = sorted((first.row, second.row))
            centre = (low + high + 1) // 2
            positions = [
                Coordinate(low - 1, col),
                Coordinate(high + 1, col),
                Coordinate(low - 2, col),
                Coordinate(high + 2, col),
                Coordinate(centre, col - 1),
                Coordinate(centre, col + 1),
                Coordinate(centre, col - 3),
                Coordinate(centre, col + 3),
            ]
        else:
            return []

        head_counts = Counter(candidate.head for candidate in self.candidates)
        guesses: list[HeadGuess] = []
        for position in dict.fromkeys(positions):
            if not knowledge.is_open(position):
                continue
            score = head_counts.get(position, 0)
            if score > 0:
                guesses.append(HeadGuess(position, score))
        guesses.sort(key=lambda guess: guess.score, reverse=True)
        return guesses

    def direction_probe(self, last_hit: Coordinate, knowledge: BoardKnowledge) -> Coordinate | None:
        """Neighbour of ``last_hit`` covered by the most candidates."""
        best: Coordinate | None = None
        best_count = 0
        for neighbour in adjacent_positions(last_hit, knowledge.size):
            if knowledge.is_attacked(neighbour):
                continue
            count = sum(1 for candidate in self.candidates if candidate.covers(neighbour))
            if count > best_count:
                best, best_count = neighbour, count
        return best

    # State shots ----------------------------------------------------------

    def search_shot(self, knowledge: BoardKnowledge) -> Coordinate | None:
        centre = knowledge.size / 2
        scores: dict[Coordinate, float] = {}
        for candidate in self.candidates:
            head = candidate.head
            weight = SEARCH_HEAD_WEIGHT
            on_row_edge = head.row in (0, knowledge.size - 1)
            on_col_edge = head.col in (0, knowledge.size - 1)
            if on_row_edge and on_col_edge:
                weight += SEARCH_CORNER_BONUS
            elif on_row_edge or on_col_edge:
                weight += SEARCH_EDGE_BONUS
            if abs(head.row - centre) + abs(head.col - centre) <= SEARCH_CENTRE_RADIUS:
                weight += SEARCH_CENTRE_BONUS
            weight += SEARCH_HIT_BONUS * sum(
                1 for hit in knowledge.active_hits if manhattan(hit, head) <= SEARCH_HIT_RADIUS
            )
            weight -= SEARCH_MISS_PENALTY * sum(
                1 for miss in knowledge.misses if manhattan(miss, head) <= SEARCH_MISS_RADIUS
            )

            for cell in candidate.cells:
                if cell.role is CellRole.HEAD:
                    value = weight
                elif cell.role is CellRole.BODY:
                    value = SEARCH_BODY_WEIGHT
                else:
                    value = SEARCH_OTHER_WEIGHT
                scores[cell.coord] = scores.get(cell.coord, 0.0) + value

        return self._best_open(scores, knowledge)

    def lock_shot(self, knowledge: BoardKnowledge) -> Coordinate | None:
        if len(self.candidates) <= DIRECT_TARGET_POOL:
            target = self._direct_target(knowledge)
            if target is not None:
                return target
            return self.search_shot(knowledge)

        pool = len(self.candidates)
        matrix = occupancy_matrix(knowledge.size)[[candidate.index for candidate in self.candidates]]
        covering = matrix.sum(axis=0)
        head_frequency = np.bincount(
            [cell_index(candidate.head, knowledge.size) for candidate in self.candidates],
            minlength=knowledge.size * knowledge.size,
        )
        # A shot eliminates the covering candidates on a miss and the rest on a hit.
        gains = np.minimum(pool - covering, covering) + head_frequency * HEAD_FREQUENCY_WEIGHT
        gains = np.where(knowledge.attacked_flags(), 0, gains)
        best = int(np.argmax(gains))
        if gains[best] <= 0:
            return self.search_shot(knowledge)
        return Coordinate(*divmod(best, knowledge.size))

    def kill_shot(self, knowledge: BoardKnowledge) -> Coordinate | None:
        return self.lock_shot(knowledge)

    def _direct_target(self, knowledge: BoardKnowledge) -> Coordinate | None:
        best: Coordinate | None = None
        best_priority = 0
        for candidate in self.candidates:
            for cell in candidate.cells:
                if knowledge.is_attacked(cell.coord):
                    continue
                priority = ROLE_PRIORITY[cell.role]
                if priority > best_priority:
                    best, best_priority = cell.coord, priority
        return best

    @staticmethod
    def _best_open(scores: dict[Coordinate, float], knowledge: BoardKnowledge) -> Coordinate | None:
        best: Coordinate | None = None
        best_score = float("-inf")
        for coord, score in scores.items():
            if knowledge.is_attacked(coord):
                continue
            if score > best_score:
                best, best_score = coord, score
        return best
