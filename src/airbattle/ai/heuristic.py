"""Heuristic opponent: opening book, line extrapolation and placement statistics."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from itertools import combinations

import numpy as np
import numpy.typing as npt

from airbattle.engine.geometry import Coordinate

from .knowledge import BoardKnowledge, TargetBoard
from .placements import CandidatePlacement, enumerate_placements, head_indices, occupancy_matrix
from .reactive import ReactiveOpponent

logger = logging.getLogger(__name__)

OPENING_MOVES = 3
CLUSTER_RADIUS = 3
CLUSTER_EXPLAINED_WEIGHT = 100
CLUSTER_SIZE_WEIGHT = 20
CLUSTER_COMPLETE_BONUS = 5000
INFO_HEAD_WEIGHT = 5
INFO_TOUCH_BONUS = 20
INFO_VALUE_THRESHOLD = 50
HEAD_WEIGHT_MULTIPLIER = 3
CORNER_MULTIPLIER = 1.5
EDGE_MULTIPLIER = 1.2
PROBABILITY_FACTOR = 10


def edge_bonus(coord: Coordinate, size: int) -> int:
    """3 for a corner cell, 2 for any other border cell, else 0."""
    on_row_edge = coord.row in (0, size - 1)
    on_col_edge = coord.col in (0, size - 1)
    if on_row_edge and on_col_edge:
        return 3
    if on_row_edge or on_col_edge:
        return 2
    return 0


def position_multiplier(coord: Coordinate, size: int) -> float:
    bonus = edge_bonus(coord, size)
    if bonus == 3:
        return CORNER_MULTIPLIER
    if bonus == 2:
        return EDGE_MULTIPLIER
    return 1.0


def placement_weight(explained: int, bonus: int) -> float:
    """Weight of a placement explaining ``explained`` active hits.

    Every step up in explained hits outweighs any edge bonus of the step below.
    """
    if explained <= 0:
        return 1 + bonus
    if explained == 1:
        return 101 + bonus * 5
    if explained == 2:
        return 501 + bonus * 20
    if explained == 3:
        return 2001 + bonus * 50
    return 5001 + explained * 500 + bonus * 100


def hit_clusters(
    hits: tuple[Coordinate, ...] | list[Coordinate], radius: int = CLUSTER_RADIUS
) -> list[list[Coordinate]]:
    """Group hits transitively linked within ``radius`` (Chebyshev distance)."""
    clusters: list[list[Coordinate]] = []
    seen: set[Coordinate] = set()
    for start in hits:
        if start in seen:
            continue
        seen.add(start)
        cluster: list[Coordinate] = []
        pending = deque([start])
        while pending:
            current = pending.popleft()
            cluster.append(current)
            for other in hits:
                if other in seen:
                    continue
                if max(abs(other.row - current.row), abs(other.col - current.col)) <= radius:
                    seen.add(other)
                    pending.append(other)
        clusters.append(cluster)
    return clusters


@dataclass
class PlacementAnalysis:
    """Per-turn view of every in-bounds placement against the known shots."""

    placements: tuple[CandidatePlacement, ...]
    occupancy: npt.NDArray[np.bool_]
    heads: npt.NDArray[np.int64]
    valid: npt.NDArray[np.bool_]
    head_open: npt.NDArray[np.bool_]
    explained: npt.NDArray[np.int64]
    attacked: npt.NDArray[np.bool_]

    @classmethod
    def build(cls, knowledge: BoardKnowledge) -> PlacementAnalysis:
        occupancy = occupancy_matrix(knowledge.size)
        heads = head_indices(knowledge.size)
        attacked = knowledge.attacked_flags()

        if knowledge.misses:
            valid = ~occupancy[:, knowledge.flat_indices(knowledge.misses)].any(axis=1)
        else:
            valid = np.ones(len(heads), dtype=np.bool_)

        if knowledge.active_hits:
            explained = occupancy[:, knowledge.flat_indices(knowledge.active_hits)].sum(axis=1)
        else:
            explained = np.zeros(len(heads), dtype=np.int64)

        return cls(
            placements=enumerate_placements(knowledge.size),
            occupancy=occupancy,
            heads=heads,
            valid=valid,
            head_open=~attacked[heads],
            explained=explained.astype(np.int64),
            attacked=attacked,
        )

    def heat(self) -> npt.NDArray[np.int64]:
        """Number of valid placements covering each cell."""
        return self.occupancy[self.valid].sum(axis=0).astype(np.int64)


class HeuristicOpponent(ReactiveOpponent):
    """Scores cells from every airplane placement still consistent with the misses."""

    label = "hard"

    def get_next_attack(self, board: TargetBoard) -> Coordinate | None:
        self.ensure_board_size(board)
        knowledge = BoardKnowledge.from_board(board)

        target = self.opening_move(knowledge)
        if target is not None:
            return target

        target = self.line_extension_target(knowledge)
        if target is not None:
            logger.debug("Extending hit line to %s", target.key)
            return target

        analysis = PlacementAnalysis.build(knowledge)
        target = self.cluster_head_target(knowledge, analysis)
        if target is not None:
            logger.debug("Cluster head candidate %s", target.key)
            return target

        target = self.information_target(knowledge, analysis)
        if target is not None:
            return target

        target = self.probability_target(knowledge, analysis)
        if target is not None:
            return target

        return self.follow_up_or_random(board)

    def opening_move(self, knowledge: BoardKnowledge) -> Coordinate | None:
        if knowledge.history_length >= OPENING_MOVES:
            return None
        centre = knowledge.size // 2
        openings = (
            Coordinate(centre, centre),
            Coordinate(centre - 2, centre),
            Coordinate(centre, centre + 2),
        )
        move = openings[knowledge.history_length]
        return move if knowledge.is_open(move) else None

    def line_extension_target(self, knowledge: BoardKnowledge) -> Coordinate | None:
        """Extend (then fill) any pair of active hits sharing a row or column."""
        for first, second in combinations(knowledge.active_hits, 2):
            if first.row == second.row:
                low, high = sorted((first.col, second.col))
                row = first.row
                options = (
                    Coordinate(row, low - 1),
                    Coordinate(row, high + 1),
                    Coordinate(row, low + 1),
                    Coordinate(row, high - 1),
                )
            elif first.col == second.col:
                low, high = sorted((first.row, second.row))
                col = first.col
                options = (
                    Coordinate(low - 1, col),
                    Coordinate(high + 1, col),
                    Coordinate(low + 1, col),
                    Coordinate(high - 1, col),
                )
            else:
                continue
            for option in options:
                if knowledge.is_open(option):
                    return option
        return None

    def cluster_head_target(
        self, knowledge: BoardKnowledge, analysis: PlacementAnalysis
    ) -> Coordinate | None:
        """Best open head among valid placements explaining the most of one hit cluster."""
        for cluster in hit_clusters(knowledge.active_hits):
            explained = analysis.occupancy[:, knowledge.flat_indices(cluster)].sum(axis=1)
            eligible = analysis.valid & analysis.head_open & (explained > 0)
            if not eligible.any():
                continue
            scores = (
                explained.astype(np.int64) ** 3 * CLUSTER_EXPLAINED_WEIGHT
                + len(cluster) * CLUSTER_SIZE_WEIGHT
            )
            if len(cluster) >= 2:
                scores = scores + np.where(explained == len(cluster), CLUSTER_COMPLETE_BONUS, 0)
            scores = np.where(eligible, scores, -1)
            best = int(np.argmax(scores))
            return analysis.placements[best].head
        return None

    def information_values(
        self, knowledge: BoardKnowledge, analysis: PlacementAnalysis
    ) -> npt.NDArray[np.int64]:
        cells = knowledge.size * knowledge.size
        valid_heads = analysis.heads[analysis.valid]
        touching_heads = analysis.heads[analysis.valid & (analysis.explained > 0)]
        coverage = analysis.occupancy[analysis.valid & analysis.head_open].sum(axis=0)
        values = (
            np.bincount(valid_heads, minlength=cells) * INFO_HEAD_WEIGHT
            + np.bincount(touching_heads, minlength=cells) * INFO_TOUCH_BONUS
            + coverage
        )
        return np.where(analysis.attacked, -1, values).astype(np.int64)

    def information_target(
        self, knowledge: BoardKnowledge, analysis: PlacementAnalysis
    ) -> Coordinate | None:
        values = self.information_values(knowledge, analysis)
        best = int(np.argmax(values))
        if values[best] <= INFO_VALUE_THRESHOLD:
            return None
        return Coordinate(*divmod(best, knowledge.size))

    def head_probabilities(
        self, knowledge: BoardKnowledge, analysis: PlacementAnalysis
    ) -> npt.NDArray[np.float64]:
        probabilities = np.zeros(knowledge.size * knowledge.size, dtype=np.float64)
        for index in np.flatnonzero(analysis.valid & analysis.head_open):
            head = analysis.placements[index].head
            weight = placement_weight(
                int(analysis.explained[index]), edge_bonus(head, knowledge.size)
            )
            weight *= HEAD_WEIGHT_MULTIPLIER * position_multiplier(head, knowledge.size)
            probabilities[analysis.heads[index]] += weight
        return probabilities

    def probability_target(
        self, knowledge: BoardKnowledge, analysis: PlacementAnalysis
    ) -> Coordinate | None:
        scores = (
            self.head_probabilities(knowledge, analysis) * PROBABILITY_FACTOR
            + analysis.heat()
        )
        scores = np.where(analysis.attacked, 0.0, scores)
        best_score = scores.max()
        if best_score <= 0:
            return None
        tied = np.flatnonzero(scores == best_score)
        choice = int(self.rng.choice(list(tied)))
        return Coordinate(*divmod(choice, knowledge.size))
