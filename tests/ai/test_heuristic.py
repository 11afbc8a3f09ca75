"""Tests for the heuristic opponent."""

import random

import pytest
from airbattle.ai.heuristic import (
    HeuristicOpponent,
    PlacementAnalysis,
    edge_bonus,
    hit_clusters,
    placement_weight,
)
from airbattle.ai.knowledge import BoardKnowledge
from airbattle.ai.placements import enumerate_placements
from airbattle.engine.airplane import AttackResult
from airbattle.engine.board import Board
from airbattle.engine.geometry import Coordinate
from airbattle.engine.rules import GameRules

CORNER_MISSES = (Coordinate(0, 0), Coordinate(9, 9), Coordinate(0, 9))


def _board(misses=CORNER_MISSES, hits=()) -> Board:
    board = Board(size=10, airplane_count=3)
    for coord in misses:
        board.record_external_attack(coord, AttackResult.MISS)
    for coord in hits:
        board.record_external_attack(coord, AttackResult.HIT)
    return board


def _opponent() -> HeuristicOpponent:
    return HeuristicOpponent(GameRules(), random.Random(5))


def test_opening_sequence() -> None:
    board = Board(size=10, airplane_count=3)
    opponent = _opponent()

    expected = [Coordinate(5, 5), Coordinate(3, 5), Coordinate(5, 7)]
    for coord in expected:
        assert opponent.get_next_attack(board) == coord
        board.record_external_attack(coord, AttackResult.MISS)


def test_line_extension_before_gap_filling() -> None:
    opponent = _opponent()
    board = _board(hits=(Coordinate(4, 4), Coordinate(4, 5)))
    assert opponent.get_next_attack(board) == Coordinate(4, 3)

    board = _board(
        misses=CORNER_MISSES + (Coordinate(4, 2), Coordinate(4, 7)),
        hits=(Coordinate(4, 3), Coordinate(4, 6)),
    )
    assert opponent.get_next_attack(board) == Coordinate(4, 4)


def test_single_hit_targets_a_consistent_head() -> None:
    opponent = _opponent()
    hit = Coordinate(4, 4)
    board = _board(hits=(hit,))
    target = opponent.get_next_attack(board)

    heads = {
        placement.head
        for placement in enumerate_placements(10)
        if placement.covers(hit) and not any(placement.covers(miss) for miss in CORNER_MISSES)
    }
    assert target in heads
    assert not board.is_cell_attacked(target)


def test_placement_weights_are_strictly_tiered() -> None:
    for explained in range(5):
        best_lower = max(placement_weight(explained, bonus) for bonus in (0, 2, 3))
        worst_higher = min(placement_weight(explained + 1, bonus) for bonus in (0, 2, 3))
        assert worst_higher > best_lower


def test_edge_bonus() -> None:
    assert edge_bonus(Coordinate(0, 0), 10) == 3
    assert edge_bonus(Coordinate(0, 5), 10) == 2
    assert edge_bonus(Coordinate(9, 4), 10) == 2
    assert edge_bonus(Coordinate(4, 4), 10) == 0


def test_hit_clusters_group_nearby_hits() -> None:
    hits = (Coordinate(1, 1), Coordinate(3, 4), Coordinate(0, 9), Coordinate(6, 6))
    clusters = hit_clusters(hits)
    assert [set(cluster) for cluster in clusters] == [
        {Coordinate(1, 1), Coordinate(3, 4), Coordinate(6, 6)},
        {Coordinate(0, 9)},
    ]


def test_statistics_ignore_placements_over_misses() -> None:
    knowledge = BoardKnowledge.from_board(_board())
    analysis = PlacementAnalysis.build(knowledge)
    for index in analysis.valid.nonzero()[0][:50]:
        placement = analysis.placements[index]
        assert not any(placement.covers(miss) for miss in CORNER_MISSES)

    opponent = _opponent()
    values = opponent.information_values(knowledge, analysis)
    for miss in CORNER_MISSES:
        assert values[miss.row * 10 + miss.col] == -1

    target = opponent.probability_target(knowledge, analysis)
    assert target is not None
    assert not knowledge.is_attacked(target)


@pytest.mark.parametrize("seed", [1, 2, 3])
def test_heuristic_opponent_clears_a_random_fleet(seed: int) -> None:
    rules = GameRules()
    board = Board.from_rules(rules)
    assert board.place_airplanes_randomly(random.Random(seed))
    opponent = HeuristicOpponent(rules, random.Random(seed))

    shots = 0
    while not board.are_all_airplanes_destroyed():
        coord = opponent.get_next_attack(board)
        assert coord is not None
        outcome = board.process_attack(coord)
        assert outcome.result not in (AttackResult.INVALID, AttackResult.ALREADY_ATTACKED)
        opponent.process_attack_result(coord, outcome)
        shots += 1
    assert shots <= 100
