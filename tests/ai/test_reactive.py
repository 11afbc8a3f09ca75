"""Tests for the random and hit-following opponents."""

import random

import pytest
from airbattle.ai import Difficulty, create_opponent
from airbattle.ai.heuristic import HeuristicOpponent
from airbattle.ai.reactive import RandomOpponent, ReactiveOpponent
from airbattle.engine.airplane import AttackResult
from airbattle.engine.board import AttackOutcome, Board
from airbattle.engine.geometry import CellRole, Coordinate
from airbattle.engine.rules import GameRules


def _hit(airplane_id: int = 0) -> AttackOutcome:
    return AttackOutcome(AttackResult.HIT, airplane_id, CellRole.BODY)


def test_random_opponent_never_repeats_and_exhausts() -> None:
    rules = GameRules(board_size=5, airplane_count=1)
    board = Board.from_rules(rules)
    opponent = RandomOpponent(rules, random.Random(0))

    seen = set()
    for _ in range(25):
        coord = opponent.get_next_attack(board)
        assert coord is not None
        assert coord not in seen
        seen.add(coord)
        board.process_attack(coord)

    assert opponent.get_next_attack(board) is None


def test_hit_queues_neighbours() -> None:
    opponent = ReactiveOpponent(GameRules(), random.Random(0))
    opponent.process_attack_result(Coordinate(4, 4), _hit())
    assert list(opponent.target_queue) == [
        Coordinate(3, 4),
        Coordinate(5, 4),
        Coordinate(4, 3),
        Coordinate(4, 5),
    ]


def test_aligned_hits_put_the_line_first() -> None:
    opponent = ReactiveOpponent(GameRules(), random.Random(0))
    opponent.process_attack_result(Coordinate(4, 4), _hit())
    opponent.target_queue.clear()
    opponent.process_attack_result(Coordinate(4, 5), _hit())

    front = set(list(opponent.target_queue)[:2])
    assert front == {Coordinate(4, 4), Coordinate(4, 6)}
    assert set(list(opponent.target_queue)[2:]) == {Coordinate(3, 5), Coordinate(5, 5)}


def test_follow_up_skips_attacked_cells_and_kill_clears_pursuit() -> None:
    rules = GameRules()
    board = Board.from_rules(rules)
    opponent = ReactiveOpponent(rules, random.Random(0))

    board.record_external_attack(Coordinate(4, 4), AttackResult.HIT)
    board.record_external_attack(Coordinate(3, 4), AttackResult.MISS)
    opponent.process_attack_result(Coordinate(4, 4), _hit())

    assert opponent.get_next_attack(board) == Coordinate(5, 4)

    opponent.process_attack_result(Coordinate(5, 4), AttackOutcome(AttackResult.KILL, 0, CellRole.HEAD, True))
    assert not opponent.target_queue
    assert opponent.hit_sequence == []
    assert opponent.last_hit is None


def test_factory_builds_each_tier() -> None:
    rules = GameRules()
    labels = {level: create_opponent(level, rules, random.Random(1)).label for level in Difficulty}
    assert labels == {
        Difficulty.EASY: "easy",
        Difficulty.MEDIUM: "medium",
        Difficulty.HARD: "hard",
        Difficulty.ULTRA: "ultra",
    }
    assert isinstance(create_opponent("medium", rules), ReactiveOpponent)


@pytest.mark.parametrize("opponent_cls", [RandomOpponent, ReactiveOpponent, HeuristicOpponent])
def test_opponents_reject_boards_of_another_size(opponent_cls) -> None:
    opponent = opponent_cls(GameRules(), random.Random(0))
    with pytest.raises(ValueError):
        opponent.get_next_attack(Board(size=12))
