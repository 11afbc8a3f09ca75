"""Tests for the Board mechanics."""

import random

import pytest
from airbattle.engine.airplane import Airplane, AttackResult
from airbattle.engine.board import MAX_AIRPLANES_REACHED, Board, CellState
from airbattle.engine.geometry import CellRole, Coordinate, Orientation
from airbattle.engine.rules import GameRules


def _board_with_airplane() -> Board:
    board = Board(size=10, airplane_count=1)
    assert board.add_airplane(Airplane(0, Coordinate(5, 5), Orientation.UP))
    return board


def test_attack_outcomes_and_history() -> None:
    board = _board_with_airplane()

    miss = board.process_attack(Coordinate(0, 0))
    assert miss.result is AttackResult.MISS
    assert miss.airplane_id is None

    hit = board.process_attack(Coordinate(6, 5))
    assert hit.result is AttackResult.HIT
    assert hit.airplane_id == 0
    assert hit.cell_role is CellRole.BODY
    assert not board.are_all_airplanes_destroyed()

    assert board.process_attack(Coordinate(6, 5)).result is AttackResult.ALREADY_ATTACKED
    assert board.process_attack(Coordinate(10, 0)).result is AttackResult.INVALID
    assert board.process_attack(Coordinate(-1, 3)).result is AttackResult.INVALID

    kill = board.process_attack(Coordinate(5, 5))
    assert kill.result is AttackResult.KILL
    assert kill.was_head
    assert board.are_all_airplanes_destroyed()

    history = board.get_attack_history()
    assert [record.result for record in history] == [
        AttackResult.MISS,
        AttackResult.HIT,
        AttackResult.KILL,
    ]
    assert history[0].display == "1A"
    assert board.get_recent_attacks(1)[0].coordinate == Coordinate(5, 5)


def test_rejected_attacks_leave_state_untouched() -> None:
    board = _board_with_airplane()
    board.process_attack(Coordinate(2, 2))
    attacked = set(board.attacked_cells)
    history_length = len(board.history)

    board.process_attack(Coordinate(2, 2))
    board.process_attack(Coordinate(0, 10))

    assert board.attacked_cells == attacked
    assert len(board.history) == history_length


def test_no_airplanes_means_not_all_destroyed() -> None:
    assert not Board().are_all_airplanes_destroyed()


def test_add_airplane_enforces_fleet_size() -> None:
    board = _board_with_airplane()
    check = board.add_airplane(Airplane(1, Coordinate(0, 2), Orientation.UP))
    assert not check
    assert check.reason == MAX_AIRPLANES_REACHED
    assert len(board.airplanes) == 1

    assert board.remove_airplane(0)
    assert not board.remove_airplane(0)
    assert not board.is_deployment_complete()


def test_random_placement_fills_fleet_without_overlap() -> None:
    board = Board.from_rules(GameRules(), owner="test")
    assert board.place_airplanes_randomly(random.Random(123))
    assert board.is_deployment_complete()
    coords = [coord for airplane in board.airplanes for coord in airplane.coordinates()]
    assert len(coords) == 30
    assert len(set(coords)) == len(coords)
    assert all(coord.within(board.size) for coord in coords)


def test_random_placement_failure_leaves_board_empty() -> None:
    board = Board(size=5, airplane_count=2, placement_retries=3, min_placement_attempts=20)
    assert not board.place_airplanes_randomly(random.Random(0))
    assert board.airplanes == []


def test_statistics_and_cell_states() -> None:
    board = _board_with_airplane()
    assert board.get_statistics().accuracy == 0.0

    board.process_attack(Coordinate(0, 0))
    board.process_attack(Coordinate(6, 5))
    board.process_attack(Coordinate(6, 4))

    stats = board.get_statistics()
    assert stats.total_attacks == 3
    assert stats.hits == 2
    assert stats.misses == 1
    assert stats.accuracy == pytest.approx(66.7)
    assert stats.remaining_airplanes == 1

    assert board.get_cell_state(Coordinate(0, 0)) is CellState.MISS
    assert board.get_cell_state(Coordinate(6, 5)) is CellState.HIT
    assert board.get_cell_state(Coordinate(7, 5)) is CellState.EMPTY
    assert board.get_cell_state(Coordinate(7, 5), reveal_airplanes=True) is CellState.AIRPLANE

    board.process_attack(Coordinate(5, 5))
    assert board.get_cell_state(Coordinate(5, 5)) is CellState.KILLED
    assert board.destroyed_airplane_cells() == set(board.airplanes[0].coordinates())


def test_reset_keeps_placement() -> None:
    board = _board_with_airplane()
    board.process_attack(Coordinate(5, 5))
    board.reset()
    assert board.history == []
    assert not board.attacked_cells
    assert len(board.airplanes) == 1
    assert not board.airplanes[0].destroyed


def test_serialization_round_trip() -> None:
    board = _board_with_airplane()
    board.owner = "alice"
    board.process_attack(Coordinate(0, 0))
    board.process_attack(Coordinate(6, 5))

    restored = Board.from_serializable(board.to_serializable())
    assert restored.size == board.size
    assert restored.owner == "alice"
    assert restored.attacked_cells == board.attacked_cells
    assert [record.result for record in restored.history] == [AttackResult.MISS, AttackResult.HIT]
    assert restored.airplanes[0].hits == {Coordinate(6, 5)}
    assert restored.to_serializable() == board.to_serializable()


def test_serialization_keeps_placement_settings() -> None:
    rules = GameRules(placement_retries=3, min_placement_attempts=250)
    board = Board.from_rules(rules, owner="bob")

    restored = Board.from_serializable(board.to_serializable())
    assert restored.placement_retries == 3
    assert restored.min_placement_attempts == 250


def test_first_attack_on_empty_board_is_recorded_miss() -> None:
    board = Board(size=10, airplane_count=3)
    outcome = board.process_attack(Coordinate(0, 0))

    assert outcome.result is AttackResult.MISS
    assert len(board.attacked_cells) == 1
    assert len(board.get_attack_history()) == 1


def test_repeat_attack_on_killed_head_is_rejected() -> None:
    board = _board_with_airplane()
    assert board.process_attack(Coordinate(5, 5)).result is AttackResult.KILL
    history_length = len(board.get_attack_history())

    again = board.process_attack(Coordinate(5, 5))
    assert again.result is AttackResult.ALREADY_ATTACKED
    assert len(board.get_attack_history()) == history_length


def test_hitting_every_non_head_cell_destroys_airplane() -> None:
    board = _board_with_airplane()
    airplane = board.airplanes[0]
    body_cells = [cell.coord for cell in airplane.cells() if cell.role is not CellRole.HEAD]

    results = [board.process_attack(coord) for coord in body_cells]
    assert [outcome.result for outcome in results[:-1]] == [AttackResult.HIT] * 8
    assert results[-1].result is AttackResult.KILL
    assert not results[-1].was_head
    assert board.are_all_airplanes_destroyed()
    assert board.get_attack_history()[-1].result is AttackResult.KILL


def test_external_attacks_build_public_history() -> None:
    board = Board(size=10, airplane_count=2)
    assert board.record_external_attack(Coordinate(1, 1), AttackResult.MISS).result is AttackResult.MISS
    hit = board.record_external_attack(Coordinate(4, 4), AttackResult.HIT, airplane_id=1)
    assert hit.airplane_id == 1
    kill = board.record_external_attack(Coordinate(3, 4), AttackResult.KILL, airplane_id=1)
    assert kill.was_head

    assert board.record_external_attack(Coordinate(1, 1), AttackResult.MISS).result is (
        AttackResult.ALREADY_ATTACKED
    )
    assert board.record_external_attack(Coordinate(12, 1), AttackResult.HIT).result is (
        AttackResult.INVALID
    )
    with pytest.raises(ValueError):
        board.record_external_attack(Coordinate(2, 2), AttackResult.INVALID)

    assert board.get_cell_state(Coordinate(4, 4)) is CellState.HIT
    assert board.get_cell_state(Coordinate(3, 4)) is CellState.KILLED
    assert len(board.get_attack_history()) == 3
