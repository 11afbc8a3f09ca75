"""Tests for airplane placement validation and damage tracking."""

import random

from airbattle.engine.airplane import OUT_OF_BOUNDS, OVERLAPPING, Airplane, AttackResult
from airbattle.engine.geometry import CellRole, Coordinate, Orientation


def test_validate_placement_reports_bounds_and_overlap() -> None:
    first = Airplane(0, Coordinate(0, 2), Orientation.UP)
    assert first.validate_placement(10)

    off_board = Airplane(1, Coordinate(0, 0), Orientation.UP)
    check = off_board.validate_placement(10)
    assert not check
    assert check.reason == OUT_OF_BOUNDS

    overlapping = Airplane(1, Coordinate(1, 4), Orientation.UP)
    check = overlapping.validate_placement(10, [first])
    assert not check.valid
    assert check.reason == OVERLAPPING


def test_head_hit_destroys_immediately() -> None:
    airplane = Airplane(0, Coordinate(5, 5), Orientation.UP)
    check = airplane.check_hit(Coordinate(5, 5))
    assert check.result is AttackResult.KILL
    assert check.was_head
    assert check.role is CellRole.HEAD
    assert airplane.destroyed


def test_destroying_by_hitting_every_non_head_cell() -> None:
    airplane = Airplane(0, Coordinate(5, 5), Orientation.UP)
    body_cells = [cell.coord for cell in airplane.cells() if cell.role is not CellRole.HEAD]
    assert len(body_cells) == 9

    for coord in body_cells[:-1]:
        assert airplane.check_hit(coord).result is AttackResult.HIT
    assert not airplane.destroyed

    last = airplane.check_hit(body_cells[-1])
    assert last.result is AttackResult.KILL
    assert not last.was_head
    assert airplane.destroyed


def test_check_hit_on_destroyed_or_repeated_cells() -> None:
    airplane = Airplane(0, Coordinate(5, 5), Orientation.UP)
    assert airplane.check_hit(Coordinate(0, 0)).result is AttackResult.MISS

    assert airplane.check_hit(Coordinate(6, 5)).result is AttackResult.HIT
    assert airplane.check_hit(Coordinate(6, 5)).result is AttackResult.ALREADY_ATTACKED

    airplane.check_hit(Coordinate(5, 5))
    assert airplane.check_hit(Coordinate(7, 5)).result is AttackResult.MISS
    assert Coordinate(7, 5) not in airplane.hits


def test_destroyed_airplane_reports_miss_on_every_cell() -> None:
    airplane = Airplane(0, Coordinate(5, 5), Orientation.UP)
    airplane.check_hit(Coordinate(6, 5))
    assert airplane.check_hit(Coordinate(5, 5)).result is AttackResult.KILL

    for coord in airplane.coordinates():
        check = airplane.check_hit(coord)
        assert check.result is AttackResult.MISS
        assert not check.was_head
    assert airplane.hits == {Coordinate(5, 5), Coordinate(6, 5)}


def test_dict_round_trip_keeps_damage() -> None:
    airplane = Airplane(2, Coordinate(3, 6), Orientation.RIGHT)
    airplane.check_hit(Coordinate(3, 5))
    restored = Airplane.from_dict(airplane.to_dict())
    assert restored.airplane_id == 2
    assert restored.orientation is Orientation.RIGHT
    assert restored.hits == {Coordinate(3, 5)}
    assert not restored.destroyed


def test_random_airplane_respects_existing_fleet() -> None:
    rng = random.Random(7)
    fleet: list[Airplane] = []
    for airplane_id in range(3):
        airplane = Airplane.random(10, fleet, airplane_id, rng)
        assert airplane is not None
        assert airplane.validate_placement(10, fleet)
        fleet.append(airplane)


def test_random_airplane_gives_up_when_no_room() -> None:
    blocker = Airplane(0, Coordinate(0, 2), Orientation.UP)
    # A 5x5 board only fits eight placements and they all share its centre cell.
    assert Airplane.random(5, [blocker], 1, random.Random(1), max_attempts=50) is None
