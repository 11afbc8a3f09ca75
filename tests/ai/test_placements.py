"""Tests for candidate enumeration and board knowledge."""

import pytest
from airbattle.ai.knowledge import BoardKnowledge
from airbattle.ai.placements import enumerate_placements, head_indices, make_mask, occupancy_matrix
from airbattle.engine.airplane import Airplane, AttackResult
from airbattle.engine.board import Board
from airbattle.engine.geometry import AIRPLANE_CELL_COUNT, Coordinate, Orientation


@pytest.mark.parametrize("size", [5, 6, 10, 15, 20])
def test_enumeration_counts_every_in_bounds_placement(size: int) -> None:
    placements = enumerate_placements(size)
    assert len(placements) == 4 * (size - 3) * (size - 4)
    assert all(len(placement.coords) == AIRPLANE_CELL_COUNT for placement in placements)
    assert all(coord.within(size) for placement in placements for coord in placement.coords)


def test_enumeration_on_smallest_board() -> None:
    placements = enumerate_placements(5)
    assert len(placements) == 8
    assert all(placement.covers(Coordinate(2, 2)) for placement in placements)


def test_occupancy_matrix_matches_placements() -> None:
    placements = enumerate_placements(10)
    matrix = occupancy_matrix(10)
    heads = head_indices(10)
    assert matrix.shape == (len(placements), 100)
    assert (matrix.sum(axis=1) == AIRPLANE_CELL_COUNT).all()
    for placement in placements[:20]:
        assert matrix[placement.index, heads[placement.index]]
        assert placement.mask == make_mask(placement.coords, 10)
    assert not matrix.flags.writeable


def test_knowledge_tracks_active_hits_until_kill() -> None:
    board = Board(size=10, airplane_count=2)
    board.add_airplane(Airplane(0, Coordinate(5, 5), Orientation.UP))
    board.add_airplane(Airplane(1, Coordinate(0, 2), Orientation.UP))
    board.process_attack(Coordinate(0, 9))
    board.process_attack(Coordinate(6, 5))
    board.process_attack(Coordinate(1, 2))
    board.process_attack(Coordinate(5, 5))

    knowledge = BoardKnowledge.from_board(board)
    assert knowledge.misses == frozenset({Coordinate(0, 9)})
    assert knowledge.active_hits == (Coordinate(1, 2),)
    assert knowledge.destroyed_ids == frozenset({0})
    assert knowledge.destroyed_cells == frozenset(board.airplanes[0].coordinates())
    assert knowledge.remaining_airplanes == 1
    assert knowledge.history_length == 4
    assert not knowledge.is_open(Coordinate(6, 5))
    assert not knowledge.is_open(Coordinate(-1, 0))
    assert len(knowledge.unattacked()) == 96


def test_knowledge_from_external_results() -> None:
    board = Board(size=10, airplane_count=3)
    board.record_external_attack(Coordinate(2, 2), AttackResult.HIT)
    board.record_external_attack(Coordinate(2, 3), AttackResult.HIT, airplane_id=4)
    board.record_external_attack(Coordinate(2, 1), AttackResult.KILL, airplane_id=4)

    knowledge = BoardKnowledge.from_board(board)
    assert knowledge.active_hits == (Coordinate(2, 2),)
    assert knowledge.remaining_airplanes == 2
    assert knowledge.destroyed_cells == frozenset()
