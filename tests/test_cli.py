"""Tests for the command-line driver."""

import random

import pytest
from airbattle import cli
from airbattle.ai import Difficulty, create_opponent
from airbattle.engine.airplane import Airplane, AttackResult
from airbattle.engine.board import AttackOutcome, Board
from airbattle.engine.geometry import CellRole, Coordinate, Orientation
from airbattle.engine.rules import GameRules


def test_format_board_hides_airplanes_unless_revealed() -> None:
    board = Board(size=10, airplane_count=1)
    board.add_airplane(Airplane(0, Coordinate(5, 5), Orientation.UP))
    board.process_attack(Coordinate(0, 0))
    board.process_attack(Coordinate(6, 5))

    hidden = cli.format_board(board, show_airplanes=False).splitlines()
    revealed = cli.format_board(board, show_airplanes=True).splitlines()
    assert hidden[0].split() == ["A", "B", "C", "D", "E", "F", "G", "H", "I", "J"]
    assert hidden[1].startswith(" 1 |")
    assert "+" not in "".join(hidden)
    assert "+" in "".join(revealed)
    assert "o" in hidden[1]
    assert "X" in hidden[7]


def test_describe_shot() -> None:
    kill = AttackOutcome(AttackResult.KILL, 0, CellRole.HEAD, True)
    assert cli.describe_shot("You", Coordinate(0, 0), kill) == "You fired at 1A: destroyed an airplane (head shot)!"
    hit = AttackOutcome(AttackResult.HIT, 0, CellRole.WING)
    assert cli.describe_shot("AI", Coordinate(1, 2), hit) == "AI fired at 2C: hit (wing)"
    miss = AttackOutcome.miss()
    assert cli.describe_shot("AI", Coordinate(1, 2), miss) == "AI fired at 2C: miss"


def test_play_solo_counts_shots_until_fleet_destroyed() -> None:
    rules = GameRules()
    board = Board.from_rules(rules)
    assert board.place_airplanes_randomly(random.Random(9))
    shots = cli.play_solo(create_opponent(Difficulty.MEDIUM, rules, random.Random(9)), board)
    assert board.are_all_airplanes_destroyed()
    assert 3 <= shots <= 100
    assert shots == len(board.get_attack_history())


def test_simulate_games_returns_one_result_per_game() -> None:
    results = cli.simulate_games(Difficulty.EASY, GameRules(), games=2, seed=3)
    assert len(results) == 2
    assert all(3 <= shots <= 100 for shots in results)


def test_main_simulate_prints_summary(capsys: pytest.CaptureFixture[str]) -> None:
    cli.main(["simulate", "--difficulty", "hard", "--games", "1", "--seed", "1"])
    out = capsys.readouterr().out
    assert "hard: games=1" in out


def test_main_rejects_rules_outside_mode_limits() -> None:
    with pytest.raises(SystemExit):
        cli.main(["simulate", "--mode", "standard", "--board-size", "12"])
