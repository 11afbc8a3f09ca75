"""Command-line driver: play Airplane Battle against the AI or pit AI tiers against random fleets."""

from __future__ import annotations

import argparse
import random
from typing import Sequence

import numpy as np

from airbattle.ai import Difficulty, OpponentEngine, create_opponent
from airbattle.engine.airplane import Airplane, AttackResult
from airbattle.engine.board import AttackOutcome, Board, CellState
from airbattle.engine.coordinates import CoordinateFormatError, column_labels, parse_display, to_display
from airbattle.engine.game import AirplaneBattle, GamePhase, PlacementError, Player
from airbattle.engine.geometry import Coordinate, Orientation
from airbattle.engine.instrumented_game import InstrumentedAirplaneBattle
from airbattle.engine.rules import GameMode, GameRules, check_occupancy
from airbattle.telemetry import init_telemetry

CELL_SYMBOLS = {
    CellState.EMPTY: ".",
    CellState.AIRPLANE: "+",
    CellState.HIT: "X",
    CellState.MISS: "o",
    CellState.KILLED: "#",
}

ORIENTATION_INPUTS = {
    "U": Orientation.UP,
    "UP": Orientation.UP,
    "D": Orientation.DOWN,
    "DOWN": Orientation.DOWN,
    "L": Orientation.LEFT,
    "LEFT": Orientation.LEFT,
    "R": Orientation.RIGHT,
    "RIGHT": Orientation.RIGHT,
}


def format_board(board: Board, show_airplanes: bool) -> str:
    width = len(str(board.size))
    header = " " * (width + 2) + " ".join(f"{label:>2}" for label in column_labels(board.size))
    rows = [header]
    for row in range(board.size):
        symbols = []
        for col in range(board.size):
            state = board.get_cell_state(Coordinate(row, col), reveal_airplanes=show_airplanes)
            symbols.append(f"{CELL_SYMBOLS[state]:>2}")
        rows.append(f"{row + 1:>{width}} |" + " ".join(symbols))
    return "\n".join(rows)


def describe_shot(shooter: str, coord: Coordinate, outcome: AttackOutcome) -> str:
    if outcome.result is AttackResult.KILL:
        detail = "destroyed an airplane (head shot)!" if outcome.was_head else "destroyed an airplane!"
    elif outcome.result is AttackResult.HIT:
        detail = f"hit ({outcome.cell_role.value})" if outcome.cell_role else "hit"
    else:
        detail = outcome.result.value.replace("_", " ")
    return f"{shooter} fired at {to_display(coord)}: {detail}"


def _prompt_for_coordinate(valid: Sequence[Coordinate], size: int) -> Coordinate:
    valid_set = set(valid)
    while True:
        raw = input("Enter target (e.g. 5E) or 'q' to quit: ").strip()
        if raw.lower() == "q":
            raise SystemExit("Goodbye!")
        try:
            coord = parse_display(raw)
        except CoordinateFormatError as exc:
            print(f"Invalid input: {exc}")
            continue
        if not coord.within(size):
            print("That cell is off the board.")
            continue
        if coord not in valid_set:
            print("That cell has already been attacked. Choose another.")
            continue
        return coord


def _prompt_orientation(airplane_id: int) -> Orientation:
    while True:
        raw = input(f"Airplane {airplane_id + 1}: head direction [U/D/L/R]: ").strip().upper()
        if raw in ORIENTATION_INPUTS:
            return ORIENTATION_INPUTS[raw]
        print("Please enter U, D, L or R.")


def _manual_placement(board: Board) -> None:
    board.clear_airplanes()
    for airplane_id in range(board.airplane_count):
        while True:
            print("\nCurrent layout:")
            print(format_board(board, show_airplanes=True))
            orientation = _prompt_orientation(airplane_id)
            try:
                head = parse_display(input("Head position (e.g. 3C): "))
            except CoordinateFormatError as exc:
                print(f"Invalid coordinate: {exc}")
                continue
            check = board.add_airplane(Airplane(airplane_id, head, orientation))
            if check:
                break
            print(f"Airplane cannot be placed there: {check.reason}")


def build_rules(mode: str, board_size: int | None, airplanes: int | None) -> GameRules:
    rules = GameRules.for_mode(GameMode(mode), board_size=board_size, airplane_count=airplanes)
    occupancy = check_occupancy(rules)
    if not occupancy.valid:
        print(f"Warning: {occupancy.reason} {occupancy.recommendation}")
    return rules


def play_game(
    rules: GameRules,
    difficulty: Difficulty,
    seed: int | None = None,
    manual: bool = False,
    instrumented: bool = False,
) -> None:
    print("Welcome to Airplane Battle!\n")
    game_cls = InstrumentedAirplaneBattle if instrumented else AirplaneBattle
    game = game_cls(rules=rules, rng_seed=seed)
    opponent = create_opponent(difficulty, rules, random.Random(seed), instrumented=instrumented)
    human_board = game.boards[Player.PLAYER1]

    if manual:
        _manual_placement(human_board)
        if not game.boards[Player.PLAYER2].place_airplanes_randomly(random.Random(seed)):
            raise PlacementError("Could not place the AI fleet.")
        game.start()
    else:
        game.setup_random()
        print("Both fleets have been positioned automatically.")

    while game.phase is GamePhase.IN_PROGRESS:
        player = game.current_player
        if player is Player.PLAYER1:
            print("\nYour airspace:")
            print(format_board(human_board, show_airplanes=True))
            print("\nEnemy airspace:")
            print(format_board(game.boards[Player.PLAYER2], show_airplanes=False))
            coord = _prompt_for_coordinate(game.valid_moves(player), rules.board_size)
            outcome = game.make_move(player, coord)
            print(describe_shot("You", coord, outcome))
        else:
            coord = opponent.get_next_attack(human_board)
            if coord is None:
                coord, outcome = game.make_random_move(player)
            else:
                outcome = game.make_move(player, coord)
            opponent.process_attack_result(coord, outcome)
            print(describe_shot(f"AI ({difficulty.value})", coord, outcome))

    if game.winner is Player.PLAYER1:
        print("\nCongratulations, you won!")
    else:
        print("\nThe AI won this time. Better luck next battle!")


def play_solo(opponent: OpponentEngine, board: Board) -> int:
    """Let ``opponent`` attack ``board`` until every airplane is destroyed; return shots fired."""
    shots = 0
    while not board.are_all_airplanes_destroyed():
        coord = opponent.get_next_attack(board)
        if coord is None:
            break
        outcome = board.process_attack(coord)
        if outcome.result in (AttackResult.INVALID, AttackResult.ALREADY_ATTACKED):
            raise RuntimeError(f"Opponent chose an illegal target {coord.key}: {outcome.result.value}")
        opponent.process_attack_result(coord, outcome)
        shots += 1
    return shots


def simulate_games(
    difficulty: Difficulty,
    rules: GameRules,
    games: int,
    seed: int | None = None,
    instrumented: bool = False,
) -> list[int]:
    """Shots each game took the opponent to destroy a freshly placed random fleet."""
    rng = random.Random(seed)
    results: list[int] = []
    for _ in range(games):
        board = Board.from_rules(rules, owner="simulation")
        if not board.place_airplanes_randomly(rng):
            raise PlacementError(
                f"Could not place {rules.airplane_count} airplanes on a "
                f"{rules.board_size}x{rules.board_size} board."
            )
        opponent = create_opponent(
            difficulty, rules, random.Random(rng.random()), instrumented=instrumented
        )
        results.append(play_solo(opponent, board))
    return results


def _print_summary(difficulty: Difficulty, shots: list[int]) -> None:
    values = np.array(shots, dtype=np.float64)
    print(
        f"{difficulty.value:>7}: games={len(shots)} mean={values.mean():.1f} "
        f"median={np.median(values):.1f} min={int(values.min())} max={int(values.max())}"
    )


def _add_rules_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in GameMode],
        default=GameMode.STANDARD.value,
        help="Game mode preset.",
    )
    parser.add_argument("--board-size", type=int, default=None, help="Board size override.")
    parser.add_argument("--airplanes", type=int, default=None, help="Airplane count override.")
    parser.add_argument(
        "--seed", type=int, default=None, help="Optional RNG seed for reproducibility."
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Airplane Battle on the command line.")
    parser.add_argument(
        "--telemetry",
        action="store_true",
        help="Initialise logging/tracing/metrics from AIRBATTLE_* and OTEL_* variables.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    play = subparsers.add_parser("play", help="Play against the AI.")
    _add_rules_arguments(play)
    play.add_argument(
        "--difficulty",
        choices=[level.value for level in Difficulty],
        default=Difficulty.MEDIUM.value,
    )
    play.add_argument("--manual", action="store_true", help="Place your airplanes by hand.")

    simulate = subparsers.add_parser("simulate", help="Measure AI tiers against random fleets.")
    _add_rules_arguments(simulate)
    simulate.add_argument(
        "--difficulty",
        choices=[level.value for level in Difficulty],
        action="append",
        help="Tier to simulate (repeatable); defaults to all tiers.",
    )
    simulate.add_argument("--games", type=int, default=20, help="Games per tier.")
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.telemetry:
        init_telemetry()

    try:
        rules = build_rules(args.mode, args.board_size, args.airplanes)
    except ValueError as exc:
        parser.error(str(exc))

    if args.command == "play":
        play_game(
            rules,
            Difficulty(args.difficulty),
            seed=args.seed,
            manual=args.manual,
            instrumented=args.telemetry,
        )
        return

    levels = [Difficulty(value) for value in args.difficulty] if args.difficulty else list(Difficulty)
    for level in levels:
        shots = simulate_games(level, rules, args.games, seed=args.seed, instrumented=args.telemetry)
        _print_summary(level, shots)


if __name__ == "__main__":
    main()
