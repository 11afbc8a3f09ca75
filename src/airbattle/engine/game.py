"""Two-player Airplane Battle match controller."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum

from airbattle.telemetry import get_meter, get_tracer

from .airplane import AttackResult
from .board import AttackOutcome, Board
from .geometry import Coordinate
from .rules import GameRules

logger = logging.getLogger(__name__)
tracer = get_tracer("airbattle.engine.game")
meter = get_meter("airbattle.engine.game")

MOVE_COUNTER = meter.create_counter(
    "airbattle_engine_moves",
    unit="1",
    description="Number of moves made in AirplaneBattle",
)

# Outcomes that do not consume the attacker's turn.
_REJECTED = (AttackResult.INVALID, AttackResult.ALREADY_ATTACKED)


class PlacementError(RuntimeError):
    """Raised when a fleet cannot be placed; the match must not start."""


class GamePhase(Enum):
    """High-level lifecycle of a match."""

    SETUP = "setup"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class Player(Enum):
    """Available players."""

    PLAYER1 = "player1"
    PLAYER2 = "player2"

    def opponent(self) -> Player:
        """Return the opposing player."""
        return Player.PLAYER2 if self is Player.PLAYER1 else Player.PLAYER1


@dataclass(frozen=True)
class BoardSnapshot:
    """Serializable view of a board for state queries."""

    airplanes: tuple[tuple[Coordinate, ...], ...]
    attacked: frozenset[Coordinate]
    remaining_airplanes: int


@dataclass(frozen=True)
class GameState:
    """Immutable snapshot of the current match."""

    phase: GamePhase
    current_player: Player
    winner: Player | None
    boards: dict[Player, BoardSnapshot]


class AirplaneBattle:
    """Coordinates gameplay between two player boards."""

    def __init__(self, rules: GameRules | None = None, rng_seed: int | None = None) -> None:
        self.rules = rules or GameRules()
        self.boards: dict[Player, Board] = {
            player: Board.from_rules(self.rules, owner=player.value) for player in Player
        }
        self.phase: GamePhase = GamePhase.SETUP
        self.current_player: Player = Player.PLAYER1
        self.winner: Player | None = None
        self._rng = random.Random(rng_seed)

    def setup_random(self) -> None:
        """Randomly place fleets for both players and start the match."""
        with tracer.start_as_current_span("game.setup_random"):
            for player, board in self.boards.items():
                if not board.place_airplanes_randomly(self._rng):
                    logger.error(
                        "game_setup_failed",
                        extra={"board_owner": player.value, "board_size": board.size},
                    )
                    raise PlacementError(
                        f"Could not place {board.airplane_count} airplanes on a "
                        f"{board.size}x{board.size} board for {player.value}."
                    )
                logger.debug("game_random_placement", extra={"board_owner": player.value})
            self.start()

    def start(self) -> None:
        """Enter the battle phase once both fleets are deployed."""
        for player, board in self.boards.items():
            if not board.is_deployment_complete():
                raise PlacementError(f"Deployment for {player.value} is incomplete.")
        self.phase = GamePhase.IN_PROGRESS
        self.current_player = Player.PLAYER1
        self.winner = None
        logger.info(
            "game_started",
            extra={"phase": self.phase.value, "current_player": self.current_player.value},
        )

    def make_move(self, player: Player, coord: Coordinate) -> AttackOutcome:
        """Apply a single attack, enforcing turn order and win conditions."""
        with tracer.start_as_current_span("game.make_move") as span:
            span.set_attribute("player", player.value)
            span.set_attribute("row", coord.row)
            span.set_attribute("col", coord.col)
            if self.phase is not GamePhase.IN_PROGRESS:
                logger.error(
                    "move_rejected_game_not_in_progress",
                    extra={"player": player.value, "phase": self.phase.value},
                )
                raise RuntimeError("Game is not in progress.")
            if player is not self.current_player:
                logger.error(
                    "move_rejected_wrong_player",
                    extra={"player": player.value, "current": self.current_player.value},
                )
                raise RuntimeError("It is not this player's turn.")

            target_board = self.boards[player.opponent()]
            outcome = target_board.process_attack(coord)

            if outcome.result in _REJECTED:
                span.set_attribute("move.rejected", True)
            elif target_board.are_all_airplanes_destroyed():
                self.winner = player
                self.phase = GamePhase.FINISHED
                span.set_attribute("game.winner", player.value)
                logger.info("game_finished", extra={"winner": player.value})
            else:
                self.current_player = player.opponent()
                span.set_attribute("next_player", self.current_player.value)

            MOVE_COUNTER.add(1, attributes={"result": outcome.result.value, "player": player.value})
            return outcome

    def make_random_move(self, player: Player) -> tuple[Coordinate, AttackOutcome]:
        """Fire at a random legal cell, e.g. when a turn timer expires."""
        moves = self.valid_moves(player)
        if not moves:
            raise RuntimeError("No legal moves remain.")
        coord = self._rng.choice(moves)
        return coord, self.make_move(player, coord)

    def get_state(self) -> GameState:
        """Return an immutable view of the current match."""
        board_views = {
            player: BoardSnapshot(
                airplanes=tuple(tuple(airplane.coordinates()) for airplane in board.airplanes),
                attacked=frozenset(board.attacked_cells),
                remaining_airplanes=board.remaining_airplane_count(),
            )
            for player, board in self.boards.items()
        }
        return GameState(
            phase=self.phase,
            current_player=self.current_player,
            winner=self.winner,
            boards=board_views,
        )

    def valid_moves(self, player: Player) -> list[Coordinate]:
        """Return all coordinates the player can legally target."""
        if self.phase is not GamePhase.IN_PROGRESS:
            return []
        target_board = self.boards[player.opponent()]
        moves: list[Coordinate] = []
        for row in range(target_board.size):
            for col in range(target_board.size):
                coord = Coordinate(row, col)
                if not target_board.is_cell_attacked(coord):
                    moves.append(coord)
        return moves
