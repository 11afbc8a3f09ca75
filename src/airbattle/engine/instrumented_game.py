"""Instrumented Airplane Battle match with telemetry hooks."""

from __future__ import annotations

import time

from airbattle.engine.airplane import AttackResult
from airbattle.engine.board import AttackOutcome
from airbattle.engine.game import AirplaneBattle, GamePhase, PlacementError, Player
from airbattle.engine.geometry import Coordinate
from airbattle.telemetry import get_logger, get_tracer, record_game_metric


class InstrumentedAirplaneBattle(AirplaneBattle):
    """Wraps AirplaneBattle with a match-level span, metrics and logging."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._logger = get_logger("airbattle.engine")
        self._tracer = get_tracer("airbattle.engine")
        self._game_span_cm = None
        self._game_span = None
        self._game_start_time: float | None = None
        self._game_id_counter = 0

    def setup_random(self) -> None:
        self._start_game_span()
        with self._tracer.start_as_current_span("airbattle.engine.setup_random") as span:
            self._logger.info("Random setup started")
            try:
                super().setup_random()
            except PlacementError as exc:
                span.record_exception(exc)
                span.set_attribute("error", True)
                record_game_metric("airbattle_game_setup_failed_total", 1)
                self._logger.error("Random setup failed: %s", exc)
                self._close_game_span()
                raise
            for player in Player:
                span.set_attribute(f"{player.value}_airplanes", len(self.boards[player].airplanes))
            record_game_metric(
                "airbattle_game_setup_total",
                1,
                {
                    "board_size": self.rules.board_size,
                    "airplane_count": self.rules.airplane_count,
                },
            )
            self._logger.info("Random setup finished")

    def make_move(self, player: Player, coord: Coordinate) -> AttackOutcome:
        with self._tracer.start_as_current_span("airbattle.engine.make_move") as span:
            span.set_attribute("game.id", self._game_id_counter)
            span.set_attribute("player", player.name)
            span.set_attribute("coord.row", coord.row)
            span.set_attribute("coord.col", coord.col)

            try:
                outcome = super().make_move(player, coord)
            except RuntimeError as exc:
                record_game_metric(
                    "airbattle_game_invalid_moves_total",
                    1,
                    {"player": player.name, "reason": "out_of_turn"},
                )
                span.record_exception(exc)
                span.set_attribute("error", True)
                self._logger.error(
                    "Rejected move from %s at (%d,%d): %s", player.name, coord.row, coord.col, exc
                )
                raise

            span.set_attribute("attack_outcome", outcome.result.name)
            span.set_attribute("was_head", outcome.was_head)
            record_game_metric("airbattle_attacks_total", 1, {"player": player.name})
            record_game_metric(
                "airbattle_attacks_by_result_total",
                1,
                {"player": player.name, "result": outcome.result.value},
            )
            if outcome.result is AttackResult.KILL:
                record_game_metric(
                    "airbattle_kills_total",
                    1,
                    {"player": player.name, "head_shot": outcome.was_head},
                )

            self._logger.info(
                "make_move player=%s coord=(%d,%d) outcome=%s",
                player.name,
                coord.row,
                coord.col,
                outcome.result.name,
            )

            if self.phase is GamePhase.FINISHED and self.winner:
                span.set_attribute("winner", self.winner.name)
                self._finish_game()

            return outcome

    def _start_game_span(self) -> None:
        self._close_game_span()
        self._game_start_time = time.perf_counter()
        self._game_id_counter += 1
        self._game_span_cm = self._tracer.start_as_current_span("airbattle.engine.game")
        self._game_span = self._game_span_cm.__enter__()
        self._game_span.set_attribute("game.id", self._game_id_counter)

    def _finish_game(self) -> None:
        duration = (time.perf_counter() - self._game_start_time) if self._game_start_time else 0.0
        total_turns = sum(len(board.history) for board in self.boards.values())
        winner = self.winner.name if self.winner else "unknown"

        record_game_metric("airbattle_game_completed_total", 1, {"winner": winner})
        record_game_metric("airbattle_game_duration_seconds", duration, {"winner": winner})

        with self._tracer.start_as_current_span("airbattle.engine.game_complete") as span:
            span.set_attribute("game.id", self._game_id_counter)
            span.set_attribute("winner", winner)
            span.set_attribute("turns", total_turns)
            span.set_attribute("duration_ms", duration * 1000)

        if self._game_span is not None:
            self._game_span.set_attribute("winner", winner)
            self._game_span.set_attribute("turns", total_turns)

        self._logger.info("Game finished. Winner=%s turns=%d duration_s=%.3f", winner, total_turns, duration)
        self._close_game_span()

    def _close_game_span(self) -> None:
        if self._game_span_cm is not None:
            self._game_span_cm.__exit__(None, None, None)
            self._game_span_cm = None
            self._game_span = None
