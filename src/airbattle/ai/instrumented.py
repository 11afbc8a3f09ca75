"""Opponent wrapper emitting OpenTelemetry data."""

from __future__ import annotations

import time
from typing import Any

from airbattle.engine.board import AttackOutcome
from airbattle.engine.geometry import Coordinate
from airbattle.telemetry import get_logger, get_tracer, record_game_metric, record_latency

from .knowledge import TargetBoard
from .reactive import OpponentEngine


class InstrumentedOpponent:
    """Wraps any opponent engine with traces/metrics/logging around its decisions."""

    def __init__(self, engine: OpponentEngine) -> None:
        self._engine = engine
        self.label = engine.label
        self._logger = get_logger("airbattle.ai")
        self._tracer = get_tracer("airbattle.ai")

    @property
    def engine(self) -> OpponentEngine:
        return self._engine

    def get_next_attack(self, board: TargetBoard) -> Coordinate | None:
        start = time.perf_counter()
        with self._tracer.start_as_current_span("airbattle.ai.get_next_attack") as span:
            span.set_attribute("difficulty", self.label)
            coord = self._engine.get_next_attack(board)
            duration_ms = (time.perf_counter() - start) * 1000

            state = getattr(self._engine, "state", None)
            attrs: dict[str, str | int] = {"difficulty": self.label}
            if state is not None:
                attrs["state"] = state.value
                span.set_attribute("state", state.value)
            pool = getattr(self._engine, "candidates", None)
            if pool is not None:
                span.set_attribute("candidate_pool", len(pool))

            record_game_metric("airbattle_ai_decisions_total", 1, attrs)
            record_latency("airbattle_ai_decision_latency_ms", duration_ms, {"difficulty": self.label})

            if coord is None:
                span.set_attribute("exhausted", True)
                self._logger.warning("Opponent %s found no cell to attack", self.label)
                return None

            span.set_attribute("target_row", coord.row)
            span.set_attribute("target_col", coord.col)
            self._logger.info(
                "get_next_attack difficulty=%s target=%s latency_ms=%.2f",
                self.label,
                coord.key,
                duration_ms,
            )
            return coord

    def process_attack_result(self, coord: Coordinate, outcome: AttackOutcome) -> None:
        with self._tracer.start_as_current_span("airbattle.ai.process_attack_result") as span:
            span.set_attribute("difficulty", self.label)
            span.set_attribute("result", outcome.result.value)
            self._engine.process_attack_result(coord, outcome)
            record_game_metric(
                "airbattle_ai_shots_total",
                1,
                {"difficulty": self.label, "result": outcome.result.value},
            )

    def reset(self) -> None:
        self._logger.debug("Resetting opponent %s", self.label)
        self._engine.reset()

    def __getattr__(self, name: str) -> Any:
        if name == "_engine":
            raise AttributeError(name)
        return getattr(self._engine, name)
