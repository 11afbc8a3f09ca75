"""Difficulty levels and the opponent factory."""

from __future__ import annotations

import random
from enum import Enum

from airbattle.engine.rules import GameRules

from .heuristic import HeuristicOpponent
from .inference import InferenceOpponent
from .instrumented import InstrumentedOpponent
from .reactive import OpponentEngine, RandomOpponent, ReactiveOpponent


class Difficulty(Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    ULTRA = "ultra"


OPPONENT_CLASSES: dict[Difficulty, type[RandomOpponent]] = {
    Difficulty.EASY: RandomOpponent,
    Difficulty.MEDIUM: ReactiveOpponent,
    Difficulty.HARD: HeuristicOpponent,
    Difficulty.ULTRA: InferenceOpponent,
}


def create_opponent(
    difficulty: Difficulty | str,
    rules: GameRules | None = None,
    rng: random.Random | None = None,
    instrumented: bool = False,
) -> OpponentEngine:
    """Build the opponent for ``difficulty``, optionally wrapped with telemetry."""
    level = Difficulty(difficulty)
    engine: OpponentEngine = OPPONENT_CLASSES[level](rules, rng)
    if instrumented:
        engine = InstrumentedOpponent(engine)
    return engine
