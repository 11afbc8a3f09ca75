"""Computer opponents for Airplane Battle."""

from .difficulty import Difficulty, create_opponent
from .heuristic import HeuristicOpponent
from .inference import InferenceOpponent, InferenceState
from .instrumented import InstrumentedOpponent
from .knowledge import BoardKnowledge, TargetBoard
from .placements import CandidatePlacement, enumerate_placements
from .reactive import OpponentEngine, RandomOpponent, ReactiveOpponent

__all__ = [
    "BoardKnowledge",
    "CandidatePlacement",
    "Difficulty",
    "HeuristicOpponent",
    "InferenceOpponent",
    "InferenceState",
    "InstrumentedOpponent",
    "OpponentEngine",
    "RandomOpponent",
    "ReactiveOpponent",
    "TargetBoard",
    "create_opponent",
    "enumerate_placements",
]
