"""Immutable game rules and mode presets."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .geometry import AIRPLANE_CELL_COUNT

# Smallest grid that fits the 4x5 airplane footprint.
MIN_BOARD_SIZE = 5
MAX_RECOMMENDED_OCCUPANCY = 0.40


class GameMode(Enum):
    """Supported game modes."""

    STANDARD = "standard"
    EXTENDED = "extended"
    CUSTOM = "custom"
    ONLINE = "online"


@dataclass(frozen=True)
class ModeLimits:
    board_size: int
    airplane_count: int
    min_board_size: int
    max_board_size: int
    min_airplanes: int
    max_airplanes: int


MODE_LIMITS: dict[GameMode, ModeLimits] = {
    GameMode.STANDARD: ModeLimits(10, 3, 10, 10, 3, 3),
    GameMode.EXTENDED: ModeLimits(15, 6, 15, 15, 6, 6),
    GameMode.CUSTOM: ModeLimits(15, 3, 10, 20, 1, 10),
    GameMode.ONLINE: ModeLimits(10, 3, 10, 10, 3, 3),
}


class GameRules(BaseModel):
    """Board dimensions and fleet size shared by boards, opponents and matches."""

    model_config = ConfigDict(frozen=True)

    board_size: int = Field(default=10, ge=MIN_BOARD_SIZE)
    airplane_count: int = Field(default=3, ge=1)
    placement_retries: int = Field(default=10, ge=1)
    min_placement_attempts: int = Field(default=100, ge=1)

    @property
    def placement_attempts(self) -> int:
        """Per-airplane attempt limit, scaling with the fleet size."""
        return max(self.min_placement_attempts, self.airplane_count * 100)

    @classmethod
    def for_mode(
        cls,
        mode: GameMode,
        board_size: int | None = None,
        airplane_count: int | None = None,
    ) -> GameRules:
        """Build rules for a mode, validating overrides against its limits."""
        limits = MODE_LIMITS[mode]
        size = limits.board_size if board_size is None else board_size
        count = limits.airplane_count if airplane_count is None else airplane_count
        if not limits.min_board_size <= size <= limits.max_board_size:
            raise ValueError(
                f"Board size {size} is outside {limits.min_board_size}-{limits.max_board_size} "
                f"for {mode.value} mode."
            )
        if not limits.min_airplanes <= count <= limits.max_airplanes:
            raise ValueError(
                f"Airplane count {count} is outside {limits.min_airplanes}-{limits.max_airplanes} "
                f"for {mode.value} mode."
            )
        return cls(board_size=size, airplane_count=count)


@dataclass(frozen=True)
class OccupancyCheck:
    valid: bool
    occupancy: float
    reason: str
    recommendation: str = ""


def check_occupancy(rules: GameRules) -> OccupancyCheck:
    """Report whether the fleet leaves enough room for reliable random placement."""
    total_cells = rules.board_size * rules.board_size
    occupancy = rules.airplane_count * AIRPLANE_CELL_COUNT / total_cells
    board = f"{rules.board_size}x{rules.board_size}"
    if occupancy > MAX_RECOMMENDED_OCCUPANCY:
        recommended = int(total_cells * MAX_RECOMMENDED_OCCUPANCY // AIRPLANE_CELL_COUNT)
        return OccupancyCheck(
            valid=False,
            occupancy=occupancy,
            reason=(
                f"{rules.airplane_count} airplanes would occupy {occupancy:.1%} of the {board} "
                "board, which is too crowded for reliable random placement."
            ),
            recommendation=(
                f"For a {board} board, use at most {recommended} airplanes "
                f"({MAX_RECOMMENDED_OCCUPANCY:.0%} occupancy)."
            ),
        )
    return OccupancyCheck(
        valid=True,
        occupancy=occupancy,
        reason=f"{rules.airplane_count} airplanes on a {board} board ({occupancy:.1%} occupancy).",
    )
