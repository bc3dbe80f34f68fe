"""Pydantic v2 models for solver and generator options and results.

All results serialise to/from JSON so an authoring tool can cache a
validation report next to the puzzle it describes.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from grid_tactics.ir.directions import Direction
from grid_tactics.ir.puzzle import Puzzle, WinCondition


class SolverOptions(BaseModel):
    """Search configuration.

    ``find_fastest=None`` means "use the entry point's default": the
    synchronous solver keeps scanning the minimum character count for the
    quickest win, the async solver stops at the first win.
    """

    max_simulation_turns: int = Field(default=200, ge=1)
    """Turns simulated per candidate before it counts as a timeout."""
    max_combinations: int = Field(default=100_000, ge=0)
    """Hard cap on candidates tested across the whole search."""
    find_fastest: bool | None = None
    yield_every: int = Field(default=50, ge=1)
    """Async only: candidates tested between cooperative yields."""
    progress_every: int = Field(default=1000, ge=1)


class CharacterPlacement(BaseModel):
    character_id: str
    x: int
    y: int
    facing: Direction


class PlacementSolution(BaseModel):
    placements: list[CharacterPlacement]
    turns_to_win: int
    """Turns executed until victory, plus one."""


class SolverResult(BaseModel):
    """Outcome of a placement search.

    ``error`` is set when the search stopped early (combination cap,
    cancellation) or could not start.  ``solvable=False`` with no error is
    an exhaustive negative within ``max_simulation_turns``.
    """

    solvable: bool
    min_characters_needed: int | None = None
    solution_found: PlacementSolution | None = None
    total_combinations_tested: int = 0
    search_time_ms: float = 0.0
    error: str | None = None


class ProgressInfo(BaseModel):
    tested: int
    found: bool


class ValidationResult(BaseModel):
    valid: bool
    issues: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Puzzle generation
# ---------------------------------------------------------------------------

class DifficultyLevel(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXPERT = "expert"


class EnemyPlacementStrategy(str, Enum):
    RANDOM = "random"
    CLUSTERED = "clustered"
    """Near the previously placed enemy."""
    SPREAD = "spread"
    """As far as possible from every placed enemy."""


class EnemyConfig(BaseModel):
    enemy_id: str
    count: int = Field(default=1, ge=0)
    placement: EnemyPlacementStrategy = EnemyPlacementStrategy.RANDOM


class GenerationParameters(BaseModel):
    """What the generator should build.

    Sizes and counts are deliberately unconstrained here;
    :func:`~grid_tactics.solver.generator.validate_generation_params`
    reports every problem at once instead of failing on the first.
    """

    width: int
    height: int
    available_characters: list[str] = Field(default_factory=list)
    max_characters: int = 1
    enemy_types: list[EnemyConfig] = Field(default_factory=list)
    difficulty: DifficultyLevel = DifficultyLevel.EASY
    enabled_tile_types: list[str] = Field(default_factory=list)
    """Custom tile type ids the generator may scatter on the board."""
    force_special_tiles: bool = False
    enable_void_tiles: bool = False
    force_void_tiles: bool = False
    win_conditions: list[WinCondition] = Field(default_factory=list)
    max_turns: int | None = None
    lives: int | None = None


class GenerationProgress(BaseModel):
    attempt: int
    max_attempts: int
    phase: Literal["generating", "validating"]
    message: str = ""


class GenerationResult(BaseModel):
    success: bool
    puzzle: Puzzle | None = None
    validation_result: SolverResult | None = None
    seed: int
    """Replaying with this seed rebuilds the same attempts."""
    generation_time_ms: float = 0.0
    attempts_used: int = 0
    error: str | None = None
