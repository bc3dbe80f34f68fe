"""Solvability search, minimum characters and fastest placement, plus a
solver-validated puzzle generator."""

from grid_tactics.solver.enumeration import PlacementSpace
from grid_tactics.solver.generator import (
    generate_puzzle,
    get_difficulty_preset,
    validate_generation_params,
)
from grid_tactics.solver.models import (
    CharacterPlacement,
    DifficultyLevel,
    EnemyConfig,
    EnemyPlacementStrategy,
    GenerationParameters,
    GenerationProgress,
    GenerationResult,
    PlacementSolution,
    ProgressInfo,
    SolverOptions,
    SolverResult,
    ValidationResult,
)
from grid_tactics.solver.rng import PuzzleRNG
from grid_tactics.solver.search import (
    CancellationToken,
    quick_validate,
    simulate_placement,
    solve_puzzle,
    solve_puzzle_async,
)

__all__ = [
    "CancellationToken",
    "CharacterPlacement",
    "DifficultyLevel",
    "EnemyConfig",
    "EnemyPlacementStrategy",
    "GenerationParameters",
    "GenerationProgress",
    "GenerationResult",
    "PlacementSolution",
    "PlacementSpace",
    "ProgressInfo",
    "PuzzleRNG",
    "SolverOptions",
    "SolverResult",
    "ValidationResult",
    "generate_puzzle",
    "get_difficulty_preset",
    "quick_validate",
    "simulate_placement",
    "solve_puzzle",
    "solve_puzzle_async",
    "validate_generation_params",
]
