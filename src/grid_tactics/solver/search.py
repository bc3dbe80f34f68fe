"""Brute-force placement search.

Tries every roster subset on every assignment of distinct valid tiles,
smallest subsets first, simulating each candidate headlessly on its own
copy of the puzzle.  The first character count that yields a victory is
the minimum; with ``find_fastest`` the rest of that count is scanned for
the quickest win.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any, Callable, Iterator

from grid_tactics.ir.puzzle import Puzzle, WinConditionType
from grid_tactics.ir.tiles import TileType
from grid_tactics.sim.core.game_state import GameStatus
from grid_tactics.sim.placement import default_facing, make_placed_character, valid_placement_tiles
from grid_tactics.sim.runner import SimulationOutcome, TurnExecutor, initialize_game_state
from grid_tactics.solver.enumeration import PlacementSpace
from grid_tactics.solver.models import (
    CharacterPlacement,
    PlacementSolution,
    ProgressInfo,
    SolverOptions,
    SolverResult,
    ValidationResult,
)

if TYPE_CHECKING:
    from grid_tactics.sim.content.registry import DefinitionRepository

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressInfo], None]


class CancellationToken:
    """Cooperative stop flag, checked between candidates."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


def simulate_placement(
    puzzle: Puzzle,
    repository: DefinitionRepository | None,
    placements: list[CharacterPlacement],
    max_turns: int = 200,
    executor: TurnExecutor | None = None,
) -> tuple[SimulationOutcome, int]:
    """Run one candidate to completion on a private copy of *puzzle*."""
    state = initialize_game_state(puzzle, repository)
    state.characters = [
        make_placed_character(repository, i, p.character_id, p.x, p.y, p.facing)
        for i, p in enumerate(placements)
    ]
    state.game_status = GameStatus.RUNNING
    state.headless_mode = True
    return (executor or TurnExecutor()).run(state, max_turns)


# ---------------------------------------------------------------------------
# Search bookkeeping shared by the sync and async entry points
# ---------------------------------------------------------------------------

class _Search:
    def __init__(
        self,
        puzzle: Puzzle,
        repository: DefinitionRepository | None,
        options: SolverOptions,
        find_fastest: bool,
        progress_callback: ProgressCallback | None,
        cancel_token: CancellationToken | None,
    ) -> None:
        self.puzzle = puzzle
        self.repository = repository
        self.options = options
        self.find_fastest = find_fastest
        self.progress_callback = progress_callback
        self.cancel_token = cancel_token
        self.executor = TurnExecutor()
        self.started = time.perf_counter()
        self.tested = 0
        self.best: PlacementSolution | None = None
        self.min_characters: int | None = None
        self.tiles: list[tuple[int, int]] = []

    def _elapsed_ms(self) -> float:
        return (time.perf_counter() - self.started) * 1000.0

    def result(self, error: str | None = None) -> SolverResult:
        return SolverResult(
            solvable=self.best is not None,
            min_characters_needed=self.min_characters,
            solution_found=self.best,
            total_combinations_tested=self.tested,
            search_time_ms=self._elapsed_ms(),
            error=error,
        )

    def start(self) -> SolverResult | None:
        """Return an immediate result when there is nothing to search."""
        self.tiles = valid_placement_tiles(self.puzzle, self.repository)
        if not self.tiles:
            return self.result("No valid tiles for character placement")
        if not self.puzzle.available_characters:
            return self.result("No available characters")
        return None

    def candidates(self) -> Iterator[tuple[int, list[CharacterPlacement]]]:
        roster = self.puzzle.available_characters
        facings = {cid: default_facing(self.repository, cid) for cid in roster}
        max_chars = min(self.puzzle.max_characters, len(roster))
        for count in range(1, max_chars + 1):
            if self.min_characters is not None:
                return
            logger.debug("Searching placements with %d character(s)", count)
            for placements in PlacementSpace(roster, self.tiles, count, facings):
                yield count, placements

    def evaluate(self, count: int, placements: list[CharacterPlacement]) -> SolverResult | None:
        """Test one candidate; return a result when the search must stop."""
        if self.cancel_token is not None and self.cancel_token.cancelled:
            logger.info("Search cancelled after %d combinations", self.tested)
            return self.result("Search cancelled")
        if self.tested >= self.options.max_combinations:
            logger.info("Search limit reached after %d combinations", self.tested)
            return self.result(
                f"Search limit reached ({self.options.max_combinations} combinations)"
            )

        self.tested += 1
        if self.progress_callback is not None and self.tested % self.options.progress_every == 0:
            self.progress_callback(ProgressInfo(tested=self.tested, found=self.best is not None))

        outcome, turns = simulate_placement(
            self.puzzle, self.repository, placements,
            self.options.max_simulation_turns, self.executor,
        )
        if outcome is not SimulationOutcome.VICTORY:
            return None

        if self.min_characters is None:
            self.min_characters = count
        turns_to_win = turns + 1
        if self.best is None or turns_to_win < self.best.turns_to_win:
            self.best = PlacementSolution(placements=placements, turns_to_win=turns_to_win)
            logger.debug("Solution with %d character(s) in %d turns", count, turns_to_win)
        if not self.find_fastest:
            return self.result()
        return None


def _resolve_options(options: SolverOptions | None, overrides: dict[str, Any]) -> SolverOptions:
    options = options or SolverOptions()
    if overrides:
        options = SolverOptions.model_validate({**options.model_dump(), **overrides})
    return options


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def solve_puzzle(
    puzzle: Puzzle,
    repository: DefinitionRepository | None,
    options: SolverOptions | None = None,
    *,
    progress_callback: ProgressCallback | None = None,
    cancel_token: CancellationToken | None = None,
    **overrides: Any,
) -> SolverResult:
    """Determine whether *puzzle* is solvable and with how few characters.

    Parameters
    ----------
    puzzle:
        The puzzle to search.  It is never mutated; each candidate runs on
        its own copy.
    repository:
        Definition lookups for characters, enemies, tile types and so on.
    options:
        Search configuration; keyword *overrides* (e.g.
        ``max_combinations=500``) are applied on top.
    progress_callback:
        Called every ``options.progress_every`` tested candidates.
    cancel_token:
        Checked before each candidate.

    Returns
    -------
    SolverResult
        ``find_fastest`` defaults to ``True`` here.
    """
    options = _resolve_options(options, overrides)
    find_fastest = True if options.find_fastest is None else options.find_fastest
    search = _Search(puzzle, repository, options, find_fastest, progress_callback, cancel_token)

    early = search.start()
    if early is not None:
        return early
    for count, placements in search.candidates():
        done = search.evaluate(count, placements)
        if done is not None:
            return done
    return search.result()


async def solve_puzzle_async(
    puzzle: Puzzle,
    repository: DefinitionRepository | None,
    options: SolverOptions | None = None,
    *,
    progress_callback: ProgressCallback | None = None,
    cancel_token: CancellationToken | None = None,
    **overrides: Any,
) -> SolverResult:
    """Same search as :func:`solve_puzzle`, yielding to the event loop.

    Control returns to the loop every ``options.yield_every`` candidates,
    always between candidates.  ``find_fastest`` defaults to ``False``.
    """
    options = _resolve_options(options, overrides)
    find_fastest = False if options.find_fastest is None else options.find_fastest
    search = _Search(puzzle, repository, options, find_fastest, progress_callback, cancel_token)

    early = search.start()
    if early is not None:
        return early
    for count, placements in search.candidates():
        done = search.evaluate(count, placements)
        if done is not None:
            return done
        if search.tested % options.yield_every == 0:
            await asyncio.sleep(0)
    return search.result()


def quick_validate(puzzle: Puzzle, repository: DefinitionRepository | None) -> ValidationResult:
    """Cheap structural checks that need no simulation."""
    issues: list[str] = []

    if not puzzle.available_characters:
        issues.append("No characters available for this puzzle")
    if not valid_placement_tiles(puzzle, repository):
        issues.append("No valid tiles for character placement")
    if not puzzle.win_conditions:
        issues.append("No win conditions defined")

    kinds = {c.type for c in puzzle.win_conditions}
    if WinConditionType.DEFEAT_ALL_ENEMIES in kinds and not puzzle.enemies:
        issues.append("Win condition requires defeating enemies, but no enemies exist")
    if WinConditionType.COLLECT_ALL in kinds and not puzzle.collectibles:
        issues.append("Win condition requires collecting items, but no collectibles exist")
    if WinConditionType.REACH_GOAL in kinds and not any(
        tile.type is TileType.GOAL for tile in puzzle.iter_tiles()
    ):
        issues.append("Win condition requires reaching a goal, but no goal tiles exist")

    return ValidationResult(valid=not issues, issues=issues)
