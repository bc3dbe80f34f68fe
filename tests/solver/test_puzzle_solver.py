"""Tests for the placement solver and quick validation."""

import asyncio

import pytest
from pydantic import ValidationError

from grid_tactics.ir.directions import Direction
from grid_tactics.solver import (
    CancellationToken,
    CharacterPlacement,
    PlacementSpace,
    SolverOptions,
    quick_validate,
    simulate_placement,
    solve_puzzle,
    solve_puzzle_async,
)
from grid_tactics.sim.runner import SimulationOutcome

from tests.conftest import add_character, add_enemy, make_puzzle


def _positions(result):
    return [(p.character_id, p.x, p.y) for p in result.solution_found.placements]


@pytest.fixture()
def strike_puzzle():
    """Striker must stand right next to the dummy."""
    return make_puzzle(["..."], enemies=[("dummy", 2, 0)], characters=("striker",))


@pytest.fixture()
def hopeless_puzzle(registry):
    add_enemy(registry, "colossus", health=1000, attack_damage=0)
    return make_puzzle(["..."], enemies=[("colossus", 2, 0)], characters=("striker",))


@pytest.fixture()
def corridor_puzzle():
    """The hero walks east; the closer it starts, the faster it wins."""
    return make_puzzle(["....."], enemies=[("dummy", 4, 0)])


@pytest.fixture()
def pincer_puzzle(registry):
    """Needs two strikers facing opposite ways."""
    add_character(registry, "east_striker", [{"type": "attack_forward"}, {"type": "repeat"}])
    add_character(
        registry, "west_striker", [{"type": "attack_forward"}, {"type": "repeat"}],
        default_facing=Direction.WEST,
    )
    return make_puzzle(
        ["....."],
        enemies=[("dummy", 0, 0), ("dummy", 4, 0)],
        characters=("east_striker", "west_striker"),
        max_characters=2,
    )


# ---------------------------------------------------------------------------
# Enumeration
# ---------------------------------------------------------------------------

class TestPlacementSpace:
    def test_size(self):
        space = PlacementSpace(["a", "b", "c"], [(0, 0), (1, 0), (2, 0), (3, 0)], 2)
        assert len(space) == 3 * 12
        assert len(list(space)) == len(space)

    def test_order(self):
        space = PlacementSpace(["a", "b"], [(0, 0), (1, 0)], 1, {"a": Direction.EAST})
        assert [[(p.character_id, p.x, p.facing) for p in c] for c in space] == [
            [("a", 0, Direction.EAST)],
            [("a", 1, Direction.EAST)],
            [("b", 0, Direction.SOUTH)],
            [("b", 1, Direction.SOUTH)],
        ]

    def test_distinct_tiles(self):
        space = PlacementSpace(["a", "b"], [(0, 0), (1, 0)], 2)
        for candidate in space:
            assert len({(p.x, p.y) for p in candidate}) == 2

    def test_restartable(self):
        space = PlacementSpace(["a"], [(0, 0), (1, 0)], 1)
        assert list(space) == list(space)

    def test_too_few_tiles_is_empty(self):
        space = PlacementSpace(["a", "b"], [(0, 0)], 2)
        assert len(space) == 0
        assert list(space) == []

    def test_count_must_be_positive(self):
        with pytest.raises(ValueError):
            PlacementSpace(["a"], [(0, 0)], 0)


# ---------------------------------------------------------------------------
# Synchronous search
# ---------------------------------------------------------------------------

class TestSolvePuzzle:
    def test_single_solution(self, registry, strike_puzzle):
        result = solve_puzzle(strike_puzzle, registry)
        assert result.solvable
        assert result.error is None
        assert result.min_characters_needed == 1
        assert result.total_combinations_tested == 2
        assert _positions(result) == [("striker", 1, 0)]
        assert result.solution_found.placements[0].facing is Direction.EAST
        assert result.solution_found.turns_to_win == 2
        assert result.search_time_ms >= 0

    def test_exhaustive_negative(self, registry, hopeless_puzzle):
        result = solve_puzzle(hopeless_puzzle, registry)
        assert not result.solvable
        assert result.error is None
        assert result.min_characters_needed is None
        assert result.solution_found is None
        assert result.total_combinations_tested == 2

    def test_minimum_character_count(self, registry, pincer_puzzle):
        result = solve_puzzle(pincer_puzzle, registry)
        assert result.solvable
        assert result.min_characters_needed == 2
        # 2 characters x 3 tiles alone, then 6 ordered tile pairs.
        assert result.total_combinations_tested == 12
        assert _positions(result) == [("east_striker", 3, 0), ("west_striker", 1, 0)]
        assert result.solution_found.turns_to_win == 2

    def test_fastest_solution(self, registry, corridor_puzzle):
        result = solve_puzzle(corridor_puzzle, registry)
        assert _positions(result) == [("hero", 3, 0)]
        assert result.solution_found.turns_to_win == 2
        assert result.total_combinations_tested == 4

    def test_first_solution(self, registry, corridor_puzzle):
        result = solve_puzzle(corridor_puzzle, registry, find_fastest=False)
        assert _positions(result) == [("hero", 0, 0)]
        assert result.solution_found.turns_to_win == 5
        assert result.total_combinations_tested == 1

    def test_options_object(self, registry, corridor_puzzle):
        options = SolverOptions(find_fastest=False)
        result = solve_puzzle(corridor_puzzle, registry, options)
        assert result.total_combinations_tested == 1

    def test_simulation_turn_cap(self, registry, corridor_puzzle):
        result = solve_puzzle(corridor_puzzle, registry, max_simulation_turns=2)
        assert _positions(result) == [("hero", 3, 0)]
        result = solve_puzzle(corridor_puzzle, registry, max_simulation_turns=2, find_fastest=False)
        assert _positions(result) == [("hero", 2, 0)]

    def test_combination_cap(self, registry, hopeless_puzzle):
        result = solve_puzzle(hopeless_puzzle, registry, max_combinations=1)
        assert not result.solvable
        assert result.total_combinations_tested == 1
        assert result.error == "Search limit reached (1 combinations)"

    def test_combination_cap_keeps_found_solution(self, registry, corridor_puzzle):
        result = solve_puzzle(corridor_puzzle, registry, max_combinations=2)
        assert result.solvable
        assert result.total_combinations_tested == 2
        assert result.error == "Search limit reached (2 combinations)"
        assert _positions(result) == [("hero", 1, 0)]
        assert result.solution_found.turns_to_win == 4

    def test_zero_cap(self, registry, strike_puzzle):
        result = solve_puzzle(strike_puzzle, registry, max_combinations=0)
        assert result.total_combinations_tested == 0
        assert result.error == "Search limit reached (0 combinations)"

    def test_no_valid_tiles(self, registry):
        puzzle = make_puzzle(["#.#"], enemies=[("dummy", 1, 0)])
        result = solve_puzzle(puzzle, registry)
        assert not result.solvable
        assert result.total_combinations_tested == 0
        assert result.error == "No valid tiles for character placement"

    def test_no_characters(self, registry):
        result = solve_puzzle(make_puzzle(["..."], characters=()), registry)
        assert result.error == "No available characters"

    def test_puzzle_untouched(self, registry, corridor_puzzle):
        before = corridor_puzzle.model_dump()
        solve_puzzle(corridor_puzzle, registry)
        assert corridor_puzzle.model_dump() == before

    def test_invalid_option_override(self, registry, strike_puzzle):
        with pytest.raises(ValidationError):
            solve_puzzle(strike_puzzle, registry, max_simulation_turns=0)


class TestProgressAndCancellation:
    def test_progress_callback(self, registry, hopeless_puzzle):
        seen = []
        solve_puzzle(hopeless_puzzle, registry, progress_callback=seen.append, progress_every=1)
        assert [(p.tested, p.found) for p in seen] == [(1, False), (2, False)]

    def test_progress_reports_found(self, registry, corridor_puzzle):
        seen = []
        solve_puzzle(corridor_puzzle, registry, progress_callback=seen.append, progress_every=2)
        assert [(p.tested, p.found) for p in seen] == [(2, True), (4, True)]

    def test_cancel_before_start(self, registry, strike_puzzle):
        token = CancellationToken()
        token.cancel()
        result = solve_puzzle(strike_puzzle, registry, cancel_token=token)
        assert result.error == "Search cancelled"
        assert result.total_combinations_tested == 0

    def test_cancel_mid_search(self, registry, hopeless_puzzle):
        token = CancellationToken()
        result = solve_puzzle(
            hopeless_puzzle, registry,
            cancel_token=token,
            progress_callback=lambda info: token.cancel(),
            progress_every=1,
        )
        assert token.cancelled
        assert result.error == "Search cancelled"
        assert result.total_combinations_tested == 1


# ---------------------------------------------------------------------------
# Async search
# ---------------------------------------------------------------------------

class TestSolvePuzzleAsync:
    def test_defaults_to_first_solution(self, registry, corridor_puzzle):
        result = asyncio.run(solve_puzzle_async(corridor_puzzle, registry))
        assert _positions(result) == [("hero", 0, 0)]
        assert result.total_combinations_tested == 1

    def test_find_fastest(self, registry, corridor_puzzle):
        result = asyncio.run(
            solve_puzzle_async(corridor_puzzle, registry, find_fastest=True, yield_every=1)
        )
        assert _positions(result) == [("hero", 3, 0)]
        assert result.total_combinations_tested == 4

    def test_matches_sync_negative(self, registry, hopeless_puzzle):
        sync = solve_puzzle(hopeless_puzzle, registry)
        result = asyncio.run(solve_puzzle_async(hopeless_puzzle, registry, yield_every=1))
        assert result.solvable == sync.solvable
        assert result.total_combinations_tested == sync.total_combinations_tested

    def test_cancel_from_another_task(self, registry, hopeless_puzzle):
        token = CancellationToken()

        async def scenario():
            search = asyncio.create_task(
                solve_puzzle_async(hopeless_puzzle, registry, cancel_token=token, yield_every=1)
            )
            # The search yields after its first candidate.
            await asyncio.sleep(0)
            token.cancel()
            return await search

        result = asyncio.run(scenario())
        assert result.error == "Search cancelled"
        assert result.total_combinations_tested == 1

    def test_early_error(self, registry):
        result = asyncio.run(solve_puzzle_async(make_puzzle(["#"]), registry))
        assert result.error == "No valid tiles for character placement"


# ---------------------------------------------------------------------------
# Single candidates
# ---------------------------------------------------------------------------

class TestSimulatePlacement:
    def test_victory(self, registry, strike_puzzle):
        placement = CharacterPlacement(character_id="striker", x=1, y=0, facing=Direction.EAST)
        assert simulate_placement(strike_puzzle, registry, [placement]) == (SimulationOutcome.VICTORY, 1)

    def test_timeout(self, registry, strike_puzzle):
        placement = CharacterPlacement(character_id="striker", x=0, y=0, facing=Direction.EAST)
        outcome, turns = simulate_placement(strike_puzzle, registry, [placement], max_turns=7)
        assert outcome is SimulationOutcome.TIMEOUT
        assert turns == 7

    def test_facing_is_respected(self, registry, strike_puzzle):
        placement = CharacterPlacement(character_id="striker", x=1, y=0, facing=Direction.WEST)
        outcome, _ = simulate_placement(strike_puzzle, registry, [placement], max_turns=3)
        assert outcome is SimulationOutcome.TIMEOUT


# ---------------------------------------------------------------------------
# Quick validation
# ---------------------------------------------------------------------------

class TestQuickValidate:
    def test_valid(self, registry, strike_puzzle):
        result = quick_validate(strike_puzzle, registry)
        assert result.valid
        assert result.issues == []

    def test_structural_issues(self, registry):
        result = quick_validate(make_puzzle(["#"], characters=(), win=()), registry)
        assert not result.valid
        assert result.issues == [
            "No characters available for this puzzle",
            "No valid tiles for character placement",
            "No win conditions defined",
        ]

    def test_unsatisfiable_conditions(self, registry):
        puzzle = make_puzzle(["..."], win=("defeat_all_enemies", "collect_all", "reach_goal"))
        result = quick_validate(puzzle, registry)
        assert result.issues == [
            "Win condition requires defeating enemies, but no enemies exist",
            "Win condition requires collecting items, but no collectibles exist",
            "Win condition requires reaching a goal, but no goal tiles exist",
        ]

    def test_goal_present(self, registry):
        result = quick_validate(make_puzzle(["..G"], win=("reach_goal",)), registry)
        assert result.valid
