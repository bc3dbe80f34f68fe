"""Tests for setup, the turn loop and win/loss evaluation."""

import pytest

from grid_tactics.ir.directions import Direction
from grid_tactics.ir.puzzle import EnemyPlacement, WinCondition
from grid_tactics.ir.tiles import CustomTileType
from grid_tactics.sim.core.game_state import GameStatus
from grid_tactics.sim.runner import (
    SimulationOutcome,
    TurnExecutor,
    check_victory,
    execute_turn,
    initialize_game_state,
    place_character,
    remove_character,
    reset_game_state,
    run_simulation,
    start_simulation,
)

from tests.conftest import add_character, add_enemy, make_puzzle, start


# ---------------------------------------------------------------------------
# Setup phase
# ---------------------------------------------------------------------------

class TestPlacement:
    def _setup(self, registry, rows=("....",), **kwargs):
        kwargs.setdefault("characters", ("hero", "striker"))
        kwargs.setdefault("max_characters", 2)
        return initialize_game_state(make_puzzle(list(rows), **kwargs), registry)

    def test_place_uses_default_facing(self, registry):
        state = self._setup(registry)
        hero = place_character(state, "hero", 1, 0)
        assert hero.uid == "c0:hero"
        assert hero.facing is Direction.EAST
        assert hero.current_health == hero.max_health == 3

    def test_explicit_facing(self, registry):
        state = self._setup(registry)
        hero = place_character(state, "hero", 1, 0, Direction.NORTH)
        assert hero.facing is Direction.NORTH

    def test_not_on_roster(self, registry):
        state = self._setup(registry, characters=("hero",))
        with pytest.raises(ValueError, match="not available"):
            place_character(state, "striker", 0, 0)

    def test_already_placed(self, registry):
        state = self._setup(registry)
        place_character(state, "hero", 0, 0)
        with pytest.raises(ValueError, match="already placed"):
            place_character(state, "hero", 1, 0)

    def test_character_limit(self, registry):
        state = self._setup(registry, max_characters=1)
        place_character(state, "hero", 0, 0)
        with pytest.raises(ValueError, match="At most 1"):
            place_character(state, "striker", 1, 0)

    @pytest.mark.parametrize("x,y", [(1, 0), (2, 0), (3, 0), (9, 9)])
    def test_invalid_tiles(self, registry, x, y):
        state = self._setup(registry, rows=(".# .",), enemies=[("dummy", 3, 0)])
        with pytest.raises(ValueError, match="Cannot place"):
            place_character(state, "hero", x, y)

    def test_occupied(self, registry):
        state = self._setup(registry)
        place_character(state, "hero", 0, 0)
        with pytest.raises(ValueError, match="occupied"):
            place_character(state, "striker", 0, 0)

    def test_only_during_setup(self, registry):
        state = self._setup(registry)
        place_character(state, "hero", 0, 0)
        start_simulation(state)
        with pytest.raises(ValueError, match="setup"):
            place_character(state, "striker", 1, 0)

    def test_remove_renumbers(self, registry):
        state = self._setup(registry)
        place_character(state, "hero", 0, 0)
        place_character(state, "striker", 1, 0)
        assert remove_character(state, "hero")
        assert [c.uid for c in state.characters] == ["c0:striker"]
        assert not remove_character(state, "hero")

    def test_start_needs_characters(self, registry):
        state = self._setup(registry)
        with pytest.raises(ValueError, match="at least one"):
            start_simulation(state)

    def test_start_only_once(self, registry):
        state = self._setup(registry)
        place_character(state, "hero", 0, 0)
        start_simulation(state)
        assert state.game_status is GameStatus.RUNNING
        with pytest.raises(ValueError, match="running"):
            start_simulation(state)

    def test_reset(self, registry):
        state = self._setup(registry, enemies=[("dummy", 3, 0)])
        place_character(state, "hero", 2, 0)
        start_simulation(state)
        execute_turn(state)
        assert state.game_status is GameStatus.VICTORY

        fresh = reset_game_state(state)
        assert fresh.game_status is GameStatus.SETUP
        assert fresh.characters == []
        assert not fresh.enemies[0].dead
        assert fresh.current_turn == 0


# ---------------------------------------------------------------------------
# Turn loop
# ---------------------------------------------------------------------------

class TestExecuteTurn:
    def test_noop_outside_running(self, registry):
        state = initialize_game_state(make_puzzle(["..."]), registry)
        execute_turn(state)
        assert state.current_turn == 0
        assert state.game_status is GameStatus.SETUP

    def test_turn_counter(self, registry):
        state = start(make_puzzle(["....."], enemies=[("brute", 4, 0)]), registry, [("striker", 0, 0)])
        execute_turn(state)
        execute_turn(state)
        assert state.current_turn == 2
        assert state.game_status is GameStatus.RUNNING

    def test_characters_act_before_enemies(self, registry):
        add_enemy(registry, "walker", pattern=[{"type": "move_forward"}, {"type": "repeat"}])
        puzzle = make_puzzle(
            ["..."], enemies=[EnemyPlacement(enemy_id="walker", x=2, y=0, facing=Direction.WEST)],
        )
        state = start(puzzle, registry, [("striker", 0, 0)])

        execute_turn(state)
        # The strike lands on an empty tile; the walker then steps into reach.
        walker = state.enemies[0]
        assert walker.x == 1
        assert not walker.dead

        execute_turn(state)
        assert walker.dead
        assert state.game_status is GameStatus.VICTORY

    def test_characters_act_in_placement_order(self, registry):
        puzzle = make_puzzle(["...."], characters=("hero", "striker"), max_characters=2,
                             enemies=[("dummy", 3, 0)])
        state = start(puzzle, registry, [("hero", 0, 0), ("striker", 1, 0)])
        execute_turn(state)
        # The striker is in the way, so the hero cannot move this turn.
        assert state.characters[0].x == 0

    def test_dead_characters_skip(self, registry):
        state = start(make_puzzle(["...."], enemies=[("brute", 3, 0)]), registry, [("hero", 0, 0)])
        state.characters[0].dead = True
        execute_turn(state)
        assert state.characters[0].x == 0

    def test_area_effects_tick_each_turn(self, registry):
        add_character(registry, "warlock", [
            {"type": "spell", "spell": {"id": "miasma", "templateType": "aoe", "radius": 1,
                                        "persistDuration": 2, "damage": 5}},
            {"type": "wait"},
            {"type": "wait"},
        ])
        puzzle = make_puzzle(["..."], enemies=[("brute", 1, 0)], characters=("warlock",))
        state = start(puzzle, registry, [("warlock", 0, 0)])
        execute_turn(state)
        assert state.enemies[0].current_health == 45
        execute_turn(state)
        assert state.enemies[0].current_health == 40
        assert state.area_effects == []

    def test_plates_update_after_moves(self, registry):
        registry.register_tile_type(CustomTileType.model_validate({
            "id": "plate",
            "behaviors": [{"type": "pressure_plate", "effects": [
                {"type": "toggle_wall", "targetX": 3, "targetY": 0, "stayPressed": True},
            ]}],
        }))
        puzzle = make_puzzle(
            [".P.."], legend={"P": {"custom_tile_type_id": "plate"}}, enemies=[("brute", 3, 0)],
        )
        state = start(puzzle, registry, [("hero", 0, 0)])
        execute_turn(state)
        assert state.wall_toggles == ["3,0"]
        execute_turn(state)
        assert state.wall_toggles == []


# ---------------------------------------------------------------------------
# Win / loss
# ---------------------------------------------------------------------------

class TestWinLoss:
    def test_defeat_all_enemies(self, registry):
        state = start(make_puzzle(["..."], enemies=[("dummy", 1, 0)]), registry, [("striker", 0, 0)])
        execute_turn(state)
        assert state.game_status is GameStatus.VICTORY

    def test_dormant_enemies_count_as_defeated(self, registry):
        puzzle = make_puzzle(
            ["..."], enemies=[EnemyPlacement(enemy_id="dummy", x=2, y=0, dormant=True)],
        )
        state = start(puzzle, registry, [("striker", 0, 0)])
        assert check_victory(state)

    def test_no_conditions_wins_immediately(self, registry):
        state = start(make_puzzle(["..."], win=()), registry, [("hero", 0, 0)])
        execute_turn(state)
        assert state.game_status is GameStatus.VICTORY

    def test_collect_all(self, registry):
        puzzle = make_puzzle(["..."], collectibles=[(2, 0)], win=("collect_all",))
        state = start(puzzle, registry, [("hero", 0, 0)])
        execute_turn(state)
        assert state.game_status is GameStatus.RUNNING
        execute_turn(state)
        assert state.game_status is GameStatus.VICTORY

    def test_reach_goal(self, registry):
        state = start(make_puzzle(["..G"], win=("reach_goal",)), registry, [("hero", 0, 0)])
        execute_turn(state)
        execute_turn(state)
        assert state.game_status is GameStatus.VICTORY
        assert state.current_turn == 2

    def test_survive_turns(self, registry):
        win = WinCondition(type="survive_turns", params={"turns": 3})
        add_character(registry, "idler", [{"type": "wait"}, {"type": "repeat"}])
        puzzle = make_puzzle(["..."], win=(win,), characters=("idler",))
        state = start(puzzle, registry, [("idler", 0, 0)])
        for _ in range(2):
            execute_turn(state)
        assert state.game_status is GameStatus.RUNNING
        execute_turn(state)
        assert state.game_status is GameStatus.VICTORY

    def test_all_conditions_required(self, registry):
        puzzle = make_puzzle(
            ["...."], enemies=[("dummy", 1, 0)], collectibles=[(3, 0)],
            win=("defeat_all_enemies", "collect_all"),
        )
        state = start(puzzle, registry, [("hero", 0, 0)])
        execute_turn(state)
        assert state.enemies[0].dead
        assert state.game_status is GameStatus.RUNNING
        execute_turn(state)
        execute_turn(state)
        assert state.game_status is GameStatus.VICTORY

    def test_defeat_when_all_characters_die(self, registry):
        state = start(make_puzzle(["..."], enemies=[("brute", 1, 0)]), registry, [("hero", 0, 0)])
        execute_turn(state)
        assert state.characters[0].current_health == 1
        assert state.game_status is GameStatus.RUNNING
        execute_turn(state)
        assert state.characters[0].dead
        assert state.game_status is GameStatus.DEFEAT

    def test_defeat_when_no_character_can_act(self, registry):
        add_character(registry, "idler", [{"type": "wait"}])
        puzzle = make_puzzle(["..."], enemies=[("brute", 2, 0)], characters=("idler",))
        state = start(puzzle, registry, [("idler", 0, 0)])
        execute_turn(state)
        assert state.game_status is GameStatus.RUNNING
        execute_turn(state)
        assert state.game_status is GameStatus.DEFEAT

    def test_idle_survivor_still_wins_survive_turns(self, registry):
        win = WinCondition(type="survive_turns", params={"turns": 3})
        add_character(registry, "idler", [{"type": "wait"}])
        puzzle = make_puzzle(["..."], win=(win,), characters=("idler",))
        state = start(puzzle, registry, [("idler", 0, 0)])
        execute_turn(state)
        execute_turn(state)
        assert not state.characters[0].active
        assert state.game_status is GameStatus.RUNNING
        execute_turn(state)
        assert state.game_status is GameStatus.VICTORY

    def test_idle_survivor_loses_when_other_goals_are_open(self, registry):
        win = WinCondition(type="survive_turns", params={"turns": 3})
        add_character(registry, "idler", [{"type": "wait"}])
        puzzle = make_puzzle(
            ["..."], enemies=[("dummy", 2, 0)],
            win=("defeat_all_enemies", win), characters=("idler",),
        )
        state = start(puzzle, registry, [("idler", 0, 0)])
        execute_turn(state)
        execute_turn(state)
        assert state.game_status is GameStatus.DEFEAT

    def test_idle_survivor_can_still_be_killed(self, registry):
        win = WinCondition(type="survive_turns", params={"turns": 10})
        add_character(registry, "idler", [{"type": "wait"}], health=2)
        add_enemy(registry, "stabber", [{"type": "attack_forward"}, {"type": "repeat"}],
                  health=5, attack_damage=1)
        puzzle = make_puzzle(
            ["..."],
            enemies=[EnemyPlacement(enemy_id="stabber", x=1, y=0, facing=Direction.WEST)],
            win=(win,), characters=("idler",),
        )
        state = start(puzzle, registry, [("idler", 0, 0)])
        execute_turn(state)
        execute_turn(state)
        assert state.characters[0].dead
        assert state.game_status is GameStatus.DEFEAT

    def test_turn_limit(self, registry):
        puzzle = make_puzzle(["....."], enemies=[("brute", 4, 0)], max_turns=3)
        state = start(puzzle, registry, [("striker", 0, 0)])
        for _ in range(2):
            execute_turn(state)
        assert state.game_status is GameStatus.RUNNING
        execute_turn(state)
        assert state.game_status is GameStatus.DEFEAT

    def test_victory_beats_turn_limit(self, registry):
        puzzle = make_puzzle(["..."], enemies=[("dummy", 1, 0)], max_turns=1)
        state = start(puzzle, registry, [("striker", 0, 0)])
        execute_turn(state)
        assert state.game_status is GameStatus.VICTORY

    def test_finished_run_stays_finished(self, registry):
        state = start(make_puzzle(["..."], enemies=[("dummy", 1, 0)]), registry, [("striker", 0, 0)])
        execute_turn(state)
        execute_turn(state)
        assert state.current_turn == 1


# ---------------------------------------------------------------------------
# Running to completion
# ---------------------------------------------------------------------------

class TestRun:
    def test_executor_run_victory(self, registry):
        state = start(make_puzzle(["..."], enemies=[("dummy", 2, 0)]), registry, [("hero", 0, 0)])
        outcome, turns = TurnExecutor().run(state, 50)
        assert outcome is SimulationOutcome.VICTORY
        assert turns == 2

    def test_executor_run_timeout(self, registry):
        state = start(make_puzzle(["....."], enemies=[("brute", 4, 0)]), registry, [("striker", 0, 0)])
        outcome, turns = TurnExecutor().run(state, 5)
        assert outcome is SimulationOutcome.TIMEOUT
        assert turns == 5
        assert state.game_status is GameStatus.RUNNING

    def test_run_simulation_reports(self, registry):
        puzzle = make_puzzle(["...."], enemies=[("dummy", 3, 0)], collectibles=[(1, 0)])
        state, telemetry = run_simulation(puzzle, registry, [("hero", 0, 0)])
        assert state.game_status is GameStatus.VICTORY
        assert telemetry.outcome == "victory"
        assert telemetry.turns == 3
        assert telemetry.characters_used == ["hero"]
        assert telemetry.enemies_defeated == 1
        assert telemetry.collectibles_collected == 1
        assert telemetry.damage_taken == 0

    def test_run_simulation_enforces_placement(self, registry):
        puzzle = make_puzzle([".#."], enemies=[("dummy", 2, 0)])
        with pytest.raises(ValueError):
            run_simulation(puzzle, registry, [("hero", 1, 0)])

    def test_runs_do_not_touch_the_puzzle(self, registry):
        puzzle = make_puzzle(["..."], enemies=[("dummy", 1, 0)], characters=("striker",))
        before = puzzle.model_dump()
        run_simulation(puzzle, registry, [("striker", 0, 0)])
        assert puzzle.model_dump() == before

    def test_same_placement_replays_identically(self, registry):
        add_enemy(registry, "patrol", [
            {"type": "move_forward", "onWallCollision": "turn_around"},
            {"type": "attack_forward"},
            {"type": "repeat"},
        ], health=4, attack_damage=1)
        puzzle = make_puzzle(
            ["......", "..#...", "......"],
            enemies=[("patrol", 5, 2), ("brute", 3, 0)],
            collectibles=[(2, 0)],
        )

        def snapshots() -> list[str]:
            state = initialize_game_state(puzzle, registry)
            place_character(state, "hero", 0, 0)
            start_simulation(state)
            state.headless_mode = True
            frames = [state.model_dump_json()]
            while state.game_status is GameStatus.RUNNING and state.current_turn < 12:
                execute_turn(state)
                frames.append(state.model_dump_json())
            return frames

        first = snapshots()
        assert len(first) > 2
        assert snapshots() == first
