"""Tests for the tile effect resolver."""

import pytest

from grid_tactics.ir.actions import parse_action
from grid_tactics.ir.directions import Direction
from grid_tactics.ir.puzzle import CollectiblePlacement, EnemyPlacement
from grid_tactics.ir.tiles import CadenceConfig, CustomTileType
from grid_tactics.sim.mechanics.board import cadence_is_on, is_blocking_tile
from grid_tactics.sim.mechanics.movement import move_entity
from grid_tactics.sim.mechanics.tiles import (
    apply_entry_effects,
    teleport_entity,
    update_standing_plates,
)

from tests.conftest import make_puzzle, start


TILE_TYPES = [
    {"id": "lava", "behaviors": [{"type": "damage", "damageAmount": 1}]},
    {"id": "spikes", "behaviors": [{"type": "damage", "damageAmount": 2}],
     "cadence": {"pattern": "alternating"}},
    {"id": "trap", "behaviors": [{"type": "damage", "damageAmount": 1, "damageOnce": True}]},
    {"id": "ice", "behaviors": [{"type": "ice"}]},
    {"id": "arrow-south", "behaviors": [{"type": "direction_change", "newFacing": "south"}]},
    {"id": "gate", "baseType": "wall", "canBeTriggered": True},
]

LEGEND = {
    "L": {"custom_tile_type_id": "lava"},
    "S": {"custom_tile_type_id": "spikes"},
    "X": {"custom_tile_type_id": "trap"},
    "I": {"custom_tile_type_id": "ice"},
    "v": {"custom_tile_type_id": "arrow-south"},
    "T": {"type": "teleport", "teleport_group_id": "a"},
    "g": {"custom_tile_type_id": "gate", "trigger_group_id": "gates"},
}


@pytest.fixture()
def tiles_registry(registry):
    for raw in TILE_TYPES:
        registry.register_tile_type(CustomTileType.model_validate(raw))
    return registry


def _step(state, entity, **fields):
    fields.setdefault("type", "move_forward")
    move_entity(state, entity, parse_action(fields))


def _add_plate(registry, *effects):
    registry.register_tile_type(CustomTileType.model_validate({
        "id": "plate",
        "behaviors": [{"type": "pressure_plate", "effects": list(effects)}],
    }))


# ---------------------------------------------------------------------------
# Damage
# ---------------------------------------------------------------------------

class TestDamageTiles:
    def test_lava_hurts_on_entry(self, tiles_registry):
        state = start(make_puzzle([".L."], legend=LEGEND), tiles_registry, [("hero", 0, 0)])
        hero = state.characters[0]
        _step(state, hero)
        assert (hero.x, hero.y) == (1, 0)
        assert hero.current_health == 2

    def test_lava_can_kill(self, tiles_registry):
        state = start(make_puzzle([".L."], legend=LEGEND), tiles_registry, [("hero", 0, 0)])
        hero = state.characters[0]
        hero.current_health = 1
        _step(state, hero, tilesPerMove=2)
        assert hero.dead
        assert (hero.x, hero.y) == (1, 0)

    def test_damage_once_per_entity(self, tiles_registry):
        state = start(make_puzzle(["X"], legend=LEGEND), tiles_registry, [("hero", 0, 0)])
        hero = state.characters[0]
        tile = state.puzzle.tile_at(0, 0)
        apply_entry_effects(state, hero, tile, Direction.EAST)
        apply_entry_effects(state, hero, tile, Direction.EAST)
        assert hero.current_health == 2
        assert state.damaged_once == {"0,0": [hero.uid]}

    def test_enemies_trigger_tiles_too(self, tiles_registry):
        state = start(make_puzzle(["L"], legend=LEGEND, enemies=[("dummy", 0, 0)]), tiles_registry)
        enemy = state.enemies[0]
        apply_entry_effects(state, enemy, state.puzzle.tile_at(0, 0), Direction.EAST)
        assert enemy.dead


# ---------------------------------------------------------------------------
# Cadence and trigger groups
# ---------------------------------------------------------------------------

class TestCadence:
    @pytest.mark.parametrize("cadence,expected", [
        (CadenceConfig(pattern="alternating"), [True, False, True, False]),
        (CadenceConfig(pattern="alternating", start_state="off"), [False, True, False, True]),
        (CadenceConfig(pattern="interval", on_turns=2, off_turns=1), [True, True, False, True]),
        (CadenceConfig(pattern="custom", custom_pattern=[False, True]), [False, True, False, True]),
        (CadenceConfig(enabled=False), [True, True, True, True]),
    ])
    def test_schedules(self, cadence, expected):
        assert [cadence_is_on(cadence, turn) for turn in range(4)] == expected

    def test_no_cadence_is_always_on(self):
        assert cadence_is_on(None, 7)

    def test_spikes_follow_turn_counter(self, tiles_registry):
        state = start(make_puzzle(["S"], legend=LEGEND), tiles_registry, [("hero", 0, 0)])
        hero = state.characters[0]
        tile = state.puzzle.tile_at(0, 0)

        state.current_turn = 1
        apply_entry_effects(state, hero, tile, Direction.EAST)
        assert hero.current_health == 3

        state.current_turn = 2
        apply_entry_effects(state, hero, tile, Direction.EAST)
        assert hero.current_health == 1

    def test_trigger_group_toggles_gate(self, tiles_registry):
        state = start(make_puzzle([".g."], legend=LEGEND), tiles_registry, [("hero", 0, 0)])
        assert is_blocking_tile(state, 1, 0)
        state.toggled_trigger_groups.append("gates")
        assert not is_blocking_tile(state, 1, 0)
        _step(state, state.characters[0])
        assert state.characters[0].x == 1


# ---------------------------------------------------------------------------
# Teleport
# ---------------------------------------------------------------------------

class TestTeleport:
    def test_walk_into_teleporter(self, tiles_registry):
        state = start(make_puzzle([".T.T."], legend=LEGEND), tiles_registry, [("hero", 0, 0)])
        hero = state.characters[0]
        _step(state, hero)
        assert (hero.x, hero.y) == (3, 0)

    def test_destination_wraps_row_major(self, tiles_registry):
        state = start(make_puzzle(["T.", ".T"], legend=LEGEND), tiles_registry, [("hero", 1, 1)])
        hero = state.characters[0]
        assert teleport_entity(state, hero, state.puzzle.tile_at(1, 1))
        assert (hero.x, hero.y) == (0, 0)

    def test_occupied_destination_blocks(self, tiles_registry):
        puzzle = make_puzzle(["T.T"], legend=LEGEND, enemies=[("dummy", 2, 0)])
        state = start(puzzle, tiles_registry, [("hero", 0, 0)])
        hero = state.characters[0]
        assert not teleport_entity(state, hero, state.puzzle.tile_at(0, 0))
        assert (hero.x, hero.y) == (0, 0)

    def test_lone_teleporter_does_nothing(self, tiles_registry):
        state = start(make_puzzle(["T.."], legend=LEGEND), tiles_registry, [("hero", 1, 0)])
        assert not teleport_entity(state, state.characters[0], state.puzzle.tile_at(0, 0))


# ---------------------------------------------------------------------------
# Ice and direction change
# ---------------------------------------------------------------------------

class TestIceAndArrows:
    def test_slide_applies_tiles_along_the_way(self, tiles_registry):
        state = start(make_puzzle([".IL."], legend=LEGEND), tiles_registry, [("hero", 0, 0)])
        hero = state.characters[0]
        _step(state, hero)
        assert (hero.x, hero.y) == (3, 0)
        assert hero.current_health == 2

    def test_slide_stops_at_grid_edge(self, tiles_registry):
        state = start(make_puzzle([".II"], legend=LEGEND), tiles_registry, [("hero", 0, 0)])
        hero = state.characters[0]
        _step(state, hero)
        assert (hero.x, hero.y) == (2, 0)

    def test_slide_stops_before_wall(self, tiles_registry):
        state = start(make_puzzle([".I..#"], legend=LEGEND), tiles_registry, [("hero", 0, 0)])
        hero = state.characters[0]
        _step(state, hero)
        assert (hero.x, hero.y) == (3, 0)

    def test_slide_stops_before_enemy(self, tiles_registry):
        puzzle = make_puzzle([".I..."], legend=LEGEND, enemies=[("brute", 3, 0)])
        state = start(puzzle, tiles_registry, [("hero", 0, 0)])
        hero = state.characters[0]
        _step(state, hero)
        assert (hero.x, hero.y) == (2, 0)
        assert state.enemies[0].current_health == 50

    def test_direction_change(self, tiles_registry):
        state = start(make_puzzle([".v", ".."], legend=LEGEND), tiles_registry, [("hero", 0, 0)])
        hero = state.characters[0]
        _step(state, hero)
        assert (hero.x, hero.y) == (1, 0)
        assert hero.facing is Direction.SOUTH


# ---------------------------------------------------------------------------
# Collectibles
# ---------------------------------------------------------------------------

class TestCollectibles:
    def test_character_collects(self, tiles_registry):
        puzzle = make_puzzle(
            ["..."], collectibles=[CollectiblePlacement(x=1, y=0, score_value=10)],
        )
        state = start(puzzle, tiles_registry, [("hero", 0, 0)])
        _step(state, state.characters[0])
        assert state.collectibles[0].collected
        assert state.score == 10

    def test_enemy_does_not_collect(self, tiles_registry):
        puzzle = make_puzzle(
            ["..."],
            enemies=[("dummy", 0, 0)],
            collectibles=[(1, 0)],
        )
        state = start(puzzle, tiles_registry)
        enemy = state.enemies[0]
        enemy.facing = Direction.EAST
        _step(state, enemy)
        assert (enemy.x, enemy.y) == (1, 0)
        assert not state.collectibles[0].collected


# ---------------------------------------------------------------------------
# Pressure plates
# ---------------------------------------------------------------------------

PLATE_LEGEND = {**LEGEND, "P": {"custom_tile_type_id": "plate"}}


class TestPressurePlates:
    def test_toggle_wall_on_entry(self, tiles_registry):
        _add_plate(tiles_registry, {"type": "toggle_wall", "targetX": 3, "targetY": 0})
        state = start(make_puzzle([".P.."], legend=PLATE_LEGEND), tiles_registry, [("hero", 0, 0)])
        _step(state, state.characters[0])
        assert state.pressed_plates == ["1,0"]
        assert state.wall_toggles == ["3,0"]
        assert is_blocking_tile(state, 3, 0)

    def test_toggle_wall_opens_a_wall(self, tiles_registry):
        _add_plate(tiles_registry, {"type": "toggle_wall", "targetX": 3, "targetY": 0})
        state = start(make_puzzle([".P.#"], legend=PLATE_LEGEND), tiles_registry, [("hero", 0, 0)])
        _step(state, state.characters[0])
        assert not is_blocking_tile(state, 3, 0)

    def test_stay_pressed_effect_reverts_when_vacated(self, tiles_registry):
        _add_plate(tiles_registry, {
            "type": "toggle_wall", "targetX": 3, "targetY": 0, "stayPressed": True,
        })
        state = start(make_puzzle([".P.."], legend=PLATE_LEGEND), tiles_registry, [("hero", 0, 0)])
        hero = state.characters[0]
        _step(state, hero)
        update_standing_plates(state)
        assert state.wall_toggles == ["3,0"]

        _step(state, hero)
        update_standing_plates(state)
        assert state.pressed_plates == []
        assert state.wall_toggles == []

    def test_permanent_effect_survives_release(self, tiles_registry):
        _add_plate(tiles_registry, {"type": "toggle_wall", "targetX": 3, "targetY": 0})
        state = start(make_puzzle([".P.."], legend=PLATE_LEGEND), tiles_registry, [("hero", 0, 0)])
        hero = state.characters[0]
        _step(state, hero)
        _step(state, hero)
        update_standing_plates(state)
        assert state.pressed_plates == []
        assert state.wall_toggles == ["3,0"]

    def test_effect_without_target_is_ignored(self, tiles_registry):
        _add_plate(tiles_registry, {"type": "toggle_wall", "targetX": 3, "targetY": 0})
        # Content edited after loading skips validation.
        tiles_registry.get_tile_type("plate").behaviors[0].effects[0].target_x = None
        state = start(make_puzzle([".P.."], legend=PLATE_LEGEND), tiles_registry, [("hero", 0, 0)])
        _step(state, state.characters[0])
        assert state.pressed_plates == ["1,0"]
        assert state.wall_toggles == []

    def test_spawn_dormant_enemy(self, tiles_registry):
        _add_plate(tiles_registry, {"type": "spawn_enemy", "targetX": 3, "targetY": 0})
        puzzle = make_puzzle(
            [".P.."],
            legend=PLATE_LEGEND,
            enemies=[EnemyPlacement(enemy_id="dummy", x=3, y=0, dormant=True)],
        )
        state = start(puzzle, tiles_registry, [("hero", 0, 0)])
        assert not state.enemies[0].is_present
        _step(state, state.characters[0])
        assert state.enemies[0].is_present

    def test_despawn_enemy(self, tiles_registry):
        _add_plate(tiles_registry, {"type": "despawn_enemy", "targetX": 3, "targetY": 0})
        puzzle = make_puzzle([".P.."], legend=PLATE_LEGEND, enemies=[("dummy", 3, 0)])
        state = start(puzzle, tiles_registry, [("hero", 0, 0)])
        _step(state, state.characters[0])
        assert state.enemies[0].dormant

    def test_toggle_trigger_group(self, tiles_registry):
        _add_plate(tiles_registry, {"type": "toggle_trigger_group", "targetTriggerGroupId": "gates"})
        state = start(make_puzzle([".Pg."], legend=PLATE_LEGEND), tiles_registry, [("hero", 0, 0)])
        hero = state.characters[0]
        _step(state, hero)
        assert state.toggled_trigger_groups == ["gates"]
        _step(state, hero)
        assert (hero.x, hero.y) == (2, 0)

    def test_trigger_teleport(self, tiles_registry):
        _add_plate(tiles_registry, {"type": "trigger_teleport", "targetX": 0, "targetY": 1})
        puzzle = make_puzzle(
            [".P..", "T..T"],
            legend=PLATE_LEGEND,
            enemies=[("dummy", 0, 1)],
        )
        state = start(puzzle, tiles_registry, [("hero", 0, 0)])
        _step(state, state.characters[0])
        assert (state.enemies[0].x, state.enemies[0].y) == (3, 1)

    def test_standing_enemy_presses_plate(self, tiles_registry):
        _add_plate(tiles_registry, {"type": "toggle_wall", "targetX": 2, "targetY": 0})
        state = start(
            make_puzzle(["P.."], legend=PLATE_LEGEND, enemies=[("dummy", 0, 0)]),
            tiles_registry,
        )
        update_standing_plates(state)
        assert state.pressed_plates == ["0,0"]
        assert state.wall_toggles == ["2,0"]
