"""Board queries shared by the movement, tile and combat mechanics.

Nothing in here mutates the ``GameState``.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import TYPE_CHECKING

from grid_tactics.ir.entities import CharacterDefinition, EnemyDefinition
from grid_tactics.ir.puzzle import CollisionType
from grid_tactics.ir.tiles import CadenceConfig, CadencePattern, CustomTileType, Tile, TileType
from grid_tactics.sim.core.entities import PlacedCharacter, PlacedEntity
from grid_tactics.sim.core.game_state import tile_key

if TYPE_CHECKING:
    from grid_tactics.sim.core.game_state import GameState


ADJACENT_DISTANCE = 1.42
"""Euclidean reach counted as adjacent (covers diagonals)."""


def distance(x1: float, y1: float, x2: float, y2: float) -> float:
    return math.hypot(x2 - x1, y2 - y1)


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------

def definition_of(
    state: GameState, entity: PlacedEntity,
) -> CharacterDefinition | EnemyDefinition | None:
    """Look up the shared definition behind a placed entity."""
    repo = state.repository
    if repo is None:
        return None
    if isinstance(entity, PlacedCharacter):
        return repo.get_character(entity.character_id)
    return repo.get_enemy(entity.definition_id)


def custom_tile_type(state: GameState, tile: Tile | None) -> CustomTileType | None:
    if tile is None or tile.custom_tile_type_id is None or state.repository is None:
        return None
    return state.repository.get_tile_type(tile.custom_tile_type_id)


# ---------------------------------------------------------------------------
# Cadence and tile activity
# ---------------------------------------------------------------------------

def cadence_is_on(cadence: CadenceConfig | None, turn: int) -> bool:
    """Evaluate a cadence schedule at *turn*.

    ``alternating`` is on for even turns, ``interval`` is on for the first
    ``on_turns`` of every ``on_turns + off_turns`` cycle, ``custom`` reads
    the repeating boolean pattern (an empty pattern is always on).  A
    ``start_state`` of ``off`` inverts the alternating and interval
    schedules.
    """
    if cadence is None or not cadence.enabled:
        return True
    if cadence.pattern is CadencePattern.CUSTOM:
        if not cadence.custom_pattern:
            return True
        return cadence.custom_pattern[turn % len(cadence.custom_pattern)]
    if cadence.pattern is CadencePattern.INTERVAL:
        cycle = cadence.on_turns + cadence.off_turns
        on = (turn % cycle) < cadence.on_turns
    else:
        on = turn % 2 == 0
    if cadence.start_state == "off":
        on = not on
    return on


def is_tile_on(state: GameState, tile: Tile) -> bool:
    """Whether the tile's behaviours (or its wall) are currently active."""
    tile_type = custom_tile_type(state, tile)
    on = cadence_is_on(tile_type.cadence if tile_type else None, state.current_turn)
    if tile.trigger_group_id and tile.trigger_group_id in state.toggled_trigger_groups:
        on = not on
    return on


def is_blocking_tile(state: GameState, x: int, y: int) -> bool:
    """True for holes, off-grid points and active walls."""
    tile = state.puzzle.tile_at(x, y)
    if tile is None:
        return True
    tile_type = custom_tile_type(state, tile)
    is_wall = tile.type is TileType.WALL or (
        tile_type is not None and tile_type.base_type == "wall"
    )
    blocking = is_wall and is_tile_on(state, tile)
    if tile_key(x, y) in state.wall_toggles:
        blocking = not blocking
    return blocking


def object_collision_at(state: GameState, x: int, y: int) -> CollisionType:
    """Strongest collision type among objects placed on ``(x, y)``."""
    result = CollisionType.NONE
    if state.repository is None:
        return result
    for placed in state.puzzle.placed_objects:
        if placed.x != x or placed.y != y:
            continue
        defn = state.repository.get_object(placed.object_id)
        if defn is None:
            continue
        if defn.collision_type is CollisionType.WALL:
            return CollisionType.WALL
        if defn.collision_type is CollisionType.STOP_MOVEMENT:
            result = CollisionType.STOP_MOVEMENT
    return result


def is_wall_like_tile(state: GameState, x: int, y: int) -> bool:
    """Tile-level wall check (walls, holes, grid edge, wall objects)."""
    return (
        is_blocking_tile(state, x, y)
        or object_collision_at(state, x, y) is CollisionType.WALL
    )


# ---------------------------------------------------------------------------
# Step classification
# ---------------------------------------------------------------------------

class StepKind(str, Enum):
    """Outcome of trying to step onto a tile."""

    FREE = "free"
    WALL = "wall"
    """Blocked by something wall-like: the mover's collision policy applies."""

    STOP = "stop"
    """Blocked without a wall reaction."""

    PASS = "pass"
    """Ghosting through an occupant."""

    BUMP = "bump"
    """A character walks into a living enemy."""


def classify_step(state: GameState, mover: PlacedEntity, x: int, y: int) -> StepKind:
    """Decide what happens when *mover* tries to enter ``(x, y)``."""
    if is_wall_like_tile(state, x, y):
        return StepKind.WALL
    if object_collision_at(state, x, y) is CollisionType.STOP_MOVEMENT:
        return StepKind.STOP

    mover_def = definition_of(state, mover)
    mover_ghost = bool(mover_def and mover_def.can_overlap_entities)

    occupant = state.living_entity_at(x, y, exclude=mover)
    if occupant is None:
        corpse = state.corpse_at(x, y)
        if corpse is not None and corpse is not mover:
            corpse_def = definition_of(state, corpse)
            if corpse_def is not None and corpse_def.behaves_like_wall_dead:
                return StepKind.PASS if mover_ghost else StepKind.WALL
            if corpse_def is not None and corpse_def.blocks_movement_dead and not mover_ghost:
                return StepKind.STOP
        return StepKind.FREE

    occupant_def = definition_of(state, occupant)
    if mover_ghost or (occupant_def is not None and occupant_def.can_overlap_entities):
        return StepKind.PASS
    if occupant_def is not None and occupant_def.behaves_like_wall:
        return StepKind.WALL
    if occupant_def is not None and occupant_def.blocks_movement:
        return StepKind.STOP
    if mover.is_character and not occupant.is_character:
        return StepKind.BUMP
    return StepKind.STOP


def wall_ahead(state: GameState, entity: PlacedEntity) -> bool:
    """Wall-like obstacle directly in front of *entity*, occupants included."""
    dx, dy = entity.facing.offset
    return classify_step(state, entity, entity.x + dx, entity.y + dy) is StepKind.WALL
