"""Tile effect resolver.

Applies the behaviours of special tiles to entities that enter (or stand
on) them: damage, teleport, ice, direction change and pressure plates.
Behaviours on one tile stack and run in definition order; resolution stops
as soon as the entity dies.  A tile whose cadence (or trigger group) is
currently off does nothing.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterator

from grid_tactics.ir.directions import Direction
from grid_tactics.ir.tiles import (
    DamageBehavior,
    DirectionChangeBehavior,
    IceBehavior,
    PressurePlateBehavior,
    PressurePlateEffect,
    PressurePlateEffectType,
    TeleportBehavior,
    Tile,
    TileBehavior,
    TileType,
)
from grid_tactics.sim.core.entities import PlacedEnemy, PlacedEntity
from grid_tactics.sim.core.game_state import tile_key
from grid_tactics.sim.mechanics.board import (
    StepKind,
    classify_step,
    custom_tile_type,
    is_tile_on,
)

if TYPE_CHECKING:
    from grid_tactics.sim.core.game_state import GameState

logger = logging.getLogger(__name__)


def tile_behaviors(state: GameState, tile: Tile) -> list[TileBehavior]:
    """Behaviours a tile carries, including the implicit one of a teleport tile."""
    behaviors: list[TileBehavior] = []
    if tile.type is TileType.TELEPORT and tile.teleport_group_id:
        behaviors.append(TeleportBehavior())
    tile_type = custom_tile_type(state, tile)
    if tile_type is not None:
        behaviors.extend(tile_type.behaviors)
    elif tile.custom_tile_type_id is not None:
        logger.warning("Unknown custom tile type %s at (%d, %d)",
                       tile.custom_tile_type_id, tile.x, tile.y)
    return behaviors


# ---------------------------------------------------------------------------
# Entering a tile
# ---------------------------------------------------------------------------

def enter_tile(
    state: GameState,
    entity: PlacedEntity,
    x: int,
    y: int,
    direction: Direction,
    *,
    sliding: bool = False,
) -> None:
    """Move *entity* onto ``(x, y)`` and resolve everything entering triggers.

    Characters pick up uncollected collectibles; then the tile's active
    behaviours apply.  *sliding* is set while an ice slide carries the
    entity, in which case further ice tiles do not start a nested slide.
    """
    entity.x, entity.y = x, y
    if entity.is_character:
        collect_at(state, x, y)
    tile = state.puzzle.tile_at(x, y)
    if tile is not None:
        apply_entry_effects(state, entity, tile, direction, sliding=sliding)


def collect_at(state: GameState, x: int, y: int) -> None:
    for collectible in state.collectibles:
        if collectible.collected or collectible.x != x or collectible.y != y:
            continue
        collectible.collected = True
        state.score += collectible.score_value
        logger.debug("Collected %s at (%d, %d) for %d points",
                     collectible.collectible_id or collectible.type, x, y,
                     collectible.score_value)


def apply_entry_effects(
    state: GameState,
    entity: PlacedEntity,
    tile: Tile,
    direction: Direction,
    *,
    sliding: bool = False,
) -> None:
    """Run every active behaviour of *tile* against *entity*."""
    if not is_tile_on(state, tile):
        return
    for behavior in tile_behaviors(state, tile):
        if isinstance(behavior, DamageBehavior):
            _apply_damage(state, entity, tile, behavior)
        elif isinstance(behavior, TeleportBehavior):
            teleport_entity(state, entity, tile, behavior.teleport_group_id)
        elif isinstance(behavior, DirectionChangeBehavior):
            entity.facing = behavior.new_facing
        elif isinstance(behavior, IceBehavior):
            if not sliding:
                slide(state, entity, direction)
        elif isinstance(behavior, PressurePlateBehavior):
            press_plate(state, tile, behavior)
        if entity.dead:
            break


def _apply_damage(
    state: GameState, entity: PlacedEntity, tile: Tile, behavior: DamageBehavior,
) -> None:
    if behavior.damage_once:
        hurt = state.damaged_once.setdefault(tile_key(tile.x, tile.y), [])
        if entity.uid in hurt:
            return
        hurt.append(entity.uid)
        hurt.sort()
    lost = entity.take_damage(behavior.damage_amount)
    logger.debug("%s takes %d tile damage at (%d, %d)", entity.uid, lost, tile.x, tile.y)


# ---------------------------------------------------------------------------
# Teleport
# ---------------------------------------------------------------------------

def _teleport_group_of(state: GameState, tile: Tile) -> str | None:
    if tile.teleport_group_id:
        return tile.teleport_group_id
    tile_type = custom_tile_type(state, tile)
    if tile_type is None:
        return None
    for behavior in tile_type.behaviors:
        if isinstance(behavior, TeleportBehavior) and behavior.teleport_group_id:
            return behavior.teleport_group_id
    return None


def teleport_members(state: GameState, group_id: str) -> list[Tile]:
    """Tiles of a teleport group in row-major order."""
    return [t for t in state.puzzle.iter_tiles() if _teleport_group_of(state, t) == group_id]


def teleport_entity(
    state: GameState, entity: PlacedEntity, source: Tile, group_id: str | None = None,
) -> bool:
    """Send *entity* from *source* to the next member of its teleport group.

    The destination is the first member after *source* in row-major order,
    wrapping around.  Nothing happens when the group has no other member or
    the destination is occupied.  The destination's own behaviours do not
    fire.  Returns whether the entity moved.
    """
    group = source.teleport_group_id or group_id or _teleport_group_of(state, source)
    if not group:
        return False
    members = teleport_members(state, group)
    others = [t for t in members if (t.x, t.y) != (source.x, source.y)]
    if not others:
        return False
    after = [t for t in others if (t.y, t.x) > (source.y, source.x)]
    destination = after[0] if after else others[0]
    if state.living_entity_at(destination.x, destination.y, exclude=entity) is not None:
        logger.debug("Teleport %s -> (%d, %d) blocked", group, destination.x, destination.y)
        return False
    logger.debug("%s teleports (%d, %d) -> (%d, %d)", entity.uid,
                 entity.x, entity.y, destination.x, destination.y)
    entity.x, entity.y = destination.x, destination.y
    return True


# ---------------------------------------------------------------------------
# Ice
# ---------------------------------------------------------------------------

def slide(state: GameState, entity: PlacedEntity, direction: Direction) -> None:
    """Carry *entity* along *direction* until something stops it.

    The slide ends before a wall, hole, grid edge or blocking entity.  Tiles
    slid onto apply their other behaviours as they are entered; a teleport
    or death ends the slide.
    """
    dx, dy = direction.offset
    max_steps = state.puzzle.width * state.puzzle.height
    for _ in range(max_steps):
        nx, ny = entity.x + dx, entity.y + dy
        if classify_step(state, entity, nx, ny) not in (StepKind.FREE, StepKind.PASS):
            break
        enter_tile(state, entity, nx, ny, direction, sliding=True)
        if entity.dead or (entity.x, entity.y) != (nx, ny):
            break


# ---------------------------------------------------------------------------
# Pressure plates
# ---------------------------------------------------------------------------

def press_plate(state: GameState, tile: Tile, behavior: PressurePlateBehavior) -> None:
    """Fire a plate's effects unless it is already held down."""
    key = tile_key(tile.x, tile.y)
    if key in state.pressed_plates:
        return
    state.pressed_plates.append(key)
    state.pressed_plates.sort()
    logger.debug("Pressure plate (%d, %d) pressed", tile.x, tile.y)
    for effect in behavior.effects:
        _apply_plate_effect(state, effect, revert=False)


def release_plate(state: GameState, tile: Tile, behavior: PressurePlateBehavior) -> None:
    """Release a plate, undoing its ``stay_pressed`` effects."""
    key = tile_key(tile.x, tile.y)
    if key not in state.pressed_plates:
        return
    state.pressed_plates.remove(key)
    logger.debug("Pressure plate (%d, %d) released", tile.x, tile.y)
    for effect in behavior.effects:
        if effect.stay_pressed:
            _apply_plate_effect(state, effect, revert=True)


def _plates(state: GameState) -> Iterator[tuple[Tile, PressurePlateBehavior]]:
    for tile in state.puzzle.iter_tiles():
        for behavior in tile_behaviors(state, tile):
            if isinstance(behavior, PressurePlateBehavior):
                yield tile, behavior


def update_standing_plates(state: GameState) -> None:
    """Press plates that are occupied and release the ones left empty.

    Called once per turn after every entity has acted.  A plate that is
    currently switched off counts as unoccupied.
    """
    for tile, behavior in _plates(state):
        occupied = (
            is_tile_on(state, tile)
            and state.living_entity_at(tile.x, tile.y) is not None
        )
        pressed = tile_key(tile.x, tile.y) in state.pressed_plates
        if occupied and not pressed:
            press_plate(state, tile, behavior)
        elif not occupied and pressed:
            release_plate(state, tile, behavior)


def _enemy_at(state: GameState, x: int, y: int) -> PlacedEnemy | None:
    for enemy in state.enemies:
        if enemy.x == x and enemy.y == y:
            return enemy
    return None


def _apply_plate_effect(state: GameState, effect: PressurePlateEffect, *, revert: bool) -> None:
    kind = effect.type
    if revert:
        if kind is PressurePlateEffectType.TRIGGER_TELEPORT:
            return
        kind = {
            PressurePlateEffectType.SPAWN_ENEMY: PressurePlateEffectType.DESPAWN_ENEMY,
            PressurePlateEffectType.DESPAWN_ENEMY: PressurePlateEffectType.SPAWN_ENEMY,
        }.get(kind, kind)

    if kind is PressurePlateEffectType.TOGGLE_TRIGGER_GROUP:
        group = effect.target_trigger_group_id
        if group is not None:
            state.toggle_member(state.toggled_trigger_groups, group)
        return

    if effect.target_x is None or effect.target_y is None:
        return
    x, y = effect.target_x, effect.target_y

    if kind is PressurePlateEffectType.TOGGLE_WALL:
        if state.puzzle.tile_at(x, y) is None:
            logger.warning("toggle_wall target (%d, %d) is not a tile", x, y)
            return
        state.toggle_member(state.wall_toggles, tile_key(x, y))
    elif kind is PressurePlateEffectType.SPAWN_ENEMY:
        enemy = _enemy_at(state, x, y)
        if enemy is not None and not enemy.is_present:
            enemy.revive()
            logger.debug("Spawned %s at (%d, %d)", enemy.uid, x, y)
    elif kind is PressurePlateEffectType.DESPAWN_ENEMY:
        enemy = _enemy_at(state, x, y)
        if enemy is not None and enemy.is_present:
            enemy.dormant = True
            logger.debug("Despawned %s at (%d, %d)", enemy.uid, x, y)
    elif kind is PressurePlateEffectType.TRIGGER_TELEPORT:
        target = state.puzzle.tile_at(x, y)
        occupant = state.living_entity_at(x, y)
        if target is not None and occupant is not None:
            teleport_entity(state, occupant, target)
