"""Movement with wall-collision policies.

A move step walks ``tiles_per_move`` tiles.  Each step is classified
(:class:`~grid_tactics.sim.mechanics.board.StepKind`) and a blocked step
applies the mover's :class:`WallCollisionPolicy` once:

- ``stop``: the move ends.
- ``turn_left`` / ``turn_right`` / ``turn_around``: the mover turns and the
  move ends.
- ``continue``: the step is skipped over; the mover lands on the next free
  tile in line and never leaves the grid.

Before the first step, a blocked first tile lets turn policies turn the
mover and walk in the new direction instead.  After the move, turn policies
also turn the mover away from a wall it is now facing.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from grid_tactics.ir.actions import ActionType, MoveAction, WallCollisionPolicy
from grid_tactics.ir.directions import Direction
from grid_tactics.sim.core.entities import PlacedCharacter, PlacedEnemy, PlacedEntity
from grid_tactics.sim.mechanics.board import StepKind, classify_step, is_wall_like_tile
from grid_tactics.sim.mechanics.combat import bump_combat
from grid_tactics.sim.mechanics.tiles import enter_tile

if TYPE_CHECKING:
    from grid_tactics.sim.core.game_state import GameState

logger = logging.getLogger(__name__)

_TURN_POLICIES = (
    WallCollisionPolicy.TURN_LEFT,
    WallCollisionPolicy.TURN_RIGHT,
    WallCollisionPolicy.TURN_AROUND,
)

_ABSOLUTE_MOVES: dict[ActionType, Direction] = {
    ActionType.MOVE_DIAGONAL_NE: Direction.NORTHEAST,
    ActionType.MOVE_DIAGONAL_NW: Direction.NORTHWEST,
    ActionType.MOVE_DIAGONAL_SE: Direction.SOUTHEAST,
    ActionType.MOVE_DIAGONAL_SW: Direction.SOUTHWEST,
}

_RELATIVE_MOVES: dict[ActionType, int] = {
    ActionType.MOVE_FORWARD: 0,
    ActionType.MOVE_RIGHT: 90,
    ActionType.MOVE_BACKWARD: 180,
    ActionType.MOVE_LEFT: 270,
}


def move_direction(action_type: ActionType, facing: Direction) -> Direction:
    """Absolute direction of a move step for an entity facing *facing*."""
    if action_type in _ABSOLUTE_MOVES:
        return _ABSOLUTE_MOVES[action_type]
    return facing.rotate(_RELATIVE_MOVES[action_type])


def _policy_rotation(policy: WallCollisionPolicy, degrees: int) -> int:
    if policy is WallCollisionPolicy.TURN_LEFT:
        return -degrees
    if policy is WallCollisionPolicy.TURN_RIGHT:
        return degrees
    return 180


def move_entity(state: GameState, entity: PlacedEntity, action: MoveAction) -> None:
    """Execute a move step for *entity* (mutated in place)."""
    policy = action.on_wall_collision
    direction = move_direction(action.type, entity.facing)

    dx, dy = direction.offset
    if classify_step(state, entity, entity.x + dx, entity.y + dy) is StepKind.WALL:
        if policy is WallCollisionPolicy.STOP:
            return
        if policy in _TURN_POLICIES:
            rotation = _policy_rotation(policy, action.turn_degrees)
            entity.facing = entity.facing.rotate(rotation)
            direction = direction.rotate(rotation)

    _walk(state, entity, direction, action)

    if policy in _TURN_POLICIES and not entity.dead:
        fx, fy = entity.facing.offset
        if is_wall_like_tile(state, entity.x + fx, entity.y + fy):
            entity.facing = entity.facing.rotate(_policy_rotation(policy, action.turn_degrees))


def _walk(
    state: GameState, entity: PlacedEntity, direction: Direction, action: MoveAction,
) -> None:
    policy = action.on_wall_collision
    dx, dy = direction.offset
    # The cursor runs ahead of the entity while a ``continue`` policy skips
    # blocked tiles.
    cx, cy = entity.x, entity.y
    for _ in range(action.tiles_per_move):
        cx, cy = cx + dx, cy + dy
        if not state.puzzle.in_bounds(cx, cy):
            return
        kind = classify_step(state, entity, cx, cy)

        if kind is StepKind.WALL:
            if policy is WallCollisionPolicy.CONTINUE:
                continue
            if policy in _TURN_POLICIES:
                entity.facing = entity.facing.rotate(
                    _policy_rotation(policy, action.turn_degrees)
                )
            return
        if kind is StepKind.STOP:
            return
        if kind is StepKind.PASS:
            entity.x, entity.y = cx, cy
            continue
        if kind is StepKind.BUMP:
            enemy = state.living_entity_at(cx, cy, exclude=entity)
            if not isinstance(entity, PlacedCharacter) or not isinstance(enemy, PlacedEnemy):
                return
            if not bump_combat(state, entity, enemy):
                return
            if entity.dead:
                return

        before = (cx, cy)
        enter_tile(state, entity, cx, cy, direction)
        if entity.dead:
            return
        if (entity.x, entity.y) != before:
            # Teleported or slid: keep walking from the new position.
            cx, cy = entity.x, entity.y
