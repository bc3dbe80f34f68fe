"""Target resolution -- find who a directed or auto-targeted attack hits."""

from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple

from grid_tactics.ir.actions import AutoTargetMode
from grid_tactics.ir.directions import Direction, direction_between
from grid_tactics.sim.core.entities import PlacedEntity
from grid_tactics.sim.mechanics.board import distance, is_blocking_tile

if TYPE_CHECKING:
    from grid_tactics.sim.core.game_state import GameState


class TargetInfo(NamedTuple):
    entity: PlacedEntity
    direction: Direction
    distance: float


def find_nearest(
    state: GameState,
    caster: PlacedEntity,
    *,
    characters: bool,
    max_targets: int = 1,
    mode: AutoTargetMode = AutoTargetMode.OMNIDIRECTIONAL,
) -> list[TargetInfo]:
    """Nearest living characters (or present enemies) around *caster*.

    Sorted by Euclidean distance; ties keep placement order.  ``cardinal``
    and ``diagonal`` modes keep only targets whose snapped compass direction
    is of that kind.
    """
    pool = state.living_characters() if characters else state.present_enemies()
    found: list[TargetInfo] = []
    for entity in pool:
        if entity is caster:
            continue
        direction = direction_between(caster.x, caster.y, entity.x, entity.y)
        if direction is None:
            # Same tile: aim along the caster's facing.
            direction = caster.facing
        if mode is AutoTargetMode.CARDINAL and not direction.is_cardinal:
            continue
        if mode is AutoTargetMode.DIAGONAL and direction.is_cardinal:
            continue
        found.append(TargetInfo(entity, direction, distance(caster.x, caster.y, entity.x, entity.y)))
    found.sort(key=lambda t: t.distance)
    return found[:max_targets]


def first_opponent_in_line(
    state: GameState,
    attacker: PlacedEntity,
    direction: Direction,
    reach: int,
) -> PlacedEntity | None:
    """First living opponent within *reach* tiles along *direction*.

    The scan stops at walls, holes and the grid edge.
    """
    dx, dy = direction.offset
    opponents = state.opponents_of(attacker)
    for step in range(1, reach + 1):
        x, y = attacker.x + dx * step, attacker.y + dy * step
        if is_blocking_tile(state, x, y):
            return None
        for target in opponents:
            if target.x == x and target.y == y:
                return target
    return None


def opponents_in_radius(
    state: GameState, attacker: PlacedEntity, cx: int, cy: int, radius: float,
) -> list[PlacedEntity]:
    return [
        target for target in state.opponents_of(attacker)
        if distance(cx, cy, target.x, target.y) <= radius
    ]


def opponents_on_tile(state: GameState, attacker: PlacedEntity, x: int, y: int) -> list[PlacedEntity]:
    return [t for t in state.opponents_of(attacker) if t.x == x and t.y == y]
