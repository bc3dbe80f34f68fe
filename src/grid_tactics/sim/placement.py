"""Where characters may be placed, and building their runtime records."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from grid_tactics.ir.directions import Direction
from grid_tactics.ir.puzzle import CollisionType, Puzzle
from grid_tactics.ir.tiles import TileType
from grid_tactics.sim.core.entities import PlacedCharacter

if TYPE_CHECKING:
    from grid_tactics.sim.content.registry import DefinitionRepository

logger = logging.getLogger(__name__)


def is_valid_placement_tile(
    puzzle: Puzzle, repository: DefinitionRepository | None, x: int, y: int,
) -> bool:
    """Whether a character may start on ``(x, y)``.

    Excluded: holes, walls (plain or custom wall-based), tiles holding a
    non-dormant enemy, tiles whose custom type or uncollected collectible
    forbids placement, and tiles holding a colliding object.
    """
    tile = puzzle.tile_at(x, y)
    if tile is None or tile.type is TileType.WALL:
        return False
    if any(e.x == x and e.y == y and not e.dormant for e in puzzle.enemies):
        return False
    if repository is None:
        return True
    if tile.custom_tile_type_id:
        tile_type = repository.get_tile_type(tile.custom_tile_type_id)
        if tile_type is not None and (tile_type.prevent_placement or tile_type.base_type == "wall"):
            return False
    for placed in puzzle.collectibles:
        if placed.x == x and placed.y == y and placed.collectible_id:
            collectible = repository.get_collectible(placed.collectible_id)
            if collectible is not None and collectible.prevent_placement:
                return False
    for placed in puzzle.placed_objects:
        if placed.x == x and placed.y == y:
            obj = repository.get_object(placed.object_id)
            if obj is not None and obj.collision_type is not CollisionType.NONE:
                return False
    return True


def valid_placement_tiles(
    puzzle: Puzzle, repository: DefinitionRepository | None,
) -> list[tuple[int, int]]:
    """Every valid placement tile in row-major order."""
    return [
        (tile.x, tile.y)
        for tile in puzzle.iter_tiles()
        if is_valid_placement_tile(puzzle, repository, tile.x, tile.y)
    ]


def default_facing(repository: DefinitionRepository | None, character_id: str) -> Direction:
    defn = repository.get_character(character_id) if repository else None
    return defn.default_facing if defn else Direction.SOUTH


def make_placed_character(
    repository: DefinitionRepository | None,
    index: int,
    character_id: str,
    x: int,
    y: int,
    facing: Direction | None = None,
) -> PlacedCharacter:
    """Build the runtime record for the *index*-th placed character.

    A character without a definition gets 1 health and starts inactive,
    so the turn executor skips it.
    """
    defn = repository.get_character(character_id) if repository else None
    if defn is None:
        logger.warning("No definition for character %s", character_id)
    health = defn.health if defn else 1
    return PlacedCharacter(
        uid=f"c{index}:{character_id}",
        character_id=character_id,
        x=x,
        y=y,
        facing=facing or (defn.default_facing if defn else Direction.SOUTH),
        current_health=health,
        max_health=health,
        active=defn is not None,
    )
