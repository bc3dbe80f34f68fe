"""Runtime records for a single puzzle run."""

from grid_tactics.sim.core.entities import (
    PlacedCharacter,
    PlacedCollectible,
    PlacedEnemy,
    PlacedEntity,
)
from grid_tactics.sim.core.game_state import (
    GameState,
    GameStatus,
    PersistentAreaEffect,
    Projectile,
    tile_key,
)

__all__ = [
    # entities
    "PlacedEntity",
    "PlacedCharacter",
    "PlacedEnemy",
    "PlacedCollectible",
    # game_state
    "GameStatus",
    "GameState",
    "Projectile",
    "PersistentAreaEffect",
    "tile_key",
]
