"""Board rules for the puzzle simulator.

Re-exports the primary functions from each mechanics module for convenience.

Usage::

    from grid_tactics.sim.mechanics import (
        cadence_is_on, classify_step, is_blocking_tile,
        enter_tile, teleport_entity, update_standing_plates,
        bump_combat, deal_damage,
        cast_spell, tick_area_effects, update_projectiles,
        move_entity,
    )
"""

# -- board -------------------------------------------------------------------
from .board import (
    ADJACENT_DISTANCE,
    StepKind,
    cadence_is_on,
    classify_step,
    distance,
    is_blocking_tile,
    is_tile_on,
    is_wall_like_tile,
    object_collision_at,
    wall_ahead,
)

# -- targeting ---------------------------------------------------------------
from .targeting import TargetInfo, find_nearest, first_opponent_in_line

# -- combat ------------------------------------------------------------------
from .combat import attack_in_direction, blast_area, bump_combat, deal_damage, heal_area

# -- tiles -------------------------------------------------------------------
from .tiles import (
    enter_tile,
    slide,
    teleport_entity,
    tile_behaviors,
    update_standing_plates,
)

# -- projectiles / area effects ----------------------------------------------
from .projectiles import apply_aoe, launch_projectile, tick_area_effects, update_projectiles

# -- spells ------------------------------------------------------------------
from .spells import cast_directions, cast_in_direction, cast_spell

# -- movement ----------------------------------------------------------------
from .movement import move_direction, move_entity

__all__ = [
    "ADJACENT_DISTANCE",
    "StepKind",
    "cadence_is_on",
    "classify_step",
    "distance",
    "is_blocking_tile",
    "is_tile_on",
    "is_wall_like_tile",
    "object_collision_at",
    "wall_ahead",
    "TargetInfo",
    "find_nearest",
    "first_opponent_in_line",
    "attack_in_direction",
    "blast_area",
    "bump_combat",
    "deal_damage",
    "heal_area",
    "enter_tile",
    "slide",
    "teleport_entity",
    "tile_behaviors",
    "update_standing_plates",
    "apply_aoe",
    "launch_projectile",
    "tick_area_effects",
    "update_projectiles",
    "cast_directions",
    "cast_in_direction",
    "cast_spell",
    "move_direction",
    "move_entity",
]
