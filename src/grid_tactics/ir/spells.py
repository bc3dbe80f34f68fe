"""Spell templates cast by ``spell`` behaviour steps."""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from grid_tactics.ir.base import IRModel
from grid_tactics.ir.directions import Direction, RelativeDirection


class SpellTemplate(str, Enum):
    MELEE = "melee"
    RANGE_LINEAR = "range_linear"
    MAGIC_LINEAR = "magic_linear"
    AOE = "aoe"
    HEAL = "heal"


class DirectionMode(str, Enum):
    """Where a spell is aimed when the casting step does not override it."""

    CURRENT_FACING = "current_facing"
    ALL_DIRECTIONS = "all_directions"
    FIXED = "fixed"
    RELATIVE = "relative"


class SpellDefinition(IRModel):
    """A reusable attack or heal.

    Linear templates fly as projectiles; ``aoe`` hits a circle either around
    the caster or ``range`` tiles ahead of it.
    """

    id: str
    name: str = ""
    template_type: SpellTemplate = SpellTemplate.MELEE
    direction_mode: DirectionMode = DirectionMode.CURRENT_FACING
    default_directions: list[Direction] = Field(default_factory=list)
    relative_directions: list[RelativeDirection] = Field(default_factory=list)

    damage: int = Field(default=1, ge=0)
    healing: int = Field(default=0, ge=0)

    melee_range: int = Field(default=1, ge=0)
    """Tiles hit in a line; 0 hits the caster's own tile."""

    range: int = Field(default=10, ge=1)
    projectile_speed: float = Field(default=5.0, gt=0)
    """Tiles per second in live play."""

    pierce_enemies: bool = False

    radius: int = Field(default=2, ge=0)
    aoe_centered_on_caster: bool = True
    projectile_before_aoe: bool = False
    persist_duration: int = Field(default=0, ge=0)
    """Turns an AOE lingers.  0 means an instant blast."""

    persist_damage_per_turn: int | None = None
