"""Character and enemy definitions."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from grid_tactics.ir.actions import CharacterAction
from grid_tactics.ir.base import IRModel
from grid_tactics.ir.directions import Direction


class _CollisionFlags(IRModel):
    can_overlap_entities: bool = False
    """Ghost: passes through other entities."""

    behaves_like_wall: bool = False
    behaves_like_wall_dead: bool = False
    blocks_movement: bool = False
    blocks_movement_dead: bool = False


class CharacterDefinition(_CollisionFlags):
    """A placeable hero and its behaviour program."""

    id: str
    name: str = ""
    description: str = ""
    health: int = Field(default=1, ge=1)
    attack_damage: int = Field(default=1, ge=0)
    default_facing: Direction = Direction.SOUTH
    behavior: list[CharacterAction] = Field(default_factory=list)


class EnemyBehavior(IRModel):
    type: Literal["static", "active"] = "static"
    pattern: list[CharacterAction] = Field(default_factory=list)
    default_facing: Direction | None = None


class EnemyDefinition(_CollisionFlags):
    id: str
    name: str = ""
    health: int = Field(default=1, ge=1)
    attack_damage: int = Field(default=1, ge=0)
    retaliation_damage: int | None = None
    """Damage dealt back to a bumping character; falls back to ``attack_damage``."""

    has_melee_priority: bool = False
    behavior: EnemyBehavior | None = None

    @property
    def is_active(self) -> bool:
        return self.behavior is not None and self.behavior.type == "active"
