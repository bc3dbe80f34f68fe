"""Tiles, custom tile types and the behaviours they carry."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import Field, model_validator

from grid_tactics.ir.base import IRModel
from grid_tactics.ir.directions import Direction


class TileType(str, Enum):
    EMPTY = "empty"
    WALL = "wall"
    GOAL = "goal"
    TELEPORT = "teleport"


# ---------------------------------------------------------------------------
# Cadence
# ---------------------------------------------------------------------------

class CadencePattern(str, Enum):
    ALTERNATING = "alternating"
    INTERVAL = "interval"
    CUSTOM = "custom"


class CadenceConfig(IRModel):
    """On/off schedule for a tile's behaviours, keyed off the turn counter."""

    enabled: bool = True
    pattern: CadencePattern = CadencePattern.ALTERNATING
    on_turns: int = Field(default=1, ge=1)
    off_turns: int = Field(default=1, ge=1)
    custom_pattern: list[bool] = Field(default_factory=list)
    start_state: Literal["on", "off"] = "on"


# ---------------------------------------------------------------------------
# Behaviours
# ---------------------------------------------------------------------------

class DamageBehavior(IRModel):
    type: Literal["damage"] = "damage"
    damage_amount: int = Field(default=1, ge=0)
    damage_once: bool = False


class TeleportBehavior(IRModel):
    type: Literal["teleport"] = "teleport"
    teleport_group_id: str | None = None
    """Fallback group when the tile itself names none."""


class IceBehavior(IRModel):
    type: Literal["ice"] = "ice"


class DirectionChangeBehavior(IRModel):
    type: Literal["direction_change"] = "direction_change"
    new_facing: Direction


class PressurePlateEffectType(str, Enum):
    TOGGLE_WALL = "toggle_wall"
    SPAWN_ENEMY = "spawn_enemy"
    DESPAWN_ENEMY = "despawn_enemy"
    TRIGGER_TELEPORT = "trigger_teleport"
    TOGGLE_TRIGGER_GROUP = "toggle_trigger_group"


class PressurePlateEffect(IRModel):
    type: PressurePlateEffectType
    target_x: int | None = None
    target_y: int | None = None
    target_trigger_group_id: str | None = None
    stay_pressed: bool = False
    """Revert the effect once the plate is vacated."""

    @model_validator(mode="after")
    def _has_target(self) -> PressurePlateEffect:
        if self.type is PressurePlateEffectType.TOGGLE_TRIGGER_GROUP:
            if not self.target_trigger_group_id:
                raise ValueError("toggle_trigger_group needs 'target_trigger_group_id'")
        elif self.target_x is None or self.target_y is None:
            raise ValueError(f"{self.type.value} needs 'target_x' and 'target_y'")
        return self


class PressurePlateBehavior(IRModel):
    type: Literal["pressure_plate"] = "pressure_plate"
    effects: list[PressurePlateEffect] = Field(default_factory=list)


TileBehavior = Annotated[
    Union[
        DamageBehavior,
        TeleportBehavior,
        IceBehavior,
        DirectionChangeBehavior,
        PressurePlateBehavior,
    ],
    Field(discriminator="type"),
]


class CustomTileType(IRModel):
    """Author-defined tile kind referenced by ``Tile.custom_tile_type_id``."""

    id: str
    name: str = ""
    base_type: Literal["empty", "wall"] = "empty"
    behaviors: list[TileBehavior] = Field(default_factory=list)
    cadence: CadenceConfig | None = None
    prevent_placement: bool = False
    can_be_triggered: bool = False


class Tile(IRModel):
    x: int
    y: int
    type: TileType = TileType.EMPTY
    custom_tile_type_id: str | None = None
    teleport_group_id: str | None = None
    trigger_group_id: str | None = None
