"""Behaviour-program steps for characters and active enemies.

A behaviour program is an ordered ``list[CharacterAction]``.  Every step is
one concrete model selected by its ``type`` tag, so kind-specific fields are
checked when the program is loaded instead of when it is executed::

    program = parse_behavior([
        {"type": "move_forward", "onWallCollision": "turn_around"},
        {"type": "attack_forward"},
        {"type": "repeat"},
    ])
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import Discriminator, Field, Tag, TypeAdapter, field_validator, model_validator

from grid_tactics.ir.base import IRModel
from grid_tactics.ir.directions import Direction, RelativeDirection
from grid_tactics.ir.spells import SpellDefinition


class ActionType(str, Enum):
    """Every step kind a behaviour program can contain."""

    # Movement
    MOVE_FORWARD = "move_forward"
    MOVE_BACKWARD = "move_backward"
    MOVE_LEFT = "move_left"
    MOVE_RIGHT = "move_right"
    MOVE_DIAGONAL_NE = "move_diagonal_ne"
    MOVE_DIAGONAL_NW = "move_diagonal_nw"
    MOVE_DIAGONAL_SE = "move_diagonal_se"
    MOVE_DIAGONAL_SW = "move_diagonal_sw"

    # Rotation
    TURN_LEFT = "turn_left"
    TURN_RIGHT = "turn_right"
    TURN_AROUND = "turn_around"

    # Combat
    ATTACK_FORWARD = "attack_forward"
    ATTACK_RANGE = "attack_range"
    ATTACK_AOE = "attack_aoe"
    SPELL = "spell"

    # Conditional
    IF_WALL = "if_wall"
    IF_ENEMY = "if_enemy"

    # Special
    WAIT = "wait"
    TELEPORT = "teleport"
    REPEAT = "repeat"


MOVE_TYPES = frozenset({
    ActionType.MOVE_FORWARD,
    ActionType.MOVE_BACKWARD,
    ActionType.MOVE_LEFT,
    ActionType.MOVE_RIGHT,
    ActionType.MOVE_DIAGONAL_NE,
    ActionType.MOVE_DIAGONAL_NW,
    ActionType.MOVE_DIAGONAL_SE,
    ActionType.MOVE_DIAGONAL_SW,
})
TURN_TYPES = frozenset({ActionType.TURN_LEFT, ActionType.TURN_RIGHT, ActionType.TURN_AROUND})
ATTACK_TYPES = frozenset({ActionType.ATTACK_FORWARD, ActionType.ATTACK_RANGE, ActionType.ATTACK_AOE})
CONDITIONAL_TYPES = frozenset({ActionType.IF_WALL, ActionType.IF_ENEMY})


class WallCollisionPolicy(str, Enum):
    """What a mover does when a step is blocked by something wall-like."""

    STOP = "stop"
    TURN_LEFT = "turn_left"
    TURN_RIGHT = "turn_right"
    TURN_AROUND = "turn_around"
    CONTINUE = "continue"


class ExecutionMode(str, Enum):
    """How a step is scheduled relative to its neighbours.

    ``sequential`` steps consume the entity's turn.  ``parallel`` steps run
    independently on their own trigger.  ``parallel_with_previous`` steps run
    in the same turn as the sequential step right before them.
    """

    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"
    PARALLEL_WITH_PREVIOUS = "parallel_with_previous"


class TriggerMode(str, Enum):
    INTERVAL = "interval"
    ON_EVENT = "on_event"


class TriggerEvent(str, Enum):
    ENEMY_ADJACENT = "enemy_adjacent"
    ENEMY_IN_RANGE = "enemy_in_range"
    CONTACT_WITH_ENEMY = "contact_with_enemy"
    CHARACTER_ADJACENT = "character_adjacent"
    CHARACTER_IN_RANGE = "character_in_range"
    CONTACT_WITH_CHARACTER = "contact_with_character"
    WALL_AHEAD = "wall_ahead"
    HEALTH_BELOW_50 = "health_below_50"


class AutoTargetMode(str, Enum):
    OMNIDIRECTIONAL = "omnidirectional"
    CARDINAL = "cardinal"
    DIAGONAL = "diagonal"


DEFAULT_INTERVAL_MS = 600


class TriggerConfig(IRModel):
    """Gate for a parallel step: fire on a fixed interval or on an event."""

    mode: TriggerMode = TriggerMode.INTERVAL
    interval_ms: int = Field(default=DEFAULT_INTERVAL_MS, gt=0)
    event: TriggerEvent | None = None
    event_range: int = Field(default=3, ge=1)
    """Radius used by the ``*_in_range`` events."""

    @model_validator(mode="after")
    def _event_required(self) -> TriggerConfig:
        if self.mode is TriggerMode.ON_EVENT and self.event is None:
            raise ValueError("on_event triggers need an 'event'")
        return self


# ---------------------------------------------------------------------------
# Step models
# ---------------------------------------------------------------------------

class _ActionBase(IRModel):
    execution_mode: ExecutionMode = ExecutionMode.SEQUENTIAL
    trigger: TriggerConfig | None = None

    @field_validator("type", mode="before", check_fields=False)
    @classmethod
    def _coerce_type(cls, value: Any) -> Any:
        # Authored JSON may spell tags as enum keys ("ATTACK_FORWARD").
        type_value = _normalise_type(value)
        if type_value is None:
            return value
        try:
            return ActionType(type_value)
        except ValueError:
            return value


class MoveAction(_ActionBase):
    type: Literal[
        ActionType.MOVE_FORWARD,
        ActionType.MOVE_BACKWARD,
        ActionType.MOVE_LEFT,
        ActionType.MOVE_RIGHT,
        ActionType.MOVE_DIAGONAL_NE,
        ActionType.MOVE_DIAGONAL_NW,
        ActionType.MOVE_DIAGONAL_SE,
        ActionType.MOVE_DIAGONAL_SW,
    ]
    tiles_per_move: int = Field(default=1, ge=1)
    on_wall_collision: WallCollisionPolicy = WallCollisionPolicy.STOP
    turn_degrees: Literal[45, 90, 135] = 90
    """Rotation used by the ``turn_left`` / ``turn_right`` collision policies."""


class TurnAction(_ActionBase):
    type: Literal[ActionType.TURN_LEFT, ActionType.TURN_RIGHT, ActionType.TURN_AROUND]
    turn_degrees: Literal[45, 90, 135] = 90


class AttackAction(_ActionBase):
    type: Literal[ActionType.ATTACK_FORWARD, ActionType.ATTACK_RANGE, ActionType.ATTACK_AOE]
    range: int = Field(default=1, ge=1)
    radius: int = Field(default=1, ge=1)
    damage: int | None = None
    """Overrides the attacker's own attack damage when set."""


class SpellAction(_ActionBase):
    type: Literal[ActionType.SPELL]
    spell_id: str | None = None
    spell: SpellDefinition | None = None
    """Inline definition; wins over ``spell_id``."""

    auto_target_nearest_enemy: bool = False
    auto_target_nearest_character: bool = False
    max_targets: int = Field(default=1, ge=1)
    auto_target_mode: AutoTargetMode = AutoTargetMode.OMNIDIRECTIONAL
    direction_override: list[Direction] | None = None
    relative_direction_override: list[RelativeDirection] | None = None
    use_relative_override: bool = False

    @model_validator(mode="after")
    def _check_spell(self) -> SpellAction:
        if self.spell_id is None and self.spell is None:
            raise ValueError("spell actions need a 'spell_id' or an inline 'spell'")
        if self.auto_target_nearest_enemy and self.auto_target_nearest_character:
            raise ValueError(
                "auto_target_nearest_enemy and auto_target_nearest_character "
                "are mutually exclusive"
            )
        return self


class ConditionalAction(_ActionBase):
    type: Literal[ActionType.IF_WALL, ActionType.IF_ENEMY]
    then: list[CharacterAction] = Field(min_length=1)
    range: int = Field(default=1, ge=1)
    """How far ahead ``if_enemy`` looks."""


class WaitAction(_ActionBase):
    type: Literal[ActionType.WAIT]


class TeleportAction(_ActionBase):
    type: Literal[ActionType.TELEPORT]
    target_x: int | None = None
    target_y: int | None = None

    @model_validator(mode="after")
    def _both_coords(self) -> TeleportAction:
        if (self.target_x is None) != (self.target_y is None):
            raise ValueError("teleport target needs both 'target_x' and 'target_y'")
        return self


class RepeatAction(_ActionBase):
    type: Literal[ActionType.REPEAT]


# ---------------------------------------------------------------------------
# Discriminated union
# ---------------------------------------------------------------------------

def _normalise_type(raw: Any) -> str | None:
    if isinstance(raw, ActionType):
        return raw.value
    if isinstance(raw, str):
        return raw.lower()
    return None


def _action_tag(value: Any) -> str | None:
    if isinstance(value, dict):
        raw = value.get("type")
    else:
        raw = getattr(value, "type", None)
    type_value = _normalise_type(raw)
    if type_value is None:
        return None
    try:
        action_type = ActionType(type_value)
    except ValueError:
        return None
    if action_type in MOVE_TYPES:
        return "move"
    if action_type in TURN_TYPES:
        return "turn"
    if action_type in ATTACK_TYPES:
        return "attack"
    if action_type in CONDITIONAL_TYPES:
        return "conditional"
    return action_type.value


CharacterAction = Annotated[
    Union[
        Annotated[MoveAction, Tag("move")],
        Annotated[TurnAction, Tag("turn")],
        Annotated[AttackAction, Tag("attack")],
        Annotated[SpellAction, Tag("spell")],
        Annotated[ConditionalAction, Tag("conditional")],
        Annotated[WaitAction, Tag("wait")],
        Annotated[TeleportAction, Tag("teleport")],
        Annotated[RepeatAction, Tag("repeat")],
    ],
    Discriminator(_action_tag),
]

ConditionalAction.model_rebuild()

_BEHAVIOR_ADAPTER: TypeAdapter[list[CharacterAction]] = TypeAdapter(list[CharacterAction])
_ACTION_ADAPTER: TypeAdapter[CharacterAction] = TypeAdapter(CharacterAction)


def parse_action(raw: dict[str, Any]) -> CharacterAction:
    """Validate a single raw step (snake_case or camelCase keys)."""
    return _ACTION_ADAPTER.validate_python(raw)


def parse_behavior(raw: list[dict[str, Any]]) -> list[CharacterAction]:
    """Validate a whole behaviour program."""
    return _BEHAVIOR_ADAPTER.validate_python(raw)
