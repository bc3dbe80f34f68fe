"""Authored content schema for grid-tactics puzzles.

Puzzles, character and enemy definitions, custom tile types, spells and
collectibles are Pydantic models that load from the camelCase JSON the
authoring tools export as well as from snake_case Python keyword arguments.
"""

from .actions import (
    ActionType,
    AttackAction,
    AutoTargetMode,
    CharacterAction,
    ConditionalAction,
    ExecutionMode,
    MoveAction,
    RepeatAction,
    SpellAction,
    TeleportAction,
    TriggerConfig,
    TriggerEvent,
    TriggerMode,
    TurnAction,
    WaitAction,
    WallCollisionPolicy,
    parse_action,
    parse_behavior,
)
from .directions import Direction, RelativeDirection
from .entities import CharacterDefinition, EnemyBehavior, EnemyDefinition
from .puzzle import (
    DEFAULT_MAX_TURNS,
    CollectibleDefinition,
    CollectiblePlacement,
    CollisionType,
    EnemyPlacement,
    ObjectDefinition,
    ObjectPlacement,
    Puzzle,
    SideQuest,
    SideQuestParams,
    SideQuestType,
    WinCondition,
    WinConditionParams,
    WinConditionType,
)
from .spells import DirectionMode, SpellDefinition, SpellTemplate
from .tiles import (
    CadenceConfig,
    CadencePattern,
    CustomTileType,
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

__all__ = [
    # actions
    "ActionType",
    "AttackAction",
    "AutoTargetMode",
    "CharacterAction",
    "ConditionalAction",
    "ExecutionMode",
    "MoveAction",
    "RepeatAction",
    "SpellAction",
    "TeleportAction",
    "TriggerConfig",
    "TriggerEvent",
    "TriggerMode",
    "TurnAction",
    "WaitAction",
    "WallCollisionPolicy",
    "parse_action",
    "parse_behavior",
    # directions
    "Direction",
    "RelativeDirection",
    # entities
    "CharacterDefinition",
    "EnemyBehavior",
    "EnemyDefinition",
    # puzzle
    "DEFAULT_MAX_TURNS",
    "CollectibleDefinition",
    "CollectiblePlacement",
    "CollisionType",
    "EnemyPlacement",
    "ObjectDefinition",
    "ObjectPlacement",
    "Puzzle",
    "SideQuest",
    "SideQuestParams",
    "SideQuestType",
    "WinCondition",
    "WinConditionParams",
    "WinConditionType",
    # spells
    "DirectionMode",
    "SpellDefinition",
    "SpellTemplate",
    # tiles
    "CadenceConfig",
    "CadencePattern",
    "CustomTileType",
    "DamageBehavior",
    "DirectionChangeBehavior",
    "IceBehavior",
    "PressurePlateBehavior",
    "PressurePlateEffect",
    "PressurePlateEffectType",
    "TeleportBehavior",
    "Tile",
    "TileBehavior",
    "TileType",
]
