"""The authored puzzle and the records placed on it."""

from __future__ import annotations

from enum import Enum

from pydantic import Field, model_validator

from grid_tactics.ir.base import IRModel
from grid_tactics.ir.directions import Direction
from grid_tactics.ir.tiles import Tile

DEFAULT_MAX_TURNS = 1000


class EnemyPlacement(IRModel):
    enemy_id: str
    x: int
    y: int
    facing: Direction | None = None
    dormant: bool = False
    """Waits off-board until a pressure plate spawns it."""


class CollectiblePlacement(IRModel):
    x: int
    y: int
    collectible_id: str | None = None
    type: str = "coin"
    score_value: int | None = None
    """Overrides the definition's value when set."""


class CollectibleDefinition(IRModel):
    id: str
    name: str = ""
    score_value: int = 10
    prevent_placement: bool = False


class CollisionType(str, Enum):
    NONE = "none"
    WALL = "wall"
    STOP_MOVEMENT = "stop_movement"


class ObjectDefinition(IRModel):
    id: str
    name: str = ""
    collision_type: CollisionType = CollisionType.NONE


class ObjectPlacement(IRModel):
    object_id: str
    x: int
    y: int


class WinConditionType(str, Enum):
    DEFEAT_ALL_ENEMIES = "defeat_all_enemies"
    COLLECT_ALL = "collect_all"
    REACH_GOAL = "reach_goal"
    SURVIVE_TURNS = "survive_turns"


class WinConditionParams(IRModel):
    turns: int | None = Field(default=None, ge=1)


class WinCondition(IRModel):
    type: WinConditionType
    params: WinConditionParams = Field(default_factory=WinConditionParams)

    @model_validator(mode="after")
    def _survive_needs_turns(self) -> WinCondition:
        if self.type is WinConditionType.SURVIVE_TURNS and self.params.turns is None:
            raise ValueError("survive_turns needs params.turns")
        return self


class SideQuestType(str, Enum):
    COLLECT_ALL_ITEMS = "collect_all_items"
    NO_DAMAGE_TAKEN = "no_damage_taken"
    USE_SPECIFIC_CHARACTER = "use_specific_character"
    AVOID_CHARACTER = "avoid_character"
    SPEED_RUN = "speed_run"
    MINIMALIST = "minimalist"
    NO_DEATHS = "no_deaths"
    CUSTOM = "custom"


class SideQuestParams(IRModel):
    character_id: str | None = None
    turns: int | None = None
    character_count: int | None = None


class SideQuest(IRModel):
    id: str
    title: str = ""
    description: str = ""
    type: SideQuestType
    params: SideQuestParams = Field(default_factory=SideQuestParams)
    bonus_points: int = 0


class Puzzle(IRModel):
    """A complete authored level.

    ``tiles`` is indexed ``tiles[y][x]``; ``None`` marks a hole in a
    non-rectangular map.
    """

    id: str
    name: str = ""
    width: int = Field(ge=1)
    height: int = Field(ge=1)
    tiles: list[list[Tile | None]]
    enemies: list[EnemyPlacement] = Field(default_factory=list)
    collectibles: list[CollectiblePlacement] = Field(default_factory=list)
    placed_objects: list[ObjectPlacement] = Field(default_factory=list)
    win_conditions: list[WinCondition] = Field(default_factory=list)
    available_characters: list[str] = Field(default_factory=list)
    max_characters: int = Field(default=1, ge=1)
    max_turns: int | None = Field(default=None, ge=1)
    par_characters: int | None = None
    par_turns: int | None = None
    side_quests: list[SideQuest] = Field(default_factory=list)
    lives: int | None = None

    @model_validator(mode="after")
    def _validate_grid(self) -> Puzzle:
        errors: list[str] = []
        if len(self.tiles) != self.height:
            errors.append(f"expected {self.height} tile rows, got {len(self.tiles)}")
        for y, row in enumerate(self.tiles):
            if len(row) != self.width:
                errors.append(f"row {y}: expected {self.width} tiles, got {len(row)}")
                continue
            for x, tile in enumerate(row):
                if tile is not None and (tile.x, tile.y) != (x, y):
                    errors.append(f"tile at [{y}][{x}] claims position ({tile.x}, {tile.y})")
        for placed in [*self.enemies, *self.collectibles, *self.placed_objects]:
            if not (0 <= placed.x < self.width and 0 <= placed.y < self.height):
                errors.append(f"placement at ({placed.x}, {placed.y}) is off the grid")
        if errors:
            raise ValueError(
                "Puzzle validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )
        return self

    @property
    def effective_max_turns(self) -> int:
        return self.max_turns or DEFAULT_MAX_TURNS

    def tile_at(self, x: int, y: int) -> Tile | None:
        """Return the tile at ``(x, y)``; ``None`` for holes and off-grid points."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            return None
        return self.tiles[y][x]

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def iter_tiles(self):
        """Yield every existing tile in row-major (y, then x) order."""
        for row in self.tiles:
            for tile in row:
                if tile is not None:
                    yield tile
