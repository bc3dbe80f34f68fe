"""Mutable state of one puzzle run.

A ``GameState`` owns a private copy of its puzzle plus every runtime record
(placed characters, enemies, collectibles, projectiles, lingering area
effects, tile bookkeeping).  The turn executor mutates it in place; solver
candidates each get their own instance.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterator

from pydantic import BaseModel, Field

from grid_tactics.ir.directions import Direction
from grid_tactics.ir.puzzle import Puzzle
from grid_tactics.ir.spells import SpellDefinition
from grid_tactics.sim.core.entities import (
    PlacedCharacter,
    PlacedCollectible,
    PlacedEnemy,
    PlacedEntity,
)


class GameStatus(str, Enum):
    SETUP = "setup"
    RUNNING = "running"
    VICTORY = "victory"
    DEFEAT = "defeat"


def tile_key(x: int, y: int) -> str:
    return f"{x},{y}"


# ---------------------------------------------------------------------------
# Projectiles and lingering areas
# ---------------------------------------------------------------------------

class Projectile(BaseModel):
    """A linear spell in flight (live play only; headless runs resolve instantly)."""

    id: str
    spell: SpellDefinition
    source_uid: str
    from_character: bool
    start_x: int
    start_y: int
    direction: Direction
    max_distance: int
    tiles_travelled: int = 0
    start_ms: float | None = None
    """Set on the first ``update_projectiles`` tick."""

    hit_uids: list[str] = Field(default_factory=list)
    active: bool = True

    @property
    def position(self) -> tuple[int, int]:
        dx, dy = self.direction.offset
        return (
            self.start_x + dx * self.tiles_travelled,
            self.start_y + dy * self.tiles_travelled,
        )


class PersistentAreaEffect(BaseModel):
    id: str
    x: int
    y: int
    radius: int
    damage_per_turn: int
    turns_remaining: int
    source_uid: str
    from_character: bool


# ---------------------------------------------------------------------------
# GameState
# ---------------------------------------------------------------------------

class GameState(BaseModel):
    """Root of one simulation run.

    ``repository`` is the definition lookup injected at initialisation; it
    is shared, read-only and excluded from serialisation so that
    ``model_dump_json`` snapshots contain run state only.
    """

    puzzle: Puzzle
    characters: list[PlacedCharacter] = Field(default_factory=list)
    enemies: list[PlacedEnemy] = Field(default_factory=list)
    collectibles: list[PlacedCollectible] = Field(default_factory=list)
    current_turn: int = 0
    game_status: GameStatus = GameStatus.SETUP
    headless_mode: bool = False
    score: int = 0

    # -- tile bookkeeping (sorted lists keep snapshots deterministic) --------
    wall_toggles: list[str] = Field(default_factory=list)
    """Tile keys whose wall-ness was flipped by a pressure plate."""

    toggled_trigger_groups: list[str] = Field(default_factory=list)
    pressed_plates: list[str] = Field(default_factory=list)
    damaged_once: dict[str, list[str]] = Field(default_factory=dict)
    """Tile key -> uids already hurt by a ``damage_once`` tile."""

    # -- spell effects -------------------------------------------------------
    projectiles: list[Projectile] = Field(default_factory=list)
    area_effects: list[PersistentAreaEffect] = Field(default_factory=list)
    effect_counter: int = 0

    # -- parallel action bookkeeping -----------------------------------------
    trigger_last_fired_ms: dict[str, float] = Field(default_factory=dict)

    repository: Any = Field(default=None, exclude=True)

    # -- queries -------------------------------------------------------------

    @property
    def is_over(self) -> bool:
        return self.game_status in (GameStatus.VICTORY, GameStatus.DEFEAT)

    def all_entities(self) -> Iterator[PlacedEntity]:
        """Characters then enemies, in placement order."""
        yield from self.characters
        yield from self.enemies

    def living_characters(self) -> list[PlacedCharacter]:
        return [c for c in self.characters if not c.dead]

    def present_enemies(self) -> list[PlacedEnemy]:
        return [e for e in self.enemies if e.is_present]

    def opponents_of(self, entity: PlacedEntity) -> list[PlacedEntity]:
        """Living entities on the other side of *entity*."""
        if entity.is_character:
            return list(self.present_enemies())
        return list(self.living_characters())

    def allies_of(self, entity: PlacedEntity) -> list[PlacedEntity]:
        if entity.is_character:
            return [c for c in self.living_characters() if c is not entity]
        return [e for e in self.present_enemies() if e is not entity]

    def living_entity_at(
        self, x: int, y: int, exclude: PlacedEntity | None = None,
    ) -> PlacedEntity | None:
        for entity in self.all_entities():
            if entity is exclude or not entity.is_present:
                continue
            if entity.x == x and entity.y == y:
                return entity
        return None

    def corpse_at(self, x: int, y: int) -> PlacedEntity | None:
        for entity in self.all_entities():
            if entity.dead and entity.x == x and entity.y == y:
                if isinstance(entity, PlacedEnemy) and entity.dormant:
                    continue
                return entity
        return None

    def find_entity(self, uid: str) -> PlacedEntity | None:
        for entity in self.all_entities():
            if entity.uid == uid:
                return entity
        return None

    def next_effect_id(self, prefix: str) -> str:
        self.effect_counter += 1
        return f"{prefix}{self.effect_counter}"

    # -- sorted-set helpers ---------------------------------------------------

    @staticmethod
    def toggle_member(members: list[str], key: str) -> bool:
        """Flip *key* in the sorted list *members*; return whether it is now present."""
        if key in members:
            members.remove(key)
            return False
        members.append(key)
        members.sort()
        return True
