"""Runtime entity records for a single simulation run.

Definitions (``CharacterDefinition`` / ``EnemyDefinition``) are shared and
read-only; the records here are the mutable per-run counterparts owned by
one ``GameState``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from grid_tactics.ir.directions import Direction


class PlacedEntity(BaseModel):
    """Fields shared by characters and enemies on the board."""

    uid: str
    """Unique within one run, stable across clones (``c0:knight``, ``e1:goblin``)."""

    x: int
    y: int
    facing: Direction = Direction.SOUTH
    current_health: int
    max_health: int = Field(ge=1)
    action_index: int = 0
    active: bool = True
    dead: bool = False

    @property
    def definition_id(self) -> str:
        raise NotImplementedError

    @property
    def is_character(self) -> bool:
        return False

    @property
    def is_present(self) -> bool:
        """Alive and on the board."""
        return not self.dead

    def take_damage(self, amount: int) -> int:
        """Subtract *amount* health, marking the entity dead at 0 or below.

        Returns the health actually lost.
        """
        if amount <= 0 or self.dead:
            return 0
        before = self.current_health
        self.current_health -= amount
        if self.current_health <= 0:
            self.dead = True
        return before - max(self.current_health, 0)

    def heal(self, amount: int) -> int:
        """Restore up to *amount* health, capped at ``max_health``."""
        if amount <= 0 or self.dead:
            return 0
        before = self.current_health
        self.current_health = min(self.current_health + amount, self.max_health)
        return self.current_health - before


class PlacedCharacter(PlacedEntity):
    character_id: str

    @property
    def definition_id(self) -> str:
        return self.character_id

    @property
    def is_character(self) -> bool:
        return True


class PlacedEnemy(PlacedEntity):
    enemy_id: str
    dormant: bool = False
    """Off the board until a pressure plate spawns it."""

    @property
    def definition_id(self) -> str:
        return self.enemy_id

    @property
    def is_present(self) -> bool:
        return not self.dead and not self.dormant

    def revive(self) -> None:
        """Bring a dormant or dead enemy onto the board at full health."""
        self.dormant = False
        self.dead = False
        self.current_health = self.max_health
        self.action_index = 0
        self.active = True


class PlacedCollectible(BaseModel):
    x: int
    y: int
    collectible_id: str | None = None
    type: str = "coin"
    score_value: int = 0
    collected: bool = False
