"""Shared fixtures and builders for grid-tactics tests.

Boards are drawn as lists of strings, one per row::

    "..#"    '.' empty, '#' wall, 'G' goal, ' ' hole

Extra glyphs (custom tile types, teleporters, ...) are supplied through
``legend``.
"""

from __future__ import annotations

from typing import Any, Iterable

import pytest

from grid_tactics.ir.actions import parse_behavior
from grid_tactics.ir.directions import Direction
from grid_tactics.ir.entities import CharacterDefinition, EnemyBehavior, EnemyDefinition
from grid_tactics.ir.puzzle import (
    CollectiblePlacement,
    EnemyPlacement,
    ObjectPlacement,
    Puzzle,
    WinCondition,
)
from grid_tactics.ir.tiles import Tile
from grid_tactics.sim.content.registry import ContentRegistry
from grid_tactics.sim.core.game_state import GameState, GameStatus
from grid_tactics.sim.placement import make_placed_character
from grid_tactics.sim.runner import initialize_game_state

BASE_LEGEND: dict[str, dict[str, Any]] = {
    ".": {},
    "#": {"type": "wall"},
    "G": {"type": "goal"},
}


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def make_puzzle(
    rows: list[str],
    *,
    legend: dict[str, dict[str, Any]] | None = None,
    enemies: Iterable[tuple[str, int, int] | EnemyPlacement] = (),
    collectibles: Iterable[tuple[int, int] | CollectiblePlacement] = (),
    objects: Iterable[tuple[str, int, int]] = (),
    win: Iterable[str | WinCondition] = ("defeat_all_enemies",),
    characters: Iterable[str] = ("hero",),
    max_characters: int = 1,
    **fields: Any,
) -> Puzzle:
    glyphs = {**BASE_LEGEND, **(legend or {})}
    tiles: list[list[Tile | None]] = []
    for y, row in enumerate(rows):
        line: list[Tile | None] = []
        for x, glyph in enumerate(row):
            line.append(None if glyph == " " else Tile(x=x, y=y, **glyphs[glyph]))
        tiles.append(line)

    return Puzzle(
        id=fields.pop("id", "test-puzzle"),
        name=fields.pop("name", "Test Puzzle"),
        width=len(rows[0]),
        height=len(rows),
        tiles=tiles,
        enemies=[
            e if isinstance(e, EnemyPlacement) else EnemyPlacement(enemy_id=e[0], x=e[1], y=e[2])
            for e in enemies
        ],
        collectibles=[
            c if isinstance(c, CollectiblePlacement) else CollectiblePlacement(x=c[0], y=c[1])
            for c in collectibles
        ],
        placed_objects=[ObjectPlacement(object_id=o, x=x, y=y) for o, x, y in objects],
        win_conditions=[WinCondition(type=w) if isinstance(w, str) else w for w in win],
        available_characters=list(characters),
        max_characters=max_characters,
        **fields,
    )


def add_character(
    registry: ContentRegistry,
    character_id: str,
    behavior: list[dict[str, Any]] | None = None,
    **fields: Any,
) -> CharacterDefinition:
    fields.setdefault("default_facing", Direction.EAST)
    defn = CharacterDefinition(
        id=character_id,
        name=character_id.title(),
        behavior=parse_behavior(behavior or []),
        **fields,
    )
    registry.register_character(defn)
    return defn


def add_enemy(
    registry: ContentRegistry,
    enemy_id: str,
    pattern: list[dict[str, Any]] | None = None,
    **fields: Any,
) -> EnemyDefinition:
    if pattern is not None:
        fields["behavior"] = EnemyBehavior(type="active", pattern=parse_behavior(pattern))
    defn = EnemyDefinition(id=enemy_id, name=enemy_id.title(), **fields)
    registry.register_enemy(defn)
    return defn


def start(
    puzzle: Puzzle,
    registry: ContentRegistry,
    placements: Iterable[tuple[Any, ...]] = (),
    *,
    headless: bool = True,
) -> GameState:
    """Running state with characters placed as ``(id, x, y[, facing])``."""
    state = initialize_game_state(puzzle, registry)
    for i, placement in enumerate(placements):
        character_id, x, y, *rest = placement
        state.characters.append(
            make_placed_character(registry, i, character_id, x, y, rest[0] if rest else None)
        )
    state.game_status = GameStatus.RUNNING
    state.headless_mode = headless
    return state


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def registry() -> ContentRegistry:
    """Registry with a small, stable cast of test definitions.

    - ``hero``: 3 hp, 1 attack, walks east forever.
    - ``striker``: 3 hp, attacks the tile ahead every turn.
    - ``dummy``: 1 hp static enemy that never hits back.
    - ``brute``: 50 hp static enemy retaliating for 2.
    """
    reg = ContentRegistry()
    add_character(reg, "hero", [{"type": "move_forward"}, {"type": "repeat"}], health=3)
    add_character(reg, "striker", [{"type": "attack_forward"}, {"type": "repeat"}], health=3)
    add_enemy(reg, "dummy", health=1, attack_damage=0)
    add_enemy(reg, "brute", health=50, attack_damage=2)
    return reg


@pytest.fixture()
def official_registry() -> ContentRegistry:
    reg = ContentRegistry()
    reg.load_official_content()
    return reg
