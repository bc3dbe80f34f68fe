"""Definition registry -- loads and serves character, enemy, spell, tile-type,
collectible and object definitions for the grid-tactics simulator.

Official content is loaded from JSON files in ``data/official/``.  Custom
definitions (authored in the editor and exported as JSON) are layered on top
and win over official ones with the same ``id``.

The simulator and solver only ever see the read-only
:class:`DefinitionRepository` interface, so any object with the same lookup
methods can stand in for the registry.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol, TypeVar

from pydantic import BaseModel

from grid_tactics.ir.entities import CharacterDefinition, EnemyDefinition
from grid_tactics.ir.puzzle import CollectibleDefinition, ObjectDefinition, Puzzle
from grid_tactics.ir.spells import SpellDefinition
from grid_tactics.ir.tiles import CustomTileType

logger = logging.getLogger(__name__)

# Default paths relative to the project root.
_PROJECT_ROOT = Path(__file__).resolve().parents[4]  # src/grid_tactics/sim/content -> root
_OFFICIAL_DIR = _PROJECT_ROOT / "data" / "official"
_PUZZLES_DIR = _PROJECT_ROOT / "data" / "puzzles"

_ModelT = TypeVar("_ModelT", bound=BaseModel)


class DefinitionRepository(Protocol):
    """Read-only definition lookups used by the simulator and the solver.

    Every method returns ``None`` for unknown ids and must be free of side
    effects; they are called once per entity per turn per candidate.
    """

    def get_character(self, character_id: str) -> CharacterDefinition | None: ...

    def get_enemy(self, enemy_id: str) -> EnemyDefinition | None: ...

    def get_tile_type(self, tile_type_id: str) -> CustomTileType | None: ...

    def get_collectible(self, collectible_id: str) -> CollectibleDefinition | None: ...

    def get_spell(self, spell_id: str) -> SpellDefinition | None: ...

    def get_object(self, object_id: str) -> ObjectDefinition | None: ...


def _read_json_list(path: Path) -> list[dict[str, Any]]:
    with open(path) as f:
        raw: list[dict[str, Any]] = json.load(f)
    # Skip organizational section markers
    return [entry for entry in raw if "_section" not in entry]


def load_puzzle(path: str | Path) -> Puzzle:
    """Load a single puzzle from a JSON file.

    A bare file name is looked up in ``data/puzzles/`` when it does not exist
    relative to the working directory.
    """
    path = Path(path)
    if not path.exists() and not path.is_absolute():
        candidate = _PUZZLES_DIR / path
        if candidate.exists():
            path = candidate
    with open(path) as f:
        return Puzzle.model_validate(json.load(f))


class ContentRegistry:
    """Loads and serves every kind of definition the simulator looks up.

    Usage::

        registry = ContentRegistry()
        registry.load_official_content()
        registry.load_custom_content("my_definitions.json")

        knight = registry.get_character("knight")
        lava = registry.get_tile_type("lava")
    """

    def __init__(self) -> None:
        self.characters: dict[str, CharacterDefinition] = {}
        self.enemies: dict[str, EnemyDefinition] = {}
        self.tile_types: dict[str, CustomTileType] = {}
        self.collectibles: dict[str, CollectibleDefinition] = {}
        self.spells: dict[str, SpellDefinition] = {}
        self.objects: dict[str, ObjectDefinition] = {}

    # ------------------------------------------------------------------
    # Official content loading
    # ------------------------------------------------------------------

    def load_official_content(self, directory: str | Path | None = None) -> None:
        """Load every official definition file that exists in *directory*.

        Parameters
        ----------
        directory:
            Folder holding ``characters.json``, ``enemies.json``,
            ``spells.json``, ``tile_types.json``, ``collectibles.json`` and
            ``objects.json``.  Defaults to ``data/official/`` relative to the
            project root.  Missing files are skipped.
        """
        base = Path(directory) if directory is not None else _OFFICIAL_DIR
        for filename, loader in (
            ("characters.json", self.load_characters),
            ("enemies.json", self.load_enemies),
            ("spells.json", self.load_spells),
            ("tile_types.json", self.load_tile_types),
            ("collectibles.json", self.load_collectibles),
            ("objects.json", self.load_objects),
        ):
            path = base / filename
            if path.exists():
                loader(path)
            else:
                logger.debug("No %s in %s", filename, base)

    def load_characters(self, path: str | Path) -> None:
        self._load_into(self.characters, CharacterDefinition, path)

    def load_enemies(self, path: str | Path) -> None:
        self._load_into(self.enemies, EnemyDefinition, path)

    def load_spells(self, path: str | Path) -> None:
        self._load_into(self.spells, SpellDefinition, path)

    def load_tile_types(self, path: str | Path) -> None:
        self._load_into(self.tile_types, CustomTileType, path)

    def load_collectibles(self, path: str | Path) -> None:
        self._load_into(self.collectibles, CollectibleDefinition, path)

    def load_objects(self, path: str | Path) -> None:
        self._load_into(self.objects, ObjectDefinition, path)

    @staticmethod
    def _load_into(
        target: dict[str, _ModelT], model: type[_ModelT], path: str | Path,
    ) -> None:
        for raw in _read_json_list(Path(path)):
            defn = model.model_validate(raw)
            target[defn.id] = defn  # type: ignore[attr-defined]

    # ------------------------------------------------------------------
    # Custom content loading
    # ------------------------------------------------------------------

    def load_custom_content(self, source: str | Path | dict[str, Any]) -> None:
        """Register custom definitions from an export bundle.

        The bundle is a JSON object with optional ``characters``,
        ``enemies``, ``spells``, ``tileTypes``, ``collectibles`` and
        ``objects`` lists (snake_case keys are accepted too).  Custom
        definitions override official ones with the same ``id``.
        """
        if isinstance(source, dict):
            bundle = source
        else:
            with open(source) as f:
                bundle = json.load(f)

        sections: list[tuple[tuple[str, ...], dict[str, Any], type[BaseModel]]] = [
            (("characters",), self.characters, CharacterDefinition),
            (("enemies",), self.enemies, EnemyDefinition),
            (("spells",), self.spells, SpellDefinition),
            (("tileTypes", "tile_types"), self.tile_types, CustomTileType),
            (("collectibles",), self.collectibles, CollectibleDefinition),
            (("objects",), self.objects, ObjectDefinition),
        ]
        for keys, target, model in sections:
            for key in keys:
                for raw in bundle.get(key, []):
                    defn = model.model_validate(raw)
                    if defn.id in target:  # type: ignore[attr-defined]
                        logger.debug("Custom definition overrides %s", defn.id)  # type: ignore[attr-defined]
                    target[defn.id] = defn  # type: ignore[attr-defined]

    def register_character(self, defn: CharacterDefinition) -> None:
        self.characters[defn.id] = defn

    def register_enemy(self, defn: EnemyDefinition) -> None:
        self.enemies[defn.id] = defn

    def register_tile_type(self, defn: CustomTileType) -> None:
        self.tile_types[defn.id] = defn

    def register_collectible(self, defn: CollectibleDefinition) -> None:
        self.collectibles[defn.id] = defn

    def register_spell(self, defn: SpellDefinition) -> None:
        self.spells[defn.id] = defn

    def register_object(self, defn: ObjectDefinition) -> None:
        self.objects[defn.id] = defn

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_character(self, character_id: str) -> CharacterDefinition | None:
        """Return the :class:`CharacterDefinition` for *character_id*, or ``None``."""
        return self.characters.get(character_id)

    def get_enemy(self, enemy_id: str) -> EnemyDefinition | None:
        """Return the :class:`EnemyDefinition` for *enemy_id*, or ``None``."""
        return self.enemies.get(enemy_id)

    def get_tile_type(self, tile_type_id: str) -> CustomTileType | None:
        return self.tile_types.get(tile_type_id)

    def get_collectible(self, collectible_id: str) -> CollectibleDefinition | None:
        return self.collectibles.get(collectible_id)

    def get_spell(self, spell_id: str) -> SpellDefinition | None:
        return self.spells.get(spell_id)

    def get_object(self, object_id: str) -> ObjectDefinition | None:
        return self.objects.get(object_id)
