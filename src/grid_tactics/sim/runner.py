"""Turn executor -- the state machine that drives a puzzle run.

``setup`` -> ``running`` -> ``victory`` | ``defeat``.  :func:`execute_turn`
is the only transition out of ``running``; each call plays exactly one
turn, in this fixed order:

1. every active, living character steps its program (placement order),
   then fires its on-event parallel steps;
2. every active, present enemy with an ``active`` behaviour does the same;
3. in headless mode, turn-mapped interval triggers fire;
4. pressure plates are pressed or released according to who stands on them;
5. lingering area effects deal their damage;
6. win and loss conditions are evaluated.

Live play builds a state with :func:`initialize_game_state`, places
characters, calls :func:`start_simulation`, then calls :func:`execute_turn`
every :data:`~grid_tactics.sim.triggers.TURN_DURATION_MS` and
:func:`execute_parallel_actions` / :func:`update_projectiles` from its
animation loop.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from grid_tactics.ir.directions import Direction
from grid_tactics.ir.puzzle import Puzzle, WinCondition, WinConditionType
from grid_tactics.ir.tiles import TileType
from grid_tactics.sim.core.entities import PlacedCharacter, PlacedCollectible, PlacedEnemy
from grid_tactics.sim.core.game_state import GameState, GameStatus
from grid_tactics.sim.interpreter import BehaviorInterpreter, program_for
from grid_tactics.sim.mechanics.projectiles import tick_area_effects, update_projectiles
from grid_tactics.sim.mechanics.tiles import update_standing_plates
from grid_tactics.sim.placement import is_valid_placement_tile, make_placed_character
from grid_tactics.sim.telemetry import RunTelemetry, collect_telemetry
from grid_tactics.sim.triggers import TriggerDispatcher

if TYPE_CHECKING:
    from grid_tactics.sim.content.registry import DefinitionRepository

logger = logging.getLogger(__name__)

__all__ = [
    "SimulationOutcome",
    "TurnExecutor",
    "check_victory",
    "execute_parallel_actions",
    "execute_turn",
    "initialize_game_state",
    "place_character",
    "remove_character",
    "reset_game_state",
    "run_simulation",
    "start_simulation",
    "update_projectiles",
]


class SimulationOutcome(str, Enum):
    VICTORY = "victory"
    DEFEAT = "defeat"
    TIMEOUT = "timeout"


# =====================================================================
# Setup
# =====================================================================

def initialize_game_state(
    puzzle: Puzzle,
    repository: DefinitionRepository | None,
    *,
    copy: bool = True,
) -> GameState:
    """Build a fresh ``setup``-phase state for *puzzle*.

    Enemies start at full health, collectibles uncollected and no
    characters are placed.  The puzzle is deep-copied unless *copy* is
    ``False`` (for callers that already hold a private clone).
    """
    own_puzzle = puzzle.model_copy(deep=True) if copy else puzzle

    enemies: list[PlacedEnemy] = []
    for i, placed in enumerate(own_puzzle.enemies):
        defn = repository.get_enemy(placed.enemy_id) if repository else None
        if defn is None:
            logger.warning("No definition for enemy %s; it will not act", placed.enemy_id)
        health = defn.health if defn else 1
        facing = placed.facing
        if facing is None and defn is not None and defn.behavior is not None:
            facing = defn.behavior.default_facing
        enemies.append(PlacedEnemy(
            uid=f"e{i}:{placed.enemy_id}",
            enemy_id=placed.enemy_id,
            x=placed.x,
            y=placed.y,
            facing=facing or Direction.SOUTH,
            current_health=health,
            max_health=health,
            active=bool(defn and defn.is_active),
            dormant=placed.dormant,
        ))

    collectibles: list[PlacedCollectible] = []
    for placed in own_puzzle.collectibles:
        value = placed.score_value
        if value is None:
            defn = (
                repository.get_collectible(placed.collectible_id)
                if repository and placed.collectible_id else None
            )
            value = defn.score_value if defn else 0
        collectibles.append(PlacedCollectible(
            x=placed.x,
            y=placed.y,
            collectible_id=placed.collectible_id,
            type=placed.type,
            score_value=value,
        ))

    return GameState(
        puzzle=own_puzzle,
        enemies=enemies,
        collectibles=collectibles,
        repository=repository,
    )


def place_character(
    state: GameState,
    character_id: str,
    x: int,
    y: int,
    facing: Direction | None = None,
) -> PlacedCharacter:
    """Place a character during setup.

    Raises
    ------
    ValueError
        Outside setup, for characters not on the roster or already placed,
        when the character limit is reached, or for an invalid tile.
    """
    if state.game_status is not GameStatus.SETUP:
        raise ValueError("Characters can only be placed during setup")
    if character_id not in state.puzzle.available_characters:
        raise ValueError(f"Character {character_id!r} is not available in this puzzle")
    if any(c.character_id == character_id for c in state.characters):
        raise ValueError(f"Character {character_id!r} is already placed")
    if len(state.characters) >= state.puzzle.max_characters:
        raise ValueError(f"At most {state.puzzle.max_characters} characters may be placed")
    if not is_valid_placement_tile(state.puzzle, state.repository, x, y):
        raise ValueError(f"Cannot place a character on ({x}, {y})")
    if any(c.x == x and c.y == y for c in state.characters):
        raise ValueError(f"({x}, {y}) is already occupied")

    character = make_placed_character(
        state.repository, len(state.characters), character_id, x, y, facing,
    )
    state.characters.append(character)
    return character


def remove_character(state: GameState, character_id: str) -> bool:
    """Take a placed character back off the board during setup."""
    if state.game_status is not GameStatus.SETUP:
        raise ValueError("Characters can only be removed during setup")
    remaining = [c for c in state.characters if c.character_id != character_id]
    if len(remaining) == len(state.characters):
        return False
    # Re-number so uids keep matching placement order.
    state.characters = [
        c.model_copy(update={"uid": f"c{i}:{c.character_id}"})
        for i, c in enumerate(remaining)
    ]
    return True


def start_simulation(state: GameState) -> GameState:
    if state.game_status is not GameStatus.SETUP:
        raise ValueError(f"Cannot start a run in status {state.game_status.value}")
    if not state.characters:
        raise ValueError("Place at least one character before starting")
    state.game_status = GameStatus.RUNNING
    return state


def reset_game_state(state: GameState) -> GameState:
    """Fresh setup-phase state for the same puzzle and definitions."""
    return initialize_game_state(state.puzzle, state.repository)


# =====================================================================
# Win / loss
# =====================================================================

def _condition_met(state: GameState, condition: WinCondition) -> bool:
    kind = condition.type
    if kind is WinConditionType.DEFEAT_ALL_ENEMIES:
        return all(not e.is_present for e in state.enemies)
    if kind is WinConditionType.COLLECT_ALL:
        return all(c.collected for c in state.collectibles)
    if kind is WinConditionType.REACH_GOAL:
        for character in state.living_characters():
            tile = state.puzzle.tile_at(character.x, character.y)
            if tile is not None and tile.type is TileType.GOAL:
                return True
        return False
    if kind is WinConditionType.SURVIVE_TURNS:
        if condition.params.turns is None:
            return False
        return bool(state.living_characters()) and state.current_turn >= condition.params.turns
    return False  # pragma: no cover


def check_victory(state: GameState) -> bool:
    """All win conditions hold (an empty list holds vacuously)."""
    return all(_condition_met(state, c) for c in state.puzzle.win_conditions)


def _only_waiting_on_turns(state: GameState) -> bool:
    """Every unmet condition is a ``survive_turns`` the living can still reach."""
    if not state.living_characters():
        return False
    return all(
        c.type is WinConditionType.SURVIVE_TURNS or _condition_met(state, c)
        for c in state.puzzle.win_conditions
    )


def _update_status(state: GameState) -> None:
    if check_victory(state):
        state.game_status = GameStatus.VICTORY
        return
    if state.characters and all(c.dead for c in state.characters):
        state.game_status = GameStatus.DEFEAT
        return
    if state.current_turn >= state.puzzle.effective_max_turns:
        logger.debug("Turn limit %d reached", state.puzzle.effective_max_turns)
        state.game_status = GameStatus.DEFEAT
        return
    if any(c.active and not c.dead for c in state.characters):
        return
    # Idle survivors keep the clock running for survive_turns.
    if not _only_waiting_on_turns(state):
        state.game_status = GameStatus.DEFEAT


# =====================================================================
# TurnExecutor
# =====================================================================

class TurnExecutor:
    """Plays turns against a ``GameState``.

    Parameters
    ----------
    interpreter:
        Interpreter for behaviour steps.  A fresh one is created if omitted.
    """

    def __init__(self, interpreter: BehaviorInterpreter | None = None) -> None:
        self.interpreter = interpreter or BehaviorInterpreter()
        self.triggers = TriggerDispatcher(self.interpreter)

    def execute_turn(self, state: GameState) -> GameState:
        """Play one turn in place; a no-op unless the run is ``running``."""
        if state.game_status is not GameStatus.RUNNING:
            return state

        state.current_turn += 1

        for character in state.characters:
            if not character.active or character.dead:
                continue
            self.interpreter.step_entity(character, state)
            if not character.dead:
                self.triggers.fire_event_triggers(state, character)

        for enemy in state.enemies:
            if not enemy.active or not enemy.is_present:
                continue
            if program_for(state, enemy) is None:
                continue
            self.interpreter.step_entity(enemy, state)
            if enemy.is_present:
                self.triggers.fire_event_triggers(state, enemy)

        if state.headless_mode:
            self.triggers.fire_interval_triggers(state)

        update_standing_plates(state)
        tick_area_effects(state)
        _update_status(state)
        return state

    def execute_parallel_actions(self, state: GameState, now_ms: float) -> None:
        if state.game_status is GameStatus.RUNNING:
            self.triggers.fire_live_interval_triggers(state, now_ms)

    def run(self, state: GameState, max_turns: int) -> tuple[SimulationOutcome, int]:
        """Execute turns until the run ends or *max_turns* turns have passed.

        Returns the outcome and the number of turns executed.
        """
        turns = 0
        while turns < max_turns:
            self.execute_turn(state)
            turns += 1
            if state.game_status is GameStatus.VICTORY:
                return SimulationOutcome.VICTORY, turns
            if state.game_status is GameStatus.DEFEAT:
                return SimulationOutcome.DEFEAT, turns
        return SimulationOutcome.TIMEOUT, turns


_DEFAULT_EXECUTOR = TurnExecutor()


def execute_turn(state: GameState) -> GameState:
    """Play one turn of *state* in place and return it."""
    return _DEFAULT_EXECUTOR.execute_turn(state)


def execute_parallel_actions(state: GameState, now_ms: float) -> None:
    """Fire interval-triggered parallel steps by wall-clock time (live play)."""
    _DEFAULT_EXECUTOR.execute_parallel_actions(state, now_ms)


def run_simulation(
    puzzle: Puzzle,
    repository: DefinitionRepository | None,
    placements: list[tuple[str, int, int]],
    *,
    max_turns: int = 200,
    headless: bool = True,
) -> tuple[GameState, RunTelemetry]:
    """Place characters, run to completion and report.

    *placements* holds ``(character_id, x, y)`` triples; each character uses
    its default facing.  Placement rules are enforced as in live play.
    """
    state = initialize_game_state(puzzle, repository)
    for character_id, x, y in placements:
        place_character(state, character_id, x, y)
    start_simulation(state)
    state.headless_mode = headless
    outcome, turns = _DEFAULT_EXECUTOR.run(state, max_turns)
    return state, collect_telemetry(state, outcome.value, turns)
