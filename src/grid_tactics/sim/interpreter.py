"""Behaviour interpreter -- advances one entity through its behaviour program.

Reads ``CharacterAction`` steps from character and enemy definitions and
dispatches them to the mechanics functions.  Characters and active enemies
share the same interpreter.

Usage::

    from grid_tactics.sim.interpreter import BehaviorInterpreter

    interp = BehaviorInterpreter()
    interp.step_entity(character, state)       # one turn of its program

    # Or run a single step directly:
    interp.execute_action(action, character, state)
"""

from __future__ import annotations

import logging
from typing import Callable, TYPE_CHECKING

from grid_tactics.ir.actions import (
    ActionType,
    AttackAction,
    CharacterAction,
    ConditionalAction,
    ExecutionMode,
    MoveAction,
    SpellAction,
    TeleportAction,
    TurnAction,
)
from grid_tactics.sim.core.entities import PlacedCharacter, PlacedEntity
from grid_tactics.sim.mechanics.board import definition_of, is_blocking_tile, wall_ahead
from grid_tactics.sim.mechanics.combat import attack_damage_of, attack_in_direction, blast_area
from grid_tactics.sim.mechanics.movement import move_entity
from grid_tactics.sim.mechanics.spells import cast_spell
from grid_tactics.sim.mechanics.targeting import first_opponent_in_line
from grid_tactics.sim.mechanics.tiles import enter_tile, teleport_entity

if TYPE_CHECKING:
    from grid_tactics.sim.core.game_state import GameState

logger = logging.getLogger(__name__)

_PARALLEL_MODES = (ExecutionMode.PARALLEL, ExecutionMode.PARALLEL_WITH_PREVIOUS)


def program_for(state: GameState, entity: PlacedEntity) -> list[CharacterAction] | None:
    """The behaviour program driving *entity*.

    ``None`` when the definition is missing or the enemy is static.
    """
    defn = definition_of(state, entity)
    if defn is None:
        return None
    if isinstance(entity, PlacedCharacter):
        return defn.behavior  # type: ignore[union-attr]
    behavior = defn.behavior  # type: ignore[union-attr]
    if behavior is None or behavior.type != "active":
        return None
    return behavior.pattern


class BehaviorInterpreter:
    """Executes behaviour steps against a ``GameState``.

    The interpreter is stateless between calls -- all mutable state lives in
    the ``GameState`` and the entity records threaded through every call.
    """

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def step_entity(self, entity: PlacedEntity, state: GameState) -> None:
        """Run one turn of *entity*'s program and advance its action pointer.

        Parallel steps sitting at the pointer are skipped (they run on their
        own triggers).  A ``repeat`` step loops to the start and immediately
        runs the first step, unless parallel steps were skipped to reach it,
        in which case the loop only rewinds.  A sequential step also runs the
        ``parallel_with_previous`` steps right after it.  Running off the end
        of a program without ``repeat`` makes the entity idle.
        """
        program = program_for(state, entity)
        if program is None:
            logger.debug("No behaviour program for %s; it goes idle", entity.uid)
            entity.active = False
            return

        idx = entity.action_index
        skipped = False
        while idx < len(program) and program[idx].execution_mode in _PARALLEL_MODES:
            idx += 1
            skipped = True

        if idx >= len(program):
            entity.action_index = idx
            entity.active = False
            logger.debug("%s has finished its program", entity.uid)
            return

        action = program[idx]
        if action.type is ActionType.REPEAT:
            if skipped:
                idx = -1
            else:
                idx = 0
                first = program[0]
                if (
                    first.type is not ActionType.REPEAT
                    and first.execution_mode is ExecutionMode.SEQUENTIAL
                ):
                    self._run_with_followers(program, 0, entity, state)
        else:
            self._run_with_followers(program, idx, entity, state)

        entity.action_index = idx + 1

    def execute_action(
        self, action: CharacterAction, entity: PlacedEntity, state: GameState,
    ) -> None:
        """Execute a single step, dispatching by ``action.type``."""
        if entity.dead:
            return
        handler = _DISPATCH.get(action.type)
        if handler is None:
            logger.warning("No handler for action type %s", action.type)
            return
        handler(self, action, entity, state)

    def execute_actions(
        self, actions: list[CharacterAction], entity: PlacedEntity, state: GameState,
    ) -> None:
        """Execute steps in order, stopping if the entity dies."""
        for action in actions:
            if entity.dead:
                break
            self.execute_action(action, entity, state)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _run_with_followers(
        self,
        program: list[CharacterAction],
        idx: int,
        entity: PlacedEntity,
        state: GameState,
    ) -> None:
        self.execute_action(program[idx], entity, state)
        follower = idx + 1
        while (
            follower < len(program)
            and program[follower].execution_mode is ExecutionMode.PARALLEL_WITH_PREVIOUS
            and not entity.dead
        ):
            self.execute_action(program[follower], entity, state)
            follower += 1

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _handle_move(self, action: MoveAction, entity: PlacedEntity, state: GameState) -> None:
        move_entity(state, entity, action)

    def _handle_turn(self, action: TurnAction, entity: PlacedEntity, state: GameState) -> None:
        if action.type is ActionType.TURN_LEFT:
            entity.facing = entity.facing.rotate(-action.turn_degrees)
        elif action.type is ActionType.TURN_RIGHT:
            entity.facing = entity.facing.rotate(action.turn_degrees)
        else:
            entity.facing = entity.facing.opposite()

    def _handle_attack(self, action: AttackAction, entity: PlacedEntity, state: GameState) -> None:
        if action.type is ActionType.ATTACK_AOE:
            damage = action.damage if action.damage is not None else attack_damage_of(state, entity)
            blast_area(state, entity, entity.x, entity.y, action.radius, damage)
            return
        reach = 1 if action.type is ActionType.ATTACK_FORWARD else action.range
        attack_in_direction(state, entity, entity.facing, reach, action.damage)

    def _handle_spell(self, action: SpellAction, entity: PlacedEntity, state: GameState) -> None:
        cast_spell(state, entity, action)

    def _handle_conditional(
        self, action: ConditionalAction, entity: PlacedEntity, state: GameState,
    ) -> None:
        if action.type is ActionType.IF_WALL:
            met = wall_ahead(state, entity)
        else:
            met = first_opponent_in_line(state, entity, entity.facing, action.range) is not None
        if met:
            # Branches never loop.
            self.execute_actions(
                [a for a in action.then if a.type is not ActionType.REPEAT], entity, state,
            )

    def _handle_wait(self, action: CharacterAction, entity: PlacedEntity, state: GameState) -> None:
        return

    def _handle_teleport(
        self, action: TeleportAction, entity: PlacedEntity, state: GameState,
    ) -> None:
        if action.target_x is None or action.target_y is None:
            tile = state.puzzle.tile_at(entity.x, entity.y)
            if tile is not None:
                teleport_entity(state, entity, tile)
            return
        x, y = action.target_x, action.target_y
        if is_blocking_tile(state, x, y) or state.living_entity_at(x, y, exclude=entity):
            logger.debug("%s cannot teleport to (%d, %d)", entity.uid, x, y)
            return
        enter_tile(state, entity, x, y, entity.facing)

    def _handle_repeat(self, action: CharacterAction, entity: PlacedEntity, state: GameState) -> None:
        # Loop points are handled by step_entity.
        return


# ------------------------------------------------------------------
# Dispatch table
# ------------------------------------------------------------------

_DISPATCH: dict[ActionType, Callable[..., None]] = {
    ActionType.MOVE_FORWARD: BehaviorInterpreter._handle_move,
    ActionType.MOVE_BACKWARD: BehaviorInterpreter._handle_move,
    ActionType.MOVE_LEFT: BehaviorInterpreter._handle_move,
    ActionType.MOVE_RIGHT: BehaviorInterpreter._handle_move,
    ActionType.MOVE_DIAGONAL_NE: BehaviorInterpreter._handle_move,
    ActionType.MOVE_DIAGONAL_NW: BehaviorInterpreter._handle_move,
    ActionType.MOVE_DIAGONAL_SE: BehaviorInterpreter._handle_move,
    ActionType.MOVE_DIAGONAL_SW: BehaviorInterpreter._handle_move,
    ActionType.TURN_LEFT: BehaviorInterpreter._handle_turn,
    ActionType.TURN_RIGHT: BehaviorInterpreter._handle_turn,
    ActionType.TURN_AROUND: BehaviorInterpreter._handle_turn,
    ActionType.ATTACK_FORWARD: BehaviorInterpreter._handle_attack,
    ActionType.ATTACK_RANGE: BehaviorInterpreter._handle_attack,
    ActionType.ATTACK_AOE: BehaviorInterpreter._handle_attack,
    ActionType.SPELL: BehaviorInterpreter._handle_spell,
    ActionType.IF_WALL: BehaviorInterpreter._handle_conditional,
    ActionType.IF_ENEMY: BehaviorInterpreter._handle_conditional,
    ActionType.WAIT: BehaviorInterpreter._handle_wait,
    ActionType.TELEPORT: BehaviorInterpreter._handle_teleport,
    ActionType.REPEAT: BehaviorInterpreter._handle_repeat,
}
