"""TriggerDispatcher -- runs parallel behaviour steps when their trigger fires.

Parallel steps (``execution_mode == "parallel"``) never consume an entity's
turn.  Each one carries a :class:`TriggerConfig`:

- ``interval`` steps fire on a fixed cadence.  Turn-driven runs map
  ``interval_ms`` onto every ``ceil(interval_ms / TURN_DURATION_MS)``-th
  turn; live play fires them from the animation clock instead.
- ``on_event`` steps fire whenever their board condition holds right after
  the owning entity has taken its turn.  Proximity events aim the step at
  whatever caused them unless the step already picks its own targets.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Iterator

from grid_tactics.ir.actions import (
    CharacterAction,
    ExecutionMode,
    SpellAction,
    TriggerConfig,
    TriggerEvent,
    TriggerMode,
)
from grid_tactics.sim.core.entities import PlacedEntity
from grid_tactics.sim.interpreter import program_for
from grid_tactics.sim.mechanics.board import ADJACENT_DISTANCE, distance, wall_ahead

if TYPE_CHECKING:
    from grid_tactics.sim.core.game_state import GameState
    from grid_tactics.sim.interpreter import BehaviorInterpreter

logger = logging.getLogger(__name__)

TURN_DURATION_MS = 800
"""Length of one turn in live play."""

_DEFAULT_TRIGGER = TriggerConfig()

_ENEMY_EVENTS = frozenset({
    TriggerEvent.ENEMY_ADJACENT,
    TriggerEvent.ENEMY_IN_RANGE,
    TriggerEvent.CONTACT_WITH_ENEMY,
})
_CHARACTER_EVENTS = frozenset({
    TriggerEvent.CHARACTER_ADJACENT,
    TriggerEvent.CHARACTER_IN_RANGE,
    TriggerEvent.CONTACT_WITH_CHARACTER,
})


def interval_turns(interval_ms: int) -> int:
    """Number of turns between firings of an interval trigger."""
    return max(1, math.ceil(interval_ms / TURN_DURATION_MS))


def check_event(
    state: GameState, entity: PlacedEntity, event: TriggerEvent, event_range: int = 3,
) -> bool:
    """Whether *event* currently holds for *entity*."""
    if event is TriggerEvent.WALL_AHEAD:
        return wall_ahead(state, entity)
    if event is TriggerEvent.HEALTH_BELOW_50:
        return entity.current_health < entity.max_health * 0.5

    if event in _ENEMY_EVENTS:
        pool: list[PlacedEntity] = list(state.present_enemies())
    else:
        pool = list(state.living_characters())
    others = [other for other in pool if other is not entity]

    if event in (TriggerEvent.CONTACT_WITH_ENEMY, TriggerEvent.CONTACT_WITH_CHARACTER):
        return any(o.x == entity.x and o.y == entity.y for o in others)
    if event in (TriggerEvent.ENEMY_ADJACENT, TriggerEvent.CHARACTER_ADJACENT):
        reach = ADJACENT_DISTANCE
    else:
        reach = event_range
    return any(distance(entity.x, entity.y, o.x, o.y) <= reach for o in others)


def _aimed_at_source(action: CharacterAction, event: TriggerEvent) -> CharacterAction:
    if not isinstance(action, SpellAction):
        return action
    if action.auto_target_nearest_enemy or action.auto_target_nearest_character:
        return action
    if event in _ENEMY_EVENTS:
        return action.model_copy(update={"auto_target_nearest_enemy": True})
    if event in _CHARACTER_EVENTS:
        return action.model_copy(update={"auto_target_nearest_character": True})
    return action


class TriggerDispatcher:
    """Fires parallel steps for entities based on their trigger configs.

    Parameters
    ----------
    interpreter:
        The BehaviorInterpreter used to execute the triggered steps.
    """

    def __init__(self, interpreter: BehaviorInterpreter) -> None:
        self.interpreter = interpreter

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def _parallel_steps(
        self, state: GameState, entity: PlacedEntity, mode: TriggerMode,
    ) -> Iterator[tuple[int, CharacterAction, TriggerConfig]]:
        program = program_for(state, entity)
        if not program:
            return
        for idx, action in enumerate(program):
            if action.execution_mode is not ExecutionMode.PARALLEL:
                continue
            trigger = action.trigger or _DEFAULT_TRIGGER
            if trigger.mode is mode:
                yield idx, action, trigger

    def _acting_entities(self, state: GameState) -> Iterator[PlacedEntity]:
        for entity in state.all_entities():
            if entity.is_present and entity.active:
                yield entity

    # ------------------------------------------------------------------
    # Firing
    # ------------------------------------------------------------------

    def fire_interval_triggers(self, state: GameState) -> None:
        """Fire turn-mapped interval steps due on ``state.current_turn``."""
        for entity in self._acting_entities(state):
            for idx, action, trigger in self._parallel_steps(state, entity, TriggerMode.INTERVAL):
                if entity.dead:
                    break
                if state.current_turn % interval_turns(trigger.interval_ms) == 0:
                    logger.debug("%s: interval step %d fires on turn %d",
                                 entity.uid, idx, state.current_turn)
                    self.interpreter.execute_action(action, entity, state)

    def fire_event_triggers(self, state: GameState, entity: PlacedEntity) -> None:
        """Fire *entity*'s on-event steps whose condition currently holds."""
        for idx, action, trigger in self._parallel_steps(state, entity, TriggerMode.ON_EVENT):
            if entity.dead:
                break
            if trigger.event is None:
                continue
            if check_event(state, entity, trigger.event, trigger.event_range):
                logger.debug("%s: %s fires step %d", entity.uid, trigger.event.value, idx)
                self.interpreter.execute_action(
                    _aimed_at_source(action, trigger.event), entity, state,
                )

    def fire_live_interval_triggers(self, state: GameState, now_ms: float) -> None:
        """Fire interval steps by wall-clock time (live play).

        The first call that sees a step only starts its clock.
        """
        for entity in self._acting_entities(state):
            for idx, action, trigger in self._parallel_steps(state, entity, TriggerMode.INTERVAL):
                if entity.dead:
                    break
                key = f"{entity.uid}#{idx}"
                last = state.trigger_last_fired_ms.get(key)
                if last is None:
                    state.trigger_last_fired_ms[key] = now_ms
                    continue
                if now_ms - last >= trigger.interval_ms:
                    state.trigger_last_fired_ms[key] = now_ms
                    self.interpreter.execute_action(action, entity, state)
