"""Spell casting: pick directions, then run the spell's template per direction."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from grid_tactics.ir.actions import SpellAction
from grid_tactics.ir.directions import Direction
from grid_tactics.ir.spells import DirectionMode, SpellDefinition, SpellTemplate
from grid_tactics.sim.core.entities import PlacedEntity
from grid_tactics.sim.mechanics.board import is_blocking_tile
from grid_tactics.sim.mechanics.combat import deal_damage
from grid_tactics.sim.mechanics.projectiles import apply_aoe, launch_projectile
from grid_tactics.sim.mechanics.targeting import find_nearest, opponents_on_tile

if TYPE_CHECKING:
    from grid_tactics.sim.core.game_state import GameState

logger = logging.getLogger(__name__)

_ALL_DIRECTIONS = list(Direction)


def resolve_spell(state: GameState, action: SpellAction) -> SpellDefinition | None:
    if action.spell is not None:
        return action.spell
    if action.spell_id is None or state.repository is None:
        return None
    spell = state.repository.get_spell(action.spell_id)
    if spell is None:
        logger.warning("Spell not found: %s", action.spell_id)
    return spell


def cast_directions(
    state: GameState, caster: PlacedEntity, action: SpellAction, spell: SpellDefinition,
) -> list[Direction]:
    """Directions to cast in, by precedence.

    Auto-targeting first, then the step's relative or absolute override,
    then the spell's own direction mode.  Auto-targeting with nobody in
    sight yields no direction at all.
    """
    if action.auto_target_nearest_character or action.auto_target_nearest_enemy:
        targets = find_nearest(
            state,
            caster,
            characters=action.auto_target_nearest_character,
            max_targets=action.max_targets,
            mode=action.auto_target_mode,
        )
        return [t.direction for t in targets]
    if action.use_relative_override and action.relative_direction_override:
        return [rel.resolve(caster.facing) for rel in action.relative_direction_override]
    if action.direction_override:
        return list(action.direction_override)

    mode = spell.direction_mode
    if mode is DirectionMode.ALL_DIRECTIONS:
        return list(_ALL_DIRECTIONS)
    if mode is DirectionMode.FIXED and spell.default_directions:
        return list(spell.default_directions)
    if mode is DirectionMode.RELATIVE and spell.relative_directions:
        return [rel.resolve(caster.facing) for rel in spell.relative_directions]
    return [caster.facing]


def cast_spell(state: GameState, caster: PlacedEntity, action: SpellAction) -> None:
    spell = resolve_spell(state, action)
    if spell is None:
        return
    directions = cast_directions(state, caster, action, spell)
    if not directions:
        logger.debug("%s: no target for %s", caster.uid, spell.id)
        return
    for direction in directions:
        cast_in_direction(state, caster, spell, direction)
        if caster.dead:
            break


def cast_in_direction(
    state: GameState, caster: PlacedEntity, spell: SpellDefinition, direction: Direction,
) -> None:
    template = spell.template_type
    if template is SpellTemplate.MELEE:
        _melee(state, caster, spell, direction)
    elif template in (SpellTemplate.RANGE_LINEAR, SpellTemplate.MAGIC_LINEAR):
        launch_projectile(state, caster, spell, direction)
    elif template is SpellTemplate.AOE:
        if spell.projectile_before_aoe:
            launch_projectile(state, caster, spell, direction)
        elif spell.aoe_centered_on_caster:
            apply_aoe(state, caster, spell, caster.x, caster.y)
        else:
            dx, dy = direction.offset
            apply_aoe(state, caster, spell, caster.x + dx * spell.range, caster.y + dy * spell.range)
    elif template is SpellTemplate.HEAL:
        caster.heal(spell.healing or 1)


def _melee(
    state: GameState, caster: PlacedEntity, spell: SpellDefinition, direction: Direction,
) -> None:
    """Hit every opponent on each tile out to ``melee_range``."""
    if spell.melee_range == 0:
        for target in opponents_on_tile(state, caster, caster.x, caster.y):
            deal_damage(state, caster, target, spell.damage)
        return
    dx, dy = direction.offset
    for step in range(1, spell.melee_range + 1):
        x, y = caster.x + dx * step, caster.y + dy * step
        if not state.puzzle.in_bounds(x, y) or is_blocking_tile(state, x, y):
            break
        for target in opponents_on_tile(state, caster, x, y):
            deal_damage(state, caster, target, spell.damage)
