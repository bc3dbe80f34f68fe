"""Damage and healing between placed entities.

Characters only ever hurt enemies and enemies only ever hurt characters;
healing only reaches allies.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from grid_tactics.ir.directions import Direction
from grid_tactics.ir.entities import EnemyDefinition
from grid_tactics.sim.core.entities import PlacedCharacter, PlacedEnemy, PlacedEntity
from grid_tactics.sim.mechanics.board import definition_of, distance
from grid_tactics.sim.mechanics.targeting import (
    first_opponent_in_line,
    opponents_in_radius,
)

if TYPE_CHECKING:
    from grid_tactics.sim.core.game_state import GameState

logger = logging.getLogger(__name__)


def attack_damage_of(state: GameState, entity: PlacedEntity) -> int:
    defn = definition_of(state, entity)
    if defn is None:
        logger.warning("No definition for %s; its attacks deal no damage", entity.uid)
        return 0
    return defn.attack_damage


def deal_damage(state: GameState, source: PlacedEntity, target: PlacedEntity, amount: int) -> int:
    """Apply *amount* damage to *target*; returns health actually lost."""
    lost = target.take_damage(amount)
    if lost:
        logger.debug("%s hits %s for %d%s", source.uid, target.uid, lost,
                     " (killed)" if target.dead else "")
    return lost


def bump_combat(state: GameState, character: PlacedCharacter, enemy: PlacedEnemy) -> bool:
    """Resolve a character walking into a living enemy.

    The character strikes with its attack damage; a surviving enemy strikes
    back with its retaliation damage (falling back to its attack damage).
    An enemy with melee priority strikes first and the character only
    answers if it survives.  Returns whether the enemy died, i.e. whether the
    character may enter the tile.
    """
    char_damage = attack_damage_of(state, character)
    enemy_def = definition_of(state, enemy)
    if not isinstance(enemy_def, EnemyDefinition):
        deal_damage(state, character, enemy, char_damage)
        return enemy.dead

    retaliation = (
        enemy_def.retaliation_damage
        if enemy_def.retaliation_damage is not None
        else enemy_def.attack_damage
    )
    if enemy_def.has_melee_priority:
        deal_damage(state, enemy, character, retaliation)
        if not character.dead:
            deal_damage(state, character, enemy, char_damage)
    else:
        deal_damage(state, character, enemy, char_damage)
        if not enemy.dead:
            deal_damage(state, enemy, character, retaliation)
    return enemy.dead


def attack_in_direction(
    state: GameState,
    attacker: PlacedEntity,
    direction: Direction,
    reach: int,
    damage: int | None = None,
) -> PlacedEntity | None:
    """Hit the first opponent within *reach*; returns the target hit, if any."""
    target = first_opponent_in_line(state, attacker, direction, reach)
    if target is None:
        return None
    amount = damage if damage is not None else attack_damage_of(state, attacker)
    deal_damage(state, attacker, target, amount)
    return target


def blast_area(
    state: GameState,
    caster: PlacedEntity,
    cx: int,
    cy: int,
    radius: float,
    damage: int,
) -> list[PlacedEntity]:
    """Damage every opponent within *radius* of ``(cx, cy)``."""
    hit = opponents_in_radius(state, caster, cx, cy, radius)
    for target in hit:
        deal_damage(state, caster, target, damage)
    return hit


def heal_area(
    state: GameState,
    caster: PlacedEntity,
    cx: int,
    cy: int,
    radius: float,
    amount: int,
) -> list[PlacedEntity]:
    """Heal every ally (not the caster) within *radius* of ``(cx, cy)``."""
    healed = [
        ally for ally in state.allies_of(caster)
        if distance(cx, cy, ally.x, ally.y) <= radius
    ]
    for ally in healed:
        ally.heal(amount)
    return healed
