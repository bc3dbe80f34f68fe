"""Projectiles and lingering area effects.

In headless mode a projectile's whole flight resolves the moment it is
launched.  In live play projectiles are stored on the ``GameState`` and
advanced by :func:`update_projectiles` from the UI's animation clock.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from grid_tactics.ir.directions import Direction
from grid_tactics.ir.spells import SpellDefinition, SpellTemplate
from grid_tactics.sim.core.entities import PlacedEntity
from grid_tactics.sim.core.game_state import PersistentAreaEffect, Projectile
from grid_tactics.sim.mechanics.board import is_blocking_tile
from grid_tactics.sim.mechanics.combat import blast_area, deal_damage, heal_area
from grid_tactics.sim.mechanics.targeting import opponents_on_tile

if TYPE_CHECKING:
    from grid_tactics.sim.core.game_state import GameState

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Area effects
# ---------------------------------------------------------------------------

def apply_aoe(
    state: GameState, caster: PlacedEntity, spell: SpellDefinition, cx: int, cy: int,
) -> None:
    """Detonate an area spell centred on ``(cx, cy)``.

    A spell with ``persist_duration`` leaves a lingering area instead of
    hitting immediately.  A spell with ``healing`` heals allies instead of
    hurting opponents.
    """
    if spell.persist_duration > 0:
        damage = (
            spell.persist_damage_per_turn
            if spell.persist_damage_per_turn is not None
            else spell.damage
        )
        state.area_effects.append(PersistentAreaEffect(
            id=state.next_effect_id("area"),
            x=cx,
            y=cy,
            radius=spell.radius,
            damage_per_turn=damage,
            turns_remaining=spell.persist_duration,
            source_uid=caster.uid,
            from_character=caster.is_character,
        ))
        return
    if spell.healing > 0:
        heal_area(state, caster, cx, cy, spell.radius, spell.healing)
    else:
        blast_area(state, caster, cx, cy, spell.radius, spell.damage)


def tick_area_effects(state: GameState) -> None:
    """Damage opponents inside every lingering area, then age the areas."""
    remaining: list[PersistentAreaEffect] = []
    for effect in state.area_effects:
        source = state.find_entity(effect.source_uid)
        if source is not None:
            blast_area(state, source, effect.x, effect.y, effect.radius, effect.damage_per_turn)
        effect.turns_remaining -= 1
        if effect.turns_remaining > 0:
            remaining.append(effect)
    state.area_effects = remaining


# ---------------------------------------------------------------------------
# Projectiles
# ---------------------------------------------------------------------------

def launch_projectile(
    state: GameState, caster: PlacedEntity, spell: SpellDefinition, direction: Direction,
) -> Projectile:
    projectile = Projectile(
        id=state.next_effect_id("proj"),
        spell=spell,
        source_uid=caster.uid,
        from_character=caster.is_character,
        start_x=caster.x,
        start_y=caster.y,
        direction=direction,
        max_distance=spell.range,
    )
    if state.headless_mode:
        while projectile.active:
            _advance(state, projectile)
    else:
        state.projectiles.append(projectile)
    return projectile


def update_projectiles(state: GameState, now_ms: float) -> None:
    """Advance live projectiles to where *now_ms* puts them.

    Each projectile travels ``projectile_speed`` tiles per second from the
    first tick that sees it.
    """
    for projectile in state.projectiles:
        if projectile.start_ms is None:
            projectile.start_ms = now_ms
        elapsed_s = max(0.0, (now_ms - projectile.start_ms) / 1000.0)
        due = min(projectile.max_distance, int(elapsed_s * projectile.spell.projectile_speed))
        while projectile.active and projectile.tiles_travelled < due:
            _advance(state, projectile)
        if projectile.active and projectile.tiles_travelled >= projectile.max_distance:
            _finish(state, projectile, *projectile.position)
    state.projectiles = [p for p in state.projectiles if p.active]


def _advance(state: GameState, projectile: Projectile) -> None:
    """Move a projectile one tile and resolve what it meets."""
    source = state.find_entity(projectile.source_uid)
    if source is None:
        projectile.active = False
        return
    if projectile.tiles_travelled >= projectile.max_distance:
        _finish(state, projectile, *projectile.position)
        return

    last_x, last_y = projectile.position
    projectile.tiles_travelled += 1
    x, y = projectile.position
    if is_blocking_tile(state, x, y):
        projectile.tiles_travelled -= 1
        _finish(state, projectile, last_x, last_y)
        return

    for target in opponents_on_tile(state, source, x, y):
        if target.uid in projectile.hit_uids:
            continue
        projectile.hit_uids.append(target.uid)
        if not _explodes(projectile):
            deal_damage(state, source, target, projectile.spell.damage)
        if not projectile.spell.pierce_enemies or _explodes(projectile):
            _finish(state, projectile, x, y)
            return


def _explodes(projectile: Projectile) -> bool:
    spell = projectile.spell
    return spell.template_type is SpellTemplate.AOE and spell.projectile_before_aoe


def _finish(state: GameState, projectile: Projectile, x: int, y: int) -> None:
    projectile.active = False
    if _explodes(projectile):
        source = state.find_entity(projectile.source_uid)
        if source is not None:
            logger.debug("Projectile %s bursts at (%d, %d)", projectile.id, x, y)
            apply_aoe(state, source, projectile.spell, x, y)
