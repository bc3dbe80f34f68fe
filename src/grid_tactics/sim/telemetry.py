"""Telemetry data models for per-run statistics.

These lightweight dataclasses capture what is needed to judge a placement
without storing the entire game-state history:

- **RunTelemetry**: outcome, turn count, characters used and what happened
  to them, enemies defeated, collectibles picked up, score.

Plain ``dataclass`` instances (not Pydantic models) keep collection cheap
during solver runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from grid_tactics.sim.core.game_state import GameState


@dataclass
class RunTelemetry:
    """Stats from a single simulated run.

    Attributes
    ----------
    outcome:
        ``"victory"``, ``"defeat"`` or ``"timeout"``.
    turns:
        Number of turns executed.
    characters_used:
        Character ids in placement order.
    characters_lost:
        How many placed characters died.
    damage_taken:
        Total health lost by characters.
    enemies_defeated:
        Enemies that ended the run dead.
    collectibles_collected:
        Collectibles picked up.
    score:
        Collectible score accumulated during the run.
    """

    outcome: str
    turns: int
    characters_used: list[str] = field(default_factory=list)
    characters_lost: int = 0
    damage_taken: int = 0
    enemies_defeated: int = 0
    collectibles_collected: int = 0
    score: int = 0


def collect_telemetry(state: GameState, outcome: str, turns: int) -> RunTelemetry:
    return RunTelemetry(
        outcome=outcome,
        turns=turns,
        characters_used=[c.character_id for c in state.characters],
        characters_lost=sum(1 for c in state.characters if c.dead),
        damage_taken=sum(c.max_health - max(c.current_health, 0) for c in state.characters),
        enemies_defeated=sum(1 for e in state.enemies if e.dead),
        collectibles_collected=sum(1 for c in state.collectibles if c.collected),
        score=state.score,
    )
