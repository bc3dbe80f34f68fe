"""Score a finished run against the puzzle's pars and side quests.

Rank
----
- **gold**: character and turn pars both met, no lives lost.
- **silver**: both pars met but lives were lost, or exactly one par met.
- **bronze**: neither par met.

A puzzle without a par counts that par as met.

Points
------
``BASE_POINTS`` plus, for each par, a bonus per unit under it or a penalty
per unit over it, plus ``LIVES_BONUS_PER_LIFE`` per remaining life, plus
the bonus points of every completed side quest.  Totals are not clamped.
"""

from __future__ import annotations

import logging

from grid_tactics.ir.puzzle import SideQuest, SideQuestType
from grid_tactics.scoring.models import ParMet, PuzzleScore, RankTier, ScoreBreakdown, ScoreStats
from grid_tactics.sim.core.game_state import GameState

logger = logging.getLogger(__name__)

BASE_POINTS = 1000
CHAR_BONUS_PER_UNDER_PAR = 200
CHAR_PENALTY_PER_OVER_PAR = 100
TURN_BONUS_PER_UNDER_PAR = 25
TURN_PENALTY_PER_OVER_PAR = 10
LIVES_BONUS_PER_LIFE = 100

DEFAULT_SPEED_RUN_TURNS = 999
DEFAULT_MINIMALIST_CHARACTERS = 1


def _par_points(par: int | None, used: int, bonus: int, penalty: int) -> int:
    if par is None:
        return 0
    if used <= par:
        return (par - used) * bonus
    return -(used - par) * penalty


def _rank(met_characters: bool, met_turns: bool, lives_lost: bool) -> RankTier:
    if met_characters and met_turns:
        return RankTier.SILVER if lives_lost else RankTier.GOLD
    if met_characters or met_turns:
        return RankTier.SILVER
    return RankTier.BRONZE


def is_side_quest_completed(quest: SideQuest, state: GameState) -> bool:
    kind = quest.type
    params = quest.params
    if kind is SideQuestType.COLLECT_ALL_ITEMS:
        return all(c.collected for c in state.collectibles)
    if kind is SideQuestType.NO_DAMAGE_TAKEN:
        return all(c.current_health == c.max_health for c in state.characters)
    if kind is SideQuestType.USE_SPECIFIC_CHARACTER:
        return any(c.character_id == params.character_id for c in state.characters)
    if kind is SideQuestType.AVOID_CHARACTER:
        return not any(c.character_id == params.character_id for c in state.characters)
    if kind is SideQuestType.SPEED_RUN:
        limit = params.turns if params.turns is not None else DEFAULT_SPEED_RUN_TURNS
        return state.current_turn <= limit
    if kind is SideQuestType.MINIMALIST:
        limit = (
            params.character_count
            if params.character_count is not None
            else DEFAULT_MINIMALIST_CHARACTERS
        )
        return len(state.characters) <= limit
    if kind is SideQuestType.NO_DEATHS:
        return not any(c.dead for c in state.characters)
    # Custom quests are judged outside the engine.
    return False


def check_side_quests(state: GameState) -> list[str]:
    """Ids of the puzzle's side quests that *state* completed."""
    return [q.id for q in state.puzzle.side_quests if is_side_quest_completed(q, state)]


def calculate_score(state: GameState, lives_remaining: int, lives_total: int) -> PuzzleScore:
    """Score a completed run.

    Parameters
    ----------
    state:
        Final state of the run.  Only read.
    lives_remaining:
        Lives left when the puzzle was solved.
    lives_total:
        Lives the attempt started with.
    """
    puzzle = state.puzzle
    chars_used = len(state.characters)
    turns_used = state.current_turn

    met_characters = puzzle.par_characters is None or chars_used <= puzzle.par_characters
    met_turns = puzzle.par_turns is None or turns_used <= puzzle.par_turns
    rank = _rank(met_characters, met_turns, lives_remaining < lives_total)

    character_bonus = _par_points(
        puzzle.par_characters, chars_used, CHAR_BONUS_PER_UNDER_PAR, CHAR_PENALTY_PER_OVER_PAR,
    )
    turn_bonus = _par_points(
        puzzle.par_turns, turns_used, TURN_BONUS_PER_UNDER_PAR, TURN_PENALTY_PER_OVER_PAR,
    )
    lives_bonus = lives_remaining * LIVES_BONUS_PER_LIFE

    completed = check_side_quests(state)
    bonus_by_id = {q.id: q.bonus_points for q in puzzle.side_quests}
    quest_points = sum(bonus_by_id.get(qid, 0) for qid in completed)

    total = BASE_POINTS + character_bonus + turn_bonus + lives_bonus + quest_points
    logger.debug(
        "Scored %s: rank=%s total=%d (chars=%d turns=%d)",
        puzzle.id, rank.value, total, chars_used, turns_used,
    )
    return PuzzleScore(
        rank=rank,
        total_points=total,
        breakdown=ScoreBreakdown(
            base_points=BASE_POINTS,
            character_bonus=character_bonus,
            turn_bonus=turn_bonus,
            lives_bonus=lives_bonus,
            side_quest_points=quest_points,
        ),
        completed_side_quests=completed,
        par_met=ParMet(characters=met_characters, turns=met_turns),
        stats=ScoreStats(
            characters_used=chars_used,
            turns_used=turns_used,
            lives_remaining=lives_remaining,
        ),
    )
