"""Completion scoring: rank tiers, par bonuses and side quests."""

from grid_tactics.scoring.engine import (
    BASE_POINTS,
    CHAR_BONUS_PER_UNDER_PAR,
    CHAR_PENALTY_PER_OVER_PAR,
    LIVES_BONUS_PER_LIFE,
    TURN_BONUS_PER_UNDER_PAR,
    TURN_PENALTY_PER_OVER_PAR,
    calculate_score,
    check_side_quests,
    is_side_quest_completed,
)
from grid_tactics.scoring.models import ParMet, PuzzleScore, RankTier, ScoreBreakdown, ScoreStats
from grid_tactics.scoring.report import format_score_for_sharing, get_rank_emoji, get_rank_name

__all__ = [
    "BASE_POINTS",
    "CHAR_BONUS_PER_UNDER_PAR",
    "CHAR_PENALTY_PER_OVER_PAR",
    "LIVES_BONUS_PER_LIFE",
    "TURN_BONUS_PER_UNDER_PAR",
    "TURN_PENALTY_PER_OVER_PAR",
    "ParMet",
    "PuzzleScore",
    "RankTier",
    "ScoreBreakdown",
    "ScoreStats",
    "calculate_score",
    "check_side_quests",
    "format_score_for_sharing",
    "get_rank_emoji",
    "get_rank_name",
    "is_side_quest_completed",
]
