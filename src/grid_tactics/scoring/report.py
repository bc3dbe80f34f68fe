"""One-line share text for a puzzle score."""

from __future__ import annotations

from grid_tactics.scoring.models import PuzzleScore, RankTier

_RANK_EMOJI = {
    RankTier.GOLD: "\N{TROPHY}",
    RankTier.SILVER: "\N{SECOND PLACE MEDAL}",
    RankTier.BRONZE: "\N{THIRD PLACE MEDAL}",
}

_RANK_NAME = {
    RankTier.GOLD: "Gold Trophy",
    RankTier.SILVER: "Silver Trophy",
    RankTier.BRONZE: "Bronze Trophy",
}


def get_rank_emoji(rank: RankTier) -> str:
    return _RANK_EMOJI.get(rank, "\N{TROPHY}")


def get_rank_name(rank: RankTier) -> str:
    return _RANK_NAME.get(rank, "Trophy")


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def format_score_for_sharing(score: PuzzleScore, puzzle_name: str) -> str:
    """e.g. ``🏆 Gold Trophy on "Crossroads" (1 char, 8 turns) - 1450 pts``"""
    chars = _plural(score.stats.characters_used, "char")
    turns = _plural(score.stats.turns_used, "turn")
    return (
        f"{get_rank_emoji(score.rank)} {get_rank_name(score.rank)} "
        f'on "{puzzle_name}" ({chars}, {turns}) - {score.total_points} pts'
    )
