"""Pydantic v2 models for puzzle completion scores."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class RankTier(str, Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"


class ScoreBreakdown(BaseModel):
    """Where the total came from.  Penalties show up as negative bonuses."""

    base_points: int
    character_bonus: int
    turn_bonus: int
    lives_bonus: int
    side_quest_points: int


class ParMet(BaseModel):
    characters: bool
    turns: bool


class ScoreStats(BaseModel):
    characters_used: int
    turns_used: int
    lives_remaining: int


class PuzzleScore(BaseModel):
    rank: RankTier
    total_points: int
    breakdown: ScoreBreakdown
    completed_side_quests: list[str] = Field(default_factory=list)
    """Ids of the side quests that were completed, in puzzle order."""
    par_met: ParMet
    stats: ScoreStats
