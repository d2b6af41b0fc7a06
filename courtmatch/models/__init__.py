"""
Data models for the match scheduler.
"""

from .models import (
    Gender,
    StrategyKind,
    Player,
    Team,
    Match,
    Budget,
    ParticipationCounter,
    Schedule,
    SchedulingConstraint,
    ScheduleValidationResult,
    PlayerScheduleStats,
    normalize_level,
    parse_gender
)

__all__ = [
    "Gender",
    "StrategyKind",
    "Player",
    "Team",
    "Match",
    "Budget",
    "ParticipationCounter",
    "Schedule",
    "SchedulingConstraint",
    "ScheduleValidationResult",
    "PlayerScheduleStats",
    "normalize_level",
    "parse_gender"
]
