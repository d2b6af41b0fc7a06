"""
Skill scoring for players, teams and matches.

Scores come from the LEVEL_SCORES policy table. Team fairness ranks candidate
teams; match score ranks opponents that already pass the team-score gate.
"""

from typing import Iterable, List, Optional
import random

from courtmatch.models import Player, Team, Match, normalize_level
from courtmatch.core.config import (
    LEVEL_SCORES, UNKNOWN_LEVEL_SCORE, MATCH_SCORE_WEIGHTS, MAX_TEAM_SCORE_DIFF
)


def level_score(level: Optional[str]) -> int:
    return LEVEL_SCORES.get(normalize_level(level), UNKNOWN_LEVEL_SCORE)


def level_group(level: Optional[str]) -> str:
    """Coarse skill group: the leading letter of the tier code."""
    return normalize_level(level)[0]


def player_score(player: Player) -> int:
    return level_score(player.skill_level)


def team_score(team: Team) -> int:
    return player_score(team.player1) + player_score(team.player2)


def team_average(team: Team) -> float:
    return team_score(team) / 2


def team_balance(team: Team) -> int:
    """Skill gap between the two partners."""
    return abs(player_score(team.player1) - player_score(team.player2))


def team_fairness(team: Team) -> int:
    """Strong teams that are also internally even rank highest."""
    return team_score(team) - 2 * team_balance(team)


def match_score(team1: Team, team2: Team) -> float:
    """Weighted opponent distance; lower is a closer matchup."""
    score_difference = abs(team_score(team1) - team_score(team2))
    balance_difference = abs(team_balance(team1) - team_balance(team2))
    average_difference = abs(team_average(team1) - team_average(team2))
    return (
        score_difference * MATCH_SCORE_WEIGHTS["score"]
        + balance_difference * MATCH_SCORE_WEIGHTS["balance"]
        + average_difference * MATCH_SCORE_WEIGHTS["average"]
    )


def team_score_diff(team1: Team, team2: Team) -> int:
    return abs(team_score(team1) - team_score(team2))


def match_score_diff(match: Match) -> int:
    return team_score_diff(match.team1, match.team2)


def within_gate(team1: Team, team2: Team, max_diff: int = MAX_TEAM_SCORE_DIFF) -> bool:
    return team_score_diff(team1, team2) <= max_diff


def max_score_diff(matches: Iterable[Match]) -> int:
    return max((match_score_diff(m) for m in matches), default=0)


def total_score_diff(matches: Iterable[Match]) -> int:
    return sum(match_score_diff(m) for m in matches)


def average_score_diff(matches: List[Match]) -> float:
    if not matches:
        return 0.0
    return total_score_diff(matches) / len(matches)


def jitter(rng: random.Random, scale: float) -> float:
    """Uniform noise in [-scale, scale] used to vary equally ranked candidates."""
    return (rng.random() * 2 - 1) * scale
