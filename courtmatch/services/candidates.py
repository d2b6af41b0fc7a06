"""
Candidate team enumeration and opponent selection shared by every strategy.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Set, Tuple
import itertools
import random

from courtmatch.models import Player, Team
from courtmatch.core.config import MAX_TEAM_SCORE_DIFF, TEAM_JITTER_SCALE
from courtmatch.services.scoring import (
    team_score, team_fairness, match_score, team_score_diff, within_gate, jitter
)

# The three ways to seat four players as two teams of two
FOUR_PLAYER_SPLITS = [
    ((0, 1), (2, 3)),
    ((0, 2), (1, 3)),
    ((0, 3), (1, 2)),
]


@dataclass
class TeamCandidate:
    team: Team
    score: int
    fairness: int
    preference: int = 0  # lower is preferred; used by mixed doubles

    @property
    def player_ids(self) -> Tuple[str, str]:
        return self.team.player_ids


def make_candidate(player1: Player, player2: Player, preference: int = 0) -> TeamCandidate:
    team = Team(player1, player2)
    return TeamCandidate(
        team=team,
        score=team_score(team),
        fairness=team_fairness(team),
        preference=preference,
    )


def rank_candidates(candidates: List[TeamCandidate], rng: random.Random,
                    jitter_scale: float = TEAM_JITTER_SCALE) -> List[TeamCandidate]:
    """
    Order candidates by preference, then fairness and score (both descending).

    Jitter is drawn once per candidate so equally fair teams come out in a
    different order on every run while the ordering itself stays consistent.
    """
    keyed = []
    for candidate in candidates:
        key = (
            candidate.preference,
            -(candidate.fairness + jitter(rng, jitter_scale)),
            -(candidate.score + jitter(rng, jitter_scale)),
            rng.random(),
        )
        keyed.append((key, candidate))
    keyed.sort(key=lambda item: item[0])
    return [candidate for _, candidate in keyed]


def build_teams(pool: Sequence[Player], rng: random.Random,
                jitter_scale: float = TEAM_JITTER_SCALE) -> List[TeamCandidate]:
    """Every unordered pair from ``pool``, scored and ranked. O(n^2) in the pool size."""
    candidates = [make_candidate(a, b) for a, b in itertools.combinations(pool, 2)]
    return rank_candidates(candidates, rng, jitter_scale)


def is_available(candidate: TeamCandidate, used: Set[str]) -> bool:
    return candidate.team.player1.id not in used and candidate.team.player2.id not in used


def choose_opponent(first: TeamCandidate, candidates: Iterable[TeamCandidate], used: Set[str],
                    max_diff: int = MAX_TEAM_SCORE_DIFF,
                    allow_fallback: bool = True) -> Optional[TeamCandidate]:
    """
    Pick the opponent with the lowest match score among those within the gate.

    With ``allow_fallback`` the lowest match score overall is returned when no
    candidate passes the gate, so a round can still make progress.
    """
    blocked = set(used)
    blocked.update(first.player_ids)

    best_gated = None
    best_gated_score = None
    best_any = None
    best_any_score = None

    for candidate in candidates:
        if candidate is first or not is_available(candidate, blocked):
            continue
        score = match_score(first.team, candidate.team)
        if within_gate(first.team, candidate.team, max_diff):
            if best_gated is None or score < best_gated_score:
                best_gated, best_gated_score = candidate, score
        if best_any is None or score < best_any_score:
            best_any, best_any_score = candidate, score

    if best_gated is not None:
        return best_gated
    return best_any if allow_fallback else None


def split_options(players: Sequence[Player]) -> List[Tuple[Team, Team]]:
    if len(players) != 4:
        raise ValueError(f"A doubles split needs exactly 4 players, got {len(players)}")
    options = []
    for (a, b), (c, d) in FOUR_PLAYER_SPLITS:
        options.append((Team(players[a], players[b]), Team(players[c], players[d])))
    return options


def best_split(players: Sequence[Player], max_diff: int = MAX_TEAM_SCORE_DIFF) -> Tuple[Team, Team]:
    """
    Seat four players as the best-balanced pair of teams.

    Splits inside the gate win (closest match score first); otherwise the split
    with the smallest team-score difference is used.
    """
    def split_key(option):
        team1, team2 = option
        diff = team_score_diff(team1, team2)
        if diff <= max_diff:
            return (0, 0, match_score(team1, team2))
        return (1, diff, match_score(team1, team2))

    return min(split_options(players), key=split_key)


class MatchIdFactory:
    """Sequential, run-scoped match ids with a random suffix drawn from the run's RNG."""

    def __init__(self, rng: random.Random):
        self.rng = rng
        self._sequence = itertools.count(1)

    def new_id(self, prefix: str) -> str:
        return f"match-{prefix}-{next(self._sequence):03d}-{self.rng.getrandbits(32):08x}"
