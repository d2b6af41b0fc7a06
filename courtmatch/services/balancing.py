"""
Local-search refinement of team balance across an existing match list.
"""

from typing import List, Optional, Sequence, Tuple
import random

from courtmatch.models import Match, Budget
from courtmatch.core.config import (
    MAX_TEAM_SCORE_DIFF, BALANCING_MAX_ITERATIONS, BALANCING_STAGNATION_LIMIT,
    BAD_MATCH_DIFF, NEAR_MATCH_DIFF
)
from courtmatch.core.logging_config import get_logger
from courtmatch.services.candidates import split_options
from courtmatch.services.scoring import match_score_diff, team_score_diff, match_score

logger = get_logger(__name__)

SLOTS = range(4)


class MatchBalancer:
    """
    Hill-climbing search that lowers the largest team-score gap in a schedule.

    Each iteration either re-splits the worst match (diff >= 2), or, once only
    off-by-one matches remain above the target, swaps a random player between
    two of them to escape local optima. When the worst match cannot be
    re-split any better one of its players is exchanged with another match.
    Moves never seat a player twice in one match and never change how many
    matches a player has.

    The best schedule seen (by max diff, then total diff) is returned, so the
    result is never worse than the input. It is not guaranteed optimal: the
    search stops after ``stagnation_limit`` iterations without a new best max
    diff once every match is within one point, which can end on a plateau.
    """

    def __init__(self, rng: Optional[random.Random] = None,
                 target_diff: int = MAX_TEAM_SCORE_DIFF,
                 budget: Optional[Budget] = None,
                 stagnation_limit: int = BALANCING_STAGNATION_LIMIT):
        self.rng = rng or random.Random()
        self.target_diff = target_diff
        self.budget = budget or Budget(BALANCING_MAX_ITERATIONS)
        self.stagnation_limit = stagnation_limit
        self.iterations = 0

    def optimize(self, matches: Sequence[Match]) -> List[Match]:
        current = list(matches)
        if not current:
            return current

        diffs = [match_score_diff(m) for m in current]
        best = list(current)
        best_key = self._schedule_key(diffs)
        starting_max = best_key[0]
        stagnant = 0
        iterations = 0

        while iterations < self.budget.max_attempts:
            if max(diffs) <= self.target_diff:
                break
            iterations += 1

            bad = [i for i, d in enumerate(diffs) if d >= BAD_MATCH_DIFF]
            near = [i for i, d in enumerate(diffs) if d == NEAR_MATCH_DIFF]

            if bad:
                worst = max(bad, key=lambda i: diffs[i])
                changed = self._resplit(current, worst, diffs[worst])
                if not changed:
                    changed = self._explore_from(current, worst)
            elif len(near) >= 2:
                first, second = self.rng.sample(near, 2)
                changed = self._random_swap(current, first, second)
            else:
                changed = []

            if not changed:
                logger.debug("No balancing move available after %d iterations", iterations)
                break

            for index in changed:
                diffs[index] = match_score_diff(current[index])

            key = self._schedule_key(diffs)
            if key[0] < best_key[0]:
                stagnant = 0
            else:
                stagnant += 1
            if key < best_key:
                best = list(current)
                best_key = key

            if stagnant >= self.stagnation_limit and max(diffs) <= NEAR_MATCH_DIFF:
                break

        self.iterations = iterations
        logger.info(
            "Balancing: max diff %d -> %d after %d iterations",
            starting_max, best_key[0], iterations
        )
        return best

    @staticmethod
    def _schedule_key(diffs: List[int]) -> Tuple[int, int]:
        return (max(diffs), sum(diffs))

    def _resplit(self, current: List[Match], index: int, diff: int) -> List[int]:
        match = current[index]

        def split_key(option):
            team1, team2 = option
            return (team_score_diff(team1, team2), match_score(team1, team2))

        team1, team2 = min(split_options(match.players), key=split_key)
        if team_score_diff(team1, team2) >= diff:
            return []
        current[index] = match.with_players([*team1.players, *team2.players])
        return [index]

    def _swap(self, current: List[Match], i: int, slot_i: int, j: int, slot_j: int) -> bool:
        a = current[i].players[slot_i]
        b = current[j].players[slot_j]
        if current[i].involves_player(b.id) or current[j].involves_player(a.id):
            return False
        current[i] = current[i].replace_player(a.id, b)
        current[j] = current[j].replace_player(b.id, a)
        return True

    def _slot_pairs(self) -> List[Tuple[int, int]]:
        pairs = [(s, t) for s in SLOTS for t in SLOTS]
        self.rng.shuffle(pairs)
        return pairs

    def _random_swap(self, current: List[Match], i: int, j: int) -> List[int]:
        for slot_i, slot_j in self._slot_pairs():
            if self._swap(current, i, slot_i, j, slot_j):
                return [i, j]
        return []

    def _explore_from(self, current: List[Match], index: int) -> List[int]:
        others = [j for j in range(len(current)) if j != index]
        self.rng.shuffle(others)
        for other in others:
            changed = self._random_swap(current, index, other)
            if changed:
                return changed
        return []

