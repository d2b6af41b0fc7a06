"""
Match construction strategies.

All strategies share one round loop:
1. Build a pool from players still under their game target (topped up with
   the lowest-count players when fewer than four remain)
2. Turn the pool into at most one match per court, never seating a player
   twice in the same round
3. Record the round in the participation counter and repeat until the
   session's match target is reached or the attempt budget runs out

Strategies differ only in how a round pairs players into teams and teams
into matches.
"""

from typing import Dict, List, Optional, Sequence, Set, Type
import itertools
import math
import random

from courtmatch.models import (
    Player, Team, Match, Budget, ParticipationCounter, StrategyKind
)
from courtmatch.core.config import (
    MAX_TEAM_SCORE_DIFF, TEAM_JITTER_SCALE, MIXED_JITTER_SCALE,
    CONSTRUCTION_MAX_ATTEMPTS, CONSTRUCTION_ATTEMPTS_PER_SLOT,
    CONSTRUCTION_MAX_STALLED_ROUNDS, PLAYERS_PER_MATCH
)
from courtmatch.core.exceptions import InsufficientGenderMixError
from courtmatch.core.logging_config import get_logger
from courtmatch.services.candidates import (
    TeamCandidate, MatchIdFactory, build_teams, rank_candidates, make_candidate,
    choose_opponent, is_available
)
from courtmatch.services.scoring import level_group

logger = get_logger(__name__)


def minimum_match_count(player_count: int) -> int:
    """Matches needed for one full pass over the roster."""
    return math.ceil(max(0, player_count) / PLAYERS_PER_MATCH)


def target_match_count(player_count: int, min_games_per_player: int) -> int:
    """
    Matches a session aims for: enough player slots for everyone to reach the
    minimum, and never less than one full pass over the roster.
    """
    slots = player_count * min_games_per_player
    return max(math.ceil(slots / PLAYERS_PER_MATCH), minimum_match_count(player_count))


class MatchStrategy:
    """
    Base class for construction strategies.

    Subclasses implement ``create_round``. The participation counter is owned
    by the caller and updated in place as matches are accepted.
    """

    kind: StrategyKind = None
    id_prefix = "match"
    jitter_scale = TEAM_JITTER_SCALE

    def __init__(self, rng: Optional[random.Random] = None,
                 max_diff: int = MAX_TEAM_SCORE_DIFF,
                 budget: Optional[Budget] = None,
                 id_factory: Optional[MatchIdFactory] = None):
        self.rng = rng or random.Random()
        self.max_diff = max_diff
        self.budget = budget
        self.id_factory = id_factory or MatchIdFactory(self.rng)

    def check_roster(self, players: Sequence[Player]):
        """Raise when the roster cannot be served by this strategy."""

    def max_attempts(self, player_count: int, min_games_per_player: int) -> int:
        if self.budget is not None:
            return self.budget.max_attempts
        return max(
            CONSTRUCTION_MAX_ATTEMPTS,
            player_count * min_games_per_player * CONSTRUCTION_ATTEMPTS_PER_SLOT
        )

    def build(self, players: Sequence[Player], courts: int, min_games_per_player: int,
              counter: ParticipationCounter) -> List[Match]:
        """
        Run construction rounds until the match target is met.

        Args:
            players: Normalized roster
            courts: Matches allowed per round
            min_games_per_player: Per-player game target
            counter: Participation counter, updated in place

        Returns:
            Matches in construction order
        """
        self.check_roster(players)

        target = target_match_count(len(players), min_games_per_player)
        max_attempts = self.max_attempts(len(players), min_games_per_player)

        result: List[Match] = []
        attempts = 0
        stalled = 0
        rounds = 0

        while len(result) < target and attempts < max_attempts:
            attempts += 1
            pool = self.select_pool(players, min_games_per_player, counter)
            if len(pool) < PLAYERS_PER_MATCH:
                break

            round_matches = self.create_round(pool, min(courts, target - len(result)), counter)
            if not round_matches:
                stalled += 1
                if stalled >= CONSTRUCTION_MAX_STALLED_ROUNDS:
                    logger.warning(
                        "%s construction stalled after %d empty rounds",
                        self.kind.value, stalled
                    )
                    break
                continue

            stalled = 0
            rounds += 1
            for match in round_matches:
                result.append(match)
                counter.record_match(match)

        logger.info(
            "%s construction: %d/%d matches in %d rounds (%d attempts)",
            self.kind.value, len(result), target, rounds, attempts
        )
        return result

    def select_pool(self, players: Sequence[Player], min_games_per_player: int,
                    counter: ParticipationCounter) -> List[Player]:
        pool = counter.below(players, min_games_per_player)
        if len(pool) < PLAYERS_PER_MATCH:
            fillers = counter.lowest(
                players,
                PLAYERS_PER_MATCH - len(pool),
                exclude=[p.id for p in pool],
                rng=self.rng
            )
            pool = pool + fillers
        return pool

    def create_round(self, pool: List[Player], max_matches: int,
                     counter: ParticipationCounter) -> List[Match]:
        raise NotImplementedError

    def new_match(self, team1: Team, team2: Team, court: int) -> Match:
        return Match(
            id=self.id_factory.new_id(self.id_prefix),
            team1=team1,
            team2=team2,
            court=court
        )

    def find_opponent(self, first: TeamCandidate, ranked: List[TeamCandidate],
                      used: Set[str], allow_fallback: bool) -> Optional[TeamCandidate]:
        return choose_opponent(first, ranked, used, self.max_diff, allow_fallback)

    def pair_ranked(self, ranked: List[TeamCandidate], max_matches: int,
                    allow_fallback: bool) -> List[Match]:
        """Greedy pass: best remaining team takes its best remaining opponent."""
        used: Set[str] = set()
        matches: List[Match] = []

        for first in ranked:
            if len(matches) >= max_matches:
                break
            if not is_available(first, used):
                continue

            opponent = self.find_opponent(first, ranked, used, allow_fallback)
            if opponent is None:
                continue

            matches.append(self.new_match(first.team, opponent.team, court=len(matches) + 1))
            used.update(first.player_ids)
            used.update(opponent.player_ids)

        return matches


class SkillBalancedStrategy(MatchStrategy):
    """
    Ranks every possible team by fairness and score, then pairs each team with
    the closest opponent inside the gate. The gate is strict; the best
    available opponent is only accepted when a round would otherwise be empty.
    """

    kind = StrategyKind.SKILL_BALANCED
    id_prefix = "balanced"

    def create_round(self, pool, max_matches, counter):
        ranked = build_teams(pool, self.rng, self.jitter_scale)
        matches = self.pair_ranked(ranked, max_matches, allow_fallback=False)
        if not matches:
            matches = self.pair_ranked(ranked, max_matches, allow_fallback=True)
        return matches


class RandomBalancedStrategy(MatchStrategy):
    """
    Shuffles the pool and pairs partners from different skill groups where it
    can, so teams stay mixed even though selection is random. Teams are then
    matched by score under the gate.
    """

    kind = StrategyKind.RANDOM_BALANCED
    id_prefix = "random"

    def create_round(self, pool, max_matches, counter):
        order = list(pool)
        self.rng.shuffle(order)
        # Low counts first, random within ties
        order.sort(key=lambda p: counter[p.id])

        used: Set[str] = set()
        teams: List[TeamCandidate] = []

        for i, player in enumerate(order):
            if player.id in used:
                continue

            group = level_group(player.skill_level)
            partner = None
            same_group = None
            for other in reversed(order[i + 1:]):
                if other.id in used:
                    continue
                if level_group(other.skill_level) != group:
                    partner = other
                    break
                if same_group is None:
                    same_group = other

            partner = partner or same_group
            if partner is None:
                continue

            teams.append(make_candidate(player, partner))
            used.update((player.id, partner.id))

        teams.sort(key=lambda t: t.score)
        return self.pair_ranked(teams, max_matches, allow_fallback=True)


class MixedGenderStrategy(MatchStrategy):
    """
    Builds male + female teams first. When one gender runs out the preference
    falls back to unspecified + male, unspecified + female, same-gender pairs
    and finally unspecified pairs. Opponents are searched tier by tier so a
    mixed team only meets a same-gender team when no mixed opponent fits the
    gate.
    """

    kind = StrategyKind.MIXED_GENDER
    id_prefix = "mixed"
    jitter_scale = MIXED_JITTER_SCALE

    MIXED = 0
    UNSPECIFIED_MALE = 1
    UNSPECIFIED_FEMALE = 2
    SAME_GENDER = 3
    UNSPECIFIED_PAIR = 4

    def check_roster(self, players):
        males = sum(1 for p in players if p.is_male)
        females = sum(1 for p in players if p.is_female)
        if males < 2 or females < 2:
            raise InsufficientGenderMixError(males, females)

    def build_candidates(self, pool: List[Player]) -> List[TeamCandidate]:
        males = [p for p in pool if p.is_male]
        females = [p for p in pool if p.is_female]
        others = [p for p in pool if not p.is_male and not p.is_female]

        candidates = []
        for m in males:
            for f in females:
                candidates.append(make_candidate(m, f, self.MIXED))
        for u in others:
            for m in males:
                candidates.append(make_candidate(u, m, self.UNSPECIFIED_MALE))
            for f in females:
                candidates.append(make_candidate(u, f, self.UNSPECIFIED_FEMALE))
        for a, b in itertools.chain(itertools.combinations(males, 2), itertools.combinations(females, 2)):
            candidates.append(make_candidate(a, b, self.SAME_GENDER))
        for a, b in itertools.combinations(others, 2):
            candidates.append(make_candidate(a, b, self.UNSPECIFIED_PAIR))

        return rank_candidates(candidates, self.rng, self.jitter_scale)

    def find_opponent(self, first, ranked, used, allow_fallback):
        by_preference: Dict[int, List[TeamCandidate]] = {}
        for candidate in ranked:
            by_preference.setdefault(candidate.preference, []).append(candidate)

        for preference in sorted(by_preference):
            opponent = choose_opponent(
                first, by_preference[preference], used, self.max_diff, allow_fallback=False
            )
            if opponent is not None:
                return opponent

        if not allow_fallback:
            return None
        return choose_opponent(first, ranked, used, self.max_diff, allow_fallback=True)

    def create_round(self, pool, max_matches, counter):
        ranked = self.build_candidates(pool)
        return self.pair_ranked(ranked, max_matches, allow_fallback=True)


STRATEGIES: Dict[StrategyKind, Type[MatchStrategy]] = {
    StrategyKind.SKILL_BALANCED: SkillBalancedStrategy,
    StrategyKind.RANDOM_BALANCED: RandomBalancedStrategy,
    StrategyKind.MIXED_GENDER: MixedGenderStrategy,
}


def get_strategy(kind, **kwargs) -> MatchStrategy:
    """Instantiate the strategy for a StrategyKind or its name."""
    return STRATEGIES[StrategyKind.parse(kind)](**kwargs)
