"""
Match generation engine.

Pipeline: construction strategy -> coverage repair -> (optional) balance
refinement -> sequencing -> court assignment. The engine is a pure function
of its inputs: rosters and match lists passed in are never mutated, and all
randomness comes from one ``random.Random`` owned by the run.
"""

from typing import List, Optional, Sequence
import random

from courtmatch.models import (
    Player, Match, Budget, ParticipationCounter, Schedule, StrategyKind,
    normalize_level
)
from courtmatch.core.config import (
    DEFAULT_COURTS, DEFAULT_MIN_GAMES_PER_PLAYER, DEFAULT_STRATEGY,
    MAX_TEAM_SCORE_DIFF, MIN_PLAYERS, LARGE_ROSTER_WARNING
)
from courtmatch.core.exceptions import (
    InvalidRosterError, InsufficientGenderMixError,
    INSUFFICIENT_PLAYERS, INSUFFICIENT_GENDER_MIX, COVERAGE_SHORTFALL, BALANCE_SHORTFALL
)
from courtmatch.core.logging_config import get_logger
from courtmatch.services.balancing import MatchBalancer
from courtmatch.services.candidates import MatchIdFactory
from courtmatch.services.coverage import CoverageRepair
from courtmatch.services.scoring import max_score_diff
from courtmatch.services.sequencing import sequence_matches
from courtmatch.services.strategies import get_strategy, target_match_count

logger = get_logger(__name__)


def normalize_player(player: Player) -> Player:
    return Player(
        id=str(player.id),
        name=player.name,
        skill_level=normalize_level(player.skill_level),
        gender=player.gender,
    )


def assign_courts(matches: Sequence[Match], courts: int) -> List[Match]:
    """Number courts round-robin in play order."""
    return [match.with_court((index % courts) + 1) for index, match in enumerate(matches)]


class MatchEngine:
    """
    Generates a doubles schedule for one session.

    Args:
        players: Roster (at least 4 players for a non-empty schedule)
        courts: Courts available; also the number of matches per round
        min_games_per_player: Game target every player should reach
        strategy: StrategyKind or its name
        rng: Random source; defaults to ``random.Random(seed)``
        seed: Seed used when no ``rng`` is given
        max_diff: Fairness gate on team-score difference
        optimize: Run balance refinement before sequencing
        construction_budget / rescue_budget / balancing_budget / sequencing_budget:
            Per-phase iteration caps; defaults come from config
    """

    def __init__(self, players: Sequence[Player], courts: int = DEFAULT_COURTS,
                 min_games_per_player: int = DEFAULT_MIN_GAMES_PER_PLAYER,
                 strategy=DEFAULT_STRATEGY, rng: Optional[random.Random] = None,
                 seed: Optional[int] = None, max_diff: int = MAX_TEAM_SCORE_DIFF,
                 optimize: bool = False,
                 construction_budget: Optional[Budget] = None,
                 rescue_budget: Optional[Budget] = None,
                 balancing_budget: Optional[Budget] = None,
                 sequencing_budget: Optional[Budget] = None):
        if courts < 1:
            raise InvalidRosterError(f"courts must be at least 1, got {courts}")
        if min_games_per_player < 1:
            raise InvalidRosterError(
                f"min_games_per_player must be at least 1, got {min_games_per_player}"
            )

        self.players = [normalize_player(p) for p in players]
        ids = [p.id for p in self.players]
        duplicates = sorted({pid for pid in ids if ids.count(pid) > 1})
        if duplicates:
            raise InvalidRosterError(f"Duplicate player ids in roster: {', '.join(duplicates)}")

        self.courts = courts
        self.min_games_per_player = min_games_per_player
        self.strategy = StrategyKind.parse(strategy)
        self.rng = rng or random.Random(seed)
        self.max_diff = max_diff
        self.optimize = optimize
        self.construction_budget = construction_budget
        self.rescue_budget = rescue_budget
        self.balancing_budget = balancing_budget
        self.sequencing_budget = sequencing_budget
        self.id_factory = MatchIdFactory(self.rng)

    def generate(self) -> Schedule:
        schedule = Schedule(strategy=self.strategy, courts=self.courts)
        counter = ParticipationCounter.for_roster(self.players)

        if len(self.players) < MIN_PLAYERS:
            logger.warning(
                "Need at least %d players for doubles, got %d; returning empty schedule",
                MIN_PLAYERS, len(self.players)
            )
            schedule.participation = counter.as_dict()
            schedule.issues.append(INSUFFICIENT_PLAYERS)
            return schedule

        if len(self.players) > LARGE_ROSTER_WARNING:
            logger.warning(
                "Roster of %d players is large; consider splitting it into groups",
                len(self.players)
            )

        logger.info(
            "Generating %s matches: %d players, %d courts, %d game(s) each",
            self.strategy.value, len(self.players), self.courts, self.min_games_per_player
        )

        strategy = get_strategy(
            self.strategy,
            rng=self.rng,
            max_diff=self.max_diff,
            budget=self.construction_budget,
            id_factory=self.id_factory
        )
        matches = strategy.build(self.players, self.courts, self.min_games_per_player, counter)

        repair = CoverageRepair(
            rng=self.rng,
            max_diff=self.max_diff,
            rescue_budget=self.rescue_budget,
            id_factory=self.id_factory
        )
        match_budget = target_match_count(len(self.players), self.min_games_per_player)
        matches = repair.repair(
            self.players, matches, self.courts, self.min_games_per_player, counter, match_budget
        )

        if self.optimize:
            balancer = MatchBalancer(
                rng=self.rng, target_diff=self.max_diff, budget=self.balancing_budget
            )
            matches = balancer.optimize(matches)

        matches = sequence_matches(matches, self.sequencing_budget)
        schedule.matches = assign_courts(matches, self.courts)
        schedule.participation = counter.as_dict()

        if counter.any_below(self.players, self.min_games_per_player):
            schedule.issues.append(COVERAGE_SHORTFALL)
        worst = max_score_diff(schedule.matches)
        if worst > self.max_diff:
            schedule.issues.append(BALANCE_SHORTFALL)
            logger.warning("Balance shortfall: worst team-score difference is %d", worst)

        logger.info(
            "Generated %d matches covering %d players",
            schedule.total_matches, schedule.unique_player_count()
        )
        return schedule


def generate_matches(players: Sequence[Player], courts: int = DEFAULT_COURTS,
                     min_games_per_player: int = DEFAULT_MIN_GAMES_PER_PLAYER,
                     strategy=DEFAULT_STRATEGY, fallback_to_balanced: bool = False,
                     **kwargs) -> Schedule:
    """
    Generate a schedule for a roster.

    With ``fallback_to_balanced`` a mixed-gender request on a roster without
    two players of each gender is re-run as skill-balanced and flagged with
    the ``insufficient_gender_mix`` issue; otherwise the error propagates.
    """
    try:
        return MatchEngine(players, courts, min_games_per_player, strategy, **kwargs).generate()
    except InsufficientGenderMixError as e:
        if not fallback_to_balanced:
            raise
        logger.warning("%s; falling back to skill-balanced matches", e)
        schedule = MatchEngine(
            players, courts, min_games_per_player, StrategyKind.SKILL_BALANCED, **kwargs
        ).generate()
        schedule.issues.insert(0, INSUFFICIENT_GENDER_MIX)
        return schedule


def optimize_balance(matches: Sequence[Match], rng: Optional[random.Random] = None,
                     seed: Optional[int] = None, max_diff: int = MAX_TEAM_SCORE_DIFF,
                     budget: Optional[Budget] = None) -> List[Match]:
    """Refine team balance of any match list; the input list is left untouched."""
    balancer = MatchBalancer(rng=rng or random.Random(seed), target_diff=max_diff, budget=budget)
    return balancer.optimize(matches)
