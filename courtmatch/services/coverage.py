"""
Coverage repair after construction.

Phase 1 (zero-game rescue) appends matches for players who were never
seated, as long as the session's match budget allows it.
Phase 2 (swap repair) seats under-served players in existing matches in
place of players who are already above the game target, keeping the match
count fixed.
"""

from typing import List, Optional, Sequence, Tuple
import random

from courtmatch.models import Player, Match, Budget, ParticipationCounter
from courtmatch.core.config import (
    MAX_TEAM_SCORE_DIFF, RESCUE_MAX_ATTEMPTS, PLAYERS_PER_MATCH
)
from courtmatch.core.logging_config import get_logger
from courtmatch.services.candidates import MatchIdFactory, best_split
from courtmatch.services.scoring import match_score_diff

logger = get_logger(__name__)


class CoverageRepair:
    """
    Guarantees every player gets on court.

    After ``repair`` no roster player is left at zero matches as long as some
    seated player is above the game target, and players below the target are
    topped up where a gated swap exists. Anyone still short is reported
    through the participation counter, not raised.
    """

    id_prefix = "rescue"

    def __init__(self, rng: Optional[random.Random] = None,
                 max_diff: int = MAX_TEAM_SCORE_DIFF,
                 rescue_budget: Optional[Budget] = None,
                 id_factory: Optional[MatchIdFactory] = None):
        self.rng = rng or random.Random()
        self.max_diff = max_diff
        self.rescue_budget = rescue_budget or Budget(RESCUE_MAX_ATTEMPTS)
        self.id_factory = id_factory or MatchIdFactory(self.rng)

    def repair(self, players: Sequence[Player], matches: List[Match], courts: int,
               min_games_per_player: int, counter: ParticipationCounter,
               match_budget: int) -> List[Match]:
        """
        Run both repair phases.

        Args:
            players: Normalized roster
            matches: Constructed matches (not mutated)
            courts: Courts available, for court numbers of rescue matches
            min_games_per_player: Per-player game target
            counter: Participation counter, updated in place
            match_budget: Maximum number of matches the session should hold

        Returns:
            Repaired match list
        """
        repaired = list(matches)
        self.rescue_zero_game_players(players, repaired, courts, counter, match_budget)
        self.swap_in_underserved(players, repaired, min_games_per_player, counter)

        short = counter.below(players, min_games_per_player)
        if short:
            logger.warning(
                "Coverage shortfall: %d player(s) below %d game(s): %s",
                len(short), min_games_per_player,
                ", ".join(f"{p.label}={counter[p.id]}" for p in short)
            )
        return repaired

    def rescue_zero_game_players(self, players: Sequence[Player], matches: List[Match],
                                 courts: int, counter: ParticipationCounter,
                                 match_budget: int) -> int:
        """Append matches built around zero-game players. Returns how many were added."""
        added = 0
        attempts = 0

        while attempts < self.rescue_budget.max_attempts:
            zero = counter.zero(players)
            if not zero or len(matches) >= match_budget:
                break
            attempts += 1

            self.rng.shuffle(zero)
            picks = zero[:2]
            fillers = counter.lowest(
                players,
                PLAYERS_PER_MATCH - len(picks),
                exclude=[p.id for p in picks],
                rng=self.rng
            )
            four = picks + fillers
            if len(four) < PLAYERS_PER_MATCH:
                break

            team1, team2 = best_split(four, self.max_diff)
            match = Match(
                id=self.id_factory.new_id(self.id_prefix),
                team1=team1,
                team2=team2,
                court=(len(matches) % courts) + 1
            )
            matches.append(match)
            counter.record_match(match)
            added += 1
            logger.info("Rescue match for %s: %s", ", ".join(p.label for p in picks), match)

        return added

    def swap_in_underserved(self, players: Sequence[Player], matches: List[Match],
                            min_games_per_player: int, counter: ParticipationCounter) -> int:
        """Substitute under-served players into existing matches. Returns swaps made."""
        swaps = 0
        needy = counter.below(players, min_games_per_player)
        needy.sort(key=lambda p: counter[p.id])

        for player in needy:
            while counter[player.id] < min_games_per_player:
                swap = self._find_swap(player, matches, min_games_per_player, counter, gated=True)
                if swap is None and counter[player.id] == 0:
                    # Nobody may stay at zero; take the least unbalanced seat instead
                    swap = self._find_swap(player, matches, min_games_per_player, counter, gated=False)
                    if swap is not None:
                        logger.warning(
                            "No seat within the fairness gate for %s; using closest match %s",
                            player.label, matches[swap[0]].id
                        )
                if swap is None:
                    break

                index, occupant_id, new_match = swap
                matches[index] = new_match
                counter.release(occupant_id)
                counter.add(player.id)
                swaps += 1

        return swaps

    def _find_swap(self, player: Player, matches: List[Match], min_games_per_player: int,
                   counter: ParticipationCounter, gated: bool) -> Optional[Tuple[int, str, Match]]:
        best = None
        best_key = None

        for index, match in enumerate(matches):
            if match.involves_player(player.id):
                continue
            for occupant in match.players:
                if counter[occupant.id] <= min_games_per_player:
                    continue
                candidate = match.replace_player(occupant.id, player)
                diff = match_score_diff(candidate)
                if gated and diff > self.max_diff:
                    continue
                # Closest match first, then relieve the busiest player
                key = (diff, -counter[occupant.id])
                if best_key is None or key < best_key:
                    best, best_key = (index, occupant.id, candidate), key

        return best
