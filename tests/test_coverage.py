"""
Tests for coverage repair: zero-game rescue and under-served swaps.
"""

import sys
import os
import random

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from courtmatch.models import Player, Team, Match, Budget, ParticipationCounter
from courtmatch.services.coverage import CoverageRepair
from courtmatch.services.scoring import match_score_diff


def make_players(levels):
    return [Player(id=f"p{i}", name=f"Player {i}", skill_level=level) for i, level in enumerate(levels)]


def make_match(match_id, players):
    a, b, c, d = players
    return Match(id=match_id, team1=Team(a, b), team2=Team(c, d))


def test_rescue_appends_match_for_zero_game_players():
    """Players never seated get a rescue match while the match budget allows."""
    print("Testing zero-game rescue...")

    players = make_players(["C1"] * 8)
    matches = [make_match("m1", players[:4])]
    counter = ParticipationCounter.from_matches(players, matches)

    repair = CoverageRepair(rng=random.Random(1))
    repaired = repair.repair(players, matches, courts=2, min_games_per_player=1,
                             counter=counter, match_budget=2)

    assert len(repaired) == 2
    assert repaired[1].id.startswith("match-rescue-")
    assert repaired[1].court == 2
    assert not counter.zero(players)
    assert len(matches) == 1

    print("[PASS] Zero-game rescue test passed")


def test_rescue_respects_match_budget():
    players = make_players(["C1"] * 8)
    matches = [make_match("m1", players[:4])]
    counter = ParticipationCounter.from_matches(players, matches)

    added = CoverageRepair(rng=random.Random(1)).rescue_zero_game_players(
        players, list(matches), 2, counter, match_budget=1
    )

    assert added == 0
    assert len(counter.zero(players)) == 4


def test_rescue_budget_limits_attempts():
    players = make_players(["C1"] * 12)
    matches = [make_match("m1", players[:4])]
    counter = ParticipationCounter.from_matches(players, matches)
    working = list(matches)

    added = CoverageRepair(rng=random.Random(1), rescue_budget=Budget(1)).rescue_zero_game_players(
        players, working, 2, counter, match_budget=10
    )

    assert added == 1
    assert len(working) == 2


def test_swap_seats_underserved_player_within_gate():
    """With the match count fixed, a zero-game player replaces someone above the target."""
    print("Testing gated swap repair...")

    players = make_players(["C1"] * 5)
    matches = [make_match("m1", players[:4]), make_match("m2", players[:4])]
    counter = ParticipationCounter.from_matches(players, matches)

    repaired = CoverageRepair(rng=random.Random(2)).repair(
        players, matches, courts=2, min_games_per_player=1, counter=counter, match_budget=2
    )

    assert len(repaired) == 2
    assert counter["p4"] == 1
    assert sum(counter[p.id] for p in players) == 8
    assert all(counter[p.id] >= 1 for p in players)
    assert all(match_score_diff(m) == 0 for m in repaired)
    assert counter.as_dict() == ParticipationCounter.from_matches(players, repaired).as_dict()

    print("[PASS] Gated swap repair test passed")


def test_forced_swap_when_no_gated_seat():
    """Nobody stays at zero even when every available seat breaks the gate."""
    players = make_players(["A1", "A1", "A1", "A1", "E2"])
    matches = [make_match("m1", players[:4]), make_match("m2", players[:4])]
    counter = ParticipationCounter.from_matches(players, matches)

    repaired = CoverageRepair(rng=random.Random(3)).repair(
        players, matches, courts=2, min_games_per_player=1, counter=counter, match_budget=2
    )

    assert counter["p4"] == 1
    assert not counter.zero(players)
    assert max(match_score_diff(m) for m in repaired) == 9


def test_shortfall_is_reported_not_raised():
    """Players who cannot reach the target are left short without an error."""
    players = make_players(["C1"] * 5)
    matches = [make_match("m1", players[:4])]
    counter = ParticipationCounter.from_matches(players, matches)

    repaired = CoverageRepair(rng=random.Random(4)).repair(
        players, matches, courts=1, min_games_per_player=2, counter=counter, match_budget=1
    )

    assert len(repaired) == 1
    assert counter["p4"] == 0
    assert len(counter.below(players, 2)) == 5


def run_all_tests():
    """Run all tests."""
    print("=" * 60)
    print("Running Coverage Repair Tests")
    print("=" * 60)

    test_rescue_appends_match_for_zero_game_players()
    test_rescue_respects_match_budget()
    test_rescue_budget_limits_attempts()
    test_swap_seats_underserved_player_within_gate()
    test_forced_swap_when_no_gated_seat()
    test_shortfall_is_reported_not_raised()

    print("=" * 60)
    print("ALL TESTS PASSED!")
    print("=" * 60)


if __name__ == '__main__':
    run_all_tests()
