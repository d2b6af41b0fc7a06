"""
Tests for local-search balance refinement.
"""

import sys
import os
import random
from collections import Counter

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from courtmatch.models import Player, Team, Match, Budget
from courtmatch.services.balancing import MatchBalancer
from courtmatch.services.engine import optimize_balance
from courtmatch.services.scoring import match_score_diff, max_score_diff, total_score_diff

LEVELS = ["E2", "E1", "D2", "D1", "C2", "C1", "B2", "B1", "A2", "A1"]


def make_match(match_id, players):
    a, b, c, d = players
    return Match(id=match_id, team1=Team(a, b), team2=Team(c, d))


def random_matches(count, roster_size, seed):
    rng = random.Random(seed)
    roster = [
        Player(id=f"p{i}", name=f"Player {i}", skill_level=rng.choice(LEVELS))
        for i in range(roster_size)
    ]
    return [make_match(f"m{i}", rng.sample(roster, 4)) for i in range(count)]


def participation(matches):
    return Counter(pid for m in matches for pid in m.player_ids)


def test_resplit_fixes_lopsided_match():
    """C1+C1 against D2+D2 (diff 6) is re-split into two even teams in one call."""
    print("Testing single-match re-split...")

    players = [
        Player(id="c1", name="C1", skill_level="C1"),
        Player(id="c2", name="C2", skill_level="C1"),
        Player(id="d1", name="D1", skill_level="D2"),
        Player(id="d2", name="D2", skill_level="D2"),
    ]
    matches = [make_match("m1", players)]
    assert match_score_diff(matches[0]) == 6

    optimized = optimize_balance(matches, seed=1)

    assert match_score_diff(optimized[0]) == 0
    assert set(optimized[0].player_ids) == set(matches[0].player_ids)
    assert optimized[0].id == "m1"
    assert match_score_diff(matches[0]) == 6

    print("[PASS] Single-match re-split test passed")


def test_never_worse_and_counts_preserved():
    """Refinement never raises the worst gap and never changes anyone's game count."""
    print("Testing balance refinement invariants...")

    for seed in range(6):
        matches = random_matches(8, 14, seed)
        balancer = MatchBalancer(rng=random.Random(seed), budget=Budget(3000))
        optimized = balancer.optimize(matches)

        assert len(optimized) == len(matches)
        assert [m.id for m in optimized] == [m.id for m in matches]
        assert max_score_diff(optimized) <= max_score_diff(matches)
        assert participation(optimized) == participation(matches)
        for match in optimized:
            assert len(set(match.player_ids)) == 4

    print("[PASS] Balance refinement invariants test passed")


def test_idempotent_or_improving():
    matches = random_matches(6, 12, seed=9)

    once = optimize_balance(matches, seed=9, budget=Budget(2000))
    twice = optimize_balance(once, seed=10, budget=Budget(2000))

    assert max_score_diff(twice) <= max_score_diff(once)


def test_balanced_input_is_returned_unchanged():
    players = [Player(id=f"p{i}", name=f"P{i}", skill_level="B1") for i in range(8)]
    matches = [make_match("m1", players[:4]), make_match("m2", players[4:])]

    optimized = optimize_balance(matches, seed=0)

    assert [m.player_ids for m in optimized] == [m.player_ids for m in matches]


def test_zero_budget_and_empty_input():
    matches = random_matches(3, 8, seed=5)

    assert optimize_balance([], seed=1) == []
    unchanged = optimize_balance(matches, seed=1, budget=Budget(0))
    assert [m.player_ids for m in unchanged] == [m.player_ids for m in matches]


def test_strict_target_uses_cross_match_swaps():
    """With a zero target the off-by-one matches are swapped against each other."""
    a1 = Player(id="a1", name="A1", skill_level="A1")
    a2 = Player(id="a2", name="A2", skill_level="A1")
    b1 = Player(id="b1", name="B1", skill_level="A2")
    b2 = Player(id="b2", name="B2", skill_level="A2")
    e = [Player(id=f"e{i}", name=f"E{i}", skill_level="E2") for i in range(4)]
    # Each match is 11 vs 10
    matches = [
        make_match("m1", [a1, e[0], b1, e[1]]),
        make_match("m2", [a2, e[2], b2, e[3]]),
    ]

    balancer = MatchBalancer(rng=random.Random(4), target_diff=0, budget=Budget(5000))
    optimized = balancer.optimize(matches)

    assert max_score_diff(optimized) <= 1
    assert total_score_diff(optimized) <= total_score_diff(matches)
    assert participation(optimized) == participation(matches)


def test_stagnation_ends_strict_search():
    """Two off-by-one matches that only trade one player can never reach zero."""
    shared = [
        Player(id="s1", name="S1", skill_level="C1"),
        Player(id="s2", name="S2", skill_level="C1"),
        Player(id="s3", name="S3", skill_level="C2"),
    ]
    low = Player(id="x", name="X", skill_level="D1")
    high = Player(id="y", name="Y", skill_level="C1")
    # 10 vs 11 and 12 vs 11; the only legal swap trades x and y
    matches = [
        make_match("m1", [low, shared[0], shared[1], shared[2]]),
        make_match("m2", [high, shared[0], shared[1], shared[2]]),
    ]

    balancer = MatchBalancer(
        rng=random.Random(2), target_diff=0, budget=Budget(5000), stagnation_limit=25
    )
    optimized = balancer.optimize(matches)

    assert balancer.iterations == 25
    assert max_score_diff(optimized) <= max_score_diff(matches)
    assert total_score_diff(optimized) <= total_score_diff(matches)
    assert participation(optimized) == participation(matches)


def run_all_tests():
    """Run all tests."""
    print("=" * 60)
    print("Running Balancing Tests")
    print("=" * 60)

    test_resplit_fixes_lopsided_match()
    test_never_worse_and_counts_preserved()
    test_idempotent_or_improving()
    test_balanced_input_is_returned_unchanged()
    test_zero_budget_and_empty_input()
    test_strict_target_uses_cross_match_swaps()
    test_stagnation_ends_strict_search()

    print("=" * 60)
    print("ALL TESTS PASSED!")
    print("=" * 60)


if __name__ == '__main__':
    run_all_tests()
