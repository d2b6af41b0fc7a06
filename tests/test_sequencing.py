"""
Tests for play-order sequencing.
"""

import sys
import os
import random

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from courtmatch.models import Player, Team, Match, Budget
from courtmatch.services.sequencing import sequence_matches, count_adjacent_conflicts
from courtmatch.services.engine import assign_courts


def players(*ids):
    return [Player(id=pid, name=pid.upper()) for pid in ids]


def make_match(match_id, ids):
    a, b, c, d = players(*ids)
    return Match(id=match_id, team1=Team(a, b), team2=Team(c, d))


def test_moves_clashing_match_apart():
    """A later independent match is pulled between two matches that share a player."""
    print("Testing back-to-back separation...")

    matches = [
        make_match("m1", ["a", "b", "c", "d"]),
        make_match("m2", ["a", "e", "f", "g"]),
        make_match("m3", ["h", "i", "j", "k"]),
    ]
    assert count_adjacent_conflicts(matches) == 1

    ordered = sequence_matches(matches)

    assert [m.id for m in ordered] == ["m1", "m3", "m2"]
    assert count_adjacent_conflicts(ordered) == 0
    assert [m.id for m in matches] == ["m1", "m2", "m3"]

    print("[PASS] Back-to-back separation test passed")


def test_result_is_permutation():
    rng = random.Random(8)
    roster = [f"p{i}" for i in range(10)]
    matches = [make_match(f"m{i}", rng.sample(roster, 4)) for i in range(12)]

    ordered = sequence_matches(matches)

    assert sorted(m.id for m in ordered) == sorted(m.id for m in matches)
    assert count_adjacent_conflicts(ordered) <= count_adjacent_conflicts(matches)


def test_unavoidable_conflicts_are_left_in_place():
    matches = [
        make_match("m1", ["a", "b", "c", "d"]),
        make_match("m2", ["a", "e", "f", "g"]),
        make_match("m3", ["a", "h", "i", "j"]),
    ]

    ordered = sequence_matches(matches)

    assert [m.id for m in ordered] == ["m1", "m2", "m3"]
    assert count_adjacent_conflicts(ordered) == 2


def test_trivial_inputs_and_zero_budget():
    single = [make_match("m1", ["a", "b", "c", "d"])]
    assert sequence_matches([]) == []
    assert [m.id for m in sequence_matches(single)] == ["m1"]

    matches = [
        make_match("m1", ["a", "b", "c", "d"]),
        make_match("m2", ["a", "e", "f", "g"]),
        make_match("m3", ["h", "i", "j", "k"]),
    ]
    assert [m.id for m in sequence_matches(matches, Budget(0))] == ["m1", "m2", "m3"]


def test_assign_courts_round_robin():
    matches = [make_match(f"m{i}", ["a", "b", "c", "d"]) for i in range(5)]

    courted = assign_courts(matches, 2)

    assert [m.court for m in courted] == [1, 2, 1, 2, 1]
    assert all(m.court == 1 for m in matches)


def run_all_tests():
    """Run all tests."""
    print("=" * 60)
    print("Running Sequencing Tests")
    print("=" * 60)

    test_moves_clashing_match_apart()
    test_result_is_permutation()
    test_unavoidable_conflicts_are_left_in_place()
    test_trivial_inputs_and_zero_budget()
    test_assign_courts_round_robin()

    print("=" * 60)
    print("ALL TESTS PASSED!")
    print("=" * 60)


if __name__ == '__main__':
    run_all_tests()
