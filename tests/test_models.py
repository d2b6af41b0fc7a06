"""
Tests for the core data models: players, teams, matches, counters and schedules.
"""

import sys
import os

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from courtmatch.models import (
    Player, Team, Match, Budget, ParticipationCounter, Schedule, Gender, StrategyKind,
    normalize_level, parse_gender
)


def make_players(count, level="C1"):
    return [Player(id=f"p{i}", name=f"Player {i}", skill_level=level) for i in range(count)]


def test_normalize_level():
    """Level codes are trimmed and upper-cased, defaulting to E2."""
    print("Testing level normalization...")

    assert normalize_level(" c1 ") == "C1"
    assert normalize_level("a2") == "A2"
    assert normalize_level(None) == "E2"
    assert normalize_level("   ") == "E2"

    print("[PASS] Level normalization test passed")


def test_parse_gender():
    print("Testing gender parsing...")

    assert parse_gender("M") == Gender.MALE
    assert parse_gender(" Man ") == Gender.MALE
    assert parse_gender("female") == Gender.FEMALE
    assert parse_gender("w") == Gender.FEMALE
    assert parse_gender("x") is None
    assert parse_gender(None) is None

    print("[PASS] Gender parsing test passed")


def test_player_label_and_identity():
    player = Player(id="p1", name="Ann", skill_level="b2", gender="f")

    assert player.label == "Ann(B2)"
    assert player.is_female
    assert not player.is_male
    # Identity is the id only
    assert player == Player(id="p1", name="Someone else")
    assert len({player, Player(id="p1", name="Dup")}) == 1


def test_team_rejects_same_player():
    a = Player(id="a", name="A")
    with pytest.raises(ValueError):
        Team(a, a)


def test_match_rejects_double_booking():
    a, b, c = make_players(3)
    with pytest.raises(ValueError):
        Match(id="m1", team1=Team(a, b), team2=Team(a, c))


def test_match_replace_player_keeps_slot_and_court():
    """Replacing a player returns a new match; the original is untouched."""
    print("Testing match player replacement...")

    a, b, c, d, e = make_players(5)
    match = Match(id="m1", team1=Team(a, b), team2=Team(c, d), court=2)

    replaced = match.replace_player("p2", e)

    assert replaced.player_ids == ["p0", "p1", "p4", "p3"]
    assert replaced.id == "m1"
    assert replaced.court == 2
    assert match.player_ids == ["p0", "p1", "p2", "p3"]
    assert match.team_of("p3") is match.team2
    assert match.team_of("p4") is None
    assert match.shares_players_with(replaced)

    print("[PASS] Match player replacement test passed")


def test_strategy_kind_parse():
    assert StrategyKind.parse("skill_balanced") == StrategyKind.SKILL_BALANCED
    assert StrategyKind.parse("Random-Balanced") == StrategyKind.RANDOM_BALANCED
    assert StrategyKind.parse("mixed") == StrategyKind.MIXED_GENDER
    assert StrategyKind.parse("level") == StrategyKind.SKILL_BALANCED
    assert StrategyKind.parse(StrategyKind.MIXED_GENDER) == StrategyKind.MIXED_GENDER
    with pytest.raises(ValueError):
        StrategyKind.parse("round_robin")


def test_budget_rejects_negative():
    assert Budget(0).max_attempts == 0
    with pytest.raises(ValueError):
        Budget(-1)


def test_participation_counter():
    """Counter tracks games per roster player and finds who needs games most."""
    print("Testing participation counter...")

    players = make_players(5)
    a, b, c, d, e = players
    match = Match(id="m1", team1=Team(a, b), team2=Team(c, d))

    counter = ParticipationCounter.from_matches(players, [match])

    assert counter["p0"] == 1
    assert counter["p4"] == 0
    assert "p4" in counter
    assert len(counter) == 5
    assert counter.zero(players) == [e]
    assert counter.below(players, 2) == players
    assert counter.any_below(players, 1)
    assert [p.id for p in counter.lowest(players, 2)] == ["p4", "p0"]
    assert [p.id for p in counter.lowest(players, 2, exclude=["p4"])] == ["p0", "p1"]

    assert counter.as_dict() == {"p0": 1, "p1": 1, "p2": 1, "p3": 1, "p4": 0}
    counter.release("p0")
    assert counter["p0"] == 0

    print("[PASS] Participation counter test passed")


def test_schedule_summaries():
    players = make_players(6)
    a, b, c, d, e, f = players
    schedule = Schedule(matches=[
        Match(id="m1", team1=Team(a, b), team2=Team(c, d), court=1),
        Match(id="m2", team1=Team(a, e), team2=Team(f, b), court=2),
    ], courts=2, strategy=StrategyKind.SKILL_BALANCED)
    schedule.participation = ParticipationCounter.from_matches(players, schedule.matches).as_dict()

    assert schedule.total_matches == 2
    assert schedule.unique_player_count() == 6
    assert len(schedule.get_player_matches("p0")) == 2
    assert [m.id for m in schedule.get_matches_by_court(2)] == ["m2"]
    assert schedule.game_counts_by_label()["Player 0(C1)"] == 2
    assert schedule.game_counts_by_label()["Player 5(C1)"] == 1


def run_all_tests():
    """Run all tests."""
    print("=" * 60)
    print("Running Model Tests")
    print("=" * 60)

    test_normalize_level()
    test_parse_gender()
    test_player_label_and_identity()
    test_team_rejects_same_player()
    test_match_rejects_double_booking()
    test_match_replace_player_keeps_slot_and_court()
    test_strategy_kind_parse()
    test_budget_rejects_negative()
    test_participation_counter()
    test_schedule_summaries()

    print("=" * 60)
    print("ALL TESTS PASSED!")
    print("=" * 60)


if __name__ == '__main__':
    run_all_tests()
