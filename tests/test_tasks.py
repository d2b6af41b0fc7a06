"""
Tests for the Celery match generation task, run eagerly in-process.
"""

import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from courtmatch.tasks.match_tasks import generate_matches_task, load_players


def roster(count, level="C1"):
    return [{"id": f"p{i}", "name": f"Player {i}", "skill_level": level} for i in range(count)]


def record_states(monkeypatch):
    states = []
    monkeypatch.setattr(
        generate_matches_task, "update_state",
        lambda state=None, meta=None, **kwargs: states.append((state, meta))
    )
    return states


def test_load_players_defaults():
    players = load_players([{"id": 7}, {"id": "p2", "name": "Bo", "skill_level": "b1", "gender": "f"}])

    assert players[0].id == "7"
    assert players[0].name == "7"
    assert players[0].label == "7(E2)"
    assert players[1].label == "Bo(B1)"
    assert players[1].is_female


def test_task_generates_schedule(monkeypatch):
    """The task reports progress and returns the same payload as the API."""
    print("Testing match generation task...")

    states = record_states(monkeypatch)

    result = generate_matches_task(players=roster(10), courts=2, min_games_per_player=2, seed=5)

    assert result["success"]
    assert result["total_matches"] == 5
    assert result["validation"]["is_valid"]
    assert all(count >= 1 for count in result["participation"].values())
    assert [state for state, _ in states] == ["PROGRESS", "PROGRESS"]
    assert "10 players" in states[0][1]["status"]

    print("[PASS] Match generation task test passed")


def test_task_falls_back_on_gender_mix(monkeypatch):
    record_states(monkeypatch)
    players = [dict(p, gender="F") for p in roster(8)]

    result = generate_matches_task(players=players, courts=2, strategy="mixed_gender", seed=2)

    assert result["success"]
    assert result["issues"][0] == "insufficient_gender_mix"


def test_task_reports_failure(monkeypatch):
    record_states(monkeypatch)
    players = roster(8)
    players[1]["id"] = "p0"

    result = generate_matches_task(players=players, seed=1)

    assert not result["success"]
    assert "Duplicate player ids" in result["error"]
    assert "traceback" in result
