"""
Tests for the command-line generator script.
"""

import sys
import os
import json

# Add project root and scripts directory to path
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, ROOT)
sys.path.insert(0, os.path.join(ROOT, "scripts"))

import run_generator


def test_cli_writes_schedule(tmp_path, capsys):
    roster_path = tmp_path / "roster.json"
    output_path = tmp_path / "schedule.json"
    players = [
        {"id": f"p{i}", "name": f"Player {i}", "skill_level": level}
        for i, level in enumerate(["A1", "A1", "E2", "E2", "C1", "C1", "C2"])
    ]
    roster_path.write_text(json.dumps({"players": players}))

    code = run_generator.main([
        str(roster_path), "--courts", "2", "--seed", "4", "--output", str(output_path)
    ])

    assert code == 0
    data = json.loads(output_path.read_text())
    assert data["total_matches"] == 2
    assert data["unique_players"] == 7
    out = capsys.readouterr().out
    assert "MATCH SCHEDULE REPORT" in out


def test_cli_reports_missing_roster(tmp_path, capsys):
    code = run_generator.main([str(tmp_path / "missing.json")])

    assert code == 1
    assert "ERROR" in capsys.readouterr().out
