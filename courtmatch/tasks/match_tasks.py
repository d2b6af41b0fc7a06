"""
Celery tasks for match generation.
"""

from typing import Any, Dict, List, Optional
from datetime import datetime
import traceback

from courtmatch.core.celery_app import celery_app
from courtmatch.core.config import (
    DEFAULT_COURTS, DEFAULT_MIN_GAMES_PER_PLAYER, DEFAULT_STRATEGY, MAX_TEAM_SCORE_DIFF
)
from courtmatch.core.logging_config import get_logger
from courtmatch.models import Player, Schedule, ScheduleValidationResult
from courtmatch.services.engine import generate_matches
from courtmatch.services.scoring import team_score, match_score_diff, max_score_diff, average_score_diff
from courtmatch.services.strategies import minimum_match_count
from courtmatch.services.validator import ScheduleValidator

logger = get_logger(__name__)


def load_players(items: List[Dict[str, Any]]) -> List[Player]:
    """Build players from JSON roster entries (``id`` required, name defaults to id)."""
    players = []
    for item in items:
        player_id = str(item["id"])
        players.append(Player(
            id=player_id,
            name=item.get("name") or player_id,
            skill_level=item.get("skill_level"),
            gender=item.get("gender")
        ))
    return players


def match_to_dict(match) -> Dict[str, Any]:
    return {
        "id": match.id,
        "court": match.court,
        "team1": [p.id for p in match.team1.players],
        "team2": [p.id for p in match.team2.players],
        "team1_label": str(match.team1),
        "team2_label": str(match.team2),
        "team1_score": team_score(match.team1),
        "team2_score": team_score(match.team2),
        "score_diff": match_score_diff(match)
    }


def validation_to_dict(result: ScheduleValidationResult) -> Dict[str, Any]:
    return {
        "is_valid": result.is_valid,
        "hard_violations": len(result.hard_constraint_violations),
        "soft_violations": len(result.soft_constraint_violations),
        "total_penalty": result.total_penalty_score,
        "violations": [
            {
                "type": v.constraint_type,
                "severity": v.severity,
                "description": v.description,
                "players": list(v.affected_players),
                "matches": [m.id for m in v.affected_matches]
            }
            for v in result.hard_constraint_violations + result.soft_constraint_violations
        ]
    }


def schedule_to_dict(schedule: Schedule, players: List[Player],
                     validation: ScheduleValidationResult) -> Dict[str, Any]:
    """Response payload shared by the API and the async task."""
    return {
        "strategy": schedule.strategy.value if schedule.strategy else None,
        "courts": schedule.courts,
        "total_matches": schedule.total_matches,
        "minimum_matches": minimum_match_count(len(players)),
        "unique_players": schedule.unique_player_count(),
        "max_score_diff": max_score_diff(schedule.matches),
        "average_score_diff": average_score_diff(schedule.matches),
        "matches": [match_to_dict(m) for m in schedule.matches],
        "participation": dict(schedule.participation),
        "game_counts": schedule.game_counts_by_label(),
        "issues": list(schedule.issues),
        "validation": validation_to_dict(validation)
    }


@celery_app.task(bind=True, name="generate_matches")
def generate_matches_task(self, players: List[Dict[str, Any]], courts: int = DEFAULT_COURTS,
                          min_games_per_player: int = DEFAULT_MIN_GAMES_PER_PLAYER,
                          strategy: str = DEFAULT_STRATEGY, seed: Optional[int] = None,
                          optimize: bool = False, max_diff: int = MAX_TEAM_SCORE_DIFF):
    """
    Async task to generate a doubles schedule.

    Returns:
        dict: Schedule data with matches and validation results
    """
    try:
        self.update_state(
            state="PROGRESS",
            meta={"status": f"Generating {strategy} matches for {len(players)} players..."}
        )

        start_time = datetime.now()
        roster = load_players(players)

        schedule = generate_matches(
            roster, courts, min_games_per_player, strategy,
            fallback_to_balanced=True, seed=seed, max_diff=max_diff, optimize=optimize
        )

        self.update_state(
            state="PROGRESS",
            meta={"status": "Validating schedule..."}
        )

        validator = ScheduleValidator(max_diff=max_diff)
        validation = validator.validate_schedule(schedule, roster, min_games_per_player)

        payload = schedule_to_dict(schedule, roster, validation)
        payload.update({
            "success": True,
            "message": f"Generated {schedule.total_matches} matches",
            "generation_time": (datetime.now() - start_time).total_seconds()
        })
        return payload

    except Exception as e:
        logger.exception("Error in generate_matches_task")
        return {
            "success": False,
            "message": f"Match generation failed: {str(e)}",
            "error": str(e),
            "traceback": traceback.format_exc()
        }
