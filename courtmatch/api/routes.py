"""
API routes for match generation and management.
"""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from typing import List, Dict, Any, Optional
from datetime import datetime
from celery.result import AsyncResult

from courtmatch.models import Player, Team, Match, Budget, Schedule, StrategyKind
from courtmatch.core.config import (
    SKILL_LEVELS, LEVEL_SCORES, DEFAULT_COURTS, DEFAULT_MIN_GAMES_PER_PLAYER,
    DEFAULT_STRATEGY, MAX_TEAM_SCORE_DIFF, BALANCING_MAX_ITERATIONS
)
from courtmatch.core.celery_app import celery_app
from courtmatch.core.exceptions import InsufficientGenderMixError
from courtmatch.core.logging_config import get_logger
from courtmatch.services.engine import generate_matches, optimize_balance, assign_courts
from courtmatch.services.scoring import level_group, max_score_diff, total_score_diff
from courtmatch.services.sequencing import sequence_matches, count_adjacent_conflicts
from courtmatch.services.validator import ScheduleValidator
from courtmatch.tasks.match_tasks import (
    generate_matches_task, load_players, match_to_dict, validation_to_dict, schedule_to_dict
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["matches"])


STRATEGY_DESCRIPTIONS = {
    StrategyKind.SKILL_BALANCED: "Teams paired by skill so both sides score within the fairness gate",
    StrategyKind.RANDOM_BALANCED: "Random partners from different level groups, still balanced across the net",
    StrategyKind.MIXED_GENDER: "One male and one female per team where the roster allows",
}


class PlayerIn(BaseModel):
    """A roster entry."""
    id: str
    name: Optional[str] = None
    skill_level: Optional[str] = None
    gender: Optional[str] = None


class MatchIn(BaseModel):
    """An existing match, referencing roster players by id."""
    id: str
    team1: List[str]
    team2: List[str]
    court: int = 1


class GenerateRequest(BaseModel):
    """Request model for match generation."""
    players: List[PlayerIn]
    courts: int = DEFAULT_COURTS
    min_games_per_player: int = DEFAULT_MIN_GAMES_PER_PLAYER
    strategy: str = DEFAULT_STRATEGY
    seed: Optional[int] = None
    optimize: bool = False
    max_diff: int = MAX_TEAM_SCORE_DIFF
    fallback_to_balanced: bool = True


class OptimizeRequest(BaseModel):
    """Request model for balance refinement of existing matches."""
    players: List[PlayerIn]
    matches: List[MatchIn]
    seed: Optional[int] = None
    max_diff: int = MAX_TEAM_SCORE_DIFF
    max_iterations: int = BALANCING_MAX_ITERATIONS


class SequenceRequest(BaseModel):
    """Request model for play-order sequencing; courts are renumbered when given."""
    players: List[PlayerIn]
    matches: List[MatchIn]
    courts: Optional[int] = None


class ValidateRequest(BaseModel):
    """Request model for schedule validation."""
    players: List[PlayerIn]
    matches: List[MatchIn]
    courts: int = DEFAULT_COURTS
    min_games_per_player: int = DEFAULT_MIN_GAMES_PER_PLAYER
    max_diff: int = MAX_TEAM_SCORE_DIFF


class MatchResponse(BaseModel):
    """Response model for a single match."""
    id: str
    court: int
    team1: List[str]
    team2: List[str]
    team1_label: str
    team2_label: str
    team1_score: int
    team2_score: int
    score_diff: int


class ViolationResponse(BaseModel):
    type: str
    severity: str
    description: str
    players: List[str]
    matches: List[str]


class ValidationSummary(BaseModel):
    """Validator outcome."""
    is_valid: bool
    hard_violations: int
    soft_violations: int
    total_penalty: float
    violations: List[ViolationResponse]


class ScheduleResponse(BaseModel):
    """Response model for match generation."""
    success: bool
    message: str
    strategy: Optional[str]
    courts: int
    total_matches: int
    minimum_matches: int
    unique_players: int
    max_score_diff: int
    average_score_diff: float
    matches: List[MatchResponse]
    participation: Dict[str, int]
    game_counts: Dict[str, int]
    issues: List[str]
    validation: ValidationSummary
    generation_time: float


class MatchListResponse(BaseModel):
    """Response model for optimize and sequence."""
    matches: List[MatchResponse]
    max_score_diff: int
    total_score_diff: int
    adjacent_conflicts: int


def to_players(items: List[PlayerIn]) -> List[Player]:
    return load_players([item.model_dump() for item in items])


def to_matches(items: List[MatchIn], players: List[Player], allow_unknown: bool = False) -> List[Match]:
    """
    Resolve match payloads against the roster. Bad team sizes are rejected;
    ids missing from the roster are rejected unless ``allow_unknown``, in which
    case a bare player is seated so the validator can report it.
    """
    roster = {p.id: p for p in players}
    matches = []
    for item in items:
        if len(item.team1) != 2 or len(item.team2) != 2:
            raise ValueError(f"Match {item.id} needs exactly two players per team")
        unknown = [pid for pid in item.team1 + item.team2 if pid not in roster]
        if unknown and allow_unknown:
            roster.update({pid: Player(id=pid, name=pid) for pid in unknown})
        elif unknown:
            raise ValueError(f"Match {item.id} references unknown players: {', '.join(unknown)}")
        matches.append(Match(
            id=item.id,
            team1=Team(roster[item.team1[0]], roster[item.team1[1]]),
            team2=Team(roster[item.team2[0]], roster[item.team2[1]]),
            court=item.court
        ))
    return matches


def match_list_response(matches: List[Match]) -> Dict[str, Any]:
    return {
        "matches": [match_to_dict(m) for m in matches],
        "max_score_diff": max_score_diff(matches),
        "total_score_diff": total_score_diff(matches),
        "adjacent_conflicts": count_adjacent_conflicts(matches)
    }


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}


@router.get("/levels")
async def get_levels():
    """Skill levels with their scores, weakest first."""
    return [
        {"level": level, "score": LEVEL_SCORES[level], "group": level_group(level)}
        for level in SKILL_LEVELS
    ]


@router.get("/strategies")
async def get_strategies():
    """Available construction strategies."""
    return [
        {"name": kind.value, "description": STRATEGY_DESCRIPTIONS[kind]}
        for kind in StrategyKind
    ]


@router.post("/matches", response_model=ScheduleResponse)
async def create_matches(request: GenerateRequest):
    """
    Generate a doubles schedule.

    This endpoint:
    1. Normalizes the roster
    2. Builds matches with the requested strategy
    3. Repairs coverage and optionally refines balance
    4. Sequences play order and assigns courts
    5. Validates the schedule
    """
    try:
        start_time = datetime.now()
        players = to_players(request.players)

        schedule = generate_matches(
            players,
            request.courts,
            request.min_games_per_player,
            request.strategy,
            fallback_to_balanced=request.fallback_to_balanced,
            seed=request.seed,
            max_diff=request.max_diff,
            optimize=request.optimize
        )

        validator = ScheduleValidator(max_diff=request.max_diff)
        validation = validator.validate_schedule(schedule, players, request.min_games_per_player)

        payload = schedule_to_dict(schedule, players, validation)
        payload.update({
            "success": True,
            "message": f"Generated {schedule.total_matches} matches",
            "generation_time": (datetime.now() - start_time).total_seconds()
        })
        return payload

    except InsufficientGenderMixError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Match generation failed")
        raise HTTPException(status_code=500, detail=f"Match generation failed: {str(e)}")


@router.post("/matches/async")
async def create_matches_async(request: GenerateRequest):
    """
    Start async match generation task.

    Returns:
        dict: Task ID for polling status
    """
    try:
        task = generate_matches_task.delay(
            players=[p.model_dump() for p in request.players],
            courts=request.courts,
            min_games_per_player=request.min_games_per_player,
            strategy=request.strategy,
            seed=request.seed,
            optimize=request.optimize,
            max_diff=request.max_diff
        )

        return {
            "task_id": task.id,
            "status": "PENDING",
            "message": "Match generation started"
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to start task: {str(e)}")


@router.get("/matches/status/{task_id}")
async def get_matches_status(task_id: str):
    """
    Get status of async match generation task.

    Args:
        task_id: Celery task ID

    Returns:
        dict: Task status and result (if complete)
    """
    try:
        task_result = AsyncResult(task_id, app=celery_app)

        if task_result.state == "PENDING":
            response = {
                "task_id": task_id,
                "status": "PENDING",
                "message": "Task is waiting to start..."
            }
        elif task_result.state == "PROGRESS":
            response = {
                "task_id": task_id,
                "status": "PROGRESS",
                "message": task_result.info.get("status", "Processing...")
            }
        elif task_result.state == "SUCCESS":
            response = {
                "task_id": task_id,
                "status": "SUCCESS",
                "result": task_result.result
            }
        elif task_result.state == "FAILURE":
            response = {
                "task_id": task_id,
                "status": "FAILURE",
                "message": str(task_result.info)
            }
        else:
            response = {
                "task_id": task_id,
                "status": task_result.state,
                "message": f"Task state: {task_result.state}"
            }

        return response
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to get task status: {str(e)}")


@router.post("/matches/optimize", response_model=MatchListResponse)
async def optimize_matches(request: OptimizeRequest):
    """Refine team balance of existing matches without changing who plays how often."""
    try:
        players = to_players(request.players)
        matches = to_matches(request.matches, players)
        optimized = optimize_balance(
            matches,
            seed=request.seed,
            max_diff=request.max_diff,
            budget=Budget(request.max_iterations)
        )
        return match_list_response(optimized)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Balance refinement failed")
        raise HTTPException(status_code=500, detail=f"Balance refinement failed: {str(e)}")


@router.post("/matches/sequence", response_model=MatchListResponse)
async def sequence_existing_matches(request: SequenceRequest):
    """Reorder existing matches to avoid back-to-back games."""
    try:
        players = to_players(request.players)
        matches = sequence_matches(to_matches(request.matches, players))
        if request.courts is not None:
            if request.courts < 1:
                raise ValueError(f"courts must be at least 1, got {request.courts}")
            matches = assign_courts(matches, request.courts)
        return match_list_response(matches)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Sequencing failed")
        raise HTTPException(status_code=500, detail=f"Sequencing failed: {str(e)}")


@router.post("/matches/validate", response_model=ValidationSummary)
async def validate_matches(request: ValidateRequest):
    """Check an existing schedule against the roster."""
    try:
        players = to_players(request.players)
        matches = to_matches(request.matches, players, allow_unknown=True)
        schedule = Schedule(matches=matches, courts=request.courts)
        validator = ScheduleValidator(max_diff=request.max_diff)
        result = validator.validate_schedule(schedule, players, request.min_games_per_player)
        return validation_to_dict(result)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Validation failed")
        raise HTTPException(status_code=500, detail=f"Validation failed: {str(e)}")
