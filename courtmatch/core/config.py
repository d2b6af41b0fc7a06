"""
Configuration constants for the Doubles Match Scheduler.
All configurable settings are defined here.
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {value!r}")


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a number, got {value!r}")


# Skill tiers, weakest to strongest
SKILL_LEVELS = ["E2", "E1", "D2", "D1", "C2", "C1", "B2", "B1", "A2", "A1"]

# Level -> score policy table
LEVEL_SCORES = {
    "E2": 1,
    "E1": 2,
    "D2": 3,
    "D1": 4,
    "C2": 5,
    "C1": 6,
    "B2": 7,
    "B1": 8,
    "A2": 9,
    "A1": 10,
    # Short labels map to their nearest equivalent
    "A": 10,
    "B": 8,
    "C": 6,
    "D": 4,
    "E": 2,
    "N": 1,
}
DEFAULT_SKILL_LEVEL = "E2"
UNKNOWN_LEVEL_SCORE = 1

# Gender aliases (lower-cased before lookup)
MALE_ALIASES = {"m", "male", "man"}
FEMALE_ALIASES = {"f", "female", "woman", "w"}

# Fairness gate: maximum team-score difference accepted outright
MAX_TEAM_SCORE_DIFF = _env_int("MAX_TEAM_SCORE_DIFF", 1)
STRICT_TEAM_SCORE_DIFF = 0

# Match score weights (score diff, balance diff, average diff)
MATCH_SCORE_WEIGHTS = {
    "score": 0.7,
    "balance": 0.2,
    "average": 0.1,
}

# Team ranking jitter, uniform in [-scale, scale]
TEAM_JITTER_SCALE = _env_float("TEAM_JITTER_SCALE", 0.25)
MIXED_JITTER_SCALE = _env_float("MIXED_JITTER_SCALE", 0.25)

# Session defaults
DEFAULT_COURTS = _env_int("DEFAULT_COURTS", 4)
DEFAULT_MIN_GAMES_PER_PLAYER = _env_int("DEFAULT_MIN_GAMES_PER_PLAYER", 1)
DEFAULT_STRATEGY = os.getenv("DEFAULT_STRATEGY", "skill_balanced")
PLAYERS_PER_MATCH = 4
MIN_PLAYERS = 4

# Phase budgets (iteration caps)
CONSTRUCTION_MAX_ATTEMPTS = _env_int("CONSTRUCTION_MAX_ATTEMPTS", 100)
CONSTRUCTION_ATTEMPTS_PER_SLOT = 6
CONSTRUCTION_MAX_STALLED_ROUNDS = 3
RESCUE_MAX_ATTEMPTS = _env_int("RESCUE_MAX_ATTEMPTS", 50)
BALANCING_MAX_ITERATIONS = _env_int("BALANCING_MAX_ITERATIONS", 100000)
BALANCING_STAGNATION_LIMIT = _env_int("BALANCING_STAGNATION_LIMIT", 300)
SEQUENCING_MAX_PASSES = _env_int("SEQUENCING_MAX_PASSES", 5)

# Local search classification thresholds
BAD_MATCH_DIFF = 2
NEAR_MATCH_DIFF = 1

# Rosters above this size should be partitioned by the caller
LARGE_ROSTER_WARNING = 200

# API
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]
