"""
Services for match generation, refinement, sequencing and validation.
"""

from .engine import MatchEngine, generate_matches, optimize_balance
from .balancing import MatchBalancer
from .sequencing import sequence_matches
from .validator import ScheduleValidator

__all__ = [
    "MatchEngine",
    "generate_matches",
    "optimize_balance",
    "MatchBalancer",
    "sequence_matches",
    "ScheduleValidator"
]
