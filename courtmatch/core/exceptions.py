"""
Error taxonomy for match generation.

Only the conditions that stop a run are exceptions. Shortfalls that still
leave a usable schedule are reported as issue codes on the schedule and as
soft violations by the validator.
"""

# Issue codes recorded on Schedule.issues
INSUFFICIENT_PLAYERS = "insufficient_players"
INSUFFICIENT_GENDER_MIX = "insufficient_gender_mix"
COVERAGE_SHORTFALL = "coverage_shortfall"
BALANCE_SHORTFALL = "balance_shortfall"


class SchedulingError(Exception):
    """Base class for match generation failures."""


class InvalidRosterError(SchedulingError, ValueError):
    """Roster or session parameters cannot be scheduled as given."""


class InsufficientGenderMixError(SchedulingError):
    """Mixed-gender matches need at least two players of each gender."""

    def __init__(self, males: int, females: int):
        self.males = males
        self.females = females
        super().__init__(
            f"Mixed doubles needs at least 2 male and 2 female players "
            f"(got {males} male, {females} female)"
        )
