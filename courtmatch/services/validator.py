"""
Schedule validation for the Doubles Match Scheduler.
Validates schedules against hard invariants and soft fairness goals.
"""

from typing import Optional, Sequence

from courtmatch.models import (
    Player, Schedule, SchedulingConstraint, ScheduleValidationResult,
    PlayerScheduleStats, ParticipationCounter
)
from courtmatch.core.config import MAX_TEAM_SCORE_DIFF
from courtmatch.core.exceptions import COVERAGE_SHORTFALL, BALANCE_SHORTFALL
from courtmatch.core.logging_config import get_logger
from courtmatch.services.scoring import match_score_diff, team_score, average_score_diff, max_score_diff

logger = get_logger(__name__)


class ScheduleValidator:
    """
    Validates doubles schedules.
    Hard constraints are invariants a usable schedule must hold; soft
    constraints are the fairness goals the engine tries to reach.
    """

    def __init__(self, max_diff: int = MAX_TEAM_SCORE_DIFF):
        self.max_diff = max_diff

    def validate_schedule(self, schedule: Schedule, players: Optional[Sequence[Player]] = None,
                          min_games_per_player: int = 1) -> ScheduleValidationResult:
        """
        Validate a schedule.

        Args:
            schedule: The schedule to validate
            players: Roster the schedule was built for; roster checks are
                skipped when omitted
            min_games_per_player: Game target for the coverage check

        Returns:
            ScheduleValidationResult with all violations found
        """
        result = ScheduleValidationResult(is_valid=True)

        self._check_double_booking(schedule, result)
        self._check_court_numbers(schedule, result)
        self._check_balance(schedule, result)
        self._check_back_to_back(schedule, result)
        if players is not None:
            self._check_unknown_players(schedule, players, result)
            self._check_coverage(schedule, players, min_games_per_player, result)

        logger.info(
            "Validation: valid=%s hard=%d soft=%d penalty=%.2f",
            result.is_valid,
            len(result.hard_constraint_violations),
            len(result.soft_constraint_violations),
            result.total_penalty_score
        )
        for violation in result.hard_constraint_violations[:10]:
            logger.warning("  - %s: %s", violation.constraint_type, violation.description)

        return result

    def _check_double_booking(self, schedule: Schedule, result: ScheduleValidationResult):
        """
        A player can only fill one of the four slots of a match.

        Match construction already rejects repeated players, so this only
        fires on matches whose teams were reassigned after construction.
        """
        for match in schedule.matches:
            ids = match.player_ids
            duplicates = sorted({pid for pid in ids if ids.count(pid) > 1})
            if duplicates:
                result.add_violation(SchedulingConstraint(
                    constraint_type="player_double_booked",
                    severity="hard",
                    description=f"Match {match.id} seats {', '.join(duplicates)} more than once",
                    affected_players=duplicates,
                    affected_matches=[match],
                    penalty_score=2000.0
                ))

    def _check_court_numbers(self, schedule: Schedule, result: ScheduleValidationResult):
        for match in schedule.matches:
            if match.court < 1 or match.court > schedule.courts:
                result.add_violation(SchedulingConstraint(
                    constraint_type="invalid_court",
                    severity="hard",
                    description=f"Match {match.id} is on court {match.court} (courts 1-{schedule.courts})",
                    affected_matches=[match],
                    penalty_score=500.0
                ))

    def _check_unknown_players(self, schedule: Schedule, players: Sequence[Player],
                               result: ScheduleValidationResult):
        roster = {p.id for p in players}
        for match in schedule.matches:
            unknown = [pid for pid in match.player_ids if pid not in roster]
            if unknown:
                result.add_violation(SchedulingConstraint(
                    constraint_type="unknown_player",
                    severity="hard",
                    description=f"Match {match.id} seats players outside the roster: {', '.join(unknown)}",
                    affected_players=unknown,
                    affected_matches=[match],
                    penalty_score=1000.0
                ))

    def _check_coverage(self, schedule: Schedule, players: Sequence[Player],
                        min_games_per_player: int, result: ScheduleValidationResult):
        """Zero-game players are hard failures; below-target players are a shortfall."""
        counter = ParticipationCounter.from_matches(players, schedule.matches)

        for player in counter.zero(players):
            result.add_violation(SchedulingConstraint(
                constraint_type="zero_games",
                severity="hard",
                description=f"{player.label} has no matches",
                affected_players=[player.id],
                penalty_score=1500.0
            ))

        for player in counter.below(players, min_games_per_player):
            if counter[player.id] == 0:
                continue
            missing = min_games_per_player - counter[player.id]
            result.add_violation(SchedulingConstraint(
                constraint_type=COVERAGE_SHORTFALL,
                severity="soft",
                description=f"{player.label} has {counter[player.id]} of {min_games_per_player} games",
                affected_players=[player.id],
                penalty_score=missing * 100.0
            ))

    def _check_balance(self, schedule: Schedule, result: ScheduleValidationResult):
        for match in schedule.matches:
            diff = match_score_diff(match)
            if diff > self.max_diff:
                result.add_violation(SchedulingConstraint(
                    constraint_type=BALANCE_SHORTFALL,
                    severity="soft",
                    description=(
                        f"Match {match.id} team scores {team_score(match.team1)} vs "
                        f"{team_score(match.team2)} (diff {diff}, max {self.max_diff})"
                    ),
                    affected_players=match.player_ids,
                    affected_matches=[match],
                    penalty_score=(diff - self.max_diff) * 10.0
                ))

    def _check_back_to_back(self, schedule: Schedule, result: ScheduleValidationResult):
        for previous, current in zip(schedule.matches, schedule.matches[1:]):
            shared = sorted(set(previous.player_ids) & set(current.player_ids))
            if shared:
                result.add_violation(SchedulingConstraint(
                    constraint_type="back_to_back",
                    severity="soft",
                    description=f"{', '.join(shared)} play {previous.id} and {current.id} back to back",
                    affected_players=shared,
                    affected_matches=[previous, current],
                    penalty_score=len(shared) * 5.0
                ))

    def get_player_stats(self, player: Player, schedule: Schedule) -> PlayerScheduleStats:
        """
        Calculate statistics for a player's schedule.

        Args:
            player: The player to analyze
            schedule: The complete schedule

        Returns:
            PlayerScheduleStats with all statistics
        """
        stats = PlayerScheduleStats(player=player)

        for match in schedule.get_player_matches(player.id):
            stats.total_matches += 1
            stats.courts.append(match.court)
            own = match.team_of(player.id)
            other = match.team2 if own is match.team1 else match.team1
            stats.partners.extend(p for p in own.players if p.id != player.id)
            stats.opponents.extend(other.players)

        for previous, current in zip(schedule.matches, schedule.matches[1:]):
            if previous.involves_player(player.id) and current.involves_player(player.id):
                stats.back_to_back += 1

        return stats

    def generate_schedule_report(self, schedule: Schedule, players: Sequence[Player]) -> str:
        """
        Generate a readable report of the schedule.

        Args:
            schedule: The schedule to report on
            players: Roster the schedule was built for

        Returns:
            Formatted report string
        """
        report = []
        report.append("=" * 80)
        report.append("MATCH SCHEDULE REPORT")
        report.append("=" * 80)
        strategy = schedule.strategy.value if schedule.strategy else "n/a"
        report.append(f"Strategy: {strategy}")
        report.append(f"Total Matches: {schedule.total_matches}")
        report.append(f"Players Covered: {schedule.unique_player_count()} of {len(players)}")
        report.append(f"Max Team-Score Diff: {max_score_diff(schedule.matches)}")
        report.append(f"Average Team-Score Diff: {average_score_diff(schedule.matches):.2f}")
        if schedule.issues:
            report.append(f"Issues: {', '.join(schedule.issues)}")
        report.append("")

        report.append("Play Order:")
        for index, match in enumerate(schedule.matches, start=1):
            report.append(
                f"  {index:>3}. {match} "
                f"[{team_score(match.team1)}-{team_score(match.team2)}]"
            )
        report.append("")

        report.append("Matches by Court:")
        for court in sorted({match.court for match in schedule.matches}):
            report.append(f"  Court {court}: {len(schedule.get_matches_by_court(court))}")
        report.append("")

        report.append("Player Statistics:")
        for player in sorted(players, key=lambda p: p.name):
            stats = self.get_player_stats(player, schedule)
            line = f"  {player.label}: {stats.total_matches} games, {stats.unique_partner_count()} partners"
            if stats.courts:
                line += f", courts {'/'.join(str(c) for c in stats.courts)}"
            if stats.back_to_back:
                line += f", {stats.back_to_back} back-to-back"
            report.append(line)

        report.append("=" * 80)

        return "\n".join(report)
