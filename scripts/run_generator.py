"""
Command-line match generation from a JSON roster.

The roster file is either a list of players or an object with a "players"
list; each player has an "id" and optionally "name", "skill_level" and
"gender".
"""

import sys
import argparse
import json
import logging
from datetime import datetime
import os

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from courtmatch.core.config import (
    DEFAULT_COURTS, DEFAULT_MIN_GAMES_PER_PLAYER, DEFAULT_STRATEGY, MAX_TEAM_SCORE_DIFF,
    STRICT_TEAM_SCORE_DIFF
)
from courtmatch.core.exceptions import SchedulingError
from courtmatch.core.logging_config import setup_logging
from courtmatch.services.engine import generate_matches
from courtmatch.services.validator import ScheduleValidator
from courtmatch.tasks.match_tasks import load_players, schedule_to_dict


def read_roster(path):
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("players", [])
    return load_players(data)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Doubles Match Scheduler - generate balanced matches for a session"
    )
    parser.add_argument("roster", help="Path to a JSON roster file")
    parser.add_argument("--courts", type=int, default=DEFAULT_COURTS, help="Courts available")
    parser.add_argument(
        "--min-games", type=int, default=DEFAULT_MIN_GAMES_PER_PLAYER,
        help="Games every player should get"
    )
    parser.add_argument(
        "--strategy", default=DEFAULT_STRATEGY,
        help="skill_balanced, random_balanced or mixed_gender"
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for a reproducible schedule")
    parser.add_argument("--max-diff", type=int, default=MAX_TEAM_SCORE_DIFF, help="Fairness gate")
    parser.add_argument("--optimize", action="store_true", help="Refine team balance after construction")
    parser.add_argument("--strict", action="store_true", help="Only accept equal team scores")
    parser.add_argument("--output", help="Write the schedule as JSON to this path")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")

    args = parser.parse_args(argv)
    max_diff = STRICT_TEAM_SCORE_DIFF if args.strict else args.max_diff
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    print("\n" + "=" * 80)
    print("DOUBLES MATCH SCHEDULER")
    print("=" * 80)
    print(f"Started at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("=" * 80)

    try:
        print("\n[STEP 1] Loading roster...")
        players = read_roster(args.roster)
        print(f"  - {len(players)} players")

        print("\n[STEP 2] Generating matches...")
        schedule = generate_matches(
            players, args.courts, args.min_games, args.strategy,
            fallback_to_balanced=True, seed=args.seed, max_diff=max_diff,
            optimize=args.optimize
        )
        if schedule.issues:
            print(f"  Issues: {', '.join(schedule.issues)}")

        print("\n[STEP 3] Validating schedule...")
        validator = ScheduleValidator(max_diff=max_diff)
        validation_result = validator.validate_schedule(schedule, players, args.min_games)
        print(validation_result.get_summary())

        print("\n" + validator.generate_schedule_report(schedule, players))

        if args.output:
            with open(args.output, "w", encoding="utf-8") as f:
                json.dump(schedule_to_dict(schedule, players, validation_result), f, indent=2)
            print(f"\nSchedule written to {args.output}")

        print("\n" + "=" * 80)
        print(f"Total matches: {schedule.total_matches}")
        print(f"Schedule valid: {'Yes' if validation_result.is_valid else 'No (with violations)'}")
        print(f"Completed at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        print("=" * 80)
        return 0

    except (OSError, KeyError, ValueError, SchedulingError) as e:
        print(f"\nERROR: {type(e).__name__}: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
