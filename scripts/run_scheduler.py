"""
Command line entry point for the League Schedule Maker.
Generates a season, validates it and prints the schedule and feasibility reports.
"""

import sys
import argparse
from datetime import datetime
import os

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from schedulemaker.core.config import LOG_LEVEL
from schedulemaker.core.exceptions import SchedulingError
from schedulemaker.core.logging_config import setup_logging
from schedulemaker.services.feasibility import FeasibilityPipeline, PlainNarrator
from schedulemaker.services.generation import generate_schedule
from schedulemaker.services.league_reader import LeagueReader
from schedulemaker.services.serialization import dumps, loads
from schedulemaker.services.validator import ScheduleValidator


def print_feasibility(schedule):
    report = FeasibilityPipeline().evaluate(schedule)
    print("\n" + "=" * 80)
    print(f"FEASIBILITY REPORT (current week {report.current_week})")
    print("=" * 80)
    for line in PlainNarrator().narrate(report):
        print(f"  {line}")


def validate_file(path: str, validator: ScheduleValidator) -> int:
    with open(path, "r", encoding="utf-8") as f:
        schedule = loads(f.read())

    result = validator.validate_schedule(schedule)
    print("\n" + "=" * 80)
    print("VALIDATION SUMMARY")
    print("=" * 80)
    print(result.get_summary())
    print_feasibility(schedule)
    return 0 if result.is_valid else 1


def main():
    """
    Run the scheduling workflow: load league data, generate, validate, report
    and optionally write the schedule document.
    """
    parser = argparse.ArgumentParser(
        description='League Schedule Maker - Generate a season schedule'
    )
    parser.add_argument('--season', type=int, default=None, help='Season year (selects the rotation)')
    parser.add_argument('--data-file', default=None, help='League JSON file (teams and prior standings)')
    parser.add_argument('--fixed-weeks', default=None, help='Starting-point JSON file with pre-fixed weeks')
    parser.add_argument('--time-limit', type=float, default=None, help='Solver time budget in seconds')
    parser.add_argument('--no-exact', action='store_true', help='Skip the exact solve, use the greedy fallback')
    parser.add_argument('--output', default=None, help='Write the schedule document to this JSON file')
    parser.add_argument('--validate-only', metavar='FILE', default=None,
                        help='Validate an existing schedule document without generating a new one')
    parser.add_argument('--verbose', action='store_true', help='Enable verbose output')

    args = parser.parse_args()
    setup_logging("DEBUG" if args.verbose else LOG_LEVEL)
    validator = ScheduleValidator()

    print("\n" + "=" * 80)
    print("LEAGUE SCHEDULE MAKER")
    print("=" * 80)
    print(f"Started at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("=" * 80)

    try:
        if args.validate_only:
            return validate_file(args.validate_only, validator)

        print("\n[STEP 1] Loading league data...")
        reader = LeagueReader(args.data_file, args.fixed_weeks)
        teams, standings, fixed_weeks = reader.load_all_data()
        if not teams:
            print("ERROR: No teams loaded. Please check the league data file.")
            return 1
        print(f"\nLoaded:")
        print(f"  - {len(teams)} teams")
        print(f"  - {len(fixed_weeks)} pre-fixed weeks")

        print("\n[STEP 2] Generating schedule...")
        result = generate_schedule(
            teams,
            prior_standings=standings,
            fixed_weeks=fixed_weeks,
            season_year=args.season,
            time_limit_seconds=args.time_limit,
            use_exact=False if args.no_exact else None,
        )
        if not result.success:
            print(f"\nERROR: {result.message}")
            if result.failure is not None:
                print(f"  Kind: {result.failure.kind}")
                print(f"  Dimensions: {', '.join(result.failure.dimensions)}")
                if result.failure.residual:
                    print(f"  Unplaced matchups: {len(result.failure.residual)}")
            return 1
        schedule = result.schedule
        print(f"\nGenerated schedule with {len(schedule.games)} games ({result.method} solve)")

        print("\n[STEP 3] Validating schedule...")
        print("\n" + "=" * 80)
        print("VALIDATION SUMMARY")
        print("=" * 80)
        print(result.validation.get_summary())

        print("\n[STEP 4] Generating schedule report...")
        print("\n" + validator.generate_schedule_report(schedule))
        print_feasibility(schedule)

        if args.output:
            with open(args.output, "w", encoding="utf-8") as f:
                f.write(dumps(schedule))
            print(f"\nSchedule document written to {args.output}")

        print("\n" + "=" * 80)
        print("SCHEDULING COMPLETE")
        print("=" * 80)
        print(f"Total games scheduled: {len(schedule.games)}")
        print(f"Schedule valid: {'Yes' if result.validation.is_valid else 'No (with violations)'}")
        print(f"Generation time: {result.generation_time:.1f}s")
        print(f"Completed at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        print("=" * 80)
        return 0

    except KeyboardInterrupt:
        print("\n\nScheduling interrupted by user.")
        return 1

    except (SchedulingError, OSError, ValueError) as e:
        print(f"\n\nERROR: {type(e).__name__}: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
