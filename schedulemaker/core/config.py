"""
Configuration constants for the League Schedule Maker.
All configurable settings are defined here.
"""

import os
from dotenv import load_dotenv

from schedulemaker.models import Category, LeagueRules

# Load environment variables from .env file
load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_optional_int(name: str, default=None):
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return int(value)


# League data
LEAGUE_DATA_FILE = os.getenv(
    "LEAGUE_DATA_FILE",
    os.path.join(os.path.dirname(os.path.dirname(__file__)), "data", "league.json")
)
STARTING_POINT_FILE = os.getenv("STARTING_POINT_FILE")  # Optional fixed weeks

# Season
SEASON_YEAR = int(os.getenv("SEASON_YEAR", 2025))
TOTAL_WEEKS = int(os.getenv("TOTAL_WEEKS", 18))
GAMES_PER_TEAM = int(os.getenv("GAMES_PER_TEAM", 17))

# Bye Rules
BYE_WINDOW_START = int(os.getenv("BYE_WINDOW_START", 5))
BYE_WINDOW_END = int(os.getenv("BYE_WINDOW_END", 14))
MAX_BYES_PER_WEEK = int(os.getenv("MAX_BYES_PER_WEEK", 6))

# Spacing Rules
MIN_REMATCH_GAP = int(os.getenv("MIN_REMATCH_GAP", 4))  # Weeks between two meetings of one pair
MAX_CONSECUTIVE_HOME = _env_optional_int("MAX_CONSECUTIVE_HOME")  # None disables the limit
MAX_CONSECUTIVE_AWAY = _env_optional_int("MAX_CONSECUTIVE_AWAY")

# Category quotas per week (None = only bounded by week capacity)
MAX_CROSS_NEAR_PER_WEEK = _env_optional_int("MAX_CROSS_NEAR_PER_WEEK")
MAX_CROSS_FAR_PER_WEEK = _env_optional_int("MAX_CROSS_FAR_PER_WEEK", 8)

# Greedy fallback ordering (higher = placed first)
CATEGORY_PRIORITY = {
    Category.IN_GROUP: 3,
    Category.CROSS_NEAR: 2,
    Category.CROSS_FAR: 1,
}

# Solver Settings
SOLVER_TIME_LIMIT_SECONDS = float(os.getenv("SOLVER_TIME_LIMIT_SECONDS", 60))
SOLVER_NUM_WORKERS = int(os.getenv("SOLVER_NUM_WORKERS", 8))
USE_EXACT_SOLVER = _env_bool("USE_EXACT_SOLVER", True)
GREEDY_MAX_ITERATIONS = int(os.getenv("GREEDY_MAX_ITERATIONS", 200000))  # Shared by all greedy passes
# Extra greedy passes, each placing the previous leftovers first. Without the
# exact solve the greedy passes are not guaranteed to finish a 32-team league.
GREEDY_MAX_RESTARTS = int(os.getenv("GREEDY_MAX_RESTARTS", 10))

# Feasibility Pipeline
FEASIBILITY_LOOKAHEAD_WEEKS = int(os.getenv("FEASIBILITY_LOOKAHEAD_WEEKS", 3))
FEASIBILITY_TIGHT_MARGIN = int(os.getenv("FEASIBILITY_TIGHT_MARGIN", 1))
REMATCH_TIGHT_WEEKS = int(os.getenv("REMATCH_TIGHT_WEEKS", 3))
FEASIBILITY_SHORT_CIRCUIT = _env_bool("FEASIBILITY_SHORT_CIRCUIT", False)

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# API and workers
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()]
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
TASK_TIME_LIMIT_SECONDS = int(os.getenv("TASK_TIME_LIMIT_SECONDS", 900))


def default_rules() -> LeagueRules:
    """
    Build the league rules from the configured constants.

    Returns:
        LeagueRules for the configured season
    """
    return LeagueRules(
        total_weeks=TOTAL_WEEKS,
        games_per_team=GAMES_PER_TEAM,
        bye_window_start=BYE_WINDOW_START,
        bye_window_end=BYE_WINDOW_END,
        max_byes_per_week=MAX_BYES_PER_WEEK,
        min_rematch_gap=MIN_REMATCH_GAP,
        max_cross_near_per_week=MAX_CROSS_NEAR_PER_WEEK,
        max_cross_far_per_week=MAX_CROSS_FAR_PER_WEEK,
        max_consecutive_home=MAX_CONSECUTIVE_HOME,
        max_consecutive_away=MAX_CONSECUTIVE_AWAY,
    )
