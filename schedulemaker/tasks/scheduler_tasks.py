"""
Celery tasks for schedule generation.
"""

import traceback
from typing import Optional

from schedulemaker.core.celery_app import celery_app
from schedulemaker.core.exceptions import SchedulingError
from schedulemaker.core.logging_config import get_logger
from schedulemaker.services.generation import generate_schedule
from schedulemaker.services.league_reader import LeagueReader
from schedulemaker.services.serialization import generation_payload

logger = get_logger(__name__)


@celery_app.task(bind=True, name="generate_schedule")
def generate_schedule_task(self, season_year: Optional[int] = None,
                           time_limit_seconds: Optional[float] = None):
    """
    Async task to generate a league schedule.

    Returns:
        dict: Schedule data with games, byes and validation results
    """
    try:
        self.update_state(state="PROGRESS", meta={"status": "Loading league data..."})
        reader = LeagueReader()
        teams, standings, fixed_weeks = reader.load_all_data()

        self.update_state(
            state="PROGRESS",
            meta={"status": f"Generating schedule for {len(teams)} teams..."}
        )
        result = generate_schedule(
            teams,
            prior_standings=standings,
            fixed_weeks=fixed_weeks,
            season_year=season_year,
            time_limit_seconds=time_limit_seconds,
        )
        return generation_payload(result)

    except (SchedulingError, OSError, ValueError) as e:
        error_trace = traceback.format_exc()
        logger.error(f"Error in generate_schedule_task: {error_trace}")

        return {
            "success": False,
            "message": f"Schedule generation failed: {str(e)}",
            "error": str(e),
            "traceback": error_trace
        }
