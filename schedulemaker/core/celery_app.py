"""
Celery app for running batch schedule generation off the request thread.
Broker and result backend share one Redis instance.
"""

from celery import Celery

from schedulemaker.core.config import REDIS_URL, TASK_TIME_LIMIT_SECONDS

celery_app = Celery(
    "league_schedule_maker",
    broker=REDIS_URL,
    backend=REDIS_URL,
    include=["schedulemaker.tasks.scheduler_tasks"]
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=TASK_TIME_LIMIT_SECONDS,
    # Leave the solver a minute to return a partial result before the hard kill
    task_soft_time_limit=max(TASK_TIME_LIMIT_SECONDS - 60, 1),
    # One solve holds all worker cores
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=20,
    result_expires=24 * 3600,
)
