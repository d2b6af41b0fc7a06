"""
Celery application for background match generation.

Each task owns its roster and random source, so independent sessions can be
generated in parallel by separate workers.
"""

from celery import Celery
import os

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
MATCH_QUEUE = os.getenv("CELERY_MATCH_QUEUE", "matches")

celery_app = Celery(
    "courtmatch",
    broker=REDIS_URL,
    backend=REDIS_URL,
    include=["courtmatch.tasks.match_tasks"]
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=os.getenv("CELERY_TIMEZONE", "UTC"),
    enable_utc=True,
    task_track_started=True,
    task_time_limit=int(os.getenv("CELERY_TASK_TIME_LIMIT", "300")),
    task_soft_time_limit=int(os.getenv("CELERY_TASK_SOFT_TIME_LIMIT", "240")),
    task_routes={"generate_matches": {"queue": MATCH_QUEUE}},
    task_default_queue=MATCH_QUEUE,
    result_expires=int(os.getenv("CELERY_RESULT_EXPIRES", "3600")),
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=50,
)
