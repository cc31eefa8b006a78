"""
Celery configuration for off-request merge and validation passes.
"""

from celery import Celery

from campgrid.core.config import REDIS_URL

# Create Celery app
celery_app = Celery(
    "campgrid",
    broker=REDIS_URL,
    backend=REDIS_URL,
    include=["campgrid.tasks.schedule_tasks"]
)

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="America/New_York",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=300,  # 5 minutes max
    task_soft_time_limit=240,  # 4 minutes soft limit
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=50,
)
