"""
Run Celery worker for off-request merge passes.
"""

import os

from campgrid.core.celery_app import celery_app
from campgrid.core.logging_config import setup_logging

if __name__ == "__main__":
    setup_logging()
    print("=" * 60)
    print("Campgrid - Celery Worker")
    print("=" * 60)
    print("Worker will process merge_and_validate tasks")
    print("=" * 60)

    celery_app.worker_main([
        "worker",
        "--loglevel=info",
        "--concurrency=2",
        "--pool=solo" if os.name == "nt" else "--pool=prefork"  # Use solo pool on Windows
    ])
