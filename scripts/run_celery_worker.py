"""
Run a Celery worker for background match generation.
"""

import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from courtmatch.core.celery_app import celery_app, MATCH_QUEUE
from courtmatch.core.logging_config import setup_logging

if __name__ == "__main__":
    setup_logging()
    concurrency = os.getenv("CELERY_CONCURRENCY", "2")

    print("=" * 60)
    print("Doubles Match Scheduler - Celery Worker")
    print("=" * 60)
    print(f"Listening on queue '{MATCH_QUEUE}' with concurrency {concurrency}")
    print("=" * 60)

    celery_app.worker_main([
        "worker",
        "--loglevel=info",
        f"--concurrency={concurrency}",
        f"--queues={MATCH_QUEUE}",
        "--pool=solo" if os.name == "nt" else "--pool=prefork"  # prefork is unavailable on Windows
    ])
