"""
Start a Celery worker that picks up async schedule generation tasks.
"""

import argparse
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from schedulemaker.core.celery_app import celery_app
from schedulemaker.core.config import REDIS_URL


def main():
    parser = argparse.ArgumentParser(description="Run the schedule generation worker")
    parser.add_argument("--concurrency", type=int, default=2,
                        help="Parallel solves (each solve uses several cores)")
    parser.add_argument("--loglevel", default="info")
    args = parser.parse_args()

    print("=" * 60)
    print("League Schedule Maker - Celery Worker")
    print("=" * 60)
    print(f"Broker: {REDIS_URL}")
    print(f"Concurrency: {args.concurrency}")
    print("=" * 60)

    celery_app.worker_main([
        "worker",
        f"--loglevel={args.loglevel}",
        f"--concurrency={args.concurrency}",
        "--pool=solo" if os.name == "nt" else "--pool=prefork"  # prefork is unavailable on Windows
    ])


if __name__ == "__main__":
    main()
