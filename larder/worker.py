"""Matching job worker.

Pops jobs from the Redis matching queue and runs them in their own database
session. A failed job is retried with exponential backoff; after
``job_max_attempts`` attempts it is moved to the dead-letter list.

Usage:
    python -m larder.worker
"""

import logging
import sys
import time
import uuid
from typing import Optional

from sqlalchemy.orm import sessionmaker

from .db import init_engine, session_scope
from .jobs.matching import HANDLERS
from .jobs.queue import RedisJobQueue
from .settings import settings

logger = logging.getLogger(__name__)

WORKER_ID = f"worker-{uuid.uuid4().hex[:8]}"


def processing_backoff(attempt: int) -> int:
    """Exponential backoff: 30s, 60s, 120s..."""
    return settings.job_backoff_seconds * (2 ** max(attempt - 1, 0))


def process_job(job: dict, queue: RedisJobQueue, session_factory: Optional[sessionmaker] = None) -> bool:
    """Run one job. Returns True on success; failures are rescheduled or dead-lettered."""
    job_type, args = job.get("type"), job.get("args", [])
    handler = HANDLERS.get(job_type)
    if handler is None:
        logger.error("Unknown job type %r, dead-lettering", job_type)
        queue.dead_letter(job, f"unknown job type {job_type!r}")
        return False

    try:
        with session_scope(session_factory) as db:
            result = handler(db, queue, *args)
        logger.info("Completed %s%s: %s", job_type, tuple(args), result)
        return True
    except Exception as e:
        job["attempts"] = job.get("attempts", 0) + 1
        logger.exception(
            "Error in %s%s (attempt %s/%s): %s",
            job_type, tuple(args), job["attempts"], settings.job_max_attempts, e,
        )
        if job["attempts"] >= settings.job_max_attempts:
            logger.error("Job %s%s failed permanently after %s attempts", job_type, tuple(args), job["attempts"])
            queue.dead_letter(job, str(e))
        else:
            backoff = processing_backoff(job["attempts"])
            queue.schedule_retry(job, backoff)
            logger.info("Rescheduled %s%s in %ss", job_type, tuple(args), backoff)
        return False


def drain(queue: RedisJobQueue, session_factory: Optional[sessionmaker] = None) -> int:
    """Process ready jobs until the list is empty. Returns the number processed."""
    processed = 0
    queue.promote_due()
    while True:
        job = queue.pop()
        if job is None:
            return processed
        process_job(job, queue, session_factory)
        processed += 1


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logger.info("[%s] Starting (queue: %s, poll: %ss)", WORKER_ID, settings.matching_queue, settings.poll_interval)

    init_engine()
    queue = RedisJobQueue()

    while True:
        try:
            drain(queue)
        except Exception as e:
            logger.error("[%s] Loop error: %s", WORKER_ID, e)
            time.sleep(1)

        time.sleep(settings.poll_interval)


if __name__ == "__main__":
    main()
