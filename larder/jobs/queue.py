"""Redis-backed queue for background matching jobs.

Layout, for a queue named ``name``:
- ``name``        list of ready jobs (RPUSH / LPOP)
- ``name:retry``  sorted set of failed jobs scored by when they may run again
- ``name:dead``   list of jobs that exhausted their attempts

Payloads are JSON ``{"id", "type", "args", "attempts"}`` where ``args`` are
integer ids only; handlers re-read entities from the database.
"""

import json
import logging
import time
import uuid
from typing import Optional, Protocol

from redis import Redis
from redis.exceptions import RedisError

from ..infra.redis_client import get_sync_redis
from ..settings import settings

logger = logging.getLogger(__name__)

JOB_TYPES = ("match_grocery", "match_ingredient", "match_recipe")


class JobQueue(Protocol):
    def enqueue(self, job_type: str, *ids: int) -> None:
        ...


def submit(queue: Optional[JobQueue], job_type: str, *ids: int) -> bool:
    """Enqueue after a commit. A broker outage is logged, never raised to the caller."""
    if queue is None:
        return False
    try:
        queue.enqueue(job_type, *ids)
    except RedisError:
        logger.exception("Failed to enqueue %s%s; matching will not run for it", job_type, tuple(ids))
        return False
    return True


class RedisJobQueue:
    def __init__(self, redis: Optional[Redis] = None, name: Optional[str] = None):
        self._redis = redis
        self.name = name or settings.matching_queue

    @property
    def redis(self) -> Redis:
        return self._redis or get_sync_redis()

    @property
    def retry_key(self) -> str:
        return f"{self.name}:retry"

    @property
    def dead_key(self) -> str:
        return f"{self.name}:dead"

    def enqueue(self, job_type: str, *ids: int) -> None:
        if job_type not in JOB_TYPES:
            raise ValueError(f"Unknown job type: {job_type}")
        if not all(isinstance(i, int) and not isinstance(i, bool) for i in ids):
            raise ValueError(f"Job arguments must be integer ids, got {ids!r}")

        job = {"id": uuid.uuid4().hex, "type": job_type, "args": list(ids), "attempts": 0}
        self.redis.rpush(self.name, json.dumps(job))
        logger.debug("Enqueued %s%s", job_type, tuple(ids))

    def pop(self) -> Optional[dict]:
        raw = self.redis.lpop(self.name)
        if raw is None:
            return None
        return json.loads(raw)

    def schedule_retry(self, job: dict, delay_seconds: float) -> None:
        self.redis.zadd(self.retry_key, {json.dumps(job): time.time() + delay_seconds})

    def promote_due(self, now: Optional[float] = None) -> int:
        """Move retries whose backoff has elapsed back onto the ready list."""
        now = time.time() if now is None else now
        promoted = 0
        for raw in self.redis.zrangebyscore(self.retry_key, 0, now):
            # zrem guards against two workers promoting the same job
            if self.redis.zrem(self.retry_key, raw):
                self.redis.rpush(self.name, raw)
                promoted += 1
        return promoted

    def dead_letter(self, job: dict, error: str) -> None:
        self.redis.rpush(self.dead_key, json.dumps({**job, "error": error}))

    def pending(self) -> int:
        return self.redis.llen(self.name)

    def scheduled(self) -> int:
        return self.redis.zcard(self.retry_key)

    def dead(self) -> list[dict]:
        return [json.loads(raw) for raw in self.redis.lrange(self.dead_key, 0, -1)]
