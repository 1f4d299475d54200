from .queue import JobQueue, RedisJobQueue, submit

__all__ = ["JobQueue", "RedisJobQueue", "submit"]
