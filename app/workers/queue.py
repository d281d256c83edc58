"""RQ queues for quote background jobs."""

from functools import lru_cache

import rq
from redis import Redis

from app.core.config import get_settings

DEFAULT_QUEUE = "quotes"


@lru_cache(maxsize=1)
def get_redis() -> Redis:
    return Redis.from_url(get_settings().REDIS_URL)


def get_queue(name: str = DEFAULT_QUEUE) -> rq.Queue:
    return rq.Queue(name, connection=get_redis(), default_timeout=get_settings().JOB_TIMEOUT)
