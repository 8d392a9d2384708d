"""
Redis job queue.

Jobs are JSON objects pushed onto a Redis list by the booking backend;
the bridge pops them one at a time.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError

from core.exceptions import JobQueueError
from loggers import logger


class RedisJobQueue:
    """
    Job source backed by a Redis list.

    Attributes:
        queue_name: Redis list key.
    """

    def __init__(self, redis: Redis, queue_name: str = "agent_jobs") -> None:
        """
        Initialize the queue.

        Args:
            redis: Redis client (``decode_responses=True``).
            queue_name: Redis list key.
        """
        self._redis = redis
        self.queue_name = queue_name

    async def next_job(self, timeout: float = 0) -> Optional[dict[str, Any]]:
        """
        Pop the next job, waiting up to ``timeout`` seconds (0 waits forever).

        Returns:
            The decoded job, or None on timeout or for a message that is
            not a JSON object.

        Raises:
            JobQueueError: Redis is unreachable.
        """
        try:
            item = await self._redis.blpop([self.queue_name], timeout=timeout)
        except RedisConnectionError as e:
            raise JobQueueError(f"Redis connection error: {e}") from e

        if item is None:
            return None

        _, message = item
        try:
            job = json.loads(message)
        except (TypeError, ValueError) as e:
            logger.error(f"Job queue: invalid JSON dropped: {message!r} ({e})")
            return None

        if not isinstance(job, dict):
            logger.error(f"Job queue: non-object message dropped: {message!r}")
            return None
        return job

    async def push(self, job: dict[str, Any]) -> None:
        """Append a job to the queue."""
        try:
            await self._redis.rpush(self.queue_name, json.dumps(job))
        except RedisConnectionError as e:
            raise JobQueueError(f"Redis connection error: {e}") from e
