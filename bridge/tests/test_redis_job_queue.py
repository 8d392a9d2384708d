"""
Unit tests for RedisJobQueue with a mocked redis client.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from core.exceptions import JobQueueError
from infrastructure.redis_job_queue import RedisJobQueue


@pytest.fixture
def redis():
    mock = MagicMock()
    mock.blpop = AsyncMock(return_value=None)
    mock.rpush = AsyncMock()
    return mock


class TestNextJob:
    """Tests for popping jobs."""

    @pytest.mark.asyncio
    async def test_decodes_job(self, redis):
        redis.blpop.return_value = ("agent_jobs", json.dumps({"id": 1, "job_type": "cash_receipt_only"}))
        queue = RedisJobQueue(redis)

        job = await queue.next_job(timeout=5)

        assert job == {"id": 1, "job_type": "cash_receipt_only"}
        redis.blpop.assert_awaited_once_with(["agent_jobs"], timeout=5)

    @pytest.mark.asyncio
    async def test_timeout(self, redis):
        assert await RedisJobQueue(redis).next_job(timeout=1) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("message", ["{not json", "[1, 2]", "42"])
    async def test_bad_message_is_dropped(self, redis, message):
        redis.blpop.return_value = ("agent_jobs", message)

        assert await RedisJobQueue(redis).next_job() is None

    @pytest.mark.asyncio
    async def test_connection_error(self, redis):
        redis.blpop.side_effect = RedisConnectionError("Connection refused")

        with pytest.raises(JobQueueError):
            await RedisJobQueue(redis).next_job()


class TestPush:
    """Tests for pushing jobs."""

    @pytest.mark.asyncio
    async def test_push(self, redis):
        queue = RedisJobQueue(redis, queue_name="jobs_b")

        await queue.push({"id": 2})

        redis.rpush.assert_awaited_once_with("jobs_b", '{"id": 2}')
