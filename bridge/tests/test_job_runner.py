"""
Unit tests for JobRunner.
"""

import asyncio
import logging
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ResponseError

from application.job_runner import JobRunner
from core.exceptions import JobQueueError
from domain.jobs import CashReceiptJob
from main import log_runner_exit


@pytest.fixture
def orchestrator():
    mock = MagicMock()
    mock.run = AsyncMock()
    mock.fail = AsyncMock()
    return mock


def scripted_source(runner_ref: list, *results):
    """Job source returning ``results`` in order, then stopping the runner."""
    pending = list(results)
    source = MagicMock()

    async def next_job(timeout):
        if not pending:
            runner_ref[0].stop()
            return None
        item = pending.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    source.next_job = AsyncMock(side_effect=next_job)
    return source


class TestHandle:
    """Tests for a single raw job."""

    @pytest.mark.asyncio
    async def test_valid_job_is_run(self, orchestrator):
        runner = JobRunner(MagicMock(), orchestrator)

        await runner.handle({"id": 5, "job_type": "cash_receipt_only", "payload": {"amount": "10"}})

        job = orchestrator.run.await_args.args[0]
        assert isinstance(job, CashReceiptJob)
        assert job.id == 5
        orchestrator.fail.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_job_with_id_is_reported(self, orchestrator):
        runner = JobRunner(MagicMock(), orchestrator)

        await runner.handle({"id": 6, "job_type": "card_and_receipt", "payload": {"amount": "abc"}})

        orchestrator.run.assert_not_awaited()
        job_id, message = orchestrator.fail.await_args.args
        assert job_id == 6
        assert "abc" in message

    @pytest.mark.asyncio
    async def test_job_without_id_is_dropped(self, orchestrator):
        runner = JobRunner(MagicMock(), orchestrator)

        await runner.handle({"job_type": "cash_receipt_only", "payload": {}})

        orchestrator.run.assert_not_awaited()
        orchestrator.fail.assert_not_awaited()


class TestRunLoop:
    """Tests for the polling loop."""

    @pytest.mark.asyncio
    async def test_processes_jobs_in_order(self, orchestrator):
        ref = []
        source = scripted_source(
            ref,
            {"id": 1, "job_type": "cash_receipt_only", "payload": {"amount": 1}},
            None,
            {"job": {"id": 2, "job_type": "cash_receipt_only", "payload": {"amount": 2}}},
        )
        runner = JobRunner(source, orchestrator, pop_timeout=0.01)
        ref.append(runner)

        await runner.run()

        assert [c.args[0].id for c in orchestrator.run.await_args_list] == [1, 2]
        assert source.next_job.await_args.kwargs == {"timeout": 0.01}
        assert not runner.is_running

    @pytest.mark.asyncio
    async def test_queue_error_waits_and_continues(self, orchestrator):
        ref = []
        source = scripted_source(
            ref,
            JobQueueError("Connection refused"),
            {"id": 3, "job_type": "retry_receipt", "payload": {"amount": 1, "payment_method": "cash"}},
        )
        runner = JobRunner(source, orchestrator, reconnect_delay=0.01)
        ref.append(runner)

        await runner.run()

        assert orchestrator.run.await_count == 1
        assert orchestrator.run.await_args.args[0].pays_cash

    @pytest.mark.asyncio
    async def test_unexpected_pop_error_waits_and_continues(self, orchestrator):
        ref = []
        source = scripted_source(
            ref,
            ResponseError("WRONGTYPE Operation against a key holding the wrong kind of value"),
            {"id": 4, "job_type": "cash_receipt_only", "payload": {"amount": 1}},
        )
        runner = JobRunner(source, orchestrator, reconnect_delay=0.01)
        ref.append(runner)

        await runner.run()

        assert [c.args[0].id for c in orchestrator.run.await_args_list] == [4]
        assert not runner.is_running

    @pytest.mark.asyncio
    async def test_failing_job_does_not_stop_the_loop(self, orchestrator):
        ref = []
        source = scripted_source(
            ref,
            {"id": 5, "job_type": "cash_receipt_only", "payload": {"amount": 1}},
            {"id": 6, "job_type": "cash_receipt_only", "payload": {"amount": 2}},
        )
        orchestrator.run.side_effect = [RuntimeError("sink exploded"), None]
        runner = JobRunner(source, orchestrator, reconnect_delay=0.01)
        ref.append(runner)

        await runner.run()

        assert [c.args[0].id for c in orchestrator.run.await_args_list] == [5, 6]


class TestRunnerTaskExit:
    """Tests for logging the end of the runner task."""

    @pytest.mark.asyncio
    async def test_crash_is_logged(self, caplog):
        async def crash():
            raise RuntimeError("boom")

        task = asyncio.create_task(crash())
        await asyncio.gather(task, return_exceptions=True)

        with caplog.at_level(logging.ERROR, logger="BRIDGE"):
            log_runner_exit(task)

        assert "Job runner exited unexpectedly" in caplog.text
        assert "boom" in caplog.text

    @pytest.mark.asyncio
    async def test_cancellation_is_silent(self, caplog):
        task = asyncio.create_task(asyncio.sleep(10))
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

        with caplog.at_level(logging.INFO, logger="BRIDGE"):
            log_runner_exit(task)

        assert "Job runner" not in caplog.text
