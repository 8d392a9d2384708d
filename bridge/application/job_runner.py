"""
Job Runner - Pulls jobs from the queue and runs them one at a time.
"""

from __future__ import annotations

import asyncio
from typing import Final

from core.exceptions import InvalidJobError, JobQueueError
from core.interfaces import JobSource
from domain.jobs import job_id_of, parse_job
from loggers import logger

from .orchestrator import TransactionOrchestrator


POP_TIMEOUT_S: Final[float] = 5.0
RECONNECT_DELAY_S: Final[float] = 2.0


class JobRunner:
    """Single worker: the next job is popped only after the previous report."""

    def __init__(
        self,
        source: JobSource,
        orchestrator: TransactionOrchestrator,
        pop_timeout: float = POP_TIMEOUT_S,
        reconnect_delay: float = RECONNECT_DELAY_S,
    ) -> None:
        self._source = source
        self._orchestrator = orchestrator
        self._pop_timeout = pop_timeout
        self._reconnect_delay = reconnect_delay
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def stop(self) -> None:
        """Stop after the current job."""
        self._running = False

    async def run(self) -> None:
        """Process jobs until stopped."""
        self._running = True
        logger.info("Job runner started")

        while self._running:
            try:
                raw = await self._source.next_job(timeout=self._pop_timeout)
            except JobQueueError as e:
                logger.error(f"Job queue unavailable: {e}")
                await asyncio.sleep(self._reconnect_delay)
                continue
            except Exception as e:
                logger.exception(f"Unexpected error reading the job queue: {e}")
                await asyncio.sleep(self._reconnect_delay)
                continue

            if raw is None:
                continue
            try:
                await self.handle(raw)
            except Exception as e:
                logger.exception(f"Unexpected error processing job {job_id_of(raw)}: {e}")
                await asyncio.sleep(self._reconnect_delay)

        logger.info("Job runner stopped")

    async def handle(self, raw: dict) -> None:
        """Run one raw job message to its report."""
        try:
            job = parse_job(raw)
        except InvalidJobError as e:
            job_id = job_id_of(raw)
            if job_id is None:
                logger.warning(f"Job without id dropped: {raw!r}")
                return
            logger.error(f"[JOB {job_id}] Invalid job: {e.message}")
            await self._orchestrator.fail(job_id, e.message)
            return

        await self._orchestrator.run(job)
