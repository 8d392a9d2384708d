"""
Job State - Tracks the phase of the job being processed.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Optional

from loggers import logger


class JobPhase(Enum):
    """Phases of a job."""

    RECEIVED = auto()
    CARD_PAYMENT = auto()     # Waiting for the POS terminal
    RECEIPT = auto()          # Printing on the fiscal register
    REPORTING = auto()        # Delivering the report
    COMPLETED = auto()
    FAILED = auto()


@dataclass
class JobContext:
    """
    Progress of one job.

    Attributes:
        job_id: Job being processed.
        phase: Current phase.
        history: Phases entered so far, in order.
    """

    job_id: Any
    phase: JobPhase = JobPhase.RECEIVED
    history: list[JobPhase] = field(default_factory=lambda: [JobPhase.RECEIVED])
    started_at: float = field(default_factory=time.monotonic)
    error: Optional[str] = None

    def advance(self, phase: JobPhase) -> None:
        """Enter a new phase."""
        logger.debug(f"[JOB {self.job_id}] {self.phase.name} -> {phase.name}")
        self.phase = phase
        self.history.append(phase)

    def fail(self, error: str) -> None:
        self.error = error
        self.advance(JobPhase.FAILED)

    @property
    def elapsed(self) -> float:
        """Seconds since the job was received."""
        return time.monotonic() - self.started_at
