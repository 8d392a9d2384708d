"""
Application layer - Application services and use cases.

Contains:
- Fiscal and POS services
- Transaction orchestrator
- Job runner
"""

from .fiscal_service import FiscalService
from .job_runner import JobRunner
from .orchestrator import TransactionOrchestrator, partial_failure_message
from .pos_service import PosService


__all__ = [
    "FiscalService",
    "PosService",
    "TransactionOrchestrator",
    "partial_failure_message",
    "JobRunner",
]
