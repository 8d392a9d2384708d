"""
Domain layer - Device registry and the job model.

Contains:
- Device manager
- Job variants and parsing
- Job phase tracking
"""

from .device_manager import (
    DeviceManager,
    DeviceRegistry,
)
from .job_state import (
    JobContext,
    JobPhase,
)
from .jobs import (
    CardAndReceiptJob,
    CardRefundJob,
    CashReceiptJob,
    Job,
    JobPayload,
    JobType,
    RetryReceiptJob,
    UnknownJob,
    job_id_of,
    parse_job,
)


__all__ = [
    # Devices
    "DeviceManager",
    "DeviceRegistry",
    # Jobs
    "CardAndReceiptJob",
    "CardRefundJob",
    "CashReceiptJob",
    "Job",
    "JobPayload",
    "JobType",
    "RetryReceiptJob",
    "UnknownJob",
    "job_id_of",
    "parse_job",
    # State
    "JobContext",
    "JobPhase",
]
