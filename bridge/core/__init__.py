"""
Core module - Foundation layer with no external dependencies.

Contains:
- Exceptions
- Interfaces (Protocols)
- Value Objects
"""

from .exceptions import (
    BridgeError,
    DeviceError,
    DeviceNotFoundError,
    DeviceNotConnectedError,
    DeviceTimeoutError,
    NoFrameError,
    FiscalCommandError,
    NoPaperError,
    PosHandshakeError,
    PosDeclinedError,
    JobError,
    InvalidJobError,
    ReportDeliveryError,
    JobQueueError,
    InvalidAmountError,
)
from .interfaces import (
    Device,
    DeviceInfo,
    DeviceType,
    JobSource,
    ReportSink,
)
from .value_objects import (
    Money,
    CommandOutcome,
    Report,
)


__all__ = [
    # Exceptions
    "BridgeError",
    "DeviceError",
    "DeviceNotFoundError",
    "DeviceNotConnectedError",
    "DeviceTimeoutError",
    "NoFrameError",
    "FiscalCommandError",
    "NoPaperError",
    "PosHandshakeError",
    "PosDeclinedError",
    "JobError",
    "InvalidJobError",
    "ReportDeliveryError",
    "JobQueueError",
    "InvalidAmountError",
    # Interfaces
    "Device",
    "DeviceInfo",
    "DeviceType",
    "JobSource",
    "ReportSink",
    # Value Objects
    "Money",
    "CommandOutcome",
    "Report",
]
