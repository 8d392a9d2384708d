"""
Interfaces (Protocols) for the bridge.

Defines contracts for devices and for the job queue collaborators using
abstract base classes and Python's Protocol for structural subtyping.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Protocol, runtime_checkable


# =============================================================================
# Enums
# =============================================================================


class DeviceType(str, Enum):
    """Kinds of serial devices driven by the bridge."""

    FISCAL = "fiscal"
    POS = "pos"


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class DeviceInfo:
    """Static description of a device, for health output."""

    device_type: DeviceType
    label: str
    port: str
    baudrate: int
    is_connected: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.device_type.value,
            "id": self.label,
            "path": self.port,
            "baud": self.baudrate,
            "connected": self.is_connected,
        }


# =============================================================================
# Device Interfaces
# =============================================================================


class Device(ABC):
    """
    Abstract base class for a serial device.

    One instance per physical endpoint; it exclusively owns its port.
    """

    @property
    @abstractmethod
    def device_type(self) -> DeviceType:
        """Get the device type."""
        ...

    @property
    @abstractmethod
    def label(self) -> str:
        """Get the device label ("A", "B", ...)."""
        ...

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Check if the device port is usable."""
        ...

    @abstractmethod
    async def connect(self) -> bool:
        """
        Open the device.

        Returns:
            True if the device is usable afterwards.
        """
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Release the device port."""
        ...

    @abstractmethod
    def info(self) -> DeviceInfo:
        """Describe the device."""
        ...


# =============================================================================
# Job Queue Collaborators
# =============================================================================


@runtime_checkable
class ReportSink(Protocol):
    """Receives the report of a finished job."""

    async def send_report(self, job_id: Any, report: dict[str, Any]) -> None:
        ...


@runtime_checkable
class JobSource(Protocol):
    """Yields raw job messages, one at a time."""

    async def next_job(self, timeout: float = 0) -> Optional[dict[str, Any]]:
        ...
