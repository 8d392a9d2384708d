"""
Device Manager - Central registry and lifecycle management for devices.

Provides access to fiscal registers and POS terminals by label and
manages their lifecycle.
"""

from __future__ import annotations

from typing import Any, Optional

from core.exceptions import DeviceNotConnectedError, DeviceNotFoundError
from core.interfaces import Device, DeviceType
from devices.fiscal import FiscalRegister
from devices.pos import PosTerminal
from loggers import logger


# =============================================================================
# Device Registry
# =============================================================================


class DeviceRegistry:
    """
    Registry of devices keyed by type and label.

    A fiscal register and a POS terminal may share a label ("A").
    """

    def __init__(self) -> None:
        self._devices: dict[tuple[DeviceType, str], Device] = {}

    def register(self, device: Device) -> None:
        """
        Register a device.

        Args:
            device: Device to register.
        """
        key = (device.device_type, device.label.upper())
        self._devices[key] = device
        logger.debug(f"Registered device: {device.label} ({device.device_type.name})")

    def get(self, device_type: DeviceType, label: str) -> Optional[Device]:
        """
        Get a device by type and label.

        Returns:
            Device or None if not found.
        """
        return self._devices.get((device_type, str(label).upper()))

    def get_all(self) -> list[Device]:
        """Get all registered devices."""
        return list(self._devices.values())


# =============================================================================
# Device Manager
# =============================================================================


class DeviceManager:
    """
    Manager for device lifecycle.

    Handles connection and shutdown of all devices and resolves the
    ``dev`` label used by the HTTP surface and by jobs.
    """

    def __init__(self) -> None:
        self.registry = DeviceRegistry()
        self._initialized = False

    @classmethod
    def from_settings(cls, settings: Any) -> "DeviceManager":
        """
        Build a manager with every configured device.

        Args:
            settings: Application settings.
        """
        manager = cls()
        for cfg in settings.fiscal_devices:
            manager.register_device(
                FiscalRegister(
                    label=cfg.label,
                    port=cfg.port,
                    baudrate=cfg.baudrate,
                    response_timeout=cfg.response_timeout_ms / 1000,
                    retries=cfg.retries,
                    retry_delay=cfg.retry_delay_ms / 1000,
                )
            )
        for cfg in settings.pos_devices:
            manager.register_device(
                PosTerminal(
                    label=cfg.label,
                    port=cfg.port,
                    baudrate=cfg.baudrate,
                    enq_ack_timeout=settings.pos.enq_ack_timeout_ms / 1000,
                    tx_timeout=settings.pos.tx_timeout_ms / 1000,
                )
            )
        return manager

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def register_device(self, device: Device) -> None:
        """Register a device with the manager."""
        self.registry.register(device)

    async def initialize_all(self) -> dict[str, bool]:
        """
        Connect all registered devices.

        A device that fails to open stays registered and reports
        not-connected until the next start.

        Returns:
            Dictionary of "<type>:<label>" to success status.
        """
        results: dict[str, bool] = {}

        for device in self.registry.get_all():
            name = f"{device.device_type.value}:{device.label}"
            try:
                success = await device.connect()
                results[name] = success
                logger.info(f"Device {name}: {'connected' if success else 'failed'}")
            except Exception as e:
                results[name] = False
                logger.error(f"Device {name} initialization error: {e}")

        self._initialized = True
        return results

    async def shutdown_all(self) -> None:
        """Disconnect all devices."""
        for device in self.registry.get_all():
            try:
                await device.disconnect()
            except Exception as e:
                logger.error(f"Error disconnecting {device.device_type.value}:{device.label}: {e}")

        self._initialized = False

    def get_fiscal(self, label: str) -> FiscalRegister:
        """
        Get a connected fiscal register.

        Raises:
            DeviceNotFoundError: Unknown label.
            DeviceNotConnectedError: Port not open (code FISCAL_NOT_CONNECTED).
        """
        device = self.registry.get(DeviceType.FISCAL, label)
        if device is None:
            raise DeviceNotFoundError(
                f"Unknown device '{label}'. Use ?dev=A or ?dev=B",
                device_name=label,
            )
        if not device.is_connected:
            raise DeviceNotConnectedError(
                f"Fiscal register {device.label} is not connected ({device.port})",
                device_name=device.label,
                code="FISCAL_NOT_CONNECTED",
            )
        return device

    def get_pos(self, label: str) -> PosTerminal:
        """
        Get a POS terminal.

        Raises:
            DeviceNotFoundError: Unknown label.
        """
        device = self.registry.get(DeviceType.POS, label)
        if device is None:
            raise DeviceNotFoundError(
                f"Unknown POS device '{label}'. Use ?dev=A or ?dev=B",
                device_name=label,
            )
        return device

    def get_status(self) -> list[dict[str, Any]]:
        """Describe every registered device."""
        return [device.info().to_dict() for device in self.registry.get_all()]
