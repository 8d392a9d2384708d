"""
Fiscal Register Device.

Owns the serial port of one fiscal register and exposes its protocol.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Awaitable, Optional

import serial_asyncio

from core.exceptions import DeviceNotConnectedError
from core.interfaces import Device, DeviceInfo, DeviceType
from loggers import logger

from .protocol import FiscalProtocol
from .transport import FiscalTransport


Connector = Callable[..., Awaitable[tuple[asyncio.StreamReader, asyncio.StreamWriter]]]


class FiscalRegister(Device):
    """
    One fiscal register on a serial port.

    Example:
        register = FiscalRegister("A", "/dev/ttyUSB0")
        await register.connect()
        await register.protocol.open_receipt("30", "0030", "1")
    """

    def __init__(
        self,
        label: str,
        port: str,
        baudrate: int = 115200,
        response_timeout: float = 6.0,
        retries: int = 2,
        retry_delay: float = 0.15,
        connector: Optional[Connector] = None,
    ) -> None:
        """
        Initialize the register.

        Args:
            label: Device label ("A", "B").
            port: Serial port path.
            baudrate: Serial baud rate.
            response_timeout: Seconds per attempt.
            retries: Attempts per command.
            retry_delay: Seconds between attempts.
            connector: Coroutine returning (reader, writer); defaults to
                ``serial_asyncio.open_serial_connection``.
        """
        self._label = label
        self._port = port
        self._baudrate = baudrate
        self._response_timeout = response_timeout
        self._retries = retries
        self._retry_delay = retry_delay
        self._connector = connector or serial_asyncio.open_serial_connection

        self._transport: Optional[FiscalTransport] = None
        self._protocol: Optional[FiscalProtocol] = None

    @property
    def device_type(self) -> DeviceType:
        return DeviceType.FISCAL

    @property
    def label(self) -> str:
        return self._label

    @property
    def port(self) -> str:
        return self._port

    @property
    def is_connected(self) -> bool:
        return self._transport is not None and self._transport.is_open

    @property
    def protocol(self) -> FiscalProtocol:
        """
        Protocol of the open port.

        Raises:
            DeviceNotConnectedError: Port not open.
        """
        if self._protocol is None or not self.is_connected:
            raise DeviceNotConnectedError(
                f"Fiscal register {self._label} is not connected",
                device_name=self._label,
            )
        return self._protocol

    async def connect(self) -> bool:
        if self.is_connected:
            return True

        try:
            logger.info(f"[{self._label}] Opening fiscal port {self._port} at {self._baudrate} baud")
            reader, writer = await self._connector(url=self._port, baudrate=self._baudrate)
        except Exception as e:
            logger.error(f"[{self._label}] Cannot open fiscal port {self._port}: {e}")
            return False

        self._transport = FiscalTransport(
            reader,
            writer,
            device_id=self._label,
            response_timeout=self._response_timeout,
            retries=self._retries,
            retry_delay=self._retry_delay,
        )
        self._protocol = FiscalProtocol(self._transport)
        logger.info(f"[{self._label}] Fiscal register ready on {self._port}")
        return True

    async def disconnect(self) -> None:
        if self._transport is not None:
            await self._transport.close()
            logger.info(f"[{self._label}] Fiscal port {self._port} closed")
        self._transport = None
        self._protocol = None

    def info(self) -> DeviceInfo:
        return DeviceInfo(
            device_type=DeviceType.FISCAL,
            label=self._label,
            port=self._port,
            baudrate=self._baudrate,
            is_connected=self.is_connected,
        )
