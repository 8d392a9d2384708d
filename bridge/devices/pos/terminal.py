"""
POS Terminal Device.

Runs one request/response exchange per command on a freshly opened port:

    ENQ  ->            (NAK: re-send ENQ, at most 3 NAKs)
         <-  ACK
    FRAME ->           (NAK: re-send FRAME once)
         <-  FRAME
    ACK  ->
    EOT  ->            (always, if the port was opened)

The handshake has its own short timeout so a missing terminal is reported
quickly; the whole exchange is bounded by the transaction ceiling, which
leaves room for card insertion, PIN entry and host authorisation.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional

import serial_asyncio

from core.exceptions import (
    DeviceNotConnectedError,
    DeviceTimeoutError,
    PosHandshakeError,
)
from core.interfaces import Device, DeviceInfo, DeviceType
from core.value_objects import Money
from loggers import hex_dump, logger

from .constants import (
    ACK,
    DEFAULT_CURRENCY,
    ENQ,
    ENQ_ACK_TIMEOUT_S,
    EOT,
    MAX_ENQ_ATTEMPTS,
    MAX_FRAME_RESENDS,
    NAK,
    STX,
    TX_TIMEOUT_S,
)
from .crc import verify_crc16
from .frame import FrameAssembler, build_frame
from .response import PosResponse
from .tlv import build_info_tlv, build_refund_tlv, build_sale_tlv, parse_tlv


Connector = Callable[..., Awaitable[tuple[asyncio.StreamReader, asyncio.StreamWriter]]]


class PosTerminal(Device):
    """
    One POS terminal on a serial port.

    Exchanges on the same terminal are serialised by a FIFO lock; the port
    is opened for each exchange and closed afterwards.
    """

    def __init__(
        self,
        label: str,
        port: str,
        baudrate: int = 115200,
        enq_ack_timeout: float = ENQ_ACK_TIMEOUT_S,
        tx_timeout: float = TX_TIMEOUT_S,
        connector: Optional[Connector] = None,
    ) -> None:
        self._label = label
        self._port = port
        self._baudrate = baudrate
        self.enq_ack_timeout = enq_ack_timeout
        self.tx_timeout = tx_timeout
        self._connector = connector or serial_asyncio.open_serial_connection

        self._lock = asyncio.Lock()
        self._reachable = False

    @property
    def device_type(self) -> DeviceType:
        return DeviceType.POS

    @property
    def label(self) -> str:
        return self._label

    @property
    def port(self) -> str:
        return self._port

    @property
    def is_connected(self) -> bool:
        """Whether the last exchange got past the handshake."""
        return self._reachable

    async def connect(self) -> bool:
        # The port is opened per exchange
        logger.info(f"[POS {self._label}] Configured on {self._port} at {self._baudrate} baud")
        return True

    async def disconnect(self) -> None:
        self._reachable = False

    def info(self) -> DeviceInfo:
        return DeviceInfo(
            device_type=DeviceType.POS,
            label=self._label,
            port=self._port,
            baudrate=self._baudrate,
            is_connected=self._reachable,
        )

    # =========================================================================
    # Commands
    # =========================================================================

    async def sale(
        self,
        amount: Money,
        unique_id: Optional[Any] = None,
        currency: str = DEFAULT_CURRENCY,
    ) -> PosResponse:
        """Run a card sale; the caller checks ``approved``."""
        logger.info(f"[POS {self._label}] Sale {amount} {currency} id={unique_id}")
        return await self.exchange(build_sale_tlv(amount, unique_id, currency))

    async def refund(
        self,
        amount: Money,
        unique_id: Optional[Any] = None,
        extra_tags: Optional[Iterable[Mapping[str, Any]]] = None,
        currency: str = DEFAULT_CURRENCY,
    ) -> PosResponse:
        """Run a card refund; the caller checks ``approved``."""
        logger.info(f"[POS {self._label}] Refund {amount} {currency} id={unique_id}")
        return await self.exchange(build_refund_tlv(amount, unique_id, extra_tags, currency))

    async def get_info(self) -> PosResponse:
        """Query terminal information."""
        return await self.exchange(build_info_tlv())

    # =========================================================================
    # Exchange
    # =========================================================================

    async def exchange(self, tlv: bytes) -> PosResponse:
        """
        Send one TLV request and return the decoded response.

        Raises:
            DeviceNotConnectedError: Port cannot be opened or no handshake.
            PosHandshakeError: Terminal NAKed the ENQ three times.
            DeviceTimeoutError: Transaction ceiling exceeded.
        """
        async with self._lock:
            return await self._exchange(tlv)

    async def _exchange(self, tlv: bytes) -> PosResponse:
        logger.info(f"[POS {self._label}] Opening {self._port}")
        try:
            reader, writer = await self._connector(url=self._port, baudrate=self._baudrate)
        except Exception as e:
            self._reachable = False
            logger.error(f"[POS {self._label}] Cannot open port {self._port}: {e}")
            raise DeviceNotConnectedError(
                f"POS {self._label} is not connected",
                device_name=self._label,
            ) from e

        try:
            return await asyncio.wait_for(
                self._converse(reader, writer, tlv),
                timeout=self.tx_timeout,
            )
        except asyncio.TimeoutError:
            logger.error(f"[POS {self._label}] Transaction timeout after {self.tx_timeout:.0f}s")
            raise DeviceTimeoutError(
                f"POS {self._label} transaction timeout",
                device_name=self._label,
            )
        finally:
            await self._finish(writer)

    async def _converse(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        tlv: bytes,
    ) -> PosResponse:
        try:
            await asyncio.wait_for(
                self._handshake(reader, writer),
                timeout=self.enq_ack_timeout,
            )
        except asyncio.TimeoutError:
            self._reachable = False
            logger.error(f"[POS {self._label}] No ACK to ENQ, terminal disconnected or wrong port")
            raise DeviceNotConnectedError(
                f"POS {self._label} is not connected",
                device_name=self._label,
            )
        self._reachable = True

        frame = build_frame(tlv)
        logger.debug(f"[POS {self._label}] TX frame: {hex_dump(frame)}")
        await self._write(writer, frame)

        return await self._read_response(reader, writer, frame)

    async def _handshake(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        logger.debug(f"[POS {self._label}] ENQ")
        await self._write(writer, bytes([ENQ]))
        naks = 0

        while True:
            byte = await self._read_byte(reader)
            if byte == ACK:
                logger.debug(f"[POS {self._label}] ACK to ENQ")
                return
            if byte == NAK:
                naks += 1
                logger.warning(f"[POS {self._label}] NAK to ENQ (attempt {naks})")
                if naks >= MAX_ENQ_ATTEMPTS:
                    raise PosHandshakeError(
                        f"POS {self._label} answered NAK to ENQ {naks} times",
                        device_name=self._label,
                    )
                await self._write(writer, bytes([ENQ]))
            else:
                logger.debug(f"[POS {self._label}] Unexpected byte to ENQ: {byte:02X}")

    async def _read_response(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        frame: bytes,
    ) -> PosResponse:
        resends = 0

        while True:
            byte = await self._read_byte(reader)
            if byte == STX:
                break
            if byte == ACK:
                continue
            if byte == NAK:
                if resends < MAX_FRAME_RESENDS:
                    resends += 1
                    logger.warning(f"[POS {self._label}] NAK to frame, re-sending once")
                    await self._write(writer, frame)
                else:
                    logger.warning(f"[POS {self._label}] NAK to frame ignored, already re-sent")
                continue

        assembler = FrameAssembler()
        while not assembler.feed(await self._read_byte(reader)):
            pass

        logger.debug(f"[POS {self._label}] RX frame: {hex_dump(assembler.raw)}")
        await self._write(writer, bytes([ACK]))

        if not verify_crc16(assembler.tlv, assembler.crc):
            logger.warning(f"[POS {self._label}] Response CRC mismatch")

        response = PosResponse(tags=parse_tlv(assembler.tlv), raw=assembler.raw)
        logger.info(
            f"[POS {self._label}] A100={response.terminal_code or '-'} "
            f"A107={response.host_response or '-'} approved={response.approved}"
        )
        return response

    # =========================================================================
    # I/O helpers
    # =========================================================================

    async def _read_byte(self, reader: asyncio.StreamReader) -> int:
        try:
            data = await reader.readexactly(1)
        except asyncio.IncompleteReadError:
            self._reachable = False
            raise DeviceNotConnectedError(
                f"POS {self._label} port closed",
                device_name=self._label,
            )
        return data[0]

    @staticmethod
    async def _write(writer: asyncio.StreamWriter, data: bytes) -> None:
        writer.write(data)
        await writer.drain()

    async def _finish(self, writer: asyncio.StreamWriter) -> None:
        """Send EOT and close the port."""
        try:
            await self._write(writer, bytes([EOT]))
        except Exception as e:
            logger.debug(f"[POS {self._label}] EOT write failed: {e}")
        writer.close()
        try:
            await writer.wait_closed()
        except Exception as e:
            logger.debug(f"[POS {self._label}] Close error (ignored): {e}")
        logger.debug(f"[POS {self._label}] Port closed")
