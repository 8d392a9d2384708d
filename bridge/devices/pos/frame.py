"""
POS Frame Codec.

Frame Structure:
    STX (0x02) | LEN (2, big-endian) | TLV (LEN bytes) | ETX (0x03) | CRC (2, big-endian)

The CRC is CRC16/BUYPASS over the TLV bytes only.
"""

from __future__ import annotations

from typing import Optional

from .constants import ETX, HEADER_SIZE, STX, TRAILER_SIZE
from .crc import crc_bytes


def build_frame(tlv: bytes) -> bytes:
    """
    Wrap a TLV payload into a frame.

    Raises:
        ValueError: Payload does not fit the 16-bit length field.
    """
    if len(tlv) > 0xFFFF:
        raise ValueError(f"TLV payload too long: {len(tlv)} bytes")
    return bytes([STX]) + len(tlv).to_bytes(2, "big") + tlv + bytes([ETX]) + crc_bytes(tlv)


class FrameAssembler:
    """
    Collects a response frame byte by byte.

    Feed bytes after an STX has been seen; once the three header bytes
    are in, the total length is known and ``complete`` turns true when
    that many bytes have arrived.
    """

    def __init__(self) -> None:
        self._buffer = bytearray([STX])
        self._data_length: Optional[int] = None

    @property
    def data_length(self) -> Optional[int]:
        return self._data_length

    @property
    def expected_length(self) -> Optional[int]:
        if self._data_length is None:
            return None
        return HEADER_SIZE + self._data_length + TRAILER_SIZE

    @property
    def complete(self) -> bool:
        expected = self.expected_length
        return expected is not None and len(self._buffer) >= expected

    def feed(self, byte: int) -> bool:
        """Append one byte; returns True once the frame is complete."""
        self._buffer.append(byte)
        if len(self._buffer) == HEADER_SIZE:
            self._data_length = (self._buffer[1] << 8) | self._buffer[2]
        return self.complete

    @property
    def raw(self) -> bytes:
        return bytes(self._buffer)

    @property
    def tlv(self) -> bytes:
        if self._data_length is None:
            return b""
        return bytes(self._buffer[HEADER_SIZE:HEADER_SIZE + self._data_length])

    @property
    def crc(self) -> bytes:
        if self._data_length is None:
            return b""
        start = HEADER_SIZE + self._data_length + 1
        return bytes(self._buffer[start:start + 2])
