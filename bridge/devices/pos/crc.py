"""
CRC16 BUYPASS Calculation for the POS link.

Polynomial 0x8005, initial value 0, no reflection, no final XOR.
The CRC covers the TLV payload only, not STX/LEN/ETX.
"""

from .constants import CRC_INITIAL, CRC_POLYNOMIAL


def calculate_crc16(data: bytes) -> int:
    """
    Calculate the CRC16/BUYPASS of ``data``.

    Example:
        >>> hex(calculate_crc16(b"123456789"))
        '0xfee8'
    """
    crc: int = CRC_INITIAL

    for byte in data:
        crc ^= byte << 8
        for _ in range(8):
            if crc & 0x8000:
                crc = ((crc << 1) & 0xFFFF) ^ CRC_POLYNOMIAL
            else:
                crc = (crc << 1) & 0xFFFF

    return crc


def crc_bytes(data: bytes) -> bytes:
    """CRC as two big-endian bytes."""
    return calculate_crc16(data).to_bytes(2, byteorder="big")


def verify_crc16(tlv: bytes, received: bytes) -> bool:
    """Check a received big-endian CRC against the TLV payload."""
    return len(received) == 2 and crc_bytes(tlv) == bytes(received)
