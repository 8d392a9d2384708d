"""
POS Terminal Driver Package.

Async driver for SmartPay ECR link card terminals (ENQ handshake, TLV
payload, CRC16/BUYPASS).

Example:
    terminal = PosTerminal("A", "/dev/ttyACM0")
    response = await terminal.sale(Money.from_major("15.50"), unique_id="42")
    if not response.approved:
        print(response.decline_message)
"""

from .constants import (
    ACK,
    ENQ,
    EOT,
    ETX,
    NAK,
    STX,
    Operation,
    Tag,
)
from .crc import (
    calculate_crc16,
    crc_bytes,
    verify_crc16,
)
from .frame import (
    FrameAssembler,
    build_frame,
)
from .response import (
    PosResponse,
    decline_message,
)
from .terminal import PosTerminal
from .tlv import (
    build_info_tlv,
    build_refund_tlv,
    build_sale_tlv,
    format_unique_id,
    parse_tlv,
    tlv,
)


__all__ = [
    # Constants
    "ACK",
    "ENQ",
    "EOT",
    "ETX",
    "NAK",
    "STX",
    "Operation",
    "Tag",
    # CRC
    "calculate_crc16",
    "crc_bytes",
    "verify_crc16",
    # Frame / TLV
    "FrameAssembler",
    "build_frame",
    "build_info_tlv",
    "build_refund_tlv",
    "build_sale_tlv",
    "format_unique_id",
    "parse_tlv",
    "tlv",
    # Response
    "PosResponse",
    "decline_message",
    # Device
    "PosTerminal",
]
