"""
POS Terminal Protocol Constants and Enumerations.

SmartPay ECR link: control bytes, TLV tags and host response codes.
"""

from enum import IntEnum
from typing import Final


# Control bytes
STX: Final[int] = 0x02
ETX: Final[int] = 0x03
EOT: Final[int] = 0x04
ENQ: Final[int] = 0x05
ACK: Final[int] = 0x06
NAK: Final[int] = 0x15

# Frame layout: STX(1) + LEN(2) + TLV + ETX(1) + CRC(2)
HEADER_SIZE: Final[int] = 3
TRAILER_SIZE: Final[int] = 3

# CRC-16/BUYPASS
CRC_POLYNOMIAL: Final[int] = 0x8005
CRC_INITIAL: Final[int] = 0x0000

# Handshake
MAX_ENQ_ATTEMPTS: Final[int] = 3
MAX_FRAME_RESENDS: Final[int] = 1

# Timing (seconds)
ENQ_ACK_TIMEOUT_S: Final[float] = 2.5
TX_TIMEOUT_S: Final[float] = 200.0

# Field widths
AMOUNT_DIGITS: Final[int] = 12
UNIQUE_ID_DIGITS: Final[int] = 12
ZERO_CASHBACK: Final[str] = "0" * AMOUNT_DIGITS


class Tag(IntEnum):
    """TLV tags used by the bridge."""

    # Request
    OPERATION = 0xA000
    AMOUNT = 0xA001
    CURRENCY_NAME = 0xA002
    CURRENCY_CODE = 0xA003
    CASHBACK = 0xA007
    UNIQUE_ID = 0xA008

    # Response
    TERMINAL_RESULT = 0xA100
    HOST_RESPONSE = 0xA107
    RESPONSE_TEXT = 0xA108
    CARD_PRESENCE = 0xA10C


class Operation(IntEnum):
    """Values of the OPERATION tag."""

    GET_INFO = 0x01
    SALE = 0x02
    REFUND = 0x03


DEFAULT_CURRENCY: Final[str] = "RON"

CURRENCY_CODES: Final[dict[str, str]] = {
    "RON": "946",
    "EUR": "978",
    "USD": "840",
}


# Approval
APPROVED_TERMINAL_CODE: Final[str] = "00"
APPROVED_HOST_RESPONSES: Final[frozenset[str]] = frozenset({"00", "Y1", "Y3"})

# Decline reasons
CARD_NOT_INSERTED: Final[str] = "card not inserted"
TERMINAL_NOT_REGISTERED: Final[str] = "terminal not registered"
TRANSACTION_DECLINED: Final[str] = "transaction declined"
NO_CARD_MARKER: Final[str] = "**"
HOST_CARD_CANCELLED: Final[str] = "CC"
TERMINAL_NO_CARD_CODE: Final[str] = "01"

HOST_RESPONSE_MESSAGES: Final[dict[str, str]] = {
    "51": "insufficient funds",
    "05": "transaction declined",
    "54": "card expired",
    "91": "bank unavailable (try again)",
    "96": "system error (try again)",
}
