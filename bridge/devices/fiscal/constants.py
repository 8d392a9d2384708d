"""
Fiscal Register Protocol Constants and Enumerations.

Framing and command codes of the Datecs DP-05 class fiscal printer
protocol (wrapped messages with 4-byte nibble encoded words).
"""

import re
from enum import IntEnum
from typing import Final


# Frame markers
PREAMBLE: Final[int] = 0x01
POSTAMBLE: Final[int] = 0x05
SEPARATOR: Final[int] = 0x04  # between data and status bytes in answers
TERMINATOR: Final[int] = 0x03

# Field layout
WORD_OFFSET: Final[int] = 0x30  # nibble -> ASCII '0'..'?'
LENGTH_OFFSET: Final[int] = 0x20
LENGTH_FIELD_SIZE: Final[int] = 4
COMMAND_OFFSET: Final[int] = 6  # PRE(1) + LEN(4) + SEQ(1)
DATA_OFFSET: Final[int] = 10  # COMMAND_OFFSET + CMD(4)
PARAM_SEPARATOR: Final[str] = "\t"

# Sequence numbers run 0x21..0xFF and wrap to 0x20
SEQUENCE_MIN: Final[int] = 0x20
SEQUENCE_MAX: Final[int] = 0xFF

# Timing
POLL_INTERVAL_S: Final[float] = 0.15
RESPONSE_TIMEOUT_S: Final[float] = 6.0
DEFAULT_RETRIES: Final[int] = 2
DEFAULT_RETRY_DELAY_S: Final[float] = 0.15
READ_CHUNK_SIZE: Final[int] = 256
FLUSH_TIMEOUT_S: Final[float] = 0.02

# Device error codes look like -111008
ERROR_CODE_PATTERN: Final[re.Pattern[str]] = re.compile(r"-\d{6}")

# Field limits
ITEM_NAME_MAX_LENGTH: Final[int] = 72
UNIT_MAX_LENGTH: Final[int] = 6
TEXT_MAX_LENGTH: Final[int] = 48


class Command(IntEnum):
    """Fiscal register commands used by the bridge."""

    NONFISCAL_OPEN = 0x26
    NONFISCAL_CLOSE = 0x27
    NONFISCAL_TEXT = 0x2A
    OPEN_RECEIPT = 0x30
    REGISTER_SALE = 0x31
    FISCAL_TEXT = 0x34
    PAYMENT = 0x35
    CLOSE_RECEIPT = 0x38
    CANCEL_RECEIPT = 0x3C


class PaymentMode:
    """Symbolic payment modes accepted by the API."""

    CASH = "cash"
    CARD = "card"


PAYMENT_MODE_CODES: Final[dict[str, str]] = {
    PaymentMode.CASH: "0",
    PaymentMode.CARD: "1",
}

TAX_CLASS_CODES: Final[dict[str, str]] = {
    "A": "1",
    "B": "2",
    "C": "3",
    "D": "4",
    "E": "5",
    "F": "6",
    "G": "7",
}
DEFAULT_TAX_CLASS: Final[str] = "1"


# Consumable faults: error code -> cause shown to the operator
NO_PAPER_CAUSE: Final[str] = "No paper in the fiscal register"
PRINTER_ERROR_CAUSE: Final[str] = "Printer error / cover open"
GENERIC_PAPER_CAUSE: Final[str] = "Printer / paper error"

PAPER_ERROR_CODES: Final[dict[str, str]] = {
    "-111008": NO_PAPER_CAUSE,
    "-112006": NO_PAPER_CAUSE,
    "-111009": PRINTER_ERROR_CAUSE,
}
