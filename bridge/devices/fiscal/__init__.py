"""
Fiscal Register Driver Package.

Async driver for Datecs class fiscal registers speaking the wrapped
message protocol over a serial port.

Example:
    register = FiscalRegister("A", "/dev/ttyUSB0")
    await register.connect()
    await register.protocol.open_receipt("30", "0030", "1")
    await register.protocol.register_sale("Ticket", "1", "15.50")
    await register.protocol.pay("cash", "15.50")
    await register.protocol.close_receipt()
"""

from .constants import (
    Command,
    PaymentMode,
)
from .device import FiscalRegister
from .frame import (
    FiscalFrame,
    checksum,
    decode_outcome,
    decode_word,
    encode_word,
    has_complete_wrapper,
)
from .protocol import (
    FiscalProtocol,
    format_money,
    format_quantity,
    is_paper_error,
    is_paper_out,
    map_payment_mode,
    map_tax_class,
    paper_message_from_code,
)
from .transport import FiscalTransport


__all__ = [
    # Constants
    "Command",
    "PaymentMode",
    # Frame
    "FiscalFrame",
    "checksum",
    "decode_outcome",
    "decode_word",
    "encode_word",
    "has_complete_wrapper",
    # Transport / Protocol
    "FiscalTransport",
    "FiscalProtocol",
    "format_money",
    "format_quantity",
    "is_paper_error",
    "is_paper_out",
    "map_payment_mode",
    "map_tax_class",
    "paper_message_from_code",
    # Device
    "FiscalRegister",
]
