"""
Fiscal Register Protocol Layer.

High-level receipt operations on top of the transport. Each operation
sends exactly one command and turns a device error code into a typed
exception; paper and cover faults are raised as NoPaperError so the
caller can ask the operator to reload paper instead of aborting.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Sequence

from core.exceptions import FiscalCommandError, NoPaperError
from core.value_objects import CommandOutcome, Money
from loggers import logger

from .constants import (
    Command,
    DEFAULT_TAX_CLASS,
    GENERIC_PAPER_CAUSE,
    ITEM_NAME_MAX_LENGTH,
    NO_PAPER_CAUSE,
    PAPER_ERROR_CODES,
    PAYMENT_MODE_CODES,
    PaymentMode,
    TAX_CLASS_CODES,
    TEXT_MAX_LENGTH,
    UNIT_MAX_LENGTH,
)
from .frame import decode_outcome
from .transport import FiscalTransport


# =============================================================================
# Parameter Mapping
# =============================================================================


def map_tax_class(value: Any) -> str:
    """
    Map a tax class to the device code.

    ``A``..``G`` map to ``1``..``7``, ``1``..``7`` pass through,
    anything else falls back to ``1``.
    """
    if value is None:
        return DEFAULT_TAX_CLASS
    text = str(value).strip().upper()
    if text in TAX_CLASS_CODES:
        return TAX_CLASS_CODES[text]
    if re.fullmatch(r"[1-7]", text):
        return text
    return DEFAULT_TAX_CLASS


def map_payment_mode(value: Any) -> str:
    """
    Map a payment mode to the device code.

    ``cash``/``card`` map to fixed codes, a bare digit passes through and
    anything unrecognised is paid as cash rather than rejected.
    """
    text = str(value if value is not None else PaymentMode.CASH).strip().lower()
    if text in PAYMENT_MODE_CODES:
        return PAYMENT_MODE_CODES[text]
    if re.fullmatch(r"[0-9]", text):
        return text
    return PAYMENT_MODE_CODES[PaymentMode.CASH]


def format_money(value: Any) -> str:
    """Amount as ``0.00``."""
    return Money.from_major(value).to_dot()


def format_quantity(value: Any) -> str:
    """Quantity as ``0.000``; unparseable input counts as one piece."""
    text = str(value if value is not None else "1").replace(",", ".").strip()
    try:
        quantity = Decimal(text)
    except InvalidOperation:
        quantity = Decimal(1)
    if not quantity.is_finite():
        quantity = Decimal(1)
    return f"{quantity:.3f}"


# =============================================================================
# Paper Fault Classification
# =============================================================================


def is_paper_error(error: Any) -> bool:
    """Check whether an error (or error code string) is a paper/cover fault."""
    text = str(getattr(error, "error_code", None) or error or "")
    return any(code in text for code in PAPER_ERROR_CODES)


def is_paper_out(error: Any) -> bool:
    """Check whether a paper fault means the roll is empty, not a printer or cover fault."""
    return paper_message_from_code(getattr(error, "error_code", None) or error) == NO_PAPER_CAUSE


def paper_message_from_code(code: Any) -> str:
    """Operator-facing cause for a paper/cover fault code."""
    text = str(code or "")
    for known, cause in PAPER_ERROR_CODES.items():
        if known in text:
            return cause
    return GENERIC_PAPER_CAUSE


def raise_for_outcome(outcome: CommandOutcome, device_name: str) -> None:
    """
    Raise the typed error for a failed outcome.

    Raises:
        NoPaperError: Paper out or cover open.
        FiscalCommandError: Any other device error.
    """
    if outcome.succeeded:
        return
    code = outcome.error_code or "DEVICE_ERROR"
    if is_paper_error(code):
        raise NoPaperError(code, paper_message_from_code(code), device_name=device_name)
    raise FiscalCommandError(code, device_name=device_name)


# =============================================================================
# Protocol
# =============================================================================


class FiscalProtocol:
    """
    Receipt operations for one fiscal register.

    Attributes:
        transport: Underlying transport layer.
    """

    def __init__(self, transport: FiscalTransport) -> None:
        self._transport = transport

    @property
    def transport(self) -> FiscalTransport:
        return self._transport

    async def execute(self, command: int, params: Sequence[object] = ()) -> CommandOutcome:
        """
        Send one command and decode the answer.

        Raises:
            NoFrameError: From the transport.
            FiscalCommandError: Device reported an error.
            NoPaperError: Device reported a paper/cover fault.
        """
        raw = await self._transport.send_command(command, params)
        outcome = decode_outcome(raw)
        if outcome is None:
            raise FiscalCommandError(
                None,
                message="DEVICE_ERROR",
                device_name=self._transport.device_id,
            )

        if outcome.succeeded:
            logger.debug(
                f"[{self._transport.device_id}] CMD={outcome.command:04x} "
                f"DATA=\"{outcome.payload}\" ok"
            )
        else:
            logger.warning(
                f"[{self._transport.device_id}] CMD={outcome.command:04x} "
                f"error code {outcome.error_code}"
            )
        raise_for_outcome(outcome, self._transport.device_id)
        return outcome

    # Fiscal receipt

    async def open_receipt(
        self,
        operator: Any = "1",
        password: Any = "0000",
        till: Any = "1",
    ) -> CommandOutcome:
        """Open a fiscal receipt for an operator session."""
        return await self.execute(
            Command.OPEN_RECEIPT,
            [str(operator), str(password), str(till), ""],
        )

    async def register_sale(
        self,
        name: Any = "ITEM",
        tax: Any = None,
        price: Any = 0,
        quantity: Any = None,
        discount_type: Any = "",
        discount_value: Any = "",
        department: Any = "1",
        unit: Any = "BUC",
    ) -> CommandOutcome:
        """Register one sale line on the open receipt."""
        unit_text = str(unit if unit is not None else "BUC")[:UNIT_MAX_LENGTH] or "X"
        params = [
            str(name if name is not None else "ITEM")[:ITEM_NAME_MAX_LENGTH],
            map_tax_class(tax),
            format_money(price),
            "1.000" if quantity is None else format_quantity(quantity),
            "" if discount_type is None else str(discount_type),
            "" if discount_value is None else str(discount_value),
            str(department if department is not None else "1"),
            unit_text,
            "",
        ]
        return await self.execute(Command.REGISTER_SALE, params)

    async def print_text(self, text: Any = "") -> CommandOutcome:
        """Print a free text line inside the fiscal receipt."""
        return await self.execute(
            Command.FISCAL_TEXT,
            [str(text or "")[:TEXT_MAX_LENGTH], ""],
        )

    async def pay(self, mode: Any = PaymentMode.CASH, amount: Any = 0) -> CommandOutcome:
        """
        Register a payment.

        The outcome carries ``pay_status`` (``D`` deficit / ``R`` change)
        and ``pay_amount``.
        """
        return await self.execute(
            Command.PAYMENT,
            [map_payment_mode(mode), format_money(amount), ""],
        )

    async def close_receipt(self) -> CommandOutcome:
        return await self.execute(Command.CLOSE_RECEIPT)

    async def cancel_receipt(self) -> CommandOutcome:
        return await self.execute(Command.CANCEL_RECEIPT)

    # Non-fiscal slip

    async def open_nonfiscal(self) -> CommandOutcome:
        return await self.execute(Command.NONFISCAL_OPEN, ["", ""])

    async def print_nonfiscal_text(self, text: Optional[Any] = "") -> CommandOutcome:
        params = [str(text or "")[:TEXT_MAX_LENGTH]] + [""] * 7
        return await self.execute(Command.NONFISCAL_TEXT, params)

    async def close_nonfiscal(self) -> CommandOutcome:
        return await self.execute(Command.NONFISCAL_CLOSE, [""])
