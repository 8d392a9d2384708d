"""
Value Objects for the bridge.

Immutable objects that represent values in the domain.
Value objects are compared by value, not by identity.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional, Union


# =============================================================================
# Money Value Object
# =============================================================================


@dataclass(frozen=True)
class Money:
    """
    Immutable monetary amount.

    Stored in minor units (bani / cents) to avoid floating-point
    precision issues.

    Attributes:
        minor: Amount in minor units.
    """

    minor: int = 0

    def __post_init__(self) -> None:
        if self.minor < 0:
            raise ValueError("Amount cannot be negative")

    @classmethod
    def from_major(cls, value: Union[str, int, float, Decimal, None]) -> "Money":
        """
        Create Money from a major-unit amount.

        Accepts numbers or strings, with either ``.`` or ``,`` as the
        decimal separator. Rounds half up to two decimals.

        Raises:
            ValueError: If the value is not a number or is negative.
        """
        if value is None or value == "":
            return cls(minor=0)
        text = str(value).replace(",", ".").strip()
        try:
            amount = Decimal(text)
        except InvalidOperation:
            raise ValueError(f"Invalid amount: {value!r}")
        if not amount.is_finite():
            raise ValueError(f"Invalid amount: {value!r}")
        minor = (amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        return cls(minor=int(minor))

    @property
    def major(self) -> float:
        """Amount in major units."""
        return self.minor / 100

    def to_dot(self) -> str:
        """Device format with two decimals, e.g. ``15.50``."""
        return f"{self.minor // 100}.{self.minor % 100:02d}"

    def to_digits(self, width: int = 12) -> str:
        """Zero padded minor units, e.g. ``000000001550``."""
        return str(self.minor).rjust(width, "0")

    def __bool__(self) -> bool:
        return self.minor > 0

    def __str__(self) -> str:
        return self.to_dot()


# =============================================================================
# Fiscal Command Outcome
# =============================================================================


@dataclass(frozen=True)
class CommandOutcome:
    """
    Decoded answer of the fiscal register to one command.

    Attributes:
        succeeded: True when the answer carries no error code.
        command: Command code echoed by the device.
        error_code: Device error code (``-NNNNNN``) if any.
        payload: Data field as ASCII.
        pay_status: ``D`` (deficit) or ``R`` (change) for the pay command.
        pay_amount: Deficit or change amount for the pay command.
        status: Status bytes following the data separator, as hex.
    """

    succeeded: bool
    command: int
    error_code: Optional[str] = None
    payload: str = ""
    pay_status: str = ""
    pay_amount: str = ""
    status: str = ""

    @property
    def params(self) -> tuple[str, ...]:
        """Payload split on the tab separator."""
        if not self.payload:
            return ()
        return tuple(self.payload.split("\t"))

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "ok": self.succeeded,
            "command": f"{self.command:04x}",
            "data": self.payload,
        }
        if self.error_code:
            result["errorCode"] = self.error_code
        if self.pay_status or self.pay_amount:
            result["status"] = self.pay_status
            result["amount"] = self.pay_amount
        return result


# =============================================================================
# Job Report
# =============================================================================


@dataclass
class Report:
    """
    Outcome of one job, sent back to the booking backend.

    Attributes:
        success: Whole job succeeded.
        pos_ok: Card step succeeded (or was not needed).
        fiscal_ok: Receipt step succeeded (or was not needed).
        error_message: Caller-facing failure text.
        pos: Card step details.
        fiscal: Receipt step details.
    """

    success: bool = False
    pos_ok: bool = False
    fiscal_ok: bool = False
    error_message: Optional[str] = None
    pos: dict[str, Any] = field(default_factory=lambda: {"ok": False})
    fiscal: dict[str, Any] = field(default_factory=lambda: {"ok": False})

    @classmethod
    def for_flow(cls, pos_ok: bool, fiscal_ok: bool) -> "Report":
        """Start a report with the sub-flags a flow does not touch preset."""
        return cls(
            pos_ok=pos_ok,
            fiscal_ok=fiscal_ok,
            pos={"ok": pos_ok},
            fiscal={"ok": fiscal_ok},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "pos_ok": self.pos_ok,
            "fiscal_ok": self.fiscal_ok,
            "error_message": self.error_message,
            "result": {
                "pos": dict(self.pos),
                "fiscal": dict(self.fiscal),
            },
        }
