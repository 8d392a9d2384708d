"""
Fiscal Register Frame Codec.

Builds and parses wrapped messages.

Frame Structure:
    PRE (0x01) | LEN (4) | SEQ (1) | CMD (4) | DATA (n) | PST (0x05) | BCC (4) | EOT (0x03)

Where:
    - LEN: length of SEQ..PST plus the LEN field itself plus 0x20
    - SEQ: wrapping sequence number
    - CMD: command code
    - DATA: tab separated ASCII parameters; answers append
      SEPARATOR (0x04) and status bytes
    - BCC: 16-bit sum of LEN..PST

Every 4-byte word maps each nibble of a 16-bit value to ``0x30 + nibble``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from core.value_objects import CommandOutcome

from .constants import (
    Command,
    COMMAND_OFFSET,
    DATA_OFFSET,
    ERROR_CODE_PATTERN,
    LENGTH_FIELD_SIZE,
    LENGTH_OFFSET,
    PARAM_SEPARATOR,
    POSTAMBLE,
    PREAMBLE,
    SEPARATOR,
    TERMINATOR,
    WORD_OFFSET,
)


def encode_word(value: int) -> bytes:
    """
    Encode a 16-bit value as four nibble characters.

    Example:
        >>> encode_word(0x0035)
        b'0035'
        >>> encode_word(0xABCD)
        b':;<='
    """
    value &= 0xFFFF
    return bytes(WORD_OFFSET + ((value >> shift) & 0x0F) for shift in (12, 8, 4, 0))


def decode_word(data: bytes) -> int:
    """Decode four nibble characters back into a 16-bit value."""
    value = 0
    for byte in data[:4]:
        value = (value << 4) | ((byte - WORD_OFFSET) & 0x0F)
    return value


def checksum(data: bytes) -> int:
    """Additive checksum modulo 2^16."""
    return sum(data) & 0xFFFF


def params_to_data(params: Iterable[object]) -> bytes:
    """Join parameters with TAB into the ASCII data field."""
    text = PARAM_SEPARATOR.join(str(p) for p in params)
    return text.encode("ascii", errors="replace")


def has_complete_wrapper(buffer: bytes) -> bool:
    """
    Check for PRE, then PST, then EOT, in that order.

    This is only a structural check; the checksum is not validated.
    """
    pre = buffer.find(PREAMBLE)
    if pre < 0:
        return False
    pst = buffer.find(POSTAMBLE, pre + 1)
    if pst < 0:
        return False
    return buffer.find(TERMINATOR, pst + 1) > pst


@dataclass
class FiscalFrame:
    """
    One wrapped message.

    Attributes:
        sequence: Sequence byte.
        command: 16-bit command code.
        data: Data field bytes.
        status: Status bytes (answers only).
    """

    sequence: int
    command: int
    data: bytes = b""
    status: bytes = b""

    @classmethod
    def from_params(
        cls,
        sequence: int,
        command: int,
        params: Iterable[object] = (),
    ) -> "FiscalFrame":
        return cls(sequence=sequence, command=command, data=params_to_data(params))

    @property
    def params(self) -> tuple[str, ...]:
        """Data field split on TAB; empty data gives no parameters."""
        if not self.data:
            return ()
        return tuple(self.data.decode("ascii", errors="replace").split(PARAM_SEPARATOR))

    def _core(self) -> bytes:
        body = self.data
        if self.status:
            body += bytes([SEPARATOR]) + self.status
        return bytes([self.sequence & 0xFF]) + encode_word(self.command) + body + bytes([POSTAMBLE])

    def to_bytes(self) -> bytes:
        """Serialize the frame with LEN and BCC."""
        core = self._core()
        length = encode_word(len(core) + LENGTH_FIELD_SIZE + LENGTH_OFFSET)
        bcc = encode_word(checksum(length + core))
        return bytes([PREAMBLE]) + length + core + bcc + bytes([TERMINATOR])

    @classmethod
    def from_bytes(cls, raw: bytes) -> Optional["FiscalFrame"]:
        """
        Parse the first wrapped message found in ``raw``.

        Returns:
            The frame, or None if no preamble/postamble pair encloses a
            command field.
        """
        pre = raw.find(PREAMBLE)
        if pre < 0:
            return None
        pst = raw.find(POSTAMBLE, pre + 1)
        if pst < 0 or pst < pre + DATA_OFFSET:
            return None

        sequence = raw[pre + COMMAND_OFFSET - 1]
        command = decode_word(raw[pre + COMMAND_OFFSET:pre + DATA_OFFSET])
        body = raw[pre + DATA_OFFSET:pst]

        data, sep, status = body.partition(bytes([SEPARATOR]))
        return cls(
            sequence=sequence,
            command=command,
            data=data,
            status=status if sep else b"",
        )


def decode_outcome(raw: bytes) -> Optional[CommandOutcome]:
    """
    Interpret a device answer.

    A ``-NNNNNN`` pattern anywhere in the data field is the device error
    code; its absence means success. The pay command additionally reports
    a status flag and an amount in the second and third fields.

    Returns:
        The outcome, or None if ``raw`` holds no frame.
    """
    frame = FiscalFrame.from_bytes(raw)
    if frame is None:
        return None

    payload = frame.data.decode("ascii", errors="replace")
    match = ERROR_CODE_PATTERN.search(payload)
    error_code = match.group(0) if match else None

    pay_status = ""
    pay_amount = ""
    if frame.command == Command.PAYMENT and error_code is None:
        parts = payload.split(PARAM_SEPARATOR)
        pay_status = parts[1] if len(parts) > 1 else ""
        pay_amount = parts[2] if len(parts) > 2 else ""

    return CommandOutcome(
        succeeded=error_code is None,
        command=frame.command,
        error_code=error_code,
        payload=payload,
        pay_status=pay_status,
        pay_amount=pay_amount,
        status=frame.status.hex(),
    )
