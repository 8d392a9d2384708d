"""
TLV payload encoding for the POS link.

Record layout: TAG (2 bytes, big-endian) | LEN (1 byte) | VALUE (LEN bytes).
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from core.value_objects import Money
from loggers import logger

from .constants import (
    AMOUNT_DIGITS,
    CURRENCY_CODES,
    DEFAULT_CURRENCY,
    Operation,
    Tag,
    UNIQUE_ID_DIGITS,
    ZERO_CASHBACK,
)


def tlv(tag: int, value: bytes) -> bytes:
    """
    Encode one TLV record.

    Raises:
        ValueError: Value longer than 255 bytes.
    """
    if len(value) > 0xFF:
        raise ValueError(f"TLV value too long for tag {tag:04X}: {len(value)} bytes")
    return bytes([(tag >> 8) & 0xFF, tag & 0xFF, len(value)]) + value


def ascii_tlv(tag: int, text: str) -> bytes:
    return tlv(tag, text.encode("ascii", errors="replace"))


def format_unique_id(value: Any) -> str:
    """Left-pad with zeros to 12 characters, then keep the first 12."""
    return str(value).rjust(UNIQUE_ID_DIGITS, "0")[:UNIQUE_ID_DIGITS]


def currency_code(currency: str) -> str:
    """
    Numeric ISO code for a currency name.

    Raises:
        ValueError: Currency not supported by the terminal.
    """
    try:
        return CURRENCY_CODES[currency.upper()]
    except KeyError:
        raise ValueError(f"Unsupported currency: {currency}")


def parse_tag(value: Any) -> Optional[int]:
    """Parse ``"0xA012"`` or ``"A012"`` into a tag number; None if invalid."""
    text = str(value or "").strip().upper()
    if text.startswith("0X"):
        text = text[2:]
    if not text:
        return None
    try:
        tag = int(text, 16)
    except ValueError:
        return None
    return tag if 0 <= tag <= 0xFFFF else None


# =============================================================================
# Requests
# =============================================================================


def _amount_records(amount: Money, currency: str) -> list[bytes]:
    return [
        ascii_tlv(Tag.AMOUNT, amount.to_digits(AMOUNT_DIGITS)),
        ascii_tlv(Tag.CURRENCY_NAME, currency.upper()),
        ascii_tlv(Tag.CURRENCY_CODE, currency_code(currency)),
    ]


def build_info_tlv() -> bytes:
    """Get-terminal-information request."""
    return tlv(Tag.OPERATION, bytes([Operation.GET_INFO]))


def build_sale_tlv(
    amount: Money,
    unique_id: Optional[Any] = None,
    currency: str = DEFAULT_CURRENCY,
) -> bytes:
    """
    Sale-by-card request.

    Args:
        amount: Amount to charge.
        unique_id: Transaction reference (default ``1``).
        currency: Currency name.
    """
    records = [tlv(Tag.OPERATION, bytes([Operation.SALE]))]
    records.extend(_amount_records(amount, currency))
    records.append(ascii_tlv(Tag.UNIQUE_ID, format_unique_id(unique_id or 1)))
    records.append(ascii_tlv(Tag.CASHBACK, ZERO_CASHBACK))
    return b"".join(records)


def build_refund_tlv(
    amount: Money,
    unique_id: Optional[Any] = None,
    extra_tags: Optional[Iterable[Mapping[str, Any]]] = None,
    currency: str = DEFAULT_CURRENCY,
) -> bytes:
    """
    Refund-by-card request.

    Args:
        amount: Amount to refund.
        unique_id: Optional transaction reference.
        extra_tags: ``{"tag": "A012" | "0xA012", "value": ...}`` entries
            appended as ASCII records; malformed entries are skipped.
        currency: Currency name.
    """
    records = [tlv(Tag.OPERATION, bytes([Operation.REFUND]))]
    records.extend(_amount_records(amount, currency))

    if unique_id:
        records.append(ascii_tlv(Tag.UNIQUE_ID, format_unique_id(unique_id)))

    for entry in extra_tags or ():
        if not isinstance(entry, Mapping) or entry.get("value") is None:
            logger.warning(f"POS refund: skipping extra tag {entry!r}")
            continue
        tag = parse_tag(entry.get("tag"))
        if tag is None:
            logger.warning(f"POS refund: skipping extra tag {entry!r}")
            continue
        records.append(ascii_tlv(tag, str(entry["value"])))

    return b"".join(records)


# =============================================================================
# Responses
# =============================================================================


def tag_key(tag: int) -> str:
    """Mapping key for a tag, e.g. ``A100``."""
    return f"{tag:04X}"


def parse_tlv(data: bytes) -> dict[str, bytes]:
    """
    Decode a TLV payload into ``{"A100": b"...", ...}``.

    Parsing stops at the first record that does not fit in ``data``.
    """
    tags: dict[str, bytes] = {}
    offset = 0

    while offset + 3 <= len(data):
        tag = (data[offset] << 8) | data[offset + 1]
        length = data[offset + 2]
        start = offset + 3
        end = start + length
        if end > len(data):
            logger.warning(f"POS TLV truncated at tag {tag:04X} ({len(data) - start}/{length} B)")
            break
        tags[tag_key(tag)] = bytes(data[start:end])
        offset = end

    return tags
