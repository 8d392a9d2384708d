"""
Decoded POS responses and decline reasons.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Final, Mapping, Optional

from .constants import (
    APPROVED_HOST_RESPONSES,
    APPROVED_TERMINAL_CODE,
    CARD_NOT_INSERTED,
    HOST_CARD_CANCELLED,
    HOST_RESPONSE_MESSAGES,
    NO_CARD_MARKER,
    Tag,
    TERMINAL_NO_CARD_CODE,
    TERMINAL_NOT_REGISTERED,
    TRANSACTION_DECLINED,
)
from .tlv import tag_key


_NOT_REGISTERED_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"NEINREGISTRAT|NOT\s+REGISTERED", re.IGNORECASE
)
_CARD_NOT_PRESENTED_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"ANULAT\s+DE\s+CATRE\s+DETINATORUL\s+DE\s+CARD"
    r"|CANCELL?ED\s+BY\s+CARDHOLDER"
    r"|NO\s*CARD|CARD\s*NOT\s*PRESENT|INSERT\s*CARD|PRESENT\s*CARD"
    r"|INTRODUC|APROPIE|TIMEOUT",
    re.IGNORECASE,
)


def _ascii(value: Optional[bytes]) -> str:
    return value.decode("ascii", errors="replace") if value else ""


def decline_message(
    tags: Mapping[str, bytes],
    terminal_code: Optional[str],
    host_response: Optional[str],
) -> str:
    """
    Caller-facing reason for a non-approved transaction.

    Rules apply in a fixed order; the first match wins:
    response text, no-card marker, host ``CC``, bare terminal ``01``,
    host response table, terminal code, generic decline.
    """
    text = _ascii(tags.get(tag_key(Tag.RESPONSE_TEXT))).strip()
    if text:
        if _NOT_REGISTERED_PATTERN.search(text):
            return TERMINAL_NOT_REGISTERED
        if _CARD_NOT_PRESENTED_PATTERN.search(text):
            return CARD_NOT_INSERTED
        return text

    if _ascii(tags.get(tag_key(Tag.CARD_PRESENCE))).strip() == NO_CARD_MARKER:
        return CARD_NOT_INSERTED

    host = (host_response or "").strip().upper()
    if host == HOST_CARD_CANCELLED:
        return CARD_NOT_INSERTED

    terminal = (terminal_code or "").upper()
    if terminal == TERMINAL_NO_CARD_CODE and not host:
        return CARD_NOT_INSERTED

    if host in HOST_RESPONSE_MESSAGES:
        return HOST_RESPONSE_MESSAGES[host]

    if terminal and terminal != APPROVED_TERMINAL_CODE:
        return f"terminal error (code={terminal})"

    return TRANSACTION_DECLINED


@dataclass(frozen=True)
class PosResponse:
    """
    One decoded terminal response.

    Attributes:
        tags: Tag key (``A100``) to raw value.
        raw: Complete response frame.
    """

    tags: dict[str, bytes] = field(default_factory=dict)
    raw: bytes = b""

    @property
    def terminal_code(self) -> Optional[str]:
        """Terminal result as uppercase hex (binary tag), e.g. ``00``."""
        value = self.tags.get(tag_key(Tag.TERMINAL_RESULT))
        return value.hex().upper() if value else None

    @property
    def host_response(self) -> Optional[str]:
        """Host response code as text, e.g. ``00``, ``Y1``, ``51``."""
        return _ascii(self.tags.get(tag_key(Tag.HOST_RESPONSE))) or None

    @property
    def approved(self) -> bool:
        return (
            self.terminal_code == APPROVED_TERMINAL_CODE
            and self.host_response in APPROVED_HOST_RESPONSES
        )

    @property
    def decline_message(self) -> str:
        return decline_message(self.tags, self.terminal_code, self.host_response)

    def ascii_tags(self) -> dict[str, str]:
        return {key: _ascii(value) for key, value in self.tags.items()}

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.approved,
            "errorCode": self.terminal_code,
            "hostResp": self.host_response,
            "tags": self.ascii_tags(),
        }
