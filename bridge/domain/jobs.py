"""
Job model.

A job is a tagged union keyed by ``job_type``. Each variant carries only
the fields its flow needs; unknown types are kept so they can still be
reported.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Final, Mapping, Optional, Union

from core.exceptions import InvalidJobError
from core.value_objects import Money


DEFAULT_DESCRIPTION: Final[str] = "TICKET"
DESCRIPTION_MAX_LENGTH: Final[int] = 48
DEFAULT_CURRENCY: Final[str] = "RON"
DEFAULT_DEVICE: Final[str] = "A"


class JobType(str, Enum):
    """Known job types."""

    CASH_RECEIPT_ONLY = "cash_receipt_only"
    CARD_AND_RECEIPT = "card_and_receipt"
    CARD_REFUND = "card_refund"
    RETRY_RECEIPT = "retry_receipt"


# =============================================================================
# Job Variants
# =============================================================================


@dataclass(frozen=True)
class JobPayload:
    """Fields shared by every job type."""

    amount: Money = field(default_factory=Money)
    description: str = DEFAULT_DESCRIPTION
    currency: str = DEFAULT_CURRENCY
    device: str = DEFAULT_DEVICE
    unique_id: Optional[str] = None


@dataclass(frozen=True)
class CashReceiptJob:
    """Receipt paid in cash, no terminal involved."""

    id: Any
    payload: JobPayload
    job_type: JobType = JobType.CASH_RECEIPT_ONLY


@dataclass(frozen=True)
class CardAndReceiptJob:
    """Card sale on the terminal followed by a card-paid receipt."""

    id: Any
    payload: JobPayload
    job_type: JobType = JobType.CARD_AND_RECEIPT


@dataclass(frozen=True)
class CardRefundJob:
    """Card refund on the terminal only."""

    id: Any
    payload: JobPayload
    extra_tags: tuple[dict[str, Any], ...] = ()
    job_type: JobType = JobType.CARD_REFUND


@dataclass(frozen=True)
class RetryReceiptJob:
    """Re-issue of a receipt whose payment already succeeded."""

    id: Any
    payload: JobPayload
    payment_method: str = ""
    job_type: JobType = JobType.RETRY_RECEIPT

    @property
    def pays_cash(self) -> bool:
        return self.payment_method.strip().lower() == "cash"


@dataclass(frozen=True)
class UnknownJob:
    """A job whose type this agent does not handle."""

    id: Any
    job_type: str = ""


Job = Union[CashReceiptJob, CardAndReceiptJob, CardRefundJob, RetryReceiptJob, UnknownJob]


# =============================================================================
# Parsing
# =============================================================================


def job_id_of(raw: Any) -> Optional[Any]:
    """Id of a raw job message, or None when it has no usable id."""
    if not isinstance(raw, Mapping):
        return None
    if isinstance(raw.get("job"), Mapping):
        raw = raw["job"]
    job_id = raw.get("id")
    if job_id in (None, "", 0, "0"):
        return None
    return job_id


def _parse_payload(payload: Mapping[str, Any]) -> JobPayload:
    try:
        amount = Money.from_major(payload.get("amount"))
    except ValueError as e:
        raise InvalidJobError(f"Invalid amount: {payload.get('amount')!r}", code="INVALID_AMOUNT") from e

    description = payload.get("description")
    unique_id = payload.get("pos_unique_id") or payload.get("unique_id") or payload.get("payment_id")

    return JobPayload(
        amount=amount,
        description=str(description or DEFAULT_DESCRIPTION)[:DESCRIPTION_MAX_LENGTH],
        currency=str(payload.get("currency") or DEFAULT_CURRENCY).upper(),
        device=str(payload.get("dev") or DEFAULT_DEVICE).upper(),
        unique_id=str(unique_id) if unique_id else None,
    )


def parse_job(raw: Any) -> Job:
    """
    Build a typed job from a queue message.

    Accepts ``{"id", "job_type", "payload"}`` or the same object wrapped
    as ``{"job": {...}}``.

    Raises:
        InvalidJobError: No id, or a payload that cannot be interpreted.
    """
    job_id = job_id_of(raw)
    if job_id is None:
        raise InvalidJobError("Job without id", code="INVALID_JOB")
    if isinstance(raw.get("job"), Mapping):
        raw = raw["job"]

    job_type = str(raw.get("job_type") or "")
    payload = raw.get("payload") or {}
    if not isinstance(payload, Mapping):
        raise InvalidJobError(f"Job {job_id}: payload is not an object", code="INVALID_JOB")

    try:
        kind = JobType(job_type)
    except ValueError:
        return UnknownJob(id=job_id, job_type=job_type)

    common = _parse_payload(payload)

    if kind is JobType.CASH_RECEIPT_ONLY:
        return CashReceiptJob(id=job_id, payload=common)
    if kind is JobType.CARD_AND_RECEIPT:
        return CardAndReceiptJob(id=job_id, payload=common)
    if kind is JobType.CARD_REFUND:
        extra = payload.get("extra_tags")
        extra_tags = tuple(dict(e) for e in extra if isinstance(e, Mapping)) if isinstance(extra, list) else ()
        return CardRefundJob(id=job_id, payload=common, extra_tags=extra_tags)
    return RetryReceiptJob(
        id=job_id,
        payload=common,
        payment_method=str(payload.get("payment_method") or ""),
    )
