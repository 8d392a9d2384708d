"""
Transaction Orchestrator - Runs one job against the devices.

Every job produces exactly one Report, whatever happens on the serial
lines, and the report is handed to the sink exactly once.
"""

from __future__ import annotations

import asyncio
from typing import Any, Final, Optional

from core.exceptions import BridgeError, NoPaperError
from core.interfaces import ReportSink
from core.value_objects import Report
from devices.fiscal import PaymentMode, is_paper_out
from domain.job_state import JobContext, JobPhase
from domain.jobs import (
    CardAndReceiptJob,
    CardRefundJob,
    CashReceiptJob,
    Job,
    RetryReceiptJob,
)
from loggers import logger

from .fiscal_service import FiscalService
from .pos_service import PosService


UNKNOWN_JOB_TYPE: Final[str] = "UNKNOWN_JOB_TYPE"
NO_PAPER_REASON: Final[str] = "no paper"


def partial_failure_message(reason: str) -> str:
    """Message for a card payment whose receipt could not be printed."""
    return (
        "Payment succeeded at POS. The receipt could not be issued by the "
        f"fiscal register - {reason}! Re-issue the receipt!"
    )


def receipt_failure_reason(error: BaseException) -> str:
    """Why the receipt after an approved card payment could not be printed."""
    if isinstance(error, NoPaperError):
        return NO_PAPER_REASON if is_paper_out(error) else error.cause
    return error_text(error, "fiscal register error")


def error_text(error: BaseException, fallback: str) -> str:
    """Caller-facing text of an exception."""
    if isinstance(error, BridgeError):
        return error.message or fallback
    return str(error) or fallback


class TransactionOrchestrator:
    """
    Drives the card terminal and the fiscal register for one job at a time.

    Attributes:
        fiscal_device: Label of the register used for receipts.
        pos_timeout: Ceiling for the card step, in seconds.
    """

    def __init__(
        self,
        fiscal: FiscalService,
        pos: PosService,
        report_sink: Optional[ReportSink] = None,
        fiscal_device: str = "A",
        pos_timeout: float = 180.0,
        credentials: tuple[str, str, str] = ("30", "0030", "1"),
    ) -> None:
        self._fiscal = fiscal
        self._pos = pos
        self._report_sink = report_sink
        self.fiscal_device = fiscal_device
        self.pos_timeout = pos_timeout
        self._credentials = credentials

    # =========================================================================
    # Entry points
    # =========================================================================

    async def run(self, job: Job) -> Report:
        """Process a job and deliver its report once."""
        context = JobContext(job_id=job.id)
        report = await self.process(job, context)
        await self.deliver(job.id, report, context)
        return report

    async def fail(self, job_id: Any, message: str) -> Report:
        """Deliver a failure report for a job that could not be run."""
        context = JobContext(job_id=job_id)
        report = Report(error_message=message)
        context.fail(message)
        await self.deliver(job_id, report, context)
        return report

    async def process(self, job: Job, context: Optional[JobContext] = None) -> Report:
        """
        Run a job to its report.

        Never raises: any failure ends up in ``error_message``.
        """
        context = context or JobContext(job_id=job.id)
        logger.info(f"[JOB {job.id}] Received type={job.job_type}")

        try:
            if isinstance(job, CashReceiptJob):
                report = await self._cash_receipt(job, context)
            elif isinstance(job, CardAndReceiptJob):
                report = await self._card_and_receipt(job, context)
            elif isinstance(job, CardRefundJob):
                report = await self._card_refund(job, context)
            elif isinstance(job, RetryReceiptJob):
                report = await self._retry_receipt(job, context)
            else:
                logger.warning(f"[JOB {job.id}] Unknown job type: {job.job_type!r}")
                report = Report(error_message=UNKNOWN_JOB_TYPE)
        except Exception as e:
            logger.exception(f"[JOB {job.id}] Unexpected error: {e}")
            report = Report(error_message=error_text(e, "JOB_FAILED"))

        if report.success:
            context.advance(JobPhase.COMPLETED)
        else:
            context.fail(report.error_message or "")
        logger.info(
            f"[JOB {job.id}] Finished in {context.elapsed:.1f}s success={report.success} "
            f"pos_ok={report.pos_ok} fiscal_ok={report.fiscal_ok} error={report.error_message}"
        )
        return report

    async def deliver(self, job_id: Any, report: Report, context: JobContext) -> None:
        """Send the report; a delivery failure is logged, not retried."""
        if self._report_sink is None:
            logger.warning(f"[JOB {job_id}] No report sink configured, report dropped")
            return
        context.advance(JobPhase.REPORTING)
        try:
            await self._report_sink.send_report(job_id, report.to_dict())
            logger.info(f"[JOB {job_id}] Report sent")
        except Exception as e:
            logger.error(f"[JOB {job_id}] Report delivery failed: {e}")

    # =========================================================================
    # Flows
    # =========================================================================

    async def _print_receipt(self, job: Any, mode: str, context: JobContext) -> None:
        context.advance(JobPhase.RECEIPT)
        await self._fiscal.issue_receipt(
            self.fiscal_device,
            self._credentials,
            name=job.payload.description,
            amount=job.payload.amount.to_dot(),
            mode=mode,
        )

    async def _cash_receipt(self, job: CashReceiptJob, context: JobContext) -> Report:
        report = Report.for_flow(pos_ok=True, fiscal_ok=False)
        try:
            await self._print_receipt(job, PaymentMode.CASH, context)
        except Exception as e:
            logger.error(f"[JOB {job.id}] Cash receipt failed: {e}")
            report.error_message = error_text(e, "FISCAL_ERROR")
            return report

        report.fiscal_ok = True
        report.fiscal["ok"] = True
        report.success = True
        return report

    async def _card_and_receipt(self, job: CardAndReceiptJob, context: JobContext) -> Report:
        report = Report.for_flow(pos_ok=False, fiscal_ok=False)
        payload = job.payload

        context.advance(JobPhase.CARD_PAYMENT)
        try:
            response = await asyncio.wait_for(
                self._pos.sale(payload.device, payload.amount, payload.unique_id, payload.currency),
                timeout=self.pos_timeout,
            )
        except asyncio.TimeoutError:
            logger.error(f"[JOB {job.id}] Card step exceeded {self.pos_timeout:.0f}s")
            report.error_message = f"POS {payload.device} transaction timeout"
            return report
        except Exception as e:
            logger.error(f"[JOB {job.id}] Card payment failed: {e}")
            report.error_message = error_text(e, "CARD_AND_RECEIPT_FAILED")
            return report

        report.pos_ok = True
        report.pos = response.to_dict()

        try:
            await self._print_receipt(job, PaymentMode.CARD, context)
        except Exception as e:
            logger.error(f"[JOB {job.id}] Card approved but receipt failed: {e}")
            report.error_message = partial_failure_message(receipt_failure_reason(e))
            return report

        report.fiscal_ok = True
        report.fiscal["ok"] = True
        report.success = True
        return report

    async def _card_refund(self, job: CardRefundJob, context: JobContext) -> Report:
        report = Report.for_flow(pos_ok=False, fiscal_ok=True)
        payload = job.payload

        context.advance(JobPhase.CARD_PAYMENT)
        try:
            response = await asyncio.wait_for(
                self._pos.refund(
                    payload.device,
                    payload.amount,
                    payload.unique_id,
                    job.extra_tags,
                    payload.currency,
                ),
                timeout=self.pos_timeout,
            )
        except asyncio.TimeoutError:
            logger.error(f"[JOB {job.id}] Refund exceeded {self.pos_timeout:.0f}s")
            report.error_message = f"POS {payload.device} transaction timeout"
            return report
        except Exception as e:
            logger.error(f"[JOB {job.id}] Card refund failed: {e}")
            report.error_message = error_text(e, "CARD_REFUND_FAILED")
            return report

        report.pos_ok = True
        report.pos = response.to_dict()
        report.success = True
        return report

    async def _retry_receipt(self, job: RetryReceiptJob, context: JobContext) -> Report:
        report = Report.for_flow(pos_ok=True, fiscal_ok=False)
        mode = PaymentMode.CASH if job.pays_cash else PaymentMode.CARD
        try:
            await self._print_receipt(job, mode, context)
        except Exception as e:
            logger.error(f"[JOB {job.id}] Receipt re-issue failed: {e}")
            report.error_message = error_text(e, "FISCAL_RETRY_ERROR")
            return report

        report.fiscal_ok = True
        report.fiscal["ok"] = True
        report.success = True
        return report
