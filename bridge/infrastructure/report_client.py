"""
Report client - Delivers job reports to the booking backend.
"""

from __future__ import annotations

from typing import Any, Final, Optional

import httpx

from core.exceptions import ReportDeliveryError
from loggers import logger


REPORT_TIMEOUT: Final[float] = 10.0
AGENT_KEY_HEADER: Final[str] = "X-Agent-Key"


class ReportClient:
    """
    Posts reports to ``{base_url}/api/agent/jobs/{id}/report``.

    Attributes:
        base_url: Backend base URL.
    """

    def __init__(
        self,
        base_url: str,
        agent_key: str,
        timeout: float = REPORT_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._headers = {AGENT_KEY_HEADER: agent_key}
        self._timeout = timeout
        self._client = client

    def report_url(self, job_id: Any) -> str:
        return f"{self.base_url}/api/agent/jobs/{job_id}/report"

    async def send_report(self, job_id: Any, report: dict[str, Any]) -> None:
        """
        Deliver one report.

        Raises:
            ReportDeliveryError: Transport failure, non-2xx status, or a
                response body carrying ``error``.
        """
        url = self.report_url(job_id)
        logger.info(f"[JOB {job_id}] POST {url}")
        logger.debug(f"[JOB {job_id}] Report payload: {report}")

        try:
            if self._client is not None:
                response = await self._client.post(
                    url, json=report, headers=self._headers, timeout=self._timeout
                )
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.post(
                        url, json=report, headers=self._headers, timeout=self._timeout
                    )
        except httpx.HTTPError as e:
            raise ReportDeliveryError(f"Report for job {job_id} not delivered: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        logger.debug(f"[JOB {job_id}] Backend answered {response.status_code}: {body}")

        error = body.get("error") if isinstance(body, dict) else None
        if response.is_error or error:
            raise ReportDeliveryError(
                str(error or f"Report failed with status {response.status_code}"),
                details={"status": response.status_code},
            )
