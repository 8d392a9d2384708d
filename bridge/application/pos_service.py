"""
POS Service - Card operations addressed by device label.
"""

from typing import Any, Iterable, Mapping, Optional

from core.exceptions import PosDeclinedError
from core.value_objects import Money
from devices.pos import PosResponse
from domain.device_manager import DeviceManager
from loggers import logger


class PosService:
    """Application service for POS terminals."""

    def __init__(self, device_manager: DeviceManager) -> None:
        self._devices = device_manager

    async def sale(
        self,
        dev: str,
        amount: Money,
        unique_id: Optional[Any] = None,
        currency: str = "RON",
    ) -> PosResponse:
        """
        Charge a card.

        Raises:
            PosDeclinedError: Terminal did not approve.
        """
        response = await self._devices.get_pos(dev).sale(amount, unique_id, currency)
        return self._require_approval(dev, response)

    async def refund(
        self,
        dev: str,
        amount: Money,
        unique_id: Optional[Any] = None,
        extra_tags: Optional[Iterable[Mapping[str, Any]]] = None,
        currency: str = "RON",
    ) -> PosResponse:
        """
        Refund to a card.

        Raises:
            PosDeclinedError: Terminal did not approve.
        """
        response = await self._devices.get_pos(dev).refund(amount, unique_id, extra_tags, currency)
        return self._require_approval(dev, response)

    async def get_info(self, dev: str) -> PosResponse:
        return await self._devices.get_pos(dev).get_info()

    @staticmethod
    def _require_approval(dev: str, response: PosResponse) -> PosResponse:
        if not response.approved:
            logger.warning(
                f"[POS {dev}] Declined: {response.decline_message} "
                f"(A100={response.terminal_code}, A107={response.host_response})"
            )
            raise PosDeclinedError(response, device_name=dev)
        return response
