"""
Fiscal Service - Receipt operations addressed by device label.

Used by both the HTTP surface and the job orchestrator.
"""

from typing import Any

from core.value_objects import CommandOutcome
from devices.fiscal import PaymentMode
from domain.device_manager import DeviceManager
from loggers import logger


class FiscalService:
    """Application service for fiscal registers."""

    def __init__(self, device_manager: DeviceManager) -> None:
        self._devices = device_manager

    async def open_receipt(self, dev: str, operator: Any, password: Any, till: Any) -> CommandOutcome:
        logger.info(f"[FISCAL {dev}] open receipt operator={operator} till={till}")
        return await self._devices.get_fiscal(dev).protocol.open_receipt(operator, password, till)

    async def register_sale(self, dev: str, **item: Any) -> CommandOutcome:
        logger.info(f"[FISCAL {dev}] sale {item.get('name')} price={item.get('price')}")
        return await self._devices.get_fiscal(dev).protocol.register_sale(**item)

    async def print_text(self, dev: str, text: Any) -> CommandOutcome:
        return await self._devices.get_fiscal(dev).protocol.print_text(text)

    async def pay(self, dev: str, mode: Any, amount: Any) -> CommandOutcome:
        logger.info(f"[FISCAL {dev}] pay mode={mode} amount={amount}")
        return await self._devices.get_fiscal(dev).protocol.pay(mode, amount)

    async def close_receipt(self, dev: str) -> CommandOutcome:
        logger.info(f"[FISCAL {dev}] close receipt")
        return await self._devices.get_fiscal(dev).protocol.close_receipt()

    async def cancel_receipt(self, dev: str) -> CommandOutcome:
        logger.info(f"[FISCAL {dev}] cancel receipt")
        return await self._devices.get_fiscal(dev).protocol.cancel_receipt()

    async def open_nonfiscal(self, dev: str) -> CommandOutcome:
        return await self._devices.get_fiscal(dev).protocol.open_nonfiscal()

    async def print_nonfiscal_text(self, dev: str, text: Any) -> CommandOutcome:
        return await self._devices.get_fiscal(dev).protocol.print_nonfiscal_text(text)

    async def close_nonfiscal(self, dev: str) -> CommandOutcome:
        return await self._devices.get_fiscal(dev).protocol.close_nonfiscal()

    async def issue_receipt(
        self,
        dev: str,
        credentials: tuple[str, str, str],
        name: str,
        amount: Any,
        mode: str = PaymentMode.CASH,
    ) -> CommandOutcome:
        """
        Print a complete single-line receipt.

        Sends open, sale, pay and close in that order; the first failing
        step raises and the rest are not sent.

        Args:
            dev: Fiscal register label.
            credentials: Operator, password and till.
            name: Item text.
            amount: Price, also the paid amount.
            mode: ``cash`` or ``card``.

        Returns:
            Outcome of the close command.
        """
        operator, password, till = credentials
        await self.open_receipt(dev, operator, password, till)
        await self.register_sale(
            dev,
            name=name,
            tax="1",
            price=amount,
            quantity=1,
            department="1",
            unit="BUC",
        )
        await self.pay(dev, mode, amount)
        return await self.close_receipt(dev)
