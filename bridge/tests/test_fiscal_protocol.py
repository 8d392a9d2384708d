"""
Unit tests for the fiscal register protocol layer.

Tests parameter mapping, paper fault classification and the parameters
each receipt operation sends.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from core.exceptions import FiscalCommandError, NoPaperError
from devices.fiscal.constants import Command, NO_PAPER_CAUSE, PRINTER_ERROR_CAUSE
from devices.fiscal.frame import FiscalFrame
from devices.fiscal.protocol import (
    FiscalProtocol,
    format_money,
    format_quantity,
    is_paper_error,
    is_paper_out,
    map_payment_mode,
    map_tax_class,
    paper_message_from_code,
)


def make_protocol(data: str = "0\t"):
    """Protocol over a mocked transport answering every command with ``data``."""
    transport = MagicMock()
    transport.device_id = "A"

    async def send_command(command, params=(), retries=None, retry_delay=None):
        return FiscalFrame(sequence=0x21, command=command, data=data.encode()).to_bytes()

    transport.send_command = AsyncMock(side_effect=send_command)
    return FiscalProtocol(transport), transport


def sent_params(transport) -> list:
    return list(transport.send_command.await_args.args[1])


class TestParameterMapping:
    """Tests for tax, payment, money and quantity formatting."""

    @pytest.mark.parametrize(
        "value,expected",
        [("A", "1"), ("b", "2"), ("G", "7"), ("3", "3"), (5, "5"), ("H", "1"), ("8", "1"), (None, "1"), ("", "1")],
    )
    def test_tax_class(self, value, expected):
        assert map_tax_class(value) == expected

    @pytest.mark.parametrize(
        "value,expected",
        [("cash", "0"), ("CASH", "0"), ("card", "1"), ("Card", "1"), ("6", "6"), ("voucher", "0"), (None, "0")],
    )
    def test_payment_mode(self, value, expected):
        assert map_payment_mode(value) == expected

    @pytest.mark.parametrize(
        "value,expected",
        [(15.5, "15.50"), ("15,5", "15.50"), ("0", "0.00"), (None, "0.00"), ("1.005", "1.01"), (7, "7.00")],
    )
    def test_money(self, value, expected):
        assert format_money(value) == expected

    def test_money_rejects_text(self):
        with pytest.raises(ValueError):
            format_money("abc")

    @pytest.mark.parametrize(
        "value,expected",
        [(1, "1.000"), ("2,5", "2.500"), ("0.1234", "0.123"), ("abc", "1.000"), ("nan", "1.000")],
    )
    def test_quantity(self, value, expected):
        assert format_quantity(value) == expected


class TestPaperFaults:
    """Tests for paper / cover fault classification."""

    @pytest.mark.parametrize("code", ["-111008", "-112006", "-111009"])
    def test_paper_codes(self, code):
        assert is_paper_error(code)

    def test_other_code(self):
        assert not is_paper_error("-111024")

    def test_error_object(self):
        assert is_paper_error(FiscalCommandError("-112006"))

    def test_messages(self):
        assert paper_message_from_code("-111008") == NO_PAPER_CAUSE
        assert paper_message_from_code("-112006") == NO_PAPER_CAUSE
        assert paper_message_from_code("-111009") == PRINTER_ERROR_CAUSE

    def test_paper_out_excludes_cover_fault(self):
        assert is_paper_out(NoPaperError("-111008", NO_PAPER_CAUSE))
        assert is_paper_out("-112006")
        assert not is_paper_out(NoPaperError("-111009", PRINTER_ERROR_CAUSE))


class TestOperations:
    """Tests for the parameters of each operation."""

    @pytest.mark.asyncio
    async def test_open_receipt(self):
        protocol, transport = make_protocol()

        await protocol.open_receipt("30", "0030", "1")

        assert transport.send_command.await_args.args[0] == Command.OPEN_RECEIPT
        assert sent_params(transport) == ["30", "0030", "1", ""]

    @pytest.mark.asyncio
    async def test_register_sale(self):
        protocol, transport = make_protocol()

        await protocol.register_sale(name="Bilet", tax="1", price=15.5, quantity=1, department="1", unit="BUC")

        assert transport.send_command.await_args.args[0] == Command.REGISTER_SALE
        assert sent_params(transport) == ["Bilet", "1", "15.50", "1.000", "", "", "1", "BUC", ""]

    @pytest.mark.asyncio
    async def test_register_sale_truncates_fields(self):
        protocol, transport = make_protocol()

        await protocol.register_sale(name="X" * 100, price=1, unit="KILOGRAM")

        params = sent_params(transport)
        assert len(params[0]) == 72
        assert params[3] == "1.000"
        assert params[7] == "KILOGR"

    @pytest.mark.asyncio
    async def test_register_sale_empty_unit(self):
        protocol, transport = make_protocol()

        await protocol.register_sale(name="Bilet", price=1, unit="")

        assert sent_params(transport)[7] == "X"

    @pytest.mark.asyncio
    async def test_text_truncated_to_48(self):
        protocol, transport = make_protocol()

        await protocol.print_text("T" * 60)

        assert sent_params(transport) == ["T" * 48, ""]

    @pytest.mark.asyncio
    async def test_pay_returns_status(self):
        protocol, transport = make_protocol("0\tR\t4.50\t")

        outcome = await protocol.pay("card", "20")

        assert sent_params(transport) == ["1", "20.00", ""]
        assert outcome.pay_status == "R"
        assert outcome.pay_amount == "4.50"

    @pytest.mark.asyncio
    async def test_nonfiscal_parameters(self):
        protocol, transport = make_protocol()

        await protocol.open_nonfiscal()
        assert sent_params(transport) == ["", ""]

        await protocol.print_nonfiscal_text("Hello")
        assert sent_params(transport) == ["Hello", "", "", "", "", "", "", ""]

        await protocol.close_nonfiscal()
        assert sent_params(transport) == [""]

    @pytest.mark.asyncio
    async def test_close_and_cancel(self):
        protocol, transport = make_protocol()

        await protocol.close_receipt()
        assert transport.send_command.await_args.args[0] == Command.CLOSE_RECEIPT

        await protocol.cancel_receipt()
        assert transport.send_command.await_args.args[0] == Command.CANCEL_RECEIPT


class TestErrors:
    """Tests for device error codes."""

    @pytest.mark.asyncio
    async def test_no_paper(self):
        protocol, _ = make_protocol("-111008\t")

        with pytest.raises(NoPaperError) as exc_info:
            await protocol.register_sale(name="Bilet", price=1)

        assert exc_info.value.error_code == "-111008"
        assert exc_info.value.cause == NO_PAPER_CAUSE
        assert exc_info.value.code == "NO_PAPER"

    @pytest.mark.asyncio
    async def test_cover_open(self):
        protocol, _ = make_protocol("-111009")

        with pytest.raises(NoPaperError) as exc_info:
            await protocol.close_receipt()

        assert exc_info.value.cause == PRINTER_ERROR_CAUSE

    @pytest.mark.asyncio
    async def test_other_device_error(self):
        protocol, _ = make_protocol("-111024\t")

        with pytest.raises(FiscalCommandError) as exc_info:
            await protocol.open_receipt()

        assert not isinstance(exc_info.value, NoPaperError)
        assert exc_info.value.error_code == "-111024"
        assert exc_info.value.code == "DEVICE_ERROR"
        assert exc_info.value.message == "-111024"
