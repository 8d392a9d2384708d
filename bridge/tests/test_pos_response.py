"""
Unit tests for POS response interpretation.

Tests approval and the order in which decline reasons are picked.
"""

import pytest

from devices.pos.response import PosResponse


def response(result=b"\x00", host=b"00", text=None, card=None) -> PosResponse:
    tags = {}
    if result is not None:
        tags["A100"] = result
    if host is not None:
        tags["A107"] = host
    if text is not None:
        tags["A108"] = text
    if card is not None:
        tags["A10C"] = card
    return PosResponse(tags=tags)


class TestApproval:
    """Tests for the approval rule."""

    @pytest.mark.parametrize("host", [b"00", b"Y1", b"Y3"])
    def test_approved(self, host):
        assert response(host=host).approved

    @pytest.mark.parametrize(
        "result,host",
        [(b"\x00", b"51"), (b"\x01", b"00"), (None, b"00"), (b"\x00", None), (b"\x00", b"Z3")],
    )
    def test_not_approved(self, result, host):
        assert not response(result=result, host=host).approved

    def test_terminal_code_is_hex(self):
        assert response(result=b"\x1a").terminal_code == "1A"

    def test_to_dict(self):
        data = response(host=b"Y1", text=b"APROBAT").to_dict()

        assert data == {
            "ok": True,
            "errorCode": "00",
            "hostResp": "Y1",
            "tags": {"A100": "\x00", "A107": "Y1", "A108": "APROBAT"},
        }


class TestDeclineMessage:
    """Tests for decline reason precedence."""

    @pytest.mark.parametrize(
        "text",
        [b"TERMINAL NEINREGISTRAT", b"terminal not   registered"],
    )
    def test_not_registered(self, text):
        assert response(host=b"51", text=text).decline_message == "terminal not registered"

    @pytest.mark.parametrize(
        "text",
        [
            b"ANULAT DE CATRE DETINATORUL DE CARD",
            b"Cancelled by cardholder",
            b"NO CARD",
            b"INSERT CARD",
            b"APROPIETI CARDUL",
            b"TIMEOUT",
        ],
    )
    def test_card_not_presented_text(self, text):
        assert response(host=b"51", text=text).decline_message == "card not inserted"

    def test_other_text_returned_as_is(self):
        assert response(host=b"51", text=b"  LIMITA DEPASITA ").decline_message == "LIMITA DEPASITA"

    def test_text_wins_over_host_table(self):
        assert response(host=b"51", text=b"FONDURI INSUFICIENTE").decline_message == "FONDURI INSUFICIENTE"

    def test_blank_text_is_skipped(self):
        assert response(host=b"51", text=b"   ").decline_message == "insufficient funds"

    def test_no_card_marker(self):
        assert response(host=b"51", card=b"**").decline_message == "card not inserted"

    def test_host_cancelled(self):
        assert response(result=b"\x05", host=b"CC").decline_message == "card not inserted"

    def test_terminal_01_without_host(self):
        assert response(result=b"\x01", host=None).decline_message == "card not inserted"

    def test_terminal_01_with_host_uses_table(self):
        assert response(result=b"\x01", host=b"05").decline_message == "transaction declined"

    @pytest.mark.parametrize(
        "host,message",
        [
            (b"51", "insufficient funds"),
            (b"05", "transaction declined"),
            (b"54", "card expired"),
            (b"91", "bank unavailable (try again)"),
            (b"96", "system error (try again)"),
        ],
    )
    def test_host_table(self, host, message):
        assert response(host=host).decline_message == message

    def test_terminal_error(self):
        assert response(result=b"\x12", host=b"77").decline_message == "terminal error (code=12)"

    def test_generic(self):
        assert response(result=b"\x00", host=b"77").decline_message == "transaction declined"

    def test_empty_response(self):
        assert PosResponse().decline_message == "transaction declined"
