"""
Unit tests for the POS link codec.

Tests CRC16/BUYPASS, frame layout and TLV requests/responses.
"""

import pytest

from core.value_objects import Money
from devices.pos.constants import ETX, STX, Tag
from devices.pos.crc import calculate_crc16, crc_bytes, verify_crc16
from devices.pos.frame import FrameAssembler, build_frame
from devices.pos.tlv import (
    build_info_tlv,
    build_refund_tlv,
    build_sale_tlv,
    currency_code,
    format_unique_id,
    parse_tag,
    parse_tlv,
    tlv,
)


class TestCrc16:
    """Tests for the CRC16/BUYPASS checksum."""

    def test_check_value(self):
        assert calculate_crc16(b"123456789") == 0xFEE8

    def test_empty_input(self):
        assert calculate_crc16(b"") == 0x0000

    def test_bit_flip_changes_crc(self):
        data = bytearray(build_sale_tlv(Money(1550)))
        original = calculate_crc16(bytes(data))
        data[5] ^= 0x01

        assert calculate_crc16(bytes(data)) != original

    def test_big_endian_bytes(self):
        assert crc_bytes(b"123456789") == b"\xfe\xe8"

    def test_verify(self):
        assert verify_crc16(b"123456789", b"\xfe\xe8")
        assert not verify_crc16(b"123456789", b"\xe8\xfe")
        assert not verify_crc16(b"123456789", b"\xfe")


class TestFrame:
    """Tests for frame building and assembly."""

    def test_layout(self):
        payload = build_info_tlv()
        frame = build_frame(payload)

        assert frame[0] == STX
        assert frame[1:3] == len(payload).to_bytes(2, "big")
        assert frame[3:3 + len(payload)] == payload
        assert frame[3 + len(payload)] == ETX
        assert frame[-2:] == crc_bytes(payload)

    def test_assembler_collects_frame(self):
        payload = tlv(Tag.TERMINAL_RESULT, b"\x00") + tlv(Tag.HOST_RESPONSE, b"00")
        frame = build_frame(payload)
        assembler = FrameAssembler()

        done = [assembler.feed(byte) for byte in frame[1:]]

        assert done[-1] is True
        assert not any(done[:-1])
        assert assembler.raw == frame
        assert assembler.tlv == payload
        assert assembler.crc == crc_bytes(payload)

    def test_assembler_before_header(self):
        assembler = FrameAssembler()
        assembler.feed(0x00)

        assert assembler.expected_length is None
        assert assembler.tlv == b""


class TestRequests:
    """Tests for sale, refund and info payloads."""

    def test_info(self):
        assert build_info_tlv() == bytes([0xA0, 0x00, 0x01, 0x01])

    def test_sale_records(self):
        tags = parse_tlv(build_sale_tlv(Money(1550), unique_id="42", currency="ron"))

        assert tags["A000"] == b"\x02"
        assert tags["A001"] == b"000000001550"
        assert tags["A002"] == b"RON"
        assert tags["A003"] == b"946"
        assert tags["A008"] == b"000000000042"
        assert tags["A007"] == b"000000000000"

    def test_sale_default_unique_id(self):
        tags = parse_tlv(build_sale_tlv(Money(100)))
        assert tags["A008"] == b"000000000001"

    def test_sale_eur(self):
        tags = parse_tlv(build_sale_tlv(Money(100), currency="EUR"))
        assert tags["A003"] == b"978"

    def test_refund_records(self):
        tags = parse_tlv(
            build_refund_tlv(
                Money(2000),
                unique_id="7",
                extra_tags=[
                    {"tag": "0xA012", "value": "RRN123"},
                    {"tag": "a013", "value": 55},
                    {"tag": "zz", "value": "bad"},
                    {"tag": "A014"},
                    "junk",
                ],
            )
        )

        assert tags["A000"] == b"\x03"
        assert tags["A001"] == b"000000002000"
        assert tags["A008"] == b"000000000007"
        assert tags["A012"] == b"RRN123"
        assert tags["A013"] == b"55"
        assert "A014" not in tags
        assert "A007" not in tags

    def test_refund_without_unique_id(self):
        tags = parse_tlv(build_refund_tlv(Money(100)))
        assert "A008" not in tags

    def test_unsupported_currency(self):
        with pytest.raises(ValueError):
            currency_code("GBP")


class TestFieldHelpers:
    """Tests for unique id and tag parsing."""

    @pytest.mark.parametrize(
        "value,expected",
        [(1, "000000000001"), ("12345678901234", "123456789012"), ("ABC", "000000000ABC")],
    )
    def test_unique_id(self, value, expected):
        assert format_unique_id(value) == expected

    @pytest.mark.parametrize(
        "value,expected",
        [("0xA012", 0xA012), ("A012", 0xA012), ("a012", 0xA012), ("", None), (None, None), ("xyz", None), ("10000", None)],
    )
    def test_parse_tag(self, value, expected):
        assert parse_tag(value) == expected

    def test_value_too_long(self):
        with pytest.raises(ValueError):
            tlv(Tag.RESPONSE_TEXT, b"x" * 256)


class TestParseTlv:
    """Tests for response decoding."""

    def test_multiple_records(self):
        data = tlv(Tag.TERMINAL_RESULT, b"\x00") + tlv(Tag.HOST_RESPONSE, b"Y1") + tlv(Tag.RESPONSE_TEXT, b"")

        assert parse_tlv(data) == {"A100": b"\x00", "A107": b"Y1", "A108": b""}

    def test_truncated_record_stops_parsing(self):
        data = tlv(Tag.HOST_RESPONSE, b"00") + bytes([0xA1, 0x08, 0x05]) + b"AB"

        assert parse_tlv(data) == {"A107": b"00"}
