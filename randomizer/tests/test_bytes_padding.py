import pytest
from hypothesis import given
from hypothesis import strategies as st

from randomizer.utils.bytes import (
    BYTES32_HEX_WIDTH,
    from_hex,
    pad_bytes32_hex,
    text_to_hex,
    to_hex,
    to_quantity,
)


def test_pad_abc_to_bytes32_width():
    out = pad_bytes32_hex("abc")
    assert len(out) == 66
    assert out.startswith("0x616263")
    assert set(out[len("0x616263"):]) == {"0"}


def test_pad_empty_string_is_all_zeros():
    assert pad_bytes32_hex("") == "0x" + "0" * 64


def test_pad_encodes_utf8():
    assert pad_bytes32_hex("é") == "0xc3a9" + "0" * 60


def test_pad_passes_hex_through():
    assert pad_bytes32_hex("0x1234") == "0x1234" + "0" * 60


def test_numeric_and_malformed_hex_strings_are_encoded_as_text():
    assert text_to_hex("123") == "0x313233"
    assert text_to_hex("0xzz") == "0x30787a7a"
    assert pad_bytes32_hex("42") == "0x3432" + "0" * 60


def test_pad_does_not_truncate_long_values():
    s = "a" * 40  # 80 hex digits
    out = pad_bytes32_hex(s)
    assert out == text_to_hex(s)
    assert len(out) == 82


def test_pad_custom_width():
    assert pad_bytes32_hex("a", width=10) == "0x61000000"


@given(st.text(max_size=32).filter(lambda s: len(s.encode("utf-8")) <= 32))
def test_pad_shape_for_short_labels(s):
    out = pad_bytes32_hex(s)
    enc = text_to_hex(s)
    assert len(out) == BYTES32_HEX_WIDTH
    assert out.startswith(enc)
    assert set(out[len(enc):]) <= {"0"}


def test_hex_helpers():
    assert to_hex(b"\x01\xff") == "0x01ff"
    assert to_hex(b"\x01", prefix=False) == "01"
    assert from_hex("0x01ff") == b"\x01\xff"
    assert to_quantity(0) == "0x0"
    assert to_quantity(8_000_000) == "0x7a1200"
    with pytest.raises(ValueError):
        from_hex("0x123")
    with pytest.raises(ValueError):
        to_quantity(-1)
