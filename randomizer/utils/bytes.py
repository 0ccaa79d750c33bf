from __future__ import annotations

import re
from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]

_HEX_RE = re.compile(r"^0[xX][0-9a-fA-F]*$")

# "0x" + 32 bytes as hex
BYTES32_HEX_WIDTH = 66


def to_hex(b: BytesLike, prefix: bool = True) -> str:
    """
    Bytes -> hex string (lowercase). Prefix with '0x' by default.
    """
    s = bytes(b).hex()
    return f"0x{s}" if prefix else s


def from_hex(s: str) -> bytes:
    """
    Hex string (optionally '0x' prefixed) -> bytes.

    Enforces even-length (nibbles must pair to bytes).
    """
    if not isinstance(s, str):
        raise TypeError("from_hex expects a string")
    if s.startswith(("0x", "0X")):
        s = s[2:]
    if len(s) % 2 != 0:
        raise ValueError("hex string must have even length")
    try:
        return bytes.fromhex(s)
    except ValueError as e:
        raise ValueError(f"invalid hex string: {e}") from e


def to_quantity(n: int) -> str:
    """Integer -> JSON-RPC quantity ('0x' hex, no leading zeros)."""
    if n < 0:
        raise ValueError("quantities must be non-negative")
    return hex(int(n))


def text_to_hex(value: str) -> str:
    """
    Human-readable string -> '0x' hex of its UTF-8 bytes.

    Strings that already are well-formed '0x' hex pass through untouched.
    Everything else, numeric-looking strings included, is encoded as text.
    """
    if _HEX_RE.match(value):
        return value
    return to_hex(value.encode("utf-8"))


def pad_bytes32_hex(value: str, width: int = BYTES32_HEX_WIDTH) -> str:
    """
    Hex-encode `value` and right-pad it with ASCII '0' up to `width` characters.

    Used to build `bytes32` arguments from short labels:

        pad_bytes32_hex("abc") == "0x616263" + "0" * 58

    Values whose encoding is already `width` characters or longer are returned
    unchanged.
    """
    h = text_to_hex(value)
    if len(h) >= width:
        return h
    return h + "0" * (width - len(h))


__all__ = [
    "BytesLike",
    "BYTES32_HEX_WIDTH",
    "to_hex",
    "from_hex",
    "to_quantity",
    "text_to_hex",
    "pad_bytes32_hex",
]
