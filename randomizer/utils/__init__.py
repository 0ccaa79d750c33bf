"""Small helpers shared across the harness."""

from .bytes import from_hex, pad_bytes32_hex, text_to_hex, to_hex, to_quantity

__all__ = ["to_hex", "from_hex", "text_to_hex", "pad_bytes32_hex", "to_quantity"]
