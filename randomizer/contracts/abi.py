"""
ABI helpers: entry lookup, selectors/topics, call-data encoding and log decoding.

Encoding and decoding of values is delegated to `eth_abi`; hashing uses
`eth_utils.keccak`. Signatures are computed locally so tuple components are
expanded the same way the Solidity compiler does.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import keccak

from ..errors import AbiError
from ..utils.bytes import from_hex, to_hex

AbiEntry = Mapping[str, Any]


def canonical_type(arg: Mapping[str, Any]) -> str:
    """`{"type": "tuple[]", "components": [...]}` -> `(uint256,address)[]`."""
    t = str(arg.get("type", ""))
    if t.startswith("tuple"):
        inner = ",".join(canonical_type(c) for c in arg.get("components", []))
        return f"({inner}){t[len('tuple'):]}"
    return t


def input_types(entry: AbiEntry) -> List[str]:
    return [canonical_type(a) for a in entry.get("inputs", [])]


def output_types(entry: AbiEntry) -> List[str]:
    return [canonical_type(a) for a in entry.get("outputs", [])]


def signature(entry: AbiEntry) -> str:
    return f"{entry.get('name', '')}(" + ",".join(input_types(entry)) + ")"


def function_selector(entry: AbiEntry) -> bytes:
    return keccak(text=signature(entry))[:4]


def event_topic(entry: AbiEntry) -> bytes:
    if entry.get("anonymous"):
        raise AbiError("anonymous events have no selector topic", name=str(entry.get("name")))
    return keccak(text=signature(entry))


def _entries(abi: Sequence[AbiEntry], kind: str, name: str) -> List[AbiEntry]:
    return [e for e in abi if e.get("type", "function") == kind and e.get("name") == name]


def function_entry(abi: Sequence[AbiEntry], name: str, nargs: Optional[int] = None) -> AbiEntry:
    """Find a function by name; overloads are told apart by argument count."""
    found = _entries(abi, "function", name)
    if nargs is not None:
        found = [e for e in found if len(e.get("inputs", [])) == nargs]
    if not found:
        raise AbiError("function not in ABI" + (f" with {nargs} args" if nargs is not None else ""), name=name)
    if len(found) > 1:
        raise AbiError("ambiguous overloaded function", name=name)
    return found[0]


def event_entry(abi: Sequence[AbiEntry], name: str) -> AbiEntry:
    found = _entries(abi, "event", name)
    if not found:
        raise AbiError("event not in ABI", name=name)
    return found[0]


def constructor_entry(abi: Sequence[AbiEntry]) -> Optional[AbiEntry]:
    for e in abi:
        if e.get("type") == "constructor":
            return e
    return None


def is_payable(entry: AbiEntry) -> bool:
    return entry.get("stateMutability") == "payable" or bool(entry.get("payable"))


def _encode_args(name: str, types: List[str], args: Sequence[Any]) -> bytes:
    if len(types) != len(args):
        raise AbiError(f"expected {len(types)} args, got {len(args)}", name=name)
    try:
        return encode(types, list(args))
    except (EncodingError, ValueError, TypeError) as e:
        raise AbiError(f"cannot encode args {types}: {e}", name=name) from e


def encode_call(abi: Sequence[AbiEntry], name: str, args: Sequence[Any] = ()) -> bytes:
    """Selector + ABI-encoded arguments for a function call."""
    entry = function_entry(abi, name, len(args))
    return function_selector(entry) + _encode_args(name, input_types(entry), args)


def encode_constructor(abi: Sequence[AbiEntry], bytecode: str, args: Sequence[Any] = ()) -> str:
    """Creation bytecode with ABI-encoded constructor arguments appended (hex)."""
    entry = constructor_entry(abi)
    types = input_types(entry) if entry else []
    return to_hex(from_hex(bytecode) + _encode_args("constructor", types, args))


def decode_output(entry: AbiEntry, data: bytes) -> Any:
    """Decode `eth_call` return data. Single outputs are unwrapped."""
    types = output_types(entry)
    try:
        values = decode(types, data)
    except (DecodingError, ValueError) as e:
        raise AbiError(f"cannot decode return data: {e}", name=str(entry.get("name"))) from e
    if len(values) == 1:
        return values[0]
    return values


def _is_dynamic(t: str) -> bool:
    return t in ("string", "bytes") or t.endswith("]") or t.startswith("(")


def decode_event_args(entry: AbiEntry, topics: Sequence[bytes], data: bytes) -> Dict[str, Any]:
    """
    Decode an event's arguments by name.

    Indexed args come from topics (after the selector for non-anonymous events);
    dynamic indexed args are only available as their keccak hash and are
    returned as that 32-byte value. Non-indexed args are decoded from data.
    """
    name = str(entry.get("name"))
    inputs = list(entry.get("inputs", []))
    indexed = [a for a in inputs if a.get("indexed")]
    plain = [a for a in inputs if not a.get("indexed")]
    arg_topics = list(topics) if entry.get("anonymous") else list(topics[1:])
    if len(arg_topics) != len(indexed):
        raise AbiError(f"expected {len(indexed)} indexed topics, got {len(arg_topics)}", name=name)

    out: Dict[str, Any] = {}
    try:
        for arg, topic in zip(indexed, arg_topics):
            t = canonical_type(arg)
            key = arg.get("name") or f"arg{inputs.index(arg)}"
            out[key] = topic if _is_dynamic(t) else decode([t], topic)[0]
        values: Tuple[Any, ...] = decode([canonical_type(a) for a in plain], data) if plain else ()
    except (DecodingError, ValueError) as e:
        raise AbiError(f"cannot decode log: {e}", name=name) from e
    for arg, value in zip(plain, values):
        out[arg.get("name") or f"arg{inputs.index(arg)}"] = value
    return out


__all__ = [
    "AbiEntry",
    "canonical_type",
    "input_types",
    "output_types",
    "signature",
    "function_selector",
    "event_topic",
    "function_entry",
    "event_entry",
    "constructor_entry",
    "is_payable",
    "encode_call",
    "encode_constructor",
    "decode_output",
    "decode_event_args",
]
