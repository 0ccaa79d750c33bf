"""
Typed error classes for the randomizer harness.

These are raised by rpc/ws, contracts/* and the harness session so tests and
the CLI can catch specific failure modes while still being able to catch the
base `HarnessError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Optional

__all__ = [
    "HarnessError",
    "JsonRpcCode",
    "RpcError",
    "ArtifactError",
    "AbiError",
    "TxError",
    "ReceiptTimeout",
    "DeployError",
    "EventTimeout",
    "from_jsonrpc_error",
]


class HarnessError(Exception):
    """Base class for all harness errors."""


class JsonRpcCode(IntEnum):
    # JSON-RPC 2.0 standard codes
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    # Server errors (implementation-defined range: -32099 to -32000)
    SERVER_ERROR = -32000

    # Client-side transport failures
    TRANSPORT_ERROR = -32098


@dataclass(eq=False)
class RpcError(HarnessError):
    """Raised when a JSON-RPC call returns an error object or the transport fails."""

    method: Optional[str]
    code: int
    message: str
    data: Optional[Any] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        s = f"RPC[{self.method or '-'}] code={self.code} msg={self.message!r}"
        if self.data is not None:
            s += f" data={self.data!r}"
        return s

    @property
    def code_enum(self) -> Optional[JsonRpcCode]:
        try:
            return JsonRpcCode(self.code)
        except ValueError:
            return None


@dataclass(eq=False)
class ArtifactError(HarnessError):
    """Raised when a compiled contract artifact is missing or malformed."""

    message: str
    path: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        where = f" [{self.path}]" if self.path else ""
        return f"ArtifactError{where}: {self.message}"


@dataclass(eq=False)
class AbiError(HarnessError):
    """
    Raised when ABI lookup, encoding or decoding fails.

    Typical causes: unknown function/event name, wrong argument count,
    values that do not fit the declared types, undecodable log data.
    """

    message: str
    name: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        where = f" [{self.name}]" if self.name else ""
        return f"AbiError{where}: {self.message}"


@dataclass(eq=False)
class TxError(HarnessError):
    """
    Raised when a submitted transaction fails (node rejection or on-chain revert).

    Fields:
      - tx_hash: hex hash if known (None if rejected before broadcast)
      - receipt: the receipt body when the failure was observed on-chain
    """

    message: str
    tx_hash: Optional[str] = None
    receipt: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        suffix = f" tx={self.tx_hash}" if self.tx_hash else ""
        return f"TxError{suffix}: {self.message}"


@dataclass(eq=False)
class ReceiptTimeout(HarnessError):
    """Raised when no receipt shows up for a transaction within the wait window."""

    tx_hash: str
    timeout_s: float

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"ReceiptTimeout: no receipt for {self.tx_hash} after {self.timeout_s:g}s"


@dataclass(eq=False)
class DeployError(HarnessError):
    """Raised when a deployment succeeds on-chain but yields no usable address."""

    message: str
    contract: Optional[str] = None
    tx_hash: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        bits = [self.message]
        if self.contract:
            bits.append(f"contract={self.contract}")
        if self.tx_hash:
            bits.append(f"tx={self.tx_hash}")
        return "DeployError: " + " ".join(bits)


@dataclass(eq=False)
class EventTimeout(HarnessError):
    """Raised when a bounded wait for a contract event elapses first."""

    event: str
    timeout_s: float
    address: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        at = f" at {self.address}" if self.address else ""
        return f"EventTimeout: no {self.event}{at} within {self.timeout_s:g}s"


def from_jsonrpc_error(err_obj: Dict[str, Any], *, method: Optional[str] = None) -> RpcError:
    """
    Convert a JSON-RPC error object into RpcError.

    `err_obj` should resemble: {"code": int, "message": str, "data": any?}
    """
    return RpcError(
        method=method,
        code=int(err_obj.get("code", JsonRpcCode.SERVER_ERROR)),
        message=str(err_obj.get("message", "Unknown JSON-RPC error")),
        data=err_obj.get("data"),
    )
