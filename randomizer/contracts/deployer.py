"""
randomizer.contracts.deployer
=============================

Send transactions and deploy compiled artifacts.

This module:
- Sends a transaction either through the node (`eth_sendTransaction`, for
  node-managed accounts) or signs it locally with `eth_account` and submits
  it raw (`eth_sendRawTransaction`); nonce, gas price and chain id are read
  from the node for the local path
- Polls `eth_getTransactionReceipt` until the receipt shows up
- Raises TxError for reverted transactions (status 0)
- Deploys creation bytecode (+ constructor args) and returns the new address

Typical usage
-------------
    from randomizer.contracts.deployer import deploy

    address, receipt = await deploy(ws, artifact, sender=accounts[0], gas=6_000_000)

Design notes
------------
* Amounts and gas are Python ints here; they become JSON-RPC quantities on the wire.
* `deploy()` returns `(address, receipt)`; wrapping it in a handle is left to
  `ContractInstance.deploy()`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address

from ..errors import DeployError, ReceiptTimeout, TxError
from ..rpc.ws import WsClient
from ..utils.bytes import to_hex, to_quantity
from .abi import encode_constructor
from .artifacts import ContractArtifact

LOG = logging.getLogger(__name__)

JsonDict = Dict[str, Any]


def _int(v: Any) -> int:
    return int(v, 16) if isinstance(v, str) else int(v)


# --- Sending ------------------------------------------------------------------


async def _send_signed(ws: WsClient, tx: Mapping[str, Any], signer: LocalAccount) -> str:
    nonce = _int(await ws.request("eth_getTransactionCount", [signer.address, "pending"]))
    gas_price = _int(await ws.request("eth_gasPrice"))
    chain_id = _int(await ws.request("eth_chainId"))
    unsigned: JsonDict = {
        "nonce": nonce,
        "gasPrice": gas_price,
        "gas": int(tx["gas"]),
        "value": int(tx.get("value", 0)),
        "data": tx.get("data", "0x"),
        "chainId": chain_id,
    }
    if tx.get("to"):
        unsigned["to"] = to_checksum_address(tx["to"])
    signed = signer.sign_transaction(unsigned)
    return str(await ws.request("eth_sendRawTransaction", [to_hex(signed.raw_transaction)]))


async def send_transaction(
    ws: WsClient,
    tx: Mapping[str, Any],
    *,
    signer: Optional[LocalAccount] = None,
) -> str:
    """
    Submit `tx` ({"from", "to"?, "data"?, "gas", "value"?}) and return its hash.

    With a signer the transaction is signed locally; otherwise the node signs
    for its own (unlocked) `from` account.
    """
    if signer is not None:
        if str(tx["from"]).lower() != signer.address.lower():
            raise TxError(f"signer {signer.address} cannot send for {tx['from']}")
        return await _send_signed(ws, tx, signer)

    payload: JsonDict = {
        "from": tx["from"],
        "gas": to_quantity(int(tx["gas"])),
        "value": to_quantity(int(tx.get("value", 0))),
        "data": tx.get("data", "0x"),
    }
    if tx.get("to"):
        payload["to"] = tx["to"]
    return str(await ws.request("eth_sendTransaction", [payload]))


async def wait_for_receipt(
    ws: WsClient,
    tx_hash: str,
    *,
    timeout: float = 120.0,
    poll_interval: float = 0.5,
) -> JsonDict:
    """Poll for a transaction receipt until available; ReceiptTimeout otherwise."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while True:
        rcpt = await ws.request("eth_getTransactionReceipt", [tx_hash])
        if isinstance(rcpt, dict):
            return rcpt
        if loop.time() >= deadline:
            raise ReceiptTimeout(tx_hash=tx_hash, timeout_s=timeout)
        await asyncio.sleep(poll_interval)


def check_receipt(receipt: Mapping[str, Any]) -> None:
    """Raise TxError if the receipt reports failure (status 0)."""
    status = receipt.get("status")
    if status is None:
        return
    ok = status if isinstance(status, bool) else _int(status) != 0
    if not ok:
        raise TxError("transaction reverted", tx_hash=receipt.get("transactionHash"), receipt=dict(receipt))


async def transact(
    ws: WsClient,
    tx: Mapping[str, Any],
    *,
    signer: Optional[LocalAccount] = None,
    timeout: float = 120.0,
    poll_interval: float = 0.5,
) -> JsonDict:
    """Send, wait for the receipt, and check it."""
    tx_hash = await send_transaction(ws, tx, signer=signer)
    LOG.debug("sent tx %s", tx_hash)
    receipt = await wait_for_receipt(ws, tx_hash, timeout=timeout, poll_interval=poll_interval)
    check_receipt(receipt)
    return receipt


# --- Deploy -------------------------------------------------------------------


def extract_contract_address(receipt: Mapping[str, Any]) -> Optional[str]:
    """Read the created contract address from a receipt."""
    v = receipt.get("contractAddress")
    if isinstance(v, str) and v:
        return to_checksum_address(v)
    return None


async def deploy(
    ws: WsClient,
    artifact: ContractArtifact,
    *,
    sender: str,
    gas: int,
    value: int = 0,
    args: Sequence[Any] = (),
    signer: Optional[LocalAccount] = None,
    timeout: float = 120.0,
    poll_interval: float = 0.5,
) -> Tuple[str, JsonDict]:
    """
    Deploy `artifact` and return (contract_address, receipt).

    Raises DeployError if the receipt carries no contract address.
    """
    data = encode_constructor(artifact.abi, artifact.bytecode, args)
    tx = {"from": sender, "data": data, "gas": gas, "value": value}
    receipt = await transact(ws, tx, signer=signer, timeout=timeout, poll_interval=poll_interval)
    addr = extract_contract_address(receipt)
    if addr is None:
        raise DeployError(
            "receipt has no contractAddress",
            contract=artifact.contract_name,
            tx_hash=receipt.get("transactionHash"),
        )
    LOG.info("Deployed %s at %s", artifact.contract_name, addr)
    return addr, receipt


__all__ = [
    "send_transaction",
    "wait_for_receipt",
    "check_receipt",
    "transact",
    "extract_contract_address",
    "deploy",
]
