"""
randomizer.contracts.client
===========================

`ContractInstance`: handle to one deployed contract.

- Encodes function calls from the artifact ABI
- Sends state-changing transactions through `deployer.transact`
- Runs read-only calls with `eth_call` and decodes the return data
- Opens `EventSubscription`s for the instance's events

Example
-------
    inst = await ContractInstance.deploy(ws, artifact, sender=accounts[0], gas=6_000_000)
    sub = await inst.subscribe("ShowRandomResult", listener=print)
    await inst.transact("startGeneratingRandom", sender=accounts[0], gas=8_000_000, value=10**17)
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Sequence

from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address

from ..errors import AbiError
from ..rpc.ws import WsClient
from ..utils.bytes import from_hex, to_hex
from . import deployer
from .abi import decode_output, encode_call, event_entry, function_entry, is_payable
from .artifacts import ContractArtifact
from .events import EventSubscription, Listener

JsonDict = Dict[str, Any]


class ContractInstance:
    def __init__(
        self,
        ws: WsClient,
        address: str,
        artifact: ContractArtifact,
        receipt: Optional[Mapping[str, Any]] = None,
        *,
        receipt_timeout: float = 120.0,
        poll_interval: float = 0.5,
    ) -> None:
        self.ws = ws
        self.address = to_checksum_address(address)
        self.artifact = artifact
        self.receipt: JsonDict = dict(receipt or {})
        self.receipt_timeout = receipt_timeout
        self.poll_interval = poll_interval

    @classmethod
    async def deploy(
        cls,
        ws: WsClient,
        artifact: ContractArtifact,
        *,
        sender: str,
        gas: int,
        value: int = 0,
        args: Sequence[Any] = (),
        signer: Optional[LocalAccount] = None,
        receipt_timeout: float = 120.0,
        poll_interval: float = 0.5,
    ) -> "ContractInstance":
        """Deploy a fresh instance of `artifact` and return its handle."""
        address, receipt = await deployer.deploy(
            ws,
            artifact,
            sender=sender,
            gas=gas,
            value=value,
            args=args,
            signer=signer,
            timeout=receipt_timeout,
            poll_interval=poll_interval,
        )
        return cls(ws, address, artifact, receipt, receipt_timeout=receipt_timeout, poll_interval=poll_interval)

    @property
    def name(self) -> str:
        return self.artifact.contract_name

    async def transact(
        self,
        fn: str,
        *args: Any,
        sender: str,
        gas: int,
        value: int = 0,
        signer: Optional[LocalAccount] = None,
    ) -> JsonDict:
        """Send a state-changing call and return its (successful) receipt."""
        entry = function_entry(self.artifact.abi, fn, len(args))
        if value and not is_payable(entry):
            raise AbiError("function is not payable", name=fn)
        tx = {
            "from": sender,
            "to": self.address,
            "data": to_hex(encode_call(self.artifact.abi, fn, args)),
            "gas": gas,
            "value": value,
        }
        return await deployer.transact(
            self.ws, tx, signer=signer, timeout=self.receipt_timeout, poll_interval=self.poll_interval
        )

    async def call(self, fn: str, *args: Any, sender: Optional[str] = None) -> Any:
        """Read-only call against the latest block."""
        entry = function_entry(self.artifact.abi, fn, len(args))
        call: JsonDict = {"to": self.address, "data": to_hex(encode_call(self.artifact.abi, fn, args))}
        if sender:
            call["from"] = sender
        res = await self.ws.request("eth_call", [call, "latest"])
        return decode_output(entry, from_hex(str(res or "0x")))

    async def subscribe(self, event: str, listener: Optional[Listener] = None) -> EventSubscription:
        """Start listening to `event` emitted by this instance."""
        sub = EventSubscription(self.ws, self.address, event_entry(self.artifact.abi, event), listener)
        return await sub.start()

    def __repr__(self) -> str:
        return f"ContractInstance({self.name}@{self.address})"


__all__ = ["ContractInstance"]
