"""
randomizer.contracts.events
===========================

Live event listeners bound to one contract instance.

- `decode_log(entry, log)` turns a raw `eth_subscription` log into a `DecodedEvent`.
- `EventSubscription` owns one `eth_subscribe("logs", …)` subscription filtered
  by instance address and event topic. Each emitted event is recorded and
  handed to the listener exactly once: re-org removals (`removed: true`) and
  re-deliveries of the same (transactionHash, logIndex) are dropped.
- `expect(predicate)` returns a future resolved by the first matching event
  received *after* the call, so callers arm it before sending the transaction
  that triggers the event.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Set, Tuple

from ..errors import AbiError, RpcError
from ..rpc.ws import WsClient
from ..utils.bytes import from_hex, to_hex
from .abi import AbiEntry, decode_event_args, event_topic

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecodedEvent:
    name: str
    args: Dict[str, Any]
    address: Optional[str] = None
    block_number: Optional[int] = None
    transaction_hash: Optional[str] = None
    log_index: Optional[int] = None
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False, compare=False)


Listener = Callable[[DecodedEvent], None]
Predicate = Callable[[DecodedEvent], bool]


def _quantity(v: Any) -> Optional[int]:
    if v is None:
        return None
    if isinstance(v, int):
        return v
    s = str(v)
    return int(s, 16) if s.startswith("0x") else int(s)


def decode_log(entry: AbiEntry, log: Mapping[str, Any]) -> DecodedEvent:
    """Decode one raw log against an event ABI entry."""
    topics = [from_hex(t) for t in log.get("topics") or []]
    if not entry.get("anonymous"):
        if not topics or topics[0] != event_topic(entry):
            raise AbiError("log topic does not match event", name=str(entry.get("name")))
    args = decode_event_args(entry, topics, from_hex(log.get("data") or "0x"))
    return DecodedEvent(
        name=str(entry.get("name")),
        args=args,
        address=log.get("address"),
        block_number=_quantity(log.get("blockNumber")),
        transaction_hash=log.get("transactionHash"),
        log_index=_quantity(log.get("logIndex")),
        raw=dict(log),
    )


class EventSubscription:
    """
    Listener bound to one instance's named event.

    Lifetime is the test case: the harness closes it in teardown.
    """

    def __init__(
        self,
        ws: WsClient,
        address: str,
        entry: AbiEntry,
        listener: Optional[Listener] = None,
    ) -> None:
        self.ws = ws
        self.address = address
        self.entry = entry
        self.name = str(entry.get("name"))
        self.topic = event_topic(entry)
        self.events: List[DecodedEvent] = []
        self.sub_id: Optional[str] = None
        self._listener = listener
        self._seen: Set[Tuple[str, int]] = set()
        self._waiters: List[Tuple[asyncio.Future, Optional[Predicate]]] = []

    @property
    def active(self) -> bool:
        return self.sub_id is not None

    async def start(self) -> "EventSubscription":
        log_filter = {"address": self.address, "topics": [to_hex(self.topic)]}
        self.sub_id = await self.ws.subscribe_logs(log_filter, on_event=self._on_log)
        LOG.info("Listening to %s events at %s (sub=%s)", self.name, self.address, self.sub_id)
        return self

    def expect(self, predicate: Optional[Predicate] = None) -> asyncio.Future:
        """Future resolved with the next event satisfying `predicate`."""
        fut: asyncio.Future = asyncio.get_running_loop().create_future()
        self._waiters.append((fut, predicate))
        return fut

    async def close(self) -> None:
        """Unsubscribe from the node. Safe to call more than once."""
        sub_id, self.sub_id = self.sub_id, None
        for fut, _ in self._waiters:
            fut.cancel()
        self._waiters.clear()
        if sub_id is None or not self.ws.connected:
            return
        try:
            await self.ws.unsubscribe(sub_id)
        except RpcError as e:
            LOG.warning("unsubscribe %s failed: %s", sub_id, e)
        LOG.info("Stopped listening to %s events at %s", self.name, self.address)

    # ------------- internals --------------------

    def _on_log(self, log: Any) -> None:
        if not isinstance(log, Mapping):
            return
        if log.get("removed"):
            LOG.debug("dropping removed %s log %s", self.name, log.get("transactionHash"))
            return
        if str(log.get("address", "")).lower() != self.address.lower():
            return
        tx_hash, idx = log.get("transactionHash"), _quantity(log.get("logIndex"))
        if tx_hash is not None and idx is not None:
            key = (str(tx_hash).lower(), idx)
            if key in self._seen:
                LOG.debug("dropping duplicate %s log %s#%d", self.name, tx_hash, idx)
                return
            self._seen.add(key)
        try:
            ev = decode_log(self.entry, log)
        except AbiError as e:
            LOG.warning("undecodable %s log from %s: %s", self.name, self.address, e)
            return

        self.events.append(ev)
        pending = []
        for fut, pred in self._waiters:
            if fut.done():
                continue
            if pred is None or pred(ev):
                fut.set_result(ev)
            else:
                pending.append((fut, pred))
        self._waiters = pending
        if self._listener is not None:
            self._listener(ev)


__all__ = ["DecodedEvent", "Listener", "Predicate", "decode_log", "EventSubscription"]
