"""
randomizer.harness.session
==========================

`RandomizerHarness` scopes everything one test case needs:

    async with RandomizerHarness(cfg) as h:
        ev = await h.run_roundtrip(case)

Setup
-----
1. open the WebSocket connection
2. resolve the sender accounts (node-managed or local keys)
3. load the artifact and deploy a fresh instance
4. subscribe to the result event, logging "New event" once per event

Teardown
--------
Unsubscribes every subscription it opened and closes the connection, whatever
the outcome of the test body. A failed setup releases what it acquired before
re-raising.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from ..config import HarnessConfig
from ..contracts.accounts import Accounts
from ..contracts.artifacts import ContractArtifact, find_artifact, load_artifact
from ..contracts.client import ContractInstance
from ..contracts.events import DecodedEvent, EventSubscription
from ..errors import HarnessError, RpcError
from ..logging import bind, unbind
from ..rpc.ws import WsClient
from .cases import OracleCase
from .wait import wait_for_first

LOG = logging.getLogger(__name__)


class RandomizerHarness:
    def __init__(self, cfg: Optional[HarnessConfig] = None, artifact: Optional[ContractArtifact] = None) -> None:
        self.cfg = cfg or HarnessConfig.from_env()
        self._artifact = artifact
        self.ws: Optional[WsClient] = None
        self._accounts: Optional[Accounts] = None
        self._instance: Optional[ContractInstance] = None
        self._subscription: Optional[EventSubscription] = None
        self._subs: List[EventSubscription] = []

    # ------------- context manager -------------

    async def __aenter__(self) -> "RandomizerHarness":
        await self.setup()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.teardown()

    # ------------- accessors -------------------

    @property
    def accounts(self) -> Accounts:
        if self._accounts is None:
            raise HarnessError("harness is not set up")
        return self._accounts

    @property
    def instance(self) -> ContractInstance:
        if self._instance is None:
            raise HarnessError("harness is not set up")
        return self._instance

    @property
    def subscription(self) -> EventSubscription:
        if self._subscription is None:
            raise HarnessError("harness is not set up")
        return self._subscription

    @property
    def events(self) -> List[DecodedEvent]:
        return self.subscription.events

    @property
    def artifact(self) -> ContractArtifact:
        if self._artifact is None:
            cfg = self.cfg
            if cfg.artifact_path:
                self._artifact = load_artifact(cfg.artifact_path)
            else:
                self._artifact = find_artifact(cfg.contract_name, cfg.artifact_dirs)
        return self._artifact

    # ------------- lifecycle -------------------

    async def setup(self) -> "RandomizerHarness":
        cfg = self.cfg
        artifact = self.artifact
        self.ws = WsClient(
            cfg.ws_url,
            connect_timeout=cfg.connect_timeout,
            request_timeout=cfg.request_timeout,
            max_retries=cfg.max_retries,
        )
        try:
            await self.ws.connect()
            self._accounts = await Accounts.resolve(self.ws, cfg.private_keys)
            sender = self._accounts[0]
            self._instance = await ContractInstance.deploy(
                self.ws,
                artifact,
                sender=sender,
                gas=cfg.deploy_gas,
                signer=self._accounts.signer_for(sender),
                receipt_timeout=cfg.receipt_timeout,
                poll_interval=cfg.poll_interval,
            )
            bind(contract=self._instance.address)
            self._subscription = await self.subscribe(cfg.event_name)
        except BaseException:
            await self.teardown()
            raise
        return self

    async def subscribe(self, event: str) -> EventSubscription:
        """Open another subscription on the instance; released in teardown."""
        sub = await self.instance.subscribe(event, listener=self._log_event)
        self._subs.append(sub)
        return sub

    async def teardown(self) -> None:
        subs, self._subs = self._subs, []
        for sub in subs:
            try:
                await sub.close()
            except RpcError as e:
                LOG.warning("releasing %s subscription failed: %s", sub.name, e)
        self._subscription = None
        if self.ws is not None:
            ws, self.ws = self.ws, None
            await ws.close()
        unbind("contract")

    # ------------- operations ------------------

    def _log_event(self, ev: DecodedEvent) -> None:
        LOG.info(
            "New event",
            extra={
                "event": ev.name,
                "event_args": ev.args,
                "tx": ev.transaction_hash,
                "log_index": ev.log_index,
            },
        )

    async def start_generating_random(self, sender: str, *, gas: int, value: int) -> dict:
        """Invoke the randomness entry point and return its receipt."""
        return await self.instance.transact(
            self.cfg.entrypoint,
            sender=sender,
            gas=gas,
            value=value,
            signer=self.accounts.signer_for(sender),
        )

    async def run_roundtrip(self, case: OracleCase) -> DecodedEvent:
        """
        Invoke the entry point and wait for the oracle's callback event.

        Returns the first result event or raises EventTimeout after
        `case.timeout_s`.
        """
        sub = self.subscription
        sender = self.accounts[case.sender_index]
        waiter = sub.expect()
        try:
            receipt = await self.start_generating_random(sender, gas=case.gas, value=case.value_wei)
        except BaseException:
            waiter.cancel()
            raise
        LOG.info("Requested randomness", extra={"tx": receipt.get("transactionHash"), "case": case.name})
        return await wait_for_first(waiter, case.timeout_s, event=sub.name, address=sub.address)


__all__ = ["RandomizerHarness"]
