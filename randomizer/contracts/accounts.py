"""
Sender identities for transactions.

Two sources, picked by configuration:
- node-managed accounts from `eth_accounts` (dev chains, unlocked nodes);
- local private keys (hosted endpoints without accounts), signed with `eth_account`.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional, Sequence

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address

from ..errors import HarnessError
from ..rpc.ws import WsClient

LOG = logging.getLogger(__name__)


class Accounts(Sequence[str]):
    """Read-only list of sender addresses, with the local signer for each when known."""

    def __init__(self, addresses: Sequence[str], signers: Optional[Dict[str, LocalAccount]] = None) -> None:
        self._addresses: List[str] = [to_checksum_address(a) for a in addresses]
        self._signers = {k.lower(): v for k, v in (signers or {}).items()}

    @classmethod
    def from_private_keys(cls, keys: Sequence[str]) -> "Accounts":
        signers = [Account.from_key(k) for k in keys]
        return cls([s.address for s in signers], {s.address: s for s in signers})

    @classmethod
    async def resolve(cls, ws: WsClient, private_keys: Sequence[str] = ()) -> "Accounts":
        if private_keys:
            accts = cls.from_private_keys(private_keys)
            LOG.info("Using %d local signer(s)", len(accts))
            return accts
        res = await ws.request("eth_accounts")
        if not isinstance(res, list) or not res:
            raise HarnessError("node exposes no accounts; configure RANDOMIZER_PRIVATE_KEYS")
        LOG.info("Using %d node-managed account(s)", len(res))
        return cls(res)

    def signer_for(self, address: str) -> Optional[LocalAccount]:
        return self._signers.get(address.lower())

    def __getitem__(self, i):  # noqa: ANN001
        return self._addresses[i]

    def __len__(self) -> int:
        return len(self._addresses)

    def __iter__(self) -> Iterator[str]:
        return iter(self._addresses)

    def __repr__(self) -> str:
        return f"Accounts({self._addresses!r})"


__all__ = ["Accounts"]
