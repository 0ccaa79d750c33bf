"""
WebSocket JSON-RPC client (async) with subscription helpers.

- Uses the `websockets` package (asyncio implementation).
- Correlates requests by `id` and dispatches `eth_subscription` notifications.
- `subscribe_logs()` wraps `eth_subscribe("logs", filter)`; `unsubscribe()` releases it.

Example:
    import asyncio
    from randomizer.rpc.ws import WsClient

    async def main():
        async with WsClient("ws://127.0.0.1:8546") as ws:
            sub_id = await ws.subscribe_logs({"address": addr}, on_event=print)
            await asyncio.sleep(10)
            await ws.unsubscribe(sub_id)

    asyncio.run(main())
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import random
from dataclasses import dataclass, field
from itertools import count
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Union

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from ..errors import JsonRpcCode, RpcError, from_jsonrpc_error
from ..version import __version__

JSON = Union[dict, list, str, int, float, bool, None]
Params = Union[list, dict, None]
OnEvent = Callable[[JSON], None]

LOG = logging.getLogger(__name__)

_TRANSPORT = int(JsonRpcCode.TRANSPORT_ERROR)


def _jitter_backoff(base: float, factor: float, attempt: int, jitter: float) -> float:
    return base * (factor ** max(attempt - 1, 0)) + random.random() * jitter


@dataclass
class WsClient:
    url: str
    headers: Optional[Mapping[str, str]] = None
    connect_timeout: float = 15.0
    request_timeout: float = 30.0
    ping_interval: Optional[float] = 20.0
    max_retries: int = 3
    backoff_base: float = 0.25
    backoff_factor: float = 1.8
    backoff_jitter: float = 0.25
    _id_counter: Iterator[int] = field(init=False, default_factory=lambda: count(start=1))
    _ws: Optional[ClientConnection] = field(init=False, default=None)
    _reader_task: Optional[asyncio.Task] = field(init=False, default=None)
    _pending: Dict[int, asyncio.Future] = field(init=False, default_factory=dict)
    _sub_handlers: Dict[str, OnEvent] = field(init=False, default_factory=dict)
    _closing: bool = field(init=False, default=False)

    # ------------- context manager -------------

    async def __aenter__(self) -> "WsClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.close()

    # ------------- lifecycle -------------------

    @property
    def connected(self) -> bool:
        return self._ws is not None and not self._closing

    @property
    def subscriptions(self) -> Dict[str, OnEvent]:
        """Live subscription id -> handler table (read-only view by convention)."""
        return self._sub_handlers

    async def connect(self) -> None:
        """Establish a WebSocket connection and start the reader loop."""
        self._closing = False
        attempt = 0
        while True:
            attempt += 1
            try:
                self._ws = await asyncio.wait_for(
                    connect(
                        self.url,
                        additional_headers=dict(self.headers or {}),
                        user_agent_header=f"randomizer-harness/{__version__}",
                        ping_interval=self.ping_interval,
                        open_timeout=self.connect_timeout,
                    ),
                    timeout=self.connect_timeout,
                )
            except (OSError, asyncio.TimeoutError, WebSocketException) as e:
                if attempt > self.max_retries:
                    raise RpcError(
                        method=None, code=_TRANSPORT, message="WS connect failed", data=str(e)
                    ) from e
                delay = _jitter_backoff(
                    self.backoff_base, self.backoff_factor, attempt, self.backoff_jitter
                )
                LOG.warning("WS connect to %s failed (%s); retry %d in %.2fs", self.url, e, attempt, delay)
                await asyncio.sleep(delay)
                continue
            self._reader_task = asyncio.create_task(self._reader_loop(), name="WsClient.reader")
            LOG.info("WS connected: %s", self.url)
            return

    async def close(self) -> None:
        """Close the WebSocket, cancel the reader and fail pending requests."""
        self._closing = True
        if self._reader_task and not self._reader_task.done():
            self._reader_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reader_task
        self._reader_task = None
        if self._ws is not None:
            await self._ws.close()
            self._ws = None
            LOG.info("WS closed: %s", self.url)
        self._fail_pending("WS closed")
        self._sub_handlers.clear()

    # ------------- RPC primitives --------------

    async def request(self, method: str, params: Params = None) -> JSON:
        """Send a JSON-RPC request and await the response."""
        if self._ws is None:
            raise RpcError(method=method, code=_TRANSPORT, message="WS not connected")

        rid = next(self._id_counter)
        if params is None:
            params = []
        payload = {"jsonrpc": "2.0", "id": rid, "method": method, "params": params}
        fut: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending[rid] = fut

        try:
            await asyncio.wait_for(
                self._ws.send(json.dumps(payload, separators=(",", ":"))),
                timeout=self.request_timeout,
            )
        except (ConnectionClosed, asyncio.TimeoutError) as e:
            self._pending.pop(rid, None)
            raise RpcError(method=method, code=_TRANSPORT, message="WS send failed", data=str(e)) from e

        try:
            return await asyncio.wait_for(fut, timeout=self.request_timeout)
        except asyncio.TimeoutError as e:
            raise RpcError(
                method=method, code=_TRANSPORT, message="WS request timed out", data=self.request_timeout
            ) from e
        except RpcError as e:
            if e.method is None:
                e.method = method
            raise
        finally:
            self._pending.pop(rid, None)

    # ------------- Subscriptions ----------------

    async def subscribe(self, method: str, params: Params = None, *, on_event: OnEvent) -> str:
        """
        Generic subscription helper.

        Expects the server to return a subscription id in `result`.
        Notifications look like:
          {"jsonrpc":"2.0","method":"eth_subscription","params":{"subscription":"<id>","result":<event>}}
        """
        res = await self.request(method, params or [])
        sub_id = str(res)
        self._sub_handlers[sub_id] = on_event
        LOG.debug("subscribed %s -> %s", method, sub_id)
        return sub_id

    async def subscribe_logs(self, log_filter: Mapping[str, Any], *, on_event: OnEvent) -> str:
        """Subscribe to logs matching `{"address": ..., "topics": [...]}`."""
        return await self.subscribe("eth_subscribe", ["logs", dict(log_filter)], on_event=on_event)

    async def unsubscribe(self, sub_id: str, method: str = "eth_unsubscribe") -> bool:
        """Unsubscribe via server method and remove the handler."""
        self._sub_handlers.pop(sub_id, None)
        ok = await self.request(method, [sub_id])
        return bool(ok)

    # ------------- internals --------------------

    def _fail_pending(self, reason: str) -> None:
        for fut in list(self._pending.values()):
            if not fut.done():
                fut.set_exception(RpcError(method=None, code=_TRANSPORT, message=reason))
        self._pending.clear()

    async def _reader_loop(self) -> None:
        """Continuously read frames and dispatch to pending futures or handlers."""
        assert self._ws is not None
        while True:
            try:
                msg = await self._ws.recv()
            except ConnectionClosed:
                if not self._closing:
                    LOG.warning("WS connection to %s dropped", self.url)
                    self._fail_pending("WS disconnected")
                return

            try:
                data = json.loads(msg)
            except ValueError:
                LOG.debug("ignoring non-JSON frame: %.80r", msg)
                continue
            if not isinstance(data, dict):
                continue

            # Response to a request
            if "id" in data and data.get("id") is not None:
                rid = data["id"]
                fut = self._pending.get(int(rid)) if str(rid).isdigit() else None
                if fut is None or fut.done():
                    continue
                if data.get("error") is not None:
                    fut.set_exception(from_jsonrpc_error(data["error"]))
                else:
                    fut.set_result(data.get("result"))
                continue

            # Subscription notification
            params = data.get("params")
            if isinstance(params, dict) and "subscription" in params:
                handler = self._sub_handlers.get(str(params["subscription"]))
                if handler is None:
                    continue
                try:
                    handler(params.get("result"))
                except Exception:
                    LOG.exception("subscription handler for %s failed", params["subscription"])


__all__ = ["WsClient", "JSON", "Params", "OnEvent"]
