import asyncio
import logging

import pytest

from randomizer.config import HarnessConfig
from randomizer.contracts.events import DecodedEvent
from randomizer.errors import ArtifactError, DeployError, EventTimeout, HarnessError, TxError
from randomizer.harness.cases import OracleCase
from randomizer.harness.session import RandomizerHarness
from randomizer.harness.wait import sleep_ms
from randomizer.tests.conftest import DEV_KEY
from randomizer.tests.fakenode import FakeNode, eventually

CASE = OracleCase(name="round trip", timeout_s=5.0)


def _new_event_records(caplog):
    return [r for r in caplog.records if r.name == "randomizer.harness.session" and r.getMessage() == "New event"]


@pytest.mark.asyncio
async def test_each_setup_deploys_a_fresh_instance(harness_config: HarnessConfig, fake_node: FakeNode):
    async with RandomizerHarness(harness_config) as a:
        first = a.instance.address
    async with RandomizerHarness(harness_config) as b:
        second = b.instance.address
    assert first != second
    assert first.lower() in fake_node.contracts
    assert second.lower() in fake_node.contracts


@pytest.mark.asyncio
async def test_listener_logs_once_per_event(harness_config: HarnessConfig, fake_node: FakeNode, caplog):
    caplog.set_level(logging.INFO, logger="randomizer.harness.session")
    async with RandomizerHarness(harness_config) as h:
        addr = h.instance.address
        logs = [fake_node.make_result_log(addr, n) for n in (11, 22, 33)]
        for log in logs:
            await fake_node.emit_log(log)
        await fake_node.emit_log(logs[1])  # duplicate delivery
        await fake_node.emit_log(dict(fake_node.make_result_log(addr, 44), removed=True))
        assert await eventually(lambda: len(h.events) == 3)
        await sleep_ms(50)

        assert [e.args["result"] for e in h.events] == [11, 22, 33]
        recs = _new_event_records(caplog)
        assert len(recs) == 3
        assert [r.event_args["result"] for r in recs] == [11, 22, 33]


@pytest.mark.asyncio
async def test_events_of_other_instances_are_not_seen(harness_config: HarnessConfig, fake_node: FakeNode):
    async with RandomizerHarness(harness_config) as h:
        await fake_node.emit_result("0x" + "ee" * 20, 1)
        await fake_node.emit_result(h.instance.address, 2)
        assert await eventually(lambda: len(h.events) == 1)
        assert h.events[0].args["result"] == 2


@pytest.mark.asyncio
async def test_oracle_roundtrip_yields_one_result(harness_config: HarnessConfig, fake_node: FakeNode):
    async with RandomizerHarness(harness_config) as h:
        ev = await h.run_roundtrip(CASE)
        assert isinstance(ev, DecodedEvent)
        assert ev.name == "ShowRandomResult"
        assert isinstance(ev.args["result"], int)
        assert ev.address == h.instance.address

        await sleep_ms(100)
        assert len(h.events) == 1
        assert await h.instance.call("randomNumber") == ev.args["result"]

    sent = [p[0] for m, p in fake_node.calls if m == "eth_sendTransaction"]
    request = sent[-1]
    assert request["gas"] == hex(8_000_000)
    assert request["value"] == hex(10**17)
    assert request["from"] == fake_node.accounts[0]


@pytest.mark.asyncio
async def test_roundtrip_times_out_without_oracle(harness_config: HarnessConfig, fake_node: FakeNode):
    fake_node.oracle_enabled = False
    async with RandomizerHarness(harness_config) as h:
        with pytest.raises(EventTimeout) as ei:
            await h.run_roundtrip(OracleCase(name="no oracle", timeout_s=0.2))
        assert ei.value.event == "ShowRandomResult"
        assert ei.value.address == h.instance.address
        assert h.events == []


@pytest.mark.asyncio
async def test_insufficient_payment_reverts(harness_config: HarnessConfig, fake_node: FakeNode):
    async with RandomizerHarness(harness_config) as h:
        with pytest.raises(TxError):
            await h.run_roundtrip(OracleCase(name="cheap", value_wei=10**16, timeout_s=1.0))
    assert fake_node.subscriptions == {}


@pytest.mark.asyncio
async def test_teardown_releases_everything_after_failure(harness_config: HarnessConfig, fake_node: FakeNode):
    with pytest.raises(RuntimeError):
        async with RandomizerHarness(harness_config) as h:
            assert len(fake_node.subscriptions) == 1
            raise RuntimeError("test body failed")
    assert fake_node.subscriptions == {}
    assert "eth_unsubscribe" in fake_node.methods_called()
    assert await eventually(lambda: not fake_node.connections)
    assert h.ws is None


@pytest.mark.asyncio
async def test_teardown_is_idempotent(harness_config: HarnessConfig, fake_node: FakeNode):
    h = RandomizerHarness(harness_config)
    await h.setup()
    await h.teardown()
    await h.teardown()
    assert fake_node.methods_called().count("eth_unsubscribe") == 1
    with pytest.raises(HarnessError):
        h.subscription


@pytest.mark.asyncio
async def test_failed_deploy_releases_connection(harness_config: HarnessConfig, fake_node: FakeNode):
    fake_node.deploy_without_address = True
    h = RandomizerHarness(harness_config)
    with pytest.raises(DeployError):
        await h.setup()
    assert h.ws is None
    assert await eventually(lambda: not fake_node.connections)


@pytest.mark.asyncio
async def test_missing_artifact_fails_before_connecting(harness_config: HarnessConfig, fake_node: FakeNode, tmp_path):
    cfg = harness_config.with_overrides(artifact_path=str(tmp_path / "Missing.json"))
    with pytest.raises(ArtifactError):
        await RandomizerHarness(cfg).setup()
    assert fake_node.calls == []


@pytest.mark.asyncio
async def test_local_signer_roundtrip(harness_config: HarnessConfig, fake_node: FakeNode):
    cfg = harness_config.with_overrides(private_keys=(DEV_KEY,))
    async with RandomizerHarness(cfg) as h:
        assert len(h.accounts) == 1
        assert h.accounts.signer_for(h.accounts[0]) is not None
        ev = await h.run_roundtrip(CASE)
        assert isinstance(ev.args["result"], int)
    methods = fake_node.methods_called()
    assert "eth_sendRawTransaction" in methods
    assert "eth_sendTransaction" not in methods
    assert "eth_accounts" not in methods


@pytest.mark.asyncio
async def test_receipt_polling_against_slow_node(harness_config: HarnessConfig, fake_node: FakeNode):
    fake_node.receipt_lag = 2
    async with RandomizerHarness(harness_config) as h:
        assert h.instance.receipt["status"] == "0x1"
    assert fake_node.methods_called().count("eth_getTransactionReceipt") == 3


@pytest.mark.asyncio
async def test_randomizer_fixture(randomizer: RandomizerHarness, accounts, fake_node: FakeNode):
    assert accounts[0] == fake_node.accounts[0]
    assert randomizer.subscription.active
    assert randomizer.instance.name == "RandomizerTest"
    task = asyncio.ensure_future(randomizer.run_roundtrip(CASE))
    ev = await asyncio.wait_for(task, 5)
    assert ev.name == "ShowRandomResult"
