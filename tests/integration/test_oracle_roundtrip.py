"""
RandomizerTest against a live node.

Every test gets its own freshly deployed instance through the `randomizer`
fixture, with a ShowRandomResult listener that logs "New event" per event.
The oracle round trip is listed in randomizer.harness.cases; the plugin
parametrizes `oracle_case` from it and keeps it skipped unless enabled
(RANDOMIZER_ENABLE_ORACLE=1 or --enable-oracle).
"""
import pytest

from randomizer.config import HarnessConfig
from randomizer.harness.cases import OracleCase
from randomizer.harness.session import RandomizerHarness

pytestmark = pytest.mark.asyncio


async def test_setup_deploys_and_listens(randomizer: RandomizerHarness, accounts):
    assert len(accounts) >= 1
    assert randomizer.instance.receipt.get("contractAddress")
    assert randomizer.subscription.active


async def test_consecutive_setups_get_distinct_instances(harness_config: HarnessConfig):
    async with RandomizerHarness(harness_config) as a:
        first = a.instance.address
    async with RandomizerHarness(harness_config) as b:
        second = b.instance.address
    assert first != second


@pytest.mark.oracle
async def test_oracle_roundtrip(randomizer: RandomizerHarness, oracle_case: OracleCase):
    ev = await randomizer.run_roundtrip(oracle_case)
    assert ev.name == "ShowRandomResult"
    assert isinstance(ev.args["result"], int)
    assert len(randomizer.events) == 1
