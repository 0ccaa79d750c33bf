"""
Shared fixtures for harness unit tests:
- an in-process fake node (`fake_node`)
- a HarnessConfig pointing at it with short timeouts (`harness_config`,
  overriding the plugin's env-based one so the `randomizer` fixture works here)
"""
from __future__ import annotations

from pathlib import Path
from typing import AsyncIterator

import pytest
import pytest_asyncio

from randomizer.config import HarnessConfig
from randomizer.tests.fakenode import FakeNode

FIXTURES = Path(__file__).parent / "fixtures"
ARTIFACT = FIXTURES / "RandomizerTest.json"

# Well-known throwaway dev key (never funded on a public network)
DEV_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"


@pytest_asyncio.fixture
async def fake_node() -> AsyncIterator[FakeNode]:
    node = await FakeNode().start()
    try:
        yield node
    finally:
        await node.stop()


@pytest.fixture
def harness_config(fake_node: FakeNode) -> HarnessConfig:
    return HarnessConfig(
        ws_url=fake_node.url,
        artifact_path=str(ARTIFACT),
        connect_timeout=5.0,
        request_timeout=5.0,
        max_retries=0,
        receipt_timeout=5.0,
        poll_interval=0.01,
        callback_timeout_s=5.0,
    )
