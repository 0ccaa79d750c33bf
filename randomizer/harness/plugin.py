"""
pytest plugin for randomizer harness tests.

Enable with `pytest_plugins = ("randomizer.harness.plugin",)` in a conftest.

Provides:
- CLI options: --ws-url, --artifact, --callback-timeout, --enable-oracle
- `harness_config` (session): HarnessConfig from env + options
- `randomizer` (per test): a set-up RandomizerHarness, torn down afterwards
- `accounts` (per test): the harness's sender accounts
- `oracle_case` parametrization: tests asking for it run once per case in
  `CASES`, with config applied and disabled cases skipped with their reason
- terminal summary listing disabled cases and why
"""

from __future__ import annotations

import typing as t

import pytest
import pytest_asyncio

from ..config import HarnessConfig
from ..contracts.accounts import Accounts
from ..logging import setup_logging
from .cases import CASES, as_pytest_params, disabled_cases, resolve_cases
from .session import RandomizerHarness


# ---------- CLI OPTIONS ----------

def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("randomizer", "randomizer harness")
    group.addoption(
        "--ws-url",
        action="store",
        default=None,
        help="WebSocket endpoint for the node (env: RANDOMIZER_WS_URL)",
    )
    group.addoption(
        "--artifact",
        action="store",
        default=None,
        help="Path to the compiled contract artifact JSON (env: RANDOMIZER_ARTIFACT)",
    )
    group.addoption(
        "--callback-timeout",
        action="store",
        type=float,
        default=None,
        help="Seconds to wait for the oracle callback event (env: RANDOMIZER_CALLBACK_TIMEOUT)",
    )
    group.addoption(
        "--enable-oracle",
        action="store_true",
        default=False,
        help="Run oracle round-trip cases that are disabled by default (env: RANDOMIZER_ENABLE_ORACLE)",
    )


def pytest_configure(config: pytest.Config) -> None:
    setup_logging()
    config.addinivalue_line("markers", "oracle: needs a randomness oracle answering on the node")


def _config_from_options(pytestconfig: pytest.Config) -> HarnessConfig:
    cfg = HarnessConfig.from_env()
    return cfg.with_overrides(
        ws_url=pytestconfig.getoption("--ws-url"),
        artifact_path=pytestconfig.getoption("--artifact"),
        callback_timeout_s=pytestconfig.getoption("--callback-timeout"),
        # store_true: False means "not given", leave the env value alone
        enable_oracle=pytestconfig.getoption("--enable-oracle") or None,
    )


# ---------- PARAMETRIZATION ----------

def pytest_generate_tests(metafunc: pytest.Metafunc) -> None:
    if "oracle_case" in metafunc.fixturenames:
        cases = resolve_cases(_config_from_options(metafunc.config), CASES)
        metafunc.parametrize("oracle_case", as_pytest_params(cases))


# ---------- FIXTURES ----------

@pytest.fixture(scope="session")
def harness_config(pytestconfig: pytest.Config) -> HarnessConfig:
    return _config_from_options(pytestconfig)


@pytest_asyncio.fixture
async def randomizer(harness_config: HarnessConfig) -> t.AsyncIterator[RandomizerHarness]:
    """Fresh deployment + event subscription for one test; released afterwards."""
    async with RandomizerHarness(harness_config) as h:
        yield h


@pytest.fixture
def accounts(randomizer: RandomizerHarness) -> Accounts:
    return randomizer.accounts


# ---------- REPORTING ----------

def pytest_terminal_summary(terminalreporter, exitstatus: int, config: pytest.Config) -> None:  # noqa: ANN001
    cases = resolve_cases(_config_from_options(config), CASES)
    off = disabled_cases(cases)
    if not off:
        return
    terminalreporter.section("randomizer: disabled cases")
    for c in off:
        terminalreporter.write_line(f"{c.name}: {c.reason}")
