"""Per-test-case harness: scoped session, waits and the case list."""

from .cases import CASES, OracleCase, as_pytest_params, disabled_cases, resolve_cases
from .session import RandomizerHarness
from .wait import sleep_ms, wait_for_first

__all__ = [
    "CASES",
    "OracleCase",
    "as_pytest_params",
    "disabled_cases",
    "resolve_cases",
    "RandomizerHarness",
    "sleep_ms",
    "wait_for_first",
]
