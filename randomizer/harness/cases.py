"""
Declarative list of oracle test cases.

Cases that need infrastructure the default environment lacks (a live network
with a running oracle) stay in the list with `enabled=False` and a reason, so
they are reported as skipped instead of silently vanishing.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, List, Optional, Sequence

import pytest

from ..config import DEFAULT_VALUE_WEI, HarnessConfig


@dataclass(frozen=True)
class OracleCase:
    name: str
    enabled: bool = True
    reason: str = ""
    sender_index: int = 0
    gas: int = 8_000_000
    value_wei: int = DEFAULT_VALUE_WEI
    timeout_s: float = 1000.0


CASES: List[OracleCase] = [
    OracleCase(
        name="oracle round trip",
        enabled=False,
        reason="needs a live network with a running randomness oracle (set RANDOMIZER_ENABLE_ORACLE=1)",
    ),
]


def resolve_cases(cfg: Optional[HarnessConfig] = None, cases: Sequence[OracleCase] = CASES) -> List[OracleCase]:
    """Apply config to the static case list (enable flag, gas, value, timeout)."""
    if cfg is None:
        return list(cases)
    out = []
    for c in cases:
        c = replace(c, gas=cfg.gas, value_wei=cfg.value_wei, timeout_s=cfg.callback_timeout_s)
        if cfg.enable_oracle and not c.enabled:
            c = replace(c, enabled=True, reason="")
        out.append(c)
    return out


def disabled_cases(cases: Sequence[OracleCase]) -> List[OracleCase]:
    return [c for c in cases if not c.enabled]


def as_pytest_params(cases: Sequence[OracleCase]) -> List[Any]:
    """`pytest.param` per case; disabled cases carry a skip mark with their reason."""
    params = []
    for c in cases:
        marks = () if c.enabled else (pytest.mark.skip(reason=c.reason or "disabled"),)
        params.append(pytest.param(c, id=c.name.replace(" ", "-"), marks=marks))
    return params


__all__ = ["OracleCase", "CASES", "resolve_cases", "disabled_cases", "as_pytest_params"]
