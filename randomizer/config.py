"""
Harness configuration: node endpoint, contract artifact, transaction and wait settings.

- Loads sane defaults and supports overrides via environment variables (RANDOMIZER_*).
- Reads a `.env` file from the working directory first (real env always wins).
- `with_overrides()` builds a copy for pytest options and CLI flags.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from dotenv import load_dotenv

_DEFAULT_WS = "ws://127.0.0.1:8546"
_DEFAULT_ARTIFACT_DIRS: Tuple[str, ...] = ("build/contracts", "out", "artifacts")

# 0.1 ETH in wei, the payment the oracle query is funded with
DEFAULT_VALUE_WEI = 100_000_000_000_000_000


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    return v if v is not None else default


def _is_truthy(val: Optional[str]) -> bool:
    return (val or "").strip().lower() in {"1", "true", "yes", "on", "y", "t"}


def _split_list(val: Optional[str]) -> Tuple[str, ...]:
    if not val:
        return ()
    return tuple(s.strip() for s in val.split(",") if s.strip())


def _ensure_scheme(url: Optional[str], allowed: Tuple[str, ...]) -> Optional[str]:
    if not url:
        return url
    lower = url.lower()
    if not any(lower.startswith(f"{sch}://") for sch in allowed):
        raise ValueError(f"URL must start with {allowed}, got: {url!r}")
    return url


def load_env_file(path: Optional[Path] = None) -> bool:
    """Load KEY=VALUE pairs from `.env` (cwd by default) without overriding real env."""
    p = path or (Path.cwd() / ".env")
    if not p.is_file():
        return False
    return load_dotenv(p, override=False)


@dataclass(frozen=True)
class HarnessConfig:
    # Endpoint
    ws_url: str = _DEFAULT_WS
    connect_timeout: float = 15.0
    request_timeout: float = 30.0
    max_retries: int = 3
    # Contract under test
    contract_name: str = "RandomizerTest"
    artifact_path: Optional[str] = None
    artifact_dirs: Tuple[str, ...] = _DEFAULT_ARTIFACT_DIRS
    event_name: str = "ShowRandomResult"
    entrypoint: str = "startGeneratingRandom"
    # Transactions
    gas: int = 8_000_000
    deploy_gas: int = 6_000_000
    value_wei: int = DEFAULT_VALUE_WEI
    private_keys: Tuple[str, ...] = field(default=(), repr=False)
    receipt_timeout: float = 120.0
    poll_interval: float = 0.5
    # Oracle callback
    callback_timeout_s: float = 1000.0
    enable_oracle: bool = False

    @classmethod
    def from_env(cls, prefix: str = "RANDOMIZER_") -> "HarnessConfig":
        """
        Create config from environment variables (after loading `.env`):

        RANDOMIZER_WS_URL            (ws/wss)
        RANDOMIZER_CONNECT_TIMEOUT   (float seconds)
        RANDOMIZER_REQUEST_TIMEOUT   (float seconds)
        RANDOMIZER_MAX_RETRIES       (int)
        RANDOMIZER_CONTRACT          (artifact contract name)
        RANDOMIZER_ARTIFACT          (explicit artifact JSON path)
        RANDOMIZER_ARTIFACT_DIRS     (comma list of search dirs)
        RANDOMIZER_EVENT             (result event name)
        RANDOMIZER_ENTRYPOINT        (randomness entry point)
        RANDOMIZER_GAS / RANDOMIZER_DEPLOY_GAS (int)
        RANDOMIZER_VALUE_WEI         (int, 0x-hex accepted)
        RANDOMIZER_PRIVATE_KEYS      (comma list; empty = node-managed accounts)
        RANDOMIZER_RECEIPT_TIMEOUT / RANDOMIZER_POLL_INTERVAL (float seconds)
        RANDOMIZER_CALLBACK_TIMEOUT  (float seconds)
        RANDOMIZER_ENABLE_ORACLE     (bool)
        """
        load_env_file()
        d = cls()
        ws = _env(f"{prefix}WS_URL", d.ws_url) or d.ws_url
        _ensure_scheme(ws, ("ws", "wss"))
        return cls(
            ws_url=ws,
            connect_timeout=float(_env(f"{prefix}CONNECT_TIMEOUT", str(d.connect_timeout))),
            request_timeout=float(_env(f"{prefix}REQUEST_TIMEOUT", str(d.request_timeout))),
            max_retries=int(_env(f"{prefix}MAX_RETRIES", str(d.max_retries))),
            contract_name=_env(f"{prefix}CONTRACT", d.contract_name) or d.contract_name,
            artifact_path=_env(f"{prefix}ARTIFACT") or None,
            artifact_dirs=_split_list(_env(f"{prefix}ARTIFACT_DIRS")) or d.artifact_dirs,
            event_name=_env(f"{prefix}EVENT", d.event_name) or d.event_name,
            entrypoint=_env(f"{prefix}ENTRYPOINT", d.entrypoint) or d.entrypoint,
            gas=int(_env(f"{prefix}GAS", str(d.gas)), 0),
            deploy_gas=int(_env(f"{prefix}DEPLOY_GAS", str(d.deploy_gas)), 0),
            value_wei=int(_env(f"{prefix}VALUE_WEI", str(d.value_wei)), 0),
            private_keys=_split_list(_env(f"{prefix}PRIVATE_KEYS")),
            receipt_timeout=float(_env(f"{prefix}RECEIPT_TIMEOUT", str(d.receipt_timeout))),
            poll_interval=float(_env(f"{prefix}POLL_INTERVAL", str(d.poll_interval))),
            callback_timeout_s=float(
                _env(f"{prefix}CALLBACK_TIMEOUT", str(d.callback_timeout_s))
            ),
            enable_oracle=_is_truthy(_env(f"{prefix}ENABLE_ORACLE")),
        )

    def with_overrides(self, **overrides: Any) -> "HarnessConfig":
        """
        Copy with keyword overrides. Unknown keys and None values are ignored.
        """
        known = {f.name for f in fields(self)}
        data = self.to_dict()
        data.update({k: v for k, v in overrides.items() if k in known and v is not None})
        if "ws_url" in overrides:
            _ensure_scheme(data["ws_url"], ("ws", "wss"))
        if isinstance(data["artifact_dirs"], list):
            data["artifact_dirs"] = tuple(data["artifact_dirs"])
        if isinstance(data["private_keys"], list):
            data["private_keys"] = tuple(data["private_keys"])
        return HarnessConfig(**data)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = ["HarnessConfig", "DEFAULT_VALUE_WEI", "load_env_file"]
