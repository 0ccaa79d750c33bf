"""
randomizer.cli
--------------

Command line entry points for manual runs against a node.

Examples:
  # Deploy a fresh RandomizerTest and print its address:
  randomizer deploy --ws-url ws://127.0.0.1:8546

  # Deploy, then print ShowRandomResult events for 60 seconds:
  randomizer listen --seconds 60

  # Full oracle round trip (request + wait for the callback event):
  randomizer roundtrip --timeout 300

  # bytes32 hex of a short label:
  randomizer pad abc

  # Show the oracle case list and which cases are disabled:
  randomizer cases

Environment:
  RANDOMIZER_* variables (see randomizer.config), optionally from ./.env
"""

from __future__ import annotations

import asyncio
import json
import sys
from dataclasses import asdict, replace
from typing import Any, Optional

import typer

from .config import HarnessConfig
from .contracts.events import DecodedEvent
from .errors import HarnessError
from .harness.cases import CASES, resolve_cases
from .harness.session import RandomizerHarness
from .harness.wait import sleep_ms
from .logging import setup_logging
from .utils.bytes import BYTES32_HEX_WIDTH, pad_bytes32_hex
from .version import version

app = typer.Typer(
    name="randomizer",
    help="Deploy and exercise the RandomizerTest oracle contract.",
    no_args_is_help=True,
    add_completion=False,
)

# -----------------------
# Helpers
# -----------------------


def _json_default(o: Any) -> Any:
    if isinstance(o, (bytes, bytearray)):
        return "0x" + bytes(o).hex()
    return str(o)


def _event_json(ev: DecodedEvent) -> str:
    d = asdict(ev)
    d.pop("raw", None)
    return json.dumps(d, default=_json_default)


def _config(ws_url: Optional[str], artifact: Optional[str], **extra: Any) -> HarnessConfig:
    try:
        return HarnessConfig.from_env().with_overrides(ws_url=ws_url, artifact_path=artifact, **extra)
    except ValueError as e:
        raise typer.BadParameter(str(e))


def _run(coro: Any) -> Any:
    try:
        return asyncio.run(coro)
    except HarnessError as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(1)


@app.callback()
def _main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG|INFO|WARNING|ERROR"),
    log_format: Optional[str] = typer.Option(None, "--log-format", help="json|plain"),
) -> None:
    setup_logging(level=log_level, fmt=log_format)


# -----------------------
# Commands
# -----------------------

_WS = typer.Option(None, "--ws-url", help="WebSocket endpoint (default: $RANDOMIZER_WS_URL)")
_ARTIFACT = typer.Option(None, "--artifact", help="Artifact JSON path (default: lookup by contract name)")


@app.command("deploy")
def cmd_deploy(ws_url: Optional[str] = _WS, artifact: Optional[str] = _ARTIFACT) -> None:
    """Deploy a fresh instance and print its address and deployment tx."""
    cfg = _config(ws_url, artifact)

    async def go() -> dict:
        async with RandomizerHarness(cfg) as h:
            inst = h.instance
            return {
                "contract": inst.name,
                "address": inst.address,
                "transactionHash": inst.receipt.get("transactionHash"),
            }

    typer.echo(json.dumps(_run(go())))


@app.command("listen")
def cmd_listen(
    ws_url: Optional[str] = _WS,
    artifact: Optional[str] = _ARTIFACT,
    seconds: float = typer.Option(60.0, "--seconds", "-s", help="How long to listen."),
) -> None:
    """Deploy a fresh instance and print its result events as JSON lines."""
    cfg = _config(ws_url, artifact)

    async def go() -> int:
        async with RandomizerHarness(cfg) as h:
            typer.echo(json.dumps({"address": h.instance.address, "event": h.subscription.name}))
            seen = 0
            remaining = seconds * 1000
            while remaining > 0:
                await sleep_ms(min(remaining, 250))
                remaining -= 250
                for ev in h.events[seen:]:
                    typer.echo(_event_json(ev))
                seen = len(h.events)
            return seen

    n = _run(go())
    typer.echo(f"{n} event(s)", err=True)


@app.command("roundtrip")
def cmd_roundtrip(
    ws_url: Optional[str] = _WS,
    artifact: Optional[str] = _ARTIFACT,
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Seconds to wait for the callback event."),
    sender_index: int = typer.Option(0, "--sender-index", help="Index into the account list."),
) -> None:
    """Request randomness and wait for the oracle's ShowRandomResult event."""
    cfg = _config(ws_url, artifact, callback_timeout_s=timeout, enable_oracle=True)
    case = replace(resolve_cases(cfg)[0], sender_index=sender_index)

    async def go() -> DecodedEvent:
        async with RandomizerHarness(cfg) as h:
            return await h.run_roundtrip(case)

    typer.echo(_event_json(_run(go())))


@app.command("pad")
def cmd_pad(
    value: str = typer.Argument(..., help="Text (or 0x-hex) to encode."),
    width: int = typer.Option(BYTES32_HEX_WIDTH, "--width", help="Total output length incl. 0x."),
) -> None:
    """Print VALUE as 0x-hex right-padded with '0' to a bytes32 width."""
    typer.echo(pad_bytes32_hex(value, width))


@app.command("cases")
def cmd_cases() -> None:
    """List oracle test cases and whether they are enabled."""
    for c in resolve_cases(HarnessConfig.from_env(), CASES):
        state = "enabled" if c.enabled else f"disabled ({c.reason})"
        typer.echo(f"{c.name}: {state}")


@app.command("version")
def cmd_version() -> None:
    """Print the harness version."""
    typer.echo(version())


def main() -> None:  # pragma: no cover
    try:
        app(prog_name="randomizer")
    except KeyboardInterrupt:
        typer.echo("", err=True)
        sys.exit(130)


if __name__ == "__main__":  # pragma: no cover
    main()
