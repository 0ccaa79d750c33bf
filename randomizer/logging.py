"""
randomizer.logging: structured logs for the harness
===================================================

Structured logging helpers built on the stdlib `logging` module. Produces
newline-delimited JSON by default, with contextual fields that can be *bound*
per test case or per section.

Quick start
-----------
    from randomizer.logging import setup_logging, bind, context, get_logger

    setup_logging()                      # once per process / test session

    with context(test="oracle_roundtrip", contract="0xabc..."):
        log = get_logger(__name__)
        log.info("starting test")

Environment variables
---------------------
RANDOMIZER_LOG_LEVEL  : DEBUG|INFO|WARNING|ERROR (default: INFO)
RANDOMIZER_LOG_FORMAT : json|plain (default: json)
RANDOMIZER_LOG_FILE   : path to log file (in addition to stderr)
RANDOMIZER_LOG_NOISY  : comma list of logger names to keep at chosen level.
                        (By default we quiet: asyncio, websockets)

Extras passed to logger calls (via 'extra={...}') are merged into the JSON.
"""

from __future__ import annotations

import contextlib
import contextvars
import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

__all__ = [
    "setup_logging",
    "reset_logging",
    "get_logger",
    "bind",
    "unbind",
    "context",
    "JsonFormatter",
    "PlainFormatter",
]

# ------------------------------------------------------------------------------
# Context handling (task local via contextvars)
# ------------------------------------------------------------------------------

_CTX: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar("_CTX", default={})


def _ctx_copy() -> Dict[str, Any]:
    d = _CTX.get()
    return dict(d) if d else {}


def bind(**fields: Any) -> None:
    """Bind additional fields into the contextual log dictionary."""
    d = _ctx_copy()
    d.update({k: v for k, v in fields.items() if v is not None})
    _CTX.set(d)


def unbind(*keys: str) -> None:
    """Remove fields from the contextual log dictionary."""
    if not keys:
        return
    d = _ctx_copy()
    for k in keys:
        d.pop(k, None)
    _CTX.set(d)


@contextlib.contextmanager
def context(**fields: Any) -> Iterator[None]:
    """Context manager to temporarily bind fields."""
    prev = _ctx_copy()
    try:
        bind(**fields)
        yield
    finally:
        _CTX.set(prev)


# ------------------------------------------------------------------------------
# Formatters
# ------------------------------------------------------------------------------

def _iso_utc(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


def _json_default(o: Any) -> Any:
    if isinstance(o, (bytes, bytearray)):
        return "0x" + bytes(o).hex()
    return str(o)


_DEFAULT_KEYS = set(
    logging.LogRecord(
        name="x", level=logging.INFO, pathname=__file__, lineno=1, msg="m", args=(), exc_info=None
    ).__dict__.keys()
) | {"message", "asctime", "ctx"}


class _ContextFilter(logging.Filter):
    """Inject contextvars payload into the record as 'ctx'."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.ctx = _ctx_copy()
        return True


class JsonFormatter(logging.Formatter):
    """Emit newline-delimited JSON."""

    def format(self, record: logging.LogRecord) -> str:
        base: Dict[str, Any] = {
            "ts": _iso_utc(record.created),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "func": record.funcName,
            "line": record.lineno,
        }
        ctx = getattr(record, "ctx", None)
        if ctx:
            base["ctx"] = ctx
        for k, v in record.__dict__.items():
            if k in _DEFAULT_KEYS or k.startswith("_"):
                continue
            base[k] = v
        if record.exc_info:
            base["exc"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "stack": self.formatException(record.exc_info),
            }
        return json.dumps(base, default=_json_default, separators=(",", ":"))


class PlainFormatter(logging.Formatter):
    """Human-friendly single-line formatter."""

    def format(self, record: logging.LogRecord) -> str:
        ctx = getattr(record, "ctx", None)
        ctx_str = f" ctx={json.dumps(ctx, default=_json_default)}" if ctx else ""
        line = (
            f"{_iso_utc(record.created)} | {record.levelname:<8} | "
            f"{record.name:<28} | {record.getMessage()}{ctx_str}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


# ------------------------------------------------------------------------------
# Setup
# ------------------------------------------------------------------------------

_configured = False
_handlers: list[logging.Handler] = []


def setup_logging(
    level: Optional[str] = None,
    fmt: Optional[str] = None,
    file: Optional[str] = None,
    quiet_default_noisy: bool = True,
) -> None:
    """
    Attach the harness handlers to the root logger (once).

    Parameters
    ----------
    level : str | None
        Log level name; defaults to $RANDOMIZER_LOG_LEVEL or "INFO".
    fmt : "json" | "plain" | None
        Output format; defaults to $RANDOMIZER_LOG_FORMAT or "json".
    file : str | None
        If provided or $RANDOMIZER_LOG_FILE set, also tee logs to this path.
    quiet_default_noisy : bool
        Reduce verbosity of chatty libs unless RANDOMIZER_LOG_NOISY is set.

    Unlike a bare `basicConfig`, pre-existing handlers (pytest's capture
    handlers included) are left in place.
    """
    global _configured
    if _configured:
        return

    env_level = (level or os.getenv("RANDOMIZER_LOG_LEVEL") or "INFO").upper()
    env_fmt = (fmt or os.getenv("RANDOMIZER_LOG_FORMAT") or "json").lower()
    log_file = file or os.getenv("RANDOMIZER_LOG_FILE")

    root = logging.getLogger()
    root.setLevel(getattr(logging, env_level, logging.INFO))
    formatter: logging.Formatter = PlainFormatter() if env_fmt == "plain" else JsonFormatter()

    stderr_handler = logging.StreamHandler(stream=sys.stderr)
    stderr_handler.addFilter(_ContextFilter())
    stderr_handler.setFormatter(formatter)
    root.addHandler(stderr_handler)
    _handlers.append(stderr_handler)

    if log_file:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.addFilter(_ContextFilter())
        fh.setFormatter(formatter)
        root.addHandler(fh)
        _handlers.append(fh)

    noisy_env = os.getenv("RANDOMIZER_LOG_NOISY")
    if quiet_default_noisy and not noisy_env:
        for n in ("asyncio", "websockets"):
            logging.getLogger(n).setLevel(max(root.level, logging.WARNING))
    else:
        for n in [s.strip() for s in (noisy_env or "").split(",") if s.strip()]:
            logging.getLogger(n).setLevel(root.level)

    _configured = True


def reset_logging() -> None:
    """Detach handlers installed by setup_logging() so it can run again."""
    global _configured
    root = logging.getLogger()
    for h in _handlers:
        root.removeHandler(h)
        h.close()
    _handlers.clear()
    _configured = False


def get_logger(name: str) -> logging.Logger:
    """Fetch a named logger (root is configured via setup_logging())."""
    return logging.getLogger(name)
