"""Runtime configuration - environment defaults and settle windows."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_CDP_PORT = 9333
DEFAULT_APP_PATH = "/Applications/Superhuman.app/Contents/MacOS/Superhuman"
TARGET_ORIGIN = "mail.superhuman.com"

_TRUE_VALUES = frozenset({"1", "true", "yes", "y", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "n", "off"})


def parse_port(value: str | None) -> int | None:
    """Parse a TCP port, returning None for anything outside 1-65535."""
    if not value:
        return None
    try:
        port = int(value.strip())
    except ValueError:
        return None
    if port <= 0 or port > 65535:
        return None
    return port


def parse_boolean(value: str | None) -> bool | None:
    """Parse a yes/no style flag, returning None when unrecognized."""
    if not value:
        return None
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    return None


def get_default_cdp_port() -> int:
    """Debugging port from SUPERHUMAN_CDP_PORT, else the default."""
    return parse_port(os.environ.get("SUPERHUMAN_CDP_PORT")) or DEFAULT_CDP_PORT


def get_default_app_path() -> str:
    """Application binary from SUPERHUMAN_APP_PATH, else the default."""
    return (os.environ.get("SUPERHUMAN_APP_PATH") or "").strip() or DEFAULT_APP_PATH


def get_default_auto_launch() -> bool:
    """Auto-launch flag from SUPERHUMAN_AUTO_LAUNCH (on unless disabled)."""
    parsed = parse_boolean(os.environ.get("SUPERHUMAN_AUTO_LAUNCH"))
    return True if parsed is None else parsed


@dataclass(frozen=True)
class Timings:
    """Settle windows in seconds.

    Superhuman exposes no completion signal for compose, save, send or
    account switches, so each of these is a fixed wait after the action.
    """

    escape_settle: float = 0.5
    compose_settle: float = 2.0
    compose_poll_interval: float = 0.25
    save_settle: float = 2.0
    send_settle: float = 1.0
    account_propagation: float = 2.0
    launch_timeout: float = 15.0
    launch_poll_interval: float = 0.5


DEFAULT_TIMINGS = Timings()
# Used by tests and dry runs where nothing needs to settle.
NO_WAIT = Timings(
    escape_settle=0.0,
    compose_settle=0.0,
    compose_poll_interval=0.0,
    save_settle=0.0,
    send_settle=0.0,
    account_propagation=0.0,
    launch_timeout=0.0,
    launch_poll_interval=0.0,
)
