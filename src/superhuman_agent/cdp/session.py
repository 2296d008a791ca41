"""Session handle - one open debugging channel to the Superhuman main page."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog

from superhuman_agent.cdp.channel import CdpChannel
from superhuman_agent.cdp.locator import TargetInfo, locate
from superhuman_agent.config import TARGET_ORIGIN
from superhuman_agent.errors import AgentError, session_closed_error, target_not_found_error

logger = structlog.get_logger()


class Session:
    """Evaluation, key dispatch and network observation on one target.

    A session is used by one caller at a time. Which draft and which account
    are "current" is shared state inside Superhuman, so concurrent calls on
    the same session are not supported.
    """

    def __init__(self, target: TargetInfo, port: int, channel: CdpChannel) -> None:
        self.target = target
        self.port = port
        self._channel = channel
        self._disconnected = False
        self._network_enabled = False

    @property
    def is_connected(self) -> bool:
        """Check if the session can still issue calls."""
        return not self._disconnected and self._channel.is_open

    def _ensure_connected(self) -> None:
        if not self.is_connected:
            raise session_closed_error(self.target.id)

    async def evaluate(self, expression: str, await_promise: bool = False) -> dict[str, Any]:
        """Run an expression in the page and return the raw protocol result."""
        self._ensure_connected()
        return await self._channel.send(
            "Runtime.evaluate",
            {
                "expression": expression,
                "returnByValue": True,
                "awaitPromise": await_promise,
            },
        )

    async def press_key(self, key: str, code: str | None = None) -> None:
        """Dispatch a keyDown/keyUp pair (fallback input path)."""
        self._ensure_connected()
        code = code or key
        await self._channel.send("Input.dispatchKeyEvent", {"type": "keyDown", "key": key, "code": code})
        await self._channel.send("Input.dispatchKeyEvent", {"type": "keyUp", "key": key, "code": code})

    async def enable_network(self) -> None:
        """Start receiving Network.* notifications."""
        self._ensure_connected()
        if self._network_enabled:
            return
        await self._channel.send("Network.enable")
        self._network_enabled = True

    async def next_network_event(self, timeout: float | None = None) -> dict[str, Any] | None:
        """Next Network.* notification, skipping other domains."""
        self._ensure_connected()
        while True:
            event = await self._channel.next_event(timeout=timeout)
            if event is None:
                return None
            if str(event.get("method", "")).startswith("Network."):
                return event

    async def disconnect(self) -> None:
        """Close the channel. Further calls raise ERR_CONNECTION."""
        if self._disconnected:
            return
        self._disconnected = True
        await self._channel.close()
        logger.info("session_disconnected", target_id=self.target.id, port=self.port)


async def connect(
    port: int,
    origin: str = TARGET_ORIGIN,
    timeout: float = 30.0,
) -> Session | None:
    """Attach to the Superhuman main page.

    Returns None when the endpoint is up but no main page is open. An
    unreachable endpoint raises ERR_CONNECTION so the caller can decide to
    launch the app.
    """
    try:
        target = await locate(port, origin=origin)
    except AgentError as exc:
        if exc.code == "ERR_TARGET_NOT_FOUND":
            logger.warning("main_page_not_found", port=port, message=exc.message)
            return None
        raise

    channel = CdpChannel(target.webSocketDebuggerUrl, timeout=timeout)
    await channel.open()
    logger.info("session_connected", target_id=target.id, port=port)
    return Session(target, port, channel)


async def disconnect(session: Session) -> None:
    """Module-level alias for Session.disconnect."""
    await session.disconnect()


@asynccontextmanager
async def open_session(port: int, origin: str = TARGET_ORIGIN) -> AsyncIterator[Session]:
    """Connect and guarantee disconnect on every exit path."""
    session = await connect(port, origin=origin)
    if session is None:
        raise target_not_found_error(port, origin)
    try:
        yield session
    finally:
        await session.disconnect()
