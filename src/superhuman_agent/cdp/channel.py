"""Websocket client speaking the Chrome DevTools Protocol to one target."""

from __future__ import annotations

import asyncio
import contextlib
import json
from typing import Any

import structlog
import websockets

from superhuman_agent.errors import (
    connection_error,
    protocol_error,
    request_timeout_error,
    session_closed_error,
)

logger = structlog.get_logger()

# Queued once the socket is gone so blocked next_event() callers wake up.
_CLOSED: dict[str, Any] = {"method": "__closed__"}


class CdpChannel:
    """Owns a single websocket and matches responses to requests by id."""

    def __init__(self, ws_url: str, timeout: float = 30.0) -> None:
        self._ws_url = ws_url
        self._timeout = timeout
        self._ws: Any = None
        self._request_id = 0
        self._lock = asyncio.Lock()
        self._pending: dict[int, asyncio.Future[dict[str, Any]]] = {}
        self._reader_task: asyncio.Task[None] | None = None
        self._event_queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self._closed = False
        self._close_signalled = False

    @property
    def is_open(self) -> bool:
        """Check if the websocket is connected and not closed by us."""
        return self._ws is not None and not self._closed

    async def open(self) -> None:
        """Connect the websocket and start the reader loop."""
        if self.is_open:
            return
        try:
            self._ws = await websockets.connect(self._ws_url, max_size=None)
        except (OSError, websockets.WebSocketException) as exc:
            raise connection_error(f"cannot open {self._ws_url}: {exc}") from None
        self._closed = False
        if self._close_signalled:
            self._event_queue = asyncio.Queue()
            self._close_signalled = False
        self._reader_task = asyncio.create_task(self._read_loop())
        logger.info("cdp_channel_opened", url=self._ws_url)

    async def close(self) -> None:
        """Close the websocket and fail anything still waiting."""
        if self._closed:
            return
        self._closed = True

        if self._ws is not None:
            with contextlib.suppress(Exception):
                await self._ws.close()

        if self._reader_task and not self._reader_task.done():
            self._reader_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reader_task

        self._fail_pending(session_closed_error(self._ws_url))
        self._signal_closed()
        logger.info("cdp_channel_closed", url=self._ws_url)

    async def send(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Send a protocol command and wait for its result."""
        if not self.is_open:
            raise session_closed_error(self._ws_url)

        async with self._lock:
            self._request_id += 1
            req_id = self._request_id

        loop = asyncio.get_running_loop()
        future: asyncio.Future[dict[str, Any]] = loop.create_future()
        self._pending[req_id] = future

        message = {"id": req_id, "method": method, "params": params or {}}
        try:
            await self._ws.send(json.dumps(message, ensure_ascii=True))
        except websockets.WebSocketException as exc:
            self._pending.pop(req_id, None)
            raise connection_error(f"{method}: {exc}") from None

        try:
            data = await asyncio.wait_for(future, timeout=self._timeout)
        except TimeoutError:
            self._pending.pop(req_id, None)
            raise request_timeout_error(method, self._timeout) from None

        error = data.get("error")
        if error:
            message_text = error.get("message", "unknown error") if isinstance(error, dict) else str(error)
            raise protocol_error(method, message_text)
        result: dict[str, Any] = data.get("result", {})
        return result

    async def next_event(self, timeout: float | None = None) -> dict[str, Any] | None:
        """Pop the next protocol notification, or None after the timeout."""
        if not self.is_open and self._event_queue.empty():
            raise session_closed_error(self._ws_url)
        try:
            event = await asyncio.wait_for(self._event_queue.get(), timeout=timeout)
        except TimeoutError:
            return None
        if event is _CLOSED:
            self._event_queue.put_nowait(_CLOSED)
            raise connection_error("websocket closed while waiting for an event")
        return event

    async def _read_loop(self) -> None:
        """Route responses to pending futures and notifications to the queue."""
        try:
            async for raw in self._ws:
                try:
                    data = json.loads(raw)
                except json.JSONDecodeError:
                    logger.warning("cdp_invalid_json", line=str(raw)[:200])
                    continue

                req_id = data.get("id")
                if req_id is not None and req_id in self._pending:
                    future = self._pending.pop(req_id)
                    if not future.done():
                        future.set_result(data)
                elif "method" in data:
                    await self._event_queue.put(data)
        except asyncio.CancelledError:
            return
        except websockets.ConnectionClosed as exc:
            logger.warning("cdp_channel_dropped", url=self._ws_url, reason=str(exc))
        except Exception:
            logger.exception("cdp_read_loop_error")
        finally:
            self._closed = True
            self._fail_pending(connection_error("websocket closed"))
            self._signal_closed()

    def _signal_closed(self) -> None:
        if not self._close_signalled:
            self._close_signalled = True
            self._event_queue.put_nowait(_CLOSED)

    def _fail_pending(self, exc: Exception) -> None:
        for future in self._pending.values():
            if not future.done():
                future.set_exception(exc)
        self._pending.clear()
