"""Pytest configuration and fixtures."""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Any

import pytest

from superhuman_agent.errors import session_closed_error
from superhuman_agent.gateway import ErrorKind, RemoteCallResult

_LABEL = re.compile(r"/\* superhuman-agent: ([^ ]+) \*/")

Response = dict[str, Any] | Callable[[str], dict[str, Any]]


class FakeSession:
    """Stands in for a connected Session.

    Evaluations are routed by the label the gateway puts at the top of every
    expression (`operation:candidate`). A handler registered for the full
    label wins over one registered for the bare operation. Anything without
    a handler answers as a missing method, so fallback chains keep walking.
    """

    def __init__(self) -> None:
        self.handlers: dict[str, Response] = {}
        self.calls: list[str] = []
        self.expressions: list[str] = []
        self.keys: list[str] = []
        self.connected = True

    @staticmethod
    def ok(value: Any = True) -> dict[str, Any]:
        return {"result": {"type": "object", "value": {"__gw": "ok", "value": value}}}

    @staticmethod
    def not_found(detail: str = "missing") -> dict[str, Any]:
        return {"result": {"type": "object", "value": {"__gw": "not_found", "detail": detail}}}

    @staticmethod
    def unavailable(detail: str = "missing method") -> dict[str, Any]:
        return {"result": {"type": "object", "value": {"__gw": "method_unavailable", "detail": detail}}}

    @staticmethod
    def threw(detail: str = "boom") -> dict[str, Any]:
        return {"result": {"type": "object", "value": {"__gw": "threw", "detail": detail}}}

    def on(self, label: str, response: Response) -> None:
        self.handlers[label] = response

    def calls_for(self, operation: str) -> list[str]:
        return [c for c in self.calls if c.split(":", 1)[0] == operation]

    def expression_for(self, label: str) -> str:
        for call, expression in zip(self.calls, self.expressions, strict=True):
            if call == label or call.split(":", 1)[0] == label:
                return expression
        raise AssertionError(f"{label} was never evaluated; calls: {self.calls}")

    async def evaluate(self, expression: str, await_promise: bool = False) -> dict[str, Any]:
        if not self.connected:
            raise session_closed_error("fake-target")
        match = _LABEL.search(expression)
        label = match.group(1) if match else ""
        self.calls.append(label)
        self.expressions.append(expression)

        handler = self.handlers.get(label) or self.handlers.get(label.split(":", 1)[0])
        if handler is None:
            return self.unavailable(f"{label} is not available")
        if callable(handler):
            return handler(expression)
        return handler

    async def press_key(self, key: str, code: str | None = None) -> None:
        if not self.connected:
            raise session_closed_error("fake-target")
        self.keys.append(key)

    async def disconnect(self) -> None:
        self.connected = False


Handler = RemoteCallResult[Any] | Callable[..., RemoteCallResult[Any]]


class FakeGateway:
    """Records gateway calls by operation name and answers from handlers."""

    def __init__(self, session: FakeSession) -> None:
        self.session = session
        self.handlers: dict[str, Handler] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def on(self, operation: str, handler: Handler) -> None:
        self.handlers[operation] = handler

    def operations(self) -> list[str]:
        return [op for op, _ in self.calls]

    async def call(self, operation: str, **params: Any) -> RemoteCallResult[Any]:
        self.calls.append((operation, params))
        handler = self.handlers.get(operation)
        if handler is None:
            return RemoteCallResult.failure(ErrorKind.METHOD_UNAVAILABLE, f"{operation} not stubbed")
        if callable(handler):
            return handler(**params)
        return handler


class FakeComposeForm:
    """Simulates Superhuman's compose controller on top of a FakeGateway.

    Opening appends a new draft key; field operations write into the draft
    held under the key they name.
    """

    def __init__(self, gateway: FakeGateway, existing: list[str] | None = None) -> None:
        self.gateway = gateway
        self.keys: list[str] = list(existing or [])
        self.drafts: dict[str, dict[str, Any]] = {k: self._blank(k) for k in self.keys}
        self.opens_create_draft = True
        self.saved: list[str] = []
        self.sent: list[str] = []
        self._counter = len(self.keys)

        gateway.on("compose.draft_keys", lambda: RemoteCallResult.success(list(self.keys)))
        for variant in ("new", "reply", "reply_all", "forward"):
            gateway.on(f"compose.open.{variant}", self._open)
        gateway.on("compose.set_subject", self._field("subject"))
        gateway.on("compose.set_body", self._field("body", param="html"))
        gateway.on("compose.add_recipient", self._add_recipient)
        gateway.on("compose.add_attachment", lambda **_: RemoteCallResult.success(True, path="_onAddAttachments"))
        gateway.on("compose.read_state", self._read)
        gateway.on("compose.save", self._save)
        gateway.on("compose.send", self._send)

    @staticmethod
    def _blank(key: str) -> dict[str, Any]:
        return {"id": key, "subject": "", "body": "", "to": [], "cc": [], "bcc": [], "from": "me@example.com"}

    def _open(self, **_: Any) -> RemoteCallResult[Any]:
        if self.opens_create_draft:
            self._counter += 1
            key = f"draft{self._counter:04d}"
            self.keys.append(key)
            self.drafts[key] = self._blank(key)
        return RemoteCallResult.success(True, path="open")

    def _field(self, name: str, param: str | None = None) -> Callable[..., RemoteCallResult[Any]]:
        def handler(draft_key: str, **params: Any) -> RemoteCallResult[Any]:
            if draft_key not in self.drafts:
                return RemoteCallResult.failure(ErrorKind.NOT_FOUND, f"Draft controller {draft_key} not found")
            self.drafts[draft_key][name] = params[param or name]
            self.drafts[draft_key]["isDirty"] = True
            return RemoteCallResult.success(True, path=name)

        return handler

    def _add_recipient(self, draft_key: str, email: str, field: str, **_: Any) -> RemoteCallResult[Any]:
        self.drafts[draft_key][field].append(email)
        return RemoteCallResult.success(True, path="_updateDraft.recipient")

    def _read(self, draft_key: str) -> RemoteCallResult[Any]:
        if draft_key not in self.drafts:
            return RemoteCallResult.failure(ErrorKind.NOT_FOUND, "Draft state not found")
        return RemoteCallResult.success(dict(self.drafts[draft_key]), path="state.draft")

    def _save(self, draft_key: str) -> RemoteCallResult[Any]:
        self.saved.append(draft_key)
        return RemoteCallResult.success(True, path="_saveDraftAsync")

    def _send(self, draft_key: str) -> RemoteCallResult[Any]:
        self.sent.append(draft_key)
        self.keys.remove(draft_key)
        return RemoteCallResult.success(True, path="_sendDraft")


@pytest.fixture
def fake_session() -> FakeSession:
    """A connected session answering from registered handlers."""
    return FakeSession()


@pytest.fixture
def fake_gateway(fake_session: FakeSession) -> FakeGateway:
    """A gateway double keyed by operation name."""
    return FakeGateway(fake_session)


@pytest.fixture
def compose_form(fake_gateway: FakeGateway) -> FakeComposeForm:
    """A compose controller that already holds one stale draft."""
    return FakeComposeForm(fake_gateway, existing=["draft0000"])


@pytest.fixture
def gmail_thread() -> dict[str, Any]:
    """Thread state for an unread Gmail thread."""
    return {"labelIds": ["INBOX", "UNREAD"], "messageIds": ["m1", "m2"], "isMicrosoft": False}


@pytest.fixture
def outlook_thread() -> dict[str, Any]:
    """Thread state for an unread Microsoft thread."""
    return {"labelIds": ["INBOX", "UNREAD"], "messageIds": ["AAMk1", "AAMk2"], "isMicrosoft": True}
