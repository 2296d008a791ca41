"""Draft composition state machine.

A draft moves CLOSED -> OPENING -> OPEN -> POPULATED -> {SAVED | SENT}.
FAILED is entered from any phase on an unrecoverable gateway error, or
when no draft key shows up after opening. SAVED, SENT and FAILED are
terminal; reopening means a new DraftComposer and a freshly discovered key.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from superhuman_agent.config import DEFAULT_TIMINGS, Timings
from superhuman_agent.errors import (
    AgentError,
    compose_open_failed_error,
    invalid_transition_error,
    remote_call_error,
)
from superhuman_agent.gateway import ErrorKind, RemoteCallGateway, RemoteCallResult

if TYPE_CHECKING:
    from superhuman_agent.cdp.session import Session

logger = structlog.get_logger()


class DraftPhase(Enum):
    """Lifecycle phase of one draft."""

    CLOSED = "closed"
    OPENING = "opening"
    OPEN = "open"
    POPULATED = "populated"
    SAVED = "saved"
    SENT = "sent"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (DraftPhase.SAVED, DraftPhase.SENT, DraftPhase.FAILED)


class ComposeVariant(Enum):
    """How the compose form is opened.

    Reply variants let Superhuman pre-fill threading headers, recipients
    and subject, so they need the thread being answered.
    """

    NEW = "new"
    REPLY = "reply"
    REPLY_ALL = "reply_all"
    FORWARD = "forward"

    @property
    def needs_thread(self) -> bool:
        return self is not ComposeVariant.NEW


class DraftState(BaseModel):
    """Snapshot of a draft as Superhuman holds it."""

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    subject: str = ""
    body: str = ""
    to: list[str] = Field(default_factory=list)
    cc: list[str] = Field(default_factory=list)
    bcc: list[str] = Field(default_factory=list)
    from_: str = Field(default="", alias="from")
    is_dirty: bool = Field(default=False, alias="isDirty")


@dataclass
class FieldResult:
    """Outcome of one field-set operation."""

    field: str
    success: bool
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"field": self.field, "success": self.success}
        if self.error:
            data["error"] = self.error
        return data


_EDITABLE = (DraftPhase.OPEN, DraftPhase.POPULATED)


@dataclass
class DraftComposer:
    """Drives one draft through its lifecycle.

    Every operation after `open` targets the key this instance discovered,
    never whichever draft key happens to be first on the controller.
    Field failures are reported per field and never roll back earlier
    fields.
    """

    gateway: RemoteCallGateway
    timings: Timings = DEFAULT_TIMINGS
    phase: DraftPhase = DraftPhase.CLOSED
    variant: ComposeVariant | None = None
    draft_key: str | None = None
    fields: list[FieldResult] = field(default_factory=list)
    error: AgentError | None = None

    @classmethod
    def for_session(cls, session: Session, timings: Timings = DEFAULT_TIMINGS) -> DraftComposer:
        return cls(RemoteCallGateway(session), timings)

    @classmethod
    async def resume(cls, session: Session, timings: Timings = DEFAULT_TIMINGS) -> DraftComposer | None:
        """Attach to the most recently opened draft, if any.

        The compose controller keeps drafts in insertion order, so the last
        key is the newest one.
        """
        composer = cls.for_session(session, timings)
        keys = await composer._draft_keys()
        if not keys.ok or not keys.value:
            return None
        composer.draft_key = keys.value[-1]
        composer.phase = DraftPhase.OPEN
        logger.debug("draft_resumed", draft_key=composer.draft_key)
        return composer

    def _require(self, operation: str, *allowed: DraftPhase) -> None:
        if self.phase not in allowed:
            raise invalid_transition_error(self.phase.value, operation)

    def _fail(self, operation: str, result: RemoteCallResult[Any]) -> None:
        kind = result.error.value if result.error else ErrorKind.REMOTE_THREW.value
        self.error = remote_call_error(operation, kind, result.describe())
        self.phase = DraftPhase.FAILED
        logger.warning("draft_failed", operation=operation, draft_key=self.draft_key, error=self.error.message)

    def _fail_on_connection_loss(self, operation: str, result: RemoteCallResult[Any]) -> None:
        if result.error is ErrorKind.CONNECTION_ERROR:
            self._fail(operation, result)

    async def _draft_keys(self) -> RemoteCallResult[list[str]]:
        result = await self.gateway.call("compose.draft_keys")
        if result.ok:
            result.value = [str(k) for k in (result.value or [])]
        return result

    async def _press_escape(self) -> bool:
        session = self.gateway.session
        try:
            await session.press_key("Escape")
        except AgentError as exc:
            logger.warning("compose_escape_failed", error=exc.message)
            return False
        await asyncio.sleep(self.timings.escape_settle)
        return True

    async def _discover_key(self, existing: set[str]) -> str | None:
        """Poll for draft keys that were not there before the open action."""
        deadline = time.monotonic() + self.timings.compose_settle
        while True:
            keys = await self._draft_keys()
            if keys.ok:
                fresh = [k for k in keys.value or [] if k not in existing]
                if fresh:
                    return fresh[-1]
            elif keys.error is ErrorKind.CONNECTION_ERROR:
                return None
            if time.monotonic() >= deadline:
                return None
            await asyncio.sleep(self.timings.compose_poll_interval)

    async def open(
        self,
        variant: ComposeVariant = ComposeVariant.NEW,
        thread_id: str | None = None,
    ) -> str | None:
        """Open a compose form and discover its draft key.

        Returns the key, or None after moving to FAILED.
        """
        self._require("open", DraftPhase.CLOSED)
        if variant.needs_thread and not thread_id:
            raise ValueError(f"{variant.value} compose needs a thread id")

        self.variant = variant
        self.phase = DraftPhase.OPENING
        logger.debug("compose_opening", variant=variant.value, thread_id=thread_id)

        before = await self._draft_keys()
        if not before.ok and before.error is ErrorKind.CONNECTION_ERROR:
            self._fail("open compose", before)
            return None
        existing = set(before.value or [])

        if variant is ComposeVariant.NEW:
            # A stale compose form swallows the compose button click.
            await self._press_escape()
            opened = await self.gateway.call("compose.open.new")
        else:
            opened = await self.gateway.call(f"compose.open.{variant.value}", thread_id=thread_id)
        if not opened.ok:
            self._fail(f"open {variant.value} compose", opened)
            return None

        key = await self._discover_key(existing)
        if key is None:
            self.error = compose_open_failed_error(variant.value, self.timings.compose_settle)
            self.phase = DraftPhase.FAILED
            logger.warning("compose_open_failed", variant=variant.value, via=opened.path)
            return None

        self.draft_key = key
        self.phase = DraftPhase.OPEN
        logger.info("draft_key_discovered", draft_key=key, variant=variant.value, via=opened.path)
        return key

    async def _set_field(self, field_name: str, operation: str, **params: Any) -> bool:
        self._require(f"set {field_name} on", *_EDITABLE)
        result = await self.gateway.call(operation, draft_key=self.draft_key, **params)
        self.fields.append(FieldResult(field_name, result.ok, result.describe() or None))
        if result.ok:
            self.phase = DraftPhase.POPULATED
            return True

        logger.warning("draft_field_failed", field=field_name, draft_key=self.draft_key, error=result.describe())
        self._fail_on_connection_loss(f"set {field_name}", result)
        return False

    async def set_subject(self, subject: str) -> bool:
        return await self._set_field("subject", "compose.set_subject", subject=subject)

    async def add_recipient(self, email: str, name: str | None = None, field: str = "to") -> bool:
        """Append a recipient to the to, cc or bcc list."""
        if field not in ("to", "cc", "bcc"):
            raise ValueError(f"Unknown recipient field: {field}")
        raw = f"{name} <{email}>" if name else email
        return await self._set_field(field, "compose.add_recipient", email=email, name=name or "", raw=raw, field=field)

    async def set_body(self, html: str) -> bool:
        return await self._set_field("body", "compose.set_body", html=html)

    async def add_attachment(self, filename: str, data_b64: str, mime_type: str = "application/octet-stream") -> bool:
        return await self._set_field(
            "attachment",
            "compose.add_attachment",
            filename=filename,
            data=data_b64,
            mime_type=mime_type,
        )

    async def read_state(self) -> DraftState | None:
        """Read the draft back from Superhuman."""
        if self.draft_key is None or self.phase is DraftPhase.SENT:
            raise invalid_transition_error(self.phase.value, "read")
        result = await self.gateway.call("compose.read_state", draft_key=self.draft_key)
        if not result.ok or result.value is None:
            logger.warning("draft_read_failed", draft_key=self.draft_key, error=result.describe())
            self._fail_on_connection_loss("read draft", result)
            return None
        try:
            return DraftState.model_validate(result.value)
        except ValidationError as exc:
            logger.warning("draft_state_invalid", draft_key=self.draft_key, error=str(exc))
            return None

    async def save(self) -> bool:
        """Persist the draft, then wait out the save settle window.

        Superhuman saves asynchronously without a completion signal.
        """
        self._require("save", *_EDITABLE)
        result = await self.gateway.call("compose.save", draft_key=self.draft_key)
        if not result.ok:
            logger.warning("draft_save_failed", draft_key=self.draft_key, error=result.describe())
            self._fail_on_connection_loss("save draft", result)
            return False
        await asyncio.sleep(self.timings.save_settle)
        self.phase = DraftPhase.SAVED
        logger.info("draft_saved", draft_key=self.draft_key, via=result.path)
        return True

    async def send(self) -> bool:
        """Send through Superhuman's own send path."""
        self._require("send", *_EDITABLE)
        result = await self.gateway.call("compose.send", draft_key=self.draft_key)
        if not result.ok:
            logger.warning("draft_send_failed", draft_key=self.draft_key, error=result.describe())
            self._fail_on_connection_loss("send draft", result)
            return False
        await asyncio.sleep(self.timings.send_settle)
        self.phase = DraftPhase.SENT
        logger.info("draft_sent", draft_key=self.draft_key, via=result.path)
        return True

    async def close(self) -> None:
        """Dismiss the compose form.

        An unsaved draft goes back to CLOSED and forgets its key; terminal
        phases stay put.
        """
        await self._press_escape()
        if not self.phase.terminal:
            self.phase = DraftPhase.CLOSED
            self.draft_key = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "phase": self.phase.value,
            "draft_key": self.draft_key,
            "fields": [f.to_dict() for f in self.fields],
        }
        if self.error:
            data["error"] = self.error.to_dict()
        return data
