"""Reply, reply-all and forward through Superhuman's pop-out commands.

The native commands set threading headers, recipients and subject, so
these flows only fill in what the user adds.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from superhuman_agent.compose.machine import ComposeVariant, DraftComposer, FieldResult
from superhuman_agent.compose.text import text_to_html
from superhuman_agent.config import DEFAULT_TIMINGS, Timings
from superhuman_agent.errors import AgentError

if TYPE_CHECKING:
    from superhuman_agent.cdp.session import Session

logger = structlog.get_logger()


@dataclass
class ReplyResult:
    """Result of a reply or forward flow."""

    success: bool
    draft_id: str | None = None
    error: str | None = None
    fields: list[FieldResult] = field(default_factory=list)
    agent_error: AgentError | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"success": self.success}
        if self.draft_id:
            data["draftId"] = self.draft_id
        if self.error:
            data["error"] = self.error
        if self.fields:
            data["fields"] = [f.to_dict() for f in self.fields]
        return data


def _failed(composer: DraftComposer, reason: str) -> ReplyResult:
    error = composer.error.message if composer.error else reason
    return ReplyResult(
        success=False,
        draft_id=composer.draft_key,
        error=error,
        fields=list(composer.fields),
        agent_error=composer.error,
    )


async def _complete(composer: DraftComposer, send: bool) -> ReplyResult:
    if send:
        if not await composer.send():
            return _failed(composer, "Failed to send draft")
        return ReplyResult(success=True, fields=list(composer.fields))
    if not await composer.save():
        return _failed(composer, "Failed to save draft")
    return ReplyResult(success=True, draft_id=composer.draft_key, fields=list(composer.fields))


async def _respond(
    session: Session,
    variant: ComposeVariant,
    thread_id: str,
    body: str,
    send: bool,
    timings: Timings,
    to_email: str | None = None,
) -> ReplyResult:
    composer = DraftComposer.for_session(session, timings)
    if await composer.open(variant, thread_id) is None:
        return _failed(composer, f"Failed to open {variant.value} compose")

    if to_email and not await composer.add_recipient(to_email):
        return _failed(composer, f"Failed to add recipient {to_email}")
    if (body or variant is not ComposeVariant.FORWARD) and not await composer.set_body(text_to_html(body)):
        return _failed(composer, "Failed to set body")

    result = await _complete(composer, send)
    logger.info(
        "thread_response_finished",
        variant=variant.value,
        thread_id=thread_id,
        send=send,
        success=result.success,
    )
    return result


async def reply_to_thread(
    session: Session,
    thread_id: str,
    body: str,
    send: bool = False,
    timings: Timings = DEFAULT_TIMINGS,
) -> ReplyResult:
    """Reply to the sender of a thread; saves a draft unless `send`."""
    return await _respond(session, ComposeVariant.REPLY, thread_id, body, send, timings)


async def reply_all_to_thread(
    session: Session,
    thread_id: str,
    body: str,
    send: bool = False,
    timings: Timings = DEFAULT_TIMINGS,
) -> ReplyResult:
    """Reply to everyone on a thread; saves a draft unless `send`."""
    return await _respond(session, ComposeVariant.REPLY_ALL, thread_id, body, send, timings)


async def forward_thread(
    session: Session,
    thread_id: str,
    to_email: str,
    body: str = "",
    send: bool = False,
    timings: Timings = DEFAULT_TIMINGS,
) -> ReplyResult:
    """Forward a thread to one address, with an optional note above it."""
    return await _respond(session, ComposeVariant.FORWARD, thread_id, body, send, timings, to_email=to_email)
