"""Session-level compose operations on the most recently opened draft.

These are the one-call-per-step entry points the CLI uses between
separate invocations, where no DraftComposer survives. Each call resumes
the newest draft key on the compose controller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from superhuman_agent.compose.machine import ComposeVariant, DraftComposer, DraftState
from superhuman_agent.config import DEFAULT_TIMINGS, Timings

if TYPE_CHECKING:
    from superhuman_agent.cdp.session import Session

logger = structlog.get_logger()


async def open_compose(
    session: Session,
    variant: ComposeVariant = ComposeVariant.NEW,
    thread_id: str | None = None,
    timings: Timings = DEFAULT_TIMINGS,
) -> str | None:
    """Open a compose form; returns the new draft key or None."""
    composer = DraftComposer.for_session(session, timings)
    return await composer.open(variant, thread_id)


async def _resume(session: Session, timings: Timings) -> DraftComposer | None:
    composer = await DraftComposer.resume(session, timings)
    if composer is None:
        logger.warning("no_open_draft")
    return composer


async def set_subject(session: Session, subject: str, timings: Timings = DEFAULT_TIMINGS) -> bool:
    composer = await _resume(session, timings)
    return composer is not None and await composer.set_subject(subject)


async def add_recipient(
    session: Session,
    email: str,
    name: str | None = None,
    field: str = "to",
    timings: Timings = DEFAULT_TIMINGS,
) -> bool:
    composer = await _resume(session, timings)
    return composer is not None and await composer.add_recipient(email, name, field)


async def set_body(session: Session, html: str, timings: Timings = DEFAULT_TIMINGS) -> bool:
    composer = await _resume(session, timings)
    return composer is not None and await composer.set_body(html)


async def add_attachment(
    session: Session,
    filename: str,
    data_b64: str,
    mime_type: str = "application/octet-stream",
    timings: Timings = DEFAULT_TIMINGS,
) -> bool:
    composer = await _resume(session, timings)
    return composer is not None and await composer.add_attachment(filename, data_b64, mime_type)


async def save_draft(session: Session, timings: Timings = DEFAULT_TIMINGS) -> bool:
    composer = await _resume(session, timings)
    return composer is not None and await composer.save()


async def send_draft(session: Session, timings: Timings = DEFAULT_TIMINGS) -> bool:
    composer = await _resume(session, timings)
    return composer is not None and await composer.send()


async def get_draft_state(session: Session, timings: Timings = DEFAULT_TIMINGS) -> DraftState | None:
    composer = await _resume(session, timings)
    if composer is None:
        return None
    return await composer.read_state()


async def close_compose(session: Session, timings: Timings = DEFAULT_TIMINGS) -> None:
    await DraftComposer.for_session(session, timings).close()
